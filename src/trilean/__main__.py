"""Entry point for ``python -m trilean``."""
import sys

from .cli import main

sys.exit(main())
