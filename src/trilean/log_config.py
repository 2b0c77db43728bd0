"""
Logging Setup

Structured JSON log formatting and a decision observer that writes one
log line per evaluation. Library modules only create loggers; handlers
are attached here, by the CLI or by the embedding application.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from .models.decision import Blueprint, DecisionReport

logger = logging.getLogger("trilean.decisions")

EXTRA_FIELDS = ("blueprint", "result", "encoded", "total_gates", "duration_ms", "error_code")


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Add extra fields if present
        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(level: str = "INFO", json_format: bool = True, logger_name: str = "trilean") -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    Calling it again replaces the previously installed handler.
    """
    root = logging.getLogger(logger_name)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for existing in list(root.handlers):
        if getattr(existing, "_trilean_handler", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler._trilean_handler = True  # type: ignore[attr-defined]
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    return root


def log_decision(
    report: DecisionReport,
    context: Optional[Mapping[str, Any]] = None,
    blueprint: Optional[Blueprint] = None,
) -> None:
    """Observer for DecisionEngine.add_observer: one INFO line per evaluation."""
    name = report.metadata.get("blueprint") or (blueprint.name if blueprint is not None else None)
    logger.info(
        "Decision %s evaluated to %s",
        name or "<anonymous>",
        report.result.value,
        extra={
            "blueprint": name,
            "result": report.result.value,
            "encoded": report.encoded_vector,
            "total_gates": report.metadata.get("total_gates"),
            "duration_ms": report.metadata.get("duration_ms"),
        },
    )
