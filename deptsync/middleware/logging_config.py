"""
Structured logging configuration.

Development and testing get a coloured single-line format, production gets
one JSON object per line. LOG_LEVEL overrides the level in both cases.

Reconcile scope fields passed via ``extra=`` (project_id, shooting_day_id,
scene_id, department) are carried into both formats.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Request fields set by the timing middleware
REQUEST_FIELDS = ("method", "path", "status", "duration_ms", "remote_addr", "request_id")
# Scope fields set by the engine and the mutation services
SCOPE_FIELDS = ("project_id", "shooting_day_id", "scene_id", "department", "user_id")


def _extras(record):
    return {
        key: getattr(record, key)
        for key in REQUEST_FIELDS + SCOPE_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON document per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(_extras(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Coloured formatter; appends the reconcile scope as ``<ART p1 d3>``."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    @staticmethod
    def _scope(record):
        parts = []
        if getattr(record, "department", None):
            parts.append(record.department)
        if getattr(record, "project_id", None) is not None:
            parts.append(f"p{record.project_id}")
        if getattr(record, "shooting_day_id", None) is not None:
            parts.append(f"d{record.shooting_day_id}")
        if getattr(record, "scene_id", None) is not None:
            parts.append(f"s{record.scene_id}")
        return f" <{' '.join(parts)}>" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        duration = getattr(record, "duration_ms", None)
        timing = f" [{duration:.0f}ms]" if duration is not None else ""
        line = (
            f"{color}{ts} {record.levelname:<8}{self.RESET} "
            f"{record.name}{self._scope(record)}: {record.getMessage()}{timing}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install a single stderr handler on the root logger.

    Production (neither DEBUG nor TESTING) uses JSONFormatter at INFO,
    everything else ReadableFormatter at DEBUG.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG")
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
    handler.setLevel(level)

    # Cleared first so repeated create_app() calls do not stack handlers
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("werkzeug", "sqlalchemy.engine", "flask_limiter"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "JSON" if is_prod else "readable")
