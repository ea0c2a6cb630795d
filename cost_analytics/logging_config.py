"""Logging configuration for Cost Analytics.

Emits one JSON object per log line by default. Set
COST_ANALYTICS_LOG_FORMAT=plain for human-readable lines.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

SERVICE_NAME = "cost-analytics"
HANDLER_NAME = "cost-analytics"


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter with stable keys."""

    def format(self, record: logging.LogRecord) -> str:
        log: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "service": SERVICE_NAME,
        }

        for attr in ("error_type", "context"):
            value = getattr(record, attr, None)
            if value:
                log[attr] = value
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = None, log_format: str = None) -> None:
    """Idempotent logging setup used by the CLI entrypoint.

    Safe to call multiple times; the package handler is only installed once.

    Args:
        level: Log level name, defaults to COST_ANALYTICS_LOG_LEVEL or WARNING
        log_format: 'json' or 'plain', defaults to COST_ANALYTICS_LOG_FORMAT or json
    """
    root = logging.getLogger()
    if any(h.get_name() == HANDLER_NAME for h in root.handlers):
        return

    level = (level or os.getenv("COST_ANALYTICS_LOG_LEVEL", "WARNING")).upper()
    log_format = (log_format or os.getenv("COST_ANALYTICS_LOG_FORMAT", "json")).lower()

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    if log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
    root.addHandler(handler)
    root.setLevel(level)


__all__ = ["setup_logging", "JsonFormatter"]
