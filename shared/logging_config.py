"""Structured JSON logging configuration."""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from shared.config import get_settings

# Optional ``extra`` fields copied into the JSON payload when present
EXTRA_FIELDS = ("user_id", "facility_id", "branch", "request_path")


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Outputs logs as JSON with consistent fields:
    - timestamp (ISO 8601)
    - level (INFO, ERROR, etc.)
    - logger (module name)
    - message
    - user_id, facility_id, branch, request_path (if available in extra)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field_name in EXTRA_FIELDS:
            if hasattr(record, field_name):
                log_data[field_name] = getattr(record, field_name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging() -> None:
    """
    Configure application logging with JSON formatter.

    Reads LOG_LEVEL from settings (default: INFO).
    Outputs to stderr (captured by Docker logs).
    """
    settings = get_settings()

    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JSONFormatter())

    root_logger.addHandler(console_handler)

    root_logger.info(
        f"Logging configured: level={settings.LOG_LEVEL}, format=JSON"
    )
