"""Application logging configuration utilities."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

AUDIT_LOGGER_NAME = "docchat.ingest.audit"
AUDIT_FILENAME = "ingest_audit.log"
CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _utc_timestamp(created: float) -> str:
    return datetime.fromtimestamp(created, tz=timezone.utc).isoformat().replace("+00:00", "Z")


class JSONLineFormatter(logging.Formatter):
    """Render each record as one JSON object; dict messages become top-level fields."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        payload: dict[str, Any] = {
            "timestamp": _utc_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
        }
        if isinstance(record.msg, Mapping):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(log_dir: Path | str = "logs", *, level: str = "INFO") -> None:
    """Send application logs to the console and ingest audit records to a JSON-lines file."""

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"format": CONSOLE_FORMAT},
                "json_lines": {"()": JSONLineFormatter},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "console"},
                "ingest_audit": {
                    "class": "logging.FileHandler",
                    "filename": str(log_path / AUDIT_FILENAME),
                    "encoding": "utf-8",
                    "formatter": "json_lines",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                AUDIT_LOGGER_NAME: {
                    "level": "INFO",
                    "handlers": ["ingest_audit"],
                    "propagate": False,
                }
            },
        }
    )


__all__ = ["AUDIT_FILENAME", "AUDIT_LOGGER_NAME", "JSONLineFormatter", "configure_logging"]
