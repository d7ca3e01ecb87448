"""Logging setup, configured once at startup from settings.LOG_LEVEL / LOG_FORMAT."""
from __future__ import annotations

import json
import logging
import logging.config
import re
from typing import Any, Dict

from app.core.config import settings

_BEARER_RE = re.compile(r"(Authorization\s*:\s*Bearer\s+)([A-Za-z0-9._-]+)", re.IGNORECASE)
_SECRET_KV_RE = re.compile(r"((?:password|token)\"?\s*[:=]\s*\"?)([^\s\",}]+)", re.IGNORECASE)


def _sanitize_str(s: str) -> str:
    if not isinstance(s, str) or not s:
        return s
    s = _BEARER_RE.sub(lambda m: m.group(1) + "[REDACTED]", s)
    s = _SECRET_KV_RE.sub(lambda m: m.group(1) + "[REDACTED]", s)
    return s


class SensitiveDataFilter(logging.Filter):
    """Masks bearer tokens and password/token values in the message and its args."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _sanitize_str(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(_sanitize_str(a) if isinstance(a, str) else a for a in record.args)
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    log_level = (level or settings.LOG_LEVEL or "INFO").upper()
    log_format = (fmt or settings.LOG_FORMAT or "text").lower()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"sensitive": {"()": SensitiveDataFilter}},
        "formatters": {
            "json": {"()": JsonFormatter},
            "plain": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "stream": "ext://sys.stdout",
                "formatter": "json" if log_format == "json" else "plain",
                "filters": ["sensitive"],
            }
        },
        "root": {"level": log_level, "handlers": ["console"]},
        "loggers": {
            "sqlalchemy.engine": {"level": "WARNING"},
            "uvicorn.access": {"level": "WARNING" if settings.ENV != "local" else log_level},
        },
    })
    logging.getLogger(__name__).info("logging configured (level=%s format=%s env=%s)", log_level, log_format, settings.ENV)
