import json
import logging
from logging.config import dictConfig
from typing import Mapping

from selectel_storage.common.config import get_settings

SENSITIVE_HEADERS = {
    "x-auth-key",
    "x-auth-token",
    "x-account-meta-temp-url-key",
    "x-container-meta-temp-url-key",
    "x-object-meta-link-key",
    "authorization",
}


def setup_logging(level: str | None = None) -> None:
    if level is None:
        level = get_settings().LOG_LEVEL
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
            },
            "loggers": {
                "selectel_storage": {
                    "handlers": ["console"],
                    "level": level,
                    "propagate": False,
                }
            },
        }
    )


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            payload.update(record.extra)
        return json.dumps(payload, ensure_ascii=False, default=str)


def mask_headers(headers: Mapping[str, object]) -> dict[str, object]:
    masked: dict[str, object] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            masked[key] = "***"
        else:
            masked[key] = value
    return masked
