from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

DEFAULT_AUTH_URL = "https://auth.selcdn.ru/"
DEFAULT_LIST_LIMIT = 10000


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


@dataclass
class Settings:
    AUTH_URL: str = DEFAULT_AUTH_URL
    USERNAME: str | None = None
    PASSWORD: str | None = None
    HTTP_TIMEOUT: float = 30.0
    VERIFY_SSL: bool = True
    DEFAULT_LIST_LIMIT: int = DEFAULT_LIST_LIMIT
    ENABLE_METRICS: bool = True
    TRACE_HTTP: bool = False
    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        scheme = self.AUTH_URL.split(":", 1)[0].lower()
        if scheme not in {"http", "https"}:
            raise ValueError("AUTH_URL must be an http(s) URL.")
        if self.HTTP_TIMEOUT <= 0:
            raise ValueError("HTTP_TIMEOUT must be positive.")
        if self.DEFAULT_LIST_LIMIT <= 0:
            raise ValueError("DEFAULT_LIST_LIMIT must be positive.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            AUTH_URL=os.environ.get("STORAGE_AUTH_URL", cls.AUTH_URL),
            USERNAME=os.environ.get("STORAGE_USERNAME"),
            PASSWORD=os.environ.get("STORAGE_PASSWORD"),
            HTTP_TIMEOUT=float(
                os.environ.get("STORAGE_HTTP_TIMEOUT", cls.HTTP_TIMEOUT)
            ),
            VERIFY_SSL=_as_bool(
                os.environ.get("STORAGE_VERIFY_SSL"), cls.VERIFY_SSL
            ),
            DEFAULT_LIST_LIMIT=int(
                os.environ.get("STORAGE_LIST_LIMIT", cls.DEFAULT_LIST_LIMIT)
            ),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
            TRACE_HTTP=_as_bool(os.environ.get("TRACE_HTTP"), cls.TRACE_HTTP),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
