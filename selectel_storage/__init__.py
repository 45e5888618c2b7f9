"""Python client for Selectel Cloud Storage (Swift-style API)."""

from selectel_storage.common.config import Settings, get_settings
from selectel_storage.infra.storage import *  # noqa: F401,F403
from selectel_storage.infra.storage import __all__ as _storage_all

__version__ = "0.1.0"

__all__ = ["Settings", "get_settings", *_storage_all]
