from __future__ import annotations

import pytest

from selectel_storage.common.config import Settings, get_settings
from selectel_storage.infra.storage.swift_client import SwiftStorageClient
from tests.infra.mock_transport import AUTH_URL, FakeStorage


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def settings() -> Settings:
    return Settings(AUTH_URL=AUTH_URL, HTTP_TIMEOUT=5.0)


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def client(storage, settings):
    with SwiftStorageClient(
        "user", "secret", settings=settings, transport=storage.transport
    ) as session:
        yield session
