"""Tests for the storage credential exchange."""

from __future__ import annotations

import logging

import httpx
import pytest

from selectel_storage.common.config import Settings
from selectel_storage.infra.storage import swift_client
from selectel_storage.infra.storage.auth import authenticate
from selectel_storage.infra.storage.client import AuthContext
from selectel_storage.infra.storage.errors import (
    AuthenticationError,
    ErrorKind,
    InvalidInputError,
)
from selectel_storage.infra.storage.swift_client import SwiftStorageClient
from tests.infra.mock_transport import AUTH_URL, STORAGE_URL


def test_authenticate_returns_header_values(storage, settings):
    ctx = authenticate("user", "secret", settings=settings, transport=storage.transport)

    assert ctx == AuthContext(token="test-token", storage_url=STORAGE_URL)
    request = storage.requests[0]
    assert request.method == "GET"
    assert str(request.url) == AUTH_URL
    assert request.headers["X-Auth-User"] == "user"
    assert request.headers["X-Auth-Key"] == "secret"
    assert request.url.query == b""
    assert storage.bodies[0] == b""


@pytest.mark.parametrize("username,password", [("", "secret"), ("user", ""), ("", "")])
def test_authenticate_rejects_empty_credentials(storage, settings, username, password):
    with pytest.raises(InvalidInputError) as excinfo:
        authenticate(username, password, settings=settings, transport=storage.transport)

    assert excinfo.value.kind is ErrorKind.INVALID_INPUT
    assert isinstance(excinfo.value, ValueError)
    assert storage.requests == []


@pytest.mark.parametrize("status", [200, 401, 403, 500])
def test_authenticate_accepts_only_no_content(storage, settings, status):
    storage.auth_status = status

    with pytest.raises(AuthenticationError) as excinfo:
        authenticate("user", "secret", settings=settings, transport=storage.transport)

    assert excinfo.value.status_code == status
    assert excinfo.value.kind is ErrorKind.AUTHENTICATION_FAILED


def test_authenticate_transport_failure(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AuthenticationError, match="authorization failed"):
        authenticate(
            "user", "secret", settings=settings, transport=httpx.MockTransport(handler)
        )


def test_authenticate_requires_token_headers(settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(204))

    with pytest.raises(AuthenticationError, match="missing token headers"):
        authenticate("user", "secret", settings=settings, transport=transport)


def test_authenticate_never_logs_password(storage, settings, caplog):
    storage.auth_status = 401

    with caplog.at_level(logging.DEBUG, logger="selectel_storage"):
        with pytest.raises(AuthenticationError):
            authenticate(
                "user", "hunter2", settings=settings, transport=storage.transport
            )
        storage.auth_status = 204
        authenticate("user", "hunter2", settings=settings, transport=storage.transport)

    assert caplog.records
    for record in caplog.records:
        assert "hunter2" not in record.getMessage()
        assert "hunter2" not in repr(getattr(record, "extra", {}))


class TestSessionConstruction:
    """The session authenticates exactly once and reuses the token."""

    def test_token_sent_on_storage_requests(self, storage, client):
        storage.route("HEAD", "/", 204, headers={"X-Account-Bytes-Used": "1"})

        client.get_account_info()
        client.get_account_info()

        auth_requests = [r for r in storage.requests if r.url.host == "auth.test"]
        assert len(auth_requests) == 1
        assert all(
            r.headers["X-Auth-Token"] == "test-token" for r in storage.storage_requests
        )
        assert client.auth_context.token == "test-token"
        assert client.storage_url == STORAGE_URL

    def test_auth_request_carries_no_token(self, storage, client):
        auth_request = storage.requests[0]

        assert auth_request.url.host == "auth.test"
        assert "X-Auth-Token" not in auth_request.headers

    def test_failed_auth_aborts_construction(self, storage, settings):
        storage.auth_status = 403

        with pytest.raises(AuthenticationError):
            SwiftStorageClient("user", "bad", settings=settings, transport=storage.transport)

    def test_http_client_closed_on_unexpected_auth_error(self, storage, settings, monkeypatch):
        seen: list[httpx.Client] = []

        def broken_authenticate(username, password, *, settings, client):
            seen.append(client)
            raise RuntimeError("boom")

        monkeypatch.setattr(swift_client, "authenticate", broken_authenticate)

        with pytest.raises(RuntimeError):
            SwiftStorageClient("user", "secret", settings=settings, transport=storage.transport)

        assert seen and seen[0].is_closed

    def test_non_ascii_credentials_are_sent_as_utf8(self, storage, settings):
        with SwiftStorageClient(
            "пользователь", "пароль", settings=settings, transport=storage.transport
        ):
            pass

        assert storage.requests[0].headers["X-Auth-User"] == "пользователь"

    def test_from_settings_requires_credentials(self, storage):
        settings = Settings(AUTH_URL=AUTH_URL)

        with pytest.raises(InvalidInputError, match="Username is missing"):
            SwiftStorageClient.from_settings(settings, transport=storage.transport)

    def test_from_settings_uses_configured_credentials(self, storage):
        settings = Settings(AUTH_URL=AUTH_URL, USERNAME="acc", PASSWORD="pw")

        with SwiftStorageClient.from_settings(settings, transport=storage.transport):
            pass

        assert storage.requests[0].headers["X-Auth-User"] == "acc"

    def test_from_auth_context_skips_handshake(self, storage, settings):
        storage.route("DELETE", "/c/a.txt", 204)
        ctx = AuthContext(token="t-1", storage_url=STORAGE_URL)

        with SwiftStorageClient.from_auth_context(
            ctx, settings=settings, transport=storage.transport
        ) as session:
            assert session.delete_object("c", "a.txt") is True

        assert len(storage.requests) == 1
        assert storage.last.headers["X-Auth-Token"] == "t-1"

    def test_storage_url_with_path_prefix(self, storage, settings):
        storage.storage_url = "https://storage.test/v1/AUTH_acc/"
        storage.route("DELETE", "/v1/AUTH_acc/c/a.txt", 204)

        with SwiftStorageClient(
            "user", "secret", settings=settings, transport=storage.transport
        ) as session:
            session.delete_object("c", "a.txt")

        assert storage.last.url.path == "/v1/AUTH_acc/c/a.txt"
