"""One-time credential exchange against the storage auth endpoint."""

from __future__ import annotations

import logging

import httpx

from selectel_storage.common.config import Settings, get_settings
from selectel_storage.infra.storage.client import AuthContext
from selectel_storage.infra.storage.errors import AuthenticationError, InvalidInputError
from selectel_storage.infra.storage.headers import header_value

logger = logging.getLogger(__name__)

AUTH_USER_HEADER = "X-Auth-User"
AUTH_KEY_HEADER = "X-Auth-Key"
AUTH_TOKEN_HEADER = "X-Auth-Token"
STORAGE_URL_HEADER = "X-Storage-Url"


def authenticate(
    username: str,
    password: str,
    *,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
    client: httpx.Client | None = None,
) -> AuthContext:
    """Exchange credentials for a token and the account storage URL.

    Credentials travel only as request headers so they never end up in
    access logs as part of a URL or body.

    Args:
        username: Storage user name.
        password: Storage password (the ``X-Auth-Key`` value).
        settings: Settings providing the auth URL and HTTP options.
        transport: Optional httpx transport, mostly for tests.
        client: Existing client to send the request with; it is left open.
            When omitted a short-lived client is built from settings.

    Returns:
        AuthContext with the token and storage base URL.

    Raises:
        InvalidInputError: If either credential is empty.
        AuthenticationError: If the endpoint rejects the credentials,
            cannot be reached, or omits the token headers.
    """
    if not username:
        raise InvalidInputError("Username is missing.")
    if not password:
        raise InvalidInputError("Password is missing.")

    settings = settings or get_settings()
    headers = {
        AUTH_USER_HEADER: header_value(username),
        AUTH_KEY_HEADER: header_value(password),
    }
    try:
        if client is not None:
            response = client.get(settings.AUTH_URL, headers=headers)
        else:
            with httpx.Client(
                timeout=settings.HTTP_TIMEOUT,
                verify=settings.VERIFY_SSL,
                transport=transport,
            ) as own_client:
                response = own_client.get(settings.AUTH_URL, headers=headers)
    except httpx.HTTPError as exc:
        logger.warning(
            "storage auth transport failure",
            extra={"extra": {"username": username, "error": str(exc)}},
        )
        raise AuthenticationError("Storage authorization failed.") from exc

    if response.status_code != httpx.codes.NO_CONTENT:
        logger.warning(
            "storage auth rejected",
            extra={"extra": {"username": username, "status": response.status_code}},
        )
        raise AuthenticationError(
            "Storage authorization failed.", status_code=response.status_code
        )

    token = response.headers.get(AUTH_TOKEN_HEADER)
    storage_url = response.headers.get(STORAGE_URL_HEADER)
    if not token or not storage_url:
        raise AuthenticationError(
            "Storage authorization response is missing token headers.",
            status_code=response.status_code,
        )

    logger.info(
        "storage auth succeeded",
        extra={"extra": {"username": username, "storage_url": storage_url}},
    )
    return AuthContext(token=token, storage_url=storage_url)
