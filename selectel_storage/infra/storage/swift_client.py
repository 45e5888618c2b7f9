"""Swift-style storage client implementation.

This module provides the storage session: it authenticates once, then
issues authenticated requests for account, container and object operations
and turns statuses and headers into typed results or ``StorageError``
subclasses.

Dependencies:
    - httpx
    - pydantic
    - prometheus_client
"""

from __future__ import annotations

import logging
import os
import time
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import Any, Mapping
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from selectel_storage.common.config import Settings, get_settings
from selectel_storage.common.logging import mask_headers
from selectel_storage.infra.observability.metrics import LATENCY, REQUESTS
from selectel_storage.infra.storage import signing
from selectel_storage.infra.storage.auth import AUTH_TOKEN_HEADER, authenticate
from selectel_storage.infra.storage.client import (
    AccountInfo,
    AuthContext,
    ContainerInfo,
    LinkType,
    SymlinkOptions,
    UploadResult,
)
from selectel_storage.infra.storage.errors import (
    ContainerNotEmptyError,
    ContainerNotFoundError,
    ErrorTable,
    FileUploadError,
    GeneralStorageError,
    InvalidInputError,
    LocalFileNotAvailableError,
    ObjectNotFoundError,
    RemoteFileNotFoundError,
    check_extract_report,
    raise_for_status,
    require_header,
)
from selectel_storage.infra.storage.headers import (
    CONTAINER_META_PREFIX,
    OBJECT_META_PREFIX,
    header_int,
    header_str,
    header_value,
    headers_to_metadata,
    join_path,
    meta_prefix_for,
    metadata_to_headers,
    normalize_headers,
    secret_key_header,
    split_domains,
    symlink_headers,
)
from selectel_storage.infra.storage.schemas import (
    CONTAINER_LISTING,
    OBJECT_LISTING,
    ContainerSummary,
    ObjectSummary,
)

logger = logging.getLogger(__name__)

LISTING_FORMAT = "json"
EXTRACT_ARCHIVE_PARAM = "extract-archive"

CONTAINER_TYPE_HEADER = "X-Container-Meta-Type"
CONTAINER_DOMAINS_HEADER = "X-Container-Meta-Domains"

_NOT_FOUND = httpx.codes.NOT_FOUND


class SwiftStorageClient:
    """Authenticated session against a Swift-style object storage.

    The constructor performs the credential exchange once; the resulting
    token is reused for every later call and never refreshed. Each public
    method issues at most one HTTP request.
    """

    def __init__(
        self,
        username: str,
        password: str,
        *,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Authenticate and prepare the storage HTTP client.

        Args:
            username: Storage user name.
            password: Storage password.
            settings: Client settings; read from the environment when omitted.
            transport: Optional httpx transport shared by auth and storage
                requests.

        Raises:
            InvalidInputError: If a credential is empty.
            AuthenticationError: If the credential exchange fails.
        """
        settings = settings or get_settings()
        self._settings = settings
        self._http = self._build_http(settings, transport)
        try:
            auth = authenticate(username, password, settings=settings, client=self._http)
        except Exception:
            self._http.close()
            raise
        self._bind(auth)

    @classmethod
    def from_auth_context(
        cls,
        auth: AuthContext,
        *,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> "SwiftStorageClient":
        """Build a session around a token obtained elsewhere."""
        instance = cls.__new__(cls)
        instance._settings = settings or get_settings()
        instance._http = cls._build_http(instance._settings, transport)
        instance._bind(auth)
        return instance

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> "SwiftStorageClient":
        """Authenticate with the credentials held in settings."""
        settings = settings or get_settings()
        return cls(
            settings.USERNAME or "",
            settings.PASSWORD or "",
            settings=settings,
            transport=transport,
        )

    @staticmethod
    def _build_http(
        settings: Settings, transport: httpx.BaseTransport | None
    ) -> httpx.Client:
        return httpx.Client(
            timeout=settings.HTTP_TIMEOUT,
            verify=settings.VERIFY_SSL,
            transport=transport,
        )

    def _bind(self, auth: AuthContext) -> None:
        # the auth exchange uses the same client before it is scoped to the account
        self._auth = auth
        self._http.base_url = auth.storage_url
        self._http.headers[AUTH_TOKEN_HEADER] = auth.token

    @property
    def auth_context(self) -> AuthContext:
        return self._auth

    @property
    def storage_url(self) -> str:
        return self._auth.storage_url

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SwiftStorageClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- transport ---------------------------------------------------------

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str | bytes] | None = None,
        params: Mapping[str, Any] | None = None,
        content: Any = None,
        errors: ErrorTable | None = None,
    ) -> httpx.Response:
        start = time.perf_counter()
        try:
            response = self._http.request(
                method,
                quote(path),
                headers=headers,
                params=params,
                content=content,
            )
        except httpx.HTTPError as exc:
            self._observe(method, operation, "error", start)
            logger.warning(
                "storage request failed",
                extra={
                    "extra": {
                        "operation": operation,
                        "method": method,
                        "path": path,
                        "error": str(exc),
                    }
                },
            )
            raise GeneralStorageError(f"{operation} request failed: {exc}") from exc

        self._observe(method, operation, str(response.status_code), start)
        self._trace(operation, method, path, headers, response)
        raise_for_status(response, operation, errors)
        return response

    def _observe(self, method: str, operation: str, status: str, start: float) -> None:
        if not self._settings.ENABLE_METRICS:
            return
        REQUESTS.labels(method=method, operation=operation, status=status).inc()
        LATENCY.labels(method=method, operation=operation).observe(
            time.perf_counter() - start
        )

    def _trace(
        self,
        operation: str,
        method: str,
        path: str,
        headers: Mapping[str, str] | None,
        response: httpx.Response,
    ) -> None:
        payload: dict[str, Any] = {
            "operation": operation,
            "method": method,
            "path": path,
            "status": response.status_code,
        }
        if self._settings.TRACE_HTTP:
            payload["request_headers"] = mask_headers(dict(headers or {}))
            payload["response_headers"] = mask_headers(dict(response.headers))
            logger.info("storage request", extra={"extra": payload})
        else:
            logger.debug("storage request", extra={"extra": payload})

    @staticmethod
    def _parse_listing(
        response: httpx.Response, adapter: TypeAdapter, operation: str
    ) -> list:
        # an empty listing comes back as 204 without a body
        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return []
        try:
            return adapter.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise GeneralStorageError(
                f"{operation} returned a malformed listing: {exc}",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _container_path(name: str) -> str:
        if not name or not name.strip("/"):
            raise InvalidInputError("Container name is missing.")
        return join_path(name)

    @staticmethod
    def _object_path(container: str, remote_path: str) -> str:
        if not container or not container.strip("/"):
            raise InvalidInputError("Container name is missing.")
        if not remote_path or not remote_path.strip("/"):
            raise InvalidInputError("Remote path is missing.")
        return join_path(container, remote_path)

    # -- account & containers ---------------------------------------------

    def get_account_info(self) -> AccountInfo:
        """Return account usage counters.

        Raises:
            GeneralStorageError: If the usage header is absent.
        """
        response = self._request("get_account_info", "HEAD", "/")
        require_header(
            response,
            "X-Account-Bytes-Used",
            GeneralStorageError,
            "Unable to fetch storage info.",
        )
        fields = normalize_headers(
            {
                "container_count": response.headers.get_list("X-Account-Container-Count"),
                "object_count": response.headers.get_list("X-Account-Object-Count"),
                "total_size_bytes": response.headers.get_list("X-Account-Bytes-Used"),
                "bytes_transferred": response.headers.get_list("X-Transfered-Bytes"),
                "bytes_received": response.headers.get_list("X-Received-Bytes"),
            }
        )
        return AccountInfo(**{k: header_int(v, k) for k, v in fields.items()})

    def list_containers(
        self, limit: int | None = None, marker: str = ""
    ) -> list[ContainerSummary]:
        """List containers in service order.

        Pass the last returned name as ``marker`` to fetch the next page.
        """
        params = {
            "limit": limit if limit is not None else self._settings.DEFAULT_LIST_LIMIT,
            "marker": marker,
            "format": LISTING_FORMAT,
        }
        response = self._request("list_containers", "GET", "/", params=params)
        return self._parse_listing(response, CONTAINER_LISTING, "list_containers")

    def create_container(
        self,
        name: str,
        container_type: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> bool:
        """Create a container.

        Returns True only when the storage answers 201 Created. Any other
        non-error status, e.g. 202 for an existing container, returns False.
        """
        headers = {CONTAINER_TYPE_HEADER: header_value(container_type)}
        headers.update(metadata_to_headers(CONTAINER_META_PREFIX, metadata))
        response = self._request(
            "create_container", "PUT", self._container_path(name), headers=headers
        )
        return response.status_code == httpx.codes.CREATED

    def get_container_info(self, name: str) -> ContainerInfo:
        """Return container statistics, type, domains and metadata.

        Raises:
            ContainerNotFoundError: If the storage answers 404.
            GeneralStorageError: If the object-count header is absent.
        """
        response = self._request(
            "get_container_info",
            "HEAD",
            self._container_path(name),
            errors={_NOT_FOUND: (ContainerNotFoundError, "Container was not found.")},
        )
        require_header(
            response,
            "X-Container-Object-Count",
            GeneralStorageError,
            "Container info is unavailable.",
        )
        fields = normalize_headers(
            {
                "object_count": response.headers.get_list("X-Container-Object-Count"),
                "size_bytes": response.headers.get_list("X-Container-Bytes-Used"),
                "bytes_transferred": response.headers.get_list("X-Transfered-Bytes"),
                "bytes_received": response.headers.get_list("X-Received-Bytes"),
                "type": response.headers.get_list(CONTAINER_TYPE_HEADER),
                "domains": response.headers.get_list(CONTAINER_DOMAINS_HEADER),
            },
            defaults={"type": "", "domains": ""},
        )
        metadata = headers_to_metadata(
            response.headers,
            CONTAINER_META_PREFIX,
            exclude=("type", "domains", "temp-url-key"),
        )
        return ContainerInfo(
            object_count=header_int(fields["object_count"], "object_count"),
            size_bytes=header_int(fields["size_bytes"], "size_bytes"),
            bytes_transferred=header_int(fields["bytes_transferred"], "bytes_transferred"),
            bytes_received=header_int(fields["bytes_received"], "bytes_received"),
            type=header_str(fields["type"], "type"),
            domains=split_domains(fields["domains"]),
            metadata=metadata,
        )

    def delete_container(self, name: str) -> bool:
        """Delete an empty container.

        Raises:
            ContainerNotFoundError: If the container does not exist.
            ContainerNotEmptyError: If the container still holds objects.
        """
        self._request(
            "delete_container",
            "DELETE",
            self._container_path(name),
            errors={
                _NOT_FOUND: (ContainerNotFoundError, "Container was not found."),
                httpx.codes.CONFLICT: (ContainerNotEmptyError, "Container is not empty."),
            },
        )
        return True

    # -- objects -----------------------------------------------------------

    def list_objects(
        self, container: str, params: Mapping[str, Any] | None = None
    ) -> list[ObjectSummary]:
        """List objects of a container.

        ``params`` (``prefix``, ``path``, ``limit``, ``marker``...) are
        passed through verbatim; ``format`` is always ``json``.
        """
        query = dict(params or {})
        query["format"] = LISTING_FORMAT
        response = self._request(
            "list_objects",
            "GET",
            self._container_path(container),
            params=query,
            errors={_NOT_FOUND: (ContainerNotFoundError, "Container was not found.")},
        )
        return self._parse_listing(response, OBJECT_LISTING, "list_objects")

    def upload_object(
        self,
        container: str,
        local_path: str | os.PathLike[str],
        remote_path: str,
        params: Mapping[str, Any] | None = None,
    ) -> UploadResult:
        """Upload a local file.

        The file is checked before any request and streamed with an
        explicit ``Content-Length``. With ``{"extract-archive": "tar.gz"}``
        (or another format) in ``params`` the storage unpacks the archive
        and the extraction report is returned in ``UploadResult.extraction``.

        Raises:
            LocalFileNotAvailableError: If the local file cannot be read.
            ContainerNotFoundError: If the container does not exist.
            FileUploadError: If the storage rejects the body (422).
            ArchiveExtractError: If the archive could not be unpacked.
        """
        source = Path(local_path)
        if not source.is_file() or not os.access(source, os.R_OK):
            raise LocalFileNotAvailableError("Local path is not readable.")

        full_remote_path = self._object_path(container, remote_path)
        remote = join_path(remote_path).lstrip("/")
        query = dict(params or {})
        headers = {
            "Content-Length": str(source.stat().st_size),
            "Accept": "application/json",
        }

        try:
            body = source.open("rb")
        except OSError as exc:
            raise LocalFileNotAvailableError("Local path is not readable.") from exc

        with body:
            response = self._request(
                "upload_object",
                "PUT",
                full_remote_path,
                headers=headers,
                params=query,
                content=body,
                errors={
                    _NOT_FOUND: (ContainerNotFoundError, "Container was not found."),
                    httpx.codes.UNPROCESSABLE_ENTITY: (
                        FileUploadError,
                        "Unable to upload file.",
                    ),
                },
            )

        extraction = None
        if query.get(EXTRACT_ARCHIVE_PARAM):
            extraction = check_extract_report(response)
        logger.info(
            "object uploaded",
            extra={"extra": {"path": full_remote_path, "size": headers["Content-Length"]}},
        )
        return UploadResult(
            remote_path=remote,
            full_remote_path=full_remote_path,
            extraction=extraction,
        )

    def set_object_metadata(
        self,
        container: str,
        remote_path: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> bool:
        """Replace the ``X-Object-Meta-*`` metadata of an object.

        A 404 is reported as ``ContainerNotFoundError`` even when only the
        object is missing.
        """
        self._request(
            "set_object_metadata",
            "POST",
            self._object_path(container, remote_path),
            headers=metadata_to_headers(OBJECT_META_PREFIX, metadata),
            errors={_NOT_FOUND: (ContainerNotFoundError, "Container was not found.")},
        )
        return True

    def copy_object(
        self,
        src_container: str,
        src_path: str,
        dst_container: str,
        dst_path: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> bool:
        """Server-side copy, optionally adding object metadata to the copy."""
        source = self._object_path(src_container, src_path)
        headers = {"X-Copy-From": quote(source), "Content-Length": "0"}
        headers.update(metadata_to_headers(OBJECT_META_PREFIX, metadata))
        self._request(
            "copy_object",
            "PUT",
            self._object_path(dst_container, dst_path),
            headers=headers,
            errors={
                _NOT_FOUND: (
                    ObjectNotFoundError,
                    "Source or destination object was not found.",
                )
            },
        )
        return True

    def delete_object(self, container: str, remote_path: str) -> bool:
        self._request(
            "delete_object",
            "DELETE",
            self._object_path(container, remote_path),
            errors={_NOT_FOUND: (RemoteFileNotFoundError, "File was not found.")},
        )
        return True

    def set_object_headers(self, object_path: str, headers: Mapping[str, Any]) -> bool:
        """Apply metadata headers to an account, container or object path.

        Keys are prefixed with ``X-Account-Meta-``, ``X-Container-Meta-`` or
        ``X-Object-Meta-`` depending on how deep ``object_path`` is.
        """
        path = join_path(object_path)
        self._request(
            "set_object_headers",
            "POST",
            path,
            headers=metadata_to_headers(meta_prefix_for(path), headers),
            errors={_NOT_FOUND: (ObjectNotFoundError, "Object was not found.")},
        )
        return True

    # -- symlinks & signed links --------------------------------------------

    def create_symlink(
        self,
        container: str,
        link_path: str,
        link_source: str,
        *,
        link_type: LinkType | str | None = None,
        expires_at: int | datetime | None = None,
        password: str | None = None,
    ) -> bool:
        """Create a symlink object pointing at ``link_source``.

        Args:
            container: Container that will hold the link.
            link_path: Path of the link inside the container.
            link_source: Target path, e.g. ``/container/file.txt``.
            link_type: Link flavour; one-time links vanish after a visit and
                ``+secure`` links require the password.
            expires_at: Time after which the storage removes the link.
            password: Password for secure links; only its SHA-1 link key is
                sent.
        """
        if not link_source:
            raise InvalidInputError("Link source is missing.")
        options = SymlinkOptions(
            target_path=link_source,
            link_type=link_type,
            expires_at=expires_at,
            password=password,
        )
        self._request(
            "create_symlink",
            "PUT",
            self._object_path(container, link_path),
            headers=symlink_headers(options),
            errors={_NOT_FOUND: (ContainerNotFoundError, "Container was not found.")},
        )
        return True

    def set_object_secret_key(self, scope_path: str, secret_key: str) -> bool:
        """Install the temp-URL key for the account (``/``) or a container."""
        if not secret_key:
            raise InvalidInputError("Secret key is missing.")
        path = join_path(scope_path)
        self._request(
            "set_object_secret_key",
            "POST",
            path,
            headers={secret_key_header(path): header_value(secret_key)},
            errors={_NOT_FOUND: (ObjectNotFoundError, "Object was not found.")},
        )
        return True

    def object_url(self, container: str, remote_path: str) -> str:
        """Absolute URL of an object under this account's storage URL."""
        return self.storage_url.rstrip("/") + quote(
            self._object_path(container, remote_path)
        )

    @staticmethod
    def generate_signed_link(url: str, expires: int | datetime, secret_key: str) -> str:
        return signing.generate_signed_link(url, expires, secret_key)
