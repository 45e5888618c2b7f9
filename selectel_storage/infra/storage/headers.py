"""Conversion between HTTP headers and structured values.

The storage API carries account, container and object metadata in
``X-*-Meta-*`` headers instead of a response body.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Mapping, Sequence
from urllib.parse import quote

from selectel_storage.infra.storage.client import LinkType, SymlinkOptions
from selectel_storage.infra.storage.errors import GeneralStorageError, InvalidInputError
from selectel_storage.infra.storage.signing import link_key

ACCOUNT_META_PREFIX = "X-Account-Meta-"
CONTAINER_META_PREFIX = "X-Container-Meta-"
OBJECT_META_PREFIX = "X-Object-Meta-"

ACCOUNT_TEMP_URL_KEY = "X-Account-Meta-Temp-URL-Key"
CONTAINER_TEMP_URL_KEY = "X-Container-Meta-Temp-URL-Key"

_SEPARATORS = re.compile(r"/{2,}")


def normalize_headers(
    raw: Mapping[str, Sequence[Any]], defaults: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Flatten multi-valued header lists into scalar fields.

    A single value is unwrapped, an empty list becomes ``defaults[key]``
    (``0`` when no default is given) and several values are returned as
    a list, untouched.
    """
    defaults = defaults or {}
    flat: dict[str, Any] = {}
    for key, values in raw.items():
        if len(values) == 1:
            flat[key] = values[0]
        elif len(values) == 0:
            flat[key] = defaults.get(key, 0)
        else:
            flat[key] = list(values)
    return flat


def header_int(value: Any, name: str) -> int:
    if isinstance(value, list):
        raise GeneralStorageError(f"Header {name} has several values: {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise GeneralStorageError(f"Header {name} is not an integer: {value!r}") from exc
    if number < 0:
        raise GeneralStorageError(f"Header {name} is negative: {number}")
    return number


def header_str(value: Any, name: str) -> str:
    if isinstance(value, list):
        raise GeneralStorageError(f"Header {name} has several values: {value!r}")
    return str(value)


def header_value(value: Any) -> str | bytes:
    """Header-safe form of ``value``; non-ASCII text is sent as UTF-8 bytes."""
    text = str(value)
    if text.isascii():
        return text
    return text.encode("utf-8")


def metadata_to_headers(
    prefix: str, metadata: Mapping[str, Any] | None
) -> dict[str, str | bytes]:
    headers: dict[str, str | bytes] = {}
    for key, value in (metadata or {}).items():
        if not key:
            raise InvalidInputError("Metadata keys must not be empty.")
        if not key.isascii():
            raise InvalidInputError(f"Metadata key must be ASCII: {key!r}")
        headers[prefix + key] = header_value(value)
    return headers


def headers_to_metadata(
    headers: Mapping[str, str], prefix: str, exclude: Sequence[str] = ()
) -> dict[str, str]:
    """Collect ``prefix*`` headers into a dict keyed by the lower-cased suffix."""
    prefix = prefix.lower()
    skipped = {name.lower() for name in exclude}
    metadata: dict[str, str] = {}
    for name, value in headers.items():
        lowered = name.lower()
        if not lowered.startswith(prefix):
            continue
        key = lowered[len(prefix):]
        if key and key not in skipped:
            metadata[key] = value
    return metadata


def join_path(*parts: str) -> str:
    """Build ``/a/b/c`` from path fragments, collapsing duplicate slashes."""
    joined = "/".join(part.strip("/") for part in parts if part and part.strip("/"))
    return "/" + _SEPARATORS.sub("/", joined)


def is_account_path(path: str) -> bool:
    return join_path(path) == "/"


def meta_prefix_for(path: str) -> str:
    """Metadata header prefix matching the depth of ``path``."""
    normalized = join_path(path)
    if normalized == "/":
        return ACCOUNT_META_PREFIX
    if normalized.count("/") == 1:
        return CONTAINER_META_PREFIX
    return OBJECT_META_PREFIX


def secret_key_header(path: str) -> str:
    if is_account_path(path):
        return ACCOUNT_TEMP_URL_KEY
    return CONTAINER_TEMP_URL_KEY


def split_domains(value: Any) -> tuple[str, ...]:
    values = value if isinstance(value, list) else [value]
    domains: list[str] = []
    for item in values:
        if not item:
            continue
        domains.extend(d.strip() for d in str(item).split(",") if d.strip())
    return tuple(domains)


def symlink_headers(options: SymlinkOptions) -> dict[str, str]:
    headers = {
        "X-Object-Meta-Location": quote(options.target_path),
        "Content-Length": "0",
    }
    if options.link_type is not None:
        try:
            link_type = LinkType(options.link_type.lower())
        except ValueError as exc:
            raise InvalidInputError(f"Unknown link type: {options.link_type}") from exc
        headers["Content-Type"] = link_type.content_type
    if options.expires_at is not None:
        expires_at = options.expires_at
        if isinstance(expires_at, datetime):
            expires_at = int(expires_at.timestamp())
        headers["X-Object-Meta-Delete-At"] = str(int(expires_at))
    if options.password:
        headers["X-Object-Meta-Link-Key"] = link_key(options.password, options.target_path)
    return headers
