"""Signatures for temporary URLs and password-protected symlinks.

Both are pure functions: they never touch the network and must reproduce
byte-for-byte what the storage computes when it verifies a request.
"""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime
from urllib.parse import unquote, urlsplit

TEMP_URL_METHOD = "GET"


def _as_timestamp(expires: int | datetime) -> int:
    if isinstance(expires, datetime):
        return int(expires.timestamp())
    return int(expires)


def link_key(password: str, link_source: str) -> str:
    """Key stored with a secure symlink in place of its password."""
    return hashlib.sha1((password + link_source).encode("utf-8")).hexdigest()


def temp_url_signature(path: str, expires: int | datetime, secret_key: str) -> str:
    """HMAC-SHA1 over ``GET\\n<expires>\\n<path>`` keyed by ``secret_key``."""
    body = f"{TEMP_URL_METHOD}\n{_as_timestamp(expires)}\n{path}"
    return hmac.new(
        secret_key.encode("utf-8"), body.encode("utf-8"), hashlib.sha1
    ).hexdigest()


def generate_signed_link(url: str, expires: int | datetime, secret_key: str) -> str:
    """Append ``temp_url_sig`` and ``temp_url_expires`` to ``url``.

    Only the decoded path component is signed, as the storage does when it
    checks the link; for a bare path such as ``/c/o.txt`` that is the whole
    URL. Percent-encoded URLs from ``object_url`` sign the same as raw paths.
    """
    timestamp = _as_timestamp(expires)
    path = unquote(urlsplit(url).path)
    signature = temp_url_signature(path, timestamp, secret_key)
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}temp_url_sig={signature}&temp_url_expires={timestamp}"
