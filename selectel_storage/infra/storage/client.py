"""Storage result types.

This module defines the value objects returned by the storage session:
authentication context, account and container statistics, upload results
and symlink descriptions. Listing entries parsed from JSON live in
``schemas``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Token and per-account storage URL obtained from the auth endpoint."""

    token: str
    storage_url: str


@dataclass(frozen=True, slots=True)
class AccountInfo:
    """Account-wide usage counters from a HEAD on the storage root."""

    container_count: int
    object_count: int
    total_size_bytes: int
    bytes_transferred: int
    bytes_received: int


@dataclass(frozen=True, slots=True)
class ContainerInfo:
    """Container statistics and metadata from a HEAD on the container."""

    object_count: int
    size_bytes: int
    bytes_transferred: int
    bytes_received: int
    type: str
    domains: tuple[str, ...] = ()
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ExtractResult:
    """Outcome of a server-side archive extraction."""

    files_extracted: int


@dataclass(frozen=True, slots=True)
class UploadResult:
    """Result of uploading a local file.

    ``remote_path`` is the object path inside the container without a
    leading slash, ``full_remote_path`` is ``/container/path``.
    ``extraction`` is only set when ``extract-archive`` was requested.
    """

    remote_path: str
    full_remote_path: str
    extraction: ExtractResult | None = None


class LinkType(str, Enum):
    """Symlink flavours understood by the storage."""

    SYMLINK = "symlink"
    ONETIME_SYMLINK = "onetime-symlink"
    SECURE_SYMLINK = "symlink+secure"
    ONETIME_SECURE_SYMLINK = "onetime-symlink+secure"

    @property
    def content_type(self) -> str:
        return f"x-storage/{self.value}"


@dataclass(frozen=True, slots=True)
class SymlinkOptions:
    """Description of a symlink object.

    Attributes:
        target_path: Path of the object the link points to, e.g. ``/c/a.txt``.
        link_type: One of the ``LinkType`` flavours; plain object when None.
        expires_at: Unix time or datetime after which the storage removes
            the link, regardless of visits.
        password: Plaintext password; only its derived link key is sent.
    """

    target_path: str
    link_type: LinkType | str | None = None
    expires_at: int | datetime | None = None
    password: str | None = None
