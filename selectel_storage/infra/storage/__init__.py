"""Client layer for Swift-style object storage.

This package bundles the storage session together with the pieces it is
built from: header codec, signature helpers, error taxonomy and the result
types returned to callers.
"""

from .auth import authenticate
from .client import (
    AccountInfo,
    AuthContext,
    ContainerInfo,
    ExtractResult,
    LinkType,
    SymlinkOptions,
    UploadResult,
)
from .errors import (
    ArchiveExtractError,
    AuthenticationError,
    ContainerNotEmptyError,
    ContainerNotFoundError,
    ErrorKind,
    FileUploadError,
    GeneralStorageError,
    InvalidInputError,
    LocalFileNotAvailableError,
    ObjectNotFoundError,
    RemoteFileNotFoundError,
    StorageError,
)
from .schemas import ContainerSummary, ObjectSummary
from .signing import generate_signed_link
from .swift_client import SwiftStorageClient

__all__ = [
    "AccountInfo",
    "ArchiveExtractError",
    "AuthContext",
    "AuthenticationError",
    "ContainerInfo",
    "ContainerNotEmptyError",
    "ContainerNotFoundError",
    "ContainerSummary",
    "ErrorKind",
    "ExtractResult",
    "FileUploadError",
    "GeneralStorageError",
    "InvalidInputError",
    "LinkType",
    "LocalFileNotAvailableError",
    "ObjectNotFoundError",
    "ObjectSummary",
    "RemoteFileNotFoundError",
    "StorageError",
    "SwiftStorageClient",
    "SymlinkOptions",
    "UploadResult",
    "authenticate",
    "generate_signed_link",
]
