"""Storage error taxonomy and status translation.

Every failure raised by the client is a ``StorageError`` subclass tagged
with an ``ErrorKind``. The same HTTP status means different things at
different call sites, so each operation passes its own status table to
``raise_for_status``.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping

import httpx
from pydantic import ValidationError

from selectel_storage.infra.storage.client import ExtractResult
from selectel_storage.infra.storage.schemas import ExtractReport

EXTRACT_FAILED_STATUS = "400 Bad Request"


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    AUTHENTICATION_FAILED = "authentication_failed"
    GENERAL_FAILURE = "general_failure"
    CONTAINER_NOT_FOUND = "container_not_found"
    CONTAINER_NOT_EMPTY = "container_not_empty"
    OBJECT_NOT_FOUND = "object_not_found"
    FILE_NOT_FOUND = "file_not_found"
    LOCAL_FILE_NOT_AVAILABLE = "local_file_not_available"
    FILE_UPLOAD_FAILED = "file_upload_failed"
    ARCHIVE_EXTRACT_FAILED = "archive_extract_failed"


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""

    kind: ErrorKind = ErrorKind.GENERAL_FAILURE

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidInputError(StorageError, ValueError):
    """Raised when arguments are rejected before any request is sent."""

    kind = ErrorKind.INVALID_INPUT


class AuthenticationError(StorageError):
    kind = ErrorKind.AUTHENTICATION_FAILED


class GeneralStorageError(StorageError):
    kind = ErrorKind.GENERAL_FAILURE


class ContainerNotFoundError(StorageError):
    kind = ErrorKind.CONTAINER_NOT_FOUND


class ContainerNotEmptyError(StorageError):
    kind = ErrorKind.CONTAINER_NOT_EMPTY


class ObjectNotFoundError(StorageError):
    kind = ErrorKind.OBJECT_NOT_FOUND


class RemoteFileNotFoundError(StorageError):
    kind = ErrorKind.FILE_NOT_FOUND


class LocalFileNotAvailableError(StorageError):
    kind = ErrorKind.LOCAL_FILE_NOT_AVAILABLE


class FileUploadError(StorageError):
    kind = ErrorKind.FILE_UPLOAD_FAILED


class ArchiveExtractError(StorageError):
    """Raised when the storage accepted an archive but could not unpack it."""

    kind = ErrorKind.ARCHIVE_EXTRACT_FAILED


ErrorTable = Mapping[int, tuple[type[StorageError], str]]


def raise_for_status(
    response: httpx.Response, operation: str, errors: ErrorTable | None = None
) -> None:
    """Translate an error status into the exception registered for it.

    Args:
        response: Response to inspect.
        operation: Client operation name, used in the fallback message.
        errors: Status code to ``(exception class, message)`` mapping for
            this call site.

    Raises:
        StorageError: The mapped subclass, or ``GeneralStorageError`` for
            any other status of 400 and above.
    """
    status = response.status_code
    if errors and status in errors:
        error_cls, message = errors[status]
        raise error_cls(message, status_code=status)
    if status >= 400:
        raise GeneralStorageError(
            f"{operation} failed with status {status}", status_code=status
        )


def require_header(
    response: httpx.Response,
    header: str,
    error_cls: type[StorageError],
    message: str,
) -> None:
    if header not in response.headers:
        raise error_cls(message, status_code=response.status_code)


def check_extract_report(response: httpx.Response) -> ExtractResult:
    """Interpret the extraction report carried by a successful upload."""
    try:
        report = ExtractReport.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise GeneralStorageError(
            f"Malformed archive extraction report: {exc}",
            status_code=response.status_code,
        ) from exc

    if report.response_status == EXTRACT_FAILED_STATUS:
        raise ArchiveExtractError(
            report.response_body, status_code=response.status_code
        )
    return ExtractResult(files_extracted=report.files_created)
