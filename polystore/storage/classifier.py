"""Error classifier.

Maps backend-reported conditions (HTTP status codes, provider error codes,
filesystem and network exceptions) onto the fixed set of error kinds.
Every lookup is table driven so the taxonomy stays independent of any one
provider's vocabulary. Anything not covered by a table falls back to
``ErrorKind.INTERNAL`` and keeps the raw provider message for diagnostics.
"""

from __future__ import annotations

import asyncio
import errno
import logging
from typing import NoReturn

import httpx
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ParamValidationError,
    ReadTimeoutError,
)

from polystore.core.enums import ErrorKind

from .exceptions import StorageError, error_for_kind

logger = logging.getLogger(__name__)

# Status codes that are not failures
SUCCESS_STATUSES = frozenset({200, 201, 202, 204, 206, 304})

HTTP_STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.INVALID_ARGUMENT,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.UNAUTHORIZED,
    404: ErrorKind.NOT_FOUND,
    407: ErrorKind.UNAUTHORIZED,
    408: ErrorKind.TEMPORARY_FAILURE,
    410: ErrorKind.NOT_FOUND,
    411: ErrorKind.INVALID_ARGUMENT,
    413: ErrorKind.INVALID_ARGUMENT,
    414: ErrorKind.INVALID_ARGUMENT,
    415: ErrorKind.INVALID_ARGUMENT,
    416: ErrorKind.INVALID_ARGUMENT,
    429: ErrorKind.TEMPORARY_FAILURE,
    431: ErrorKind.INVALID_ARGUMENT,
    451: ErrorKind.INTERNAL,
    500: ErrorKind.INTERNAL,
    501: ErrorKind.INTERNAL,
    502: ErrorKind.TEMPORARY_FAILURE,
    503: ErrorKind.TEMPORARY_FAILURE,
    504: ErrorKind.TIMEOUT,
    507: ErrorKind.INTERNAL,
    511: ErrorKind.UNAUTHORIZED,
}

# S3-compatible error codes (AWS, R2, MinIO)
ERROR_CODE_KINDS: dict[str, ErrorKind] = {
    "NoSuchKey": ErrorKind.NOT_FOUND,
    "NoSuchBucket": ErrorKind.NOT_FOUND,
    "NotFound": ErrorKind.NOT_FOUND,
    "AccessDenied": ErrorKind.UNAUTHORIZED,
    "AllAccessDisabled": ErrorKind.UNAUTHORIZED,
    "InvalidAccessKeyId": ErrorKind.UNAUTHORIZED,
    "SignatureDoesNotMatch": ErrorKind.UNAUTHORIZED,
    "ExpiredToken": ErrorKind.UNAUTHORIZED,
    "InvalidToken": ErrorKind.UNAUTHORIZED,
    "SlowDown": ErrorKind.TEMPORARY_FAILURE,
    "Throttling": ErrorKind.TEMPORARY_FAILURE,
    "ThrottlingException": ErrorKind.TEMPORARY_FAILURE,
    "RequestLimitExceeded": ErrorKind.TEMPORARY_FAILURE,
    "ServiceUnavailable": ErrorKind.TEMPORARY_FAILURE,
    "InternalError": ErrorKind.TEMPORARY_FAILURE,  # S3 asks clients to retry these
    "RequestTimeout": ErrorKind.TEMPORARY_FAILURE,
    "OperationAborted": ErrorKind.TEMPORARY_FAILURE,
    "EntityTooLarge": ErrorKind.INVALID_ARGUMENT,
    "EntityTooSmall": ErrorKind.INVALID_ARGUMENT,
    "InvalidArgument": ErrorKind.INVALID_ARGUMENT,
    "InvalidBucketName": ErrorKind.INVALID_ARGUMENT,
    "InvalidRequest": ErrorKind.INVALID_ARGUMENT,
    "KeyTooLongError": ErrorKind.INVALID_ARGUMENT,
    "MalformedXML": ErrorKind.INVALID_ARGUMENT,
    "MetadataTooLarge": ErrorKind.INVALID_ARGUMENT,
    "MissingContentLength": ErrorKind.INVALID_ARGUMENT,
    "NotImplemented": ErrorKind.INTERNAL,
}

# Checked in order; subclasses must precede their bases.
EXCEPTION_KINDS: tuple[tuple[type[BaseException], ErrorKind], ...] = (
    (asyncio.CancelledError, ErrorKind.CANCELLED),
    (FileNotFoundError, ErrorKind.NOT_FOUND),
    (PermissionError, ErrorKind.UNAUTHORIZED),
    (IsADirectoryError, ErrorKind.INVALID_ARGUMENT),
    (NotADirectoryError, ErrorKind.INVALID_ARGUMENT),
    (FileExistsError, ErrorKind.INVALID_ARGUMENT),
    (TimeoutError, ErrorKind.TIMEOUT),
    (asyncio.TimeoutError, ErrorKind.TIMEOUT),
    (ConnectionError, ErrorKind.TEMPORARY_FAILURE),
    (ConnectTimeoutError, ErrorKind.TIMEOUT),
    (ReadTimeoutError, ErrorKind.TIMEOUT),
    (EndpointConnectionError, ErrorKind.TEMPORARY_FAILURE),
    (NoCredentialsError, ErrorKind.UNAUTHORIZED),
    (ParamValidationError, ErrorKind.INVALID_ARGUMENT),
    (httpx.TimeoutException, ErrorKind.TIMEOUT),
    (httpx.TransportError, ErrorKind.TEMPORARY_FAILURE),
    (ValueError, ErrorKind.INVALID_ARGUMENT),
    (TypeError, ErrorKind.INVALID_ARGUMENT),
)

OS_ERRNO_KINDS: dict[int, ErrorKind] = {
    errno.ENOENT: ErrorKind.NOT_FOUND,
    errno.EACCES: ErrorKind.UNAUTHORIZED,
    errno.EPERM: ErrorKind.UNAUTHORIZED,
    errno.EAGAIN: ErrorKind.TEMPORARY_FAILURE,
    errno.EBUSY: ErrorKind.TEMPORARY_FAILURE,
    errno.EINTR: ErrorKind.TEMPORARY_FAILURE,
    errno.ENAMETOOLONG: ErrorKind.INVALID_ARGUMENT,
    errno.EINVAL: ErrorKind.INVALID_ARGUMENT,
    errno.ETIMEDOUT: ErrorKind.TIMEOUT,
}


def classify_status(status_code: int) -> ErrorKind | None:
    """Classify an HTTP status code.

    Returns:
        None for success codes, otherwise the matching error kind.
    """
    if status_code in SUCCESS_STATUSES or 200 <= status_code < 300:
        return None
    if kind := HTTP_STATUS_KINDS.get(status_code):
        return kind
    if 500 <= status_code < 600:
        return ErrorKind.TEMPORARY_FAILURE
    return ErrorKind.INTERNAL


def classify_error_code(code: str | None) -> ErrorKind | None:
    """Classify a provider error code string. Unknown codes return None."""
    if not code:
        return None
    if code.isdigit():
        return classify_status(int(code))
    return ERROR_CODE_KINDS.get(code)


def _classify_client_error(exc: ClientError) -> ErrorKind:
    error = exc.response.get("Error", {})
    if kind := classify_error_code(error.get("Code")):
        return kind
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    if status is not None:
        return classify_status(int(status)) or ErrorKind.INTERNAL
    return ErrorKind.INTERNAL


def classify_exception(exc: BaseException) -> ErrorKind:
    """Classify any exception into an error kind. Never returns None."""
    if isinstance(exc, StorageError):
        return exc.kind
    if isinstance(exc, ClientError):
        return _classify_client_error(exc)
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_status(exc.response.status_code) or ErrorKind.INTERNAL

    for exc_type, kind in EXCEPTION_KINDS:
        if isinstance(exc, exc_type):
            return kind

    if isinstance(exc, OSError) and exc.errno in OS_ERRNO_KINDS:
        return OS_ERRNO_KINDS[exc.errno]
    if isinstance(exc, BotoCoreError):
        return ErrorKind.TEMPORARY_FAILURE
    return ErrorKind.INTERNAL


def _describe(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Message") or str(exc)
    return str(exc) or type(exc).__name__


def to_storage_error(exc: BaseException, message: str | None = None) -> StorageError:
    """Wrap an exception into the typed storage error of its kind.

    Storage errors pass through unchanged. The raw provider message is kept
    in the wrapped error's message and the original exception as ``cause``.
    """
    if isinstance(exc, StorageError):
        return exc
    kind = classify_exception(exc)
    detail = _describe(exc)
    text = f"{message}: {detail}" if message else detail
    error = error_for_kind(kind, text, cause=exc)
    error.__cause__ = exc
    return error


def raise_for_status(status_code: int, message: str) -> None:
    """Raise the typed storage error for a non-success status code."""
    kind = classify_status(status_code)
    if kind is None:
        return
    raise error_for_kind(kind, f"{message} (HTTP {status_code})")


def raise_storage_error(exc: BaseException, message: str) -> NoReturn:
    """Log and re-raise an exception as its typed storage error."""
    error = to_storage_error(exc, message)
    if error.kind in (ErrorKind.NOT_FOUND, ErrorKind.CANCELLED):
        logger.debug(f"{message}: {error.kind.value}")
    else:
        logger.error(f"{message}: {error}")
    if error is exc:
        raise error
    raise error from exc
