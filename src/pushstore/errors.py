"""Storage error taxonomy and translation of backend failures into it."""

import enum
from typing import Optional

from google.api_core import exceptions as google_exceptions


class ErrorCode(str, enum.Enum):
    """Kinds of failure a storage caller can observe."""

    NOT_FOUND = "NotFound"
    ALREADY_EXISTS = "AlreadyExists"
    INVALID = "Invalid"
    TOO_LARGE = "TooLarge"
    EXPIRED = "Expired"
    CONNECTION_FAILED = "ConnectionFailed"
    OTHER = "Other"


class StorageError(Exception):
    """Error raised by every storage operation."""

    def __init__(self, code: ErrorCode, message: Optional[str] = None):
        self.code = code
        self.message = message or code.value
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"StorageError(code={self.code.value!r}, message={self.message!r})"


_HTTP_CODES = {
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.ALREADY_EXISTS,
    413: ErrorCode.TOO_LARGE,
    503: ErrorCode.CONNECTION_FAILED,
    504: ErrorCode.CONNECTION_FAILED,
}


def translate_error(error: BaseException) -> StorageError:
    """Map a backend exception to a StorageError.

    Errors that already carry a storage code are returned unchanged.

    Args:
        error: Exception raised by Firestore, Cloud Storage or the runtime

    Returns:
        StorageError with the matching ErrorCode
    """
    if isinstance(error, StorageError):
        return error

    message = str(error) or type(error).__name__

    if isinstance(error, google_exceptions.GoogleAPICallError):
        code = _HTTP_CODES.get(error.code, ErrorCode.OTHER)
    elif isinstance(error, google_exceptions.RetryError):
        code = ErrorCode.CONNECTION_FAILED
    elif isinstance(error, FileNotFoundError):
        code = ErrorCode.NOT_FOUND
    elif isinstance(error, (ConnectionError, TimeoutError)):
        code = ErrorCode.CONNECTION_FAILED
    else:
        code = ErrorCode.OTHER

    return StorageError(code, message)


def not_found(message: Optional[str] = None) -> StorageError:
    return StorageError(ErrorCode.NOT_FOUND, message)


def already_exists(message: Optional[str] = None) -> StorageError:
    return StorageError(ErrorCode.ALREADY_EXISTS, message)


def invalid(message: Optional[str] = None) -> StorageError:
    return StorageError(ErrorCode.INVALID, message)
