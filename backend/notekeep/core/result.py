# notekeep/core/result.py
"""
Typed results returned by the service layer.

Service operations never raise for expected failures (bad credentials, missing
notes, rejected uploads...). They return a Result holding either a value or a
ServiceError, and callers branch on ServiceError.code.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Error kinds surfaced by the core services."""
    # Not found / not owned
    USER_NOT_FOUND = "USER_NOT_FOUND"
    NOTE_NOT_FOUND = "NOTE_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"

    # Credentials / tokens
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    TOKEN_MALFORMED = "TOKEN_MALFORMED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID_SIGNATURE = "TOKEN_INVALID_SIGNATURE"

    # Registration
    USERNAME_EXISTS = "USERNAME_EXISTS"
    EMAIL_EXISTS = "EMAIL_EXISTS"

    # Upload validation
    FILE_EMPTY = "FILE_EMPTY"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FILE_TYPE_NOT_ALLOWED = "FILE_TYPE_NOT_ALLOWED"
    NO_VALID_FILES = "NO_VALID_FILES"

    # Underlying byte storage
    STORAGE_FAILURE = "STORAGE_FAILURE"


# Codes that must look identical to an outside caller ("not found or not yours")
DENIAL_CODES = frozenset({
    ErrorCode.USER_NOT_FOUND,
    ErrorCode.NOTE_NOT_FOUND,
    ErrorCode.FILE_NOT_FOUND,
    ErrorCode.ACCESS_DENIED,
})

TOKEN_CODES = frozenset({
    ErrorCode.AUTH_INVALID_CREDENTIALS,
    ErrorCode.AUTH_INVALID_TOKEN,
    ErrorCode.TOKEN_MALFORMED,
    ErrorCode.TOKEN_EXPIRED,
    ErrorCode.TOKEN_INVALID_SIGNATURE,
})

VALIDATION_CODES = frozenset({
    ErrorCode.FILE_EMPTY,
    ErrorCode.FILE_TOO_LARGE,
    ErrorCode.FILE_TYPE_NOT_ALLOWED,
    ErrorCode.NO_VALID_FILES,
})

CONFLICT_CODES = frozenset({
    ErrorCode.USERNAME_EXISTS,
    ErrorCode.EMAIL_EXISTS,
})


@dataclass(frozen=True)
class ServiceError:
    """A failure kind plus a message that is safe to show to the caller."""
    code: ErrorCode
    message: str

    @property
    def is_denial(self) -> bool:
        return self.code in DENIAL_CODES

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": self.message}


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Either a success value or a ServiceError.

    Usage:
        result = await store.retrieve(file_id, username)
        if not result.ok:
            ...branch on result.error.code...
        download = result.value
    """
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str) -> "Result[T]":
        return cls(error=ServiceError(code, message))

    @classmethod
    def from_error(cls, error: ServiceError) -> "Result[T]":
        return cls(error=error)
