"""
Structured service outcomes.

Services never raise for expected business conditions; they return a
ServiceResult carrying the envelope code, a human-readable message and
either data or an error kind.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ResponseCodes:
    SUCCESS = 200
    CREATED = 201
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    SERVER_ERROR = 500


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    UNEXPECTED = "unexpected"


# Forbidden and conflict share 400 with validation in the envelope
ERROR_CODES = {
    ErrorKind.VALIDATION: ResponseCodes.BAD_REQUEST,
    ErrorKind.NOT_FOUND: ResponseCodes.NOT_FOUND,
    ErrorKind.UNAUTHORIZED: ResponseCodes.UNAUTHORIZED,
    ErrorKind.FORBIDDEN: ResponseCodes.BAD_REQUEST,
    ErrorKind.CONFLICT: ResponseCodes.BAD_REQUEST,
    ErrorKind.UNEXPECTED: ResponseCodes.SERVER_ERROR,
}


@dataclass
class ServiceResult(Generic[T]):
    code: int
    message: str
    data: Optional[T] = None
    error: Optional[ErrorKind] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, data: Any = None, message: str = "Success") -> "ServiceResult":
        return cls(code=ResponseCodes.SUCCESS, message=message, data=data)

    @classmethod
    def created(cls, data: Any = None, message: str = "Created") -> "ServiceResult":
        return cls(code=ResponseCodes.CREATED, message=message, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "ServiceResult":
        return cls(code=ERROR_CODES[kind], message=message, error=kind)

    @classmethod
    def not_found(cls, message: str) -> "ServiceResult":
        return cls.failure(ErrorKind.NOT_FOUND, message)

    @classmethod
    def unauthorized(cls, message: str) -> "ServiceResult":
        return cls.failure(ErrorKind.UNAUTHORIZED, message)

    @classmethod
    def forbidden(cls, message: str) -> "ServiceResult":
        return cls.failure(ErrorKind.FORBIDDEN, message)

    @classmethod
    def conflict(cls, message: str) -> "ServiceResult":
        return cls.failure(ErrorKind.CONFLICT, message)

    @classmethod
    def invalid(cls, message: str) -> "ServiceResult":
        return cls.failure(ErrorKind.VALIDATION, message)
