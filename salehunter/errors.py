"""
Exception hierarchy for SaleHunter.

Services report expected outcomes as ServiceResult values; these
exceptions are raised at the HTTP boundary (authentication, failed
results being rendered) and by integrations, and are turned into
envelope responses by the API exception handlers.
"""

from typing import Any, Optional

from salehunter.services.result import ErrorKind, ServiceResult


class SaleHunterException(Exception):
    """Base exception for SaleHunter errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: Any = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class ValidationError(SaleHunterException):
    """Input validation failed."""

    def __init__(self, message: str, detail: Any = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )


class NotFoundError(SaleHunterException):
    """Resource not found."""

    def __init__(self, message: str, detail: Any = None):
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            detail=detail,
        )


class UnauthorizedError(SaleHunterException):
    """Authentication missing or invalid."""

    def __init__(self, message: str = "Unauthorized", detail: Any = None):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            detail=detail,
        )


class ForbiddenError(SaleHunterException):
    """Authenticated but not allowed. Reported with 400 in the envelope."""

    def __init__(self, message: str, detail: Any = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=400,
            detail=detail,
        )


class ConflictError(SaleHunterException):
    """Uniqueness violation. Reported with 400 in the envelope."""

    def __init__(self, message: str, detail: Any = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=400,
            detail=detail,
        )


class ExternalServiceError(SaleHunterException):
    """External dependency failure (geocoding, image storage, email)."""

    def __init__(self, service: str, detail: Optional[str] = None):
        super().__init__(
            message=f"{service} service unavailable",
            code="EXTERNAL_SERVICE_ERROR",
            status_code=503,
            detail=detail,
        )


_EXCEPTIONS_BY_KIND = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.UNAUTHORIZED: UnauthorizedError,
    ErrorKind.FORBIDDEN: ForbiddenError,
    ErrorKind.CONFLICT: ConflictError,
}


def exception_for(result: ServiceResult) -> SaleHunterException:
    """Exception matching a failed ServiceResult, keeping its message and code."""
    exc_class = _EXCEPTIONS_BY_KIND.get(result.error)
    if exc_class is None:
        return SaleHunterException(result.message, status_code=result.code)
    exc = exc_class(result.message)
    exc.status_code = result.code
    return exc
