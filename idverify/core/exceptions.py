"""
Custom exception hierarchy for the application.
All API-facing exceptions inherit from AppException for unified handling.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        status_code: HTTP status code for API responses
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result = {
            "error": self.message,
            "code": self.code,
        }
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(AppException):
    """Input validation failed."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: str = "VALIDATION_ERROR",
        status_code: int = 400,
    ):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            details=details
        )


class ImageTooSmallError(ValidationError):
    def __init__(self, length: int, minimum: int):
        super().__init__(
            message=f"Image data is too small ({length} characters, minimum {minimum})",
            field="imageData",
            code="IMAGE_TOO_SMALL",
            status_code=422,
        )


class PayloadTooLargeError(ValidationError):
    def __init__(self, size: int, maximum: int):
        super().__init__(
            message=f"Image is too large ({size} bytes, maximum {maximum})",
            field="imageData",
            code="PAYLOAD_TOO_LARGE",
            status_code=413,
        )


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, entity: str, identifier: Optional[Any] = None):
        message = f"{entity} not found"
        if identifier is not None:
            message = f"{entity} '{identifier}' not found"
        super().__init__(message=message, code="NOT_FOUND", status_code=404)


class ConflictError(AppException):
    """Request conflicts with the current state of a resource."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="CONFLICT", status_code=409, details=details)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            message=message,
            code="AUTHENTICATION_ERROR",
            status_code=401
        )


class PermissionDeniedError(AppException):
    """User lacks the role required for an operation."""

    def __init__(self, message: str = "Admin required"):
        super().__init__(message=message, code="FORBIDDEN", status_code=403)


class ExternalServiceError(AppException):
    """The external verification service failed or answered with an error."""

    def __init__(
        self,
        message: str = "Verification failed",
        status_code: int = 502,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="EXTERNAL_SERVICE_ERROR",
            status_code=status_code,
            details=details,
        )


class DatabaseError(AppException):
    """Database operation failed."""

    def __init__(self, operation: Optional[str] = None):
        super().__init__(
            message="Database error",
            code="DATABASE_ERROR",
            status_code=500,
            details={"operation": operation} if operation else None,
        )
