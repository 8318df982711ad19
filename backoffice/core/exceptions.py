"""Custom exception classes for the back office."""

from fastapi import HTTPException, status


class BackOfficeError(Exception):
    """Base exception for the back office.

    Each subclass carries the HTTP status it maps to, so route handlers can
    let errors propagate to the application exception handler.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class ValidationError(BackOfficeError):
    """Raised when input validation fails."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(BackOfficeError):
    """Raised when authentication fails."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(BackOfficeError):
    """Raised when user lacks permission."""
    status_code = status.HTTP_403_FORBIDDEN


class ResourceNotFoundError(BackOfficeError):
    """Raised when a requested resource is not found."""
    status_code = status.HTTP_404_NOT_FOUND


class ResourceConflictError(BackOfficeError):
    """Raised when a resource already exists or is still referenced."""
    status_code = status.HTTP_409_CONFLICT


class PayloadTooLargeError(BackOfficeError):
    """Raised when an upload exceeds the configured size limit."""
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class ConfigurationError(BackOfficeError):
    """Raised when the server is missing required configuration."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# HTTP exception shortcuts
def forbidden(detail: str = "Insufficient permissions") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def unauthorized(detail: str = "Unauthorized", scheme: str = "Bearer") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": scheme},
    )
