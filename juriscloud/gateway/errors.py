from typing import Optional

from fastapi import HTTPException, status


class GatewayError(Exception):
    """Base error for database, storage and auth gateway failures."""

    def __init__(self, message: str, code: Optional[str] = None, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.original_error = original_error


class NotFoundError(GatewayError):
    """Raised when a row or object does not exist for the current user."""
    pass


class ConstraintError(GatewayError):
    """Raised when a write violates a uniqueness or integrity constraint."""
    pass


class PermissionDeniedError(GatewayError):
    """Raised when a write violates row ownership."""
    pass


class StorageError(GatewayError):
    """Raised when a storage bucket operation fails."""
    pass


class AuthError(GatewayError):
    """Raised when sign in, sign up or token checks fail."""
    pass


def to_http_exception(error: GatewayError) -> HTTPException:
    """Translate a gateway failure for the HTTP layer."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, AuthError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(error, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error.message)
    if isinstance(error, StorageError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
