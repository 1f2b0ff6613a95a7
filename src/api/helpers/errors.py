"""Translation of service-layer exceptions into HTTP errors."""
from fastapi import HTTPException, status

from services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)

# Exceptions routers catch around service calls
SERVICE_ERRORS = (NotFoundError, PermissionDeniedError, ConflictError, ValidationFailedError)

_STATUS_BY_ERROR: list[tuple[type[Exception], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationFailedError, status.HTTP_400_BAD_REQUEST),
]


def to_http_exception(error: Exception) -> HTTPException:
    """
    Map a service exception to the HTTPException routers raise.

    Usage:
        except SERVICE_ERRORS as e:
            raise to_http_exception(e) from e
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    raise TypeError(f"Unmapped service error: {type(error).__name__}")
