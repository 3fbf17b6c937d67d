"""Translation of domain exceptions into HTTP errors."""

from fastapi import HTTPException, status

from careops.domain.exceptions import (
    EntityNotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
    ValidationFailedError,
)

DOMAIN_ERRORS = (
    EntityNotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
    ValidationFailedError,
)

_STATUS_BY_ERROR: dict[type[Exception], int] = {
    EntityNotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    ValidationFailedError: 422,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(exc: Exception) -> HTTPException:
    for error_type, code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
