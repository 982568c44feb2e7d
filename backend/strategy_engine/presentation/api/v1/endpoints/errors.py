"""Domain exception → HTTP status mapping shared by the v1 endpoints."""

from fastapi import HTTPException, status

from strategy_engine.domain.exceptions import (
    AuthenticationError,
    ConcurrencyError,
    EntityNotFoundError,
    GatewayError,
    SignalAlreadyConvertedError,
    ValidationError,
)

# Checked in order; subclasses before their bases.
_STATUS_MAP: tuple[tuple[type[Exception], int], ...] = (
    (SignalAlreadyConvertedError, status.HTTP_409_CONFLICT),
    (ConcurrencyError, status.HTTP_409_CONFLICT),
    (EntityNotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (GatewayError, status.HTTP_502_BAD_GATEWAY),
)


def http_error(exc: Exception) -> HTTPException:
    for exc_type, status_code in _STATUS_MAP:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
