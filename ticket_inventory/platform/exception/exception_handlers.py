"""
HTTP error mapping

Every error body is `{"detail": ..., "code": ...}` so clients can branch on
`code` (`sold_out`, `not_your_reservation`, `reservation_expired`, ...) instead
of parsing messages.
"""

from typing import Any, Callable, Coroutine, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from ticket_inventory.platform.exception.exceptions import (
    AuthenticationError,
    CustomBaseError,
    UpstreamUnavailableError,
)
from ticket_inventory.platform.logging.loguru_io import Logger


ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]

UPSTREAM_RETRY_AFTER_SECONDS = 5


def _error_headers(error: CustomBaseError) -> Optional[Dict[str, str]]:
    if isinstance(error, AuthenticationError):
        return {'WWW-Authenticate': 'Bearer'}
    if isinstance(error, UpstreamUnavailableError):
        return {'Retry-After': str(UPSTREAM_RETRY_AFTER_SECONDS)}
    return None


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, CustomBaseError) else CustomBaseError(str(exc), 500)
    if error.status_code >= 500:
        Logger.base.warning(
            f'⚠️ [HTTP] {request.method} {request.url.path} -> {error.status_code} {error.code}: '
            f'{error.message}'
        )
    return JSONResponse(
        status_code=error.status_code,
        content={'detail': error.message, 'code': error.code},
        headers=_error_headers(error),
    )


async def value_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'detail': str(exc), 'code': 'bad_request'},
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'detail': jsonable_encoder(errors), 'code': 'validation_error'},
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    Logger.base.exception(f'💥 [HTTP] Unhandled error on {request.method} {request.url.path}')
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'detail': 'Internal server error', 'code': 'internal_error'},
    )


EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    CustomBaseError: custom_error_handler,
    ValueError: value_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: general_500_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
