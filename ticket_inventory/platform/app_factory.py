"""
FastAPI application factory

Production (`service/ticketing/main.py`) passes its lifespan; tests build the
same app without one and override container providers instead.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any, Optional

import anyio
from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.exc import SQLAlchemyError

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.config.di import container
from ticket_inventory.platform.exception.exception_handlers import register_exception_handlers
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.message_queue.kafka_constant_builder import ServiceNames
from ticket_inventory.platform.observability.tracing import TracingConfig
from ticket_inventory.service.ticketing.driving_adapter.http_controller.event_ticket_controller import (
    router as event_ticket_router,
)
from ticket_inventory.service.ticketing.driving_adapter.http_controller.ticket_controller import (
    router as ticket_router,
)


READINESS_TIMEOUT_SECONDS = 2.0

OPENAPI_TAGS = [
    {
        'name': 'event tickets',
        'description': 'Reserve a seat for an event; staff views of tickets and counters',
    },
    {
        'name': 'tickets',
        'description': 'Purchase, cancel and gate-validate a ticket; list a holder\'s tickets',
    },
]


def create_app(
    *,
    lifespan: Optional[Callable[[FastAPI], AbstractAsyncContextManager[Any]]] = None,
    title_suffix: str = '',
    service_name: str = ServiceNames.TICKET_INVENTORY_SERVICE,
) -> FastAPI:
    app = FastAPI(
        title=f'{settings.PROJECT_NAME}{title_suffix}',
        description='Per-event ticket inventory, reservations, purchases and gate validation',
        version=settings.VERSION,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    # Must run before the routers are mounted
    TracingConfig(service_name=service_name).instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_exception_handlers(app)

    app.include_router(event_ticket_router, prefix='/api/events', tags=['event tickets'])
    app.include_router(ticket_router, prefix='/api', tags=['tickets'])

    _register_probe_endpoints(app)

    return app


def _register_probe_endpoints(app: FastAPI) -> None:
    @app.get('/health', include_in_schema=False)
    async def health_check() -> dict[str, str]:
        """Liveness: the process is up and serving."""
        return {'status': 'healthy', 'service': settings.PROJECT_NAME}

    @app.get('/ready', include_in_schema=False)
    async def readiness_check() -> JSONResponse:
        """Readiness: reservations need the database, so no database means no traffic."""
        try:
            with anyio.fail_after(READINESS_TIMEOUT_SECONDS):
                await container.database().ping()
        except (OSError, SQLAlchemyError, TimeoutError) as e:
            Logger.base.warning(f'⚠️ [READY] Database unreachable: {type(e).__name__}')
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={'status': 'unavailable', 'database': type(e).__name__},
            )
        return JSONResponse(content={'status': 'ready', 'database': 'ok'})

    @app.get('/metrics', include_in_schema=False)
    async def get_metrics() -> PlainTextResponse:
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
