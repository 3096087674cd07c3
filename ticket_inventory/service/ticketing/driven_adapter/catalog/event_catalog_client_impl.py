"""
Event Catalog Client

Synchronous lookup against the event service, used before a reservation
(publication check) and to decorate ticket listings. Every failure mode maps
to a typed error; nothing is allowed to hang past the configured timeout.
"""

from typing import Optional

import httpx

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.interface.i_event_catalog_client import (
    IEventCatalogClient,
)
from ticket_inventory.service.ticketing.domain.ticketing_error import (
    CatalogUnavailableError,
    EventNotFoundError,
)
from ticket_inventory.service.ticketing.domain.value_object.event_summary import EventSummary


class EventCatalogClientImpl(IEventCatalogClient):
    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.EVENT_CATALOG_URL,
            timeout=timeout_seconds or settings.EVENT_CATALOG_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    @Logger.io
    async def get_event(self, *, event_id: str) -> EventSummary:
        try:
            response = await self._client.get(f'/api/events/{event_id}')
        except httpx.TimeoutException as e:
            raise CatalogUnavailableError(f'Event catalog timed out for event {event_id}') from e
        except httpx.HTTPError as e:
            raise CatalogUnavailableError(
                f'Event catalog unreachable for event {event_id}: {type(e).__name__}'
            ) from e

        if response.status_code == 404:
            raise EventNotFoundError(f'Event {event_id} not found')
        if not response.is_success:
            raise CatalogUnavailableError(
                f'Event catalog answered {response.status_code} for event {event_id}'
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CatalogUnavailableError(
                f'Event catalog sent an unreadable body for event {event_id}'
            ) from e
        if not isinstance(data, dict):
            raise CatalogUnavailableError(
                f'Event catalog sent an unexpected body for event {event_id}'
            )
        return EventSummary.from_catalog(data)
