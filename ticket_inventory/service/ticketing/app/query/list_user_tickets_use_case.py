import asyncio
from typing import Dict, List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ticket_inventory.platform.config.di import Container
from ticket_inventory.platform.exception.exceptions import ForbiddenError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.dto.ticket_listing import UserTicketView
from ticket_inventory.service.ticketing.app.interface.i_event_catalog_client import (
    IEventCatalogClient,
)
from ticket_inventory.service.ticketing.app.interface.i_ticket_query_repo import ITicketQueryRepo
from ticket_inventory.service.ticketing.domain.enum.ticket_status import USER_VISIBLE_STATUSES
from ticket_inventory.service.ticketing.domain.ticketing_error import EventUnavailableError
from ticket_inventory.service.ticketing.domain.value_object.event_summary import EventSummary
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal


class ListUserTicketsUseCase:
    """
    A user's tickets joined with event details from the catalog.

    Each distinct event is fetched once. A catalog failure degrades that
    event to a placeholder summary instead of failing the whole listing.
    """

    def __init__(
        self,
        *,
        ticket_query_repo: ITicketQueryRepo,
        event_catalog_client: IEventCatalogClient,
    ) -> None:
        self.ticket_query_repo = ticket_query_repo
        self.event_catalog_client = event_catalog_client

    @classmethod
    @inject
    def depends(
        cls,
        ticket_query_repo: ITicketQueryRepo = Depends(Provide[Container.ticket_query_repo]),
        event_catalog_client: IEventCatalogClient = Depends(
            Provide[Container.event_catalog_client]
        ),
    ) -> Self:
        return cls(ticket_query_repo=ticket_query_repo, event_catalog_client=event_catalog_client)

    @Logger.io
    async def execute(self, *, user_id: str, principal: Principal) -> List[UserTicketView]:
        if principal.user_id != user_id and not principal.is_admin:
            raise ForbiddenError("Not authorized to view this user's tickets")

        tickets = await self.ticket_query_repo.list_by_user(
            user_id=user_id, statuses=USER_VISIBLE_STATUSES
        )
        event_ids = list(dict.fromkeys(ticket.event_id for ticket in tickets))
        summaries = await asyncio.gather(*(self._event_summary(event_id) for event_id in event_ids))
        events: Dict[str, EventSummary] = dict(zip(event_ids, summaries))

        return [UserTicketView(ticket=ticket, event=events[ticket.event_id]) for ticket in tickets]

    async def _event_summary(self, event_id: str) -> EventSummary:
        try:
            return await self.event_catalog_client.get_event(event_id=event_id)
        except EventUnavailableError as e:
            Logger.base.warning(f'⚠️ [CATALOG] Event {event_id} details unavailable: {e.message}')
            return EventSummary.placeholder()
