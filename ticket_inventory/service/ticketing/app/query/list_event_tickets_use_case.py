import math
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ticket_inventory.platform.config.di import Container
from ticket_inventory.platform.exception.exceptions import DomainError, ForbiddenError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.dto.ticket_listing import EventTicketPage
from ticket_inventory.service.ticketing.app.interface.i_ticket_query_repo import ITicketQueryRepo
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal


MAX_PAGE_SIZE = 200


class ListEventTicketsUseCase:
    def __init__(self, *, ticket_query_repo: ITicketQueryRepo) -> None:
        self.ticket_query_repo = ticket_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        ticket_query_repo: ITicketQueryRepo = Depends(Provide[Container.ticket_query_repo]),
    ) -> Self:
        return cls(ticket_query_repo=ticket_query_repo)

    @Logger.io
    async def execute(
        self,
        *,
        event_id: str,
        principal: Principal,
        status: Optional[TicketStatus] = None,
        page: int = 1,
        limit: int = 50,
    ) -> EventTicketPage:
        if not principal.is_staff:
            raise ForbiddenError('Only administrators and organizers can list event tickets')
        if page < 1:
            raise DomainError('page must be at least 1')
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise DomainError(f'limit must be between 1 and {MAX_PAGE_SIZE}')

        total = await self.ticket_query_repo.count_by_event(event_id=event_id, status=status)
        tickets = await self.ticket_query_repo.list_by_event(
            event_id=event_id, status=status, offset=(page - 1) * limit, limit=limit
        )
        return EventTicketPage(
            tickets=tickets,
            total_tickets=total,
            total_pages=math.ceil(total / limit),
            current_page=page,
        )
