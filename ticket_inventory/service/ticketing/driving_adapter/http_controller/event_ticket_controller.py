from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from opentelemetry import trace

from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.command.reserve_ticket_use_case import (
    ReserveTicketUseCase,
)
from ticket_inventory.service.ticketing.app.query.get_inventory_use_case import GetInventoryUseCase
from ticket_inventory.service.ticketing.app.query.list_event_tickets_use_case import (
    ListEventTicketsUseCase,
)
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal
from ticket_inventory.service.ticketing.driving_adapter.http_controller.auth.role_auth import (
    get_current_principal,
)
from ticket_inventory.service.ticketing.driving_adapter.http_controller.schema.ticket_schema import (
    EventTicketPageResponse,
    InventoryResponse,
    ReservationResponse,
    TicketResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('/{event_id}/tickets/reserve', status_code=status.HTTP_201_CREATED)
@Logger.io
async def reserve_ticket(
    event_id: str,
    principal: Principal = Depends(get_current_principal),
    use_case: ReserveTicketUseCase = Depends(ReserveTicketUseCase.depends),
) -> ReservationResponse:
    with tracer.start_as_current_span('controller.reserve_ticket') as span:
        span.set_attribute('event_id', event_id)
        span.set_attribute('user_id', principal.user_id)

        result = await use_case.execute(event_id=event_id, user_id=principal.user_id)

        return ReservationResponse(
            ticket=TicketResponse.from_entity(result.ticket),
            reserved_until=result.reserved_until,
            expires_in=result.expires_in,
        )


@router.get('/{event_id}/tickets', status_code=status.HTTP_200_OK)
@Logger.io
async def list_event_tickets(
    event_id: str,
    ticket_status: Optional[TicketStatus] = Query(default=None, alias='status'),
    page: int = 1,
    limit: int = 50,
    principal: Principal = Depends(get_current_principal),
    use_case: ListEventTicketsUseCase = Depends(ListEventTicketsUseCase.depends),
) -> EventTicketPageResponse:
    result = await use_case.execute(
        event_id=event_id, principal=principal, status=ticket_status, page=page, limit=limit
    )
    return EventTicketPageResponse(
        tickets=[TicketResponse.from_entity(ticket) for ticket in result.tickets],
        total_tickets=result.total_tickets,
        total_pages=result.total_pages,
        current_page=result.current_page,
    )


@router.get('/{event_id}/inventory', status_code=status.HTTP_200_OK)
@Logger.io
async def get_inventory(
    event_id: str,
    principal: Principal = Depends(get_current_principal),
    use_case: GetInventoryUseCase = Depends(GetInventoryUseCase.depends),
) -> InventoryResponse:
    inventory = await use_case.execute(event_id=event_id, principal=principal)
    return InventoryResponse.from_entity(inventory)
