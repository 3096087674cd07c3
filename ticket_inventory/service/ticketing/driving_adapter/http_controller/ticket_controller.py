from typing import List

from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.command.cancel_ticket_use_case import (
    CancelTicketUseCase,
)
from ticket_inventory.service.ticketing.app.command.purchase_ticket_use_case import (
    PurchaseTicketUseCase,
)
from ticket_inventory.service.ticketing.app.command.validate_ticket_use_case import (
    ValidateTicketUseCase,
)
from ticket_inventory.service.ticketing.app.dto.ticket_listing import UserTicketView
from ticket_inventory.service.ticketing.app.query.list_user_tickets_use_case import (
    ListUserTicketsUseCase,
)
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal
from ticket_inventory.service.ticketing.driving_adapter.http_controller.auth.role_auth import (
    get_current_principal,
)
from ticket_inventory.service.ticketing.driving_adapter.http_controller.schema.ticket_schema import (
    EventListingResponse,
    PurchaseTicketRequest,
    TicketResponse,
    UserTicketResponse,
    ValidateTicketRequest,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


def _to_user_ticket(view: UserTicketView) -> UserTicketResponse:
    return UserTicketResponse(
        **TicketResponse.from_entity(view.ticket).model_dump(),
        event=EventListingResponse.from_summary(view.event),
    )


@router.post('/tickets/{ticket_id}/purchase', status_code=status.HTTP_200_OK)
@Logger.io
async def purchase_ticket(
    ticket_id: int,
    request: PurchaseTicketRequest,
    principal: Principal = Depends(get_current_principal),
    use_case: PurchaseTicketUseCase = Depends(PurchaseTicketUseCase.depends),
) -> TicketResponse:
    with tracer.start_as_current_span('controller.purchase_ticket') as span:
        span.set_attribute('ticket_id', ticket_id)
        span.set_attribute('user_id', principal.user_id)

        ticket = await use_case.execute(
            ticket_id=ticket_id,
            user_id=principal.user_id,
            payment_method=request.payment_method,
            payment_reference=request.payment_reference,
        )
        return TicketResponse.from_entity(ticket)


@router.post('/tickets/{ticket_id}/cancel', status_code=status.HTTP_200_OK)
@Logger.io
async def cancel_ticket(
    ticket_id: int,
    principal: Principal = Depends(get_current_principal),
    use_case: CancelTicketUseCase = Depends(CancelTicketUseCase.depends),
) -> TicketResponse:
    with tracer.start_as_current_span('controller.cancel_ticket') as span:
        span.set_attribute('ticket_id', ticket_id)
        span.set_attribute('user_id', principal.user_id)

        ticket = await use_case.execute(ticket_id=ticket_id, principal=principal)
        return TicketResponse.from_entity(ticket)


@router.post('/tickets/{ticket_id}/validate', status_code=status.HTTP_200_OK)
@Logger.io
async def validate_ticket(
    ticket_id: int,
    request: ValidateTicketRequest,
    principal: Principal = Depends(get_current_principal),
    use_case: ValidateTicketUseCase = Depends(ValidateTicketUseCase.depends),
) -> TicketResponse:
    with tracer.start_as_current_span('controller.validate_ticket') as span:
        span.set_attribute('ticket_id', ticket_id)
        span.set_attribute('validator_id', principal.user_id)

        ticket = await use_case.execute(
            ticket_id=ticket_id, qr_data=request.qr_data, principal=principal
        )
        return TicketResponse.from_entity(ticket)


@router.get('/my/tickets', response_model=List[UserTicketResponse])
@Logger.io
async def list_my_tickets(
    principal: Principal = Depends(get_current_principal),
    use_case: ListUserTicketsUseCase = Depends(ListUserTicketsUseCase.depends),
) -> List[UserTicketResponse]:
    views = await use_case.execute(user_id=principal.user_id, principal=principal)
    return [_to_user_ticket(view) for view in views]


@router.get('/users/{user_id}/tickets', response_model=List[UserTicketResponse])
@Logger.io
async def list_user_tickets(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    use_case: ListUserTicketsUseCase = Depends(ListUserTicketsUseCase.depends),
) -> List[UserTicketResponse]:
    views = await use_case.execute(user_id=user_id, principal=principal)
    return [_to_user_ticket(view) for view in views]
