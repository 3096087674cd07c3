from datetime import datetime, timezone
from typing import Callable, List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ticket_inventory.platform.config.di import Container
from ticket_inventory.platform.database.unit_of_work import AbstractUnitOfWork
from ticket_inventory.platform.exception.exceptions import CustomBaseError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.metrics.inventory_metrics import metrics
from ticket_inventory.service.ticketing.app.command.outbox import stage_outbound
from ticket_inventory.service.ticketing.app.command.ticket_locking import lock_ticket_with_inventory
from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage
from ticket_inventory.service.ticketing.app.interface.i_ticket_event_publisher import (
    ITicketEventPublisher,
)
from ticket_inventory.service.ticketing.domain.domain_event.ticket_domain_event import (
    TicketCancelledEvent,
    TicketNotificationEvent,
)
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.entity.transaction_entity import Transaction
from ticket_inventory.service.ticketing.domain.enum.notification_type import NotificationType
from ticket_inventory.service.ticketing.domain.enum.transaction_enum import TransactionType
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal


class CancelTicketUseCase:
    """{reserved, purchased} -> cancelled, by the holder or an administrator."""

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        event_publisher: ITicketEventPublisher,
    ) -> None:
        self.uow_factory = uow_factory
        self.event_publisher = event_publisher

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
        event_publisher: ITicketEventPublisher = Depends(
            Provide[Container.ticket_event_publisher]
        ),
    ) -> Self:
        return cls(uow_factory=uow_factory, event_publisher=event_publisher)

    @Logger.io
    async def execute(self, *, ticket_id: int, principal: Principal) -> Ticket:
        try:
            cancelled, outbound = await self._cancel(ticket_id=ticket_id, principal=principal)
        except CustomBaseError as e:
            metrics.record_transition(transition='cancel', result=e.code)
            raise

        metrics.record_transition(transition='cancel')
        await self.event_publisher.deliver(messages=outbound)
        return cancelled

    async def _cancel(
        self, *, ticket_id: int, principal: Principal
    ) -> tuple[Ticket, List[UndeliveredMessage]]:
        now = datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            inventory, ticket = await lock_ticket_with_inventory(uow, ticket_id=ticket_id)
            cancelled = ticket.cancel(
                actor_id=principal.user_id, is_admin=principal.is_admin, now=now
            )
            inventory = inventory.record_transition(
                from_status=ticket.status, to_status=cancelled.status
            )
            cancelled = await uow.ticket_repo.update(ticket=cancelled)
            await uow.inventory_repo.update(inventory=inventory)
            await uow.ledger_repo.record(
                transaction=Transaction.record(
                    ticket_id=ticket_id,
                    user_id=ticket.user_id,
                    type=TransactionType.CANCELLATION,
                    amount=ticket.price,
                    currency=ticket.currency,
                    metadata={'reason': 'user_cancelled', 'cancelledBy': principal.user_id},
                )
            )
            outbound = await stage_outbound(
                uow,
                TicketCancelledEvent.from_ticket(ticket=cancelled),
                TicketNotificationEvent.for_ticket(
                    type=NotificationType.TICKET_CANCELLED, ticket=cancelled
                ),
            )
            await uow.commit()

        Logger.base.info(
            f'🚫 [CANCEL] Ticket {ticket_id} ({ticket.status} -> cancelled) '
            f'cancelled by user {principal.user_id}'
        )
        return cancelled, outbound
