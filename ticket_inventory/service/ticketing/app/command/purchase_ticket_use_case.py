from datetime import datetime, timezone
from typing import Callable, List, Optional, Self

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
    TicketNotificationEvent,
    TicketPurchasedEvent,
)
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.entity.transaction_entity import Transaction
from ticket_inventory.service.ticketing.domain.enum.notification_type import NotificationType
from ticket_inventory.service.ticketing.domain.enum.transaction_enum import TransactionType


class PurchaseTicketUseCase:
    """
    reserved -> purchased for the reservation holder.

    Payment capture happens elsewhere; the method and reference handed in are
    only recorded on the ledger. Issues the redemption proof.
    """

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
    async def execute(
        self,
        *,
        ticket_id: int,
        user_id: str,
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
    ) -> Ticket:
        try:
            purchased, outbound = await self._purchase(
                ticket_id=ticket_id,
                user_id=user_id,
                payment_method=payment_method,
                payment_reference=payment_reference,
            )
        except CustomBaseError as e:
            metrics.record_transition(transition='purchase', result=e.code)
            raise

        metrics.record_transition(transition='purchase')
        await self.event_publisher.deliver(messages=outbound)
        return purchased

    async def _purchase(
        self,
        *,
        ticket_id: int,
        user_id: str,
        payment_method: Optional[str],
        payment_reference: Optional[str],
    ) -> tuple[Ticket, List[UndeliveredMessage]]:
        now = datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            inventory, ticket = await lock_ticket_with_inventory(uow, ticket_id=ticket_id)
            purchased = ticket.purchase(user_id=user_id, now=now)
            inventory = inventory.record_transition(
                from_status=ticket.status, to_status=purchased.status
            )
            purchased = await uow.ticket_repo.update(ticket=purchased)
            await uow.inventory_repo.update(inventory=inventory)
            await uow.ledger_repo.record(
                transaction=Transaction.record(
                    ticket_id=ticket_id,
                    user_id=user_id,
                    type=TransactionType.PURCHASE,
                    amount=purchased.price,
                    currency=purchased.currency,
                    payment_method=payment_method,
                    payment_reference=payment_reference,
                )
            )
            outbound = await stage_outbound(
                uow,
                TicketPurchasedEvent.from_ticket(ticket=purchased),
                TicketNotificationEvent.for_ticket(
                    type=NotificationType.TICKET_PURCHASED, ticket=purchased
                ),
            )
            await uow.commit()

        Logger.base.info(f'💳 [PURCHASE] Ticket {ticket_id} purchased by user {user_id}')
        return purchased, outbound
