"""
Close Inventory Use Case

Reacts to `event_cancelled` (or `event_updated` with status cancelled).

Phase 1, one transaction: close the inventory and cancel every available
and reserved ticket.
Phase 2, one transaction per ticket: cancel the next purchased/used ticket,
append its refundable cancellation to the ledger and stage the holder's
notification in the outbox, commit, then publish it. A crash or redelivery
resumes from whatever purchased/used tickets remain, so repeated handling
converges on `cancelled == total`, and a notification committed before a
crash is still in the outbox for the redelivery sweep.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ticket_inventory.platform.config.di import Container
from ticket_inventory.platform.database.unit_of_work import AbstractUnitOfWork
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.metrics.inventory_metrics import metrics
from ticket_inventory.service.ticketing.app.command.outbox import stage_outbound
from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage
from ticket_inventory.service.ticketing.app.interface.i_ticket_event_publisher import (
    ITicketEventPublisher,
)
from ticket_inventory.service.ticketing.domain.domain_event.ticket_domain_event import (
    TicketCancelledEvent,
    TicketNotificationEvent,
)
from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.entity.transaction_entity import Transaction
from ticket_inventory.service.ticketing.domain.enum.notification_type import NotificationType
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.enum.transaction_enum import TransactionType


EVENT_CANCELLED_REASON = 'event_cancelled'


class CloseInventoryUseCase:
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
    async def execute(self, *, event_id: str) -> Optional[Inventory]:
        inventory = await self._close_open_tickets(event_id=event_id)
        if inventory is None:
            return None

        refunded = 0
        while True:
            result = await self._cancel_next_purchased(event_id=event_id)
            if result is None:
                break
            inventory, outbound = result
            refunded += 1
            await self.event_publisher.deliver(messages=outbound)

        Logger.base.info(
            f'🛑 [INVENTORY] Event {event_id} closed: {refunded} purchased tickets cancelled, '
            f'cancelled={inventory.cancelled_tickets}/{inventory.total_tickets}'
        )
        return inventory

    async def _close_open_tickets(self, *, event_id: str) -> Optional[Inventory]:
        now = datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            inventory = await uow.inventory_repo.get_by_event_id_for_update(event_id=event_id)
            if inventory is None:
                Logger.base.warning(f'⚠️ [INVENTORY] No inventory for event {event_id}, skip close')
                return None
            if inventory.is_closed:
                Logger.base.info(f'[INVENTORY] Event {event_id} already closed, resuming refunds')
                return inventory

            open_tickets = await uow.ticket_repo.list_by_status_for_update(
                inventory_id=inventory.id,
                statuses=[TicketStatus.AVAILABLE, TicketStatus.RESERVED],
            )
            ledger_entries = [
                Transaction.record(
                    ticket_id=ticket.id,
                    user_id=ticket.user_id,
                    type=TransactionType.CANCELLATION,
                    amount=ticket.price,
                    currency=ticket.currency,
                    metadata={'reason': EVENT_CANCELLED_REASON, 'eventId': event_id},
                )
                for ticket in open_tickets
                if ticket.status == TicketStatus.RESERVED
            ]
            for ticket in open_tickets:
                ticket.close_for_event(now=now)

            await uow.ticket_repo.update_status_many(
                ticket_ids=[ticket.id for ticket in open_tickets],
                status=TicketStatus.CANCELLED,
                updated_at=now,
            )
            inventory = inventory.close()
            inventory.check_conservation()
            inventory = await uow.inventory_repo.update(inventory=inventory)
            await uow.ledger_repo.record_many(transactions=ledger_entries)
            await uow.commit()

        metrics.record_transition(transition='close')
        Logger.base.info(
            f'🛑 [INVENTORY] Event {event_id} closed, {len(open_tickets)} open tickets cancelled'
        )
        return inventory

    async def _cancel_next_purchased(
        self, *, event_id: str
    ) -> Optional[tuple[Inventory, List[UndeliveredMessage]]]:
        now = datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            inventory = await uow.inventory_repo.get_by_event_id_for_update(event_id=event_id)
            candidates = await uow.ticket_repo.list_by_status_for_update(
                inventory_id=inventory.id,
                statuses=[TicketStatus.PURCHASED, TicketStatus.USED],
                limit=1,
            )
            if not candidates:
                return None

            ticket = candidates[0]
            cancelled = ticket.close_for_event(now=now)
            inventory = inventory.record_transition(
                from_status=ticket.status, to_status=cancelled.status
            )
            await uow.ticket_repo.update(ticket=cancelled)
            await uow.inventory_repo.update(inventory=inventory)
            await uow.ledger_repo.record(
                transaction=Transaction.record(
                    ticket_id=ticket.id,
                    user_id=ticket.user_id,
                    type=TransactionType.CANCELLATION,
                    amount=ticket.price,
                    currency=ticket.currency,
                    metadata={'reason': EVENT_CANCELLED_REASON, 'eventId': event_id},
                )
            )
            outbound = await stage_outbound(
                uow,
                TicketCancelledEvent.from_ticket(ticket=cancelled),
                TicketNotificationEvent.for_ticket(
                    type=NotificationType.EVENT_CANCELLED, ticket=cancelled
                ),
            )
            await uow.commit()

        return inventory, outbound
