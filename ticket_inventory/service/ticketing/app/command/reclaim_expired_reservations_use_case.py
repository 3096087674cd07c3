"""
Reclaim Expired Reservations Use Case

The one backward edge of the ticket lifecycle: a reservation whose
reserved_until has passed goes back to `available` (reserved -1, available +1).
Candidates are found without locks, then each ticket is re-checked under the
inventory and ticket locks in its own transaction, so a purchase that won the
race is left alone. No outbound message is sent; the ledger records the lapse.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.database.unit_of_work import AbstractUnitOfWork
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.metrics.inventory_metrics import metrics
from ticket_inventory.service.ticketing.domain.entity.transaction_entity import Transaction
from ticket_inventory.service.ticketing.domain.enum.transaction_enum import TransactionType


class ReclaimExpiredReservationsUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        batch_size: Optional[int] = None,
    ) -> None:
        self.uow_factory = uow_factory
        self.batch_size = batch_size or settings.RESERVATION_SWEEP_BATCH_SIZE

    @Logger.io
    async def execute(self, *, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            candidates = await uow.ticket_repo.find_expired_reservations(
                now=now, limit=self.batch_size
            )

        reclaimed = 0
        for candidate in candidates:
            if await self._reclaim(ticket_id=candidate.id, event_id=candidate.event_id, now=now):
                reclaimed += 1

        metrics.record_reclaimed(count=reclaimed)
        if reclaimed:
            Logger.base.info(f'⏰ [SWEEPER] Reclaimed {reclaimed} expired reservations')
        return reclaimed

    async def _reclaim(self, *, ticket_id: int, event_id: str, now: datetime) -> bool:
        async with self.uow_factory() as uow:
            inventory = await uow.inventory_repo.get_by_event_id_for_update(event_id=event_id)
            ticket = await uow.ticket_repo.get_by_id_for_update(ticket_id=ticket_id)
            if inventory is None or ticket is None or not ticket.is_reservation_expired(now=now):
                return False

            released = ticket.expire(now=now)
            inventory = inventory.record_transition(
                from_status=ticket.status, to_status=released.status
            )
            await uow.ticket_repo.update(ticket=released)
            await uow.inventory_repo.update(inventory=inventory)
            await uow.ledger_repo.record(
                transaction=Transaction.record(
                    ticket_id=ticket_id,
                    user_id=ticket.user_id,
                    type=TransactionType.CANCELLATION,
                    amount=ticket.price,
                    currency=ticket.currency,
                    metadata={
                        'reason': 'reservation_expired',
                        'reservedUntil': ticket.reserved_until.isoformat(),
                    },
                )
            )
            await uow.commit()

        metrics.record_transition(transition='expire')
        Logger.base.debug(f'[SWEEPER] Ticket {ticket_id} of event {event_id} back on sale')
        return True
