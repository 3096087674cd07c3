"""
Resize Inventory Use Case

Reacts to `event_updated` (when the event is not being cancelled).

- Growing appends available tickets after the highest existing seat.
- Shrinking never drops below sold + reserved + cancelled; the highest
  numbered available tickets are withdrawn from sale (rows are kept).
- A new price/currency applies to available tickets only.
- A closed inventory is left alone.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ticket_inventory.platform.config.di import Container
from ticket_inventory.platform.database.unit_of_work import AbstractUnitOfWork
from ticket_inventory.platform.exception.exceptions import InvariantViolationError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus


class ResizeInventoryUseCase:
    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(
        self,
        *,
        event_id: str,
        new_total: Optional[int] = None,
        new_price: Optional[Decimal] = None,
        new_currency: Optional[str] = None,
    ) -> Optional[Inventory]:
        now = datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            inventory = await uow.inventory_repo.get_by_event_id_for_update(event_id=event_id)
            if inventory is None:
                Logger.base.warning(f'⚠️ [INVENTORY] No inventory for event {event_id}, skip resize')
                return None
            if inventory.is_closed:
                Logger.base.info(f'[INVENTORY] Inventory for event {event_id} is closed, skip resize')
                return inventory

            target_total = inventory.total_tickets if new_total is None else new_total
            diff = target_total - inventory.total_tickets

            if diff < 0:
                inventory = await self._withdraw(uow, inventory=inventory, count=-diff, now=now)

            repriced = inventory.reprice(base_price=new_price, currency=new_currency)
            if (repriced.base_price, repriced.currency) != (inventory.base_price, inventory.currency):
                changed = await uow.ticket_repo.reprice_available(
                    inventory_id=inventory.id,
                    price=repriced.base_price,
                    currency=repriced.currency,
                    updated_at=now,
                )
                Logger.base.info(
                    f'💲 [INVENTORY] Repriced {changed} available tickets of event {event_id} '
                    f'to {repriced.base_price} {repriced.currency}'
                )
            inventory = repriced

            if diff > 0:
                start_index = await uow.ticket_repo.max_seat_index(inventory_id=inventory.id) + 1
                tickets = Ticket.generate(
                    event_id=event_id,
                    inventory_id=inventory.id,
                    price=inventory.base_price,
                    currency=inventory.currency,
                    start_index=start_index,
                    count=diff,
                )
                await uow.ticket_repo.create_many(tickets=tickets)
                inventory = inventory.grow(count=diff)

            inventory.check_conservation()
            inventory = await uow.inventory_repo.update(inventory=inventory)
            await uow.commit()

        Logger.base.info(
            f'📐 [INVENTORY] Event {event_id} resized by {diff:+d} to {inventory.total_tickets} tickets'
        )
        return inventory

    @staticmethod
    async def _withdraw(
        uow: AbstractUnitOfWork, *, inventory: Inventory, count: int, now: datetime
    ) -> Inventory:
        inventory.ensure_can_shrink_to(inventory.total_tickets - count)

        tickets = await uow.ticket_repo.list_by_status_for_update(
            inventory_id=inventory.id,
            statuses=[TicketStatus.AVAILABLE],
            limit=count,
            highest_seat_first=True,
        )
        if len(tickets) != count:
            raise InvariantViolationError(
                f'Inventory {inventory.event_id} counts {inventory.available_tickets} available '
                f'tickets but only {len(tickets)} could be withdrawn'
            )

        # Raises WrongStatusError before anything is written if a row is no longer available
        withdrawn = [ticket.withdraw(now=now) for ticket in tickets]
        for ticket in withdrawn:
            inventory = inventory.record_transition(
                from_status=TicketStatus.AVAILABLE, to_status=ticket.status
            )
        updated = await uow.ticket_repo.update_status_many(
            ticket_ids=[ticket.id for ticket in withdrawn],
            status=TicketStatus.WITHDRAWN,
            updated_at=now,
        )
        if updated != count:
            raise InvariantViolationError(
                f'Inventory {inventory.event_id} withdrew {updated} of {count} tickets'
            )
        return inventory
