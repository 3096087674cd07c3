"""
Create Inventory Use Case

Reacts to `event_created`. Inventory and the full set of seat tickets are
written in one transaction. Keyed on event_id: a redelivered notification
finds the existing inventory and returns it untouched.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ticket_inventory.platform.config.di import Container
from ticket_inventory.platform.database.unit_of_work import AbstractUnitOfWork
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.ticketing_error import InventoryAlreadyExistsError


class CreateInventoryUseCase:
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
        total_tickets: int,
        base_price: Decimal,
        currency: str,
        sale_start: datetime,
        sale_end: datetime,
    ) -> Inventory:
        try:
            return await self._create(
                event_id=event_id,
                total_tickets=total_tickets,
                base_price=base_price,
                currency=currency,
                sale_start=sale_start,
                sale_end=sale_end,
            )
        except InventoryAlreadyExistsError:
            # Lost a race with a concurrent delivery of the same notification
            async with self.uow_factory() as uow:
                existing = await uow.inventory_repo.get_by_event_id(event_id=event_id)
            Logger.base.info(f'♻️ [INVENTORY] Inventory for event {event_id} created concurrently')
            return existing

    async def _create(
        self,
        *,
        event_id: str,
        total_tickets: int,
        base_price: Decimal,
        currency: str,
        sale_start: datetime,
        sale_end: datetime,
    ) -> Inventory:
        async with self.uow_factory() as uow:
            existing = await uow.inventory_repo.get_by_event_id(event_id=event_id)
            if existing is not None:
                Logger.base.info(
                    f'♻️ [INVENTORY] Inventory for event {event_id} already exists, skipping'
                )
                return existing

            inventory = Inventory.create(
                event_id=event_id,
                total_tickets=total_tickets,
                base_price=base_price,
                currency=currency,
                sale_start=sale_start,
                sale_end=sale_end,
            )
            inventory = await uow.inventory_repo.create(inventory=inventory)

            tickets = Ticket.generate(
                event_id=event_id,
                inventory_id=inventory.id,
                price=base_price,
                currency=currency,
                start_index=0,
                count=total_tickets,
            )
            await uow.ticket_repo.create_many(tickets=tickets)
            await uow.commit()

        Logger.base.info(
            f'🎫 [INVENTORY] Created inventory for event {event_id} with {total_tickets} tickets'
        )
        return inventory
