from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.interface.i_inventory_command_repo import (
    IInventoryCommandRepo,
)
from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.ticketing_error import InventoryAlreadyExistsError
from ticket_inventory.service.ticketing.driven_adapter.model.inventory_model import InventoryModel
from ticket_inventory.service.ticketing.driven_adapter.repo.orm_mapper import (
    inventory_to_entity,
    inventory_values,
)


class InventoryCommandRepoImpl(IInventoryCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def get_by_event_id(self, *, event_id: str) -> Optional[Inventory]:
        result = await self.session.execute(
            select(InventoryModel).where(InventoryModel.event_id == event_id)
        )
        model = result.scalar_one_or_none()
        return inventory_to_entity(model) if model else None

    @Logger.io
    async def get_by_event_id_for_update(self, *, event_id: str) -> Optional[Inventory]:
        result = await self.session.execute(
            select(InventoryModel)
            .where(InventoryModel.event_id == event_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return inventory_to_entity(model) if model else None

    @Logger.io
    async def create(self, *, inventory: Inventory) -> Inventory:
        model = InventoryModel(**inventory_values(inventory))
        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise InventoryAlreadyExistsError(
                f'Ticket inventory already exists for event {inventory.event_id}'
            ) from e
        await self.session.refresh(model)
        return inventory_to_entity(model)

    @Logger.io
    async def update(self, *, inventory: Inventory) -> Inventory:
        await self.session.execute(
            update(InventoryModel)
            .where(InventoryModel.id == inventory.id)
            .values(**inventory_values(inventory), updated_at=inventory.updated_at)
        )
        return inventory
