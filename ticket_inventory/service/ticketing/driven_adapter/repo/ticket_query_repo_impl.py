from typing import AsyncContextManager, Callable, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.interface.i_ticket_query_repo import ITicketQueryRepo
from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.driven_adapter.model.inventory_model import InventoryModel
from ticket_inventory.service.ticketing.driven_adapter.model.ticket_model import TicketModel
from ticket_inventory.service.ticketing.driven_adapter.repo.orm_mapper import (
    inventory_to_entity,
    ticket_to_entity,
)


class TicketQueryRepoImpl(ITicketQueryRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def list_by_user(
        self, *, user_id: str, statuses: Sequence[TicketStatus]
    ) -> List[Ticket]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TicketModel)
                .where(
                    TicketModel.user_id == user_id,
                    TicketModel.status.in_([status.value for status in statuses]),
                )
                .order_by(
                    TicketModel.purchase_date.desc().nulls_last(),
                    TicketModel.created_at.desc(),
                    TicketModel.id.desc(),
                )
            )
            return [ticket_to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def list_by_event(
        self,
        *,
        event_id: str,
        status: Optional[TicketStatus],
        offset: int,
        limit: int,
    ) -> List[Ticket]:
        stmt = select(TicketModel).where(TicketModel.event_id == event_id)
        if status is not None:
            stmt = stmt.where(TicketModel.status == status.value)
        stmt = (
            stmt.order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
            .offset(offset)
            .limit(limit)
        )

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [ticket_to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def count_by_event(self, *, event_id: str, status: Optional[TicketStatus]) -> int:
        stmt = select(func.count(TicketModel.id)).where(TicketModel.event_id == event_id)
        if status is not None:
            stmt = stmt.where(TicketModel.status == status.value)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one()

    @Logger.io
    async def get_inventory_by_event_id(self, *, event_id: str) -> Optional[Inventory]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(InventoryModel).where(InventoryModel.event_id == event_id)
            )
            model = result.scalar_one_or_none()
            return inventory_to_entity(model) if model else None
