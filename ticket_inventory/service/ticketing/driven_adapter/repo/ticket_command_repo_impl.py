from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.interface.i_ticket_command_repo import (
    ITicketCommandRepo,
)
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.driven_adapter.model.ticket_model import TicketModel
from ticket_inventory.service.ticketing.driven_adapter.repo.orm_mapper import (
    ticket_to_entity,
    ticket_values,
)


class TicketCommandRepoImpl(ITicketCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def get_by_id(self, *, ticket_id: int) -> Optional[Ticket]:
        model = await self.session.get(TicketModel, ticket_id)
        return ticket_to_entity(model) if model else None

    @Logger.io
    async def get_by_id_for_update(self, *, ticket_id: int) -> Optional[Ticket]:
        result = await self.session.execute(
            select(TicketModel)
            .where(TicketModel.id == ticket_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return ticket_to_entity(model) if model else None

    @Logger.io
    async def create_many(self, *, tickets: List[Ticket]) -> int:
        if not tickets:
            return 0
        await self.session.execute(
            insert(TicketModel),
            [
                {
                    **ticket_values(ticket),
                    'created_at': ticket.created_at,
                    'updated_at': ticket.updated_at,
                }
                for ticket in tickets
            ],
        )
        Logger.base.info(f'[TICKET] Inserted {len(tickets)} tickets')
        return len(tickets)

    @Logger.io
    async def update(self, *, ticket: Ticket) -> Ticket:
        await self.session.execute(
            update(TicketModel)
            .where(TicketModel.id == ticket.id)
            .values(**ticket_values(ticket), updated_at=ticket.updated_at)
        )
        return ticket

    @Logger.io
    async def pick_available_for_update(self, *, inventory_id: int) -> Optional[Ticket]:
        result = await self.session.execute(
            select(TicketModel)
            .where(
                TicketModel.inventory_id == inventory_id,
                TicketModel.status == TicketStatus.AVAILABLE.value,
            )
            .order_by(TicketModel.seat_index)
            .limit(1)
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return ticket_to_entity(model) if model else None

    @Logger.io
    async def list_by_status_for_update(
        self,
        *,
        inventory_id: int,
        statuses: Sequence[TicketStatus],
        limit: Optional[int] = None,
        highest_seat_first: bool = False,
    ) -> List[Ticket]:
        seat_order = TicketModel.seat_index.desc() if highest_seat_first else TicketModel.seat_index
        stmt = (
            select(TicketModel)
            .where(
                TicketModel.inventory_id == inventory_id,
                TicketModel.status.in_([status.value for status in statuses]),
            )
            .order_by(seat_order)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [ticket_to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def update_status_many(
        self, *, ticket_ids: List[int], status: TicketStatus, updated_at: datetime
    ) -> int:
        if not ticket_ids:
            return 0
        result = await self.session.execute(
            update(TicketModel)
            .where(TicketModel.id.in_(ticket_ids))
            .values(status=status.value, reserved_until=None, updated_at=updated_at)
        )
        return result.rowcount

    @Logger.io
    async def reprice_available(
        self, *, inventory_id: int, price: Decimal, currency: str, updated_at: datetime
    ) -> int:
        result = await self.session.execute(
            update(TicketModel)
            .where(
                TicketModel.inventory_id == inventory_id,
                TicketModel.status == TicketStatus.AVAILABLE.value,
            )
            .values(price=price, currency=currency, updated_at=updated_at)
        )
        return result.rowcount

    @Logger.io
    async def max_seat_index(self, *, inventory_id: int) -> int:
        result = await self.session.execute(
            select(func.max(TicketModel.seat_index)).where(
                TicketModel.inventory_id == inventory_id
            )
        )
        max_index = result.scalar_one_or_none()
        return -1 if max_index is None else max_index

    @Logger.io
    async def find_expired_reservations(self, *, now: datetime, limit: int) -> List[Ticket]:
        result = await self.session.execute(
            select(TicketModel)
            .where(
                TicketModel.status == TicketStatus.RESERVED.value,
                TicketModel.reserved_until <= now,
            )
            .order_by(TicketModel.reserved_until)
            .limit(limit)
        )
        return [ticket_to_entity(model) for model in result.scalars().all()]
