from datetime import datetime
from typing import AsyncContextManager, Callable, List

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage
from ticket_inventory.service.ticketing.app.interface.i_undelivered_message_repo import (
    IUndeliveredMessageRepo,
)
from ticket_inventory.service.ticketing.driven_adapter.model.undelivered_message_model import (
    UndeliveredMessageModel,
)


class UndeliveredMessageRepoImpl(IUndeliveredMessageRepo):
    """Each call commits on its own, after the transaction that staged the row."""

    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def list_oldest(self, *, limit: int, created_before: datetime) -> List[UndeliveredMessage]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(UndeliveredMessageModel)
                .where(UndeliveredMessageModel.created_at < created_before)
                .order_by(UndeliveredMessageModel.created_at, UndeliveredMessageModel.id)
                .limit(limit)
            )
            return [
                UndeliveredMessage(
                    id=model.id,
                    topic=model.topic,
                    key=model.message_key,
                    payload=model.payload,
                    attempts=model.attempts,
                    last_error=model.last_error,
                    created_at=model.created_at,
                )
                for model in result.scalars().all()
            ]

    @Logger.io
    async def delete(self, *, message_id: int) -> None:
        async with self.session_factory() as session:
            await session.execute(
                delete(UndeliveredMessageModel).where(UndeliveredMessageModel.id == message_id)
            )
            await session.commit()

    @Logger.io
    async def mark_failed(self, *, message_id: int, error: str) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(UndeliveredMessageModel)
                .where(UndeliveredMessageModel.id == message_id)
                .values(attempts=UndeliveredMessageModel.attempts + 1, last_error=error)
            )
            await session.commit()
