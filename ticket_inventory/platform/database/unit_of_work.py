"""
Unit of Work Pattern - one database transaction shared by the command repositories

Architecture:
- UoW owns the session lifecycle and the commit/rollback decision
- Repositories receive the shared session from the UoW, the outbox included,
  so an outbound message commits together with the change it announces
- Use cases open one UoW per atomic step; leaving the block without commit rolls back
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ticket_inventory.platform.database.orm_db_setting import Database


if TYPE_CHECKING:
    from ticket_inventory.service.ticketing.app.interface.i_inventory_command_repo import (
        IInventoryCommandRepo,
    )
    from ticket_inventory.service.ticketing.app.interface.i_ticket_command_repo import (
        ITicketCommandRepo,
    )
    from ticket_inventory.service.ticketing.app.interface.i_ticket_ledger_repo import (
        ITicketLedgerRepo,
    )
    from ticket_inventory.service.ticketing.app.interface.i_ticket_outbox_repo import (
        ITicketOutboxRepo,
    )


class AbstractUnitOfWork(abc.ABC):
    """
    Usage:
        async with uow_factory() as uow:
            inventory = await uow.inventory_repo.get_by_event_id_for_update(event_id=...)
            ...
            await uow.commit()
    """

    inventory_repo: IInventoryCommandRepo
    ticket_repo: ITicketCommandRepo
    ledger_repo: ITicketLedgerRepo
    outbox_repo: ITicketOutboxRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(self, *, database: Database) -> None:
        self._database = database
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> AbstractUnitOfWork:
        from ticket_inventory.service.ticketing.driven_adapter.repo.inventory_command_repo_impl import (
            InventoryCommandRepoImpl,
        )
        from ticket_inventory.service.ticketing.driven_adapter.repo.ticket_command_repo_impl import (
            TicketCommandRepoImpl,
        )
        from ticket_inventory.service.ticketing.driven_adapter.repo.ticket_ledger_repo_impl import (
            TicketLedgerRepoImpl,
        )
        from ticket_inventory.service.ticketing.driven_adapter.repo.ticket_outbox_repo_impl import (
            TicketOutboxRepoImpl,
        )

        self.session = self._database.new_session()
        self.inventory_repo = InventoryCommandRepoImpl(session=self.session)
        self.ticket_repo = TicketCommandRepoImpl(session=self.session)
        self.ledger_repo = TicketLedgerRepoImpl(session=self.session)
        self.outbox_repo = TicketOutboxRepoImpl(session=self.session)
        return await super().__aenter__()

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self.session is not None:
                await self.session.close()
                self.session = None

    async def _commit(self) -> None:
        assert self.session is not None, 'commit() outside of `async with`'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
