from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.interface.i_ticket_ledger_repo import (
    ITicketLedgerRepo,
)
from ticket_inventory.service.ticketing.domain.entity.transaction_entity import Transaction
from ticket_inventory.service.ticketing.driven_adapter.model.ticket_transaction_model import (
    TicketTransactionModel,
)
from ticket_inventory.service.ticketing.driven_adapter.repo.orm_mapper import (
    transaction_to_entity,
    transaction_to_model,
)


class TicketLedgerRepoImpl(ITicketLedgerRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def record(self, *, transaction: Transaction) -> Transaction:
        self.session.add(transaction_to_model(transaction))
        return transaction

    @Logger.io
    async def record_many(self, *, transactions: List[Transaction]) -> int:
        self.session.add_all([transaction_to_model(transaction) for transaction in transactions])
        return len(transactions)

    @Logger.io
    async def list_by_ticket_id(self, *, ticket_id: int) -> List[Transaction]:
        result = await self.session.execute(
            select(TicketTransactionModel)
            .where(TicketTransactionModel.ticket_id == ticket_id)
            .order_by(TicketTransactionModel.created_at, TicketTransactionModel.id)
        )
        return [transaction_to_entity(model) for model in result.scalars().all()]
