from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ticket_inventory.platform.config.di import Container
from ticket_inventory.platform.database.unit_of_work import AbstractUnitOfWork
from ticket_inventory.platform.exception.exceptions import CustomBaseError, ForbiddenError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.metrics.inventory_metrics import metrics
from ticket_inventory.service.ticketing.app.command.ticket_locking import lock_ticket_with_inventory
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.entity.transaction_entity import Transaction
from ticket_inventory.service.ticketing.domain.enum.transaction_enum import TransactionType
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal


class ValidateTicketUseCase:
    """
    purchased -> used at the gate, for administrators and organizers.

    Counters do not move (a used ticket stays in `sold`) and nothing is
    published; the ledger records who validated and when.
    """

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
    async def execute(self, *, ticket_id: int, qr_data: str, principal: Principal) -> Ticket:
        try:
            return await self._validate(ticket_id=ticket_id, qr_data=qr_data, principal=principal)
        except CustomBaseError as e:
            metrics.record_transition(transition='redeem', result=e.code)
            raise

    async def _validate(self, *, ticket_id: int, qr_data: str, principal: Principal) -> Ticket:
        if not principal.is_staff:
            raise ForbiddenError('Only administrators and organizers can validate tickets')

        now = datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            _, ticket = await lock_ticket_with_inventory(uow, ticket_id=ticket_id)
            used = ticket.redeem(presented_proof=qr_data, now=now)
            used = await uow.ticket_repo.update(ticket=used)
            await uow.ledger_repo.record(
                transaction=Transaction.record(
                    ticket_id=ticket_id,
                    user_id=principal.user_id,
                    type=TransactionType.VALIDATION,
                    amount=Decimal('0'),
                    currency=ticket.currency,
                    metadata={
                        'validatedBy': principal.user_id,
                        'validationTime': now.isoformat(),
                    },
                )
            )
            await uow.commit()

        metrics.record_transition(transition='redeem')
        Logger.base.info(f'✅ [VALIDATE] Ticket {ticket_id} validated by user {principal.user_id}')
        return used
