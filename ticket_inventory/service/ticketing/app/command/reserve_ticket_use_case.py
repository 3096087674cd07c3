"""
Reserve Ticket Use Case

Flow:
1. Ask the event catalog whether the event is published (remote call, no lock held)
2. Lock the inventory row, check it is on sale and not sold out
3. Lock the lowest-numbered available ticket (SKIP LOCKED) and flip it to reserved
4. Move one unit available -> reserved, append the ledger entry, stage
   ticket_reserved in the outbox, commit
5. Publish the staged message
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.config.di import Container
from ticket_inventory.platform.database.unit_of_work import AbstractUnitOfWork
from ticket_inventory.platform.exception.exceptions import CustomBaseError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.metrics.inventory_metrics import metrics
from ticket_inventory.service.ticketing.app.command.outbox import stage_outbound
from ticket_inventory.service.ticketing.app.dto.reservation_result import ReservationResult
from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage
from ticket_inventory.service.ticketing.app.interface.i_event_catalog_client import (
    IEventCatalogClient,
)
from ticket_inventory.service.ticketing.app.interface.i_ticket_event_publisher import (
    ITicketEventPublisher,
)
from ticket_inventory.service.ticketing.domain.domain_event.ticket_domain_event import (
    TicketReservedEvent,
)
from ticket_inventory.service.ticketing.domain.entity.transaction_entity import Transaction
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.enum.transaction_enum import TransactionType
from ticket_inventory.service.ticketing.domain.ticketing_error import (
    EventUnavailableError,
    InventoryNotFoundError,
    SoldOutError,
)


class ReserveTicketUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        event_catalog_client: IEventCatalogClient,
        event_publisher: ITicketEventPublisher,
        reservation_ttl: timedelta | None = None,
    ) -> None:
        self.uow_factory = uow_factory
        self.event_catalog_client = event_catalog_client
        self.event_publisher = event_publisher
        self.reservation_ttl = reservation_ttl or timedelta(
            minutes=settings.RESERVATION_TTL_MINUTES
        )

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
        event_catalog_client: IEventCatalogClient = Depends(
            Provide[Container.event_catalog_client]
        ),
        event_publisher: ITicketEventPublisher = Depends(
            Provide[Container.ticket_event_publisher]
        ),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            event_catalog_client=event_catalog_client,
            event_publisher=event_publisher,
        )

    @property
    def expires_in(self) -> str:
        return f'{int(self.reservation_ttl.total_seconds() // 60)} minutes'

    @Logger.io
    async def execute(self, *, event_id: str, user_id: str) -> ReservationResult:
        try:
            result, outbound = await self._reserve(event_id=event_id, user_id=user_id)
        except CustomBaseError as e:
            metrics.record_transition(transition='reserve', result=e.code)
            raise

        metrics.record_transition(transition='reserve')
        await self.event_publisher.deliver(messages=outbound)
        return result

    async def _reserve(
        self, *, event_id: str, user_id: str
    ) -> tuple[ReservationResult, List[UndeliveredMessage]]:
        event = await self.event_catalog_client.get_event(event_id=event_id)
        if not event.is_published:
            raise EventUnavailableError(f'Event {event_id} is not available for ticket reservation')

        now = datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            inventory = await uow.inventory_repo.get_by_event_id_for_update(event_id=event_id)
            if inventory is None:
                raise InventoryNotFoundError(f'Ticket inventory not found for event {event_id}')
            inventory.ensure_on_sale(now=now)

            ticket = await uow.ticket_repo.pick_available_for_update(inventory_id=inventory.id)
            if ticket is None:
                raise SoldOutError(f'No tickets available for event {event_id}')

            reserved = ticket.reserve(user_id=user_id, now=now, ttl=self.reservation_ttl)
            inventory = inventory.record_transition(
                from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.RESERVED
            )
            reserved = await uow.ticket_repo.update(ticket=reserved)
            await uow.inventory_repo.update(inventory=inventory)
            await uow.ledger_repo.record(
                transaction=Transaction.record(
                    ticket_id=reserved.id,
                    user_id=user_id,
                    type=TransactionType.RESERVATION,
                    amount=reserved.price,
                    currency=reserved.currency,
                )
            )
            outbound = await stage_outbound(uow, TicketReservedEvent.from_ticket(ticket=reserved))
            await uow.commit()

        Logger.base.info(
            f'🎟️ [RESERVE] Ticket {reserved.id} ({reserved.seat.label}) of event {event_id} '
            f'reserved by user {user_id}, available={inventory.available_tickets}'
        )
        result = ReservationResult(
            ticket=reserved, reserved_until=reserved.reserved_until, expires_in=self.expires_in
        )
        return result, outbound
