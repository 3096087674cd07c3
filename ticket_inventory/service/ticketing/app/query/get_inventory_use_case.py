from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ticket_inventory.platform.config.di import Container
from ticket_inventory.platform.exception.exceptions import ForbiddenError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.interface.i_ticket_query_repo import ITicketQueryRepo
from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.ticketing_error import InventoryNotFoundError
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal


class GetInventoryUseCase:
    def __init__(self, *, ticket_query_repo: ITicketQueryRepo) -> None:
        self.ticket_query_repo = ticket_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        ticket_query_repo: ITicketQueryRepo = Depends(Provide[Container.ticket_query_repo]),
    ) -> Self:
        return cls(ticket_query_repo=ticket_query_repo)

    @Logger.io
    async def execute(self, *, event_id: str, principal: Principal) -> Inventory:
        if not principal.is_staff:
            raise ForbiddenError('Only administrators and organizers can view inventory')

        inventory = await self.ticket_query_repo.get_inventory_by_event_id(event_id=event_id)
        if inventory is None:
            raise InventoryNotFoundError(f'Ticket inventory not found for event {event_id}')
        return inventory
