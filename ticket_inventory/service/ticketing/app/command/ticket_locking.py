from ticket_inventory.platform.database.unit_of_work import AbstractUnitOfWork
from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.ticketing_error import (
    InventoryNotFoundError,
    TicketNotFoundError,
)


async def lock_ticket_with_inventory(
    uow: AbstractUnitOfWork, *, ticket_id: int
) -> tuple[Inventory, Ticket]:
    """
    Lock the ticket's inventory row, then the ticket row.

    The first unlocked read only finds the owning event; the ticket is read
    again under lock because it may have changed before the lock was taken.
    """
    ticket = await uow.ticket_repo.get_by_id(ticket_id=ticket_id)
    if ticket is None:
        raise TicketNotFoundError(f'Ticket {ticket_id} not found')

    inventory = await uow.inventory_repo.get_by_event_id_for_update(event_id=ticket.event_id)
    if inventory is None:
        raise InventoryNotFoundError(f'Ticket inventory not found for event {ticket.event_id}')

    locked = await uow.ticket_repo.get_by_id_for_update(ticket_id=ticket_id)
    if locked is None:
        raise TicketNotFoundError(f'Ticket {ticket_id} not found')
    return inventory, locked
