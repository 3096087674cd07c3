from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional
from unittest.mock import AsyncMock

from ticket_inventory.platform.database.unit_of_work import AbstractUnitOfWork
from ticket_inventory.service.ticketing.app.command.create_inventory_use_case import (
    CreateInventoryUseCase,
)
from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage
from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.enum.user_role import UserRole
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal


EVENT_ID = 'evt-100'
OTHER_EVENT_ID = 'evt-200'
BASE_PRICE = Decimal('50.00')
CURRENCY = 'EUR'

BUYER = Principal(user_id='user-1', role=UserRole.USER)
ANOTHER_BUYER = Principal(user_id='user-2', role=UserRole.USER)
ORGANIZER = Principal(user_id='organizer-1', role=UserRole.ORGANIZER)
ADMIN = Principal(user_id='admin-1', role=UserRole.ADMIN)


async def seed_inventory(
    uow_factory: Callable[[], AbstractUnitOfWork],
    *,
    event_id: str = EVENT_ID,
    total_tickets: int = 5,
    base_price: Decimal = BASE_PRICE,
    currency: str = CURRENCY,
    sale_start: Optional[datetime] = None,
    sale_end: Optional[datetime] = None,
) -> Inventory:
    """Create an inventory that is on sale right now unless told otherwise."""
    now = datetime.now(timezone.utc)
    return await CreateInventoryUseCase(uow_factory=uow_factory).execute(
        event_id=event_id,
        total_tickets=total_tickets,
        base_price=base_price,
        currency=currency,
        sale_start=sale_start or now - timedelta(hours=1),
        sale_end=sale_end or now + timedelta(days=30),
    )


def delivered(publisher: AsyncMock, *, topic: Optional[str] = None) -> List[UndeliveredMessage]:
    """Messages handed to a mocked publisher's `deliver`, in call order."""
    messages = [m for call in publisher.deliver.await_args_list for m in call.kwargs['messages']]
    return [m for m in messages if topic is None or m.topic == topic]
