"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from ticket_inventory.service.ticketing.driven_adapter.model.inventory_model import InventoryModel
from ticket_inventory.service.ticketing.driven_adapter.model.ticket_model import TicketModel
from ticket_inventory.service.ticketing.driven_adapter.model.ticket_transaction_model import (
    TicketTransactionModel,
)
from ticket_inventory.service.ticketing.driven_adapter.model.undelivered_message_model import (
    UndeliveredMessageModel,
)

__all__ = [
    'InventoryModel',
    'TicketModel',
    'TicketTransactionModel',
    'UndeliveredMessageModel',
]
