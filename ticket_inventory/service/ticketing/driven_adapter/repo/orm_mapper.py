"""Conversions between ORM rows and domain entities, shared by command and query repos."""

from typing import Any, Dict

from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.entity.transaction_entity import Transaction
from ticket_inventory.service.ticketing.domain.enum.inventory_status import InventoryStatus
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.enum.transaction_enum import (
    TransactionStatus,
    TransactionType,
)
from ticket_inventory.service.ticketing.domain.value_object.seat_info import SeatInfo
from ticket_inventory.service.ticketing.driven_adapter.model.inventory_model import InventoryModel
from ticket_inventory.service.ticketing.driven_adapter.model.ticket_model import TicketModel
from ticket_inventory.service.ticketing.driven_adapter.model.ticket_transaction_model import (
    TicketTransactionModel,
)


def inventory_to_entity(model: InventoryModel) -> Inventory:
    return Inventory(
        id=model.id,
        event_id=model.event_id,
        total_tickets=model.total_tickets,
        available_tickets=model.available_tickets,
        reserved_tickets=model.reserved_tickets,
        sold_tickets=model.sold_tickets,
        cancelled_tickets=model.cancelled_tickets,
        base_price=model.base_price,
        currency=model.currency,
        sale_start=model.sale_start,
        sale_end=model.sale_end,
        status=InventoryStatus(model.status),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def inventory_values(inventory: Inventory) -> Dict[str, Any]:
    return {
        'event_id': inventory.event_id,
        'total_tickets': inventory.total_tickets,
        'available_tickets': inventory.available_tickets,
        'reserved_tickets': inventory.reserved_tickets,
        'sold_tickets': inventory.sold_tickets,
        'cancelled_tickets': inventory.cancelled_tickets,
        'base_price': inventory.base_price,
        'currency': inventory.currency,
        'sale_start': inventory.sale_start,
        'sale_end': inventory.sale_end,
        'status': inventory.status.value,
    }


def ticket_to_entity(model: TicketModel) -> Ticket:
    return Ticket(
        id=model.id,
        event_id=model.event_id,
        inventory_id=model.inventory_id,
        user_id=model.user_id,
        status=TicketStatus(model.status),
        price=model.price,
        currency=model.currency,
        seat=SeatInfo(index=model.seat_index, row=model.seat_row, seat=model.seat_number),
        purchase_date=model.purchase_date,
        reserved_until=model.reserved_until,
        qr_proof=model.qr_proof,
        validation_code=model.validation_code,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def ticket_values(ticket: Ticket) -> Dict[str, Any]:
    return {
        'event_id': ticket.event_id,
        'inventory_id': ticket.inventory_id,
        'user_id': ticket.user_id,
        'status': ticket.status.value,
        'price': ticket.price,
        'currency': ticket.currency,
        'seat_index': ticket.seat.index,
        'seat_row': ticket.seat.row,
        'seat_number': ticket.seat.seat,
        'seat_label': ticket.seat.label,
        'purchase_date': ticket.purchase_date,
        'reserved_until': ticket.reserved_until,
        'qr_proof': ticket.qr_proof,
        'validation_code': ticket.validation_code,
    }


def transaction_to_entity(model: TicketTransactionModel) -> Transaction:
    return Transaction(
        id=model.id,
        ticket_id=model.ticket_id,
        user_id=model.user_id,
        type=TransactionType(model.type),
        amount=model.amount,
        currency=model.currency,
        status=TransactionStatus(model.status),
        payment_method=model.payment_method,
        payment_reference=model.payment_reference,
        metadata=model.transaction_metadata or {},
        created_at=model.created_at,
    )


def transaction_to_model(transaction: Transaction) -> TicketTransactionModel:
    return TicketTransactionModel(
        id=transaction.id,
        ticket_id=transaction.ticket_id,
        user_id=transaction.user_id,
        type=transaction.type.value,
        amount=transaction.amount,
        currency=transaction.currency,
        status=transaction.status.value,
        payment_method=transaction.payment_method,
        payment_reference=transaction.payment_reference,
        transaction_metadata=transaction.metadata,
        created_at=transaction.created_at,
    )
