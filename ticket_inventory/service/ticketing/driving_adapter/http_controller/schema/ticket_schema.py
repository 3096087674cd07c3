from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.value_object.event_summary import EventSummary


# ============================ Requests ============================


class PurchaseTicketRequest(BaseModel):
    payment_method: Optional[str] = Field(default=None, max_length=64)
    payment_reference: Optional[str] = Field(default=None, max_length=255)

    class Config:
        json_schema_extra = {
            'example': {'payment_method': 'card', 'payment_reference': 'PAY-123456789'}
        }


class ValidateTicketRequest(BaseModel):
    qr_data: str = Field(min_length=1)

    class Config:
        json_schema_extra = {'example': {'qr_data': 'eyJ0aWNrZXRJZCI6MSwiZXZlbnRJZCI6ImV2dC0xIn0'}}


# ============================ Responses ============================


class SeatResponse(BaseModel):
    row: int
    seat: int
    label: str


class TicketResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': 42,
                'event_id': 'evt-1',
                'user_id': 'user-7',
                'status': 'purchased',
                'price': '25.00',
                'currency': 'EUR',
                'seat': {'row': 1, 'seat': 3, 'label': 'R1-S3'},
                'purchase_date': '2025-01-10T10:35:00Z',
                'reserved_until': None,
                'qr_proof': 'eyJ0aWNrZXRJZCI6NDIsImV2ZW50SWQiOiJldnQtMSJ9',
            }
        },
    }

    id: int
    event_id: str
    user_id: Optional[str] = None
    status: str
    price: Decimal
    currency: str
    seat: SeatResponse
    purchase_date: Optional[datetime] = None
    reserved_until: Optional[datetime] = None
    qr_proof: Optional[str] = None

    @classmethod
    def from_entity(cls, ticket: Ticket) -> 'TicketResponse':
        return cls(
            id=ticket.id or 0,
            event_id=ticket.event_id,
            user_id=ticket.user_id,
            status=ticket.status.value,
            price=ticket.price,
            currency=ticket.currency,
            seat=SeatResponse(row=ticket.seat.row, seat=ticket.seat.seat, label=ticket.seat.label),
            purchase_date=ticket.purchase_date,
            reserved_until=ticket.reserved_until,
            # The proof is a bearer credential: only shown while it can still be redeemed
            qr_proof=ticket.qr_proof if ticket.status == TicketStatus.PURCHASED else None,
        )


class EventListingResponse(BaseModel):
    title: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    venue: Optional[Any] = None

    @classmethod
    def from_summary(cls, summary: EventSummary) -> 'EventListingResponse':
        return cls(**summary.to_listing())


class UserTicketResponse(TicketResponse):
    event: EventListingResponse


class ReservationResponse(BaseModel):
    ticket: TicketResponse
    reserved_until: datetime
    expires_in: str


class EventTicketPageResponse(BaseModel):
    tickets: List[TicketResponse]
    total_tickets: int
    total_pages: int
    current_page: int


class SaleWindowResponse(BaseModel):
    start: datetime
    end: datetime


class InventoryResponse(BaseModel):
    event_id: str
    total_tickets: int
    available_tickets: int
    reserved_tickets: int
    sold_tickets: int
    cancelled_tickets: int
    base_price: Decimal
    currency: str
    sale_window: SaleWindowResponse
    status: str

    @classmethod
    def from_entity(cls, inventory: Inventory) -> 'InventoryResponse':
        return cls(
            event_id=inventory.event_id,
            total_tickets=inventory.total_tickets,
            available_tickets=inventory.available_tickets,
            reserved_tickets=inventory.reserved_tickets,
            sold_tickets=inventory.sold_tickets,
            cancelled_tickets=inventory.cancelled_tickets,
            base_price=inventory.base_price,
            currency=inventory.currency,
            sale_window=SaleWindowResponse(start=inventory.sale_start, end=inventory.sale_end),
            status=inventory.effective_status.value,
        )
