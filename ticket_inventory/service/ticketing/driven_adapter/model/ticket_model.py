from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from ticket_inventory.platform.database.orm_db_setting import Base


class TicketModel(Base):
    __tablename__ = 'ticket'
    __table_args__ = (
        UniqueConstraint('inventory_id', 'seat_index', name='uq_ticket_inventory_seat'),
        Index('ix_ticket_inventory_status', 'inventory_id', 'status'),
        Index('ix_ticket_user_status', 'user_id', 'status'),
        Index('ix_ticket_status_reserved_until', 'status', 'reserved_until'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    inventory_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('ticket_inventory.id'), nullable=False
    )
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default='available', nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    seat_index: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_row: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_number: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_label: Mapped[str] = mapped_column(String(20), nullable=False)
    purchase_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    reserved_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    qr_proof: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    validation_code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
