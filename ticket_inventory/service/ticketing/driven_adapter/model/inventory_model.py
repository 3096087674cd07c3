from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from ticket_inventory.platform.database.orm_db_setting import Base


class InventoryModel(Base):
    __tablename__ = 'ticket_inventory'
    __table_args__ = (
        CheckConstraint(
            'total_tickets = available_tickets + reserved_tickets + sold_tickets + cancelled_tickets',
            name='ck_ticket_inventory_conservation',
        ),
        CheckConstraint(
            'available_tickets >= 0 AND reserved_tickets >= 0 '
            'AND sold_tickets >= 0 AND cancelled_tickets >= 0',
            name='ck_ticket_inventory_non_negative',
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    total_tickets: Mapped[int] = mapped_column(Integer, nullable=False)
    available_tickets: Mapped[int] = mapped_column(Integer, nullable=False)
    reserved_tickets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sold_tickets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cancelled_tickets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    sale_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    sale_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default='active', nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
