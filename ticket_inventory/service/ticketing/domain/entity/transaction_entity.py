from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import attrs
from uuid_utils import uuid7

from ticket_inventory.service.ticketing.domain.enum.transaction_enum import (
    TransactionStatus,
    TransactionType,
)


@attrs.frozen
class Transaction:
    """Ledger entry. Write-once: never updated, never read back to decide ticket state."""

    id: str
    ticket_id: int
    user_id: str
    type: TransactionType
    amount: Decimal
    currency: str
    status: TransactionStatus
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    metadata: Dict[str, Any] = attrs.field(factory=dict)
    created_at: Optional[datetime] = None

    @classmethod
    def record(
        cls,
        *,
        ticket_id: int,
        user_id: str,
        type: TransactionType,
        amount: Decimal,
        currency: str,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> 'Transaction':
        return cls(
            id=str(uuid7()),
            ticket_id=ticket_id,
            user_id=user_id,
            type=type,
            amount=amount,
            currency=currency,
            status=status,
            payment_method=payment_method,
            payment_reference=payment_reference,
            metadata=metadata or {},
            created_at=datetime.now(timezone.utc),
        )
