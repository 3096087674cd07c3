from enum import StrEnum


class TransactionType(StrEnum):
    RESERVATION = 'reservation'
    PURCHASE = 'purchase'
    CANCELLATION = 'cancellation'
    REFUND = 'refund'
    TRANSFER = 'transfer'
    VALIDATION = 'validation'


class TransactionStatus(StrEnum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'
