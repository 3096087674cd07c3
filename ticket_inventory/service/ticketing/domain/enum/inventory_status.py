from enum import StrEnum


class InventoryStatus(StrEnum):
    DRAFT = 'draft'
    ACTIVE = 'active'
    PAUSED = 'paused'
    SOLD_OUT = 'sold_out'  # derived: active with no available tickets, never stored
    CLOSED = 'closed'
