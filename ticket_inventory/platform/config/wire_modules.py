"""
Wire Modules Configuration

Modules holding `Provide[...]` markers; shared between production and tests.
"""

from types import ModuleType

from ticket_inventory.service.ticketing.app.command import (
    cancel_ticket_use_case,
    close_inventory_use_case,
    create_inventory_use_case,
    purchase_ticket_use_case,
    reserve_ticket_use_case,
    resize_inventory_use_case,
    validate_ticket_use_case,
)
from ticket_inventory.service.ticketing.app.query import (
    get_inventory_use_case,
    list_event_tickets_use_case,
    list_user_tickets_use_case,
)
from ticket_inventory.service.ticketing.driving_adapter.http_controller.auth import role_auth


WIRE_MODULES: list[ModuleType] = [
    reserve_ticket_use_case,
    purchase_ticket_use_case,
    cancel_ticket_use_case,
    validate_ticket_use_case,
    create_inventory_use_case,
    resize_inventory_use_case,
    close_inventory_use_case,
    list_user_tickets_use_case,
    list_event_tickets_use_case,
    get_inventory_use_case,
    role_auth,
]
