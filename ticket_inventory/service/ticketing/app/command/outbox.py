"""
Transactional outbox

Outbound messages are staged in `undelivered_message` inside the transaction
that changes the ticket, and published once it has committed. A published
row is deleted; a row left behind (failed publish, crash after commit) is
picked up by the redelivery sweep.
"""

from typing import Dict, List, Union

from ticket_inventory.platform.database.unit_of_work import AbstractUnitOfWork
from ticket_inventory.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder
from ticket_inventory.platform.message_queue.kafka_mq_client import wire_payload
from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage
from ticket_inventory.service.ticketing.domain.domain_event.ticket_domain_event import (
    TicketCancelledEvent,
    TicketNotificationEvent,
    TicketPurchasedEvent,
    TicketReservedEvent,
)


OutboundEvent = Union[
    TicketReservedEvent, TicketPurchasedEvent, TicketCancelledEvent, TicketNotificationEvent
]

OUTBOUND_TOPICS: Dict[type, str] = {
    TicketReservedEvent: KafkaTopicBuilder.TICKET_RESERVED,
    TicketPurchasedEvent: KafkaTopicBuilder.TICKET_PURCHASED,
    TicketCancelledEvent: KafkaTopicBuilder.TICKET_CANCELLED,
    TicketNotificationEvent: KafkaTopicBuilder.NOTIFICATION_EVENT,
}


async def stage_outbound(
    uow: AbstractUnitOfWork, *events: OutboundEvent
) -> List[UndeliveredMessage]:
    """Call before `uow.commit()`; the returned messages go to `event_publisher.deliver`."""
    return [
        await uow.outbox_repo.add(
            topic=OUTBOUND_TOPICS[type(event)],
            key=event.key,
            # Stored in wire form so any later redelivery sends the same document
            payload=wire_payload(event.to_payload()),
        )
        for event in events
    ]
