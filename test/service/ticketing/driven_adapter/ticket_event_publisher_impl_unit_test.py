"""
Unit tests for TicketEventPublisherImpl

Messages arrive already staged in the outbox. An acknowledged message loses
its row; a publish that exhausted its retries keeps its row, and everything
after it, for the redelivery sweep.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Awaitable, Callable, List
from unittest.mock import AsyncMock

import pytest

from test.fake_unit_of_work import FakeUndeliveredMessageRepo, FakeUnitOfWork, InMemoryStore
from ticket_inventory.platform.exception.exceptions import MessagePublishError
from ticket_inventory.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder
from ticket_inventory.service.ticketing.app.command.outbox import stage_outbound
from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage
from ticket_inventory.service.ticketing.domain.domain_event.ticket_domain_event import (
    TicketNotificationEvent,
    TicketPurchasedEvent,
    TicketReservedEvent,
)
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.notification_type import NotificationType
from ticket_inventory.service.ticketing.driven_adapter.message_queue.ticket_event_publisher_impl import (
    TicketEventPublisherImpl,
)


NOW = datetime(2030, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def purchased() -> Ticket:
    [ticket] = Ticket.generate(
        event_id='evt-1',
        inventory_id=1,
        price=Decimal('50.00'),
        currency='EUR',
        start_index=0,
        count=1,
    )
    ticket.id = 42
    reserved = ticket.reserve(user_id='user-1', now=NOW, ttl=timedelta(minutes=15))
    return reserved.purchase(user_id='user-1', now=NOW)


@pytest.fixture
def mq_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def event_publisher(
    mq_client: AsyncMock, undelivered_message_repo: FakeUndeliveredMessageRepo
) -> TicketEventPublisherImpl:
    return TicketEventPublisherImpl(
        mq_client=mq_client, undelivered_message_repo=undelivered_message_repo
    )


@pytest.fixture
def staged(
    uow_factory: Callable[[], FakeUnitOfWork], purchased: Ticket
) -> Callable[[], Awaitable[List[UndeliveredMessage]]]:
    async def _stage() -> List[UndeliveredMessage]:
        async with uow_factory() as uow:
            messages = await stage_outbound(
                uow,
                TicketReservedEvent.from_ticket(ticket=purchased),
                TicketPurchasedEvent.from_ticket(ticket=purchased),
                TicketNotificationEvent.for_ticket(
                    type=NotificationType.TICKET_PURCHASED, ticket=purchased
                ),
            )
            await uow.commit()
        return messages

    return _stage


@pytest.mark.unit
class TestTicketEventPublisher:
    @pytest.mark.asyncio
    async def test_topic_and_key_per_event(
        self,
        event_publisher: TicketEventPublisherImpl,
        mq_client: AsyncMock,
        store: InMemoryStore,
        staged,
    ) -> None:
        messages = await staged()

        delivered = await event_publisher.deliver(messages=messages)

        assert delivered == 3
        sent = [(c.kwargs['topic'], c.kwargs['key']) for c in mq_client.publish.await_args_list]
        assert sent == [
            (KafkaTopicBuilder.TICKET_RESERVED, '42'),
            (KafkaTopicBuilder.TICKET_PURCHASED, '42'),
            (KafkaTopicBuilder.NOTIFICATION_EVENT, '42'),
        ]
        # Acknowledged rows are gone
        assert store.outbox == []

    @pytest.mark.asyncio
    async def test_payload_goes_out_in_wire_form(
        self, event_publisher: TicketEventPublisherImpl, mq_client: AsyncMock, staged
    ) -> None:
        await event_publisher.deliver(messages=await staged())

        purchase = mq_client.publish.await_args_list[1].kwargs['payload']
        assert purchase['price'] == '50.00'
        assert purchase['purchaseDate'] == NOW.isoformat()

    @pytest.mark.asyncio
    async def test_failed_publish_stops_and_keeps_the_rest_staged(
        self,
        event_publisher: TicketEventPublisherImpl,
        mq_client: AsyncMock,
        store: InMemoryStore,
        staged,
    ) -> None:
        # Given: the broker takes the first message, then goes away
        messages = await staged()
        mq_client.publish.side_effect = [None, MessagePublishError('broker down')]

        # When: does not raise
        delivered = await event_publisher.deliver(messages=messages)

        # Then: the notification is not attempted ahead of the purchase
        assert delivered == 1
        assert mq_client.publish.await_count == 2
        assert [m.topic for m in store.outbox] == [
            KafkaTopicBuilder.TICKET_PURCHASED,
            KafkaTopicBuilder.NOTIFICATION_EVENT,
        ]
        failed, untouched = store.outbox
        assert failed.attempts == 1
        assert failed.last_error == 'broker down'
        assert untouched.attempts == 0
        assert untouched.last_error is None

    @pytest.mark.asyncio
    async def test_republish_propagates_failure(
        self,
        event_publisher: TicketEventPublisherImpl,
        mq_client: AsyncMock,
        store: InMemoryStore,
    ) -> None:
        mq_client.publish.side_effect = MessagePublishError('broker down')

        with pytest.raises(MessagePublishError):
            await event_publisher.republish(
                topic=KafkaTopicBuilder.TICKET_CANCELLED, key='1', payload={'ticketId': 1}
            )
        # The caller owns the row, nothing staged here
        assert store.outbox == []
