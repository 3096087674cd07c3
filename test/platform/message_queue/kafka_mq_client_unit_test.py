"""
Unit tests for KafkaMqClient

publish() waits for the broker ack, retries with a fresh producer, and raises
MessagePublishError once every attempt failed. A producer that never finishes
closing is dropped, and with Kafka disabled nothing is ever produced.
"""

import asyncio
from typing import Any, List

from confluent_kafka import KafkaException
import orjson
import pytest

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.exception.exceptions import MessagePublishError
from ticket_inventory.platform.message_queue.kafka_mq_client import KafkaMqClient


class FakeProducer:
    """Stands in for AIOProducer: produce() resolves to a delivery future."""

    def __init__(self, outcome: str, sent: List[dict], *, close_hangs: bool = False) -> None:
        self.outcome = outcome
        self.sent = sent
        self.close_hangs = close_hangs
        self.closed = False

    async def produce(self, *, topic: str, key: bytes, value: bytes) -> asyncio.Future:
        if self.outcome == 'error':
            raise KafkaException('broker unavailable')
        delivery = asyncio.get_running_loop().create_future()
        if self.outcome == 'ok':
            self.sent.append({'topic': topic, 'key': key, 'value': value})
            delivery.set_result(None)
        # 'hang': the ack never arrives
        return delivery

    async def flush(self) -> None:
        pass

    async def close(self) -> None:
        if self.close_hangs:
            # librdkafka waiting for undelivered messages to time out
            await asyncio.Event().wait()
        self.closed = True


class ProducerFactory:
    def __init__(self, *outcomes: str, close_hangs: bool = False) -> None:
        self.outcomes = list(outcomes)
        self.close_hangs = close_hangs
        self.sent: List[dict] = []
        self.producers: List[FakeProducer] = []

    def __call__(self, config: dict[str, Any]) -> FakeProducer:
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        producer = FakeProducer(outcome, self.sent, close_hangs=self.close_hangs)
        self.producers.append(producer)
        return producer


def _client(factory: ProducerFactory, **overrides: Any) -> KafkaMqClient:
    options = {
        'producer_config': {'bootstrap.servers': 'kafka.test:9092'},
        'publish_timeout_seconds': 0.05,
        'max_attempts': 3,
        'backoff_seconds': 0,
        'enabled': True,
        **overrides,
    }
    return KafkaMqClient(producer_factory=factory, **options)


@pytest.mark.unit
class TestKafkaMqClient:
    @pytest.mark.asyncio
    async def test_publish_serializes_payload(self) -> None:
        factory = ProducerFactory('ok')
        client = _client(factory)
        await client.connect()

        await client.publish(topic='ticket_reserved', key='42', payload={'ticketId': 42})

        [message] = factory.sent
        assert message['key'] == b'42'
        assert orjson.loads(message['value']) == {'ticketId': 42}

    @pytest.mark.asyncio
    async def test_retries_with_fresh_producer(self) -> None:
        factory = ProducerFactory('error', 'error', 'ok')
        client = _client(factory)
        await client.connect()

        await client.publish(topic='ticket_reserved', key='42', payload={'ticketId': 42})

        assert len(factory.producers) == 3
        assert factory.producers[0].closed and factory.producers[1].closed
        assert len(factory.sent) == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self) -> None:
        factory = ProducerFactory('error')
        client = _client(factory, max_attempts=2)

        with pytest.raises(MessagePublishError) as exc_info:
            await client.publish(topic='ticket_reserved', key='42', payload={'ticketId': 42})

        assert 'after 2 attempts' in exc_info.value.message
        assert len(factory.producers) == 2

    @pytest.mark.asyncio
    async def test_missing_ack_times_out(self) -> None:
        factory = ProducerFactory('hang')
        client = _client(factory, max_attempts=1)
        await client.connect()

        with pytest.raises(MessagePublishError):
            await client.publish(topic='ticket_reserved', key='42', payload={'ticketId': 42})

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        factory = ProducerFactory('ok')
        client = _client(factory)
        await client.connect()

        await client.close()

        assert not client.is_connected
        assert factory.producers[0].closed

    @pytest.mark.asyncio
    async def test_stuck_close_does_not_stall_publish(self) -> None:
        """
        Given: a broker that never acks and producers whose close() never returns
        When: publishing with two attempts
        Then: MessagePublishError arrives within a few publish timeouts
        """
        factory = ProducerFactory('hang', close_hangs=True)
        client = _client(factory, max_attempts=2)
        await client.connect()

        with pytest.raises(MessagePublishError):
            await asyncio.wait_for(
                client.publish(topic='ticket_reserved', key='42', payload={'ticketId': 42}),
                timeout=1,
            )

        assert len(factory.producers) == 2

    @pytest.mark.asyncio
    async def test_stuck_close_on_shutdown_is_bounded(self) -> None:
        factory = ProducerFactory('ok', close_hangs=True)
        client = _client(factory)
        await client.connect()

        await asyncio.wait_for(client.close(), timeout=1)

        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_disabled_client_never_creates_a_producer(self) -> None:
        factory = ProducerFactory('ok')
        client = _client(factory, enabled=False)
        await client.connect()

        with pytest.raises(MessagePublishError) as exc_info:
            await client.publish(topic='ticket_reserved', key='42', payload={'ticketId': 42})

        assert 'disabled' in exc_info.value.message
        assert factory.producers == []
        assert not client.is_connected

    def test_librdkafka_gives_up_within_the_publish_timeout(self) -> None:
        config = settings.KAFKA_PRODUCER_CONFIG

        assert config['message.timeout.ms'] <= settings.MQ_PUBLISH_TIMEOUT_SECONDS * 1000
