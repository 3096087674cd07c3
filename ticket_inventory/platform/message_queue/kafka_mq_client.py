"""
Kafka MQ Client

Injectable handle around confluent-kafka's asyncio producer (AIOProducer).

- Explicit lifecycle: connect() at startup, close() at shutdown
- publish() waits for the broker acknowledgement within a bounded timeout
- Failed attempts are retried with exponential backoff; the producer is
  recreated between attempts so a broken connection does not stick
- Closing a producer is bounded too: librdkafka flushes on close and would
  otherwise wait for every queued message to time out
- After the last attempt MessagePublishError is raised (retryable by the caller)
- With Kafka disabled no producer is ever created and publish() fails at once
"""

import asyncio
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from confluent_kafka import KafkaException
from confluent_kafka.experimental.aio import AIOProducer
import orjson

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.exception.exceptions import MessagePublishError
from ticket_inventory.platform.logging.loguru_io import Logger


def orjson_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError(f'Object of type {type(obj).__name__} is not JSON serializable')


def serialize_payload(payload: Dict[str, Any]) -> bytes:
    return orjson.dumps(payload, default=orjson_default)


def wire_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """The payload as it will appear on the wire (Decimal and datetime as strings)."""
    return orjson.loads(serialize_payload(payload))


class KafkaMqClient:
    def __init__(
        self,
        *,
        producer_config: Optional[Dict[str, Any]] = None,
        publish_timeout_seconds: Optional[float] = None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        enabled: Optional[bool] = None,
        producer_factory: Callable[[Dict[str, Any]], Any] = AIOProducer,
    ) -> None:
        self._producer_config = producer_config or settings.KAFKA_PRODUCER_CONFIG
        self._publish_timeout = publish_timeout_seconds or settings.MQ_PUBLISH_TIMEOUT_SECONDS
        self._max_attempts = max(1, max_attempts or settings.MQ_PUBLISH_MAX_ATTEMPTS)
        self._backoff_seconds = (
            settings.MQ_PUBLISH_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )
        self.enabled = settings.ENABLE_KAFKA if enabled is None else enabled
        self._producer_factory = producer_factory
        self._producer: Any = None

    @property
    def is_connected(self) -> bool:
        return self._producer is not None

    async def connect(self) -> None:
        if not self.enabled:
            return
        if self._producer is None:
            self._producer = self._producer_factory(self._producer_config)
            Logger.base.info('📡 [MQ] Producer connected')

    async def close(self) -> None:
        if self._producer is None:
            return
        producer, self._producer = self._producer, None
        try:
            await asyncio.wait_for(producer.flush(), timeout=self._publish_timeout)
        except asyncio.TimeoutError:
            Logger.base.warning('⚠️ [MQ] Flush on shutdown timed out, unsent messages stay parked')
        finally:
            await self._close_producer(producer)
        Logger.base.info('🔌 [MQ] Producer closed')

    async def _close_producer(self, producer: Any) -> None:
        try:
            await asyncio.wait_for(producer.close(), timeout=self._publish_timeout)
        except asyncio.TimeoutError:
            Logger.base.warning('⚠️ [MQ] Producer did not close in time, dropped')
        except KafkaException as e:
            Logger.base.warning(f'⚠️ [MQ] Error closing producer: {e}')

    async def _reconnect(self) -> None:
        producer, self._producer = self._producer, None
        if producer is not None:
            await self._close_producer(producer)
        await self.connect()

    async def _produce_and_wait(
        self, *, topic: str, key: bytes, value: bytes
    ) -> None:
        # produce() hands back a future that resolves once the broker acks the message.
        # AIOProducer batches through produce_batch, which carries no headers.
        delivery = await self._producer.produce(topic=topic, key=key, value=value)
        await delivery

    @Logger.io
    async def publish(self, *, topic: str, key: str, payload: Dict[str, Any]) -> None:
        if not self.enabled:
            raise MessagePublishError(f'Kafka is disabled, {topic} key={key} not sent')

        value = serialize_payload(payload)
        delay = self._backoff_seconds
        last_error: Exception | None = None

        for attempt in range(1, self._max_attempts + 1):
            try:
                if self._producer is None:
                    await self.connect()
                await asyncio.wait_for(
                    self._produce_and_wait(
                        topic=topic, key=key.encode('utf-8'), value=value
                    ),
                    timeout=self._publish_timeout,
                )
                Logger.base.info(f'📤 [MQ] Published to {topic} key={key}')
                return
            except (KafkaException, BufferError, asyncio.TimeoutError) as e:
                last_error = e
                Logger.base.warning(
                    f'⚠️ [MQ] Publish to {topic} failed ({attempt}/{self._max_attempts}): '
                    f'{type(e).__name__}: {e}'
                )
                if attempt < self._max_attempts:
                    await asyncio.sleep(delay)
                    delay *= 2
                    await self._reconnect()

        raise MessagePublishError(
            f'Publish to {topic} failed after {self._max_attempts} attempts: {last_error}'
        )
