from abc import ABC, abstractmethod
from threading import Event
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from confluent_kafka import Consumer, KafkaError, KafkaException, Message, Producer, TopicPartition
from opentelemetry import trace
import orjson


if TYPE_CHECKING:
    from anyio.from_thread import BlockingPortal

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.exception.exceptions import UnprocessableMessageError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.metrics.inventory_metrics import metrics
from ticket_inventory.platform.observability.tracing import (
    decode_kafka_headers,
    extract_trace_context,
    trace_headers,
)


MessageHandler = Callable[[Dict[str, Any]], Any]


class BaseKafkaConsumer(ABC):
    """
    Synchronous confluent-kafka consumer loop, run in a worker thread.

    Handlers are plain callables; subclasses bridge them to async use cases
    through an anyio BlockingPortal. Messages are handled one at a time in
    poll order, so per-partition ordering is preserved.

    Delivery semantics (at-least-once):
    - offset is tracked only after the handler returned or the message was dead-lettered
    - offsets are committed in batches (time / count based) and on shutdown
    - a handler failure is retried MAX_HANDLER_ATTEMPTS times, then sent to the DLQ
    - an unparseable payload goes to the DLQ immediately
    """

    POLL_TIMEOUT_SECONDS: float = 0.5
    COMMIT_INTERVAL_SECONDS: float = 1.0
    MAX_PENDING_COMMITS: int = 100
    MAX_HANDLER_ATTEMPTS: int = 3
    RETRY_BACKOFF_SECONDS: float = 0.5

    def __init__(
        self,
        *,
        service_name: str,
        consumer_group_id: str,
        dlq_topic: str,
    ) -> None:
        self.service_name = service_name
        self.consumer_group_id = consumer_group_id
        self.dlq_topic = dlq_topic
        self.instance_id = settings.KAFKA_CONSUMER_INSTANCE_ID

        self.consumer: Optional[Consumer] = None
        self.producer: Optional[Producer] = None  # For sending to DLQ
        self.portal: Optional['BlockingPortal'] = None  # anyio cross-thread bridge
        self.tracer = trace.get_tracer(__name__)

        self.running = False
        self.stop_event = Event()
        # { topic_name: { partition_id: next_offset_to_commit } }
        self._pending_offsets: Dict[str, Dict[int, int]] = {}
        self._pending_count = 0
        self._last_commit_time = time.monotonic()

    def set_portal(self, portal: 'BlockingPortal') -> None:
        self.portal = portal

    @abstractmethod
    def _get_topic_handlers(self) -> Dict[str, MessageHandler]:
        """Return topic name to handler mapping."""

    @abstractmethod
    def _initialize_dependencies(self) -> None:
        """Initialize use cases and dependencies before consumer starts."""

    def _create_consumer(self) -> Consumer:
        return Consumer(
            {
                **settings.KAFKA_CONSUMER_CONFIG,
                'group.id': self.consumer_group_id,
                'session.timeout.ms': 45000,
                'heartbeat.interval.ms': 15000,
                'reconnect.backoff.ms': 1000,
                'reconnect.backoff.max.ms': 30000,
            }
        )

    def _create_producer(self) -> Producer:
        return Producer(
            {
                'bootstrap.servers': settings.KAFKA_BOOTSTRAP_SERVERS,
                'acks': 'all',
                'retries': 3,
            }
        )

    @staticmethod
    def _deserialize(msg: Message) -> Dict[str, Any]:
        raw = msg.value()
        if not raw:
            raise UnprocessableMessageError('Empty message body')
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise UnprocessableMessageError(f'Message body is not JSON: {e}') from e
        if not isinstance(data, dict):
            raise UnprocessableMessageError('Message body must be a JSON object')
        return data

    def _send_to_dlq(
        self,
        *,
        message: Dict[str, Any],
        original_topic: str,
        error: str,
        retry_count: int = 0,
    ) -> None:
        if not self.producer:
            Logger.base.error('[DLQ] Producer not initialized')
            return

        dlq_message = {
            'original_message': message,
            'original_topic': original_topic,
            'error': error,
            'retry_count': retry_count,
            'timestamp': time.time(),
            'instance_id': self.instance_id,
        }
        try:
            self.producer.produce(
                topic=self.dlq_topic,
                key=str(message.get('id', 'unknown')).encode('utf-8'),
                value=orjson.dumps(dlq_message),
                headers=trace_headers(),
            )
            self.producer.poll(0)
            Logger.base.warning(f'🪦 [DLQ] {original_topic} id={message.get("id")} - {error}')
        except (KafkaException, BufferError) as e:
            Logger.base.error(f'[DLQ] Failed to send: {e}')

    def _track_offset(self, msg: Message) -> None:
        """Kafka commits the NEXT offset to read: processed offset=5 -> commit 6."""
        topic, partition = msg.topic(), msg.partition()
        offset = msg.offset() + 1

        partitions = self._pending_offsets.setdefault(topic, {})
        if offset > partitions.get(partition, -1):
            partitions[partition] = offset
            self._pending_count += 1

    def _maybe_commit_offsets(self, *, force: bool = False) -> None:
        now = time.monotonic()
        should_commit = (
            force
            or self._pending_count >= self.MAX_PENDING_COMMITS
            or now - self._last_commit_time >= self.COMMIT_INTERVAL_SECONDS
        )
        if not should_commit or not self._pending_offsets or not self.consumer:
            return

        offsets_to_commit = [
            TopicPartition(topic, partition, offset)
            for topic, partitions in self._pending_offsets.items()
            for partition, offset in partitions.items()
        ]
        try:
            self.consumer.commit(offsets=offsets_to_commit, asynchronous=False)
            Logger.base.debug(f'[{self.service_name}] Committed {self._pending_count} offsets')
            self._pending_offsets.clear()
            self._pending_count = 0
            self._last_commit_time = now
        except KafkaException as e:
            # Offsets stay pending; the next commit attempt includes them
            Logger.base.error(f'[{self.service_name}] Commit failed: {e}')

    def _process_message(self, msg: Message, handler: MessageHandler) -> bool:
        """
        Deserialize -> extract trace -> call handler (with retries) -> track offset.

        Returns True when the handler succeeded, False when the message was dead-lettered.
        """
        topic = msg.topic()
        try:
            data = self._deserialize(msg)
        except UnprocessableMessageError as e:
            raw = msg.value()
            self._send_to_dlq(
                message={'raw': raw.hex() if raw else 'empty'}, original_topic=topic, error=str(e)
            )
            self._track_offset(msg)
            metrics.record_consumed(topic=topic, result='dlq')
            return False

        extract_trace_context(headers=decode_kafka_headers(msg.headers()))
        last_error: Exception | None = None
        attempt = 0

        with self.tracer.start_as_current_span(
            f'consumer.{topic}',
            attributes={
                'messaging.system': 'kafka',
                'messaging.destination': topic,
                'catalog.event.id': str(data.get('id', 'unknown')),
            },
        ):
            while attempt < self.MAX_HANDLER_ATTEMPTS:
                attempt += 1
                try:
                    handler(data)
                    self._track_offset(msg)
                    metrics.record_consumed(topic=topic, result='success')
                    return True
                except UnprocessableMessageError as e:
                    last_error = e
                    break
                except Exception as e:
                    last_error = e
                    Logger.base.warning(
                        f'[{self.service_name}] {topic} handler failed '
                        f'({attempt}/{self.MAX_HANDLER_ATTEMPTS}): {type(e).__name__}: {e}'
                    )
                    if attempt < self.MAX_HANDLER_ATTEMPTS:
                        time.sleep(self.RETRY_BACKOFF_SECONDS * attempt)

        self._send_to_dlq(
            message=data,
            original_topic=topic,
            error=f'{type(last_error).__name__}: {last_error}',
            retry_count=attempt,
        )
        self._track_offset(msg)
        metrics.record_consumed(topic=topic, result='dlq')
        return False

    def start(self) -> None:
        """Start consumer with retry while topics are not ready yet."""
        max_retries, delay = 5, 2

        for attempt in range(1, max_retries + 1):
            try:
                self._initialize_dependencies()
                self.consumer = self._create_consumer()
                self.producer = self._create_producer()

                handlers = self._get_topic_handlers()
                self.consumer.subscribe(list(handlers.keys()))

                Logger.base.info(
                    f'📨 [{self.service_name}-{self.instance_id}] Started | '
                    f'group={self.consumer_group_id} topics={list(handlers.keys())}'
                )

                self.running = True
                self._run_loop(handlers)
                break

            except KafkaException as e:
                if 'UNKNOWN_TOPIC_OR_PART' in str(e) and attempt < max_retries:
                    Logger.base.warning(
                        f'[{self.service_name}] {attempt}/{max_retries}: '
                        f'Topic not ready, retry in {delay}s'
                    )
                    time.sleep(delay)
                    delay *= 2
                else:
                    Logger.base.error(f'[{self.service_name}] Start failed: {e}')
                    raise

    def _run_loop(self, handlers: Dict[str, MessageHandler]) -> None:
        try:
            while self.running and not self.stop_event.is_set():
                msg = self.consumer.poll(timeout=self.POLL_TIMEOUT_SECONDS)

                if msg is None:
                    self._maybe_commit_offsets()
                    continue

                if msg.error():
                    if msg.error().code() != KafkaError._PARTITION_EOF:
                        Logger.base.error(f'[{self.service_name}] Kafka error: {msg.error()}')
                    continue

                handler = handlers.get(msg.topic())
                if handler is not None:
                    self._process_message(msg, handler)
                self._maybe_commit_offsets()
        finally:
            self._shutdown()

    def stop(self) -> None:
        """Ask the loop to exit; the consumer thread commits and closes on its way out."""
        if not self.running:
            return
        Logger.base.info(f'[{self.service_name}] Stopping...')
        self.running = False
        self.stop_event.set()

    def _shutdown(self) -> None:
        self._maybe_commit_offsets(force=True)

        # Close consumer (triggers rebalance, other consumers take over partitions)
        if self.consumer:
            try:
                self.consumer.close()
            except KafkaException as e:
                Logger.base.warning(f'[{self.service_name}] Close error: {e}')

        if self.producer:
            self.producer.flush(timeout=5.0)

        self.running = False
        Logger.base.info(f'[{self.service_name}] Stopped')
