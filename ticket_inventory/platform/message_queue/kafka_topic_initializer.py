"""
Kafka topic bootstrap

The event lifecycle topics are owned by the catalog and the ticket topics by
this service, but on a fresh cluster nobody may have created them yet. The
consumer subscribes only after `ensure_topics_exist` has run, otherwise
librdkafka reports UNKNOWN_TOPIC_OR_PART until the next metadata refresh.
"""

from confluent_kafka import KafkaError, KafkaException
from confluent_kafka.admin import AdminClient, NewTopic

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder


def topic_config(topic: str) -> dict[str, str]:
    """Dead letters are kept longer than regular traffic so they can be replayed by hand."""
    retention_ms = (
        settings.KAFKA_DLQ_RETENTION_MS
        if topic == KafkaTopicBuilder.TICKET_INVENTORY_DLQ
        else settings.KAFKA_TOPIC_RETENTION_MS
    )
    return {'cleanup.policy': 'delete', 'retention.ms': str(retention_ms)}


class KafkaTopicInitializer:
    def __init__(self, *, admin_client: AdminClient | None = None) -> None:
        self.admin_client = admin_client or AdminClient(
            {'bootstrap.servers': settings.KAFKA_BOOTSTRAP_SERVERS}
        )

    def missing_topics(self, required: list[str]) -> list[str]:
        existing = self.admin_client.list_topics(timeout=10).topics
        return [topic for topic in required if topic not in existing]

    def ensure_topics_exist(self, *, topics: list[str] | None = None) -> bool:
        """False when at least one topic could not be created; the caller decides whether to go on."""
        required = topics or KafkaTopicBuilder.get_all_topics()
        try:
            to_create = self.missing_topics(required)
        except KafkaException as e:
            Logger.base.error(f'❌ [TOPIC-INIT] Cannot list topics: {e}')
            return False

        if not to_create:
            Logger.base.info(f'✅ [TOPIC-INIT] {len(required)} topics present')
            return True

        Logger.base.info(f'📝 [TOPIC-INIT] Creating {", ".join(to_create)}')
        futures = self.admin_client.create_topics(
            [
                NewTopic(
                    topic,
                    num_partitions=settings.KAFKA_TOPIC_PARTITIONS,
                    replication_factor=settings.KAFKA_REPLICATION_FACTOR,
                    config=topic_config(topic),
                )
                for topic in to_create
            ],
            request_timeout=30,
        )

        failed = [topic for topic, future in futures.items() if not self._created(topic, future)]
        return not failed

    @staticmethod
    def _created(topic: str, future) -> bool:
        try:
            future.result()
        except KafkaException as e:
            # A second replica starting at the same time wins the race
            if e.args[0].code() == KafkaError.TOPIC_ALREADY_EXISTS:
                return True
            Logger.base.error(f'❌ [TOPIC-INIT] {topic} not created: {e.args[0].str()}')
            return False
        return True
