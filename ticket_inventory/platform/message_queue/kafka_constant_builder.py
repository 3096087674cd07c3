class ServiceNames:
    """Service name constants"""

    TICKET_INVENTORY_SERVICE = 'ticket-inventory-service'
    EVENT_CATALOG_SERVICE = 'event-service'


class KafkaTopicBuilder:
    """
    Kafka topic names shared with the other services.

    Names are the queue names the catalog and notification services already
    use, so they are plain constants rather than per-event topics.
    """

    # ====== Inbound: event lifecycle (from event catalog) =======
    EVENT_CREATED = 'event_created'
    EVENT_UPDATED = 'event_updated'
    EVENT_CANCELLED = 'event_cancelled'

    # ====== Outbound: ticket lifecycle =======
    TICKET_RESERVED = 'ticket_reserved'
    TICKET_PURCHASED = 'ticket_purchased'
    TICKET_CANCELLED = 'ticket_cancelled'
    NOTIFICATION_EVENT = 'notification_event'

    # ====== Dead Letter Queue =======
    TICKET_INVENTORY_DLQ = 'ticket_inventory_dlq'

    @staticmethod
    def inbound_topics() -> list[str]:
        return [
            KafkaTopicBuilder.EVENT_CREATED,
            KafkaTopicBuilder.EVENT_UPDATED,
            KafkaTopicBuilder.EVENT_CANCELLED,
        ]

    @staticmethod
    def outbound_topics() -> list[str]:
        return [
            KafkaTopicBuilder.TICKET_RESERVED,
            KafkaTopicBuilder.TICKET_PURCHASED,
            KafkaTopicBuilder.TICKET_CANCELLED,
            KafkaTopicBuilder.NOTIFICATION_EVENT,
        ]

    @staticmethod
    def get_all_topics() -> list[str]:
        return [
            *KafkaTopicBuilder.inbound_topics(),
            *KafkaTopicBuilder.outbound_topics(),
            KafkaTopicBuilder.TICKET_INVENTORY_DLQ,
        ]


class KafkaConsumerGroupBuilder:
    """Format: {service_name}______{purpose}"""

    @staticmethod
    def event_lifecycle() -> str:
        return f'{ServiceNames.TICKET_INVENTORY_SERVICE}______event-lifecycle'
