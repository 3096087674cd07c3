from prometheus_client import Counter


class InventoryMetrics:
    """
    Ticket Inventory Core Metrics Collector

    Tracks ticket state transitions, message traffic and the background
    reclaim pass. Exposed on /metrics.
    """

    def __init__(self) -> None:
        # ========== Ticket Lifecycle ==========
        self.ticket_transitions = Counter(
            'ticket_transitions_total',
            'Ticket state transitions attempted',
            ['transition', 'result'],  # result: success / error code
        )

        self.reservations_reclaimed = Counter(
            'ticket_reservations_reclaimed_total',
            'Expired reservations returned to the available pool',
        )

        # ========== Messaging ==========
        self.mq_publish_failures = Counter(
            'mq_publish_failures_total',
            'Outbound messages that exhausted their publish retries',
            ['topic'],
        )

        self.mq_messages_consumed = Counter(
            'mq_messages_consumed_total',
            'Inbound event lifecycle messages processed',
            ['topic', 'result'],  # result: success / dlq
        )

    # ========== Helper Methods ==========

    def record_transition(self, *, transition: str, result: str = 'success') -> None:
        self.ticket_transitions.labels(transition=transition, result=result).inc()

    def record_reclaimed(self, *, count: int) -> None:
        if count:
            self.reservations_reclaimed.inc(count)

    def record_publish_failure(self, *, topic: str) -> None:
        self.mq_publish_failures.labels(topic=topic).inc()

    def record_consumed(self, *, topic: str, result: str) -> None:
        self.mq_messages_consumed.labels(topic=topic, result=result).inc()


# Global metrics instance
metrics = InventoryMetrics()
