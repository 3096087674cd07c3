"""
Event Lifecycle Consumer

Consumes the event catalog's lifecycle notifications and keeps the ticket
inventory in step with them:

1. event_created   -> create the inventory and materialize its tickets
2. event_updated   -> resize / reprice (or close, when the status is `cancelled`)
3. event_cancelled -> close the inventory and refund holders

Parsing happens on the consumer thread so a malformed payload is dead-lettered
without a retry; the use cases run on the application's event loop via the
anyio BlockingPortal. Every handler is idempotent, so redelivery is harmless.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.config.di import container
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.message_queue.base_kafka_consumer import (
    BaseKafkaConsumer,
    MessageHandler,
)
from ticket_inventory.platform.message_queue.kafka_constant_builder import (
    KafkaConsumerGroupBuilder,
    KafkaTopicBuilder,
)
from ticket_inventory.service.ticketing.app.command.close_inventory_use_case import (
    CloseInventoryUseCase,
)
from ticket_inventory.service.ticketing.app.command.create_inventory_use_case import (
    CreateInventoryUseCase,
)
from ticket_inventory.service.ticketing.app.command.resize_inventory_use_case import (
    ResizeInventoryUseCase,
)
from ticket_inventory.service.ticketing.domain.domain_event.event_lifecycle_notification import (
    EventCancelledNotification,
    EventCreatedNotification,
    EventUpdatedNotification,
)


# Sales stop the day before the event starts
SALE_CLOSES_BEFORE_START = timedelta(days=1)


class EventLifecycleMqConsumer(BaseKafkaConsumer):
    def __init__(self) -> None:
        super().__init__(
            service_name='CONSUMER',
            consumer_group_id=KafkaConsumerGroupBuilder.event_lifecycle(),
            dlq_topic=KafkaTopicBuilder.TICKET_INVENTORY_DLQ,
        )

        # Use cases (lazy initialization)
        self.create_inventory_use_case: Optional[CreateInventoryUseCase] = None
        self.resize_inventory_use_case: Optional[ResizeInventoryUseCase] = None
        self.close_inventory_use_case: Optional[CloseInventoryUseCase] = None

    def _initialize_dependencies(self) -> None:
        uow_factory = container.unit_of_work.provider
        self.create_inventory_use_case = CreateInventoryUseCase(uow_factory=uow_factory)
        self.resize_inventory_use_case = ResizeInventoryUseCase(uow_factory=uow_factory)
        self.close_inventory_use_case = CloseInventoryUseCase(
            uow_factory=uow_factory, event_publisher=container.ticket_event_publisher()
        )

    def _get_topic_handlers(self) -> Dict[str, MessageHandler]:
        return {
            KafkaTopicBuilder.EVENT_CREATED: self._handle_event_created,
            KafkaTopicBuilder.EVENT_UPDATED: self._handle_event_updated,
            KafkaTopicBuilder.EVENT_CANCELLED: self._handle_event_cancelled,
        }

    def _call(self, func: Any, *args: Any) -> Any:
        if self.portal is None:
            raise RuntimeError('BlockingPortal not set; call set_portal() before start()')
        return self.portal.call(func, *args)

    # ========== Message Handlers (consumer thread) ==========

    def _handle_event_created(self, message: Dict[str, Any]) -> None:
        notification = EventCreatedNotification.from_payload(message)
        Logger.base.info(
            f'🆕 [CONSUMER] event_created {notification.event_id} '
            f'({notification.tickets_available} tickets)'
        )
        self._call(self._create_inventory, notification)

    def _handle_event_updated(self, message: Dict[str, Any]) -> None:
        notification = EventUpdatedNotification.from_payload(message)
        if notification.is_cancellation:
            Logger.base.info(f'🛑 [CONSUMER] event_updated {notification.event_id} -> cancelled')
            self._call(self._close_inventory, notification.event_id)
            return

        Logger.base.info(f'✏️ [CONSUMER] event_updated {notification.event_id}')
        self._call(self._resize_inventory, notification)

    def _handle_event_cancelled(self, message: Dict[str, Any]) -> None:
        notification = EventCancelledNotification.from_payload(message)
        Logger.base.info(f'🛑 [CONSUMER] event_cancelled {notification.event_id}')
        self._call(self._close_inventory, notification.event_id)

    # ========== Use case calls (event loop) ==========

    async def _create_inventory(self, notification: EventCreatedNotification) -> None:
        sale_start = datetime.now(timezone.utc)
        sale_end = notification.start_date - SALE_CLOSES_BEFORE_START
        if sale_end < sale_start:
            # Event starts within a day (or already started): the window is empty, never inverted
            Logger.base.warning(
                f'⚠️ [CONSUMER] event_created {notification.event_id} starts at '
                f'{notification.start_date.isoformat()}, sale window already closed'
            )
            sale_end = sale_start
        await self.create_inventory_use_case.execute(
            event_id=notification.event_id,
            total_tickets=notification.tickets_available,
            base_price=notification.ticket_price,
            currency=notification.currency or settings.DEFAULT_CURRENCY,
            sale_start=sale_start,
            sale_end=sale_end,
        )

    async def _resize_inventory(self, notification: EventUpdatedNotification) -> None:
        await self.resize_inventory_use_case.execute(
            event_id=notification.event_id,
            new_total=notification.tickets_available,
            new_price=notification.ticket_price,
            new_currency=notification.currency,
        )

    async def _close_inventory(self, event_id: str) -> None:
        await self.close_inventory_use_case.execute(event_id=event_id)
