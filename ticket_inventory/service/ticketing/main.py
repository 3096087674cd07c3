"""
Ticket Inventory Service - Main Application

HTTP API for reservations, purchases and validation, plus the event
lifecycle consumer and the reservation expiry sweeper.

Usage:
    granian --interface asgi ticket_inventory.service.ticketing.main:app
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from anyio.from_thread import BlockingPortal
import anyio.to_thread
from confluent_kafka import KafkaException
from fastapi import FastAPI

from ticket_inventory.platform.app_factory import create_app
from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.config.di import container
from ticket_inventory.platform.config.wire_modules import WIRE_MODULES
from ticket_inventory.platform.database.orm_db_setting import create_db_and_tables, get_engine
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.message_queue.kafka_constant_builder import ServiceNames
from ticket_inventory.platform.message_queue.kafka_topic_initializer import KafkaTopicInitializer
from ticket_inventory.platform.observability.tracing import TracingConfig
from ticket_inventory.service.ticketing.app.command.reclaim_expired_reservations_use_case import (
    ReclaimExpiredReservationsUseCase,
)
from ticket_inventory.service.ticketing.app.command.redeliver_undelivered_messages_use_case import (
    RedeliverUndeliveredMessagesUseCase,
)
from ticket_inventory.service.ticketing.driving_adapter.background.reservation_expiry_sweeper import (
    ReservationExpirySweeper,
)
from ticket_inventory.service.ticketing.driving_adapter.mq_consumer.event_lifecycle_mq_consumer import (
    EventLifecycleMqConsumer,
)


def run_consumer(consumer: EventLifecycleMqConsumer) -> None:
    """Consumer thread body; a broker outage must not take the HTTP API down."""
    try:
        consumer.start()
    except KafkaException as e:
        Logger.base.error(
            f'❌ [Ticket Inventory] Consumer stopped: {e}'
            '\n   Continuing without inbound event lifecycle messages'
        )


def build_sweeper() -> ReservationExpirySweeper:
    return ReservationExpirySweeper(
        reclaim_use_case=ReclaimExpiredReservationsUseCase(
            uow_factory=container.unit_of_work.provider
        ),
        redeliver_use_case=RedeliverUndeliveredMessagesUseCase(
            undelivered_message_repo=container.undelivered_message_repo(),
            event_publisher=container.ticket_event_publisher(),
        ),
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    Logger.base.info('🚀 [Ticket Inventory] Starting up...')

    tracing = TracingConfig(service_name=ServiceNames.TICKET_INVENTORY_SERVICE)
    tracing.setup()
    Logger.base.info('📊 [Ticket Inventory] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Ticket Inventory] Dependency injection wired')

    engine = get_engine()
    tracing.instrument_sqlalchemy(engine=engine)
    await create_db_and_tables(engine)
    Logger.base.info('🗄️  [Ticket Inventory] Database ready + instrumented')

    mq_client = container.mq_client()
    consumer: EventLifecycleMqConsumer | None = None

    # The portal lives on this loop, so consumer-driven use cases share the
    # request path's engine, producer and HTTP client
    async with BlockingPortal() as portal, anyio.create_task_group() as tg:
        if settings.ENABLE_KAFKA:
            await anyio.to_thread.run_sync(KafkaTopicInitializer().ensure_topics_exist)
            await mq_client.connect()

            consumer = EventLifecycleMqConsumer()
            consumer.set_portal(portal)
            tg.start_soon(anyio.to_thread.run_sync, run_consumer, consumer)
            Logger.base.info('📨 [Ticket Inventory] Event lifecycle consumer started')
        else:
            Logger.base.info('⏭️  [Ticket Inventory] Kafka disabled (ENABLE_KAFKA=false)')

        await build_sweeper().start(task_group=tg)
        Logger.base.info('✅ [Ticket Inventory] Startup complete')

        yield

        Logger.base.info('🛑 [Ticket Inventory] Shutting down...')
        if consumer is not None:
            # The thread notices within one poll interval, commits and exits
            consumer.stop()
        tg.cancel_scope.cancel()

    await mq_client.close()
    await container.event_catalog_client().aclose()
    await container.database().dispose()
    Logger.base.info('🗄️  [Ticket Inventory] Connections closed')

    tracing.shutdown()
    container.unwire()
    Logger.base.info('👋 [Ticket Inventory] Shutdown complete')


app = create_app(lifespan=lifespan)
