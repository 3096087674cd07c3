"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from ticket_inventory.platform.config.core_setting import Settings
from ticket_inventory.platform.database.orm_db_setting import Database
from ticket_inventory.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from ticket_inventory.platform.message_queue.kafka_mq_client import KafkaMqClient
from ticket_inventory.service.ticketing.driven_adapter.catalog.event_catalog_client_impl import (
    EventCatalogClientImpl,
)
from ticket_inventory.service.ticketing.driven_adapter.message_queue.ticket_event_publisher_impl import (
    TicketEventPublisherImpl,
)
from ticket_inventory.service.ticketing.driven_adapter.repo.ticket_query_repo_impl import (
    TicketQueryRepoImpl,
)
from ticket_inventory.service.ticketing.driven_adapter.repo.undelivered_message_repo_impl import (
    UndeliveredMessageRepoImpl,
)
from ticket_inventory.service.ticketing.driving_adapter.http_controller.auth.jwt_auth import (
    JwtAuth,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (uses AsyncEngineManager, one engine per event loop)
    database = providers.Singleton(Database)

    # One UoW per atomic step; use cases receive `unit_of_work.provider`
    unit_of_work = providers.Factory(SqlAlchemyUnitOfWork, database=database)

    # Repositories (stateless - use session_factory per-call)
    ticket_query_repo = providers.Singleton(
        TicketQueryRepoImpl, session_factory=database.provided.session
    )
    undelivered_message_repo = providers.Singleton(
        UndeliveredMessageRepoImpl, session_factory=database.provided.session
    )

    # Message Queue
    mq_client = providers.Singleton(
        KafkaMqClient,
        producer_config=config_service.provided.KAFKA_PRODUCER_CONFIG,
        publish_timeout_seconds=config_service.provided.MQ_PUBLISH_TIMEOUT_SECONDS,
        max_attempts=config_service.provided.MQ_PUBLISH_MAX_ATTEMPTS,
        backoff_seconds=config_service.provided.MQ_PUBLISH_BACKOFF_SECONDS,
        enabled=config_service.provided.ENABLE_KAFKA,
    )
    ticket_event_publisher = providers.Singleton(
        TicketEventPublisherImpl,
        mq_client=mq_client,
        undelivered_message_repo=undelivered_message_repo,
    )

    # External services
    event_catalog_client = providers.Singleton(
        EventCatalogClientImpl,
        base_url=config_service.provided.EVENT_CATALOG_URL,
        timeout_seconds=config_service.provided.EVENT_CATALOG_TIMEOUT_SECONDS,
    )

    # Auth service
    jwt_auth = providers.Singleton(JwtAuth)


container = Container()


def setup() -> None:
    container.config_service()
    container.database()


def cleanup() -> None:
    container.reset_singletons()
