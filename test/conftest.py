"""
Test Configuration and Fixtures

This module provides:
- Environment setup before any application module reads settings
- In-memory store / unit of work shared by use-case and e2e tests
- Mock publisher and fake event catalog

Architecture:
- Unit tests build use cases directly on the fakes in test/fake_unit_of_work.py
- The Postgres repository test skips itself when no database is reachable
"""

# =============================================================================
# Environment setup MUST happen before any other imports: settings and the
# loguru sinks are configured at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ['ENABLE_KAFKA'] = 'false'
    os.environ.setdefault('POSTGRES_DB', 'ticket_inventory_test_db')
    os.environ.setdefault('SECRET_KEY', 'test_secret_key')
    os.environ.setdefault('EVENT_CATALOG_URL', 'http://event-catalog.test')


_early_setup_test_environment()

from collections.abc import Callable  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402

from test.fake_unit_of_work import (  # noqa: E402
    FakeEventCatalogClient,
    FakeTicketQueryRepo,
    FakeUndeliveredMessageRepo,
    FakeUnitOfWork,
    InMemoryStore,
)
from test.shared.utils import EVENT_ID  # noqa: E402
from ticket_inventory.service.ticketing.app.interface.i_ticket_event_publisher import (  # noqa: E402
    ITicketEventPublisher,
)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store: InMemoryStore) -> Callable[[], FakeUnitOfWork]:
    """Same call shape as `Container.unit_of_work.provider`."""
    return lambda: FakeUnitOfWork(store)


@pytest.fixture
def publisher() -> AsyncMock:
    """Outbound publisher; never raises, like the real one. Staged rows stay in the store."""
    return AsyncMock(spec=ITicketEventPublisher)


@pytest.fixture
def catalog() -> FakeEventCatalogClient:
    client = FakeEventCatalogClient()
    client.publish(EVENT_ID)
    return client


@pytest.fixture
def ticket_query_repo(store: InMemoryStore) -> FakeTicketQueryRepo:
    return FakeTicketQueryRepo(store)


@pytest.fixture
def undelivered_message_repo(store: InMemoryStore) -> FakeUndeliveredMessageRepo:
    return FakeUndeliveredMessageRepo(store)


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)
