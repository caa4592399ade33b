"""
Global pytest configuration and fixtures for all tests.

Provides:
- Test logging configuration
- In-memory and SQLite-backed group graph stores
- Wired membership services and request contexts
- Common principals and an event recorder
"""

import os

os.environ.setdefault("GROUPGRAPH_ENVIRONMENT", "test")
os.environ.setdefault("GROUPGRAPH_LOG_LEVEL", "WARNING")

from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import DatabaseConfig, MembershipConfig
from app.core.events.bus import InMemoryEventBus
from app.modules.membership.domain.events import MembershipEvent
from app.modules.membership.domain.value_objects.principal import Principal
from app.modules.membership.infrastructure.dependencies import (
    MembershipServices,
    build_membership_services,
    create_engine,
    create_schema,
    create_session_factory,
)
from app.modules.membership.infrastructure.repositories.memory_group_graph_store import (
    InMemoryGroupGraphStore,
)
from app.modules.membership.infrastructure.repositories.sql_group_graph_store import (
    SQLGroupGraphStore,
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class EventRecorder:
    """Collects every membership event published on a bus."""

    def __init__(self):
        self.events: list[MembershipEvent] = []

    def __call__(self, event: MembershipEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: str) -> list[MembershipEvent]:
        return [event for event in self.events if event.kind == kind]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def membership_config() -> MembershipConfig:
    return MembershipConfig(anonymous_group_name="Anonymous", admin_group_name="Administrator")


@pytest.fixture
def memory_store() -> InMemoryGroupGraphStore:
    return InMemoryGroupGraphStore()


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def recorder(event_bus: InMemoryEventBus) -> EventRecorder:
    recorder = EventRecorder()
    event_bus.subscribe(MembershipEvent, recorder)
    return recorder


@pytest.fixture
def services(memory_store, membership_config, event_bus) -> MembershipServices:
    """Membership services over a fresh in-memory store."""
    return build_membership_services(memory_store, config=membership_config, event_bus=event_bus)


@pytest.fixture
def admin() -> Principal:
    return Principal(uuid4(), "admin")


@pytest.fixture
def alice() -> Principal:
    return Principal(uuid4(), "alice")


@pytest.fixture
def bob() -> Principal:
    return Principal(uuid4(), "bob")


@pytest.fixture
async def bootstrapped(services: MembershipServices, admin: Principal) -> MembershipServices:
    """Services with the reserved groups created and ``admin`` in the admin group."""
    async with services.context() as ctx:
        _, admin_group = await services.mutator.init_default_groups(ctx)
        await services.mutator.add_member(ctx, admin_group, admin)
    return services


@pytest.fixture
async def admin_context(bootstrapped: MembershipServices, admin: Principal):
    """Open unit of work acting as the administrator; rolled back if left open."""
    ctx = bootstrapped.context(principal=admin, identifiers=("test",))
    yield ctx
    await ctx.rollback()


@pytest.fixture
async def test_engine():
    """Create test database engine with the group graph schema."""
    engine = create_engine(DatabaseConfig(url=TEST_DATABASE_URL))
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    session_factory = create_session_factory(test_engine)

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def sql_store(db_session: AsyncSession) -> SQLGroupGraphStore:
    return SQLGroupGraphStore(db_session)


@pytest.fixture
def sql_services(sql_store, membership_config, event_bus) -> MembershipServices:
    """Membership services over the SQLite store."""
    return build_membership_services(sql_store, config=membership_config, event_bus=event_bus)
