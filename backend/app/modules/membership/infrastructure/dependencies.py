"""Membership module dependency configuration."""

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.core.config import DatabaseConfig, MembershipConfig, get_settings
from app.core.events.bus import InMemoryEventBus
from app.core.events.types import IEventBus
from app.core.logging import get_logger
from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.interfaces.authorization_service import IAuthorizationService
from app.modules.membership.domain.interfaces.group_graph_store import IGroupGraphStore
from app.modules.membership.domain.services.closure_builder import ClosureBuilder
from app.modules.membership.domain.services.closure_cache import ClosureCache
from app.modules.membership.domain.services.group_directory import GroupDirectory
from app.modules.membership.domain.services.group_mutator import GroupMutator
from app.modules.membership.domain.services.membership_resolver import MembershipResolver
from app.modules.membership.domain.value_objects.principal import Principal
from app.modules.membership.infrastructure.authorization import AdminGroupAuthorization
from app.modules.membership.infrastructure.context import GroupContext
from app.modules.membership.infrastructure.models import group_model  # noqa: F401

logger = get_logger(__name__)


@dataclass
class MembershipServices:
    """Services sharing one store, one closure cache and one event bus."""

    store: IGroupGraphStore
    cache: ClosureCache
    builder: ClosureBuilder
    resolver: MembershipResolver
    mutator: GroupMutator
    directory: GroupDirectory
    authorization: IAuthorizationService
    event_bus: IEventBus
    config: MembershipConfig

    def context(
        self,
        principal: Principal | None = None,
        ambient_groups: Sequence[Group] = (),
        identifiers: Sequence[str] = (),
        correlation_id: str | None = None,
    ) -> GroupContext:
        """Open a unit of work for one caller."""
        return GroupContext(
            store=self.store,
            cache=self.cache,
            builder=self.builder,
            event_bus=self.event_bus,
            principal=principal,
            ambient_groups=ambient_groups,
            identifiers=identifiers,
            correlation_id=correlation_id,
        )


def build_membership_services(
    store: IGroupGraphStore,
    config: MembershipConfig | None = None,
    event_bus: IEventBus | None = None,
    authorization: IAuthorizationService | None = None,
    cache: ClosureCache | None = None,
) -> MembershipServices:
    """Wire the membership services around a store.

    Args:
        store: Group graph store, usually bound to one session
        config: Reserved names and paging; read from settings if omitted
        event_bus: Notification bus; a new in-memory bus if omitted
        authorization: Authorization seam; admin-group membership if omitted
        cache: Shared closure cache; a new empty cache if omitted
    """
    config = config or get_settings().membership
    event_bus = event_bus or InMemoryEventBus()
    cache = cache if cache is not None else ClosureCache()

    builder = ClosureBuilder(store)
    resolver = MembershipResolver(store, cache, config)
    authorization = authorization or AdminGroupAuthorization(resolver, config)
    mutator = GroupMutator(store, builder, cache, authorization, config)

    return MembershipServices(
        store=store,
        cache=cache,
        builder=builder,
        resolver=resolver,
        mutator=mutator,
        directory=GroupDirectory(store, config),
        authorization=authorization,
        event_bus=event_bus,
        config=config,
    )


def create_engine(config: DatabaseConfig | None = None) -> AsyncEngine:
    """Create the async engine; in-memory SQLite shares one connection."""
    config = config or get_settings().database
    if ":memory:" in config.url:
        return create_async_engine(config.url, echo=config.echo, poolclass=StaticPool)
    return create_async_engine(config.url, echo=config.echo)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Create the group graph tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Group graph schema ready", url=engine.url.render_as_string(hide_password=True))


__all__ = [
    "MembershipServices",
    "build_membership_services",
    "create_engine",
    "create_schema",
    "create_session_factory",
]
