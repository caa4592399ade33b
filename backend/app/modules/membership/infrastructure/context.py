"""
Group Context

Request-scoped unit of work for group graph mutations. It carries the acting
principal and its ambient groups, collects notifications and holds the
closure snapshot staged by a rebuild. Nothing becomes visible to other
readers before ``commit``: the store commits first, then the staged snapshot
replaces the shared one, then the queued notifications are published.

Usage Example:
    async with services.context(principal=admin, identifiers=("ip:10.0.0.1",)) as ctx:
        lab = await services.mutator.create(ctx, "Lab1")
        await services.mutator.add_sub_group(ctx, research, lab)
        await services.mutator.update(ctx, research, lab)
"""

from collections.abc import Sequence

from app.core.events.types import IEventBus
from app.core.logging import clear_context, get_logger, log_context
from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.events import MembershipEvent
from app.modules.membership.domain.interfaces.group_graph_store import IGroupGraphStore
from app.modules.membership.domain.services.closure_builder import ClosureBuilder
from app.modules.membership.domain.services.closure_cache import ClosureCache
from app.modules.membership.domain.value_objects.closure import ClosureSnapshot
from app.modules.membership.domain.value_objects.principal import Principal

logger = get_logger(__name__)


class GroupContext:
    """Unit of work and request context for one caller."""

    def __init__(
        self,
        store: IGroupGraphStore,
        cache: ClosureCache,
        builder: ClosureBuilder,
        event_bus: IEventBus,
        principal: Principal | None = None,
        ambient_groups: Sequence[Group] = (),
        identifiers: Sequence[str] = (),
        correlation_id: str | None = None,
    ):
        self._store = store
        self._cache = cache
        self._builder = builder
        self._event_bus = event_bus
        self._principal = principal
        self._ambient_groups = tuple(ambient_groups)
        self._identifiers = tuple(identifiers)
        self.correlation_id = correlation_id

        self.closure_stale = False
        self.staged_closure: ClosureSnapshot | None = None
        self._events: list[MembershipEvent] = []

    @property
    def current_principal(self) -> Principal | None:
        return self._principal

    @property
    def ambient_groups(self) -> tuple[Group, ...]:
        return self._ambient_groups

    @property
    def identifiers(self) -> tuple[str, ...]:
        return self._identifiers

    @property
    def pending_events(self) -> tuple[MembershipEvent, ...]:
        return tuple(self._events)

    def add_event(self, event: MembershipEvent) -> None:
        self._events.append(event)

    def stage_closure(self, snapshot: ClosureSnapshot) -> None:
        self.staged_closure = snapshot

    async def commit(self) -> None:
        """
        Make the unit of work durable and visible.

        A rebuild still pending from edge changes runs first. If the store
        commit fails the context is rolled back and the error propagates.
        """
        if self.closure_stale:
            self.stage_closure(await self._builder.rebuild(self._cache.next_version()))
            self.closure_stale = False

        try:
            await self._store.commit()
        except Exception:
            logger.exception("Group context commit failed", event_count=len(self._events))
            await self.rollback()
            raise

        if self.staged_closure is not None:
            self._cache.replace(self.staged_closure)
            self.staged_closure = None

        events, self._events = self._events, []
        for event in events:
            await self._event_bus.publish(event, correlation_id=self.correlation_id)

        logger.debug("Group context committed", event_count=len(events))

    async def rollback(self) -> None:
        """Discard pending writes, the staged closure and queued notifications."""
        await self._store.rollback()
        discarded = len(self._events)
        self._events.clear()
        self.staged_closure = None
        self.closure_stale = False

        logger.debug("Group context rolled back", discarded_events=discarded)

    async def __aenter__(self) -> "GroupContext":
        log_context(
            correlation_id=self.correlation_id,
            principal_id=str(self._principal.id) if self._principal else None,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            clear_context()


__all__ = ["GroupContext"]
