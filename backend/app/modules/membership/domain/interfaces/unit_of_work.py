"""Membership Unit of Work Interface

A request context that also owns the caller's transaction: it collects
notifications and the closure snapshot staged by a rebuild until commit.
"""

from typing import Protocol

from app.modules.membership.domain.events import MembershipEvent
from app.modules.membership.domain.interfaces.request_context import IRequestContext
from app.modules.membership.domain.value_objects.closure import ClosureSnapshot


class IMembershipUnitOfWork(IRequestContext, Protocol):
    """Request-scoped transaction used by GroupMutator."""

    closure_stale: bool
    staged_closure: ClosureSnapshot | None

    def add_event(self, event: MembershipEvent) -> None:
        """Queue a notification for publication after commit."""
        ...

    def stage_closure(self, snapshot: ClosureSnapshot) -> None:
        """Hold a rebuilt closure until commit swaps it into the cache."""
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
