"""Authorization Service Interface

The policy engine is outside this module; group mutations only ask it
whether the caller may change the graph and tell it to forget a group that
is about to be deleted.
"""

from typing import Protocol

from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.interfaces.request_context import IRequestContext


class IAuthorizationService(Protocol):
    """Authorization seam consumed by GroupMutator."""

    async def is_admin(self, context: IRequestContext) -> bool:
        """True if the context may create and delete groups."""
        ...

    async def remove_group_policies(self, context: IRequestContext, group: Group) -> None:
        """Detach every policy that names the group."""
        ...
