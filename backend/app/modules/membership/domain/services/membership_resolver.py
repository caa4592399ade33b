"""
Membership Resolver

Answers membership questions from the store's direct facts and the closure
cache. It never rebuilds the closure; a resolution always reads whichever
snapshot the cache holds when the call starts.
"""

from collections.abc import Iterable, Sequence
from uuid import UUID

from app.core.config import MembershipConfig
from app.core.logging import get_logger
from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.interfaces.group_graph_store import IGroupGraphStore
from app.modules.membership.domain.interfaces.request_context import IRequestContext
from app.modules.membership.domain.services.closure_cache import ClosureCache
from app.modules.membership.domain.value_objects.principal import Principal

logger = get_logger(__name__)


def _named(groups: Iterable[Group], group_name: str) -> bool:
    return any(group.name == group_name for group in groups)


class MembershipResolver:
    """Read side of the group graph."""

    def __init__(
        self,
        store: IGroupGraphStore,
        cache: ClosureCache,
        config: MembershipConfig | None = None,
    ):
        self._store = store
        self._cache = cache
        self._config = config or MembershipConfig()

    @property
    def anonymous_group_name(self) -> str:
        return self._config.anonymous_group_name

    async def is_member(
        self,
        principal: Principal | None,
        group_name: str | None,
        ambient_groups: Sequence[Group] = (),
    ) -> bool:
        """
        Check whether the principal belongs to the named group.

        The universal group matches every caller by name alone, even when no
        such group is stored. An unauthenticated caller belongs only to the
        ambient groups of its session.

        Args:
            principal: Acting principal, None for an unauthenticated caller
            group_name: Name of the group to test
            ambient_groups: Groups asserted for this session
        """
        if group_name == self._config.anonymous_group_name:
            return True
        if group_name is None:
            return False

        if principal is None:
            return _named(ambient_groups, group_name)

        if ambient_groups:
            if _named(ambient_groups, group_name):
                return True
            member_groups = await self.all_member_groups(principal, ambient_groups)
            return _named(member_groups, group_name)

        direct_groups = await self._store.find_groups_containing_principal(principal.id)
        if _named(direct_groups, group_name):
            return True

        target = await self._store.find_group_by_name(group_name)
        if target is None:
            return False

        return target.id in self._cache.ancestors_of(group.id for group in direct_groups)

    async def is_member_in_context(self, context: IRequestContext, group_name: str | None) -> bool:
        """``is_member`` for the context's own principal and ambient groups."""
        return await self.is_member(
            context.current_principal, group_name, context.ambient_groups
        )

    async def all_member_groups(
        self,
        principal: Principal | None,
        ambient_groups: Sequence[Group] = (),
    ) -> set[Group]:
        """
        Every group the principal belongs to, directly or through sub-groups.

        Direct groups, the given ambient groups and the universal group (when
        stored) are gathered first; their ancestors are then added with a
        single closure lookup and one batched fetch.
        """
        gathered: dict[UUID, Group] = {}

        if principal is not None:
            for group in await self._store.find_groups_containing_principal(principal.id):
                gathered[group.id] = group

        for group in ambient_groups:
            gathered.setdefault(group.id, group)

        anonymous = await self._store.find_group_by_name(self._config.anonymous_group_name)
        if anonymous is not None:
            gathered.setdefault(anonymous.id, anonymous)

        ancestor_ids = self._cache.ancestors_of(gathered) - gathered.keys()
        if ancestor_ids:
            for group in await self._store.find_groups(ancestor_ids):
                gathered[group.id] = group

        return set(gathered.values())

    async def all_member_groups_in_context(
        self, context: IRequestContext, principal: Principal | None
    ) -> set[Group]:
        """
        ``all_member_groups`` as seen from a session.

        The session's ambient groups are included only when the question is
        about the session's own principal.
        """
        ambient: Sequence[Group] = ()
        if principal == context.current_principal:
            ambient = context.ambient_groups
        elif context.ambient_groups:
            logger.debug(
                "Ambient groups withheld for foreign principal",
                principal_id=str(principal.id) if principal else None,
            )
        return await self.all_member_groups(principal, ambient)

    async def all_members(self, group: Group) -> set[UUID]:
        """Every principal in the group, directly or through any sub-group."""
        descendant_ids = self._cache.descendants_of(group.id)
        members = set(group.direct_members)
        if descendant_ids:
            members |= await self._store.find_principals_in_groups(descendant_ids)
        return members

    async def is_empty(self, group: Group) -> bool:
        """
        True if neither the group nor any sub-group below it has a principal.

        Walks the direct edges rather than the closure; each group is visited
        at most once, so a cycle in the graph cannot loop.
        """
        visited = {group.id}
        pending = [group]

        while pending:
            current = pending.pop()
            if current.direct_members:
                return False

            unseen = current.direct_children - visited
            if not unseen:
                continue
            visited |= unseen
            pending.extend(await self._store.find_groups(unseen))

        return True

    def is_direct_member(self, group: Group, principal: Principal | None) -> bool:
        """Direct membership, with every caller a member of the universal group."""
        if group.name == self._config.anonymous_group_name:
            return True
        return principal is not None and group.has_principal(principal.id)

    def contains_group(self, parent: Group, child: Group) -> bool:
        """True if ``child`` is a direct sub-group of ``parent``."""
        return parent.contains_child(child)

    def is_sub_group(self, ancestor: Group, descendant: Group) -> bool:
        """True if ``descendant`` is reachable below ``ancestor`` in the closure."""
        return self._cache.is_ancestor(ancestor.id, descendant.id)


__all__ = ["MembershipResolver"]
