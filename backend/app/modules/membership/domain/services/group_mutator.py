"""
Group Mutator

Structural operations on the group graph. Every change is written to the
store at once inside the caller's transaction; the closure rebuild that an
edge change requires is deferred until ``update`` or the commit of the unit
of work, so a batch of edge changes costs one rebuild. Notifications are
queued on the unit of work and published only after commit.
"""

from uuid import UUID

from app.core.config import MembershipConfig
from app.core.errors import PermissionDeniedError
from app.core.logging import get_logger
from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.enums import SubjectType
from app.modules.membership.domain.errors import (
    DuplicateGroupNameError,
    PermanentGroupError,
    SelfReferentialEdgeError,
)
from app.modules.membership.domain.events import (
    GroupCreated,
    GroupDeleted,
    GroupMemberAdded,
    GroupMemberRemoved,
    GroupModified,
)
from app.modules.membership.domain.interfaces.authorization_service import (
    IAuthorizationService,
)
from app.modules.membership.domain.interfaces.group_graph_store import IGroupGraphStore
from app.modules.membership.domain.interfaces.unit_of_work import IMembershipUnitOfWork
from app.modules.membership.domain.services.closure_builder import ClosureBuilder
from app.modules.membership.domain.services.closure_cache import ClosureCache
from app.modules.membership.domain.value_objects.closure import ClosureSnapshot
from app.modules.membership.domain.value_objects.principal import Principal

logger = get_logger(__name__)


class GroupMutator:
    """Write side of the group graph."""

    def __init__(
        self,
        store: IGroupGraphStore,
        builder: ClosureBuilder,
        cache: ClosureCache,
        authorization: IAuthorizationService,
        config: MembershipConfig | None = None,
    ):
        self._store = store
        self._builder = builder
        self._cache = cache
        self._authorization = authorization
        self._config = config or MembershipConfig()

    # Group lifecycle

    async def create(self, context: IMembershipUnitOfWork, name: str | None = None) -> Group:
        """
        Create a new, empty, non-permanent group.

        Raises:
            PermissionDeniedError: If the context is not an administrator
            DuplicateGroupNameError: If the name is already taken
        """
        await self._require_admin(context, "create")
        if name is not None:
            await self._ensure_name_available(name)

        group = await self._store.create_group(name)
        context.add_event(GroupCreated(group_id=group.id, identifiers=context.identifiers))

        logger.info("Group created", group_id=str(group.id), group_name=name)
        return group

    async def delete(self, context: IMembershipUnitOfWork, group: Group) -> None:
        """
        Delete a group and every edge and policy that references it.

        The group is detached from its parents, emptied, the closure is
        rebuilt without it and only then is the record removed.

        Raises:
            PermissionDeniedError: If the context is not an administrator
            PermanentGroupError: If the group is one of the reserved groups
        """
        await self._require_admin(context, "delete")
        try:
            group.ensure_deletable()
        except PermanentGroupError:
            logger.warning(
                "Rejected delete of permanent group",
                group_id=str(group.id),
                group_name=group.name,
            )
            raise

        context.add_event(
            GroupDeleted(
                group_id=group.id,
                group_name=group.name,
                identifiers=context.identifiers,
            )
        )
        await self._authorization.remove_group_policies(context, group)

        for parent in await self._store.find_groups(group.direct_parents):
            parent.remove_child(group)
            await self._store.save_group(parent)

        for child in await self._store.find_groups(group.direct_children):
            group.remove_child(child)

        group.direct_members.clear()
        group.direct_parents.clear()
        group.direct_children.clear()
        group.mark_modified()
        await self._store.save_group(group)

        await self.rebuild_closure(context)
        await self._store.delete_group(group)

        logger.info("Group deleted", group_id=str(group.id), group_name=group.name)

    async def rename(self, context: IMembershipUnitOfWork, group: Group, new_name: str) -> bool:
        """
        Rename a group. Returns False if the name is unchanged.

        Raises:
            PermanentGroupError: If the group is permanent
            DuplicateGroupNameError: If another group already has the name
        """
        if group.permanent:
            logger.warning(
                "Rejected rename of permanent group",
                group_id=str(group.id),
                group_name=group.name,
            )
            raise PermanentGroupError(group.id, group.name, "rename")
        if new_name == group.name:
            return False

        existing = await self._store.find_group_by_name(new_name)
        if existing is not None and existing.id != group.id:
            raise DuplicateGroupNameError(new_name)

        old_name = group.name
        group.rename(new_name)
        await self._store.save_group(group)
        context.add_event(
            GroupModified(
                group_id=group.id,
                details=f"name: {old_name} -> {new_name}",
                identifiers=context.identifiers,
            )
        )

        logger.info(
            "Group renamed",
            group_id=str(group.id),
            old_name=old_name,
            new_name=new_name,
        )
        return True

    # Principal membership

    async def add_member(
        self, context: IMembershipUnitOfWork, group: Group, principal: Principal
    ) -> bool:
        """
        Place a principal directly into a group.

        Returns False, with no write and no notification, if the principal is
        already a direct member or the group is the universal group.
        """
        if group.name == self._config.anonymous_group_name:
            return False
        if not group.add_principal(principal.id):
            return False

        await self._store.save_group(group)
        context.add_event(
            GroupMemberAdded(
                group_id=group.id,
                subject_type=SubjectType.PRINCIPAL,
                subject_id=principal.id,
                subject_label=principal.label,
                identifiers=context.identifiers,
            )
        )
        return True

    async def remove_member(
        self, context: IMembershipUnitOfWork, group: Group, principal: Principal
    ) -> bool:
        """Take a principal out of a group. Returns False if it was not a direct member."""
        if not group.remove_principal(principal.id):
            return False

        await self._store.save_group(group)
        context.add_event(
            GroupMemberRemoved(
                group_id=group.id,
                subject_type=SubjectType.PRINCIPAL,
                subject_id=principal.id,
                subject_label=principal.label,
                identifiers=context.identifiers,
            )
        )
        return True

    # Group edges

    async def add_sub_group(
        self, context: IMembershipUnitOfWork, parent: Group, child: Group
    ) -> bool:
        """
        Make ``child`` a direct sub-group of ``parent``.

        Returns False if ``child`` is already a member of ``parent``, directly
        or through the closure. The closure is marked stale, not rebuilt.

        Raises:
            SelfReferentialEdgeError: If parent and child are the same group
        """
        if parent.id == child.id:
            raise SelfReferentialEdgeError(parent.id)
        if parent.contains_child(child):
            return False

        if child.id in await self._descendants(context, parent.id):
            return False

        if parent.id in await self._descendants(context, child.id):
            logger.warning(
                "Sub-group edge closes a cycle",
                parent_id=str(parent.id),
                child_id=str(child.id),
            )

        parent.add_child(child)
        await self._store.save_group(parent)
        context.closure_stale = True

        context.add_event(
            GroupMemberAdded(
                group_id=parent.id,
                subject_type=SubjectType.GROUP,
                subject_id=child.id,
                subject_label=child.name,
                identifiers=context.identifiers,
            )
        )
        return True

    async def remove_sub_group(
        self, context: IMembershipUnitOfWork, parent: Group, child: Group
    ) -> bool:
        """Drop the direct edge ``parent -> child``. Returns False if absent."""
        if not parent.remove_child(child):
            return False

        await self._store.save_group(parent)
        context.closure_stale = True

        context.add_event(
            GroupMemberRemoved(
                group_id=parent.id,
                subject_type=SubjectType.GROUP,
                subject_id=child.id,
                subject_label=child.name,
                identifiers=context.identifiers,
            )
        )
        return True

    # Persistence

    async def update(self, context: IMembershipUnitOfWork, *groups: Group) -> None:
        """Persist the groups and run the deferred closure rebuild, if any."""
        for group in groups:
            await self._store.save_group(group)

        if context.closure_stale:
            await self.rebuild_closure(context)

    async def rebuild_closure(self, context: IMembershipUnitOfWork) -> ClosureSnapshot:
        """Rebuild the closure now and stage it on the unit of work."""
        snapshot = await self._builder.rebuild(self._cache.next_version())
        context.stage_closure(snapshot)
        context.closure_stale = False
        return snapshot

    async def init_default_groups(self, context: IMembershipUnitOfWork) -> tuple[Group, Group]:
        """
        Ensure the universal and administrative groups exist and are permanent.

        Safe to call repeatedly. No permission check is made, as no
        administrator can exist before the administrative group does.

        Returns:
            The (anonymous, admin) groups
        """
        anonymous = await self._ensure_reserved_group(
            context, self._config.anonymous_group_name
        )
        admin = await self._ensure_reserved_group(context, self._config.admin_group_name)
        return anonymous, admin

    # Helpers

    async def _ensure_reserved_group(self, context: IMembershipUnitOfWork, name: str) -> Group:
        group = await self._store.find_group_by_name(name)

        if group is None:
            group = await self._store.create_group(name)
            group.mark_permanent()
            await self._store.save_group(group)
            context.add_event(
                GroupCreated(group_id=group.id, identifiers=context.identifiers)
            )
            logger.info("Reserved group created", group_id=str(group.id), group_name=name)
        elif not group.permanent:
            group.mark_permanent()
            await self._store.save_group(group)
            logger.info("Reserved group marked permanent", group_id=str(group.id), group_name=name)

        return group

    async def _require_admin(self, context: IMembershipUnitOfWork, action: str) -> None:
        if not await self._authorization.is_admin(context):
            principal = context.current_principal
            logger.warning(
                "Rejected group mutation without admin rights",
                action=action,
                principal_id=str(principal.id) if principal else None,
            )
            raise PermissionDeniedError(
                f"You must be an admin to {action} a group",
                resource="group",
                action=action,
            )

    async def _ensure_name_available(self, name: str) -> None:
        if await self._store.find_group_by_name(name) is not None:
            raise DuplicateGroupNameError(name)

    async def _descendants(
        self, context: IMembershipUnitOfWork, group_id: UUID
    ) -> frozenset[UUID]:
        # pending edge changes make both the cache and any staged snapshot stale
        if context.closure_stale:
            edges = await self._store.list_direct_edges()
            return self._builder.descendants_of(edges, group_id)
        snapshot = context.staged_closure
        if snapshot is None:
            snapshot = self._cache.snapshot
        return snapshot.descendants_of(group_id)


__all__ = ["GroupMutator"]
