"""
Administrator Group Authorization

Default authorization seam: a caller is an administrator when it resolves as
a member of the configured administrative group. Policy engines that keep
references to groups register a hook to be told when a group is deleted.
"""

import inspect
from collections.abc import Awaitable, Callable

from app.core.config import MembershipConfig
from app.core.logging import get_logger
from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.interfaces.request_context import IRequestContext
from app.modules.membership.domain.services.membership_resolver import MembershipResolver

logger = get_logger(__name__)

PolicyHook = Callable[[IRequestContext, Group], None | Awaitable[None]]


class AdminGroupAuthorization:
    """Authorization backed by membership of the administrative group."""

    def __init__(self, resolver: MembershipResolver, config: MembershipConfig | None = None):
        self._resolver = resolver
        self._config = config or MembershipConfig()
        self._policy_hooks: list[PolicyHook] = []

    def register_policy_hook(self, hook: PolicyHook) -> None:
        """Call ``hook(context, group)`` before a group is deleted."""
        self._policy_hooks.append(hook)

    async def is_admin(self, context: IRequestContext) -> bool:
        return await self._resolver.is_member_in_context(context, self._config.admin_group_name)

    async def remove_group_policies(self, context: IRequestContext, group: Group) -> None:
        # hook errors propagate and abort the delete
        for hook in self._policy_hooks:
            result = hook(context, group)
            if inspect.isawaitable(result):
                await result

        logger.debug(
            "Group policies removed",
            group_id=str(group.id),
            hook_count=len(self._policy_hooks),
        )


__all__ = ["AdminGroupAuthorization", "PolicyHook"]
