"""
Unit tests for AdminGroupAuthorization.

Tests cover:
- Administrator detection through the administrative group
- Inherited and ambient administrator membership
- Policy hooks on group deletion
"""

from unittest.mock import AsyncMock

import pytest

from app.modules.membership.domain.value_objects.request_context import RequestContext


class TestAdminGroupAuthorization:
    """Test suite for the default authorization seam."""

    async def test_direct_admin(self, bootstrapped, admin, alice):
        """Test only members of the admin group are administrators."""
        authorization = bootstrapped.authorization

        assert await authorization.is_admin(RequestContext(admin))
        assert not await authorization.is_admin(RequestContext(alice))
        assert not await authorization.is_admin(RequestContext())

    async def test_admin_through_sub_group(self, bootstrapped, admin_context, alice):
        """Test membership of a sub-group of the admin group counts."""
        mutator = bootstrapped.mutator
        admins = await bootstrapped.directory.find_by_name("Administrator")
        ops = await mutator.create(admin_context, "Operators")
        await mutator.add_sub_group(admin_context, admins, ops)
        await mutator.add_member(admin_context, ops, alice)
        await admin_context.commit()

        assert await bootstrapped.authorization.is_admin(RequestContext(alice))

    async def test_admin_through_ambient_group(self, bootstrapped, alice):
        """Test an ambient administrative group counts for the session."""
        admins = await bootstrapped.directory.find_by_name("Administrator")

        assert await bootstrapped.authorization.is_admin(
            RequestContext(alice, ambient_groups=(admins,))
        )

    async def test_policy_hooks_called(self, bootstrapped, admin):
        """Test sync and async hooks are both invoked."""
        authorization = bootstrapped.authorization
        group = await bootstrapped.directory.find_by_name("Anonymous")
        sync_calls = []
        async_hook = AsyncMock()
        authorization.register_policy_hook(lambda ctx, g: sync_calls.append(g.id))
        authorization.register_policy_hook(async_hook)
        context = RequestContext(admin)

        await authorization.remove_group_policies(context, group)

        assert sync_calls == [group.id]
        async_hook.assert_awaited_once_with(context, group)

    async def test_policy_hook_failure_propagates(self, bootstrapped, admin):
        """Test a failing hook aborts the removal."""
        authorization = bootstrapped.authorization
        group = await bootstrapped.directory.find_by_name("Anonymous")
        authorization.register_policy_hook(AsyncMock(side_effect=RuntimeError("policy store down")))

        with pytest.raises(RuntimeError):
            await authorization.remove_group_policies(RequestContext(admin), group)
