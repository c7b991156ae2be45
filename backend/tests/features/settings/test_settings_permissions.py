"""
Tests for the role based permission engine.
"""

import pytest

from sitesettings.core.exceptions import NoPermissionError
from sitesettings.features.settings.permissions import RolePermissionEngine
from sitesettings.features.settings.schemas import RequestContext


@pytest.fixture
def engine():
    return RolePermissionEngine()


class TestRolePermissionEngine:
    @pytest.mark.asyncio
    async def test_internal_context_is_allowed(self, engine):
        await engine.check(RequestContext.internal_context(), "edit", "setting", "title")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["browse", "read", "edit"])
    async def test_administrator_can_do_everything(self, engine, action):
        await engine.check(RequestContext(user="1", role="Administrator"), action, "setting")

    @pytest.mark.asyncio
    async def test_editor_can_read_but_not_edit(self, engine):
        context = RequestContext(user="2", role="Editor")
        await engine.check(context, "read", "setting", "title")

        with pytest.raises(NoPermissionError):
            await engine.check(context, "edit", "setting", "title")

    @pytest.mark.asyncio
    async def test_api_key_uses_integration_role(self, engine):
        await engine.check(RequestContext(api_key="abc"), "edit", "setting", "title")

    @pytest.mark.asyncio
    async def test_missing_actor_is_denied(self, engine):
        with pytest.raises(NoPermissionError):
            await engine.check(None, "browse", "setting")
        with pytest.raises(NoPermissionError):
            await engine.check(RequestContext(), "browse", "setting")

    @pytest.mark.asyncio
    async def test_unknown_role_is_denied(self, engine):
        with pytest.raises(NoPermissionError):
            await engine.check(RequestContext(user="3", role="Visitor"), "read", "setting")

    @pytest.mark.asyncio
    async def test_custom_role_table(self):
        engine = RolePermissionEngine({"Auditor": frozenset({("setting", "browse")})})
        await engine.check(RequestContext(user="4", role="Auditor"), "browse", "setting")
        with pytest.raises(NoPermissionError):
            await engine.check(RequestContext(user="1", role="Administrator"), "browse", "setting")
