"""Permission engine used by the settings access gate.

The settings feature only asks one question: "can this actor perform this
action on this resource?". ``PermissionEngine`` is that boundary; the
role-based engine below is the default answer and can be swapped through
dependency injection.
"""

from typing import Dict, FrozenSet, Mapping, Optional, Protocol, Tuple

import structlog

from sitesettings.core.exceptions import NoPermissionError
from .messages import NO_PERMISSION_TO_ACTION
from .schemas import RequestContext

logger = structlog.get_logger(__name__)

Permission = Tuple[str, str]  # (doc_name, action)


class PermissionEngine(Protocol):
    """Decides whether an actor may perform an action on a resource."""

    async def check(
        self,
        context: Optional[RequestContext],
        action: str,
        doc_name: str,
        key: Optional[str] = None,
    ) -> None:
        """Return normally when allowed, raise when denied."""
        ...


ALL_SETTING_ACTIONS: FrozenSet[Permission] = frozenset(
    {("setting", "browse"), ("setting", "read"), ("setting", "edit")}
)
READ_ONLY_SETTING_ACTIONS: FrozenSet[Permission] = frozenset(
    {("setting", "browse"), ("setting", "read")}
)

DEFAULT_ROLE_PERMISSIONS: Dict[str, FrozenSet[Permission]] = {
    "Owner": ALL_SETTING_ACTIONS,
    "Administrator": ALL_SETTING_ACTIONS,
    "Admin Integration": ALL_SETTING_ACTIONS,
    "Editor": READ_ONLY_SETTING_ACTIONS,
    "Author": READ_ONLY_SETTING_ACTIONS,
    "Contributor": READ_ONLY_SETTING_ACTIONS,
}

API_KEY_ROLE = "Admin Integration"


class RolePermissionEngine:
    """Role table based permission engine.

    Internal contexts are always allowed. External contexts need an actor
    (user or API key); users are checked by their role, API keys by the
    integration role.
    """

    def __init__(self, role_permissions: Optional[Mapping[str, FrozenSet[Permission]]] = None):
        self.role_permissions = dict(role_permissions or DEFAULT_ROLE_PERMISSIONS)

    def _role_for(self, context: RequestContext) -> Optional[str]:
        if context.user:
            return context.role
        if context.api_key:
            return API_KEY_ROLE
        return None

    async def check(
        self,
        context: Optional[RequestContext],
        action: str,
        doc_name: str,
        key: Optional[str] = None,
    ) -> None:
        if context is not None and context.internal:
            return

        role = None
        if context is not None and not context.is_anonymous:
            role = self._role_for(context)
        allowed = self.role_permissions.get(role or "", frozenset())

        if (doc_name, action) not in allowed:
            logger.debug(
                "permission_denied",
                role=role,
                action=action,
                doc_name=doc_name,
                key=key,
            )
            raise NoPermissionError(
                NO_PERMISSION_TO_ACTION,
                context={"role": role, "action": action, "doc_name": doc_name},
            )
