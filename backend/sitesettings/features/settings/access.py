"""
Per-entry authorization for settings.

Static rules are applied here before anything is delegated to the
permission engine:

- ``permalinks`` does not exist as far as this API is concerned;
- ``active_theme`` can only be changed through the themes workflow;
- ``core`` settings are reserved for internal callers;
- ``blog`` settings are publicly readable.

Whatever the engine says when it rejects a request is replaced by a uniform
message so callers never learn more than "no permission".
"""

from typing import Iterable, List, Mapping, Optional, Union

import structlog

from sitesettings.core.exceptions import (
    BadRequestError,
    NoPermissionError,
    NotFoundError,
)
from . import messages
from .cache import SettingsCacheInterface
from .permissions import PermissionEngine
from .schemas import RequestContext, SettingAction, SettingType, SettingValue

logger = structlog.get_logger(__name__)

PERMALINKS_KEY = "permalinks"
ACTIVE_THEME_KEY = "active_theme"
SETTING_DOC = "setting"


def is_internal(context: Optional[RequestContext]) -> bool:
    return context is not None and context.internal


class AccessGate:
    """Authorization checks for browse, read and edit of settings."""

    def __init__(self, cache: SettingsCacheInterface, engine: PermissionEngine):
        self.cache = cache
        self.engine = engine

    async def _delegate(
        self,
        context: Optional[RequestContext],
        action: str,
        denial_message: str,
        key: Optional[str] = None,
    ) -> None:
        try:
            await self.engine.check(context, action, SETTING_DOC, key)
        except Exception as e:
            # The engine's own error detail stays on this side of the boundary
            logger.debug(
                "permission_engine_rejected",
                action=action,
                key=key,
                reason=e.__class__.__name__,
            )
            raise NoPermissionError(denial_message) from None

    async def can_browse(self, context: Optional[RequestContext]) -> None:
        """Check the generic "browse settings" capability."""
        await self._delegate(
            context, SettingAction.BROWSE.value, messages.NO_PERMISSION_TO_BROWSE_SETTINGS
        )

    async def filter_browsable(
        self,
        entries: Union[Mapping[str, SettingValue], Iterable[SettingValue]],
        context: Optional[RequestContext],
    ) -> List[SettingValue]:
        """Reduce entries to what this context may see in a browse result.

        Without a context only public ``blog`` settings are returned. With a
        context the engine must allow browsing; external callers never see
        ``core`` settings or ``permalinks``.
        """
        if isinstance(entries, Mapping):
            entries = entries.values()

        if context is None:
            return [
                entry
                for entry in entries
                if entry.type == SettingType.BLOG.value and entry.key != PERMALINKS_KEY
            ]

        await self.can_browse(context)

        if context.internal:
            return list(entries)

        return [
            entry
            for entry in entries
            if entry.type != SettingType.CORE.value and entry.key != PERMALINKS_KEY
        ]

    async def can_access(
        self,
        key: str,
        action: Union[SettingAction, str],
        context: Optional[RequestContext],
    ) -> SettingValue:
        """Authorize one read or edit of a single setting.

        :param key: Setting key
        :param action: ``read`` or ``edit``
        :param context: Caller context, None for anonymous requests
        :returns: The cached setting when access is allowed
        :raises NotFoundError: Unknown key, or the reserved ``permalinks`` key
        :raises BadRequestError: Edit of ``active_theme``
        :raises NoPermissionError: Core setting from an external request,
            or the permission engine rejected the request
        """
        action = SettingAction(action)
        if action is SettingAction.BROWSE:
            raise ValueError("can_access handles read and edit only")

        if key == PERMALINKS_KEY:
            raise NotFoundError(messages.RESOURCE_NOT_FOUND)

        setting = self.cache.get(key)
        if setting is None:
            raise NotFoundError(
                messages.PROBLEM_FINDING_SETTING.format(key=key),
                context={"key": key},
            )

        if action is SettingAction.EDIT and setting.key == ACTIVE_THEME_KEY:
            raise BadRequestError(
                messages.ACTIVE_THEME_SET_VIA_API,
                help=messages.ACTIVE_THEME_SET_VIA_API_HELP,
            )

        if setting.type == SettingType.CORE.value and not is_internal(context):
            raise NoPermissionError(messages.ACCESS_CORE_SETTING_FROM_EXT_REQ)

        if action is SettingAction.READ and setting.type == SettingType.BLOG.value:
            return setting

        await self._delegate(
            context,
            action.value,
            messages.NO_PERMISSION_BY_ACTION[action.value],
            key=key,
        )
        return setting

    async def handle_permissions(
        self, action: Union[SettingAction, str], context: Optional[RequestContext]
    ) -> None:
        """Coarse capability gate for operations not tied to a single key."""
        action = SettingAction(action)
        await self._delegate(
            context, action.value, messages.NO_PERMISSION_BY_ACTION[action.value]
        )
