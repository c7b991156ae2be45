"""Settings service: the browse/read/edit/upload/download operations.

Thin orchestration layer:
- Browse and read go through the settings cache, the access gate and the
  result projector
- Edit is delegated to the edit pipeline
- Upload and download are delegated to the routes config transaction
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import structlog

from sitesettings.core.decorators import service_error_handler
from .access import AccessGate
from .cache import SettingsCacheInterface
from .pipeline import SettingsEditPipeline
from .projector import settings_result
from .routes_config import RoutesConfigTransaction
from .schemas import (
    EditRequest,
    RequestContext,
    SettingAction,
    SettingsEnvelope,
    ShorthandEdit,
)

logger = structlog.get_logger(__name__)


class SettingsService:
    """Service for handling settings API operations."""

    def __init__(
        self,
        cache: SettingsCacheInterface,
        access_gate: AccessGate,
        edit_pipeline: SettingsEditPipeline,
        routes_transaction: RoutesConfigTransaction,
    ):
        self.cache = cache
        self.access_gate = access_gate
        self.edit_pipeline = edit_pipeline
        self.routes_transaction = routes_transaction

    @service_error_handler("SettingsService")
    async def browse(
        self,
        type_filter: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> SettingsEnvelope:
        """List the settings visible to the caller.

        Anonymous callers get public ``blog`` settings only; external callers
        never see ``core`` settings or ``permalinks``.

        :param type_filter: Comma-separated access classes, e.g. "blog,theme"
        :param context: Caller context, None for anonymous requests
        :returns: Settings envelope
        """
        result = settings_result(self.cache.get_all(), type_filter)
        result.settings = await self.access_gate.filter_browsable(
            result.settings, context
        )
        return result

    @service_error_handler("SettingsService")
    async def read(
        self, key: str, context: Optional[RequestContext] = None
    ) -> SettingsEnvelope:
        """Read a single setting.

        :raises NotFoundError: Unknown key or ``permalinks``
        :raises NoPermissionError: Core setting from an external request,
            or the caller may not read this setting
        """
        setting = await self.access_gate.can_access(key, SettingAction.READ, context)
        return settings_result([setting])

    @service_error_handler("SettingsService")
    async def edit(
        self,
        payload: Union[EditRequest, Dict[str, Any], str],
        value: Any = None,
        context: Optional[RequestContext] = None,
        type_filter: Optional[str] = None,
    ) -> SettingsEnvelope:
        """Edit one or more settings.

        ``payload`` may be a batch (``BatchEdit`` or ``{"settings": [...]}``),
        a ``ShorthandEdit``, or a plain key string with ``value`` alongside.
        """
        if isinstance(payload, str):
            payload = ShorthandEdit(key=payload, value=value)
        return await self.edit_pipeline.run(payload, context, type_filter)

    @service_error_handler("SettingsService")
    async def upload(
        self, path: Union[str, Path], context: Optional[RequestContext] = None
    ) -> None:
        """Replace ``routes.yaml`` with the uploaded file at ``path``."""
        await self.routes_transaction.upload(path, context)

    @service_error_handler("SettingsService")
    async def download(self, context: Optional[RequestContext] = None) -> str:
        """Return the current ``routes.yaml`` content, empty if there is none."""
        return await self.routes_transaction.download(context)
