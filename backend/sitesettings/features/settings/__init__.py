"""Settings feature module.

This module provides site settings management: the settings cache,
permission-gated browse/read/edit and the routes.yaml upload/download.
"""

from .router import router as settings_router
from .service import SettingsService
from .models import SettingORM
from .cache import SettingsCache, SettingsCacheInterface, get_settings_cache
from .access import AccessGate
from .pipeline import SettingsEditPipeline, EditStage
from .routes_config import RoutesConfigTransaction
from .schemas import (
    RequestContext,
    SettingValue,
    SettingsEnvelope,
    ShorthandEdit,
    BatchEdit,
)
from .dependencies import get_settings_service, SettingsServiceDep

__all__ = [
    # Router
    "settings_router",
    # Service
    "SettingsService",
    "SettingsEditPipeline",
    "EditStage",
    "RoutesConfigTransaction",
    "AccessGate",
    # Cache
    "SettingsCache",
    "SettingsCacheInterface",
    "get_settings_cache",
    # Models
    "SettingORM",
    # Schemas
    "RequestContext",
    "SettingValue",
    "SettingsEnvelope",
    "ShorthandEdit",
    "BatchEdit",
    # Dependencies
    "get_settings_service",
    "SettingsServiceDep",
]
