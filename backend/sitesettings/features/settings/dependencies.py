"""Dependency injection for settings feature.

Wires the cache, access gate, repository, document checker and routes
transaction into ``SettingsService``. Every piece is its own dependency so
tests can override one of them through ``app.dependency_overrides``.
"""

import asyncio
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from sitesettings.core import get_db, get_global_settings
from .access import AccessGate
from .cache import SettingsCacheInterface, get_settings_cache
from .permissions import PermissionEngine, RolePermissionEngine
from .pipeline import SettingsEditPipeline
from .repository import SettingsRepositoryInterface, SQLAlchemySettingsRepository
from .routes_config import RoutesConfigTransaction
from .schemas import RequestContext
from .service import SettingsService
from .site_app import RoutesLoader, SiteApp, UrlService
from .validation import DocumentChecker, SchemaDocumentChecker


@lru_cache
def get_url_service() -> UrlService:
    """Process-wide URL service."""
    return UrlService()


@lru_cache
def get_site_app() -> SiteApp:
    """Process-wide site application bound to content/settings/routes.yaml."""
    settings = get_global_settings()
    routes_path = settings.get_content_path("settings") / settings.routes_filename
    return SiteApp(RoutesLoader(routes_path), get_url_service())


@lru_cache
def get_routes_upload_lock() -> Optional[asyncio.Lock]:
    """Single-writer lock for routes uploads, None when disabled."""
    if not get_global_settings().serialize_routes_uploads:
        return None
    return asyncio.Lock()


@lru_cache
def get_permission_engine() -> PermissionEngine:
    return RolePermissionEngine()


async def get_request_context(
    x_actor_id: Annotated[Optional[str], Header()] = None,
    x_actor_role: Annotated[Optional[str], Header()] = None,
    x_api_key: Annotated[Optional[str], Header()] = None,
) -> Optional[RequestContext]:
    """Build the caller context from headers set by the authenticating proxy.

    :returns: RequestContext, or None for anonymous requests
    """
    if not x_actor_id and not x_api_key:
        return None
    return RequestContext(user=x_actor_id, role=x_actor_role, api_key=x_api_key)


def get_cache() -> SettingsCacheInterface:
    return get_settings_cache()


def get_access_gate(
    cache: Annotated[SettingsCacheInterface, Depends(get_cache)],
    engine: Annotated[PermissionEngine, Depends(get_permission_engine)],
) -> AccessGate:
    return AccessGate(cache, engine)


async def get_settings_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SettingsRepositoryInterface:
    """
    Get settings repository instance.

    :param db: Database session
    :returns: Settings repository implementation
    """
    return SQLAlchemySettingsRepository(db)


def get_document_checker() -> DocumentChecker:
    return SchemaDocumentChecker()


def get_routes_transaction(
    access_gate: Annotated[AccessGate, Depends(get_access_gate)],
) -> RoutesConfigTransaction:
    settings = get_global_settings()
    return RoutesConfigTransaction(
        settings_path=settings.get_content_path("settings"),
        access_gate=access_gate,
        url_service=get_url_service(),
        site_app=get_site_app(),
        routes_filename=settings.routes_filename,
        backup_format=settings.routes_backup_format,
        lock=get_routes_upload_lock(),
    )


async def get_settings_service(
    cache: Annotated[SettingsCacheInterface, Depends(get_cache)],
    access_gate: Annotated[AccessGate, Depends(get_access_gate)],
    repository: Annotated[SettingsRepositoryInterface, Depends(get_settings_repository)],
    checker: Annotated[DocumentChecker, Depends(get_document_checker)],
    routes_transaction: Annotated[RoutesConfigTransaction, Depends(get_routes_transaction)],
) -> SettingsService:
    """
    Get settings service instance.

    :returns: SettingsService with injected dependencies
    """
    pipeline = SettingsEditPipeline(cache, access_gate, checker, repository)
    return SettingsService(cache, access_gate, pipeline, routes_transaction)


# Type aliases for cleaner dependency injection
SettingsServiceDep = Annotated[SettingsService, Depends(get_settings_service)]
RequestContextDep = Annotated[Optional[RequestContext], Depends(get_request_context)]

__all__ = [
    "get_settings_service",
    "get_settings_repository",
    "get_request_context",
    "get_site_app",
    "get_url_service",
    "SettingsServiceDep",
    "RequestContextDep",
]
