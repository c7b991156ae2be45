"""Main FastAPI application for the site settings service."""

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from sitesettings.core import SettingsError, db_manager, get_global_settings, get_session
from sitesettings.core.logging import setup_logging
from sitesettings.features.settings import get_settings_cache, settings_router
from sitesettings.features.settings.dependencies import get_site_app
from sitesettings.features.settings.repository import SQLAlchemySettingsRepository

settings = get_global_settings()
setup_logging(settings.log_level)
logger = structlog.get_logger(__name__)


async def _load_settings_cache() -> None:
    """Populate the settings cache from the database."""
    async with get_session() as session:
        entries = await SQLAlchemySettingsRepository(session).get_all()
    get_settings_cache().init(entries)


async def _load_site_app_safely() -> None:
    """Build URL generators from routes.yaml with error handling."""
    try:
        await get_site_app().reload()
    except Exception as e:
        logger.error(
            "Failed to load routes configuration",
            error=str(e),
            error_type=type(e).__name__,
        )
        # Don't fail startup; a valid routes.yaml can still be uploaded


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting up site settings service")
    await _load_settings_cache()
    await _load_site_app_safely()
    yield
    logger.info("Shutting down site settings service")
    get_settings_cache().reset()
    await db_manager.close()


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "settings",
        "description": "Site settings and routes.yaml management.",
    },
    {
        "name": "health",
        "description": "Health check and system status endpoints.",
    },
]

# Create FastAPI application
app = FastAPI(
    title="Site Settings Service",
    description="""
    Permission-gated access to site settings.

    ## Features

    * **Browse / Read**: Settings visible to the caller, filterable by type
    * **Edit**: All-or-nothing batch edits
    * **Routes**: Upload and download of routes.yaml with automatic rollback

    ## Authentication

    Authentication is done upstream. The authenticating proxy forwards the
    caller as `X-Actor-Id` / `X-Actor-Role` or `X-Api-Key` headers; requests
    without them are anonymous.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
    debug=settings.debug,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SettingsError)
async def settings_error_handler(request: Request, exc: SettingsError) -> JSONResponse:
    """Render classified errors as ``{"errors": [...]}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"errors": [exc.to_dict()]},
    )


# Include API routers
app.include_router(settings_router, prefix="/api/v1", tags=["settings"])


@app.get("/health", tags=["health"])
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Reports whether the settings cache has been populated.
    """
    cache = get_settings_cache()
    return {
        "status": "healthy" if cache.is_initialized else "starting",
        "settings_loaded": len(cache),
        "version": "1.0.0",
        "debug": settings.debug,
    }
