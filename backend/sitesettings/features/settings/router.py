"""Settings API endpoints for browsing, editing and the routes file."""

import asyncio
import os
import tempfile
from typing import Optional

from fastapi import APIRouter, File, Query, UploadFile, status
from fastapi.responses import PlainTextResponse, Response
import structlog

from .dependencies import RequestContextDep, SettingsServiceDep
from .schemas import BatchEdit

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


def _write_upload(content: bytes) -> str:
    fd, tmp_name = tempfile.mkstemp(suffix=".yaml")
    with os.fdopen(fd, "wb") as tmp:
        tmp.write(content)
    return tmp_name


@router.get("")
async def browse_settings(
    settings_service: SettingsServiceDep,
    context: RequestContextDep,
    type: Optional[str] = Query(None, description="Comma-separated access classes"),
) -> dict:
    """
    List settings visible to the caller.

    Anonymous requests only receive public blog settings.
    """
    result = await settings_service.browse(type_filter=type, context=context)
    return result.to_response()


@router.put("")
async def edit_settings(
    body: BatchEdit,
    settings_service: SettingsServiceDep,
    context: RequestContextDep,
    type: Optional[str] = Query(None, description="Filter applied to the result"),
) -> dict:
    """
    Edit a batch of settings.

    The batch is applied all-or-nothing: if any entry is rejected, nothing
    is saved.
    """
    result = await settings_service.edit(body, context=context, type_filter=type)
    return result.to_response()


@router.get("/routes/yaml", response_class=PlainTextResponse)
async def download_routes(
    settings_service: SettingsServiceDep,
    context: RequestContextDep,
) -> PlainTextResponse:
    """Download the current routes.yaml (empty body when none exists)."""
    content = await settings_service.download(context)
    return PlainTextResponse(
        content,
        media_type="text/yaml",
        headers={"Content-Disposition": 'attachment; filename="routes.yaml"'},
    )


@router.post("/routes/yaml", status_code=status.HTTP_204_NO_CONTENT)
async def upload_routes(
    settings_service: SettingsServiceDep,
    context: RequestContextDep,
    routes: UploadFile = File(..., description="New routes.yaml"),
) -> Response:
    """
    Replace routes.yaml and reload the site.

    If the site cannot load the new file, the previous one is restored
    before the error is returned.
    """
    content = await routes.read()
    tmp_name = await asyncio.to_thread(_write_upload, content)
    try:
        await settings_service.upload(tmp_name, context)
    finally:
        await asyncio.to_thread(os.unlink, tmp_name)

    logger.info("routes_uploaded_via_api", filename=routes.filename)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{key}")
async def read_setting(
    key: str,
    settings_service: SettingsServiceDep,
    context: RequestContextDep,
) -> dict:
    """Read a single setting by key."""
    result = await settings_service.read(key, context)
    return result.to_response()
