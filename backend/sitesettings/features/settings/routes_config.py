"""
Transactional replacement of the routes configuration file.

``routes.yaml`` is treated as a setting: it is uploaded and downloaded through
the settings API. Replacing it follows a compensating-action protocol:

1. back up the current file under a timestamped name;
2. atomically replace it with the uploaded content;
3. release (not destroy) the URL generators bound to the old config;
4. reload the site application against the new file;
5. if the reload fails, restore the backup, reload once more and re-raise
   the original error. A failure of that second reload propagates as is.
"""

import asyncio
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

import structlog

from sitesettings.core.exceptions import NotFoundError, is_settings_error
from . import messages
from .access import AccessGate
from .schemas import RequestContext, SettingAction
from .site_app import SiteAppProtocol, UrlServiceProtocol

logger = structlog.get_logger(__name__)


def atomic_copy(source: Path, destination: Path) -> None:
    """Copy ``source`` over ``destination`` so readers never see a partial file."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp"
    )
    os.close(fd)
    try:
        shutil.copyfile(source, tmp_name)
        os.replace(tmp_name, destination)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class RoutesConfigTransaction:
    """Upload and download of ``routes.yaml`` with backup and rollback."""

    def __init__(
        self,
        settings_path: Union[str, Path],
        access_gate: AccessGate,
        url_service: UrlServiceProtocol,
        site_app: SiteAppProtocol,
        routes_filename: str = "routes.yaml",
        backup_format: str = "routes-%Y-%m-%d-%H-%M-%S.yaml",
        lock: Optional[asyncio.Lock] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings_path = Path(settings_path)
        self.access_gate = access_gate
        self.url_service = url_service
        self.site_app = site_app
        self.routes_filename = routes_filename
        self.backup_format = backup_format
        self.lock = lock
        self.clock = clock

    @property
    def routes_path(self) -> Path:
        return self.settings_path / self.routes_filename

    def backup_path_for(self, moment: datetime) -> Path:
        return self.settings_path / moment.strftime(self.backup_format)

    async def upload(
        self, source_path: Union[str, Path], context: Optional[RequestContext]
    ) -> None:
        """Replace ``routes.yaml`` with the file at ``source_path``.

        :raises NoPermissionError: If the caller may not edit settings
        """
        await self.access_gate.handle_permissions(SettingAction.EDIT, context)

        if self.lock is None:
            await self._replace(Path(source_path))
            return

        async with self.lock:
            await self._replace(Path(source_path))

    async def _replace(self, source_path: Path) -> None:
        routes_path = self.routes_path
        backup_path: Optional[Path] = None

        if await asyncio.to_thread(routes_path.exists):
            backup_path = self.backup_path_for(self.clock())
            await asyncio.to_thread(shutil.copyfile, routes_path, backup_path)
            logger.info("routes_backup_created", backup=backup_path.name)

        await asyncio.to_thread(atomic_copy, source_path, routes_path)
        logger.info("routes_file_replaced", path=str(routes_path))

        self.url_service.reset_generators(release_resources_only=True)

        try:
            await self.site_app.reload()
        except Exception as reload_error:
            logger.warning(
                "routes_reload_failed_rolling_back",
                error_type=reload_error.__class__.__name__,
                backup=backup_path.name if backup_path else None,
            )
            await self._restore(backup_path)
            # A failure here propagates instead of the original error
            await self.site_app.reload()
            logger.info("routes_rollback_completed")
            raise

        logger.info("routes_upload_completed")

    async def _restore(self, backup_path: Optional[Path]) -> None:
        if backup_path is None:
            # There was no routes file before, so the site falls back to defaults
            await asyncio.to_thread(self.routes_path.unlink, missing_ok=True)
            return
        await asyncio.to_thread(atomic_copy, backup_path, self.routes_path)

    async def download(self, context: Optional[RequestContext]) -> str:
        """Return the raw content of ``routes.yaml``, or ``""`` if there is none.

        :raises NoPermissionError: If the caller may not browse settings
        :raises NotFoundError: If the file exists but cannot be read
        """
        try:
            await self.access_gate.handle_permissions(SettingAction.BROWSE, context)
            return await asyncio.to_thread(
                self.routes_path.read_text, encoding="utf-8"
            )
        except FileNotFoundError:
            return ""
        except Exception as e:
            if is_settings_error(e):
                raise
            logger.warning("routes_download_failed", error_type=e.__class__.__name__)
            raise NotFoundError(messages.ROUTES_FILE_UNREADABLE, original_error=e) from e
