"""
Tests for the routes.yaml replacement transaction.
"""

import asyncio
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from sitesettings.core.exceptions import (
    InternalServerError,
    NoPermissionError,
    NotFoundError,
    ValidationError,
)
from sitesettings.features.settings.access import AccessGate
from sitesettings.features.settings.routes_config import RoutesConfigTransaction, atomic_copy

ROUTES_A = "routes: {}\ncollections:\n  /:\n    permalink: /{slug}/\n"
ROUTES_B = "routes:\n  /about/: about\n"
FIXED_NOW = datetime(2024, 5, 6, 7, 8, 9)


class RecordingSiteApp:
    """Site app fake: records the routes content seen on each reload."""

    def __init__(self, routes_path, failures=()):
        self.routes_path = routes_path
        self.failures = list(failures)
        self.seen = []

    async def reload(self):
        content = self.routes_path.read_text() if self.routes_path.exists() else None
        self.seen.append(content)
        if self.failures:
            failure = self.failures.pop(0)
            if failure is not None:
                raise failure


@pytest.fixture
def settings_dir(tmp_path):
    path = tmp_path / "content" / "settings"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def new_routes_file(tmp_path):
    path = tmp_path / "upload.yaml"
    path.write_text(ROUTES_B)
    return path


def make_transaction(settings_dir, gate, site_app, url_service=None, lock=None):
    return RoutesConfigTransaction(
        settings_path=settings_dir,
        access_gate=gate,
        url_service=url_service or MagicMock(),
        site_app=site_app,
        lock=lock,
        clock=lambda: FIXED_NOW,
    )


class TestUpload:
    """Test cases for RoutesConfigTransaction.upload."""

    @pytest.mark.asyncio
    async def test_successful_upload(self, settings_dir, gate, new_routes_file, admin_context):
        routes_path = settings_dir / "routes.yaml"
        routes_path.write_text(ROUTES_A)
        site_app = RecordingSiteApp(routes_path)
        url_service = MagicMock()
        transaction = make_transaction(settings_dir, gate, site_app, url_service)

        await transaction.upload(new_routes_file, admin_context)

        assert routes_path.read_text() == ROUTES_B
        backup = settings_dir / "routes-2024-05-06-07-08-09.yaml"
        assert backup.read_text() == ROUTES_A
        url_service.reset_generators.assert_called_once_with(release_resources_only=True)
        assert site_app.seen == [ROUTES_B]

    @pytest.mark.asyncio
    async def test_reload_failure_restores_backup(
        self, settings_dir, gate, new_routes_file, admin_context
    ):
        routes_path = settings_dir / "routes.yaml"
        routes_path.write_text(ROUTES_A)
        original_error = ValidationError("broken routes")
        site_app = RecordingSiteApp(routes_path, failures=[original_error, None])
        transaction = make_transaction(settings_dir, gate, site_app)

        with pytest.raises(ValidationError) as exc_info:
            await transaction.upload(new_routes_file, admin_context)

        assert exc_info.value is original_error
        assert routes_path.read_text() == ROUTES_A
        # First reload saw the new file, the compensating reload saw the restored one
        assert site_app.seen == [ROUTES_B, ROUTES_A]

    @pytest.mark.asyncio
    async def test_failed_rollback_reload_propagates(
        self, settings_dir, gate, new_routes_file, admin_context
    ):
        routes_path = settings_dir / "routes.yaml"
        routes_path.write_text(ROUTES_A)
        rollback_error = InternalServerError("site app crashed")
        site_app = RecordingSiteApp(
            routes_path, failures=[ValidationError("broken routes"), rollback_error]
        )
        transaction = make_transaction(settings_dir, gate, site_app)

        with pytest.raises(InternalServerError) as exc_info:
            await transaction.upload(new_routes_file, admin_context)

        assert exc_info.value is rollback_error
        assert routes_path.read_text() == ROUTES_A
        # No further retries
        assert len(site_app.seen) == 2

    @pytest.mark.asyncio
    async def test_rollback_without_previous_file_removes_upload(
        self, settings_dir, gate, new_routes_file, admin_context
    ):
        routes_path = settings_dir / "routes.yaml"
        site_app = RecordingSiteApp(routes_path, failures=[RuntimeError("boom"), None])
        transaction = make_transaction(settings_dir, gate, site_app)

        with pytest.raises(RuntimeError):
            await transaction.upload(new_routes_file, admin_context)

        assert not routes_path.exists()
        assert site_app.seen == [ROUTES_B, None]
        assert list(settings_dir.glob("routes-*.yaml")) == []

    @pytest.mark.asyncio
    async def test_permission_denied_touches_nothing(
        self, settings_dir, cache, deny_engine, new_routes_file, editor_context
    ):
        routes_path = settings_dir / "routes.yaml"
        routes_path.write_text(ROUTES_A)
        site_app = RecordingSiteApp(routes_path)
        transaction = make_transaction(settings_dir, AccessGate(cache, deny_engine), site_app)

        with pytest.raises(NoPermissionError):
            await transaction.upload(new_routes_file, editor_context)

        assert routes_path.read_text() == ROUTES_A
        assert site_app.seen == []
        assert deny_engine.calls == [("edit", "setting", None)]

    @pytest.mark.asyncio
    async def test_lock_serializes_uploads(self, settings_dir, gate, tmp_path, admin_context):
        routes_path = settings_dir / "routes.yaml"
        routes_path.write_text(ROUTES_A)
        active = 0
        max_active = 0

        class SlowSiteApp:
            async def reload(self):
                nonlocal active, max_active
                active += 1
                max_active = max(max_active, active)
                await asyncio.sleep(0.01)
                active -= 1

        transaction = make_transaction(
            settings_dir, gate, SlowSiteApp(), lock=asyncio.Lock()
        )
        first = tmp_path / "first.yaml"
        first.write_text(ROUTES_A)
        second = tmp_path / "second.yaml"
        second.write_text(ROUTES_B)

        await asyncio.gather(
            transaction.upload(first, admin_context),
            transaction.upload(second, admin_context),
        )

        assert max_active == 1


class TestDownload:
    """Test cases for RoutesConfigTransaction.download."""

    @pytest.mark.asyncio
    async def test_returns_content(self, settings_dir, gate, admin_context):
        (settings_dir / "routes.yaml").write_text(ROUTES_A)
        transaction = make_transaction(settings_dir, gate, MagicMock())

        assert await transaction.download(admin_context) == ROUTES_A

    @pytest.mark.asyncio
    async def test_missing_file_returns_empty(self, settings_dir, gate, admin_context):
        transaction = make_transaction(settings_dir, gate, MagicMock())
        assert await transaction.download(admin_context) == ""

    @pytest.mark.asyncio
    async def test_unreadable_file_is_not_found(self, settings_dir, gate, admin_context):
        # A directory in place of the file cannot be read as text
        (settings_dir / "routes.yaml").mkdir()
        transaction = make_transaction(settings_dir, gate, MagicMock())

        with pytest.raises(NotFoundError) as exc_info:
            await transaction.download(admin_context)
        assert exc_info.value.original_error is not None

    @pytest.mark.asyncio
    async def test_permission_error_propagates_unchanged(
        self, settings_dir, cache, deny_engine, editor_context
    ):
        transaction = make_transaction(settings_dir, AccessGate(cache, deny_engine), MagicMock())

        with pytest.raises(NoPermissionError):
            await transaction.download(editor_context)
        assert deny_engine.calls == [("browse", "setting", None)]


def test_atomic_copy_leaves_no_temp_files(tmp_path):
    source = tmp_path / "source.yaml"
    source.write_text(ROUTES_B)
    destination = tmp_path / "settings" / "routes.yaml"

    atomic_copy(source, destination)

    assert destination.read_text() == ROUTES_B
    assert [p.name for p in destination.parent.iterdir()] == ["routes.yaml"]
