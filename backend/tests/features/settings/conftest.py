"""Shared fixtures for settings feature tests."""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

import pytest

from sitesettings.core.exceptions import NoPermissionError, NotFoundError
from sitesettings.features.settings.access import AccessGate
from sitesettings.features.settings.cache import SettingsCache
from sitesettings.features.settings.pipeline import SettingsEditPipeline
from sitesettings.features.settings.repository import SettingsRepositoryInterface
from sitesettings.features.settings.schemas import (
    RequestContext,
    SettingEditItem,
    SettingValue,
)
from sitesettings.features.settings.validation import SchemaDocumentChecker

CREATED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_setting(key: str, value: Optional[str], type: str) -> SettingValue:
    return SettingValue(
        id=f"id-{key}",
        key=key,
        value=value,
        type=type,
        created_at=CREATED_AT,
        updated_at=CREATED_AT,
    )


class AllowAllEngine:
    """Permission engine that allows everything and records the calls."""

    def __init__(self):
        self.calls = []

    async def check(self, context, action, doc_name, key=None):
        self.calls.append((action, doc_name, key))


class DenyAllEngine:
    """Permission engine that rejects everything with its own message."""

    def __init__(self):
        self.calls = []

    async def check(self, context, action, doc_name, key=None):
        self.calls.append((action, doc_name, key))
        raise NoPermissionError("engine says: role Contributor lacks setting.edit")


class DenyKeysEngine:
    """Permission engine that rejects the listed keys only."""

    def __init__(self, denied_keys):
        self.denied_keys = set(denied_keys)
        self.calls = []

    async def check(self, context, action, doc_name, key=None):
        self.calls.append((action, doc_name, key))
        if key in self.denied_keys:
            raise RuntimeError(f"denied {key}")


class FakeSettingsRepository(SettingsRepositoryInterface):
    """In-memory settings store."""

    def __init__(self, entries: Sequence[SettingValue]):
        self.rows = {entry.key: entry for entry in entries}
        self.edit_calls: List[List[SettingEditItem]] = []
        self.get_all_calls = 0

    async def get_all(self) -> List[SettingValue]:
        self.get_all_calls += 1
        return list(self.rows.values())

    async def edit(self, entries: Sequence[SettingEditItem]) -> List[SettingValue]:
        self.edit_calls.append(list(entries))
        for entry in entries:
            if entry.key not in self.rows:
                raise NotFoundError(f"Problem finding setting: {entry.key}")
        updated = []
        for entry in entries:
            row = self.rows[entry.key].model_copy(
                update={"value": entry.value, "updated_at": datetime.now(timezone.utc)}
            )
            self.rows[entry.key] = row
            updated.append(row)
        return updated


@pytest.fixture
def sample_settings() -> List[SettingValue]:
    return [
        make_setting("db_hash", "8a1b2c", "core"),
        make_setting("title", "My Site", "blog"),
        make_setting("description", "Thoughts and stories", "blog"),
        make_setting("permalinks", "/:slug/", "blog"),
        make_setting("active_theme", "casper", "theme"),
        make_setting("is_private", "false", "private"),
        make_setting("next_update_check", "1700000000", "core"),
    ]


@pytest.fixture
def cache(sample_settings) -> SettingsCache:
    return SettingsCache(sample_settings)


@pytest.fixture
def repository(sample_settings) -> FakeSettingsRepository:
    return FakeSettingsRepository(sample_settings)


@pytest.fixture
def allow_engine() -> AllowAllEngine:
    return AllowAllEngine()


@pytest.fixture
def deny_engine() -> DenyAllEngine:
    return DenyAllEngine()


@pytest.fixture
def gate(cache, allow_engine) -> AccessGate:
    return AccessGate(cache, allow_engine)


@pytest.fixture
def pipeline(cache, gate, repository) -> SettingsEditPipeline:
    return SettingsEditPipeline(cache, gate, SchemaDocumentChecker(), repository)


@pytest.fixture
def internal_context() -> RequestContext:
    return RequestContext.internal_context()


@pytest.fixture
def admin_context() -> RequestContext:
    return RequestContext(user="1", role="Administrator")


@pytest.fixture
def editor_context() -> RequestContext:
    return RequestContext(user="2", role="Editor")
