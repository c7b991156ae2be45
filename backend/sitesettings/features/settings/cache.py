"""
Process-wide settings cache.

The cache is the authoritative in-memory view of every setting. It has a
defined lifecycle: ``init`` once at startup, ``refresh`` after each successful
write, and no other mutation point. Both build a complete new mapping and
publish it with a single reference assignment, so a reader sees either the
previous snapshot or the new one, never a mix.
"""

from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

import structlog

from .schemas import SettingValue

logger = structlog.get_logger(__name__)


class SettingsCacheInterface(ABC):
    """Read interface over a settings snapshot.

    Enables substituting a fixed snapshot (tests) or another backing store.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[SettingValue]:
        """Get a setting by exact key.

        :param key: Setting key
        :returns: SettingValue if present, None otherwise
        """
        pass

    @abstractmethod
    def get_all(self) -> Mapping[str, SettingValue]:
        """Get the full snapshot keyed by setting key."""
        pass

    @abstractmethod
    def refresh(self, entries: Iterable[SettingValue]) -> None:
        """Replace the whole snapshot after a successful write."""
        pass


def _build_snapshot(entries: Iterable[SettingValue]) -> Mapping[str, SettingValue]:
    snapshot: dict[str, SettingValue] = {}
    for entry in entries:
        snapshot[entry.key] = entry
    return MappingProxyType(snapshot)


class SettingsCache(SettingsCacheInterface):
    """In-memory settings cache with all-or-nothing refresh."""

    def __init__(self, entries: Optional[Iterable[SettingValue]] = None):
        self._entries: Mapping[str, SettingValue] = MappingProxyType({})
        self._initialized = False
        if entries is not None:
            self.init(entries)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(self, entries: Iterable[SettingValue]) -> None:
        """Populate the cache on startup."""
        self._entries = _build_snapshot(entries)
        self._initialized = True
        logger.info("settings_cache_initialized", count=len(self._entries))

    def refresh(self, entries: Iterable[SettingValue]) -> None:
        snapshot = _build_snapshot(entries)
        self._entries = snapshot
        self._initialized = True
        logger.debug("settings_cache_refreshed", count=len(snapshot))

    def reset(self) -> None:
        """Drop every entry (shutdown and tests)."""
        self._entries = MappingProxyType({})
        self._initialized = False

    def get(self, key: str) -> Optional[SettingValue]:
        return self._entries.get(key)

    def get_all(self) -> Mapping[str, SettingValue]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


# Global cache instance
settings_cache = SettingsCache()


def get_settings_cache() -> SettingsCache:
    """Get the global settings cache instance."""
    return settings_cache
