"""Projection of raw setting entries into the API response envelope."""

from typing import Iterable, List, Mapping, Optional, Union

from .schemas import SettingsEnvelope, SettingsFilters, SettingsMeta, SettingValue

Entries = Union[Mapping[str, SettingValue], Iterable[SettingValue]]


def parse_type_filter(type_filter: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated access class filter, e.g. ``"blog,theme"``."""
    if not type_filter:
        return None
    return [item.strip() for item in type_filter.split(",") if item.strip()]


def filter_settings(
    entries: Entries, type_filter: Optional[str] = None
) -> List[SettingValue]:
    """Keep entries whose access class is in the filter; no filter keeps all."""
    if isinstance(entries, Mapping):
        entries = entries.values()

    filtered_types = parse_type_filter(type_filter)
    if filtered_types is None:
        return list(entries)
    return [entry for entry in entries if entry.type in filtered_types]


def settings_result(
    entries: Entries, type_filter: Optional[str] = None
) -> SettingsEnvelope:
    """Filter entries by access class and wrap them in ``{settings, meta}``.

    ``meta.filters.type`` is only set when a filter was supplied.
    """
    meta = SettingsMeta()
    if type_filter:
        meta = SettingsMeta(filters=SettingsFilters(type=type_filter))

    return SettingsEnvelope(
        settings=filter_settings(entries, type_filter),
        meta=meta,
    )
