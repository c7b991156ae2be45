"""
Edit pipeline for a batch of setting changes.

One batch moves through fixed stages:

    RECEIVED -> NORMALIZED -> AUTHORIZED -> VALIDATED -> PERSISTED -> CACHE_REFRESHED

Any stage may fail; nothing is persisted unless every entry passed
authorization and the whole document passed validation.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError
import structlog

from sitesettings.core.exceptions import BadRequestError, NotFoundError
from . import messages
from .access import PERMALINKS_KEY, AccessGate
from .cache import SettingsCacheInterface
from .projector import settings_result
from .repository import SettingsRepositoryInterface
from .schemas import (
    BatchEdit,
    EditRequest,
    NormalizedEdit,
    RequestContext,
    SettingAction,
    SettingEditItem,
    SettingsEnvelope,
    ShorthandEdit,
    canonical_value,
)
from .validation import DocumentChecker

logger = structlog.get_logger(__name__)

DOC_NAME = "settings"
TYPE_HINT_KEY = "type"


class EditStage(str, Enum):
    RECEIVED = "received"
    NORMALIZED = "normalized"
    AUTHORIZED = "authorized"
    VALIDATED = "validated"
    PERSISTED = "persisted"
    CACHE_REFRESHED = "cache_refreshed"


def normalize_edit(payload: Union[EditRequest, Dict[str, Any]]) -> NormalizedEdit:
    """Turn shorthand or batch input into a single internal representation.

    Values are coerced to their canonical string form, and a synthetic
    ``type`` entry is pulled out of the batch as the result type filter.
    """
    if isinstance(payload, dict) and "settings" not in payload and "key" in payload:
        try:
            payload = ShorthandEdit.model_validate(payload)
        except PydanticValidationError:
            raise BadRequestError(messages.MISSING_SETTING_KEY)

    if isinstance(payload, dict):
        if "settings" not in payload:
            raise BadRequestError(messages.NO_ROOT_KEY_PROVIDED.format(doc_name=DOC_NAME))
        try:
            payload = BatchEdit.model_validate(payload)
        except PydanticValidationError:
            raise BadRequestError(messages.NO_ROOT_KEY_PROVIDED.format(doc_name=DOC_NAME))

    if isinstance(payload, ShorthandEdit):
        raw_entries: List[Dict[str, Any]] = [{"key": payload.key, "value": payload.value}]
    else:
        raw_entries = [dict(entry) for entry in payload.settings]

    type_hint: Optional[str] = None
    entries: List[SettingEditItem] = []
    for raw in raw_entries:
        if not isinstance(raw.get("key"), str) or not raw["key"]:
            raise BadRequestError(messages.MISSING_SETTING_KEY)
        value = canonical_value(raw.get("value"))
        if raw["key"] == TYPE_HINT_KEY:
            type_hint = value
            continue
        entries.append(SettingEditItem(key=raw["key"], value=value))

    if not entries:
        raise BadRequestError(messages.EMPTY_EDIT_BATCH)

    return NormalizedEdit(entries=entries, type_hint=type_hint)


class SettingsEditPipeline:
    """Runs one edit batch through authorization, validation and persistence."""

    def __init__(
        self,
        cache: SettingsCacheInterface,
        access_gate: AccessGate,
        checker: DocumentChecker,
        repository: SettingsRepositoryInterface,
    ):
        self.cache = cache
        self.access_gate = access_gate
        self.checker = checker
        self.repository = repository

    def _advance(self, stage: EditStage, keys: List[str]) -> EditStage:
        logger.debug("settings_edit_stage", stage=stage.value, keys=keys)
        return stage

    async def run(
        self,
        payload: Union[EditRequest, Dict[str, Any]],
        context: Optional[RequestContext] = None,
        type_filter: Optional[str] = None,
    ) -> SettingsEnvelope:
        """Apply an edit batch.

        :param payload: ShorthandEdit, BatchEdit or a ``{"settings": [...]}`` dict
        :param context: Caller context
        :param type_filter: Access class filter for the result, used when the
            batch carries no ``type`` entry of its own
        :returns: Projected view of the edited settings
        """
        stage = self._advance(EditStage.RECEIVED, [])

        edit = normalize_edit(payload)
        stage = self._advance(EditStage.NORMALIZED, edit.keys)

        # Reserved key is reported as missing before any permission check
        if edit.entries[0].key == PERMALINKS_KEY:
            raise NotFoundError(messages.RESOURCE_NOT_FOUND)

        for entry in edit.entries:
            await self.access_gate.can_access(entry.key, SettingAction.EDIT, context)
        stage = self._advance(EditStage.AUTHORIZED, edit.keys)

        checked = await self.checker.check_object(
            {DOC_NAME: [entry.model_dump() for entry in edit.entries]}, DOC_NAME
        )
        entries = [SettingEditItem.model_validate(item) for item in checked[DOC_NAME]]
        stage = self._advance(EditStage.VALIDATED, edit.keys)

        updated = await self.repository.edit(entries)
        stage = self._advance(EditStage.PERSISTED, edit.keys)

        self.cache.refresh(await self.repository.get_all())
        stage = self._advance(EditStage.CACHE_REFRESHED, edit.keys)

        logger.info("settings_edited", keys=edit.keys, stage=stage.value)
        return settings_result(updated, edit.type_hint or type_filter)
