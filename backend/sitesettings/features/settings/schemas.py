"""Pydantic schemas for site settings."""

import json
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SettingType(str, Enum):
    """Known access classes. The ``type`` field itself stays an open string."""

    CORE = "core"
    BLOG = "blog"
    THEME = "theme"
    APP = "app"
    PRIVATE = "private"
    MEMBERS = "members"


class SettingAction(str, Enum):
    """Actions checked against the permission engine."""

    BROWSE = "browse"
    READ = "read"
    EDIT = "edit"


class SettingValue(BaseModel):
    """A single typed configuration entry as held in the settings cache."""

    key: str = Field(..., min_length=1, description="Unique setting key")
    value: Optional[str] = Field(None, description="String-encoded setting value")
    type: str = Field(SettingType.CORE.value, description="Access class")
    id: Optional[str] = Field(None, description="Persistence identifier")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class RequestContext(BaseModel):
    """Who is calling.

    ``internal`` marks calls made by the system itself; everything else is an
    external request, identified by a user (with a role) or an API key.
    """

    internal: bool = False
    user: Optional[str] = None
    role: Optional[str] = None
    api_key: Optional[str] = Field(None, repr=False)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def internal_context(cls) -> "RequestContext":
        """Build the trusted context used by in-process callers."""
        return cls(internal=True)

    @property
    def is_anonymous(self) -> bool:
        """True when no actor is attached to an external context."""
        return not self.internal and not self.user and not self.api_key


class SettingsFilters(BaseModel):
    """Filters applied to a settings result."""

    type: str


class SettingsMeta(BaseModel):
    """Result metadata; ``filters`` is absent when no filter was applied."""

    filters: Optional[SettingsFilters] = None


class SettingsEnvelope(BaseModel):
    """API response envelope for settings."""

    settings: List[SettingValue] = Field(default_factory=list)
    meta: SettingsMeta = Field(default_factory=SettingsMeta)

    def to_response(self) -> dict:
        """Serialize, leaving ``meta.filters`` out when no filter was applied."""
        return {
            "settings": [setting.model_dump(mode="json") for setting in self.settings],
            "meta": self.meta.model_dump(mode="json", exclude_none=True),
        }


def canonical_value(value: Any) -> str:
    """Serialize a caller-supplied value to its single stored string form."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


class SettingEditItem(BaseModel):
    """One key/value change inside an edit batch."""

    key: str = Field(..., min_length=1, description="Setting key")
    value: Optional[str] = Field(None, description="New string-encoded value")

    model_config = ConfigDict(extra="ignore")


class ShorthandEdit(BaseModel):
    """Edit of a single setting given as key and value."""

    key: str = Field(..., min_length=1)
    value: Any = None


class BatchEdit(BaseModel):
    """Edit of several settings at once, ``{"settings": [...]}``."""

    settings: List[dict] = Field(default_factory=list)


EditRequest = Union[ShorthandEdit, BatchEdit]


class NormalizedEdit(BaseModel):
    """Single internal representation of an edit request."""

    entries: List[SettingEditItem]
    type_hint: Optional[str] = None

    @property
    def keys(self) -> List[str]:
        return [entry.key for entry in self.entries]
