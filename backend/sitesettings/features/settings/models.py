"""Settings model for storing site configuration entries."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime as SQLDateTime,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from sitesettings.core.models import Base


def _new_object_id() -> str:
    return uuid.uuid4().hex[:24]


class SettingORM(Base):
    """One row per setting key."""

    __tablename__ = "settings"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(24),
        primary_key=True,
        default=_new_object_id,
        comment="Object identifier",
    )

    key: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
        comment="Setting key (e.g., 'title', 'active_theme')",
    )

    # Setting value, always stored as a string
    value: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="String-encoded setting value",
    )

    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="core",
        comment="Access class (e.g., 'core', 'blog', 'theme')",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="When this setting was created",
    )

    updated_at: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="When this setting was last updated",
    )

    def __repr__(self) -> str:
        """Return string representation of the setting."""
        # Values are left out so they never leak into logs
        return f"<SettingORM(key='{self.key}', type='{self.type}')>"
