"""Core infrastructure module.

This module exports core utilities used across features.
Never imports from features - only from external libraries.
"""

from .config import Settings, get_settings, get_global_settings
from .database import get_db, get_session, db_manager
from .exceptions import (
    SettingsError,
    NotFoundError,
    NoPermissionError,
    BadRequestError,
    ValidationError,
    InternalServerError,
    is_settings_error,
)
from .models import Base

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "get_global_settings",
    # Database
    "get_db",
    "get_session",
    "db_manager",
    # Exceptions
    "SettingsError",
    "NotFoundError",
    "NoPermissionError",
    "BadRequestError",
    "ValidationError",
    "InternalServerError",
    "is_settings_error",
    # Models
    "Base",
]
