"""
Site Settings Service Package.

This package contains the settings management subsystem: the in-memory
settings view, the permission-gated read/write API over it and the
transactional replacement of the routes configuration file.
"""

from .core import get_global_settings, db_manager, get_db

__version__ = "1.0.0"
__author__ = "Site Settings Team"

__all__ = [
    "get_global_settings",
    "db_manager",
    "get_db",
]
