"""Core app configuration, database, errors and authorization gates."""

from taskify.core.config import get_settings, settings
from taskify.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
