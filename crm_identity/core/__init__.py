"""Core app configuration and database."""

from crm_identity.core.config import get_settings, settings
from crm_identity.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
