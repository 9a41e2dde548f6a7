"""Core app configuration and database."""

from portfolio.core.config import Settings, get_settings
from portfolio.core.database import Database, get_db

__all__ = ["Database", "Settings", "get_db", "get_settings"]
