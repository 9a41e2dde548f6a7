"""SQLAlchemy ORM models."""

from portfolio.models.base import Base
from portfolio.models.user import Account, UserRole

__all__ = ["Account", "Base", "UserRole"]
