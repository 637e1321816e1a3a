"""
PostgreSQL database package for the gateway.

Provides:
- SQLAlchemy 2.0 async ORM models
- Connection management
- Repository layer for accounts and usage events
"""

from .connection import DatabaseManager, db, get_session
from .models import Base, UserModel, UsageEventModel

__all__ = [
    # Connection management
    "DatabaseManager",
    "db",
    "get_session",
    # Models
    "Base",
    "UserModel",
    "UsageEventModel",
]
