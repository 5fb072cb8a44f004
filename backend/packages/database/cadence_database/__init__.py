"""
Database package.

SQLAlchemy models, session management and the database-backed feed registry.
"""

from .models import Base, FeedRow, TimestampMixin
from .registry import DatabaseFeedRegistry
from .session import (
    close_database,
    create_tables,
    get_session_context,
    get_session_factory,
    init_database,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "FeedRow",
    "DatabaseFeedRegistry",
    "init_database",
    "create_tables",
    "close_database",
    "get_session_context",
    "get_session_factory",
]
