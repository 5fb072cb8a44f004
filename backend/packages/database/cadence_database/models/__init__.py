"""
Database models package.

This module exports all SQLAlchemy models for the Cadence application.
"""

from .base import Base, TimestampMixin
from .feed import FeedRow

__all__ = [
    "Base",
    "TimestampMixin",
    "FeedRow",
]
