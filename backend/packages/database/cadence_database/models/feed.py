"""
Feed registry model definition.

Secondary, database-backed copy of the feed registry.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class FeedRow(Base, TimestampMixin):
    """
    Registered RSS feed.

    Attributes:
        id: Feed id, as in the JSON registry.
        original_url: Feed URL (unique, indexed).
        type: ``album`` or ``publisher``.
        title: Human label.
        priority: Load-ordering hint.
        status: ``active`` or ``inactive``.
        source: ``manual`` or ``recursive``.
        discovered_from: URL of the publisher feed that led to this feed.
        added_at: When the feed was registered.
        last_updated: When the feed record last changed.
        position: Insertion order, so reads match the JSON registry order.
    """

    __tablename__ = "feeds"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    original_url: Mapped[str] = mapped_column(String(2000), unique=True, nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), default="album", nullable=False)
    title: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="core", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False, index=True)
    source: Mapped[str] = mapped_column(String(20), default="manual", nullable=False)
    discovered_from: Mapped[str | None] = mapped_column(String(2000))
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    position: Mapped[int] = mapped_column(default=0, nullable=False)
