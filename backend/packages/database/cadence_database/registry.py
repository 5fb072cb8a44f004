"""
Database-backed feed registry.

Read by the ``database`` albums source. It is kept in step with the JSON
registry by ``sync_from``.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cadence_core import get_logger
from cadence_core.schemas import (
    FeedPriority,
    FeedRecord,
    FeedSource,
    FeedStatus,
    FeedType,
)

from .models import FeedRow

logger = get_logger(__name__)


def row_to_record(row: FeedRow) -> FeedRecord:
    return FeedRecord(
        id=row.id,
        original_url=row.original_url,
        type=FeedType(row.type),
        title=row.title,
        priority=FeedPriority(row.priority),
        status=FeedStatus(row.status),
        source=FeedSource(row.source),
        discovered_from=row.discovered_from,
        added_at=row.added_at,
        last_updated=row.last_updated,
    )


def record_to_row(record: FeedRecord, position: int) -> FeedRow:
    return FeedRow(
        id=record.id,
        original_url=record.original_url,
        type=record.type.value,
        title=record.title,
        priority=record.priority.value,
        status=record.status.value,
        source=record.source.value,
        discovered_from=record.discovered_from,
        added_at=record.added_at,
        last_updated=record.last_updated,
        position=position,
    )


class DatabaseFeedRegistry:
    """Feed registry stored in a SQL table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize database registry.

        Args:
            session_factory: Async session factory.
        """
        self.session_factory = session_factory

    async def get_all(self) -> list[FeedRecord]:
        async with self.session_factory() as session:
            result = await session.execute(select(FeedRow).order_by(FeedRow.position))
            return [row_to_record(row) for row in result.scalars().all()]

    async def get_active(self) -> list[FeedRecord]:
        """
        Get all active feeds in registration order.

        Returns:
            Active feed records.
        """
        async with self.session_factory() as session:
            stmt = (
                select(FeedRow)
                .where(FeedRow.status == FeedStatus.ACTIVE.value)
                .order_by(FeedRow.position)
            )
            result = await session.execute(stmt)
            return [row_to_record(row) for row in result.scalars().all()]

    async def sync_from(self, records: list[FeedRecord]) -> int:
        """
        Replace the table contents with ``records``.

        Args:
            records: Feed records, usually the whole JSON registry.

        Returns:
            Number of rows written.
        """
        async with self.session_factory() as session:
            async with session.begin():
                await session.execute(delete(FeedRow))
                session.add_all(
                    record_to_row(record, position) for position, record in enumerate(records)
                )

        logger.info("Synced database registry", extra={"feeds": len(records)})
        return len(records)
