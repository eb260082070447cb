"""Process-wide registry of persisted Source rows.

Source rows are created lazily the first time a source is scraped and looked
up by code afterwards. Lookups are cached per code as plain snapshots, so a
cached entry never refers to an ORM instance owned by another session.
"""

import asyncio
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pricedrop.core.exceptions import NotFoundError
from pricedrop.models.source import Source
from pricedrop.scrapers.base import SourceConfig

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SourceRecord:
    """Detached view of a Source row."""

    id: uuid.UUID
    code: str
    name: str
    is_active: bool

    @classmethod
    def from_model(cls, source: Source) -> "SourceRecord":
        return cls(id=source.id, code=source.code, name=source.name, is_active=source.is_active)


class SourceRegistry:
    """Get-or-create access to Source rows, cached per source code.

    Concurrent first use of one code inside the process is serialized by a
    per-code lock. A row inserted concurrently by another process surfaces
    as an IntegrityError and is re-read.
    """

    def __init__(self):
        self._cache: Dict[str, SourceRecord] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self.logger = logger.bind(service="source_registry")

    def _lock_for(self, code: str) -> asyncio.Lock:
        lock = self._locks.get(code)
        if lock is None:
            lock = self._locks[code] = asyncio.Lock()
        return lock

    async def _select(self, db: AsyncSession, code: str) -> Optional[Source]:
        result = await db.execute(select(Source).where(Source.code == code))
        return result.scalar_one_or_none()

    async def get(self, db: AsyncSession, code: str) -> Optional[SourceRecord]:
        """Look up a persisted source without creating it."""
        if code in self._cache:
            return self._cache[code]

        source = await self._select(db, code)
        if source is None:
            return None

        record = SourceRecord.from_model(source)
        self._cache[code] = record
        return record

    async def get_or_create(self, db: AsyncSession, config: SourceConfig) -> SourceRecord:
        """Return the Source row for ``config.code``, inserting it on first use.

        Args:
            db: Async database session
            config: Static configuration of the source

        Returns:
            Snapshot of the persisted source
        """
        if config.code in self._cache:
            return self._cache[config.code]

        async with self._lock_for(config.code):
            if config.code in self._cache:
                return self._cache[config.code]

            source = await self._select(db, config.code)
            if source is None:
                source = Source(
                    code=config.code,
                    name=config.name,
                    url_base=config.base_url,
                    scrape_type=config.scrape_type,
                    country=config.country,
                    currency=config.currency,
                    is_active=True,
                )
                db.add(source)
                try:
                    await db.commit()
                    self.logger.info("source_created", source=config.code)
                except IntegrityError:
                    # Inserted by another process between select and commit
                    await db.rollback()
                    source = await self._select(db, config.code)
                    if source is None:
                        raise

            record = SourceRecord.from_model(source)
            self._cache[config.code] = record
            return record

    async def list_sources(self, db: AsyncSession) -> List[Source]:
        result = await db.execute(select(Source).order_by(Source.code))
        return list(result.scalars().all())

    async def set_active(self, db: AsyncSession, code: str, is_active: bool) -> SourceRecord:
        """Enable or disable scraping for a persisted source.

        Raises:
            NotFoundError: If the source has never been persisted
        """
        source = await self._select(db, code)
        if source is None:
            raise NotFoundError("Source", code)

        source.is_active = is_active
        await db.commit()

        record = SourceRecord.from_model(source)
        self._cache[code] = record
        self.logger.info("source_activity_changed", source=code, is_active=is_active)
        return record

    async def deactivate(self, db: AsyncSession, code: str) -> SourceRecord:
        return await self.set_active(db, code, False)


# Global registry instance
source_registry = SourceRegistry()


def get_source_registry() -> SourceRegistry:
    """Get the global source registry instance."""
    return source_registry
