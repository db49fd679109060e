"""Ownership of the built schedule index for one feed store."""

import asyncio
import logging
from pathlib import Path

from journey_planner.data.feed_reader import read_feed
from journey_planner.services.schedule_index import ScheduleIndex

logger = logging.getLogger(__name__)


class IndexStore:
    """Builds the ScheduleIndex for a database once and hands it out.

    The index is built lazily on first use and replaced wholesale by
    reload() after the feed is re-ingested; searches already holding the
    previous index keep using it.

    Usage:
        store = IndexStore(db_path)
        index = await store.get()
        # after ingestion
        await store.reload()
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path
        self._index: ScheduleIndex | None = None
        self._lock = asyncio.Lock()

    async def get(self) -> ScheduleIndex:
        """Return the built index, building it on first call."""
        async with self._lock:
            if self._index is None:
                self._index = await self._build()
            return self._index

    async def reload(self) -> ScheduleIndex:
        """Rebuild the index from the database."""
        async with self._lock:
            self._index = await self._build()
            logger.info("ScheduleIndex reloaded")
            return self._index

    @property
    def is_loaded(self) -> bool:
        return self._index is not None

    async def _build(self) -> ScheduleIndex:
        feed = await read_feed(self.db_path)
        return await asyncio.to_thread(ScheduleIndex.build, feed)
