from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Dict, Optional

from .errors import InvalidRangeError, PersistenceError
from .locks import KeyedLocks
from .models import PositionRecord
from .reporting import ErrorReporter, LoggingErrorReporter
from .repository import ReaderRepository
from .text import document_key

logger = logging.getLogger(__name__)


class PositionStore:
    """
    Last-read page per document. Failures never reach the caller: a lost
    write only means the reader reopens on an older page, so it is logged
    and handed to the error reporter instead.
    """

    def __init__(
        self,
        repository: ReaderRepository,
        error_reporter: Optional[ErrorReporter] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self.repo = repository
        self.error_reporter = error_reporter or LoggingErrorReporter()
        self.locks = locks or KeyedLocks()
        self._saved_pages: Dict[str, int] = {}

    async def save(self, document_id: str, page: int) -> None:
        if page < 1:
            raise InvalidRangeError(f"Page must be >= 1, got {page}")
        key = document_key(document_id)
        async with self.locks.for_key(f"position:{key}"):
            if self._saved_pages.get(key) == page:
                return
            record = PositionRecord(document_id=key, page=page, saved_at=datetime.utcnow())
            try:
                existing = await asyncio.to_thread(self.repo.get_position, key)
                if existing and existing.page == page:
                    self._saved_pages[key] = page
                    return
                await asyncio.to_thread(self.repo.save_position, record)
            except PersistenceError as exc:
                logger.warning("Could not save position for %s (page %s): %s", document_id, page, exc)
                self.error_reporter.report("position_store.save", exc, {"document_id": document_id, "page": page})
                return
            self._saved_pages[key] = page

    async def load(self, document_id: str) -> Optional[int]:
        key = document_key(document_id)
        async with self.locks.for_key(f"position:{key}"):
            try:
                record = await asyncio.to_thread(self.repo.get_position, key)
            except PersistenceError as exc:
                logger.warning("Could not read position for %s: %s", document_id, exc)
                self.error_reporter.report("position_store.load", exc, {"document_id": document_id})
                return None
        if record is None:
            return None
        self._saved_pages[key] = record.page
        return record.page
