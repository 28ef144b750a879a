from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from .errors import InvalidRangeError, PersistenceError, ReaderError
from .locks import KeyedLocks
from .models import ReadingProgress, ReadingSession, ReadingStats
from .reporting import ErrorReporter, LoggingErrorReporter
from .repository import ReaderRepository
from .text import count_words, document_key

logger = logging.getLogger(__name__)

STATS_LOCK_KEY = "stats"


def reading_speed_wpm(words: int, seconds: int) -> float:
    if seconds <= 0:
        return 0.0
    return words / (seconds / 60.0)


class SessionTracker:
    """
    Tracks the active reading session and the open document's progress, and
    folds finished sessions into the lifetime ReadingStats.

    There is at most one session at a time. Starting a new one closes the
    previous session first. Writes go through the repository; when a write
    fails the in-memory state still advances and the failure is reported,
    so reading continues with unsaved progress instead of stopping.
    """

    def __init__(
        self,
        repository: ReaderRepository,
        error_reporter: Optional[ErrorReporter] = None,
        locks: Optional[KeyedLocks] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.repo = repository
        self.error_reporter = error_reporter or LoggingErrorReporter()
        self.locks = locks or KeyedLocks()
        self.clock = clock
        self._stats = ReadingStats()
        self._stats_loaded = False
        self._progress: Optional[ReadingProgress] = None
        self._session: Optional[ReadingSession] = None

    @property
    def stats(self) -> ReadingStats:
        return replace(self._stats)

    @property
    def progress(self) -> Optional[ReadingProgress]:
        if self._progress is None:
            return None
        return replace(self._progress, bookmarks=list(self._progress.bookmarks), notes=dict(self._progress.notes))

    @property
    def session(self) -> Optional[ReadingSession]:
        return replace(self._session) if self._session else None

    @property
    def has_active_session(self) -> bool:
        return self._session is not None

    # region Loading
    async def load_stats(self) -> ReadingStats:
        async with self.locks.for_key(STATS_LOCK_KEY):
            try:
                saved = await asyncio.to_thread(self.repo.get_stats)
            except PersistenceError as exc:
                logger.warning("Could not read reading stats, starting from zero: %s", exc)
                self.error_reporter.report("session_tracker.load_stats", exc)
                saved = None
            self._stats = saved or ReadingStats()
            self._stats_loaded = True
        return self.stats

    async def open_document(self, document_id: str) -> ReadingProgress:
        if not self._stats_loaded:
            await self.load_stats()
        key = document_key(document_id)
        async with self.locks.for_key(f"progress:{key}"):
            try:
                saved = await asyncio.to_thread(self.repo.get_progress, key)
            except PersistenceError as exc:
                logger.warning("Could not read progress for %s: %s", document_id, exc)
                self.error_reporter.report("session_tracker.open_document", exc, {"document_id": document_id})
                saved = None
            self._progress = saved or ReadingProgress(document_id=key, last_read_at=self.clock())
        logger.info("Opened %s at page %s", document_id, self._progress.current_page)
        return self.progress

    # endregion

    # region Sessions
    async def start(self) -> ReadingSession:
        if not self._stats_loaded:
            await self.load_stats()
        if self._session is not None:
            await self.end()
        self._session = ReadingSession(started_at=self.clock())
        logger.debug("Reading session started at %s", self._session.started_at)
        return self.session

    def record_page_advance(self, words: int = 0) -> bool:
        if self._session is None:
            return False
        self._session.pages_read += 1
        self._session.words_read += max(words, 0)
        return True

    async def end(self) -> Optional[ReadingSession]:
        if self._session is None:
            return None
        if not self._stats_loaded:
            await self.load_stats()
        session = self._session
        self._session = None
        session.ended_at = self.clock()
        elapsed = int((session.ended_at - session.started_at).total_seconds())
        elapsed = max(elapsed, 0)

        async with self.locks.for_key(STATS_LOCK_KEY):
            stats = replace(self._stats)
            stats.total_pages_read += session.pages_read
            stats.total_time_spent_seconds += elapsed
            stats.total_words_read += session.words_read
            stats.average_reading_speed_wpm = reading_speed_wpm(
                stats.total_words_read, stats.total_time_spent_seconds
            )
            stats.last_session_date = session.ended_at.date()
            stats.sessions_count += 1
            await self._persist("session_tracker.end", self.repo.save_stats, stats)
            self._stats = stats

        logger.info(
            "Reading session ended: %s pages in %ss (%s sessions total)",
            session.pages_read,
            elapsed,
            self._stats.sessions_count,
        )
        return replace(session)

    # endregion

    # region Progress
    async def set_total_pages(self, total_pages: int) -> ReadingProgress:
        if total_pages < 0:
            raise InvalidRangeError(f"Total pages must be >= 0, got {total_pages}")
        progress = self._require_progress()
        async with self.locks.for_key(f"progress:{progress.document_id}"):
            updated = replace(self._progress, total_pages=total_pages)
            if total_pages and updated.current_page > total_pages:
                updated.current_page = total_pages
            await self._persist("session_tracker.set_total_pages", self.repo.save_progress, updated)
            self._progress = updated
        return self.progress

    async def update_page_progress(self, page: int, page_text: Optional[str] = None) -> bool:
        """
        Move the open document to ``page``. Returns False when ``page`` is
        already the current page (repeated notifications are ignored).
        """
        if page < 1:
            raise InvalidRangeError(f"Page must be >= 1, got {page}")
        progress = self._require_progress()
        if progress.total_pages and page > progress.total_pages:
            raise InvalidRangeError(f"Page {page} is past the last page ({progress.total_pages})")
        async with self.locks.for_key(f"progress:{progress.document_id}"):
            if page == self._progress.current_page:
                return False
            updated = replace(self._progress, current_page=page, last_read_at=self.clock())
            await self._persist("session_tracker.update_page_progress", self.repo.save_progress, updated)
            self._progress = updated
        self.record_page_advance(count_words(page_text) if page_text else 0)
        return True

    async def toggle_bookmark(self, page: int) -> bool:
        """Returns True when the page is bookmarked after the call."""
        if page < 1:
            raise InvalidRangeError(f"Page must be >= 1, got {page}")
        progress = self._require_progress()
        async with self.locks.for_key(f"progress:{progress.document_id}"):
            bookmarks = set(self._progress.bookmarks)
            if page in bookmarks:
                bookmarks.discard(page)
            else:
                bookmarks.add(page)
            updated = replace(self._progress, bookmarks=sorted(bookmarks))
            await self._persist("session_tracker.toggle_bookmark", self.repo.save_progress, updated)
            self._progress = updated
        return page in self._progress.bookmarks

    async def add_note(self, page: int, text: Optional[str]) -> None:
        if not text or not text.strip():
            await self.remove_note(page)
            return
        if page < 1:
            raise InvalidRangeError(f"Page must be >= 1, got {page}")
        progress = self._require_progress()
        async with self.locks.for_key(f"progress:{progress.document_id}"):
            notes = dict(self._progress.notes)
            notes[page] = text
            updated = replace(self._progress, notes=notes)
            await self._persist("session_tracker.add_note", self.repo.save_progress, updated)
            self._progress = updated

    async def remove_note(self, page: int) -> None:
        progress = self._require_progress()
        async with self.locks.for_key(f"progress:{progress.document_id}"):
            if page not in self._progress.notes:
                return
            notes = dict(self._progress.notes)
            del notes[page]
            updated = replace(self._progress, notes=notes)
            await self._persist("session_tracker.remove_note", self.repo.save_progress, updated)
            self._progress = updated

    def is_bookmarked(self, page: int) -> bool:
        return bool(self._progress and page in self._progress.bookmarks)

    def note_for(self, page: int) -> Optional[str]:
        if self._progress is None:
            return None
        return self._progress.notes.get(page)

    # endregion

    def _require_progress(self) -> ReadingProgress:
        if self._progress is None:
            raise ReaderError("No document is open; call open_document() first")
        return self._progress

    async def _persist(self, source: str, write, record) -> bool:
        try:
            await asyncio.to_thread(write, record)
        except PersistenceError as exc:
            logger.warning("%s: progress kept in memory only: %s", source, exc)
            self.error_reporter.report(source, exc)
            return False
        return True
