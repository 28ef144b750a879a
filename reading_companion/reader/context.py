"""
Process-wide reading context.

``ReaderContext`` owns the state that exists once per process: the Settings
record (through ConfigStore), the lifetime ReadingStats and the single
ReadingSession (through SessionTracker), and the TTS playback state (through
TTSOrchestrator). Collaborators receive it explicitly instead of reaching
for globals.

Lifecycle: build it with ``ReaderContext.from_config`` (or the constructor),
then either ``await context.open()`` or let the first ``open_view`` call do
it. ``await context.close()`` ends the active session, stops speech and
releases the repository. ``async with`` does both.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from reading_companion.config import ReaderConfig, get_config

from .accessibility import AccessibilityAdjuster
from .bionic import BionicTransformer
from .config_store import ConfigStore
from .locks import KeyedLocks
from .position import PositionStore
from .reporting import ErrorReporter, LoggingErrorReporter
from .repository import ReaderRepository, build_repository
from .tracker import SessionTracker
from .tts import SynthesisEngine, TTSOrchestrator
from .view import PageRenderer, PageTextSource, ReadingView

logger = logging.getLogger(__name__)


class ReaderContext:
    def __init__(
        self,
        repository: ReaderRepository,
        synthesis_engine: Optional[SynthesisEngine] = None,
        error_reporter: Optional[ErrorReporter] = None,
        config: Optional[ReaderConfig] = None,
    ):
        self.config = config or ReaderConfig()
        self.repository = repository
        self.error_reporter = error_reporter or LoggingErrorReporter()
        self.locks = KeyedLocks()
        self.config_store = ConfigStore(repository, self.error_reporter)
        self.positions = PositionStore(repository, self.error_reporter, self.locks)
        self.tracker = SessionTracker(repository, self.error_reporter, self.locks)
        self.accessibility = AccessibilityAdjuster(self.config_store)
        self.bionic = BionicTransformer(self.config.bionic_bold_ratio, self.config.bionic_min_chars)
        self.tts: Optional[TTSOrchestrator] = None
        if synthesis_engine is not None:
            self.tts = TTSOrchestrator(
                synthesis_engine,
                error_reporter=self.error_reporter,
                rate=self.config.tts_default_rate,
                pitch=self.config.tts_default_pitch,
            )
        self.active_view: Optional[ReadingView] = None
        self._event_task: Optional[asyncio.Task] = None
        self._opened = False

    @classmethod
    def from_config(
        cls,
        config: Optional[ReaderConfig] = None,
        synthesis_engine: Optional[SynthesisEngine] = None,
        error_reporter: Optional[ErrorReporter] = None,
    ) -> "ReaderContext":
        config = config or get_config()
        return cls(build_repository(config.database_url), synthesis_engine, error_reporter, config)

    @property
    def is_open(self) -> bool:
        return self._opened

    async def open(self) -> None:
        if self._opened:
            return
        await self.config_store.load()
        await self.tracker.load_stats()
        if self.tts is not None:
            self._event_task = asyncio.get_running_loop().create_task(self.tts.run())
        self._opened = True
        logger.info("Reader context opened")

    async def open_view(
        self,
        document_id: str,
        renderer: PageRenderer,
        text_source: Optional[PageTextSource] = None,
    ) -> ReadingView:
        """Open ``document_id``; any view that is already open is closed first."""
        await self.open()
        if self.active_view is not None:
            await self.active_view.close()
        view = ReadingView(
            document_id=document_id,
            renderer=renderer,
            config_store=self.config_store,
            positions=self.positions,
            tracker=self.tracker,
            tts=self.tts,
            text_source=text_source,
            bionic=self.bionic,
            error_reporter=self.error_reporter,
        )
        await view.open()
        self.active_view = view
        return view

    async def close(self) -> None:
        if not self._opened:
            return
        if self.active_view is not None:
            await self.active_view.close()
            self.active_view = None
        await self.tracker.end()
        if self.tts is not None:
            await self.tts.shutdown()
        if self._event_task is not None:
            self._event_task.cancel()
            try:
                await self._event_task
            except asyncio.CancelledError:
                pass
            self._event_task = None
        self.repository.close()
        self._opened = False
        logger.info("Reader context closed")

    async def __aenter__(self) -> "ReaderContext":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
