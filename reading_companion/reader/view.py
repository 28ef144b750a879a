from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, Union

from .bionic import BionicTransformer
from .config_store import ConfigStore
from .errors import InvalidRangeError, ReaderError, SynthesisCommandError
from .focus import FocusNavigator
from .models import TTSPhase
from .position import PositionStore
from .reporting import ErrorReporter, LoggingErrorReporter
from .text import normalize_page_text, split_lines
from .tracker import SessionTracker
from .tts import TTSOrchestrator

logger = logging.getLogger(__name__)


class PageRenderer(Protocol):
    async def request_page(self, page: int) -> None:
        ...


class PageTextSource(Protocol):
    async def page_text(self, page: int) -> str:
        ...


class ReadingView:
    """
    One open document. Receives the renderer's notifications
    (``on_page_changed``, ``on_load_complete``, ``on_error``), keeps the
    position store, session tracker and TTS orchestrator in step, and sends
    page requests back to the renderer.

    When speech finishes a page the orchestrator asks for the next one
    through ``request_page``; once the renderer confirms the page change the
    new page is read aloud if a text source is available.
    """

    def __init__(
        self,
        document_id: str,
        renderer: PageRenderer,
        config_store: ConfigStore,
        positions: PositionStore,
        tracker: SessionTracker,
        tts: Optional[TTSOrchestrator] = None,
        text_source: Optional[PageTextSource] = None,
        bionic: Optional[BionicTransformer] = None,
        error_reporter: Optional[ErrorReporter] = None,
    ):
        self.document_id = document_id
        self.renderer = renderer
        self.config_store = config_store
        self.positions = positions
        self.tracker = tracker
        self.tts = tts
        self.text_source = text_source
        self.bionic = bionic or BionicTransformer()
        self.error_reporter = error_reporter or LoggingErrorReporter()
        self.current_page = 1
        self.total_pages = 0
        self.loaded = False
        self.error: Optional[str] = None
        self.is_open = False
        self._speak_after_advance = False

    async def open(self) -> int:
        progress = await self.tracker.open_document(self.document_id)
        saved_page = await self.positions.load(self.document_id)
        # Speculative until the renderer reports the page count.
        self.current_page = saved_page or progress.current_page
        if self.tts is not None:
            self.tts.request_page = self._advance_for_speech
            self._sync_tts()
        await self.tracker.start()
        self.is_open = True
        logger.info("Opened view for %s at page %s", self.document_id, self.current_page)
        return self.current_page

    async def close(self) -> None:
        if not self.is_open:
            return
        self.is_open = False
        self._speak_after_advance = False
        if self.tts is not None:
            await self.tts.shutdown()
            self.tts.request_page = None
        await self.tracker.end()
        logger.info("Closed view for %s", self.document_id)

    # region Renderer notifications
    async def on_load_complete(self, number_of_pages: int) -> None:
        self.total_pages = number_of_pages
        self.loaded = True
        self.error = None
        progress = await self.tracker.set_total_pages(number_of_pages)
        if number_of_pages and self.current_page > number_of_pages:
            self.current_page = progress.current_page
        self._sync_tts()

    async def on_page_changed(self, page: int, page_text: Optional[str] = None) -> None:
        if page < 1:
            raise InvalidRangeError(f"Page must be >= 1, got {page}")
        if self.total_pages and page > self.total_pages:
            raise InvalidRangeError(f"Page {page} is past the last page ({self.total_pages})")
        self.current_page = page
        await self.positions.save(self.document_id, page)
        await self.tracker.update_page_progress(page, page_text)
        self._sync_tts()
        if self._speak_after_advance:
            self._speak_after_advance = False
            await self._speak_page(page, page_text)

    async def on_error(self, message: str) -> None:
        self.error = message
        self._speak_after_advance = False
        logger.error("Renderer failed for %s: %s", self.document_id, message)
        self.error_reporter.report("renderer", ReaderError(message), {"document_id": self.document_id})
        if self.tts is not None:
            await self.tts.shutdown()

    # endregion

    # region Navigation
    async def request_page(self, page: int) -> None:
        """Ask the renderer for ``page``. Callers clamp; only non-positive pages are refused."""
        if page < 1:
            raise InvalidRangeError(f"Page must be >= 1, got {page}")
        await self.renderer.request_page(page)

    async def next_page(self) -> bool:
        if self.current_page >= self.total_pages:
            return False
        await self.request_page(self.current_page + 1)
        return True

    async def previous_page(self) -> bool:
        if self.current_page <= 1:
            return False
        await self.request_page(self.current_page - 1)
        return True

    # endregion

    # region Reading aids
    def render_text(self, text: str) -> str:
        if self.config_store.settings.bionic_reading:
            return self.bionic(text)
        return text

    def focus_navigator(
        self,
        lines: Union[int, str],
        on_line_change: Optional[Callable[[int], None]] = None,
    ) -> FocusNavigator:
        total_lines = lines if isinstance(lines, int) else max(len(split_lines(lines)), 1)
        return FocusNavigator(
            total_lines=total_lines,
            enabled=self.config_store.settings.focus_mode,
            on_line_change=on_line_change,
        )

    async def toggle_bookmark(self) -> bool:
        return await self.tracker.toggle_bookmark(self.current_page)

    async def set_note(self, text: Optional[str]) -> None:
        await self.tracker.add_note(self.current_page, text)

    async def remove_note(self) -> None:
        await self.tracker.remove_note(self.current_page)

    # endregion

    # region Speech
    async def toggle_speech(self) -> TTSPhase:
        """Pause while speaking, resume while paused, otherwise read the current page."""
        if self.tts is None:
            raise ReaderError("No speech engine is configured")
        if self.tts.phase == TTSPhase.SPEAKING:
            await self.tts.pause()
        elif self.tts.phase == TTSPhase.PAUSED:
            await self.tts.resume()
        elif not self.tts.is_active:
            await self._speak_page(self.current_page)
        return self.tts.phase

    async def stop_speech(self) -> None:
        self._speak_after_advance = False
        if self.tts is not None:
            await self.tts.stop()

    async def _advance_for_speech(self, page: int) -> None:
        self._speak_after_advance = True
        await self.request_page(page)

    async def _speak_page(self, page: int, page_text: Optional[str] = None) -> bool:
        if self.tts is None:
            return False
        text = page_text
        if text is None:
            if self.text_source is None:
                logger.info("No text source for %s; speech stops at page %s", self.document_id, page)
                return False
            text = await self.text_source.page_text(page)
        text = normalize_page_text(text)
        if not text:
            logger.info("Page %s of %s has no text to read", page, self.document_id)
            return False
        try:
            return await self.tts.speak(text)
        except SynthesisCommandError as exc:
            self.error_reporter.report("view.speak", exc, {"page": page})
            raise

    # endregion

    def _sync_tts(self) -> None:
        if self.tts is not None:
            self.tts.set_page_context(self.current_page, self.total_pages)
