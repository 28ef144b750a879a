from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from .errors import InvalidRangeError, SynthesisCommandError
from .models import TTS_PITCH_RANGE, TTS_RATE_RANGE, TTSPhase, TTSPlaybackState
from .reporting import ErrorReporter, LoggingErrorReporter

logger = logging.getLogger(__name__)

PageRequest = Callable[[int], Awaitable[None]]
ProgressCallback = Callable[[str, int], None]


class SynthesisEventKind(str, Enum):
    START = "start"
    FINISH = "finish"
    PROGRESS = "progress"
    CANCEL = "cancel"
    ERROR = "error"


@dataclass
class SynthesisEvent:
    kind: SynthesisEventKind
    text: Optional[str] = None
    position: Optional[int] = None
    error: Optional[str] = None


class SynthesisEngine(Protocol):
    """
    Commands understood by an external speech engine. Implementations raise
    when the engine refuses a command; lifecycle changes are reported back
    asynchronously as SynthesisEvent values.
    """

    async def speak(self, text: str) -> None:
        ...

    async def stop(self) -> None:
        ...

    async def pause(self) -> None:
        ...

    async def resume(self) -> None:
        ...

    async def set_rate(self, rate: float) -> None:
        ...

    async def set_pitch(self, pitch: float) -> None:
        ...


class TTSOrchestrator:
    """
    Playback state machine in front of a SynthesisEngine.

    Idle -> Speaking only happens when the engine reports ``start``; a
    successful ``speak()`` call merely marks the utterance as awaiting
    start. When an utterance finishes on any page but the last, exactly one
    request for the following page is sent to the page channel.

    Engine events are queued with ``notify()`` (safe to call from the
    engine's own thread) and handled strictly in arrival order.
    """

    def __init__(
        self,
        engine: SynthesisEngine,
        request_page: Optional[PageRequest] = None,
        error_reporter: Optional[ErrorReporter] = None,
        rate: float = 0.5,
        pitch: float = 1.0,
        on_progress: Optional[ProgressCallback] = None,
    ):
        _check_range("rate", rate, TTS_RATE_RANGE)
        _check_range("pitch", pitch, TTS_PITCH_RANGE)
        self.engine = engine
        self.request_page = request_page
        self.error_reporter = error_reporter or LoggingErrorReporter()
        self.on_progress = on_progress
        self._state = TTSPlaybackState(rate=rate, pitch=pitch)
        self.current_page = 1
        self.total_pages = 0
        self._events: asyncio.Queue = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[int] = None

    @property
    def state(self) -> TTSPlaybackState:
        return replace(self._state)

    @property
    def phase(self) -> TTSPhase:
        return self._state.phase

    @property
    def is_active(self) -> bool:
        return self._state.phase != TTSPhase.IDLE or self._state.awaiting_start

    def set_page_context(self, current_page: int, total_pages: int) -> None:
        self.current_page = current_page
        self.total_pages = total_pages

    # region Commands
    async def speak(self, text: str) -> bool:
        self._bind_loop()
        if self._state.phase != TTSPhase.IDLE or self._state.awaiting_start:
            logger.warning("TTS is already %s; call stop() before speaking again.", self._describe())
            return False

        await self._command("set_rate", self.engine.set_rate, self._state.rate)
        await self._command("set_pitch", self.engine.set_pitch, self._state.pitch)
        await self._command("speak", self.engine.speak, text)

        self._state.awaiting_start = True
        self._state.utterance = text
        self._state.progress_position = None
        logger.info('TTS requested: "%s"', text[:70].replace("\n", " "))
        return True

    async def pause(self) -> bool:
        if self._state.phase != TTSPhase.SPEAKING:
            return False
        await self._command("pause", self.engine.pause)
        self._state.phase = TTSPhase.PAUSED
        return True

    async def resume(self) -> bool:
        if self._state.phase != TTSPhase.PAUSED:
            return False
        await self._command("resume", self.engine.resume)
        self._state.phase = TTSPhase.SPEAKING
        return True

    async def stop(self) -> bool:
        """
        Stop the current utterance. Returns to Idle as soon as the engine
        accepts the command; its cancel acknowledgement is not awaited.
        """
        if not self.is_active:
            return False
        await self._command("stop", self.engine.stop)
        self._to_idle()
        logger.info("TTS stopped.")
        return True

    def update_rate(self, rate: float) -> None:
        _check_range("rate", rate, TTS_RATE_RANGE)
        self._state.rate = rate

    def update_pitch(self, pitch: float) -> None:
        _check_range("pitch", pitch, TTS_PITCH_RANGE)
        self._state.pitch = pitch

    async def shutdown(self) -> None:
        if not self.is_active:
            return
        try:
            await self.stop()
        except SynthesisCommandError as exc:
            logger.error("TTS did not accept stop during shutdown: %s", exc)
            self._to_idle()

    # endregion

    # region Events
    def notify(self, event: SynthesisEvent) -> None:
        """Queue an engine event. Callable from any thread."""
        if self._loop is not None and threading.get_ident() != self._loop_thread:
            self._loop.call_soon_threadsafe(self._events.put_nowait, event)
        else:
            self._events.put_nowait(event)

    async def process_events(self) -> int:
        """Handle every queued event in order; returns how many were handled."""
        handled = 0
        while not self._events.empty():
            event = self._events.get_nowait()
            await self._handle_queued(event)
            handled += 1
        return handled

    async def run(self) -> None:
        """Consume engine events until cancelled."""
        self._bind_loop()
        while True:
            event = await self._events.get()
            await self._handle_queued(event)

    async def handle_event(self, event: SynthesisEvent) -> None:
        kind = event.kind
        if kind == SynthesisEventKind.START:
            self._on_start()
        elif kind == SynthesisEventKind.FINISH:
            await self._on_finish()
        elif kind == SynthesisEventKind.PROGRESS:
            self._on_progress(event)
        elif kind == SynthesisEventKind.CANCEL:
            if self._is_playing():
                self._to_idle()
            else:
                logger.debug("Ignoring TTS cancel with no confirmed utterance.")
        elif kind == SynthesisEventKind.ERROR:
            self._on_error(event)

    async def _handle_queued(self, event: SynthesisEvent) -> None:
        try:
            await self.handle_event(event)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to handle TTS event %s: %s", event.kind, exc, exc_info=True)
            self.error_reporter.report("tts.handle_event", exc, {"event": event.kind.value})

    def _on_start(self) -> None:
        if not self._state.awaiting_start:
            logger.debug("Ignoring TTS start with no pending utterance.")
            return
        self._state.awaiting_start = False
        self._state.phase = TTSPhase.SPEAKING

    async def _on_finish(self) -> None:
        if not self._is_playing():
            # Late finish for a stopped utterance; a pending one has not started yet.
            logger.debug("Ignoring TTS finish with no confirmed utterance.")
            return
        self._to_idle()
        if self.current_page < self.total_pages:
            next_page = self.current_page + 1
            logger.info("TTS finished page %s, advancing to %s", self.current_page, next_page)
            if self.request_page is not None:
                await self.request_page(next_page)
        else:
            logger.info("TTS finished the last page (%s)", self.current_page)

    def _on_progress(self, event: SynthesisEvent) -> None:
        self._state.progress_position = event.position
        if self.on_progress and event.text is not None and event.position is not None:
            self.on_progress(event.text, event.position)

    def _on_error(self, event: SynthesisEvent) -> None:
        message = event.error or "unknown synthesis error"
        logger.error("TTS engine error: %s", message)
        if self.is_active:
            self._to_idle()
        self.error_reporter.report("tts.engine", SynthesisCommandError("speak", message))

    # endregion

    def _is_playing(self) -> bool:
        return self._state.phase in (TTSPhase.SPEAKING, TTSPhase.PAUSED)

    def _to_idle(self) -> None:
        self._state.phase = TTSPhase.IDLE
        self._state.awaiting_start = False
        self._state.utterance = None
        self._state.progress_position = None

    def _describe(self) -> str:
        if self._state.awaiting_start:
            return "starting"
        return self._state.phase.value

    def _bind_loop(self) -> None:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
            self._loop_thread = threading.get_ident()

    async def _command(self, name: str, func, *args) -> None:
        try:
            await func(*args)
        except SynthesisCommandError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("TTS %s failed: %s", name, exc, exc_info=True)
            raise SynthesisCommandError(name, str(exc)) from exc


def _check_range(name: str, value: float, bounds) -> None:
    low, high = bounds
    if not low <= value <= high:
        raise InvalidRangeError(f"TTS {name} must be within [{low}, {high}], got {value}")
