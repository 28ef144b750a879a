from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from .errors import SynthesisCommandError
from .tts import SynthesisEvent, SynthesisEventKind

logger = logging.getLogger(__name__)

# pyttsx3 speaks in words per minute; a normalized rate of 0.5 maps to its default of 200.
MIN_WPM = 100
MAX_WPM = 300


def rate_to_wpm(rate: float) -> int:
    return int(round(MIN_WPM + rate * (MAX_WPM - MIN_WPM)))


class Pyttsx3SynthesisEngine:
    """
    Offline speech through pyttsx3. ``runAndWait`` blocks, so it runs on a
    worker thread; utterance callbacks fire on that thread and are forwarded
    to ``notify`` (normally ``TTSOrchestrator.notify``, which is thread-safe).

    pyttsx3 has no pause/resume and most drivers ignore pitch, so those
    commands are rejected or recorded only.
    """

    def __init__(self, notify: Optional[Callable[[SynthesisEvent], None]] = None, driver_name: Optional[str] = None):
        try:
            import pyttsx3
        except ImportError as exc:  # pragma: no cover - dependency guard
            raise RuntimeError("pyttsx3 is required for offline speech. Please install 'pyttsx3'.") from exc

        self.notify = notify
        self.pitch = 1.0
        self._current_text = ""
        self._run_task: Optional[asyncio.Task] = None
        self._engine = pyttsx3.init(driver_name)
        self._engine.connect("started-utterance", self._on_start)
        self._engine.connect("finished-utterance", self._on_finish)
        self._engine.connect("started-word", self._on_word)
        self._engine.connect("error", self._on_error)
        logger.info("pyttsx3 engine initialized (driver=%s)", driver_name or "default")

    def attach(self, notify: Callable[[SynthesisEvent], None]) -> None:
        self.notify = notify

    async def speak(self, text: str) -> None:
        if self._run_task and not self._run_task.done():
            raise RuntimeError("pyttsx3 is still processing the previous utterance")
        self._current_text = text
        self._engine.say(text)
        self._run_task = asyncio.get_running_loop().create_task(asyncio.to_thread(self._engine.runAndWait))
        self._run_task.add_done_callback(self._on_run_done)

    async def stop(self) -> None:
        await asyncio.to_thread(self._engine.stop)

    async def pause(self) -> None:
        raise SynthesisCommandError("pause", "pyttsx3 does not support pausing")

    async def resume(self) -> None:
        raise SynthesisCommandError("resume", "pyttsx3 does not support resuming")

    async def set_rate(self, rate: float) -> None:
        self._engine.setProperty("rate", rate_to_wpm(rate))

    async def set_pitch(self, pitch: float) -> None:
        self.pitch = pitch
        logger.debug("pyttsx3 ignores pitch; keeping %s for reference", pitch)

    def _on_run_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("pyttsx3 runAndWait failed: %s", exc)
            self._emit(SynthesisEvent(SynthesisEventKind.ERROR, error=str(exc)))

    # Callbacks below run on the runAndWait thread.
    def _emit(self, event: SynthesisEvent) -> None:
        if self.notify is not None:
            self.notify(event)

    def _on_start(self, name) -> None:
        self._emit(SynthesisEvent(SynthesisEventKind.START))

    def _on_finish(self, name, completed: bool) -> None:
        kind = SynthesisEventKind.FINISH if completed else SynthesisEventKind.CANCEL
        self._emit(SynthesisEvent(kind))

    def _on_word(self, name, location: int, length: int) -> None:
        text = self._current_text
        self._emit(SynthesisEvent(SynthesisEventKind.PROGRESS, text=text[location:location + length], position=location))

    def _on_error(self, name, exception) -> None:
        self._emit(SynthesisEvent(SynthesisEventKind.ERROR, error=str(exception)))
