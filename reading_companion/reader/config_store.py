from __future__ import annotations

import asyncio
import logging
from dataclasses import fields, replace
from typing import Any, Callable, Dict, Mapping, Optional

from .errors import PersistenceError
from .models import (
    FONT_SIZE_MAX,
    FONT_SIZE_MIN,
    FONT_SIZE_STEP,
    FontFamily,
    FontSizeMode,
    Settings,
    Theme,
)
from .reporting import ErrorReporter, LoggingErrorReporter
from .repository import ReaderRepository

logger = logging.getLogger(__name__)

_ENUM_FIELDS = {
    "font_family": FontFamily,
    "theme": Theme,
    "font_size_mode": FontSizeMode,
}
_SETTINGS_FIELDS = {f.name for f in fields(Settings)}


def clamp_font_size(size: int) -> int:
    return min(max(size, FONT_SIZE_MIN), FONT_SIZE_MAX)


class ConfigStore:
    """
    Owns the single process-wide Settings record. Updates are merged into
    the current record, written through the repository, and only then made
    visible in memory. A lock serializes updates so concurrent partial
    updates never lose each other's fields.
    """

    def __init__(self, repository: ReaderRepository, error_reporter: Optional[ErrorReporter] = None):
        self.repo = repository
        self.error_reporter = error_reporter or LoggingErrorReporter()
        self._settings = Settings()
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def settings(self) -> Settings:
        return replace(self._settings)

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> Settings:
        async with self._lock:
            await self._load_locked()
        return self.settings

    async def _load_locked(self) -> None:
        try:
            saved = await asyncio.to_thread(self.repo.get_settings)
        except PersistenceError as exc:
            logger.warning("Could not read settings, using defaults: %s", exc)
            self.error_reporter.report("config_store.load", exc)
            saved = None
        self._settings = saved or Settings()
        self._loaded = True

    async def update(self, changes: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Settings:
        values = self._coerce({**(changes or {}), **kwargs})
        return await self._apply(lambda current: values)

    async def _apply(self, compute: Callable[[Settings], Dict[str, Any]]) -> Settings:
        async with self._lock:
            if not self._loaded:
                await self._load_locked()
            values = self._coerce(compute(self._settings))
            merged = replace(self._settings, **values)
            try:
                await asyncio.to_thread(self.repo.save_settings, merged)
            except PersistenceError as exc:
                logger.warning("Settings update %s was not saved: %s", sorted(values), exc)
                self.error_reporter.report("config_store.update", exc, {"fields": sorted(values)})
                raise
            self._settings = merged
            logger.debug("Settings updated: %s", values)
        return self.settings

    def _coerce(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(changes) - _SETTINGS_FIELDS
        if unknown:
            raise ValueError(f"Unknown settings fields: {sorted(unknown)}")
        values = dict(changes)
        for name, enum_type in _ENUM_FIELDS.items():
            if name in values and not isinstance(values[name], enum_type):
                values[name] = enum_type(values[name])
        return values

    # region Font and theme helpers
    async def set_font_size(self, size: int, mode: FontSizeMode = FontSizeMode.MANUAL) -> Settings:
        return await self.update(font_size=clamp_font_size(size), font_size_mode=mode)

    async def increase_font_size(self) -> Settings:
        return await self._apply(
            lambda current: {
                "font_size": clamp_font_size(current.font_size + FONT_SIZE_STEP),
                "font_size_mode": FontSizeMode.MANUAL,
            }
        )

    async def decrease_font_size(self) -> Settings:
        return await self._apply(
            lambda current: {
                "font_size": clamp_font_size(current.font_size - FONT_SIZE_STEP),
                "font_size_mode": FontSizeMode.MANUAL,
            }
        )

    async def set_line_spacing(self, line_spacing: float) -> Settings:
        return await self.update(line_spacing=line_spacing)

    async def set_font_family(self, family: FontFamily) -> Settings:
        return await self.update(font_family=family)

    async def set_theme(self, theme: Theme) -> Settings:
        return await self.update(theme=theme)

    async def toggle_theme(self) -> Settings:
        return await self._apply(
            lambda current: {"theme": Theme.LIGHT if current.theme == Theme.DARK else Theme.DARK}
        )

    async def set_bionic_reading(self, enabled: bool) -> Settings:
        return await self.update(bionic_reading=enabled)

    async def set_focus_mode(self, enabled: bool) -> Settings:
        return await self.update(focus_mode=enabled)

    # endregion
