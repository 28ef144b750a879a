from __future__ import annotations

import logging
from dataclasses import dataclass

from .config_store import ConfigStore
from .models import (
    FONT_SIZE_EXTRA_LARGE,
    FONT_SIZE_LARGE,
    FONT_SIZE_MEDIUM,
    LINE_SPACING_LOOSE,
    FontSizeMode,
    Settings,
)

logger = logging.getLogger(__name__)


@dataclass
class AccessibilitySignals:
    bold_text: bool = False
    screen_reader: bool = False
    reduce_motion: bool = False
    invert_colors: bool = False


class AccessibilityAdjuster:
    """
    Reacts to platform accessibility signals by adjusting Settings.

    Font size is only changed automatically while ``font_size_mode`` is
    AUTO. Once the reader picks a size themselves (ConfigStore.set_font_size
    and the increase/decrease helpers mark it MANUAL) it is left alone.
    """

    def __init__(self, config_store: ConfigStore):
        self.config_store = config_store

    async def on_bold_text_changed(self, enabled: bool) -> Settings:
        if enabled:
            return await self.config_store.set_bionic_reading(True)
        return self.config_store.settings

    async def on_screen_reader_changed(self, enabled: bool) -> Settings:
        if not enabled:
            return self.config_store.settings
        changes = {"line_spacing": LINE_SPACING_LOOSE}
        if self._auto_font_size():
            changes["font_size"] = FONT_SIZE_LARGE
        return await self.config_store.update(changes)

    async def on_reduce_motion_changed(self, enabled: bool) -> Settings:
        # Nothing in Settings animates yet.
        logger.debug("Reduce motion is now %s", "on" if enabled else "off")
        return self.config_store.settings

    async def adjust_font_size(self, screen_reader_enabled: bool) -> Settings:
        if not self._auto_font_size():
            logger.info("Keeping reader-chosen font size %s", self.config_store.settings.font_size)
            return self.config_store.settings
        size = FONT_SIZE_EXTRA_LARGE if screen_reader_enabled else FONT_SIZE_MEDIUM
        return await self.config_store.set_font_size(size, mode=FontSizeMode.AUTO)

    async def apply(self, signals: AccessibilitySignals) -> Settings:
        await self.on_bold_text_changed(signals.bold_text)
        return await self.adjust_font_size(signals.screen_reader)

    def _auto_font_size(self) -> bool:
        return self.config_store.settings.font_size_mode == FontSizeMode.AUTO
