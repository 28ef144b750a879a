from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional


class FontFamily(str, Enum):
    SYSTEM = "System"
    OPEN_DYSLEXIC = "OpenDyslexic"
    LEXEND = "Lexend"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class FontSizeMode(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


class TTSPhase(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"
    PAUSED = "paused"


FONT_SIZE_MEDIUM = 16
FONT_SIZE_LARGE = 18
FONT_SIZE_EXTRA_LARGE = 20
FONT_SIZE_HUGE = 24

FONT_SIZE_MIN = 12
FONT_SIZE_MAX = FONT_SIZE_HUGE
FONT_SIZE_STEP = 2

LINE_SPACING_NORMAL = 1.5
LINE_SPACING_LOOSE = 2.0

TTS_RATE_RANGE = (0.0, 1.0)
TTS_PITCH_RANGE = (0.5, 2.0)


@dataclass
class Settings:
    bionic_reading: bool = False
    focus_mode: bool = False
    font_size: int = FONT_SIZE_MEDIUM
    line_spacing: float = LINE_SPACING_NORMAL
    font_family: FontFamily = FontFamily.SYSTEM
    theme: Theme = Theme.LIGHT
    font_size_mode: FontSizeMode = FontSizeMode.AUTO


@dataclass
class ReadingProgress:
    document_id: str
    current_page: int = 1
    total_pages: int = 0
    last_read_at: datetime = field(default_factory=datetime.utcnow)
    bookmarks: List[int] = field(default_factory=list)
    notes: Dict[int, str] = field(default_factory=dict)


@dataclass
class ReadingStats:
    total_pages_read: int = 0
    total_time_spent_seconds: int = 0
    average_reading_speed_wpm: float = 0.0
    last_session_date: Optional[date] = None
    sessions_count: int = 0
    total_words_read: int = 0


@dataclass
class ReadingSession:
    started_at: datetime = field(default_factory=datetime.utcnow)
    ended_at: Optional[datetime] = None
    pages_read: int = 0
    words_read: int = 0


@dataclass
class PositionRecord:
    document_id: str
    page: int
    saved_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class FocusState:
    current_line: int
    enabled: bool = False


@dataclass
class TTSPlaybackState:
    phase: TTSPhase = TTSPhase.IDLE
    rate: float = 0.5
    pitch: float = 1.0
    awaiting_start: bool = False
    utterance: Optional[str] = None
    progress_position: Optional[int] = None
