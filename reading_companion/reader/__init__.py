"""
Reading session and adaptive text engine exports.
"""

from .accessibility import AccessibilityAdjuster, AccessibilitySignals
from .bionic import BionicTransformer, split_token, transform
from .config_store import ConfigStore
from .context import ReaderContext
from .errors import InvalidRangeError, PersistenceError, ReaderError, SynthesisCommandError
from .focus import FocusNavigator
from .locks import KeyedLocks
from .models import (
    FocusState,
    FontFamily,
    FontSizeMode,
    PositionRecord,
    ReadingProgress,
    ReadingSession,
    ReadingStats,
    Settings,
    Theme,
    TTSPhase,
    TTSPlaybackState,
)
from .position import PositionStore
from .reporting import ErrorReporter, LoggingErrorReporter, RecordingErrorReporter
from .repository import (
    InMemoryReaderRepository,
    ReaderRepository,
    SqlAlchemyReaderRepository,
    build_repository,
)
from .tracker import SessionTracker
from .tts import SynthesisEngine, SynthesisEvent, SynthesisEventKind, TTSOrchestrator
from .view import PageRenderer, PageTextSource, ReadingView

__all__ = [
    "AccessibilityAdjuster",
    "AccessibilitySignals",
    "BionicTransformer",
    "ConfigStore",
    "ErrorReporter",
    "FocusNavigator",
    "FocusState",
    "FontFamily",
    "FontSizeMode",
    "InMemoryReaderRepository",
    "InvalidRangeError",
    "KeyedLocks",
    "LoggingErrorReporter",
    "PageRenderer",
    "PageTextSource",
    "PersistenceError",
    "PositionRecord",
    "PositionStore",
    "ReaderContext",
    "ReaderError",
    "ReaderRepository",
    "ReadingProgress",
    "ReadingSession",
    "ReadingStats",
    "ReadingView",
    "RecordingErrorReporter",
    "SessionTracker",
    "Settings",
    "SqlAlchemyReaderRepository",
    "SynthesisCommandError",
    "SynthesisEngine",
    "SynthesisEvent",
    "SynthesisEventKind",
    "TTSOrchestrator",
    "TTSPhase",
    "TTSPlaybackState",
    "Theme",
    "build_repository",
    "split_token",
    "transform",
]
