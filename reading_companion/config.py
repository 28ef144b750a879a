from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


@dataclass
class ReaderConfig:
    database_url: str = "sqlite+pysqlite:///./data/reading_companion.db"
    log_dir: Optional[Path] = None
    log_level: str = "INFO"
    tts_default_rate: float = 0.5
    tts_default_pitch: float = 1.0
    bionic_bold_ratio: float = 0.5
    bionic_min_chars: int = 3

    @classmethod
    def from_env(cls) -> "ReaderConfig":
        log_dir = os.getenv("LOG_DIR")
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            log_dir=Path(log_dir) if log_dir else None,
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            tts_default_rate=float(os.getenv("TTS_DEFAULT_RATE", str(cls.tts_default_rate))),
            tts_default_pitch=float(os.getenv("TTS_DEFAULT_PITCH", str(cls.tts_default_pitch))),
            bionic_bold_ratio=float(os.getenv("BIONIC_BOLD_RATIO", str(cls.bionic_bold_ratio))),
            bionic_min_chars=int(os.getenv("BIONIC_MIN_CHARS", str(cls.bionic_min_chars))),
        )


@lru_cache(maxsize=1)
def get_config() -> ReaderConfig:
    return ReaderConfig.from_env()
