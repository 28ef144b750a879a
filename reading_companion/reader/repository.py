from __future__ import annotations

import json
from contextlib import contextmanager
from copy import deepcopy
from pathlib import Path
from typing import Dict, Iterator, Optional

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, Float, Integer, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .errors import PersistenceError
from .models import (
    FontFamily,
    FontSizeMode,
    PositionRecord,
    ReadingProgress,
    ReadingStats,
    Settings,
    Theme,
)

Base = declarative_base()

SINGLETON_ID = "default"


class SettingsModel(Base):
    __tablename__ = "reader_settings"
    id = Column(String, primary_key=True)
    bionic_reading = Column(Boolean)
    focus_mode = Column(Boolean)
    font_size = Column(Integer)
    line_spacing = Column(Float)
    font_family = Column(Enum(FontFamily))
    theme = Column(Enum(Theme))
    font_size_mode = Column(Enum(FontSizeMode))


class ReadingStatsModel(Base):
    __tablename__ = "reading_stats"
    id = Column(String, primary_key=True)
    total_pages_read = Column(Integer)
    total_time_spent_seconds = Column(Integer)
    average_reading_speed_wpm = Column(Float)
    last_session_date = Column(Date)
    sessions_count = Column(Integer)
    total_words_read = Column(Integer)


class ReadingProgressModel(Base):
    __tablename__ = "reading_progress"
    document_id = Column(String, primary_key=True)
    current_page = Column(Integer)
    total_pages = Column(Integer)
    last_read_at = Column(DateTime)
    bookmarks_json = Column(String)
    notes_json = Column(String)


class PositionModel(Base):
    __tablename__ = "reading_positions"
    document_id = Column(String, primary_key=True)
    page = Column(Integer)
    saved_at = Column(DateTime)


class ReaderRepository:
    """
    Persistence boundary for the reading engine. Holds one Settings record,
    one ReadingStats record, and one ReadingProgress / PositionRecord per
    document key. Methods are synchronous; async callers push them onto a
    worker thread. Implementations raise PersistenceError on storage failure.
    """

    def get_settings(self) -> Optional[Settings]:
        raise NotImplementedError

    def save_settings(self, settings: Settings) -> None:
        raise NotImplementedError

    def get_stats(self) -> Optional[ReadingStats]:
        raise NotImplementedError

    def save_stats(self, stats: ReadingStats) -> None:
        raise NotImplementedError

    def get_progress(self, document_id: str) -> Optional[ReadingProgress]:
        raise NotImplementedError

    def save_progress(self, progress: ReadingProgress) -> None:
        raise NotImplementedError

    def get_position(self, document_id: str) -> Optional[PositionRecord]:
        raise NotImplementedError

    def save_position(self, position: PositionRecord) -> None:
        raise NotImplementedError

    def close(self) -> None:
        return None


class InMemoryReaderRepository(ReaderRepository):
    """
    Simple in-memory store for local runs and tests. Keeps copies of the
    dataclasses to avoid cross-mutation between calls.
    """

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.stats: Optional[ReadingStats] = None
        self.progress: Dict[str, ReadingProgress] = {}
        self.positions: Dict[str, PositionRecord] = {}

    def _clone(self, obj):
        return deepcopy(obj)

    def get_settings(self) -> Optional[Settings]:
        return self._clone(self.settings) if self.settings else None

    def save_settings(self, settings: Settings) -> None:
        self.settings = self._clone(settings)

    def get_stats(self) -> Optional[ReadingStats]:
        return self._clone(self.stats) if self.stats else None

    def save_stats(self, stats: ReadingStats) -> None:
        self.stats = self._clone(stats)

    def get_progress(self, document_id: str) -> Optional[ReadingProgress]:
        progress = self.progress.get(document_id)
        return self._clone(progress) if progress else None

    def save_progress(self, progress: ReadingProgress) -> None:
        self.progress[progress.document_id] = self._clone(progress)

    def get_position(self, document_id: str) -> Optional[PositionRecord]:
        position = self.positions.get(document_id)
        return self._clone(position) if position else None

    def save_position(self, position: PositionRecord) -> None:
        self.positions[position.document_id] = self._clone(position)


class SqlAlchemyReaderRepository(ReaderRepository):
    """
    SQL-backed repository using SQLAlchemy. Works with SQLite/Postgres URLs.
    """

    def __init__(self, database_url: str):
        try:
            self.engine = create_engine(database_url, future=True)
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot open reader database {database_url}: {exc}") from exc
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.SessionLocal() as session:
                yield session
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def close(self) -> None:
        self.engine.dispose()

    # region Settings
    def get_settings(self) -> Optional[Settings]:
        with self._session() as session:
            model = session.get(SettingsModel, SINGLETON_ID)
            if not model:
                return None
            return Settings(
                bionic_reading=bool(model.bionic_reading),
                focus_mode=bool(model.focus_mode),
                font_size=int(model.font_size),
                line_spacing=float(model.line_spacing),
                font_family=model.font_family,
                theme=model.theme,
                font_size_mode=model.font_size_mode or FontSizeMode.AUTO,
            )

    def save_settings(self, settings: Settings) -> None:
        with self._session() as session:
            model = SettingsModel(
                id=SINGLETON_ID,
                bionic_reading=settings.bionic_reading,
                focus_mode=settings.focus_mode,
                font_size=settings.font_size,
                line_spacing=settings.line_spacing,
                font_family=settings.font_family,
                theme=settings.theme,
                font_size_mode=settings.font_size_mode,
            )
            session.merge(model)
            session.commit()

    # endregion

    # region Stats
    def get_stats(self) -> Optional[ReadingStats]:
        with self._session() as session:
            model = session.get(ReadingStatsModel, SINGLETON_ID)
            if not model:
                return None
            return ReadingStats(
                total_pages_read=int(model.total_pages_read or 0),
                total_time_spent_seconds=int(model.total_time_spent_seconds or 0),
                average_reading_speed_wpm=float(model.average_reading_speed_wpm or 0.0),
                last_session_date=model.last_session_date,
                sessions_count=int(model.sessions_count or 0),
                total_words_read=int(model.total_words_read or 0),
            )

    def save_stats(self, stats: ReadingStats) -> None:
        with self._session() as session:
            model = ReadingStatsModel(
                id=SINGLETON_ID,
                total_pages_read=stats.total_pages_read,
                total_time_spent_seconds=stats.total_time_spent_seconds,
                average_reading_speed_wpm=stats.average_reading_speed_wpm,
                last_session_date=stats.last_session_date,
                sessions_count=stats.sessions_count,
                total_words_read=stats.total_words_read,
            )
            session.merge(model)
            session.commit()

    # endregion

    # region Progress
    def get_progress(self, document_id: str) -> Optional[ReadingProgress]:
        with self._session() as session:
            model = session.get(ReadingProgressModel, document_id)
            if not model:
                return None
            notes = json.loads(model.notes_json or "{}")
            return ReadingProgress(
                document_id=model.document_id,
                current_page=int(model.current_page or 1),
                total_pages=int(model.total_pages or 0),
                last_read_at=model.last_read_at,
                bookmarks=sorted(json.loads(model.bookmarks_json or "[]")),
                # JSON object keys come back as strings.
                notes={int(page): text for page, text in notes.items()},
            )

    def save_progress(self, progress: ReadingProgress) -> None:
        with self._session() as session:
            model = ReadingProgressModel(
                document_id=progress.document_id,
                current_page=progress.current_page,
                total_pages=progress.total_pages,
                last_read_at=progress.last_read_at,
                bookmarks_json=json.dumps(sorted(progress.bookmarks)),
                notes_json=json.dumps({str(page): text for page, text in progress.notes.items()}),
            )
            session.merge(model)
            session.commit()

    # endregion

    # region Positions
    def get_position(self, document_id: str) -> Optional[PositionRecord]:
        with self._session() as session:
            model = session.get(PositionModel, document_id)
            if not model:
                return None
            return PositionRecord(document_id=model.document_id, page=int(model.page), saved_at=model.saved_at)

    def save_position(self, position: PositionRecord) -> None:
        with self._session() as session:
            model = PositionModel(
                document_id=position.document_id,
                page=position.page,
                saved_at=position.saved_at,
            )
            session.merge(model)
            session.commit()

    # endregion


MEMORY_DATABASE_URL = "memory://"


def build_repository(database_url: str) -> ReaderRepository:
    """
    ``memory://`` gives an in-memory store; anything else is a SQLAlchemy URL.
    Parent directories of a SQLite file are created on demand.
    """
    if database_url == MEMORY_DATABASE_URL:
        return InMemoryReaderRepository()
    if database_url.startswith("sqlite") and ":///" in database_url:
        db_path = database_url.split(":///", 1)[1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return SqlAlchemyReaderRepository(database_url)
