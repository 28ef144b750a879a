from datetime import date, datetime

import pytest

from reading_companion.reader import (
    FontFamily,
    FontSizeMode,
    InMemoryReaderRepository,
    PersistenceError,
    PositionRecord,
    ReadingProgress,
    ReadingStats,
    Settings,
    SqlAlchemyReaderRepository,
    Theme,
    build_repository,
)


def test_sqlalchemy_repository_roundtrip(tmp_path):
    db_path = tmp_path / "test.db"
    repo = SqlAlchemyReaderRepository(f"sqlite+pysqlite:///{db_path}")

    assert repo.get_settings() is None
    assert repo.get_stats() is None
    assert repo.get_progress("doc-1") is None
    assert repo.get_position("doc-1") is None

    settings = Settings(
        bionic_reading=True,
        focus_mode=True,
        font_size=20,
        line_spacing=1.75,
        font_family=FontFamily.LEXEND,
        theme=Theme.DARK,
        font_size_mode=FontSizeMode.MANUAL,
    )
    repo.save_settings(settings)
    assert repo.get_settings() == settings

    stats = ReadingStats(
        total_pages_read=42,
        total_time_spent_seconds=3600,
        average_reading_speed_wpm=210.5,
        last_session_date=date(2024, 2, 29),
        sessions_count=3,
        total_words_read=12630,
    )
    repo.save_stats(stats)
    assert repo.get_stats() == stats

    progress = ReadingProgress(
        document_id="doc-1",
        current_page=7,
        total_pages=120,
        last_read_at=datetime(2024, 3, 1, 10, 30),
        bookmarks=[30, 2, 15],
        notes={2: "intro", 15: "check the footnote"},
    )
    repo.save_progress(progress)
    fetched = repo.get_progress("doc-1")
    assert fetched.current_page == 7
    assert fetched.total_pages == 120
    assert fetched.last_read_at == datetime(2024, 3, 1, 10, 30)
    assert fetched.bookmarks == [2, 15, 30]
    assert fetched.notes == {2: "intro", 15: "check the footnote"}

    position = PositionRecord(document_id="doc-1", page=7, saved_at=datetime(2024, 3, 1, 10, 31))
    repo.save_position(position)
    assert repo.get_position("doc-1") == position

    # Upserts replace the single settings row.
    repo.save_settings(Settings())
    assert repo.get_settings() == Settings()
    repo.close()


def test_in_memory_repository_returns_copies():
    repo = InMemoryReaderRepository()
    progress = ReadingProgress(document_id="doc", bookmarks=[1])
    repo.save_progress(progress)
    progress.bookmarks.append(99)
    fetched = repo.get_progress("doc")
    fetched.bookmarks.append(50)
    assert repo.get_progress("doc").bookmarks == [1]


def test_build_repository_selects_backend(tmp_path):
    assert isinstance(build_repository("memory://"), InMemoryReaderRepository)
    db_path = tmp_path / "nested" / "reader.db"
    repo = build_repository(f"sqlite+pysqlite:///{db_path}")
    assert isinstance(repo, SqlAlchemyReaderRepository)
    assert db_path.parent.exists()
    repo.close()


def test_storage_errors_become_persistence_errors(tmp_path):
    repo = SqlAlchemyReaderRepository(f"sqlite+pysqlite:///{tmp_path / 'reader.db'}")
    with repo.engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE reading_positions")
    with pytest.raises(PersistenceError):
        repo.get_position("doc")
    repo.close()
