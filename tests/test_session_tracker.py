import asyncio
from datetime import date

import pytest

from reading_companion.reader import InvalidRangeError, ReaderError, ReadingStats, SessionTracker
from reading_companion.reader.text import document_key

from fakes import FailingRepository


def make_tracker(repo, clock, reporter=None):
    return SessionTracker(repo, error_reporter=reporter, clock=clock)


def test_end_without_session_leaves_stats_untouched(repo, clock):
    tracker = make_tracker(repo, clock)

    async def scenario():
        await tracker.load_stats()
        return await tracker.end()

    assert asyncio.run(scenario()) is None
    assert tracker.stats == ReadingStats()
    assert repo.get_stats() is None


def test_session_folds_into_stats(repo, clock):
    tracker = make_tracker(repo, clock)

    async def scenario():
        await tracker.open_document("/books/dune.pdf")
        await tracker.start()
        await tracker.update_page_progress(2, "one two three four five six")
        await tracker.update_page_progress(3, "seven eight nine ten eleven twelve")
        clock.advance(90.7)
        return await tracker.end()

    session = asyncio.run(scenario())
    assert session.pages_read == 2
    stats = tracker.stats
    assert stats.total_pages_read == 2
    assert stats.total_time_spent_seconds == 90
    assert stats.sessions_count == 1
    assert stats.total_words_read == 12
    assert stats.average_reading_speed_wpm == pytest.approx(8.0)
    assert stats.last_session_date == date(2024, 3, 1)
    assert repo.get_stats() == stats
    assert tracker.session is None


def test_start_ends_active_session_first(repo, clock):
    tracker = make_tracker(repo, clock)

    async def scenario():
        await tracker.open_document("doc.pdf")
        await tracker.start()
        await tracker.update_page_progress(2)
        clock.advance(30)
        await tracker.start()

    asyncio.run(scenario())
    assert tracker.stats.sessions_count == 1
    assert tracker.stats.total_pages_read == 1
    assert tracker.session.pages_read == 0


def test_page_advance_without_session_is_noop(repo, clock):
    tracker = make_tracker(repo, clock)
    assert tracker.record_page_advance() is False

    async def scenario():
        await tracker.open_document("doc.pdf")
        await tracker.update_page_progress(5)

    asyncio.run(scenario())
    assert tracker.progress.current_page == 5
    assert tracker.session is None


def test_repeated_page_notification_is_ignored(repo, clock):
    tracker = make_tracker(repo, clock)

    async def scenario():
        await tracker.open_document("doc.pdf")
        await tracker.start()
        changed = [
            await tracker.update_page_progress(page)
            for page in (1, 2, 2, 3, 3, 2)
        ]
        return changed

    assert asyncio.run(scenario()) == [False, True, False, True, False, True]
    assert tracker.progress.current_page == 2
    assert tracker.session.pages_read == 3
    assert repo.get_progress(document_key("doc.pdf")).current_page == 2


def test_bookmarks_stay_sorted_and_toggle(repo, clock):
    tracker = make_tracker(repo, clock)

    async def scenario():
        await tracker.open_document("doc.pdf")
        results = [await tracker.toggle_bookmark(p) for p in (9, 3, 5, 3)]
        return results

    assert asyncio.run(scenario()) == [True, True, True, False]
    assert tracker.progress.bookmarks == [5, 9]
    assert tracker.is_bookmarked(9) and not tracker.is_bookmarked(3)
    assert repo.get_progress(document_key("doc.pdf")).bookmarks == [5, 9]


def test_notes_one_per_page_and_empty_removes(repo, clock):
    tracker = make_tracker(repo, clock)

    async def scenario():
        await tracker.open_document("doc.pdf")
        await tracker.add_note(4, "first thought")
        await tracker.add_note(4, "second thought")
        await tracker.add_note(6, "elsewhere")
        await tracker.add_note(6, "   ")
        await tracker.remove_note(10)

    asyncio.run(scenario())
    assert tracker.progress.notes == {4: "second thought"}
    assert tracker.note_for(4) == "second thought"
    assert tracker.note_for(6) is None


def test_progress_is_restored_on_reopen(repo, clock):
    async def first_visit():
        tracker = make_tracker(repo, clock)
        await tracker.open_document("doc.pdf")
        await tracker.update_page_progress(12)
        await tracker.toggle_bookmark(3)

    async def second_visit():
        tracker = make_tracker(repo, clock)
        return await tracker.open_document("doc.pdf")

    asyncio.run(first_visit())
    progress = asyncio.run(second_visit())
    assert progress.current_page == 12
    assert progress.bookmarks == [3]


def test_total_pages_clamps_speculative_page(repo, clock):
    tracker = make_tracker(repo, clock)

    async def scenario():
        await tracker.open_document("doc.pdf")
        await tracker.update_page_progress(40)
        return await tracker.set_total_pages(25)

    progress = asyncio.run(scenario())
    assert progress.total_pages == 25
    assert progress.current_page == 25


def test_write_failures_keep_progress_in_memory(clock, reporter):
    repo = FailingRepository(fail_writes=True)
    tracker = make_tracker(repo, clock, reporter)

    async def scenario():
        await tracker.open_document("doc.pdf")
        await tracker.start()
        await tracker.update_page_progress(2)
        await tracker.end()

    asyncio.run(scenario())
    assert tracker.progress.current_page == 2
    assert tracker.stats.sessions_count == 1
    assert reporter.sources() == ["session_tracker.update_page_progress", "session_tracker.end"]


def test_requires_open_document_and_valid_pages(repo, clock):
    tracker = make_tracker(repo, clock)
    with pytest.raises(ReaderError):
        asyncio.run(tracker.update_page_progress(2))

    async def scenario():
        await tracker.open_document("doc.pdf")
        await tracker.update_page_progress(0)

    with pytest.raises(InvalidRangeError):
        asyncio.run(scenario())


def test_session_without_open_document_adds_to_stored_stats(repo, clock):
    repo.save_stats(ReadingStats(total_pages_read=100, total_time_spent_seconds=600, sessions_count=20))
    tracker = make_tracker(repo, clock)

    async def scenario():
        await tracker.start()
        clock.advance(10)
        await tracker.end()

    asyncio.run(scenario())
    stats = repo.get_stats()
    assert stats.sessions_count == 21
    assert stats.total_pages_read == 100
    assert stats.total_time_spent_seconds == 610


def test_page_past_known_total_is_rejected(repo, clock):
    tracker = make_tracker(repo, clock)

    async def scenario():
        await tracker.open_document("doc.pdf")
        await tracker.set_total_pages(25)
        await tracker.update_page_progress(25)
        with pytest.raises(InvalidRangeError):
            await tracker.update_page_progress(40)

    asyncio.run(scenario())
    assert tracker.progress.current_page == 25
    assert tracker.progress.total_pages == 25
