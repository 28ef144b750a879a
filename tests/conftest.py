import pytest

from reading_companion.reader import InMemoryReaderRepository, RecordingErrorReporter

from fakes import ManualClock


@pytest.fixture
def reporter():
    return RecordingErrorReporter()


@pytest.fixture
def repo():
    return InMemoryReaderRepository()


@pytest.fixture
def clock():
    return ManualClock()
