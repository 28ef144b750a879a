import logging

from reading_companion.config import ReaderConfig, get_config
from reading_companion.logging_setup import setup_logging
from reading_companion.reader import InMemoryReaderRepository, ReaderContext
from reading_companion.reader.pyttsx3_engine import rate_to_wpm


def test_config_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", "memory://")
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("TTS_DEFAULT_RATE", "0.7")
    monkeypatch.setenv("BIONIC_MIN_CHARS", "4")
    config = ReaderConfig.from_env()
    assert config.database_url == "memory://"
    assert config.log_dir == tmp_path / "logs"
    assert config.tts_default_rate == 0.7
    assert config.tts_default_pitch == 1.0
    assert config.bionic_min_chars == 4


def test_context_from_config_uses_configured_store_and_bionic():
    config = ReaderConfig(database_url="memory://", bionic_min_chars=4)
    ctx = ReaderContext.from_config(config)
    assert isinstance(ctx.repository, InMemoryReaderRepository)
    assert ctx.bionic("cat elephant") == "cat **elep**hant"
    assert ctx.tts is None


def test_setup_logging_writes_log_file(tmp_path):
    setup_logging(tmp_path, "debug")
    logging.getLogger("reading_companion.test").debug("hello from the reader")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert logging.getLogger().level == logging.DEBUG
    assert "hello from the reader" in (tmp_path / "reading_companion.log").read_text(encoding="utf-8")
    setup_logging()


def test_rate_maps_to_words_per_minute():
    assert rate_to_wpm(0.0) == 100
    assert rate_to_wpm(0.5) == 200
    assert rate_to_wpm(1.0) == 300


def test_context_defaults_to_cached_environment_config(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "memory://")
    get_config.cache_clear()
    try:
        ctx = ReaderContext.from_config()
        assert isinstance(ctx.repository, InMemoryReaderRepository)
        assert ctx.config is get_config()
    finally:
        get_config.cache_clear()
