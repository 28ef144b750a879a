from __future__ import annotations


class ReaderError(Exception):
    """Base class for reading-engine failures."""


class PersistenceError(ReaderError):
    """A durable read or write did not complete."""


class InvalidRangeError(ReaderError, ValueError):
    """An absolute page or line position is malformed (for example, negative)."""


class SynthesisCommandError(ReaderError):
    """The speech synthesis engine rejected a command."""

    def __init__(self, command: str, message: str):
        super().__init__(f"Synthesis engine rejected '{command}': {message}")
        self.command = command
