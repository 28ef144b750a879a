from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

logger = logging.getLogger(__name__)


class ErrorReporter(Protocol):
    def report(self, source: str, error: BaseException, context: Optional[dict] = None) -> None:
        ...


class LoggingErrorReporter:
    """
    Default reporter. Recoverable failures go to the log so they stay visible
    even when the caller is not blocked by them.
    """

    def report(self, source: str, error: BaseException, context: Optional[dict] = None) -> None:
        logger.warning("Recoverable failure in %s: %s (context=%s)", source, error, context or {})


@dataclass
class ReportedError:
    source: str
    error: BaseException
    context: dict


class RecordingErrorReporter:
    """
    Keeps every report in memory. Useful in tests and for surfacing a
    "progress not saved" banner from the last few failures.
    """

    def __init__(self):
        self.reports: List[ReportedError] = []

    def report(self, source: str, error: BaseException, context: Optional[dict] = None) -> None:
        logger.warning("Recoverable failure in %s: %s", source, error)
        self.reports.append(ReportedError(source=source, error=error, context=context or {}))

    def sources(self) -> List[str]:
        return [r.source for r in self.reports]
