from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)


class ProgressSink(ABC):
    """
    Abstract interface for reporting progress of long-running session work
    (e.g. building the dataset registry). How progress is shown is up to the
    implementation: a log line or a progress bar in the splash screen.
    """

    @abstractmethod
    def advance(self, fraction: float, label: str) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class LoggingProgress(ProgressSink):
    """Default sink when nobody is watching: progress only goes to the debug log."""

    def __init__(self, name: str = "progress"):
        self.name = name

    def advance(self, fraction: float, label: str) -> None:
        logger.debug("%s: %s (%d%%)", self.name, label, round(fraction * 100))

    def close(self) -> None:
        logger.debug("%s: closed", self.name)


class SessionProgress(ProgressSink):
    """
    Progress state kept on the session so the splash screen can poll it.
    Thread-safe: written by the registry build, read by the poll callback.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.fraction: float = 0.0
        self.label: str = ""
        self.closed: bool = False

    def advance(self, fraction: float, label: str) -> None:
        with self._lock:
            self.fraction = max(self.fraction, fraction)
            self.label = label

    def close(self) -> None:
        with self._lock:
            self.closed = True

    def snapshot(self) -> tuple[float, str, bool]:
        with self._lock:
            return self.fraction, self.label, self.closed


class ProgressTracker:
    """
    Counts processed items and forwards processed/total to a sink.

    - fractions never decrease and reach exactly 1.0 after 'total' steps
    - total == 0 reports 1.0 immediately on finish()
    - used as a context manager, close() is guaranteed on success and on error
    """

    def __init__(self, sink: Optional[ProgressSink], total: int, message: str = "Working"):
        if total < 0:
            raise ValueError("total must be >= 0")
        self.sink = sink if sink is not None else LoggingProgress(message)
        self.total = total
        self.message = message
        self.processed = 0
        self._last = 0.0
        self._closed = False
        self._finished = False

    def __enter__(self) -> ProgressTracker:
        self._emit(0.0, f"{self.message}: 0%")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def fraction(self) -> float:
        if self.total == 0:
            return 1.0 if self._finished else 0.0
        return min(self.processed / self.total, 1.0)

    def step(self, label: str = "") -> None:
        self.processed += 1
        frac = self.fraction
        detail = label or f"{round(frac * 100)}%"
        self._emit(frac, f"{self.message}: {detail}")

    def finish(self) -> None:
        self._finished = True
        self.processed = max(self.processed, self.total)
        self._emit(1.0, f"{self.message}: 100%")

    def _emit(self, fraction: float, label: str) -> None:
        fraction = max(self._last, fraction)
        self._last = fraction
        self.sink.advance(fraction, label)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.sink.close()
