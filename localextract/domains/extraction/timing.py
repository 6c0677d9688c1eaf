"""
Stopwatch - Elapsed wall-clock time for reporting.
"""

from __future__ import annotations

import time

__all__ = ["Stopwatch"]


class Stopwatch:
    """
    Monotonic stopwatch that can be finalized exactly once.

    Example:
        >>> watch = Stopwatch().start()
        >>> elapsed = watch.stop()
        >>> watch.stop() == elapsed
        True
    """

    def __init__(self) -> None:
        self._started: float | None = None
        self._final: float | None = None

    def start(self) -> "Stopwatch":
        if self._started is None:
            self._started = time.perf_counter()
        return self

    @property
    def running(self) -> bool:
        return self._started is not None and self._final is None

    @property
    def elapsed(self) -> float:
        """Seconds so far, the final value once stopped, 0.0 if never started."""
        if self._final is not None:
            return self._final
        if self._started is None:
            return 0.0
        return max(time.perf_counter() - self._started, 0.0)

    def stop(self) -> float:
        """Finalize and return elapsed seconds. Later calls return the same value."""
        if self._final is None:
            self._final = self.elapsed
        return self._final
