"""TabReg Timing - Wall-clock measurement for training and serving.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import statistics
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MAX_SAMPLES = 1000


@dataclass
class TimingStats:
    """Running summary of measured durations (seconds).

    Only the most recent ``MAX_SAMPLES`` durations are kept for the median;
    count, total and extremes cover every sample.
    """

    count: int = 0
    total_seconds: float = 0.0
    fastest_seconds: Optional[float] = None
    slowest_seconds: Optional[float] = None
    samples: List[float] = field(default_factory=list)

    @property
    def mean_seconds(self) -> float:
        return self.total_seconds / self.count if self.count else 0.0

    @property
    def median_seconds(self) -> float:
        return statistics.median(self.samples) if self.samples else 0.0

    def record(self, seconds: float) -> None:
        self.count += 1
        self.total_seconds += seconds
        if self.fastest_seconds is None or seconds < self.fastest_seconds:
            self.fastest_seconds = seconds
        if self.slowest_seconds is None or seconds > self.slowest_seconds:
            self.slowest_seconds = seconds
        self.samples.append(seconds)
        del self.samples[:-MAX_SAMPLES]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "total_seconds": self.total_seconds,
            "mean_seconds": self.mean_seconds,
            "median_seconds": self.median_seconds,
            "fastest_seconds": self.fastest_seconds or 0.0,
            "slowest_seconds": self.slowest_seconds or 0.0,
        }


class Timer:
    """Context manager measuring a block, with optional laps.

    Usage:
        with Timer("fit") as timer:
            for epoch in range(epochs):
                run_epoch()
                stats.record(timer.lap())
        timer.elapsed_ms

    When named and ``log`` is set, the total is logged at DEBUG on exit.
    """

    def __init__(self, name: Optional[str] = None, log: bool = True):
        self.name = name
        self.log = log
        self._start: Optional[float] = None
        self._stop: Optional[float] = None
        self._lap: Optional[float] = None

    def __enter__(self) -> "Timer":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self._stop = time.perf_counter()
        if self.log and self.name:
            logger.debug(f"{self.name} finished in {self.elapsed:.3f}s")

    def start(self) -> None:
        self._start = self._lap = time.perf_counter()
        self._stop = None

    def lap(self) -> float:
        """Seconds since the previous lap (or the start)."""
        now = time.perf_counter()
        if self._lap is None:
            self._start = self._lap = now
            return 0.0
        seconds, self._lap = now - self._lap, now
        return seconds

    @property
    def elapsed(self) -> float:
        """Seconds from start to exit, or to now while running."""
        if self._start is None:
            return 0.0
        end = self._stop if self._stop is not None else time.perf_counter()
        return end - self._start

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000


__all__ = ["Timer", "TimingStats"]
