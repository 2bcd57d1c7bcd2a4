"""
Frame-rate statistics.
"""

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

import numpy as np

MIN_INTERVAL = 1e-6


@dataclass(frozen=True)
class FpsStats:
    """Aggregate of a list of FPS samples."""
    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0
    std: float = 0.0
    count: int = 0


def summarize(samples: Iterable[float]) -> FpsStats:
    """
    Aggregate FPS samples.

    The standard deviation is the sample standard deviation (n - 1), zero with
    fewer than two samples. No samples gives all-zero statistics.
    """
    values = np.asarray(list(samples), dtype=np.float64)
    if values.size == 0:
        return FpsStats()

    std = float(np.std(values, ddof=1)) if values.size >= 2 else 0.0
    return FpsStats(
        avg=float(np.mean(values)),
        min=float(np.min(values)),
        max=float(np.max(values)),
        std=std,
        count=int(values.size),
    )


class FpsAverager:
    """
    Rolling average of instantaneous FPS over the last ``window`` ticks.

    Used for the live title bar, not for benchmark results.
    """

    def __init__(self, window: int = 120, clock: Callable[[], float] = time.perf_counter):
        self._clock = clock
        self._samples = deque(maxlen=window)
        self._last: Optional[float] = None

    def tick(self) -> float:
        """Record a frame and return the current average FPS."""
        now = self._clock()
        if self._last is not None:
            dt = now - self._last
            if dt > MIN_INTERVAL:
                self._samples.append(1.0 / dt)
        self._last = now
        return sum(self._samples) / len(self._samples) if self._samples else 0.0
