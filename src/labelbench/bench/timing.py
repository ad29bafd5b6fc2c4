"""Timing capture for single algorithm executions.

A :class:`Stopwatch` keeps named start marks and the last elapsed time
per name, in milliseconds.  :func:`run_timed` wraps one call of a
labeling algorithm on one image between ``start`` and ``stop``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

import numpy as np

from labelbench.bench.algorithms import AlgorithmEntry


# ---------------------------------------------------------------------------
# Stopwatch
# ---------------------------------------------------------------------------


class Stopwatch:
    """Named wall-clock stopwatch reporting milliseconds."""

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._started: dict[str, float] = {}
        self._last: dict[str, float] = {}

    def start(self, name: str) -> None:
        self._started[name] = self._clock()

    def stop(self, name: str) -> float:
        """Stop the mark *name* and return the elapsed milliseconds.

        Raises:
            KeyError: If *name* was never started.
        """
        end = self._clock()
        begin = self._started.pop(name)
        elapsed = max(end - begin, 0.0) * 1000.0
        self._last[name] = elapsed
        return elapsed

    def last(self, name: str) -> float:
        """Return the last elapsed time recorded for *name*."""
        return self._last[name]


# ---------------------------------------------------------------------------
# TimedLabeling
# ---------------------------------------------------------------------------


@dataclass
class TimedLabeling:
    """Result of one timed labeling call."""

    elapsed_ms: float
    labels: np.ndarray
    n_labels: int


def run_timed(
    algorithm: AlgorithmEntry,
    image: np.ndarray,
    stopwatch: Stopwatch,
) -> TimedLabeling:
    """Run *algorithm* once on *image* and time it.

    Only the algorithm call sits between the stopwatch marks; result
    conversion happens after ``stop``.
    """
    stopwatch.start(algorithm.name)
    labels, n_labels = algorithm.func(image)
    elapsed = stopwatch.stop(algorithm.name)
    return TimedLabeling(elapsed_ms=elapsed, labels=labels, n_labels=int(n_labels))
