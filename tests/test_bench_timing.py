"""Tests for labelbench.bench.timing — stopwatch and timed labeling calls."""

from __future__ import annotations

import unittest

import numpy as np

from bench_test_helpers import ScriptedStopwatch, corner_mask, reference_entry
from labelbench.bench.algorithms import AlgorithmEntry
from labelbench.bench.timing import Stopwatch, run_timed


def _clock(*ticks: float):
    values = iter(ticks)
    return lambda: next(values)


# ---------------------------------------------------------------------------
# Stopwatch tests
# ---------------------------------------------------------------------------


class TestStopwatch(unittest.TestCase):
    """Tests for the named Stopwatch."""

    def test_elapsed_in_milliseconds(self) -> None:
        """A 0.25 s interval is reported as 250 ms."""
        sw = Stopwatch(clock=_clock(1.0, 1.25))
        sw.start("UF")
        self.assertAlmostEqual(sw.stop("UF"), 250.0, places=5)
        self.assertAlmostEqual(sw.last("UF"), 250.0, places=5)

    def test_independent_marks(self) -> None:
        sw = Stopwatch(clock=_clock(0.0, 1.0, 1.5, 3.0))
        sw.start("a")
        sw.start("b")
        self.assertAlmostEqual(sw.stop("b"), 500.0, places=5)
        self.assertAlmostEqual(sw.stop("a"), 3000.0, places=5)

    def test_never_negative(self) -> None:
        sw = Stopwatch(clock=_clock(2.0, 1.0))
        sw.start("x")
        self.assertEqual(sw.stop("x"), 0.0)

    def test_stop_without_start(self) -> None:
        with self.assertRaises(KeyError):
            Stopwatch().stop("nothing")

    def test_last_without_measurement(self) -> None:
        with self.assertRaises(KeyError):
            Stopwatch().last("nothing")

    def test_real_clock(self) -> None:
        sw = Stopwatch()
        sw.start("x")
        self.assertGreaterEqual(sw.stop("x"), 0.0)


# ---------------------------------------------------------------------------
# run_timed tests
# ---------------------------------------------------------------------------


class TestRunTimed(unittest.TestCase):
    """Tests for run_timed()."""

    def test_returns_labels_and_time(self) -> None:
        timed = run_timed(reference_entry("UF"), corner_mask(), ScriptedStopwatch({"UF": [3.5]}))
        self.assertEqual(timed.elapsed_ms, 3.5)
        self.assertEqual(timed.n_labels, 3)
        self.assertEqual(timed.labels.shape, (4, 4))

    def test_mark_uses_algorithm_name(self) -> None:
        sw = ScriptedStopwatch({"FF": [1.25]})
        entry = AlgorithmEntry(func=lambda img: (np.zeros_like(img), 0), name="FF")
        run_timed(entry, corner_mask(), sw)
        self.assertEqual(sw.last("FF"), 1.25)

    def test_count_is_int(self) -> None:
        entry = AlgorithmEntry(func=lambda img: (np.zeros_like(img), np.int32(4)), name="X")
        timed = run_timed(entry, corner_mask(), ScriptedStopwatch())
        self.assertIsInstance(timed.n_labels, int)


if __name__ == "__main__":
    unittest.main()
