"""Tests for labelbench.bench.display — terminal formatting of results."""

from __future__ import annotations

import unittest

from bench_test_helpers import (
    make_averages_result,
    make_check,
    make_density_result,
    make_memory_result,
    make_meta,
)
from labelbench.bench.checker import CheckReport
from labelbench.bench.display import (
    format_averages_table,
    format_bench_show,
    format_bucket_rows,
    format_check_report,
    format_memory_table,
    format_trial_spread,
)
from labelbench.bench.memory import MemoryResults
from labelbench.bench.results import DatasetResult
from labelbench.bench.stats import AggregateCell, describe


class TestFormatCheckReport(unittest.TestCase):
    def test_all_correct(self) -> None:
        text = format_check_report(make_check())
        self.assertIn("UF", text)
        self.assertIn("CORRECT", text)
        self.assertNotIn("INCORRECT", text)
        self.assertIn("4 images compared", text)

    def test_incorrect(self) -> None:
        text = format_check_report(make_check(fail="input/ds/f3.png"))
        self.assertIn("INCORRECT", text)
        self.assertIn("input/ds/f3.png", text)

    def test_stopped_early(self) -> None:
        check = make_check(fail="x.png")
        check.stopped_early = True
        self.assertIn("stopped early", format_check_report(check))

    def test_not_performed(self) -> None:
        self.assertIn("Unable to perform check", format_check_report(CheckReport()))


class TestFormatAveragesTable(unittest.TestCase):
    def test_rows(self) -> None:
        text = format_averages_table([make_averages_result(), make_averages_result("hamlet")])
        lines = text.splitlines()
        self.assertEqual(len(lines), 3)
        self.assertIn("Dataset", lines[0])
        self.assertIn("2.500", lines[1])
        self.assertIn("5.000", lines[1])
        self.assertIn("4/4", lines[1])
        self.assertIn("hamlet", lines[2])

    def test_collapses_escapes(self) -> None:
        result = make_averages_result()
        result.algorithm_names = ["CT\\\\_OPT", "UF"]
        self.assertIn("CT\\_OPT", format_averages_table([result]))


class TestFormatTrialSpread(unittest.TestCase):
    def test_empty_without_spread(self) -> None:
        self.assertEqual(format_trial_spread([make_averages_result()]), "")

    def test_rows(self) -> None:
        result = make_averages_result()
        result.trial_spread = [describe([1.0, 2.0, 3.0]), describe([4.0, 5.0, 6.0])]
        lines = format_trial_spread([result]).splitlines()
        self.assertEqual(len(lines), 3)
        self.assertIn("1.000", lines[1])
        self.assertIn("3.000", lines[1])


class TestFormatBucketRows(unittest.TestCase):
    def test_only_rows_with_data(self) -> None:
        ds = make_density_result().density_size
        lines = format_bucket_rows("Density", ds.algorithm_names, ds.density_rows()).splitlines()
        self.assertEqual(len(lines), 2)
        self.assertIn("0.2", lines[1])
        self.assertIn("2.000", lines[1])

    def test_no_data(self) -> None:
        ds = make_density_result().density_size
        ds.size = [[AggregateCell() for _ in row] for row in ds.size]
        text = format_bucket_rows("Pixels", ds.algorithm_names, ds.size_rows())
        self.assertEqual(text, "  (no data)")


class TestFormatMemoryTable(unittest.TestCase):
    def test_rows(self) -> None:
        text = format_memory_table(make_memory_result().memory)
        self.assertIn("Equivalence", text)
        self.assertIn("30", text.splitlines()[1])

    def test_nothing_loaded(self) -> None:
        memory = MemoryResults(dataset="ds", algorithm_names=["UF"], cells=[], files_total=1)
        self.assertIn("no image could be loaded", format_memory_table(memory))


class TestFormatBenchShow(unittest.TestCase):
    def test_full_run(self) -> None:
        results = [make_averages_result(), make_density_result(), make_memory_result()]
        text = format_bench_show(make_meta(check=make_check()), results)
        self.assertTrue(text.startswith("Test Benchmark\n"))
        self.assertIn("Trials: 3 (averages), 1 (density/size)", text)
        self.assertIn("Correctness check", text)
        self.assertIn("Average minimum time (ms)", text)
        self.assertIn("Density/size: test_random", text)
        self.assertIn("Memory accesses: medical", text)
        self.assertIn("Tests", text)
        self.assertTrue(text.endswith("\n"))

    def test_failed_step_listed(self) -> None:
        failed = DatasetResult(
            dataset="hamlet", kind="averages", status="error", message="Unable to open"
        )
        text = format_bench_show(make_meta(), [failed])
        self.assertIn("ERROR", text)
        self.assertIn("averages on 'hamlet': Unable to open", text)
        self.assertNotIn("Average minimum time", text)

    def test_title_falls_back_to_bench_id(self) -> None:
        text = format_bench_show(make_meta(name=""), [])
        self.assertTrue(text.startswith("bench_test_001\n"))


if __name__ == "__main__":
    unittest.main()
