"""Tests for labelbench.bench.export — text artifacts, CSV and Markdown."""

from __future__ import annotations

import csv
import io
import tempfile
import unittest
from pathlib import Path

import numpy as np

from bench_test_helpers import (
    make_averages_result,
    make_check,
    make_density_result,
    make_memory_result,
    make_meta,
)
from labelbench.bench.buckets import BucketRow
from labelbench.bench.checker import CheckReport
from labelbench.bench.dataset import FileRecord
from labelbench.bench.export import (
    export_csv,
    export_markdown,
    format_averages,
    format_broad_results,
    format_bucket_table,
    format_memory_results,
    format_null_results,
    format_value,
    write_artifact,
)
from labelbench.bench.memory import MemoryResults
from labelbench.bench.results import DatasetResult
from labelbench.bench.stats import AggregateCell
from labelbench.bench.trials import TrialResults


def _trial_results() -> TrialResults:
    files = [FileRecord("a.png"), FileRecord("b.png", present=False), FileRecord("c.png")]
    minimum = np.array([[1.5, 2.0], [np.nan, np.nan], [0.25, 3.0]])
    return TrialResults(
        dataset="hamlet",
        files=files,
        algorithm_names=["UF", "CT\\\\_OPT"],
        current=minimum + 1.0,
        minimum=minimum,
        n_labels=np.array([[3, 3], [0, 0], [7, 7]]),
        n_trials=2,
        null_minimum=np.array([0.5, np.nan, 0.125]),
    )


# ---------------------------------------------------------------------------
# Tab-delimited artifacts
# ---------------------------------------------------------------------------


class TestFormatValue(unittest.TestCase):
    def test_float(self) -> None:
        self.assertEqual(format_value(4.2), "4.2")
        self.assertEqual(format_value(2.0), "2")

    def test_int_never_exponent(self) -> None:
        self.assertEqual(format_value(4096 * 4096), "16777216")


class TestBroadResults(unittest.TestCase):
    def test_with_label_counts(self) -> None:
        results = _trial_results()
        text = format_broad_results(results, results.minimum)
        self.assertEqual(
            text,
            "#\tUF\tn_label\tCT\\\\_OPT\tn_label\n"
            "a.png\t1.5\t3\t2\t3\n"
            "c.png\t0.25\t7\t3\t7\n",
        )

    def test_without_label_counts(self) -> None:
        results = _trial_results()
        text = format_broad_results(results, results.current, write_n_labels=False)
        lines = text.splitlines()
        self.assertEqual(lines[0], "#\tUF\tCT\\\\_OPT")
        self.assertEqual(lines[1], "a.png\t2.5\t3")


class TestFormatAverages(unittest.TestCase):
    def test_rows(self) -> None:
        text = format_averages(
            ["UF", "FF"], [AggregateCell(total=5.0, count=2), AggregateCell()]
        )
        self.assertEqual(
            text,
            "#Algorithm\tAverage\tRound Average for Graphs\n"
            "UF\t2.5\t2.50\n"
            "#FF\t0\t0.00\n",
        )


class TestFormatBucketTable(unittest.TestCase):
    def test_no_data_rows_commented(self) -> None:
        rows = [
            BucketRow(x=0.1, cells=[AggregateCell(total=4.0, count=2)]),
            BucketRow(x=0.2, cells=[AggregateCell()]),
        ]
        text = format_bucket_table("Density", ["UF"], rows)
        self.assertEqual(text, "#Density\tUF\n0.1\t2\n#0.2\t0\n")

    def test_size_rows(self) -> None:
        rows = [BucketRow(x=1024, cells=[AggregateCell(total=1.0, count=1)])]
        text = format_bucket_table("Size", ["UF"], rows)
        self.assertEqual(text.splitlines()[1], "1024\t1")


class TestFormatNullResults(unittest.TestCase):
    def test_present_files_only(self) -> None:
        self.assertEqual(format_null_results(_trial_results()), "a.png\t0.5\nc.png\t0.125\n")

    def test_without_null_reference(self) -> None:
        results = _trial_results()
        results.null_minimum = None
        self.assertEqual(format_null_results(results), "")


class TestFormatMemoryResults(unittest.TestCase):
    def test_rows(self) -> None:
        text = format_memory_results(make_memory_result().memory)
        self.assertEqual(
            text,
            "#Algorithm\tBinary\tLabel\tEquivalence\tOther\tTotal\n"
            "UF\t5\t10\t15\t0\t30\n",
        )

    def test_no_files_loaded(self) -> None:
        memory = MemoryResults(
            dataset="ds",
            algorithm_names=["UF"],
            cells=[[AggregateCell() for _ in range(4)]],
            files_total=2,
        )
        lines = format_memory_results(memory).splitlines()
        self.assertEqual(lines[1], "#UF\t0\t0\t0\t0\t0")


class TestWriteArtifact(unittest.TestCase):
    def test_creates_parents(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = write_artifact(Path(tmp) / "hamlet" / "hamlet_averages.txt", "x\n")
            self.assertEqual(path.read_text(), "x\n")


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


class TestExportCsv(unittest.TestCase):
    def _rows(self, results: list[DatasetResult]) -> list[list[str]]:
        return list(csv.reader(io.StringIO(export_csv(make_meta(), results))))

    def test_header(self) -> None:
        rows = self._rows([])
        self.assertEqual(rows, [["kind", "dataset", "algorithm", "series", "x", "value", "count"]])

    def test_averages(self) -> None:
        rows = self._rows([make_averages_result()])
        self.assertEqual(
            rows[1], ["averages", "fingerprints", "UF", "average", "", "2.500000", "4"]
        )
        self.assertEqual(rows[2][2], "FF")

    def test_density_size(self) -> None:
        rows = self._rows([make_density_result()])
        # 2 algorithms x (9 density + 9 normalized + 8 size) buckets
        self.assertEqual(len(rows) - 1, 2 * (9 + 9 + 8))
        density = [r for r in rows[1:] if r[3] == "density" and r[4] == "0.2"]
        self.assertEqual([r[5] for r in density], ["2.000000", "3.000000"])
        size = [r for r in rows[1:] if r[3] == "size"]
        self.assertEqual(size[0][4], "1024")

    def test_memory(self) -> None:
        rows = self._rows([make_memory_result()])
        self.assertEqual([r[3] for r in rows[1:]], ["binary", "label", "equivalence", "other"])
        self.assertEqual(rows[2][5], "10.000000")

    def test_failed_results_skipped(self) -> None:
        failed = DatasetResult(dataset="x", kind="averages", status="error", message="boom")
        self.assertEqual(len(self._rows([failed])), 1)


# ---------------------------------------------------------------------------
# Markdown export
# ---------------------------------------------------------------------------


class TestExportMarkdown(unittest.TestCase):
    def test_sections(self) -> None:
        results = [make_averages_result(), make_density_result(), make_memory_result()]
        md = export_markdown(make_meta(check=make_check()), results)
        self.assertTrue(md.startswith("# Test Benchmark"))
        self.assertIn("## Correctness check", md)
        self.assertIn("## Average minimum time (ms)", md)
        self.assertIn("| fingerprints | 2.50 | 5.00 |", md)
        self.assertIn("## Density and size: test_random", md)
        self.assertIn("## Memory accesses: medical", md)
        self.assertIn("*Generated by labelbench on 2024-01-01T00:00:00*", md)

    def test_incorrect_algorithm(self) -> None:
        md = export_markdown(make_meta(check=make_check(fail="input/ds/f3.png")), [])
        self.assertIn("| FF | incorrect | input/ds/f3.png |", md)

    def test_check_not_performed(self) -> None:
        md = export_markdown(make_meta(check=CheckReport()), [])
        self.assertIn("Unable to perform check", md)

    def test_escaped_names_collapsed(self) -> None:
        result = make_averages_result()
        result.algorithm_names = ["CT\\\\_OPT", "UF"]
        md = export_markdown(make_meta(), [result])
        self.assertIn("| Dataset | CT\\_OPT | UF |", md)

    def test_errors_section(self) -> None:
        failed = DatasetResult(
            dataset="hamlet", kind="averages", status="error", message="Unable to open"
        )
        md = export_markdown(make_meta(), [failed])
        self.assertIn("## Errors", md)
        self.assertIn("- **averages** on `hamlet`: Unable to open", md)
        self.assertNotIn("## Average minimum time", md)


if __name__ == "__main__":
    unittest.main()
