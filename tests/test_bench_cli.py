"""Tests for labelbench.bench_cli — Click CLI for bench subcommands."""

from __future__ import annotations

import csv
import io
import logging
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

from bench_test_helpers import (
    corner_mask,
    make_averages_result,
    make_check,
    make_meta,
    random_mask,
    write_dataset,
)
from labelbench.bench.results import save_bench_run
from labelbench.bench_cli import bench
from labelbench.cli import main


def _reset_logging() -> None:
    logger = logging.getLogger("labelbench")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        _reset_logging()
        self._tmp.cleanup()


class TestBenchGroupHelp(unittest.TestCase):
    """Tests for the bench group and subcommand help."""

    def test_main_lists_bench(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("bench", result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("0.1.0", result.output)

    def test_bench_group_help(self) -> None:
        result = CliRunner().invoke(bench, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for command in ("run", "check", "show", "export", "algorithms"):
            self.assertIn(command, result.output)

    def test_bench_run_help(self) -> None:
        result = CliRunner().invoke(bench, ["run", "--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--profile", result.output)
        self.assertIn("--at-trials", result.output)
        self.assertIn("--skip-check", result.output)

    def test_bench_export_help(self) -> None:
        result = CliRunner().invoke(bench, ["export", "--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--format", result.output)


class TestBenchAlgorithms(unittest.TestCase):
    def test_lists_builtins(self) -> None:
        result = CliRunner().invoke(bench, ["algorithms"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("union_find  (reference)", result.output)
        self.assertIn("null  (null reference)", result.output)
        self.assertIn("flood_fill", result.output)
        self.assertIn("union_find_mem", result.output)


class TestBenchRun(CliTestCase):
    def _args(self, *extra: str) -> list[str]:
        return [
            "run",
            "--algorithms",
            "union_find,flood_fill",
            "--names",
            "UF,FF",
            "--check-list",
            "fingerprints",
            "--averages-tests",
            "fingerprints",
            "--at-trials",
            "2",
            "--input-path",
            str(self.root / "input"),
            "--output-path",
            str(self.root / "output"),
            "--no-density-size",
            "--no-memory",
            "-q",
            *extra,
        ]

    def test_run_inline(self) -> None:
        write_dataset(self.root / "input", "fingerprints", {"a.png": corner_mask()})
        result = CliRunner().invoke(bench, self._args())
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Average minimum time", result.output)
        self.assertIn("Results saved to", result.output)
        self.assertTrue((self.root / "output" / "bench_meta.json").exists())
        self.assertTrue(
            (self.root / "output" / "fingerprints" / "fingerprints_averages.txt").exists()
        )

    def test_run_from_profile(self) -> None:
        write_dataset(self.root / "input", "medical", {"m.png": random_mask(4)})
        profile = self.root / "bench.yaml"
        profile.write_text(
            "name: profile run\n"
            "algorithm_keys: [union_find]\n"
            "algorithm_names: [UF]\n"
            "memory_algorithm_keys: [union_find_mem]\n"
            "memory_algorithm_names: [UF]\n"
            "check_list: [medical]\n"
            "averages_tests: []\n"
            "density_size_tests: []\n"
            "memory_tests: [medical]\n"
            f"input_path: {self.root / 'input'}\n"
            f"output_path: {self.root / 'output'}\n"
        )
        result = CliRunner().invoke(bench, ["run", "--profile", str(profile), "-q"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("profile run", result.output)
        self.assertTrue((self.root / "output" / "medical" / "memory_accesses.txt").exists())

    def test_invalid_config_exits_1(self) -> None:
        result = CliRunner().invoke(
            bench, ["run", "--output-path", str(self.root / "output"), "-q"]
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)

    def test_null_path_in_profile_exits_1(self) -> None:
        profile = self.root / "bench.yaml"
        profile.write_text(
            "algorithm_keys: [union_find]\nalgorithm_names: [UF]\ninput_path: null\n"
        )
        result = CliRunner().invoke(bench, ["run", "--profile", str(profile), "-q"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("'input_path' must be a directory path", result.output)


class TestBenchCheck(CliTestCase):
    def test_check_passes(self) -> None:
        write_dataset(self.root / "input", "fingerprints", {"a.png": corner_mask()})
        result = CliRunner().invoke(
            bench,
            [
                "check",
                "--algorithms",
                "flood_fill",
                "--check-list",
                "fingerprints",
                "--input-path",
                str(self.root / "input"),
            ],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("CORRECT", result.output)

    def test_check_without_images_exits_1(self) -> None:
        result = CliRunner().invoke(
            bench,
            [
                "check",
                "--algorithms",
                "flood_fill",
                "--check-list",
                "absent",
                "--input-path",
                str(self.root),
            ],
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unable to perform check", result.output)


class TestBenchShowAndExport(CliTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.run_dir = self.root / "run"
        save_bench_run(self.run_dir, make_meta(check=make_check()), [make_averages_result()])

    def test_show(self) -> None:
        result = CliRunner().invoke(bench, ["show", str(self.run_dir)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Test Benchmark", result.output)
        self.assertIn("fingerprints", result.output)

    def test_show_missing_dir(self) -> None:
        result = CliRunner().invoke(bench, ["show", "/nonexistent/path"])
        self.assertNotEqual(result.exit_code, 0)

    def test_show_dir_without_meta(self) -> None:
        empty = self.root / "empty"
        empty.mkdir()
        result = CliRunner().invoke(bench, ["show", str(empty)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("bench_meta.json", result.output)

    def test_export_csv_stdout(self) -> None:
        result = CliRunner().invoke(bench, ["export", str(self.run_dir), "--format", "csv"])
        self.assertEqual(result.exit_code, 0, result.output)
        rows = list(csv.reader(io.StringIO(result.output.strip())))
        self.assertEqual(rows[0][0], "kind")
        self.assertEqual(len(rows), 3)

    def test_export_markdown_file(self) -> None:
        out = self.root / "report.md"
        result = CliRunner().invoke(
            bench, ["export", str(self.run_dir), "--format", "markdown", "-o", str(out)]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Exported to", result.output)
        self.assertTrue(out.read_text().startswith("# Test Benchmark"))


if __name__ == "__main__":
    unittest.main()
