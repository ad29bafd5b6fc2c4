"""Benchmark execution engine.

Orchestrates:
1. Configuration validation and algorithm resolution
2. The differential correctness check
3. Averages tests (one dataset at a time)
4. Density/size tests
5. Memory access tests
6. Incremental result writing and progress reporting

Every (test kind, dataset) step is isolated: a dataset that cannot be
read, an algorithm that raises, or an artifact that cannot be written
marks that step as ``error`` and the run moves on to the next one.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from labelbench.bench.algorithms import (
    NULL_REFERENCE,
    AlgorithmEntry,
    MemoryAlgorithmEntry,
    get_algorithm,
    resolve_algorithms,
    resolve_memory_algorithms,
)
from labelbench.bench.buckets import average_by_algorithm, bucket_density_size
from labelbench.bench.checker import CheckReport, check_algorithms
from labelbench.bench.config import BenchConfig, check_config
from labelbench.bench.dataset import Dataset, FileRecord, load_dataset
from labelbench.bench.export import (
    format_averages,
    format_broad_results,
    format_bucket_table,
    format_memory_results,
    format_null_results,
    write_artifact,
)
from labelbench.bench.images import ImageLoader, load_binary_mask, save_color_labels
from labelbench.bench.labels import canonicalize
from labelbench.bench.memory import run_memory_test
from labelbench.bench.results import (
    KIND_AVERAGES,
    KIND_DENSITY_SIZE,
    KIND_MEMORY,
    BenchMeta,
    DatasetResult,
    append_dataset_result,
    save_bench_run,
    write_meta,
)
from labelbench.bench.stats import describe
from labelbench.bench.timing import Stopwatch
from labelbench.bench.trials import LabelsCallback, TrialEndCallback, TrialResults, run_trials

log = logging.getLogger("labelbench")


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass
class BenchProgress:
    """Progress info passed to the callback."""

    phase: str  # "check", "averages", "density_size", "memory", "done"
    dataset: str
    datasets_done: int
    datasets_total: int
    status: str = ""
    detail: str = ""


# Type alias for the progress callback.
ProgressCallback = Any  # Callable[[BenchProgress], None] | None


def _trial_averages(trials: list[np.ndarray], n_algorithms: int) -> list[list[float]]:
    """Per algorithm, the dataset average of every kept trial."""
    series: list[list[float]] = [[] for _ in range(n_algorithms)]
    for matrix in trials:
        for j in range(n_algorithms):
            column = matrix[:, j]
            valid = column[~np.isnan(column)]
            if valid.size:
                series[j].append(float(valid.mean()))
    return series


# ---------------------------------------------------------------------------
# BenchRunner
# ---------------------------------------------------------------------------


class BenchRunner:
    """Executes a benchmark run according to a BenchConfig.

    Usage::

        config = BenchConfig(algorithm_keys=[...], algorithm_names=[...])
        runner = BenchRunner(config)
        meta, results = runner.run()
    """

    def __init__(
        self,
        config: BenchConfig,
        progress_callback: ProgressCallback = None,
        *,
        loader: ImageLoader = load_binary_mask,
        stopwatch_factory: Any = Stopwatch,
    ) -> None:
        self.config = config
        self.progress: Any = progress_callback or self._default_progress
        self.loader = loader
        self.stopwatch_factory = stopwatch_factory

    def run(self) -> tuple[BenchMeta, list[DatasetResult]]:
        """Execute the full benchmark.

        Returns:
            Tuple of (BenchMeta, list of DatasetResult).

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        cfg = self.config

        # Phase 1: Validate configuration and resolve algorithms.
        check_config(cfg)
        algorithms = resolve_algorithms(cfg.algorithm_keys, cfg.algorithm_names)
        memory_algorithms: list[MemoryAlgorithmEntry] = []
        if cfg.mt_perform:
            memory_algorithms = resolve_memory_algorithms(
                cfg.memory_algorithm_keys, cfg.memory_algorithm_names
            )

        # Phase 2: Prepare output directory and metadata.
        output_dir = cfg.output_path
        meta = BenchMeta(
            bench_id=cfg.bench_id,
            name=cfg.name,
            description=cfg.description,
            config={
                "at_tests_number": cfg.at_tests_number,
                "ds_tests_number": cfg.ds_tests_number,
                "check_list": cfg.check_list,
                "averages_tests": cfg.averages_tests if cfg.at_perform else [],
                "density_size_tests": cfg.density_size_tests if cfg.ds_perform else [],
                "memory_tests": cfg.memory_tests if cfg.mt_perform else [],
                "input_path": str(cfg.input_path),
            },
            cli_args=cfg.cli_args,
            algorithm_names=[a.name for a in algorithms],
            memory_algorithm_names=[a.name for a in memory_algorithms],
            start_time=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
        )
        write_meta(output_dir, meta)
        results_path = output_dir / "bench_results.jsonl"
        results_path.write_text("")

        # Phase 3: Differential check.
        if cfg.perform_check and algorithms:
            meta.check = self._run_check(algorithms)

        # Phase 4: Tests.
        steps: list[tuple[str, str]] = []
        if cfg.at_perform:
            steps += [(KIND_AVERAGES, ds) for ds in cfg.averages_tests]
        if cfg.ds_perform:
            steps += [(KIND_DENSITY_SIZE, ds) for ds in cfg.density_size_tests]
        if cfg.mt_perform:
            steps += [(KIND_MEMORY, ds) for ds in cfg.memory_tests]
        meta.datasets_total = len(steps)

        results: list[DatasetResult] = []
        for done, (kind, ds_name) in enumerate(steps):
            if kind == KIND_MEMORY:
                result = self._run_step(kind, ds_name, memory_algorithms=memory_algorithms)
            else:
                result = self._run_step(kind, ds_name, algorithms=algorithms)
            results.append(result)
            try:
                append_dataset_result(results_path, result)
            except OSError as exc:
                log.error("Could not append %s result for '%s': %s", kind, ds_name, exc)
            self.progress(
                BenchProgress(
                    phase=kind,
                    dataset=ds_name,
                    datasets_done=done + 1,
                    datasets_total=len(steps),
                    status=result.status,
                    detail=result.message,
                )
            )

        # Phase 5: Finalize.
        meta.end_time = time.strftime("%Y-%m-%dT%H:%M:%S%z")
        meta.datasets_completed = sum(1 for r in results if r.ok)
        meta.datasets_failed = sum(1 for r in results if not r.ok)
        save_bench_run(output_dir, meta, results)
        self.progress(
            BenchProgress(
                phase="done",
                dataset="",
                datasets_done=len(steps),
                datasets_total=len(steps),
            )
        )
        log.info("Benchmark complete: %s", output_dir)
        return meta, results

    # -- Check ---------------------------------------------------------------

    def _run_check(self, algorithms: list[AlgorithmEntry]) -> CheckReport:
        cfg = self.config
        log.info("Checking %d algorithms against the reference", len(algorithms))
        report = check_algorithms(
            algorithms,
            cfg.check_list,
            input_path=cfg.input_path,
            loader=self.loader,
            list_file=cfg.list_file,
        )
        if not report.performed:
            log.warning("Unable to perform check, no image was compared")
        else:
            for r in report.results:
                if r.correct:
                    log.info("Check: %s is correct", r.name)
                else:
                    log.warning("Check: %s is incorrect (first failure: %s)", r.name, r.first_fail)
        self.progress(
            BenchProgress(
                phase="check",
                dataset="",
                datasets_done=0,
                datasets_total=len(cfg.check_list),
                status="ok" if report.all_correct else "error",
                detail=f"{report.images_compared} images compared",
            )
        )
        return report

    # -- Steps ---------------------------------------------------------------

    def _run_step(
        self,
        kind: str,
        ds_name: str,
        *,
        algorithms: list[AlgorithmEntry] | None = None,
        memory_algorithms: list[MemoryAlgorithmEntry] | None = None,
    ) -> DatasetResult:
        """Run one test kind on one dataset, never raising."""
        result = DatasetResult(dataset=ds_name, kind=kind)
        log.info("%s test on '%s': starts", kind, ds_name)
        start = time.monotonic()
        try:
            dataset = load_dataset(self.config.input_path, ds_name, self.config.list_file)
            result.files_total = len(dataset)
            if kind == KIND_MEMORY:
                if not memory_algorithms:
                    raise ValueError("no memory algorithms available")
                self._memory_test(dataset, memory_algorithms, result)
            else:
                if not algorithms:
                    raise ValueError("no labeling algorithms available")
                if kind == KIND_AVERAGES:
                    self._averages_test(dataset, algorithms, result)
                else:
                    self._density_size_test(dataset, algorithms, result)
        except Exception as exc:  # noqa: BLE001
            log.error("%s test on '%s' failed: %s", kind, ds_name, exc)
            result.status = "error"
            result.message = str(exc)
        result.wall_time_s = time.monotonic() - start
        log.info("%s test on '%s': ends (%s)", kind, ds_name, result.status)
        return result

    def _color_writer(self, colors_dir: Path) -> LabelsCallback:
        def on_labels(record: FileRecord, algorithm: AlgorithmEntry, labels: np.ndarray) -> None:
            canonical, _ = canonicalize(labels)
            path = colors_dir / f"{record.filename}_{algorithm.file_name}.png"
            save_color_labels(canonical, path)

        return on_labels

    def _middle_writer(self, middle_dir: Path, ds_name: str) -> TrialEndCallback:
        write_n_labels = self.config.write_n_labels

        def on_trial_end(trial: int, results: TrialResults) -> None:
            text = format_broad_results(results, results.current, write_n_labels=write_n_labels)
            write_artifact(middle_dir / f"{ds_name}_run_{trial}.txt", text)

        return on_trial_end

    def _timed_trials(
        self,
        dataset: Dataset,
        algorithms: list[AlgorithmEntry],
        *,
        n_trials: int,
        save_middle: bool,
        color_labels: bool,
        null_reference: AlgorithmEntry | None = None,
    ) -> TrialResults:
        cfg = self.config
        out_dir = cfg.dataset_dir(dataset.name)
        trials = run_trials(
            dataset,
            algorithms,
            n_trials=n_trials,
            loader=self.loader,
            stopwatch=self.stopwatch_factory(),
            null_reference=null_reference,
            keep_trials=n_trials > 1,
            on_trial_end=(
                self._middle_writer(out_dir / cfg.middle_folder, dataset.name)
                if save_middle
                else None
            ),
            on_labels=self._color_writer(out_dir / cfg.colors_folder) if color_labels else None,
        )
        write_artifact(
            out_dir / f"{dataset.name}_results.txt",
            format_broad_results(trials, trials.minimum, write_n_labels=cfg.write_n_labels),
        )
        return trials

    def _averages_test(
        self, dataset: Dataset, algorithms: list[AlgorithmEntry], result: DatasetResult
    ) -> None:
        cfg = self.config
        trials = self._timed_trials(
            dataset,
            algorithms,
            n_trials=cfg.at_tests_number,
            save_middle=cfg.at_save_middle_tests,
            color_labels=cfg.at_color_labels,
        )
        cells = average_by_algorithm(trials.minimum)
        write_artifact(
            cfg.dataset_dir(dataset.name) / f"{dataset.name}_averages.txt",
            format_averages(trials.algorithm_names, cells),
        )
        result.algorithm_names = trials.algorithm_names
        result.files_loaded = len(dataset.present_files)
        result.n_trials = trials.n_trials
        result.averages = cells
        if trials.trials:
            series = _trial_averages(trials.trials, len(algorithms))
            result.trial_spread = [describe(values) for values in series]

    def _density_size_test(
        self, dataset: Dataset, algorithms: list[AlgorithmEntry], result: DatasetResult
    ) -> None:
        cfg = self.config
        trials = self._timed_trials(
            dataset,
            algorithms,
            n_trials=cfg.ds_tests_number,
            save_middle=cfg.ds_save_middle_tests,
            color_labels=cfg.ds_color_labels,
            null_reference=get_algorithm(NULL_REFERENCE, "NULL_reference"),
        )
        stats = bucket_density_size(trials)
        out_dir = cfg.dataset_dir(dataset.name)
        names = trials.algorithm_names
        write_artifact(
            out_dir / "density.txt", format_bucket_table("Density", names, stats.density_rows())
        )
        write_artifact(
            out_dir / "normalized_density.txt",
            format_bucket_table("DensityNorm", names, stats.normalized_density_rows()),
        )
        write_artifact(out_dir / "size.txt", format_bucket_table("Size", names, stats.size_rows()))
        write_artifact(out_dir / f"{dataset.name}_NULL_results.txt", format_null_results(trials))
        result.algorithm_names = names
        result.files_loaded = len(dataset.present_files)
        result.n_trials = trials.n_trials
        result.density_size = stats

    def _memory_test(
        self,
        dataset: Dataset,
        algorithms: list[MemoryAlgorithmEntry],
        result: DatasetResult,
    ) -> None:
        memory = run_memory_test(dataset, algorithms, loader=self.loader)
        write_artifact(
            self.config.dataset_dir(dataset.name) / "memory_accesses.txt",
            format_memory_results(memory),
        )
        result.algorithm_names = memory.algorithm_names
        result.files_loaded = memory.files_loaded
        result.n_trials = 1
        result.memory = memory

    @staticmethod
    def _default_progress(progress: BenchProgress) -> None:
        """Default progress callback: log to the labelbench logger."""
        if progress.phase == "done":
            log.info("All %d tests done", progress.datasets_total)
        elif progress.phase == "check":
            log.info("Check finished: %s", progress.detail)
        else:
            log.info(
                "[%d/%d] %s %s: %s",
                progress.datasets_done,
                progress.datasets_total,
                progress.phase,
                progress.dataset,
                progress.status,
            )
