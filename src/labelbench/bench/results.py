"""Benchmark result data structures and serialization.

Hierarchy::

    BenchMeta (top level, one benchmark execution)
      -> config: dict
      -> check: CheckReport

    DatasetResult (one test kind on one dataset)
      -> averages: list[AggregateCell]         (averages tests)
      -> trial_spread: list[DescriptiveStats]  (averages tests, N > 1)
      -> density_size: DensitySizeStats        (density/size tests)
      -> memory: MemoryResults                 (memory tests)

Files produced in the output directory::

    bench_meta.json      BenchMeta
    bench_results.jsonl  one DatasetResult per line
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from labelbench.bench.buckets import DensitySizeStats
from labelbench.bench.checker import CheckReport
from labelbench.bench.memory import MemoryResults
from labelbench.bench.stats import AggregateCell, DescriptiveStats

log = logging.getLogger("labelbench")

KIND_AVERAGES = "averages"
KIND_DENSITY_SIZE = "density_size"
KIND_MEMORY = "memory"


# ---------------------------------------------------------------------------
# Dataset-level result
# ---------------------------------------------------------------------------


@dataclass
class DatasetResult:
    """Outcome of one test kind on one dataset."""

    dataset: str
    kind: str  # "averages", "density_size", "memory"
    status: str = "ok"  # "ok", "error"
    message: str = ""
    algorithm_names: list[str] = field(default_factory=list)
    files_total: int = 0
    files_loaded: int = 0
    n_trials: int = 0
    wall_time_s: float = 0.0
    averages: list[AggregateCell] = field(default_factory=list)
    trial_spread: list[DescriptiveStats] = field(default_factory=list)
    density_size: DensitySizeStats | None = None
    memory: MemoryResults | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {
            "dataset": self.dataset,
            "kind": self.kind,
            "status": self.status,
            "algorithm_names": self.algorithm_names,
            "files_total": self.files_total,
            "files_loaded": self.files_loaded,
            "n_trials": self.n_trials,
            "wall_time_s": round(self.wall_time_s, 3),
        }
        if self.message:
            d["message"] = self.message
        if self.averages:
            d["averages"] = [c.to_dict() for c in self.averages]
        if self.trial_spread:
            d["trial_spread"] = [s.to_dict() for s in self.trial_spread]
        if self.density_size is not None:
            d["density_size"] = self.density_size.to_dict()
        if self.memory is not None:
            d["memory"] = self.memory.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DatasetResult:
        """Deserialize from a dict."""
        result = cls(dataset=data["dataset"], kind=data["kind"])
        result.status = data.get("status", "ok")
        result.message = data.get("message", "")
        result.algorithm_names = list(data.get("algorithm_names", []))
        result.files_total = data.get("files_total", 0)
        result.files_loaded = data.get("files_loaded", 0)
        result.n_trials = data.get("n_trials", 0)
        result.wall_time_s = data.get("wall_time_s", 0.0)
        result.averages = [AggregateCell.from_dict(c) for c in data.get("averages", [])]
        result.trial_spread = [DescriptiveStats.from_dict(s) for s in data.get("trial_spread", [])]
        if "density_size" in data:
            result.density_size = DensitySizeStats.from_dict(data["density_size"])
        if "memory" in data:
            result.memory = MemoryResults.from_dict(data["memory"])
        return result

    def to_jsonl_line(self) -> str:
        """Serialize to a single JSON line."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_jsonl_line(cls, line: str) -> DatasetResult:
        return cls.from_dict(json.loads(line))


# ---------------------------------------------------------------------------
# Run-level metadata
# ---------------------------------------------------------------------------


@dataclass
class BenchMeta:
    """Metadata for a complete benchmark execution."""

    bench_id: str
    name: str = ""
    description: str = ""
    config: dict[str, Any] = field(default_factory=dict)
    cli_args: list[str] = field(default_factory=list)
    algorithm_names: list[str] = field(default_factory=list)
    memory_algorithm_names: list[str] = field(default_factory=list)
    check: CheckReport | None = None
    start_time: str = ""
    end_time: str = ""
    datasets_total: int = 0
    datasets_completed: int = 0
    datasets_failed: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "bench_id": self.bench_id,
            "name": self.name,
            "description": self.description,
            "config": self.config,
            "cli_args": self.cli_args,
            "algorithm_names": self.algorithm_names,
            "memory_algorithm_names": self.memory_algorithm_names,
            "check": self.check.to_dict() if self.check is not None else None,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "datasets_total": self.datasets_total,
            "datasets_completed": self.datasets_completed,
            "datasets_failed": self.datasets_failed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BenchMeta:
        """Deserialize from a dict."""
        meta = cls(bench_id=data["bench_id"])
        meta.name = data.get("name", "")
        meta.description = data.get("description", "")
        meta.config = data.get("config", {})
        meta.cli_args = data.get("cli_args", [])
        meta.algorithm_names = data.get("algorithm_names", [])
        meta.memory_algorithm_names = data.get("memory_algorithm_names", [])
        if data.get("check") is not None:
            meta.check = CheckReport.from_dict(data["check"])
        meta.start_time = data.get("start_time", "")
        meta.end_time = data.get("end_time", "")
        meta.datasets_total = data.get("datasets_total", 0)
        meta.datasets_completed = data.get("datasets_completed", 0)
        meta.datasets_failed = data.get("datasets_failed", 0)
        return meta


# ---------------------------------------------------------------------------
# I/O functions
# ---------------------------------------------------------------------------


def write_meta(output_dir: Path, meta: BenchMeta) -> Path:
    """Write ``bench_meta.json`` and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    meta_path = output_dir / "bench_meta.json"
    meta_path.write_text(json.dumps(meta.to_dict(), indent=2) + "\n")
    return meta_path


def save_bench_run(
    output_dir: Path,
    meta: BenchMeta,
    results: list[DatasetResult],
) -> None:
    """Save a complete benchmark run to disk.

    Creates ``output_dir/bench_meta.json`` and
    ``output_dir/bench_results.jsonl``.
    """
    meta_path = write_meta(output_dir, meta)
    log.info("Wrote %s", meta_path)

    results_path = output_dir / "bench_results.jsonl"
    with open(results_path, "w") as f:
        for result in results:
            f.write(result.to_jsonl_line() + "\n")
    log.info("Wrote %d dataset results to %s", len(results), results_path)


def load_bench_run(run_dir: Path) -> tuple[BenchMeta, list[DatasetResult]]:
    """Load a benchmark run from disk.

    Raises:
        FileNotFoundError: If ``bench_meta.json`` is missing.
    """
    meta_path = run_dir / "bench_meta.json"
    if not meta_path.exists():
        raise FileNotFoundError(f"No bench_meta.json in {run_dir}")

    meta = BenchMeta.from_dict(json.loads(meta_path.read_text()))

    results: list[DatasetResult] = []
    results_path = run_dir / "bench_results.jsonl"
    if results_path.exists():
        for line in results_path.read_text().splitlines():
            line = line.strip()
            if line:
                results.append(DatasetResult.from_jsonl_line(line))

    return meta, results


def append_dataset_result(results_path: Path, result: DatasetResult) -> None:
    """Append a single dataset result to the JSONL file.

    Keeps finished tests on disk if a long run is interrupted.
    """
    with open(results_path, "a") as f:
        f.write(result.to_jsonl_line() + "\n")
