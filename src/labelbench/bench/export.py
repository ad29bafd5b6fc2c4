"""Report writers.

Two families:

- Tab-delimited text artifacts written next to each dataset's results
  (``<dataset>_results.txt``, ``<dataset>_averages.txt``, the density
  and size bucket files, the null reference file and the memory access
  file).  Lines starting with ``#`` are comments for plotting tools:
  the header, and bucket rows that have no data.
- Whole-run summaries: Markdown for reports and issues, CSV (long
  format, one row per value) for pandas/R.
"""

from __future__ import annotations

import csv
import io
import math
from pathlib import Path
from typing import Sequence

import numpy as np

from labelbench.bench.algorithms import AccessSlot, collapse_double_escape
from labelbench.bench.buckets import BucketRow, DensitySizeStats
from labelbench.bench.checker import CheckReport
from labelbench.bench.memory import MemoryResults
from labelbench.bench.results import (
    KIND_AVERAGES,
    KIND_DENSITY_SIZE,
    KIND_MEMORY,
    BenchMeta,
    DatasetResult,
)
from labelbench.bench.stats import AggregateCell
from labelbench.bench.trials import TrialResults

MEMORY_COLUMNS = ["Binary", "Label", "Equivalence", "Other"]


def format_value(value: float) -> str:
    """Format a number the way plotting tools read it back."""
    if isinstance(value, int):
        return str(value)
    return f"{value:g}"


def write_artifact(path: Path, text: str) -> Path:
    """Write *text* to *path*, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


# ---------------------------------------------------------------------------
# Tab-delimited artifacts
# ---------------------------------------------------------------------------


def format_broad_results(
    results: TrialResults,
    matrix: np.ndarray,
    *,
    write_n_labels: bool = True,
) -> str:
    """Per-file timings of *matrix* (``minimum`` or one trial's ``current``).

    Only files that are still present get a row.
    """
    header = ["#"]
    for name in results.algorithm_names:
        header.append(name)
        if write_n_labels:
            header.append("n_label")
    lines = ["\t".join(header)]

    for i, record in enumerate(results.files):
        if not record.present:
            continue
        row = [record.filename]
        for j in range(len(results.algorithm_names)):
            row.append(format_value(float(matrix[i, j])))
            if write_n_labels:
                row.append(str(int(results.n_labels[i, j])))
        lines.append("\t".join(row))
    return "\n".join(lines) + "\n"


def format_averages(names: Sequence[str], cells: Sequence[AggregateCell]) -> str:
    """Average per algorithm, full precision and rounded to 2 decimals."""
    lines = ["#Algorithm\tAverage\tRound Average for Graphs"]
    for name, cell in zip(names, cells):
        prefix = "" if cell.has_data else "#"
        lines.append(f"{prefix}{name}\t{format_value(cell.average)}\t{cell.average:.2f}")
    return "\n".join(lines) + "\n"


def format_bucket_table(label: str, names: Sequence[str], rows: Sequence[BucketRow]) -> str:
    """A bucket file: ``#<label>`` header then one ``x\\tv1\\tv2...`` row per bucket."""
    lines = ["\t".join([f"#{label}", *names])]
    for row in rows:
        prefix = "" if row.has_data else "#"
        values = [format_value(v) for v in row.values]
        lines.append(prefix + "\t".join([format_value(row.x), *values]))
    return "\n".join(lines) + "\n"


def format_null_results(results: TrialResults) -> str:
    """Null labeler minimum per present file."""
    lines: list[str] = []
    if results.null_minimum is None:
        return ""
    for i, record in enumerate(results.files):
        value = float(results.null_minimum[i])
        if not record.present or math.isnan(value):
            continue
        lines.append(f"{record.filename}\t{format_value(value)}")
    return "\n".join(lines) + "\n" if lines else ""


def format_memory_results(memory: MemoryResults) -> str:
    """Average accesses per image, one row per algorithm."""
    lines = ["\t".join(["#Algorithm", *MEMORY_COLUMNS, "Total"])]
    prefix = "" if memory.has_data else "#"
    for j, name in enumerate(memory.algorithm_names):
        averages = memory.averages(j)
        values = [format_value(averages[slot]) for slot in AccessSlot]
        lines.append(prefix + "\t".join([name, *values, format_value(memory.total(j))]))
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def export_csv(meta: BenchMeta, results: list[DatasetResult]) -> str:
    """Export every aggregated value as CSV (long format).

    Columns:
        kind, dataset, algorithm, series, x, value, count
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["kind", "dataset", "algorithm", "series", "x", "value", "count"])

    for r in results:
        if not r.ok:
            continue
        if r.kind == KIND_AVERAGES:
            for name, cell in zip(r.algorithm_names, r.averages):
                writer.writerow(
                    [r.kind, r.dataset, name, "average", "", f"{cell.average:.6f}", cell.count]
                )
        elif r.kind == KIND_DENSITY_SIZE and r.density_size is not None:
            ds = r.density_size
            series = [
                ("density", ds.density_rows()),
                ("normalized_density", ds.normalized_density_rows()),
                ("size", ds.size_rows()),
            ]
            for series_name, rows in series:
                for row in rows:
                    for name, cell in zip(ds.algorithm_names, row.cells):
                        writer.writerow(
                            [
                                r.kind,
                                r.dataset,
                                name,
                                series_name,
                                format_value(row.x),
                                f"{cell.average:.6f}",
                                cell.count,
                            ]
                        )
        elif r.kind == KIND_MEMORY and r.memory is not None:
            mem = r.memory
            for j, name in enumerate(mem.algorithm_names):
                for slot in AccessSlot:
                    cell = mem.cells[j][slot]
                    writer.writerow(
                        [
                            r.kind,
                            r.dataset,
                            name,
                            slot.name.lower(),
                            "",
                            f"{cell.average:.6f}",
                            cell.count,
                        ]
                    )

    return output.getvalue()


# ---------------------------------------------------------------------------
# Markdown export
# ---------------------------------------------------------------------------


def export_markdown(meta: BenchMeta, results: list[DatasetResult]) -> str:
    """Export a run as a Markdown report."""
    lines: list[str] = []

    title = meta.name or meta.bench_id
    lines.append(f"# {title}")
    lines.append("")
    if meta.description:
        lines.append(meta.description)
        lines.append("")

    if meta.check is not None:
        _markdown_check(lines, meta.check)

    averages = [r for r in results if r.kind == KIND_AVERAGES and r.ok]
    if averages:
        _markdown_averages(lines, averages)

    for r in results:
        if r.kind == KIND_DENSITY_SIZE and r.ok and r.density_size is not None:
            _markdown_density_size(lines, r.dataset, r.density_size)

    for r in results:
        if r.kind == KIND_MEMORY and r.ok and r.memory is not None:
            _markdown_memory(lines, r.memory)

    failed = [r for r in results if not r.ok]
    if failed:
        lines.append("## Errors")
        lines.append("")
        for r in failed:
            lines.append(f"- **{r.kind}** on `{r.dataset}`: {r.message}")
        lines.append("")

    lines.append(f"*Generated by labelbench on {meta.start_time or 'unknown'}*")
    return "\n".join(lines)


def _markdown_check(lines: list[str], check: CheckReport) -> None:
    lines.append("## Correctness check")
    lines.append("")
    if not check.performed:
        lines.append("Unable to perform check: no image could be compared.")
        lines.append("")
        return
    lines.append("| Algorithm | Result | First failure |")
    lines.append("|---|---|---|")
    for r in check.results:
        outcome = "correct" if r.correct else "incorrect"
        lines.append(f"| {collapse_double_escape(r.name)} | {outcome} | {r.first_fail or ''} |")
    lines.append("")


def _markdown_averages(lines: list[str], results: list[DatasetResult]) -> None:
    names = [collapse_double_escape(n) for n in results[0].algorithm_names]
    lines.append("## Average minimum time (ms)")
    lines.append("")
    lines.append("| Dataset | " + " | ".join(names) + " |")
    lines.append("|---|" + "---:|" * len(names))
    for r in results:
        cells = [f"{c.average:.2f}" if c.has_data else "-" for c in r.averages]
        lines.append(f"| {r.dataset} | " + " | ".join(cells) + " |")
    lines.append("")


def _markdown_bucket_table(
    lines: list[str], heading: str, x_label: str, names: list[str], rows: list[BucketRow]
) -> None:
    lines.append(f"### {heading}")
    lines.append("")
    lines.append(f"| {x_label} | " + " | ".join(collapse_double_escape(n) for n in names) + " |")
    lines.append("|---:|" + "---:|" * len(names))
    for row in rows:
        if not row.has_data:
            continue
        values = [f"{v:.3f}" for v in row.values]
        lines.append(f"| {format_value(row.x)} | " + " | ".join(values) + " |")
    lines.append("")


def _markdown_density_size(lines: list[str], dataset: str, ds: DensitySizeStats) -> None:
    lines.append(f"## Density and size: {dataset}")
    lines.append("")
    _markdown_bucket_table(lines, "Density (ms)", "Density", ds.algorithm_names, ds.density_rows())
    _markdown_bucket_table(
        lines,
        "Density normalized by null labeling",
        "Density",
        ds.algorithm_names,
        ds.normalized_density_rows(),
    )
    _markdown_bucket_table(lines, "Size (ms)", "Pixels", ds.algorithm_names, ds.size_rows())


def _markdown_memory(lines: list[str], memory: MemoryResults) -> None:
    lines.append(f"## Memory accesses: {memory.dataset}")
    lines.append("")
    if not memory.has_data:
        lines.append("No image could be loaded.")
        lines.append("")
        return
    lines.append("| Algorithm | " + " | ".join(MEMORY_COLUMNS) + " | Total |")
    lines.append("|---|" + "---:|" * (len(MEMORY_COLUMNS) + 1))
    for j, name in enumerate(memory.algorithm_names):
        values = [f"{v:.0f}" for v in memory.averages(j)]
        label = collapse_double_escape(name)
        lines.append(f"| {label} | " + " | ".join(values) + f" | {memory.total(j):.0f} |")
    lines.append("")
