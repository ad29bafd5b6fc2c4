"""Terminal display formatting for benchmark results.

Produces aligned tables for the check outcome, the averages, the
density/size buckets and the memory accesses of a run.
"""

from __future__ import annotations

from labelbench.bench.algorithms import collapse_double_escape
from labelbench.bench.buckets import BucketRow
from labelbench.bench.checker import CheckReport
from labelbench.bench.export import MEMORY_COLUMNS, format_value
from labelbench.bench.memory import MemoryResults
from labelbench.bench.results import (
    KIND_AVERAGES,
    KIND_DENSITY_SIZE,
    KIND_MEMORY,
    BenchMeta,
    DatasetResult,
)
from labelbench.formatting import (
    format_duration,
    format_ms,
    format_section_header,
    format_status_icon,
    format_table,
)


def _names(names: list[str]) -> list[str]:
    return [collapse_double_escape(n) for n in names]


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def format_check_report(check: CheckReport) -> str:
    """Format the correctness check as a table."""
    if not check.performed:
        return "  Unable to perform check: no image could be compared."
    rows = [
        [
            collapse_double_escape(r.name),
            format_status_icon("correct" if r.correct else "incorrect"),
            r.first_fail or "",
        ]
        for r in check.results
    ]
    table = format_table(["Algorithm", "Result", "First failure"], rows)
    footer = f"  {check.images_compared} images compared"
    if check.stopped_early:
        footer += " (stopped early: every algorithm incorrect)"
    return table + "\n" + footer


def format_averages_table(results: list[DatasetResult]) -> str:
    """Average minimum time per dataset (rows) and algorithm (columns)."""
    names = _names(results[0].algorithm_names)
    rows: list[list[str]] = []
    for r in results:
        cells = [format_ms(c.average) if c.has_data else "-" for c in r.averages]
        rows.append([r.dataset, *cells, f"{r.files_loaded}/{r.files_total}"])
    return format_table(
        ["Dataset", *names, "Files"],
        rows,
        alignments=["l"] + ["r"] * (len(names) + 1),
    )


def format_trial_spread(results: list[DatasetResult]) -> str:
    """Spread of the per-trial dataset averages, where more than one trial ran."""
    rows: list[list[str]] = []
    for r in results:
        for name, spread in zip(_names(r.algorithm_names), r.trial_spread):
            if spread.n == 0:
                continue
            rows.append(
                [
                    r.dataset,
                    name,
                    str(spread.n),
                    format_ms(spread.min),
                    format_ms(spread.median),
                    format_ms(spread.max),
                    f"{spread.cv:.3f}",
                ]
            )
    if not rows:
        return ""
    return format_table(
        ["Dataset", "Algorithm", "Trials", "Min", "Median", "Max", "CV"],
        rows,
        alignments=["l", "l", "r", "r", "r", "r", "r"],
    )


def format_bucket_rows(x_label: str, names: list[str], rows: list[BucketRow]) -> str:
    """Bucket rows that have data, one column per algorithm."""
    body = [
        [format_value(row.x), *[format_ms(v) for v in row.values]]
        for row in rows
        if row.has_data
    ]
    if not body:
        return "  (no data)"
    return format_table([x_label, *_names(names)], body, alignments=["r"] * (len(names) + 1))


def format_memory_table(memory: MemoryResults) -> str:
    """Average accesses per image, one row per algorithm."""
    if not memory.has_data:
        return "  (no image could be loaded)"
    rows = []
    for j, name in enumerate(_names(memory.algorithm_names)):
        values = [f"{v:.0f}" for v in memory.averages(j)]
        rows.append([name, *values, f"{memory.total(j):.0f}"])
    return format_table(
        ["Algorithm", *MEMORY_COLUMNS, "Total"],
        rows,
        alignments=["l"] + ["r"] * (len(MEMORY_COLUMNS) + 1),
    )


# ---------------------------------------------------------------------------
# Whole run
# ---------------------------------------------------------------------------


def format_bench_show(meta: BenchMeta, results: list[DatasetResult]) -> str:
    """Format a complete benchmark run for display."""
    lines: list[str] = []

    title = meta.name or meta.bench_id
    lines.append(title)
    lines.append("─" * len(title))
    if meta.description:
        lines.append(meta.description)
    cfg = meta.config
    lines.append(
        f"Trials: {cfg.get('at_tests_number', '?')} (averages), "
        f"{cfg.get('ds_tests_number', '?')} (density/size)"
    )
    if meta.start_time:
        lines.append(f"Started: {meta.start_time}")
    lines.append("")

    if meta.check is not None:
        lines.append(format_section_header("Correctness check"))
        lines.append(format_check_report(meta.check))
        lines.append("")

    averages = [r for r in results if r.kind == KIND_AVERAGES and r.ok]
    if averages:
        lines.append(format_section_header("Average minimum time (ms)"))
        lines.append(format_averages_table(averages))
        spread = format_trial_spread(averages)
        if spread:
            lines.append("")
            lines.append(format_section_header("Trial spread (ms)"))
            lines.append(spread)
        lines.append("")

    for r in results:
        if r.kind != KIND_DENSITY_SIZE or not r.ok or r.density_size is None:
            continue
        ds = r.density_size
        lines.append(format_section_header(f"Density/size: {r.dataset}"))
        lines.append(format_bucket_rows("Density", ds.algorithm_names, ds.density_rows()))
        lines.append("")
        lines.append(
            format_bucket_rows("Norm.", ds.algorithm_names, ds.normalized_density_rows())
        )
        lines.append("")
        lines.append(format_bucket_rows("Pixels", ds.algorithm_names, ds.size_rows()))
        lines.append("")

    for r in results:
        if r.kind != KIND_MEMORY or not r.ok or r.memory is None:
            continue
        lines.append(format_section_header(f"Memory accesses: {r.dataset}"))
        lines.append(format_memory_table(r.memory))
        lines.append("")

    if results:
        lines.append(format_section_header("Tests"))
        rows = [
            [r.kind, r.dataset, format_status_icon(r.status), format_duration(r.wall_time_s)]
            for r in results
        ]
        lines.append(format_table(["Test", "Dataset", "Status", "Time"], rows))
        for r in results:
            if not r.ok:
                lines.append(f"  {r.kind} on '{r.dataset}': {r.message}")

    return "\n".join(lines).rstrip() + "\n"
