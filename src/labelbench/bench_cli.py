"""CLI commands for labelbench bench.

Subcommands:
    labelbench bench run         Check, time and count memory accesses
    labelbench bench check       Only run the correctness check
    labelbench bench show        Display a benchmark's results
    labelbench bench export      Export results to CSV/markdown
    labelbench bench algorithms  List the registered algorithms
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from labelbench.bench.config import BenchConfig, ConfigurationError
from labelbench.logging import setup_logging


@click.group()
def bench() -> None:
    """Verify and benchmark labeling algorithms on image datasets."""


def _split(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def _build_config(profile_path: str | None, cli_overrides: dict[str, object]) -> BenchConfig:
    from labelbench.bench.config import config_from_profile, load_profile

    profile_data = load_profile(Path(profile_path)) if profile_path else {}
    config = config_from_profile(profile_data, cli_overrides=cli_overrides)
    config.cli_args = sys.argv[1:]
    return config


# ---------------------------------------------------------------------------
# bench run
# ---------------------------------------------------------------------------


@bench.command()
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True),
    help="YAML profile with the benchmark configuration.",
)
@click.option(
    "--algorithms",
    type=str,
    default=None,
    help="Comma-separated labeling algorithm keys.",
)
@click.option(
    "--names",
    type=str,
    default=None,
    help="Comma-separated display names (default: the keys).",
)
@click.option(
    "--memory-algorithms",
    type=str,
    default=None,
    help="Comma-separated memory algorithm keys.",
)
@click.option(
    "--memory-names",
    type=str,
    default=None,
    help="Comma-separated memory display names (default: the keys).",
)
@click.option(
    "--averages-tests",
    type=str,
    default=None,
    help="Comma-separated datasets for averages tests.",
)
@click.option(
    "--density-size-tests",
    type=str,
    default=None,
    help="Comma-separated datasets for density/size tests.",
)
@click.option(
    "--memory-tests",
    type=str,
    default=None,
    help="Comma-separated datasets for memory tests.",
)
@click.option("--check-list", type=str, default=None, help="Comma-separated check datasets.")
@click.option("--at-trials", type=int, default=None, help="Trials per averages test.")
@click.option("--ds-trials", type=int, default=None, help="Trials per density/size test.")
@click.option(
    "--input-path",
    type=click.Path(),
    default=None,
    help="Directory holding one folder per dataset (default: input).",
)
@click.option(
    "--output-path",
    type=click.Path(),
    default=None,
    help="Results output directory (default: output).",
)
@click.option("--name", type=str, default=None, help="Human-readable benchmark name.")
@click.option(
    "--skip-check",
    is_flag=True,
    default=False,
    help="Skip the correctness check.",
)
@click.option("--no-averages", is_flag=True, default=False, help="Skip averages tests.")
@click.option("--no-density-size", is_flag=True, default=False, help="Skip density/size tests.")
@click.option("--no-memory", is_flag=True, default=False, help="Skip memory tests.")
@click.option("--color-labels", is_flag=True, default=False, help="Save false-color label maps.")
@click.option(
    "--save-middle-tests",
    is_flag=True,
    default=False,
    help="Write the timings of every trial.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, default=False, help="Only show warnings.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
def run(  # noqa: PLR0913
    profile_path: str | None,
    algorithms: str | None,
    names: str | None,
    memory_algorithms: str | None,
    memory_names: str | None,
    averages_tests: str | None,
    density_size_tests: str | None,
    memory_tests: str | None,
    check_list: str | None,
    at_trials: int | None,
    ds_trials: int | None,
    input_path: str | None,
    output_path: str | None,
    name: str | None,
    skip_check: bool,
    no_averages: bool,
    no_density_size: bool,
    no_memory: bool,
    color_labels: bool,
    save_middle_tests: bool,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Run the correctness check and the enabled tests.

    Command-line options override the values of --profile.

    \b
    Examples:
        # From a YAML profile
        labelbench bench run --profile bench.yaml

        # Inline, timing two built-in labelers five times
        labelbench bench run --algorithms union_find,flood_fill \\
            --names UF,FF --at-trials 5 --no-memory
    """
    from labelbench.bench.runner import BenchRunner

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    algorithm_keys = _split(algorithms)
    memory_keys = _split(memory_algorithms)
    cli_overrides: dict[str, object] = {
        "algorithm_keys": algorithm_keys,
        "algorithm_names": _split(names) or algorithm_keys,
        "memory_algorithm_keys": memory_keys,
        "memory_algorithm_names": _split(memory_names) or memory_keys,
        "check_list": _split(check_list),
        "averages_tests": _split(averages_tests),
        "density_size_tests": _split(density_size_tests),
        "memory_tests": _split(memory_tests),
        "at_tests_number": at_trials,
        "ds_tests_number": ds_trials,
        "input_path": input_path,
        "output_path": output_path,
        "name": name,
        "perform_check": False if skip_check else None,
        "at_perform": False if no_averages else None,
        "ds_perform": False if no_density_size else None,
        "mt_perform": False if no_memory else None,
        "at_color_labels": True if color_labels else None,
        "ds_color_labels": True if color_labels else None,
        "at_save_middle_tests": True if save_middle_tests else None,
        "ds_save_middle_tests": True if save_middle_tests else None,
    }

    try:
        config = _build_config(profile_path, cli_overrides)
        runner = BenchRunner(config)
        meta, results = runner.run()
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    from labelbench.bench.display import format_bench_show

    click.echo()
    click.echo(format_bench_show(meta, results))
    click.echo(f"Results saved to: {config.output_path}")


# ---------------------------------------------------------------------------
# bench check
# ---------------------------------------------------------------------------


@bench.command("check")
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True),
    help="YAML profile with the benchmark configuration.",
)
@click.option("--algorithms", type=str, default=None, help="Comma-separated algorithm keys.")
@click.option("--names", type=str, default=None, help="Comma-separated display names.")
@click.option("--check-list", type=str, default=None, help="Comma-separated check datasets.")
@click.option("--input-path", type=click.Path(), default=None, help="Dataset root directory.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show detailed output.")
def check(
    profile_path: str | None,
    algorithms: str | None,
    names: str | None,
    check_list: str | None,
    input_path: str | None,
    verbose: bool,
) -> None:
    """Compare every algorithm with the reference labeler.

    Exits with status 1 when an algorithm is incorrect or when no image
    could be compared.
    """
    from labelbench.bench.algorithms import resolve_algorithms
    from labelbench.bench.checker import check_algorithms
    from labelbench.bench.display import format_check_report

    setup_logging(verbose=verbose, quiet=not verbose)

    algorithm_keys = _split(algorithms)
    cli_overrides: dict[str, object] = {
        "algorithm_keys": algorithm_keys,
        "algorithm_names": _split(names) or algorithm_keys,
        "check_list": _split(check_list),
        "input_path": input_path,
    }
    try:
        config = _build_config(profile_path, cli_overrides)
        entries = resolve_algorithms(config.algorithm_keys, config.algorithm_names)
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    report = check_algorithms(
        entries,
        config.check_list,
        input_path=config.input_path,
        list_file=config.list_file,
    )
    click.echo(format_check_report(report))
    if not report.all_correct:
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# bench show
# ---------------------------------------------------------------------------


@bench.command("show")
@click.argument("result_dir", type=click.Path(exists=True))
def show(result_dir: str) -> None:
    """Display results from a benchmark run.

    RESULT_DIR is the output directory of a run, containing
    bench_meta.json and bench_results.jsonl.
    """
    from labelbench.bench.display import format_bench_show
    from labelbench.bench.results import load_bench_run

    try:
        meta, results = load_bench_run(Path(result_dir))
    except FileNotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    click.echo(format_bench_show(meta, results))


# ---------------------------------------------------------------------------
# bench export
# ---------------------------------------------------------------------------


@bench.command("export")
@click.argument("result_dir", type=click.Path(exists=True))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "markdown"]),
    default="csv",
    help="Export format.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=None,
    help="Output file (default: stdout).",
)
def export(result_dir: str, fmt: str, output: str | None) -> None:
    """Export benchmark results to CSV or Markdown.

    \b
    Examples:
        labelbench bench export output --format csv > data.csv
        labelbench bench export output --format markdown -o report.md
    """
    from labelbench.bench.export import export_csv, export_markdown
    from labelbench.bench.results import load_bench_run

    try:
        meta, results = load_bench_run(Path(result_dir))
    except FileNotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    if fmt == "csv":
        text = export_csv(meta, results)
    else:
        text = export_markdown(meta, results)

    if output:
        Path(output).write_text(text)
        click.echo(f"Exported to {output}")
    else:
        click.echo(text)


# ---------------------------------------------------------------------------
# bench algorithms
# ---------------------------------------------------------------------------


@bench.command("algorithms")
def algorithms_cmd() -> None:
    """List the registered labeling and memory algorithms."""
    from labelbench.bench.algorithms import (
        LABELING_ALGORITHMS,
        MEMORY_ALGORITHMS,
        NULL_REFERENCE,
        REFERENCE,
        load_builtins,
    )

    load_builtins()
    click.echo("Labeling algorithms:")
    for key in sorted(LABELING_ALGORITHMS):
        marker = ""
        if key == REFERENCE:
            marker = "  (reference)"
        elif key == NULL_REFERENCE:
            marker = "  (null reference)"
        click.echo(f"  {key}{marker}")
    click.echo("Memory algorithms:")
    for key in sorted(MEMORY_ALGORITHMS):
        click.echo(f"  {key}")
