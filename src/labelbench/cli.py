"""Command-line interface for labelbench.

Provides the main CLI entry point; the benchmark commands live in the
``bench`` group.
"""

from __future__ import annotations

import click

from labelbench import __version__


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """labelbench — verify and benchmark connected-components labeling algorithms."""


# Register subgroups.
from labelbench.bench_cli import bench as bench_group  # noqa: E402

main.add_command(bench_group)
