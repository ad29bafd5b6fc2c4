"""Shared text formatting helpers for labelbench.

Tables, section headers, durations and status markers used by the
terminal display and the CLI.
"""

from __future__ import annotations

import math


def format_duration(seconds: float) -> str:
    """Format seconds as ``'8s'``, ``'1m 23s'`` or ``'1h 12m 34s'``.

    Always whole seconds (truncated, not rounded).
    """
    total = int(seconds)
    if total >= 3600:
        h, rest = divmod(total, 3600)
        m, s = divmod(rest, 60)
        return f"{h}h {m:2d}m {s:2d}s"
    if total >= 60:
        m, s = divmod(total, 60)
        return f"{m}m {s:2d}s"
    return f"{total}s"


def format_ms(value: float, precision: int = 3) -> str:
    """Format a millisecond value; NaN becomes ``'N/A'``."""
    if math.isnan(value):
        return "N/A"
    return f"{value:.{precision}f}"


def format_status_icon(status: str) -> str:
    """Return a visual status indicator for the given status string."""
    icons: dict[str, str] = {
        "ok": "✓ OK",
        "correct": "✓ CORRECT",
        "incorrect": "✗ INCORRECT",
        "error": "⚠ ERROR",
        "skipped": "⊘ SKIP",
    }
    return icons.get(status, status.upper())


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    alignments: list[str] | None = None,
    max_col_width: dict[int, int] | None = None,
    indent: int = 2,
) -> str:
    """Format rows as an aligned text table.

    Args:
        headers: Column header strings.
        rows: List of rows, each a list of cell strings.  Short rows are
            padded with empty cells.
        alignments: Per-column alignment, ``'l'`` or ``'r'``.
        max_col_width: Column index to max width mapping; longer cells
            are truncated with ``'...'``.
        indent: Number of leading spaces per line.
    """
    if not headers:
        return ""

    ncols = len(headers)
    aligns = list(alignments or [])
    aligns += ["l"] * (ncols - len(aligns))
    limits = max_col_width or {}

    def _cell(text: str, col: int) -> str:
        limit = limits.get(col)
        return truncate(text, limit) if limit else text

    table = [[_cell(h, i) for i, h in enumerate(headers)]]
    for row in rows:
        padded = (list(row) + [""] * ncols)[:ncols]
        table.append([_cell(c, i) for i, c in enumerate(padded)])

    widths = [max(len(r[i]) for r in table) for i in range(ncols)]
    prefix = " " * indent

    lines: list[str] = []
    for r in table:
        cells = [
            r[i].rjust(widths[i]) if aligns[i] == "r" else r[i].ljust(widths[i])
            for i in range(ncols)
        ]
        lines.append(prefix + "  ".join(cells).rstrip())
    return "\n".join(lines)


def format_section_header(title: str, width: int = 80) -> str:
    """Format a section header: ``'─── Title ──...'``."""
    prefix = "─── "
    suffix_len = width - len(prefix) - len(title) - 1
    return prefix + title + " " + "─" * max(0, suffix_len)


def truncate(text: str, max_len: int, suffix: str = "...") -> str:
    """Truncate text to *max_len*, adding *suffix* if truncated."""
    if len(text) <= max_len:
        return text
    if max_len <= len(suffix):
        return suffix[:max_len]
    return text[: max_len - len(suffix)] + suffix
