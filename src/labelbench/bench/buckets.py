"""Averages of minimum timings, plain and bucketed.

Plain averages collapse a dataset's ``minimum`` matrix to one
:class:`AggregateCell` per algorithm.  Bucketed statistics route every
file's minimum into a density class and a size class decoded from its
name (see :mod:`labelbench.bench.dataset`), plus a density class
normalized by the null labeler's minimum on the same file.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from labelbench.bench.dataset import (
    DENSITY_CLASSES,
    SIZE_CLASSES,
    bucket_indices,
    density_value,
    size_area,
)
from labelbench.bench.stats import AggregateCell
from labelbench.bench.trials import TrialResults


def average_by_algorithm(minimum: np.ndarray) -> list[AggregateCell]:
    """Sum and count the available cells of every column of *minimum*."""
    cells: list[AggregateCell] = []
    for column in np.asarray(minimum, dtype=float).T:
        valid = column[~np.isnan(column)]
        cells.append(AggregateCell(total=float(valid.sum()), count=int(valid.size)))
    return cells


# ---------------------------------------------------------------------------
# Density / size buckets
# ---------------------------------------------------------------------------


@dataclass
class BucketRow:
    """One report row: the bucket's x value and one cell per algorithm."""

    x: float
    cells: list[AggregateCell]

    @property
    def has_data(self) -> bool:
        return any(c.has_data for c in self.cells)

    @property
    def values(self) -> list[float]:
        return [c.average for c in self.cells]


def _grid(n_algorithms: int, n_buckets: int) -> list[list[AggregateCell]]:
    return [[AggregateCell() for _ in range(n_buckets)] for _ in range(n_algorithms)]


def _cells_from_dict(rows: list[list[dict[str, Any]]]) -> list[list[AggregateCell]]:
    return [[AggregateCell.from_dict(c) for c in row] for row in rows]


@dataclass
class DensitySizeStats:
    """Bucketed minimum timings, indexed ``[algorithm][bucket]``."""

    algorithm_names: list[str]
    density: list[list[AggregateCell]] = field(default_factory=list)
    size: list[list[AggregateCell]] = field(default_factory=list)
    normalized_density: list[list[AggregateCell]] = field(default_factory=list)

    @classmethod
    def empty(cls, algorithm_names: list[str]) -> DensitySizeStats:
        n = len(algorithm_names)
        return cls(
            algorithm_names=list(algorithm_names),
            density=_grid(n, DENSITY_CLASSES),
            size=_grid(n, SIZE_CLASSES),
            normalized_density=_grid(n, DENSITY_CLASSES),
        )

    def _rows(self, grid: list[list[AggregateCell]], xs: list[float]) -> list[BucketRow]:
        return [
            BucketRow(x=x, cells=[grid[j][i] for j in range(len(self.algorithm_names))])
            for i, x in enumerate(xs)
        ]

    def density_rows(self) -> list[BucketRow]:
        return self._rows(self.density, [density_value(i) for i in range(DENSITY_CLASSES)])

    def normalized_density_rows(self) -> list[BucketRow]:
        return self._rows(
            self.normalized_density, [density_value(i) for i in range(DENSITY_CLASSES)]
        )

    def size_rows(self) -> list[BucketRow]:
        return self._rows(self.size, [size_area(i) for i in range(SIZE_CLASSES)])

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm_names": self.algorithm_names,
            "density": [[c.to_dict() for c in row] for row in self.density],
            "size": [[c.to_dict() for c in row] for row in self.size],
            "normalized_density": [[c.to_dict() for c in row] for row in self.normalized_density],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DensitySizeStats:
        return cls(
            algorithm_names=list(data.get("algorithm_names", [])),
            density=_cells_from_dict(data.get("density", [])),
            size=_cells_from_dict(data.get("size", [])),
            normalized_density=_cells_from_dict(data.get("normalized_density", [])),
        )


def bucket_density_size(results: TrialResults) -> DensitySizeStats:
    """Route every available minimum into its density and size bucket.

    Files outside the naming contract are skipped.  The normalized
    density bucket only receives a file when its null minimum is a
    positive number.
    """
    stats = DensitySizeStats.empty(results.algorithm_names)
    for i, record in enumerate(results.files):
        if not record.present:
            continue
        indices = bucket_indices(record.filename)
        if indices is None:
            continue
        size_index, density_index = indices

        null_min = math.nan
        if results.null_minimum is not None:
            null_min = float(results.null_minimum[i])

        for j in range(len(results.algorithm_names)):
            value = float(results.minimum[i, j])
            if math.isnan(value):
                continue
            stats.density[j][density_index].add(value)
            stats.size[j][size_index].add(value)
            if null_min > 0:
                stats.normalized_density[j][density_index].add(value / null_min)
    return stats
