"""Aggregation primitives for benchmark measurements.

:class:`AggregateCell` is the running ``(total, count)`` pair every
average in the harness is built from.  :func:`describe` summarizes the
spread of a per-trial series when more than one trial was run.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Sequence


# ---------------------------------------------------------------------------
# AggregateCell
# ---------------------------------------------------------------------------


@dataclass
class AggregateCell:
    """Running sum and count of a series of measurements."""

    total: float = 0.0
    count: int = 0

    def add(self, value: float, weight: int = 1) -> None:
        self.total += value
        self.count += weight

    @property
    def has_data(self) -> bool:
        return self.count > 0

    @property
    def average(self) -> float:
        """Mean of the added values, or 0.0 when nothing was added."""
        if self.count == 0:
            return 0.0
        return self.total / self.count

    def to_dict(self) -> dict[str, float | int]:
        return {"total": self.total, "count": self.count}

    @classmethod
    def from_dict(cls, data: dict[str, float | int]) -> AggregateCell:
        return cls(total=float(data.get("total", 0.0)), count=int(data.get("count", 0)))


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


@dataclass
class DescriptiveStats:
    """Summary statistics for a sample."""

    n: int
    mean: float
    median: float
    stdev: float
    min: float
    max: float
    cv: float  # coefficient of variation (stdev/mean)

    def to_dict(self) -> dict[str, float | int]:
        """Serialize to a dict with rounded values."""
        return {
            "n": self.n,
            "mean": round(self.mean, 6),
            "median": round(self.median, 6),
            "stdev": round(self.stdev, 6),
            "min": round(self.min, 6),
            "max": round(self.max, 6),
            "cv": round(self.cv, 6),
        }

    @classmethod
    def from_dict(cls, data: dict[str, float | int]) -> DescriptiveStats:
        return cls(
            n=int(data["n"]),
            mean=float(data["mean"]),
            median=float(data["median"]),
            stdev=float(data["stdev"]),
            min=float(data["min"]),
            max=float(data["max"]),
            cv=float(data["cv"]),
        )


def describe(values: Sequence[float]) -> DescriptiveStats:
    """Compute descriptive statistics for a sample.

    NaN values are ignored.  With fewer than 2 values stdev and CV are
    0.0; with none every field is NaN.
    """
    clean = sorted(v for v in values if not math.isnan(v))
    if not clean:
        nan = float("nan")
        return DescriptiveStats(n=0, mean=nan, median=nan, stdev=nan, min=nan, max=nan, cv=nan)

    n = len(clean)
    mean = statistics.mean(clean)
    if n >= 2:
        stdev = statistics.stdev(clean)
        cv = stdev / mean if mean != 0 else float("inf")
    else:
        stdev = 0.0
        cv = 0.0

    return DescriptiveStats(
        n=n,
        mean=mean,
        median=statistics.median(clean),
        stdev=stdev,
        min=clean[0],
        max=clean[-1],
        cv=cv,
    )
