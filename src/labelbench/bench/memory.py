"""Memory access counting over one dataset.

Access-counting algorithms report four counters per image (see
:class:`~labelbench.bench.algorithms.AccessSlot`).  The counters are
summed over the images that could be loaded and averaged per image.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from labelbench.bench.algorithms import ACCESS_SLOT_COUNT, MemoryAlgorithmEntry
from labelbench.bench.dataset import Dataset
from labelbench.bench.images import ImageLoader, load_binary_mask
from labelbench.bench.stats import AggregateCell

log = logging.getLogger("labelbench")


@dataclass
class MemoryResults:
    """Summed access counters, indexed ``[algorithm][slot]``."""

    dataset: str
    algorithm_names: list[str]
    cells: list[list[AggregateCell]] = field(default_factory=list)
    files_loaded: int = 0
    files_total: int = 0

    @property
    def has_data(self) -> bool:
        return self.files_loaded > 0

    def averages(self, index: int) -> list[float]:
        """Per-image average of each counter of algorithm *index*."""
        return [cell.average for cell in self.cells[index]]

    def total(self, index: int) -> float:
        return sum(self.averages(index))

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataset": self.dataset,
            "algorithm_names": self.algorithm_names,
            "cells": [[c.to_dict() for c in row] for row in self.cells],
            "files_loaded": self.files_loaded,
            "files_total": self.files_total,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MemoryResults:
        return cls(
            dataset=data["dataset"],
            algorithm_names=list(data.get("algorithm_names", [])),
            cells=[[AggregateCell.from_dict(c) for c in row] for row in data.get("cells", [])],
            files_loaded=int(data.get("files_loaded", 0)),
            files_total=int(data.get("files_total", 0)),
        )


def run_memory_test(
    dataset: Dataset,
    algorithms: Sequence[MemoryAlgorithmEntry],
    *,
    loader: ImageLoader = load_binary_mask,
) -> MemoryResults:
    """Run every access-counting algorithm once on every image.

    Images that cannot be loaded are logged, marked absent and left out
    of every average.
    """
    results = MemoryResults(
        dataset=dataset.name,
        algorithm_names=[a.name for a in algorithms],
        cells=[[AggregateCell() for _ in range(ACCESS_SLOT_COUNT)] for _ in algorithms],
        files_total=len(dataset.files),
    )

    for record in dataset.files:
        if not record.present:
            continue
        path = dataset.image_path(record)
        image = loader(path)
        if image is None:
            log.warning("Unable to open %s", path)
            record.present = False
            continue

        results.files_loaded += 1
        for j, algorithm in enumerate(algorithms):
            _, counts = algorithm(image)
            for slot, count in enumerate(counts):
                results.cells[j][slot].add(count)

    if not results.has_data:
        log.warning("%s: no image could be loaded for the memory test", dataset.name)
    return results
