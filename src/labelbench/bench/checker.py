"""Differential correctness check against the reference labeler.

Every configured algorithm labels every image of the check datasets;
its output is canonicalized and compared with the reference output.
The first mismatch marks the algorithm incorrect for the rest of the
run.  Once every algorithm is incorrect there is nothing left to learn,
so the check stops without looking at the remaining files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from labelbench.bench.algorithms import REFERENCE, AlgorithmEntry, get_algorithm
from labelbench.bench.dataset import DatasetError, load_dataset
from labelbench.bench.images import ImageLoader, load_binary_mask
from labelbench.bench.labels import equivalent

log = logging.getLogger("labelbench")


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


@dataclass
class AlgorithmCheck:
    """Check outcome of one algorithm."""

    name: str
    correct: bool = True
    first_fail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "correct": self.correct, "first_fail": self.first_fail}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AlgorithmCheck:
        return cls(
            name=data["name"],
            correct=bool(data.get("correct", True)),
            first_fail=data.get("first_fail"),
        )


class CheckState:
    """Per-algorithm status flags shared by the whole check."""

    def __init__(self, algorithms: Sequence[AlgorithmEntry]) -> None:
        self.results = [AlgorithmCheck(name=a.name) for a in algorithms]

    def is_correct(self, index: int) -> bool:
        return self.results[index].correct

    def mark_incorrect(self, index: int, path: Path) -> None:
        result = self.results[index]
        if result.correct:
            result.correct = False
            result.first_fail = str(path)

    @property
    def all_incorrect(self) -> bool:
        return all(not r.correct for r in self.results)


@dataclass
class CheckReport:
    """Outcome of a differential check."""

    performed: bool = False
    results: list[AlgorithmCheck] = field(default_factory=list)
    images_compared: int = 0
    stopped_early: bool = False

    @property
    def all_correct(self) -> bool:
        return self.performed and all(r.correct for r in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "performed": self.performed,
            "results": [r.to_dict() for r in self.results],
            "images_compared": self.images_compared,
            "stopped_early": self.stopped_early,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckReport:
        return cls(
            performed=bool(data.get("performed", False)),
            results=[AlgorithmCheck.from_dict(r) for r in data.get("results", [])],
            images_compared=int(data.get("images_compared", 0)),
            stopped_early=bool(data.get("stopped_early", False)),
        )


# ---------------------------------------------------------------------------
# Check
# ---------------------------------------------------------------------------


def check_algorithms(
    algorithms: Sequence[AlgorithmEntry],
    datasets: Sequence[str],
    *,
    input_path: Path,
    reference: AlgorithmEntry | None = None,
    loader: ImageLoader = load_binary_mask,
    list_file: str = "files.txt",
) -> CheckReport:
    """Compare every algorithm with *reference* on every listed image.

    Unreadable list files and images are logged and skipped; they never
    mark an algorithm incorrect.

    Returns:
        A CheckReport with one AlgorithmCheck per algorithm, in order.
    """
    if reference is None:
        reference = get_algorithm(REFERENCE)

    state = CheckState(algorithms)
    report = CheckReport(results=state.results)
    if not algorithms:
        return report

    for ds_name in datasets:
        try:
            dataset = load_dataset(input_path, ds_name, list_file)
        except DatasetError as exc:
            log.warning("Check: %s, dataset skipped", exc)
            continue

        for record in dataset.files:
            path = dataset.image_path(record)
            image = loader(path)
            if image is None:
                log.warning("Check: unable to open %s, skipped", path)
                continue

            ref_labels, ref_count = reference(image)
            for index, algorithm in enumerate(algorithms):
                if not state.is_correct(index):
                    continue
                labels, n_labels = algorithm(image)
                if not equivalent(ref_labels, labels, ref_count, n_labels):
                    log.info("Check: %s is incorrect on %s", algorithm.display_name, path)
                    state.mark_incorrect(index, path)
            report.performed = True
            report.images_compared += 1

            if state.all_incorrect:
                report.stopped_early = True
                log.info("Check: every algorithm is incorrect, stopping early")
                return report

    return report
