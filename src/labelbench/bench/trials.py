"""Repeated timing trials over one dataset.

Each trial times every algorithm once on every loadable image.  The
per-cell minimum over all trials is the measurement the statistics are
built from; ``current`` only ever holds the most recent trial.

Matrices are ``(n_files, n_algorithms)`` float arrays in file-list and
algorithm order.  NaN marks a cell with no measurement (the file could
not be loaded).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

from labelbench.bench.algorithms import AlgorithmEntry
from labelbench.bench.dataset import Dataset, FileRecord
from labelbench.bench.images import ImageLoader, load_binary_mask
from labelbench.bench.timing import Stopwatch, run_timed

log = logging.getLogger("labelbench")

TrialEndCallback = Callable[[int, "TrialResults"], None]
LabelsCallback = Callable[[FileRecord, AlgorithmEntry, np.ndarray], None]


@dataclass
class TrialResults:
    """Timing matrices collected by :func:`run_trials`."""

    dataset: str
    files: list[FileRecord]
    algorithm_names: list[str]
    current: np.ndarray
    minimum: np.ndarray
    n_labels: np.ndarray
    n_trials: int
    null_minimum: np.ndarray | None = None
    trials: list[np.ndarray] = field(default_factory=list)

    @property
    def present(self) -> np.ndarray:
        """Boolean mask of the files that were loaded in every trial."""
        return np.array([f.present for f in self.files], dtype=bool)


def _forget_file(results: TrialResults, index: int) -> None:
    results.current[index, :] = np.nan
    results.minimum[index, :] = np.nan
    results.n_labels[index, :] = 0
    if results.null_minimum is not None:
        results.null_minimum[index] = np.nan
    for kept in results.trials:
        kept[index, :] = np.nan


def run_trials(
    dataset: Dataset,
    algorithms: Sequence[AlgorithmEntry],
    *,
    n_trials: int,
    loader: ImageLoader = load_binary_mask,
    stopwatch: Stopwatch | None = None,
    null_reference: AlgorithmEntry | None = None,
    keep_trials: bool = False,
    on_trial_end: TrialEndCallback | None = None,
    on_labels: LabelsCallback | None = None,
) -> TrialResults:
    """Time every algorithm on every image of *dataset*, *n_trials* times.

    Args:
        dataset: The dataset; records that fail to load are flipped to
            ``present=False`` and never loaded again.
        algorithms: Algorithms to time, in column order.
        n_trials: Number of trials (at least 1).
        loader: Image loader.
        stopwatch: Stopwatch used for every timed call.
        null_reference: Optional floor algorithm, timed before the
            candidates on every (file, trial).
        keep_trials: Keep a copy of ``current`` after every trial.
        on_trial_end: Called as ``on_trial_end(trial, results)`` once
            ``results.current`` holds the finished trial.
        on_labels: Called as ``on_labels(record, algorithm, labels)``
            for each labeling of the first trial.

    Returns:
        TrialResults with ``minimum`` equal to the element-wise minimum
        over the trials.
    """
    if n_trials < 1:
        raise ValueError(f"n_trials must be at least 1, got {n_trials}")
    if stopwatch is None:
        stopwatch = Stopwatch()

    shape = (len(dataset.files), len(algorithms))
    results = TrialResults(
        dataset=dataset.name,
        files=dataset.files,
        algorithm_names=[a.name for a in algorithms],
        current=np.full(shape, np.nan),
        minimum=np.full(shape, np.nan),
        n_labels=np.zeros(shape, dtype=np.int64),
        n_trials=n_trials,
        null_minimum=np.full(shape[0], np.nan) if null_reference is not None else None,
    )

    for trial in range(n_trials):
        log.debug("%s: trial %d/%d", dataset.name, trial + 1, n_trials)
        for i, record in enumerate(dataset.files):
            if not record.present:
                continue
            path = dataset.image_path(record)
            image = loader(path)
            if image is None:
                log.warning("Unable to open %s", path)
                record.present = False
                _forget_file(results, i)
                continue

            if null_reference is not None and results.null_minimum is not None:
                timed = run_timed(null_reference, image, stopwatch)
                results.null_minimum[i] = np.fmin(results.null_minimum[i], timed.elapsed_ms)

            for j, algorithm in enumerate(algorithms):
                timed = run_timed(algorithm, image, stopwatch)
                results.current[i, j] = timed.elapsed_ms
                results.minimum[i, j] = np.fmin(results.minimum[i, j], timed.elapsed_ms)
                if trial == 0:
                    results.n_labels[i, j] = timed.n_labels
                    if on_labels is not None:
                        on_labels(record, algorithm, timed.labels)

        if on_trial_end is not None:
            on_trial_end(trial, results)
        if keep_trials:
            results.trials.append(results.current.copy())

    return results
