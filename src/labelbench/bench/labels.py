"""Label map canonicalization and equivalence.

Labeling algorithms are free to pick any positive ids.  Two label maps
describe the same partition of the foreground when, after remapping
ids to ``1..K`` in row-major order of first appearance, they are equal
pixel for pixel and report the same component count.
"""

from __future__ import annotations

import numpy as np


def canonicalize(labels: np.ndarray) -> tuple[np.ndarray, int]:
    """Return a canonical copy of *labels* and its number of components.

    The input is not modified.  Background (0) stays 0; every positive
    id is replaced by the rank of its first raster-order occurrence.
    """
    arr = np.asarray(labels)
    flat = arr.ravel()
    out = np.zeros(flat.shape, dtype=np.int32)
    positive = flat > 0
    values = flat[positive]
    if values.size == 0:
        return out.reshape(arr.shape), 0

    ids, first = np.unique(values, return_index=True)
    dense = np.empty(len(ids), dtype=np.int32)
    dense[np.argsort(first, kind="stable")] = np.arange(1, len(ids) + 1, dtype=np.int32)
    out[positive] = dense[np.searchsorted(ids, values)]
    return out.reshape(arr.shape), len(ids)


def equivalent(
    reference: np.ndarray,
    candidate: np.ndarray,
    ref_count: int,
    cand_count: int,
) -> bool:
    """Check whether *candidate* labels the same components as *reference*.

    *reference* must already be canonical (the reference algorithm emits
    row-major ordered labels); only *candidate* is canonicalized.
    """
    if ref_count != cand_count:
        return False
    if np.shape(reference) != np.shape(candidate):
        return False
    canonical, _ = canonicalize(candidate)
    return bool(np.array_equal(reference, canonical))
