"""Built-in connected-components labelers.

These make the harness usable out of the box and give the checker a
trusted reference.  All of them use 8-connectivity.

- ``union_find``: two-pass raster scan with an equivalence table.
  Provisional labels are merged by keeping the smaller root, so the
  final renumbering already follows row-major first appearance; this
  is the reference the checker compares against.
- ``flood_fill``: breadth-first fill started from raster-ordered seeds.
- ``null``: copies the image into the label map without labeling
  anything.  It is the timing floor used to normalize density results.

Each labeler has a ``*_mem`` twin that returns access counters instead
of a label map.
"""

from __future__ import annotations

from collections import deque

import numpy as np

from labelbench.bench.algorithms import (
    ACCESS_SLOT_COUNT,
    AccessSlot,
    register_algorithm,
    register_memory_algorithm,
)

_BINARY = AccessSlot.BINARY
_LABEL = AccessSlot.LABEL
_EQUIV = AccessSlot.EQUIVALENCE
_OTHER = AccessSlot.OTHER


def _new_counts() -> list[int]:
    return [0] * ACCESS_SLOT_COUNT


# ---------------------------------------------------------------------------
# Two-pass union-find
# ---------------------------------------------------------------------------


def _find(parent: list[int], x: int, counts: list[int]) -> int:
    root = x
    while parent[root] != root:
        counts[_EQUIV] += 1
        root = parent[root]
    counts[_EQUIV] += 1
    # Path compression.
    while parent[x] != root:
        nxt = parent[x]
        parent[x] = root
        counts[_EQUIV] += 2
        x = nxt
    return root


def _union(parent: list[int], a: int, b: int, counts: list[int]) -> int:
    ra = _find(parent, a, counts)
    rb = _find(parent, b, counts)
    if ra < rb:
        parent[rb] = ra
        counts[_EQUIV] += 1
        return ra
    if rb < ra:
        parent[ra] = rb
        counts[_EQUIV] += 1
    return rb


def _union_find(image: np.ndarray, counts: list[int]) -> tuple[np.ndarray, int]:
    rows, cols = image.shape
    img = image.tolist()
    labels = [[0] * cols for _ in range(rows)]
    parent = [0]

    for r in range(rows):
        row = img[r]
        out = labels[r]
        above = labels[r - 1] if r > 0 else None
        for c in range(cols):
            counts[_BINARY] += 1
            if not row[c]:
                continue
            current = 0
            neighbours: list[int] = []
            if above is not None:
                if c > 0:
                    neighbours.append(above[c - 1])
                neighbours.append(above[c])
                if c + 1 < cols:
                    neighbours.append(above[c + 1])
            if c > 0:
                neighbours.append(out[c - 1])
            counts[_LABEL] += len(neighbours)
            for lab in neighbours:
                if not lab:
                    continue
                if current == 0:
                    current = lab
                elif lab != current:
                    current = _union(parent, current, lab, counts)
            if current == 0:
                current = len(parent)
                parent.append(current)
                counts[_EQUIV] += 1
            out[c] = current
            counts[_LABEL] += 1

    # Roots are the smallest provisional label of each set, so numbering
    # them in increasing order yields row-major first-appearance order.
    final = [0] * len(parent)
    n_labels = 0
    for i in range(1, len(parent)):
        root = _find(parent, i, counts)
        if root == i:
            n_labels += 1
            final[i] = n_labels
        else:
            final[i] = final[root]
        counts[_EQUIV] += 1

    table = np.asarray(final, dtype=np.int32)
    result = table[np.asarray(labels, dtype=np.int64).reshape(rows, cols)]
    counts[_LABEL] += 2 * rows * cols
    return result, n_labels


@register_algorithm("union_find")
def label_union_find(image: np.ndarray) -> tuple[np.ndarray, int]:
    """Label *image* with the two-pass union-find reference algorithm."""
    return _union_find(image, _new_counts())


@register_memory_algorithm("union_find_mem")
def label_union_find_mem(image: np.ndarray) -> tuple[int, list[int]]:
    counts = _new_counts()
    _, n_labels = _union_find(image, counts)
    return n_labels, counts


# ---------------------------------------------------------------------------
# Breadth-first flood fill
# ---------------------------------------------------------------------------

_OFFSETS = [(-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1)]


def _flood_fill(image: np.ndarray, counts: list[int]) -> tuple[np.ndarray, int]:
    rows, cols = image.shape
    img = image.tolist()
    labels = [[0] * cols for _ in range(rows)]
    n_labels = 0
    queue: deque[tuple[int, int]] = deque()

    for r in range(rows):
        for c in range(cols):
            counts[_BINARY] += 1
            counts[_LABEL] += 1
            if not img[r][c] or labels[r][c]:
                continue
            n_labels += 1
            labels[r][c] = n_labels
            counts[_LABEL] += 1
            queue.append((r, c))
            counts[_OTHER] += 1
            while queue:
                y, x = queue.popleft()
                counts[_OTHER] += 1
                for dy, dx in _OFFSETS:
                    ny, nx = y + dy, x + dx
                    if ny < 0 or ny >= rows or nx < 0 or nx >= cols:
                        continue
                    counts[_BINARY] += 1
                    if not img[ny][nx]:
                        continue
                    counts[_LABEL] += 1
                    if labels[ny][nx]:
                        continue
                    labels[ny][nx] = n_labels
                    counts[_LABEL] += 1
                    queue.append((ny, nx))
                    counts[_OTHER] += 1

    return np.asarray(labels, dtype=np.int32).reshape(rows, cols), n_labels


@register_algorithm("flood_fill")
def label_flood_fill(image: np.ndarray) -> tuple[np.ndarray, int]:
    """Label *image* by flooding each component from its first pixel."""
    return _flood_fill(image, _new_counts())


@register_memory_algorithm("flood_fill_mem")
def label_flood_fill_mem(image: np.ndarray) -> tuple[int, list[int]]:
    counts = _new_counts()
    _, n_labels = _flood_fill(image, counts)
    return n_labels, counts


# ---------------------------------------------------------------------------
# Null labeling
# ---------------------------------------------------------------------------


@register_algorithm("null")
def label_null(image: np.ndarray) -> tuple[np.ndarray, int]:
    """Copy *image* into a label map; no components are computed."""
    return np.array(image, dtype=np.int32), 0
