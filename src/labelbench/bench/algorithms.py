"""Pluggable labeling algorithms and their registries.

Two capability shapes coexist:

- A *labeling* algorithm takes a binary image and returns
  ``(label_map, n_components)``.  It allocates its own label map and
  must not modify the image.
- A *memory* algorithm takes a binary image and returns
  ``(n_components, counts)`` where ``counts`` holds exactly four access
  counters, in :class:`AccessSlot` order.

Implementations register themselves under a string key with
:func:`register_algorithm` / :func:`register_memory_algorithm`.  A
benchmark configuration names keys plus display names; the resolvers
below turn those into ordered entries, warning about unknown keys.

Display names may carry gnuplot-style ``\\`` escape markers (for
example ``"CT\\\\_OPT"``).  :attr:`AlgorithmEntry.display_name` collapses
doubled markers for renderers, :attr:`AlgorithmEntry.file_name` drops
them entirely for use in output file names.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from labelbench.bench.config import ConfigurationError

log = logging.getLogger("labelbench")

LabelingFunc = Callable[[np.ndarray], tuple[np.ndarray, int]]
MemoryFunc = Callable[[np.ndarray], tuple[int, Sequence[int]]]

REFERENCE = "union_find"
NULL_REFERENCE = "null"

_ESCAPE = "\\"


class AccessSlot(enum.IntEnum):
    """Fixed counter slots reported by memory algorithms."""

    BINARY = 0
    LABEL = 1
    EQUIVALENCE = 2
    OTHER = 3


ACCESS_SLOT_COUNT = len(AccessSlot)

LABELING_ALGORITHMS: dict[str, LabelingFunc] = {}
MEMORY_ALGORITHMS: dict[str, MemoryFunc] = {}


# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------


def collapse_double_escape(name: str) -> str:
    """Collapse every adjacent ``\\\\`` pair in *name* into a single ``\\``."""
    return name.replace(_ESCAPE * 2, _ESCAPE)


def strip_escape(name: str) -> str:
    """Remove every escape marker from *name*."""
    return name.replace(_ESCAPE, "")


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AlgorithmEntry:
    """A labeling algorithm paired with its configured name."""

    func: LabelingFunc
    name: str
    key: str = ""

    @property
    def display_name(self) -> str:
        """Name safe to hand to table and report renderers."""
        return collapse_double_escape(self.name)

    @property
    def file_name(self) -> str:
        """Name usable as part of an output file name."""
        return strip_escape(self.name)

    def __call__(self, image: np.ndarray) -> tuple[np.ndarray, int]:
        labels, n_labels = self.func(image)
        return labels, int(n_labels)


@dataclass(frozen=True)
class MemoryAlgorithmEntry:
    """An access-counting algorithm paired with its configured name."""

    func: MemoryFunc
    name: str
    key: str = ""

    @property
    def display_name(self) -> str:
        return collapse_double_escape(self.name)

    def __call__(self, image: np.ndarray) -> tuple[int, list[int]]:
        n_labels, counts = self.func(image)
        counts = [int(c) for c in counts]
        if len(counts) != ACCESS_SLOT_COUNT:
            raise ValueError(
                f"Memory algorithm '{self.name}' returned {len(counts)} counters, "
                f"expected {ACCESS_SLOT_COUNT}"
            )
        return int(n_labels), counts


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_algorithm(key: str) -> Callable[[LabelingFunc], LabelingFunc]:
    """Decorator registering a labeling function under *key*."""

    def decorator(func: LabelingFunc) -> LabelingFunc:
        LABELING_ALGORITHMS[key] = func
        return func

    return decorator


def register_memory_algorithm(key: str) -> Callable[[MemoryFunc], MemoryFunc]:
    """Decorator registering an access-counting function under *key*."""

    def decorator(func: MemoryFunc) -> MemoryFunc:
        MEMORY_ALGORITHMS[key] = func
        return func

    return decorator


def load_builtins() -> None:
    """Register the built-in labelers of :mod:`labelbench.labeling`."""
    # Importing the module runs its registration decorators.
    import labelbench.labeling  # noqa: F401


def get_algorithm(key: str, name: str | None = None) -> AlgorithmEntry:
    """Return the registered labeling algorithm *key* as an entry.

    Raises:
        KeyError: If no algorithm is registered under *key*.
    """
    load_builtins()
    return AlgorithmEntry(func=LABELING_ALGORITHMS[key], name=name or key, key=key)


# ---------------------------------------------------------------------------
# Resolution from configuration
# ---------------------------------------------------------------------------


def _check_lists(keys: Sequence[str], names: Sequence[str], what: str) -> None:
    if not keys or len(keys) != len(names):
        raise ConfigurationError(
            f"{what} keys and names must match in length and order and must not be "
            f"empty (got {len(keys)} keys, {len(names)} names)"
        )


def resolve_algorithms(keys: Sequence[str], names: Sequence[str]) -> list[AlgorithmEntry]:
    """Map configured keys and display names to labeling entries.

    Unknown keys are skipped with a warning; the remaining entries keep
    their configured order.

    Raises:
        ConfigurationError: If the lists are empty or differ in length.
    """
    _check_lists(keys, names, "Algorithm")
    load_builtins()
    entries: list[AlgorithmEntry] = []
    for key, name in zip(keys, names):
        func = LABELING_ALGORITHMS.get(key)
        if func is None:
            log.warning("Unable to find '%s' algorithm, skipped", key)
            continue
        entries.append(AlgorithmEntry(func=func, name=name, key=key))
    return entries


def resolve_memory_algorithms(
    keys: Sequence[str], names: Sequence[str]
) -> list[MemoryAlgorithmEntry]:
    """Map configured keys and display names to memory entries.

    Same rules as :func:`resolve_algorithms`.
    """
    _check_lists(keys, names, "Memory algorithm")
    load_builtins()
    entries: list[MemoryAlgorithmEntry] = []
    for key, name in zip(keys, names):
        func = MEMORY_ALGORITHMS.get(key)
        if func is None:
            log.warning("Unable to find '%s' memory algorithm, skipped", key)
            continue
        entries.append(MemoryAlgorithmEntry(func=func, name=name, key=key))
    return entries
