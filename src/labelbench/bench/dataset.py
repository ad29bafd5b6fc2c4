"""Datasets: ordered image lists read from a per-dataset list file.

A dataset lives in ``<input_path>/<name>/`` and lists its images, one
file name per line, in ``files.txt`` (configurable).  The list is read
once per test; its order is kept for every trial.

Naming contract for bucketed statistics
---------------------------------------
Files whose name starts with three ASCII digits encode their size and
density class::

    <size><density><anything>...
      size     digit 0: edge length 32 * 2**size   (0..7 -> 32..4096)
      density  digit 1: foreground density 0.1 * (density + 1)  (0..8)

``"310_0001.png"`` is therefore a 256x256 image with density 0.2.  Names
that do not follow the contract, or whose digits fall outside the
ranges above, are left out of the density and size buckets but still
count in plain averages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

SIZE_CLASSES = 8
DENSITY_CLASSES = 9

_DIGITS = frozenset("0123456789")


class DatasetError(OSError):
    """Raised when a dataset's file list cannot be read."""


@dataclass
class FileRecord:
    """One listed image and whether it could be loaded so far."""

    filename: str
    present: bool = True


@dataclass
class Dataset:
    """An ordered list of images inside a directory."""

    name: str
    path: Path
    files: list[FileRecord] = field(default_factory=list)

    def image_path(self, record: FileRecord) -> Path:
        return self.path / record.filename

    @property
    def present_files(self) -> list[FileRecord]:
        return [f for f in self.files if f.present]

    def __len__(self) -> int:
        return len(self.files)


def load_dataset(input_path: Path, name: str, list_file: str = "files.txt") -> Dataset:
    """Read the file list of dataset *name*.

    Carriage returns are stripped from every line and blank lines are
    ignored.

    Raises:
        DatasetError: If the list file cannot be read.
    """
    path = Path(input_path) / name
    list_path = path / list_file
    try:
        text = list_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DatasetError(f"Unable to open {list_path}") from exc

    files: list[FileRecord] = []
    for line in text.split("\n"):
        filename = line.replace("\r", "")
        if filename.strip():
            files.append(FileRecord(filename=filename))
    return Dataset(name=name, path=path, files=files)


# ---------------------------------------------------------------------------
# Bucket decoding
# ---------------------------------------------------------------------------


def bucket_indices(filename: str) -> tuple[int, int] | None:
    """Decode ``(size_index, density_index)`` from *filename*.

    Returns None when the name does not follow the naming contract.
    """
    head = filename[:3]
    if len(head) < 3 or not all(ch in _DIGITS for ch in head):
        return None
    size_index = int(head[0])
    density_index = int(head[1])
    if size_index >= SIZE_CLASSES or density_index >= DENSITY_CLASSES:
        return None
    return size_index, density_index


def size_edge(size_index: int) -> int:
    """Edge length in pixels of size class *size_index*."""
    return 32 * 2**size_index


def size_area(size_index: int) -> int:
    """Pixel count of size class *size_index*."""
    return size_edge(size_index) ** 2


def density_value(density_index: int) -> float:
    """Foreground density of density class *density_index*."""
    return round(0.1 * (density_index + 1), 1)
