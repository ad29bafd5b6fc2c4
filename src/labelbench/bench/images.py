"""Binary mask loading and label-map visualization.

Images are read as 8-bit grayscale and thresholded: pixels brighter
than :data:`THRESHOLD` become foreground (1), everything else is
background (0).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import numpy as np
from PIL import Image, UnidentifiedImageError

log = logging.getLogger("labelbench")

THRESHOLD = 100

ImageLoader = Callable[[Path], np.ndarray | None]


def load_binary_mask(path: Path) -> np.ndarray | None:
    """Load *path* as a read-only 0/1 ``uint8`` array.

    Returns:
        The binary image, or None if the file is missing or unreadable.
    """
    try:
        with Image.open(path) as img:
            gray = np.asarray(img.convert("L"))
    except (FileNotFoundError, UnidentifiedImageError, OSError) as exc:
        log.debug("Cannot load %s: %s", path, exc)
        return None
    mask = (gray > THRESHOLD).astype(np.uint8)
    mask.setflags(write=False)
    return mask


def color_labels(labels: np.ndarray) -> np.ndarray:
    """Map each label to a pseudo-random color; background stays black.

    Returns:
        An ``(rows, cols, 3)`` RGB ``uint8`` array.
    """
    lab = labels.astype(np.int64)
    rgb = np.stack(
        [(lab * 251) % 255, (lab * 241) % 255, (lab * 131) % 255],
        axis=-1,
    )
    return rgb.astype(np.uint8)


def save_color_labels(labels: np.ndarray, path: Path) -> None:
    """Write the false-color rendering of *labels* to *path* as PNG."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(color_labels(labels)).save(path, format="PNG")
