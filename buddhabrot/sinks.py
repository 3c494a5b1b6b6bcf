"""
Output collaborators: grayscale density images and the JSON-lines record log.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
from PIL import Image


def timestamped_path(directory: str | Path, prefix: str, suffix: str) -> Path:
    """directory / f"{prefix}{YYYYmmdd_HHMMSS}{suffix}" """
    timestamp = time.strftime("%Y%m%d_%H%M%S")
    return Path(directory) / f"{prefix}{timestamp}{suffix}"


def normalize_counts(counts: np.ndarray) -> np.ndarray:
    """floor(count * 255 / max) as uint8. An all-zero grid stays all zero."""
    counts = np.asarray(counts, dtype=np.uint64)
    peak = int(counts.max()) if counts.size else 0
    if peak == 0:
        return np.zeros(counts.shape, dtype=np.uint8)
    return (counts * np.uint64(255) // np.uint64(peak)).astype(np.uint8)


def save_density_image(path: str | Path, counts: np.ndarray) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(normalize_counts(counts)).save(path)
    return path


class ImageSink:
    """Writes a normalized PNG, and optionally the raw counts as .npy."""

    def __init__(self, path: str | Path, counts_path: Optional[str | Path] = None):
        self.path = Path(path)
        self.counts_path = Path(counts_path) if counts_path is not None else None
        self.saves = 0

    def save(self, counts: np.ndarray) -> Path:
        save_density_image(self.path, counts)
        if self.counts_path is not None:
            self.counts_path.parent.mkdir(parents=True, exist_ok=True)
            np.save(self.counts_path, counts)
        self.saves += 1
        return self.path


class RecordSink:
    """
    Append-only log of (point, iterations) entries, one JSON object per line:

        {"point": [-0.7512, 0.0321], "iterations": 6210}
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a")
        self.written = 0

    def write(self, entries: Iterable) -> None:
        for point, iterations in entries:
            record = {"point": [point.real, point.imaginary], "iterations": int(iterations)}
            self._file.write(json.dumps(record) + "\n")
            self.written += 1
        self._file.flush()

    def close(self) -> None:
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
