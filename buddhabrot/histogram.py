"""
Density histogram over a rectangle of the complex plane, and orbit replay.

The grid is a numpy uint64 array of shape (height, width): rows follow the
imaginary axis (row 0 = imaginary minimum), columns follow the real axis.
"""

from __future__ import annotations

import math
from typing import Iterator, Tuple

import numpy as np

from buddhabrot.complex_number import ComplexNumber
from buddhabrot.config import SamplingRegion


class RasterizationError(IndexError):
    """An orbit value mapped outside the histogram grid."""


def replay_orbit(point: ComplexNumber, iterations: int) -> Iterator[ComplexNumber]:
    """Yield z_1 .. z_iterations of the orbit of point, starting from zero."""
    current = ComplexNumber.zero()
    for _ in range(iterations):
        current = current * current + point
        yield current


def orbit_arrays(point: ComplexNumber, iterations: int) -> Tuple[np.ndarray, np.ndarray]:
    """Same values as replay_orbit, as (reals, imaginaries) float64 arrays."""
    cr, ci = point.real, point.imaginary
    zr, zi = 0.0, 0.0
    reals = np.empty(iterations, dtype=np.float64)
    imags = np.empty(iterations, dtype=np.float64)
    for i in range(iterations):
        zr, zi = zr * zr - zi * zi + cr, zr * zi + zr * zi + ci
        reals[i] = zr
        imags[i] = zi
    return reals, imags


class Histogram:
    def __init__(self, resolution: Tuple[int, int], region: SamplingRegion, clip: bool = False):
        width, height = resolution
        if width <= 0 or height <= 0:
            raise ValueError(f"resolution must be positive, got {resolution}")

        self.width = int(width)
        self.height = int(height)
        self.region = region
        self.clip = clip

        self.min_x, self.max_x = region.real_range
        self.min_y, self.max_y = region.imaginary_range
        self.span_x = self.max_x - self.min_x
        self.span_y = self.max_y - self.min_y

        self.data = np.zeros((self.height, self.width), dtype=np.uint64)
        self.dropped = 0

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def rasterize(self, value: ComplexNumber) -> Tuple[int, int]:
        """Map a value to (cell_x, cell_y). Raises RasterizationError when out of range."""
        x, y = value.real, value.imaginary
        # NaN fails both comparisons
        if not (self.min_x <= x < self.max_x):
            raise RasterizationError(f"{value}: real part outside [{self.min_x}, {self.max_x})")
        if not (self.min_y <= y < self.max_y):
            raise RasterizationError(f"{value}: imaginary part outside [{self.min_y}, {self.max_y})")

        # rounding can push a value just below max onto cell == resolution
        cx = min(math.floor((x - self.min_x) * self.width / self.span_x), self.width - 1)
        cy = min(math.floor((y - self.min_y) * self.height / self.span_y), self.height - 1)
        return cx, cy

    def add(self, value: ComplexNumber) -> None:
        try:
            x, y = self.rasterize(value)
        except RasterizationError:
            if not self.clip:
                raise
            self.dropped += 1
            return
        self.data[y, x] += 1

    def add_many(self, reals: np.ndarray, imags: np.ndarray) -> None:
        """Vectorized add for a batch of values."""
        reals = np.asarray(reals, dtype=np.float64)
        imags = np.asarray(imags, dtype=np.float64)
        with np.errstate(invalid="ignore"):
            inside = (
                (reals >= self.min_x) & (reals < self.max_x)
                & (imags >= self.min_y) & (imags < self.max_y)
            )

        if not inside.all():
            if not self.clip:
                bad = int(np.argmin(inside))
                raise RasterizationError(
                    f"({reals[bad]}, {imags[bad]}) outside "
                    f"[{self.min_x}, {self.max_x}) x [{self.min_y}, {self.max_y})"
                )
            self.dropped += int((~inside).sum())
            reals = reals[inside]
            imags = imags[inside]

        cx = np.floor((reals - self.min_x) * self.width / self.span_x).astype(np.intp)
        cy = np.floor((imags - self.min_y) * self.height / self.span_y).astype(np.intp)
        np.minimum(cx, self.width - 1, out=cx)
        np.minimum(cy, self.height - 1, out=cy)
        np.add.at(self.data, (cy, cx), np.uint64(1))

    def accumulate_orbit(self, point: ComplexNumber, iterations: int) -> None:
        """Replay the orbit of point for `iterations` steps, counting every value."""
        if iterations <= 0:
            return
        reals, imags = orbit_arrays(point, iterations)
        self.add_many(reals, imags)

    def total(self) -> int:
        return int(self.data.sum())

    def snapshot(self) -> np.ndarray:
        return self.data.copy()
