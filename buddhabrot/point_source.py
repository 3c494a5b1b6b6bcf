from __future__ import annotations

import numpy as np

from buddhabrot.complex_number import ComplexNumber
from buddhabrot.config import SamplingRegion


class PointSource:
    """
    Seeded uniform sampler over a rectangular region of the plane.

    Values are drawn from numpy's default_rng in blocks; the sequence of
    returned points depends only on the seed and the number of calls.
    """

    def __init__(self, region: SamplingRegion, seed: int, block_size: int = 4096):
        self.region = region
        self.seed = seed
        self._rng = np.random.default_rng(seed)
        self._block_size = block_size
        self._reals: list = []
        self._imags: list = []
        self._pos = 0

    @classmethod
    def for_worker(cls, region: SamplingRegion, base_seed: int, worker_index: int) -> PointSource:
        return cls(region, base_seed + worker_index)

    def _refill(self):
        lo_r, hi_r = self.region.real_range
        lo_i, hi_i = self.region.imaginary_range
        self._reals = self._rng.uniform(lo_r, hi_r, self._block_size).tolist()
        self._imags = self._rng.uniform(lo_i, hi_i, self._block_size).tolist()
        self._pos = 0

    def sample(self) -> ComplexNumber:
        if self._pos >= len(self._reals):
            self._refill()
        point = ComplexNumber(self._reals[self._pos], self._imags[self._pos])
        self._pos += 1
        return point

    def __iter__(self):
        while True:
            yield self.sample()
