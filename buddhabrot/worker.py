"""
Sampling workers: draw points, keep the ones whose orbit escapes late enough,
and ship them to the aggregator in batches.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple, Optional

from buddhabrot.complex_number import ComplexNumber
from buddhabrot.config import BuddhabrotConfig
from buddhabrot.escape import EscapeEvaluator
from buddhabrot.point_source import PointSource


class QualifyingPoint(NamedTuple):
    point: ComplexNumber
    iterations: int


@dataclass
class Batch:
    worker_index: int
    points: List[QualifyingPoint] = field(default_factory=list)
    probed: int = 0  # points drawn to fill this batch
    iteration_sum: int = 0

    def add(self, point: ComplexNumber, iterations: int) -> None:
        self.points.append(QualifyingPoint(point, iterations))
        self.iteration_sum += iterations

    def __len__(self) -> int:
        return len(self.points)


def batch_criterion(cfg: BuddhabrotConfig) -> Callable[[Batch], bool]:
    """Return a predicate telling whether a batch is complete."""
    mode = cfg.batch.mode
    if mode == "count":
        size = cfg.batch.size
        return lambda batch: len(batch.points) >= size
    if mode == "iteration_sum":
        target = cfg.batch.iterations
        return lambda batch: batch.iteration_sum >= target
    raise ValueError(f"Unknown batch mode: {mode}")


class SamplingWorker:
    def __init__(self, cfg: BuddhabrotConfig, worker_index: int, stop_check_interval: int = 1024):
        self.cfg = cfg
        self.worker_index = worker_index
        self.source = PointSource.for_worker(cfg.sampling, cfg.seed, worker_index)
        self.evaluator = EscapeEvaluator()
        self.is_complete = batch_criterion(cfg)
        self.stop_check_interval = stop_check_interval
        self.batches_sent = 0

    def probe(self) -> Optional[QualifyingPoint]:
        """Draw and evaluate one point; return it if it qualifies."""
        point = self.source.sample()
        n = self.evaluator.evaluate(point, self.cfg.iteration_limit, self.cfg.bailout_squared)
        if n is not None and n > self.cfg.min_iterations:
            return QualifyingPoint(point, n)
        return None

    def draw(self, count: int) -> List[QualifyingPoint]:
        """Evaluate exactly `count` points and return the qualifying ones."""
        found = []
        for _ in range(count):
            hit = self.probe()
            if hit is not None:
                found.append(hit)
        return found

    def fill_batch(self, should_stop: Optional[Callable[[], bool]] = None) -> Optional[Batch]:
        """Probe until the batch is complete. Returns None if should_stop() fires first."""
        batch = Batch(self.worker_index)
        while not self.is_complete(batch):
            if (
                should_stop is not None
                and batch.probed % self.stop_check_interval == 0
                and should_stop()
            ):
                return None
            batch.probed += 1
            hit = self.probe()
            if hit is not None:
                batch.add(hit.point, hit.iterations)
        return batch

    def run(self, channel) -> None:
        """Produce batches until the channel is closed. Failures are reported on the channel."""
        try:
            while not channel.closed:
                batch = self.fill_batch(should_stop=lambda: channel.closed)
                if batch is None or not channel.send(batch):
                    break
                self.batches_sent += 1
        except Exception:
            channel.send_error(self.worker_index, traceback.format_exc())
        finally:
            channel.sender_done()


def worker_main(cfg: BuddhabrotConfig, worker_index: int, channel) -> None:
    """Entry point for worker threads and processes."""
    SamplingWorker(cfg, worker_index).run(channel)
