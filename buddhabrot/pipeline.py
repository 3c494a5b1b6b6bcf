"""
Producer / aggregator pipeline.

    PointSource -> EscapeEvaluator -> SamplingWorker batches
        -> ResultChannel -> Aggregator -> Histogram -> ImageSink

Workers (threads or processes) share nothing; the histogram lives only in
the aggregator, which runs on the calling thread.
"""

from __future__ import annotations

import multiprocessing as mp
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from buddhabrot.channel import ResultChannel
from buddhabrot.config import BuddhabrotConfig, validate_config
from buddhabrot.histogram import Histogram
from buddhabrot.sinks import ImageSink, RecordSink, timestamped_path
from buddhabrot.worker import Batch, worker_main


@dataclass
class RunSummary:
    batches: int
    points: int
    iterations: int
    probed: int
    elapsed: float
    target_reached: bool
    interrupted: bool
    histogram: Histogram
    image_path: Optional[Path] = None


class Aggregator:
    """Single-threaded consumer that owns the histogram."""

    def __init__(
        self,
        cfg: BuddhabrotConfig,
        histogram: Histogram,
        image_sink: Optional[ImageSink] = None,
        record_sink: Optional[RecordSink] = None,
        verbose: bool = False,
    ):
        self.cfg = cfg
        self.histogram = histogram
        self.image_sink = image_sink
        self.record_sink = record_sink
        self.verbose = verbose

        self.batches = 0
        self.points = 0
        self.iterations = 0
        self.probed = 0
        self.started = time.time()
        self._next_save = cfg.save_interval
        self._saved_batches = None  # batch count at the last save
        self.last_path: Optional[Path] = None

    def progress(self) -> int:
        """Progress in target units (batches when no target is set)."""
        mode = self.cfg.target.mode
        if mode == "points":
            return self.points
        if mode == "iterations":
            return self.iterations
        return self.batches

    def target_reached(self) -> bool:
        target = self.cfg.target
        if target.mode == "none":
            return False
        return self.progress() >= target.value

    def consume(self, batch: Batch) -> bool:
        """Accumulate one batch. Returns True once the target is reached."""
        threshold = self.cfg.record_threshold
        long_orbits = []

        for point, iterations in batch.points:
            self.histogram.accumulate_orbit(point, iterations)
            if threshold is not None and iterations > threshold:
                long_orbits.append((point, iterations))

        if long_orbits and self.record_sink is not None:
            self.record_sink.write(long_orbits)

        self.batches += 1
        self.points += len(batch.points)
        self.iterations += batch.iteration_sum
        self.probed += batch.probed

        if self.progress() >= self._next_save:
            self.save()
            while self._next_save <= self.progress():
                self._next_save += self.cfg.save_interval

        return self.target_reached()

    def unsaved(self) -> bool:
        return self._saved_batches != self.batches

    def save(self) -> Optional[Path]:
        self._saved_batches = self.batches
        if self.verbose:
            elapsed = time.time() - self.started
            print(
                f"[run] batches={self.batches} points={self.points} "
                f"iterations={self.iterations} probed={self.probed} ({elapsed:.1f}s)"
            )
        if self.image_sink is None:
            return None
        path = self.image_sink.save(self.histogram.snapshot())
        self.last_path = path
        if self.verbose:
            print(f"[save] {path}")
        return path


def default_sinks(cfg: BuddhabrotConfig):
    """Image and record sinks under cfg.output, named like buddhabrot_20240101_120000.png."""
    out = cfg.output
    if out.timestamp:
        image_path = timestamped_path(out.directory, f"{out.prefix}_", ".png")
    else:
        image_path = Path(out.directory) / f"{out.prefix}.png"
    counts_path = image_path.with_suffix(".npy") if out.save_counts else None
    image_sink = ImageSink(image_path, counts_path)

    record_sink = None
    if cfg.record_threshold is not None:
        record_sink = RecordSink(image_path.with_name(image_path.stem + "_points.jsonl"))
    return image_sink, record_sink


def _start_workers(cfg: BuddhabrotConfig):
    if cfg.backend == "process":
        ctx = mp.get_context()
        channel = ResultChannel(cfg.workers, cfg.channel_capacity, context=ctx)
        workers = [
            ctx.Process(target=worker_main, args=(cfg, i, channel), daemon=True)
            for i in range(cfg.workers)
        ]
    elif cfg.backend == "thread":
        channel = ResultChannel(cfg.workers, cfg.channel_capacity)
        workers = [
            threading.Thread(target=worker_main, args=(cfg, i, channel), daemon=True)
            for i in range(cfg.workers)
        ]
    else:
        raise ValueError(f"Unknown backend: {cfg.backend}")

    for w in workers:
        w.start()
    return channel, workers


def run_pipeline(
    cfg: BuddhabrotConfig,
    image_sink: Optional[ImageSink] = None,
    record_sink: Optional[RecordSink] = None,
    verbose: bool = True,
) -> RunSummary:
    """
    Sample until the target is reached, the workers stop, or Ctrl-C.

    A final snapshot is written to image_sink on the way out (except when
    the run dies on an error, which propagates).
    """
    cfg = validate_config(cfg)
    histogram = Histogram(cfg.resolution, cfg.histogram_region, clip=cfg.clip)
    aggregator = Aggregator(cfg, histogram, image_sink, record_sink, verbose=verbose)

    if verbose:
        print(
            f"[run] workers={cfg.workers} backend={cfg.backend} seed={cfg.seed} "
            f"limit={cfg.iteration_limit} resolution={cfg.resolution[0]}x{cfg.resolution[1]}"
        )

    channel, workers = _start_workers(cfg)
    reached = False
    interrupted = False
    try:
        for batch in channel:
            if aggregator.consume(batch):
                reached = True
                break
    except KeyboardInterrupt:
        interrupted = True
        if verbose:
            print("[run] interrupted, stopping workers")
    finally:
        channel.close()
        channel.drain()
        for w in workers:
            w.join()

    # skip the final save when the last periodic one already covers every batch
    if aggregator.unsaved():
        image_path = aggregator.save()
    else:
        image_path = aggregator.last_path
    elapsed = time.time() - aggregator.started
    if verbose:
        print(f"[done] {aggregator.points} orbits, {aggregator.iterations} iterations in {elapsed:.2f}s")

    return RunSummary(
        batches=aggregator.batches,
        points=aggregator.points,
        iterations=aggregator.iterations,
        probed=aggregator.probed,
        elapsed=elapsed,
        target_reached=reached,
        interrupted=interrupted,
        histogram=histogram,
        image_path=image_path,
    )
