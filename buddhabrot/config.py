"""
Run configuration for the Buddhabrot sampler.

Configs live in YAML files (see configs/buddhabrot.yaml). Every value has a
default, so an empty file gives the reference run:

    sampling:  real [-2, 1] x imag [-1.4, 1.4]
    histogram: [-2, 2] x [-2, 2] at 1920x1920
    iteration_limit 12000, bailout_squared 4.0, min_iterations 5
    4 workers, seed 1988

load_config(path) -> BuddhabrotConfig
validate_config(cfg) raises ConfigError before any worker is started.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

import yaml

BATCH_MODES = ("iteration_sum", "count")
TARGET_MODES = ("batches", "points", "iterations", "none")
BACKENDS = ("process", "thread")


class ConfigError(ValueError):
    """Invalid run configuration. Fatal at startup."""


@dataclass(frozen=True)
class SamplingRegion:
    real_range: Tuple[float, float] = (-2.0, 1.0)
    imaginary_range: Tuple[float, float] = (-1.4, 1.4)

    @property
    def width(self) -> float:
        return self.real_range[1] - self.real_range[0]

    @property
    def height(self) -> float:
        return self.imaginary_range[1] - self.imaginary_range[0]

    def contains(self, point) -> bool:
        """Half-open test: min <= value < max on both axes."""
        return (
            self.real_range[0] <= point.real < self.real_range[1]
            and self.imaginary_range[0] <= point.imaginary < self.imaginary_range[1]
        )


@dataclass(frozen=True)
class BatchConfig:
    mode: str = "iteration_sum"  # "iteration_sum" | "count"
    size: int = 20000            # qualifying points per batch (count mode)
    iterations: int = 2_000_000  # iteration sum per batch (iteration_sum mode)


@dataclass(frozen=True)
class TargetConfig:
    mode: str = "batches"  # "batches" | "points" | "iterations" | "none"
    value: Optional[int] = 10000


@dataclass(frozen=True)
class OutputConfig:
    directory: str = "output"
    prefix: str = "buddhabrot"
    timestamp: bool = True
    save_counts: bool = False


@dataclass(frozen=True)
class BuddhabrotConfig:
    sampling: SamplingRegion = field(default_factory=SamplingRegion)
    histogram_region: SamplingRegion = field(
        default_factory=lambda: SamplingRegion((-2.0, 2.0), (-2.0, 2.0))
    )
    resolution: Tuple[int, int] = (1920, 1920)  # (width, height)
    clip: bool = False  # drop out-of-range orbit values instead of failing

    iteration_limit: int = 12000
    bailout_squared: float = 4.0  # threshold on |z|^2
    min_iterations: int = 5

    batch: BatchConfig = field(default_factory=BatchConfig)
    target: TargetConfig = field(default_factory=TargetConfig)
    save_interval: int = 50  # in target units (batches when no target)
    record_threshold: Optional[int] = 5000

    workers: int = 4
    seed: int = 1988
    backend: str = "process"  # "process" | "thread"
    channel_capacity: int = 0  # 0 = unbounded

    output: OutputConfig = field(default_factory=OutputConfig)

    def with_overrides(self, **changes) -> BuddhabrotConfig:
        return replace(self, **changes)


def _pair(value, cast, default):
    if value is None:
        return default
    if isinstance(value, str) or len(value) != 2:
        raise ConfigError(f"Expected a pair of values, got {value!r}")
    return (cast(value[0]), cast(value[1]))


def _optional_int(value):
    return None if value is None else int(value)


def _region(cfg: dict, default: SamplingRegion) -> SamplingRegion:
    return SamplingRegion(
        real_range=_pair(cfg.get("real_range"), float, default.real_range),
        imaginary_range=_pair(cfg.get("imaginary_range"), float, default.imaginary_range),
    )


def config_from_dict(cfg: Optional[dict]) -> BuddhabrotConfig:
    """Build a config from the nested dict layout used by the YAML files."""
    cfg = cfg or {}
    defaults = BuddhabrotConfig()

    sampling = cfg.get("sampling", {}) or {}
    hist = cfg.get("histogram", {}) or {}
    batch = cfg.get("batch", {}) or {}
    target = cfg.get("target", {}) or {}
    output = cfg.get("output", {}) or {}

    try:
        return BuddhabrotConfig(
            sampling=_region(sampling, defaults.sampling),
            histogram_region=_region(hist, defaults.histogram_region),
            resolution=_pair(hist.get("resolution"), int, defaults.resolution),
            clip=bool(hist.get("clip", defaults.clip)),
            iteration_limit=int(cfg.get("iteration_limit", defaults.iteration_limit)),
            bailout_squared=float(cfg.get("bailout_squared", defaults.bailout_squared)),
            min_iterations=int(cfg.get("min_iterations", defaults.min_iterations)),
            batch=BatchConfig(
                mode=str(batch.get("mode", defaults.batch.mode)),
                size=int(batch.get("size", defaults.batch.size)),
                iterations=int(batch.get("iterations", defaults.batch.iterations)),
            ),
            target=TargetConfig(
                mode=str(target.get("mode", defaults.target.mode)),
                value=_optional_int(target.get("value", defaults.target.value)),
            ),
            save_interval=int(cfg.get("save_interval", defaults.save_interval)),
            record_threshold=_optional_int(cfg.get("record_threshold", defaults.record_threshold)),
            workers=int(cfg.get("workers", defaults.workers)),
            seed=int(cfg.get("seed", defaults.seed)),
            backend=str(cfg.get("backend", defaults.backend)),
            channel_capacity=int(cfg.get("channel_capacity", defaults.channel_capacity)),
            output=OutputConfig(
                directory=str(output.get("directory", defaults.output.directory)),
                prefix=str(output.get("prefix", defaults.output.prefix)),
                timestamp=bool(output.get("timestamp", defaults.output.timestamp)),
                save_counts=bool(output.get("save_counts", defaults.output.save_counts)),
            ),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Malformed config value: {e}") from e


def load_config(path: str | Path) -> BuddhabrotConfig:
    with open(path, "r") as f:
        cfg = yaml.safe_load(f)
    if cfg is not None and not isinstance(cfg, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return validate_config(config_from_dict(cfg))


def _check_range(name: str, rng: Tuple[float, float]) -> None:
    lo, hi = rng
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise ConfigError(f"{name} must be finite, got {rng}")
    if lo >= hi:
        raise ConfigError(f"{name} is empty or inverted: {rng}")


def validate_config(cfg: BuddhabrotConfig) -> BuddhabrotConfig:
    """Return cfg unchanged, or raise ConfigError on the first problem found."""
    _check_range("sampling.real_range", cfg.sampling.real_range)
    _check_range("sampling.imaginary_range", cfg.sampling.imaginary_range)
    _check_range("histogram.real_range", cfg.histogram_region.real_range)
    _check_range("histogram.imaginary_range", cfg.histogram_region.imaginary_range)

    width, height = cfg.resolution
    if width <= 0 or height <= 0:
        raise ConfigError(f"resolution must be positive, got {cfg.resolution}")

    if cfg.iteration_limit <= 0:
        raise ConfigError(f"iteration_limit must be positive, got {cfg.iteration_limit}")
    if not (cfg.bailout_squared > 0 and math.isfinite(cfg.bailout_squared)):
        raise ConfigError(f"bailout_squared must be positive, got {cfg.bailout_squared}")
    if cfg.min_iterations < 0:
        raise ConfigError(f"min_iterations must be >= 0, got {cfg.min_iterations}")

    if cfg.batch.mode not in BATCH_MODES:
        raise ConfigError(f"Unknown batch mode: {cfg.batch.mode}")
    if cfg.batch.size <= 0 or cfg.batch.iterations <= 0:
        raise ConfigError("batch size and batch iterations must be positive")

    if cfg.target.mode not in TARGET_MODES:
        raise ConfigError(f"Unknown target mode: {cfg.target.mode}")
    if cfg.target.mode != "none" and (cfg.target.value is None or cfg.target.value <= 0):
        raise ConfigError(f"target value must be positive for mode {cfg.target.mode!r}")

    if cfg.save_interval <= 0:
        raise ConfigError(f"save_interval must be positive, got {cfg.save_interval}")
    if cfg.record_threshold is not None and cfg.record_threshold < 0:
        raise ConfigError(f"record_threshold must be >= 0, got {cfg.record_threshold}")

    if cfg.workers <= 0:
        raise ConfigError(f"workers must be positive, got {cfg.workers}")
    if cfg.backend not in BACKENDS:
        raise ConfigError(f"Unknown backend: {cfg.backend}")
    if cfg.channel_capacity < 0:
        raise ConfigError(f"channel_capacity must be >= 0, got {cfg.channel_capacity}")

    return cfg
