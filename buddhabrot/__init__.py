"""
Monte Carlo Buddhabrot sampler.

Samples points c, keeps those whose orbit under z -> z^2 + c escapes,
and accumulates every visited orbit value into a 2D density histogram.
"""

from buddhabrot.complex_number import ComplexNumber
from buddhabrot.config import BuddhabrotConfig, ConfigError, SamplingRegion, load_config
from buddhabrot.escape import EscapeEvaluator, escape_time
from buddhabrot.histogram import Histogram, RasterizationError, replay_orbit
from buddhabrot.pipeline import run_pipeline

__all__ = [
    "BuddhabrotConfig",
    "ComplexNumber",
    "ConfigError",
    "EscapeEvaluator",
    "Histogram",
    "RasterizationError",
    "SamplingRegion",
    "escape_time",
    "load_config",
    "replay_orbit",
    "run_pipeline",
]
