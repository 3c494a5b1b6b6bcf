from dataclasses import replace
from pathlib import Path

import pytest

from buddhabrot.config import (
    BatchConfig,
    BuddhabrotConfig,
    ConfigError,
    SamplingRegion,
    TargetConfig,
    load_config,
    validate_config,
)

ROOT = Path(__file__).resolve().parents[1]


def test_empty_file_gives_reference_run(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    cfg = load_config(path)
    assert cfg == BuddhabrotConfig()
    assert cfg.sampling.real_range == (-2.0, 1.0)
    assert cfg.sampling.imaginary_range == (-1.4, 1.4)
    assert cfg.iteration_limit == 12000
    assert cfg.seed == 1988


def test_shipped_configs_load():
    for name in ("buddhabrot.yaml", "preview.yaml"):
        cfg = load_config(ROOT / "configs" / name)
        assert cfg.workers > 0


def test_nested_values(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text(
        "sampling:\n"
        "  real_range: [-1.5, 0.5]\n"
        "histogram:\n"
        "  resolution: [320, 240]\n"
        "  clip: true\n"
        "batch:\n"
        "  mode: count\n"
        "  size: 50\n"
        "target:\n"
        "  mode: none\n"
        "  value: null\n"
        "record_threshold: null\n"
        "backend: thread\n"
    )
    cfg = load_config(path)
    assert cfg.sampling.real_range == (-1.5, 0.5)
    assert cfg.sampling.imaginary_range == (-1.4, 1.4)
    assert cfg.resolution == (320, 240)
    assert cfg.clip is True
    assert cfg.batch == BatchConfig(mode="count", size=50, iterations=2_000_000)
    assert cfg.target == TargetConfig(mode="none", value=None)
    assert cfg.record_threshold is None
    assert cfg.backend == "thread"


@pytest.mark.parametrize("changes", [
    {"resolution": (0, 100)},
    {"resolution": (100, -1)},
    {"sampling": SamplingRegion((1.0, -2.0), (-1.4, 1.4))},
    {"histogram_region": SamplingRegion((-2.0, 2.0), (2.0, 2.0))},
    {"iteration_limit": 0},
    {"bailout_squared": -4.0},
    {"min_iterations": -1},
    {"workers": 0},
    {"backend": "gpu"},
    {"batch": BatchConfig(mode="sometimes")},
    {"batch": BatchConfig(size=0)},
    {"target": TargetConfig(mode="points", value=None)},
    {"target": TargetConfig(mode="forever", value=1)},
    {"save_interval": 0},
    {"channel_capacity": -5},
])
def test_invalid_configs_fail_fast(changes):
    with pytest.raises(ConfigError):
        validate_config(replace(BuddhabrotConfig(), **changes))


def test_malformed_yaml_values(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("sampling:\n  real_range: [-2.0]\n")
    with pytest.raises(ConfigError):
        load_config(path)

    path.write_text("iteration_limit: lots\n")
    with pytest.raises(ConfigError):
        load_config(path)

    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_config(path)


def test_config_error_is_value_error():
    assert issubclass(ConfigError, ValueError)
