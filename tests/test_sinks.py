import json
import re

import numpy as np
import pytest
from PIL import Image

from buddhabrot.complex_number import ComplexNumber
from buddhabrot.sinks import (
    ImageSink,
    RecordSink,
    normalize_counts,
    save_density_image,
    timestamped_path,
)


def test_normalize_floor_formula():
    counts = np.array([[0, 1], [2, 4]], dtype=np.uint64)
    out = normalize_counts(counts)
    assert out.dtype == np.uint8
    np.testing.assert_array_equal(out, [[0, 63], [127, 255]])


def test_normalize_matches_formula_on_random_grid():
    rng = np.random.default_rng(9)
    counts = rng.integers(0, 100000, size=(20, 30)).astype(np.uint64)
    peak = int(counts.max())
    expected = np.array([[c * 255 // peak for c in row] for row in counts.tolist()])
    np.testing.assert_array_equal(normalize_counts(counts), expected)
    assert normalize_counts(counts).max() == 255


def test_normalize_empty_histogram():
    out = normalize_counts(np.zeros((5, 7), dtype=np.uint64))
    assert out.shape == (5, 7)
    assert out.max() == 0


def test_save_density_image(tmp_path):
    counts = np.zeros((10, 20), dtype=np.uint64)
    counts[3, 4] = 8
    counts[0, 0] = 2
    path = save_density_image(tmp_path / "nested" / "out.png", counts)

    with Image.open(path) as im:
        assert im.mode == "L"
        assert im.size == (20, 10)
        pixels = np.asarray(im)
    assert pixels[3, 4] == 255
    assert pixels[0, 0] == 63
    assert pixels.sum() == 255 + 63


def test_save_all_zero_image(tmp_path):
    path = save_density_image(tmp_path / "black.png", np.zeros((4, 4), dtype=np.uint64))
    with Image.open(path) as im:
        assert np.asarray(im).max() == 0


def test_image_sink_with_counts(tmp_path):
    sink = ImageSink(tmp_path / "run.png", tmp_path / "run.npy")
    counts = np.arange(12, dtype=np.uint64).reshape(3, 4)
    sink.save(counts)
    sink.save(counts + 1)
    assert sink.saves == 2
    assert (tmp_path / "run.png").exists()
    np.testing.assert_array_equal(np.load(tmp_path / "run.npy"), counts + 1)


def test_record_sink_appends(tmp_path):
    path = tmp_path / "points.jsonl"
    with RecordSink(path) as sink:
        sink.write([(ComplexNumber(-0.75, 0.1), 6001), (ComplexNumber(0.3, -0.5), 7000)])
        assert sink.written == 2

    with RecordSink(path) as sink:
        sink.write([(ComplexNumber(-1.25, 0.02), 5500)])

    lines = path.read_text().splitlines()
    assert len(lines) == 3
    records = [json.loads(line) for line in lines]
    assert records[0] == {"point": [-0.75, 0.1], "iterations": 6001}
    assert records[2]["iterations"] == 5500


def test_timestamped_path(tmp_path):
    path = timestamped_path(tmp_path, "buddhabrot_", ".png")
    assert path.parent == tmp_path
    assert re.fullmatch(r"buddhabrot_\d{8}_\d{6}\.png", path.name)


def test_write_failure_propagates(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(OSError):
        save_density_image(blocker / "out.png", np.ones((2, 2), dtype=np.uint64))
