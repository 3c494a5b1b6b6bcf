import sys

import numpy as np

from buddhabrot.complex_number import ComplexNumber
from buddhabrot.sinks import RecordSink
from scripts import plot_density
from scripts.summarize_records import load_records


def test_load_records(tmp_path):
    path = tmp_path / "points.jsonl"
    with RecordSink(path) as sink:
        sink.write([(ComplexNumber(-0.75, 0.1), 6001), (ComplexNumber(0.3, -0.5), 7000)])

    df = load_records(path)
    assert list(df.columns) == ["re", "im", "iterations"]
    assert df["iterations"].tolist() == [6001, 7000]
    assert df["re"].tolist() == [-0.75, 0.3]


def test_load_empty_log(tmp_path):
    path = tmp_path / "empty.jsonl"
    path.write_text("")
    assert load_records(path).empty


def test_plot_density(tmp_path, monkeypatch):
    counts_path = tmp_path / "counts.npy"
    np.save(counts_path, np.arange(64, dtype=np.uint64).reshape(8, 8))
    out = tmp_path / "figures" / "preview.png"
    monkeypatch.setattr(sys, "argv", ["plot_density.py", str(counts_path), "--outfile", str(out)])
    plot_density.main()
    assert out.exists()
