import csv
import json

import pytest

from matnet.reporting import CsvSink, EveryN, JsonlSink, PlotAdapter, write_manifest
from matnet.reporting.summary import compute_auc, summarize, write_summary


def test_jsonl_sink_records(tmp_path):
    sink = JsonlSink(tmp_path / "m.jsonl", split="train", seed=3, sha="abc")
    sink.on_step(0, {"cost": 2.0})
    sink(1, {"cost": 1.0, "note": "skipped"})
    lines = [json.loads(line) for line in (tmp_path / "m.jsonl").read_text().splitlines()]
    assert lines == [
        {"step": 0, "split": "train", "seed": 3, "sha": "abc", "cost": 2.0},
        {"step": 1, "split": "train", "seed": 3, "sha": "abc", "cost": 1.0},
    ]


def test_csv_sink_has_stable_header(tmp_path):
    sink = CsvSink(tmp_path / "m.csv")
    sink.on_step(0, {"cost": 2.0})
    sink.on_step(1, {"cost": 1.5})
    with (tmp_path / "m.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert [row["step"] for row in rows] == ["0", "1"]
    assert rows[1]["cost"] == "1.5"


def test_every_n_forwards_multiples():
    seen = []

    class Sink:
        def on_step(self, step, metrics):
            seen.append(step)

    every = EveryN(Sink(), 3)
    for step in range(8):
        every.on_step(step, {"cost": 1.0})
    assert seen == [0, 3, 6]
    with pytest.raises(ValueError):
        EveryN(Sink(), 0)


def test_plot_adapter_headless(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_step(0, {"cost": 1.0})
    adapter.on_step(1, {"cost": 0.5})
    path = adapter.close()
    assert path == tmp_path / "cost.png"
    assert path.exists()


def test_plot_adapter_disabled_is_noop(tmp_path):
    adapter = PlotAdapter(tmp_path / "none")
    adapter.on_step(0, {"cost": 1.0})
    assert adapter.close() is None
    assert not (tmp_path / "none").exists()


def test_manifest_contents(tmp_path):
    path = write_manifest(
        tmp_path / "manifest.json",
        config={"train": {"rule": "adam"}},
        dataset_provenance={"type": "synthetic"},
        model={"layer_dims": [2, 1]},
    )
    manifest = json.loads(open(path).read())
    assert manifest["config"]["train"]["rule"] == "adam"
    assert manifest["dataset"] == {"type": "synthetic"}
    assert manifest["model"]["layer_dims"] == [2, 1]
    assert "numpy" in manifest["environment"]


def test_summary_statistics():
    records = [{"step": i, "seed": 0, "split": "train", "cost": c} for i, c in enumerate([4.0, 1.0, 2.0])]
    summary = summarize(records, tail=2)
    cost = summary["metrics"]["cost"]
    assert cost["first"] == 4.0 and cost["last"] == 2.0
    assert cost["min"] == 1.0 and cost["best_step"] == 1
    assert cost["reduction"] == pytest.approx(0.5)
    assert cost["tail_auc"] == pytest.approx(1.5)
    assert "seed" not in summary["metrics"] and "split" not in summary["metrics"]
    assert compute_auc([1.0]) == 0.0


def test_write_summary_handles_missing_metrics(tmp_path):
    out = write_summary(tmp_path / "missing.jsonl", tmp_path / "out" / "summary.json")
    data = json.loads(open(out).read())
    assert data["records"] == 0
    assert data["metrics"] == {}
