import json
from pathlib import Path

import numpy as np
import pytest

from matnet.core.matrix import FLOAT_MAX
from matnet.core.network import NeuralNetwork
from matnet.training import pipelines


def _config(run_dir, **train):
    config = {
        "data": {"name": "mean", "options": {"n_points": 40, "seed": 0}},
        "model": {"hidden": [3], "activations": ["tanh", "identity"], "bias": True, "seed": 5},
        "train": {
            "rule": "adam",
            "learning_rate": 0.01,
            "strategy": "mini_batch",
            "batch_size": 8,
            "iterations": 30,
            "publish_every": 5,
            "run_dir": str(run_dir),
            "enable_plots": False,
        },
    }
    config["train"].update(train)
    return config


def test_pipeline_produces_artifacts(tmp_path):
    config = _config(tmp_path / "run")
    result = pipelines.run_pipeline(config)

    assert result.steps == 30
    assert np.isfinite(result.cost)
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["train"]["rule"] == "adam"
    assert manifest["dataset"]["type"] == "synthetic"
    assert manifest["model"]["layer_dims"] == [2, 3, 1]
    assert manifest["model"]["parameters"] == 6 + 3 + 3 + 1

    metrics = [
        json.loads(line) for line in Path(result.metrics_path).read_text().splitlines() if line
    ]
    assert [entry["step"] for entry in metrics] == [0, 5, 10, 15, 20, 25]
    assert all("cost" in entry and entry["split"] == "train" for entry in metrics)

    run_dir = tmp_path / "run"
    assert (run_dir / "metrics.csv").exists()
    assert (run_dir / "config.json").exists()
    assert json.loads((run_dir / "final.json").read_text())["iterations"] == 30
    summary = json.loads(Path(result.summary_path).read_text())
    assert summary["metrics"]["cost"]["last"] == metrics[-1]["cost"]

    with np.load(run_dir / "parameters.npz") as params:
        assert sorted(params.files) == ["W0", "W1", "b0", "b1"]
        assert params["W0"].shape == (2, 3)


def test_pipeline_determinism(tmp_path):
    first = pipelines.run_pipeline(_config(tmp_path / "a"))
    second = pipelines.run_pipeline(_config(tmp_path / "b"))
    assert Path(first.metrics_path).read_bytes() == Path(second.metrics_path).read_bytes()
    assert Path(first.summary_path).read_bytes() == Path(second.summary_path).read_bytes()
    assert first.cost == second.cost


def test_target_cost_stops_early(tmp_path):
    config = {
        "data": {"name": "mean", "options": {"n_points": 50, "seed": 0}},
        "model": {"hidden": [], "activations": ["identity"], "bias": False, "seed": 0},
        "train": {
            "rule": "gd",
            "learning_rate": 1e-4,
            "iterations": 300,
            "target_cost": 1.0,
            "run_dir": str(tmp_path / "run"),
        },
    }
    result = pipelines.run_pipeline(config)
    assert 0 < result.steps < 300
    assert result.cost <= 1.0


def test_bounded_target_clamps_after_write():
    net = NeuralNetwork(1, [1], ["identity"])
    target = pipelines._BoundedTarget(net)
    target.set_parameters(np.array([np.inf]))
    assert net.get_weights(0)[0, 0] == FLOAT_MAX / 2


def test_keep_in_bounds_run(tmp_path):
    result = pipelines.run_pipeline(_config(tmp_path / "run", keep_in_bounds=True))
    assert result.steps == 30


def test_activation_shorthand_builds_layers():
    net = pipelines.build_network(
        {"hidden": [4, 4], "activation": "relu", "output_activation": "sigmoid", "bias": False},
        d_in=3,
        d_out=2,
    )
    assert net.describe().activations == ["relu", "relu", "sigmoid"]
    assert not net.has_biases


def test_config_errors(tmp_path):
    with pytest.raises(KeyError):
        pipelines.run_pipeline({"data": {"name": "mean"}, "model": {}})

    config = _config(tmp_path / "run")
    config["model"]["d_in"] = 5
    with pytest.raises(ValueError, match="d_in"):
        pipelines.run_pipeline(config)

    config = _config(tmp_path / "run", strategy="online")
    with pytest.raises(ValueError):
        pipelines.run_pipeline(config)

    config = _config(tmp_path / "run")
    config["model"]["activations"] = ["tanh"]
    with pytest.raises(ValueError, match="activations"):
        pipelines.run_pipeline(config)


def test_presets_include_builtin_and_file_presets():
    names = set(pipelines.presets())
    assert {"mean-adam", "mean-linear-gd", "mean-nesterov-minibatch"} <= names
    preset = pipelines.load_preset("mean-nesterov-minibatch")
    assert preset["train"]["rule"] == "nesterov"
    with pytest.raises(KeyError):
        pipelines.load_preset("does-not-exist")


def test_load_preset_returns_copies():
    preset = pipelines.load_preset("mean-adam")
    preset["train"]["iterations"] = 1
    assert pipelines.load_preset("mean-adam")["train"]["iterations"] == 5000
