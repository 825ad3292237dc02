"""Config-driven training runs: dataset -> network -> optimizer -> artifacts."""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np

from ..core.network import BiasedNeuralNetwork, NeuralNetwork
from ..core.optimizable import NetworkOptimizable
from ..core.optimizer import STRATEGIES, Optimizer
from ..core.rules import make_rule
from ..core.types import Array, RunResult
from ..data import get_dataset
from ..data.utils import seed_everything
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, EveryN, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from . import criteria

_PRESETS: Dict[str, Mapping[str, object]] = {
    "mean-adam": {
        "data": {"name": "mean", "options": {"n_points": 200, "high": 10.0, "seed": 0}},
        "model": {
            "hidden": [3],
            "activations": ["tanh", "identity"],
            "bias": True,
            "seed": 1,
        },
        "train": {
            "rule": "adam",
            "learning_rate": 1e-3,
            "strategy": "batch",
            "iterations": 5000,
            "publish_every": 50,
            "run_dir": "runs/mean-adam",
            "enable_plots": False,
        },
    },
    "mean-linear-gd": {
        "data": {"name": "mean", "options": {"n_points": 50, "seed": 0}},
        "model": {"hidden": [], "activations": ["identity"], "bias": False, "seed": 0},
        "train": {
            "rule": "gd",
            "learning_rate": 1e-4,
            "strategy": "batch",
            "iterations": 300,
            "run_dir": "runs/mean-linear-gd",
            "enable_plots": False,
        },
    },
    "digits-momentum-sgd": {
        "data": {"name": "mean", "options": {"n_points": 10, "integers": True, "seed": 3}},
        "model": {
            "hidden": [3],
            "activations": ["identity", "identity"],
            "bias": False,
            "seed": 3,
        },
        "train": {
            "rule": "momentum",
            "learning_rate": 1e-3,
            "momentum": 0.9,
            "strategy": "stochastic",
            "iterations": 2000,
            "keep_in_bounds": True,
            "publish_every": 20,
            "run_dir": "runs/digits-momentum-sgd",
            "enable_plots": False,
        },
    },
    "sine-rmsprop-minibatch": {
        "data": {"name": "sine", "options": {"freq": 1, "n_points": 64, "seed": 0}},
        "model": {
            "hidden": [16],
            "activation": "tanh",
            "output_activation": "identity",
            "bias": True,
            "seed": 0,
        },
        "train": {
            "rule": "rmsprop",
            "learning_rate": 0.01,
            "decay": 0.9,
            "strategy": "mini_batch",
            "batch_size": 16,
            "iterations": 2000,
            "publish_every": 20,
            "run_dir": "runs/sine-rmsprop-minibatch",
            "enable_plots": False,
        },
    },
    "csv-adagrad": {
        "data": {"name": "csv_regression", "options": {"target_col": "target"}},
        "model": {"hidden": [], "activations": ["identity"], "bias": True, "seed": 0},
        "train": {
            "rule": "adagrad",
            "learning_rate": 0.1,
            "strategy": "stochastic",
            "iterations": 1500,
            "publish_every": 10,
            "run_dir": "runs/csv-adagrad",
            "enable_plots": False,
        },
    },
}

_REQUIRED_SECTIONS = {"data", "model", "train"}
_RULE_PARAMS = ("learning_rate", "momentum", "decay", "beta1", "beta2")

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def _read_preset_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Preset {path.name} must decode to a mapping")
    return data


def _check_sections(config: Mapping[str, object], source: str) -> None:
    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise KeyError(f"{source} is missing required sections: {missing_str}")


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = _read_preset_file(file)
                _check_sections(data, f"Preset {file.name}")
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


class _BoundedTarget(NetworkOptimizable):
    """Adapter that clamps the network's parameters after every write."""

    def set_parameters(self, parameters: Array) -> None:
        super().set_parameters(parameters)
        self.network.keep_weights_in_bounds()


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train one network as described by ``config`` and write its artifacts."""

    _check_sections(config, "Config")
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    seed = int(train_cfg.get("seed", model_cfg.get("seed", 0)))
    seed_everything(seed)

    if "name" not in data_cfg:
        raise KeyError("data section requires a dataset `name`")
    dataset = get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    d_in = int(model_cfg.get("d_in", dataset.data_spec.d_in))
    d_out = int(model_cfg.get("d_out", dataset.data_spec.d_out))
    if d_in != dataset.data_spec.d_in:
        raise ValueError(f"Configured d_in={d_in} but dataset has {dataset.data_spec.d_in}")
    if d_out != dataset.data_spec.d_out:
        raise ValueError(f"Configured d_out={d_out} but dataset has {dataset.data_spec.d_out}")

    network = build_network(model_cfg, d_in, d_out)
    target_cls = _BoundedTarget if train_cfg.get("keep_in_bounds", False) else NetworkOptimizable
    target = target_cls(network)

    rule_name = str(train_cfg.get("rule", "adam"))
    rule = make_rule(rule_name, **{k: train_cfg[k] for k in _RULE_PARAMS if k in train_cfg})
    strategy = str(train_cfg.get("strategy", "batch"))
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy {strategy!r}; expected one of {STRATEGIES}")
    batch_size = train_cfg.get("batch_size")
    batch_size = int(batch_size) if batch_size is not None else None
    keep_training = _build_criteria(train_cfg)

    run_dir = Path(str(train_cfg.get("run_dir", f"runs/{dataset.name}-{rule.name}")))
    run_dir.mkdir(parents=True, exist_ok=True)
    every = int(train_cfg.get("publish_every", 1))

    _print_startup_summary(
        dataset_name=dataset.name,
        rows=len(dataset),
        dims=network.describe().layer_dims,
        activations=network.describe().activations,
        bias=network.has_biases,
        rule=rule_name,
        strategy=strategy,
        param_count=network.parameter_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", split="train", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv", split="train")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    optimizer = Optimizer(
        target,
        keep_training,
        callbacks=[EveryN(jsonl, every), EveryN(csv_sink, every), plots],
    )

    result = optimizer.train(rule, dataset.inputs, dataset.outputs, strategy, batch_size)
    plots.close()

    final_cost = target.cost(dataset.inputs, dataset.outputs)
    (run_dir / "final.json").write_text(
        json.dumps(
            {"iterations": result.iterations, "batch_cost": result.cost, "cost": final_cost},
            indent=2,
        )
    )
    _save_checkpoint(run_dir / "parameters.npz", network)

    safe_config = json.loads(json.dumps(config))
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        dataset_provenance=dataset.provenance,
        model={
            "layer_dims": network.describe().layer_dims,
            "activations": network.describe().activations,
            "bias": network.has_biases,
            "parameters": network.parameter_count(),
        },
    )
    summary_path = write_summary(
        jsonl.path, run_dir / "summary.json", tail=int(train_cfg.get("summary_tail", 32))
    )
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))

    return RunResult(
        steps=result.iterations,
        cost=float(final_cost),
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
    )


def build_network(model_cfg: Mapping[str, object], d_in: int, d_out: int) -> NeuralNetwork:
    """Construct the (biased) network described by a ``model`` config section."""

    hidden = [int(h) for h in model_cfg.get("hidden", [])]  # type: ignore[union-attr]
    sizes = hidden + [d_out]
    activations = _build_activations(model_cfg, len(sizes))
    cls = BiasedNeuralNetwork if model_cfg.get("bias", True) else NeuralNetwork
    return cls(d_in, sizes, activations, seed=int(model_cfg.get("seed", 0)))


def _build_activations(model_cfg: Mapping[str, object], layers: int) -> List[str]:
    if "activations" in model_cfg:
        names = [str(name) for name in model_cfg["activations"]]  # type: ignore[union-attr]
        if len(names) != layers:
            raise ValueError(f"Model has {layers} layers but {len(names)} activations")
        return names
    hidden = str(model_cfg.get("activation", "tanh"))
    output = str(model_cfg.get("output_activation", "identity"))
    return [hidden] * (layers - 1) + [output]


def _build_criteria(train_cfg: Mapping[str, object]):
    keep = criteria.max_iterations(int(train_cfg.get("iterations", 1000)))
    target_cost = train_cfg.get("target_cost")
    if target_cost is not None:
        keep = criteria.all_of(keep, criteria.cost_below(float(target_cost)))  # type: ignore[arg-type]
    return keep


def _save_checkpoint(path: Path, network: NeuralNetwork) -> None:
    payload = {}
    for index, matrix in enumerate(network.weights):
        payload[f"W{index}"] = np.asarray(matrix)
    if isinstance(network, BiasedNeuralNetwork):
        for index, matrix in enumerate(network.biases):
            payload[f"b{index}"] = np.asarray(matrix)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        np.savez_compressed(handle, **payload)


def _print_startup_summary(
    *,
    dataset_name: str,
    rows: int,
    dims: Sequence[int],
    activations: Sequence[str],
    bias: bool,
    rule: str,
    strategy: str,
    param_count: int,
) -> None:
    print("=== matnet run ===")
    print(f"Dataset       : {dataset_name} ({rows} rows)")
    print(f"Dimensions    : {list(dims)}")
    print(f"Activations   : {list(activations)}")
    print(f"Biases        : {'yes' if bias else 'no'}")
    print(f"Update rule   : {rule}")
    print(f"Batching      : {strategy}")
    print(f"Parameters    : {param_count}")
    print("==================")


__all__ = ["build_network", "load_preset", "presets", "run_pipeline"]
