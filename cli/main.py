"""Command line entry point for matnet training runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from matnet.core.optimizer import STRATEGIES
from matnet.core.rules import names as rule_names
from matnet.training import pipelines


def _format_result(result) -> str:
    payload = {
        "steps": result.steps,
        "cost": result.cost,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
    }
    if getattr(result, "summary_path", ""):
        payload["summary"] = result.summary_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="mean-adam",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--rule", choices=sorted(rule_names()), help="Override the update rule")
    parser.add_argument("--strategy", choices=STRATEGIES, help="Override the batching strategy")
    parser.add_argument("--learning-rate", type=float, help="Override the learning rate")
    parser.add_argument("--batch-size", type=int, help="Rows per mini-batch")
    parser.add_argument("--iterations", type=int, help="Maximum number of iterations")
    parser.add_argument("--seed", type=int, help="Seed used for weight initialisation")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write a cost curve with matplotlib"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def _load_override(path: Path) -> dict:
    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        try:
            import yaml  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        return yaml.safe_load(text) or {}
    return json.loads(text)


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def resolve_config(args: argparse.Namespace) -> dict:
    """Apply ``--config`` and the individual flags on top of the chosen preset."""

    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = _load_override(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = _merge(config, override)

    train = config.setdefault("train", {})
    if args.rule:
        train["rule"] = args.rule
    if args.strategy:
        train["strategy"] = args.strategy
    if args.learning_rate is not None:
        train["learning_rate"] = float(args.learning_rate)
    if args.batch_size is not None:
        train["batch_size"] = int(args.batch_size)
    if args.iterations is not None:
        train["iterations"] = int(args.iterations)
    if args.seed is not None:
        train["seed"] = int(args.seed)
        config.setdefault("model", {})["seed"] = int(args.seed)
    if args.enable_plots:
        train["enable_plots"] = True
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = resolve_config(args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
