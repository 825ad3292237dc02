"""Deterministic summaries of a training run's metrics file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import numpy as np

_SKIPPED = {"step", "seed"}


def compute_auc(points: Sequence[float]) -> float:
    """Trapezoidal area under ``points`` along an implicit unit-step axis."""

    if len(points) < 2:
        return 0.0
    y = np.asarray(points, dtype=np.float64)
    return float(np.sum((y[1:] + y[:-1]) / 2))


def _series(records: Iterable[Mapping[str, object]]) -> dict[str, tuple[list[int], list[float]]]:
    series: dict[str, tuple[list[int], list[float]]] = {}
    for index, record in enumerate(records):
        step = int(record.get("step", index))  # type: ignore[arg-type]
        for key, value in record.items():
            if key in _SKIPPED or isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            steps, values = series.setdefault(key, ([], []))
            steps.append(step)
            values.append(float(value))
    return series


def summarize(records: Sequence[Mapping[str, object]], *, tail: int = 32) -> Mapping[str, object]:
    """Return first/last/best statistics and the tail area for every numeric metric."""

    tail_window = min(tail, len(records))
    metrics: dict[str, Mapping[str, float]] = {}
    for name, (steps, values) in sorted(_series(records).items()):
        arr = np.asarray(values, dtype=np.float64)
        best = int(np.argmin(arr))
        first = float(arr[0])
        last = float(arr[-1])
        metrics[name] = {
            "first": first,
            "last": last,
            "min": float(arr[best]),
            "max": float(np.max(arr)),
            "mean": float(np.mean(arr)),
            "best_step": steps[best],
            "reduction": 0.0 if first == 0 else 1.0 - last / first,
            "tail_auc": compute_auc(values[-tail_window:]) if tail_window else 0.0,
        }
    return {"version": 1, "records": len(records), "tail_window": tail_window, "metrics": metrics}


def write_summary(
    metrics_jsonl: str | Path, out_summary_json: str | Path, *, tail: int = 32
) -> str:
    """Write the summary of ``metrics_jsonl`` to ``out_summary_json``."""

    metrics_path = Path(metrics_jsonl)
    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    if metrics_path.exists():
        records = [
            json.loads(line)
            for line in metrics_path.read_text().splitlines()
            if line.strip()
        ]
    out_path.write_text(json.dumps(summarize(records, tail=tail), sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["compute_auc", "summarize", "write_summary"]
