"""Generic CSV loader for regression tasks."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from .registry import DatasetSpec, DataSpec, register_dataset
from .utils import ensure_2d, standardize

FIXTURE_DIR = Path(__file__).resolve().parent / "_fixtures"


def _load_csv(path: Path, target_cols: Sequence[str]) -> tuple[np.ndarray, np.ndarray]:
    df = pd.read_csv(path)
    missing = [col for col in target_cols if col not in df.columns]
    if missing:
        raise KeyError(f"Target column(s) {missing!r} not found in CSV {path}")
    y = df[list(target_cols)].to_numpy(dtype=np.float64)
    X = df.drop(columns=list(target_cols)).to_numpy(dtype=np.float64)
    return X, y


@register_dataset("csv_regression")
def load_csv_regression(
    *,
    csv_path: str | Path | None = None,
    target_col: str | Sequence[str] = "target",
    standardize_inputs: bool = False,
    standardize_targets: bool = False,
    **_: object,
) -> DatasetSpec:
    """Load a regression dataset from a CSV file.

    Every column except ``target_col`` becomes an input.  The bundled fixture
    is used when no path is given.
    """

    path = Path(csv_path) if csv_path else FIXTURE_DIR / "csv_regression_fixture.csv"
    targets = [target_col] if isinstance(target_col, str) else list(target_col)
    X, y = _load_csv(path, targets)
    X, y = ensure_2d(X), ensure_2d(y)

    normalization: dict[str, dict[str, list[float]]] = {}
    if standardize_inputs:
        X, mean, std = standardize(X)
        normalization["inputs"] = {
            "mean": mean.flatten().tolist(),
            "std": std.flatten().tolist(),
        }
    if standardize_targets:
        y, t_mean, t_std = standardize(y)
        normalization["targets"] = {
            "mean": t_mean.flatten().tolist(),
            "std": t_std.flatten().tolist(),
        }

    provenance = {
        "path": str(path),
        "target_col": targets,
        "standardize_inputs": standardize_inputs,
        "standardize_targets": standardize_targets,
    }

    return DatasetSpec(
        name="csv_regression",
        inputs=X,
        outputs=y,
        data_spec=DataSpec(
            d_in=int(X.shape[1]),
            d_out=int(y.shape[1]),
            normalization=normalization,
        ),
        provenance=provenance,
    )


__all__ = ["load_csv_regression"]
