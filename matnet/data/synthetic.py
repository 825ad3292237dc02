"""Pure in-memory synthetic datasets."""

from __future__ import annotations

import numpy as np

from .registry import DatasetSpec, DataSpec, register_dataset


def make_mean_dataset(
    n_points: int = 200,
    n_features: int = 2,
    high: float = 10.0,
    seed: int = 0,
    integers: bool = False,
) -> tuple[np.ndarray, np.ndarray]:
    """Draw ``x`` from ``[0, high)`` and return ``(x, mean(x))``.

    With ``integers`` the inputs are whole numbers, as in the classic
    "average of two digits" demo.
    """

    rng = np.random.default_rng(seed)
    if integers:
        x = rng.integers(0, int(high), size=(n_points, n_features)).astype(np.float64)
    else:
        x = rng.uniform(0.0, high, size=(n_points, n_features))
    y = x.mean(axis=1, keepdims=True)
    return x, y


@register_dataset("mean")
def _mean_factory(
    n_points: int = 200,
    n_features: int = 2,
    high: float = 10.0,
    seed: int = 0,
    integers: bool = False,
    **_: object,
) -> DatasetSpec:
    x, y = make_mean_dataset(
        n_points=int(n_points),
        n_features=int(n_features),
        high=float(high),
        seed=int(seed),
        integers=bool(integers),
    )
    provenance = {
        "type": "synthetic",
        "target": "mean",
        "n_points": int(n_points),
        "n_features": int(n_features),
        "high": float(high),
        "seed": int(seed),
        "integers": bool(integers),
    }
    return DatasetSpec(
        name="mean",
        inputs=x,
        outputs=y,
        data_spec=DataSpec(d_in=int(x.shape[1]), d_out=1),
        provenance=provenance,
    )


def make_sine_dataset(freq: int, n_points: int, seed: int) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, n_points).reshape(-1, 1)
    y_true = np.sin(freq * np.pi * x)
    noise = 0.05 * rng.standard_normal(size=y_true.shape)
    return x, y_true + noise


@register_dataset("sine")
def _sine_factory(freq: int = 1, n_points: int = 64, seed: int = 0, **_: object) -> DatasetSpec:
    x, y = make_sine_dataset(freq=int(freq), n_points=int(n_points), seed=int(seed))
    provenance = {
        "type": "synthetic",
        "target": "sine",
        "freq": int(freq),
        "n_points": int(n_points),
        "seed": int(seed),
    }
    return DatasetSpec(
        name="sine",
        inputs=x,
        outputs=y,
        data_spec=DataSpec(d_in=1, d_out=1),
        provenance=provenance,
    )


__all__ = ["make_mean_dataset", "make_sine_dataset"]
