"""Utility helpers for dataset loaders."""

from __future__ import annotations

import random

import numpy as np


def seed_everything(seed: int) -> np.random.Generator:
    """Seed Python and NumPy RNGs and return a generator."""

    random.seed(seed)
    np.random.seed(seed % (2**32 - 1))
    return np.random.default_rng(seed)


def standardize(
    array: np.ndarray,
    *,
    mean: np.ndarray | None = None,
    std: np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Apply standard scaling returning the scaled array and parameters."""

    if mean is None or std is None:
        mean = array.mean(axis=0, keepdims=True)
        std = array.std(axis=0, keepdims=True)
        std = np.where(std == 0, 1.0, std)
    scaled = (array - mean) / std
    return scaled.astype(np.float64), mean.astype(np.float64), std.astype(np.float64)


def ensure_2d(array: np.ndarray) -> np.ndarray:
    """Return ``array`` as float64 with one row per example."""

    array = np.asarray(array, dtype=np.float64)
    if array.ndim == 1:
        return array.reshape(-1, 1)
    return array
