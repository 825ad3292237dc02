"""Core typing contracts for matnet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .matrix import Matrix

Array = np.ndarray


@dataclass(frozen=True)
class Batch:
    """A single slice of a dataset."""

    inputs: Array
    targets: Array


@dataclass(frozen=True)
class ForwardTrace:
    """Intermediate values captured during one forward pass.

    ``z[i]`` is the pre-activation and ``a[i]`` the post-activation of layer
    ``i``; ``inputs`` is the batch that was fed into layer 0.  A trace is only
    meaningful for the weights it was computed with.
    """

    inputs: Matrix
    z: Tuple[Matrix, ...]
    a: Tuple[Matrix, ...]

    @property
    def output(self) -> Matrix:
        return self.a[-1]

    def layer_input(self, index: int) -> Matrix:
        """Return the matrix that was multiplied into layer ``index``."""

        return self.inputs if index == 0 else self.a[index - 1]


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    layer_dims: List[int]
    activations: List[str]
    bias: bool = False


@dataclass(frozen=True)
class OptimizationResult:
    """Summary returned by the optimizer entry points."""

    iterations: int
    cost: float


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`matnet.training.pipelines.run_pipeline`."""

    steps: int
    cost: float
    metrics_path: str
    manifest_path: str
    summary_path: str = ""


__all__ = [
    "Array",
    "Batch",
    "ForwardTrace",
    "ModelDescription",
    "OptimizationResult",
    "RunResult",
]
