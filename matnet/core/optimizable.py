"""Flattened-parameter view over a network, as consumed by the optimizer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Tuple, runtime_checkable

import numpy as np

from .errors import ParameterLengthError
from .network import MatrixLike, NeuralNetwork
from .types import Array


@runtime_checkable
class Optimizable(Protocol):
    """Minimal contract the optimizer requires of a trainable target."""

    def get_parameters(self) -> Array:
        """Return every learnable parameter as one flat vector."""

    def set_parameters(self, parameters: Array) -> None:
        """Write a flat vector back into the target."""

    def cost(self, inputs: MatrixLike, outputs: MatrixLike) -> float:
        """Return the scalar cost of ``inputs`` against ``outputs``."""

    def cost_prime(self, inputs: MatrixLike, outputs: MatrixLike) -> Array:
        """Return the cost gradient, flattened in parameter order."""


@dataclass(frozen=True)
class Block:
    """Position of one parameter matrix inside the flat vector."""

    start: int
    stop: int
    shape: Tuple[int, int]


def _flatten(matrices) -> Array:
    if not matrices:
        return np.zeros(0, dtype=np.float64)
    return np.concatenate([np.asarray(matrix, dtype=np.float64).ravel() for matrix in matrices])


class NetworkOptimizable:
    """Read/write view of a network's weights (and biases) as one vector.

    The vector is ordered ``weights[0], (biases[0]), weights[1], ...`` in
    row-major order within each matrix.  No parameters are copied into the
    adapter: reads and writes always go through the network's live matrices.
    """

    def __init__(self, network: NeuralNetwork) -> None:
        self.network = network
        self.layout: List[Block] = []
        offset = 0
        for matrix in network.parameter_matrices():
            self.layout.append(Block(offset, offset + matrix.size, matrix.shape))
            offset += matrix.size
        self.size = offset

    def get_parameters(self) -> Array:
        return _flatten(self.network.parameter_matrices())

    def set_parameters(self, parameters: Array) -> None:
        values = np.asarray(parameters, dtype=np.float64).ravel()
        if values.size != self.size:
            raise ParameterLengthError(
                f"Expected {self.size} parameters, got {values.size}"
            )
        for block, matrix in zip(self.layout, self.network.parameter_matrices()):
            matrix.assign(values[block.start : block.stop].reshape(block.shape))

    def cost(self, inputs: MatrixLike, outputs: MatrixLike) -> float:
        return float(self.network.cost(inputs, outputs))

    def cost_prime(self, inputs: MatrixLike, outputs: MatrixLike) -> Array:
        return _flatten(self.network.cost_prime(inputs, outputs))


__all__ = ["Block", "NetworkOptimizable", "Optimizable"]
