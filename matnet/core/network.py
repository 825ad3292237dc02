"""Layered feed-forward networks with forward and backpropagation passes.

Input and output sets are matrices in which every row is one example and
every column feeds one node: element ``[1, 2]`` belongs to example ``1`` and
enters node ``2``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Union

import numpy as np

from .activations import Activation, ActivationLike, ScalarFn, resolve_all
from .errors import DimensionMismatchError
from .matrix import FLOAT_MAX, Matrix, as_matrix
from .types import ForwardTrace, ModelDescription

MatrixLike = Union[Matrix, np.ndarray, Sequence[Sequence[float]]]


@dataclass
class _Layer:
    weights: Matrix
    activation: Activation
    biases: Matrix | None = None

    @property
    def inputs(self) -> int:
        return self.weights.height

    @property
    def outputs(self) -> int:
        return self.weights.width


def _generator(seed: np.random.Generator | int | None) -> np.random.Generator:
    return np.random.default_rng(seed)


def _clamp(minimum: float, maximum: float):
    midpoint = minimum / 2 + maximum / 2

    def _keep(values: np.ndarray) -> np.ndarray:
        return np.where(np.isnan(values), midpoint, np.clip(values, minimum, maximum))

    return _keep


class NeuralNetwork:
    """Feed-forward network without biases.

    ``layer_sizes`` lists the node count of every layer after the input; the
    last entry is the output size.  One activation is needed per layer.
    Weights are Xavier-seeded at construction.
    """

    has_biases = False

    def __init__(
        self,
        number_of_inputs: int,
        layer_sizes: Sequence[int],
        activations: Sequence[ActivationLike | ScalarFn],
        derivatives: Sequence[ScalarFn] | None = None,
        *,
        seed: np.random.Generator | int | None = None,
    ) -> None:
        sizes = [int(size) for size in layer_sizes]
        if int(number_of_inputs) <= 0:
            raise ValueError(f"number_of_inputs must be positive, got {number_of_inputs}")
        if not sizes:
            raise ValueError("At least one layer size is required")
        if any(size <= 0 for size in sizes):
            raise ValueError(f"Layer sizes must be positive, got {sizes}")
        resolved = resolve_all(activations, derivatives)
        if len(resolved) != len(sizes):
            raise ValueError(
                f"Got {len(sizes)} layers but {len(resolved)} activation functions"
            )

        fan_in = [int(number_of_inputs)] + sizes[:-1]
        self._layers: List[_Layer] = [
            self._make_layer(inputs, outputs, activation)
            for inputs, outputs, activation in zip(fan_in, sizes, resolved)
        ]
        self.seed_weights(seed)

    def _make_layer(self, inputs: int, outputs: int, activation: Activation) -> _Layer:
        return _Layer(weights=Matrix(inputs, outputs), activation=activation)

    # ------------------------------------------------------------------
    # Copying

    def copy(self) -> "NeuralNetwork":
        """Return an independent network with the same topology and parameters.

        Activations are shared since they are stateless.
        """

        clone = self.__class__.__new__(self.__class__)
        clone._layers = [
            _Layer(
                weights=layer.weights.copy(),
                activation=layer.activation,
                biases=None if layer.biases is None else layer.biases.copy(),
            )
            for layer in self._layers
        ]
        return clone

    __copy__ = copy

    def __deepcopy__(self, memo: dict) -> "NeuralNetwork":
        return self.copy()

    # ------------------------------------------------------------------
    # Topology and parameter access

    @property
    def number_of_inputs(self) -> int:
        return self._layers[0].inputs

    @property
    def number_of_outputs(self) -> int:
        return self._layers[-1].outputs

    @property
    def number_of_layers(self) -> int:
        return len(self._layers)

    def layer_size(self, layer: int) -> int:
        return self._layers[layer].outputs

    def activation(self, layer: int) -> Activation:
        return self._layers[layer].activation

    def get_weights(self, layer: int) -> Matrix:
        return self._layers[layer].weights

    @property
    def weights(self) -> List[Matrix]:
        return [layer.weights for layer in self._layers]

    def set_weights(self, layer: "int | Sequence[Matrix]", weights: Matrix | None = None) -> None:
        """Replace the weights of one layer, or of every layer when given a list."""

        if isinstance(layer, int):
            if weights is None:
                raise TypeError("set_weights(layer, weights) requires a weight matrix")
            self._replace(layer, "weights", weights)
            return
        replacements = list(layer)
        if len(replacements) != len(self._layers):
            raise ValueError(
                f"Expected {len(self._layers)} weight matrices, got {len(replacements)}"
            )
        for index, matrix in enumerate(replacements):
            self._replace(index, "weights", matrix)

    def _replace(self, index: int, attribute: str, matrix: Matrix) -> None:
        current = getattr(self._layers[index], attribute)
        matrix = as_matrix(matrix)
        if matrix.shape != current.shape:
            raise DimensionMismatchError(
                f"Layer {index} {attribute} must be {current.height}x{current.width}, "
                f"got {matrix.height}x{matrix.width}"
            )
        setattr(self._layers[index], attribute, matrix)

    def parameter_matrices(self) -> List[Matrix]:
        """Return the learnable matrices in flattening order."""

        return self.weights

    def parameter_count(self) -> int:
        return sum(matrix.size for matrix in self.parameter_matrices())

    def describe(self) -> ModelDescription:
        dims = [self.number_of_inputs] + [layer.outputs for layer in self._layers]
        return ModelDescription(
            layer_dims=dims,
            activations=[layer.activation.name for layer in self._layers],
            bias=self.has_biases,
        )

    def __repr__(self) -> str:
        description = self.describe()
        return (
            f"{self.__class__.__name__}(layer_dims={description.layer_dims}, "
            f"activations={description.activations})"
        )

    # ------------------------------------------------------------------
    # Initialisation

    def seed_weights(self, seed: np.random.Generator | int | None = None) -> None:
        """Randomise all weights with the Xavier scheme.

        Each weight is drawn from ``N(0, 1/sqrt(avg))`` with ``avg`` the mean
        of the layer's fan-in and fan-out.
        """

        rng = _generator(seed)
        for layer in self._layers:
            average = (layer.inputs + layer.outputs) / 2
            layer.weights.assign(rng.standard_normal(layer.weights.shape) / np.sqrt(average))

    def seed_weights_uniform(
        self,
        minimum: float,
        maximum: float,
        seed: np.random.Generator | int | None = None,
    ) -> None:
        """Randomise every parameter uniformly from ``[minimum, maximum)``."""

        rng = _generator(seed)
        for matrix in self.parameter_matrices():
            matrix.randomize(minimum, maximum, rng)

    def keep_weights_in_bounds(
        self, minimum: float = -FLOAT_MAX / 2, maximum: float = FLOAT_MAX / 2
    ) -> None:
        """Clamp every parameter into ``[minimum, maximum]``; NaNs become the midpoint."""

        keep = _clamp(minimum, maximum)
        for matrix in self.parameter_matrices():
            matrix.assign(keep(matrix.data))

    # ------------------------------------------------------------------
    # Propagation

    def _pre_activation(self, layer: _Layer, a: Matrix) -> Matrix:
        return a.matmul(layer.weights)

    def trace(self, inputs: MatrixLike) -> ForwardTrace:
        """Forward propagate ``inputs`` and keep every intermediate value."""

        inputs = as_matrix(inputs)
        if inputs.width != self.number_of_inputs:
            raise DimensionMismatchError(
                f"Network expects {self.number_of_inputs} inputs, got {inputs.width} columns"
            )
        zs: List[Matrix] = []
        activations: List[Matrix] = []
        a = inputs
        for layer in self._layers:
            z = self._pre_activation(layer, a)
            a = z.apply(layer.activation.function)
            zs.append(z)
            activations.append(a)
        return ForwardTrace(inputs=inputs, z=tuple(zs), a=tuple(activations))

    def forward(self, inputs: MatrixLike) -> Matrix:
        """Forward propagate ``inputs`` and return the network output."""

        return self.trace(inputs).output

    def cost(self, inputs: MatrixLike, outputs: MatrixLike) -> float:
        """Half the sum of squared errors over every row and output column.

        The sum is not divided by the number of rows, so gradients grow with
        the batch size.
        """

        difference = as_matrix(outputs).subtract(self.forward(inputs))
        return difference.multiply_elementwise(difference).sum() / 2

    def _layer_gradients(self, layer: _Layer, previous_a: Matrix, delta: Matrix) -> List[Matrix]:
        return [previous_a.transpose().matmul(delta)]

    def backward(self, trace: ForwardTrace, outputs: MatrixLike) -> List[Matrix]:
        """Backpropagate the cost of ``trace`` against ``outputs``.

        Returns the gradient of every learnable matrix in
        :meth:`parameter_matrices` order.
        """

        outputs = as_matrix(outputs)
        last = len(self._layers) - 1
        delta = trace.output.subtract(outputs).multiply_elementwise(
            trace.z[last].apply(self._layers[last].activation.derivative)
        )
        per_layer: List[List[Matrix]] = [[] for _ in self._layers]
        for index in range(last, -1, -1):
            layer = self._layers[index]
            per_layer[index] = self._layer_gradients(layer, trace.layer_input(index), delta)
            if index > 0:
                previous = self._layers[index - 1]
                delta = delta.matmul(layer.weights.transpose()).multiply_elementwise(
                    trace.z[index - 1].apply(previous.activation.derivative)
                )
        return [gradient for gradients in per_layer for gradient in gradients]

    def cost_prime(self, inputs: MatrixLike, outputs: MatrixLike) -> List[Matrix]:
        """Return the derivative of the cost with respect to every parameter matrix."""

        return self.backward(self.trace(inputs), outputs)


class BiasedNeuralNetwork(NeuralNetwork):
    """Feed-forward network with one bias per node.

    Parameters are ordered ``weights[0], biases[0], weights[1], biases[1], ...``.
    """

    has_biases = True

    def _make_layer(self, inputs: int, outputs: int, activation: Activation) -> _Layer:
        return _Layer(
            weights=Matrix(inputs, outputs), activation=activation, biases=Matrix(1, outputs)
        )

    def get_biases(self, layer: int) -> Matrix:
        return self._layers[layer].biases  # type: ignore[return-value]

    @property
    def biases(self) -> List[Matrix]:
        return [layer.biases for layer in self._layers]  # type: ignore[misc]

    def set_biases(self, layer: "int | Sequence[Matrix]", biases: Matrix | None = None) -> None:
        if isinstance(layer, int):
            if biases is None:
                raise TypeError("set_biases(layer, biases) requires a bias matrix")
            self._replace(layer, "biases", biases)
            return
        replacements = list(layer)
        if len(replacements) != len(self._layers):
            raise ValueError(
                f"Expected {len(self._layers)} bias matrices, got {len(replacements)}"
            )
        for index, matrix in enumerate(replacements):
            self._replace(index, "biases", matrix)

    def parameter_matrices(self) -> List[Matrix]:
        matrices: List[Matrix] = []
        for layer in self._layers:
            matrices.append(layer.weights)
            matrices.append(layer.biases)  # type: ignore[arg-type]
        return matrices

    def seed_weights(self, seed: np.random.Generator | int | None = None) -> None:
        """Xavier-seed the weights and draw every bias from ``N(0, 1)``."""

        rng = _generator(seed)
        for layer in self._layers:
            average = (layer.inputs + layer.outputs) / 2
            layer.weights.assign(rng.standard_normal(layer.weights.shape) / np.sqrt(average))
            layer.biases.assign(rng.standard_normal(layer.biases.shape))  # type: ignore[union-attr]

    keep_weights_and_biases_in_bounds = NeuralNetwork.keep_weights_in_bounds

    def _pre_activation(self, layer: _Layer, a: Matrix) -> Matrix:
        return a.matmul(layer.weights).apply_broadcast(layer.biases, np.add)  # type: ignore[arg-type]

    def _layer_gradients(self, layer: _Layer, previous_a: Matrix, delta: Matrix) -> List[Matrix]:
        return [previous_a.transpose().matmul(delta), delta.column_sums()]


__all__ = ["BiasedNeuralNetwork", "NeuralNetwork"]
