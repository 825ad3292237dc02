"""Activation catalog for matnet.

Each entry pairs a pure scalar function with its derivative.  The catalog
functions are written against NumPy so a whole matrix is evaluated in one
call; user supplied scalar callables are vectorised on demand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence, Tuple, Union

import numpy as np

from .matrix import elementwise
from .types import Array

RELU_LEAKY_LEAKAGE = 0.01

ScalarFn = Callable[[float], float]


@dataclass(frozen=True)
class Activation:
    """A named activation function together with its derivative."""

    name: str
    function: ScalarFn
    derivative: ScalarFn

    def __call__(self, x):
        return self.function(x)

    def __str__(self) -> str:
        return self.name


@elementwise
def identity(x: Array) -> Array:
    return np.array(x, dtype=np.float64)


@elementwise
def identity_prime(x: Array) -> Array:
    return np.ones_like(x, dtype=np.float64)


@elementwise
def tanh(x: Array) -> Array:
    return np.tanh(x)


@elementwise
def tanh_prime(x: Array) -> Array:
    return 1.0 - np.tanh(x) ** 2


@elementwise
def sigmoid(x: Array) -> Array:
    return 1.0 / (1.0 + np.exp(-x))


@elementwise
def sigmoid_prime(x: Array) -> Array:
    s = 1.0 / (1.0 + np.exp(-x))
    return s * (1.0 - s)


@elementwise
def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.where(x >= 0, x, 0.0)


@elementwise
def relu_prime(x: Array) -> Array:
    return np.where(x >= 0, 1.0, 0.0)


@elementwise
def softplus(x: Array) -> Array:
    return np.logaddexp(0.0, x)


@elementwise
def softplus_prime(x: Array) -> Array:
    return 1.0 / (1.0 + np.exp(-x))


@elementwise
def leaky_relu(x: Array) -> Array:
    return np.where(x >= 0, x, RELU_LEAKY_LEAKAGE * x)


@elementwise
def leaky_relu_prime(x: Array) -> Array:
    return np.where(x >= 0, 1.0, RELU_LEAKY_LEAKAGE)


IDENTITY = Activation("identity", identity, identity_prime)
TANH = Activation("tanh", tanh, tanh_prime)
SIGMOID = Activation("sigmoid", sigmoid, sigmoid_prime)
RELU = Activation("relu", relu, relu_prime)
SOFTPLUS = Activation("softplus", softplus, softplus_prime)
LEAKY_RELU = Activation("leaky_relu", leaky_relu, leaky_relu_prime)

CATALOG: Dict[str, Activation] = {
    act.name: act for act in (IDENTITY, TANH, SIGMOID, RELU, SOFTPLUS, LEAKY_RELU)
}

ActivationLike = Union[Activation, str, Tuple[ScalarFn, ScalarFn]]


def get(name: str) -> Activation:
    key = name.strip().lower().replace("-", "_")
    try:
        return CATALOG[key]
    except KeyError as exc:
        available = ", ".join(sorted(CATALOG))
        raise KeyError(f"Unknown activation {name!r}. Available activations: {available}") from exc


def names() -> Iterable[str]:
    return sorted(CATALOG)


def resolve(item: ActivationLike) -> Activation:
    """Turn a catalog name, an ``Activation`` or an ``(f, f')`` pair into an ``Activation``."""

    if isinstance(item, Activation):
        return item
    if isinstance(item, str):
        return get(item)
    if isinstance(item, tuple) and len(item) == 2 and all(callable(f) for f in item):
        function, derivative = item
        return Activation(getattr(function, "__name__", "custom"), function, derivative)
    raise TypeError(f"Cannot interpret {item!r} as an activation")


def resolve_all(
    functions: Sequence[ActivationLike | ScalarFn],
    derivatives: Sequence[ScalarFn] | None = None,
) -> List[Activation]:
    """Resolve one activation per layer.

    When ``derivatives`` is given, ``functions`` are plain callables and are
    paired with ``derivatives`` position by position.
    """

    if derivatives is None:
        return [resolve(item) for item in functions]  # type: ignore[arg-type]
    if len(functions) != len(derivatives):
        raise ValueError(
            f"Got {len(functions)} activation functions but {len(derivatives)} derivatives"
        )
    return [resolve((f, d)) for f, d in zip(functions, derivatives)]  # type: ignore[arg-type]


__all__ = [
    "Activation",
    "ActivationLike",
    "CATALOG",
    "IDENTITY",
    "LEAKY_RELU",
    "RELU",
    "RELU_LEAKY_LEAKAGE",
    "SIGMOID",
    "SOFTPLUS",
    "TANH",
    "get",
    "names",
    "resolve",
    "resolve_all",
]
