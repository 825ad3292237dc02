"""Gradient-descent update rules.

A rule owns no mutable state.  ``init`` creates the accumulator record for a
parameter vector of a given size, and ``step`` maps
``(parameters, gradient, state, iteration)`` to the updated parameters and
the next state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Protocol, Tuple

import numpy as np

from .errors import ParameterLengthError
from .types import Array

EPSILON = 1e-8


@dataclass(frozen=True)
class NoState:
    """State of rules that keep nothing between iterations."""

    size: int


@dataclass(frozen=True)
class VelocityState:
    velocity: Array


@dataclass(frozen=True)
class AccumulatorState:
    """Running (or decayed) sum of squared gradients."""

    squared: Array


@dataclass(frozen=True)
class MomentState:
    first: Array
    second: Array


class UpdateRule(Protocol):
    """Protocol implemented by every update rule."""

    name: str
    learning_rate: float

    def init(self, size: int) -> object:
        """Return the initial state for ``size`` parameters."""

    def step(
        self, parameters: Array, gradient: Array, state: object, iteration: int
    ) -> Tuple[Array, object]:
        """Return updated parameters and the next state."""


def _check(gradient: Array, size: int) -> None:
    if gradient.shape != (size,):
        raise ParameterLengthError(
            f"Gradient has {gradient.size} entries but the state tracks {size}"
        )


@dataclass(frozen=True)
class GradientDescent:
    """``theta <- theta - lr * g``."""

    learning_rate: float
    name: str = "gd"

    def init(self, size: int) -> NoState:
        return NoState(size=size)

    def step(self, parameters, gradient, state: NoState, iteration):
        _check(gradient, state.size)
        return parameters - self.learning_rate * gradient, state


@dataclass(frozen=True)
class Momentum:
    """Classical momentum: ``v <- lr * g + m * v``; ``theta <- theta - v``."""

    learning_rate: float
    momentum: float = 0.9
    name: str = "momentum"

    def init(self, size: int) -> VelocityState:
        return VelocityState(velocity=np.zeros(size))

    def step(self, parameters, gradient, state: VelocityState, iteration):
        _check(gradient, state.velocity.size)
        velocity = self.learning_rate * gradient + self.momentum * state.velocity
        return parameters - velocity, VelocityState(velocity=velocity)


@dataclass(frozen=True)
class Nesterov:
    """Nesterov accelerated gradient in its look-ahead-free form."""

    learning_rate: float
    momentum: float = 0.9
    name: str = "nesterov"

    def init(self, size: int) -> VelocityState:
        return VelocityState(velocity=np.zeros(size))

    def step(self, parameters, gradient, state: VelocityState, iteration):
        _check(gradient, state.velocity.size)
        velocity = self.momentum * state.velocity - self.learning_rate * gradient
        update = (1 + self.momentum) * velocity - self.momentum * state.velocity
        return parameters + update, VelocityState(velocity=velocity)


@dataclass(frozen=True)
class AdaGrad:
    learning_rate: float = 0.01
    name: str = "adagrad"

    def init(self, size: int) -> AccumulatorState:
        return AccumulatorState(squared=np.zeros(size))

    def step(self, parameters, gradient, state: AccumulatorState, iteration):
        _check(gradient, state.squared.size)
        squared = state.squared + gradient**2
        update = self.learning_rate / (np.sqrt(squared) + EPSILON) * gradient
        return parameters - update, AccumulatorState(squared=squared)


@dataclass(frozen=True)
class RMSProp:
    learning_rate: float = 0.01
    decay: float = 0.9
    name: str = "rmsprop"

    def init(self, size: int) -> AccumulatorState:
        return AccumulatorState(squared=np.zeros(size))

    def step(self, parameters, gradient, state: AccumulatorState, iteration):
        _check(gradient, state.squared.size)
        squared = self.decay * state.squared + (1 - self.decay) * gradient**2
        update = self.learning_rate / (np.sqrt(squared) + EPSILON) * gradient
        return parameters - update, AccumulatorState(squared=squared)


@dataclass(frozen=True)
class Adam:
    """Adam with bias-corrected moment estimates.

    ``iteration`` is zero based, so the correction uses ``beta ** (iteration + 1)``.
    """

    learning_rate: float = 1e-3
    beta1: float = 0.9
    beta2: float = 0.999
    name: str = "adam"

    def init(self, size: int) -> MomentState:
        return MomentState(first=np.zeros(size), second=np.zeros(size))

    def step(self, parameters, gradient, state: MomentState, iteration):
        _check(gradient, state.first.size)
        first = self.beta1 * state.first + (1 - self.beta1) * gradient
        second = self.beta2 * state.second + (1 - self.beta2) * gradient**2
        first_unbiased = first / (1 - self.beta1 ** (iteration + 1))
        second_unbiased = second / (1 - self.beta2 ** (iteration + 1))
        update = self.learning_rate / (np.sqrt(second_unbiased) + EPSILON) * first_unbiased
        return parameters - update, MomentState(first=first, second=second)


_RULES: Dict[str, Callable[..., UpdateRule]] = {
    "gd": GradientDescent,
    "momentum": Momentum,
    "nesterov": Nesterov,
    "adagrad": AdaGrad,
    "rmsprop": RMSProp,
    "adam": Adam,
}

_ALIASES = {
    "sgd": "gd",
    "gradient_descent": "gd",
}


def names() -> Iterable[str]:
    return sorted(_RULES)


def make_rule(name: str, **params: float) -> UpdateRule:
    """Build a rule by name, forwarding only the hyper-parameters it accepts."""

    key = name.strip().lower().replace("-", "_")
    key = _ALIASES.get(key, key)
    if key not in _RULES:
        available = ", ".join(sorted(_RULES))
        raise KeyError(f"Unknown update rule {name!r}. Available rules: {available}")
    factory = _RULES[key]
    fields = set(factory.__dataclass_fields__) - {"name"}  # type: ignore[attr-defined]
    kwargs = {k: float(v) for k, v in params.items() if k in fields and v is not None}
    if "learning_rate" in fields and "learning_rate" not in kwargs:
        default = factory.__dataclass_fields__["learning_rate"].default  # type: ignore[attr-defined]
        if not isinstance(default, float):
            raise ValueError(f"Rule {key!r} requires a learning_rate")
    return factory(**kwargs)


__all__ = [
    "AccumulatorState",
    "AdaGrad",
    "Adam",
    "EPSILON",
    "GradientDescent",
    "MomentState",
    "Momentum",
    "Nesterov",
    "NoState",
    "RMSProp",
    "UpdateRule",
    "VelocityState",
    "make_rule",
    "names",
]
