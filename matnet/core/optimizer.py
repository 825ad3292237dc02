"""First-order optimizer driving any :class:`Optimizable` target."""

from __future__ import annotations

import math
from typing import Callable, Sequence

import numpy as np

from .errors import DimensionMismatchError
from .optimizable import Optimizable
from .rules import AdaGrad, Adam, GradientDescent, Momentum, Nesterov, RMSProp, UpdateRule
from .types import Array, Batch, OptimizationResult

KeepTraining = Callable[[Optimizable, int, float], bool]
Publish = Callable[[Optimizable, int, float], None]

STRATEGIES = ("batch", "stochastic", "mini_batch")


def batch_slice(iteration: int, n: int, strategy: str, batch_size: int | None = None) -> slice:
    """Return the rows used by ``iteration`` under ``strategy``.

    ``batch`` uses every row, ``stochastic`` row ``iteration mod n`` and
    ``mini_batch`` the contiguous block ``iteration mod ceil(n / batch_size)``;
    the final block may be shorter than ``batch_size``.
    """

    if n <= 0:
        raise ValueError("Cannot slice an empty dataset")
    if strategy == "batch":
        return slice(0, n)
    if strategy == "stochastic":
        row = iteration % n
        return slice(row, row + 1)
    if strategy == "mini_batch":
        if batch_size is None or int(batch_size) <= 0:
            raise ValueError(f"mini_batch requires a positive batch_size, got {batch_size}")
        batch_size = int(batch_size)
        blocks = math.ceil(n / batch_size)
        block = iteration % blocks
        return slice(batch_size * block, min(batch_size * (block + 1), n))
    raise ValueError(f"Unknown batching strategy {strategy!r}; expected one of {STRATEGIES}")


def _rows(data) -> Array:
    array = np.asarray(data, dtype=np.float64)
    if array.ndim != 2:
        raise ValueError(f"Datasets must be 2-D (rows x columns), got shape {array.shape}")
    return array


class Optimizer:
    """Repeatedly update one target until ``keep_training`` says stop.

    ``keep_training(target, iteration, cost)`` is checked before every
    iteration with the cost of the previous one.  ``publish`` and the
    ``on_step`` method of each callback run after every update and cannot
    influence control flow.  Subclasses may override :meth:`keep_training`
    and :meth:`publish` instead of passing callables.
    """

    def __init__(
        self,
        target: Optimizable,
        keep_training: KeepTraining | None = None,
        publish: Publish | None = None,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        if keep_training is None and type(self).keep_training is Optimizer.keep_training:
            raise TypeError("Optimizer requires a keep_training predicate")
        self.target = target
        self._keep_training = keep_training
        self._publish = publish
        self.callbacks = list(callbacks or [])

    def keep_training(self, target: Optimizable, iteration: int, cost: float) -> bool:
        return bool(self._keep_training(target, iteration, cost))  # type: ignore[misc]

    def publish(self, target: Optimizable, iteration: int, cost: float) -> None:
        if self._publish is not None:
            self._publish(target, iteration, cost)

    # ------------------------------------------------------------------
    # Generic loop

    def train(
        self,
        rule: UpdateRule,
        inputs,
        outputs,
        strategy: str = "batch",
        batch_size: int | None = None,
    ) -> OptimizationResult:
        """Run ``rule`` under ``strategy`` and return the final iteration count and cost."""

        x, y = _rows(inputs), _rows(outputs)
        if x.shape[0] != y.shape[0]:
            raise DimensionMismatchError(
                f"Got {x.shape[0]} input rows but {y.shape[0]} output rows"
            )
        n = x.shape[0]

        target = self.target
        state = rule.init(target.get_parameters().size)
        first = self._batch(x, y, batch_slice(0, n, strategy, batch_size))
        last_cost = float(target.cost(first.inputs, first.targets))

        iteration = 0
        while self.keep_training(target, iteration, last_cost):
            batch = self._batch(x, y, batch_slice(iteration, n, strategy, batch_size))
            gradient = np.asarray(target.cost_prime(batch.inputs, batch.targets), dtype=np.float64)
            parameters, state = rule.step(target.get_parameters(), gradient, state, iteration)
            target.set_parameters(parameters)
            last_cost = float(target.cost(batch.inputs, batch.targets))
            self.publish(target, iteration, last_cost)
            self._emit(iteration, last_cost)
            iteration += 1
        return OptimizationResult(iterations=iteration, cost=last_cost)

    @staticmethod
    def _batch(x: Array, y: Array, rows: slice) -> Batch:
        return Batch(inputs=x[rows], targets=y[rows])

    def _emit(self, iteration: int, cost: float) -> None:
        metrics = {"cost": cost}
        for callback in self.callbacks:
            if hasattr(callback, "on_step"):
                callback.on_step(iteration, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(iteration, metrics)

    # ------------------------------------------------------------------
    # Batching strategies

    def batch(self, rule: UpdateRule, inputs, outputs) -> OptimizationResult:
        """Every iteration uses the whole dataset."""

        return self.train(rule, inputs, outputs, "batch")

    def stochastic(self, rule: UpdateRule, inputs, outputs) -> OptimizationResult:
        """Iteration ``t`` uses only row ``t mod N``."""

        return self.train(rule, inputs, outputs, "stochastic")

    def mini_batch(
        self, rule: UpdateRule, inputs, outputs, batch_size: int
    ) -> OptimizationResult:
        """Iteration ``t`` uses contiguous block ``t mod ceil(N / batch_size)``."""

        return self.train(rule, inputs, outputs, "mini_batch", batch_size)

    # ------------------------------------------------------------------
    # Named update rules

    def gradient_descent(
        self, inputs, outputs, learning_rate: float, *, strategy: str = "batch",
        batch_size: int | None = None,
    ) -> OptimizationResult:
        return self.train(GradientDescent(learning_rate), inputs, outputs, strategy, batch_size)

    def momentum(
        self, inputs, outputs, learning_rate: float, momentum: float = 0.9, *,
        strategy: str = "batch", batch_size: int | None = None,
    ) -> OptimizationResult:
        rule = Momentum(learning_rate, momentum)
        return self.train(rule, inputs, outputs, strategy, batch_size)

    def nesterov(
        self, inputs, outputs, learning_rate: float, momentum: float = 0.9, *,
        strategy: str = "batch", batch_size: int | None = None,
    ) -> OptimizationResult:
        rule = Nesterov(learning_rate, momentum)
        return self.train(rule, inputs, outputs, strategy, batch_size)

    def adagrad(
        self, inputs, outputs, learning_rate: float = 0.01, *,
        strategy: str = "batch", batch_size: int | None = None,
    ) -> OptimizationResult:
        return self.train(AdaGrad(learning_rate), inputs, outputs, strategy, batch_size)

    def rmsprop(
        self, inputs, outputs, learning_rate: float = 0.01, decay: float = 0.9, *,
        strategy: str = "batch", batch_size: int | None = None,
    ) -> OptimizationResult:
        rule = RMSProp(learning_rate, decay)
        return self.train(rule, inputs, outputs, strategy, batch_size)

    def adam(
        self, inputs, outputs, learning_rate: float = 1e-3, beta1: float = 0.9,
        beta2: float = 0.999, *, strategy: str = "batch", batch_size: int | None = None,
    ) -> OptimizationResult:
        rule = Adam(learning_rate, beta1, beta2)
        return self.train(rule, inputs, outputs, strategy, batch_size)


__all__ = [
    "KeepTraining",
    "Optimizer",
    "Publish",
    "STRATEGIES",
    "batch_slice",
]
