"""Ready-made ``keep_training`` predicates for :class:`matnet.Optimizer`."""

from __future__ import annotations

import math

from ..core.optimizer import KeepTraining


def max_iterations(n: int) -> KeepTraining:
    """Keep going while fewer than ``n`` iterations have run."""

    if n < 0:
        raise ValueError(f"max_iterations needs a non-negative count, got {n}")

    def keep_training(target, iteration: int, cost: float) -> bool:
        return iteration < n

    return keep_training


def cost_below(threshold: float) -> KeepTraining:
    """Keep going until the cost drops to ``threshold`` or below.

    A NaN cost also stops training since it can never satisfy the threshold.
    """

    def keep_training(target, iteration: int, cost: float) -> bool:
        return not math.isnan(cost) and cost > threshold

    return keep_training


def all_of(*predicates: KeepTraining) -> KeepTraining:
    """Keep going only while every predicate agrees."""

    def keep_training(target, iteration: int, cost: float) -> bool:
        return all(p(target, iteration, cost) for p in predicates)

    return keep_training


def any_of(*predicates: KeepTraining) -> KeepTraining:
    """Keep going while at least one predicate agrees."""

    def keep_training(target, iteration: int, cost: float) -> bool:
        return any(p(target, iteration, cost) for p in predicates)

    return keep_training


__all__ = ["all_of", "any_of", "cost_below", "max_iterations"]
