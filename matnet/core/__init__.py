"""Core numerical primitives for matnet."""

from . import activations, errors, matrix, network, optimizable, optimizer, rules, types

__all__ = [
    "activations",
    "errors",
    "matrix",
    "network",
    "optimizable",
    "optimizer",
    "rules",
    "types",
]
