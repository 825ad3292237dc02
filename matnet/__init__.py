"""matnet public API."""

from .core import activations, rules  # noqa: F401
from .core.activations import Activation
from .core.errors import DimensionMismatchError, MatnetError, ParameterLengthError
from .core.matrix import Matrix, elementwise
from .core.network import BiasedNeuralNetwork, NeuralNetwork
from .core.optimizable import NetworkOptimizable, Optimizable
from .core.optimizer import Optimizer, batch_slice
from .core.types import ForwardTrace, OptimizationResult, RunResult
from .training import criteria
from .training.pipelines import load_preset, presets, run_pipeline

__all__ = [
    "Activation",
    "BiasedNeuralNetwork",
    "DimensionMismatchError",
    "ForwardTrace",
    "MatnetError",
    "Matrix",
    "NetworkOptimizable",
    "NeuralNetwork",
    "Optimizable",
    "OptimizationResult",
    "Optimizer",
    "ParameterLengthError",
    "RunResult",
    "activations",
    "batch_slice",
    "criteria",
    "elementwise",
    "load_preset",
    "presets",
    "rules",
    "run_pipeline",
]
