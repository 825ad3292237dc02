"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

import numpy as np

from ..core.types import Array


@dataclass(frozen=True)
class DataSpec:
    """Structural information about a dataset.

    Attributes
    ----------
    d_in:
        Number of input columns.
    d_out:
        Number of target columns.
    task_type:
        Only ``"regression"`` is produced by the built-in loaders since the
        network is trained on a squared-error cost.
    normalization:
        Arbitrary metadata describing normalization applied to inputs or
        targets.  The registry does not interpret these values.
    """

    d_in: int
    d_out: int
    task_type: str = "regression"
    normalization: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DatasetSpec:
    """An in-memory dataset registered in the system."""

    name: str
    inputs: Array
    outputs: Array
    data_spec: DataSpec
    provenance: Dict[str, Any]

    def __len__(self) -> int:
        return int(self.inputs.shape[0])


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("mean")
        def make_mean(**kwargs):
            ...

    or directly::

        register_dataset("mean", make_mean)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Return the :class:`DatasetSpec` built by the factory registered as ``dataset``."""

    if dataset not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown dataset: {dataset}. Available datasets: {available}")

    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if spec.inputs.ndim != 2 or spec.outputs.ndim != 2:
        raise ValueError(f"Dataset {spec.name!r} must provide 2-D inputs and outputs")
    if spec.inputs.shape[0] != spec.outputs.shape[0]:
        raise ValueError(
            f"Dataset {spec.name!r} has {spec.inputs.shape[0]} input rows "
            f"but {spec.outputs.shape[0]} output rows"
        )
    if spec.inputs.shape[0] == 0:
        raise ValueError(f"Dataset {spec.name!r} is empty")
    if spec.inputs.shape[1] != spec.data_spec.d_in or spec.outputs.shape[1] != spec.data_spec.d_out:
        raise ValueError(f"Dataset {spec.name!r} disagrees with its DataSpec")
    if not np.all(np.isfinite(spec.inputs)) or not np.all(np.isfinite(spec.outputs)):
        raise ValueError(f"Dataset {spec.name!r} contains non-finite values")


__all__ = [
    "DataSpec",
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
