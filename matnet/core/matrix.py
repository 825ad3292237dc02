"""Dense two-dimensional matrices used by the network engine."""

from __future__ import annotations

import sys
from numbers import Real
from typing import Any, Callable, Iterator, Sequence, Tuple

import numpy as np

from .errors import DimensionMismatchError

ElementFn = Callable[..., Any]

FLOAT_MAX = sys.float_info.max


def elementwise(func: ElementFn) -> ElementFn:
    """Mark ``func`` as safe to call on whole arrays.

    Functions without the marker are treated as scalar callables and are
    vectorised with :class:`numpy.vectorize` before being applied.
    """

    func.elementwise = True  # type: ignore[attr-defined]
    return func


def _vectorize(func: ElementFn) -> ElementFn:
    if isinstance(func, (np.ufunc, np.vectorize)) or getattr(func, "elementwise", False):
        return func
    return np.vectorize(func, otypes=[np.float64])


def _coerce(result: Any, shape: Tuple[int, int]) -> np.ndarray:
    out = np.asarray(result, dtype=np.float64)
    if out.shape != shape:
        out = np.broadcast_to(out, shape)
    return np.array(out, dtype=np.float64)


class Matrix:
    """Row-major ``height x width`` grid of floats.

    The dimensions are fixed at construction while the elements stay mutable.
    Every algebraic operation allocates a new matrix; storage is never shared
    between two instances.
    """

    __slots__ = ("_data",)

    def __init__(self, height: int, width: int) -> None:
        height, width = int(height), int(width)
        if height <= 0 or width <= 0:
            raise ValueError(f"Matrix dimensions must be positive, got {height}x{width}")
        self._data = np.zeros((height, width), dtype=np.float64)

    # ------------------------------------------------------------------
    # Construction

    @classmethod
    def _wrap(cls, array: np.ndarray) -> "Matrix":
        matrix = cls.__new__(cls)
        matrix._data = array
        return matrix

    @classmethod
    def from_array(cls, rows: Sequence[Sequence[float]] | np.ndarray) -> "Matrix":
        """Copy a nested sequence or 2-D array into a new matrix."""

        array = np.array(rows, dtype=np.float64)
        if array.ndim != 2 or array.shape[0] == 0 or array.shape[1] == 0:
            raise ValueError(f"Expected a non-empty 2-D array, got shape {array.shape}")
        return cls._wrap(array)

    @classmethod
    def from_function(
        cls, height: int, width: int, function: Callable[[int, int], float]
    ) -> "Matrix":
        """Build a matrix whose element ``(row, column)`` is ``function(row, column)``."""

        matrix = cls(height, width)
        matrix.fill_with(function)
        return matrix

    @classmethod
    def from_supplier(
        cls, height: int, width: int, supplier: Callable[[], float]
    ) -> "Matrix":
        """Build a matrix filled in row-major order by calls to ``supplier``."""

        matrix = cls(height, width)
        matrix.fill_from(supplier)
        return matrix

    def copy(self) -> "Matrix":
        return Matrix._wrap(self._data.copy())

    __copy__ = copy

    def __deepcopy__(self, memo: dict) -> "Matrix":
        return self.copy()

    # ------------------------------------------------------------------
    # Shape and element access

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    @property
    def size(self) -> int:
        return int(self._data.size)

    @property
    def data(self) -> np.ndarray:
        """Live view of the elements; writes go straight into the matrix."""

        return self._data.view()

    def get(self, row: int, column: int) -> float:
        return float(self._data[row, column])

    def set(self, row: int, column: int, value: float) -> float:
        """Store ``value`` at ``(row, column)`` and return the previous element."""

        previous = float(self._data[row, column])
        self._data[row, column] = value
        return previous

    def __getitem__(self, index: Tuple[int, int]) -> float:
        row, column = index
        return self.get(row, column)

    def __setitem__(self, index: Tuple[int, int], value: float) -> None:
        row, column = index
        self._data[row, column] = value

    def fill(self, value: float) -> None:
        self._data.fill(value)

    def fill_from(self, supplier: Callable[[], float]) -> None:
        for row in range(self.height):
            for column in range(self.width):
                self._data[row, column] = supplier()

    def fill_with(self, function: Callable[[int, int], float]) -> None:
        for row in range(self.height):
            for column in range(self.width):
                self._data[row, column] = function(row, column)

    def assign(self, other: "Matrix | np.ndarray") -> None:
        """Overwrite every element with the matching element of ``other``."""

        values = other._data if isinstance(other, Matrix) else np.asarray(other, dtype=np.float64)
        if values.shape != self._data.shape:
            raise DimensionMismatchError(
                f"Cannot assign {values.shape} values into a {self.height}x{self.width} matrix"
            )
        self._data[...] = values

    # ------------------------------------------------------------------
    # Algebra

    def _require_same_shape(self, operand: "Matrix", operation: str) -> None:
        if self.shape != operand.shape:
            raise DimensionMismatchError(
                f"{operation}: {self.height}x{self.width} and "
                f"{operand.height}x{operand.width} do not match"
            )

    def add(self, operand: "Matrix") -> "Matrix":
        self._require_same_shape(operand, "add")
        return Matrix._wrap(self._data + operand._data)

    def subtract(self, operand: "Matrix") -> "Matrix":
        self._require_same_shape(operand, "subtract")
        return Matrix._wrap(self._data - operand._data)

    def multiply(self, factor: float) -> "Matrix":
        """Scalar multiplication."""

        return Matrix._wrap(self._data * float(factor))

    def matmul(self, operand: "Matrix") -> "Matrix":
        if self.width != operand.height:
            raise DimensionMismatchError(
                f"matmul: {self.height}x{self.width} cannot multiply "
                f"{operand.height}x{operand.width}"
            )
        return Matrix._wrap(self._data @ operand._data)

    def multiply_elementwise(self, operand: "Matrix") -> "Matrix":
        self._require_same_shape(operand, "multiply_elementwise")
        return Matrix._wrap(self._data * operand._data)

    def divide_elementwise(self, operand: "Matrix") -> "Matrix":
        self._require_same_shape(operand, "divide_elementwise")
        with np.errstate(divide="ignore", invalid="ignore"):
            return Matrix._wrap(self._data / operand._data)

    def transpose(self) -> "Matrix":
        return Matrix._wrap(self._data.T.copy())

    @property
    def T(self) -> "Matrix":  # noqa: N802 - mirrors numpy
        return self.transpose()

    def column_sums(self) -> "Matrix":
        """Return a ``1 x width`` row holding the sum of every column."""

        return Matrix._wrap(self._data.sum(axis=0, keepdims=True))

    def sum(self) -> float:
        return float(self._data.sum())

    # ------------------------------------------------------------------
    # Function application

    def _evaluate(self, function: ElementFn, operand: "Matrix | None") -> np.ndarray:
        func = _vectorize(function)
        if operand is None:
            return _coerce(func(self._data), self.shape)
        self._require_same_shape(operand, "apply")
        return _coerce(func(self._data, operand._data), self.shape)

    def apply(self, function: ElementFn, operand: "Matrix | None" = None) -> "Matrix":
        """Return a new matrix of ``function`` evaluated on every element.

        With ``operand`` the function receives the paired elements of both
        matrices, which must have the same shape.
        """

        return Matrix._wrap(self._evaluate(function, operand))

    def for_each(self, function: ElementFn, operand: "Matrix | None" = None) -> None:
        """In-place counterpart of :meth:`apply`."""

        self._data[...] = self._evaluate(function, operand)

    def apply_broadcast(self, operand: "Matrix", function: ElementFn) -> "Matrix":
        """Combine two matrices of any shape, wrapping indices around.

        The result has the larger height and the larger width of the two
        operands; each operand is indexed modulo its own dimensions.
        """

        height = max(self.height, operand.height)
        width = max(self.width, operand.width)
        rows = np.arange(height)
        columns = np.arange(width)
        left = self._data[np.ix_(rows % self.height, columns % self.width)]
        right = operand._data[np.ix_(rows % operand.height, columns % operand.width)]
        return Matrix._wrap(_coerce(_vectorize(function)(left, right), (height, width)))

    def randomize(
        self,
        minimum: float | None = None,
        maximum: float | None = None,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        """Fill every element uniformly from ``[minimum, maximum)``.

        Without bounds the whole representable range is used, split as
        ``[-max/2, max/2)`` so the width of the interval stays finite.
        """

        if minimum is None:
            minimum = -FLOAT_MAX / 2
        if maximum is None:
            maximum = FLOAT_MAX / 2
        generator = np.random.default_rng(rng)
        self._data[...] = minimum + (maximum - minimum) * generator.random(self.shape)

    # ------------------------------------------------------------------
    # Conversion and comparison

    def __iter__(self) -> Iterator[float]:
        return iter(self._data.ravel().tolist())

    def to_list(self) -> list[list[float]]:
        return self._data.tolist()

    def __array__(self, dtype: Any = None, copy: Any = None) -> np.ndarray:
        return np.array(self._data, dtype=dtype)

    def allclose(self, other: "Matrix", rtol: float = 1e-9, atol: float = 1e-12) -> bool:
        return self.shape == other.shape and bool(
            np.allclose(self._data, other._data, rtol=rtol, atol=atol)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore[assignment]

    def __add__(self, other: "Matrix") -> "Matrix":
        return self.add(other)

    def __sub__(self, other: "Matrix") -> "Matrix":
        return self.subtract(other)

    def __matmul__(self, other: "Matrix") -> "Matrix":
        return self.matmul(other)

    def __mul__(self, other: "Matrix | float") -> "Matrix":
        if isinstance(other, Matrix):
            return self.multiply_elementwise(other)
        if isinstance(other, Real):
            return self.multiply(float(other))
        return NotImplemented

    def __rmul__(self, other: float) -> "Matrix":
        if isinstance(other, Real):
            return self.multiply(float(other))
        return NotImplemented

    def __truediv__(self, other: "Matrix") -> "Matrix":
        if isinstance(other, Matrix):
            return self.divide_elementwise(other)
        return NotImplemented

    def __neg__(self) -> "Matrix":
        return self.multiply(-1.0)

    def __repr__(self) -> str:
        return f"Matrix({self.height}x{self.width}, {self.to_list()!r})"

    def __str__(self) -> str:
        return "\n".join(str(row) for row in self.to_list())


def as_matrix(value: "Matrix | np.ndarray | Sequence[Sequence[float]]") -> Matrix:
    """Return ``value`` unchanged if it is a :class:`Matrix`, else copy it into one."""

    if isinstance(value, Matrix):
        return value
    return Matrix.from_array(value)


__all__ = ["FLOAT_MAX", "Matrix", "as_matrix", "elementwise"]
