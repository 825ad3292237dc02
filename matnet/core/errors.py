"""Exception types raised by the matnet core."""

from __future__ import annotations


class MatnetError(Exception):
    """Base class for errors raised by matnet."""


class DimensionMismatchError(MatnetError, ValueError):
    """Raised when an operation receives operands of incompatible shapes."""


class ParameterLengthError(MatnetError, ValueError):
    """Raised when a flattened parameter vector has the wrong length."""


__all__ = ["MatnetError", "DimensionMismatchError", "ParameterLengthError"]
