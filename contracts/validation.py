"""
contracts/validation.py

Error types and lightweight validators shared by the board, ripple and
pipeline packages.

Every error raised by the core derives from ValidationError. All of them are
local and recoverable: a failing call leaves the object it was called on
untouched.

Usage
-----
>>> from contracts.validation import validate_dimension, validate_index
>>> validate_dimension(3, "columns")
>>> validate_index(2, 0, (3, 3))
"""

import math
from typing import Tuple

import numpy as np


class ValidationError(ValueError):
    """
    Raised when a contract validation fails.

    Subclass of ValueError for compatibility with existing error handling.
    """

    pass


class InvalidDimension(ValidationError):
    """Raised when a grid dimension is not a positive integer."""

    pass


class OutOfRange(ValidationError):
    """Raised when an (x, y) index falls outside the current grid."""

    pass


class DimensionMismatch(ValidationError):
    """Raised when a bulk matrix does not have the grid's shape."""

    pass


class GridNotCreated(ValidationError):
    """Raised when a destroyed grid is read or written."""

    pass


class SinkError(RuntimeError):
    """
    Raised when an attached actuator sink fails to apply a change.

    Not a ValidationError: the caller's request was valid. The grid has
    already rolled its own storage back when this is raised.
    """

    pass


def validate_dimension(value: int, name: str = "dimension") -> int:
    """
    Validate a single grid dimension.

    Parameters
    ----------
    value : int
        Number of columns or rows. Integral floats such as 3.0 are accepted.
    name : str
        Name for error messages.

    Returns
    -------
    int
        The dimension as a plain int.

    Raises
    ------
    InvalidDimension
        If value is not integral or is smaller than 1.
    """
    if isinstance(value, bool):
        raise InvalidDimension(f"{name} must be an integer, got {value!r}")
    try:
        as_int = int(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidDimension(f"{name} must be an integer, got {value!r}") from e

    if as_int != value:
        raise InvalidDimension(f"{name} must be an integer, got {value!r}")
    if as_int < 1:
        raise InvalidDimension(f"{name} must be >= 1, got {value}")
    return as_int


def validate_index(x: int, y: int, dimensions: Tuple[int, int]) -> None:
    """
    Validate that (x, y) addresses a cell of a grid.

    Parameters
    ----------
    x, y : int
        Column and row index.
    dimensions : Tuple[int, int]
        Grid dimensions (columns, rows).

    Raises
    ------
    OutOfRange
        If either index is negative, non-integral or past the last cell.
    """
    columns, rows = dimensions
    if isinstance(x, bool) or isinstance(y, bool):
        raise OutOfRange(f"index ({x!r}, {y!r}) must be integers")
    try:
        integral = int(x) == x and int(y) == y
    except (TypeError, ValueError, OverflowError) as e:
        raise OutOfRange(f"index ({x!r}, {y!r}) must be integers") from e

    if not integral:
        raise OutOfRange(f"index ({x!r}, {y!r}) must be integers")
    if not (0 <= x < columns and 0 <= y < rows):
        raise OutOfRange(
            f"index ({x}, {y}) is outside a {columns}x{rows} grid"
        )


def validate_matrix_shape(
    matrix: np.ndarray,
    dimensions: Tuple[int, int],
    name: str = "matrix",
) -> None:
    """
    Validate that a bulk matrix matches the grid dimensions.

    Parameters
    ----------
    matrix : np.ndarray
        Matrix indexed [column, row].
    dimensions : Tuple[int, int]
        Expected (columns, rows).
    name : str
        Name for error messages.

    Raises
    ------
    DimensionMismatch
        If the matrix is not 2D or its shape differs from dimensions.
    """
    if matrix.ndim != 2:
        raise DimensionMismatch(
            f"{name} must be 2D, got {matrix.ndim}D with shape {matrix.shape}"
        )
    if tuple(matrix.shape) != tuple(dimensions):
        raise DimensionMismatch(
            f"{name} shape {matrix.shape} does not match grid dimensions {tuple(dimensions)}"
        )


def validate_finite_scalar(
    value: float,
    name: str = "value",
) -> None:
    """
    Validate that a scalar value is finite.

    Raises
    ------
    ValidationError
        If value is inf or nan.
    TypeError
        If value is not numeric.
    """
    try:
        float_val = float(value)
    except (TypeError, ValueError) as e:
        raise TypeError(f"{name} must be numeric, got {type(value).__name__}") from e

    if not math.isfinite(float_val):
        raise ValidationError(f"{name} must be finite, got {value}")


def validate_positive(
    value: float,
    name: str = "value",
    allow_zero: bool = False,
) -> None:
    """
    Validate that a value is positive.

    Parameters
    ----------
    value : float
        Value to validate.
    name : str
        Name for error messages.
    allow_zero : bool
        If True, zero is acceptable.

    Raises
    ------
    ValidationError
        If value is not positive (or non-negative if allow_zero).
    """
    if allow_zero:
        if value < 0:
            raise ValidationError(f"{name} must be non-negative, got {value}")
    else:
        if value <= 0:
            raise ValidationError(f"{name} must be positive, got {value}")


def validate_unit_point(
    point: Tuple[float, float],
    name: str = "point",
) -> None:
    """
    Validate that a point lies in the normalized square [0, 1] x [0, 1].

    Used by the rain producers, which generate drops on the board. The
    ripple field itself accepts off-board origins.

    Raises
    ------
    ValidationError
        If the point does not have two finite coordinates in [0, 1].
    """
    if len(point) != 2:
        raise ValidationError(f"{name} must have 2 coordinates, got {len(point)}")
    for axis, coord in zip("uv", point):
        validate_finite_scalar(coord, f"{name}.{axis}")
        if not 0.0 <= float(coord) <= 1.0:
            raise ValidationError(f"{name}.{axis} must be in [0, 1], got {coord}")
