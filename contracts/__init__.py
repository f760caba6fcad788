"""
contracts

Error types and validators shared by the rain board packages.

Errors
------
ValidationError : base class, a ValueError
InvalidDimension : non-positive grid dimension on create/resize
OutOfRange : (x, y) outside the current grid
DimensionMismatch : bulk matrix shape disagrees with the grid
GridNotCreated : access to a destroyed grid
SinkError : an attached actuator sink failed; grid storage is unchanged
"""

from contracts.validation import (
    ValidationError,
    InvalidDimension,
    OutOfRange,
    DimensionMismatch,
    GridNotCreated,
    SinkError,
    validate_dimension,
    validate_index,
    validate_matrix_shape,
    validate_finite_scalar,
    validate_positive,
    validate_unit_point,
)

__all__ = [
    # Errors
    "ValidationError",
    "InvalidDimension",
    "OutOfRange",
    "DimensionMismatch",
    "GridNotCreated",
    "SinkError",
    # Validators
    "validate_dimension",
    "validate_index",
    "validate_matrix_shape",
    "validate_finite_scalar",
    "validate_positive",
    "validate_unit_point",
]
