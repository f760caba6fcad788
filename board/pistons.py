"""
pistons.py

Simulated piston board implementing the ActuatorSink protocol.

Converts normalized actuator positions into physical piston heights.
Used in tests and by the demo in place of real hardware.

All distances are in meters.
"""

from typing import Tuple

import numpy as np

from contracts.validation import (
    validate_dimension,
    validate_finite_scalar,
    validate_index,
    validate_positive,
)


class SimulatedPistonBoard:
    """
    Board of pistons that extend up to a fixed travel distance.

    Parameters
    ----------
    piston_distance : float, optional
        Full travel of each piston in meters. Defaults to 1.0.

    Attributes
    ----------
    heights : np.ndarray
        Copy of the current piston heights. Shape: (columns, rows).
    write_count : int
        Number of set_position calls received since the last resize.
    """

    def __init__(self, piston_distance: float = 1.0) -> None:
        validate_finite_scalar(piston_distance, "piston_distance")
        validate_positive(piston_distance, "piston_distance", allow_zero=True)

        self._piston_distance = float(piston_distance)
        self._heights = np.zeros((0, 0), dtype=np.float64)
        self._write_count = 0

    @property
    def piston_distance(self) -> float:
        """Full travel of each piston in meters."""
        return self._piston_distance

    @property
    def dimensions(self) -> Tuple[int, int]:
        """Current (columns, rows); (0, 0) before the first resize."""
        columns, rows = self._heights.shape
        return (int(columns), int(rows))

    @property
    def heights(self) -> np.ndarray:
        """Copy of the current piston heights in meters."""
        return self._heights.copy()

    @property
    def write_count(self) -> int:
        """Number of set_position calls since the last resize."""
        return self._write_count

    def resize(self, columns: int, rows: int) -> None:
        """Rebuild the piston array, all pistons retracted."""
        columns = validate_dimension(columns, "columns")
        rows = validate_dimension(rows, "rows")
        self._heights = np.zeros((columns, rows), dtype=np.float64)
        self._write_count = 0

    def set_position(self, x: int, y: int, value: float) -> None:
        """
        Move one piston to a normalized position.

        Raises
        ------
        OutOfRange
            If (x, y) is not a piston of this board.
        """
        validate_index(x, y, self._heights.shape)
        self._heights[int(x), int(y)] = self._piston_distance * min(max(float(value), 0.0), 1.0)
        self._write_count += 1

    def height_at(self, x: int, y: int) -> float:
        """Height of one piston in meters."""
        validate_index(x, y, self._heights.shape)
        return float(self._heights[int(x), int(y)])
