"""
actuator_grid.py

Normalized actuation targets for a rectangular board of linear actuators.

The grid stores one target per actuator, indexed (column, row), with
0 meaning fully retracted and 1 fully extended. It knows nothing about
ripples; writers push targets in and attached sinks (hardware drivers,
simulated boards, visualizers) receive every clamped write.

Invariants
----------
- Targets always have shape (columns, rows) matching the dimensions
- Stored targets are always in [0, 1]
- Resizing discards all previous targets and retracts every actuator
- A failing call never mutates state; a sink failure rolls the stored
  targets back and surfaces as SinkError
"""

import threading
from typing import List, Optional, Protocol, Tuple, runtime_checkable

import numpy as np
from loguru import logger

from contracts.validation import (
    DimensionMismatch,
    GridNotCreated,
    SinkError,
    validate_dimension,
    validate_index,
    validate_matrix_shape,
)


@runtime_checkable
class ActuatorSink(Protocol):
    """
    Protocol for the physical or visual realization of an actuator board.

    A sink is told when the board is (re)dimensioned and receives every
    normalized position written to the grid.
    """

    def resize(self, columns: int, rows: int) -> None:
        """
        Create or resize the actuator array.

        Parameters
        ----------
        columns, rows : int
            New board dimensions. Both are at least 1.
        """
        ...

    def set_position(self, x: int, y: int, value: float) -> None:
        """
        Drive the actuator at (x, y) to a normalized position.

        Parameters
        ----------
        x, y : int
            Column and row of the actuator.
        value : float
            Normalized extension in [0, 1].
        """
        ...


def _clamp_targets(values: np.ndarray) -> np.ndarray:
    """Clamp targets to [0, 1]; NaN retracts, +inf fully extends."""
    cleaned = np.nan_to_num(values, nan=0.0, posinf=1.0, neginf=0.0)
    return np.clip(cleaned, 0.0, 1.0)


class ActuatorGrid:
    """
    2D array of normalized actuation targets.

    Parameters
    ----------
    columns : int, optional
        Number of actuator columns. Defaults to 3.
    rows : int, optional
        Number of actuator rows. Defaults to 3.
    sinks : Optional[List[ActuatorSink]], optional
        Sinks to attach before the initial create. Defaults to None.

    Attributes
    ----------
    dimensions : Tuple[int, int]
        Current (columns, rows), or (0, 0) once destroyed.
    targets : np.ndarray
        Read-only copy of the targets. Shape: (columns, rows).

    Raises
    ------
    InvalidDimension
        If columns or rows is smaller than 1.
    """

    def __init__(
        self,
        columns: int = 3,
        rows: int = 3,
        sinks: Optional[List[ActuatorSink]] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._sinks: List[ActuatorSink] = []
        self._targets: Optional[np.ndarray] = None

        for sink in sinks or []:
            self.attach(sink)

        self.create(columns, rows)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_created(self) -> bool:
        """True while the grid holds storage."""
        return self._targets is not None

    def create(self, columns: int, rows: int) -> None:
        """
        Allocate storage for a columns x rows board, all retracted.

        Works on a live grid (same as resize) and on a destroyed one.

        Raises
        ------
        InvalidDimension
            If columns or rows is smaller than 1.
        SinkError
            If an attached sink fails to resize; the grid is left as it was.
        """
        columns = validate_dimension(columns, "columns")
        rows = validate_dimension(rows, "rows")

        with self._lock:
            self._allocate(columns, rows)

        logger.info(f"Actuator grid created: {columns}x{rows}")

    def destroy(self) -> None:
        """Release storage. Reads and writes fail until create() is called."""
        with self._lock:
            self._targets = None
        logger.info("Actuator grid destroyed")

    def resize(self, columns: int, rows: int) -> None:
        """
        Change the board dimensions and retract every actuator.

        Parameters
        ----------
        columns, rows : int
            New dimensions. Both must be at least 1.

        Raises
        ------
        InvalidDimension
            If columns or rows is smaller than 1.
        GridNotCreated
            If the grid has been destroyed.
        SinkError
            If an attached sink fails to resize; the grid keeps its old
            dimensions and targets.
        """
        columns = validate_dimension(columns, "columns")
        rows = validate_dimension(rows, "rows")

        with self._lock:
            self._require_created()
            self._allocate(columns, rows)

        logger.debug(f"Actuator grid resized to {columns}x{rows}")

    def _allocate(self, columns: int, rows: int) -> None:
        previous = self._targets
        self._targets = np.zeros((columns, rows), dtype=np.float64)
        try:
            for sink in self._sinks:
                sink.resize(columns, rows)
        except Exception as e:
            self._targets = previous
            if previous is not None:
                self._resync(previous, resize=True)
            raise SinkError(f"sink failed to resize to {columns}x{rows}: {e}") from e

    def _require_created(self) -> np.ndarray:
        if self._targets is None:
            raise GridNotCreated("actuator grid has been destroyed; call create() first")
        return self._targets

    # ------------------------------------------------------------------
    # Sinks
    # ------------------------------------------------------------------

    def attach(self, sink: ActuatorSink) -> None:
        """
        Attach a sink. A live grid immediately sizes it and replays targets.

        The sink is only attached once it has accepted the replay.

        Raises
        ------
        TypeError
            If sink does not implement the ActuatorSink protocol.
        SinkError
            If the sink fails while being sized or replayed.
        """
        if not isinstance(sink, ActuatorSink):
            raise TypeError(
                f"Sink must implement ActuatorSink protocol "
                f"(resize and set_position methods). Got {type(sink).__name__}."
            )
        with self._lock:
            if self._targets is not None:
                columns, rows = self._targets.shape
                try:
                    sink.resize(columns, rows)
                    self._push(sink, self._targets)
                except Exception as e:
                    raise SinkError(
                        f"{type(sink).__name__} failed during attach: {e}"
                    ) from e
            self._sinks.append(sink)

    def detach(self, sink: ActuatorSink) -> bool:
        """Detach a sink. Returns True if it was attached."""
        with self._lock:
            try:
                self._sinks.remove(sink)
                return True
            except ValueError:
                return False

    @staticmethod
    def _push(sink: ActuatorSink, targets: np.ndarray) -> None:
        columns, rows = targets.shape
        for y in range(rows):
            for x in range(columns):
                sink.set_position(x, y, float(targets[x, y]))

    def _resync(
        self,
        targets: np.ndarray,
        cell: Optional[Tuple[int, int]] = None,
        resize: bool = False,
    ) -> None:
        # Best effort after a failed write: sinks may already hold the new values.
        columns, rows = targets.shape
        for sink in self._sinks:
            try:
                if cell is not None:
                    x, y = cell
                    sink.set_position(x, y, float(targets[x, y]))
                    continue
                if resize:
                    sink.resize(columns, rows)
                self._push(sink, targets)
            except Exception as e:
                logger.warning(f"Could not restore {type(sink).__name__} after a failed write: {e}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def dimensions(self) -> Tuple[int, int]:
        """Current (columns, rows), or (0, 0) once destroyed."""
        targets = self._targets
        if targets is None:
            return (0, 0)
        columns, rows = targets.shape
        return (int(columns), int(rows))

    @property
    def columns(self) -> int:
        """Number of actuator columns."""
        return self.dimensions[0]

    @property
    def rows(self) -> int:
        """Number of actuator rows."""
        return self.dimensions[1]

    @property
    def targets(self) -> np.ndarray:
        """Read-only copy of all targets. Shape: (columns, rows)."""
        return self.snapshot()

    def snapshot(self) -> np.ndarray:
        """
        Take a consistent read-only copy of all targets.

        Returns
        -------
        np.ndarray
            Copy of the targets, indexed [column, row].

        Raises
        ------
        GridNotCreated
            If the grid has been destroyed.
        """
        with self._lock:
            copy = np.array(self._require_created(), dtype=np.float64, copy=True)
        copy.flags.writeable = False
        return copy

    def get_target(self, x: int, y: int) -> float:
        """
        Get the stored target of one actuator.

        Raises
        ------
        OutOfRange
            If (x, y) is outside the current dimensions.
        GridNotCreated
            If the grid has been destroyed.
        """
        with self._lock:
            targets = self._require_created()
            validate_index(x, y, targets.shape)
            return float(targets[int(x), int(y)])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_target(self, x: int, y: int, value: float) -> None:
        """
        Set one actuator's target, clamped to [0, 1].

        Parameters
        ----------
        x, y : int
            Column and row of the actuator.
        value : float
            Requested extension. Out-of-range values are clamped, never
            rejected; NaN is stored as 0.

        Raises
        ------
        OutOfRange
            If (x, y) is outside the current dimensions.
        GridNotCreated
            If the grid has been destroyed.
        SinkError
            If an attached sink fails; the stored target keeps its old value.
        """
        clamped = float(_clamp_targets(np.float64(value)))

        with self._lock:
            targets = self._require_created()
            validate_index(x, y, targets.shape)
            x, y = int(x), int(y)
            previous = float(targets[x, y])
            targets[x, y] = clamped
            try:
                for sink in self._sinks:
                    sink.set_position(x, y, clamped)
            except Exception as e:
                targets[x, y] = previous
                self._resync(targets, cell=(x, y))
                raise SinkError(f"sink failed to set ({x}, {y}): {e}") from e

    def set_all(self, matrix: np.ndarray) -> None:
        """
        Replace every target at once.

        Readers never observe a partially written board.

        Parameters
        ----------
        matrix : array-like
            Values indexed [column, row] with shape (columns, rows).

        Raises
        ------
        DimensionMismatch
            If the matrix shape differs from the grid dimensions.
        GridNotCreated
            If the grid has been destroyed.
        SinkError
            If an attached sink fails; the stored targets are left unchanged.
        """
        try:
            values = np.asarray(matrix, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise DimensionMismatch(f"matrix is not a rectangular numeric array: {e}") from e

        clamped = _clamp_targets(values)

        with self._lock:
            previous = self._require_created()
            validate_matrix_shape(values, previous.shape)
            self._targets = clamped
            try:
                for sink in self._sinks:
                    self._push(sink, clamped)
            except Exception as e:
                self._targets = previous
                self._resync(previous)
                raise SinkError(f"sink failed during bulk write: {e}") from e

    def clear(self) -> None:
        """Retract every actuator."""
        with self._lock:
            targets = self._require_created()
            self.set_all(np.zeros_like(targets))
