"""
field.py

Ripple field: the live set of wave sources and their combined effect on
an actuator board.

Each tick prunes expired sources, samples every actuator's normalized
position against the remaining ones, averages the per-source
contributions and writes the result into the bound ActuatorGrid.

Invariants
----------
- Expired sources are removed before evaluation, once per tick
- Output does not depend on source insertion order
- tick never raises, whatever the source set or grid state
- Time is always supplied by the caller; nothing reads a global clock
"""

import threading
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from board.actuator_grid import ActuatorGrid
from contracts.validation import (
    DimensionMismatch,
    GridNotCreated,
    SinkError,
    validate_finite_scalar,
    validate_positive,
)
from ripples.wave import ArrayOrFloat, WaveSource


def ripple_contribution(distance: ArrayOrFloat, ripple_range: float) -> np.ndarray:
    """
    Parabolic falloff around a ripple front.

    Peaks at 1 on the front (distance 0) and reaches 0 at
    distance == +/- ripple_range.

    Parameters
    ----------
    distance : float or np.ndarray
        Signed distance from the front.
    ripple_range : float
        Half-width of the bump. Zero keeps only cells exactly on the front.

    Returns
    -------
    np.ndarray
        Contribution in [0, 1], same shape as distance.
    """
    distance = np.asarray(distance, dtype=np.float64)
    if ripple_range > 0:
        return np.maximum(0.0, 1.0 - (distance / ripple_range) ** 2)
    return np.where(distance == 0.0, 1.0, 0.0)


def sample_points(columns: int, rows: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Normalized (u, v) sample coordinates of every actuator.

    Cell (x, y) maps to (x / (columns - 1), y / (rows - 1)). A board
    with a single column (or row) maps that axis to 0.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        u and v arrays, both shaped (columns, rows).
    """
    u = np.arange(columns, dtype=np.float64) / (columns - 1) if columns > 1 else np.zeros(columns)
    v = np.arange(rows, dtype=np.float64) / (rows - 1) if rows > 1 else np.zeros(rows)
    grid_u, grid_v = np.meshgrid(u, v, indexing="ij")
    return grid_u, grid_v


class RippleField:
    """
    Collection of wave sources driving an actuator grid.

    Parameters
    ----------
    grid : ActuatorGrid
        Board written on every tick. Not owned by the field.
    ripple_range : float, optional
        Half-width of each ripple's falloff in normalized units.
        Shared by all sources. Defaults to 0.5.
    clamp_spread : bool, optional
        If True, spread fractions are limited to [0, 1] during evaluation.
        Defaults to False.
    initial_time : float, optional
        Field time before the first tick. Defaults to 0.0.
    clock : Optional[Callable[[], float]], optional
        Time source for spawn(). If None, spawn uses the time of the most
        recent tick. Defaults to None.

    Raises
    ------
    ValidationError
        If ripple_range is negative or not finite.
    """

    def __init__(
        self,
        grid: ActuatorGrid,
        ripple_range: float = 0.5,
        clamp_spread: bool = False,
        initial_time: float = 0.0,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._grid = grid
        self._ripple_range = self._check_ripple_range(ripple_range)
        self._clamp_spread = bool(clamp_spread)
        self._time = float(initial_time)
        self._clock = clock

        # Guards _sources and _time; spawn may be called from an input thread.
        self._lock = threading.Lock()
        self._sources: List[WaveSource] = []

    @staticmethod
    def _check_ripple_range(ripple_range: float) -> float:
        validate_finite_scalar(ripple_range, "ripple_range")
        validate_positive(ripple_range, "ripple_range", allow_zero=True)
        return float(ripple_range)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def grid(self) -> ActuatorGrid:
        """The actuator grid written on every tick."""
        return self._grid

    @property
    def ripple_range(self) -> float:
        """Half-width of each ripple's falloff."""
        return self._ripple_range

    @ripple_range.setter
    def ripple_range(self, value: float) -> None:
        self._ripple_range = self._check_ripple_range(value)

    @property
    def clamp_spread(self) -> bool:
        """Whether spread fractions are clamped to [0, 1] during evaluation."""
        return self._clamp_spread

    @clamp_spread.setter
    def clamp_spread(self, value: bool) -> None:
        self._clamp_spread = bool(value)

    @property
    def time(self) -> float:
        """Timestamp of the most recent tick (or the initial time)."""
        return self._time

    @property
    def sources(self) -> Tuple[WaveSource, ...]:
        """Snapshot of the sources currently held, expired or not."""
        with self._lock:
            return tuple(self._sources)

    @property
    def source_count(self) -> int:
        """Number of sources currently held."""
        with self._lock:
            return len(self._sources)

    # ------------------------------------------------------------------
    # Source management
    # ------------------------------------------------------------------

    def spawn(
        self,
        origin: Tuple[float, float],
        spread_duration: float,
        max_radius: float,
        spawn_time: Optional[float] = None,
    ) -> WaveSource:
        """
        Start a new ripple.

        Parameters are stored as given. Callers should pass an origin in
        [0, 1] x [0, 1], a positive spread_duration and a non-negative
        max_radius; other values give degenerate but defined ripples.

        Parameters
        ----------
        origin : Tuple[float, float]
            Normalized (u, v) centre of the ripple.
        spread_duration : float
            Time until the ripple is fully spread and expires.
        max_radius : float
            Radius at full spread.
        spawn_time : Optional[float], optional
            Explicit start time. If None, the injected clock is read, or
            the field time when no clock was injected.

        Returns
        -------
        WaveSource
            The source that was added.
        """
        if spread_duration <= 0:
            logger.warning(f"Ripple at {origin} spawned with non-positive spread_duration {spread_duration}")
        if max_radius < 0:
            logger.warning(f"Ripple at {origin} spawned with negative max_radius {max_radius}")

        with self._lock:
            if spawn_time is None:
                spawn_time = self._clock() if self._clock is not None else self._time
            source = WaveSource(
                origin=origin,
                spread_duration=spread_duration,
                max_radius=max_radius,
                spawn_time=spawn_time,
            )
            self._sources.append(source)

        logger.debug(
            f"Ripple spawned at {source.origin} t={spawn_time} "
            f"(spread {spread_duration}, radius {max_radius})"
        )
        return source

    def prune(self, now: float) -> int:
        """
        Remove every source expired at now.

        Returns
        -------
        int
            Number of sources removed.
        """
        with self._lock:
            return self._prune_locked(now)

    def _prune_locked(self, now: float) -> int:
        kept = [source for source in self._sources if not source.is_expired(now)]
        removed = len(self._sources) - len(kept)
        self._sources = kept
        if removed:
            logger.debug(f"Pruned {removed} expired ripple(s) at t={now}, {len(kept)} active")
        return removed

    def clear(self) -> None:
        """Remove all sources."""
        with self._lock:
            self._sources = []

    def _active_sources(self, now: float) -> List[WaveSource]:
        with self._lock:
            return [source for source in self._sources if not source.is_expired(now)]

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _combine(
        self,
        sources: Sequence[WaveSource],
        u: np.ndarray,
        v: np.ndarray,
        now: float,
    ) -> np.ndarray:
        """Mean contribution of sources at every sample point."""
        if not sources:
            return np.zeros(np.shape(u), dtype=np.float64)

        contributions = np.stack([
            ripple_contribution(
                source.distance_from_front(u, v, now, clamp=self._clamp_spread),
                self._ripple_range,
            )
            for source in sources
        ])
        # Sorting per sample point makes the mean independent of source order.
        contributions.sort(axis=0)
        return contributions.mean(axis=0)

    def evaluate_at(self, point: Tuple[float, float], now: float) -> float:
        """
        Combined actuation value at one normalized point.

        Sources expired at now are ignored but not removed.

        Parameters
        ----------
        point : Tuple[float, float]
            Normalized (u, v) sample point.
        now : float
            Evaluation timestamp.

        Returns
        -------
        float
            Mean contribution in [0, 1]; 0 when no source is active.
        """
        u, v = point
        sources = self._active_sources(now)
        return float(self._combine(sources, np.float64(u), np.float64(v), now))

    def evaluate(self, columns: int, rows: int, now: float) -> np.ndarray:
        """
        Combined actuation values for a columns x rows board, without writing.

        Returns
        -------
        np.ndarray
            Values indexed [column, row].
        """
        u, v = sample_points(columns, rows)
        return self._combine(self._active_sources(now), u, v, now)

    def tick(self, now: float) -> None:
        """
        Advance the field to now and write the board.

        1. Remove sources expired at now
        2. Evaluate every actuator against the remaining sources
        3. Overwrite the whole grid with the result

        A failing sink is logged rather than raised; the grid then keeps
        the targets of the previous tick while expired sources are still
        pruned.

        Parameters
        ----------
        now : float
            Current timestamp from the caller's clock.
        """
        with self._lock:
            self._time = float(now)
            self._prune_locked(now)
            active = list(self._sources)

        if not self._grid.is_created:
            logger.debug(f"Tick at t={now} skipped write: grid destroyed")
            return

        columns, rows = self._grid.dimensions
        u, v = sample_points(columns, rows)
        values = self._combine(active, u, v, now)

        try:
            self._grid.set_all(values)
        except GridNotCreated:
            logger.debug(f"Tick at t={now} skipped write: grid destroyed")
        except DimensionMismatch as e:
            # Grid resized between sampling and writing; next tick catches up.
            logger.debug(f"Tick at t={now} skipped write: {e}")
        except SinkError as e:
            # The grid rolled back; the board holds the previous tick.
            logger.error(f"Tick at t={now} write failed: {e}")
