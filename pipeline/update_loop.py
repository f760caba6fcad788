"""
update_loop.py

Fixed-step execution loop coordinating rain drops, ripple evolution and
board updates.

This module does not evaluate ripples or drive hardware.
It orchestrates the sequence of operations at each timestep.

All time units are seconds.
"""

from typing import List, Optional

import numpy as np
from loguru import logger

from pipeline.config import SimulationConfig
from pipeline.rain import RainProducer
from ripples.field import RippleField


class UpdateLoop:
    """
    Fixed-step execution loop for the rain board.

    Coordinates the sequence of operations at each timestep:
    1. Advance simulation time by dt
    2. Spawn ripples for drops that landed during the step
    3. Tick the ripple field, which rewrites the actuator grid

    Parameters
    ----------
    field : RippleField
        The ripple field to advance.
    dt : float
        Fixed timestep in seconds. Must be positive.
    initial_time : float, optional
        Simulation time before the first step. Defaults to 0.0.
    rain : Optional[RainProducer], optional
        Source of drops. Defaults to None (no new ripples).

    Attributes
    ----------
    field : RippleField
        Reference to the ripple field.
    dt : float
        Fixed timestep in seconds.
    step_count : int
        Number of steps executed since initialization.
    """

    def __init__(
        self,
        field: RippleField,
        dt: float,
        initial_time: float = 0.0,
        rain: Optional[RainProducer] = None,
    ) -> None:
        """Initialize the update loop."""
        if dt <= 0.0:
            raise ValueError(
                f"Timestep dt must be positive. Got {dt}."
            )

        self._field = field
        self._dt = dt
        self._initial_time = initial_time
        self._time = initial_time
        self._rain = rain
        self._step_count = 0

    @classmethod
    def from_config(
        cls,
        field: RippleField,
        config: SimulationConfig,
        rain: Optional[RainProducer] = None,
    ) -> "UpdateLoop":
        """Build a loop using the timing of a SimulationConfig."""
        return cls(field=field, dt=config.dt, initial_time=config.initial_time, rain=rain)

    @property
    def field(self) -> RippleField:
        """Reference to the ripple field."""
        return self._field

    @property
    def rain(self) -> Optional[RainProducer]:
        """Reference to the optional rain producer."""
        return self._rain

    @property
    def dt(self) -> float:
        """Fixed timestep in seconds."""
        return self._dt

    @property
    def step_count(self) -> int:
        """Number of steps executed since initialization."""
        return self._step_count

    @property
    def current_time(self) -> float:
        """Current simulation time in seconds."""
        return self._time

    def step(self) -> np.ndarray:
        """
        Execute one simulation step.

        Returns
        -------
        np.ndarray
            Read-only snapshot of the actuator targets after the tick,
            indexed [column, row].
        """
        previous = self._time
        # Derived from the step count so long runs do not accumulate dt error.
        now = self._initial_time + (self._step_count + 1) * self._dt

        if self._rain is not None:
            for drop in self._rain.drops_between(previous, now):
                self._field.spawn(
                    drop.origin,
                    drop.spread_duration,
                    drop.max_radius,
                    spawn_time=drop.time,
                )

        self._field.tick(now)

        self._time = now
        self._step_count += 1

        return self._field.grid.snapshot()

    def run(self, n_steps: int) -> List[np.ndarray]:
        """
        Execute multiple simulation steps.

        Parameters
        ----------
        n_steps : int
            Number of steps to execute. Must be non-negative.

        Returns
        -------
        List[np.ndarray]
            Board snapshot after every step. Length equals n_steps.

        Raises
        ------
        ValueError
            If n_steps is negative.
        """
        if n_steps < 0:
            raise ValueError(
                f"n_steps must be non-negative. Got {n_steps}."
            )

        snapshots: List[np.ndarray] = []

        for _ in range(n_steps):
            snapshots.append(self.step())

        logger.debug(
            f"Ran {n_steps} steps to t={self._time:.3f}, "
            f"{self._field.source_count} ripple(s) active"
        )
        return snapshots

    def reset_step_count(self) -> None:
        """Reset the step counter to zero, keeping the current time."""
        self._initial_time = self._time
        self._step_count = 0

    def set_rain(self, rain: Optional[RainProducer]) -> None:
        """
        Attach or detach a rain producer.

        Parameters
        ----------
        rain : Optional[RainProducer]
            The producer to attach, or None to detach.
        """
        self._rain = rain
