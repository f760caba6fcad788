"""
wave.py

A single expanding circular ripple anchored in normalized board space.

Coordinates are normalized: (0, 0) and (1, 1) are opposite corners of the
actuator board. Time units are whatever the caller's clock uses (seconds
in the demo).
"""

from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

ArrayOrFloat = Union[float, np.ndarray]


@dataclass(frozen=True)
class WaveSource:
    """
    A ripple spreading from origin to max_radius over spread_duration.

    The source itself is immutable; it changes only through the passage
    of time, which callers supply to every query.

    Parameters
    ----------
    origin : Tuple[float, float]
        Centre (u, v) in normalized board space. May lie off the board.
    spread_duration : float
        Time from spawn to full spread. The source expires at
        spawn_time + spread_duration.
    max_radius : float
        Radius reached at full spread, in normalized units.
    spawn_time : float
        Timestamp at which the ripple started.

    Notes
    -----
    Parameters are not validated. A non-positive spread_duration yields a
    source that is fully spread from the start and expires on the first
    tick at or after spawn_time.
    """

    origin: Tuple[float, float]
    spread_duration: float
    max_radius: float
    spawn_time: float

    def __post_init__(self) -> None:
        u, v = self.origin
        object.__setattr__(self, "origin", (float(u), float(v)))

    @property
    def expires_at(self) -> float:
        """Timestamp from which the source no longer contributes."""
        return self.spawn_time + self.spread_duration

    def is_expired(self, now: float) -> bool:
        """True once now >= spawn_time + spread_duration."""
        return now >= self.expires_at

    def spread_fraction(self, now: float, clamp: bool = False) -> float:
        """
        Progress from spawn (0) to full spread (1).

        Parameters
        ----------
        now : float
            Current timestamp.
        clamp : bool, optional
            If True, limit the fraction to [0, 1]. Defaults to False, in
            which case a clock moved backwards yields negative fractions.
        """
        if self.spread_duration <= 0:
            return 1.0

        fraction = (now - self.spawn_time) / self.spread_duration
        if clamp:
            fraction = min(max(fraction, 0.0), 1.0)
        return fraction

    def current_radius(self, now: float, clamp: bool = False) -> float:
        """Radius of the ripple front at now."""
        return self.max_radius * self.spread_fraction(now, clamp=clamp)

    def distance_from_front(
        self,
        u: ArrayOrFloat,
        v: ArrayOrFloat,
        now: float,
        clamp: bool = False,
    ) -> ArrayOrFloat:
        """
        Signed distance from the ripple front.

        Negative inside the front, zero on it, positive outside.
        Broadcasts over numpy arrays of sample coordinates.

        Parameters
        ----------
        u, v : float or np.ndarray
            Normalized sample coordinates.
        now : float
            Current timestamp.
        clamp : bool, optional
            Passed through to spread_fraction.
        """
        origin_u, origin_v = self.origin
        radial = np.hypot(np.asarray(u, dtype=np.float64) - origin_u,
                          np.asarray(v, dtype=np.float64) - origin_v)
        return radial - self.current_radius(now, clamp=clamp)
