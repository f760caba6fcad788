"""
rain.py

Rain drop producers feeding ripples into the update loop.

They stand in for the input layer (keys, sensors, UI) that triggers new
ripples on a real board. Each producer answers one question: which drops
fall in the time window (start, end]?

All time quantities are in seconds.
"""

import bisect
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Tuple, runtime_checkable

import numpy as np

from contracts.validation import (
    validate_finite_scalar,
    validate_positive,
    validate_unit_point,
)


@dataclass(frozen=True)
class RainDrop:
    """
    One timed drop.

    Parameters
    ----------
    time : float
        Timestamp at which the drop lands.
    origin : Tuple[float, float]
        Normalized (u, v) landing point in [0, 1] x [0, 1].
    spread_duration : float
        Lifetime of the resulting ripple. Must be positive.
    max_radius : float
        Final radius of the resulting ripple. Must be non-negative.
    """

    time: float
    origin: Tuple[float, float]
    spread_duration: float = 10.0
    max_radius: float = 5.0

    def __post_init__(self) -> None:
        validate_finite_scalar(self.time, "time")
        validate_unit_point(self.origin, "origin")
        validate_finite_scalar(self.spread_duration, "spread_duration")
        validate_positive(self.spread_duration, "spread_duration")
        validate_finite_scalar(self.max_radius, "max_radius")
        validate_positive(self.max_radius, "max_radius", allow_zero=True)

        u, v = self.origin
        object.__setattr__(self, "origin", (float(u), float(v)))


@runtime_checkable
class RainProducer(Protocol):
    """Interface of anything that can schedule drops for the update loop."""

    def drops_between(self, start: float, end: float) -> List[RainDrop]:
        """
        Drops landing in (start, end], ordered by time.

        Parameters
        ----------
        start : float
            Exclusive window start.
        end : float
            Inclusive window end.
        """
        ...


class ScriptedRain:
    """
    A fixed list of drops released at their timestamps.

    Parameters
    ----------
    drops : Iterable[RainDrop]
        Drops in any order.
    """

    def __init__(self, drops: Iterable[RainDrop]) -> None:
        self._drops: List[RainDrop] = sorted(drops, key=lambda d: d.time)
        self._times: List[float] = [d.time for d in self._drops]

    @classmethod
    def keyboard_demo(
        cls,
        first_time: float = 0.5,
        second_time: float = 2.0,
        spread_duration: float = 10.0,
        max_radius: float = 5.0,
    ) -> "ScriptedRain":
        """
        The two hot-key drops of the reference scene.

        One drop near the (0, 0) corner, one near the (1, 1) corner.
        """
        return cls([
            RainDrop(first_time, (0.1, 0.1), spread_duration, max_radius),
            RainDrop(second_time, (0.9, 0.9), spread_duration, max_radius),
        ])

    def __len__(self) -> int:
        return len(self._drops)

    @property
    def drops(self) -> List[RainDrop]:
        return list(self._drops)

    def drops_between(self, start: float, end: float) -> List[RainDrop]:
        lo = bisect.bisect_right(self._times, start)
        hi = bisect.bisect_right(self._times, end)
        return self._drops[lo:hi]


class RandomRain:
    """
    Drops arriving as a Poisson process with uniform landing points.

    Parameters
    ----------
    rate_hz : float
        Mean number of drops per second. Must be non-negative.
    spread_duration : float, optional
        Lifetime of every ripple. Defaults to 10.0.
    max_radius : float, optional
        Final radius of every ripple. Defaults to 5.0.
    random_seed : Optional[int], optional
        Seed for reproducible rain. Defaults to None.
    """

    def __init__(
        self,
        rate_hz: float,
        spread_duration: float = 10.0,
        max_radius: float = 5.0,
        random_seed: Optional[int] = None,
    ) -> None:
        validate_finite_scalar(rate_hz, "rate_hz")
        validate_positive(rate_hz, "rate_hz", allow_zero=True)

        self._rate_hz = float(rate_hz)
        self._spread_duration = spread_duration
        self._max_radius = max_radius
        self._rng = np.random.default_rng(random_seed)

    @property
    def rate_hz(self) -> float:
        return self._rate_hz

    def drops_between(self, start: float, end: float) -> List[RainDrop]:
        span = end - start
        if span <= 0 or self._rate_hz == 0:
            return []

        count = int(self._rng.poisson(self._rate_hz * span))
        # end - U[0, span) lands in (start, end]
        times = np.sort(end - self._rng.uniform(0.0, span, size=count))
        origins = self._rng.uniform(0.0, 1.0, size=(count, 2))

        return [
            RainDrop(
                time=float(t),
                origin=(float(o[0]), float(o[1])),
                spread_duration=self._spread_duration,
                max_radius=self._max_radius,
            )
            for t, o in zip(times, origins)
        ]

    def reset_rng(self, seed: Optional[int] = None) -> None:
        """Reset the random number generator with a new seed."""
        self._rng = np.random.default_rng(seed)
