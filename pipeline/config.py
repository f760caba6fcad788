"""
config.py

Simulation configuration for the rain board.
"""

from dataclasses import dataclass

from contracts.validation import (
    validate_dimension,
    validate_finite_scalar,
    validate_positive,
)


@dataclass(frozen=True)
class SimulationConfig:
    """
    Simulation configuration parameters.

    Defaults reproduce the reference scene: a 3x3 board updated at 50 Hz,
    ripples 0.5 wide spreading to radius 5 over 10 seconds.
    """

    columns: int = 3
    rows: int = 3

    ripple_range: float = 0.5
    clamp_spread: bool = False

    dt: float = 0.02
    initial_time: float = 0.0

    piston_distance: float = 1.0

    drop_spread_duration: float = 10.0
    drop_max_radius: float = 5.0

    def __post_init__(self) -> None:
        """Validate configuration fields."""
        object.__setattr__(self, "columns", validate_dimension(self.columns, "columns"))
        object.__setattr__(self, "rows", validate_dimension(self.rows, "rows"))

        for name in (
            "ripple_range",
            "dt",
            "initial_time",
            "piston_distance",
            "drop_spread_duration",
            "drop_max_radius",
        ):
            validate_finite_scalar(getattr(self, name), name)

        validate_positive(self.ripple_range, "ripple_range", allow_zero=True)
        validate_positive(self.dt, "dt")
        validate_positive(self.piston_distance, "piston_distance", allow_zero=True)
        validate_positive(self.drop_spread_duration, "drop_spread_duration")
        validate_positive(self.drop_max_radius, "drop_max_radius", allow_zero=True)

    @property
    def dimensions(self):
        """Board dimensions (columns, rows)."""
        return (self.columns, self.rows)
