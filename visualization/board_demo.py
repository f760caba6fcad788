"""
board_demo.py

Command-line demo: rain on a simulated piston board.

Pipeline:
    Rain producer -> RippleField.spawn -> UpdateLoop.step
                  -> RippleField.tick -> ActuatorGrid -> SimulatedPistonBoard

Optionally saves a heatmap of the final board and the history of the
centre actuator.
"""

import argparse
import sys
from typing import List, Optional

import numpy as np
from loguru import logger

from board.actuator_grid import ActuatorGrid
from board.pistons import SimulatedPistonBoard
from pipeline.config import SimulationConfig
from pipeline.rain import RainProducer, RandomRain, ScriptedRain
from pipeline.update_loop import UpdateLoop
from ripples.field import RippleField
from visualization.render_2d import (
    close_figure,
    render_actuator_history,
    render_board,
    save_figure,
)


def build_rain(
    mode: str,
    config: SimulationConfig,
    rate_hz: float = 0.5,
    random_seed: Optional[int] = None,
) -> RainProducer:
    """Create the rain producer selected on the command line."""
    if mode == "keys":
        return ScriptedRain.keyboard_demo(
            spread_duration=config.drop_spread_duration,
            max_radius=config.drop_max_radius,
        )
    if mode == "random":
        return RandomRain(
            rate_hz=rate_hz,
            spread_duration=config.drop_spread_duration,
            max_radius=config.drop_max_radius,
            random_seed=random_seed,
        )
    raise ValueError(f"Unknown rain mode {mode!r}; expected 'keys' or 'random'.")


def run_demo(
    config: SimulationConfig,
    rain: RainProducer,
    n_steps: int,
    heatmap_path: Optional[str] = None,
    history_path: Optional[str] = None,
) -> np.ndarray:
    """
    Run the rain board for n_steps and optionally save figures.

    Returns
    -------
    np.ndarray
        Final piston heights in meters, indexed [column, row].
    """
    pistons = SimulatedPistonBoard(piston_distance=config.piston_distance)
    grid = ActuatorGrid(config.columns, config.rows, sinks=[pistons])
    field = RippleField(
        grid,
        ripple_range=config.ripple_range,
        clamp_spread=config.clamp_spread,
        initial_time=config.initial_time,
    )
    loop = UpdateLoop.from_config(field, config, rain=rain)

    logger.info(
        f"Running {n_steps} steps of {config.dt}s on a {config.columns}x{config.rows} board"
    )

    snapshots: List[np.ndarray] = loop.run(n_steps)

    logger.info(
        f"Finished at t={loop.current_time:.2f}s with {field.source_count} active ripple(s); "
        f"peak piston height {float(pistons.heights.max()):.3f} m"
    )

    if heatmap_path and snapshots:
        fig = render_board(snapshots[-1], title=f"Board at t={loop.current_time:.2f}s", annotate=True)
        save_figure(fig, heatmap_path)
        close_figure(fig)
        logger.info(f"Saved board heatmap to {heatmap_path}")

    if history_path and snapshots:
        cx, cy = config.columns // 2, config.rows // 2
        timestamps = config.initial_time + config.dt * np.arange(1, len(snapshots) + 1)
        centre = np.array([s[cx, cy] for s in snapshots])
        fig = render_actuator_history({f"({cx}, {cy})": centre}, timestamps=timestamps)
        save_figure(fig, history_path)
        close_figure(fig)
        logger.info(f"Saved actuator history to {history_path}")

    return pistons.heights


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Rain ripples on a simulated piston board")
    parser.add_argument("--columns", type=int, default=3, help="Number of actuator columns")
    parser.add_argument("--rows", type=int, default=3, help="Number of actuator rows")
    parser.add_argument("--ripple-range", type=float, default=0.5, help="Ripple falloff half-width")
    parser.add_argument("--clamp-spread", action="store_true", help="Clamp spread fraction to [0, 1]")
    parser.add_argument("--dt", type=float, default=0.02, help="Timestep (s)")
    parser.add_argument("--steps", type=int, default=500, help="Number of steps to run")
    parser.add_argument("--piston-distance", type=float, default=1.0, help="Piston travel (m)")
    parser.add_argument("--rain", choices=["keys", "random"], default="keys", help="Rain producer")
    parser.add_argument("--rate", type=float, default=0.5, help="Random rain rate (drops/s)")
    parser.add_argument("--seed", type=int, default=None, help="Random rain seed")
    parser.add_argument("--heatmap", default=None, help="Save final board heatmap to this path")
    parser.add_argument("--history", default=None, help="Save centre actuator history to this path")
    parser.add_argument("--log-level", default="INFO", help="Log level (DEBUG, INFO, WARNING)")

    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    config = SimulationConfig(
        columns=args.columns,
        rows=args.rows,
        ripple_range=args.ripple_range,
        clamp_spread=args.clamp_spread,
        dt=args.dt,
        piston_distance=args.piston_distance,
    )
    rain = build_rain(args.rain, config, rate_hz=args.rate, random_seed=args.seed)

    run_demo(
        config,
        rain,
        n_steps=args.steps,
        heatmap_path=args.heatmap,
        history_path=args.history,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
