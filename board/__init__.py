"""
board package

Actuator target storage and the sinks that realize it.
"""

from board.actuator_grid import ActuatorGrid, ActuatorSink
from board.pistons import SimulatedPistonBoard

__all__ = [
    'ActuatorGrid',
    'ActuatorSink',
    'SimulatedPistonBoard',
]
