"""
pipeline package

Configuration, rain producers and the fixed-step update loop.
"""

from pipeline.config import SimulationConfig
from pipeline.rain import RainDrop, RainProducer, ScriptedRain, RandomRain
from pipeline.update_loop import UpdateLoop

__all__ = [
    'SimulationConfig',
    'RainDrop',
    'RainProducer',
    'ScriptedRain',
    'RandomRain',
    'UpdateLoop',
]
