"""
ripples package

Time-evolving wave sources and the field that maps them onto an
actuator grid.
"""

from ripples.wave import WaveSource
from ripples.field import RippleField, ripple_contribution, sample_points

__all__ = [
    'WaveSource',
    'RippleField',
    'ripple_contribution',
    'sample_points',
]
