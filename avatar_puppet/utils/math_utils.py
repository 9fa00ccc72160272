"""
Mathematical utilities for landmark geometry and animation.

Provides functions for:
- Segment angles between two landmarks
- Midpoints
- Linear interpolation and frame-rate independent damping
"""

import numpy as np


def segment_angle(start, end) -> float:
    """
    Angle of the segment start -> end in the image plane.

    Args:
        start: Point with x and y attributes
        end: Point with x and y attributes

    Returns:
        Angle in radians, in (-pi, pi]
    """
    return float(np.arctan2(end.y - start.y, end.x - start.x))


def midpoint(a, b) -> np.ndarray:
    """Midpoint of two landmarks as an (x, y) array."""
    return np.array([(a.x + b.x) / 2.0, (a.y + b.y) / 2.0])


def lerp(current: float, target: float, factor: float) -> float:
    """Linear interpolation from current toward target."""
    return current + (target - current) * factor


def damping_factor(delta_time: float, base: float = 0.01) -> float:
    """
    Interpolation factor for exponential damping.

    After one second of accumulated ticks only ``base`` of the initial gap
    remains, whatever the tick rate.

    Args:
        delta_time: Seconds since the previous tick
        base: Fraction of the gap remaining after one second

    Returns:
        Factor in [0, 1)
    """
    if delta_time <= 0:
        return 0.0
    return float(1.0 - np.power(base, delta_time))

