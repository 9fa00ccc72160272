"""Utility modules for avatar puppet."""

from avatar_puppet.utils.math_utils import (
    segment_angle,
    midpoint,
    lerp,
    damping_factor,
)

__all__ = [
    "segment_angle",
    "midpoint",
    "lerp",
    "damping_factor",
]
