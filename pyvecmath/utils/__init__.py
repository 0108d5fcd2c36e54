# This file marks pyvecmath.utils as a Python package.

from .helpers import (
    PI,
    TWO_PI,
    HALF_PI,
    DEG_TO_RAD,
    RAD_TO_DEG,
    clamp,
    lerp,
    approximately_equal,
    ieee_divide,
    shortest_angle_delta,
    lerp_angle,
)

__all__ = [
    # Constants
    "PI", "TWO_PI", "HALF_PI", "DEG_TO_RAD", "RAD_TO_DEG",
    # Scalar helpers
    "clamp", "lerp", "approximately_equal", "ieee_divide",
    # Angles
    "shortest_angle_delta", "lerp_angle",
]
