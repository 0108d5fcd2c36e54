import math

# Constants
PI = math.pi
TWO_PI = 2.0 * math.pi
HALF_PI = math.pi / 2.0
DEG_TO_RAD = math.pi / 180.0
RAD_TO_DEG = 180.0 / math.pi


def clamp(value, min_val, max_val):
    """Clamps a value to the range [min_val, max_val]."""
    return max(min_val, min(value, max_val))

def lerp(start, end, amount):
    """
    Linear interpolation between start and end by amount.
    amount is not restricted to [0, 1]; values outside extrapolate.
    Written as start*(1-amount) + end*amount so amount == 1 returns end exactly.
    """
    return start * (1.0 - amount) + end * amount

def approximately_equal(a: float, b: float, tolerance: float = 1e-6) -> bool:
    """Checks if two floats are approximately equal within a tolerance."""
    return abs(a - b) <= tolerance

def ieee_divide(numerator: float, denominator: float) -> float:
    """
    Divides following IEEE-754 rules instead of raising ZeroDivisionError:
    x / 0 is +-inf (sign from both operands) and 0 / 0 is nan.
    """
    try:
        return numerator / denominator
    except ZeroDivisionError:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)

def shortest_angle_delta(start: float, end: float) -> float:
    """Returns end - start in radians, wrapped onto (-pi, pi]."""
    delta = math.fmod(end - start, TWO_PI)
    while delta > PI:
        delta -= TWO_PI
    while delta <= -PI:
        delta += TWO_PI
    return delta

def lerp_angle(start: float, end: float, amount: float) -> float:
    """Interpolates between two angles (radians) along the shorter arc."""
    return start + shortest_angle_delta(start, end) * amount
