"""
Library-wide numeric thresholds and logging defaults.
"""
import logging
from enum import IntEnum
from typing import Optional


class LogLevel(IntEnum): NONE = 0; DEBUG = 1; INFO = 2; WARNING = 3; ERROR = 4

_LOGGING_LEVELS = {
    LogLevel.NONE: logging.CRITICAL + 10,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class Settings:
    """
    Numeric thresholds shared by the vector, matrix and quaternion types.
    These are read at call time, so changing a class attribute affects
    every subsequent operation.
    """

    SLERP_DOT_THRESHOLD: float = 0.9995
    """Quaternion dot product above which slerp falls back to normalized lerp
       (the sine of the angle between the inputs is too small to divide by)."""

    COMPARISON_TOLERANCE: float = 1e-6
    """Default absolute tolerance for is_close() and is_identity()."""

    HALF_TURN_EPSILON: float = 1e-6
    """Scalar-part magnitude below which a rotation matrix is treated as a half turn
       when converting it to a quaternion; the antisymmetric differences carry no sign then."""

    COFACTOR_WARN_SIZE: int = 5
    """Largest matrix size for which cofactor expansion runs without a warning.
       The expansion is O(n!)."""

    STR_PRECISION: int = 3
    """Number of decimals shown by __str__ of vectors, matrices and quaternions."""

    LOG_LEVEL: LogLevel = LogLevel.WARNING
    """Default level applied to the "pyvecmath" logger by configure_logging()."""


def configure_logging(level: Optional[LogLevel] = None) -> logging.Logger:
    """
    Applies a LogLevel (Settings.LOG_LEVEL when omitted) to the package logger.
    Handlers are left to the application.
    """
    logger = logging.getLogger("pyvecmath")
    if level is None:
        level = Settings.LOG_LEVEL
    logger.setLevel(_LOGGING_LEVELS[LogLevel(level)])
    return logger
