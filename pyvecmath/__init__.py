# Basic package metadata.

__version__ = "0.1.0"

# Importing the types sub-package first resolves the vector -> quaternion -> matrix
# import order before anything that depends on all three.
from .types import Vector, Quaternion, Matrix
from .transform import Transform
from .errors import VecMathError, DimensionMismatchError, DegenerateInputError, DomainError
from .settings import Settings, LogLevel, configure_logging

__all__ = [
    "Vector", "Quaternion", "Matrix", "Transform",
    "VecMathError", "DimensionMismatchError", "DegenerateInputError", "DomainError",
    "Settings", "LogLevel", "configure_logging",
    "__version__",
]
