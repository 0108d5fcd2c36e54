# Main __init__.py for the types sub-package

from .vector import Vector
from .quaternion import Quaternion
from .matrix import Matrix


__all__ = [
    "Vector", "Quaternion", "Matrix",
]
