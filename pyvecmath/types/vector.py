import math
import struct
import dataclasses
from typing import Callable, Iterable, Iterator

import numpy as np

from ..errors import DimensionMismatchError, DegenerateInputError, DomainError
from ..settings import Settings
from ..utils.helpers import clamp, ieee_divide


@dataclasses.dataclass(frozen=True, slots=True)
class Vector:
    """
    An immutable N-dimensional vector of floats, used for positions and directions.
    A vector with one extra trailing component is the homogeneous form of a point;
    see to_homogeneous() and to_cartesian().
    """
    components: tuple[float, ...]

    def __post_init__(self):
        # Coerce to a tuple of floats so lists, generators and ints are accepted.
        values = tuple(float(c) for c in self.components)
        if not values:
            raise DimensionMismatchError("Vector must have at least one component.")
        object.__setattr__(self, "components", values)

    # --- Construction ---

    @classmethod
    def of(cls, *components: float) -> "Vector":
        """Creates a vector from its components, e.g. Vector.of(1, 2, 3)."""
        return cls(components)

    @classmethod
    def from_list(cls, elements: Iterable[float]) -> "Vector":
        return cls(tuple(elements))

    @classmethod
    def generate(cls, dimensions: int, generator: Callable[[int], float]) -> "Vector":
        """Creates a vector whose i-th component is generator(i)."""
        return cls(tuple(generator(i) for i in range(dimensions)))

    @classmethod
    def zero(cls, dimensions: int) -> "Vector":
        return cls.repeat(0.0, dimensions)

    @classmethod
    def one(cls, dimensions: int) -> "Vector":
        return cls.repeat(1.0, dimensions)

    @classmethod
    def repeat(cls, value: float, dimensions: int) -> "Vector":
        """Creates a vector with value in every component."""
        return cls((value,) * dimensions)

    @classmethod
    def basis(cls, axis: int, dimensions: int) -> "Vector":
        """Returns the axis-th basis vector: 1 at axis, 0 elsewhere."""
        if not 0 <= axis < dimensions:
            raise DomainError(f"Axis {axis} is out of range for a {dimensions}-dimensional vector.")
        return cls.generate(dimensions, lambda i: 1.0 if i == axis else 0.0)

    # --- Accessors ---

    @property
    def dimensions(self) -> int:
        return len(self.components)

    def __len__(self) -> int:
        return len(self.components)

    def __getitem__(self, index):
        return self.components[index]

    def __iter__(self) -> Iterator[float]:
        return iter(self.components)

    @property
    def X(self) -> float:
        return self.components[0]

    @property
    def Y(self) -> float:
        return self.components[1]

    @property
    def Z(self) -> float:
        return self.components[2]

    @property
    def W(self) -> float:
        return self.components[3]

    def to_tuple(self) -> tuple[float, ...]:
        return self.components

    def __str__(self) -> str:
        p = Settings.STR_PRECISION
        return "<" + ", ".join(f"{c:.{p}f}" for c in self.components) + ">"

    def __repr__(self) -> str:
        return f"Vector({self.components!r})"

    def is_close(self, other: "Vector", tolerance: float = None) -> bool:
        """Componentwise comparison within tolerance. Vectors of different dimension are never close."""
        if tolerance is None:
            tolerance = Settings.COMPARISON_TOLERANCE
        if len(self) != len(other):
            return False
        return all(abs(a - b) <= tolerance for a, b in zip(self.components, other.components))

    # --- Arithmetic ---

    def _check_dimensions(self, other: "Vector", operation: str) -> None:
        if len(self.components) != len(other.components):
            raise DimensionMismatchError(
                f"Cannot {operation} vectors of dimension {len(self)} and {len(other)}.")

    def __add__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        self._check_dimensions(other, "add")
        return Vector(tuple(a + b for a, b in zip(self.components, other.components)))

    def __sub__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        self._check_dimensions(other, "subtract")
        return Vector(tuple(a - b for a, b in zip(self.components, other.components)))

    def __mul__(self, scalar: float) -> "Vector":
        if not isinstance(scalar, (int, float)):
            return NotImplemented
        return Vector(tuple(c * scalar for c in self.components))

    def __rmul__(self, scalar: float) -> "Vector":
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> "Vector":
        # Division by zero gives +-inf / nan like any float division would in IEEE-754.
        if not isinstance(scalar, (int, float)):
            return NotImplemented
        return Vector(tuple(ieee_divide(c, scalar) for c in self.components))

    def __neg__(self) -> "Vector":
        return Vector(tuple(-c for c in self.components))

    def dot(self, other: "Vector") -> float:
        """Calculates the dot product with another vector of the same dimension."""
        self._check_dimensions(other, "take the dot product of")
        return sum(a * b for a, b in zip(self.components, other.components))

    def cross(self, other: "Vector") -> "Vector":
        """Calculates the cross product. Both vectors must be 3-dimensional."""
        if len(self) != 3 or len(other) != 3:
            raise DimensionMismatchError(
                f"Cross product needs two 3-dimensional vectors, got {len(self)} and {len(other)}.")
        ax, ay, az = self.components
        bx, by, bz = other.components
        return Vector((
            ay * bz - az * by,
            az * bx - ax * bz,
            ax * by - ay * bx,
        ))

    def outer(self, other: "Vector") -> "Matrix":
        """Returns the len(self) x len(other) matrix whose (r, c) entry is self[r] * other[c]."""
        from .matrix import Matrix
        return Matrix(tuple(tuple(a * b for b in other.components) for a in self.components))

    def triple(self, second: "Vector", third: "Vector") -> float:
        """Scalar triple product self . (second x third)."""
        return self.dot(second.cross(third))

    # --- Geometry ---

    def length_squared(self) -> float:
        """Returns the squared Euclidean length of the vector."""
        return sum(c * c for c in self.components)

    def length(self) -> float:
        """Returns the Euclidean length of the vector."""
        return math.sqrt(self.length_squared())

    def normalize(self) -> "Vector":
        """Returns a new unit vector in the same direction."""
        mag = self.length()
        if mag == 0:
            raise DegenerateInputError("Cannot normalize a zero-length vector.")
        return Vector(tuple(c / mag for c in self.components))

    def set_length(self, length: float) -> "Vector":
        return self.normalize() * length

    def angle(self, other: "Vector") -> float:
        """Returns the angle to another vector in radians, in [0, pi]."""
        self._check_dimensions(other, "measure the angle between")
        # Round-off can push the cosine slightly outside [-1, 1].
        cosine = clamp(self.normalize().dot(other.normalize()), -1.0, 1.0)
        return math.acos(cosine)

    def distance(self, other: "Vector") -> float:
        return (self - other).length()

    def project(self, other: "Vector") -> "Vector":
        """Returns the component of this vector along the direction of other."""
        direction = other.normalize()
        return direction * self.dot(direction)

    def reflect(self, normal: "Vector") -> "Vector":
        """Mirrors this vector about normal, negating the part perpendicular to it."""
        proj = self.project(normal)
        return -(self - proj) + proj

    def lerp(self, other: "Vector", t: float) -> "Vector":
        """Linear interpolation towards other; t outside [0, 1] extrapolates."""
        return self * (1.0 - t) + other * t

    def midpoint(self, other: "Vector") -> "Vector":
        return self.lerp(other, 0.5)

    # --- Homogeneous coordinates ---

    def append(self, other: "Vector") -> "Vector":
        """Concatenates the components of other after this vector's."""
        return Vector(self.components + other.components)

    def to_homogeneous(self) -> "Vector":
        """Cartesian -> homogeneous: appends a w component of 1."""
        return self.append(Vector((1.0,)))

    def to_cartesian(self) -> "Vector":
        """
        Homogeneous -> cartesian: divides by the last component and drops it.
        A zero last component is a point at infinity and yields inf/nan components.
        """
        if len(self.components) < 2:
            raise DimensionMismatchError("A homogeneous vector needs at least two components.")
        w = self.components[-1]
        return Vector(tuple(ieee_divide(c, w) for c in self.components[:-1]))

    def change_basis(self, basis: "Matrix") -> "Vector":
        """Expresses this vector in the coordinate system whose basis vectors are the columns of basis."""
        return basis.invert() * self

    # --- Packing ---

    def to_bytes(self) -> bytes:
        """Packs the vector as little-endian float32 values (4 bytes per component)."""
        return struct.pack(f'<{len(self.components)}f', *self.components)

    @staticmethod
    def from_bytes(data: bytes, dimensions: int, offset: int = 0) -> "Vector":
        """Unpacks a vector of the given dimension from little-endian float32 values."""
        needed = 4 * dimensions
        if len(data) - offset < needed:
            raise ValueError(f"Not enough bytes to unpack a {dimensions}-dimensional Vector. Need {needed}.")
        return Vector(struct.unpack_from(f'<{dimensions}f', data, offset))

    def to_numpy(self, dtype=np.float64) -> np.ndarray:
        return np.array(self.components, dtype=dtype)

    @staticmethod
    def from_numpy(array) -> "Vector":
        values = np.asarray(array, dtype=np.float64)
        if values.ndim != 1:
            raise DimensionMismatchError(f"Expected a 1-D array, got shape {values.shape}.")
        return Vector(tuple(values.tolist()))
