import math
import struct
import logging
import dataclasses
from typing import Union

from ..errors import DimensionMismatchError, DegenerateInputError
from ..settings import Settings
from ..utils.helpers import clamp, ieee_divide
from .vector import Vector

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class Quaternion:
    """
    A quaternion (W, X, Y, Z).
    W is the scalar component and (X, Y, Z) the vector part.

    Unit quaternions represent 3D rotations. Non-unit quaternions show up as
    intermediate values (sums, scaled values) and must be normalized before
    being used as rotations.
    """
    W: float = 1.0 # Identity quaternion by default
    X: float = 0.0
    Y: float = 0.0
    Z: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "W", float(self.W))
        object.__setattr__(self, "X", float(self.X))
        object.__setattr__(self, "Y", float(self.Y))
        object.__setattr__(self, "Z", float(self.Z))

    def __str__(self) -> str:
        p = Settings.STR_PRECISION
        return f"<{self.W:.{p}f}; {self.X:.{p}f}, {self.Y:.{p}f}, {self.Z:.{p}f}>"

    def __repr__(self) -> str:
        return f"Quaternion(W={self.W}, X={self.X}, Y={self.Y}, Z={self.Z})"

    # --- Construction ---

    @staticmethod
    def identity() -> "Quaternion":
        return Quaternion(1.0, 0.0, 0.0, 0.0)

    @staticmethod
    def from_scalar_vector(scalar: float, vector: Vector) -> "Quaternion":
        """Builds a quaternion from a scalar part and a 3-dimensional vector part."""
        if len(vector) != 3:
            raise DimensionMismatchError(
                f"Quaternion vector part must be 3-dimensional, got {len(vector)}.")
        return Quaternion(scalar, vector[0], vector[1], vector[2])

    @staticmethod
    def from_vector(vector: Vector) -> "Quaternion":
        """Embeds a 3D vector as a pure quaternion (scalar part 0)."""
        return Quaternion.from_scalar_vector(0.0, vector)

    @staticmethod
    def angle_axis(angle: float, axis: Union[Vector, int, tuple]) -> "Quaternion":
        """
        Rotation of angle radians about axis.
        axis is a 3D vector (need not be unit length) or the index 0/1/2 of a basis axis.
        """
        half_angle = angle / 2.0
        return Quaternion.from_scalar_vector(
            math.cos(half_angle),
            _axis_vector(axis).set_length(math.sin(half_angle)),
        )

    @staticmethod
    def from_euler_angles(yaw: float, pitch: float, roll: float) -> "Quaternion":
        """
        Creates a rotation from Euler angles in radians.

        Composed as angle_axis(yaw, Y) * angle_axis(-pitch, X) * angle_axis(roll, Z):
        yaw turns about +Y, positive pitch tilts +Z towards +Y, roll turns about +Z.
        Applied to a vector, roll happens first, then pitch, then yaw.
        """
        return (Quaternion.angle_axis(yaw, 1)
                * Quaternion.angle_axis(-pitch, 0)
                * Quaternion.angle_axis(roll, 2))

    # --- Accessors ---

    @property
    def scalar(self) -> float:
        return self.W

    @property
    def vector(self) -> Vector:
        return Vector((self.X, self.Y, self.Z))

    def to_tuple(self) -> tuple[float, float, float, float]:
        return (self.W, self.X, self.Y, self.Z)

    def is_identity(self, tolerance: float = None) -> bool:
        """Checks if the quaternion is close to the identity quaternion."""
        return self.is_close(Quaternion.identity(), tolerance)

    def is_close(self, other: "Quaternion", tolerance: float = None) -> bool:
        """
        Componentwise comparison within tolerance.
        q and -q are the same rotation but are NOT considered close here.
        """
        if tolerance is None:
            tolerance = Settings.COMPARISON_TOLERANCE
        return all(abs(a - b) <= tolerance for a, b in zip(self.to_tuple(), other.to_tuple()))

    # --- Arithmetic ---

    def __add__(self, other: "Quaternion") -> "Quaternion":
        if not isinstance(other, Quaternion):
            return NotImplemented
        return Quaternion(self.W + other.W, self.X + other.X, self.Y + other.Y, self.Z + other.Z)

    def __sub__(self, other: "Quaternion") -> "Quaternion":
        if not isinstance(other, Quaternion):
            return NotImplemented
        return Quaternion(self.W - other.W, self.X - other.X, self.Y - other.Y, self.Z - other.Z)

    def __mul__(self, other):
        if isinstance(other, Quaternion): # Hamilton product
            s1, s2 = self.W, other.W
            v1, v2 = self.vector, other.vector
            return Quaternion.from_scalar_vector(
                s1 * s2 - v1.dot(v2),
                v2 * s1 + v1 * s2 + v1.cross(v2),
            )
        elif isinstance(other, Vector): # Rotation of a vector
            return self.rotate(other)
        elif isinstance(other, (int, float)): # Scalar multiplication
            return Quaternion(self.W * other, self.X * other, self.Y * other, self.Z * other)
        return NotImplemented

    def __rmul__(self, scalar): # Handles scalar * Quaternion
        if isinstance(scalar, (int, float)):
            return self.__mul__(scalar)
        return NotImplemented

    def __truediv__(self, scalar) -> "Quaternion":
        if not isinstance(scalar, (int, float)):
            return NotImplemented
        return Quaternion(*(ieee_divide(c, scalar) for c in self.to_tuple()))

    def __neg__(self) -> "Quaternion":
        return Quaternion(-self.W, -self.X, -self.Y, -self.Z)

    def dot(self, other: "Quaternion") -> float:
        """4D dot product; for unit quaternions the cosine of half the angle between the rotations."""
        return self.W * other.W + self.X * other.X + self.Y * other.Y + self.Z * other.Z

    def conjugate(self) -> "Quaternion":
        """Returns the conjugate of this quaternion (vector part negated)."""
        return Quaternion(self.W, -self.X, -self.Y, -self.Z)

    def norm_squared(self) -> float:
        return self.W ** 2 + self.X ** 2 + self.Y ** 2 + self.Z ** 2

    def norm(self) -> float:
        return math.sqrt(self.norm_squared())

    def normalize(self) -> "Quaternion":
        """Returns a new unit quaternion."""
        norm = self.norm()
        if norm == 0:
            raise DegenerateInputError("Cannot normalize a zero quaternion.")
        return Quaternion(self.W / norm, self.X / norm, self.Y / norm, self.Z / norm)

    def invert(self) -> "Quaternion":
        """
        Returns the multiplicative inverse, conjugate / norm_squared.
        For unit quaternions this is the conjugate.
        """
        norm_sq = self.norm_squared()
        if norm_sq == 0:
            raise DegenerateInputError("Cannot invert a zero quaternion.")
        return self.conjugate() / norm_sq

    # --- Rotation ---

    def rotate(self, vector: Vector) -> Vector:
        """Rotates a 3D vector: the vector part of q * (0, v) * q^-1."""
        pure = Quaternion.from_vector(vector)
        return (self * pure * self.invert()).vector

    def axis(self) -> Vector:
        """Rotation axis (normalized vector part). Undefined for the identity rotation."""
        return self.vector.normalize()

    def angle(self) -> float:
        """Rotation angle in radians, in [0, 2*pi]."""
        # atan2 stays accurate near 0 and pi where acos(W) loses precision.
        return 2.0 * math.atan2(self.vector.length(), self.W)

    def to_axis_angle(self) -> tuple[Vector, float]:
        """
        Converts this rotation to an (axis, angle) pair.
        A zero rotation has no defined axis; (1, 0, 0) is returned for it.
        """
        q = self.normalize()
        if q.vector.length_squared() == 0:
            return Vector((1.0, 0.0, 0.0)), 0.0
        return q.axis(), q.angle()

    def to_matrix(self) -> "Matrix":
        """Returns the 4x4 homogeneous rotation matrix of this quaternion."""
        from .matrix import Matrix
        return Matrix.rotate_3d(self)

    def slerp(self, other: "Quaternion", t: float) -> "Quaternion":
        """
        Spherical linear interpolation along the shorter arc.
        self is expected to be a unit quaternion; other is normalized here.
        """
        other = other.normalize()
        dot = self.dot(other)

        # q and -q are the same rotation; take the one on the near hemisphere.
        if dot < 0.0:
            logger.debug(f"slerp: negating target {other!r} to follow the shorter arc.")
            other = -other
            dot = -dot

        if dot > Settings.SLERP_DOT_THRESHOLD:
            logger.debug(f"slerp: inputs nearly parallel (dot={dot:.6f}), using normalized lerp.")
            return (self * (1.0 - t) + other * t).normalize()

        theta = math.acos(clamp(dot, -1.0, 1.0))
        sin_theta = math.sin(theta)
        s0 = math.sin((1.0 - t) * theta) / sin_theta
        s1 = math.sin(t * theta) / sin_theta
        return self * s0 + other * s1

    # --- Packing ---

    def to_bytes(self) -> bytes:
        """Packs the quaternion into bytes (16 bytes, 4 floats little-endian: X, Y, Z, W)."""
        return struct.pack('<ffff', self.X, self.Y, self.Z, self.W)

    @staticmethod
    def from_bytes(data: bytes, offset: int = 0) -> "Quaternion":
        """Unpacks a quaternion from bytes (16 bytes, 4 floats little-endian: X, Y, Z, W)."""
        if len(data) - offset < 16:
            raise ValueError("Not enough bytes to unpack Quaternion. Need 16.")
        x, y, z, w = struct.unpack_from('<ffff', data, offset)
        return Quaternion(w, x, y, z)


def _axis_vector(axis) -> Vector:
    """Turns an axis argument (Vector, sequence or basis index) into a 3D vector."""
    if isinstance(axis, int):
        return Vector.basis(axis, 3)
    if not isinstance(axis, Vector):
        axis = Vector(tuple(axis))
    if len(axis) != 3:
        raise DimensionMismatchError(f"Rotation axis must be 3-dimensional, got {len(axis)}.")
    return axis
