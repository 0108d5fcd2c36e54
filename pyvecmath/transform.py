import dataclasses
from typing import Union

from .errors import DimensionMismatchError
from .settings import Settings
from .types.vector import Vector
from .types.quaternion import Quaternion
from .types.matrix import Matrix
from .utils.helpers import lerp_angle, shortest_angle_delta


@dataclasses.dataclass(frozen=True, slots=True)
class Transform:
    """
    Combined translation, rotation and scale: the decomposed form of an affine matrix.

    rotation is an angle in radians for 2D transforms and a Quaternion for 3D ones.
    Applied to a point the scale happens first, then the rotation, then the translation.
    """
    translation: Vector
    rotation: Union[float, Quaternion]
    scale: Vector

    def __post_init__(self):
        if not isinstance(self.rotation, Quaternion):
            object.__setattr__(self, "rotation", float(self.rotation))
        if len(self.translation) != len(self.scale):
            raise DimensionMismatchError(
                f"Translation ({len(self.translation)}D) and scale ({len(self.scale)}D) must match.")
        expected = 3 if isinstance(self.rotation, Quaternion) else 2
        if len(self.translation) != expected:
            raise DimensionMismatchError(
                f"A {type(self.rotation).__name__} rotation needs {expected}D translation and scale, "
                f"got {len(self.translation)}D.")

    @staticmethod
    def identity(dimensions: int = 3) -> "Transform":
        if dimensions == 2:
            return Transform(Vector.zero(2), 0.0, Vector.one(2))
        elif dimensions == 3:
            return Transform(Vector.zero(3), Quaternion.identity(), Vector.one(3))
        raise DimensionMismatchError(f"Transforms exist for 2 or 3 dimensions, not {dimensions}.")

    @staticmethod
    def from_matrix(matrix: Matrix) -> "Transform":
        """Decomposes a 3x3 (2D) or 4x4 (3D) affine matrix. Shear is not represented."""
        if matrix.shape == (3, 3):
            rotation = matrix.get_rotation_2d()
        elif matrix.shape == (4, 4):
            rotation = matrix.get_rotation_3d()
        else:
            raise DimensionMismatchError(
                f"Cannot decompose a {matrix.height}x{matrix.width} matrix into a Transform.")
        return Transform(matrix.get_translation(), rotation, matrix.get_scale())

    @property
    def dimensions(self) -> int:
        return len(self.translation)

    def to_matrix(self) -> Matrix:
        return Matrix.compose_transform(self.translation, self.rotation, self.scale)

    def apply(self, point: Vector) -> Vector:
        """Transforms a cartesian point."""
        return self.to_matrix() * point

    def lerp(self, other: "Transform", t: float) -> "Transform":
        if self.dimensions != other.dimensions:
            raise DimensionMismatchError(
                f"Cannot interpolate a {self.dimensions}D transform with a {other.dimensions}D one.")
        if isinstance(self.rotation, Quaternion):
            rotation = self.rotation.normalize().slerp(other.rotation, t)
        else:
            rotation = lerp_angle(self.rotation, other.rotation, t)
        return Transform(
            translation=self.translation.lerp(other.translation, t),
            rotation=rotation,
            scale=self.scale.lerp(other.scale, t),
        )

    def is_close(self, other: "Transform", tolerance: float = None) -> bool:
        """
        Tolerant comparison. Quaternion rotations compare equal up to sign since
        q and -q are the same rotation; 2D angles are compared modulo a full turn.
        """
        if tolerance is None:
            tolerance = Settings.COMPARISON_TOLERANCE
        if self.dimensions != other.dimensions:
            return False
        if not (self.translation.is_close(other.translation, tolerance)
                and self.scale.is_close(other.scale, tolerance)):
            return False
        if isinstance(self.rotation, Quaternion):
            return (self.rotation.is_close(other.rotation, tolerance)
                    or self.rotation.is_close(-other.rotation, tolerance))
        return abs(shortest_angle_delta(self.rotation, other.rotation)) <= tolerance
