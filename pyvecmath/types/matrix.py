import math
import struct
import logging
import dataclasses
from typing import Callable, Iterable, Optional, Sequence, Union

import numpy as np

from ..errors import DimensionMismatchError, DegenerateInputError
from ..settings import Settings
from ..utils.helpers import ieee_divide, lerp_angle
from .vector import Vector
from .quaternion import Quaternion

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class Matrix:
    """
    An immutable rows x cols matrix of floats, stored row-major as a tuple of rows.

    An (n+1)x(n+1) matrix whose last row is (0, ..., 0, 1) is an affine transform
    of n-dimensional space in homogeneous form: column n holds the translation and
    the leading n x n block a (possibly scaled) rotation. Multiplying such a matrix
    by an n-dimensional Vector treats the vector as a point (see __mul__).
    """
    values: tuple[tuple[float, ...], ...]

    def __post_init__(self):
        # Ensure all elements are floats and the content is an immutable rectangle.
        rows = tuple(tuple(float(v) for v in row) for row in self.values)
        if not rows or not rows[0]:
            raise DimensionMismatchError("Matrix must have at least one row and one column.")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise DimensionMismatchError("All matrix rows must have the same length.")
        object.__setattr__(self, "values", rows)

    # --- Construction ---

    @classmethod
    def from_list(cls, elements: Iterable[Iterable[float]]) -> "Matrix":
        """Creates a matrix from nested row lists."""
        return cls(tuple(tuple(row) for row in elements))

    @classmethod
    def generate(cls, rows: int, cols: int, generator: Callable[[int, int], float]) -> "Matrix":
        """Creates a rows x cols matrix whose (r, c) entry is generator(r, c)."""
        return cls(tuple(tuple(generator(r, c) for c in range(cols)) for r in range(rows)))

    @classmethod
    def from_rows(cls, *rows: Vector) -> "Matrix":
        return cls(tuple(row.components for row in rows))

    @classmethod
    def from_columns(cls, *columns: Vector) -> "Matrix":
        return cls(tuple(zip(*(col.components for col in columns))))

    @classmethod
    def identity(cls, size: int) -> "Matrix":
        return cls.generate(size, size, lambda r, c: 1.0 if r == c else 0.0)

    @classmethod
    def zero(cls, rows: int, cols: Optional[int] = None) -> "Matrix":
        """A matrix of zeroes; square when cols is omitted."""
        return cls.generate(rows, rows if cols is None else cols, lambda r, c: 0.0)

    # --- Accessors ---

    @property
    def height(self) -> int:
        return len(self.values)

    @property
    def width(self) -> int:
        return len(self.values[0])

    @property
    def shape(self) -> tuple[int, int]:
        return (self.height, self.width)

    @property
    def is_square(self) -> bool:
        return self.height == self.width

    def __getitem__(self, index: tuple[int, int]) -> float:
        row, col = index
        return self.values[row][col]

    def row(self, r: int) -> Vector:
        return Vector(self.values[r])

    def column(self, c: int) -> Vector:
        return Vector(tuple(row[c] for row in self.values))

    def to_tuple(self) -> tuple[tuple[float, ...], ...]:
        return self.values

    def __str__(self) -> str:
        p = Settings.STR_PRECISION
        return "\n".join("[" + ", ".join(f"{v:.{p}f}" for v in row) + "]" for row in self.values)

    def __repr__(self) -> str:
        return f"Matrix({self.values!r})"

    def is_close(self, other: "Matrix", tolerance: float = None) -> bool:
        """Elementwise comparison within tolerance. Matrices of different shape are never close."""
        if tolerance is None:
            tolerance = Settings.COMPARISON_TOLERANCE
        if self.shape != other.shape:
            return False
        return all(abs(a - b) <= tolerance
                   for row_a, row_b in zip(self.values, other.values)
                   for a, b in zip(row_a, row_b))

    def is_identity(self, tolerance: float = None) -> bool:
        return self.is_square and self.is_close(Matrix.identity(self.height), tolerance)

    # --- Arithmetic ---

    def _check_same_shape(self, other: "Matrix", operation: str) -> None:
        if self.shape != other.shape:
            raise DimensionMismatchError(
                f"Cannot {operation} a {self.height}x{self.width} matrix and a "
                f"{other.height}x{other.width} matrix.")

    def _require_square(self, operation: str) -> None:
        if not self.is_square:
            raise DimensionMismatchError(
                f"Cannot {operation} a non-square {self.height}x{self.width} matrix.")

    def __add__(self, other: "Matrix") -> "Matrix":
        if not isinstance(other, Matrix):
            return NotImplemented
        self._check_same_shape(other, "add")
        return Matrix(tuple(tuple(a + b for a, b in zip(row_a, row_b))
                            for row_a, row_b in zip(self.values, other.values)))

    def __sub__(self, other: "Matrix") -> "Matrix":
        if not isinstance(other, Matrix):
            return NotImplemented
        self._check_same_shape(other, "subtract")
        return Matrix(tuple(tuple(a - b for a, b in zip(row_a, row_b))
                            for row_a, row_b in zip(self.values, other.values)))

    def __mul__(self, other):
        """
        Matrix * Matrix: matrix product.
        Matrix * Vector: if len(v) == width, a plain linear map. If len(v) == width - 1,
            v is a cartesian point: it is made homogeneous, transformed, and projected back.
        Matrix * scalar: elementwise scaling.
        """
        if isinstance(other, Matrix):
            return self._mul_matrix(other)
        elif isinstance(other, Vector):
            return self._mul_vector(other)
        elif isinstance(other, (int, float)):
            return Matrix(tuple(tuple(v * other for v in row) for row in self.values))
        return NotImplemented

    def __rmul__(self, scalar):
        if isinstance(scalar, (int, float)):
            return self.__mul__(scalar)
        return NotImplemented

    def __matmul__(self, other):
        if isinstance(other, (Matrix, Vector)):
            return self.__mul__(other)
        return NotImplemented

    def __truediv__(self, scalar) -> "Matrix":
        if not isinstance(scalar, (int, float)):
            return NotImplemented
        return Matrix(tuple(tuple(ieee_divide(v, scalar) for v in row) for row in self.values))

    def __neg__(self) -> "Matrix":
        return Matrix(tuple(tuple(-v for v in row) for row in self.values))

    def __pow__(self, exponent: int) -> "Matrix":
        if not isinstance(exponent, int):
            return NotImplemented
        return self.power(exponent)

    def _mul_matrix(self, other: "Matrix") -> "Matrix":
        if self.width != other.height:
            raise DimensionMismatchError(
                f"Cannot multiply a {self.height}x{self.width} matrix by a "
                f"{other.height}x{other.width} matrix.")
        columns = tuple(zip(*other.values))
        return Matrix(tuple(tuple(sum(a * b for a, b in zip(row, col)) for col in columns)
                            for row in self.values))

    def _mul_vector(self, v: Vector) -> Vector:
        if len(v) == self.width:
            return Vector(tuple(sum(a * b for a, b in zip(row, v.components)) for row in self.values))
        elif len(v) + 1 == self.width:
            return self._mul_vector(v.to_homogeneous()).to_cartesian()
        raise DimensionMismatchError(
            f"Cannot apply a {self.height}x{self.width} matrix to a {len(v)}-dimensional vector "
            f"(expected {self.width} or {self.width - 1}).")

    def power(self, exponent: int) -> "Matrix":
        """Repeated multiplication; 0 gives the identity, negative exponents use the inverse."""
        self._require_square("raise to a power")
        if exponent == 1:
            return self
        elif exponent == 0:
            return Matrix.identity(self.height)
        elif exponent < 0:
            return self.invert().power(-exponent)
        return self * self.power(exponent - 1)

    def transpose(self) -> "Matrix":
        return Matrix(tuple(zip(*self.values)))

    def trace(self) -> float:
        self._require_square("take the trace of")
        return sum(self.values[i][i] for i in range(self.height))

    # --- Determinant and inverse ---
    # Recursive cofactor expansion costs O(n!). That is fine for the 2..5 sized
    # matrices used in graphics; bigger matrices would need an LU decomposition
    # behind the same determinant()/invert() interface.

    def determinant(self) -> float:
        """Laplace expansion along the first row."""
        self._require_square("take the determinant of")
        if self.height > Settings.COFACTOR_WARN_SIZE:
            logger.warning(
                f"Cofactor expansion of a {self.height}x{self.width} matrix is O(n!) and will be slow.")
        return self._expand_determinant()

    def _expand_determinant(self) -> float:
        if self.height == 1:
            return self.values[0][0]
        return sum(self.values[0][c] * self._cofactor(0, c) for c in range(self.width))

    def _cofactor(self, r: int, c: int) -> float:
        sign = 1.0 if (r + c) % 2 == 0 else -1.0
        return self.submatrix(r, c)._expand_determinant() * sign

    def submatrix(self, r: int, c: int) -> "Matrix":
        """Returns this matrix with row r and column c removed."""
        if self.height < 2 or self.width < 2:
            raise DimensionMismatchError(
                f"A {self.height}x{self.width} matrix has no submatrix.")
        if not 0 <= r < self.height or not 0 <= c < self.width:
            raise IndexError(f"Entry ({r}, {c}) is outside a {self.height}x{self.width} matrix.")
        return Matrix(tuple(tuple(v for j, v in enumerate(row) if j != c)
                            for i, row in enumerate(self.values) if i != r))

    def minor(self, r: int, c: int) -> float:
        """Determinant of submatrix(r, c)."""
        self._require_square("take a minor of")
        return self.submatrix(r, c).determinant()

    def cofactor(self, r: int, c: int) -> float:
        """minor(r, c) * (-1)^(r+c)."""
        self._require_square("take a cofactor of")
        return self._cofactor(r, c)

    def minor_matrix(self) -> "Matrix":
        self._require_square("take the minors of")
        return Matrix.generate(self.height, self.width, lambda r, c: self.submatrix(r, c)._expand_determinant())

    def cofactor_matrix(self) -> "Matrix":
        self._require_square("take the cofactors of")
        return Matrix.generate(self.height, self.width, self._cofactor)

    def adjugate(self) -> "Matrix":
        """Transpose of the cofactor matrix. The adjugate of a 1x1 matrix is [[1]]."""
        self._require_square("take the adjugate of")
        if self.height == 1:
            return Matrix.identity(1)
        return self.cofactor_matrix().transpose()

    def invert(self) -> "Matrix":
        """Returns adjugate / determinant."""
        det = self.determinant()
        if det == 0:
            logger.debug(f"invert: {self.height}x{self.width} matrix {self!r} is singular.")
            raise DegenerateInputError("Matrix is singular and cannot be inverted (determinant is zero).")
        return self.adjugate() / det

    def change_basis(self, basis: "Matrix") -> "Matrix":
        """Expresses this transform in the coordinate system whose basis vectors are the columns of basis."""
        return basis.invert() * self

    # --- Transform construction ---

    @staticmethod
    def translate(*translation) -> "Matrix":
        """Homogeneous translation matrix. Accepts a Vector, a sequence, or the components."""
        t = _vector_argument(translation)
        n = len(t)
        return Matrix.generate(n + 1, n + 1,
                               lambda r, c: 1.0 if r == c else (t[r] if c == n else 0.0))

    @staticmethod
    def scale(*scale) -> "Matrix":
        """Homogeneous per-axis scale matrix. Accepts a Vector, a sequence, or the components."""
        s = _vector_argument(scale)
        n = len(s)
        return Matrix.generate(n + 1, n + 1,
                               lambda r, c: (s[r] if r < n else 1.0) if r == c else 0.0)

    @staticmethod
    def rotate_2d(angle: float, pivot=None) -> "Matrix":
        """Counter-clockwise rotation of the plane by angle radians, about pivot (default origin)."""
        c = math.cos(angle)
        s = math.sin(angle)
        rotation = Matrix((
            (c,   -s,  0.0),
            (s,    c,  0.0),
            (0.0, 0.0, 1.0),
        ))
        if pivot is None:
            return rotation
        pivot = _vector_argument((pivot,))
        return Matrix.translate(pivot) * rotation * Matrix.translate(-pivot)

    @staticmethod
    def rotate_3d(rotation: Union[Quaternion, float], axis=None, *, pivot=None) -> "Matrix":
        """
        Homogeneous 4x4 rotation matrix.

        rotation is either a Quaternion (normalized here) or an angle in radians,
        in which case axis is required: a 3D vector or a basis axis index 0/1/2.
        pivot, when given, is the fixed point of the rotation. With a quaternion the
        second positional argument is the pivot: rotate_3d(q, pivot).
        """
        if isinstance(rotation, Quaternion):
            if axis is not None:
                if pivot is not None:
                    raise TypeError("A quaternion rotation takes a pivot but no axis.")
                pivot = axis
            q = rotation.normalize()
        else:
            if axis is None:
                raise TypeError("An axis is required when rotating by an angle.")
            q = Quaternion.angle_axis(rotation, axis)

        a, b, c, d = q.W, q.X, q.Y, q.Z
        m = Matrix((
            (a*a + b*b - c*c - d*d, 2*b*c - 2*a*d,         2*b*d + 2*a*c,         0.0),
            (2*b*c + 2*a*d,         a*a - b*b + c*c - d*d, 2*c*d - 2*a*b,         0.0),
            (2*b*d - 2*a*c,         2*c*d + 2*a*b,         a*a - b*b - c*c + d*d, 0.0),
            (0.0,                   0.0,                   0.0,                   1.0),
        ))
        if pivot is None:
            return m
        pivot = _vector_argument((pivot,))
        return Matrix.translate(pivot) * m * Matrix.translate(-pivot)

    @staticmethod
    def compose_transform(translation, rotation: Union[float, Quaternion], scale=None) -> "Matrix":
        """
        translate(translation) * rotate(rotation) * scale(scale).
        Applied to a point: scale first (local space), then rotation, then translation.
        rotation is an angle for 2D transforms and a Quaternion for 3D ones.
        """
        if isinstance(rotation, Quaternion):
            r = Matrix.rotate_3d(rotation)
        else:
            r = Matrix.rotate_2d(rotation)
        m = Matrix.translate(_vector_argument((translation,))) * r
        if scale is not None:
            m = m * Matrix.scale(_vector_argument((scale,)))
        return m

    # --- Decomposition ---

    def _require_affine(self, operation: str, size: Optional[int] = None) -> None:
        if not self.is_square or self.height < 2 or (size is not None and self.height != size):
            expected = f"{size}x{size}" if size is not None else "(n+1)x(n+1)"
            raise DimensionMismatchError(
                f"{operation} needs a {expected} homogeneous matrix, got {self.height}x{self.width}.")

    def get_translation(self) -> Vector:
        """Cartesian projection of the last column."""
        self._require_affine("get_translation")
        return self.column(self.width - 1).to_cartesian()

    def get_scale(self) -> Vector:
        """Length of each of the first n columns, the per-axis scale of the linear block."""
        self._require_affine("get_scale")
        return Vector.generate(self.width - 1, lambda i: self.column(i).length())

    def get_rotation_matrix(self) -> "Matrix":
        """
        Pure rotation in homogeneous form: translation and scale removed.
        For M = T * R * S this is T^-1 * M * S^-1.
        """
        self._require_affine("get_rotation_matrix")
        without_translation = Matrix.translate(-self.get_translation()) * self
        return without_translation * Matrix.scale(self.get_scale()).invert()

    def get_rotation_2d(self) -> float:
        """Rotation angle in radians, in (-pi, pi], of a 3x3 affine matrix."""
        self._require_affine("get_rotation_2d", 3)
        r = self.get_rotation_matrix()
        # atan2 of sin/cos keeps the sign; acos of r[0, 0] alone cannot tell theta from -theta.
        return math.atan2(r[1, 0], r[0, 0])

    def get_rotation_3d(self) -> Quaternion:
        """Rotation of a 4x4 affine matrix as a unit quaternion."""
        self._require_affine("get_rotation_3d", 4)
        r = self.get_rotation_matrix()
        m00, m01, m02 = r[0, 0], r[0, 1], r[0, 2]
        m10, m11, m12 = r[1, 0], r[1, 1], r[1, 2]
        m20, m21, m22 = r[2, 0], r[2, 1], r[2, 2]

        # Magnitudes from sums/differences of the diagonal; max() absorbs round-off below zero.
        w = 0.5 * math.sqrt(max(0.0, 1.0 + m00 + m11 + m22))
        x = 0.5 * math.sqrt(max(0.0, 1.0 + m00 - m11 - m22))
        y = 0.5 * math.sqrt(max(0.0, 1.0 - m00 + m11 - m22))
        z = 0.5 * math.sqrt(max(0.0, 1.0 - m00 - m11 + m22))

        if w > Settings.HALF_TURN_EPSILON:
            # Antisymmetric differences are 4*w*x, 4*w*y, 4*w*z.
            x = math.copysign(x, m21 - m12)
            y = math.copysign(y, m02 - m20)
            z = math.copysign(z, m10 - m01)
        else:
            # Half turn: the differences vanish. The symmetric sums 4xy, 4xz, 4yz
            # give the signs relative to the largest component, kept positive.
            logger.debug("get_rotation_3d: half-turn rotation, resolving signs from symmetric terms.")
            if x >= y and x >= z:
                y = math.copysign(y, m01 + m10)
                z = math.copysign(z, m02 + m20)
            elif y >= z:
                x = math.copysign(x, m01 + m10)
                z = math.copysign(z, m12 + m21)
            else:
                x = math.copysign(x, m02 + m20)
                y = math.copysign(y, m12 + m21)

        return Quaternion(w, x, y, z).normalize()

    def interpolate(self, other: "Matrix", t: float) -> "Matrix":
        """
        Interpolates between two affine transforms without shear: both are decomposed,
        translation and scale are lerped, rotation follows the shorter arc (2D) or
        slerp (3D), and the result is recomposed.
        """
        self._check_same_shape(other, "interpolate")
        translation = self.get_translation().lerp(other.get_translation(), t)
        scale = self.get_scale().lerp(other.get_scale(), t)
        if self.shape == (3, 3):
            rotation = lerp_angle(self.get_rotation_2d(), other.get_rotation_2d(), t)
        elif self.shape == (4, 4):
            rotation = self.get_rotation_3d().slerp(other.get_rotation_3d(), t)
        else:
            raise DimensionMismatchError(
                f"interpolate needs 3x3 (2D) or 4x4 (3D) affine matrices, got {self.height}x{self.width}.")
        return Matrix.compose_transform(translation, rotation, scale)

    # --- Packing ---

    def to_bytes_row_major(self) -> bytes:
        """Packs the matrix as little-endian float32 values in row-major order."""
        flat = [v for row in self.values for v in row]
        return struct.pack(f'<{len(flat)}f', *flat)

    def to_bytes_column_major(self) -> bytes:
        """Packs the matrix in column-major order (OpenGL default)."""
        return self.transpose().to_bytes_row_major()

    @staticmethod
    def from_bytes_row_major(data: bytes, rows: int, cols: int, offset: int = 0) -> "Matrix":
        needed = 4 * rows * cols
        if len(data) - offset < needed:
            raise ValueError(f"Not enough bytes to unpack a {rows}x{cols} Matrix (row-major). Need {needed}.")
        flat = struct.unpack_from(f'<{rows * cols}f', data, offset)
        return Matrix(tuple(flat[r * cols:(r + 1) * cols] for r in range(rows)))

    def to_numpy(self, dtype=np.float64) -> np.ndarray:
        return np.array(self.values, dtype=dtype)

    @staticmethod
    def from_numpy(array) -> "Matrix":
        values = np.asarray(array, dtype=np.float64)
        if values.ndim != 2:
            raise DimensionMismatchError(f"Expected a 2-D array, got shape {values.shape}.")
        return Matrix(tuple(tuple(row) for row in values.tolist()))

    def transform_points(self, points) -> np.ndarray:
        """
        Applies this matrix to every row of an (N, k) array in one vectorized step,
        with the same rule as Matrix * Vector: k == width is a plain linear map and
        k == width - 1 treats the rows as cartesian points.
        """
        pts = np.asarray(points, dtype=np.float64)
        if pts.ndim != 2:
            raise DimensionMismatchError(f"Expected an (N, k) array of points, got shape {pts.shape}.")
        m = self.to_numpy()
        k = pts.shape[1]
        if k == self.width:
            return pts @ m.T
        elif k + 1 == self.width:
            if self.height < 2:
                raise DimensionMismatchError("A homogeneous vector needs at least two components.")
            homogeneous = np.hstack([pts, np.ones((pts.shape[0], 1))])
            result = homogeneous @ m.T
            # Points at infinity (w == 0) give inf/nan like Vector.to_cartesian().
            with np.errstate(divide="ignore", invalid="ignore"):
                return result[:, :-1] / result[:, -1:]
        raise DimensionMismatchError(
            f"Cannot apply a {self.height}x{self.width} matrix to {k}-dimensional points "
            f"(expected {self.width} or {self.width - 1}).")


def _vector_argument(args: Sequence) -> Vector:
    """Accepts (Vector,), (sequence,) or the bare components, as translate(1, 2, 3) does."""
    if len(args) == 1:
        value = args[0]
        if isinstance(value, Vector):
            return value
        if isinstance(value, (tuple, list, np.ndarray)):
            return Vector(tuple(value))
    return Vector(tuple(args))
