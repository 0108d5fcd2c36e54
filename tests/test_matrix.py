import logging
import math
import os
import random
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import numpy as np
import pytest

from pyvecmath import Vector, Matrix, Quaternion, Settings
from pyvecmath.errors import DimensionMismatchError, DegenerateInputError, DomainError


def random_matrix(rng, rows, cols=None, spread=5.0):
    return Matrix.generate(rows, rows if cols is None else cols, lambda r, c: rng.uniform(-spread, spread))


def random_unit_quaternion(rng):
    return Quaternion(rng.gauss(0, 1), rng.gauss(0, 1), rng.gauss(0, 1), rng.gauss(0, 1)).normalize()


def test_construction():
    m = Matrix(((1, 2), (3, 4)))
    assert m.to_tuple() == ((1.0, 2.0), (3.0, 4.0))
    assert Matrix.from_list([[1, 2], [3, 4]]) == m
    assert Matrix.generate(2, 2, lambda r, c: 2 * r + c + 1) == m
    assert Matrix.from_rows(Vector.of(1, 2), Vector.of(3, 4)) == m
    assert Matrix.from_columns(Vector.of(1, 3), Vector.of(2, 4)) == m
    assert Matrix.identity(2) == Matrix(((1, 0), (0, 1)))
    assert Matrix.zero(2, 3).shape == (2, 3)
    assert Matrix.zero(3).shape == (3, 3)


def test_invalid_shapes_rejected():
    with pytest.raises(DimensionMismatchError):
        Matrix(((1, 2), (3,)))
    with pytest.raises(DimensionMismatchError):
        Matrix(())
    with pytest.raises(DimensionMismatchError):
        Matrix(((),))


def test_accessors():
    m = Matrix(((1, 2, 3), (4, 5, 6)))
    assert (m.height, m.width) == (2, 3)
    assert m.shape == (2, 3)
    assert not m.is_square
    assert m[1, 2] == 6.0
    assert m.row(0) == Vector.of(1, 2, 3)
    assert m.column(1) == Vector.of(2, 5)


def test_str():
    assert str(Matrix(((1, 2), (3, 4)))) == "[1.000, 2.000]\n[3.000, 4.000]"


def test_add_sub_scale():
    a = Matrix(((1, 2), (3, 4)))
    b = Matrix(((4, 3), (2, 1)))
    assert a + b == Matrix(((5, 5), (5, 5)))
    assert a - b == Matrix(((-3, -1), (1, 3)))
    assert a * 2 == Matrix(((2, 4), (6, 8)))
    assert 2 * a == a * 2
    assert a / 2 == Matrix(((0.5, 1), (1.5, 2)))
    assert -a == Matrix(((-1, -2), (-3, -4)))
    with pytest.raises(DimensionMismatchError):
        a + Matrix.identity(3)


def test_matrix_product():
    a = Matrix(((1, 2, 3), (4, 5, 6)))
    b = Matrix(((7, 8), (9, 10), (11, 12)))
    expected = Matrix(((58, 64), (139, 154)))
    assert a * b == expected
    assert a @ b == expected
    with pytest.raises(DimensionMismatchError):
        a * a


def test_identity_products():
    rng = random.Random(7)
    for n in (2, 3, 4):
        m = random_matrix(rng, n)
        v = Vector.generate(n, lambda i: rng.uniform(-5, 5))
        assert Matrix.identity(n) * v == v
        assert (m * Matrix.identity(n)).is_close(m)
        assert (Matrix.identity(n) * m).is_close(m)


def test_linear_vector_product():
    m = Matrix(((1, 2), (3, 4)))
    assert m * Vector.of(1, 1) == Vector.of(3, 7)
    assert m @ Vector.of(1, 1) == Vector.of(3, 7)


def test_homogeneous_vector_product():
    assert Matrix.translate(1, 2, 3) * Vector.of(0, 0, 0) == Vector.of(1, 2, 3)
    assert Matrix.translate(1, 2, 3) * Vector.of(0, 0, 0, 1) == Vector.of(1, 2, 3, 1)
    # A direction (w == 0) is not moved by a translation.
    assert Matrix.translate(1, 2, 3) * Vector.of(1, 0, 0, 0) == Vector.of(1, 0, 0, 0)


def test_vector_product_dimension_mismatch():
    with pytest.raises(DimensionMismatchError):
        Matrix.identity(4) * Vector.of(1, 2)
    with pytest.raises(DimensionMismatchError):
        Matrix.identity(3) * Vector.of(1, 2, 3, 4)


def test_perspective_divide():
    # Perspective matrix (fov 90 degrees, aspect 1, near 1, far 10) built by hand.
    near, far = 1.0, 10.0
    projection = Matrix((
        (1, 0, 0, 0),
        (0, 1, 0, 0),
        (0, 0, (far + near) / (near - far), 2 * far * near / (near - far)),
        (0, 0, -1, 0),
    ))
    on_near_plane = projection * Vector.of(0.5, -0.5, -near)
    on_far_plane = projection * Vector.of(5, 5, -far)
    assert on_near_plane.is_close(Vector.of(0.5, -0.5, -1))
    assert on_far_plane.is_close(Vector.of(0.5, 0.5, 1))


def test_power():
    m = Matrix(((1, 1), (0, 1)))
    assert m ** 0 == Matrix.identity(2)
    assert m ** 1 == m
    assert m.power(3) == Matrix(((1, 3), (0, 1)))
    assert (m ** -2).is_close(Matrix(((1, -2), (0, 1))))
    with pytest.raises(DimensionMismatchError):
        Matrix.zero(2, 3).power(2)


def test_transpose_and_trace():
    m = Matrix(((1, 2, 3), (4, 5, 6)))
    assert m.transpose() == Matrix(((1, 4), (2, 5), (3, 6)))
    assert Matrix(((1, 2), (3, 4))).trace() == 5.0
    with pytest.raises(DimensionMismatchError):
        m.trace()


def test_determinant_and_inverse_2x2():
    m = Matrix(((1, 2), (3, 4)))
    assert m.determinant() == -2.0
    assert m.invert().is_close(Matrix(((-2, 1), (1.5, -0.5))))


def test_determinant_1x1_and_3x3():
    assert Matrix(((7,),)).determinant() == 7.0
    m = Matrix(((2, 0, 1), (1, 3, 2), (1, 1, 2)))
    assert m.determinant() == pytest.approx(6.0)


def test_determinant_requires_square():
    with pytest.raises(DimensionMismatchError):
        Matrix.zero(2, 3).determinant()


def test_determinant_is_multiplicative():
    rng = random.Random(2024)
    for n in (2, 3, 4):
        a = random_matrix(rng, n)
        b = random_matrix(rng, n)
        assert (a * b).determinant() == pytest.approx(a.determinant() * b.determinant(), rel=1e-9, abs=1e-6)


def test_inverse_property():
    rng = random.Random(31337)
    for n in (1, 2, 3, 4, 5):
        # Diagonally dominant, so well conditioned.
        m = random_matrix(rng, n) + Matrix.identity(n) * 25
        assert (m * m.invert()).is_close(Matrix.identity(n), 1e-6)
        assert (m.invert() * m).is_close(Matrix.identity(n), 1e-6)


def test_singular_matrix():
    with pytest.raises(DegenerateInputError):
        Matrix(((1, 2), (2, 4))).invert()
    with pytest.raises(DegenerateInputError):
        Matrix.zero(3).invert()


def test_large_determinant_logs_warning(caplog):
    m = Matrix.identity(Settings.COFACTOR_WARN_SIZE + 1)
    with caplog.at_level(logging.WARNING, logger="pyvecmath"):
        assert m.determinant() == 1.0
    assert any("O(n!)" in record.getMessage() for record in caplog.records)


def test_submatrix_minor_cofactor():
    m = Matrix(((1, 2, 3), (4, 5, 6), (7, 8, 10)))
    assert m.submatrix(0, 1) == Matrix(((4, 6), (7, 10)))
    assert m.minor(0, 1) == pytest.approx(-2.0)
    assert m.cofactor(0, 1) == pytest.approx(2.0)
    assert m.minor_matrix()[0, 1] == pytest.approx(-2.0)
    assert m.cofactor_matrix()[0, 1] == pytest.approx(2.0)
    with pytest.raises(IndexError):
        m.submatrix(3, 0)


def test_adjugate():
    m = Matrix(((1, 2), (3, 4)))
    assert m.adjugate() == Matrix(((4, -2), (-3, 1)))
    assert Matrix(((5,),)).adjugate() == Matrix(((1,),))


def test_change_basis():
    basis = Matrix(((2, 0), (0, 2)))
    m = Matrix(((4, 2), (6, 8)))
    assert m.change_basis(basis).is_close(Matrix(((2, 1), (3, 4))))


def test_is_identity_and_is_close():
    assert Matrix.identity(4).is_identity()
    assert not Matrix.translate(1, 0).is_identity()
    assert not Matrix.zero(2, 3).is_identity()
    assert not Matrix.identity(2).is_close(Matrix.identity(3))


def test_translate_and_scale_builders():
    assert Matrix.translate(Vector.of(1, 2)) == Matrix.translate(1, 2)
    assert Matrix.translate((1, 2)) == Matrix(((1, 0, 1), (0, 1, 2), (0, 0, 1)))
    assert Matrix.scale(2, 3) == Matrix(((2, 0, 0), (0, 3, 0), (0, 0, 1)))
    assert Matrix.scale(2, 3, 4) * Vector.of(1, 1, 1) == Vector.of(2, 3, 4)


def test_rotate_2d():
    assert (Matrix.rotate_2d(math.pi / 2) * Vector.of(1, 0)).is_close(Vector.of(0, 1))
    pivot = Vector.of(1, 1)
    rotated = Matrix.rotate_2d(math.pi, pivot) * Vector.of(2, 1)
    assert rotated.is_close(Vector.of(0, 1))
    assert (Matrix.rotate_2d(0.3, pivot) * pivot).is_close(pivot)


def test_rotate_3d():
    rotated = Matrix.rotate_3d(math.pi / 2, (0, 0, 1)) * Vector.of(1, 0, 0)
    assert rotated.is_close(Vector.of(0, 1, 0))
    assert (Matrix.rotate_3d(math.pi / 2, 2) * Vector.of(1, 0, 0)).is_close(Vector.of(0, 1, 0))
    q = Quaternion.angle_axis(1.1, Vector.of(1, 2, 3))
    v = Vector.of(0.3, -2, 5)
    assert (Matrix.rotate_3d(q) * v).is_close(q.rotate(v))


def test_rotate_3d_about_pivot():
    pivot = Vector.of(1, 0, 0)
    q = Quaternion.angle_axis(math.pi / 2, 2)
    m = Matrix.rotate_3d(q, pivot)
    assert (m * pivot).is_close(pivot)
    assert (m * Vector.of(2, 0, 0)).is_close(Vector.of(1, 1, 0))
    assert Matrix.rotate_3d(math.pi / 2, 2, pivot=pivot).is_close(m)


def test_rotate_3d_argument_errors():
    with pytest.raises(TypeError):
        Matrix.rotate_3d(1.0)
    with pytest.raises(TypeError):
        Matrix.rotate_3d(Quaternion.identity(), Vector.of(0, 0, 1), pivot=Vector.of(0, 0, 0))
    with pytest.raises(DomainError):
        Matrix.rotate_3d(1.0, 3)
    with pytest.raises(DimensionMismatchError):
        Matrix.rotate_3d(1.0, Vector.of(0, 1))


def test_compose_transform_order():
    # Scale first, then rotate, then translate.
    m = Matrix.compose_transform(Vector.of(10, 0), math.pi / 2, Vector.of(2, 1))
    assert (m * Vector.of(1, 0)).is_close(Vector.of(10, 2))
    without_scale = Matrix.compose_transform(Vector.of(10, 0), math.pi / 2)
    assert (without_scale * Vector.of(1, 0)).is_close(Vector.of(10, 1))


def test_decompose_2d():
    m = Matrix.compose_transform(Vector.of(3, -4), 2.5, Vector.of(2, 0.5))
    assert m.get_translation().is_close(Vector.of(3, -4))
    assert m.get_scale().is_close(Vector.of(2, 0.5))
    assert m.get_rotation_2d() == pytest.approx(2.5)
    assert m.get_rotation_matrix().is_close(Matrix.rotate_2d(2.5))


def test_rotation_2d_keeps_sign():
    assert Matrix.rotate_2d(-1.0).get_rotation_2d() == pytest.approx(-1.0)


def test_decompose_3d_round_trip():
    rng = random.Random(42)
    for _ in range(50):
        t = Vector.generate(3, lambda i: rng.uniform(-10, 10))
        q = random_unit_quaternion(rng)
        s = Vector.generate(3, lambda i: rng.uniform(0.1, 5))
        m = Matrix.compose_transform(t, q, s)
        assert m.get_translation().is_close(t, 1e-6)
        assert m.get_scale().is_close(s, 1e-6)
        recovered = m.get_rotation_3d()
        assert recovered.is_close(q, 1e-6) or recovered.is_close(-q, 1e-6)


@pytest.mark.parametrize("axis", [
    Vector.of(1, 0, 0),
    Vector.of(0, 1, 0),
    Vector.of(0, 0, 1),
    Vector.of(1, 1, 0),
    Vector.of(0, -1, 1),
    Vector.of(1, -2, 3),
])
def test_half_turn_rotation_extraction(axis):
    q = Quaternion.angle_axis(math.pi, axis)
    recovered = Matrix.rotate_3d(q).get_rotation_3d()
    assert recovered.is_close(q, 1e-6) or recovered.is_close(-q, 1e-6)
    v = Vector.of(0.2, 0.7, -1.3)
    assert recovered.rotate(v).is_close(q.rotate(v), 1e-6)


def test_decomposition_shape_errors():
    with pytest.raises(DimensionMismatchError):
        Matrix.identity(4).get_rotation_2d()
    with pytest.raises(DimensionMismatchError):
        Matrix.identity(3).get_rotation_3d()
    with pytest.raises(DimensionMismatchError):
        Matrix.zero(3, 4).get_translation()


def test_interpolate_endpoints_2d():
    a = Matrix.compose_transform(Vector.of(0, 0), 3.0, Vector.of(1, 1))
    b = Matrix.compose_transform(Vector.of(4, 2), -3.0, Vector.of(3, 1))
    assert a.interpolate(b, 0).is_close(a)
    assert a.interpolate(b, 1).is_close(b)


def test_interpolate_2d_takes_short_arc():
    a = Matrix.rotate_2d(3.0)
    b = Matrix.rotate_2d(-3.0)
    middle = a.interpolate(b, 0.5)
    assert middle.is_close(Matrix.rotate_2d(math.pi))


def test_interpolate_3d():
    a = Matrix.compose_transform(Vector.of(0, 0, 0), Quaternion.identity(), Vector.of(1, 1, 1))
    b = Matrix.compose_transform(Vector.of(2, 4, 6), Quaternion.angle_axis(math.pi / 2, 2), Vector.of(3, 3, 3))
    assert a.interpolate(b, 0).is_close(a)
    assert a.interpolate(b, 1).is_close(b)
    expected = Matrix.compose_transform(
        Vector.of(1, 2, 3), Quaternion.angle_axis(math.pi / 4, 2), Vector.of(2, 2, 2))
    assert a.interpolate(b, 0.5).is_close(expected)


def test_interpolate_shape_errors():
    with pytest.raises(DimensionMismatchError):
        Matrix.identity(3).interpolate(Matrix.identity(4), 0.5)
    with pytest.raises(DimensionMismatchError):
        Matrix.identity(5).interpolate(Matrix.identity(5), 0.5)


def test_bytes_packing():
    m = Matrix(((1, 2), (3, 4)))
    row_major = m.to_bytes_row_major()
    assert len(row_major) == 16
    assert Matrix.from_bytes_row_major(row_major, 2, 2) == m
    assert Matrix.from_bytes_row_major(m.to_bytes_column_major(), 2, 2) == m.transpose()
    with pytest.raises(ValueError):
        Matrix.from_bytes_row_major(row_major, 3, 3)


def test_numpy_interop():
    m = Matrix(((1, 2), (3, 4)))
    assert np.array_equal(m.to_numpy(), np.array([[1.0, 2.0], [3.0, 4.0]]))
    assert Matrix.from_numpy(m.to_numpy()) == m
    with pytest.raises(DimensionMismatchError):
        Matrix.from_numpy(np.zeros(3))


def test_transform_points_matches_vector_product():
    rng = random.Random(5)
    m = Matrix.compose_transform(
        Vector.of(1, -2, 3), random_unit_quaternion(rng), Vector.of(2, 0.5, 1.5))
    points = np.array([[rng.uniform(-5, 5) for _ in range(3)] for _ in range(20)])
    batched = m.transform_points(points)
    for point, result in zip(points, batched):
        assert Vector.from_numpy(result).is_close(m * Vector.from_numpy(point), 1e-9)

    homogeneous = np.hstack([points, np.ones((20, 1))])
    batched = m.transform_points(homogeneous)
    for point, result in zip(homogeneous, batched):
        assert Vector.from_numpy(result).is_close(m * Vector.from_numpy(point), 1e-9)


def test_transform_points_dimension_mismatch():
    with pytest.raises(DimensionMismatchError):
        Matrix.identity(4).transform_points(np.zeros((5, 2)))
    with pytest.raises(DimensionMismatchError):
        Matrix.identity(4).transform_points(np.zeros(3))
