import numpy as np
import pytest

from planar_rbd import SpatialMath, SpatialOperator, SpatialVector


@pytest.fixture(scope="module")
def setup_test():
    np.random.seed(42)
    rand = lambda *shape: (np.random.rand(*shape) - 0.5) * 5
    return SpatialMath(), rand


def test_cross_conventions(setup_test):
    math, rand = setup_test
    r, f = rand(2), rand(2)
    w = rand()
    r3, f3 = np.append(r, 0.0), np.append(f, 0.0)
    assert math.cross(r, f) - np.cross(r3, f3)[2] == pytest.approx(0.0, abs=1e-12)
    # r x (w k) and (w k) x r
    assert math.cross_vs(r, w) - np.cross(r3, [0.0, 0.0, w])[:2] == pytest.approx(
        0.0, abs=1e-12
    )
    assert math.cross_sv(w, r) - np.cross([0.0, 0.0, w], r3)[:2] == pytest.approx(
        0.0, abs=1e-12
    )


def test_twist_of_a_rotation(setup_test):
    math, rand = setup_test
    center, point = rand(2), rand(2)
    rate = rand()
    twist = math.twist(rate, center)
    # velocity of a point: v(origin) + w x (point - origin)
    velocity = twist.planar + math.cross_sv(twist.axial, point)
    expected = math.cross_sv(rate, point - center)
    assert velocity - expected == pytest.approx(0.0, abs=1e-12)
    assert math.twist_center(twist) - center == pytest.approx(0.0, abs=1e-12)


def test_wrench_of_a_force(setup_test):
    math, rand = setup_test
    force, position = rand(2), rand(2)
    wrench = math.wrench(force, position)
    assert wrench.planar - force == pytest.approx(0.0)
    assert wrench.axial - math.cross(position, force) == pytest.approx(0.0, abs=1e-12)
    center = math.wrench_center(wrench)
    # the center lies on the line of action
    assert math.cross(center - position, force) == pytest.approx(0.0, abs=1e-12)
    assert center @ force == pytest.approx(0.0, abs=1e-12)


def test_pure_quantities(setup_test):
    math, rand = setup_test
    v = rand(2)
    assert math.pure_twist(v).array - np.append(v, 0.0) == pytest.approx(0.0)
    assert math.pure_wrench(2.5).array - [0.0, 0.0, 2.5] == pytest.approx(0.0)


def test_power_is_frame_independent(setup_test):
    math, rand = setup_test
    rate, center = rand(), rand(2)
    force, position = rand(2), rand(2)
    power = math.twist(rate, center).dot(math.wrench(force, position))
    # power of a force on a rotating body: F . v(position)
    expected = force @ math.cross_sv(rate, position - center)
    assert power - expected == pytest.approx(0.0, abs=1e-12)


def test_cross_products_duality(setup_test):
    math, rand = setup_test
    v, u = SpatialVector(rand(3)), SpatialVector(rand(3))
    f = SpatialVector(rand(3))
    # (v x u) . f + u . (v x* f) = 0
    assert math.twist_cross(v, u).dot(f) + u.dot(math.wrench_cross(v, f)) == pytest.approx(
        0.0, abs=1e-12
    )
    assert math.twist_cross(v, v).array == pytest.approx(0.0, abs=1e-12)


def test_spatial_inertia(setup_test):
    math, rand = setup_test
    mass, inertia, cg = 1.0 + np.random.rand(), np.random.rand(), rand(2)
    I = math.spatial_inertia(mass, inertia, cg)
    assert I.is_symmetric(atol=1e-12)
    assert np.all(np.linalg.eigvalsh(I.array) > 0.0)
    # kinetic energy of a body rotating about its cg
    rate = rand()
    twist = math.twist(rate, cg)
    assert 0.5 * twist.dot(I @ twist) - 0.5 * inertia * rate**2 == pytest.approx(
        0.0, abs=1e-12
    )
    # momentum of a pure translation
    v = rand(2)
    momentum = I @ math.pure_twist(v)
    assert momentum.planar - mass * v == pytest.approx(0.0, abs=1e-12)
    assert momentum.axial - math.cross(cg, mass * v) == pytest.approx(0.0, abs=1e-12)


def test_spatial_mobility(setup_test):
    math, rand = setup_test
    mass, inertia, cg = 1.0 + np.random.rand(), 0.1 + np.random.rand(), rand(2)
    I = math.spatial_inertia(mass, inertia, cg)
    M = math.spatial_mobility(mass, inertia, cg)
    assert (M @ I).array - np.eye(3) == pytest.approx(0.0, abs=1e-10)
    assert M.array - I.inverse().array == pytest.approx(0.0, abs=1e-10)


def test_vector_algebra(setup_test):
    math, rand = setup_test
    a, b = SpatialVector(rand(3)), SpatialVector(rand(3))
    assert (a + b).array - (a.array + b.array) == pytest.approx(0.0)
    assert (a - b).array - (a.array - b.array) == pytest.approx(0.0)
    assert (-a).array + a.array == pytest.approx(0.0)
    assert (2.0 * a).array - (a * 2.0).array == pytest.approx(0.0)
    assert (np.float64(3.0) * a).array - 3.0 * a.array == pytest.approx(0.0)
    assert (a / 4.0).array - a.array / 4.0 == pytest.approx(0.0)
    assert a.dot(b) - a.array @ b.array == pytest.approx(0.0)
    assert a.outer(b).array - np.outer(a.array, b.array) == pytest.approx(0.0)
    with pytest.raises(ValueError):
        a.array[0] = 1.0


def test_operator_algebra(setup_test):
    math, rand = setup_test
    A = SpatialOperator(rand(3, 3) + 3 * np.eye(3))
    B = SpatialOperator(rand(3, 3))
    v = SpatialVector(rand(3))
    assert (A @ B).array - A.array @ B.array == pytest.approx(0.0, abs=1e-12)
    assert (A @ v).array - A.array @ v.array == pytest.approx(0.0, abs=1e-12)
    assert (1.0 - A).array - (np.eye(3) - A.array) == pytest.approx(0.0)
    assert (A + 2.0).array - (A.array + 2 * np.eye(3)) == pytest.approx(0.0)
    assert A.T.array - A.array.T == pytest.approx(0.0)
    assert A.trace() - np.trace(A.array) == pytest.approx(0.0)
    assert A.determinant() - np.linalg.det(A.array) == pytest.approx(0.0, abs=1e-10)
    assert (A @ A.solve(v)).array - v.array == pytest.approx(0.0, abs=1e-10)
    assert (A.solve(B)).array - np.linalg.solve(A.array, B.array) == pytest.approx(
        0.0, abs=1e-10
    )


def test_operator_blocks(setup_test):
    math, rand = setup_test
    matrix, upper, lower, scalar = rand(2, 2), rand(2), rand(2), rand()
    X = SpatialOperator.from_blocks(matrix, upper, lower, scalar)
    assert X.matrix - matrix == pytest.approx(0.0)
    assert X.upper - upper == pytest.approx(0.0)
    assert X.lower - lower == pytest.approx(0.0)
    assert X.scalar - scalar == pytest.approx(0.0)
    assert SpatialOperator.from_blocks(2.0, upper, lower, scalar).matrix - 2 * np.eye(
        2
    ) == pytest.approx(0.0)
    rows = [SpatialVector(rand(3)) for _ in range(3)]
    assert SpatialOperator.from_rows(*rows).T.array - SpatialOperator.from_columns(
        *rows
    ).array == pytest.approx(0.0)
    assert SpatialOperator.diagonal([1.0, 2.0], 3.0).array - np.diag(
        [1.0, 2.0, 3.0]
    ) == pytest.approx(0.0)
