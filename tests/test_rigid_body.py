import numpy as np
import pytest

from planar_rbd import DegenerateBodyError, RigidBody, SpatialMath


def test_bob():
    body = RigidBody.bob(2.0, 1.5)
    assert body.inertia == 0.0
    assert body.cg_offset == pytest.approx(1.5)


def test_rod():
    body = RigidBody.rod(3.0, 2.0)
    assert body.inertia == pytest.approx(3.0 * 4.0 / 12.0)
    assert body.cg_offset == pytest.approx(1.0)


@pytest.mark.parametrize(
    "mass, inertia, length, cg_ratio",
    [
        (0.0, 1.0, 1.0, 0.5),
        (-1.0, 1.0, 1.0, 0.5),
        (1.0, -0.1, 1.0, 0.5),
        (1.0, 0.1, -1.0, 0.5),
        (1.0, 0.1, 1.0, 1.5),
        (1.0, 0.1, 1.0, -0.1),
        (np.nan, 0.1, 1.0, 0.5),
        (1.0, np.inf, 1.0, 0.5),
    ],
)
def test_invalid_bodies(mass, inertia, length, cg_ratio):
    with pytest.raises(DegenerateBodyError):
        RigidBody(mass=mass, inertia=inertia, length=length, cg_ratio=cg_ratio)


def test_weight_wrench():
    body = RigidBody.rod(2.0, 1.0)
    cg = np.array([0.3, 0.4])
    g = np.array([0.0, -10.0])
    weight = body.weight_wrench(cg, g)
    assert weight.planar - [0.0, -20.0] == pytest.approx(0.0)
    assert weight.axial - SpatialMath.cross(cg, 2.0 * g) == pytest.approx(0.0)


def test_spatial_mobility():
    body = RigidBody(mass=2.0, inertia=0.3, length=1.0, cg_ratio=0.5)
    cg = np.array([0.5, -0.2])
    product = body.spatial_mobility(cg) @ body.spatial_inertia(cg)
    assert product.array - np.eye(3) == pytest.approx(0.0, abs=1e-12)
    with pytest.raises(DegenerateBodyError):
        RigidBody.bob(1.0, 1.0).spatial_mobility(cg)


def test_frozen():
    body = RigidBody.rod(1.0, 1.0)
    with pytest.raises(AttributeError):
        body.mass = 2.0
