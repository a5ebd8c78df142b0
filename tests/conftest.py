import dataclasses
import logging
from itertools import product

import numpy as np
import pytest

from planar_rbd import ArticulatedChain, RigidBody


@dataclasses.dataclass
class State:
    angle: np.ndarray
    speed: np.ndarray
    accel: np.ndarray
    torque: np.ndarray
    gravity: np.ndarray


@dataclasses.dataclass
class ChainCfg:
    chain_name: str
    n_dof: int
    bodies: list
    chain: ArticulatedChain


def get_bodies(chain_name: str, n_dof: int) -> list:
    if chain_name == "bobs":
        return [RigidBody.bob(1.0 + 0.5 * i, 1.0 - 0.1 * i) for i in range(n_dof)]
    if chain_name == "rods":
        return [RigidBody.rod(2.0 - 0.2 * i, 0.8 + 0.1 * i) for i in range(n_dof)]
    if chain_name == "mixed":
        return [
            RigidBody(mass=1.5 + i, inertia=0.05 * (i + 1), length=0.7, cg_ratio=0.3 + 0.1 * i)
            for i in range(n_dof)
        ]
    raise ValueError(f"Unknown chain: {chain_name}")


CHAINS = ["bobs", "rods", "mixed"]

N_DOFS = [1, 2, 5]

TEST_CONFIGURATIONS = list(product(CHAINS, N_DOFS))


@pytest.fixture(scope="module", params=TEST_CONFIGURATIONS, ids=str)
def tests_setup(request) -> ChainCfg | State:

    chain_name, n_dof = request.param

    np.random.seed(42)

    logging.basicConfig(level=logging.DEBUG)
    logging.debug("Showing the chain bodies.")

    bodies = get_bodies(chain_name, n_dof)
    g = np.array([0.0, -9.80665])
    chain = ArticulatedChain(bodies, gravity=g)

    state = State(
        angle=(np.random.rand(n_dof) - 0.5) * 5,
        speed=(np.random.rand(n_dof) - 0.5) * 5,
        accel=(np.random.rand(n_dof) - 0.5) * 5,
        torque=(np.random.rand(n_dof) - 0.5) * 5,
        gravity=g,
    )

    chain_cfg = ChainCfg(chain_name=chain_name, n_dof=n_dof, bodies=bodies, chain=chain)

    yield chain_cfg, state


def lagrangian_two_link(bodies: list, gravity: float):
    """Closed form mass matrix and bias torques of a two link chain with
    the gravity along -y, relative joint angles"""
    b1, b2 = bodies
    c1, c2 = b1.cg_offset, b2.cg_offset
    L1 = b1.length
    m1, m2 = b1.mass, b2.mass

    def mass_matrix(q):
        c = np.cos(q[1])
        M11 = b1.inertia + m1 * c1**2 + b2.inertia + m2 * (L1**2 + c2**2 + 2 * L1 * c2 * c)
        M12 = b2.inertia + m2 * (c2**2 + L1 * c2 * c)
        M22 = b2.inertia + m2 * c2**2
        return np.array([[M11, M12], [M12, M22]])

    def bias(q, qd):
        h = m2 * L1 * c2 * np.sin(q[1])
        coriolis = np.array([-h * (2 * qd[0] * qd[1] + qd[1] ** 2), h * qd[0] ** 2])
        g1 = gravity * (
            (m1 * c1 + m2 * L1) * np.cos(q[0]) + m2 * c2 * np.cos(q[0] + q[1])
        )
        g2 = gravity * m2 * c2 * np.cos(q[0] + q[1])
        return coriolis + np.array([g1, g2])

    return mass_matrix, bias
