# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import logging
from typing import Sequence

import numpy as np
import numpy.typing as npt
from prettytable import PrettyTable

from planar_rbd.core.constants import GRAVITY
from planar_rbd.core.exceptions import (
    ChainConfigurationError,
    DimensionError,
)
from planar_rbd.core.rbd_algorithms import JointInput, RBDAlgorithms
from planar_rbd.core.spatial_math import SpatialMath
from planar_rbd.model.chain_state import ChainState
from planar_rbd.model.rigid_body import RigidBody
from planar_rbd.simulation.ode_model import OdeModel, SolutionPoint


class ArticulatedChain(OdeModel):
    """This is a small class that computes the dynamics of a planar serial chain
    of rigid bodies connected by revolute joints, and exposes it as an OdeModel
    with state [angles..., speeds...]."""

    def __init__(
        self, bodies: Sequence[RigidBody], gravity: npt.ArrayLike = GRAVITY
    ) -> None:
        """
        Args:
            bodies (Sequence[RigidBody]): the links, from the base to the tip
            gravity (npt.ArrayLike, optional): the gravity acceleration. Defaults to [0, -10].
        """
        bodies = tuple(bodies)
        if not bodies:
            raise ChainConfigurationError("A chain needs at least one body")
        for i, body in enumerate(bodies):
            if not isinstance(body, RigidBody):
                raise ChainConfigurationError(
                    f"Body {i} is a {type(body).__name__}, expected a RigidBody"
                )
        gravity = np.array(gravity, dtype=float)
        if gravity.shape != (2,) or not np.all(np.isfinite(gravity)):
            raise ChainConfigurationError(
                f"The gravity must be a finite 2-vector, got {gravity!r}"
            )
        gravity.setflags(write=False)

        self.rbdalgos = RBDAlgorithms(bodies=bodies, math=SpatialMath())
        self.NDoF = len(bodies)
        self.g = gravity
        self._check_effective_inertias()
        self._initial_state = SolutionPoint.build(0.0, np.zeros(2 * self.NDoF))
        self._log_bodies()

    @staticmethod
    def bobs(
        count: int, mass: float, length: float, gravity: npt.ArrayLike = GRAVITY
    ) -> "ArticulatedChain":
        """Chain of `count` identical point masses on massless links"""
        return ArticulatedChain([RigidBody.bob(mass, length)] * count, gravity=gravity)

    @staticmethod
    def rods(
        count: int, mass: float, length: float, gravity: npt.ArrayLike = GRAVITY
    ) -> "ArticulatedChain":
        """Chain of `count` identical uniform rods"""
        return ArticulatedChain([RigidBody.rod(mass, length)] * count, gravity=gravity)

    @property
    def bodies(self) -> tuple:
        return self.rbdalgos.bodies

    def inverse_dynamics(
        self,
        time: float,
        angle: npt.ArrayLike,
        speed: npt.ArrayLike,
        torque: JointInput = None,
    ) -> np.ndarray:
        """Returns the joint accelerations produced by the joint torques

        Args:
            time (float): the time
            angle (npt.ArrayLike): the joint angles
            speed (npt.ArrayLike): the joint speeds
            torque (JointInput, optional): (time, angle, speed) -> torque for each joint,
                or a vector of torques. Defaults to None, no torque.

        Returns:
            np.ndarray: the joint accelerations
        """
        return self.rbdalgos.inverse_dynamics(time, angle, speed, torque, self.g)

    def forward_dynamics(
        self,
        time: float,
        angle: npt.ArrayLike,
        speed: npt.ArrayLike,
        accel: JointInput = None,
    ) -> np.ndarray:
        """Returns the joint torques producing the joint accelerations

        Args:
            time (float): the time
            angle (npt.ArrayLike): the joint angles
            speed (npt.ArrayLike): the joint speeds
            accel (JointInput, optional): (time, angle, speed) -> acceleration for each joint,
                or a vector of accelerations. Defaults to None, no acceleration.

        Returns:
            np.ndarray: the joint torques
        """
        return self.rbdalgos.forward_dynamics(time, angle, speed, accel, self.g)

    def mass_matrix(self, angle: npt.ArrayLike) -> np.ndarray:
        return self.rbdalgos.mass_matrix(angle)

    def bias_torques(
        self, time: float, angle: npt.ArrayLike, speed: npt.ArrayLike
    ) -> np.ndarray:
        return self.rbdalgos.bias_torques(time, angle, speed, self.g)

    def joint_positions(self, angle: npt.ArrayLike) -> np.ndarray:
        return self.rbdalgos.joint_positions(angle)

    def center_of_mass_positions(self, angle: npt.ArrayLike) -> np.ndarray:
        return self.rbdalgos.center_of_mass_positions(angle)

    def total_energy(self, angle: npt.ArrayLike, speed: npt.ArrayLike) -> float:
        """Kinetic plus gravitational potential energy, zero height at the base"""
        kinetic = self.rbdalgos.kinetic_energy(angle, speed)
        return kinetic + self.rbdalgos.potential_energy(angle, self.g)

    def get_total_mass(self) -> float:
        return self.rbdalgos.get_total_mass()

    def derivative(self, t: float, x: npt.ArrayLike) -> np.ndarray:
        """[speed, accel] of the unactuated chain at the packed state x = [angle, speed]"""
        angle, speed = self._split(x)
        accel = self.inverse_dynamics(t, angle, speed)
        return np.concatenate([speed, accel])

    def state_at(
        self, t: float, x: npt.ArrayLike, torque: JointInput = None
    ) -> ChainState:
        """
        Args:
            t (float): the time
            x (npt.ArrayLike): the packed state [angle, speed]
            torque (JointInput, optional): the joint torques. Defaults to None.

        Returns:
            ChainState: the state with the accelerations and the applied torques
        """
        angle, speed = self._split(x)
        torques = self.rbdalgos.sample_joint_input(torque, t, angle, speed, "torque")
        accel = self.inverse_dynamics(t, angle, speed, torques)
        return ChainState(time=t, angle=angle, speed=speed, accel=accel, torque=torques)

    @property
    def initial_state(self) -> SolutionPoint:
        return self._initial_state

    @initial_state.setter
    def initial_state(self, value: SolutionPoint) -> None:
        t, x = value
        self._split(x)
        self._initial_state = SolutionPoint.build(t, x)

    @property
    def initial_time(self) -> float:
        return self._initial_state.t

    @initial_time.setter
    def initial_time(self, value: float) -> None:
        self._initial_state = SolutionPoint.build(value, self._initial_state.x)

    @property
    def initial_angles(self) -> np.ndarray:
        return self._initial_state.x[: self.NDoF]

    @initial_angles.setter
    def initial_angles(self, value: npt.ArrayLike) -> None:
        x = np.concatenate([self._vector(value), self.initial_speeds])
        self.initial_state = (self.initial_time, x)

    @property
    def initial_speeds(self) -> np.ndarray:
        return self._initial_state.x[self.NDoF :]

    @initial_speeds.setter
    def initial_speeds(self, value: npt.ArrayLike) -> None:
        x = np.concatenate([self.initial_angles, self._vector(value)])
        self.initial_state = (self.initial_time, x)

    def _vector(self, value: npt.ArrayLike) -> np.ndarray:
        value = np.asarray(value, dtype=float)
        if value.shape != (self.NDoF,):
            raise DimensionError(
                f"Expected a joint vector of shape ({self.NDoF},), got {value.shape}"
            )
        return value

    def _split(self, x: npt.ArrayLike):
        x = np.asarray(x, dtype=float)
        if x.shape != (2 * self.NDoF,):
            raise DimensionError(
                f"The chain state must have shape ({2 * self.NDoF},), got {x.shape}"
            )
        return x[: self.NDoF], x[self.NDoF :]

    def _check_effective_inertias(self) -> None:
        """Rejects the chains with a joint that cannot be accelerated in the
        reference configuration, raises DegenerateBodyError"""
        zeros = np.zeros(self.NDoF)
        self.rbdalgos.inverse_dynamics(0.0, zeros, zeros, None, self.g)

    def _log_bodies(self) -> None:
        table_bodies = PrettyTable(["Idx", "Mass", "Inertia", "Length", "CG ratio"])
        table_bodies.title = "Bodies"
        for [i, body] in enumerate(self.bodies):
            table_bodies.add_row(
                [i, body.mass, body.inertia, body.length, body.cg_ratio]
            )
        logging.debug(table_bodies)
