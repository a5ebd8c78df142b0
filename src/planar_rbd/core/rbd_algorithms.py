# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import dataclasses
from typing import Callable, List, Sequence, Union

import numpy as np
import numpy.typing as npt

from planar_rbd.core.constants import EFFECTIVE_INERTIA_EPS
from planar_rbd.core.exceptions import DegenerateBodyError, DimensionError
from planar_rbd.core.spatial_math import SpatialMath, SpatialOperator, SpatialVector
from planar_rbd.model.rigid_body import RigidBody

JointFunction = Callable[[float, float, float], float]
"""(time, joint angle, joint speed) -> joint torque or acceleration"""

JointInput = Union[JointFunction, npt.ArrayLike, None]


@dataclasses.dataclass
class ChainKinematics:
    """Per-link quantities of one evaluation, link 0 is next to the base"""

    r: List[np.ndarray]
    theta: np.ndarray
    cg: List[np.ndarray]
    s: List[SpatialVector]
    v: List[SpatialVector]
    kappa: List[SpatialVector]
    I: List[SpatialOperator]
    w: List[SpatialVector]
    p: List[SpatialVector]


class RBDAlgorithms:
    """Recursive algorithms for a planar serial chain of rigid bodies.

    All the spatial quantities are expressed in the base frame, at its
    origin, so no frame transform appears in the recursions. Every call is
    a pure function of its arguments.
    """

    def __init__(self, bodies: Sequence[RigidBody], math: SpatialMath) -> None:
        """
        Args:
            bodies (Sequence[RigidBody]): the links, from the base to the tip
            math (SpatialMath): the spatial math.
        """
        self.bodies = tuple(bodies)
        self.NDoF = len(self.bodies)
        self.math = math
        self._prepare_chain_cache()

    def _prepare_chain_cache(self) -> None:
        """Pre-compute the static link data used at every call"""
        self._masses = np.array([body.mass for body in self.bodies])
        self._lengths = np.array([body.length for body in self.bodies])
        self._cg_offsets = np.array([body.cg_offset for body in self.bodies])

    def kinematics(
        self, angle: npt.ArrayLike, speed: npt.ArrayLike, gravity: npt.ArrayLike
    ) -> ChainKinematics:
        """Position and velocity pass, from the base to the tip

        Args:
            angle (npt.ArrayLike): the joint angles
            speed (npt.ArrayLike): the joint speeds
            gravity (npt.ArrayLike): the gravity acceleration

        Returns:
            ChainKinematics: positions, twists, inertias and bias wrenches
        """
        angle, speed = self._convert_to_array(angle, speed)
        gravity = np.asarray(gravity, dtype=float)
        math = self.math
        n = self.NDoF

        r = [None] * n
        theta = np.zeros(n)
        cg = [None] * n
        s = [None] * n
        v = [None] * n
        kappa = [None] * n
        I = [None] * n
        w = [None] * n
        p = [None] * n

        for i in range(n):
            if i > 0:
                r[i] = r[i - 1] + math.polar(self._lengths[i - 1], theta[i - 1])
                theta[i] = theta[i - 1] + angle[i]
                v_prev = v[i - 1]
            else:
                r[i] = np.zeros(2)
                theta[i] = angle[i]
                v_prev = SpatialVector.zero()
            cg[i] = r[i] + math.polar(self._cg_offsets[i], theta[i])

            s[i] = math.twist(1.0, r[i])
            vJ = s[i] * speed[i]
            v[i] = v_prev + vJ
            kappa[i] = math.twist_cross(v[i], vJ)

            body = self.bodies[i]
            I[i] = body.spatial_inertia(cg[i])
            w[i] = body.weight_wrench(cg[i], gravity)
            p[i] = math.wrench_cross(v[i], I[i] @ v[i]) - w[i]

        return ChainKinematics(
            r=r, theta=theta, cg=cg, s=s, v=v, kappa=kappa, I=I, w=w, p=p
        )

    def inverse_dynamics(
        self,
        time: float,
        angle: npt.ArrayLike,
        speed: npt.ArrayLike,
        torque: JointInput,
        gravity: npt.ArrayLike,
    ) -> np.ndarray:
        """Joint accelerations produced by the joint torques, with the
        articulated inertia recursion.

        Args:
            time (float): the time, passed to the torque function
            angle (npt.ArrayLike): the joint angles
            speed (npt.ArrayLike): the joint speeds
            torque (JointInput): torque function, vector of torques or None for zero
            gravity (npt.ArrayLike): the gravity acceleration

        Returns:
            np.ndarray: the joint accelerations
        """
        angle, speed = self._convert_to_array(angle, speed)
        n = self.NDoF
        kin = self.kinematics(angle, speed, gravity)
        Q = self.sample_joint_input(torque, time, angle, speed, "torque")
        s, kappa = kin.s, kin.kappa

        IA, dA, d = self._articulated_pass(kin, Q, check=True)

        qdd = np.zeros(n)
        a_prev = SpatialVector.zero()
        for i in range(n):
            qdd[i] = (Q[i] - s[i].dot(IA[i] @ (a_prev + kappa[i]) + dA[i])) / d[i]
            a_prev = a_prev + s[i] * qdd[i] + kappa[i]
        return qdd

    def forward_dynamics(
        self,
        time: float,
        angle: npt.ArrayLike,
        speed: npt.ArrayLike,
        accel: JointInput,
        gravity: npt.ArrayLike,
    ) -> np.ndarray:
        """Joint torques required by the joint accelerations, with a single
        backward summation of the link forces.

        Args:
            time (float): the time, passed to the acceleration function
            angle (npt.ArrayLike): the joint angles
            speed (npt.ArrayLike): the joint speeds
            accel (JointInput): acceleration function, vector of accelerations or None for zero
            gravity (npt.ArrayLike): the gravity acceleration

        Returns:
            np.ndarray: the joint torques
        """
        angle, speed = self._convert_to_array(angle, speed)
        n = self.NDoF
        kin = self.kinematics(angle, speed, gravity)
        qdd = self.sample_joint_input(accel, time, angle, speed, "accel")
        s, kappa, I, p = kin.s, kin.kappa, kin.I, kin.p

        a = [None] * n
        a_prev = SpatialVector.zero()
        for i in range(n):
            a[i] = a_prev + s[i] * qdd[i] + kappa[i]
            a_prev = a[i]

        tau = np.zeros(n)
        f_next = SpatialVector.zero()
        for i in reversed(range(n)):
            f = I[i] @ a[i] + p[i] + f_next
            tau[i] = s[i].dot(f)
            f_next = f
        return tau

    def articulated_inertias(self, angle: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            angle (npt.ArrayLike): the joint angles

        Returns:
            np.ndarray: the effective inertia felt by each joint, s^T IA s
        """
        (angle,) = self._convert_to_array(angle)
        n = self.NDoF
        kin = self.kinematics(angle, np.zeros(n), np.zeros(2))
        _, _, d = self._articulated_pass(kin, np.zeros(n), check=False)
        return d

    def mass_matrix(self, angle: npt.ArrayLike) -> np.ndarray:
        """Joint space inertia matrix, one column per unit joint acceleration

        Args:
            angle (npt.ArrayLike): the joint angles

        Returns:
            np.ndarray: the n x n mass matrix
        """
        (angle,) = self._convert_to_array(angle)
        n = self.NDoF
        M = np.zeros((n, n))
        for j in range(n):
            M[:, j] = self.forward_dynamics(
                0.0, angle, np.zeros(n), np.eye(n)[j], np.zeros(2)
            )
        return M

    def bias_torques(
        self,
        time: float,
        angle: npt.ArrayLike,
        speed: npt.ArrayLike,
        gravity: npt.ArrayLike,
    ) -> np.ndarray:
        """Coriolis, centrifugal and gravity torques, M(q) qdd + h = Q"""
        return self.forward_dynamics(time, angle, speed, None, gravity)

    def joint_positions(self, angle: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            angle (npt.ArrayLike): the joint angles

        Returns:
            np.ndarray: (n + 1, 2) positions of the joints followed by the tip
        """
        (angle,) = self._convert_to_array(angle)
        theta = np.cumsum(angle)
        steps = np.column_stack(
            [self._lengths * np.cos(theta), self._lengths * np.sin(theta)]
        )
        return np.vstack([np.zeros(2), np.cumsum(steps, axis=0)])

    def center_of_mass_positions(self, angle: npt.ArrayLike) -> np.ndarray:
        (angle,) = self._convert_to_array(angle)
        theta = np.cumsum(angle)
        r = self.joint_positions(angle)[:-1]
        return r + np.column_stack(
            [self._cg_offsets * np.cos(theta), self._cg_offsets * np.sin(theta)]
        )

    def kinetic_energy(self, angle: npt.ArrayLike, speed: npt.ArrayLike) -> float:
        kin = self.kinematics(angle, speed, np.zeros(2))
        return 0.5 * sum(v.dot(I @ v) for v, I in zip(kin.v, kin.I))

    def potential_energy(self, angle: npt.ArrayLike, gravity: npt.ArrayLike) -> float:
        cg = self.center_of_mass_positions(angle)
        return -float(self._masses @ (cg @ np.asarray(gravity, dtype=float)))

    def get_total_mass(self) -> float:
        return float(self._masses.sum())

    def _articulated_pass(self, kin: ChainKinematics, Q: np.ndarray, check: bool):
        """Articulated inertias and bias wrenches, from the tip to the base"""
        n = self.NDoF
        s, kappa, I, p = kin.s, kin.kappa, kin.I, kin.p

        IA = [None] * n
        dA = [None] * n
        TA = [None] * n
        d = np.zeros(n)
        for i in reversed(range(n)):
            if i < n - 1:
                # projects out the motion allowed by the outboard joint
                Phi = 1.0 - TA[i + 1].outer(s[i + 1])
                IA[i] = I[i] + Phi @ IA[i + 1]
                dA[i] = (
                    p[i]
                    + TA[i + 1] * Q[i + 1]
                    + Phi @ (IA[i + 1] @ kappa[i + 1] + dA[i + 1])
                )
            else:
                IA[i] = I[i]
                dA[i] = p[i]
            U = IA[i] @ s[i]
            d[i] = s[i].dot(U)
            if d[i] <= EFFECTIVE_INERTIA_EPS * max(1.0, IA[i].trace()):
                if check:
                    raise DegenerateBodyError(
                        f"Joint {i} has a non positive effective inertia ({d[i]:g})"
                    )
                # only the effective inertias are wanted, the projection is unused
                TA[i] = SpatialVector.zero()
                continue
            TA[i] = U / d[i]
        return IA, dA, d

    def sample_joint_input(
        self,
        values: JointInput,
        time: float,
        angle: np.ndarray,
        speed: np.ndarray,
        name: str,
    ) -> np.ndarray:
        """Evaluates a per-joint function, or checks a vector of values

        Args:
            values (JointInput): (time, angle, speed) -> value for each joint,
                a vector of values or None for zero
            time (float): the time
            angle (np.ndarray): the joint angles
            speed (np.ndarray): the joint speeds
            name (str): quantity name used in the error message

        Returns:
            np.ndarray: one value per joint
        """
        n = self.NDoF
        if values is None:
            return np.zeros(n)
        if callable(values):
            return np.array(
                [float(values(time, angle[i], speed[i])) for i in range(n)]
            )
        values = np.asarray(values, dtype=float)
        if values.shape != (n,):
            raise DimensionError(
                f"The {name} vector must have shape ({n},), got {values.shape}"
            )
        return values

    def _convert_to_array(self, *args) -> List[np.ndarray]:
        """Converts the joint vectors to float arrays and checks their length.
        Args:
            *args: joint vectors
        Returns:
            the converted vectors
        """
        if not args:
            raise ValueError("At least one argument is required")

        converted = []
        for arg in args:
            arr = np.asarray(arg, dtype=float)
            if arr.shape != (self.NDoF,):
                raise DimensionError(
                    f"Expected a joint vector of shape ({self.NDoF},), got {arr.shape}"
                )
            converted.append(arr)
        return converted
