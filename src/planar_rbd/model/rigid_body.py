# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import dataclasses
import math

import numpy.typing as npt

from planar_rbd.core.exceptions import DegenerateBodyError
from planar_rbd.core.spatial_math import SpatialMath, SpatialOperator, SpatialVector


@dataclasses.dataclass(frozen=True)
class RigidBody:
    """Inertial description of one link of a planar chain.

    The link goes from its joint to the next joint along its local x axis;
    the cg lies on that line at cg_ratio * length from the joint.

    Args:
        mass (float): link mass, strictly positive
        inertia (float): moment of inertia about the cg, zero for a point mass
        length (float): distance to the next joint
        cg_ratio (float): position of the cg as a fraction of the length
    """

    mass: float
    inertia: float
    length: float
    cg_ratio: float

    def __post_init__(self):
        for name in ("mass", "inertia", "length", "cg_ratio"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise DegenerateBodyError(f"The body {name} must be finite, got {value}")
            object.__setattr__(self, name, float(value))
        if self.mass <= 0.0:
            raise DegenerateBodyError(f"The body mass must be positive, got {self.mass}")
        if self.inertia < 0.0:
            raise DegenerateBodyError(
                f"The body inertia cannot be negative, got {self.inertia}"
            )
        if self.length < 0.0:
            raise DegenerateBodyError(
                f"The body length cannot be negative, got {self.length}"
            )
        if not 0.0 <= self.cg_ratio <= 1.0:
            raise DegenerateBodyError(
                f"The cg ratio must lie in [0, 1], got {self.cg_ratio}"
            )

    @staticmethod
    def bob(mass: float, length: float) -> "RigidBody":
        """Point mass at the end of a massless link"""
        return RigidBody(mass=mass, inertia=0.0, length=length, cg_ratio=1.0)

    @staticmethod
    def rod(mass: float, length: float) -> "RigidBody":
        """Uniform slender rod"""
        return RigidBody(
            mass=mass,
            inertia=mass * length * length / 12.0,
            length=length,
            cg_ratio=0.5,
        )

    @property
    def cg_offset(self) -> float:
        return self.cg_ratio * self.length

    def weight_wrench(self, cg: npt.ArrayLike, gravity: npt.ArrayLike) -> SpatialVector:
        """
        Args:
            cg (npt.ArrayLike): the cg position
            gravity (npt.ArrayLike): the gravity acceleration

        Returns:
            SpatialVector: the weight as a wrench at the origin
        """
        return SpatialMath.wrench(self.mass * gravity, cg)

    def spatial_inertia(self, cg: npt.ArrayLike) -> SpatialOperator:
        return SpatialMath.spatial_inertia(self.mass, self.inertia, cg)

    def spatial_mobility(self, cg: npt.ArrayLike) -> SpatialOperator:
        if self.inertia <= 0.0:
            raise DegenerateBodyError(
                "The spatial mobility of a body with zero inertia is not defined"
            )
        return SpatialMath.spatial_mobility(self.mass, self.inertia, cg)
