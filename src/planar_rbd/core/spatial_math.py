# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

from dataclasses import dataclass
from typing import Union

import numpy as np
import numpy.typing as npt


def _frozen_array(x: npt.ArrayLike, shape: tuple) -> np.ndarray:
    array = np.array(x, dtype=float).reshape(shape)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class SpatialVector:
    """Planar spatial vector packed as [planar_x, planar_y, axial].

    Twists store (velocity of the reference point, angular rate), wrenches
    store (force, moment about the reference point). The two kinds share
    this type; the factory that built a value tells which one it is.
    """

    array: np.ndarray

    # numpy scalars on the left must defer to the reflected operators
    __array_ufunc__ = None

    def __post_init__(self):
        object.__setattr__(self, "array", _frozen_array(self.array, (3,)))

    @staticmethod
    def build(planar: npt.ArrayLike, axial: float) -> "SpatialVector":
        planar = np.asarray(planar, dtype=float)
        return SpatialVector(np.array([planar[0], planar[1], axial]))

    @staticmethod
    def zero() -> "SpatialVector":
        return SpatialVector(np.zeros(3))

    @property
    def planar(self) -> np.ndarray:
        return self.array[:2]

    @property
    def axial(self) -> float:
        return float(self.array[2])

    def dot(self, other: "SpatialVector") -> float:
        return float(self.array @ other.array)

    def outer(self, other: "SpatialVector") -> "SpatialOperator":
        return SpatialOperator(np.outer(self.array, other.array))

    def __add__(self, other):
        if type(self) is type(other):
            return SpatialVector(self.array + other.array)
        return NotImplemented

    def __sub__(self, other):
        if type(self) is type(other):
            return SpatialVector(self.array - other.array)
        return NotImplemented

    def __neg__(self):
        return SpatialVector(-self.array)

    def __mul__(self, other):
        if np.isscalar(other):
            return SpatialVector(self.array * other)
        return NotImplemented

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, other):
        if np.isscalar(other):
            return SpatialVector(self.array / other)
        return NotImplemented

    def __repr__(self):
        return f"SpatialVector(planar={self.planar.tolist()}, axial={self.axial})"


@dataclass(frozen=True, eq=False)
class SpatialOperator:
    """3x3 planar spatial operator partitioned as

        | matrix  upper  |
        | lower^T scalar |

    with a 2x2 block, two 2-vectors and a scalar. The algebra is the one
    of the dense 3x3 matrix it wraps.
    """

    array: np.ndarray

    __array_ufunc__ = None

    def __post_init__(self):
        object.__setattr__(self, "array", _frozen_array(self.array, (3, 3)))

    @staticmethod
    def from_blocks(
        matrix: npt.ArrayLike, upper: npt.ArrayLike, lower: npt.ArrayLike, scalar: float
    ) -> "SpatialOperator":
        matrix = np.asarray(matrix, dtype=float)
        if matrix.ndim == 0:
            matrix = matrix * np.eye(2)
        X = np.zeros((3, 3))
        X[:2, :2] = matrix
        X[:2, 2] = upper
        X[2, :2] = lower
        X[2, 2] = scalar
        return SpatialOperator(X)

    @staticmethod
    def from_rows(*rows: SpatialVector) -> "SpatialOperator":
        return SpatialOperator(np.vstack([row.array for row in rows]))

    @staticmethod
    def from_columns(*columns: SpatialVector) -> "SpatialOperator":
        return SpatialOperator(np.column_stack([col.array for col in columns]))

    @staticmethod
    def identity() -> "SpatialOperator":
        return SpatialOperator(np.eye(3))

    @staticmethod
    def zero() -> "SpatialOperator":
        return SpatialOperator(np.zeros((3, 3)))

    @staticmethod
    def diagonal(planar: npt.ArrayLike, scalar: float) -> "SpatialOperator":
        planar = np.asarray(planar, dtype=float)
        return SpatialOperator(np.diag([planar[0], planar[1], scalar]))

    @property
    def matrix(self) -> np.ndarray:
        return self.array[:2, :2]

    @property
    def upper(self) -> np.ndarray:
        return self.array[:2, 2]

    @property
    def lower(self) -> np.ndarray:
        return self.array[2, :2]

    @property
    def scalar(self) -> float:
        return float(self.array[2, 2])

    @property
    def T(self) -> "SpatialOperator":
        return SpatialOperator(self.array.T)

    def transpose(self) -> "SpatialOperator":
        return self.T

    def trace(self) -> float:
        return float(np.trace(self.array))

    def determinant(self) -> float:
        return float(np.linalg.det(self.array))

    def is_symmetric(self, atol: float = 0.0) -> bool:
        return bool(np.allclose(self.array, self.array.T, rtol=0.0, atol=atol))

    def solve(
        self, rhs: Union[SpatialVector, "SpatialOperator"]
    ) -> Union[SpatialVector, "SpatialOperator"]:
        """Solves self @ x = rhs

        Args:
            rhs (Union[SpatialVector, SpatialOperator]): right hand side

        Returns:
            Union[SpatialVector, SpatialOperator]: the solution x, same kind as rhs
        """
        return type(rhs)(np.linalg.solve(self.array, rhs.array))

    def inverse(self) -> "SpatialOperator":
        return SpatialOperator(np.linalg.inv(self.array))

    @staticmethod
    def _promote(other) -> np.ndarray:
        # scalars act as multiples of the identity
        if isinstance(other, SpatialOperator):
            return other.array
        if np.isscalar(other):
            return other * np.eye(3)
        return None

    def __add__(self, other):
        other = self._promote(other)
        if other is None:
            return NotImplemented
        return SpatialOperator(self.array + other)

    def __radd__(self, other):
        return self.__add__(other)

    def __sub__(self, other):
        other = self._promote(other)
        if other is None:
            return NotImplemented
        return SpatialOperator(self.array - other)

    def __rsub__(self, other):
        other = self._promote(other)
        if other is None:
            return NotImplemented
        return SpatialOperator(other - self.array)

    def __neg__(self):
        return SpatialOperator(-self.array)

    def __mul__(self, other):
        if np.isscalar(other):
            return SpatialOperator(self.array * other)
        return self.__matmul__(other)

    def __rmul__(self, other):
        if np.isscalar(other):
            return SpatialOperator(self.array * other)
        return NotImplemented

    def __truediv__(self, other):
        if np.isscalar(other):
            return SpatialOperator(self.array / other)
        return NotImplemented

    def __matmul__(self, other):
        if isinstance(other, SpatialVector):
            return SpatialVector(self.array @ other.array)
        if isinstance(other, SpatialOperator):
            return SpatialOperator(self.array @ other.array)
        return NotImplemented

    def __repr__(self):
        return f"SpatialOperator({self.array.tolist()})"


class SpatialMath:
    """Planar spatial algebra used by the chain algorithms.

    Cross product conventions, with r, f 2-vectors and w a scalar normal:

        r x f = rx*fy - ry*fx        (cross)
        r x w = [ry*w, -rx*w]        (cross_vs)
        w x r = [-ry*w, rx*w]        (cross_sv)
    """

    @staticmethod
    def cross(a: npt.ArrayLike, b: npt.ArrayLike) -> float:
        return float(a[0] * b[1] - a[1] * b[0])

    @staticmethod
    def cross_vs(r: npt.ArrayLike, w: float) -> np.ndarray:
        return np.array([r[1] * w, -r[0] * w])

    @classmethod
    def cross_sv(cls, w: float, r: npt.ArrayLike) -> np.ndarray:
        return cls.cross_vs(r, -w)

    @staticmethod
    def polar(length: float, angle: float) -> np.ndarray:
        return np.array([length * np.cos(angle), length * np.sin(angle)])

    @classmethod
    def twist(cls, rate: float, position: npt.ArrayLike) -> SpatialVector:
        """
        Args:
            rate (float): angular rate
            position (npt.ArrayLike): a point on the rotation axis

        Returns:
            SpatialVector: the twist of a rotation about position
        """
        return SpatialVector.build(cls.cross_vs(position, rate), rate)

    @staticmethod
    def pure_twist(velocity: npt.ArrayLike) -> SpatialVector:
        return SpatialVector.build(velocity, 0.0)

    @classmethod
    def twist_center(cls, twist: SpatialVector) -> np.ndarray:
        """Instantaneous center of rotation, undefined for a pure translation"""
        w = twist.axial
        return cls.cross_sv(w, twist.planar) / (w * w)

    @classmethod
    def wrench(cls, force: npt.ArrayLike, position: npt.ArrayLike) -> SpatialVector:
        """
        Args:
            force (npt.ArrayLike): the force
            position (npt.ArrayLike): a point on the line of action

        Returns:
            SpatialVector: the wrench of force applied at position
        """
        return SpatialVector.build(force, cls.cross(position, force))

    @staticmethod
    def pure_wrench(moment: float) -> SpatialVector:
        return SpatialVector.build(np.zeros(2), moment)

    @classmethod
    def wrench_center(cls, wrench: SpatialVector) -> np.ndarray:
        """Point on the line of action closest to the origin, undefined for a couple"""
        f = wrench.planar
        return cls.cross_vs(f, wrench.axial) / float(f @ f)

    @classmethod
    def twist_cross(cls, a: SpatialVector, b: SpatialVector) -> SpatialVector:
        """Motion cross product a x b, used for the velocity bias terms"""
        return SpatialVector.build(
            cls.cross_sv(a.axial, b.planar) + cls.cross_vs(a.planar, b.axial), 0.0
        )

    @classmethod
    def wrench_cross(cls, a: SpatialVector, b: SpatialVector) -> SpatialVector:
        """Force cross product a x* b between a twist and a momentum wrench"""
        return SpatialVector.build(
            cls.cross_sv(a.axial, b.planar), cls.cross(a.planar, b.planar)
        )

    @classmethod
    def spatial_inertia(
        cls, mass: float, inertia: float, cg: npt.ArrayLike
    ) -> SpatialOperator:
        """Returns the 3x3 inertia at the origin of a body with its cg at `cg`

        Args:
            mass (float): the body mass
            inertia (float): the moment of inertia about the cg
            cg (npt.ArrayLike): the cg position

        Returns:
            SpatialOperator: maps the body twist to its momentum wrench
        """
        cg = np.asarray(cg, dtype=float)
        coupling = cls.cross_vs(cg, -mass)
        return SpatialOperator.from_blocks(
            mass * np.eye(2), coupling, coupling, inertia + mass * float(cg @ cg)
        )

    @classmethod
    def spatial_mobility(
        cls, mass: float, inertia: float, cg: npt.ArrayLike
    ) -> SpatialOperator:
        """Inverse of the spatial inertia, only defined for mass > 0 and inertia > 0"""
        cg = np.asarray(cg, dtype=float)
        coupling = cls.cross_vs(cg, 1.0 / inertia)
        matrix = (
            np.eye(2) / mass + (float(cg @ cg) * np.eye(2) - np.outer(cg, cg)) / inertia
        )
        return SpatialOperator.from_blocks(matrix, coupling, coupling, 1.0 / inertia)
