# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import dataclasses

import numpy as np
import numpy.typing as npt

from planar_rbd.core.exceptions import DimensionError


@dataclasses.dataclass(frozen=True, eq=False)
class ChainState:
    """Generalized state of an n joint chain at one instant"""

    time: float
    angle: np.ndarray
    speed: np.ndarray
    accel: np.ndarray
    torque: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "time", float(self.time))
        n = None
        for name in ("angle", "speed", "accel", "torque"):
            value = np.array(getattr(self, name), dtype=float)
            if value.ndim != 1:
                raise DimensionError(f"{name} must be a 1-D array, got shape {value.shape}")
            if n is None:
                n = value.shape[0]
            elif value.shape[0] != n:
                raise DimensionError(
                    f"{name} has {value.shape[0]} entries, expected {n}"
                )
            object.__setattr__(self, name, value)

    @property
    def n_dof(self) -> int:
        return self.angle.shape[0]

    @staticmethod
    def zeros(n: int, time: float = 0.0) -> "ChainState":
        return ChainState(time, np.zeros(n), np.zeros(n), np.zeros(n), np.zeros(n))

    @staticmethod
    def from_vector(time: float, x: npt.ArrayLike) -> "ChainState":
        """Builds the state from the packed vector [angle..., speed...]

        Args:
            time (float): the time
            x (npt.ArrayLike): the packed state, of even length

        Returns:
            ChainState: the state, with zero accelerations and torques
        """
        x = np.asarray(x, dtype=float)
        if x.ndim != 1 or x.shape[0] % 2 != 0:
            raise DimensionError(
                f"The packed state must be a 1-D array of even length, got shape {x.shape}"
            )
        n = x.shape[0] // 2
        return ChainState(time, x[:n], x[n:], np.zeros(n), np.zeros(n))

    def as_vector(self) -> np.ndarray:
        """[angle..., speed...]"""
        return np.concatenate([self.angle, self.speed])

    def as_rate_vector(self) -> np.ndarray:
        """[speed..., accel...], the time derivative of as_vector"""
        return np.concatenate([self.speed, self.accel])

    def replace(self, **changes) -> "ChainState":
        return dataclasses.replace(self, **changes)

    def copy(self) -> "ChainState":
        # __post_init__ copies every array
        return dataclasses.replace(self)
