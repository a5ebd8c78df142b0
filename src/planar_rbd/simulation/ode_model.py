# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import abc
from typing import Callable, NamedTuple

import numpy as np
import numpy.typing as npt


class SolutionPoint(NamedTuple):
    """One sample (t, x) of a trajectory"""

    t: float
    x: np.ndarray

    @staticmethod
    def build(t: float, x: npt.ArrayLike) -> "SolutionPoint":
        x = np.array(x, dtype=float)
        x.setflags(write=False)
        return SolutionPoint(float(t), x)


class OdeModel(abc.ABC):
    """Time dependent vector field dx/dt = f(t, x) with its initial state"""

    @abc.abstractmethod
    def derivative(self, t: float, x: np.ndarray) -> np.ndarray:
        """
        Args:
            t (float): the time
            x (np.ndarray): the state

        Returns:
            np.ndarray: the state derivative, same shape as x
        """
        pass

    @property
    @abc.abstractmethod
    def initial_state(self) -> SolutionPoint:
        pass

    @initial_state.setter
    @abc.abstractmethod
    def initial_state(self, value: SolutionPoint) -> None:
        pass


class FunctionModel(OdeModel):
    """Wraps a plain callable f(t, x) as an OdeModel

    Args:
        fun (Callable): the vector field
        t0 (float): the initial time
        x0 (npt.ArrayLike): the initial state
    """

    def __init__(
        self,
        fun: Callable[[float, np.ndarray], npt.ArrayLike],
        t0: float,
        x0: npt.ArrayLike,
    ) -> None:
        self.fun = fun
        self._initial_state = SolutionPoint.build(t0, x0)

    def derivative(self, t: float, x: np.ndarray) -> np.ndarray:
        return np.asarray(self.fun(t, x), dtype=float)

    @property
    def initial_state(self) -> SolutionPoint:
        return self._initial_state

    @initial_state.setter
    def initial_state(self, value: SolutionPoint) -> None:
        t, x = value
        self._initial_state = SolutionPoint.build(t, x)
