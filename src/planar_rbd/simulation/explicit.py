# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import dataclasses
import logging
import math
from typing import Callable, Iterator, NamedTuple

import numpy as np

from planar_rbd.core.exceptions import ConvergenceError
from planar_rbd.simulation.options import Options

VectorField = Callable[[float, np.ndarray], np.ndarray]

SAFETY = 0.9
"""Safety factor applied to the optimal step predicted by the controllers"""

MIN_REJECT_SCALE = 0.2
"""Strongest reduction of the step after a single rejection"""


class AcceptedStep(NamedTuple):
    """Node of the integration grid produced by the steppers.

    dx is f(t, x), used by the dense output. step is the size of the step
    that reached this node (0 for the initial node) and error its local
    error norm.
    """

    t: float
    x: np.ndarray
    dx: np.ndarray
    step: float
    error: float


@dataclasses.dataclass(frozen=True)
class ButcherTableau:
    """Explicit embedded Runge-Kutta pair.

    Args:
        c (np.ndarray): stage times
        a (tuple): rows of the stage matrix, row i has i entries
        b (np.ndarray): weights of the propagated solution
        e (np.ndarray): weights of the error estimate, b minus the embedded weights
        order (int): lowest order of the pair, drives the step controller
        fsal (bool): the last stage is f at the new solution
    """

    c: np.ndarray
    a: tuple
    b: np.ndarray
    e: np.ndarray
    order: int
    fsal: bool = False

    @property
    def stages(self) -> int:
        return len(self.c)


# Runge-Kutta-Fehlberg 4(5), the 4th order solution is propagated
FEHLBERG45 = ButcherTableau(
    c=np.array([0.0, 1 / 4, 3 / 8, 12 / 13, 1.0, 1 / 2]),
    a=(
        np.array([]),
        np.array([1 / 4]),
        np.array([3 / 32, 9 / 32]),
        np.array([1932 / 2197, -7200 / 2197, 7296 / 2197]),
        np.array([439 / 216, -8.0, 3680 / 513, -845 / 4104]),
        np.array([-8 / 27, 2.0, -3544 / 2565, 1859 / 4104, -11 / 40]),
    ),
    b=np.array([25 / 216, 0.0, 1408 / 2565, 2197 / 4104, -1 / 5, 0.0]),
    e=np.array([-1 / 360, 0.0, 128 / 4275, 2197 / 75240, -1 / 50, -2 / 55]),
    order=4,
)

# Dormand-Prince 5(4)7M, the 5th order solution is propagated
DORMAND_PRINCE54 = ButcherTableau(
    c=np.array([0.0, 1 / 5, 3 / 10, 4 / 5, 8 / 9, 1.0, 1.0]),
    a=(
        np.array([]),
        np.array([1 / 5]),
        np.array([3 / 40, 9 / 40]),
        np.array([44 / 45, -56 / 15, 32 / 9]),
        np.array([19372 / 6561, -25360 / 2187, 64448 / 6561, -212 / 729]),
        np.array([9017 / 3168, -355 / 33, 46732 / 5247, 49 / 176, -5103 / 18656]),
        np.array([35 / 384, 0.0, 500 / 1113, 125 / 192, -2187 / 6784, 11 / 84]),
    ),
    b=np.array([35 / 384, 0.0, 500 / 1113, 125 / 192, -2187 / 6784, 11 / 84, 0.0]),
    e=np.array(
        [71 / 57600, 0.0, -71 / 16695, 71 / 1920, -17253 / 339200, 22 / 525, -1 / 40]
    ),
    order=4,
    fsal=True,
)


def error_norm(
    error: np.ndarray, x: np.ndarray, x_new: np.ndarray, options: Options
) -> float:
    """Scaled RMS norm of a local error estimate, a step is accepted when <= 1

    Args:
        error (np.ndarray): the local error estimate
        x (np.ndarray): the state at the beginning of the step
        x_new (np.ndarray): the state at the end of the step
        options (Options): tolerances

    Returns:
        float: the error norm, inf when the estimate is not finite
    """
    scale = options.absolute_tolerance + options.relative_tolerance * np.maximum(
        np.abs(x), np.abs(x_new)
    )
    norm = _rms(error / scale)
    return norm if math.isfinite(norm) else math.inf


def initial_step(
    f: VectorField,
    t0: float,
    x0: np.ndarray,
    f0: np.ndarray,
    order: int,
    options: Options,
) -> float:
    """Automatic first step, after Hairer, Norsett and Wanner (II.4)"""
    scale = options.absolute_tolerance + options.relative_tolerance * np.abs(x0)
    d0 = _rms(x0 / scale)
    d1 = _rms(f0 / scale)
    h0 = 1e-6 if d0 < 1e-5 or d1 < 1e-5 else 0.01 * d0 / d1
    h0 = min(h0, options.max_step)
    f1 = f(t0 + h0, x0 + h0 * f0)
    d2 = _rms((f1 - f0) / scale) / h0
    if max(d1, d2) <= 1e-15:
        h1 = max(1e-6, h0 * 1e-3)
    else:
        h1 = (0.01 / max(d1, d2)) ** (1.0 / (order + 1))
    return max(min(100 * h0, h1, options.max_step), options.min_step)


def reject_step(
    t: float, h: float, factor: float, options: Options, reason: str
) -> float:
    """Reduced step to retry from t, fails when it drops below min_step

    Args:
        t (float): time of the last accepted node
        h (float): the rejected step
        factor (float): reduction proposed by the controller
        options (Options): the options
        reason (str): logged with the rejection

    Returns:
        float: the next trial step, strictly smaller than h
    """
    factor = min(options.min_scale, max(MIN_REJECT_SCALE, factor))
    h_new = h * factor
    logging.debug(f"Step rejected at t={t:g} ({reason}): h {h:g} -> {h_new:g}")
    if h_new < options.min_step or t + h_new == t:
        raise ConvergenceError("Integration failed to converge", time=t, step=h_new)
    return h_new


def grow_step(h: float, factor: float, options: Options) -> float:
    """Next trial step after an accepted step"""
    factor = min(options.max_scale, max(options.min_scale, factor))
    return min(max(h * factor, options.min_step), options.max_step)


def _rms(x: np.ndarray) -> float:
    return float(np.sqrt(np.mean(x**2))) if x.size else 0.0


def euler(
    t0: float, x0: np.ndarray, f: VectorField, options: Options
) -> Iterator[AcceptedStep]:
    """Explicit Euler with a constant step, x += h f(t, x)

    Args:
        t0 (float): the initial time
        x0 (np.ndarray): the initial state
        f (VectorField): the vector field
        options (Options): initial_step sets the step (automatic when 0), clamped to max_step

    Yields:
        AcceptedStep: the initial node, then one node per step
    """
    x = np.array(x0, dtype=float)
    dx = f(t0, x)
    h = options.initial_step or initial_step(f, t0, x, dx, 1, options)
    h = min(h, options.max_step)
    logging.debug(f"Euler integration from t={t0:g} with h={h:g}")
    yield AcceptedStep(t0, x, dx, 0.0, 0.0)
    k = 0
    while True:
        k += 1
        # from t0 to avoid accumulating round-off in t
        t = t0 + k * h
        x = x + h * dx
        dx = f(t, x)
        yield AcceptedStep(t, x, dx, h, 0.0)


def rk45(
    t0: float, x0: np.ndarray, f: VectorField, options: Options
) -> Iterator[AcceptedStep]:
    """Runge-Kutta-Fehlberg 4(5) with an elementary step controller"""
    return _embedded_runge_kutta(t0, x0, f, options, FEHLBERG45, beta=0.0)


def rk547m(
    t0: float, x0: np.ndarray, f: VectorField, options: Options
) -> Iterator[AcceptedStep]:
    """Dormand-Prince 5(4)7M with a PI step controller"""
    return _embedded_runge_kutta(t0, x0, f, options, DORMAND_PRINCE54, beta=0.04)


def _embedded_runge_kutta(
    t0: float,
    x0: np.ndarray,
    f: VectorField,
    options: Options,
    tableau: ButcherTableau,
    beta: float,
) -> Iterator[AcceptedStep]:
    """Adaptive explicit Runge-Kutta loop.

    A trial step is accepted when its error norm is <= 1: the node is
    yielded and the step grows by a factor clamped to [min_scale, max_scale].
    Otherwise the step shrinks and is retried from the same node. With
    beta > 0 the controller is the PI controller of Gustafsson,
    fac = SAFETY * err^-(1/(q+1) - 0.75 beta) * err_prev^beta.
    """
    t = float(t0)
    x = np.array(x0, dtype=float)
    dx = f(t, x)
    q = tableau.order
    alpha = 1.0 / (q + 1) - 0.75 * beta
    h = options.initial_step or initial_step(f, t, x, dx, q, options)
    h = min(h, options.max_step)
    logging.debug(
        f"Runge-Kutta integration ({tableau.stages} stages) from t={t:g} with h={h:g}"
    )
    yield AcceptedStep(t, x, dx, 0.0, 0.0)

    err_prev = 1e-4
    K = np.empty((tableau.stages,) + x.shape)
    while True:
        K[0] = dx
        x_stage = x
        for i in range(1, tableau.stages):
            x_stage = x + h * np.tensordot(tableau.a[i], K[:i], axes=1)
            K[i] = f(t + tableau.c[i] * h, x_stage)
        if tableau.fsal:
            x_new = x_stage
        else:
            x_new = x + h * np.tensordot(tableau.b, K, axes=1)
        err = error_norm(h * np.tensordot(tableau.e, K, axes=1), x, x_new, options)

        if err <= 1.0:
            t_new = t + h
            dx_new = K[-1].copy() if tableau.fsal else f(t_new, x_new)
            yield AcceptedStep(t_new, x_new, dx_new, h, err)
            err = max(err, 1e-10)
            factor = SAFETY * err ** (-alpha) * err_prev**beta
            err_prev = max(err, 1e-4)
            t, x, dx = t_new, x_new, dx_new
            h = grow_step(h, factor, options)
        else:
            factor = SAFETY * err ** (-1.0 / (q + 1)) if math.isfinite(err) else 0.0
            h = reject_step(t, h, factor, options, f"error norm {err:.3g}")
