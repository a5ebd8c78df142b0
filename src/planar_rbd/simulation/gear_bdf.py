# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import logging
import math
from typing import Callable, Iterator, Optional

import numpy as np
import scipy.linalg
import scipy.sparse
import scipy.sparse.linalg

from planar_rbd.core.exceptions import DimensionError
from planar_rbd.simulation.explicit import (
    SAFETY,
    AcceptedStep,
    VectorField,
    error_norm,
    grow_step,
    initial_step,
    reject_step,
)
from planar_rbd.simulation.options import Options

MAX_STEP_RATIO = 2.0
"""Largest ratio between consecutive steps, keeps variable step BDF2 zero-stable"""

CORRECTOR_TOLERANCE = 0.03
"""Scaled norm of the last corrector update below which the iteration has converged"""

LinearSolver = Callable[[np.ndarray], np.ndarray]


def gear_bdf(
    t0: float, x0: np.ndarray, f: VectorField, options: Options
) -> Iterator[AcceptedStep]:
    """Variable step backward differentiation formula of order 2.

    The first step is a backward Euler step (BDF1), the following ones use
    the variable step BDF2

        x1 - a1 x0 - a2 x_prev = h beta f(t1, x1)

    with w = h / h_prev, a1 = (1 + w)^2 / (1 + 2w), a2 = -w^2 / (1 + 2w) and
    beta = (1 + w) / (1 + 2w). The implicit equation is solved by at most
    `number_of_iterations` corrector iterations, starting from an explicit
    predictor: Newton iterations with (I - h beta J) when a Jacobian is
    given, fixed point iterations otherwise. The local error is estimated
    from the predictor-corrector difference.

    Args:
        t0 (float): the initial time
        x0 (np.ndarray): the initial state
        f (VectorField): the vector field
        options (Options): the options

    Yields:
        AcceptedStep: the initial node, then one node per accepted step
    """
    t = float(t0)
    x = np.array(x0, dtype=float)
    dx = f(t, x)
    n = x.shape[0]
    h = options.initial_step or initial_step(f, t, x, dx, 1, options)
    h = min(h, options.max_step)
    newton = options.jacobian is not None or options.sparse_jacobian is not None
    logging.debug(
        f"GearBDF integration from t={t:g} with h={h:g}, "
        f"{'Newton' if newton else 'fixed point'} corrector"
    )
    yield AcceptedStep(t, x, dx, 0.0, 0.0)

    x_prev: Optional[np.ndarray] = None
    h_prev = 0.0
    while True:
        if x_prev is None:
            order = 1
            psi = x
            beta = 1.0
            x_pred = x + h * dx
            K = 1.0
        else:
            order = 2
            h = min(h, MAX_STEP_RATIO * h_prev)
            w = h / h_prev
            psi = ((1 + w) ** 2 * x - w**2 * x_prev) / (1 + 2 * w)
            beta = (1 + w) / (1 + 2 * w)
            # quadratic through x_prev, x with slope dx at t
            curvature = (x_prev - x + h_prev * dx) / h_prev**2
            x_pred = x + h * dx + h * h * curvature
            K = beta
        t_new = t + h

        try:
            solver = _newton_solver(options, t, x, h * beta, n) if newton else None
            x_new, converged = _correct(
                f, t_new, x_pred, psi, h * beta, solver, x, options
            )
        except np.linalg.LinAlgError as e:
            h = reject_step(t, h, 0.5, options, f"singular iteration matrix: {e}")
            continue
        if not converged:
            h = reject_step(t, h, 0.5, options, "corrector did not converge")
            continue

        # |corrector error| = K / (1 + K) |x_new - x_pred| to leading order
        err = error_norm(K / (1 + K) * (x_new - x_pred), x, x_new, options)
        factor = SAFETY * err ** (-1.0 / (order + 1)) if err > 0 else math.inf
        if err <= 1.0:
            dx_new = f(t_new, x_new)
            yield AcceptedStep(t_new, x_new, dx_new, h, err)
            x_prev, h_prev = x, h
            t, x, dx = t_new, x_new, dx_new
            h = grow_step(h, factor, options)
        else:
            factor = factor if math.isfinite(err) else 0.0
            h = reject_step(t, h, factor, options, f"error norm {err:.3g}")


def _correct(
    f: VectorField,
    t_new: float,
    x_pred: np.ndarray,
    psi: np.ndarray,
    h_beta: float,
    solver: Optional[LinearSolver],
    x: np.ndarray,
    options: Options,
):
    """Iterates x_new = psi + h_beta f(t_new, x_new) from the predictor

    Returns:
        tuple: the last iterate and whether the iteration converged
    """
    scale = options.absolute_tolerance + options.relative_tolerance * np.abs(x)
    y = x_pred
    last_norm = math.inf
    for _ in range(int(options.number_of_iterations)):
        fy = f(t_new, y)
        if solver is None:
            delta = psi + h_beta * fy - y
        else:
            delta = -solver(y - psi - h_beta * fy)
        y = y + delta
        norm = float(np.sqrt(np.mean((delta / scale) ** 2))) if delta.size else 0.0
        if not math.isfinite(norm) or norm >= last_norm:
            # diverging
            return y, False
        if norm <= CORRECTOR_TOLERANCE:
            return y, True
        last_norm = norm
    return y, False


def _newton_solver(
    options: Options, t: float, x: np.ndarray, h_beta: float, n: int
) -> LinearSolver:
    """Factorizes I - h_beta J with the dense or the sparse Jacobian"""
    if options.sparse_jacobian is not None:
        J = options.sparse_jacobian
        J = scipy.sparse.csc_matrix(J(t, x) if callable(J) else J)
        _check_jacobian_shape(J.shape, n)
        A = (scipy.sparse.identity(n, format="csc") - h_beta * J).tocsc()
        try:
            lu = scipy.sparse.linalg.splu(A)
        except RuntimeError as e:
            raise np.linalg.LinAlgError(str(e)) from e
        return lu.solve

    J = options.jacobian
    J = np.asarray(J(t, x) if callable(J) else J, dtype=float)
    _check_jacobian_shape(J.shape, n)
    A = np.eye(n) - h_beta * J
    lu, piv = scipy.linalg.lu_factor(A, check_finite=True)
    if np.any(np.diag(lu) == 0.0):
        raise np.linalg.LinAlgError("iteration matrix is singular")
    return lambda rhs: scipy.linalg.lu_solve((lu, piv), rhs)


def _check_jacobian_shape(shape: tuple, n: int) -> None:
    if tuple(shape) != (n, n):
        raise DimensionError(f"The Jacobian must have shape ({n}, {n}), got {tuple(shape)}")
