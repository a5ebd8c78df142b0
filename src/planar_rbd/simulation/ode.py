# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import logging
from typing import Iterator, Tuple, Union

import numpy as np

from planar_rbd.core.constants import Methods
from planar_rbd.core.exceptions import DimensionError
from planar_rbd.simulation.explicit import (
    AcceptedStep,
    VectorField,
    euler,
    rk45,
    rk547m,
)
from planar_rbd.simulation.gear_bdf import gear_bdf
from planar_rbd.simulation.ode_model import OdeModel, SolutionPoint
from planar_rbd.simulation.options import Options

_STEPPERS = {
    Methods.EULER: euler,
    Methods.RK45: rk45,
    Methods.RK547M: rk547m,
    Methods.GEAR_BDF: gear_bdf,
}


def integrate(
    model: OdeModel,
    method: Union[Methods, str] = Methods.RK547M,
    options: Options = None,
    initial_step: float = None,
) -> Iterator[SolutionPoint]:
    """Lazily integrates the model from its initial state.

    The first point is the initial state, then one point per accepted step,
    or one point every `options.output_step` when it is set. The sequence
    has no end: stop pulling when done. Calling integrate again restarts
    from the initial state.

    Args:
        model (OdeModel): the model to integrate
        method (Union[Methods, str], optional): the integration method. Defaults to Methods.RK547M.
        options (Options, optional): the options. Defaults to Options.default().
        initial_step (float, optional): shortcut overriding options.initial_step

    Returns:
        Iterator[SolutionPoint]: the trajectory
    """
    method = Methods.from_value(method)
    options = Options.default() if options is None else options
    if initial_step is not None:
        options = options.replace(initial_step=initial_step)
    t0, x0 = model.initial_state
    x0 = np.array(x0, dtype=float)
    if x0.ndim != 1:
        raise DimensionError(f"The initial state must be a 1-D array, got shape {x0.shape}")
    f = _checked_vector_field(model, x0.shape[0])
    steps = _STEPPERS[method](float(t0), x0, f, options)
    if options.output_step > 0.0:
        return _resample(steps, options.output_step)
    return (SolutionPoint.build(step.t, step.x) for step in steps)


def solve(
    model: OdeModel,
    method: Union[Methods, str],
    t_final: float,
    options: Options = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Collects the points of integrate up to t_final

    Args:
        model (OdeModel): the model to integrate
        method (Union[Methods, str]): the integration method
        t_final (float): the final time
        options (Options, optional): the options

    Returns:
        Tuple[np.ndarray, np.ndarray]: the times and the states, one row per point
    """
    times, states = [], []
    t_end = t_final + 1e-12 * max(1.0, abs(t_final))
    for t, x in integrate(model, method, options):
        if t > t_end:
            break
        times.append(t)
        states.append(x)
    return np.array(times), np.array(states)


def hermite(first: AcceptedStep, second: AcceptedStep, t: float) -> np.ndarray:
    """Cubic Hermite interpolation between two nodes, using f at both ends"""
    h = second.t - first.t
    s = (t - first.t) / h
    h00 = (1 + 2 * s) * (1 - s) ** 2
    h10 = s * (1 - s) ** 2
    h01 = s * s * (3 - 2 * s)
    h11 = s * s * (s - 1)
    return h00 * first.x + h10 * h * first.dx + h01 * second.x + h11 * h * second.dx


def _resample(
    steps: Iterator[AcceptedStep], output_step: float
) -> Iterator[SolutionPoint]:
    """Points at t0 + k * output_step, interpolated inside the accepted steps"""
    previous = next(steps)
    t0 = previous.t
    yield SolutionPoint.build(t0, previous.x)
    k = 1
    for step in steps:
        while True:
            t_out = t0 + k * output_step
            if t_out > step.t:
                break
            yield SolutionPoint.build(t_out, hermite(previous, step, t_out))
            k += 1
        previous = step


def _checked_vector_field(model: OdeModel, n: int) -> VectorField:
    def f(t: float, x: np.ndarray) -> np.ndarray:
        dx = np.asarray(model.derivative(t, x), dtype=float)
        if dx.shape != (n,):
            raise DimensionError(
                f"The derivative must have shape ({n},), got {dx.shape}"
            )
        return dx

    logging.debug(f"Integrating a model with {n} states")
    return f
