# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.


class PlanarRbdError(Exception):
    """Base class of the errors raised by planar_rbd"""


class ChainConfigurationError(PlanarRbdError, ValueError):
    """The chain (or one of its bodies) was rejected at construction"""


class DegenerateBodyError(ChainConfigurationError):
    """A body, or a joint's effective inertia, cannot support the dynamics"""


class DimensionError(PlanarRbdError, ValueError):
    """An array does not have the length required by the model"""


class OptionsError(PlanarRbdError, ValueError):
    """Invalid integration options"""


class ConvergenceError(PlanarRbdError, RuntimeError):
    """The integrator could not complete a step.

    Args:
        message (str): description of the failure
        time (float): time of the last accepted point
        step (float): last attempted step size
    """

    def __init__(self, message: str, time: float, step: float) -> None:
        super().__init__(f"{message} (t={time:g}, h={step:g})")
        self.time = time
        self.step = step
