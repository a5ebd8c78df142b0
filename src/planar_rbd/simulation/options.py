# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import dataclasses
import math
from typing import Any

from planar_rbd.core.exceptions import OptionsError


@dataclasses.dataclass(frozen=True)
class Options:
    """Integration options. Names follow MATLAB's odeset where possible.

    Args:
        initial_step (float): first trial step, 0 picks one automatically
        absolute_tolerance (float): absolute error tolerance
        relative_tolerance (float): relative error tolerance
        output_step (float): output cadence, 0 reports every accepted step
        max_step (float): upper bound of the step size
        min_step (float): a rejected step below this size fails the integration
        max_scale (float): largest growth factor of the step after an accepted step
        min_scale (float): smallest factor after an accepted step, and largest after a rejected one
        number_of_iterations (int): corrector iterations of the GearBDF method
        jacobian (Any): dense Jacobian, array or callable (t, x) -> array, GearBDF only
        sparse_jacobian (Any): scipy sparse Jacobian, matrix or callable (t, x) -> matrix, GearBDF only
    """

    initial_step: float = 0.0
    absolute_tolerance: float = 1e-6
    relative_tolerance: float = 1e-3
    output_step: float = 0.0
    max_step: float = math.inf
    min_step: float = 0.0
    max_scale: float = 1.1
    min_scale: float = 0.9
    number_of_iterations: int = 5
    jacobian: Any = None
    sparse_jacobian: Any = None

    def __post_init__(self):
        if not self.absolute_tolerance > 0.0:
            raise OptionsError(
                f"absolute_tolerance must be positive, got {self.absolute_tolerance}"
            )
        if not self.relative_tolerance >= 0.0:
            raise OptionsError(
                f"relative_tolerance cannot be negative, got {self.relative_tolerance}"
            )
        for name in ("initial_step", "output_step", "min_step"):
            value = getattr(self, name)
            if not (value >= 0.0 and math.isfinite(value)):
                raise OptionsError(f"{name} must be finite and non negative, got {value}")
        if not self.max_step > 0.0:
            raise OptionsError(f"max_step must be positive, got {self.max_step}")
        if self.min_step > self.max_step:
            raise OptionsError(
                f"min_step ({self.min_step}) is larger than max_step ({self.max_step})"
            )
        if not 0.0 < self.min_scale < 1.0:
            raise OptionsError(f"min_scale must lie in (0, 1), got {self.min_scale}")
        if not self.max_scale >= 1.0:
            raise OptionsError(f"max_scale must be at least 1, got {self.max_scale}")
        iterations = self.number_of_iterations
        if (
            not math.isfinite(iterations)
            or int(iterations) != iterations
            or iterations < 1
        ):
            raise OptionsError(
                f"number_of_iterations must be a positive integer, got {self.number_of_iterations}"
            )
        if self.jacobian is not None and self.sparse_jacobian is not None:
            raise OptionsError("Set either jacobian or sparse_jacobian, not both")

    @staticmethod
    def default() -> "Options":
        return _DEFAULT

    def replace(self, **changes) -> "Options":
        return dataclasses.replace(self, **changes)


_DEFAULT = Options()
