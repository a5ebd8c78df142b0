import math

import numpy as np
import pytest

from planar_rbd import Methods, Options, OptionsError


def test_defaults():
    options = Options.default()
    assert options.initial_step == 0.0
    assert options.absolute_tolerance == 1e-6
    assert options.relative_tolerance == 1e-3
    assert options.output_step == 0.0
    assert options.max_step == math.inf
    assert options.min_step == 0.0
    assert options.max_scale == 1.1
    assert options.min_scale == 0.9
    assert options.number_of_iterations == 5
    assert options.jacobian is None
    assert options.sparse_jacobian is None


def test_replace():
    options = Options.default().replace(relative_tolerance=1e-8)
    assert options.relative_tolerance == 1e-8
    assert Options.default().relative_tolerance == 1e-3


@pytest.mark.parametrize(
    "changes",
    [
        {"absolute_tolerance": 0.0},
        {"relative_tolerance": -1e-3},
        {"initial_step": -0.1},
        {"output_step": math.inf},
        {"min_step": -1.0},
        {"max_step": 0.0},
        {"min_step": 1.0, "max_step": 0.5},
        {"min_scale": 1.0},
        {"min_scale": 0.0},
        {"max_scale": 0.9},
        {"number_of_iterations": 0},
        {"number_of_iterations": 2.5},
        {"number_of_iterations": math.inf},
        {"number_of_iterations": math.nan},
        {"jacobian": np.eye(2), "sparse_jacobian": np.eye(2)},
    ],
)
def test_invalid_options(changes):
    with pytest.raises(OptionsError):
        Options(**changes)


@pytest.mark.parametrize(
    "value, expected",
    [
        (Methods.EULER, Methods.EULER),
        ("rk45", Methods.RK45),
        ("RK547M", Methods.RK547M),
        ("gear_bdf", Methods.GEAR_BDF),
        ("GearPDF", Methods.GEAR_BDF),
    ],
)
def test_methods(value, expected):
    assert Methods.from_value(value) is expected


def test_unknown_method():
    with pytest.raises(ValueError):
        Methods.from_value("leapfrog")
