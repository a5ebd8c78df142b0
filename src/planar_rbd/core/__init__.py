# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

from .constants import GRAVITY, Methods
from .exceptions import (
    ChainConfigurationError,
    ConvergenceError,
    DegenerateBodyError,
    DimensionError,
    OptionsError,
    PlanarRbdError,
)
from .rbd_algorithms import RBDAlgorithms
from .spatial_math import SpatialMath, SpatialOperator, SpatialVector
