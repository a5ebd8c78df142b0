# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

from planar_rbd.chain import ArticulatedChain
from planar_rbd.core import (
    GRAVITY,
    ChainConfigurationError,
    ConvergenceError,
    DegenerateBodyError,
    DimensionError,
    Methods,
    OptionsError,
    PlanarRbdError,
    RBDAlgorithms,
    SpatialMath,
    SpatialOperator,
    SpatialVector,
)
from planar_rbd.model import ChainState, RigidBody
from planar_rbd.simulation import (
    FunctionModel,
    OdeModel,
    Options,
    SolutionPoint,
    integrate,
    solve,
)
