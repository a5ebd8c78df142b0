# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

from .ode import integrate, solve
from .ode_model import FunctionModel, OdeModel, SolutionPoint
from .options import Options
