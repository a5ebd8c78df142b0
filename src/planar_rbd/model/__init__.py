# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

from .chain_state import ChainState
from .rigid_body import RigidBody
