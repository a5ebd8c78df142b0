# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

from enum import Enum

import numpy as np

GRAVITY = np.array([0.0, -10.0])
"""Default gravity acceleration used by the chains, along -y."""

EFFECTIVE_INERTIA_EPS = 1e-12
"""Effective joint inertias at or below this value are treated as degenerate."""


class Methods(Enum):
    """Integration methods available through ``planar_rbd.integrate``"""

    EULER = "euler"
    RK45 = "rk45"
    RK547M = "rk547m"
    GEAR_BDF = "gear_bdf"

    @classmethod
    def from_value(cls, method) -> "Methods":
        """Resolves a member, its value or its (case insensitive) name

        Args:
            method (Union[Methods, str]): the method selector

        Returns:
            Methods: the selected method
        """
        if isinstance(method, cls):
            return method
        if isinstance(method, str):
            key = method.strip().lower()
            for member in cls:
                if key in (member.value, member.name.lower()):
                    return member
            # name used by older releases
            if key == "gearpdf":
                return cls.GEAR_BDF
        raise ValueError(f"Unknown integration method: {method!r}")
