"""
JAX Reach: collision-aware inverse kinematics for reachability studies.

Numeric IK over a robot's planning group, gated by self/environment
collision and a minimum obstacle clearance, with an optional sweep over the
tool's rotation about its approach axis.
"""

import jax
jax.config.update("jax_enable_x64", True)

from . import transforms
from . import core
from . import io
from . import collision
from . import ik

__version__ = "0.1.0"
__all__ = ["transforms", "core", "io", "collision", "ik"]
