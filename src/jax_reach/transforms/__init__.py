"""
JAX-based rigid-body transforms used by the kinematics and IK layers.

This module provides JIT-compilable implementations of:
- SO(3) rotations (so3 module)
- SE(3) rigid body transforms (se3 module)
- the immutable Pose value used for IK targets
"""

from . import so3
from . import se3
from .pose import Pose

__all__ = [
    "so3",
    "se3",
    "Pose",
]
