"""Core robot model data structures for JAX Reach.

This module provides the fundamental data structures for representing
robots in a JAX-native, immutable format, together with the planning
groups and collision geometry built on top of them.
"""

from .geometry import CollisionShape
from .joint_group import JointGroup, JointGroupError
from .kinematic_model import KinematicModel
from .robot_model import RobotModel
from .semantic_model import GroupSpec, SemanticModel

__all__ = [
    "CollisionShape",
    "GroupSpec",
    "JointGroup",
    "JointGroupError",
    "KinematicModel",
    "RobotModel",
    "SemanticModel",
]
