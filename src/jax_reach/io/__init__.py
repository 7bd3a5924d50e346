"""I/O utilities for loading robot models from various file formats.

This module provides functions for parsing standard robotics file formats
(URDF, SRDF) and converting them to JAX-native data structures.
"""

from .loader import get_shared_robot_model, load_robot
from .resources import ResourceError, resolve_resource
from .srdf_parser import load_srdf
from .urdf_parser import load_collision_shapes, load_urdf

__all__ = [
    "ResourceError",
    "get_shared_robot_model",
    "load_collision_shapes",
    "load_robot",
    "load_srdf",
    "load_urdf",
    "resolve_resource",
]
