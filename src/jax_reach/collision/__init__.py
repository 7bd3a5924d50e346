"""Collision checking against the robot's own links and registered obstacles."""

from .acm import AllowedCollisionMatrix
from .geometry import MeshLoadError, load_mesh
from .scene import CollisionScene, SceneError, WorldObject

__all__ = [
    "AllowedCollisionMatrix",
    "CollisionScene",
    "MeshLoadError",
    "SceneError",
    "WorldObject",
    "load_mesh",
]
