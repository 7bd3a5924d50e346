"""Conversion of collision shapes and mesh assets into FCL geometry."""

from typing import Sequence, Tuple

import fcl
import numpy as np
import trimesh

from jax_reach.core import CollisionShape


class MeshLoadError(ValueError):
    """A mesh asset could not be turned into collision geometry."""


def load_mesh(filename: str, scale: Sequence[float] = (1.0, 1.0, 1.0)) -> trimesh.Trimesh:
    """Load a mesh asset as a single triangle mesh.

    Raises:
        MeshLoadError: the file cannot be read or holds no triangles.
    """
    try:
        mesh = trimesh.load(filename, force="mesh")
    except (OSError, ValueError) as exc:
        raise MeshLoadError(f"Failed to load mesh '{filename}': {exc}") from exc
    if not isinstance(mesh, trimesh.Trimesh) or len(mesh.faces) == 0:
        raise MeshLoadError(f"Mesh '{filename}' contains no triangles")

    scale = np.asarray(scale, dtype=np.float64)
    if not np.allclose(scale, 1.0):
        mesh = trimesh.Trimesh(vertices=mesh.vertices * scale, faces=mesh.faces, process=False)
    return mesh


def bvh_from_mesh(mesh: trimesh.Trimesh, *, name: str) -> fcl.BVHModel:
    v, f = _ensure_fcl_arrays(mesh, name=name)
    m = fcl.BVHModel()
    m.beginModel(v.shape[0], f.shape[0])
    m.addSubModel(v, f)
    m.endModel()
    return m


def geometry_from_shape(shape: CollisionShape, *, name: str) -> fcl.CollisionGeometry:
    """FCL primitive for URDF primitives, a BVH for meshes."""
    if shape.kind == "box":
        return fcl.Box(*shape.size)
    if shape.kind == "sphere":
        return fcl.Sphere(shape.radius)
    if shape.kind == "cylinder":
        return fcl.Cylinder(shape.radius, shape.length)
    if shape.kind == "mesh":
        return bvh_from_mesh(load_mesh(shape.filename, shape.scale), name=name)
    raise MeshLoadError(f"{name}: unsupported shape kind '{shape.kind}'")


def to_fcl_transform(T: np.ndarray) -> fcl.Transform:
    T = np.asarray(T, dtype=np.float64)
    R = np.ascontiguousarray(T[:3, :3])
    t = np.ascontiguousarray(T[:3, 3])
    return fcl.Transform(R, t)


def _ensure_fcl_arrays(mesh: trimesh.Trimesh, *, name: str) -> Tuple[np.ndarray, np.ndarray]:
    if mesh.vertices.ndim != 2 or mesh.vertices.shape[1] != 3:
        raise MeshLoadError(f"{name}: vertices must be (N,3)")
    if mesh.faces.ndim != 2 or mesh.faces.shape[1] != 3 or mesh.faces.size == 0:
        raise MeshLoadError(f"{name}: faces must be (M,3) and non-empty")
    v = np.ascontiguousarray(mesh.vertices, dtype=np.float64)
    f = np.ascontiguousarray(mesh.faces, dtype=np.int32)  # FCL wants int32
    if not np.isfinite(v).all():
        raise MeshLoadError(f"{name}: NaN/Inf in vertices")
    return v, f
