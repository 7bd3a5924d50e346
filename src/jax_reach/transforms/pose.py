"""Immutable rigid-body pose value used for IK targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import jax
import jax.numpy as jnp
import numpy as np

from . import se3, so3

Array = jax.Array


@dataclass(frozen=True, eq=False)
class Pose:
    """Immutable homogeneous transform (position + orientation)."""
    matrix: Array  # shape (4, 4)

    def __post_init__(self):
        if self.matrix.shape != (4, 4):
            raise ValueError(f"matrix must have shape (4,4), got {self.matrix.shape}")

    # Constructors
    @classmethod
    def from_matrix(cls, matrix) -> "Pose":
        matrix = jnp.asarray(matrix, dtype=jnp.float64)
        if matrix.shape != (4, 4):
            raise ValueError(f"matrix must have shape (4,4), got {matrix.shape}")
        if not bool(jnp.isfinite(matrix).all()):
            raise ValueError("matrix contains NaN/Inf")
        return cls(matrix)

    @classmethod
    def from_pos_quat(cls, pos: Sequence[float], quat: Optional[Sequence[float]] = None) -> "Pose":
        """Build a pose from a position and an optional (w, x, y, z) quaternion."""
        pos = jnp.asarray(pos, dtype=jnp.float64)
        if pos.shape != (3,):
            raise ValueError(f"position must have shape (3,), got {pos.shape}")
        if quat is None:
            rot = jnp.eye(3, dtype=jnp.float64)
        else:
            quat = jnp.asarray(quat, dtype=jnp.float64)
            if quat.shape != (4,) or float(jnp.linalg.norm(quat)) == 0.0:
                raise ValueError("quaternion must be a non-zero (w, x, y, z) vector")
            rot = so3.from_quaternion(quat)
        return cls(se3.from_position_and_rotation(pos, rot))

    @classmethod
    def identity(cls) -> "Pose":
        return cls(jnp.eye(4, dtype=jnp.float64))

    # Basic operations
    def compose(self, other: "Pose") -> "Pose":
        """Self ∘ other (apply *other* first, then self)."""
        return Pose(se3.multiply(self.matrix, other.matrix))

    def __matmul__(self, other: "Pose") -> "Pose":
        return self.compose(other)

    def inverse(self) -> "Pose":
        return Pose(se3.inverse(self.matrix))

    def rotated_about_z(self, angle: float) -> "Pose":
        """Spin the pose about its own local Z axis, keeping its position."""
        rz = se3.from_position_and_rotation(jnp.zeros(3), so3.rotation_about_z(angle))
        return Pose(se3.multiply(self.matrix, rz))

    def is_close(self, other: "Pose", atol: float = 1e-6) -> bool:
        return bool(np.allclose(np.asarray(self.matrix), np.asarray(other.matrix), atol=atol))

    # Convenience helpers
    @property
    def position(self) -> Array:
        return se3.get_position(self.matrix)

    @property
    def rotation(self) -> Array:
        return se3.get_rotation(self.matrix)

    @property
    def quaternion(self) -> Array:
        return so3.to_quaternion(self.rotation)
