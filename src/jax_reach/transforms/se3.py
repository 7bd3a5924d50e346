"""SE(3) operations in JAX.

This module implements SE(3) rigid body transforms using homogeneous matrices
and 6D twist vectors. All functions are pure, JIT-able, and operate on JAX arrays.
"""


import jax
import jax.numpy as jnp

from . import so3

Array = jax.Array


def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Construct SE(3) transform from position and rotation.

    Args:
        p: (..., 3) position vector
        R: (..., 3, 3) rotation matrix

    Returns:
        (..., 4, 4) homogeneous transformation matrix
    """
    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    p = jnp.broadcast_to(p, batch_shape + (3,))
    R = jnp.broadcast_to(R, batch_shape + (3, 3))

    T = jnp.zeros(batch_shape + (4, 4), dtype=p.dtype)
    T = T.at[..., :3, :3].set(R)
    T = T.at[..., :3, 3].set(p)
    T = T.at[..., 3, 3].set(1.0)

    return T


def exp(twist: Array) -> Array:
    """
    SE(3) exponential map: convert twist to transformation matrix.

    Joint motion is a pure twist (rotation for revolute joints, translation
    for prismatic ones), so this is what forward kinematics applies per link.

    Args:
        twist: (..., 6) array of twists [vx, vy, vz, wx, wy, wz].

    Returns:
        (..., 4, 4) array of transformation matrices.
    """
    v, w = twist[..., :3], twist[..., 3:]
    angle = jnp.linalg.norm(w, axis=-1, keepdims=True)
    angle_sq = angle * angle

    R = so3.exp(w)

    is_small_angle = angle < 1e-6
    safe_sq = jnp.where(is_small_angle, 1.0, angle_sq)

    # A = (1 - cos(theta)) / theta^2, B = (theta - sin(theta)) / theta^3
    A = jnp.where(is_small_angle, 0.5 - angle_sq / 24.0, (1.0 - jnp.cos(angle)) / safe_sq)
    B = jnp.where(is_small_angle, 1.0 / 6.0 - angle_sq / 120.0,
                  (angle - jnp.sin(angle)) / (safe_sq * jnp.where(is_small_angle, 1.0, angle)))

    K = so3.skew_symmetric(w)
    I = jnp.broadcast_to(jnp.eye(3, dtype=twist.dtype), K.shape)

    # V = I + A*K + B*K^2
    V = I + A[..., None] * K + B[..., None] * jnp.matmul(K, K)

    t = jnp.einsum("...ij,...j->...i", V, v)

    return from_position_and_rotation(t, R)


def multiply(T1: Array, T2: Array) -> Array:
    """Compose two SE(3) matrices (T1 @ T2)."""
    return jnp.matmul(T1, T2)


def inverse(T: Array) -> Array:
    """
    Compute inverse of SE(3) transformation matrix.

    Uses the block structure: T^-1 = [[R^T, -R^T @ t], [0, 1]]

    Args:
        T: (..., 4, 4) transformation matrix

    Returns:
        (..., 4, 4) inverse transformation matrix
    """
    R = T[..., :3, :3]
    t = T[..., :3, 3]

    R_inv = jnp.swapaxes(R, -1, -2)
    t_inv = -jnp.einsum("...ij,...j->...i", R_inv, t)

    return from_position_and_rotation(t_inv, R_inv)


def get_position(T: Array) -> Array:
    """Extract the (..., 3) position from an SE(3) matrix."""
    return T[..., :3, 3]


def get_rotation(T: Array) -> Array:
    """Extract the (..., 3, 3) rotation from an SE(3) matrix."""
    return T[..., :3, :3]


def pose_error(T_current: Array, T_target: Array) -> Array:
    """
    6D error that drives T_current towards T_target, in their common frame.

    Args:
        T_current: (4, 4) current pose
        T_target: (4, 4) desired pose

    Returns:
        (6,) array [dx, dy, dz, rx, ry, rz]: position difference followed by
        the axis-angle vector of R_target @ R_current^T.
    """
    dp = get_position(T_target) - get_position(T_current)
    dR = jnp.matmul(get_rotation(T_target), jnp.swapaxes(get_rotation(T_current), -1, -2))
    return jnp.concatenate([dp, so3.log(dR)], axis=-1)
