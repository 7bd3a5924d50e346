"""SO(3) and so(3) Lie group operations in JAX.

This module implements the rotation helpers used by forward kinematics and by
the pose error of the numeric IK search. All functions are pure, JIT-able,
and operate on JAX arrays.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def exp(log_r: Array) -> Array:
    """
    SO(3) exponential map: convert axis-angle vector to rotation matrix.

    Implements Rodrigues' formula. Used to apply revolute joint motion.

    Args:
        log_r: (..., 3) array of axis-angle vectors

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    angle = jnp.linalg.norm(log_r, axis=-1, keepdims=True)

    small_angle = angle < 1e-8

    # Taylor expansion near zero, full Rodrigues otherwise
    cos_angle = jnp.where(small_angle, 1.0 - 0.5 * angle**2, jnp.cos(angle))
    sin_angle = jnp.where(small_angle, angle - angle**3 / 6.0, jnp.sin(angle))

    safe_angle = jnp.where(small_angle, 1.0, angle)
    axis = jnp.where(small_angle, log_r, log_r / safe_angle)

    K = skew_symmetric(axis)

    I = jnp.eye(3, dtype=log_r.dtype)
    I = jnp.broadcast_to(I, log_r.shape[:-1] + (3, 3))

    return (I +
            sin_angle[..., None] * K +
            (1.0 - cos_angle)[..., None] * jnp.matmul(K, K))


def log(R: Array) -> Array:
    """
    SO(3) logarithm map: convert rotation matrix to axis-angle vector.

    The IK search uses this as its orientation error, so both ends of the
    angle range are handled explicitly: near zero the skew part is already
    the axis-angle vector, near π the axis is recovered from the symmetric
    part of R.

    Args:
        R: (..., 3, 3) array of rotation matrices

    Returns:
        (..., 3) array of axis-angle vectors
    """
    trace = jnp.trace(R, axis1=-2, axis2=-1)

    cos_angle = jnp.clip((trace - 1.0) / 2.0, -1.0, 1.0)
    angle = jnp.arccos(cos_angle)

    small_angle = angle < 1e-6
    near_pi = (jnp.pi - angle) < 1e-4

    skew_part = jnp.stack([
        R[..., 2, 1] - R[..., 1, 2],
        R[..., 0, 2] - R[..., 2, 0],
        R[..., 1, 0] - R[..., 0, 1]
    ], axis=-1)

    # sin(angle) -> angle as angle -> 0, so skew/2 is already angle * axis
    log_small = skew_part / 2.0

    safe_sin = jnp.where(small_angle | near_pi, 1.0, jnp.sin(angle))
    log_general = (angle / (2.0 * safe_sin))[..., None] * skew_part

    # Near π: sym(R) + I = 2 * axis * axis^T; take the column with the largest diagonal
    B = ((R + jnp.swapaxes(R, -1, -2)) / 2.0 + jnp.eye(3, dtype=R.dtype)) / 2.0
    diag_vals = jnp.diagonal(B, axis1=-2, axis2=-1)
    max_idx = jnp.argmax(diag_vals, axis=-1)
    axis_pi = jnp.take_along_axis(B, max_idx[..., None, None], axis=-1)[..., 0]
    axis_pi = axis_pi / jnp.linalg.norm(axis_pi, axis=-1, keepdims=True)
    # Recover the sign from the (tiny) skew part when it is available
    sign = jnp.where(jnp.sum(axis_pi * skew_part, axis=-1, keepdims=True) < 0, -1.0, 1.0)
    log_pi = angle[..., None] * axis_pi * sign

    return jnp.where(
        small_angle[..., None],
        log_small,
        jnp.where(near_pi[..., None], log_pi, log_general)
    )


def skew_symmetric(v: Array) -> Array:
    """
    Convert 3D vector to skew-symmetric matrix.

    Args:
        v: (..., 3) vector

    Returns:
        (..., 3, 3) skew-symmetric matrix
    """
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)

    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)


def rotation_about_z(angle) -> Array:
    """Rotation matrix for a rotation of `angle` radians about +Z."""
    c = jnp.cos(angle)
    s = jnp.sin(angle)
    return jnp.array([
        [c, -s, 0.0],
        [s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


def from_quaternion(quaternions: Array) -> Array:
    """
    Convert quaternions to rotation matrices.

    Args:
        quaternions: (..., 4) array of quaternions in (w, x, y, z) format

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    quaternions = quaternions / jnp.linalg.norm(quaternions, axis=-1, keepdims=True)

    w, x, y, z = jnp.moveaxis(quaternions, -1, 0)

    xx, yy, zz = x*x, y*y, z*z
    wx, wy, wz = w*x, w*y, w*z
    xy, xz, yz = x*y, x*z, y*z

    return jnp.stack([
        jnp.stack([1 - 2*(yy + zz), 2*(xy - wz), 2*(xz + wy)], axis=-1),
        jnp.stack([2*(xy + wz), 1 - 2*(xx + zz), 2*(yz - wx)], axis=-1),
        jnp.stack([2*(xz - wy), 2*(yz + wx), 1 - 2*(xx + yy)], axis=-1)
    ], axis=-2)


def to_quaternion(matrix: Array) -> Array:
    """
    Convert rotation matrices to quaternions (w, x, y, z).

    Branch-free (Shepperd's method with masks) so it stays JIT-friendly.
    The returned quaternion has a non-negative scalar part.

    Args:
        matrix: (..., 3, 3) array of rotation matrices

    Returns:
        (..., 4) array of quaternions in (w, x, y, z) format
    """
    m00, m01, m02 = matrix[..., 0, 0], matrix[..., 0, 1], matrix[..., 0, 2]
    m10, m11, m12 = matrix[..., 1, 0], matrix[..., 1, 1], matrix[..., 1, 2]
    m20, m21, m22 = matrix[..., 2, 0], matrix[..., 2, 1], matrix[..., 2, 2]

    trace = m00 + m11 + m22
    eps = jnp.finfo(matrix.dtype).eps

    q0 = jnp.stack([trace + 1.0, m21 - m12, m02 - m20, m10 - m01], axis=-1)
    q1 = jnp.stack([m21 - m12, m00 - m11 - m22 + 1.0, m01 + m10, m02 + m20], axis=-1)
    q2 = jnp.stack([m02 - m20, m01 + m10, m11 - m00 - m22 + 1.0, m12 + m21], axis=-1)
    q3 = jnp.stack([m10 - m01, m02 + m20, m12 + m21, m22 - m00 - m11 + 1.0], axis=-1)

    q0 = q0 * (0.5 / jnp.sqrt(jnp.maximum(1.0 + trace, eps)))[..., None]
    q1 = q1 * (0.5 / jnp.sqrt(jnp.maximum(1.0 + m00 - m11 - m22, eps)))[..., None]
    q2 = q2 * (0.5 / jnp.sqrt(jnp.maximum(1.0 + m11 - m00 - m22, eps)))[..., None]
    q3 = q3 * (0.5 / jnp.sqrt(jnp.maximum(1.0 + m22 - m00 - m11, eps)))[..., None]

    mask0 = trace > 0
    mask1 = (~mask0) & (m00 > m11) & (m00 > m22)
    mask2 = (~mask0) & (~mask1) & (m11 > m22)
    mask3 = (~mask0) & (~mask1) & (~mask2)

    quaternion = (
        jnp.where(mask0[..., None], q0, 0) +
        jnp.where(mask1[..., None], q1, 0) +
        jnp.where(mask2[..., None], q2, 0) +
        jnp.where(mask3[..., None], q3, 0)
    )

    quaternion = jnp.where(quaternion[..., 0:1] < 0, -quaternion, quaternion)
    return quaternion / jnp.linalg.norm(quaternion, axis=-1, keepdims=True)
