"""Core kinematics algorithms: Forward Kinematics and Jacobian computation.

This module implements forward kinematics and the geometric Jacobian used
by the numeric IK search, using JAX primitives so both can be JIT-compiled.
"""

from typing import Dict

import jax
import jax.numpy as jnp
from jax import Array

from .core import RobotModel
from .transforms import se3


def forward_kinematics(robot: RobotModel, q: Array) -> Dict[str, Array]:
    """Compute forward kinematics for all links in the robot.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint positions of shape (num_dof,) for actuated joints only

    Returns:
        Dictionary mapping link names to their 4x4 SE(3) world poses
    """
    world_transforms = forward_kinematics_world(robot, q)
    return {name: world_transforms[i] for i, name in enumerate(robot.link_names)}


@jax.jit
def forward_kinematics_world(robot: RobotModel, q: Array) -> Array:
    """Internal FK function returning array of world transforms.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint positions of shape (num_dof,) for actuated joints only

    Returns:
        Array of shape (num_links, 4, 4) with world poses for all links
    """
    num_links = len(robot.link_names)

    # Scatter the actuated joint values onto the links they move.
    q_links = jnp.zeros(num_links, dtype=robot.joint_axes.dtype)
    q_links = q_links.at[robot.actuated_joint_to_link_idx].set(q)

    world_transforms = jnp.broadcast_to(jnp.identity(4, dtype=robot.joint_transforms.dtype),
                                        (num_links, 4, 4))

    def scan_body(carry, i):
        """Processes link `i` using its parent's world pose from `carry`."""
        T_world_to_parent = carry[robot.parent_indices[i]]

        T_joint_motion = se3.exp(robot.joint_axes[i] * q_links[i])
        T_parent_to_child = robot.joint_transforms[i] @ T_joint_motion

        carry = carry.at[i].set(T_world_to_parent @ T_parent_to_child)
        return carry, None

    # Links are in breadth-first order, so every parent is final before its children.
    final_transforms, _ = jax.lax.scan(scan_body, world_transforms, jnp.arange(1, num_links))

    return final_transforms


@jax.jit
def geometric_jacobian(robot: RobotModel, world_transforms: Array,
                       joint_indices: Array, tip_idx: Array) -> Array:
    """Compute the 6D geometric Jacobian of a link w.r.t. selected joints.

    A joint's axis is fixed in the frame of the link it moves, so both the
    axis direction and a point on it come straight from that link's world
    pose.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        world_transforms: (num_links, 4, 4) output of forward_kinematics_world
        joint_indices: (n,) indices of the actuated joints to differentiate
        tip_idx: Index of the target link

    Returns:
        6xn world-frame Jacobian, rows [vx, vy, vz, wx, wy, wz]. Joints that
        are not ancestors of the tip produce zero columns.
    """
    link_idx = robot.actuated_joint_to_link_idx[joint_indices]
    T_links = world_transforms[link_idx]
    R = T_links[:, :3, :3]
    p = T_links[:, :3, 3]
    p_tip = world_transforms[tip_idx, :3, 3]

    axes = robot.joint_axes[link_idx]
    v = jnp.einsum("nij,nj->ni", R, axes[:, :3])
    w = jnp.einsum("nij,nj->ni", R, axes[:, 3:])

    linear = v + jnp.cross(w, p_tip - p)
    columns = jnp.concatenate([linear, w], axis=-1)

    mask = _is_ancestor(robot.parent_indices, link_idx, tip_idx)
    return (columns * mask[:, None]).T


def _is_ancestor(parent_indices: Array, link_idx: Array, tip_idx: Array) -> Array:
    """Per-entry flag: is link_idx[k] the tip or one of its ancestors."""
    num_links = parent_indices.shape[0]

    def body(_, state):
        current, found = state
        found = found | (current == link_idx)
        return parent_indices[current], found

    _, found = jax.lax.fori_loop(0, num_links, body, (tip_idx, jnp.zeros(link_idx.shape, dtype=bool)))
    return found.astype(jnp.float64)
