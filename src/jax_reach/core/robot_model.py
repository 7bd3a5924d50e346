"""RobotModel PyTree data structure for JAX-native robot representation.

This module defines the core data structure for representing robots in a
stateless, immutable format that is fully compatible with JAX transformations.
"""

from typing import Tuple

from jax import Array
from flax import struct


@struct.dataclass
class RobotModel:
    """Immutable PyTree representation of a robot's kinematic structure.

    This dataclass represents a robot as a flattened tree structure using
    integer indices for parent-child relationships. All kinematic data is
    stored in JAX arrays for high-performance computation.

    Attributes:
        link_names: Tuple of all link names. Index corresponds to link ID.
                    Marked as a static field for JIT compilation.
        joint_names: Tuple of all actuated (non-fixed) joint names. Index
                     corresponds to the position in a full configuration vector.
        joint_types: URDF type of each actuated joint ("revolute",
                     "continuous" or "prismatic").
        parent_indices: Array of shape (num_links,) where parent_indices[i]
                       is the parent link index of link i. Root link parents itself.
        joint_transforms: Array of shape (num_links, 4, 4) containing SE(3)
                         transformations from each link to its parent.
        joint_axes: Array of shape (num_links, 6) containing 6D se(3) twist
                   vectors for each joint. [vx,vy,vz,wx,wy,wz] format.
        actuated_joint_to_link_idx: Array of shape (num_dof,) mapping each
                   actuated joint to the index of the link it moves.
        lower_limits: Array of shape (num_dof,); -inf for continuous joints.
        upper_limits: Array of shape (num_dof,); +inf for continuous joints.
    """
    link_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joint_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joint_types: Tuple[str, ...] = struct.field(pytree_node=False)
    parent_indices: Array
    joint_transforms: Array
    joint_axes: Array
    actuated_joint_to_link_idx: Array
    lower_limits: Array
    upper_limits: Array

    @property
    def num_dof(self) -> int:
        return len(self.joint_names)

    @property
    def root_link(self) -> str:
        return self.link_names[0]

    def link_index(self, link_name: str) -> int:
        try:
            return self.link_names.index(link_name)
        except ValueError:
            raise ValueError(f"Link '{link_name}' not found in robot model")

    def joint_index(self, joint_name: str) -> int:
        try:
            return self.joint_names.index(joint_name)
        except ValueError:
            raise ValueError(f"Joint '{joint_name}' not found in robot model")
