"""Read-only kinematic model shared by every solver instance."""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

import numpy as np

from .geometry import CollisionShape
from .joint_group import JointGroup
from .robot_model import RobotModel
from .semantic_model import SemanticModel


@dataclass(frozen=True, eq=False)
class KinematicModel:
    """Robot kinematics, link collision geometry and planning groups.

    Instances are never mutated after loading, so one model can back any
    number of solvers and concurrent queries.
    """
    robot: RobotModel
    collision_shapes: Dict[str, Tuple[CollisionShape, ...]] = field(default_factory=dict)
    semantic: SemanticModel = field(default_factory=SemanticModel)

    @property
    def joint_names(self) -> Tuple[str, ...]:
        return self.robot.joint_names

    @property
    def link_names(self) -> Tuple[str, ...]:
        return self.robot.link_names

    def get_joint_group(self, name: str) -> JointGroup:
        return JointGroup.from_semantic(self.robot, self.semantic, name)

    def default_positions(self) -> np.ndarray:
        """Zero for every joint, or the middle of its range when zero is out of bounds."""
        lower = np.asarray(self.robot.lower_limits)
        upper = np.asarray(self.robot.upper_limits)
        q = np.zeros(self.robot.num_dof)
        outside = (q < lower) | (q > upper)
        q[outside] = 0.5 * (lower[outside] + upper[outside])
        return q

    def merge_positions(self, positions: Mapping[str, float]) -> np.ndarray:
        """Full configuration: defaults overridden by the given joint values.

        Raises:
            ValueError: a name is not an active joint of the robot.
        """
        q = self.default_positions()
        for joint_name, value in positions.items():
            q[self.robot.joint_index(joint_name)] = float(value)
        return q

    def enforce_bounds(self, q: np.ndarray) -> np.ndarray:
        return np.clip(q, np.asarray(self.robot.lower_limits), np.asarray(self.robot.upper_limits))
