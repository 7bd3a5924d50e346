"""Joint groups: the ordered subset of joints an IK solver controls."""

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

import numpy as np

from .robot_model import RobotModel
from .semantic_model import SemanticModel


class JointGroupError(ValueError):
    """A joint group cannot be resolved against the robot model."""


@dataclass(frozen=True)
class JointGroup:
    """Ordered, named subset of a robot's active joints.

    Attributes:
        name: Group name.
        joint_names: Active joints in solver order.
        joint_indices: Position of each group joint in a full configuration.
        base_link: Frame IK targets are expressed in.
        tip_link: Link whose pose is driven to the target.
        moved_links: Every link whose pose depends on a group joint.
    """
    name: str
    joint_names: Tuple[str, ...]
    joint_indices: Tuple[int, ...]
    base_link: str
    tip_link: str
    moved_links: FrozenSet[str]

    @property
    def dof(self) -> int:
        return len(self.joint_names)

    @classmethod
    def from_chain(cls, robot: RobotModel, base_link: str, tip_link: str,
                   name: Optional[str] = None) -> "JointGroup":
        """Group made of the active joints between ``base_link`` and ``tip_link``."""
        name = name or f"{base_link}->{tip_link}"
        base_idx = _link_index(robot, base_link, name)
        tip_idx = _link_index(robot, tip_link, name)

        path = []
        parents = np.asarray(robot.parent_indices)
        idx = tip_idx
        while idx != base_idx:
            parent = int(parents[idx])
            if parent == idx:
                raise JointGroupError(
                    f"Group '{name}': link '{tip_link}' is not a descendant of '{base_link}'")
            path.append(idx)
            idx = parent

        joint_by_link = _joint_by_link(robot)
        joint_indices = [joint_by_link[i] for i in reversed(path) if i in joint_by_link]
        return cls._build(robot, name, joint_indices, base_link, tip_link)

    @classmethod
    def from_joints(cls, robot: RobotModel, joint_names: Sequence[str], name: str) -> "JointGroup":
        """Group made of an explicit list of active joints, kept in the given order."""
        joint_indices = []
        for joint_name in joint_names:
            if joint_name not in robot.joint_names:
                raise JointGroupError(f"Group '{name}': '{joint_name}' is not an active joint")
            idx = robot.joint_names.index(joint_name)
            if idx not in joint_indices:
                joint_indices.append(idx)
        if not joint_indices:
            raise JointGroupError(f"Group '{name}' has no active joints")

        link_idx = np.asarray(robot.actuated_joint_to_link_idx)
        parents = np.asarray(robot.parent_indices)
        base_link = robot.link_names[int(parents[link_idx[joint_indices[0]]])]
        tip_link = robot.link_names[int(link_idx[joint_indices[-1]])]
        return cls._build(robot, name, joint_indices, base_link, tip_link)

    @classmethod
    def from_semantic(cls, robot: RobotModel, semantic: SemanticModel, name: str) -> "JointGroup":
        """Resolve a planning group declared in an SRDF."""
        declared = semantic.groups.get(name)
        if declared is None:
            raise JointGroupError(f"Failed to initialize joint model group for planning group '{name}'")

        if declared.chain is not None and not declared.joints and not declared.subgroups:
            return cls.from_chain(robot, declared.chain[0], declared.chain[1], name=name)

        joint_names = _collect_joint_names(robot, semantic, name, set())
        group = cls.from_joints(robot, joint_names, name)
        if declared.chain is not None:
            # Keep the declared chain's frames as the IK frames
            return cls(group.name, group.joint_names, group.joint_indices,
                       declared.chain[0], declared.chain[1], group.moved_links)
        return group

    @classmethod
    def _build(cls, robot: RobotModel, name: str, joint_indices: List[int],
               base_link: str, tip_link: str) -> "JointGroup":
        if not joint_indices:
            raise JointGroupError(f"Group '{name}' has no active joints")

        children: Dict[int, List[int]] = {}
        for child, parent in enumerate(np.asarray(robot.parent_indices).tolist()):
            if child != parent:
                children.setdefault(parent, []).append(child)

        link_idx = np.asarray(robot.actuated_joint_to_link_idx)
        moved = set()
        stack = [int(link_idx[j]) for j in joint_indices]
        while stack:
            idx = stack.pop()
            if idx in moved:
                continue
            moved.add(idx)
            stack.extend(children.get(idx, []))

        return cls(
            name=name,
            joint_names=tuple(robot.joint_names[j] for j in joint_indices),
            joint_indices=tuple(joint_indices),
            base_link=base_link,
            tip_link=tip_link,
            moved_links=frozenset(robot.link_names[i] for i in moved),
        )


def _link_index(robot: RobotModel, link_name: str, group_name: str) -> int:
    if link_name not in robot.link_names:
        raise JointGroupError(f"Group '{group_name}': unknown link '{link_name}'")
    return robot.link_names.index(link_name)


def _joint_by_link(robot: RobotModel) -> Dict[int, int]:
    return {int(link): j for j, link in enumerate(np.asarray(robot.actuated_joint_to_link_idx).tolist())}


def _collect_joint_names(robot: RobotModel, semantic: SemanticModel, name: str, seen: set) -> List[str]:
    if name in seen:
        raise JointGroupError(f"Group '{name}' includes itself")
    seen.add(name)
    declared = semantic.groups.get(name)
    if declared is None:
        raise JointGroupError(f"Unknown subgroup '{name}'")

    names: List[str] = []
    if declared.chain is not None:
        names.extend(JointGroup.from_chain(robot, declared.chain[0], declared.chain[1], name=name).joint_names)
    names.extend(declared.joints)
    for sub in declared.subgroups:
        names.extend(_collect_joint_names(robot, semantic, sub, seen))
    return names
