"""Single-pose IK resolution gated by collision and clearance checks."""

import logging
from typing import Callable, Iterable, List, Mapping, Optional, Protocol

import numpy as np

from jax_reach.collision import CollisionScene
from jax_reach.core import JointGroup, KinematicModel
from jax_reach.io.resources import resolve_resource
from jax_reach.transforms import Pose

from .numeric import KinematicsSolver, SolverOptions

logger = logging.getLogger(__name__)

COLLISION_OBJECT_NAME = "reach_object"

Solution = List[float]


class IKSolver(Protocol):
    """Anything that maps a target pose and a seed to joint solutions."""

    def solve_ik(self, target: Pose, seed: Mapping[str, float]) -> List[Solution]:
        ...

    def get_joint_names(self) -> List[str]:
        ...


def make_validity_predicate(scene: CollisionScene, group: JointGroup,
                            distance_threshold: float) -> Callable[[np.ndarray], bool]:
    """Build the acceptance gate handed to the root-finder.

    The returned function accepts a full configuration iff the group's links
    are collision free and at least ``distance_threshold`` away from every
    world object they are not allowed to touch. A threshold of 0 reduces it
    to a pure collision test.
    """
    if distance_threshold < 0:
        raise ValueError(f"distance_threshold must be non-negative, got {distance_threshold}")

    def is_valid(positions: np.ndarray) -> bool:
        if scene.is_state_colliding(positions, group):
            return False
        if distance_threshold == 0:
            return True
        distance = scene.distance_to_collision(positions, group, scene.allowed_collision_matrix)
        return distance >= distance_threshold

    return is_valid


class CollisionAwareIKSolver:
    """IK solver returning at most one collision-free solution per query.

    Args:
        model: Shared kinematic model; never modified.
        planning_group: Name of the planning group to control.
        distance_threshold: Minimum clearance from world objects.
        options: Root-finder budget and step parameters.
        package_dirs: Package directories used to resolve ``package://`` meshes.

    Raises:
        JointGroupError: ``planning_group`` cannot be resolved.
    """

    def __init__(self, model: KinematicModel, planning_group: str, distance_threshold: float,
                 options: Optional[SolverOptions] = None,
                 package_dirs: Optional[Mapping[str, str]] = None):
        self.model = model
        self.group = model.get_joint_group(planning_group)
        self.distance_threshold = float(distance_threshold)
        self.package_dirs = dict(package_dirs or {})

        self.scene = CollisionScene(model)
        self.kinematics = KinematicsSolver(model, self.group, options)
        self._is_valid = make_validity_predicate(self.scene, self.group, self.distance_threshold)

        logger.info("IK solver for group '%s' (%d joints, base '%s', tip '%s', clearance %.4f)",
                    self.group.name, self.group.dof, self.kinematics.base_frame,
                    self.kinematics.tip_frame, self.distance_threshold)

    def solve_ik(self, target: Pose, seed: Mapping[str, float]) -> List[Solution]:
        """Solve for ``target`` (in the kinematic base frame) starting from ``seed``.

        ``seed`` may name any subset of the robot's joints; the others take
        their default values. An empty list means no valid solution was found
        within the root-finder's budget.
        """
        positions = self.model.merge_positions(seed)
        solution = self.kinematics.search(target, positions, self._is_valid)
        if solution is None:
            return []
        return [solution[list(self.group.joint_indices)].tolist()]

    def is_solution_valid(self, positions: np.ndarray) -> bool:
        return self._is_valid(np.asarray(positions, dtype=np.float64))

    def get_joint_names(self) -> List[str]:
        return list(self.group.joint_names)

    def get_kinematic_base_frame(self) -> str:
        return self.kinematics.base_frame

    def add_collision_mesh(self, collision_mesh_filename: str, collision_mesh_frame: str) -> None:
        """Register the obstacle mesh, replacing any previous one.

        Raises:
            ResourceError: the file cannot be located.
            MeshLoadError: the file is not a usable mesh.
            SceneError: the frame is not part of the robot.
        """
        path = resolve_resource(collision_mesh_filename, package_dirs=self.package_dirs)
        self.scene.add_mesh_object(COLLISION_OBJECT_NAME, str(path), collision_mesh_frame)

    def set_touch_links(self, touch_links: Iterable[str]) -> None:
        """Let the given links touch the obstacle without counting as a collision."""
        touch_links = list(touch_links)
        unknown = [name for name in touch_links if name not in self.model.link_names]
        if unknown:
            logger.warning("Touch links not found in robot model: %s", unknown)
        self.scene.set_allowed_contacts(COLLISION_OBJECT_NAME, touch_links, True)
