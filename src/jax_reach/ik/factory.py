"""Construction of IK solvers from configuration mappings."""

import logging
from typing import Any, Mapping

from jax_reach.config import ConfigError, get_param, get_string_list
from jax_reach.io import get_shared_robot_model

from .discretized import DiscretizedIKSolver
from .numeric import SolverOptions
from .solver import CollisionAwareIKSolver, IKSolver

logger = logging.getLogger(__name__)

COLLISION_MESH_FILENAME_KEY = "collision_mesh_filename"
COLLISION_MESH_FRAME_KEY = "collision_mesh_frame"
TOUCH_LINKS_KEY = "touch_links"


class CollisionAwareIKSolverFactory:
    """Builds a CollisionAwareIKSolver and sets up its collision scene.

    Recognised keys: ``robot_description`` (URDF path),
    ``robot_description_semantic`` (SRDF path), ``package_dirs``,
    ``planning_group``, ``distance_threshold``, ``ik`` (root-finder
    options), ``collision_mesh_filename``, ``collision_mesh_frame`` and
    ``touch_links``.
    """

    def create(self, config: Mapping[str, Any]) -> CollisionAwareIKSolver:
        planning_group = get_param(config, "planning_group", str)
        dist_threshold = get_param(config, "distance_threshold", float)
        options = _solver_options(config)

        package_dirs = get_param(config, "package_dirs", dict, default={})
        model = get_shared_robot_model(
            get_param(config, "robot_description", str),
            get_param(config, "robot_description_semantic", str, default=None),
            package_dirs,
        )

        ik_solver = CollisionAwareIKSolver(model, planning_group, dist_threshold,
                                           options=options, package_dirs=package_dirs)

        # Optionally add a collision mesh
        if config.get(COLLISION_MESH_FILENAME_KEY) is not None:
            collision_mesh_filename = get_param(config, COLLISION_MESH_FILENAME_KEY, str)
            collision_mesh_frame = get_param(config, COLLISION_MESH_FRAME_KEY, str,
                                             default=ik_solver.get_kinematic_base_frame())
            ik_solver.add_collision_mesh(collision_mesh_filename, collision_mesh_frame)

        # Optionally add touch links
        if config.get(TOUCH_LINKS_KEY) is not None:
            ik_solver.set_touch_links(get_string_list(config, TOUCH_LINKS_KEY))

        return ik_solver


class DiscretizedIKSolverFactory:
    """Builds a DiscretizedIKSolver around a solver from ``base_factory``.

    Adds the keys ``discretization_angle`` (required) and ``max_workers``.
    """

    def __init__(self, base_factory=None):
        self.base_factory = base_factory or CollisionAwareIKSolverFactory()

    def create(self, config: Mapping[str, Any]) -> IKSolver:
        dt = get_param(config, "discretization_angle", float)
        max_workers = get_param(config, "max_workers", int, default=1)
        return DiscretizedIKSolver(self.base_factory.create(config), dt, max_workers=max_workers)


def _solver_options(config: Mapping[str, Any]) -> SolverOptions:
    values = get_param(config, "ik", dict, default={})
    try:
        return SolverOptions.from_mapping(values)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid 'ik' options: {exc}") from exc
