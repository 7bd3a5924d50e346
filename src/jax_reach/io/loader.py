"""Loading and sharing of complete kinematic models."""

import functools
import logging
from typing import Mapping, Optional, Tuple

from jax_reach.core import KinematicModel, SemanticModel
from jax_reach.io.srdf_parser import load_srdf
from jax_reach.io.urdf_parser import load_collision_shapes, load_urdf

logger = logging.getLogger(__name__)


def load_robot(urdf_path: str,
               srdf_path: Optional[str] = None,
               package_dirs: Optional[Mapping[str, str]] = None) -> KinematicModel:
    """Build a KinematicModel from a URDF and an optional SRDF."""
    robot = load_urdf(urdf_path)
    shapes = load_collision_shapes(urdf_path, package_dirs)
    semantic = load_srdf(srdf_path) if srdf_path else SemanticModel()
    logger.info("Loaded robot model '%s': %d links, %d active joints, %d groups",
                urdf_path, len(robot.link_names), robot.num_dof, len(semantic.groups))
    return KinematicModel(robot=robot, collision_shapes=shapes, semantic=semantic)


def get_shared_robot_model(urdf_path: str,
                           srdf_path: Optional[str] = None,
                           package_dirs: Optional[Mapping[str, str]] = None) -> KinematicModel:
    """Return the process-wide KinematicModel for these description files.

    Repeated calls with the same arguments return the same instance.
    """
    dirs = tuple(sorted(package_dirs.items())) if package_dirs else ()
    return _cached_load(str(urdf_path), str(srdf_path) if srdf_path else None, dirs)


@functools.lru_cache(maxsize=None)
def _cached_load(urdf_path: str, srdf_path: Optional[str],
                 package_dirs: Tuple[Tuple[str, str], ...]) -> KinematicModel:
    return load_robot(urdf_path, srdf_path, dict(package_dirs) or None)
