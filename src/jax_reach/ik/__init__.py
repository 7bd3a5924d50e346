"""Collision-aware inverse kinematics.

- KinematicsSolver: numeric root-finder for one joint group
- CollisionAwareIKSolver: at most one valid solution per target pose
- DiscretizedIKSolver: sweeps a target about its approach axis
- factories building either from a configuration mapping
"""

from .discretized import MIN_DISCRETIZATION_ANGLE, DiscretizedIKSolver, clamp_discretization_angle
from .factory import CollisionAwareIKSolverFactory, DiscretizedIKSolverFactory
from .numeric import KinematicsSolver, SolverOptions
from .solver import COLLISION_OBJECT_NAME, CollisionAwareIKSolver, IKSolver, make_validity_predicate

__all__ = [
    "COLLISION_OBJECT_NAME",
    "CollisionAwareIKSolver",
    "CollisionAwareIKSolverFactory",
    "DiscretizedIKSolver",
    "DiscretizedIKSolverFactory",
    "IKSolver",
    "KinematicsSolver",
    "MIN_DISCRETIZATION_ANGLE",
    "SolverOptions",
    "clamp_discretization_angle",
    "make_validity_predicate",
]
