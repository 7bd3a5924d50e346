"""IK over the redundant rotation about a tool's approach axis."""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Mapping

from jax_reach.transforms import Pose

from .solver import IKSolver, Solution

logger = logging.getLogger(__name__)

# Replacement for a zero sampling step
MIN_DISCRETIZATION_ANGLE = 1.0e-3


def clamp_discretization_angle(dt: float) -> float:
    """Make ``dt`` a usable sampling step in (0, π].

    Values already in (0, π] are returned unchanged. Negative steps sweep the
    same set of angles, so the magnitude is used; zero becomes
    ``MIN_DISCRETIZATION_ANGLE``. Corrections are logged, never raised.
    """
    dt = float(dt)
    if math.isnan(dt):
        raise ValueError("discretization angle must be a number")
    if 0.0 < dt <= math.pi:
        return dt

    clamped = min(abs(dt), math.pi)
    if clamped == 0.0:
        clamped = MIN_DISCRETIZATION_ANGLE
    logger.warning("Clamping discretization angle between 0 and pi; new value is %f", clamped)
    return clamped


class DiscretizedIKSolver:
    """Wraps any IKSolver and sweeps the target about its local Z axis.

    For ``n = floor(2π / dt)`` samples the wrapped solver is called with
    ``target ∘ Rz(i * dt)`` and the original seed. Solutions are returned in
    ascending sample angle; samples without a solution contribute nothing.

    Args:
        solver: The single-pose solver to wrap.
        discretization_angle: Sampling step in radians, clamped into (0, π].
        max_workers: Threads used for the sweep; 1 runs it inline. The
            wrapped solver's scene must not be mutated during a sweep.
    """

    def __init__(self, solver: IKSolver, discretization_angle: float, max_workers: int = 1):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.solver = solver
        self.dt = clamp_discretization_angle(discretization_angle)
        self.n_discretizations = int(math.floor((2.0 * math.pi) / self.dt))
        self.max_workers = max_workers

    def sample_angles(self) -> List[float]:
        return [i * self.dt for i in range(self.n_discretizations)]

    def solve_ik(self, target: Pose, seed: Mapping[str, float]) -> List[Solution]:
        targets = [target.rotated_about_z(angle) for angle in self.sample_angles()]

        def solve_one(discretized_target: Pose) -> List[Solution]:
            return self.solver.solve_ik(discretized_target, seed)

        if self.max_workers == 1:
            results = [solve_one(t) for t in targets]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(solve_one, targets))

        solutions = [sols[0] for sols in results if sols]
        logger.debug("Discretized IK: %d of %d samples solved", len(solutions), len(targets))
        return solutions

    def get_joint_names(self) -> List[str]:
        return self.solver.get_joint_names()

    def get_kinematic_base_frame(self) -> str:
        return self.solver.get_kinematic_base_frame()

    def add_collision_mesh(self, collision_mesh_filename: str, collision_mesh_frame: str) -> None:
        self.solver.add_collision_mesh(collision_mesh_filename, collision_mesh_frame)

    def set_touch_links(self, touch_links: Iterable[str]) -> None:
        self.solver.set_touch_links(touch_links)
