"""Numeric IK root-finder: damped least squares with deterministic restarts."""

import logging
import time
from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping, Optional

import jax
import jax.numpy as jnp
import numpy as np

from jax_reach.chain import forward_kinematics_world, geometric_jacobian
from jax_reach.core import JointGroup, KinematicModel
from jax_reach.transforms import Pose, se3

logger = logging.getLogger(__name__)

ValidityCallback = Callable[[np.ndarray], bool]


@dataclass(frozen=True)
class SolverOptions:
    """Budget and step parameters of the root-finder.

    Attributes:
        max_iterations: Damped least-squares steps per attempt.
        max_attempts: Attempts per search; attempt 0 starts at the seed,
            later ones at pseudo-random configurations within joint limits.
        tolerance: Convergence threshold for both position (m) and
            orientation (rad) error.
        damping: Damping factor of the least-squares step.
        max_step: Largest joint-space step norm per iteration.
        random_seed: Seed of the restart sequence.
        timeout: Optional wall-clock budget in seconds per search.
    """
    max_iterations: int = 200
    max_attempts: int = 20
    tolerance: float = 1e-5
    damping: float = 1e-2
    max_step: float = 0.5
    random_seed: int = 0
    timeout: Optional[float] = None

    def __post_init__(self):
        if self.max_iterations < 1 or self.max_attempts < 1:
            raise ValueError("max_iterations and max_attempts must be at least 1")
        if self.tolerance <= 0 or self.damping < 0 or self.max_step <= 0:
            raise ValueError("tolerance and max_step must be positive, damping non-negative")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "SolverOptions":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown IK solver options: {sorted(unknown)}")
        return cls(**values)


@jax.jit
def _dls_step(robot, q, joint_indices, base_idx, tip_idx, target, lower, upper, damping, max_step):
    """One damped least-squares update of the group joints.

    Returns the updated configuration and the pose error *before* the update.
    """
    transforms = forward_kinematics_world(robot, q)
    T_base = transforms[base_idx]
    T_current = se3.inverse(T_base) @ transforms[tip_idx]
    err = se3.pose_error(T_current, target)

    # Express the world-frame Jacobian in the base frame, like the error.
    J = geometric_jacobian(robot, transforms, joint_indices, tip_idx)
    R_inv = T_base[:3, :3].T
    J = jnp.concatenate([R_inv @ J[:3], R_inv @ J[3:]], axis=0)

    JJt = J @ J.T + (damping ** 2) * jnp.eye(6, dtype=J.dtype)
    dq = J.T @ jnp.linalg.solve(JJt, err)

    norm = jnp.linalg.norm(dq)
    dq = jnp.where(norm > max_step, dq * (max_step / norm), dq)

    q_group = jnp.clip(q[joint_indices] + dq, lower, upper)
    return q.at[joint_indices].set(q_group), err


@jax.jit
def _dls_solve(robot, q, joint_indices, base_idx, tip_idx, target, lower, upper,
               damping, max_step, tolerance, max_iterations):
    """Iterate ``_dls_step`` until the pose error is within ``tolerance``.

    Returns the last configuration and whether it converged. At most
    ``max_iterations`` errors are evaluated.
    """
    def cond(state):
        i, _, converged = state
        return (i < max_iterations) & ~converged

    def body(state):
        i, q, _ = state
        q_next, err = _dls_step(robot, q, joint_indices, base_idx, tip_idx, target,
                                lower, upper, damping, max_step)
        converged = (jnp.linalg.norm(err[:3]) < tolerance) & (jnp.linalg.norm(err[3:]) < tolerance)
        return i + 1, jnp.where(converged, q, q_next), converged

    init = (jnp.asarray(0, dtype=jnp.int32), q, jnp.asarray(False))
    _, q, converged = jax.lax.while_loop(cond, body, init)
    return q, converged


class KinematicsSolver:
    """Root-finder for one joint group of a shared kinematic model.

    Targets are poses of the group's tip link expressed in its base link.
    Identical inputs always produce identical outputs unless a timeout is
    configured.
    """

    def __init__(self, model: KinematicModel, group: JointGroup,
                 options: Optional[SolverOptions] = None):
        self.model = model
        self.group = group
        self.options = options or SolverOptions()

        robot = model.robot
        self._joint_indices = jnp.asarray(group.joint_indices, dtype=jnp.int32)
        self._base_idx = robot.link_index(group.base_link)
        self._tip_idx = robot.link_index(group.tip_link)

        lower = np.asarray(robot.lower_limits)[list(group.joint_indices)]
        upper = np.asarray(robot.upper_limits)[list(group.joint_indices)]
        self._lower = jnp.asarray(lower)
        self._upper = jnp.asarray(upper)
        # Restarts of unbounded joints are drawn from one revolution
        self._sample_lower = np.where(np.isfinite(lower), lower, -np.pi)
        self._sample_upper = np.where(np.isfinite(upper), upper, np.pi)

    @property
    def base_frame(self) -> str:
        return self.group.base_link

    @property
    def tip_frame(self) -> str:
        return self.group.tip_link

    def tip_pose(self, positions: np.ndarray) -> Pose:
        """Pose of the tip link in the base frame for a full configuration."""
        transforms = forward_kinematics_world(self.model.robot, jnp.asarray(positions, dtype=jnp.float64))
        return Pose(se3.inverse(transforms[self._base_idx]) @ transforms[self._tip_idx])

    def search(self, target: Pose, positions: np.ndarray,
               is_valid: Optional[ValidityCallback] = None) -> Optional[np.ndarray]:
        """Find a full configuration that reaches ``target`` and passes ``is_valid``.

        Joints outside the group keep their values from ``positions``. A
        converged candidate rejected by ``is_valid`` does not end the search;
        the next attempt starts from a fresh configuration.

        Returns:
            The accepted full configuration, or None once the budget is spent.
        """
        opts = self.options
        indices = list(self.group.joint_indices)
        key = jax.random.PRNGKey(opts.random_seed)
        deadline = None if opts.timeout is None else time.monotonic() + opts.timeout
        target_matrix = jnp.asarray(target.matrix, dtype=jnp.float64)

        for attempt in range(opts.max_attempts):
            start = np.array(positions, dtype=np.float64)
            if attempt == 0:
                start[indices] = self.model.enforce_bounds(start)[indices]
            else:
                sample = jax.random.uniform(jax.random.fold_in(key, attempt), (len(indices),),
                                            dtype=jnp.float64,
                                            minval=self._sample_lower, maxval=self._sample_upper)
                start[indices] = np.asarray(sample)

            candidate = self._converge(target_matrix, start)
            if candidate is not None:
                if is_valid is None or is_valid(candidate):
                    logger.debug("IK converged on attempt %d", attempt)
                    return candidate
                logger.debug("IK candidate from attempt %d rejected by validity check", attempt)

            if deadline is not None and time.monotonic() > deadline:
                logger.debug("IK search timed out after %d attempts", attempt + 1)
                break

        return None

    def _converge(self, target_matrix, start: np.ndarray) -> Optional[np.ndarray]:
        opts = self.options
        q, converged = _dls_solve(self.model.robot, jnp.asarray(start), self._joint_indices,
                                  self._base_idx, self._tip_idx, target_matrix, self._lower,
                                  self._upper, opts.damping, opts.max_step, opts.tolerance,
                                  opts.max_iterations)
        if not bool(converged):
            return None
        return np.asarray(q, dtype=np.float64)
