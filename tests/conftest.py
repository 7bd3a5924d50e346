"""Shared fixtures: a 6-DOF test arm with primitive collision geometry.

At the zero configuration the arm points straight up and tool0 sits at
(0, 0, 1.3) in base_link with the same orientation as the base.
"""

from pathlib import Path

import numpy as np
import pytest

from jax_reach.io import load_robot

FIXTURES = Path(__file__).parent / "fixtures"
URDF_PATH = FIXTURES / "test_arm.urdf"
SRDF_PATH = FIXTURES / "test_arm.srdf"
BLOCK_MESH = FIXTURES / "block.obj"
OFFSET_BLOCK_MESH = FIXTURES / "offset_block.obj"

JOINT_NAMES = ["joint1", "joint2", "joint3", "joint4", "joint5", "joint6"]
HOME = np.zeros(6)
BENT = np.array([0.3, 0.4, 0.8, 0.2, 0.6, 0.1])


@pytest.fixture(scope="session")
def model():
    return load_robot(str(URDF_PATH), str(SRDF_PATH))


@pytest.fixture(scope="session")
def manipulator(model):
    return model.get_joint_group("manipulator")


@pytest.fixture
def base_config():
    return {
        "robot_description": str(URDF_PATH),
        "robot_description_semantic": str(SRDF_PATH),
        "planning_group": "manipulator",
        "distance_threshold": 0.0,
        "ik": {"max_attempts": 5},
    }
