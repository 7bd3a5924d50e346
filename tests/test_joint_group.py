"""Tests for joint group resolution and seed handling."""

import numpy as np
import pytest

from conftest import JOINT_NAMES, URDF_PATH
from jax_reach.core import JointGroup, JointGroupError
from jax_reach.io import load_urdf


def test_chain_group(manipulator):
    assert manipulator.name == "manipulator"
    assert list(manipulator.joint_names) == JOINT_NAMES
    assert manipulator.joint_indices == (0, 1, 2, 3, 4, 5)
    assert manipulator.dof == 6
    assert manipulator.base_link == "base_link"
    assert manipulator.tip_link == "tool0"
    assert "base_link" not in manipulator.moved_links
    assert "tool0" in manipulator.moved_links


def test_joint_list_group(model):
    arm = model.get_joint_group("arm")
    assert arm.joint_names == ("joint1", "joint2", "joint3")
    assert arm.base_link == "base_link"
    assert arm.tip_link == "link3"
    # Downstream links move with the group
    assert arm.moved_links == {"link1", "link2", "link3", "link4", "link5", "link6", "tool0"}

    wrist = model.get_joint_group("wrist")
    assert wrist.base_link == "link3"
    assert wrist.tip_link == "link6"
    assert wrist.moved_links == {"link4", "link5", "link6", "tool0"}


def test_subgroups(model):
    group = model.get_joint_group("arm_and_wrist")
    assert list(group.joint_names) == JOINT_NAMES


def test_unknown_group(model):
    with pytest.raises(JointGroupError, match="planning group 'nope'"):
        model.get_joint_group("nope")


def test_group_with_unknown_joint(model):
    with pytest.raises(JointGroupError, match="no_such_joint"):
        model.get_joint_group("broken")


def test_from_chain_errors():
    robot = load_urdf(str(URDF_PATH))

    with pytest.raises(JointGroupError, match="not a descendant"):
        JointGroup.from_chain(robot, "tool0", "base_link")
    with pytest.raises(JointGroupError, match="unknown link"):
        JointGroup.from_chain(robot, "base_link", "gripper")
    with pytest.raises(JointGroupError, match="no active joints"):
        JointGroup.from_chain(robot, "link6", "tool0")


def test_partial_chain():
    robot = load_urdf(str(URDF_PATH))
    group = JointGroup.from_chain(robot, "link2", "link5")
    assert group.name == "link2->link5"
    assert group.joint_names == ("joint3", "joint4", "joint5")
    assert group.joint_indices == (2, 3, 4)


def test_from_joints_keeps_order():
    robot = load_urdf(str(URDF_PATH))
    group = JointGroup.from_joints(robot, ["joint3", "joint1", "joint3"], "custom")
    assert group.joint_names == ("joint3", "joint1")
    assert group.joint_indices == (2, 0)


def test_default_positions(model):
    np.testing.assert_array_equal(model.default_positions(), np.zeros(6))


def test_merge_positions(model):
    q = model.merge_positions({"joint2": 0.5, "joint6": -1.0})
    np.testing.assert_allclose(q, [0.0, 0.5, 0.0, 0.0, 0.0, -1.0])

    with pytest.raises(ValueError, match="finger_joint"):
        model.merge_positions({"finger_joint": 0.0})


def test_enforce_bounds(model):
    q = model.enforce_bounds(np.array([4.0, -3.0, 0.1, 10.0, 0.0, 0.0]))
    np.testing.assert_allclose(q, [3.14159, -2.0, 0.1, 10.0, 0.0, 0.0])
