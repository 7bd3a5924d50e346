"""Tests for URDF/SRDF parsing and resource resolution."""

import jax.numpy as jnp
import numpy as np
import pytest

from conftest import BLOCK_MESH, FIXTURES, SRDF_PATH, URDF_PATH
from jax_reach.core import KinematicModel, RobotModel
from jax_reach.io import (ResourceError, get_shared_robot_model, load_collision_shapes,
                          load_robot, load_srdf, load_urdf, resolve_resource)

PRISMATIC_URDF = """<?xml version="1.0"?>
<robot name="slider">
  <link name="rail"/>
  <link name="carriage">
    <collision>
      <origin xyz="0 0 0.05"/>
      <geometry><box size="0.1 0.2 0.1"/></geometry>
    </collision>
  </link>
  <joint name="slide" type="prismatic">
    <parent link="rail"/>
    <child link="carriage"/>
    <axis xyz="2 0 0"/>
    <limit lower="-0.5" upper="0.5"/>
  </joint>
</robot>
"""


def test_load_test_arm_urdf():
    """Test loading the test arm and verify the RobotModel structure."""
    robot = load_urdf(str(URDF_PATH))

    assert isinstance(robot, RobotModel)
    assert robot.link_names == ("base_link", "link1", "link2", "link3", "link4",
                                "link5", "link6", "tool0")
    # tool0_joint is fixed and therefore not part of the configuration
    assert robot.joint_names == ("joint1", "joint2", "joint3", "joint4", "joint5", "joint6")
    assert robot.num_dof == 6
    assert robot.root_link == "base_link"

    num_links = len(robot.link_names)
    assert robot.parent_indices.shape == (num_links,)
    assert robot.joint_transforms.shape == (num_links, 4, 4)
    assert robot.joint_axes.shape == (num_links, 6)
    assert robot.parent_indices[0] == 0
    assert robot.parent_indices[robot.link_index("tool0")] == robot.link_index("link6")

    # Revolute axes live in the angular part, fixed joints have none
    np.testing.assert_allclose(robot.joint_axes[robot.link_index("link2")], jnp.array([0, 0, 0, 0, 1, 0]))
    np.testing.assert_allclose(robot.joint_axes[robot.link_index("tool0")], jnp.zeros(6))


def test_joint_limits():
    robot = load_urdf(str(URDF_PATH))

    assert robot.joint_types[3] == "continuous"
    assert np.isneginf(robot.lower_limits[3]) and np.isposinf(robot.upper_limits[3])
    assert robot.lower_limits[1] == pytest.approx(-2.0)
    assert robot.upper_limits[2] == pytest.approx(2.5)


def test_lookup_errors():
    robot = load_urdf(str(URDF_PATH))
    with pytest.raises(ValueError, match="no_link"):
        robot.link_index("no_link")
    with pytest.raises(ValueError, match="no_joint"):
        robot.joint_index("no_joint")


def test_prismatic_joint(tmp_path):
    """Prismatic axes are normalised into the linear part of the twist."""
    urdf = tmp_path / "slider.urdf"
    urdf.write_text(PRISMATIC_URDF)
    robot = load_urdf(str(urdf))

    assert robot.joint_types == ("prismatic",)
    np.testing.assert_allclose(robot.joint_axes[1], jnp.array([1, 0, 0, 0, 0, 0]))

    shapes = load_collision_shapes(str(urdf))
    assert list(shapes) == ["carriage"]
    (box,) = shapes["carriage"]
    assert box.kind == "box"
    assert box.size == pytest.approx((0.1, 0.2, 0.1))
    np.testing.assert_allclose(box.origin[:3, 3], [0.0, 0.0, 0.05])


def test_missing_limit_is_rejected(tmp_path):
    urdf = tmp_path / "no_limit.urdf"
    urdf.write_text(PRISMATIC_URDF.replace('<limit lower="-0.5" upper="0.5"/>', ""))
    with pytest.raises(ValueError, match="limit"):
        load_urdf(str(urdf))


def test_unsupported_joint_type(tmp_path):
    urdf = tmp_path / "floating.urdf"
    urdf.write_text(PRISMATIC_URDF.replace('type="prismatic"', 'type="floating"'))
    with pytest.raises(ValueError, match="unsupported type"):
        load_urdf(str(urdf))


def test_collision_shapes():
    shapes = load_collision_shapes(str(URDF_PATH))

    assert set(shapes) == {"base_link", "link1", "link2", "link3", "link4", "link5", "link6", "tool0"}
    (cylinder,) = shapes["link2"]
    assert cylinder.kind == "cylinder"
    assert cylinder.radius == pytest.approx(0.04)
    assert cylinder.length == pytest.approx(0.36)
    np.testing.assert_allclose(cylinder.origin[:3, 3], [0.0, 0.0, 0.2])
    assert shapes["tool0"][0].kind == "sphere"


def test_mesh_collision_uses_package_dirs(tmp_path):
    urdf = tmp_path / "meshy.urdf"
    urdf.write_text(PRISMATIC_URDF.replace(
        '<box size="0.1 0.2 0.1"/>', '<mesh filename="package://fixtures/block.obj" scale="2 2 2"/>'))

    shapes = load_collision_shapes(str(urdf), {"fixtures": str(FIXTURES)})
    (mesh,) = shapes["carriage"]
    assert mesh.kind == "mesh"
    assert mesh.filename == str(BLOCK_MESH)
    assert mesh.scale == pytest.approx((2.0, 2.0, 2.0))

    with pytest.raises(ResourceError):
        load_collision_shapes(str(urdf))


def test_load_srdf():
    semantic = load_srdf(str(SRDF_PATH))

    assert set(semantic.groups) == {"manipulator", "arm", "wrist", "arm_and_wrist", "broken"}
    assert semantic.groups["manipulator"].chain == ("base_link", "tool0")
    assert semantic.groups["arm"].joints == ("joint1", "joint2", "joint3")
    assert semantic.groups["arm_and_wrist"].subgroups == ("arm", "wrist")
    assert semantic.disabled_collisions == (("link4", "link6"),)


def test_duplicate_srdf_group(tmp_path):
    srdf = tmp_path / "dup.srdf"
    srdf.write_text('<robot name="r"><group name="g"/><group name="g"/></robot>')
    with pytest.raises(ValueError, match="more than once"):
        load_srdf(str(srdf))


def test_load_robot():
    model = load_robot(str(URDF_PATH), str(SRDF_PATH))

    assert isinstance(model, KinematicModel)
    assert model.joint_names == model.robot.joint_names
    assert "manipulator" in model.semantic.groups
    assert "tool0" in model.collision_shapes


def test_load_robot_without_srdf():
    model = load_robot(str(URDF_PATH))
    assert model.semantic.groups == {}
    assert model.semantic.disabled_collisions == ()


def test_shared_robot_model_is_cached():
    first = get_shared_robot_model(str(URDF_PATH), str(SRDF_PATH))
    second = get_shared_robot_model(URDF_PATH, SRDF_PATH)
    assert first is second
    assert get_shared_robot_model(str(URDF_PATH)) is not first


def test_resolve_resource(tmp_path):
    assert resolve_resource(str(BLOCK_MESH)) == BLOCK_MESH
    assert resolve_resource("block.obj", base_dir=FIXTURES) == BLOCK_MESH
    assert resolve_resource(f"file://{BLOCK_MESH}") == BLOCK_MESH
    assert resolve_resource("package://fixtures/block.obj", package_dirs={"fixtures": FIXTURES}) == BLOCK_MESH

    with pytest.raises(ResourceError, match="unknown package"):
        resolve_resource("package://nowhere/block.obj")
    with pytest.raises(ResourceError, match="does not exist"):
        resolve_resource(str(tmp_path / "missing.obj"))
