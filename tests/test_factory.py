"""Tests for configuration loading and the solver factories."""

import math

import pytest
import yaml

from conftest import BLOCK_MESH, FIXTURES, HOME, JOINT_NAMES, OFFSET_BLOCK_MESH
from jax_reach.collision import SceneError
from jax_reach.config import ConfigError, get_param, get_string_list, load_config
from jax_reach.core import JointGroupError
from jax_reach.ik import (COLLISION_OBJECT_NAME, CollisionAwareIKSolver, CollisionAwareIKSolverFactory,
                          DiscretizedIKSolver, DiscretizedIKSolverFactory)
from jax_reach.io import ResourceError


# Configuration access
def test_get_param():
    config = {"a": 1, "b": "text", "c": None, "d": True, "e": [1, 2]}

    assert get_param(config, "a", int) == 1
    assert get_param(config, "a", float) == 1.0
    assert isinstance(get_param(config, "a", float), float)
    assert get_param(config, "b", str) == "text"
    assert get_param(config, "c", str, default="fallback") == "fallback"
    assert get_param(config, "missing", default=3) == 3
    assert get_param(config, "e") == [1, 2]


@pytest.mark.parametrize("key, expected_type", [
    ("missing", str),
    ("c", str),
    ("b", float),
    ("d", int),
    ("d", float),
])
def test_get_param_errors(key, expected_type):
    config = {"b": "text", "c": None, "d": True}
    with pytest.raises(ConfigError):
        get_param(config, key, expected_type)


def test_get_string_list():
    assert get_string_list({"links": ["a", "b"]}, "links") == ["a", "b"]
    with pytest.raises(ConfigError):
        get_string_list({"links": ["a", 2]}, "links")
    with pytest.raises(ConfigError):
        get_string_list({"links": "a"}, "links")


def test_load_config(tmp_path):
    path = tmp_path / "reach.yaml"
    path.write_text(yaml.safe_dump({"planning_group": "manipulator", "distance_threshold": 0.01}))
    assert load_config(path) == {"planning_group": "manipulator", "distance_threshold": 0.01}

    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    assert load_config(empty) == {}


def test_load_config_errors(tmp_path):
    with pytest.raises(ConfigError, match="Failed to load"):
        load_config(tmp_path / "missing.yaml")

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n")
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config(listing)

    broken = tmp_path / "broken.yaml"
    broken.write_text("key: [unterminated\n")
    with pytest.raises(ConfigError):
        load_config(broken)


# CollisionAwareIKSolverFactory
def test_create_solver(base_config):
    solver = CollisionAwareIKSolverFactory().create(base_config)

    assert isinstance(solver, CollisionAwareIKSolver)
    assert solver.get_joint_names() == JOINT_NAMES
    assert solver.distance_threshold == 0.0
    assert solver.kinematics.options.max_attempts == 5
    assert solver.scene.world_object_names == []


def test_factories_share_the_model(base_config):
    a = CollisionAwareIKSolverFactory().create(base_config)
    b = CollisionAwareIKSolverFactory().create(dict(base_config, planning_group="arm"))
    assert a.model is b.model


def test_create_with_collision_mesh(base_config):
    config = dict(base_config, collision_mesh_filename=str(BLOCK_MESH),
                  collision_mesh_frame="tool0", touch_links=["tool0"])
    solver = CollisionAwareIKSolverFactory().create(config)

    obj = solver.scene.get_world_object(COLLISION_OBJECT_NAME)
    assert obj.frame == "tool0"
    assert solver.scene.allowed_collision_matrix.is_allowed(COLLISION_OBJECT_NAME, "tool0")

    target = solver.kinematics.tip_pose(HOME)
    assert solver.solve_ik(target, dict(zip(JOINT_NAMES, HOME.tolist()))) == [[0.0] * 6]


def test_collision_mesh_frame_defaults_to_base(base_config):
    config = dict(base_config, collision_mesh_filename="package://fixtures/offset_block.obj",
                  package_dirs={"fixtures": str(FIXTURES)})
    solver = CollisionAwareIKSolverFactory().create(config)

    obj = solver.scene.get_world_object(COLLISION_OBJECT_NAME)
    assert obj.frame == "base_link"
    assert obj.filename == str(OFFSET_BLOCK_MESH)


@pytest.mark.parametrize("key", ["robot_description", "planning_group", "distance_threshold"])
def test_missing_required_key(base_config, key):
    del base_config[key]
    with pytest.raises(ConfigError, match=key):
        CollisionAwareIKSolverFactory().create(base_config)


@pytest.mark.parametrize("override, error", [
    ({"planning_group": "gripper"}, JointGroupError),
    ({"distance_threshold": "far"}, ConfigError),
    ({"distance_threshold": -1.0}, ValueError),
    ({"ik": {"max_attempts": 0}}, ConfigError),
    ({"ik": {"unknown_option": 1}}, ConfigError),
    ({"touch_links": "tool0"}, ConfigError),
    ({"collision_mesh_filename": "no_such_mesh.obj"}, ResourceError),
    ({"collision_mesh_filename": str(BLOCK_MESH), "collision_mesh_frame": "gripper"}, SceneError),
])
def test_invalid_configuration(base_config, override, error):
    with pytest.raises(error):
        CollisionAwareIKSolverFactory().create(dict(base_config, **override))


def test_missing_file_uri_mesh(base_config, tmp_path):
    config = dict(base_config, collision_mesh_filename="file://" + str(tmp_path / "gone.obj"))
    with pytest.raises(ResourceError):
        CollisionAwareIKSolverFactory().create(config)


def test_create_from_yaml(tmp_path, base_config):
    path = tmp_path / "reach.yaml"
    path.write_text(yaml.safe_dump(dict(base_config, discretization_angle=math.pi / 2)))

    solver = DiscretizedIKSolverFactory().create(load_config(path))
    assert isinstance(solver, DiscretizedIKSolver)
    assert solver.n_discretizations == 4


# DiscretizedIKSolverFactory
def test_create_discretized_solver(base_config):
    config = dict(base_config, discretization_angle=10.0, max_workers=2)
    solver = DiscretizedIKSolverFactory().create(config)

    assert solver.dt == pytest.approx(math.pi)
    assert solver.n_discretizations == 2
    assert solver.max_workers == 2
    assert isinstance(solver.solver, CollisionAwareIKSolver)
    assert solver.get_joint_names() == JOINT_NAMES
    assert solver.get_kinematic_base_frame() == "base_link"


def test_discretized_requires_angle(base_config):
    with pytest.raises(ConfigError, match="discretization_angle"):
        DiscretizedIKSolverFactory().create(base_config)


def test_discretized_custom_base_factory(base_config):
    created = []

    class StubFactory:
        def create(self, config):
            created.append(config)
            return CollisionAwareIKSolverFactory().create(config)

    config = dict(base_config, discretization_angle=0.5)
    solver = DiscretizedIKSolverFactory(StubFactory()).create(config)

    assert created == [config]
    assert solver.n_discretizations == 12


def test_discretized_scene_configuration(base_config):
    """Scene setup on the wrapper reaches the wrapped solver."""
    solver = DiscretizedIKSolverFactory().create(dict(base_config, discretization_angle=1.0))
    solver.add_collision_mesh(str(BLOCK_MESH), "tool0")
    solver.set_touch_links(["tool0"])

    scene = solver.solver.scene
    assert scene.world_object_names == [COLLISION_OBJECT_NAME]
    assert scene.allowed_collision_matrix.is_allowed(COLLISION_OBJECT_NAME, "tool0")
