"""URDF parser for loading robot models into JAX-native data structures.

This module provides functionality to parse URDF files and convert them
into RobotModel PyTree structures for high-performance computation, plus
the per-link collision geometry consumed by the collision scene.
"""

import jax.numpy as jnp
from lxml import etree
from typing import Dict, List, Mapping, Optional, Tuple
import numpy as np
from collections import deque
from pathlib import Path

from jax_reach.core.geometry import CollisionShape
from jax_reach.core.robot_model import RobotModel
from jax_reach.io.resources import resolve_resource
from jax_reach.transforms import se3

ACTUATED_JOINT_TYPES = ("revolute", "continuous", "prismatic")
SUPPORTED_JOINT_TYPES = ACTUATED_JOINT_TYPES + ("fixed",)


def load_urdf(urdf_path: str) -> RobotModel:
    """Load a URDF file and convert it to a RobotModel PyTree.

    Args:
        urdf_path: Path to the URDF file to load.

    Returns:
        RobotModel: A JAX-native robot representation.

    Raises:
        ValueError: the tree has no unique root, uses an unsupported joint
            type, or a bounded joint lacks its <limit> element.
    """
    root = etree.parse(urdf_path).getroot()

    # First pass: Build topology mappings
    all_links = [link.get('name') for link in root.findall('link')]
    child_to_parent_map: Dict[str, str] = {}
    joints_info = []
    for joint in root.findall('joint'):
        joint_name = joint.get('name')
        joint_type = joint.get('type')
        if joint_type not in SUPPORTED_JOINT_TYPES:
            raise ValueError(f"Joint '{joint_name}' has unsupported type '{joint_type}'")

        parent_elem = joint.find('parent')
        child_elem = joint.find('child')
        if parent_elem is None or child_elem is None:
            continue

        parent_name = parent_elem.get('link')
        child_name = child_elem.get('link')
        child_to_parent_map[child_name] = parent_name
        joints_info.append({
            'name': joint_name,
            'type': joint_type,
            'parent': parent_name,
            'child': child_name,
            'joint_elem': joint,
        })

    # Find root link (not a child of any joint)
    root_links = set(all_links) - set(child_to_parent_map)
    if len(root_links) != 1:
        raise ValueError(f"Expected exactly one root link, found: {root_links}")
    root_link = root_links.pop()

    # Order links using breadth-first traversal from root
    children: Dict[str, List[str]] = {}
    for joint_info in joints_info:
        children.setdefault(joint_info['parent'], []).append(joint_info['child'])

    ordered_links = []
    queue = deque([root_link])
    visited = set()
    while queue:
        current_link = queue.popleft()
        if current_link in visited:
            continue
        visited.add(current_link)
        ordered_links.append(current_link)
        queue.extend(c for c in children.get(current_link, []) if c not in visited)

    link_map = {name: i for i, name in enumerate(ordered_links)}

    # Actuated joints keep document order; that order defines configuration vectors
    actuated = [j for j in joints_info if j['type'] in ACTUATED_JOINT_TYPES]
    lower_limits, upper_limits = [], []
    for joint_info in actuated:
        lower, upper = _parse_limits(joint_info)
        lower_limits.append(lower)
        upper_limits.append(upper)

    # Second pass: Populate data arrays
    joint_by_child = {j['child']: j for j in joints_info}
    parent_indices_list = []
    joint_transforms_list = []
    joint_axes_list = []

    for i, link_name in enumerate(ordered_links):
        if link_name == root_link:
            parent_indices_list.append(i)  # Root parents itself
        else:
            parent_indices_list.append(link_map[child_to_parent_map[link_name]])

        joint_info = joint_by_child.get(link_name)
        if joint_info is None:
            # Root link has identity transform and zero axis
            joint_transforms_list.append(jnp.eye(4))
            joint_axes_list.append(jnp.zeros(6))
            continue

        joint_elem = joint_info['joint_elem']
        joint_type = joint_info['type']
        joint_transforms_list.append(jnp.asarray(_parse_origin(joint_elem.find('origin'))))

        if joint_type == 'fixed':
            axis = jnp.zeros(6)
        else:
            axis_elem = joint_elem.find('axis')
            axis_xyz = _parse_vector(axis_elem.get('xyz') if axis_elem is not None else None, (1.0, 0.0, 0.0))
            norm = np.linalg.norm(axis_xyz)
            if norm == 0.0:
                raise ValueError(f"Joint '{joint_info['name']}' has a zero-length axis")
            axis_xyz = jnp.asarray(axis_xyz / norm)

            if joint_type == 'prismatic':
                # Prismatic: [vx, vy, vz, 0, 0, 0]
                axis = jnp.concatenate([axis_xyz, jnp.zeros(3)])
            else:
                # Revolute: [0, 0, 0, wx, wy, wz]
                axis = jnp.concatenate([jnp.zeros(3), axis_xyz])
        joint_axes_list.append(axis)

    return RobotModel(
        link_names=tuple(ordered_links),
        joint_names=tuple(j['name'] for j in actuated),
        joint_types=tuple(j['type'] for j in actuated),
        parent_indices=jnp.array(parent_indices_list, dtype=jnp.int32),
        joint_transforms=jnp.stack(joint_transforms_list),
        joint_axes=jnp.stack(joint_axes_list),
        actuated_joint_to_link_idx=jnp.array([link_map[j['child']] for j in actuated], dtype=jnp.int32),
        lower_limits=jnp.array(lower_limits, dtype=jnp.float64),
        upper_limits=jnp.array(upper_limits, dtype=jnp.float64),
    )


def load_collision_shapes(urdf_path: str,
                          package_dirs: Optional[Mapping[str, str]] = None) -> Dict[str, Tuple[CollisionShape, ...]]:
    """Collect the <collision> elements of every link in a URDF.

    Mesh filenames are resolved to filesystem paths here so that loading
    failures surface when the model is built, not on the first query.

    Args:
        urdf_path: Path to the URDF file.
        package_dirs: Mapping of ROS package names to directories used for
            ``package://`` URIs.

    Returns:
        Mapping of link name to its collision shapes. Links without
        collision geometry are omitted.
    """
    root = etree.parse(urdf_path).getroot()
    base_dir = Path(urdf_path).parent

    shapes: Dict[str, Tuple[CollisionShape, ...]] = {}
    for link in root.findall('link'):
        link_shapes = []
        for collision in link.findall('collision'):
            geometry = collision.find('geometry')
            if geometry is None or len(geometry) == 0:
                continue
            origin = _parse_origin(collision.find('origin'))
            link_shapes.append(_parse_geometry(geometry[0], origin, base_dir, package_dirs))
        if link_shapes:
            shapes[link.get('name')] = tuple(link_shapes)
    return shapes


def _parse_geometry(elem, origin: np.ndarray, base_dir: Path,
                    package_dirs: Optional[Mapping[str, str]]) -> CollisionShape:
    tag = elem.tag
    if tag == 'box':
        return CollisionShape('box', origin, size=tuple(_parse_vector(elem.get('size'), None)))
    if tag == 'sphere':
        return CollisionShape('sphere', origin, radius=float(elem.get('radius')))
    if tag == 'cylinder':
        return CollisionShape('cylinder', origin, radius=float(elem.get('radius')),
                              length=float(elem.get('length')))
    if tag == 'mesh':
        path = resolve_resource(elem.get('filename'), base_dir, package_dirs)
        scale = tuple(_parse_vector(elem.get('scale'), (1.0, 1.0, 1.0)))
        return CollisionShape('mesh', origin, filename=str(path), scale=scale)
    raise ValueError(f"Unsupported collision geometry <{tag}>")


def _parse_limits(joint_info) -> Tuple[float, float]:
    if joint_info['type'] == 'continuous':
        return -np.inf, np.inf
    limit_elem = joint_info['joint_elem'].find('limit')
    if limit_elem is None:
        raise ValueError(f"Joint '{joint_info['name']}' of type {joint_info['type']} requires a <limit> element")
    lower = float(limit_elem.get('lower', 0.0))
    upper = float(limit_elem.get('upper', 0.0))
    if lower > upper:
        raise ValueError(f"Joint '{joint_info['name']}' has lower limit above upper limit")
    return lower, upper


def _parse_vector(text: Optional[str], default) -> np.ndarray:
    if text is None:
        if default is None:
            raise ValueError("Missing required vector attribute")
        return np.array(default, dtype=float)
    return np.array([float(x) for x in text.split()])


def _parse_origin(origin_elem) -> np.ndarray:
    """Convert an <origin xyz rpy> element to a 4x4 numpy transform."""
    if origin_elem is None:
        return np.eye(4)
    xyz = _parse_vector(origin_elem.get('xyz'), (0.0, 0.0, 0.0))
    rpy = _parse_vector(origin_elem.get('rpy'), (0.0, 0.0, 0.0))
    return np.asarray(se3.from_position_and_rotation(jnp.asarray(xyz), jnp.asarray(_rpy_to_rotation_matrix(rpy))))


def _rpy_to_rotation_matrix(rpy: np.ndarray) -> np.ndarray:
    """Convert roll-pitch-yaw angles to rotation matrix.

    Args:
        rpy: Array of [roll, pitch, yaw] angles in radians.

    Returns:
        3x3 rotation matrix.
    """
    roll, pitch, yaw = rpy

    R_x = np.array([
        [1, 0, 0],
        [0, np.cos(roll), -np.sin(roll)],
        [0, np.sin(roll), np.cos(roll)]
    ])

    R_y = np.array([
        [np.cos(pitch), 0, np.sin(pitch)],
        [0, 1, 0],
        [-np.sin(pitch), 0, np.cos(pitch)]
    ])

    R_z = np.array([
        [np.cos(yaw), -np.sin(yaw), 0],
        [np.sin(yaw), np.cos(yaw), 0],
        [0, 0, 1]
    ])

    # Combined rotation: R = R_z * R_y * R_x
    return R_z @ R_y @ R_x
