"""Collision scene: robot link geometry, world obstacles and contact rules.

The scene answers two questions about a full-body configuration: is any
checked pair of bodies in contact, and how far are the robot's links from
the nearest world object. Queries never mutate the scene; fresh FCL
collision objects are built per query so concurrent readers do not share
transforms.
"""

import itertools
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import fcl
import jax.numpy as jnp
import numpy as np

from jax_reach.chain import forward_kinematics_world
from jax_reach.core import JointGroup, KinematicModel

from .acm import AllowedCollisionMatrix
from .geometry import bvh_from_mesh, geometry_from_shape, load_mesh, to_fcl_transform

logger = logging.getLogger(__name__)

SceneListener = Callable[[dict], None]


class SceneError(RuntimeError):
    """The scene rejected a registration request."""


@dataclass(frozen=True, eq=False)
class WorldObject:
    """Static obstacle registered in the scene, posed in the model root frame."""
    name: str
    geometry: fcl.CollisionGeometry
    pose: np.ndarray
    frame: str
    filename: str


class CollisionScene:
    """Mutable world around a shared, read-only kinematic model."""

    def __init__(self, model: KinematicModel):
        self._model = model
        self._link_geometry: Dict[str, List[Tuple[fcl.CollisionGeometry, np.ndarray]]] = {}
        for link_name, shapes in model.collision_shapes.items():
            self._link_geometry[link_name] = [
                (geometry_from_shape(shape, name=f"{link_name}[{i}]"), shape.origin)
                for i, shape in enumerate(shapes)
            ]
        self._world: Dict[str, WorldObject] = {}
        self._acm = self._default_acm()
        self._listeners: List[SceneListener] = []

    def _default_acm(self) -> AllowedCollisionMatrix:
        acm = AllowedCollisionMatrix()
        robot = self._model.robot
        for child, parent in enumerate(np.asarray(robot.parent_indices).tolist()):
            if child != parent:
                acm.set_entry(robot.link_names[child], robot.link_names[parent], True, "Adjacent")
        for link1, link2 in self._model.semantic.disabled_collisions:
            acm.set_entry(link1, link2, True, "Disabled")
        return acm

    @property
    def model(self) -> KinematicModel:
        return self._model

    @property
    def allowed_collision_matrix(self) -> AllowedCollisionMatrix:
        return self._acm

    @property
    def world_object_names(self) -> List[str]:
        return sorted(self._world)

    def get_world_object(self, name: str) -> Optional[WorldObject]:
        return self._world.get(name)

    # Mutation

    def add_mesh_object(self, name: str, filename: str, frame: str) -> WorldObject:
        """Register a mesh asset posed at ``frame``, replacing any object named ``name``.

        The frame is evaluated at the model's default configuration.

        Raises:
            MeshLoadError: the asset cannot be loaded.
            SceneError: ``frame`` is not a link of the robot.
        """
        if frame not in self._model.link_names:
            raise SceneError(f"Cannot attach '{name}': unknown frame '{frame}'")

        geometry = bvh_from_mesh(load_mesh(filename), name=name)
        transforms = self.link_transforms(self._model.default_positions())
        pose = transforms[self._model.link_names.index(frame)]

        replaced = name in self._world
        self._world[name] = WorldObject(name=name, geometry=geometry, pose=pose,
                                        frame=frame, filename=str(filename))
        logger.info("%s collision object '%s' from '%s' in frame '%s'",
                    "Replaced" if replaced else "Added", name, filename, frame)
        self.publish()
        return self._world[name]

    def remove_object(self, name: str) -> bool:
        removed = self._world.pop(name, None) is not None
        if removed:
            self._acm.remove_entries(name)
            logger.info("Removed collision object '%s'", name)
            self.publish()
        return removed

    def set_allowed_contacts(self, name: str, other_names: Iterable[str], allowed: bool = True) -> None:
        other_names = list(other_names)
        self._acm.set_entry(name, other_names, allowed, "Touch link" if allowed else "")
        logger.info("%s contact between '%s' and %s", "Allowed" if allowed else "Forbade",
                    name, other_names)
        self.publish()

    # Observers

    def add_listener(self, listener: SceneListener, publish_now: bool = True) -> None:
        """Receive a scene snapshot now (optionally) and after every mutation."""
        self._listeners.append(listener)
        if publish_now:
            listener(self.get_scene_msg())

    def remove_listener(self, listener: SceneListener) -> None:
        self._listeners.remove(listener)

    def publish(self) -> None:
        if not self._listeners:
            return
        msg = self.get_scene_msg()
        for listener in list(self._listeners):
            listener(msg)

    def get_scene_msg(self) -> dict:
        """Plain-data snapshot of the world and the allowed contacts."""
        return {
            "robot_links": list(self._model.link_names),
            "world": [
                {
                    "id": obj.name,
                    "mesh": obj.filename,
                    "frame": obj.frame,
                    "pose": np.asarray(obj.pose).tolist(),
                }
                for obj in (self._world[n] for n in self.world_object_names)
            ],
            "allowed_collisions": [list(p) for p in self._acm.allowed_pairs()],
        }

    # Queries

    def link_transforms(self, positions: np.ndarray) -> np.ndarray:
        q = jnp.asarray(positions, dtype=jnp.float64)
        return np.asarray(forward_kinematics_world(self._model.robot, q))

    def is_state_colliding(self, positions: np.ndarray, group: Optional[JointGroup] = None,
                           acm: Optional[AllowedCollisionMatrix] = None) -> bool:
        """True if a checked pair is in contact.

        Self-collision pairs and robot/world pairs are checked; with a group
        only pairs involving one of ``group.moved_links`` count.
        """
        acm = self._acm if acm is None else acm
        links = self._robot_objects(positions)
        moved = group.moved_links if group is not None else None
        request = fcl.CollisionRequest()

        for (name_a, objs_a), (name_b, objs_b) in itertools.combinations(sorted(links.items()), 2):
            if moved is not None and name_a not in moved and name_b not in moved:
                continue
            if acm.is_allowed(name_a, name_b):
                continue
            if _any_contact(objs_a, objs_b, request):
                logger.debug("Self collision between '%s' and '%s'", name_a, name_b)
                return True

        for link_name, objs, world_name, world_obj in self._robot_world_pairs(links, moved, acm):
            if _any_contact(objs, [world_obj], request):
                logger.debug("Collision between '%s' and '%s'", link_name, world_name)
                return True
        return False

    def distance_to_collision(self, positions: np.ndarray, group: Optional[JointGroup] = None,
                              acm: Optional[AllowedCollisionMatrix] = None) -> float:
        """Minimum distance between the robot and any world object.

        Pairs allowed by the ACM are ignored. Returns ``inf`` when nothing is
        left to measure and ``0.0`` for touching or penetrating pairs.
        """
        acm = self._acm if acm is None else acm
        links = self._robot_objects(positions)
        moved = group.moved_links if group is not None else None
        best = math.inf
        for _, objs, _, world_obj in self._robot_world_pairs(links, moved, acm):
            for obj in objs:
                d = fcl.distance(obj, world_obj, fcl.DistanceRequest(), fcl.DistanceResult())
                best = min(best, max(float(d), 0.0))
        return best

    def _robot_objects(self, positions: np.ndarray) -> Dict[str, List[fcl.CollisionObject]]:
        transforms = self.link_transforms(positions)
        index = {name: i for i, name in enumerate(self._model.link_names)}
        return {
            link_name: [
                fcl.CollisionObject(geom, to_fcl_transform(transforms[index[link_name]] @ origin))
                for geom, origin in geoms
            ]
            for link_name, geoms in self._link_geometry.items()
        }

    def _robot_world_pairs(self, links: Dict[str, List[fcl.CollisionObject]],
                           moved, acm: AllowedCollisionMatrix) -> Iterator[tuple]:
        if not self._world:
            return
        world = {
            name: fcl.CollisionObject(obj.geometry, to_fcl_transform(obj.pose))
            for name, obj in self._world.items()
        }
        for link_name, objs in sorted(links.items()):
            if moved is not None and link_name not in moved:
                continue
            for world_name, world_obj in world.items():
                if not acm.is_allowed(link_name, world_name):
                    yield link_name, objs, world_name, world_obj


def _any_contact(objs_a: List[fcl.CollisionObject], objs_b: List[fcl.CollisionObject],
                 request: fcl.CollisionRequest) -> bool:
    for a in objs_a:
        for b in objs_b:
            if fcl.collide(a, b, request, fcl.CollisionResult()) > 0:
                return True
    return False
