"""Collision geometry descriptions attached to robot links."""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class CollisionShape:
    """One URDF <collision> element, expressed in its link's frame.

    Attributes:
        kind: "box", "sphere", "cylinder" or "mesh".
        origin: 4x4 transform from the link frame to the shape frame.
        size: box extents (x, y, z).
        radius: sphere/cylinder radius.
        length: cylinder length along its local Z axis.
        filename: resolved filesystem path of a mesh.
        scale: per-axis mesh scale.
    """
    kind: str
    origin: np.ndarray = field(default_factory=lambda: np.eye(4))
    size: Optional[Tuple[float, float, float]] = None
    radius: Optional[float] = None
    length: Optional[float] = None
    filename: Optional[str] = None
    scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)
