"""Semantic robot information (planning groups, disabled collision pairs)."""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class GroupSpec:
    """Planning group as declared in an SRDF.

    A group is declared either as a kinematic chain (``chain`` holds the
    ``(base_link, tip_link)`` pair) or as an explicit list of joints,
    optionally extended with other groups.
    """
    name: str
    joints: Tuple[str, ...] = ()
    chain: Optional[Tuple[str, str]] = None
    subgroups: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SemanticModel:
    """Planning groups and link pairs that never need a collision check."""
    groups: Dict[str, GroupSpec] = field(default_factory=dict)
    disabled_collisions: Tuple[Tuple[str, str], ...] = ()
