"""Allowed collision matrix: pairs of bodies that may touch."""

from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union


class AllowedCollisionMatrix:
    """Symmetric table of body pairs whose contact is not a collision.

    Bodies are robot links or world objects, identified by name. Pairs
    without an entry are checked normally.
    """

    def __init__(self, entries: Optional[Dict[FrozenSet[str], Tuple[bool, str]]] = None):
        self._entries: Dict[FrozenSet[str], Tuple[bool, str]] = dict(entries or {})

    def set_entry(self, name: str, other_names: Union[str, Iterable[str]],
                  allowed: bool, reason: str = "") -> None:
        """Allow (or forbid) contact between ``name`` and each of ``other_names``."""
        if isinstance(other_names, str):
            other_names = [other_names]
        for other in other_names:
            self._entries[frozenset((name, other))] = (bool(allowed), reason)

    def get_entry(self, name: str, other: str) -> Optional[bool]:
        entry = self._entries.get(frozenset((name, other)))
        return None if entry is None else entry[0]

    def is_allowed(self, name: str, other: str) -> bool:
        return bool(self.get_entry(name, other))

    def remove_entries(self, name: str) -> None:
        """Drop every entry that involves ``name``."""
        self._entries = {k: v for k, v in self._entries.items() if name not in k}

    def allowed_pairs(self) -> List[Tuple[str, str, str]]:
        pairs = []
        for key, (allowed, reason) in self._entries.items():
            if allowed:
                names = sorted(key)
                a, b = names[0], names[-1]
                pairs.append((a, b, reason))
        return sorted(pairs)

    def copy(self) -> "AllowedCollisionMatrix":
        return AllowedCollisionMatrix(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
