"""Two-level (rack/host) topology registry used while ranking split hosts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .errors import InvalidTopologyError

DEFAULT_RACK = "/default-rack"
PATH_SEPARATOR = "/"


@dataclass(frozen=True)
class TopologyNode:
    name: str
    location: str = ""

    @property
    def path(self) -> str:
        if not self.location:
            return self.name
        return f"{self.location}{PATH_SEPARATOR}{self.name}"

    @property
    def is_rack(self) -> bool:
        return not self.location

    @property
    def host_name(self) -> str:
        """Name with any ``:port`` suffix removed."""
        return self.name.split(":")[0]


def normalize_path(path: str) -> tuple[str, str]:
    """Return ``(rack, host)`` for a topology path.

    ``rack/host``, ``/rack/host`` and ``/rack/host:port`` are accepted. A bare
    host name lands on ``DEFAULT_RACK``; deeper paths keep everything above
    the host as the rack.
    """
    parts = [part for part in path.strip().split(PATH_SEPARATOR) if part]
    if not parts:
        raise InvalidTopologyError(f"Invalid topology path {path!r}")
    host = parts[-1]
    if len(parts) == 1:
        return DEFAULT_RACK, host
    return PATH_SEPARATOR + PATH_SEPARATOR.join(parts[:-1]), host


class TopologyRegistry:
    """Interns topology paths so the same rack or host always maps to one node."""

    def __init__(self) -> None:
        self._nodes: Dict[str, TopologyNode] = {}

    def resolve(self, path: str) -> TopologyNode:
        rack_path, host = normalize_path(path)
        rack = self._intern(TopologyNode(name=rack_path))
        return self._intern(TopologyNode(name=host, location=rack.path))

    def parent_of(self, node: TopologyNode) -> Optional[TopologyNode]:
        if node.is_rack:
            return None
        return self._nodes[node.location]

    def _intern(self, node: TopologyNode) -> TopologyNode:
        return self._nodes.setdefault(node.path, node)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        if path in self._nodes:
            return True
        try:
            rack_path, host = normalize_path(path)
        except ValueError:
            return False
        return f"{rack_path}{PATH_SEPARATOR}{host}" in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)
