"""Rack/host locality ranking for splits that span several blocks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..errors import BlockOffsetError
from ..models import BlockLocation
from ..topology import DEFAULT_RACK, TopologyNode, TopologyRegistry
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class AggregationEntry:
    """Bytes of one split held by a rack or host."""

    node: TopologyNode
    value: int = 0
    block_ids: Set[int] = field(default_factory=set)
    children: Dict[str, "AggregationEntry"] = field(default_factory=dict)

    def add_value(self, block_index: int, nbytes: int) -> bool:
        if block_index in self.block_ids:
            return False
        self.block_ids.add(block_index)
        self.value += nbytes
        return True

    def add_child(self, entry: "AggregationEntry") -> None:
        self.children.setdefault(entry.node.path, entry)

    def ranked_children(self) -> List["AggregationEntry"]:
        return rank_entries(self.children.values())


def rank_entries(entries) -> List[AggregationEntry]:
    """Descending by bytes, ascending canonical path on ties."""
    return sorted(entries, key=lambda entry: (-entry.value, entry.node.path))


@dataclass
class LocalityAggregator(BaseService):
    """Identifies the hosts that hold the largest share of a split.

    Rack locality is weighed on par with host locality: hosts on the racks
    contributing the most bytes come before hosts on racks contributing less.
    Only one level of hierarchy (rack/host) is aggregated.
    """

    @staticmethod
    def get_block_index(blocks: Sequence[BlockLocation], offset: int) -> int:
        for index, block in enumerate(blocks):
            if block.contains(offset):
                return index
        if not blocks:
            raise BlockOffsetError(f"Offset {offset} is outside of file (no block locations)")
        last_byte = blocks[-1].end - 1
        raise BlockOffsetError(f"Offset {offset} is outside of file (0..{last_byte})")

    def spans_multiple_blocks(self, blocks: Sequence[BlockLocation], offset: int, length: int) -> bool:
        start = blocks[self.get_block_index(blocks, offset)]
        return start.end - offset < length

    def rank_hosts(
        self,
        blocks: Sequence[BlockLocation],
        offset: int,
        split_length: int,
        registry: Optional[TopologyRegistry] = None,
    ) -> List[str]:
        start_index = self.get_block_index(blocks, offset)
        bytes_in_first = blocks[start_index].end - offset
        if bytes_in_first >= split_length:
            return list(blocks[start_index].hosts)

        spans = self._spanned_bytes(blocks, start_index, bytes_in_first, split_length)
        registry = registry if registry is not None else TopologyRegistry()
        hosts: Dict[TopologyNode, AggregationEntry] = {}
        racks: Dict[TopologyNode, AggregationEntry] = {}
        topology: Tuple[str, ...] = ()

        for index, nbytes in spans:
            topology = blocks[index].topology_paths or self._fake_racks(blocks[index])
            for path in topology:
                node = registry.resolve(path)
                rack_node = registry.parent_of(node)
                host_entry = hosts.get(node)
                if host_entry is None:
                    host_entry = hosts[node] = AggregationEntry(node)
                rack_entry = racks.get(rack_node)
                if rack_entry is None:
                    rack_entry = racks[rack_node] = AggregationEntry(rack_node)
                rack_entry.add_child(host_entry)
                host_entry.add_value(index, nbytes)
                rack_entry.add_value(index, nbytes)

        # Assumes every spanned block carries the same number of replicas.
        replication = len(topology)
        ranked = self._identify_hosts(replication, racks.values())
        logger.debug(
            "Ranked %d hosts over blocks %d..%d for split at %d (+%d)",
            len(ranked),
            spans[0][0],
            spans[-1][0],
            offset,
            split_length,
        )
        return ranked

    @staticmethod
    def _spanned_bytes(
        blocks: Sequence[BlockLocation],
        start_index: int,
        bytes_in_first: int,
        split_length: int,
    ) -> List[Tuple[int, int]]:
        spans = [(start_index, bytes_in_first)]
        remaining = split_length - bytes_in_first
        index = start_index + 1
        while remaining > 0:
            if index >= len(blocks):
                raise BlockOffsetError(
                    f"Split of {split_length} bytes runs past the last block (0..{blocks[-1].end - 1})"
                )
            nbytes = min(remaining, blocks[index].length)
            spans.append((index, nbytes))
            remaining -= nbytes
            index += 1
        return spans

    @staticmethod
    def _fake_racks(block: BlockLocation) -> Tuple[str, ...]:
        return tuple(f"{DEFAULT_RACK}/{host}" for host in block.hosts)

    @staticmethod
    def _identify_hosts(replication: int, racks) -> List[str]:
        """Take up to ``replication`` host names, best rack first.

        Names are port-stripped but not deduplicated: one machine listed under
        two topology paths (``/r1/h1:50010`` and ``/r1/h1``) fills two slots.
        """
        selected: List[str] = []
        if replication <= 0:
            return selected
        for rack in rank_entries(racks):
            for host in rack.ranked_children():
                selected.append(host.node.host_name)
                if len(selected) == replication:
                    return selected
        return selected
