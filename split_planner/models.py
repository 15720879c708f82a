"""Data models shared across the split planning services."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class BlockLocation:
    """One replica group of a contiguous byte range of a file."""

    offset: int
    length: int
    hosts: Tuple[str, ...] = ()
    topology_paths: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept lists from callers but keep the record immutable.
        object.__setattr__(self, "hosts", tuple(self.hosts))
        object.__setattr__(self, "topology_paths", tuple(self.topology_paths))

    @property
    def end(self) -> int:
        return self.offset + self.length

    def contains(self, offset: int) -> bool:
        return self.offset <= offset < self.end


@dataclass(frozen=True)
class Split:
    file_id: str
    offset: int
    length: int
    preferred_hosts: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "preferred_hosts", tuple(self.preferred_hosts))

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class FileStatus:
    path: str
    length: int = 0
    block_size: int = 0
    is_dir: bool = False
    splittable: bool = True

    @property
    def name(self) -> str:
        return posixpath.basename(self.path.rstrip("/"))


@dataclass
class SplitPlan:
    splits: List[Split] = field(default_factory=list)
    files_processed: int = 0
    total_bytes: int = 0

    def splits_for(self, path: str) -> List[Split]:
        return [split for split in self.splits if split.file_id == path]


@dataclass
class PlannerEvent:
    event_type: str
    message: str
    attributes: Optional[dict] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def layout_blocks(
    length: int,
    block_size: int,
    placements: Sequence[Iterable[str]] | None = None,
    *,
    topology: Sequence[Iterable[str]] | None = None,
) -> List[BlockLocation]:
    """Cut ``length`` bytes into contiguous blocks of ``block_size``.

    ``placements`` gives the host list of each block; when shorter than the
    number of blocks the last entry is reused. ``topology`` works the same way
    for the ``rack/host`` paths. A host list is derived from the topology
    paths when no placements are given.
    """
    if length < 0:
        raise ValueError("length cannot be negative")
    if length and block_size <= 0:
        raise ValueError("block_size must be positive")
    blocks: List[BlockLocation] = []
    offset = 0
    index = 0
    while offset < length:
        block_length = min(block_size, length - offset)
        topo = _pick(topology, index)
        hosts = _pick(placements, index)
        if not hosts and topo:
            hosts = tuple(path.rstrip("/").rsplit("/", 1)[-1] for path in topo)
        blocks.append(BlockLocation(offset=offset, length=block_length, hosts=hosts, topology_paths=topo))
        offset += block_length
        index += 1
    return blocks


def _pick(entries: Sequence[Iterable[str]] | None, index: int) -> Tuple[str, ...]:
    if not entries:
        return ()
    return tuple(entries[min(index, len(entries) - 1)])


def describe_splits(splits: Iterable[Split]) -> List[Dict[str, object]]:
    return [
        {
            "file": split.file_id,
            "offset": split.offset,
            "length": split.length,
            "hosts": list(split.preferred_hosts),
        }
        for split in splits
    ]
