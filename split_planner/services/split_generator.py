"""Turns listed files into ordered, locality-annotated splits."""

from __future__ import annotations

import logging
from concurrent import futures
from dataclasses import dataclass
from typing import List, Sequence

from ..config import JobConfig
from ..models import BlockLocation, FileStatus, Split, SplitPlan
from ..storage.filesystem import FileSystem
from .base import BaseService
from .locality_service import LocalityAggregator
from .split_size import SplitSizeCalculator

logger = logging.getLogger(__name__)


@dataclass
class SplitGenerator(BaseService):
    size_calculator: SplitSizeCalculator
    locality: LocalityAggregator

    def generate(self, job: JobConfig, files: Sequence[FileStatus], filesystem: FileSystem) -> SplitPlan:
        workers = max(1, self.config.splits.max_workers)
        if workers > 1 and len(files) > 1:
            with futures.ThreadPoolExecutor(max_workers=workers) as pool:
                per_file = list(pool.map(lambda status: self._plan_file(job, status, filesystem), files))
        else:
            per_file = [self._plan_file(job, status, filesystem) for status in files]

        plan = SplitPlan(files_processed=len(files), total_bytes=sum(status.length for status in files))
        for splits in per_file:
            plan.splits.extend(splits)
        logger.debug("Total # of splits: %d", len(plan.splits))
        self.emit_metric("splits.generated", float(len(plan.splits)))
        return plan

    def _plan_file(self, job: JobConfig, status: FileStatus, filesystem: FileSystem) -> List[Split]:
        blocks = filesystem.get_file_block_locations(status, 0, status.length)
        split_size = self.size_calculator.split_size_for(status, job)
        return self.splits_for_file(status, blocks, split_size)

    def splits_for_file(self, status: FileStatus, blocks: Sequence[BlockLocation], split_size: int) -> List[Split]:
        length = status.length
        if length == 0:
            return [Split(status.path, 0, 0, ())]
        first = blocks[self.locality.get_block_index(blocks, 0)]
        if not status.splittable:
            return [Split(status.path, 0, length, first.hosts)]
        if split_size <= 0:
            raise ValueError(f"split size must be positive, got {split_size}")

        slop = self.config.splits.split_slop
        splits: List[Split] = []
        remaining = length
        while remaining / split_size > slop:
            offset = length - remaining
            naive = blocks[self.locality.get_block_index(blocks, offset)].hosts
            splits.append(Split(status.path, offset, split_size, self._placement(blocks, offset, split_size, naive)))
            remaining -= split_size

        if remaining != 0:
            offset = length - remaining
            splits.append(Split(status.path, offset, remaining, self._placement(blocks, offset, remaining, blocks[-1].hosts)))
        return splits

    def _placement(self, blocks: Sequence[BlockLocation], offset: int, length: int, naive) -> tuple:
        if self.config.splits.locality_ranking and self.locality.spans_multiple_blocks(blocks, offset, length):
            return tuple(self.locality.rank_hosts(blocks, offset, length))
        return tuple(naive)
