"""Target split size derivation."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import JobConfig
from ..models import FileStatus
from .base import BaseService


@dataclass
class SplitSizeCalculator(BaseService):
    """Derives the byte length each split of a file should target.

    The file's block size is passed as the goal and the job's maximum as the
    block-size bound, so the result is ``max(min_size, file block size)`` and
    the maximum never caps it. Existing jobs depend on this sizing.
    """

    def min_size(self, job: JobConfig) -> int:
        policy = self.config.splits
        job_min = job.min_split_size if job.min_split_size is not None else policy.min_split_size
        return max(policy.format_min_split_size, job_min)

    def max_size(self, job: JobConfig) -> int:
        if job.max_split_size is not None:
            return job.max_split_size
        return self.config.splits.max_split_size

    def split_size_for(self, status: FileStatus, job: JobConfig) -> int:
        return self.compute_split_size(status.block_size, self.min_size(job), self.max_size(job))

    @staticmethod
    def compute_split_size(goal_size: int, min_size: int, block_size: int) -> int:
        if goal_size > block_size:
            return max(min_size, max(goal_size, block_size))
        return max(min_size, min(goal_size, block_size))

    @staticmethod
    def compute_goal_size(num_splits: int, total_size: int) -> int:
        # One split is held back for the remainder.
        return total_size // (1 if num_splits <= 1 else num_splits - 1)
