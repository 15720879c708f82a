"""Input path resolution and filtering."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..config import JobConfig, PathFilter
from ..errors import InputPathError, InvalidInputError, NoInputPathsError, NotAFileError
from ..models import FileStatus
from ..storage.filesystem import FileSystem
from .base import BaseService

logger = logging.getLogger(__name__)


def hidden_file_filter(path: str) -> bool:
    name = path.rstrip("/").rsplit("/", 1)[-1]
    return not name.startswith("_") and not name.startswith(".")


class MultiPathFilter:
    """Accepts a path only if every wrapped filter does."""

    def __init__(self, filters: Sequence[PathFilter]) -> None:
        self.filters = list(filters)

    def __call__(self, path: str) -> bool:
        return all(path_filter(path) for path_filter in self.filters)


@dataclass
class ListingService(BaseService):
    filesystem: FileSystem

    def input_filter(self, job: JobConfig) -> MultiPathFilter:
        filters: List[PathFilter] = [hidden_file_filter]
        if job.path_filter is not None:
            filters.append(job.path_filter)
        return MultiPathFilter(filters)

    def list_status(self, job: JobConfig) -> List[FileStatus]:
        if not job.input_paths:
            raise NoInputPathsError()

        path_filter = self.input_filter(job)
        result: List[FileStatus] = []
        errors: List[InputPathError] = []
        for pattern in job.input_paths:
            matches: Optional[List[FileStatus]] = None
            try:
                matches = self.filesystem.glob_status(pattern, path_filter)
            except (OSError, ValueError) as exc:
                logger.info("%s\n%s", pattern, exc)

            if matches is None:
                errors.append(InputPathError.missing(pattern))
            elif not matches:
                errors.append(InputPathError.no_matches(pattern))
            else:
                for status in matches:
                    if status.is_dir:
                        result.extend(self.filesystem.list_status(status.path, path_filter))
                    else:
                        result.append(status)

        if errors:
            self.emit_metric("listing.errors", float(len(errors)))
            raise InvalidInputError(errors)
        logger.info("Total input paths to process : %d", len(result))
        return result

    def prune_directories(self, job: JobConfig, files: Sequence[FileStatus]) -> Tuple[List[FileStatus], int]:
        """Drop leftover partitioning directories; any other directory is fatal.

        Returns the remaining files and their total length.
        """
        partition_dirs = job.partition_dir_names()
        kept: List[FileStatus] = []
        total_size = 0
        for status in files:
            if status.is_dir:
                if status.name not in partition_dirs:
                    raise NotAFileError(status.path)
                logger.warning("Removing already existing partitioning directory %s", status.path)
                if not self.filesystem.delete(status.path, recursive=True):
                    logger.error("Remove failed.")
                self.emit_event("partition_dir_removed", path=status.path)
                continue
            kept.append(status)
            total_size += status.length
        return kept, total_size
