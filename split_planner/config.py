"""Configuration primitives for the split planner."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from .errors import InvalidPathFilterError

PathFilter = Callable[[str], bool]

SPLIT_SLOP = 1.1
DEFAULT_PARTITION_DIR = "planner-partitions"

# Job option keys
MIN_SPLIT_SIZE_KEY = "split.min.size"
MAX_SPLIT_SIZE_KEY = "split.max.size"
INPUT_DIR_KEY = "input.dir"
INPUT_PATH_FILTER_KEY = "input.path.filter"
PARTITIONING_DIR_KEY = "partitioning.dir"
INPUT_FILES_KEY = "input.files"


@dataclass
class SplitPolicyConfig:
    format_min_split_size: int = 1
    min_split_size: int = 1
    max_split_size: int = sys.maxsize
    split_slop: float = SPLIT_SLOP
    locality_ranking: bool = True
    max_workers: int = 1


@dataclass
class StorageConfig:
    backend: str = "in-memory"
    local_root: Optional[str] = None
    local_block_size: int = 32 * 1024 * 1024
    local_hostname: str = "localhost"


@dataclass
class ObservabilityConfig:
    log_level: str = "INFO"
    log_format: str = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
    max_records: int = 10_000


@dataclass
class PlannerConfig:
    splits: SplitPolicyConfig
    storage: StorageConfig
    observability: ObservabilityConfig

    @staticmethod
    def default() -> "PlannerConfig":
        return PlannerConfig(
            splits=SplitPolicyConfig(),
            storage=StorageConfig(),
            observability=ObservabilityConfig(),
        )

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "PlannerConfig":
        env = os.environ if environ is None else environ
        cfg = PlannerConfig.default()
        if "SPLIT_PLANNER_MIN_SPLIT_SIZE" in env:
            cfg.splits.min_split_size = int(env["SPLIT_PLANNER_MIN_SPLIT_SIZE"])
        if "SPLIT_PLANNER_MAX_SPLIT_SIZE" in env:
            cfg.splits.max_split_size = int(env["SPLIT_PLANNER_MAX_SPLIT_SIZE"])
        if "SPLIT_PLANNER_LOCALITY_RANKING" in env:
            cfg.splits.locality_ranking = env["SPLIT_PLANNER_LOCALITY_RANKING"].strip().lower() not in {"0", "off", "false", "no"}
        if "SPLIT_PLANNER_MAX_WORKERS" in env:
            cfg.splits.max_workers = max(1, int(env["SPLIT_PLANNER_MAX_WORKERS"]))
        cfg.storage.backend = env.get("SPLIT_PLANNER_STORAGE", cfg.storage.backend)
        cfg.storage.local_root = env.get("SPLIT_PLANNER_LOCAL_ROOT", cfg.storage.local_root)
        if "SPLIT_PLANNER_LOCAL_BLOCK_SIZE" in env:
            cfg.storage.local_block_size = int(env["SPLIT_PLANNER_LOCAL_BLOCK_SIZE"])
        cfg.observability.log_level = env.get("SPLIT_PLANNER_LOG_LEVEL", cfg.observability.log_level)
        if "SPLIT_PLANNER_TELEMETRY_MAX_RECORDS" in env:
            cfg.observability.max_records = int(env["SPLIT_PLANNER_TELEMETRY_MAX_RECORDS"])
        return cfg


class RegexPathFilter:
    """Accepts paths whose final component matches ``pattern``."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        try:
            self._regex = re.compile(pattern)
        except re.error as exc:
            raise InvalidPathFilterError(pattern, str(exc)) from exc

    def __call__(self, path: str) -> bool:
        name = path.rstrip("/").rsplit("/", 1)[-1]
        return self._regex.search(name) is not None

    def __repr__(self) -> str:
        return f"RegexPathFilter({self.pattern!r})"


@dataclass
class JobConfig:
    input_paths: List[str] = field(default_factory=list)
    min_split_size: Optional[int] = None
    max_split_size: Optional[int] = None
    path_filter: Optional[PathFilter] = None
    partitioning_dir: Optional[str] = None
    options: Dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_options(cls, options: Mapping[str, object]) -> "JobConfig":
        job = cls(options=dict(options))
        raw_paths = options.get(INPUT_DIR_KEY)
        if raw_paths:
            job.input_paths = parse_input_paths(str(raw_paths))
        if options.get(MIN_SPLIT_SIZE_KEY) is not None:
            job.min_split_size = int(options[MIN_SPLIT_SIZE_KEY])
        if options.get(MAX_SPLIT_SIZE_KEY) is not None:
            job.max_split_size = int(options[MAX_SPLIT_SIZE_KEY])
        if options.get(INPUT_PATH_FILTER_KEY):
            job.path_filter = RegexPathFilter(str(options[INPUT_PATH_FILTER_KEY]))
        if options.get(PARTITIONING_DIR_KEY):
            job.partitioning_dir = str(options[PARTITIONING_DIR_KEY])
        return job

    def set_input_paths(self, comma_separated: str) -> None:
        self.input_paths = parse_input_paths(comma_separated)

    def add_input_paths(self, comma_separated: str) -> None:
        self.input_paths.extend(parse_input_paths(comma_separated))

    def to_options(self) -> Dict[str, object]:
        options = dict(self.options)
        if self.input_paths:
            options[INPUT_DIR_KEY] = ",".join(self.input_paths)
        if self.min_split_size is not None:
            options[MIN_SPLIT_SIZE_KEY] = self.min_split_size
        if self.max_split_size is not None:
            options[MAX_SPLIT_SIZE_KEY] = self.max_split_size
        if isinstance(self.path_filter, RegexPathFilter):
            options[INPUT_PATH_FILTER_KEY] = self.path_filter.pattern
        if self.partitioning_dir:
            options[PARTITIONING_DIR_KEY] = self.partitioning_dir
        return options

    @property
    def files_processed(self) -> Optional[int]:
        value = self.options.get(INPUT_FILES_KEY)
        return None if value is None else int(value)

    def partition_dir_names(self) -> set[str]:
        names = {DEFAULT_PARTITION_DIR}
        if self.partitioning_dir:
            names.add(self.partitioning_dir)
        return names


def parse_input_paths(comma_separated: str) -> List[str]:
    """Split on commas that are not inside a ``{a,b}`` glob group."""
    paths: List[str] = []
    depth = 0
    start = 0
    for index, char in enumerate(comma_separated):
        if char == "{":
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
        elif char == "," and depth == 0:
            paths.append(comma_separated[start:index])
            start = index + 1
    paths.append(comma_separated[start:])
    return [path.strip() for path in paths if path.strip()]
