from __future__ import annotations

import sys

from split_planner.config import JobConfig, PlannerConfig
from split_planner.models import FileStatus
from split_planner.services.split_size import SplitSizeCalculator
from split_planner.telemetry import TelemetryCollector

MIB = 1024 * 1024


def _calculator(**policy) -> SplitSizeCalculator:
    cfg = PlannerConfig.default()
    for key, value in policy.items():
        setattr(cfg.splits, key, value)
    return SplitSizeCalculator(config=cfg, telemetry=TelemetryCollector(cfg.observability))


def test_block_size_wins_with_unbounded_max():
    assert SplitSizeCalculator.compute_split_size(64 * MIB, 1, sys.maxsize) == 64 * MIB


def test_max_bound_does_not_cap_split_size():
    assert SplitSizeCalculator.compute_split_size(64 * MIB, 1, 16 * MIB) == 64 * MIB
    assert SplitSizeCalculator.compute_split_size(64 * MIB, 1, 64 * MIB) == 64 * MIB


def test_min_size_raises_split_size():
    assert SplitSizeCalculator.compute_split_size(64 * MIB, 128 * MIB, sys.maxsize) == 128 * MIB


def test_min_size_combines_format_floor_and_job_setting():
    calculator = _calculator(format_min_split_size=4096)
    assert calculator.min_size(JobConfig()) == 4096
    assert calculator.min_size(JobConfig(min_split_size=10)) == 4096
    assert calculator.min_size(JobConfig(min_split_size=8192)) == 8192


def test_split_size_for_file_ignores_job_max():
    calculator = _calculator()
    status = FileStatus(path="/data/a", length=500 * MIB, block_size=64 * MIB)
    job = JobConfig(max_split_size=8 * MIB)
    assert calculator.max_size(job) == 8 * MIB
    assert calculator.split_size_for(status, job) == 64 * MIB


def test_goal_size_reserves_one_split_for_remainder():
    assert SplitSizeCalculator.compute_goal_size(1, 1000) == 1000
    assert SplitSizeCalculator.compute_goal_size(0, 1000) == 1000
    assert SplitSizeCalculator.compute_goal_size(5, 1000) == 250
