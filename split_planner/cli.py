"""Command line entry point planning splits for local input paths."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional, Sequence

from .config import JobConfig, PlannerConfig, RegexPathFilter, parse_input_paths
from .errors import SplitPlannerError
from .models import SplitPlan, describe_splits
from .runtime import SplitPlannerRuntime

_LOGGER = logging.getLogger("split_planner.cli")


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Plan locality-aware input splits")
    parser.add_argument("paths", nargs="+", help="Input files, directories or glob patterns (comma separated allowed)")
    parser.add_argument("--min-split-size", type=int, default=None, help="Lower bound on split size in bytes")
    parser.add_argument("--max-split-size", type=int, default=None, help="Upper bound on split size in bytes")
    parser.add_argument(
        "--block-size",
        type=int,
        default=None,
        help="Block size assumed for local files (bytes)",
    )
    parser.add_argument("--hostname", default=None, help="Host reported for local blocks")
    parser.add_argument("--filter", default=None, help="Regular expression file names must match")
    parser.add_argument("--partitioning-dir", default=None, help="Extra directory name treated as prior-run state")
    parser.add_argument("--workers", type=int, default=None, help="Files planned concurrently")
    parser.add_argument("--json", action="store_true", help="Emit raw JSON instead of formatted text")
    parser.add_argument("--log-level", default=None, help="Logging level (default from config)")
    return parser.parse_args(list(argv) if argv is not None else None)


def _build_config(args: argparse.Namespace) -> PlannerConfig:
    cfg = PlannerConfig.from_env()
    cfg.storage.backend = "local"
    if args.block_size:
        cfg.storage.local_block_size = args.block_size
    if args.hostname:
        cfg.storage.local_hostname = args.hostname
    if args.workers:
        cfg.splits.max_workers = max(1, args.workers)
    if args.log_level:
        cfg.observability.log_level = args.log_level
    return cfg


def _build_job(args: argparse.Namespace) -> JobConfig:
    paths: List[str] = []
    for raw in args.paths:
        paths.extend(parse_input_paths(raw))
    job = JobConfig(
        input_paths=paths,
        min_split_size=args.min_split_size,
        max_split_size=args.max_split_size,
        partitioning_dir=args.partitioning_dir,
    )
    if args.filter:
        job.path_filter = RegexPathFilter(args.filter)
    return job


def _print_plan(plan: SplitPlan) -> None:
    print(f"Files processed: {plan.files_processed} ({plan.total_bytes / (1024 * 1024):.1f} MB)")
    if not plan.splits:
        print("  No splits generated.")
        return
    for split in plan.splits:
        hosts = ", ".join(split.preferred_hosts) if split.preferred_hosts else "none"
        print(f"  - {split.file_id} [{split.offset}, +{split.length}) hosts: {hosts}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    cfg = _build_config(args)
    logging.basicConfig(level=cfg.observability.log_level.upper(), format=cfg.observability.log_format)
    runtime = SplitPlannerRuntime.bootstrap(cfg)
    try:
        job = _build_job(args)
        plan = runtime.plan(job)
    except SplitPlannerError as exc:
        _LOGGER.error("%s", exc)
        return 1

    if args.json:
        print(json.dumps({"files_processed": plan.files_processed, "splits": describe_splits(plan.splits)}, indent=2))
    else:
        _print_plan(plan)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
