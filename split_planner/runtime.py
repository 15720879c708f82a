"""Runtime wiring for the split planner."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .config import INPUT_FILES_KEY, JobConfig, PlannerConfig
from .models import SplitPlan
from .services.listing_service import ListingService
from .services.locality_service import LocalityAggregator
from .services.split_generator import SplitGenerator
from .services.split_size import SplitSizeCalculator
from .storage.filesystem import FileSystem, build_filesystem
from .telemetry import TelemetryCollector

logger = logging.getLogger(__name__)


@dataclass
class SplitPlannerRuntime:
    config: PlannerConfig
    filesystem: FileSystem
    telemetry: TelemetryCollector
    listing_service: ListingService
    size_calculator: SplitSizeCalculator
    locality_aggregator: LocalityAggregator
    split_generator: SplitGenerator

    @classmethod
    def bootstrap(
        cls,
        config: Optional[PlannerConfig] = None,
        filesystem: Optional[FileSystem] = None,
    ) -> "SplitPlannerRuntime":
        cfg = config or PlannerConfig.default()
        if filesystem is None:
            storage = cfg.storage
            if storage.backend == "local":
                filesystem = build_filesystem(
                    "local",
                    root=storage.local_root,
                    block_size=storage.local_block_size,
                    hostname=storage.local_hostname,
                )
            else:
                filesystem = build_filesystem(storage.backend)
        telemetry = TelemetryCollector(cfg.observability)

        listing_service = ListingService(config=cfg, telemetry=telemetry, filesystem=filesystem)
        size_calculator = SplitSizeCalculator(config=cfg, telemetry=telemetry)
        locality_aggregator = LocalityAggregator(config=cfg, telemetry=telemetry)
        split_generator = SplitGenerator(
            config=cfg,
            telemetry=telemetry,
            size_calculator=size_calculator,
            locality=locality_aggregator,
        )
        return cls(
            config=cfg,
            filesystem=filesystem,
            telemetry=telemetry,
            listing_service=listing_service,
            size_calculator=size_calculator,
            locality_aggregator=locality_aggregator,
            split_generator=split_generator,
        )

    def plan(self, job: JobConfig) -> SplitPlan:
        listed = self.listing_service.list_status(job)
        files, total_size = self.listing_service.prune_directories(job, listed)
        plan = self.split_generator.generate(job, files, self.filesystem)

        job.options[INPUT_FILES_KEY] = len(files)
        self.telemetry.emit_metric("input.files", float(len(files)))
        logger.info("Planned %d splits over %d files (%d bytes)", len(plan.splits), len(files), total_size)
        return plan
