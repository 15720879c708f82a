"""Locality-aware input split planning for block-replicated files."""

from .config import JobConfig, PlannerConfig  # noqa: F401
from .runtime import SplitPlannerRuntime  # noqa: F401
