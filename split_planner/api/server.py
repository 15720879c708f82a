"""FastAPI gateway exposing split planning to schedulers and tooling."""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config import JobConfig, PlannerConfig, RegexPathFilter
from ..errors import (
    BlockOffsetError,
    InvalidInputError,
    InvalidPathFilterError,
    InvalidTopologyError,
    NoInputPathsError,
    NotAFileError,
)
from ..models import BlockLocation, describe_splits
from ..runtime import SplitPlannerRuntime
from ..storage.filesystem import InMemoryFileSystem

logger = logging.getLogger(__name__)

runtime = SplitPlannerRuntime.bootstrap(PlannerConfig.from_env())

app = FastAPI(title="Split Planner API", version="0.1.0")

_cors_origins = [origin.strip() for origin in os.environ.get("SPLIT_PLANNER_CORS_ORIGINS", "*").split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins or ["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class BlockModel(BaseModel):
    offset: int = Field(ge=0)
    length: int = Field(ge=0)
    hosts: list[str] = Field(default_factory=list)
    topology_paths: list[str] = Field(default_factory=list)

    def to_location(self) -> BlockLocation:
        return BlockLocation(
            offset=self.offset,
            length=self.length,
            hosts=tuple(self.hosts),
            topology_paths=tuple(self.topology_paths),
        )


class CatalogFileRequest(BaseModel):
    path: str
    length: int = Field(ge=0)
    block_size: int = Field(default=64 * 1024 * 1024, gt=0)
    splittable: bool = True
    hosts: list[list[str]] = Field(default_factory=list)
    topology: list[list[str]] = Field(default_factory=list)
    blocks: Optional[list[BlockModel]] = None


class PlanRequest(BaseModel):
    input_paths: list[str] = Field(default_factory=list)
    min_split_size: Optional[int] = Field(default=None, ge=1)
    max_split_size: Optional[int] = Field(default=None, ge=1)
    path_filter: Optional[str] = None
    partitioning_dir: Optional[str] = None
    options: dict[str, Any] = Field(default_factory=dict)


class RankRequest(BaseModel):
    blocks: list[BlockModel]
    offset: int = Field(ge=0)
    length: int = Field(gt=0)


def _catalog() -> InMemoryFileSystem:
    filesystem = runtime.filesystem
    if not isinstance(filesystem, InMemoryFileSystem):
        raise HTTPException(status_code=409, detail="catalog registration requires the in-memory backend")
    return filesystem


def _build_job(payload: PlanRequest) -> JobConfig:
    options = dict(payload.options)
    job = JobConfig.from_options(options) if options else JobConfig()
    if payload.input_paths:
        job.input_paths = list(payload.input_paths)
    if payload.min_split_size is not None:
        job.min_split_size = payload.min_split_size
    if payload.max_split_size is not None:
        job.max_split_size = payload.max_split_size
    if payload.path_filter:
        job.path_filter = RegexPathFilter(payload.path_filter)
    if payload.partitioning_dir:
        job.partitioning_dir = payload.partitioning_dir
    return job


@app.get("/healthz")
async def healthz():
    return {"status": "ok", "backend": runtime.config.storage.backend}


@app.put("/v1/catalog/files")
async def register_file(payload: CatalogFileRequest):
    catalog = _catalog()
    blocks = None
    if payload.blocks is not None:
        blocks = [block.to_location() for block in payload.blocks]
    try:
        status = catalog.add_file(
            payload.path,
            payload.length,
            block_size=payload.block_size,
            hosts=payload.hosts or None,
            topology=payload.topology or None,
            blocks=blocks,
            splittable=payload.splittable,
        )
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return {"path": status.path, "length": status.length, "block_size": status.block_size}


@app.post("/v1/jobs:plan")
async def plan_job(payload: PlanRequest):
    try:
        job = _build_job(payload)
    except InvalidPathFilterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    try:
        plan = runtime.plan(job)
    except NoInputPathsError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=exc.messages) from exc
    except NotAFileError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (BlockOffsetError, InvalidTopologyError) as exc:
        logger.error("Block metadata inconsistent while planning %s: %s", job.input_paths, exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {
        "splits": describe_splits(plan.splits),
        "files_processed": plan.files_processed,
        "total_bytes": plan.total_bytes,
        "options": job.to_options(),
    }


@app.post("/v1/splits:rank")
async def rank_split(payload: RankRequest):
    blocks = [block.to_location() for block in payload.blocks]
    try:
        hosts = runtime.locality_aggregator.rank_hosts(blocks, payload.offset, payload.length)
    except (BlockOffsetError, InvalidTopologyError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"hosts": hosts}


@app.get("/v1/telemetry/metrics")
async def list_metrics(name: Optional[str] = None):
    return {"metrics": runtime.telemetry.snapshot(name or None)}
