"""Register a catalog manifest with a running planner API and request a plan."""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any, Iterable

import requests


def _headers(token: str | None = None) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _load_manifest(path: Path) -> Iterable[dict[str, Any]]:
    text = path.read_text().strip()
    if not text:
        return []
    if text.lstrip().startswith("["):
        return json.loads(text)
    return [json.loads(line) for line in text.splitlines() if line]


def submit(rest_base: str, manifest: Iterable[dict[str, Any]], plan_request: dict[str, Any], token: str | None) -> dict[str, Any]:
    base = rest_base.rstrip("/")
    for entry in manifest:
        resp = requests.put(f"{base}/v1/catalog/files", headers=_headers(token), json=entry, timeout=30)
        print(f"PUT /v1/catalog/files {entry.get('path')} -> {resp.status_code}")
        resp.raise_for_status()
    resp = requests.post(f"{base}/v1/jobs:plan", headers=_headers(token), json=plan_request, timeout=60)
    print(f"POST /v1/jobs:plan -> {resp.status_code}")
    if resp.status_code >= 400:
        print(resp.text)
    resp.raise_for_status()
    return resp.json()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Submit a split planning request")
    parser.add_argument("manifest", type=Path, help="JSON (array or lines) of catalog file entries")
    parser.add_argument("--rest-base", default=os.environ.get("SPLIT_PLANNER_REST_BASE", "http://localhost:8000"))
    parser.add_argument("--input", action="append", default=[], help="Input path or glob; repeatable")
    parser.add_argument("--min-split-size", type=int, default=None)
    parser.add_argument("--max-split-size", type=int, default=None)
    parser.add_argument("--filter", default=None, help="Regular expression on file names")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    manifest = list(_load_manifest(args.manifest))
    inputs = args.input or [entry["path"] for entry in manifest]
    plan_request: dict[str, Any] = {"input_paths": inputs}
    if args.min_split_size is not None:
        plan_request["min_split_size"] = args.min_split_size
    if args.max_split_size is not None:
        plan_request["max_split_size"] = args.max_split_size
    if args.filter:
        plan_request["path_filter"] = args.filter
    result = submit(args.rest_base, manifest, plan_request, os.environ.get("AUTH_TOKEN"))
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
