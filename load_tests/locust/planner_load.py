from locust import HttpUser, between, task
import os

REST_BASE = os.environ.get("SPLIT_PLANNER_REST_BASE", "http://localhost:8000")
AUTH_TOKEN = os.environ.get("AUTH_TOKEN")
MIB = 1024 * 1024


def _headers(extra=None):
    headers = {"Content-Type": "application/json"}
    if AUTH_TOKEN:
        headers["Authorization"] = f"Bearer {AUTH_TOKEN}"
    if extra:
        headers.update(extra)
    return headers


class PlannerUser(HttpUser):
    host = REST_BASE
    wait_time = between(0.5, 2.0)

    def on_start(self):
        payload = {
            "path": "/load/input/part-00000",
            "length": 250 * MIB,
            "block_size": 64 * MIB,
            "topology": [["/rack-a/h1", "/rack-a/h2", "/rack-b/h3"], ["/rack-b/h3", "/rack-b/h4", "/rack-a/h1"]],
        }
        self.client.put("/v1/catalog/files", json=payload, headers=_headers())

    @task(3)
    def plan_job(self):
        self.client.post("/v1/jobs:plan", json={"input_paths": ["/load/input/*"]}, headers=_headers())

    @task(2)
    def rank_split(self):
        payload = {
            "blocks": [
                {"offset": 0, "length": 64 * MIB, "hosts": ["h1", "h2"]},
                {"offset": 64 * MIB, "length": 64 * MIB, "hosts": ["h2", "h3"]},
            ],
            "offset": 32 * MIB,
            "length": 64 * MIB,
        }
        self.client.post("/v1/splits:rank", json=payload, headers=_headers())

    @task(1)
    def fetch_metrics(self):
        self.client.get("/v1/telemetry/metrics", params={"name": "splits.generated"}, headers=_headers())
