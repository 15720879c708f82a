"""Observability scaffolding."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, Dict, List

from .config import ObservabilityConfig
from .models import PlannerEvent


@dataclass
class TelemetryCollector:
    """Keeps the most recent ``config.max_records`` metrics and events."""

    config: ObservabilityConfig
    metrics: Deque[Dict[str, object]] = field(init=False)
    events: Deque[PlannerEvent] = field(init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        limit = self.config.max_records if self.config.max_records > 0 else None
        self.metrics = deque(maxlen=limit)
        self.events = deque(maxlen=limit)

    def emit_metric(self, name: str, value: float, labels: Dict[str, str] | None = None) -> None:
        payload = {
            "name": name,
            "value": value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **(labels or {}),
        }
        with self._lock:
            self.metrics.append(payload)

    def emit_event(self, message: str, attributes: Dict[str, str] | None = None) -> None:
        with self._lock:
            self.events.append(PlannerEvent(event_type="custom", message=message, attributes=attributes))

    def latest(self, name: str) -> float | None:
        with self._lock:
            for metric in reversed(self.metrics):
                if metric.get("name") == name:
                    return metric.get("value")
        return None

    def flush(self) -> None:
        with self._lock:
            self.metrics.clear()
            self.events.clear()

    def snapshot(self, name: str | None = None) -> List[Dict[str, object]]:
        with self._lock:
            return [dict(metric) for metric in self.metrics if name is None or metric.get("name") == name]
