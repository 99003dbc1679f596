"""Counters collected by the callback scheduler."""

from __future__ import annotations

import threading
from collections import Counter
from typing import Dict

from .logging import get_logger

LOGGER = get_logger("telemetry")


class MetricsCollector:
    """Collects counters in-memory. Safe to update from worker threads."""

    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()
        self._lock = threading.Lock()

    def increment(self, name: str, value: int = 1) -> None:
        with self._lock:
            self.counters[name] += value
            current = self.counters[name]
        LOGGER.debug("counter=%s value=%s", name, current)

    def get(self, name: str) -> int:
        with self._lock:
            return self.counters[name]

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self.counters)

    def reset(self) -> None:
        with self._lock:
            self.counters.clear()
