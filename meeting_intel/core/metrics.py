"""
In-process metrics for the meeting pipeline and retrieval engine.

Tracks:
- Run outcomes (ready / failed / rejected) and run durations
- Search and answer latencies
- Embedding chunk failures (partial index coverage)

Usage:
    from meeting_intel.core.metrics import metrics

    metrics.record_run(duration_ms=42000, outcome="ready")
    stats = metrics.get_stats()
"""

from __future__ import annotations

import time
import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Dict, Any, Deque
from threading import Lock

logger = logging.getLogger(__name__)


@dataclass
class LatencyWindow:
    """Rolling window of latency samples in milliseconds."""

    samples: Deque[float] = field(default_factory=lambda: deque(maxlen=500))
    _lock: Lock = field(default_factory=Lock)

    def add(self, value_ms: float) -> None:
        with self._lock:
            self.samples.append(value_ms)

    def summary(self) -> Dict[str, float]:
        with self._lock:
            ordered = sorted(self.samples)

        n = len(ordered)
        if n == 0:
            return {"count": 0, "p50": 0.0, "p95": 0.0, "max": 0.0}

        return {
            "count": n,
            "p50": round(ordered[int(n * 0.5)], 2),
            "p95": round(ordered[min(n - 1, int(n * 0.95))], 2),
            "max": round(ordered[-1], 2),
        }


class PipelineMetrics:
    """Counters and latency windows for pipeline runs and queries."""

    def __init__(self) -> None:
        self.run_latency = LatencyWindow()
        self.search_latency = LatencyWindow()
        self.answer_latency = LatencyWindow()
        self.run_outcomes: Counter = Counter()
        self.chunks_indexed = 0
        self.chunks_failed = 0
        self.generation_skipped = 0
        self._lock = Lock()
        self._start_time = time.time()

    def record_run(self, duration_ms: float, outcome: str) -> None:
        """Record a finished run; outcome is ready, failed or rejected."""
        with self._lock:
            self.run_outcomes[outcome] += 1
        if outcome != "rejected":
            self.run_latency.add(duration_ms)
        logger.debug(f"Run finished: outcome={outcome} in {duration_ms:.0f}ms")

    def record_indexing(self, indexed: int, failed: int) -> None:
        with self._lock:
            self.chunks_indexed += indexed
            self.chunks_failed += failed

    def record_search(self, latency_ms: float) -> None:
        self.search_latency.add(latency_ms)

    def record_answer(self, latency_ms: float, generated: bool) -> None:
        self.answer_latency.add(latency_ms)
        if not generated:
            with self._lock:
                self.generation_skipped += 1

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            outcomes = dict(self.run_outcomes)
            indexed, failed = self.chunks_indexed, self.chunks_failed
            skipped = self.generation_skipped

        finished = outcomes.get("ready", 0) + outcomes.get("failed", 0)
        return {
            "uptime_seconds": round(time.time() - self._start_time, 0),
            "runs": {
                "outcomes": outcomes,
                "failure_rate": round(outcomes.get("failed", 0) / finished, 4) if finished else 0.0,
                "latency_ms": self.run_latency.summary(),
            },
            "indexing": {
                "chunks_indexed": indexed,
                "chunks_failed": failed,
            },
            "search": {"latency_ms": self.search_latency.summary()},
            "answer": {
                "latency_ms": self.answer_latency.summary(),
                "generation_skipped": skipped,
            },
        }

    def reset(self) -> None:
        """Reset all metrics (for testing)."""
        self.__init__()


metrics = PipelineMetrics()
