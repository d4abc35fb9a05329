"""Running latency statistics for compile requests"""

import math
from collections import deque

from mdblocks.worker.protocol import MetricsSnapshot


def percentile(sorted_values: list[float], p: float) -> float:
    """Nearest-rank percentile of an ascending list (0.0 when empty)."""
    if not sorted_values:
        return 0.0
    rank = max(1, math.ceil(p * len(sorted_values)))
    return sorted_values[min(rank, len(sorted_values)) - 1]


class LatencyTracker:
    """Count and mean over every sample; percentiles over the most recent window."""

    def __init__(self, window: int = 1000):
        self._samples: deque[float] = deque(maxlen=window)
        self._count = 0
        self._total = 0.0

    def record(self, latency_ms: float) -> None:
        self._samples.append(latency_ms)
        self._count += 1
        self._total += latency_ms

    def snapshot(self) -> MetricsSnapshot:
        ordered = sorted(self._samples)
        return MetricsSnapshot(
            p50=percentile(ordered, 0.50),
            p95=percentile(ordered, 0.95),
            count=self._count,
            average=self._total / self._count if self._count else 0.0,
        )


def check_targets(snapshot: MetricsSnapshot, p50_ms: float = 200.0, p95_ms: float = 500.0) -> dict[str, bool]:
    """Whether the snapshot is under the p50/p95 latency targets."""
    return {
        "p50Target": snapshot.p50 < p50_ms,
        "p95Target": snapshot.p95 < p95_ms,
    }
