"""Rolling filter-latency window reported by ``GET /api/v1/prompts/health``."""

from __future__ import annotations

from collections import deque


class ScanLatencyTracker:
    """Rolling window of ``PromptFirewall.filter()`` durations (last *window* samples).

    Thread-safety:
        Safe for single-threaded asyncio use (all access from the event loop).

    Usage::

        tracker = ScanLatencyTracker()
        tracker.record(1.3)
        avg = tracker.avg_ms
        p99 = tracker.p99_ms     # 0.0 until 10+ samples
    """

    def __init__(self, window: int = 100) -> None:
        self._times: deque[float] = deque(maxlen=window)

    def record(self, duration_ms: float) -> None:
        """Append a sample; the oldest is evicted once the window is full."""
        self._times.append(duration_ms)

    @property
    def avg_ms(self) -> float:
        if not self._times:
            return 0.0
        return sum(self._times) / len(self._times)

    @property
    def p99_ms(self) -> float:
        """99th percentile of the window; 0.0 with fewer than 10 samples."""
        if len(self._times) < 10:
            return 0.0
        sorted_times = sorted(self._times)
        idx = max(0, int(len(sorted_times) * 0.99) - 1)
        return sorted_times[idx]

    @property
    def count(self) -> int:
        return len(self._times)
