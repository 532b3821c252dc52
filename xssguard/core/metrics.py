"""
In-memory metrics collector for body-safe observability.
Thread-safe singleton; only counters and timings are stored.
"""
import threading
import time
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class LatencyStats:
    """Aggregated latency statistics (sum/count for average calculation)."""
    sum_ms: int = 0
    count: int = 0

    def record(self, ms: int) -> None:
        self.sum_ms += ms
        self.count += 1

    @property
    def avg_ms(self) -> float:
        return self.sum_ms / self.count if self.count > 0 else 0.0


@dataclass
class MetricsData:
    """Container for all aggregated metrics."""
    total_requests: int = 0
    sanitized_requests: int = 0
    error_count: int = 0
    routes: Dict[str, int] = field(default_factory=dict)
    error_codes: Dict[str, int] = field(default_factory=dict)
    responses_sanitized: int = 0
    responses_passed_through: int = 0
    latency: LatencyStats = field(default_factory=LatencyStats)
    started_at: float = field(default_factory=time.time)


class MetricsCollector:
    """
    Thread-safe singleton for sanitization metrics.

    Usage:
        metrics = get_metrics_collector()
        metrics.record_request(route="json", latency_ms=3, success=True)
    """
    _instance: "MetricsCollector | None" = None
    _lock = threading.Lock()

    def __new__(cls) -> "MetricsCollector":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._data = MetricsData()
                    instance._data_lock = threading.Lock()
                    cls._instance = instance
        return cls._instance

    def record_request(
        self,
        route: str,
        latency_ms: int,
        success: bool,
        error_code: str | None = None,
    ) -> None:
        """
        Record one inspected request.

        Args:
            route: Dispatcher route name
            latency_ms: Time spent rewriting the request
            success: Whether the rewrite succeeded
            error_code: Codec error code if not success
        """
        with self._data_lock:
            self._data.total_requests += 1
            self._data.routes[route] = self._data.routes.get(route, 0) + 1
            self._data.latency.record(latency_ms)

            if success:
                if route != "passthrough":
                    self._data.sanitized_requests += 1
            else:
                self._data.error_count += 1
                if error_code:
                    self._data.error_codes[error_code] = (
                        self._data.error_codes.get(error_code, 0) + 1
                    )

    def record_response(self, sanitized: bool, error_code: str | None = None) -> None:
        """Record one response: rewritten, passed through, or failed."""
        with self._data_lock:
            if error_code:
                self._data.error_count += 1
                self._data.error_codes[error_code] = (
                    self._data.error_codes.get(error_code, 0) + 1
                )
            elif sanitized:
                self._data.responses_sanitized += 1
            else:
                self._data.responses_passed_through += 1

    def get_snapshot(self) -> dict:
        """
        Get a snapshot of current metrics.
        Returns a plain dict suitable for JSON serialization.
        """
        with self._data_lock:
            uptime_seconds = int(time.time() - self._data.started_at)
            return {
                "uptime_seconds": uptime_seconds,
                "total_requests": self._data.total_requests,
                "sanitized_requests": self._data.sanitized_requests,
                "error_count": self._data.error_count,
                "routes": dict(self._data.routes),
                "error_codes": dict(self._data.error_codes),
                "responses": {
                    "sanitized": self._data.responses_sanitized,
                    "passed_through": self._data.responses_passed_through,
                },
                "latency": {
                    "sum_ms": self._data.latency.sum_ms,
                    "count": self._data.latency.count,
                    "avg_ms": round(self._data.latency.avg_ms, 2),
                },
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._data_lock:
            self._data = MetricsData()


def get_metrics_collector() -> MetricsCollector:
    """Get the singleton metrics collector instance."""
    return MetricsCollector()
