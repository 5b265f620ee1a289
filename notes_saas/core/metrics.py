from __future__ import annotations

from dataclasses import dataclass
from threading import Lock


@dataclass
class RequestStats:
    total_requests: int = 0
    total_duration_ms: float = 0.0
    error_count: int = 0

    def record(self, status_code: int, duration_ms: float) -> None:
        self.total_requests += 1
        self.total_duration_ms += duration_ms
        if status_code >= 400:
            self.error_count += 1

    @property
    def avg_duration_ms(self) -> float:
        if not self.total_requests:
            return 0.0
        return round(self.total_duration_ms / self.total_requests, 2)


class InMemoryRequestMetrics:
    """Process-local request counters keyed by route template and by tenant."""

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], RequestStats] = {}
        self._tenants: dict[str, RequestStats] = {}
        self._lock = Lock()

    def observe(
        self,
        endpoint: str,
        method: str,
        status_code: int,
        duration_ms: float,
        tenant_id: str | None = None,
    ) -> None:
        with self._lock:
            self._routes.setdefault((endpoint, method), RequestStats()).record(status_code, duration_ms)
            if tenant_id:
                self._tenants.setdefault(tenant_id, RequestStats()).record(status_code, duration_ms)

    def snapshot(self) -> dict[str, dict[str, float | int]]:
        with self._lock:
            return {
                f"{method} {endpoint}": {
                    "total_requests": stats.total_requests,
                    "avg_duration_ms": stats.avg_duration_ms,
                    "error_count": stats.error_count,
                }
                for (endpoint, method), stats in self._routes.items()
            }

    def snapshot_for_tenant(self, tenant_id: str) -> dict[str, float | int]:
        with self._lock:
            stats = self._tenants.get(tenant_id) or RequestStats()
            return {
                "requests": stats.total_requests,
                "errors": stats.error_count,
                "avg_latency_ms": stats.avg_duration_ms,
            }

    def reset(self) -> None:
        with self._lock:
            self._routes.clear()
            self._tenants.clear()


request_metrics = InMemoryRequestMetrics()
