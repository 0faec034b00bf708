"""Per-provider outcome counters.

MetricsRecorder keeps success/failure/latency totals per provider name and
mirrors every outcome onto prometheus_client counters living in a private
CollectorRegistry, so several recorders can coexist in one process.
"""
import threading
from copy import deepcopy
from dataclasses import dataclass
from typing import Dict, Optional

import prometheus_client as prom
from prometheus_client import CollectorRegistry, start_http_server

from polyinfer.core.logging import get_logger

logger = get_logger(__name__)

__all__ = ["ProviderStats", "MetricsRecorder"]


@dataclass
class ProviderStats:
    success_count: int = 0
    failure_count: int = 0
    total_latency_ms: int = 0
    total_attempts: int = 0


class MetricsRecorder:
    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._stats: Dict[str, ProviderStats] = {}
        self._lock = threading.Lock()
        self._prom = {
            'attempts': prom.Counter(
                'polyinfer_provider_attempts',
                'Provider attempts by outcome',
                ['provider', 'outcome'],
                registry=self.registry,
            ),
            'latency': prom.Counter(
                'polyinfer_provider_latency_ms',
                'Cumulative provider latency in milliseconds',
                ['provider'],
                registry=self.registry,
            ),
        }

    def record_success(self, provider: str, latency_ms: float) -> None:
        self._record(provider, latency_ms, success=True)

    def record_failure(self, provider: str, latency_ms: float) -> None:
        self._record(provider, latency_ms, success=False)

    def _record(self, provider: str, latency_ms: float, success: bool) -> None:
        latency = max(int(round(latency_ms)), 0)
        with self._lock:
            stats = self._stats.setdefault(provider, ProviderStats())
            if success:
                stats.success_count += 1
            else:
                stats.failure_count += 1
            stats.total_latency_ms += latency
            stats.total_attempts += 1
        outcome = 'success' if success else 'failure'
        self._prom['attempts'].labels(provider=provider, outcome=outcome).inc()
        self._prom['latency'].labels(provider=provider).inc(latency)

    def get_metrics(self) -> Dict[str, ProviderStats]:
        """Independent deep copy of the per-provider stats."""
        with self._lock:
            return deepcopy(self._stats)

    def reset_metrics(self) -> None:
        """Clears the per-provider stats. Prometheus counters stay monotonic."""
        with self._lock:
            self._stats.clear()

    def start_metrics_server(self, port: int = 9090, addr: str = '127.0.0.1') -> None:
        """Exposes the Prometheus registry over HTTP."""
        # Bind to 127.0.0.1 by default so the port is not exposed externally.
        start_http_server(port, addr=addr, registry=self.registry)
        logger.info(f"Metrics server started on {addr}:{port}")
