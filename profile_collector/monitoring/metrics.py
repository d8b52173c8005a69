"""Prometheus metrics for collected sessions."""

from typing import Dict, Any
import threading
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest
import structlog

logger = structlog.get_logger(__name__)


class MetricsCollector:
    """Session counters and timings backed by a private Prometheus registry."""

    def __init__(self, registry: CollectorRegistry = None):
        self.registry = registry or CollectorRegistry()
        self._lock = threading.Lock()

        self.counters: Dict[str, Counter] = {}
        self.histograms: Dict[str, Histogram] = {}

        self._initialize_metrics()

    def _initialize_metrics(self):
        self.counters["sessions_started_total"] = Counter(
            "profile_sessions_started_total",
            "Sessions started",
            ["operation_type", "sampled"],
            registry=self.registry
        )

        self.counters["sessions_stored_total"] = Counter(
            "profile_sessions_stored_total",
            "Sessions forwarded to the backend",
            ["kind"],
            registry=self.registry
        )

        self.counters["sessions_discarded_total"] = Counter(
            "profile_sessions_discarded_total",
            "Sessions discarded because a fatal error was recorded",
            ["operation_type"],
            registry=self.registry
        )

        self.counters["collaborator_failures_total"] = Counter(
            "profile_collaborator_failures_total",
            "Failures raised by the profiler, decision, backend or context",
            ["collaborator"],
            registry=self.registry
        )

        self.histograms["session_duration_seconds"] = Histogram(
            "profile_session_duration_seconds",
            "Wall-clock duration of finished sessions",
            ["operation_type"],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 60.0],
            registry=self.registry
        )

    def increment_counter(self, name: str, labels: Dict[str, str] = None) -> None:
        """Increment a counter metric."""
        labels = labels or {}

        with self._lock:
            if name in self.counters:
                counter = self.counters[name]
                if labels:
                    counter.labels(**labels).inc()
                else:
                    counter.inc()
            else:
                logger.warning("Counter not found", metric_name=name)

    def record_histogram(self, name: str, value: float, labels: Dict[str, str] = None) -> None:
        """Record a value in a histogram metric."""
        labels = labels or {}

        with self._lock:
            if name in self.histograms:
                histogram = self.histograms[name]
                if labels:
                    histogram.labels(**labels).observe(value)
                else:
                    histogram.observe(value)
            else:
                logger.warning("Histogram not found", metric_name=name)

    def get_sample_value(self, name: str, labels: Dict[str, str] = None) -> float:
        """Read back a single sample, 0.0 when it was never recorded."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0

    def get_prometheus_metrics(self) -> str:
        """Get Prometheus-formatted metrics."""
        return generate_latest(self.registry).decode("utf-8")

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Totals per counter across all label combinations."""
        summary: Dict[str, Any] = {"counters": {}}

        with self._lock:
            for metric in self.registry.collect():
                if metric.type != "counter":
                    continue
                total = sum(
                    sample.value for sample in metric.samples
                    if sample.name.endswith("_total")
                )
                summary["counters"][metric.name] = total

        return summary


# Global metrics collector instance
metrics_collector = MetricsCollector()
