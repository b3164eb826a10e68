"""
Metrics Collection
Prometheus metrics for resolution and rendering
"""

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the IXP server.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or REGISTRY

        # Resolution metrics
        self.resolutions_total = Counter(
            "ixp_resolutions_total",
            "Total number of intent resolutions",
            ["status"],
            registry=self.registry,
        )
        self.resolution_duration = Histogram(
            "ixp_resolution_duration_seconds",
            "Intent resolution duration in seconds",
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=self.registry,
        )

        # Render metrics
        self.renders_total = Counter(
            "ixp_renders_total",
            "Total number of render requests",
            ["mode", "status"],
            registry=self.registry,
        )
        self.render_duration = Histogram(
            "ixp_render_duration_seconds",
            "Render duration in seconds",
            ["mode"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0],
            registry=self.registry,
        )
        self.ssr_fallbacks_total = Counter(
            "ixp_ssr_fallbacks_total",
            "Server-side renders that fell back to client-only rendering",
            ["framework"],
            registry=self.registry,
        )

        # Registry metrics
        self.registry_reloads_total = Counter(
            "ixp_registry_reloads_total",
            "Registry reloads",
            ["registry", "status"],
            registry=self.registry,
        )
        self.registry_size = Gauge(
            "ixp_registry_size",
            "Definitions currently held by a registry",
            ["registry"],
            registry=self.registry,
        )

        # Errors
        self.errors_total = Counter(
            "ixp_errors_total",
            "Errors by code",
            ["code"],
            registry=self.registry,
        )

    def record_resolution(self, status: str, duration: float) -> None:
        """Record an intent resolution."""
        self.resolutions_total.labels(status=status).inc()
        self.resolution_duration.observe(duration)

    def record_render(self, mode: str, status: str, duration: float) -> None:
        """Record a render request."""
        self.renders_total.labels(mode=mode, status=status).inc()
        self.render_duration.labels(mode=mode).observe(duration)

    def record_ssr_fallback(self, framework: str) -> None:
        """Record an SSR failure downgraded to client-only rendering."""
        self.ssr_fallbacks_total.labels(framework=framework).inc()

    def record_reload(self, registry: str, status: str) -> None:
        """Record a registry reload."""
        self.registry_reloads_total.labels(registry=registry, status=status).inc()

    def set_registry_size(self, registry: str, size: int) -> None:
        """Track registry size."""
        self.registry_size.labels(registry=registry).set(size)

    def record_error(self, code: str) -> None:
        """Record an error by code."""
        self.errors_total.labels(code=code).inc()

    @contextmanager
    def time_render(self, mode: str) -> Iterator[dict[str, str]]:
        """
        Time a render; callers set `outcome["status"]` before leaving.

        Example:
            with metrics_collector.time_render("html") as outcome:
                ...
                outcome["status"] = "success"
        """
        outcome = {"status": "error"}
        start = time.perf_counter()
        try:
            yield outcome
        finally:
            self.record_render(mode, outcome["status"], time.perf_counter() - start)

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus exposition format."""
        return generate_latest(self.registry)


# Global metrics collector instance
metrics_collector = MetricsCollector()
