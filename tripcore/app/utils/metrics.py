"""Prometheus metrics for collaborator calls and draft transitions."""

from prometheus_client import Counter, Histogram

collaborator_latency_ms = Histogram(
    "collaborator_latency_ms",
    "Collaborator call latency in milliseconds",
    ["collaborator", "outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 4000, 8000],
)

collaborator_errors_total = Counter(
    "collaborator_errors_total",
    "Total collaborator call errors",
    ["collaborator", "reason"],
)

availability_cache_hits_total = Counter(
    "availability_cache_hits_total",
    "Availability lookups served from the session cache",
)

draft_rejections_total = Counter(
    "draft_rejections_total",
    "Draft transitions refused, by reason",
    ["code"],
)


class PrometheusCollaboratorMetrics:
    """Prometheus-based collaborator metrics implementation."""

    def record_latency(self, collaborator: str, outcome: str, latency_ms: float) -> None:
        """Record call latency."""
        collaborator_latency_ms.labels(collaborator=collaborator, outcome=outcome).observe(
            latency_ms
        )

    def inc_error(self, collaborator: str, reason: str) -> None:
        """Increment error counter."""
        collaborator_errors_total.labels(collaborator=collaborator, reason=reason).inc()

    def inc_cache_hit(self) -> None:
        """Increment availability cache hit counter."""
        availability_cache_hits_total.inc()

    def inc_rejection(self, code: str) -> None:
        """Increment draft rejection counter."""
        draft_rejections_total.labels(code=code).inc()
