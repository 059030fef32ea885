"""
Prometheus metrics for the planning core.

Service operations decorated with @measure_operation report their duration
and outcome here. Metrics live in a private registry so importing this
module twice (tests, reloads) never collides with the default registry.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "cfa_planning_service_operation_duration_seconds",
    "Wall-clock time of measured planning service calls",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

service_operations_total = Counter(
    "cfa_planning_service_operations_total",
    "Measured planning service calls, by outcome",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "cfa_planning_errors_total",
    "Measured planning service calls that raised, by exception class",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

occurrences_materialized_total = Counter(
    "cfa_planning_occurrences_materialized_total",
    "Occurrences processed by the materializer, by outcome",
    ["outcome"],  # created | skipped | deleted
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Write side and scrape side of the planning metrics."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """Called by BaseService.measure_operation after every measured call."""
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_materialization(created: int, skipped: int, deleted: int) -> None:
        """Add one materialization tally to the outcome counter."""
        if created:
            occurrences_materialized_total.labels(outcome="created").inc(created)
        if skipped:
            occurrences_materialized_total.labels(outcome="skipped").inc(skipped)
        if deleted:
            occurrences_materialized_total.labels(outcome="deleted").inc(deleted)

    @staticmethod
    def get_metrics() -> bytes:
        """Text exposition of REGISTRY for the /metrics endpoint."""
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
