"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total registration attempts',
    ['outcome']  # confirmed, waitlisted, conflict, rejected, error
)

registration_latency = Histogram(
    'registration_latency_seconds',
    'Registration engine latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

cancellations = Counter(
    'registration_cancellations_total',
    'Cancelled registrations',
    ['previous_status']  # confirmed, waitlisted
)

ticket_code_collisions = Counter(
    'ticket_code_collisions_total',
    'Ticket codes re-rolled because they were already taken'
)

# Consistency metrics
data_integrity_faults = Counter(
    'data_integrity_faults_total',
    'Attendee counter faults detected at runtime or by reconciliation',
    ['source']  # cancellation, reconciliation
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_registration_attempt(outcome: str):
    """Outcome: confirmed, waitlisted, conflict, rejected, error"""
    registration_attempts.labels(outcome=outcome).inc()


def record_cancellation(previous_status: str):
    cancellations.labels(previous_status=previous_status).inc()


def record_integrity_fault(source: str):
    data_integrity_faults.labels(source=source).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
