"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_attempts = Counter(
    'ticket_reservation_attempts_total',
    'Total reservation attempts',
    ['outcome']  # reserved, insufficient_inventory, ticket_not_found, invalid_input
)

reservation_latency = Histogram(
    'ticket_reservation_latency_seconds',
    'Reservation latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Read path metrics
offers_resolved = Counter(
    'ticket_offers_resolved_total',
    'Offer resolutions by result',
    ['result']  # available, sold_out, cutoff
)

override_materializations = Counter(
    'ticket_override_materializations_total',
    'Per-date override rows materialized',
    ['result']  # created, race_lost
)

# Replenishment metrics
replenishment_runs = Counter(
    'ticket_replenishment_runs_total',
    'Monthly replenishment checks',
    ['result']  # generated, skipped, error
)

replenishment_tickets_created = Counter(
    'ticket_replenishment_tickets_created_total',
    'Special tickets created by the replenishment job'
)

overrides_purged = Counter(
    'ticket_overrides_purged_total',
    'Per-date override rows deleted after their date passed'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation(outcome: str):
    """Record reservation attempt. Outcome: reserved, insufficient_inventory, ..."""
    reservation_attempts.labels(outcome=outcome).inc()


def record_offers_resolved(result: str):
    offers_resolved.labels(result=result).inc()


def record_materialization(created: bool):
    result = "created" if created else "race_lost"
    override_materializations.labels(result=result).inc()


def record_replenishment(result: str, tickets_created: int = 0):
    """Record a replenishment check. Result: generated, skipped, error"""
    replenishment_runs.labels(result=result).inc()
    if tickets_created:
        replenishment_tickets_created.inc(tickets_created)
