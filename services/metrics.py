"""
Prometheus Metrics Module
Version: 1.0.0

Application metrics for monitoring and alerting.

Usage:
    from services.metrics import BOOKINGS_CREATED, record_request

    BOOKINGS_CREATED.inc()
    record_request("POST", "/bookings", 201, 0.042)
"""
from prometheus_client import Counter, Histogram, Info, REGISTRY
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response


# =============================================================================
# APPLICATION INFO
# =============================================================================

APP_INFO = Info(
    'fleet_app',
    'Application information'
)


# =============================================================================
# REQUEST METRICS
# =============================================================================

REQUEST_DURATION = Histogram(
    'fleet_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

REQUEST_COUNT = Counter(
    'fleet_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)


# =============================================================================
# BOOKING METRICS
# =============================================================================

BOOKINGS_CREATED = Counter(
    'fleet_bookings_created_total',
    'Bookings created'
)

BOOKING_CONFLICTS = Counter(
    'fleet_booking_conflicts_total',
    'Booking requests rejected because the vehicle was taken',
    ['stage']  # 'create' or 'transition'
)

BOOKING_TRANSITIONS = Counter(
    'fleet_booking_transitions_total',
    'Booking status transitions',
    ['from_status', 'to_status']
)


# =============================================================================
# SIDE CHANNEL METRICS
# =============================================================================

ACTIVITIES_RECORDED = Counter(
    'fleet_activities_recorded_total',
    'Audit activities written',
    ['entity', 'action']
)

NOTIFICATIONS_DISPATCHED = Counter(
    'fleet_notifications_dispatched_total',
    'Notifications created',
    ['type']
)


# =============================================================================
# REPORT METRICS
# =============================================================================

REPORTS_GENERATED = Counter(
    'fleet_reports_generated_total',
    'Reports generated',
    ['type', 'persisted']
)

REPORT_DURATION = Histogram(
    'fleet_report_duration_seconds',
    'Report aggregation duration',
    ['type'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def set_app_info(version: str, environment: str):
    """Set application info metrics."""
    APP_INFO.info({
        'version': version,
        'environment': environment
    })


def record_request(method: str, endpoint: str, status_code: int, duration_seconds: float):
    """Record an HTTP request with duration and status."""
    labels = dict(method=method, endpoint=endpoint, status_code=str(status_code))
    REQUEST_COUNT.labels(**labels).inc()
    REQUEST_DURATION.labels(**labels).observe(duration_seconds)


def record_transition(from_status: str, to_status: str):
    BOOKING_TRANSITIONS.labels(from_status=from_status, to_status=to_status).inc()


def get_metrics() -> Response:
    """Generate Prometheus metrics response."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )
