"""
Monitoring and metrics collection using Prometheus.
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST, REGISTRY
import time
import functools
from typing import Callable


# Metrics
recalculations_total = Counter(
    'chronos_recalculations_total',
    'Total number of participant status recalculations',
    ['outcome']
)

recalculation_duration = Histogram(
    'chronos_recalculation_duration_seconds',
    'Time spent recalculating statuses for one meeting'
)

participant_status_changes_total = Counter(
    'chronos_participant_status_changes_total',
    'Participant status transitions persisted, by new status',
    ['status']
)

mutations_total = Counter(
    'chronos_mutations_total',
    'Availability and vote mutations handled',
    ['operation']
)

errors_total = Counter(
    'chronos_errors_total',
    'Total number of errors by type',
    ['error_type', 'component']
)

METRICS_CONTENT_TYPE = CONTENT_TYPE_LATEST


def track_recalculation(func: Callable) -> Callable:
    """Decorator recording duration and outcome of an async recalculation."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = await func(*args, **kwargs)
            recalculations_total.labels(outcome='success').inc()
            return result
        except Exception:
            recalculations_total.labels(outcome='failure').inc()
            raise
        finally:
            recalculation_duration.observe(time.time() - start_time)

    return wrapper


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus format.

    Returns:
        Metrics data in Prometheus text format
    """
    return generate_latest(REGISTRY)


def record_error(error_type: str, component: str):
    """
    Record an error occurrence.

    Args:
        error_type: Type of error (e.g., 'RecalculationError')
        component: Component where error occurred (e.g., 'status_service')
    """
    errors_total.labels(error_type=error_type, component=component).inc()
