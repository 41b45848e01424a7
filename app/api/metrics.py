from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST, CollectorRegistry
from prometheus_client.multiprocess import MultiProcessCollector
import logging
import os

logger = logging.getLogger(__name__)

router = APIRouter()

registry = CollectorRegistry()

if 'PROMETHEUS_MULTIPROC_DIR' in os.environ:
    try:
        MultiProcessCollector(registry)
    except ValueError as e:
        logger.warning("Prometheus multiprocess collector disabled: %s", e)

sessions_completed = Counter(
    'focus_sessions_completed_total',
    'Total number of timer sessions that ran to completion',
    labelnames=['mode'],
    registry=registry
)

sessions_skipped = Counter(
    'focus_sessions_skipped_total',
    'Total number of timer sessions skipped',
    labelnames=['mode'],
    registry=registry
)

sessions_stopped = Counter(
    'focus_sessions_stopped_total',
    'Total number of timer sessions stopped before completion',
    labelnames=['mode'],
    registry=registry
)

session_persist_failures = Counter(
    'focus_session_persist_failures_total',
    'Total number of session records the recorder failed to persist',
    registry=registry
)

active_timers = Gauge(
    'focus_active_timers',
    'Number of timer engines currently held in memory',
    registry=registry
)

activity_query_duration = Histogram(
    'focus_activity_query_duration_seconds',
    'Activity window query duration in seconds',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=registry
)

@router.get("/metrics")
async def get_metrics():
    """
    Prometheus metrics endpoint.
    Exposes application metrics in Prometheus text format.
    """
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
