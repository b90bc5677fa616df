"""Prometheus metrics for ipcredis monitoring."""

from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest

# Global registry for metrics
REGISTRY = CollectorRegistry()

# Counters
mutex_acquired = Counter(
    'ipcredis_mutex_acquired_total',
    'Total number of mutexes successfully blocked',
    ['resource_type'],
    registry=REGISTRY
)

mutex_exhausted = Counter(
    'ipcredis_mutex_exhausted_total',
    'Total number of mutex waits that ran out of retries',
    ['resource_type'],
    registry=REGISTRY
)

store_marked_down = Counter(
    'ipcredis_store_marked_down_total',
    'Total number of times the store was marked as down',
    registry=REGISTRY
)

store_reconnects = Counter(
    'ipcredis_store_reconnects_total',
    'Reconnect attempts after a down window elapsed',
    ['result'],
    registry=REGISTRY
)

# Histograms
mutex_wait_seconds = Histogram(
    'ipcredis_mutex_wait_seconds',
    'Time spent waiting to block a mutex',
    ['resource_type'],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float('inf')),
    registry=REGISTRY
)


def get_metrics() -> bytes:
    """Return metrics in Prometheus text format."""
    return generate_latest(REGISTRY)
