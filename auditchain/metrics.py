"""
Prometheus metrics for the audit chain.

Collectors are created by init_metrics(); until then every tracking helper
is a no-op, so library users who never export metrics pay nothing.

Environment Variables:
    AUDITCHAIN_METRICS_ENABLED: Enable metrics server (true/false) - default: false
    AUDITCHAIN_METRICS_PORT: HTTP port for /metrics endpoint - default: 9108

Usage:
    from auditchain.metrics import start_metrics_server

    start_metrics_server(enabled=True, port=9108)
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

APPENDS_TOTAL: "Counter" = None  # type: ignore
VERIFY_DURATION: "Histogram" = None  # type: ignore
TAMPER_DETECTIONS: "Counter" = None  # type: ignore
DECRYPT_FAILURES: "Counter" = None  # type: ignore
KEY_ROTATIONS: "Counter" = None  # type: ignore

_metrics_initialized = False
_metrics_lock = threading.Lock()


def init_metrics() -> None:
    """
    Initialize Prometheus collectors (safe to call more than once).
    """
    global APPENDS_TOTAL, VERIFY_DURATION, TAMPER_DETECTIONS
    global DECRYPT_FAILURES, KEY_ROTATIONS, _metrics_initialized

    with _metrics_lock:
        if _metrics_initialized:
            return

        APPENDS_TOTAL = Counter(
            "auditchain_appends_total",
            "Total number of records appended to the audit chain",
            labelnames=["event_type"],
        )
        VERIFY_DURATION = Histogram(
            "auditchain_verify_duration_seconds",
            "Duration of full-chain verification in seconds",
            buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0),
        )
        TAMPER_DETECTIONS = Counter(
            "auditchain_tamper_detections_total",
            "Total number of verifications that found a broken link",
        )
        DECRYPT_FAILURES = Counter(
            "auditchain_decrypt_failures_total",
            "Total number of envelopes that failed authentication",
        )
        KEY_ROTATIONS = Counter(
            "auditchain_key_rotations_total",
            "Total number of encryption key rotations",
        )

        _metrics_initialized = True
        logger.info("Prometheus metrics initialized")


def start_metrics_server(enabled: bool, port: int) -> None:
    """
    Start the /metrics HTTP endpoint in a daemon thread.

    Args:
        enabled: Whether to start the server
        port: Listening port
    """
    if not enabled:
        logger.debug("Metrics server disabled")
        return

    init_metrics()
    try:
        start_http_server(port, addr="0.0.0.0")
        logger.info("Metrics server started on http://0.0.0.0:%d/metrics", port)
    except OSError as e:
        logger.error("Failed to start metrics server: %s", e)


def track_append(event_type: str) -> None:
    if APPENDS_TOTAL is not None:
        APPENDS_TOTAL.labels(event_type=event_type).inc()


def track_tamper() -> None:
    if TAMPER_DETECTIONS is not None:
        TAMPER_DETECTIONS.inc()


def track_decrypt_failure() -> None:
    if DECRYPT_FAILURES is not None:
        DECRYPT_FAILURES.inc()


def track_key_rotation() -> None:
    if KEY_ROTATIONS is not None:
        KEY_ROTATIONS.inc()


@contextmanager
def track_verify_duration() -> Generator[None, None, None]:
    """
    Context manager timing a verification pass.

    Usage:
        with track_verify_duration():
            ledger.verify_integrity()
    """
    if VERIFY_DURATION is None:
        yield
        return

    with VERIFY_DURATION.time():
        yield
