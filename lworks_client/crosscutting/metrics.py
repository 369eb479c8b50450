"""
===============================================================================
FILE: crosscutting/metrics.py
===============================================================================

CRC CARD (Module)
-------------------------------------------------------------------------------
Name:
    Metrics (Prometheus) for client calls and message reassembly

Responsibilities:
    - Define Prometheus metrics in a registry owned by the library.
    - Provide small, stable functions to record calls and reassembly outcomes.
    - Keep cardinality low (NO topic ids, NO full urls, NO tokens).
    - Expose the rendered exposition text for host applications.

Collaborators:
    - infrastructure/services/tracking.py: records usage events.
    - application/usecases/fragments/reassemble_message.py: walk outcomes.

Design decisions:
    - Own CollectorRegistry: embedding applications decide whether to expose it.
    - Paths are normalized so numeric ids do not explode label cardinality.
===============================================================================
"""

from __future__ import annotations

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

# -----------------------------------------------------------------------------
# Client calls
# -----------------------------------------------------------------------------

_client_calls_total = Counter(
    "lworks_client_calls_total",
    "Total remote calls made by the client",
    ["event", "network", "status"],
    registry=_registry,
)

_client_call_latency = Histogram(
    "lworks_client_call_latency_seconds",
    "Latency of remote calls (seconds)",
    ["event", "pathname"],
    buckets=(0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=_registry,
)

_client_call_attempts = Histogram(
    "lworks_client_call_attempts",
    "Attempts needed per remote call",
    ["event"],
    buckets=(1, 2, 3, 4, 5, 8),
    registry=_registry,
)

# -----------------------------------------------------------------------------
# Reassembly
# -----------------------------------------------------------------------------

_reassembly_total = Counter(
    "lworks_reassembly_total",
    "Message reassembly outcomes",
    ["outcome"],
    registry=_registry,
)

_reassembly_positions_scanned = Histogram(
    "lworks_reassembly_positions_scanned",
    "Feed positions fetched while walking a chunked message",
    buckets=(1, 2, 5, 10, 20, 50, 100, 250),
    registry=_registry,
)

_ID_SEGMENT = re.compile(r"/(\d+(?:\.\d+)*)(?=/|$)")


def _normalize_pathname(pathname: str) -> str:
    """Replace entity ids (``0.0.123``, ``42``) with ``{id}``."""
    return _ID_SEGMENT.sub("/{id}", pathname or "/")


def _status_bucket(status: int | None) -> str:
    if status is None:
        return "error"
    return f"{status // 100}xx"


def record_client_call(
    event: str,
    *,
    network: str,
    status: int | None,
    pathname: str,
    latency_seconds: float,
    attempts: int,
) -> None:
    """Count a remote call and observe its latency and attempts."""
    _client_calls_total.labels(
        event=event, network=network or "unknown", status=_status_bucket(status)
    ).inc()
    _client_call_latency.labels(
        event=event, pathname=_normalize_pathname(pathname)
    ).observe(latency_seconds)
    _client_call_attempts.labels(event=event).observe(attempts)


def record_reassembly(outcome: str, positions_scanned: int = 0) -> None:
    """Count a reassembly outcome (single / assembled / gave_up)."""
    _reassembly_total.labels(outcome=outcome).inc()
    if positions_scanned:
        _reassembly_positions_scanned.observe(positions_scanned)


def get_registry() -> CollectorRegistry:
    return _registry


def get_metrics_response() -> tuple[bytes, str]:
    """Body and content-type for a host application's /metrics endpoint."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
