"""
============================================================
CRC CARD: infrastructure/services/tracking.py
============================================================
Class: MetricsUsageTracker

Responsibilities:
  - Record anonymous usage events for remote calls ("Mirror Call", ...).
  - Never expose the access token: the distinct id is its md5 digest.
  - Feed Prometheus counters/histograms (crosscutting.metrics).
  - Never fail the caller: telemetry errors are logged and dropped.

Collaborators:
  - crosscutting.metrics (record_client_call)
  - crosscutting.logger
  - domain.services.UsageTracker (port)
============================================================
"""

from __future__ import annotations

import hashlib
import time
from typing import Any, Dict

from ...crosscutting.config import LIBRARY_VERSION
from ...crosscutting.logger import logger
from ...crosscutting.metrics import record_client_call


def hash_distinct_id(distinct_id: str) -> str:
    return hashlib.md5(distinct_id.encode("utf-8")).hexdigest()  # noqa: S324


def time_elapsed_ms(started_at: float) -> int:
    """Milliseconds since ``started_at`` (a time.monotonic() value)."""
    return int((time.monotonic() - started_at) * 1000)


class MetricsUsageTracker:
    """Usage tracker backed by the library's Prometheus registry."""

    def track(
        self,
        event_name: str,
        distinct_id: str,
        properties: Dict[str, Any] | None = None,
    ) -> None:
        props = dict(properties or {})
        try:
            record_client_call(
                event_name,
                network=str(props.get("network_stack", "")),
                status=props.get("http_status"),
                pathname=str(props.get("pathname", "")),
                latency_seconds=float(props.get("time_elapsed_ms", 0)) / 1000.0,
                attempts=int(props.get("attempts", 1) or 1),
            )
            logger.debug(
                event_name,
                extra={
                    "event": event_name,
                    "distinct_id": hash_distinct_id(distinct_id),
                    "library_version": LIBRARY_VERSION,
                    "properties": props,
                },
            )
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Failed to send usage metrics",
                extra={"event": event_name, "error": str(exc)},
            )


class NoopUsageTracker:
    """Tracker for the public environment or when telemetry is disabled."""

    def track(
        self,
        event_name: str,
        distinct_id: str,
        properties: Dict[str, Any] | None = None,
    ) -> None:
        return None
