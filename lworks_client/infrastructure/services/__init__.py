"""
Remote service adapters.

Exports:
    - MirrorClient: TopicMessageSource over the mirror REST API
    - call_mirror_with_fallback: retry a call against another environment
    - MetricsUsageTracker / NoopUsageTracker: usage telemetry
"""

from .mirror_client import MirrorClient, call_mirror_with_fallback
from .tracking import MetricsUsageTracker, NoopUsageTracker

__all__ = [
    "MetricsUsageTracker",
    "MirrorClient",
    "NoopUsageTracker",
    "call_mirror_with_fallback",
]
