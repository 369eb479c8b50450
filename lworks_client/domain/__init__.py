"""
===============================================================================
CRC CARD: domain/__init__.py
===============================================================================

Module:
    Domain layer exports

Rules:
    - Re-export domain contracts/entities only.
    - Never import infrastructure here.
===============================================================================
"""

from .entities import (
    ChunkInfo,
    Environment,
    Fragment,
    Network,
    TopicMessagesPage,
    TransactionId,
    parse_environment,
    parse_network,
)
from .services import TopicMessageSource, UsageTracker

__all__ = [
    "ChunkInfo",
    "Environment",
    "Fragment",
    "Network",
    "TopicMessageSource",
    "TopicMessagesPage",
    "TransactionId",
    "UsageTracker",
    "parse_environment",
    "parse_network",
]
