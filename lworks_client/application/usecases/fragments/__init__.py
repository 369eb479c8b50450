"""
===============================================================================
FRAGMENT USE CASES PACKAGE (Public API / Exports)
===============================================================================

Responsibilities:
    - Re-export the topic message use cases (reassemble, collect).
    - Re-export the payload decoding helpers.
    - Define __all__ as the package's public contract.
===============================================================================
"""

from __future__ import annotations

from .collect_topic_messages import CollectTopicMessagesUseCase
from .decode_fragment import decode_fragment, parse_fragment
from .reassemble_message import DEFAULT_SLOP_FACTOR, ReassembleMessageUseCase

__all__ = [
    "CollectTopicMessagesUseCase",
    "DEFAULT_SLOP_FACTOR",
    "ReassembleMessageUseCase",
    "decode_fragment",
    "parse_fragment",
]
