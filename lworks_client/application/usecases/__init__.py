"""Application use cases."""

from .fragments import (
    CollectTopicMessagesUseCase,
    ReassembleMessageUseCase,
    decode_fragment,
    parse_fragment,
)

__all__ = [
    "CollectTopicMessagesUseCase",
    "ReassembleMessageUseCase",
    "decode_fragment",
    "parse_fragment",
]
