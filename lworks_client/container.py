"""
===============================================================================
CRC CARD: lworks_client/container.py (Composition Root / manual DI)
===============================================================================

Responsibilities:
  - Compose adapters and use cases following DIP.
  - Centralize runtime decisions based on Settings (slop factor, retries).

Collaborators:
  - lworks_client.crosscutting.config.get_settings
  - lworks_client.crosscutting.client_config.ClientConfig
  - lworks_client.domain.services.TopicMessageSource (port)
  - lworks_client.infrastructure.services.MirrorClient (implementation)
  - lworks_client.application.usecases.* (use cases)

Notes:
  - No business logic here.
  - No cached singletons: every MirrorClient owns an httpx client whose
    lifetime is bound to the caller's ``async with`` block.
===============================================================================
"""

from __future__ import annotations

import httpx

from .application.usecases import (
    CollectTopicMessagesUseCase,
    ReassembleMessageUseCase,
)
from .crosscutting.client_config import ClientConfig
from .crosscutting.config import Settings, get_settings
from .domain.services import TopicMessageSource
from .infrastructure.services import MirrorClient


def build_mirror_client(
    config: ClientConfig,
    *,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> MirrorClient:
    return MirrorClient(
        config, settings=settings or get_settings(), http_client=http_client
    )


def get_reassemble_message_use_case(
    source: TopicMessageSource,
    *,
    slop_factor: int | None = None,
    settings: Settings | None = None,
) -> ReassembleMessageUseCase:
    s = settings or get_settings()
    return ReassembleMessageUseCase(
        source,
        slop_factor=s.reassembly_slop_factor if slop_factor is None else slop_factor,
    )


def get_collect_topic_messages_use_case(
    source: TopicMessageSource,
) -> CollectTopicMessagesUseCase:
    return CollectTopicMessagesUseCase(source)
