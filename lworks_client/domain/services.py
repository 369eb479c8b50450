"""
===============================================================================
CRC CARD: domain/services.py
===============================================================================

Module:
    External service ports (Protocols)

Responsibilities:
    - Define the contract the reassembly and collection use cases consume.
    - Keep application code independent of httpx and of the mirror's JSON.

Collaborators:
    - infrastructure/services/mirror_client.py: concrete implementation.
    - application/usecases/fragments: consume these ports.

Rules:
    - Interfaces ONLY: no implementation.
    - ``None`` means "absent"; transport failures are raised, never returned.
===============================================================================
"""

from __future__ import annotations

from typing import Optional, Protocol

from .entities import Fragment, TopicMessagesPage


class TopicMessageSource(Protocol):
    """Contract to fetch topic messages (fragments) from the remote store."""

    async def get_fragment(
        self, topic_id: str, sequence_number: int
    ) -> Optional[Fragment]:
        """Fragment at ``sequence_number`` or None if it does not exist."""
        ...

    async def list_fragments(
        self, topic_id: str, cursor: Optional[str] = None
    ) -> TopicMessagesPage:
        """First page when ``cursor`` is None, otherwise the page it points to."""
        ...


class UsageTracker(Protocol):
    """Contract for anonymous usage telemetry."""

    def track(
        self, event_name: str, distinct_id: str, properties: dict | None = None
    ) -> None: ...
