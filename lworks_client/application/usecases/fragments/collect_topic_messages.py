"""
===============================================================================
USE CASE: Collect Topic Messages
===============================================================================

Business Goal:
    Return every message of a topic, ordered by sequence number.

CRC CARD
-------------------------------------------------------------------------------
Class:
    CollectTopicMessagesUseCase

Responsibilities:
    - Follow the opaque ``next`` cursor until the listing is exhausted.
    - Sort the accumulated fragments by sequence_number (ascending).
    - Return raw fragments: no decoding and no reassembly.

Collaborators:
    - TopicMessageSource.list_fragments(topic_id, cursor)
===============================================================================
"""

from __future__ import annotations

from typing import List, Optional

from ....crosscutting.logger import logger
from ....domain.entities import Fragment
from ....domain.services import TopicMessageSource


class CollectTopicMessagesUseCase:
    def __init__(self, source: TopicMessageSource) -> None:
        self._source = source

    async def execute(self, *, topic_id: str) -> List[Fragment]:
        messages: List[Fragment] = []
        cursor: Optional[str] = None
        pages = 0
        while True:
            page = await self._source.list_fragments(topic_id, cursor)
            pages += 1
            messages.extend(page.messages)
            cursor = page.next
            if not cursor:
                break

        logger.debug(
            "Collected topic messages",
            extra={"topic_id": topic_id, "pages": pages, "messages": len(messages)},
        )
        return sorted(messages, key=lambda fragment: fragment.sequence_number)
