"""
===============================================================================
USE CASE: Reassemble Message (chunked topic message)
===============================================================================

Name:
    Reassemble Message Use Case

Business Goal:
    Given the sequence number of any chunk of a message that was submitted to
    a topic in several chunks, return the complete message content.

Why (Context):
    - A large message is submitted as N chunk transactions. The chunks of one
      message are guaranteed to be in order, but chunks of other messages may
      be interleaved with them because each chunk is its own submission.
    - Every chunk of a message shares the same initial transaction id
      (``transaction_valid_start``); that is the only reliable grouping key.
    - The mirror only offers lookup by sequence number, so the walk guesses
      where chunk #1 is and moves forward one position at a time.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    ReassembleMessageUseCase

Responsibilities:
    - Fetch the anchor fragment; single messages are decoded directly.
    - Estimate the first position: anchor - (number - 1) - slop.
    - Walk forward sequentially, keeping chunks with the anchor's key.
    - Give up (return None) when the walk passes anchor + slop while skipping
      unrelated chunks.
    - Reject absent positions and incomplete chunk metadata.

Collaborators:
    - TopicMessageSource.get_fragment(topic_id, sequence_number)
    - decode_fragment(fragment)
    - crosscutting.metrics.record_reassembly
===============================================================================
"""

from __future__ import annotations

from typing import Final, List, Optional

from ....crosscutting.exceptions import (
    IncompleteSequenceError,
    MalformedFragmentError,
    NotFoundError,
)
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_reassembly
from ....domain.entities import ChunkInfo, Fragment
from ....domain.services import TopicMessageSource
from .decode_fragment import decode_fragment

DEFAULT_SLOP_FACTOR: Final[int] = 3


class ReassembleMessageUseCase:
    """
    Use Case (Query):
        Rebuilds a chunked topic message from one of its sequence numbers.

    ``slop_factor`` sizes the interleaving tolerance as ``total * slop_factor``
    positions, both for the backward guess of chunk #1 and for the forward
    give-up bound.
    """

    def __init__(
        self,
        source: TopicMessageSource,
        *,
        slop_factor: int = DEFAULT_SLOP_FACTOR,
    ) -> None:
        if slop_factor < 0:
            raise ValueError("slop_factor must be >= 0")
        self._source = source
        self._slop_factor = slop_factor

    async def execute(self, *, topic_id: str, sequence_number: int) -> Optional[str]:
        """
        Returns the full message, or None if it could not be completed inside
        the tolerance window.

        Raises:
            NotFoundError: the anchor does not exist
            MalformedFragmentError: required chunk metadata is missing
            IncompleteSequenceError: a position inside the walk is absent
        """

        # ---------------------------------------------------------------------
        # 1) Anchor
        # ---------------------------------------------------------------------
        anchor = await self._source.get_fragment(topic_id, sequence_number)
        if anchor is None:
            raise NotFoundError(
                f"Message {sequence_number} not found in topic {topic_id}"
            )

        if anchor.is_single:
            record_reassembly("single")
            return decode_fragment(anchor)

        info = self._require_chunk_info(anchor)

        # ---------------------------------------------------------------------
        # 2) Window
        # ---------------------------------------------------------------------
        key = info.grouping_key
        slop = info.total * self._slop_factor
        give_up_after = anchor.sequence_number + slop
        current = max(1, sequence_number - (info.number - 1) - slop)

        # ---------------------------------------------------------------------
        # 3) Walk
        # ---------------------------------------------------------------------
        parts: List[str] = []
        scanned = 0
        has_next = True
        while has_next:
            fragment = await self._source.get_fragment(topic_id, current)
            scanned += 1
            if fragment is None:
                raise IncompleteSequenceError(
                    f"No message at sequence number {current} in topic {topic_id} "
                    "while reassembling a chunked message"
                )
            chunk = self._require_chunk_info(fragment)

            matches = chunk.grouping_key == key
            has_next = not (matches and chunk.is_last)
            if has_next:
                current += 1

            if matches:
                parts.append(decode_fragment(fragment))
            elif current > give_up_after:
                logger.info(
                    "Gave up reassembling chunked message",
                    extra={
                        "topic_id": topic_id,
                        "sequence_number": sequence_number,
                        "positions_scanned": scanned,
                        "slop": slop,
                    },
                )
                record_reassembly("gave_up", scanned)
                return None

        record_reassembly("assembled", scanned)
        logger.debug(
            "Reassembled chunked message",
            extra={
                "topic_id": topic_id,
                "sequence_number": sequence_number,
                "chunks": len(parts),
                "positions_scanned": scanned,
            },
        )
        return "".join(parts)

    @staticmethod
    def _require_chunk_info(fragment: Fragment) -> ChunkInfo:
        info = fragment.chunk_info
        if info is None:
            raise MalformedFragmentError(
                f"Message {fragment.sequence_number} has no chunk_info"
            )
        if info.is_complete:
            return info
        if not info.total:
            raise MalformedFragmentError(
                f"Message {fragment.sequence_number} has incomplete chunk_info, "
                "total is missing"
            )
        if not info.number:
            raise MalformedFragmentError(
                f"Message {fragment.sequence_number} has incomplete chunk_info, "
                "number is missing"
            )
        if info.initial_transaction_id is None:
            raise MalformedFragmentError(
                f"Message {fragment.sequence_number} has incomplete chunk_info, "
                "initial_transaction_id is missing"
            )
        return info
