"""
===============================================================================
CRC CARD: domain/entities.py
===============================================================================

Module:
    Domain entities (Network, Environment, Fragment, ChunkInfo, TransactionId)

Responsibilities:
    - Define the core structures handled by the library (no HTTP, no I/O).
    - Provide minimal helpers to keep simple invariants in one place.
    - Keep clear types for use cases and infrastructure adapters.

Collaborators:
    - domain.services: ports that return these entities.
    - infrastructure/services/mirror_client.py: maps mirror JSON into them.
    - application/usecases: consume them.

Principles:
    - No dependency on httpx / pydantic.
    - Fragments are immutable (frozen dataclasses).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

# ---------------------------------------------------------------------------
# Network / Environment
# ---------------------------------------------------------------------------


class Network(str, Enum):
    """Ledger network a call is made against."""

    MAINNET = "mainnet"
    TESTNET = "testnet"


class Environment(str, Enum):
    """
    Deployment environment of the remote services.

    ``public`` is only meaningful for the mirror: it targets the public
    mirror nodes and requires no access token.
    """

    DEV = "dev"
    STAGE = "stage"
    PROD = "prod"
    PUBLIC = "public"


def parse_network(value: Network | str) -> Network:
    """Strict lookup: unknown names raise ValueError."""
    if isinstance(value, Network):
        return value
    try:
        return Network((value or "").strip().lower())
    except ValueError:
        raise ValueError(f"Known value didn't exist, {value}") from None


def parse_environment(value: Environment | str | None) -> Optional[Environment]:
    """Lenient lookup: empty or unknown names return None."""
    if value is None or isinstance(value, Environment):
        return value
    try:
        return Environment(value.strip().lower())
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Topic messages (fragments)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TransactionId:
    """
    Id of the transaction that submitted the first chunk of a message.

    ``transaction_valid_start`` groups every chunk of one logical message; it
    is an opaque timestamp string and is only ever compared for equality.
    """

    transaction_valid_start: str
    account_id: Optional[str] = None
    nonce: Optional[int] = None
    scheduled: Optional[bool] = None


@dataclass(frozen=True)
class ChunkInfo:
    """
    Position of a fragment inside its logical message.

    Fields are optional so an incomplete upstream record can still be
    represented; the reassembler rejects it.
    """

    number: Optional[int] = None
    total: Optional[int] = None
    initial_transaction_id: Optional[TransactionId] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.number and self.total and self.initial_transaction_id)

    @property
    def grouping_key(self) -> Optional[str]:
        if self.initial_transaction_id is None:
            return None
        return self.initial_transaction_id.transaction_valid_start

    @property
    def is_last(self) -> bool:
        return self.number is not None and self.number == self.total


@dataclass(frozen=True)
class Fragment:
    """
    One topic message as returned by the mirror.

    Important:
      - ``sequence_number`` is the position in the whole topic feed, not the
        position inside the logical message (that is ``chunk_info.number``).
      - ``message`` is the base64 payload; decode it with decode_fragment().
    """

    sequence_number: int
    message: str
    chunk_info: Optional[ChunkInfo] = None
    topic_id: Optional[str] = None
    consensus_timestamp: Optional[str] = None
    running_hash: Optional[str] = None
    payer_account_id: Optional[str] = None

    @property
    def is_single(self) -> bool:
        """True if this fragment is a complete, self-contained message."""
        if self.chunk_info is None:
            return True
        return self.chunk_info.number == 1 and self.chunk_info.total == 1


@dataclass
class TopicMessagesPage:
    """One page of a topic listing; ``next`` is the opaque cursor path."""

    messages: List[Fragment] = field(default_factory=list)
    next: Optional[str] = None
