"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Isolate tests from the developer's LWORKS_* environment
  - Provide fast Settings (no real backoff sleeps)
  - Provide an in-memory TopicMessageSource and fragment factories
  - Provide httpx.MockTransport helpers for the mirror client

Collaborators:
  - pytest / pytest-asyncio
  - lworks_client.domain: entities and ports
  - httpx: MockTransport (no network)
"""

import base64
import os
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx
import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from lworks_client.crosscutting import config as lworks_config  # noqa: E402

lworks_config.Settings.model_config["env_file"] = None

from lworks_client.crosscutting.client_config import ClientConfig  # noqa: E402
from lworks_client.crosscutting.config import Settings, get_settings  # noqa: E402
from lworks_client.domain.entities import (  # noqa: E402
    ChunkInfo,
    Environment,
    Fragment,
    Network,
    TopicMessagesPage,
    TransactionId,
)

_LWORKS_ENV_VARS = [name for name in os.environ if name.startswith("LWORKS_")]


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    """Drop LWORKS_* variables and the cached Settings for every test."""
    for name in _LWORKS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ============================================================================
# Settings / config fixtures
# ============================================================================


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with a tiny backoff so retry tests do not sleep."""
    return Settings(
        retry_max_attempts=3,
        retry_base_delay_seconds=0.0,
        retry_max_delay_seconds=0.001,
        http_timeout_seconds=5.0,
    )


@pytest.fixture
def testnet_config() -> ClientConfig:
    return ClientConfig(
        network=Network.TESTNET,
        environment=Environment.PROD,
        access_token="test-access-token-secret",
    )


# ============================================================================
# Fragment factories
# ============================================================================


def encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def make_fragment(
    sequence_number: int,
    text: str = "",
    *,
    number: Optional[int] = None,
    total: Optional[int] = None,
    key: Optional[str] = None,
) -> Fragment:
    """Fragment with ``text`` as payload; chunk_info only when number is given."""
    chunk_info = None
    if number is not None:
        chunk_info = ChunkInfo(
            number=number,
            total=total,
            initial_transaction_id=(
                TransactionId(transaction_valid_start=key) if key is not None else None
            ),
        )
    return Fragment(
        sequence_number=sequence_number,
        message=encode(text),
        chunk_info=chunk_info,
        topic_id="0.0.1234",
    )


def mirror_message(
    sequence_number: int,
    text: str,
    *,
    number: Optional[int] = None,
    total: Optional[int] = None,
    key: Optional[str] = None,
) -> dict:
    """Mirror ``TopicMessage`` JSON as returned by /api/v1/topics/{id}/messages."""
    payload = {
        "consensus_timestamp": f"1700000000.{sequence_number:09d}",
        "message": encode(text),
        "payer_account_id": "0.0.2",
        "running_hash": "aGFzaA==",
        "sequence_number": sequence_number,
        "topic_id": "0.0.1234",
        "chunk_info": None,
    }
    if number is not None:
        payload["chunk_info"] = {
            "number": number,
            "total": total,
            "initial_transaction_id": {
                "account_id": "0.0.2",
                "nonce": 0,
                "scheduled": False,
                "transaction_valid_start": key,
            },
        }
    return payload


@pytest.fixture
def fragment_factory() -> Callable[..., Fragment]:
    return make_fragment


@pytest.fixture
def mirror_message_factory() -> Callable[..., dict]:
    return mirror_message


# ============================================================================
# In-memory TopicMessageSource
# ============================================================================


class InMemoryTopicMessageSource:
    """
    TopicMessageSource backed by a dict of fragments.

    - ``calls`` records every requested sequence number, in order.
    - ``fail_at`` raises the given exception when that position is fetched.
    - ``pages`` drives list_fragments(): cursor -> page.
    """

    def __init__(self, fragments: List[Fragment] | None = None) -> None:
        self.fragments: Dict[int, Fragment] = {
            f.sequence_number: f for f in (fragments or [])
        }
        self.calls: List[int] = []
        self.fail_at: Dict[int, Exception] = {}
        self.pages: Dict[Optional[str], TopicMessagesPage] = {}
        self.cursors: List[Optional[str]] = []

    def add(self, *fragments: Fragment) -> "InMemoryTopicMessageSource":
        for fragment in fragments:
            self.fragments[fragment.sequence_number] = fragment
        return self

    async def get_fragment(self, topic_id: str, sequence_number: int):
        self.calls.append(sequence_number)
        if sequence_number in self.fail_at:
            raise self.fail_at[sequence_number]
        return self.fragments.get(sequence_number)

    async def list_fragments(self, topic_id: str, cursor: Optional[str] = None):
        self.cursors.append(cursor)
        return self.pages[cursor]


@pytest.fixture
def source() -> InMemoryTopicMessageSource:
    return InMemoryTopicMessageSource()


# ============================================================================
# httpx helpers
# ============================================================================


@pytest.fixture
def mock_http_client():
    """Factory: build an httpx.AsyncClient around a request handler."""

    def _build(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _build
