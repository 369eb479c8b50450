"""
Topic message (HCS) helpers: the library's public entry points.

Every function resolves an explicit ClientConfig from its arguments (with
LWORKS_* environment fallbacks), opens one MirrorClient for the duration of
the call and closes it afterwards.

Example::

    message = await get_complete_message(
        "0.0.46022543", 1532, network="testnet", environment="public"
    )
"""

from __future__ import annotations

from typing import Any, List, Optional

import httpx

from .application.usecases import decode_fragment, parse_fragment
from .container import (
    build_mirror_client,
    get_collect_topic_messages_use_case,
    get_reassemble_message_use_case,
)
from .crosscutting.client_config import resolve_client_config
from .crosscutting.config import Settings
from .domain.entities import Environment, Fragment, Network

__all__ = [
    "call_mirror",
    "decode_fragment",
    "get_all_messages",
    "get_complete_message",
    "parse_fragment",
]


async def call_mirror(
    endpoint: str,
    *,
    network: Network | str | None = None,
    environment: Environment | str | None = None,
    access_token: Optional[str] = None,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Any:
    """
    Call a mirror endpoint such as ``/api/v1/transactions?limit=100``.

    Returns the decoded JSON body.
    """
    if not endpoint:
        raise ValueError("Endpoint is required")
    config = resolve_client_config(
        network=network,
        environment=environment,
        access_token=access_token,
        settings=settings,
    )
    async with build_mirror_client(
        config, settings=settings, http_client=http_client
    ) as client:
        return await client.get_json(endpoint)


async def get_all_messages(
    topic_id: str,
    *,
    network: Network | str | None = None,
    environment: Environment | str | None = None,
    access_token: Optional[str] = None,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> List[Fragment]:
    """Every message of ``topic_id`` sorted by sequence number."""
    config = resolve_client_config(
        network=network,
        environment=environment,
        access_token=access_token,
        settings=settings,
    )
    async with build_mirror_client(
        config, settings=settings, http_client=http_client
    ) as client:
        use_case = get_collect_topic_messages_use_case(client)
        return await use_case.execute(topic_id=topic_id)


async def get_complete_message(
    topic_id: str,
    sequence_number: int,
    *,
    network: Network | str | None = None,
    environment: Environment | str | None = None,
    access_token: Optional[str] = None,
    slop_factor: Optional[int] = None,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Optional[str]:
    """
    Full content of the (possibly chunked) message that contains
    ``sequence_number``, or None when its chunks could not be found inside
    the tolerance window.
    """
    config = resolve_client_config(
        network=network,
        environment=environment,
        access_token=access_token,
        settings=settings,
    )
    async with build_mirror_client(
        config, settings=settings, http_client=http_client
    ) as client:
        use_case = get_reassemble_message_use_case(
            client, slop_factor=slop_factor, settings=settings
        )
        return await use_case.execute(
            topic_id=topic_id, sequence_number=sequence_number
        )
