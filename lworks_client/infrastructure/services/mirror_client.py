"""
============================================================
CRC CARD: infrastructure/services/mirror_client.py
============================================================
Class: MirrorClient

Responsibilities:
  - Implement TopicMessageSource on top of the mirror node REST API.
  - GET JSON endpoints with the lworks headers (user-agent, Authorization).
  - Retry with exponential backoff + jitter (tenacity) except for bail
    statuses (400/401/404 by default) which fail immediately.
  - Map error bodies into MirrorResponseError(status, url, message).
  - Distinguish "fragment absent" (404 -> None) from any other failure.
  - Emit "Mirror Call" / "Failed Mirror Call" usage events.

Collaborators:
  - crosscutting.client_config (ClientConfig)
  - crosscutting.config (Settings: timeout and retry limits)
  - infrastructure.services.retry (create_retry_decorator)
  - infrastructure.services.error_parser (parse_error_message)
  - infrastructure.services.tracking (usage events)
  - infrastructure.urls (get_mirror_url)
  - httpx (async HTTP client)
============================================================
"""

from __future__ import annotations

import dataclasses
import time
from typing import Any, Dict, Iterable, Optional

import httpx

from ...crosscutting.client_config import ClientConfig
from ...crosscutting.config import LIBRARY_VERSION, Settings, get_settings
from ...crosscutting.exceptions import MirrorResponseError, ParseError
from ...crosscutting.logger import logger
from ...domain.entities import (
    ChunkInfo,
    Environment,
    Fragment,
    TopicMessagesPage,
    TransactionId,
)
from ...domain.services import UsageTracker
from ..urls import get_mirror_url
from .error_parser import parse_error_message
from .retry import create_retry_decorator
from .tracking import MetricsUsageTracker, NoopUsageTracker, time_elapsed_ms

_TRACKED_EVENT = "Mirror Call"
_FAILED_EVENT = "Failed Mirror Call"
_NOT_FOUND = 404


class MirrorClient:
    """
    Async mirror node client.

    Use it as an async context manager so the underlying httpx.AsyncClient is
    closed; an injected ``http_client`` is left open (the caller owns it).
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        tracker: UsageTracker | None = None,
    ):
        s = settings or get_settings()
        self._config = config
        self._base_url = get_mirror_url(config.environment, config.network)
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=s.http_timeout_seconds)
        if tracker is not None:
            self._tracker = tracker
        elif config.is_public or config.disable_tracking:
            self._tracker = NoopUsageTracker()
        else:
            self._tracker = MetricsUsageTracker()
        self._retry = create_retry_decorator(
            max_attempts=s.retry_max_attempts,
            base_delay=s.retry_base_delay_seconds,
            max_delay=s.retry_max_delay_seconds,
            bail_statuses=config.bail_retry_statuses,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> "MirrorClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "user-agent": f"lworks-client/{LIBRARY_VERSION}",
            "Content-Type": "application/json",
        }
        if self._config.access_token:
            headers["Authorization"] = self._config.access_token
        return headers

    # ------------------------------------------------------------------
    # Generic GET
    # ------------------------------------------------------------------

    async def get_json(self, endpoint: str) -> Any:
        """
        GET ``base_url + endpoint`` and return the decoded JSON body.

        Raises:
            MirrorResponseError: final HTTP status >= 400
            ParseError: a successful response whose body is not JSON
            httpx.TransportError: network failure after the last attempt
        """
        if not endpoint:
            raise ValueError("Endpoint is required")

        started_at = time.monotonic()
        url = f"{self._base_url}{endpoint}"
        parsed = httpx.URL(url)
        call_props: Dict[str, Any] = {
            "url": url,
            "pathname": parsed.path,
            "query_params": dict(parsed.params),
            "endpoint": endpoint,
            "network_stack": self._config.network.value,
        }
        attempts = 0

        async def _attempt() -> Any:
            nonlocal attempts
            attempts += 1
            resp = await self._http.get(url, headers=self._headers())
            logger.debug(
                "Mirror response",
                extra={"response_status": resp.status_code, "url": url},
            )

            if resp.status_code >= 400:
                error_message = parse_error_message(resp)
                self._track(
                    _TRACKED_EVENT,
                    status="failed",
                    time_elapsed_ms=time_elapsed_ms(started_at),
                    attempts=attempts,
                    http_status=resp.status_code,
                    error_response_message=error_message,
                    **call_props,
                )
                raise MirrorResponseError(resp.status_code, url, error_message)

            try:
                body = resp.json()
            except ValueError as exc:
                self._track(
                    _TRACKED_EVENT,
                    status="failed",
                    time_elapsed_ms=time_elapsed_ms(started_at),
                    attempts=attempts,
                    http_status=resp.status_code,
                    error_response_message="Response body is not valid JSON",
                    **call_props,
                )
                raise ParseError(
                    f"Mirror response from {url} is not valid JSON", original_error=exc
                ) from exc

            self._track(
                _TRACKED_EVENT,
                status="success",
                time_elapsed_ms=time_elapsed_ms(started_at),
                attempts=attempts,
                http_status=resp.status_code,
                **call_props,
            )
            return body

        logger.debug("Mirror call", extra={"url": url, "base_url": self._base_url})
        try:
            return await self._retry(_attempt)()
        except (MirrorResponseError, ParseError, httpx.HTTPError) as exc:
            self._track(
                _FAILED_EVENT,
                time_elapsed_ms=time_elapsed_ms(started_at),
                attempts=attempts,
                **call_props,
            )
            logger.debug(
                "Mirror call failed",
                extra={
                    "url": url,
                    "attempts": attempts,
                    "error_type": type(exc).__name__,
                    "error_id": getattr(exc, "error_id", None),
                },
            )
            raise

    def _track(self, event_name: str, **properties: Any) -> None:
        self._tracker.track(event_name, self._config.access_token, properties)

    # ------------------------------------------------------------------
    # TopicMessageSource
    # ------------------------------------------------------------------

    async def get_fragment(
        self, topic_id: str, sequence_number: int
    ) -> Optional[Fragment]:
        """Topic message at ``sequence_number``; None when the mirror answers 404."""
        try:
            payload = await self.get_json(
                f"/api/v1/topics/{topic_id}/messages/{sequence_number}"
            )
        except MirrorResponseError as exc:
            if exc.status == _NOT_FOUND:
                return None
            raise
        if not payload:
            return None
        return to_fragment(payload)

    async def list_fragments(
        self, topic_id: str, cursor: Optional[str] = None
    ) -> TopicMessagesPage:
        endpoint = cursor or f"/api/v1/topics/{topic_id}/messages"
        payload = await self.get_json(endpoint) or {}
        links = payload.get("links") or {}
        return TopicMessagesPage(
            messages=[to_fragment(item) for item in payload.get("messages") or []],
            next=links.get("next") or None,
        )


# ---------------------------------------------------------------------------
# Fallback helper
# ---------------------------------------------------------------------------


async def call_mirror_with_fallback(
    endpoint: str,
    config: ClientConfig,
    *,
    fallback_status_codes: Iterable[int] = (_NOT_FOUND,),
    fallback_environment: Environment = Environment.PUBLIC,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Any:
    """
    Call the mirror with ``config``; when it answers one of the fallback
    statuses, make the same call against ``fallback_environment`` (the public
    mirror by default).
    """
    codes = frozenset(fallback_status_codes)
    async with MirrorClient(config, settings=settings, http_client=http_client) as client:
        try:
            return await client.get_json(endpoint)
        except MirrorResponseError as exc:
            if exc.status not in codes:
                raise
            logger.debug(
                "Falling back to another mirror environment",
                extra={
                    "error": exc.message,
                    "fallback_environment": fallback_environment.value,
                },
            )

    fallback_config = dataclasses.replace(
        config,
        environment=fallback_environment,
        access_token=(
            "" if fallback_environment == Environment.PUBLIC else config.access_token
        ),
    )
    async with MirrorClient(
        fallback_config, settings=settings, http_client=http_client
    ) as client:
        return await client.get_json(endpoint)


# ---------------------------------------------------------------------------
# Mapping helpers (module)
# ---------------------------------------------------------------------------


def _to_transaction_id(raw: Any) -> Optional[TransactionId]:
    if not isinstance(raw, dict):
        return None
    valid_start = raw.get("transaction_valid_start")
    if valid_start is None:
        return None
    return TransactionId(
        transaction_valid_start=str(valid_start),
        account_id=raw.get("account_id"),
        nonce=raw.get("nonce"),
        scheduled=raw.get("scheduled"),
    )


def _to_chunk_info(raw: Any) -> Optional[ChunkInfo]:
    if not isinstance(raw, dict):
        return None
    return ChunkInfo(
        number=raw.get("number"),
        total=raw.get("total"),
        initial_transaction_id=_to_transaction_id(raw.get("initial_transaction_id")),
    )


def to_fragment(payload: Dict[str, Any]) -> Fragment:
    """Map a mirror ``TopicMessage`` JSON object into a Fragment."""
    return Fragment(
        sequence_number=int(payload["sequence_number"]),
        message=payload.get("message") or "",
        chunk_info=_to_chunk_info(payload.get("chunk_info")),
        topic_id=payload.get("topic_id"),
        consensus_timestamp=payload.get("consensus_timestamp"),
        running_hash=payload.get("running_hash"),
        payer_account_id=payload.get("payer_account_id"),
    )
