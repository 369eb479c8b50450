"""
===============================================================================
CRC: tests/unit/infrastructure/test_mirror_client.py

Responsibilities:
    - Validate request headers (user-agent, Authorization only with a token).
    - Validate retry on 5xx / transport errors and bail on 400/401/404.
    - Validate 404 -> None for get_fragment and error propagation otherwise.
    - Validate mirror JSON -> Fragment mapping and cursor pagination.
    - Validate usage events and the public-mirror fallback.

Collaborators:
    - MirrorClient / call_mirror_with_fallback (SUT)
    - httpx.MockTransport (no network)
===============================================================================
"""

from __future__ import annotations

import dataclasses

import httpx
import pytest

from lworks_client.crosscutting.client_config import ClientConfig
from lworks_client.crosscutting.exceptions import MirrorResponseError, ParseError
from lworks_client.domain.entities import Environment, Network, TransactionId
from lworks_client.infrastructure.services import (
    MetricsUsageTracker,
    MirrorClient,
    NoopUsageTracker,
    call_mirror_with_fallback,
)
from lworks_client.infrastructure.services.mirror_client import to_fragment

pytestmark = pytest.mark.unit

_TOKEN = "test-access-token-secret"
_TOPIC = "0.0.1234"
_BASE = "https://testnet.mirror.lworks.io"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class RecordingTracker:
    def __init__(self):
        self.events = []

    def track(self, event_name, distinct_id, properties=None):
        self.events.append((event_name, distinct_id, dict(properties or {})))


class Scripted:
    """Handler answering with queued responses (the last one repeats)."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def _json(data, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=data)


@pytest.fixture
def make_client(mock_http_client, fast_settings, testnet_config):
    def _make(handler, *, config: ClientConfig | None = None, tracker=None):
        return MirrorClient(
            config or testnet_config,
            settings=fast_settings,
            http_client=mock_http_client(handler),
            tracker=tracker,
        )

    return _make


# ---------------------------------------------------------------------------
# Headers / URLs
# ---------------------------------------------------------------------------


class TestRequests:
    @pytest.mark.asyncio
    async def test_sends_lworks_headers(self, make_client):
        handler = Scripted(_json({"transactions": []}))
        client = make_client(handler)

        result = await client.get_json("/api/v1/transactions?limit=2")

        assert result == {"transactions": []}
        request = handler.requests[0]
        assert str(request.url) == f"{_BASE}/api/v1/transactions?limit=2"
        assert request.headers["authorization"] == _TOKEN
        assert request.headers["user-agent"] == "lworks-client/2.8.0"
        assert request.headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_public_mirror_sends_no_authorization(self, make_client):
        handler = Scripted(_json({}))
        config = ClientConfig(network=Network.MAINNET, environment=Environment.PUBLIC)
        client = make_client(handler, config=config)

        await client.get_json("/api/v1/blocks")

        request = handler.requests[0]
        assert request.url.host == "mainnet-public.mirrornode.hedera.com"
        assert "authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_empty_endpoint_rejected(self, make_client):
        with pytest.raises(ValueError):
            await make_client(Scripted(_json({}))).get_json("")

    @pytest.mark.asyncio
    async def test_injected_http_client_is_not_closed(
        self, mock_http_client, fast_settings, testnet_config
    ):
        http = mock_http_client(Scripted(_json({})))

        async with MirrorClient(
            testnet_config, settings=fast_settings, http_client=http
        ) as client:
            await client.get_json("/api/v1/blocks")

        assert not http.is_closed
        await http.aclose()

    @pytest.mark.asyncio
    async def test_owned_http_client_is_closed(self, fast_settings, testnet_config):
        client = MirrorClient(testnet_config, settings=fast_settings)
        await client.aclose()
        assert client._http.is_closed


# ---------------------------------------------------------------------------
# Retry / errors
# ---------------------------------------------------------------------------


class TestRetry:
    @pytest.mark.asyncio
    async def test_retries_server_errors_until_success(self, make_client):
        handler = Scripted(
            _json({"_status": {"messages": [{"message": "busy"}]}}, 503),
            _json({"ok": True}),
        )

        result = await make_client(handler).get_json("/api/v1/blocks")

        assert result == {"ok": True}
        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401])
    async def test_bail_statuses_are_not_retried(self, make_client, status):
        handler = Scripted(
            _json({"_status": {"messages": [{"message": "Invalid parameter"}]}}, status)
        )

        with pytest.raises(MirrorResponseError) as exc_info:
            await make_client(handler).get_json("/api/v1/blocks?limit=x")

        assert len(handler.requests) == 1
        assert exc_info.value.status == status
        assert exc_info.value.error_message == "Invalid parameter"
        assert str(exc_info.value).startswith(f"{status} ({_BASE}/api/v1/blocks")
        assert str(exc_info.value).endswith("): Invalid parameter")

    @pytest.mark.asyncio
    async def test_persistent_server_error_raises_after_max_attempts(
        self, make_client, fast_settings
    ):
        handler = Scripted(httpx.Response(500, text="Internal Server Error"))

        with pytest.raises(MirrorResponseError) as exc_info:
            await make_client(handler).get_json("/api/v1/blocks")

        assert exc_info.value.status == 500
        assert exc_info.value.error_message is None
        assert len(handler.requests) == fast_settings.retry_max_attempts

    @pytest.mark.asyncio
    async def test_transport_error_retried_then_raised(self, make_client, fast_settings):
        handler = Scripted(httpx.ConnectError("connection refused"))

        with pytest.raises(httpx.ConnectError):
            await make_client(handler).get_json("/api/v1/blocks")

        assert len(handler.requests) == fast_settings.retry_max_attempts

    @pytest.mark.asyncio
    async def test_custom_bail_statuses(self, make_client, testnet_config):
        config = dataclasses.replace(testnet_config, bail_retry_statuses=(503,))
        handler = Scripted(_json({"error": "down"}, 503))

        with pytest.raises(MirrorResponseError):
            await make_client(handler, config=config).get_json("/api/v1/blocks")

        assert len(handler.requests) == 1


# ---------------------------------------------------------------------------
# TopicMessageSource
# ---------------------------------------------------------------------------


class TestGetFragment:
    @pytest.mark.asyncio
    async def test_maps_topic_message(self, make_client, mirror_message_factory):
        handler = Scripted(
            _json(mirror_message_factory(15, "Hello, ", number=1, total=2, key="1700.5"))
        )

        fragment = await make_client(handler).get_fragment(_TOPIC, 15)

        assert handler.requests[0].url.path == f"/api/v1/topics/{_TOPIC}/messages/15"
        assert fragment.sequence_number == 15
        assert fragment.topic_id == _TOPIC
        assert fragment.chunk_info.number == 1
        assert fragment.chunk_info.total == 2
        assert fragment.chunk_info.grouping_key == "1700.5"
        assert fragment.chunk_info.initial_transaction_id.account_id == "0.0.2"

    @pytest.mark.asyncio
    async def test_not_found_is_none_without_retry(self, make_client):
        handler = Scripted(_json({"_status": {"messages": [{"message": "Not found"}]}}, 404))

        assert await make_client(handler).get_fragment(_TOPIC, 99) is None
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, make_client):
        handler = Scripted(_json({"error": "forbidden"}, 401))

        with pytest.raises(MirrorResponseError):
            await make_client(handler).get_fragment(_TOPIC, 1)

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self, make_client):
        assert await make_client(Scripted(_json({}))).get_fragment(_TOPIC, 1) is None


class TestListFragments:
    @pytest.mark.asyncio
    async def test_follows_links_next(self, make_client, mirror_message_factory):
        next_path = f"/api/v1/topics/{_TOPIC}/messages?limit=2&sequencenumber=gt:2"
        handler = Scripted(
            _json(
                {
                    "messages": [
                        mirror_message_factory(1, "a"),
                        mirror_message_factory(2, "b"),
                    ],
                    "links": {"next": next_path},
                }
            ),
            _json({"messages": [mirror_message_factory(3, "c")], "links": {"next": None}}),
        )
        client = make_client(handler)

        first = await client.list_fragments(_TOPIC)
        second = await client.list_fragments(_TOPIC, first.next)

        assert [f.sequence_number for f in first.messages] == [1, 2]
        assert first.next == next_path
        assert [f.sequence_number for f in second.messages] == [3]
        assert second.next is None
        assert handler.requests[1].url.path == f"/api/v1/topics/{_TOPIC}/messages"
        assert handler.requests[1].url.params["sequencenumber"] == "gt:2"


def test_to_fragment_without_chunk_info(mirror_message_factory):
    fragment = to_fragment(mirror_message_factory(7, "plain"))
    assert fragment.chunk_info is None
    assert fragment.is_single
    assert fragment.consensus_timestamp == "1700000000.000000007"


def test_to_fragment_stringifies_grouping_key(mirror_message_factory):
    payload = mirror_message_factory(7, "x", number=1, total=2, key="k")
    payload["chunk_info"]["initial_transaction_id"]["transaction_valid_start"] = 1700
    assert to_fragment(payload).chunk_info.initial_transaction_id == TransactionId(
        transaction_valid_start="1700", account_id="0.0.2", nonce=0, scheduled=False
    )


# ---------------------------------------------------------------------------
# Usage tracking
# ---------------------------------------------------------------------------


class TestTracking:
    @pytest.mark.asyncio
    async def test_success_event(self, make_client):
        tracker = RecordingTracker()
        await make_client(Scripted(_json({})), tracker=tracker).get_json(
            "/api/v1/blocks?limit=1"
        )

        [(event, distinct_id, props)] = tracker.events
        assert event == "Mirror Call"
        assert distinct_id == _TOKEN
        assert props["status"] == "success"
        assert props["http_status"] == 200
        assert props["pathname"] == "/api/v1/blocks"
        assert props["query_params"] == {"limit": "1"}
        assert props["network_stack"] == "testnet"
        assert props["attempts"] == 1

    @pytest.mark.asyncio
    async def test_failed_call_events(self, make_client):
        tracker = RecordingTracker()
        with pytest.raises(MirrorResponseError):
            await make_client(
                Scripted(_json({"error": "bad"}, 400)), tracker=tracker
            ).get_json("/api/v1/blocks")

        names = [event for event, _, _ in tracker.events]
        assert names == ["Mirror Call", "Failed Mirror Call"]
        assert tracker.events[0][2]["status"] == "failed"
        assert tracker.events[0][2]["error_response_message"] == "bad"

    @pytest.mark.asyncio
    async def test_non_json_success_is_a_tracked_parse_error(self, make_client):
        tracker = RecordingTracker()
        handler = Scripted(httpx.Response(200, text="<html>maintenance</html>"))

        with pytest.raises(ParseError) as exc_info:
            await make_client(handler, tracker=tracker).get_json("/api/v1/blocks")

        assert len(handler.requests) == 1
        assert isinstance(exc_info.value.original_error, ValueError)
        names = [event for event, _, _ in tracker.events]
        assert names == ["Mirror Call", "Failed Mirror Call"]
        assert tracker.events[0][2]["status"] == "failed"
        assert tracker.events[0][2]["http_status"] == 200

    def test_default_tracker_selection(self, fast_settings, testnet_config):
        public = dataclasses.replace(testnet_config, environment=Environment.PUBLIC)
        untracked = dataclasses.replace(testnet_config, disable_tracking=True)

        assert isinstance(
            MirrorClient(testnet_config, settings=fast_settings)._tracker,
            MetricsUsageTracker,
        )
        assert isinstance(
            MirrorClient(public, settings=fast_settings)._tracker, NoopUsageTracker
        )
        assert isinstance(
            MirrorClient(untracked, settings=fast_settings)._tracker, NoopUsageTracker
        )


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------


def _by_host(request: httpx.Request) -> httpx.Response:
    if request.url.host.endswith("lworks.io"):
        return _json({"_status": {"messages": [{"message": "Not found"}]}}, 404)
    return _json({"source": "public"})


class TestCallMirrorWithFallback:
    @pytest.mark.asyncio
    async def test_falls_back_to_public_mirror(
        self, mock_http_client, fast_settings, testnet_config
    ):
        requests = []

        def handler(request):
            requests.append(request)
            return _by_host(request)

        result = await call_mirror_with_fallback(
            "/api/v1/accounts/0.0.2",
            testnet_config,
            settings=fast_settings,
            http_client=mock_http_client(handler),
        )

        assert result == {"source": "public"}
        assert [r.url.host for r in requests] == [
            "testnet.mirror.lworks.io",
            "testnet.mirrornode.hedera.com",
        ]
        assert "authorization" not in requests[1].headers

    @pytest.mark.asyncio
    async def test_no_fallback_on_success(
        self, mock_http_client, fast_settings, testnet_config
    ):
        handler = Scripted(_json({"source": "lworks"}))

        result = await call_mirror_with_fallback(
            "/api/v1/accounts/0.0.2",
            testnet_config,
            settings=fast_settings,
            http_client=mock_http_client(handler),
        )

        assert result == {"source": "lworks"}
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_other_statuses_are_raised(
        self, mock_http_client, fast_settings, testnet_config
    ):
        handler = Scripted(_json({"error": "bad"}, 400))

        with pytest.raises(MirrorResponseError) as exc_info:
            await call_mirror_with_fallback(
                "/api/v1/accounts/0.0.2",
                testnet_config,
                settings=fast_settings,
                http_client=mock_http_client(handler),
            )

        assert exc_info.value.status == 400
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_custom_fallback_environment_keeps_token(
        self, mock_http_client, fast_settings, testnet_config
    ):
        requests = []

        def handler(request):
            requests.append(request)
            if request.url.host == "testnet.mirror.lworks.io":
                return _json({"error": "gone"}, 410)
            return _json({"source": "stage"})

        result = await call_mirror_with_fallback(
            "/api/v1/blocks",
            testnet_config,
            fallback_status_codes=[410],
            fallback_environment=Environment.STAGE,
            settings=fast_settings,
            http_client=mock_http_client(handler),
        )

        assert result == {"source": "stage"}
        assert requests[-1].url.host == "testnet.stage-mirror.lworks.io"
        assert requests[-1].headers["authorization"] == _TOKEN
