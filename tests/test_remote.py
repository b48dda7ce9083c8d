"""Tests for the remote packet model and QrngHttpClient (mocked transport)."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from qrand.config import QRandConfig
from qrand.exceptions import (
    BatchDecodeError,
    BatchRejectedError,
    EntropyUnavailableError,
    HexDecodeError,
    RetryExhaustedError,
)
from qrand.remote import QrngHttpClient, RemotePacketBatch, parse_batch
from qrand.retry import RetryPolicy
from tests.helpers import (
    DEFAULT_PACKET,
    BrokenBodyStream,
    FakeEndpoint,
    batch_payload,
    connect_error,
)


def _client(
    config: QRandConfig,
    replies: list[Any],
    sleeps: list[float] | None = None,
) -> tuple[QrngHttpClient, FakeEndpoint]:
    endpoint = FakeEndpoint(replies)
    sleep = sleeps.append if sleeps is not None else (lambda _: None)
    client = QrngHttpClient(
        config,
        retry=RetryPolicy.from_config(config, sleep=sleep),
        client=httpx.Client(transport=endpoint.transport()),
    )
    return client, endpoint


# ---------------------------------------------------------------------------
# Batch model
# ---------------------------------------------------------------------------


class TestRemotePacketBatch:
    def test_decode_concatenates_items_in_order(self) -> None:
        batch = RemotePacketBatch(
            type="hex16", length=3, size=2, data=["0a0b", "0c0d", "ff00"], success=True
        )
        assert batch.decode() == b"\x0a\x0b\x0c\x0d\xff\x00"

    def test_uppercase_hex_accepted(self) -> None:
        batch = RemotePacketBatch(length=1, size=2, data=["ABCD"], success=True)
        assert batch.decode() == b"\xab\xcd"

    def test_success_false_rejected(self) -> None:
        batch = RemotePacketBatch(**batch_payload(success=False))
        with pytest.raises(BatchRejectedError, match="success=false"):
            batch.decode()

    @pytest.mark.parametrize("bad", ["zz00", "abc", "ab cd", "é000"])
    def test_non_hex_item_rejected(self, bad: str) -> None:
        batch = RemotePacketBatch(length=2, size=2, data=["0000", bad], success=True)
        with pytest.raises(HexDecodeError, match="Item 1"):
            batch.decode()

    def test_wrong_item_width_rejected(self) -> None:
        batch = RemotePacketBatch(length=1, size=2, data=["aabbcc"], success=True)
        with pytest.raises(HexDecodeError, match="expected 2"):
            batch.decode()

    def test_item_count_mismatch_rejected(self) -> None:
        batch = RemotePacketBatch(length=3, size=2, data=["0000"], success=True)
        with pytest.raises(BatchDecodeError, match="declares 3 items but carries 1"):
            batch.decode()

    def test_empty_shape_rejected(self) -> None:
        batch = RemotePacketBatch(length=0, size=2, data=[], success=True)
        with pytest.raises(BatchDecodeError, match="empty shape"):
            batch.decode()

    def test_bare_failure_body_parses(self) -> None:
        batch = parse_batch(b'{"success": false, "message": "quota exceeded"}')
        assert batch.success is False
        with pytest.raises(BatchRejectedError):
            batch.decode()

    @pytest.mark.parametrize("body", [b"", b"<html>busy</html>", b"[1, 2]", b'{"data": 5}'])
    def test_parse_rejects_malformed_json(self, body: bytes) -> None:
        with pytest.raises(BatchDecodeError, match="Malformed response JSON"):
            parse_batch(body)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


class TestQrngHttpClient:
    def test_request_shape(self, config: QRandConfig) -> None:
        client, endpoint = _client(config, [batch_payload()])
        client.fetch_batch()

        request = endpoint.requests[0]
        assert request.method == "GET"
        assert request.url.params["length"] == "10"
        assert request.url.params["type"] == "hex16"
        assert request.url.params["size"] == "2"
        assert str(request.url).startswith(config.base_url)

    def test_endpoint_url(self, config: QRandConfig) -> None:
        client, _ = _client(config, [batch_payload()])
        assert client.endpoint_url == f"{config.base_url}?length=10&type=hex16&size=2"

    def test_fetch_returns_full_packet(self, config: QRandConfig) -> None:
        client, _ = _client(config, [batch_payload()])
        assert client.fetch_batch() == DEFAULT_PACKET
        assert len(DEFAULT_PACKET) == config.packet_bytes

    def test_network_failure_is_retried(self, config: QRandConfig) -> None:
        sleeps: list[float] = []
        client, endpoint = _client(config, [connect_error(), batch_payload()], sleeps)

        assert client.fetch_batch() == DEFAULT_PACKET
        assert endpoint.call_count == 2
        assert sleeps == [config.retry_delay_s]

    def test_http_error_status_is_retried(self, config: QRandConfig) -> None:
        client, endpoint = _client(config, [httpx.Response(503), batch_payload()])
        assert client.fetch_batch() == DEFAULT_PACKET
        assert endpoint.call_count == 2

    def test_retry_exhaustion(self, config: QRandConfig) -> None:
        sleeps: list[float] = []
        client, endpoint = _client(config, [connect_error("unreachable")], sleeps)

        with pytest.raises(RetryExhaustedError, match="after 2 attempts, last error: unreachable"):
            client.fetch_batch()
        assert endpoint.call_count == config.retry_attempts
        assert len(sleeps) == config.retry_attempts - 1

    @pytest.mark.parametrize(
        "reply",
        [
            httpx.Response(200, content=b"not json"),
            batch_payload(success=False),
            batch_payload(["0000", "xyz!"]),
        ],
    )
    def test_decode_failures_are_not_retried(self, config: QRandConfig, reply: Any) -> None:
        sleeps: list[float] = []
        client, endpoint = _client(config, [reply, batch_payload()], sleeps)

        with pytest.raises(EntropyUnavailableError):
            client.fetch_batch()
        assert endpoint.call_count == 1
        assert sleeps == []

    def test_body_read_failure_is_not_retried(self, config: QRandConfig) -> None:
        sleeps: list[float] = []
        cfg = config.model_copy(update={"retry_attempts": 3})
        broken = httpx.Response(200, stream=BrokenBodyStream())
        client, endpoint = _client(cfg, [broken, batch_payload()], sleeps)

        with pytest.raises(BatchDecodeError, match="Error reading response body"):
            client.fetch_batch()
        assert endpoint.call_count == 1
        assert sleeps == []

    def test_honours_configured_shape(self, config: QRandConfig) -> None:
        cfg = config.model_copy(update={"packet_length": 2, "item_size": 4})
        client, endpoint = _client(cfg, [batch_payload(["00112233", "44556677"], size=4)])

        assert client.fetch_batch() == bytes.fromhex("0011223344556677")
        assert endpoint.requests[0].url.params["length"] == "2"
        assert endpoint.requests[0].url.params["size"] == "4"

    def test_close_leaves_injected_client_open(self, config: QRandConfig) -> None:
        http = httpx.Client(transport=FakeEndpoint([batch_payload()]).transport())
        client = QrngHttpClient(config, client=http)
        client.close()
        assert http.is_closed is False
        http.close()

    def test_close_owned_client(self, config: QRandConfig) -> None:
        client = QrngHttpClient(config)
        client.close()
        assert client._client.is_closed is True

    def test_health_check(self, config: QRandConfig) -> None:
        client, endpoint = _client(config, [batch_payload()])
        health = client.health_check()
        assert health["endpoint"] == client.endpoint_url
        assert health["packet_bytes"] == 20
        assert health["retry_attempts"] == 2
        assert endpoint.call_count == 0
