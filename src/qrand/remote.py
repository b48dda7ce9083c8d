"""HTTP client for the ANU QRNG JSON API.

Every fetch requests the same fixed packet shape, ``packet_length`` items of
``item_size`` bytes each, hex-encoded. A response looks like::

    {"type": "hex16", "length": 10, "size": 2,
     "data": ["9f2e", "04c1", ...], "success": true}

Only the HTTP GET is retried. Reading the body, JSON decoding, the success
check and hex decoding each happen once; any failure discards the whole batch.
"""

from __future__ import annotations

import binascii
import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from qrand.exceptions import BatchDecodeError, BatchRejectedError, HexDecodeError
from qrand.retry import RetryPolicy

if TYPE_CHECKING:
    from qrand.config import QRandConfig

logger = logging.getLogger("qrand")


class RemotePacketBatch(BaseModel):
    """Parsed response of a single remote call.

    Fields other than ``success`` default to empty values so that a bare
    ``{"success": false}`` still parses and is rejected by the success check
    rather than by shape validation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str = ""
    length: int = 0
    size: int = 0
    data: list[str] = Field(default_factory=list)
    success: bool = False

    def decode(self) -> bytes:
        """Return the concatenated raw bytes of all items.

        Returns:
            ``length * size`` bytes, in item order.

        Raises:
            BatchRejectedError: If ``success`` is false.
            BatchDecodeError: If the batch is empty or its item count does
                not match the declared length.
            HexDecodeError: If any item is not hex of exactly ``size`` bytes.
        """
        if not self.success:
            raise BatchRejectedError("Remote service reported success=false")
        if self.length < 1 or self.size < 1:
            raise BatchDecodeError(
                f"Batch declares an empty shape (length={self.length}, size={self.size})"
            )
        if len(self.data) != self.length:
            raise BatchDecodeError(
                f"Batch declares {self.length} items but carries {len(self.data)}"
            )

        out = bytearray()
        for index, item in enumerate(self.data):
            try:
                raw = binascii.unhexlify(item)
            except (binascii.Error, ValueError) as exc:
                raise HexDecodeError(f"Item {index} is not valid hex: {item!r}") from exc
            if len(raw) != self.size:
                raise HexDecodeError(
                    f"Item {index} decodes to {len(raw)} bytes, expected {self.size}"
                )
            out += raw
        return bytes(out)


def parse_batch(body: bytes) -> RemotePacketBatch:
    """Parse a raw response body into a batch.

    Raises:
        BatchDecodeError: If the body is not a JSON object of the expected shape.
    """
    try:
        return RemotePacketBatch.model_validate_json(body)
    except ValidationError as exc:
        raise BatchDecodeError(f"Malformed response JSON: {exc}") from exc


class QrngHttpClient:
    """Fetches fixed-shape packets of raw entropy from the remote service.

    Args:
        config: Endpoint, packet shape and timeout settings.
        retry: Policy applied around the HTTP GET. Built from *config* if omitted.
        client: Optional pre-built ``httpx.Client``. When omitted the client
            creates and owns one, and closes it in :meth:`close`.
    """

    def __init__(
        self,
        config: QRandConfig,
        *,
        retry: RetryPolicy | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._retry = retry if retry is not None else RetryPolicy.from_config(config)
        self._owns_client = client is None
        self._client = (
            client
            if client is not None
            else httpx.Client(timeout=config.request_timeout_s, follow_redirects=True)
        )

    @property
    def retry(self) -> RetryPolicy:
        return self._retry

    @property
    def endpoint_params(self) -> dict[str, Any]:
        """Query parameters sent with every fetch."""
        return {
            "length": self._config.packet_length,
            "type": self._config.item_type,
            "size": self._config.item_size,
        }

    @property
    def endpoint_url(self) -> str:
        """Full request URL including the query string."""
        return str(httpx.URL(self._config.base_url, params=self.endpoint_params))

    def _get(self) -> httpx.Response:
        """One GET attempt, returning before the body is read.

        Non-2xx statuses count as failed attempts.
        """
        request = self._client.build_request(
            "GET",
            self._config.base_url,
            params=self.endpoint_params,
            timeout=self._config.request_timeout_s,
        )
        response = self._client.send(request, stream=True)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError:
            response.close()
            raise
        return response

    def fetch_batch(self) -> bytes:
        """Fetch and decode one packet.

        Returns:
            The packet's raw bytes (``packet_length * item_size`` for a
            well-behaved server).

        Raises:
            EntropyUnavailableError: Subclass describing which step failed.
        """
        response = self._retry.call(self._get)

        try:
            body = response.read()
        except httpx.HTTPError as exc:
            raise BatchDecodeError(f"Error reading response body: {exc}") from exc
        finally:
            response.close()

        data = parse_batch(body).decode()
        logger.debug("Fetched %d remote bytes from %s", len(data), self._config.base_url)
        return data

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def health_check(self) -> dict[str, Any]:
        """Return the static endpoint description (no network call)."""
        return {
            "endpoint": self.endpoint_url,
            "packet_bytes": self._config.packet_bytes,
            "retry_attempts": self._retry.attempts,
            "retry_delay_s": self._retry.delay_s,
        }
