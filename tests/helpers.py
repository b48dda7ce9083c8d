"""Builders and a scriptable fake of the remote QRNG endpoint."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

import httpx


def batch_payload(
    items: list[str] | None = None,
    *,
    success: bool = True,
    length: int | None = None,
    size: int = 2,
) -> dict[str, Any]:
    """Build an ANU-style JSON body.

    Defaults to ten two-byte items ``0000``, ``0101``, ... ``0909`` so that
    the decoded packet is ``bytes([0, 0, 1, 1, ..., 9, 9])``.
    """
    if items is None:
        items = [f"{i:02x}{i:02x}" for i in range(10)]
    return {
        "type": "hex16",
        "length": len(items) if length is None else length,
        "size": size,
        "data": items,
        "success": success,
    }


DEFAULT_PACKET = bytes(b for i in range(10) for b in (i, i))


class FakeEndpoint:
    """Scripted stand-in for the QRNG server.

    Each request consumes the next scripted reply; once the script runs out
    the last reply repeats. A reply is a JSON-able dict (sent with status
    200), a ready ``httpx.Response``, or an exception to raise as a transport
    error.
    """

    def __init__(self, replies: Iterable[Any]) -> None:
        self._replies = list(replies)
        self.requests: list[httpx.Request] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        index = min(len(self.requests), len(self._replies) - 1)
        self.requests.append(request)
        reply = self._replies[index]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class BrokenBodyStream(httpx.SyncByteStream):
    """Response body that drops the connection after its first chunk."""

    def __init__(self, first_chunk: bytes = b'{"type": "hex16", ') -> None:
        self._first_chunk = first_chunk

    def __iter__(self) -> Iterator[bytes]:
        yield self._first_chunk
        raise httpx.ReadError("connection reset mid-body")


def connect_error(message: str = "connection refused") -> httpx.ConnectError:
    return httpx.ConnectError(message)
