"""Shared pytest fixtures for qrand tests.

Provides an isolated config, a scriptable fake of the remote QRNG endpoint
built on ``httpx.MockTransport``, and a factory for acquirers wired to it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import httpx
import pytest

from qrand.acquirer import RandomAcquirer
from qrand.config import QRandConfig
from qrand.entropy.base import EntropySource
from qrand.entropy.mock import MockEntropySource
from qrand.remote import QrngHttpClient
from qrand.retry import RetryPolicy
from tests.helpers import FakeEndpoint


@pytest.fixture
def config() -> QRandConfig:
    """Config isolated from env files, with quiet logging."""
    return QRandConfig(_env_file=None, log_level="none")  # type: ignore[call-arg]


@pytest.fixture
def sleeps() -> list[float]:
    """Records every retry sleep instead of blocking."""
    return []


@pytest.fixture
def fallback() -> MockEntropySource:
    """Deterministic fallback so pseudo-random output can be predicted."""
    return MockEntropySource(seed=7)


@pytest.fixture
def make_acquirer(
    config: QRandConfig,
    sleeps: list[float],
    fallback: MockEntropySource,
) -> Callable[..., tuple[RandomAcquirer, FakeEndpoint]]:
    """Factory: ``make_acquirer(replies, **config_overrides)``.

    Returns the acquirer and the fake endpoint so tests can count requests.
    """

    def factory(
        replies: Iterable[Any],
        *,
        source: EntropySource | None = None,
        **overrides: Any,
    ) -> tuple[RandomAcquirer, FakeEndpoint]:
        cfg = config.model_copy(update=overrides) if overrides else config
        endpoint = FakeEndpoint(replies)
        http = httpx.Client(transport=endpoint.transport())
        client = QrngHttpClient(
            cfg,
            retry=RetryPolicy.from_config(cfg, sleep=sleeps.append),
            client=http,
        )
        acquirer = RandomAcquirer(cfg, client=client, fallback=source or fallback)
        return acquirer, endpoint

    return factory
