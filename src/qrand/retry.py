"""Blocking retry policy for the remote fetch step.

The policy wraps exactly one callable. It is used around the HTTP GET only;
body reading and decoding run once per batch and are never retried.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

import httpx

from qrand.exceptions import RetryExhaustedError

if TYPE_CHECKING:
    from collections.abc import Callable

    from qrand.config import QRandConfig

logger = logging.getLogger("qrand")

T = TypeVar("T")

# Transport failures (DNS, connect, read timeouts) and non-2xx responses.
DEFAULT_RETRY_ON: tuple[type[BaseException], ...] = (httpx.HTTPError,)


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed attempt budget with a (optionally growing) sleep between attempts.

    Attributes:
        attempts: Total number of attempts, at least 1.
        delay_s: Sleep before the second attempt, in seconds.
        backoff: Multiplier applied to the delay after every sleep.
        retry_on: Exception types that count as a failed attempt. Anything
            else propagates immediately.
    """

    attempts: int = 2
    delay_s: float = 1.0
    backoff: float = 1.0
    retry_on: tuple[type[BaseException], ...] = DEFAULT_RETRY_ON
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.delay_s < 0:
            raise ValueError(f"delay_s must be >= 0, got {self.delay_s}")
        if self.backoff < 1.0:
            raise ValueError(f"backoff must be >= 1.0, got {self.backoff}")

    @classmethod
    def from_config(
        cls,
        config: QRandConfig,
        sleep: Callable[[float], None] = time.sleep,
    ) -> RetryPolicy:
        """Build a policy from the retry fields of *config*."""
        return cls(
            attempts=config.retry_attempts,
            delay_s=config.retry_delay_s,
            backoff=config.retry_backoff,
            sleep=sleep,
        )

    def delays(self) -> list[float]:
        """Sleeps between attempts, in order (``attempts - 1`` entries)."""
        return [self.delay_s * self.backoff**i for i in range(self.attempts - 1)]

    def call(self, callback: Callable[[], T]) -> T:
        """Invoke *callback* until it succeeds or the attempt budget is spent.

        Args:
            callback: Zero-argument callable performing one attempt.

        Returns:
            Whatever the first successful attempt returned.

        Raises:
            RetryExhaustedError: If all attempts raised a ``retry_on`` error.
        """
        delays = self.delays()
        last_error: BaseException | None = None
        for attempt in range(1, self.attempts + 1):
            try:
                return callback()
            except self.retry_on as exc:
                last_error = exc
                logger.warning(
                    "Remote fetch attempt %d/%d failed: %s",
                    attempt,
                    self.attempts,
                    exc,
                )
            if attempt < self.attempts:
                self.sleep(delays[attempt - 1])

        assert last_error is not None
        raise RetryExhaustedError(self.attempts, last_error) from last_error
