"""Random byte acquisition: remote true-random bytes with local fallback.

Pipeline for one ``acquire(size)`` call::

    validate size -> fetch full packets until >= size bytes -> truncate
                          | any remote failure
                          v
                  fill the shortfall from the fallback source -> DEGRADED

Bytes from batches that decoded cleanly before a failure are kept; only the
remainder is pseudo-random. The loop always asks for a full packet, so the
last batch usually overshoots and is truncated.
"""

from __future__ import annotations

import enum
import logging
import operator
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from qrand.config import QRandConfig
from qrand.entropy.registry import EntropySourceRegistry
from qrand.exceptions import (
    BatchDecodeError,
    EntropyUnavailableError,
    FallbackFailedError,
    InvalidInputError,
    PseudoRandomError,
)
from qrand.logging.logger import AcquisitionLogger
from qrand.logging.types import AcquisitionRecord
from qrand.remote import QrngHttpClient
from qrand.retry import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Callable

    from qrand.entropy.base import EntropySource

logger = logging.getLogger("qrand")


class AcquisitionStatus(str, enum.Enum):
    """Quality tag of an acquisition result."""

    SUCCESS = "success"
    """All bytes came from the remote service."""

    DEGRADED = "degraded"
    """Some or all bytes came from the fallback source."""

    FAILED = "failed"
    """No bytes: invalid input or the fallback source failed."""


@dataclass(frozen=True, slots=True)
class AcquisitionOutcome:
    """Result of one acquisition.

    Attributes:
        status: Quality tag of the result.
        data: Exactly the requested number of bytes, or ``b""`` when failed.
        error: For ``FAILED``, the error that caused it. For ``DEGRADED``,
            the remote-path error that triggered the fallback.
        remote_bytes: How many leading bytes of *data* are true-random.
        batches: Remote batches consumed.
    """

    status: AcquisitionStatus
    data: bytes = b""
    error: BaseException | None = None
    remote_bytes: int = 0
    batches: int = 0

    @property
    def ok(self) -> bool:
        """True when *data* holds usable bytes (success or degraded)."""
        return self.status is not AcquisitionStatus.FAILED

    @property
    def degraded(self) -> bool:
        return self.status is AcquisitionStatus.DEGRADED

    @property
    def fallback_bytes(self) -> int:
        return len(self.data) - self.remote_bytes

    def unwrap(self, allow_degraded: bool = True) -> bytes:
        """Return *data*, raising for outcomes the caller will not accept.

        Args:
            allow_degraded: If false, a degraded result raises instead.

        Raises:
            PseudoRandomError: Degraded result and ``allow_degraded`` is false.
            Exception: The stored error of a failed outcome.
        """
        if self.status is AcquisitionStatus.FAILED:
            assert self.error is not None
            raise self.error
        if self.status is AcquisitionStatus.DEGRADED and not allow_degraded:
            raise PseudoRandomError(count=len(self.data)) from self.error
        return self.data


def _validate_size(size: Any) -> int:
    """Coerce *size* to a positive int or raise InvalidInputError."""
    if isinstance(size, bool):
        raise InvalidInputError(f"size must be a positive integer, got {size!r}")
    try:
        value = operator.index(size)
    except TypeError:
        raise InvalidInputError(f"size must be a positive integer, got {size!r}") from None
    if value < 1:
        raise InvalidInputError(f"size must be a positive integer, got {value}")
    return value


class RandomAcquirer:
    """Acquires random bytes from the remote QRNG, degrading to a local CSPRNG.

    Holds no state between calls apart from its collaborators and the
    optional diagnostic record list. Safe to share between threads as long
    as the collaborators are.

    Args:
        config: Settings; defaults are loaded from the environment if omitted.
        client: Remote packet client. Built from *config* if omitted.
        fallback: Local entropy source. Looked up by
            ``config.fallback_source`` if omitted.
        sleep: Sleep function used between retry attempts of a client built
            here. Ignored when *client* is given.
    """

    def __init__(
        self,
        config: QRandConfig | None = None,
        *,
        client: QrngHttpClient | None = None,
        fallback: EntropySource | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config if config is not None else QRandConfig()
        self._fallback = (
            fallback
            if fallback is not None
            else EntropySourceRegistry.create(self._config.fallback_source)
        )
        self._client = (
            client
            if client is not None
            else QrngHttpClient(self._config, retry=RetryPolicy.from_config(self._config, sleep))
        )
        self._logger = AcquisitionLogger(self._config)

    @property
    def config(self) -> QRandConfig:
        return self._config

    @property
    def fallback(self) -> EntropySource:
        return self._fallback

    @property
    def acquisition_logger(self) -> AcquisitionLogger:
        return self._logger

    def acquire(self, size: int) -> AcquisitionOutcome:
        """Return exactly *size* random bytes, tagged with their quality.

        Never raises for remote or fallback problems; those are reported in
        the outcome.

        Args:
            size: Number of bytes wanted, a positive integer.

        Returns:
            ``SUCCESS`` with remote bytes, ``DEGRADED`` with a fallback-filled
            remainder, or ``FAILED`` with no bytes.
        """
        timestamp_ns = time.time_ns()
        t0 = time.perf_counter()
        outcome = self._acquire(size)
        self._record(outcome, size, timestamp_ns, (time.perf_counter() - t0) * 1000.0)
        return outcome

    def _acquire(self, size: Any) -> AcquisitionOutcome:
        try:
            size = _validate_size(size)
        except InvalidInputError as exc:
            return AcquisitionOutcome(AcquisitionStatus.FAILED, error=exc)

        buf = bytearray()
        batches = 0
        remote_error: EntropyUnavailableError | None = None

        while len(buf) < size:
            try:
                chunk = self._client.fetch_batch()
                if not chunk:
                    raise BatchDecodeError("Remote batch contained no bytes")
            except EntropyUnavailableError as exc:
                logger.warning(
                    "Remote entropy unavailable after %d batch(es): %s",
                    batches,
                    exc,
                )
                remote_error = exc
                break
            buf += chunk
            batches += 1

        if len(buf) >= size:
            return AcquisitionOutcome(
                AcquisitionStatus.SUCCESS,
                data=bytes(buf[:size]),
                remote_bytes=size,
                batches=batches,
            )

        shortfall = size - len(buf)
        logger.warning(
            "Falling back to %r for %d of %d bytes",
            self._fallback.name,
            shortfall,
            size,
        )
        try:
            filler = self._fallback.get_random_bytes(shortfall)
        except Exception as exc:  # Carried in the FAILED outcome, not swallowed
            logger.error("Fallback source %r failed: %s", self._fallback.name, exc)
            return AcquisitionOutcome(AcquisitionStatus.FAILED, error=exc, batches=batches)

        if len(filler) != shortfall:
            exc = FallbackFailedError(
                f"Fallback source {self._fallback.name!r} returned {len(filler)} bytes, "
                f"expected {shortfall}"
            )
            logger.error("%s", exc)
            return AcquisitionOutcome(AcquisitionStatus.FAILED, error=exc, batches=batches)

        return AcquisitionOutcome(
            AcquisitionStatus.DEGRADED,
            data=bytes(buf) + bytes(filler),
            error=remote_error,
            remote_bytes=len(buf),
            batches=batches,
        )

    def _record(
        self,
        outcome: AcquisitionOutcome,
        requested: Any,
        timestamp_ns: int,
        elapsed_ms: float,
    ) -> None:
        self._logger.log_acquisition(
            AcquisitionRecord(
                timestamp_ns=timestamp_ns,
                requested=requested if isinstance(requested, int) else 0,
                remote_bytes=outcome.remote_bytes,
                fallback_bytes=outcome.fallback_bytes,
                batches=outcome.batches,
                status=outcome.status.value,
                elapsed_ms=elapsed_ms,
                fallback_source=self._fallback.name,
                error=str(outcome.error) if outcome.error is not None else None,
            )
        )

    def get_random_bytes(self, size: int, *, allow_degraded: bool = True) -> bytes:
        """Return *size* bytes, raising on failure.

        Raises:
            InvalidInputError: If *size* is not a positive integer.
            PseudoRandomError: If the result is degraded and
                ``allow_degraded`` is false.
            Exception: Whatever the fallback source raised.
        """
        return self.acquire(size).unwrap(allow_degraded=allow_degraded)

    def health_check(self) -> dict[str, Any]:
        """Static description of the remote endpoint plus fallback health."""
        fallback_health = self._fallback.health_check()
        return {
            "healthy": fallback_health["healthy"],
            "remote": self._client.health_check(),
            "fallback": fallback_health,
        }

    def close(self) -> None:
        """Close the remote client and the fallback source."""
        self._client.close()
        self._fallback.close()

    def __enter__(self) -> RandomAcquirer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def acquire(size: int, config: QRandConfig | None = None) -> AcquisitionOutcome:
    """One-shot acquisition with a throwaway :class:`RandomAcquirer`."""
    with RandomAcquirer(config) as acquirer:
        return acquirer.acquire(size)


def get_random_bytes(
    size: int,
    config: QRandConfig | None = None,
    *,
    allow_degraded: bool = True,
) -> bytes:
    """One-shot :meth:`RandomAcquirer.get_random_bytes`."""
    return acquire(size, config).unwrap(allow_degraded=allow_degraded)
