"""Exception hierarchy for qrand.

All exceptions derive from QRandError, enabling broad catch patterns
at the application boundary while allowing fine-grained handling internally.

Only two conditions are fatal to an acquisition: invalid input and a failing
fallback generator. Everything under :class:`EntropyUnavailableError` is
absorbed by the acquirer and downgrades the result to degraded.
"""

from __future__ import annotations


class QRandError(Exception):
    """Base exception for all qrand errors."""


class InvalidInputError(QRandError, ValueError):
    """The requested byte count is not a positive integer."""


class ConfigValidationError(QRandError):
    """Configuration field validation failed.

    Raised when settings cannot be loaded, or name a fallback source that
    is not registered.
    """


class EntropyUnavailableError(QRandError):
    """The remote service could not provide a usable batch.

    Base class for every failure on the remote path. The acquirer catches
    this, logs it, and fills the shortfall from the fallback source.
    """


class RetryExhaustedError(EntropyUnavailableError):
    """Every attempt of a retried network call failed.

    Attributes:
        attempts: Number of attempts made.
        last_error: The exception raised by the final attempt.
    """

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"after {attempts} attempts, last error: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class BatchDecodeError(EntropyUnavailableError):
    """Response body could not be read or parsed into a packet batch."""


class BatchRejectedError(EntropyUnavailableError):
    """The service answered with ``success: false``."""


class HexDecodeError(EntropyUnavailableError):
    """A data item is not valid hex of the declared item size."""


class PseudoRandomError(QRandError):
    """Some or all returned bytes came from the local fallback generator.

    Only raised when the caller asks for degraded results to be treated as
    errors. The bytes themselves are still valid CSPRNG output.

    Attributes:
        count: Number of bytes delivered alongside this error (0 if unknown).
    """

    def __init__(self, message: str | None = None, count: int = 0) -> None:
        super().__init__(
            message or "Remote entropy unavailable, pseudo-random bytes returned instead"
        )
        self.count = count


class FallbackFailedError(QRandError):
    """The fallback generator returned the wrong number of bytes."""
