"""qrand: true random bytes from the ANU Quantum Random Numbers Server.

Bytes are fetched from https://qrng.anu.edu.au over HTTPS. When the service
is unreachable or returns invalid data, the missing bytes are filled from a
local CSPRNG and the result is tagged as degraded, so callers can tell
quantum randomness from pseudo-randomness.
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("qrand")
except PackageNotFoundError:
    __version__ = "0.0.0"

from qrand.acquirer import (
    AcquisitionOutcome,
    AcquisitionStatus,
    RandomAcquirer,
    acquire,
    get_random_bytes,
)
from qrand.config import QRandConfig, load_config
from qrand.exceptions import (
    ConfigValidationError,
    EntropyUnavailableError,
    FallbackFailedError,
    InvalidInputError,
    PseudoRandomError,
    QRandError,
)
from qrand.reader import RandomReader, read_into
from qrand.retry import RetryPolicy

__all__ = [
    "AcquisitionOutcome",
    "AcquisitionStatus",
    "ConfigValidationError",
    "EntropyUnavailableError",
    "FallbackFailedError",
    "InvalidInputError",
    "PseudoRandomError",
    "QRandConfig",
    "QRandError",
    "RandomAcquirer",
    "RandomReader",
    "RetryPolicy",
    "__version__",
    "acquire",
    "get_random_bytes",
    "load_config",
    "read_into",
]
