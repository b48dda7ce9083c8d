"""Operating-system CSPRNG fallback, the default when the remote service fails."""

from __future__ import annotations

import os

from qrand.entropy.base import EntropySource
from qrand.entropy.registry import register_entropy_source


@register_entropy_source("system")
class SystemEntropySource(EntropySource):
    """``os.urandom()`` wrapper: cryptographically secure, not quantum.

    Bytes from this source are pseudo-random as far as callers of the
    acquirer are concerned; any acquisition that used it is reported as
    degraded.
    """

    @property
    def name(self) -> str:
        return "system"

    @property
    def is_available(self) -> bool:
        return True

    def get_random_bytes(self, n: int) -> bytes:
        """Return *n* bytes from ``os.urandom()``."""
        return os.urandom(n)

    def close(self) -> None:
        """No-op."""
