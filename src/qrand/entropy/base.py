"""Abstract base class for local fallback entropy sources.

A fallback source fills whatever the remote service could not deliver. The
ABC provides a concrete ``health_check()``; subclasses implement ``name``,
``is_available``, ``get_random_bytes()`` and ``close()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class EntropySource(ABC):
    """Abstract base for all local entropy sources.

    The contract is strict: ``get_random_bytes(n)`` returns exactly *n*
    bytes or raises. Returning fewer bytes is treated as a failure by the
    acquirer.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short source identifier (e.g., ``'system'``)."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether the source can currently provide entropy."""

    @abstractmethod
    def get_random_bytes(self, n: int) -> bytes:
        """Return exactly *n* random bytes.

        Args:
            n: Number of random bytes to generate.

        Returns:
            Exactly *n* bytes of entropy.
        """

    @abstractmethod
    def close(self) -> None:
        """Release resources (file handles, devices)."""

    def health_check(self) -> dict[str, Any]:
        """Return a status dictionary for this source.

        Returns:
            Dictionary with at least ``'source'`` and ``'healthy'`` keys.
        """
        return {"source": self.name, "healthy": self.is_available}
