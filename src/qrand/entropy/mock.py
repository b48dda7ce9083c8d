"""Seeded, deterministic fallback source for tests.

Never use this outside tests: its output is reproducible from the seed
and is not cryptographically secure.
"""

from __future__ import annotations

import numpy as np

from qrand.entropy.base import EntropySource
from qrand.entropy.registry import register_entropy_source


@register_entropy_source("mock")
class MockEntropySource(EntropySource):
    """Deterministic byte generator backed by ``numpy.random.Generator``.

    Args:
        seed: Optional RNG seed. Two sources built with the same seed
            produce the same byte stream.
        fail: If true, every ``get_random_bytes()`` call raises
            ``OSError``, for exercising the hard-failure path.
    """

    def __init__(self, seed: int | None = None, fail: bool = False) -> None:
        self._seed = seed
        self._fail = fail
        self._rng = np.random.default_rng(seed)
        self.call_count = 0

    @property
    def name(self) -> str:
        return "mock"

    @property
    def is_available(self) -> bool:
        return not self._fail

    def get_random_bytes(self, n: int) -> bytes:
        """Return the next *n* bytes of the seeded stream.

        Raises:
            OSError: If the source was built with ``fail=True``.
        """
        self.call_count += 1
        if self._fail:
            raise OSError("mock entropy source configured to fail")
        return self._rng.integers(0, 256, size=n, dtype=np.uint8).tobytes()

    def close(self) -> None:
        """No-op."""
