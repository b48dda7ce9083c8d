"""File-like adapter over :class:`~qrand.acquirer.RandomAcquirer`.

``RandomReader`` is an unbuffered binary stream, so it can stand in wherever
code expects ``os.urandom``-style reads from a file object::

    with RandomReader() as rng:
        key = rng.read(32)
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

from qrand.acquirer import AcquisitionOutcome, RandomAcquirer
from qrand.exceptions import PseudoRandomError

if TYPE_CHECKING:
    from qrand.config import QRandConfig


class RandomReader(io.RawIOBase):
    """Readable raw stream whose every read is one acquisition.

    Args:
        acquirer: Acquirer to delegate to. Built from *config* and owned by
            the reader if omitted.
        config: Used only when *acquirer* is omitted.
        strict: If true, a degraded read raises ``PseudoRandomError`` after
            the buffer has been filled. The error's ``count`` holds the
            number of bytes written.
    """

    def __init__(
        self,
        acquirer: RandomAcquirer | None = None,
        *,
        config: QRandConfig | None = None,
        strict: bool = False,
    ) -> None:
        super().__init__()
        self._owns_acquirer = acquirer is None
        self._acquirer = acquirer if acquirer is not None else RandomAcquirer(config)
        self._strict = strict
        self._last_outcome: AcquisitionOutcome | None = None

    @property
    def last_outcome(self) -> AcquisitionOutcome | None:
        """Outcome of the most recent non-empty read."""
        return self._last_outcome

    def readable(self) -> bool:
        return True

    def read(self, size: int | None = -1) -> bytes:
        """Read exactly *size* random bytes.

        The stream never reaches EOF, so *size* must be given and non-negative.

        Raises:
            io.UnsupportedOperation: If *size* is omitted, ``None`` or negative.
        """
        if size is None or size < 0:
            raise io.UnsupportedOperation(
                "RandomReader is an endless stream; read() needs a non-negative size"
            )
        return super().read(size)

    def readall(self) -> bytes:
        raise io.UnsupportedOperation("RandomReader is an endless stream; readall() never ends")

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        """Fill *buffer* with random bytes.

        Returns:
            Number of bytes written, always ``len(buffer)``.

        Raises:
            InvalidInputError, or the fallback source's error: acquisition failed.
            PseudoRandomError: Degraded read on a strict reader.
        """
        if self.closed:
            raise ValueError("I/O operation on closed RandomReader")
        view = memoryview(buffer).cast("B")
        size = view.nbytes
        if size == 0:
            return 0

        outcome = self._acquirer.acquire(size)
        self._last_outcome = outcome
        data = outcome.unwrap()
        view[:size] = data

        if self._strict and outcome.degraded:
            raise PseudoRandomError(count=size) from outcome.error
        return size

    def close(self) -> None:
        acquirer = getattr(self, "_acquirer", None)
        if not self.closed and self._owns_acquirer and acquirer is not None:
            acquirer.close()
        super().close()


def read_into(
    buffer: bytearray | memoryview,
    acquirer: RandomAcquirer | None = None,
) -> tuple[int, Exception | None]:
    """Fill *buffer* and report ``(count, error)`` instead of raising.

    *error* is ``None`` for true-random bytes, a ``PseudoRandomError`` when
    the bytes were degraded, or the failure cause (with ``count == 0``).
    """
    view = memoryview(buffer).cast("B")
    size = view.nbytes
    if size == 0:
        return 0, None

    owned = acquirer is None
    acquirer = acquirer if acquirer is not None else RandomAcquirer()
    try:
        outcome = acquirer.acquire(size)
    finally:
        if owned:
            acquirer.close()

    if not outcome.ok:
        assert isinstance(outcome.error, Exception)
        return 0, outcome.error
    view[:size] = outcome.data
    if outcome.degraded:
        return size, PseudoRandomError(count=size)
    return size, None
