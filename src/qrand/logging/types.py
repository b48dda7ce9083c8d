"""Data types for the diagnostic logging subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AcquisitionRecord:
    """Immutable record of a single acquisition.

    Attributes:
        timestamp_ns: Wall-clock time the acquisition started (ns since epoch).
        requested: Number of bytes the caller asked for.
        remote_bytes: Bytes in the result that came from the remote service.
        fallback_bytes: Bytes in the result that came from the fallback source.
        batches: Remote batches successfully consumed.
        status: Outcome status value (``'success'``, ``'degraded'``, ``'failed'``).
        elapsed_ms: Total wall time of the call in milliseconds.
        fallback_source: Name of the configured fallback source.
        error: Text of the error that degraded or failed the call, if any.
    """

    timestamp_ns: int
    requested: int
    remote_bytes: int
    fallback_bytes: int
    batches: int
    status: str
    elapsed_ms: float
    fallback_source: str
    error: str | None = None
