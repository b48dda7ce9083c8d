"""Diagnostic logger for acquisition events.

Uses the standard ``logging`` module with the ``"qrand"`` logger. No
``print()`` statements. Supports three verbosity levels and an in-memory
diagnostic mode for post-hoc analysis of how often the remote path degraded.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from qrand.config import QRandConfig
    from qrand.logging.types import AcquisitionRecord

logger = logging.getLogger("qrand")


class AcquisitionLogger:
    """Per-acquisition diagnostic logger.

    Log levels:
        ``"none"``: No output. Records are still stored if
        ``diagnostic_mode=True``.

        ``"summary"``: One line per acquisition with the byte split, batch
        count and status.

        ``"full"``: JSON dump of every record field.
    """

    def __init__(self, config: QRandConfig) -> None:
        self._log_level = config.log_level
        self._diagnostic_mode = config.diagnostic_mode
        self._records: list[AcquisitionRecord] = []

    def log_acquisition(self, record: AcquisitionRecord) -> None:
        """Log one acquisition.

        Args:
            record: Immutable record of the finished call.
        """
        if self._diagnostic_mode:
            self._records.append(record)

        if self._log_level == "none":
            return

        if self._log_level == "summary":
            logger.info(
                "acquired=%d remote=%d fallback=%d batches=%d status=%s%s time=%.2fms",
                record.requested,
                record.remote_bytes,
                record.fallback_bytes,
                record.batches,
                record.status,
                f" [{record.fallback_source}]" if record.fallback_bytes else "",
                record.elapsed_ms,
            )
        elif self._log_level == "full":
            logger.info("acquisition_record: %s", json.dumps(asdict(record), default=str))

    def get_diagnostic_data(self) -> list[AcquisitionRecord]:
        """Return all stored records (empty unless ``diagnostic_mode=True``)."""
        return list(self._records)

    def get_summary_stats(self) -> dict[str, Any]:
        """Aggregate statistics over stored records.

        Returns:
            Dictionary of aggregates, or an empty dict if nothing is stored.
        """
        if not self._records:
            return {}

        n = len(self._records)
        requested = sum(r.requested for r in self._records)
        remote = sum(r.remote_bytes for r in self._records)
        degraded = sum(1 for r in self._records if r.status == "degraded")
        failed = sum(1 for r in self._records if r.status == "failed")
        elapsed = [r.elapsed_ms for r in self._records]

        return {
            "total_acquisitions": n,
            "total_bytes_requested": requested,
            "remote_fraction": remote / requested if requested else 0.0,
            "degraded_count": degraded,
            "degraded_rate": degraded / n,
            "failed_count": failed,
            "mean_batches": sum(r.batches for r in self._records) / n,
            "mean_elapsed_ms": sum(elapsed) / n,
            "max_elapsed_ms": max(elapsed),
        }
