"""Diagnostic logging subsystem for qrand.

Provides immutable per-acquisition records and a configurable logger that
supports none/summary/full verbosity and in-memory diagnostic mode.
"""

from qrand.logging.logger import AcquisitionLogger
from qrand.logging.types import AcquisitionRecord

__all__ = [
    "AcquisitionLogger",
    "AcquisitionRecord",
]
