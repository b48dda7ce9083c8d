"""Local fallback entropy sources for qrand.

Re-exports the ABC, registry, and all built-in source implementations::

    from qrand.entropy import EntropySource, EntropySourceRegistry
    from qrand.entropy import SystemEntropySource, MockEntropySource
"""

from qrand.entropy.base import EntropySource
from qrand.entropy.mock import MockEntropySource
from qrand.entropy.registry import EntropySourceRegistry, register_entropy_source
from qrand.entropy.system import SystemEntropySource

__all__ = [
    "EntropySource",
    "EntropySourceRegistry",
    "MockEntropySource",
    "SystemEntropySource",
    "register_entropy_source",
]
