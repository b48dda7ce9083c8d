"""Registry of local fallback sources, keyed by name.

Built-in sources register themselves at import time with
``@register_entropy_source``. Sources shipped by other packages are found
through the ``qrand.fallback_sources`` entry-point group, which is scanned
once, the first time a name is not found among the built-ins.
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING, Any, ClassVar

from qrand.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from qrand.entropy.base import EntropySource

logger = logging.getLogger("qrand")

_ENTRY_POINT_GROUP = "qrand.fallback_sources"


class EntropySourceRegistry:
    """Name -> class mapping for fallback sources.

    Lookup order: decorator registrations first, then entry points. A
    decorator registration always wins over an entry point of the same name.
    """

    _registry: ClassVar[dict[str, type[EntropySource]]] = {}
    _entry_points_loaded: ClassVar[bool] = False

    @classmethod
    def register(cls, name: str) -> Callable[[type[EntropySource]], type[EntropySource]]:
        """Class decorator registering a source under *name*.

        Example::

            @EntropySourceRegistry.register("hwrng")
            class HardwareSource(EntropySource):
                ...
        """

        def decorator(source_cls: type[EntropySource]) -> type[EntropySource]:
            cls._registry[name] = source_cls
            return source_cls

        return decorator

    @classmethod
    def get(cls, name: str) -> type[EntropySource]:
        """Return the class registered as *name*.

        Raises:
            KeyError: If *name* is unknown even after loading entry points.
        """
        if name not in cls._registry and not cls._entry_points_loaded:
            cls._load_entry_points()
        try:
            return cls._registry[name]
        except KeyError:
            available = ", ".join(sorted(cls._registry)) or "(none)"
            raise KeyError(f"Unknown fallback source: {name!r}. Available: {available}") from None

    @classmethod
    def create(cls, name: str, **kwargs: Any) -> EntropySource:
        """Instantiate the source registered as *name*.

        Args:
            name: Registered source name, usually ``config.fallback_source``.
            **kwargs: Passed to the source constructor.

        Raises:
            ConfigValidationError: If *name* is not registered.
        """
        try:
            source_cls = cls.get(name)
        except KeyError as exc:
            raise ConfigValidationError(str(exc.args[0])) from exc
        return source_cls(**kwargs)

    @classmethod
    def list_available(cls) -> list[str]:
        """Sorted names of all known sources, entry points included."""
        if not cls._entry_points_loaded:
            cls._load_entry_points()
        return sorted(cls._registry)

    @classmethod
    def _load_entry_points(cls) -> None:
        """Register every source advertised in the entry-point group.

        A broken entry point is logged and skipped; it does not stop the
        others from loading.
        """
        cls._entry_points_loaded = True
        try:
            eps = importlib.metadata.entry_points(group=_ENTRY_POINT_GROUP)
        except Exception:  # Intentional: must not crash on broken metadata
            logger.warning("Failed to read entry points for %s", _ENTRY_POINT_GROUP, exc_info=True)
            return

        for ep in eps:
            if ep.name in cls._registry:
                continue
            try:
                cls._registry[ep.name] = ep.load()
            except Exception:  # Intentional: one bad plugin must not block others
                logger.warning(
                    "Failed to load fallback source %r from %s",
                    ep.name,
                    ep.value,
                    exc_info=True,
                )
                continue
            logger.debug("Loaded fallback source %r from entry point", ep.name)

    @classmethod
    def _reset(cls) -> None:
        """Reset registry state. Test-only."""
        cls._registry.clear()
        cls._entry_points_loaded = False


register_entropy_source = EntropySourceRegistry.register
