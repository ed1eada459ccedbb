"""Registry mapping access schemes to provider factories."""

from __future__ import annotations

import threading

from .base import FileProvider, ProviderFactory


class ProviderRegistry:
    """Explicit table of provider factories, keyed by access scheme.

    A scheme names a family of paths (``"file"`` for local files). Each
    lookup builds a fresh provider, so providers may keep per-open state.
    """

    def __init__(self, factories: dict[str, ProviderFactory] | None = None) -> None:
        self._lock = threading.Lock()
        self._factories: dict[str, ProviderFactory] = dict(factories or {})

    def register(self, scheme: str, factory: ProviderFactory) -> None:
        """Register (or replace) the factory for a scheme."""
        with self._lock:
            self._factories[scheme] = factory

    def unregister(self, scheme: str) -> ProviderFactory | None:
        """Remove the factory for a scheme, returning it if one was set."""
        with self._lock:
            return self._factories.pop(scheme, None)

    def get(self, scheme: str) -> ProviderFactory | None:
        return self._factories.get(scheme)

    def create(self, scheme: str) -> FileProvider:
        """Build a provider for the scheme.

        Raises:
            KeyError: If no factory is registered for the scheme.
        """
        factory = self._factories.get(scheme)
        if factory is None:
            raise KeyError(f"No provider registered for scheme: {scheme!r}")
        return factory()

    def schemes(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, scheme: object) -> bool:
        return scheme in self._factories
