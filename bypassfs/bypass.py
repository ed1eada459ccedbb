"""Coordinator holding configuration, registry and delegate for interception."""

from __future__ import annotations

import dataclasses
import errno
import io
import logging
import os
from functools import partial
from typing import Any, Iterable

from .base import REPORT_ERRORS, FileProvider, NotActivatedError, ProviderFactory
from .cache import cached_rewrite
from .config import BypassConfig
from .filter import is_eligible
from .intercept import InterceptingProvider
from .native import NativeProvider
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


class ProviderStream(io.RawIOBase):
    """Read-only raw stream over an opened provider."""

    def __init__(self, provider: FileProvider, name: str):
        self._provider = provider
        self.name = name

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        data = self._provider.read(len(buffer))
        if data is False:
            raise io.UnsupportedOperation("read")
        size = len(data)
        buffer[:size] = data
        return size

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        if not self._provider.seek(offset, whence):
            raise OSError(errno.EINVAL, "Invalid seek", self.name)
        return self.tell()

    def tell(self) -> int:
        position = self._provider.tell()
        if position is False:
            raise io.UnsupportedOperation("tell")
        return position

    def close(self) -> None:
        if not self.closed:
            self._provider.close()
        super().close()


def _owner(factory: ProviderFactory | None) -> "Bypass | None":
    """Return the coordinator whose interceptor factory this is, if any."""
    if isinstance(factory, partial) and factory.func is InterceptingProvider:
        return factory.args[0]
    return None


class Bypass:
    """Removes ``readonly``/``final`` from PHP sources read through a registry.

    A Bypass owns an immutable BypassConfig and, once activated, the
    factory of the provider it displaced (the delegate). Activation
    installs an InterceptingProvider factory for ``scheme`` in the
    registry; every provider the registry creates for that scheme then
    routes through this coordinator.

    Configuration setters are not synchronized; set them before sharing
    the coordinator between threads.

    Example:
        >>> bypass = Bypass()
        >>> bypass.set_cache_directory("/tmp/bypass-cache")
        >>> bypass.activate()
        >>> with bypass.open_stream("src/Entity.php") as f:
        ...     source = f.read()
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        config: BypassConfig | None = None,
        scheme: str = "file",
    ):
        self.registry = registry if registry is not None else ProviderRegistry()
        self.config = config if config is not None else BypassConfig()
        self.scheme = scheme
        self._delegate_factory: ProviderFactory | None = None

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def set_whitelist(self, patterns: Iterable[str]) -> None:
        """Restrict rewriting to paths matching any of the glob patterns."""
        self.config = dataclasses.replace(self.config, whitelist=tuple(patterns))

    def set_cache_directory(self, directory: str | os.PathLike[str] | None) -> None:
        """Cache rewritten sources in directory, or disable caching with None."""
        self.config = dataclasses.replace(
            self.config,
            cache_dir=os.fspath(directory) if directory is not None else None,
        )

    # -------------------------------------------------------------------------
    # Activation
    # -------------------------------------------------------------------------

    def activate(self) -> None:
        """Install interception for the scheme (idempotent).

        The factory currently registered for the scheme becomes the
        delegate; NativeProvider is used when nothing is registered.
        """
        if self._delegate_factory is not None:
            return

        current = self.registry.get(self.scheme)
        self._delegate_factory = current if current is not None else NativeProvider
        self.registry.register(self.scheme, partial(InterceptingProvider, self))
        logger.debug(
            f"Interception active for {self.scheme!r}, delegating to "
            f"{getattr(self._delegate_factory, '__name__', self._delegate_factory)!r}"
        )

    def deactivate(self) -> None:
        """Remove this coordinator from the scheme's chain of providers.

        When another coordinator was layered on top, it is relinked to
        this coordinator's delegate and stays registered.
        """
        if self._delegate_factory is None:
            return
        current = self.registry.get(self.scheme)
        if _owner(current) is self:
            self.registry.register(self.scheme, self._delegate_factory)
        else:
            upper = _owner(current)
            while upper is not None and _owner(upper._delegate_factory) is not self:
                upper = _owner(upper._delegate_factory)
            if upper is not None:
                upper._delegate_factory = self._delegate_factory
        self._delegate_factory = None

    @property
    def active(self) -> bool:
        return self._delegate_factory is not None

    @property
    def delegate_factory(self) -> ProviderFactory:
        """The factory for the provider being wrapped.

        Raises:
            NotActivatedError: If activate() has not been called.
        """
        if self._delegate_factory is None:
            raise NotActivatedError("Did you forget to call activate()?")
        return self._delegate_factory

    def create_delegate(self, context: Any = None) -> FileProvider:
        """Build a fresh delegate provider carrying context."""
        provider = self.delegate_factory()
        provider.context = context
        return provider

    # -------------------------------------------------------------------------
    # Rewriting
    # -------------------------------------------------------------------------

    def is_eligible(self, path: str | os.PathLike[str], mode: str) -> bool:
        return is_eligible(path, mode, self.config)

    def cached_rewrite(self, content: bytes) -> bytes:
        return cached_rewrite(content, self.config.cache_dir)

    def open_stream(self, path: str | os.PathLike[str], buffering: int = -1) -> Any:
        """Open path for binary reading through the registry.

        Args:
            path: File to open.
            buffering: 0 for an unbuffered raw stream, otherwise a
                buffered reader is returned.

        Raises:
            OSError: If the file cannot be opened.
        """
        provider = self.registry.create(self.scheme)
        if not provider.open(path, "rb", REPORT_ERRORS):
            raise FileNotFoundError(
                errno.ENOENT, "No such file or directory", os.fspath(path)
            )
        raw = ProviderStream(provider, os.fspath(path))
        if buffering == 0:
            return raw
        if buffering > 1:
            return io.BufferedReader(raw, buffering)
        return io.BufferedReader(raw)
