"""Configuration for keyword bypassing.

Provides the BypassConfig dataclass and the configure() factory used to
build one from keyword arguments.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable


def normalize_separators(path: str | os.PathLike[str]) -> str:
    """Return path as a string using ``/`` as the only separator."""
    return os.fspath(path).replace("\\", "/")


@dataclass(frozen=True)
class BypassConfig:
    """Immutable configuration held by a Bypass coordinator.

    Attributes:
        whitelist: Ordered glob patterns; a path is eligible if any matches.
            Defaults to a single pattern matching every path.
        cache_dir: Directory for rewritten sources. None disables caching.
        extension: Source file extension (without the dot) eligible for
            rewriting.
    """

    whitelist: tuple[str, ...] = ("*",)
    cache_dir: str | None = None
    extension: str = "php"

    def __post_init__(self) -> None:
        if isinstance(self.whitelist, str):
            raise ValueError("whitelist must be a sequence of patterns, not a string")
        # Frozen dataclass: normalized values are set through object.__setattr__
        object.__setattr__(
            self, "whitelist", tuple(normalize_separators(p) for p in self.whitelist)
        )
        if self.cache_dir is not None:
            object.__setattr__(self, "cache_dir", os.fspath(self.cache_dir))
        if not self.extension or self.extension.startswith("."):
            raise ValueError(f"Extension must be non-empty without a leading dot: {self.extension!r}")


def configure(
    whitelist: Iterable[str] | None = None,
    cache_dir: str | os.PathLike[str] | None = None,
    **kwargs,
) -> BypassConfig:
    """Build a BypassConfig.

    Args:
        whitelist: Glob patterns restricting which paths are rewritten.
            None keeps the match-all default.
        cache_dir: Directory for cached rewrites, or None to disable caching.
        **kwargs: Additional settings. Only ``extension`` is accepted.

    Returns:
        BypassConfig for a Bypass coordinator.

    Examples:
        >>> configure()
        BypassConfig(whitelist=('*',), cache_dir=None, extension='php')

        >>> configure(whitelist=["src\\\\*.php"], cache_dir="/tmp/cache")
        BypassConfig(whitelist=('src/*.php',), cache_dir='/tmp/cache', extension='php')
    """
    extension = kwargs.pop("extension", "php")
    if kwargs:
        raise ValueError(f"Unexpected arguments for bypass config: {list(kwargs.keys())}")

    return BypassConfig(
        whitelist=tuple(whitelist) if whitelist is not None else ("*",),
        cache_dir=os.fspath(cache_dir) if cache_dir is not None else None,
        extension=extension,
    )
