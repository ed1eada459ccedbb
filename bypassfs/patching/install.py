"""Patch installation and context manager."""

import builtins
import io
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from ..context import current_bypass
from .core import _originals
from .patches import _bypass_open

_lock = threading.Lock()
_installed = False


def install() -> None:
    """Install the bypass-aware open() (idempotent, permanent).

    Safe to call multiple times; only the first call applies the patch.
    The patch is inert when no Bypass is active (current_bypass is None).
    """
    global _installed
    with _lock:
        if _installed:
            return
        _apply_patches()
        _installed = True


def _apply_patches() -> None:
    """Internal: apply all patches. Called once by install()."""
    builtins.open = _bypass_open  # type: ignore[assignment]
    io.open = _bypass_open  # type: ignore[assignment]
    # Note: _io.open is NOT patched. CPython uses it internally for
    # sys.stdout, TextIOWrapper and tempfile.

    # Copy metadata from the original so introspection still sees 'open'
    _bypass_open.__name__ = "open"
    _bypass_open.__doc__ = _originals["open"].__doc__


@contextmanager
def patch(bypass: Any) -> Iterator[None]:
    """Route binary reads of eligible files through the given Bypass.

    Calls install() automatically on first use. It is async-safe:
    concurrent async tasks each get their own context. The Bypass is
    activated if it was not already.

    Args:
        bypass: The Bypass coordinator to read through.

    Yields:
        None. ``open(path, "rb")`` on eligible paths returns rewritten source.

    Example:
        >>> with patch(bypass):
        ...     with open("src/Entity.php", "rb") as f:
        ...         source = f.read()
    """
    install()
    bypass.activate()

    token = current_bypass.set(bypass)
    try:
        yield
    finally:
        current_bypass.reset(token)


def get_current_bypass() -> Any | None:
    """Get the Bypass active for the current context.

    Returns:
        The current Bypass, or None if not in a patch() block.
    """
    return current_bypass.get()
