"""Patching infrastructure: originals and recursion guard."""

import builtins
import io
from contextvars import ContextVar
from typing import Any

# Store original implementations once at import
_originals: dict[str, Any] = {
    "open": builtins.open,
    "io_open": io.open,
}

# Recursion guard - providers and the cache perform their own reads, which
# must never be intercepted again
_in_bypass_operation: ContextVar[bool] = ContextVar(
    "in_bypass_operation", default=False
)


def _mode_of(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    """Extract the mode argument of an open() call."""
    return args[0] if args else kwargs.get("mode", "r")
