"""Bypass-aware wrapper for builtins.open."""

from pathlib import Path
from typing import Any

from ..context import current_bypass
from .core import _in_bypass_operation, _mode_of, _originals


def _bypass_open(file: Any, *args: Any, **kwargs: Any) -> Any:
    """Bypass-aware open() replacement.

    Only exact binary reads of eligible paths are routed through the
    active Bypass; every other call goes to the original open().
    """
    bypass = current_bypass.get()

    # Recursion guard: providers reading files use the original open
    if bypass is None or _in_bypass_operation.get():
        return _originals["open"](file, *args, **kwargs)

    mode = _mode_of(args, kwargs)
    if not isinstance(file, (str, Path)) or not bypass.is_eligible(file, mode):
        return _originals["open"](file, *args, **kwargs)

    # Only buffering is meaningful for a binary read; opener, closefd and
    # friends need a real file descriptor
    extra = set(kwargs) - {"mode", "buffering"}
    if extra or len(args) > 2:
        return _originals["open"](file, *args, **kwargs)
    buffering = args[1] if len(args) > 1 else kwargs.get("buffering", -1)

    token = _in_bypass_operation.set(True)
    try:
        return bypass.open_stream(file, buffering)
    finally:
        _in_bypass_operation.reset(token)
