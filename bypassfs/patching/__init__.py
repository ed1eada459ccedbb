"""builtins.open patching.

Provides context-aware patching of ``builtins.open`` so that binary reads
of eligible source files route through a Bypass coordinator while a
``patch()`` block is active. Uses contextvars for async-safe isolation
between concurrent tasks.

The patch is applied on the first patch() or install() call. The patched
function checks the context variable to decide whether to intercept.
"""

from .install import get_current_bypass, install, patch

__all__ = ["get_current_bypass", "install", "patch"]
