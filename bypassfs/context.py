"""Context variables for read interception.

Shared context variables used by the patching layer to decide whether an
``open()`` call is routed through a Bypass coordinator, and to prevent
recursion when providers perform their own I/O.
"""

import contextvars
from contextlib import contextmanager
from typing import Any, Iterator

# Context variable holding the active Bypass coordinator
current_bypass: contextvars.ContextVar[Any] = contextvars.ContextVar(
    "bypassfs_current_bypass", default=None
)


@contextmanager
def suspend() -> Iterator[None]:
    """Temporarily disable read interception in the current context.

    Use this around code that must see the original bytes of source files
    while a ``patch()`` block is active.
    """
    token = current_bypass.set(None)
    try:
        yield
    finally:
        current_bypass.reset(token)
