"""Base provider interface and shared constants.

Defines the capability set every file-access provider exposes
(NativeProvider, InterceptingProvider, or any custom backend registered
in a ProviderRegistry).
"""

from __future__ import annotations

import os
from typing import Any, Callable, Literal, Protocol, runtime_checkable

# Advisory lock operations, numerically identical to fcntl's.
LOCK_SH = 1
LOCK_EX = 2
LOCK_NB = 4
LOCK_UN = 8

# Open option: raise the underlying OSError instead of returning False.
REPORT_ERRORS = 8

CHUNK_SIZE = 8192


class NotActivatedError(RuntimeError):
    """Raised when a delegate is needed before Bypass.activate() was called."""


@runtime_checkable
class FileProvider(Protocol):
    """Capability set the interception layer dispatches to.

    Providers follow a permissive contract: failures are reported as
    ``False`` return values rather than exceptions, except when
    ``REPORT_ERRORS`` is passed to ``open()``.

    Providers may implement only part of this interface. The
    interception layer returns ``False`` for any operation the active
    handle does not implement.
    """

    context: Any

    def open(self, path: str, mode: str = "rb", options: int = 0) -> bool:
        """Open a file. Returns False on failure."""
        ...

    def read(self, size: int = CHUNK_SIZE) -> bytes:
        """Read up to size bytes."""
        ...

    def eof(self) -> bool:
        """Return True once a read has reached end of file."""
        ...

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> bool:
        """Move the read/write position."""
        ...

    def tell(self) -> int:
        """Return the current position."""
        ...

    def write(self, data: bytes) -> int:
        """Write data, returning the number of bytes written."""
        ...

    def lock(self, operation: int) -> bool:
        """Apply an advisory lock (LOCK_SH, LOCK_EX, LOCK_UN)."""
        ...

    def stat(self) -> os.stat_result | Literal[False]:
        """Stat the open handle."""
        ...

    def close(self) -> None:
        """Close the open handle."""
        ...

    def opendir(self, path: str, options: int = 0) -> bool:
        """Open a directory for reading entries."""
        ...

    def readdir(self) -> str | Literal[False]:
        """Return the next directory entry, or False when exhausted."""
        ...

    def closedir(self) -> bool:
        """Close the directory handle."""
        ...


ProviderFactory = Callable[[], FileProvider]
