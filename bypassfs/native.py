"""Provider backed by the real operating system."""

from __future__ import annotations

import logging
import os
import tempfile
from typing import IO, Any, Literal

from .base import CHUNK_SIZE, REPORT_ERRORS
from .patching.core import _originals

# fcntl is Posix only
try:
    import fcntl as _fcntl_mod

    _has_fcntl = True
except ImportError:
    _fcntl_mod = None  # type: ignore[assignment]
    _has_fcntl = False

logger = logging.getLogger(__name__)


def _binary_mode(mode: str) -> str:
    """Map an open mode onto its binary equivalent ("r" -> "rb", "w+" -> "w+b")."""
    mode = mode.replace("t", "")
    return mode if "b" in mode else mode + "b"


class NativeProvider:
    """FileProvider performing real I/O.

    Uses the ``open`` captured before any patching, so it keeps reading
    original bytes while ``bypassfs.patch()`` is active.

    Attributes:
        handle: The underlying binary file object, or None when closed.
        context: Opaque value passed through by the interception layer.
    """

    def __init__(self, context: Any = None) -> None:
        self.context = context
        self.handle: IO[bytes] | None = None
        self._eof = False
        self._entries: list[str] | None = None
        self._entry_pos = 0

    @classmethod
    def temporary(cls, context: Any = None) -> "NativeProvider":
        """Create a provider over an anonymous read/write temporary file."""
        provider = cls(context)
        provider.handle = tempfile.TemporaryFile()
        return provider

    # -------------------------------------------------------------------------
    # File handles
    # -------------------------------------------------------------------------

    def open(self, path: str | os.PathLike[str], mode: str = "rb", options: int = 0) -> bool:
        try:
            self.handle = _originals["open"](os.fspath(path), _binary_mode(mode))
        except OSError as e:
            if options & REPORT_ERRORS:
                raise
            logger.debug(f"Open failed for {path!r} ({mode}): {e}")
            return False
        self._eof = False
        return True

    def read(self, size: int = CHUNK_SIZE) -> bytes:
        data = self._require_handle().read(size)
        if len(data) < size:
            self._eof = True
        return data

    def read_all(self) -> bytes:
        """Read from the current position to end of file."""
        data = self._require_handle().read()
        self._eof = True
        return data

    def eof(self) -> bool:
        return self._eof

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> bool:
        try:
            self._require_handle().seek(offset, whence)
        except (OSError, ValueError):
            return False
        self._eof = False
        return True

    def tell(self) -> int:
        return self._require_handle().tell()

    def write(self, data: bytes) -> int:
        return self._require_handle().write(data)

    def flush(self) -> bool:
        self._require_handle().flush()
        return True

    def truncate(self, size: int) -> bool:
        try:
            self._require_handle().truncate(size)
        except OSError:
            return False
        return True

    def lock(self, operation: int) -> bool:
        """Apply an advisory flock(); returns False where unsupported."""
        if not _has_fcntl:
            return False
        try:
            _fcntl_mod.flock(self._require_handle().fileno(), operation)
        except OSError as e:
            logger.debug(f"flock({operation}) failed: {e}")
            return False
        return True

    def stat(self) -> os.stat_result | Literal[False]:
        try:
            return os.fstat(self._require_handle().fileno())
        except OSError:
            return False

    def close(self) -> None:
        # Closing the file releases any flock() held on it
        if self.handle is not None:
            self.handle.close()
            self.handle = None

    def _require_handle(self) -> IO[bytes]:
        if self.handle is None:
            raise ValueError("I/O operation on closed provider")
        return self.handle

    # -------------------------------------------------------------------------
    # Directories
    # -------------------------------------------------------------------------

    def opendir(self, path: str | os.PathLike[str], options: int = 0) -> bool:
        try:
            self._entries = sorted(os.listdir(os.fspath(path)))
        except OSError as e:
            if options & REPORT_ERRORS:
                raise
            logger.debug(f"Opendir failed for {path!r}: {e}")
            return False
        self._entry_pos = 0
        return True

    def readdir(self) -> str | Literal[False]:
        if self._entries is None or self._entry_pos >= len(self._entries):
            return False
        name = self._entries[self._entry_pos]
        self._entry_pos += 1
        return name

    def rewinddir(self) -> bool:
        if self._entries is None:
            return False
        self._entry_pos = 0
        return True

    def closedir(self) -> bool:
        if self._entries is None:
            return False
        self._entries = None
        return True

    # -------------------------------------------------------------------------
    # Path operations
    # -------------------------------------------------------------------------

    def url_stat(self, path: str | os.PathLike[str]) -> os.stat_result | Literal[False]:
        try:
            return os.stat(os.fspath(path))
        except OSError:
            return False

    def unlink(self, path: str | os.PathLike[str]) -> bool:
        try:
            os.unlink(os.fspath(path))
        except OSError:
            return False
        return True

    def rename(self, src: str | os.PathLike[str], dst: str | os.PathLike[str]) -> bool:
        try:
            os.rename(os.fspath(src), os.fspath(dst))
        except OSError:
            return False
        return True

    def mkdir(self, path: str | os.PathLike[str], mode: int = 0o777, recursive: bool = False) -> bool:
        try:
            if recursive:
                os.makedirs(os.fspath(path), mode)
            else:
                os.mkdir(os.fspath(path), mode)
        except OSError:
            return False
        return True

    def rmdir(self, path: str | os.PathLike[str]) -> bool:
        try:
            os.rmdir(os.fspath(path))
        except OSError:
            return False
        return True
