"""Provider decorator that substitutes rewritten content on eligible reads."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, Literal

from .base import CHUNK_SIZE, FileProvider
from .native import NativeProvider

if TYPE_CHECKING:
    from .bypass import Bypass

logger = logging.getLogger(__name__)


class InterceptingProvider:
    """FileProvider wrapping the delegate recorded by a Bypass coordinator.

    Each instance serves one open file or directory. On an eligible
    binary read the whole file is buffered and rewritten; when the
    rewrite changes anything, the delegate handle is closed and replaced
    by a temporary handle over the rewritten bytes. All other operations
    are forwarded to whichever handle is active.

    Operations the active handle does not implement return False.
    """

    def __init__(self, bypass: "Bypass", context: Any = None):
        self.bypass = bypass
        self.context = context
        self._handle: FileProvider | None = None
        self.substituted = False

    @property
    def handle(self) -> FileProvider | None:
        """The active handle: the delegate, or the substituted temporary file."""
        return self._handle

    def _active(self) -> FileProvider:
        if self._handle is None:
            self._handle = self.bypass.create_delegate(self.context)
        return self._handle

    def _forward(self, method: str, *args: Any) -> Any:
        fn = getattr(self._active(), method, None)
        if fn is None:
            logger.debug(f"{type(self._handle).__name__} does not implement {method}()")
            return False
        return fn(*args)

    # -------------------------------------------------------------------------
    # Opening
    # -------------------------------------------------------------------------

    def open(self, path: str | os.PathLike[str], mode: str = "rb", options: int = 0) -> bool:
        """Open path through the delegate, rewriting eligible reads.

        A failed delegate open is returned (or raised) as is.
        """
        self._handle = self.bypass.create_delegate(self.context)
        self.substituted = False
        if not self._handle.open(path, mode, options):
            return False

        if not self.bypass.is_eligible(path, mode):
            return True

        chunks = []
        while not self._handle.eof():
            chunk = self._handle.read(CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
        content = b"".join(chunks)

        modified = self.bypass.cached_rewrite(content)

        if modified == content:
            self._handle.seek(0)
        else:
            logger.debug(f"Serving rewritten source for {os.fspath(path)!r}")
            self._handle.close()
            self._handle = NativeProvider.temporary(self.context)
            self._handle.write(modified)
            self._handle.seek(0)
            self.substituted = True
        return True

    def opendir(self, path: str | os.PathLike[str], options: int = 0) -> bool:
        # Directories are never rewritten
        self._handle = self.bypass.create_delegate(self.context)
        return self._forward("opendir", path, options)

    # -------------------------------------------------------------------------
    # Forwarded operations
    # -------------------------------------------------------------------------

    def read(self, size: int = CHUNK_SIZE) -> bytes | Literal[False]:
        return self._forward("read", size)

    def eof(self) -> bool:
        return self._forward("eof")

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> bool:
        return self._forward("seek", offset, whence)

    def tell(self) -> int | Literal[False]:
        return self._forward("tell")

    def write(self, data: bytes) -> int | Literal[False]:
        return self._forward("write", data)

    def flush(self) -> bool:
        return self._forward("flush")

    def truncate(self, size: int) -> bool:
        return self._forward("truncate", size)

    def lock(self, operation: int) -> bool:
        return self._forward("lock", operation)

    def stat(self) -> os.stat_result | Literal[False]:
        return self._forward("stat")

    def close(self) -> None:
        if self._handle is not None:
            self._forward("close")

    def readdir(self) -> str | Literal[False]:
        return self._forward("readdir")

    def rewinddir(self) -> bool:
        return self._forward("rewinddir")

    def closedir(self) -> bool:
        return self._forward("closedir")

    def url_stat(self, path: str | os.PathLike[str]) -> os.stat_result | Literal[False]:
        return self._forward("url_stat", path)

    def unlink(self, path: str | os.PathLike[str]) -> bool:
        return self._forward("unlink", path)

    def rename(self, src: str | os.PathLike[str], dst: str | os.PathLike[str]) -> bool:
        return self._forward("rename", src, dst)

    def mkdir(self, path: str | os.PathLike[str], mode: int = 0o777, recursive: bool = False) -> bool:
        return self._forward("mkdir", path, mode, recursive)

    def rmdir(self, path: str | os.PathLike[str]) -> bool:
        return self._forward("rmdir", path)
