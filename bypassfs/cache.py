"""Content-addressable on-disk cache of rewritten sources.

Entries are keyed by the SHA-1 of the original bytes and written once.
Concurrent readers and writers (threads or processes sharing the cache
directory) coordinate through exclusive create and advisory flock()
locks held for the lifetime of each open file.
"""

from __future__ import annotations

import hashlib
import logging
import os
from typing import Callable

from .base import LOCK_EX, LOCK_SH
from .native import NativeProvider
from .rewriter import contains_keyword, rewrite

logger = logging.getLogger(__name__)


def cache_key(content: bytes) -> str:
    """Return the lowercase hex SHA-1 digest of content."""
    return hashlib.sha1(content).hexdigest()


class RewriteCache:
    """Flat directory of rewritten sources, one file per original content hash.

    Attributes:
        directory: Cache directory. It is not created automatically; when
            it is missing, lookups miss and stores are skipped.
    """

    def __init__(self, directory: str | os.PathLike[str]):
        self.directory = os.fspath(directory)

    def path_for(self, key: str) -> str:
        return os.path.join(self.directory, key)

    def load(self, key: str) -> bytes | None:
        """Return the cached rewrite for key, or None on any miss.

        Missing files, unreadable files and empty files all count as a miss.
        """
        provider = NativeProvider()
        if not provider.open(self.path_for(key), "rb"):
            return None
        try:
            # Blocks while a writer still holds LOCK_EX on a fresh entry
            provider.lock(LOCK_SH)
            data = provider.read_all()
        except OSError as e:
            logger.debug(f"Cache read failed for {key}: {e}")
            return None
        finally:
            provider.close()
        return data or None

    def store(self, key: str, data: bytes) -> bool:
        """Persist data under key unless an entry already exists.

        Returns:
            True if this call created the entry, False if another writer
            got there first or the directory is not writable.
        """
        path = self.path_for(key)
        provider = NativeProvider()
        if not provider.open(path, "xb"):
            return False
        try:
            provider.lock(LOCK_EX)
            provider.write(data)
            provider.flush()
        except OSError as e:
            # Readers blocked on LOCK_SH hold the same inode, so empty it
            # before unlinking; load() treats an empty entry as a miss
            logger.warning(f"Cache write failed for {key}, removing entry: {e}")
            provider.truncate(0)
            provider.unlink(path)
            return False
        finally:
            provider.close()
        return True


def cached_rewrite(
    content: bytes,
    cache_dir: str | os.PathLike[str] | None = None,
    rewrite_fn: Callable[[bytes], bytes] = rewrite,
) -> bytes:
    """Rewrite content, reusing a cached result when one exists.

    Args:
        content: Original source bytes.
        cache_dir: Cache directory, or None to rewrite without persistence.
        rewrite_fn: The rewrite to apply on a cache miss.

    Returns:
        The rewritten bytes. Content without any keyword substring is
        returned as is, without touching the cache.
    """
    if not contains_keyword(content):
        return content

    if cache_dir is None:
        return rewrite_fn(content)

    cache = RewriteCache(cache_dir)
    key = cache_key(content)

    cached = cache.load(key)
    if cached is not None:
        return cached

    rewritten = rewrite_fn(content)
    if cache.store(key, rewritten):
        logger.debug(f"Cached rewrite {key} in {cache.directory}")
    return rewritten
