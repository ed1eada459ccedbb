"""Eligibility checks deciding which opens are rewritten."""

from __future__ import annotations

import fnmatch
import os
import posixpath
from typing import Sequence

from .config import BypassConfig, normalize_separators


def path_matches_whitelist(path: str | os.PathLike[str], whitelist: Sequence[str]) -> bool:
    """Return True if path matches any whitelist pattern.

    Patterns are tested in order with case-sensitive shell-style matching,
    where ``*`` also matches ``/``. Both sides use ``/`` separators.
    """
    path = normalize_separators(path)
    for pattern in whitelist:
        if fnmatch.fnmatchcase(path, normalize_separators(pattern)):
            return True
    return False


def has_extension(path: str | os.PathLike[str], extension: str) -> bool:
    """Return True if the final path component ends in ``.<extension>``."""
    name = posixpath.basename(normalize_separators(path))
    _, dot, ext = name.rpartition(".")
    return bool(dot) and ext == extension


def is_eligible(path: str | os.PathLike[str], mode: str, config: BypassConfig) -> bool:
    """Return True if an open of path with mode should be rewritten.

    Only exact binary reads (``"rb"``) qualify. Write, append, update and
    text modes always see the original content.
    """
    return (
        mode == "rb"
        and has_extension(path, config.extension)
        and path_matches_whitelist(path, config.whitelist)
    )
