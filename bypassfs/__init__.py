"""bypassfs: Transparent removal of readonly/final from PHP sources on read."""

from .base import (
    LOCK_EX,
    LOCK_NB,
    LOCK_SH,
    LOCK_UN,
    REPORT_ERRORS,
    FileProvider,
    NotActivatedError,
)
from .bypass import Bypass, ProviderStream
from .cache import RewriteCache, cache_key, cached_rewrite
from .config import BypassConfig, configure
from .context import current_bypass, suspend
from .filter import is_eligible, path_matches_whitelist
from .intercept import InterceptingProvider
from .lexer import Token, TokenizeError, TokenKind, tokenize
from .native import NativeProvider
from .patching import get_current_bypass, install, patch
from .registry import ProviderRegistry
from .rewriter import contains_keyword, rewrite

__all__ = [
    "Bypass",
    "BypassConfig",
    "cache_key",
    "cached_rewrite",
    "configure",
    "contains_keyword",
    "current_bypass",
    "FileProvider",
    "get_current_bypass",
    "install",
    "InterceptingProvider",
    "is_eligible",
    "LOCK_EX",
    "LOCK_NB",
    "LOCK_SH",
    "LOCK_UN",
    "NativeProvider",
    "NotActivatedError",
    "patch",
    "path_matches_whitelist",
    "ProviderRegistry",
    "ProviderStream",
    "REPORT_ERRORS",
    "rewrite",
    "RewriteCache",
    "suspend",
    "Token",
    "TokenizeError",
    "TokenKind",
    "tokenize",
]
