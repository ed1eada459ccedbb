"""Removal of ``readonly`` and ``final`` keywords from PHP source."""

from __future__ import annotations

import logging

from .lexer import Token, TokenizeError, TokenKind, tokenize, untokenize

logger = logging.getLogger(__name__)

KEYWORDS: tuple[bytes, ...] = (b"readonly", b"final")

_DROPPED_KINDS = frozenset({TokenKind.FINAL, TokenKind.READONLY})


def contains_keyword(source: bytes) -> bool:
    """Case-insensitive substring check for any removable keyword.

    A keyword token cannot exist unless its text appears somewhere in the
    source, so a False result means rewrite() would return source as is.
    """
    lowered = source.lower()
    return any(keyword in lowered for keyword in KEYWORDS)


def rewrite(source: bytes) -> bytes:
    """Return source with every ``readonly`` and ``final`` keyword token removed.

    Everything else (whitespace, comments, strings, identifiers that
    merely contain the keyword text) is kept byte for byte and in order.
    Source that cannot be tokenized is returned unchanged.
    """
    if not contains_keyword(source):
        return source

    # latin-1 maps every byte to one code point, so the round trip is exact
    text = source.decode("latin-1")
    try:
        lexemes = tokenize(text)
    except TokenizeError as e:
        logger.debug(f"Leaving source unchanged, tokenization failed: {e}")
        return source

    kept = [
        lexeme
        for lexeme in lexemes
        if not (isinstance(lexeme, Token) and lexeme.kind in _DROPPED_KINDS)
    ]
    return untokenize(kept).encode("latin-1")
