"""Lossless tokenizer for the subset of PHP needed to find keywords.

Every byte of the input ends up in exactly one lexeme, so joining the
text of all lexemes reproduces the source. Lexemes are either
classified ``Token`` values or raw single-character fragments (plain
``str``), mirroring how PHP reports punctuation.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Union


class TokenizeError(ValueError):
    """Raised when source cannot be tokenized (unterminated or unbalanced)."""

    def __init__(self, message: str, offset: int):
        super().__init__(f"{message} at offset {offset}")
        self.offset = offset


class TokenKind(enum.Enum):
    INLINE_HTML = "inline_html"
    OPEN_TAG = "open_tag"
    OPEN_TAG_WITH_ECHO = "open_tag_with_echo"
    CLOSE_TAG = "close_tag"
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    DOC_COMMENT = "doc_comment"
    ATTRIBUTE = "attribute"
    VARIABLE = "variable"
    NAME = "name"
    NAME_QUALIFIED = "name_qualified"
    NUMBER = "number"
    STRING_LITERAL = "string_literal"
    HEREDOC = "heredoc"
    OPERATOR = "operator"
    KEYWORD = "keyword"
    FINAL = "final"
    READONLY = "readonly"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str


Lexeme = Union[Token, str]

KEYWORDS = frozenset(
    """
    abstract and array as break callable case catch class clone const
    continue declare default die do echo else elseif empty enddeclare
    endfor endforeach endif endswitch endwhile enum eval exit extends
    final finally fn for foreach function global goto if implements
    include include_once instanceof insteadof interface isset list match
    namespace new or print private protected public readonly require
    require_once return static switch throw trait try unset use var
    while xor yield
    """.split()
)

_SPECIAL_KEYWORDS = {"final": TokenKind.FINAL, "readonly": TokenKind.READONLY}

# Previous significant lexemes after which a keyword is just a name
_NAME_CONTEXT = frozenset({"->", "?->", "::", "function", "const", "case"})

_LABEL = r"[A-Za-z_\x80-\xff][A-Za-z0-9_\x80-\xff]*"

_OPEN_TAG_RE = re.compile(r"<\?php(?:[ \t]|\r\n|\r|\n|$)|<\?=", re.IGNORECASE)

_OPERATORS = (
    "<<=", ">>=", "**=", "...", "<=>", "===", "!==", "??=", "?->",
    "->", "=>", "::", "++", "--", "==", "!=", "<>", "<=", ">=", "&&",
    "||", "??", "+=", "-=", "*=", "/=", ".=", "%=", "&=", "|=", "^=",
    "<<", ">>", "**",
)

_PHP_RE = re.compile(
    r"""
    (?P<whitespace>[ \t\r\n]+)
    | (?P<close_tag>\?>(?:\r\n|\n)?)
    | (?P<block_comment>/\*)
    | (?P<line_comment>(?://|\#(?!\[))[^\r\n?]*(?:\?(?!>)[^\r\n?]*)*)
    | (?P<attribute>\#\[)
    | (?P<heredoc><<<[ \t]*(?P<quote>["']?)(?P<label>"""
    + _LABEL
    + r""")(?P=quote)(?:\r\n|\n|\r))
    | (?P<variable>\$"""
    + _LABEL
    + r""")
    | (?P<name>\\?"""
    + _LABEL
    + r"""(?:\\"""
    + _LABEL
    + r""")*)
    | (?P<number>0[xX][0-9a-fA-F_]+|0[bB][01_]+|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?)
    | (?P<single_quoted>')
    | (?P<double_quoted>["`])
    | (?P<operator>"""
    + "|".join(re.escape(op) for op in _OPERATORS)
    + r""")
    """,
    re.VERBOSE,
)

_SINGLE_QUOTED_RE = re.compile(r"'[^'\\]*(?:\\.[^'\\]*)*'", re.DOTALL)

_FOLLOWER_RE = re.compile(r"[ \t\r\n]*(::|:|\()")

_CLOSERS = {")": "(", "]": "[", "}": "{"}


def _scan_single_quoted(text: str, pos: int) -> int:
    match = _SINGLE_QUOTED_RE.match(text, pos)
    if match is None:
        raise TokenizeError("Unterminated single-quoted string", pos)
    return match.end()


def _scan_braced(text: str, pos: int) -> int:
    """Skip an interpolation expression; pos is just after its opening brace."""
    depth = 1
    i = pos
    n = len(text)
    while i < n:
        c = text[i]
        if c == "'":
            i = _scan_single_quoted(text, i)
            continue
        if c == '"':
            i = _scan_quoted(text, i, '"')
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    raise TokenizeError("Unterminated interpolation", pos)


def _scan_interpolated(text: str, i: int) -> int:
    """Skip an interpolation starting at i, if any; return the new index."""
    if text.startswith("{$", i):
        return _scan_braced(text, i + 1)
    if text.startswith("${", i):
        return _scan_braced(text, i + 2)
    return i


def _scan_quoted(text: str, pos: int, quote: str) -> int:
    """Return the index just past the double-quoted/backtick string at pos."""
    i = pos + 1
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == quote:
            return i + 1
        skipped = _scan_interpolated(text, i)
        i = skipped if skipped != i else i + 1
    raise TokenizeError("Unterminated string", pos)


def _scan_heredoc(text: str, body_start: int, label: str, nowdoc: bool, pos: int) -> int:
    """Return the index just past the closing marker of a heredoc/nowdoc."""
    closing = re.compile(
        r"^[ \t]*" + re.escape(label) + r"(?![A-Za-z0-9_\x80-\xff])", re.MULTILINE
    )
    i = body_start
    while True:
        match = closing.search(text, i)
        if match is None:
            raise TokenizeError(f"Unterminated heredoc {label!r}", pos)
        if nowdoc:
            return match.end()
        # Interpolations may span lines; make sure the marker is not inside one
        j = i
        while j < match.start():
            if text[j] == "\\":
                j += 2
                continue
            skipped = _scan_interpolated(text, j)
            j = skipped if skipped != j else j + 1
        if j <= match.start():
            return match.end()
        i = j


def _classify_name(text: str, source: str, end: int, previous: list[str]) -> TokenKind:
    if "\\" in text:
        return TokenKind.NAME_QUALIFIED
    lowered = text.lower()
    if lowered not in KEYWORDS:
        return TokenKind.NAME
    # Member names, method names and class constants may reuse keywords
    if previous and previous[-1] in _NAME_CONTEXT:
        return TokenKind.NAME
    if len(previous) >= 2 and previous[-1] == "&" and previous[-2] == "function":
        return TokenKind.NAME
    match = _FOLLOWER_RE.match(source, end)
    follower = match.group(1) if match else ""
    # Named arguments (``foo(final: 1)``)
    if follower == ":":
        return TokenKind.NAME
    # readonly() is a legal function name
    if lowered == "readonly" and follower == "(":
        return TokenKind.NAME
    return _SPECIAL_KEYWORDS.get(lowered, TokenKind.KEYWORD)


def tokenize(source: str) -> list[Lexeme]:
    """Split PHP source into lexemes.

    Args:
        source: Complete source text. Decode bytes as latin-1 to keep the
            round trip lossless.

    Returns:
        Lexemes in source order; ``"".join`` of their text equals source.

    Raises:
        TokenizeError: On unterminated comments, strings or heredocs,
            unbalanced brackets, or PHP code ending mid-statement.
    """
    lexemes: list[Lexeme] = []
    significant: list[str] = []
    brackets: list[tuple[str, int]] = []
    pos = 0
    n = len(source)
    in_php = False
    halted = False

    def emit(kind: TokenKind, text: str) -> None:
        lexemes.append(Token(kind, text))

    while pos < n:
        if not in_php:
            match = _OPEN_TAG_RE.search(source, pos)
            if match is None:
                emit(TokenKind.INLINE_HTML, source[pos:])
                break
            if match.start() > pos:
                emit(TokenKind.INLINE_HTML, source[pos:match.start()])
            tag = match.group()
            kind = TokenKind.OPEN_TAG_WITH_ECHO if tag == "<?=" else TokenKind.OPEN_TAG
            emit(kind, tag)
            significant.append(tag)
            pos = match.end()
            in_php = True
            continue

        match = _PHP_RE.match(source, pos)
        group = match.lastgroup if match is not None else None

        if group is None:
            char = source[pos]
            if char in "([{":
                brackets.append((char, pos))
            elif char in _CLOSERS:
                if not brackets or brackets[-1][0] != _CLOSERS[char]:
                    raise TokenizeError(f"Unbalanced {char!r}", pos)
                brackets.pop()
            lexemes.append(char)
            significant.append(char)
            pos += 1
            if halted and char == ";":
                if pos < n:
                    emit(TokenKind.INLINE_HTML, source[pos:])
                return lexemes
            continue

        text = match.group()
        end = match.end()

        if group == "whitespace":
            emit(TokenKind.WHITESPACE, text)
        elif group == "close_tag":
            emit(TokenKind.CLOSE_TAG, text)
            significant.append("?>")
            in_php = False
            if halted:
                if end < n:
                    emit(TokenKind.INLINE_HTML, source[end:])
                return lexemes
        elif group == "block_comment":
            close = source.find("*/", pos + 2)
            if close == -1:
                raise TokenizeError("Unterminated comment", pos)
            end = close + 2
            text = source[pos:end]
            is_doc = len(text) > 4 and text[2] == "*" and text[3] in " \t\r\n"
            emit(TokenKind.DOC_COMMENT if is_doc else TokenKind.COMMENT, text)
        elif group == "line_comment":
            emit(TokenKind.COMMENT, text)
        elif group == "attribute":
            brackets.append(("[", pos))
            emit(TokenKind.ATTRIBUTE, text)
            significant.append(text)
        elif group == "heredoc":
            end = _scan_heredoc(
                source, end, match.group("label"), match.group("quote") == "'", pos
            )
            emit(TokenKind.HEREDOC, source[pos:end])
            significant.append("<<<")
        elif group == "variable":
            emit(TokenKind.VARIABLE, text)
            significant.append(text)
        elif group == "name":
            kind = _classify_name(text, source, end, significant)
            emit(kind, text)
            significant.append(text.lower())
            if text.lower() == "__halt_compiler":
                halted = True
        elif group == "number":
            emit(TokenKind.NUMBER, text)
            significant.append(text)
        elif group == "single_quoted":
            end = _scan_single_quoted(source, pos)
            emit(TokenKind.STRING_LITERAL, source[pos:end])
            significant.append("''")
        elif group == "double_quoted":
            end = _scan_quoted(source, pos, text)
            emit(TokenKind.STRING_LITERAL, source[pos:end])
            significant.append('""')
        else:
            emit(TokenKind.OPERATOR, text)
            significant.append(text)
        pos = end

    if brackets:
        char, offset = brackets[-1]
        raise TokenizeError(f"Unclosed {char!r}", offset)
    if in_php and _ends_mid_statement(lexemes):
        raise TokenizeError("Unexpected end of file", n)
    return lexemes


def _ends_mid_statement(lexemes: list[Lexeme]) -> bool:
    """Return True if the trailing PHP code is an unfinished statement."""
    for lexeme in reversed(lexemes):
        if isinstance(lexeme, str):
            return lexeme not in (";", "}")
        if lexeme.kind in (TokenKind.WHITESPACE, TokenKind.COMMENT, TokenKind.DOC_COMMENT):
            continue
        return lexeme.kind not in (TokenKind.OPEN_TAG, TokenKind.OPEN_TAG_WITH_ECHO)
    return False


def untokenize(lexemes: list[Lexeme]) -> str:
    """Join lexemes back into source text."""
    return "".join(lexeme if isinstance(lexeme, str) else lexeme.text for lexeme in lexemes)
