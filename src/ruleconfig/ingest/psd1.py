"""PowerShell data-file (.psd1) parser.

Handles the literal subset settings documents are written in: hashtables,
arrays, comma lists, quoted strings, numbers, ``$true``/``$false``/``$null``
and comments. Produces plain ``dict``/``list``/scalar values.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from ruleconfig.errors import ParseError

logger = logging.getLogger(__name__)

_TOKEN_SPEC = [
    ("BLOCK_COMMENT", r"<#.*?#>"),
    ("LINE_COMMENT", r"#[^\r\n]*"),
    ("CONTINUATION", r"`\r?\n"),
    ("NEWLINE", r"\r?\n"),
    ("SPACE", r"[ \t\f\v]+"),
    ("HASH_OPEN", r"@\{"),
    ("ARRAY_OPEN", r"@\("),
    ("RBRACE", r"\}"),
    ("RPAREN", r"\)"),
    ("EQUALS", r"="),
    ("SEMI", r";"),
    ("COMMA", r","),
    ("SQ_STRING", r"'(?:[^']|'')*'"),
    ("DQ_STRING", r'"(?:[^"`]|`.|"")*"'),
    ("NUMBER", r"[+-]?(?:0[xX][0-9a-fA-F]+|\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)(?![\w.])"),
    ("VARIABLE", r"\$\w+"),
    ("BAREWORD", r"[A-Za-z_][\w.-]*"),
]

_TOKEN_RE = re.compile(
    "|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC),
    re.DOTALL,
)

_SKIP = {"BLOCK_COMMENT", "LINE_COMMENT", "CONTINUATION", "SPACE"}

_BACKTICK_ESCAPES = {
    "0": "\0", "a": "\a", "b": "\b", "f": "\f", "n": "\n",
    "r": "\r", "t": "\t", "v": "\v",
}

_CONSTANTS = {"$true": True, "$false": False, "$null": None}


@dataclass
class Token:
    kind: str
    text: str
    line: int
    column: int


def tokenize(text: str) -> list[Token]:
    """Split ``text`` into tokens, dropping whitespace and comments."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    line_start = 0

    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise ParseError(f"Unexpected character {text[pos]!r}",
                             line, pos - line_start + 1)
        kind = m.lastgroup
        chunk = m.group()
        if kind not in _SKIP:
            tokens.append(Token(kind, chunk, line, pos - line_start + 1))

        newlines = chunk.count("\n")
        if newlines:
            line += newlines
            line_start = m.start() + chunk.rfind("\n") + 1
        pos = m.end()

    tokens.append(Token("EOF", "", line, pos - line_start + 1))
    return tokens


def _unquote(token: Token) -> str:
    body = token.text[1:-1]
    if token.kind == "SQ_STRING":
        return body.replace("''", "'")

    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "`" and i + 1 < len(body):
            nxt = body[i + 1]
            out.append(_BACKTICK_ESCAPES.get(nxt, nxt))
            i += 2
        elif ch == '"' and body[i + 1:i + 2] == '"':
            out.append('"')
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _number(token: Token) -> int | float:
    text = token.text
    sign = -1 if text.startswith("-") else 1
    digits = text.lstrip("+-")
    if digits[:2].lower() == "0x":
        return sign * int(digits, 16)
    if re.fullmatch(r"\d+", digits):
        return sign * int(digits)
    return sign * float(digits)


class Psd1Parser:
    """Recursive-descent parser over the token stream of one document."""

    def __init__(self, text: str) -> None:
        self._tokens = tokenize(text)
        self._pos = 0
        logger.debug("Tokenized data file into %d tokens", len(self._tokens))

    def parse(self) -> Any:
        self._skip("NEWLINE", "SEMI")
        value = self._value()
        self._skip("NEWLINE", "SEMI")
        if self._peek().kind != "EOF":
            self._fail(self._peek(), "Unexpected trailing content")
        return value

    # -- token helpers -----------------------------------------------------

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _next(self) -> Token:
        token = self._tokens[self._pos]
        if token.kind != "EOF":
            self._pos += 1
        return token

    def _skip(self, *kinds: str) -> int:
        skipped = 0
        while self._peek().kind in kinds:
            self._next()
            skipped += 1
        return skipped

    def _expect(self, kind: str, what: str) -> Token:
        token = self._next()
        if token.kind != kind:
            self._fail(token, f"Expected {what}")
        return token

    @staticmethod
    def _fail(token: Token, message: str) -> None:
        found = "end of input" if token.kind == "EOF" else repr(token.text)
        raise ParseError(f"{message}, found {found}", token.line, token.column)

    # -- grammar -----------------------------------------------------------

    def _value(self) -> Any:
        """A single element, or a bare comma list of elements."""
        items = self._comma_list()
        return items[0] if len(items) == 1 else items

    def _comma_list(self) -> list[Any]:
        items = [self._element()]
        while self._peek().kind == "COMMA":
            self._next()
            self._skip("NEWLINE")
            items.append(self._element())
        return items

    def _element(self) -> Any:
        token = self._next()
        if token.kind == "HASH_OPEN":
            return self._hashtable(token)
        if token.kind == "ARRAY_OPEN":
            return self._array()
        if token.kind in ("SQ_STRING", "DQ_STRING"):
            return _unquote(token)
        if token.kind == "NUMBER":
            return _number(token)
        if token.kind == "VARIABLE":
            name = token.text.lower()
            if name not in _CONSTANTS:
                raise ParseError(f"Variable {token.text} is not allowed in a data file",
                                 token.line, token.column)
            return _CONSTANTS[name]
        self._fail(token, "Expected a value")

    def _hashtable(self, opener: Token) -> dict[str, Any]:
        table: dict[str, Any] = {}
        seen: dict[str, str] = {}

        self._skip("NEWLINE", "SEMI")
        while self._peek().kind != "RBRACE":
            if self._peek().kind == "EOF":
                raise ParseError("Unterminated hashtable opened here",
                                 opener.line, opener.column)
            key_token = self._next()
            if key_token.kind == "BAREWORD" or key_token.kind == "NUMBER":
                key = key_token.text
            elif key_token.kind in ("SQ_STRING", "DQ_STRING"):
                key = _unquote(key_token)
            else:
                self._fail(key_token, "Expected a hashtable key")

            folded = key.lower()
            if folded in seen:
                raise ParseError(f"Duplicate key {key!r} in hashtable",
                                 key_token.line, key_token.column)
            seen[folded] = key

            self._expect("EQUALS", "'=' after hashtable key")
            self._skip("NEWLINE")
            table[key] = self._value()

            if self._peek().kind == "RBRACE":
                break
            if not self._skip("NEWLINE", "SEMI"):
                self._fail(self._peek(), "Expected ';' or newline between entries")

        self._next()
        return table

    def _array(self) -> list[Any]:
        items: list[Any] = []
        self._skip("NEWLINE", "SEMI")
        while self._peek().kind != "RPAREN":
            if self._peek().kind == "EOF":
                self._fail(self._peek(), "Expected ')' to close array")
            items.extend(self._comma_list())
            if self._peek().kind == "RPAREN":
                break
            if not self._skip("NEWLINE", "SEMI"):
                self._fail(self._peek(), "Expected ',' ';' or newline between array items")
        self._next()
        return items


def parse_psd1(text: str) -> Any:
    """Parse PowerShell data-file text into Python values."""
    return Psd1Parser(text).parse()
