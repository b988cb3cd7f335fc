from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Literal

from plotspec.errors import ExpressionSyntaxError, IllegalCharacterError, InvalidExpressionError


MAX_EXPRESSION_LENGTH = 1024

TokenKind = Literal["NUMBER", "IDENT", "OP", "LPAREN", "RPAREN", "COMMA", "EOF"]

_ALLOWED_CHARS = re.compile(r"[0-9a-zA-Z\s+\-*/^().,_]", re.ASCII)
_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<op>[+\-*/^])
    |(?P<lparen>\()
    |(?P<rparen>\))
    |(?P<comma>,)
    """,
    re.VERBOSE | re.ASCII,
)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int
    value: float | None = None


def check_expression_text(expr: object, *, max_length: int = MAX_EXPRESSION_LENGTH) -> str:
    if not isinstance(expr, str):
        raise InvalidExpressionError(f"expression must be a string, got {type(expr).__name__}")
    text = expr.strip()
    if not text:
        raise InvalidExpressionError("expression is empty")
    if len(text) > max_length:
        raise InvalidExpressionError(f"expression is longer than {max_length} characters")
    # positions refer to the caller's string, leading whitespace included
    for position, char in enumerate(expr):
        if _ALLOWED_CHARS.fullmatch(char) is None:
            raise IllegalCharacterError(char, position)
    return text


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise ExpressionSyntaxError(f"unexpected {text[pos]!r} at position {pos}")
        group = m.lastgroup
        lexeme = m.group()
        if group == "number":
            tokens.append(Token("NUMBER", lexeme, pos, float(lexeme)))
        elif group == "ident":
            tokens.append(Token("IDENT", lexeme, pos))
        elif group == "op":
            tokens.append(Token("OP", lexeme, pos))
        elif group == "lparen":
            tokens.append(Token("LPAREN", lexeme, pos))
        elif group == "rparen":
            tokens.append(Token("RPAREN", lexeme, pos))
        elif group == "comma":
            tokens.append(Token("COMMA", lexeme, pos))
        pos = m.end()
    tokens.append(Token("EOF", "", len(text)))
    return tokens


def mentions_identifier(expr: str, name: str) -> bool:
    """Whole-word, case-insensitive search for ``name`` in raw expression text."""
    return re.search(rf"\b{re.escape(name)}\b", expr, re.IGNORECASE) is not None
