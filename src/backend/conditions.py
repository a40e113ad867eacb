"""Alert-rule condition grammar: tokenizer, parser and threshold extraction.

Formula-schema alert rules carry a free-form boolean condition such as::

    ${monitor:cpu_load} > 90 && ${monitor:cpu_load} < 5
    value >= 100 || value < 0

The grammar understood here::

    expr       := and_expr (("||" | "or") and_expr)*
    and_expr   := unary (("&&" | "and") unary)*
    unary      := ("!" | "not") unary | "(" expr ")" | comparison
    comparison := operand (OP operand)?
    operand    := MONITOR_REF | IDENT | NUMBER

A comparison between a *target* (a monitor reference or the ``value``
placeholder) and a numeric literal contributes a bound: greater-than gives
the upper threshold, less-than the lower one. The first monitor reference
and the first bound of each kind win.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

import structlog

from src.backend.exceptions import ConditionSyntaxError

logger = structlog.stdlib.get_logger()

VALUE_PLACEHOLDER = "value"


class TokenKind(StrEnum):
    MONITOR_REF = "MONITOR_REF"
    NUMBER = "NUMBER"
    IDENT = "IDENT"
    OP = "OP"
    AND = "AND"
    OR = "OR"
    NOT = "NOT"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int


_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<ref>\$\{\s*monitor\s*:\s*(?P<ref_id>[^}\s]+)\s*\})
  | (?P<number>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)
  | (?P<op>>=|<=|==|!=|>|<)
  | (?P<and>&&)
  | (?P<or>\|\|)
  | (?P<not>!)
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<ident>[A-Za-z_][A-Za-z0-9_.]*)
    """,
    re.VERBOSE,
)

_KEYWORDS: dict[str, TokenKind] = {
    "and": TokenKind.AND,
    "or": TokenKind.OR,
    "not": TokenKind.NOT,
}

_FLIPPED: dict[str, str] = {">": "<", ">=": "<=", "<": ">", "<=": ">=", "==": "==", "!=": "!="}


def tokenize(text: str) -> list[Token]:
    """Split *text* into tokens, ending with an EOF token."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ConditionSyntaxError(f"Unexpected character {text[pos]!r}", pos)
        group = match.lastgroup
        if group == "ref_id":
            group = "ref"
        if group == "ref":
            tokens.append(Token(TokenKind.MONITOR_REF, match.group("ref_id"), pos))
        elif group == "number":
            tokens.append(Token(TokenKind.NUMBER, match.group(), pos))
        elif group == "ident":
            word = match.group()
            kind = _KEYWORDS.get(word.lower(), TokenKind.IDENT)
            tokens.append(Token(kind, word, pos))
        elif group != "ws":
            tokens.append(Token(TokenKind[group.upper()], match.group(), pos))
        pos = match.end()
    tokens.append(Token(TokenKind.EOF, "", len(text)))
    return tokens


@dataclass(frozen=True)
class ParsedCondition:
    """Thresholds extracted from a condition; ``monitor_id`` None means global."""

    monitor_id: str | None = None
    upper: float | None = None
    lower: float | None = None

    @property
    def has_threshold(self) -> bool:
        return self.upper is not None or self.lower is not None


class ConditionParser:
    """Recursive-descent parser that records bounds while it walks the input."""

    def __init__(self, text: str) -> None:
        self._tokens = tokenize(text)
        self._index = 0
        self._monitor_id: str | None = None
        self._upper: float | None = None
        self._lower: float | None = None
        self._negation_depth = 0

    def parse(self) -> ParsedCondition:
        self._expr()
        if self._peek().kind != TokenKind.EOF:
            tok = self._peek()
            raise ConditionSyntaxError(f"Unexpected token {tok.text!r}", tok.position)
        return ParsedCondition(self._monitor_id, self._upper, self._lower)

    # ── Grammar ──────────────────────────────────────────────────

    def _expr(self) -> None:
        self._and_expr()
        while self._accept(TokenKind.OR):
            self._and_expr()

    def _and_expr(self) -> None:
        self._unary()
        while self._accept(TokenKind.AND):
            self._unary()

    def _unary(self) -> None:
        if self._accept(TokenKind.NOT):
            self._negation_depth += 1
            self._unary()
            self._negation_depth -= 1
        elif self._accept(TokenKind.LPAREN):
            self._expr()
            self._expect(TokenKind.RPAREN)
        else:
            self._comparison()

    def _comparison(self) -> None:
        left = self._operand()
        if self._peek().kind != TokenKind.OP:
            return
        op = self._advance().text
        right = self._operand()
        self._record_bound(left, op, right)

    def _operand(self) -> Token:
        tok = self._peek()
        if tok.kind not in (TokenKind.MONITOR_REF, TokenKind.IDENT, TokenKind.NUMBER):
            label = tok.text or "end of input"
            raise ConditionSyntaxError(f"Expected operand, got {label!r}", tok.position)
        self._advance()
        if tok.kind == TokenKind.MONITOR_REF and self._monitor_id is None:
            self._monitor_id = tok.text
        return tok

    # ── Bounds ───────────────────────────────────────────────────

    def _record_bound(self, left: Token, op: str, right: Token) -> None:
        # a negated comparison bounds the opposite side; not a threshold
        if self._negation_depth:
            return
        if _is_target(left) and right.kind == TokenKind.NUMBER:
            literal = right
        elif left.kind == TokenKind.NUMBER and _is_target(right):
            literal, op = left, _FLIPPED[op]
        else:
            return

        bound = float(literal.text)
        if op in (">", ">=") and self._upper is None:
            self._upper = bound
        elif op in ("<", "<=") and self._lower is None:
            self._lower = bound

    # ── Token helpers ────────────────────────────────────────────

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        tok = self._tokens[self._index]
        if tok.kind != TokenKind.EOF:
            self._index += 1
        return tok

    def _accept(self, kind: TokenKind) -> bool:
        if self._peek().kind == kind:
            self._advance()
            return True
        return False

    def _expect(self, kind: TokenKind) -> Token:
        tok = self._peek()
        if tok.kind != kind:
            raise ConditionSyntaxError(f"Expected {kind.value}, got {tok.text!r}", tok.position)
        return self._advance()


def _is_target(tok: Token) -> bool:
    return tok.kind == TokenKind.MONITOR_REF or (
        tok.kind == TokenKind.IDENT and tok.text.lower() == VALUE_PLACEHOLDER
    )


def parse_condition(text: str | None) -> ParsedCondition | None:
    """Extract monitor id and thresholds from a rule condition.

    Returns None when the condition is empty, malformed, or carries no
    threshold comparison.
    """
    if not text or not text.strip():
        return None
    try:
        parsed = ConditionParser(text).parse()
    except ConditionSyntaxError as exc:
        logger.debug("condition_unparseable", condition=text, error=str(exc))
        return None
    return parsed if parsed.has_threshold else None


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def format_condition(
    monitor_id: str | None,
    upper: float | None = None,
    lower: float | None = None,
) -> str:
    """Render thresholds as a condition string that ``parse_condition`` reads back."""
    if upper is None and lower is None:
        raise ValueError("At least one threshold is required")
    target = f"${{monitor:{monitor_id}}}" if monitor_id else VALUE_PLACEHOLDER
    parts: list[str] = []
    if upper is not None:
        parts.append(f"{target} > {_format_number(upper)}")
    if lower is not None:
        parts.append(f"{target} < {_format_number(lower)}")
    return " || ".join(parts)
