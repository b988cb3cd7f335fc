from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Union

from plotspec.errors import ExpressionSyntaxError, UnknownSymbolError
from plotspec.expression.lexer import Token


MAX_NESTING = 64
MAX_TREE_DEPTH = 256

CONSTANTS: dict[str, float] = {"pi": math.pi, "e": math.e}

# name -> (min args, max args); None means unbounded
FUNCTION_ARITY: dict[str, tuple[int, int | None]] = {
    "sin": (1, 1),
    "cos": (1, 1),
    "tan": (1, 1),
    "asin": (1, 1),
    "acos": (1, 1),
    "atan": (1, 1),
    "sinh": (1, 1),
    "cosh": (1, 1),
    "tanh": (1, 1),
    "exp": (1, 1),
    "log": (1, 1),
    "sqrt": (1, 1),
    "abs": (1, 1),
    "floor": (1, 1),
    "ceil": (1, 1),
    "round": (1, 1),
    "pow": (2, 2),
    "min": (1, None),
    "max": (1, None),
}


@dataclass(frozen=True)
class Literal:
    value: float


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple["Node", ...]


Node = Union[Literal, Variable, UnaryOp, BinaryOp, Call]


class ExpressionParser:
    """Recursive-descent parser over the restricted algebraic grammar.

    Grammar, lowest precedence first::

        additive       := multiplicative (("+" | "-") multiplicative)*
        multiplicative := unary (("*" | "/") unary)*
        unary          := ("+" | "-") unary | power
        power          := primary ("^" unary)?
        primary        := NUMBER | NAME | NAME "(" args ")" | "(" additive ")"

    ``^`` is right-associative and binds tighter than a leading sign, so
    ``-x^2`` reads as ``-(x^2)`` and ``2^-1`` as ``2^(-1)``.
    """

    def __init__(self, tokens: list[Token], variables: tuple[str, ...]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._variables = variables
        self._nesting = 0

    def parse(self) -> Node:
        node = self._additive()
        tok = self._peek()
        if tok.kind != "EOF":
            raise ExpressionSyntaxError(f"unexpected {tok.text!r} at position {tok.position}")
        if tree_depth(node) > MAX_TREE_DEPTH:
            raise ExpressionSyntaxError("expression is too complex")
        return node

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _expect(self, kind: str, what: str) -> Token:
        tok = self._advance()
        if tok.kind != kind:
            found = tok.text or "end of expression"
            raise ExpressionSyntaxError(f"expected {what} at position {tok.position}, found {found!r}")
        return tok

    def _is_op(self, *ops: str) -> bool:
        tok = self._peek()
        return tok.kind == "OP" and tok.text in ops

    def _enter(self) -> None:
        self._nesting += 1
        if self._nesting > MAX_NESTING:
            raise ExpressionSyntaxError("expression nests too deeply")

    def _leave(self) -> None:
        self._nesting -= 1

    def _additive(self) -> Node:
        left = self._multiplicative()
        while self._is_op("+", "-"):
            op = self._advance().text
            left = BinaryOp(op, left, self._multiplicative())
        return left

    def _multiplicative(self) -> Node:
        left = self._unary()
        while self._is_op("*", "/"):
            op = self._advance().text
            left = BinaryOp(op, left, self._unary())
        return left

    def _unary(self) -> Node:
        if self._is_op("+", "-"):
            op = self._advance().text
            self._enter()
            try:
                operand = self._unary()
            finally:
                self._leave()
            return operand if op == "+" else UnaryOp("-", operand)
        return self._power()

    def _power(self) -> Node:
        base = self._primary()
        if self._is_op("^"):
            self._advance()
            self._enter()
            try:
                exponent = self._unary()
            finally:
                self._leave()
            return BinaryOp("^", base, exponent)
        return base

    def _primary(self) -> Node:
        tok = self._peek()
        if tok.kind == "NUMBER":
            self._advance()
            assert tok.value is not None
            return Literal(tok.value)
        if tok.kind == "IDENT":
            self._advance()
            return self._name(tok)
        if tok.kind == "LPAREN":
            self._advance()
            self._enter()
            try:
                node = self._additive()
            finally:
                self._leave()
            self._expect("RPAREN", "')'")
            return node
        if tok.kind == "EOF":
            raise ExpressionSyntaxError("unexpected end of expression")
        raise ExpressionSyntaxError(f"unexpected {tok.text!r} at position {tok.position}")

    def _name(self, tok: Token) -> Node:
        lowered = tok.text.lower()
        if self._peek().kind == "LPAREN":
            if lowered not in FUNCTION_ARITY:
                raise UnknownSymbolError(tok.text)
            return self._call(lowered, tok)
        if lowered in FUNCTION_ARITY:
            raise ExpressionSyntaxError(f"function {lowered!r} must be called with parentheses")
        if lowered == "pi":
            return Literal(CONSTANTS["pi"])
        if tok.text == "e":
            return Literal(CONSTANTS["e"])
        if tok.text in self._variables:
            return Variable(tok.text)
        raise UnknownSymbolError(tok.text)

    def _call(self, name: str, name_tok: Token) -> Node:
        self._advance()
        self._enter()
        try:
            args: list[Node] = []
            if self._peek().kind != "RPAREN":
                args.append(self._additive())
                while self._peek().kind == "COMMA":
                    self._advance()
                    args.append(self._additive())
            self._expect("RPAREN", "')'")
        finally:
            self._leave()
        lo, hi = FUNCTION_ARITY[name]
        if len(args) < lo or (hi is not None and len(args) > hi):
            expected = str(lo) if lo == hi else f"at least {lo}"
            raise ExpressionSyntaxError(
                f"{name}() at position {name_tok.position} takes {expected} argument(s), got {len(args)}"
            )
        return Call(name, tuple(args))


def tree_depth(node: Node) -> int:
    depth = 0
    stack: list[tuple[Node, int]] = [(node, 1)]
    while stack:
        current, level = stack.pop()
        depth = max(depth, level)
        if isinstance(current, UnaryOp):
            stack.append((current.operand, level + 1))
        elif isinstance(current, BinaryOp):
            stack.append((current.left, level + 1))
            stack.append((current.right, level + 1))
        elif isinstance(current, Call):
            stack.extend((arg, level + 1) for arg in current.args)
    return depth


def free_variables(node: Node) -> frozenset[str]:
    names: set[str] = set()
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Variable):
            names.add(current.name)
        elif isinstance(current, UnaryOp):
            stack.append(current.operand)
        elif isinstance(current, BinaryOp):
            stack.extend((current.left, current.right))
        elif isinstance(current, Call):
            stack.extend(current.args)
    return frozenset(names)
