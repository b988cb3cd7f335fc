from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np

from plotspec.expression.parser import BinaryOp, Call, Literal, Node, UnaryOp, Variable


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def _min(*args: np.ndarray) -> np.ndarray:
    out = args[0]
    for arg in args[1:]:
        out = np.minimum(out, arg)
    return out


def _max(*args: np.ndarray) -> np.ndarray:
    out = args[0]
    for arg in args[1:]:
        out = np.maximum(out, arg)
    return out


FUNCTIONS: dict[str, Callable[..., np.ndarray]] = {
    "sin": np.sin,
    "cos": np.cos,
    "tan": np.tan,
    "asin": np.arcsin,
    "acos": np.arccos,
    "atan": np.arctan,
    "sinh": np.sinh,
    "cosh": np.cosh,
    "tanh": np.tanh,
    "exp": np.exp,
    "log": np.log,
    "sqrt": np.sqrt,
    "abs": np.abs,
    "floor": np.floor,
    "ceil": np.ceil,
    "round": _round_half_up,
    "pow": np.power,
    "min": _min,
    "max": _max,
}

_BINARY: dict[str, Callable[[np.ndarray, np.ndarray], np.ndarray]] = {
    "+": np.add,
    "-": np.subtract,
    "*": np.multiply,
    "/": np.divide,
    "^": np.power,
}


def evaluate_node(node: Node, env: dict[str, np.ndarray]) -> np.ndarray:
    if isinstance(node, Literal):
        return np.float64(node.value)
    if isinstance(node, Variable):
        return env[node.name]
    if isinstance(node, UnaryOp):
        return np.negative(evaluate_node(node.operand, env))
    if isinstance(node, BinaryOp):
        return _BINARY[node.op](evaluate_node(node.left, env), evaluate_node(node.right, env))
    if isinstance(node, Call):
        return FUNCTIONS[node.name](*(evaluate_node(arg, env) for arg in node.args))
    raise TypeError(f"unsupported node: {type(node).__name__}")


@dataclass(frozen=True)
class CompiledFunction:
    """A parsed expression bound to its variables (``x`` or ``x, y``).

    Calling it never raises for numeric input: undefined results come back as
    NaN or +/-inf. ``sample`` converts those to ``None``.
    """

    source: str
    arity: int
    tree: Node
    symbols: frozenset[str]

    @property
    def variables(self) -> tuple[str, ...]:
        return ("x",) if self.arity == 1 else ("x", "y")

    def evaluate(self, x: Any, y: Any = None) -> np.ndarray:
        xs = np.asarray(x, dtype=np.float64)
        if self.arity == 1:
            env = {"x": xs}
        else:
            if y is None:
                raise TypeError("two-variable function requires y")
            xs, ys = np.broadcast_arrays(xs, np.asarray(y, dtype=np.float64))
            env = {"x": xs, "y": ys}
        with np.errstate(all="ignore"):
            out = evaluate_node(self.tree, env)
        return np.broadcast_to(np.asarray(out, dtype=np.float64), xs.shape)

    def __call__(self, x: Any, y: Any = None) -> float | np.ndarray:
        out = self.evaluate(x, y)
        if out.ndim == 0:
            return float(out)
        return out

    def sample(self, x: Any, y: Any = None) -> tuple[float | None, ...]:
        return to_optional(self.evaluate(x, y))


def to_optional(values: np.ndarray) -> tuple[float | None, ...]:
    flat = np.ravel(values)
    finite = np.isfinite(flat)
    return tuple(float(v) if ok else None for v, ok in zip(flat.tolist(), finite.tolist()))
