from __future__ import annotations

from plotspec.expression.evaluator import CompiledFunction
from plotspec.expression.lexer import MAX_EXPRESSION_LENGTH, check_expression_text, tokenize
from plotspec.expression.parser import ExpressionParser, free_variables


_VARIABLES_BY_ARITY: dict[int, tuple[str, ...]] = {1: ("x",), 2: ("x", "y")}


def compile_expression(expr: object, arity: int = 1, *, max_length: int = MAX_EXPRESSION_LENGTH) -> CompiledFunction:
    """Compile ``expr`` into a function of ``x`` (arity 1) or ``x, y`` (arity 2).

    Raises a ``CompileError`` subclass when the text is unusable, contains a
    character outside the allow-list, fails to parse, or names a symbol that is
    neither a constant, a known function, nor one of the bound variables.
    """
    variables = _VARIABLES_BY_ARITY.get(arity)
    if variables is None:
        raise ValueError(f"arity must be 1 or 2, got {arity!r}")
    text = check_expression_text(expr, max_length=max_length)
    assert isinstance(expr, str)
    tree = ExpressionParser(tokenize(expr), variables).parse()
    return CompiledFunction(source=text, arity=arity, tree=tree, symbols=free_variables(tree))
