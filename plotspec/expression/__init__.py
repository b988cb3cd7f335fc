from plotspec.expression.compiler import compile_expression
from plotspec.expression.evaluator import CompiledFunction, to_optional
from plotspec.expression.lexer import MAX_EXPRESSION_LENGTH, mentions_identifier

__all__ = [
    "CompiledFunction",
    "MAX_EXPRESSION_LENGTH",
    "compile_expression",
    "mentions_identifier",
    "to_optional",
]
