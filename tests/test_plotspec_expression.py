from __future__ import annotations

import math
import unittest

import numpy as np

from plotspec.errors import (
    CompileError,
    ExpressionSyntaxError,
    IllegalCharacterError,
    InvalidExpressionError,
    UnknownSymbolError,
)
from plotspec.expression import compile_expression, mentions_identifier
from plotspec.expression.lexer import tokenize
from plotspec.expression.parser import BinaryOp, Call, Literal, UnaryOp, Variable


class ExpressionCompilerTests(unittest.TestCase):
    def test_polynomial_evaluates_at_point(self) -> None:
        fn = compile_expression("x^2+1", arity=1)
        self.assertEqual(fn(3.0), 10.0)

    def test_sin_pi_is_zero_everywhere(self) -> None:
        fn = compile_expression("sin(pi)", arity=1)
        for x in (-7.5, 0.0, 3.0, 1e6):
            self.assertAlmostEqual(fn(x), 0.0, places=12)

    def test_constant_expression_broadcasts_to_input_shape(self) -> None:
        fn = compile_expression("2*e", arity=1)
        out = fn(np.asarray([1.0, 2.0, 3.0]))
        self.assertEqual(out.shape, (3,))
        self.assertTrue(np.allclose(out, 2.0 * math.e))

    def test_disallowed_characters_never_compile(self) -> None:
        for expr in ("x;1", "`x`", "{x}", "x$2", "__import__('os')", "x\u00a0+1", "x=1", "a[0]"):
            with self.subTest(expr=expr):
                with self.assertRaises(IllegalCharacterError):
                    compile_expression(expr)

    def test_illegal_character_reports_position(self) -> None:
        with self.assertRaises(IllegalCharacterError) as ctx:
            compile_expression("x + 1;")
        self.assertEqual(ctx.exception.char, ";")
        self.assertEqual(ctx.exception.position, 5)

    def test_illegal_character_position_counts_leading_whitespace(self) -> None:
        with self.assertRaises(IllegalCharacterError) as ctx:
            compile_expression("   x;")
        self.assertEqual(ctx.exception.position, 4)
        with self.assertRaises(IllegalCharacterError) as ctx:
            compile_expression("\u00a0x")
        self.assertEqual(ctx.exception.position, 0)

    def test_syntax_error_position_counts_leading_whitespace(self) -> None:
        with self.assertRaisesRegex(ExpressionSyntaxError, "position 4"):
            compile_expression("  x ) ")

    def test_surrounding_whitespace_is_not_part_of_source(self) -> None:
        fn = compile_expression("  x + 1\n")
        self.assertEqual(fn.source, "x + 1")
        self.assertEqual(fn(1.0), 2.0)

    def test_unusable_input_is_invalid(self) -> None:
        for expr in ("", "   ", None, 42, ["x"], "x+" * 600):
            with self.subTest(expr=repr(expr)[:20]):
                with self.assertRaises(InvalidExpressionError):
                    compile_expression(expr)

    def test_unknown_symbols_are_rejected_at_compile_time(self) -> None:
        cases = [("x+y", 1, "y"), ("z*2", 2, "z"), ("foo(x)", 1, "foo"), ("X", 1, "X"), ("E", 1, "E")]
        for expr, arity, symbol in cases:
            with self.subTest(expr=expr):
                with self.assertRaises(UnknownSymbolError) as ctx:
                    compile_expression(expr, arity)
                self.assertEqual(ctx.exception.symbol, symbol)

    def test_malformed_expressions_are_syntax_errors(self) -> None:
        for expr in ("x+", "(x", "x)", "sin x", "2x", "pow(x)", "sin(x, 1)", ".", "1..2", "sin", "x,1", "()"):
            with self.subTest(expr=expr):
                with self.assertRaises(ExpressionSyntaxError):
                    compile_expression(expr)

    def test_every_compile_failure_is_a_compile_error(self) -> None:
        for expr in ("", "x;", "x+", "q"):
            with self.subTest(expr=expr):
                with self.assertRaises(CompileError):
                    compile_expression(expr)

    def test_arity_must_be_one_or_two(self) -> None:
        with self.assertRaises(ValueError):
            compile_expression("x", arity=3)

    def test_operator_precedence_and_associativity(self) -> None:
        cases = {
            "-x^2": -9.0,
            "2^3^2": 512.0,
            "2^-1": 0.5,
            "1-2-3": -4.0,
            "8/4/2": 1.0,
            "2+3*x": 11.0,
            "(2+3)*x": 15.0,
            "--x": 3.0,
            "+x": 3.0,
        }
        for expr, expected in cases.items():
            with self.subTest(expr=expr):
                self.assertAlmostEqual(compile_expression(expr)(3.0), expected, places=12)

    def test_function_and_pi_names_are_case_insensitive(self) -> None:
        self.assertAlmostEqual(compile_expression("SIN(PI/2)")(0.0), 1.0, places=12)
        self.assertAlmostEqual(compile_expression("Cos(Pi)")(0.0), -1.0, places=12)

    def test_full_function_set(self) -> None:
        cases = {
            "tan(0)": 0.0,
            "asin(1)": math.pi / 2,
            "acos(1)": 0.0,
            "atan(1)": math.pi / 4,
            "sinh(0)": 0.0,
            "cosh(0)": 1.0,
            "tanh(0)": 0.0,
            "exp(1)": math.e,
            "log(e)": 1.0,
            "sqrt(16)": 4.0,
            "abs(-2)": 2.0,
            "floor(1.7)": 1.0,
            "ceil(1.2)": 2.0,
            "pow(2, 10)": 1024.0,
            "min(4, x, 9)": 3.0,
            "max(1, x)": 3.0,
            "max(x)": 3.0,
        }
        for expr, expected in cases.items():
            with self.subTest(expr=expr):
                self.assertAlmostEqual(compile_expression(expr)(3.0), expected, places=12)

    def test_round_rounds_half_up(self) -> None:
        self.assertEqual(compile_expression("round(2.5)")(0.0), 3.0)
        self.assertEqual(compile_expression("round(-2.5)")(0.0), -2.0)
        self.assertEqual(compile_expression("round(x)")(1.4), 1.0)

    def test_scientific_notation_literals(self) -> None:
        self.assertAlmostEqual(compile_expression("1e-3*x")(1000.0), 1.0, places=12)
        self.assertAlmostEqual(compile_expression("2.5E2")(0.0), 250.0, places=12)
        self.assertAlmostEqual(compile_expression(".5+x")(1.0), 1.5, places=12)

    def test_out_of_domain_results_are_non_finite_not_exceptions(self) -> None:
        for expr, x in (("1/x", 0.0), ("sqrt(x)", -1.0), ("log(x)", 0.0), ("exp(x)", 1000.0), ("asin(x)", 2.0)):
            with self.subTest(expr=expr):
                fn = compile_expression(expr)
                self.assertFalse(math.isfinite(fn(x)))
                self.assertEqual(fn.sample(x), (None,))

    def test_sample_maps_non_finite_to_none(self) -> None:
        fn = compile_expression("1/x")
        self.assertEqual(fn.sample(np.asarray([-1.0, 0.0, 2.0])), (-1.0, None, 0.5))

    def test_two_variable_function_broadcasts_grid(self) -> None:
        fn = compile_expression("x*y + 1", arity=2)
        self.assertEqual(fn(2.0, 3.0), 7.0)
        gx, gy = np.meshgrid(np.asarray([0.0, 1.0, 2.0]), np.asarray([10.0, 20.0]))
        out = fn(gx, gy)
        self.assertEqual(out.shape, (2, 3))
        self.assertEqual(out.tolist(), [[1.0, 11.0, 21.0], [1.0, 21.0, 41.0]])

    def test_symbols_lists_bound_variables_in_use(self) -> None:
        self.assertEqual(compile_expression("x*y", arity=2).symbols, frozenset({"x", "y"}))
        self.assertEqual(compile_expression("x^2", arity=2).symbols, frozenset({"x"}))
        self.assertEqual(compile_expression("x^2", arity=2).variables, ("x", "y"))
        self.assertEqual(compile_expression("sin(pi)").symbols, frozenset())

    def test_deep_nesting_is_rejected(self) -> None:
        with self.assertRaises(ExpressionSyntaxError):
            compile_expression("(" * 70 + "x" + ")" * 70)
        with self.assertRaises(ExpressionSyntaxError):
            compile_expression("-" * 100 + "x")
        with self.assertRaises(ExpressionSyntaxError):
            compile_expression("+".join(["x"] * 300))

    def test_moderate_nesting_still_compiles(self) -> None:
        fn = compile_expression("(" * 20 + "x" + ")" * 20)
        self.assertEqual(fn(4.0), 4.0)

    def test_compiled_function_is_reusable(self) -> None:
        fn = compile_expression("x^2")
        first = fn(np.asarray([1.0, 2.0]))
        second = fn(np.asarray([1.0, 2.0]))
        self.assertTrue(np.array_equal(first, second))
        self.assertEqual(compile_expression("x^2"), fn)


class ExpressionParserTests(unittest.TestCase):
    def test_tokenizer_splits_numbers_names_and_operators(self) -> None:
        kinds = [tok.kind for tok in tokenize("2.5*sin(x) ^ 1e3")]
        self.assertEqual(kinds, ["NUMBER", "OP", "IDENT", "LPAREN", "IDENT", "RPAREN", "OP", "NUMBER", "EOF"])

    def test_parser_builds_expected_tree(self) -> None:
        tree = compile_expression("-x^2 + max(x, 1)").tree
        self.assertEqual(
            tree,
            BinaryOp(
                "+",
                UnaryOp("-", BinaryOp("^", Variable("x"), Literal(2.0))),
                Call("max", (Variable("x"), Literal(1.0))),
            ),
        )

    def test_mentions_identifier_matches_whole_words_only(self) -> None:
        self.assertTrue(mentions_identifier("x+z", "z"))
        self.assertTrue(mentions_identifier("x + Z^2", "z"))
        self.assertFalse(mentions_identifier("zeta + x", "z"))
        self.assertFalse(mentions_identifier("2z", "z"))


if __name__ == "__main__":
    unittest.main()
