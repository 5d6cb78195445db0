"""Tests for the equation parser."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from sketchddd.equations import parse_equation, parse_expression
from sketchddd.errors import EquationSyntaxError, ModelLoadError
from sketchddd.types import BinaryOp, Call, Literal, Path, iter_calls, iter_paths


class TestParse:
    def test_path_equals_aggregate(self):
        eq = parse_equation("totalPrice = sum(items.price)", name="totals")
        assert eq.name == "totals"
        assert eq.lhs == Path(("totalPrice",))
        assert eq.rhs == Call("sum", (Path(("items", "price")),))
        assert eq.operator == "="

    def test_double_equals_normalised(self):
        assert parse_equation("a == b").operator == "="

    def test_comparison_operators(self):
        for op in ("!=", "<", "<=", ">", ">="):
            assert parse_equation(f"a {op} 1").operator == op

    def test_name_defaults_to_text(self):
        assert parse_equation("quantity > 0").name == "quantity > 0"

    def test_source_is_recorded(self):
        assert parse_equation("quantity > 0", source="LineItem").source == "LineItem"

    def test_precedence(self):
        eq = parse_equation("a + b * c > 0")
        assert eq.lhs == BinaryOp("+", Path(("a",)), BinaryOp("*", Path(("b",)), Path(("c",))))

    def test_parentheses(self):
        eq = parse_equation("(a + b) * c > 0")
        assert eq.lhs == BinaryOp("*", BinaryOp("+", Path(("a",)), Path(("b",))), Path(("c",)))

    def test_literals(self):
        assert parse_equation("status = 'Shipped'").rhs == Literal("Shipped")
        assert parse_equation('status = "Shipped"').rhs == Literal("Shipped")
        assert parse_equation("rate <= 2.5").rhs == Literal(2.5)
        assert parse_equation("count(items) > 0").rhs == Literal(0)

    def test_unary_minus(self):
        assert parse_equation("balance > -1").rhs == BinaryOp("-", Literal(0), Literal(1))

    def test_call_with_several_arguments(self):
        expr = parse_expression("max(a, b.c)")
        assert expr == Call("max", (Path(("a",)), Path(("b", "c"))))

    def test_text_round_trip(self):
        assert parse_equation("totalPrice = sum(items.price)").text == "totalPrice = sum(items.price)"
        assert parse_equation("status = 'Shipped'").text == "status = 'Shipped'"


class TestSpans:
    def test_segment_spans(self):
        eq = parse_equation("total = sum(items.price)", line=3, column=5, file="m.yaml")
        [_, path] = list(iter_paths(eq.lhs)) + list(iter_paths(eq.rhs))
        items, price = path.spans
        assert (items.line, items.column, items.length, items.file) == (3, 17, 5, "m.yaml")
        assert (price.column, price.length) == (23, 5)

    def test_call_span(self):
        eq = parse_equation("total = sum(items.price)", column=1)
        [call] = list(iter_calls(eq.rhs))
        assert (call.span.column, call.span.length) == (9, 3)

    def test_equation_span_covers_text(self):
        eq = parse_equation("a = b", line=2, column=4)
        assert (eq.span.line, eq.span.column, eq.span.length) == (2, 4, 5)


class TestErrors:
    def test_missing_comparison(self):
        with pytest.raises(EquationSyntaxError, match="expected a comparison operator, found 'end of input'"):
            parse_equation("total")

    def test_trailing_input(self):
        with pytest.raises(EquationSyntaxError, match="unexpected '\\)'"):
            parse_equation("a = b)")

    def test_unexpected_character_position(self):
        with pytest.raises(EquationSyntaxError) as info:
            parse_equation("a = #", line=2, column=10, file="m.yaml")
        err = info.value
        assert (err.file, err.line, err.column) == ("m.yaml", 2, 14)

    def test_dangling_dot(self):
        with pytest.raises(EquationSyntaxError, match="expected a name after '.'"):
            parse_equation("a. = 1")

    def test_unclosed_call(self):
        with pytest.raises(EquationSyntaxError, match="expected '\\)'"):
            parse_equation("sum(a = 1")

    def test_is_a_load_error(self):
        assert issubclass(EquationSyntaxError, ModelLoadError)

    def test_free_text_does_not_parse(self):
        with pytest.raises(EquationSyntaxError):
            parse_equation("an order cannot be modified once shipped")
