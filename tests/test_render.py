"""Tests for human and machine rendering of diagnostics."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json

import pytest
from sketchddd.diagnostics import Diagnostic, Label, Severity
from sketchddd.loader import load_model
from sketchddd.render import RenderMode, render
from sketchddd.types import Span
from sketchddd.validation import validate

SOURCE = """\
contexts:
  - name: Shop
    objects:
      - entity: Customer
        fields: {name: String}
      - entity: Order
        fields: {total: Decimal}
    morphisms:
      - {name: placedBy, source: Order, target: Custommer}
"""


def _diagnostics():
    model = load_model(SOURCE, filename="shop.yaml")
    return validate(model).diagnostics


# ---------------------------------------------------------------------------
# Human mode
# ---------------------------------------------------------------------------

class TestHuman:
    def test_header_and_location(self):
        out = render(_diagnostics(), SOURCE)
        lines = out.splitlines()
        assert lines[0] == (
            "error[E0002]: cannot find object `Custommer` used as target of morphism `placedBy`"
        )
        assert lines[1] == "  --> shop.yaml:9:49"

    def test_carets_under_offending_name(self):
        out = render(_diagnostics(), SOURCE)
        lines = out.splitlines()
        source_line = next(l for l in lines if l.startswith(" 9 |"))
        caret_line = next(l for l in lines if "^" in l)
        assert caret_line.index("^") == source_line.index("Custommer")
        assert "^^^^^^^^^ not found in context `Shop`" in caret_line

    def test_context_lines(self):
        out = render(_diagnostics(), SOURCE, context_lines=1)
        assert " 8 |     morphisms:" in out.splitlines()
        out = render(_diagnostics(), SOURCE, context_lines=0)
        assert " 8 |     morphisms:" not in out.splitlines()

    def test_help_and_footer(self):
        out = render(_diagnostics(), SOURCE)
        assert "   = help: did you mean 'Customer'?" in out.splitlines()
        assert out.endswith("1 error(s), 0 warning(s) emitted\n")

    def test_help_can_be_hidden(self):
        out = render(_diagnostics(), SOURCE, show_help=False)
        assert "= help:" not in out

    def test_without_source_labels_become_notes(self):
        out = render(_diagnostics())
        assert "  --> shop.yaml:9:49" in out.splitlines()
        assert "   = label: 9:49: not found in context `Shop`" in out.splitlines()
        assert "^" not in out

    def test_sources_by_file(self):
        out = render(_diagnostics(), {"shop.yaml": SOURCE})
        assert "^^^^^^^^^" in out

    def test_span_less_diagnostic(self):
        d = Diagnostic(Severity.ERROR, "E0071", "the model declares no bounded contexts")
        d.note("add a context")
        out = render([d])
        assert out.splitlines() == [
            "error[E0071]: the model declares no bounded contexts",
            "  = note: add a context",
            "",
            "1 error(s), 0 warning(s) emitted",
        ]

    def test_tabs_kept_in_underline(self):
        d = Diagnostic(Severity.WARNING, "W0010", "x", labels=[Label(Span(1, 3, 2), "here")])
        out = render([d], "\tab cd\n")
        assert " | \t ^^ here" in out

    def test_empty(self):
        assert render([], SOURCE) == ""

    def test_deterministic(self):
        assert render(_diagnostics(), SOURCE) == render(_diagnostics(), SOURCE)


# ---------------------------------------------------------------------------
# Machine mode
# ---------------------------------------------------------------------------

class TestMachine:
    def test_json_report(self):
        data = json.loads(render(_diagnostics(), SOURCE, mode="json"))
        assert data["summary"] == {"errorCount": 1, "warningCount": 0}
        [d] = data["diagnostics"]
        assert d["code"] == "E0002"
        assert d["severity"] == "error"
        assert d["location"] == {"file": "shop.yaml", "line": 9, "column": 49, "length": 9}
        assert d["suggestions"] == [{"message": "did you mean 'Customer'?", "replacement": "Customer"}]

    def test_mode_parse(self):
        assert RenderMode.parse("text") is RenderMode.HUMAN
        assert RenderMode.parse("MACHINE") is RenderMode.MACHINE
        with pytest.raises(ValueError):
            RenderMode.parse("xml")
