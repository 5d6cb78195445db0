"""Tests for context maps and the DomainModel builder."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from sketchddd.context import BoundedContext
from sketchddd.context_map import ContextMap, DomainModel, ObjectMapping, Pattern


def _model(*names: str) -> DomainModel:
    model = DomainModel()
    for name in names:
        model.new_context(name)
    return model


class TestPattern:
    def test_parse_spellings(self):
        assert Pattern.parse("CustomerSupplier") is Pattern.CUSTOMER_SUPPLIER
        assert Pattern.parse("customer_supplier") is Pattern.CUSTOMER_SUPPLIER
        assert Pattern.parse("shared kernel") is Pattern.SHARED_KERNEL

    def test_parse_abbreviations(self):
        assert Pattern.parse("ACL") is Pattern.ANTI_CORRUPTION_LAYER
        assert Pattern.parse("ohs") is Pattern.OPEN_HOST_SERVICE
        assert Pattern.parse("PL") is Pattern.PUBLISHED_LANGUAGE

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown context map pattern"):
            Pattern.parse("BigBallOfMud")

    def test_direction(self):
        assert Pattern.CONFORMIST.source_is_upstream
        assert not Pattern.PARTNERSHIP.source_is_upstream
        assert not Pattern.SEPARATE_WAYS.source_is_upstream
        assert Pattern.SHARED_KERNEL.is_symmetric
        assert not Pattern.CUSTOMER_SUPPLIER.is_symmetric


class TestContextMap:
    def test_upstream_downstream_for_directed_pattern(self):
        cm = ContextMap("m", "Sales", "Billing", Pattern.CUSTOMER_SUPPLIER)
        assert cm.upstream == "Sales"
        assert cm.downstream == "Billing"

    def test_no_direction_for_partnership(self):
        cm = ContextMap("m", "Sales", "Billing", Pattern.PARTNERSHIP)
        assert cm.upstream is None
        assert cm.downstream is None

    def test_add_mapping(self):
        cm = ContextMap("m", "Sales", "Billing", Pattern.CONFORMIST)
        mapping = cm.add_mapping("Order", "Invoice")
        assert cm.mappings == [ObjectMapping("Order", "Invoice")]
        assert repr(mapping) == "Order -> Invoice"

    def test_references(self):
        cm = ContextMap("m", "Sales", "Billing", Pattern.CONFORMIST)
        assert cm.references("Sales")
        assert not cm.references("Shipping")


class TestDomainModel:
    def test_duplicate_context_rejected(self):
        model = _model("Sales")
        with pytest.raises(ValueError, match="already exists"):
            model.add_context(BoundedContext(name="Sales"))

    def test_duplicate_map_name_rejected(self):
        model = _model("Sales", "Billing")
        model.add_context_map("m", "Sales", "Billing", "Conformist")
        with pytest.raises(ValueError, match="already exists"):
            model.add_context_map("m", "Billing", "Sales", "Conformist")

    def test_dangling_context_names_accepted(self):
        model = _model("Sales")
        cm = model.add_context_map("m", "Sales", "Nowhere", "acl")
        assert cm.pattern is Pattern.ANTI_CORRUPTION_LAYER

    def test_remove_context_drops_its_maps(self):
        model = _model("Sales", "Billing", "Shipping")
        model.add_context_map("a", "Sales", "Billing", "Conformist")
        model.add_context_map("b", "Billing", "Shipping", "Conformist")
        removed = model.remove_context("Sales")
        assert [cm.name for cm in removed] == ["a"]
        assert [cm.name for cm in model.context_maps] == ["b"]
        assert "Sales" not in model.contexts

    def test_remove_missing_context(self):
        with pytest.raises(ValueError):
            _model("Sales").remove_context("Billing")

    def test_maps_for(self):
        model = _model("Sales", "Billing", "Shipping")
        model.add_context_map("a", "Sales", "Billing", "Conformist")
        model.add_context_map("b", "Billing", "Shipping", "Conformist")
        assert [cm.name for cm in model.maps_for("Billing")] == ["a", "b"]


class TestCycles:
    def test_no_cycle_in_chain(self):
        model = _model("A", "B", "C")
        model.add_context_map("ab", "A", "B", "CustomerSupplier")
        model.add_context_map("bc", "B", "C", "CustomerSupplier")
        assert model.detect_cycles() == []

    def test_cycle_detected(self):
        model = _model("A", "B", "C")
        model.add_context_map("ab", "A", "B", "CustomerSupplier")
        model.add_context_map("bc", "B", "C", "Conformist")
        model.add_context_map("ca", "C", "A", "OpenHostService")
        assert model.detect_cycles() == [["A", "B", "C", "A"]]

    def test_symmetric_patterns_are_not_edges(self):
        model = _model("A", "B")
        model.add_context_map("ab", "A", "B", "Partnership")
        model.add_context_map("ba", "B", "A", "SharedKernel")
        assert model.detect_cycles() == []

    def test_self_map_is_not_a_cycle(self):
        model = _model("A")
        model.add_context_map("aa", "A", "A", "Conformist")
        assert model.detect_cycles() == []
