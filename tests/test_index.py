"""Tests for name resolution and nearest-name suggestions."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sketchddd.context import BoundedContext
from sketchddd.index import NameIndex, levenshtein, nearest_name
from sketchddd.types import ObjectKind


def _index() -> NameIndex:
    ctx = BoundedContext(name="Shop")
    ctx.add_entity("Customer")
    ctx.add_entity("Order")
    ctx.add_value_object("Money")
    ctx.add_enum("Order", ["A"])
    return NameIndex.from_context(ctx)


class TestLevenshtein:
    def test_identical(self):
        assert levenshtein("Order", "Order") == 0

    def test_single_edits(self):
        assert levenshtein("Custommer", "Customer") == 1
        assert levenshtein("Ordr", "Order") == 1
        assert levenshtein("Mony", "Money") == 1

    def test_symmetric(self):
        assert levenshtein("kitten", "sitting") == levenshtein("sitting", "kitten") == 3

    def test_empty(self):
        assert levenshtein("", "abc") == 3


class TestNearestName:
    def test_typo_suggestion(self):
        assert nearest_name("Custommer", ["Order", "Customer"]) == "Customer"

    def test_case_insensitive(self):
        assert nearest_name("customer", ["Customer"]) == "Customer"

    def test_beyond_threshold(self):
        assert nearest_name("Zebra", ["Customer", "Order"]) is None

    def test_ties_go_to_first_candidate(self):
        assert nearest_name("Cat", ["Bat", "Hat"]) == "Bat"

    def test_exact_match_is_not_a_suggestion(self):
        assert nearest_name("Order", ["Order"]) is None


class TestNameIndex:
    def test_resolve_first_declaration(self):
        index = _index()
        ref = index.resolve("Order")
        assert ref.kind is ObjectKind.ENTITY
        assert ref.index == 1

    def test_membership_and_kind(self):
        index = _index()
        assert "Money" in index
        assert "Invoice" not in index
        assert index.kind_of("Money") is ObjectKind.VALUE_OBJECT
        assert index.kind_of("Invoice") is None

    def test_all_names_distinct_in_order(self):
        assert _index().all_names() == ["Customer", "Order", "Money"]
        assert len(_index()) == 3

    def test_duplicates(self):
        index = _index()
        assert index.duplicates_of("Order") == 2
        assert index.duplicates_of("Money") == 1
        assert index.duplicates_of("Invoice") == 0
        assert index.duplicated_names() == ["Order"]

    def test_nearest(self):
        assert _index().nearest("Mony") == "Money"
