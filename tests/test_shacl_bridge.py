"""Tests for checking instance data against a context's SHACL shapes."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime
from decimal import Decimal

import pytest
from rdflib import Literal, Namespace, RDF, XSD

from sketchddd.codegen.shacl import namespace_iri
from sketchddd.config import TargetOptions
from sketchddd.errors import InvalidModelError
from sketchddd.shacl_bridge import (
    InstanceRecord,
    SHACLValidationResult,
    SHACLViolation,
    instances_to_rdf,
    shacl_validate,
    shapes_for,
)

from case_studies.commerce.domain import build_commerce

NS = namespace_iri("Domain")
DATA = Namespace(f"{NS}data/")


def _good_records() -> list[InstanceRecord]:
    return [
        InstanceRecord("Customer", "alice", {"name": "Alice", "email": None}),
        InstanceRecord("LineItem", "li-1", {"price": Decimal("12.50"), "quantity": 2}),
        InstanceRecord(
            "Order", "order-1",
            {"totalPrice": Decimal("12.50"), "placedAt": datetime(2024, 5, 1, 10), "status": "Pending"},
            links={"placedBy": "alice", "items": ["li-1"]},
        ),
    ]


def _bad_records() -> list[InstanceRecord]:
    return _good_records() + [
        InstanceRecord("LineItem", "li-2", {"quantity": 1}),
        InstanceRecord(
            "Order", "order-2",
            {"totalPrice": Decimal("3"), "placedAt": datetime(2024, 5, 2, 9), "status": "Lost"},
            links={"placedBy": "alice", "items": ["li-2"]},
        ),
    ]


# ---------------------------------------------------------------------------
# Data graph
# ---------------------------------------------------------------------------

class TestInstancesToRdf:
    def test_types_and_literals(self):
        g = instances_to_rdf(_good_records(), NS)
        li = DATA["li-1"]
        assert (li, RDF.type, NS.LineItem) in g
        assert (li, NS.quantity, Literal(2, datatype=XSD.integer)) in g
        assert (li, NS.price, Literal(Decimal("12.50"), datatype=XSD.decimal)) in g

    def test_none_values_are_left_out(self):
        g = instances_to_rdf(_good_records(), NS)
        assert list(g.objects(None, NS.email)) == []

    def test_links_expand_lists(self):
        records = [InstanceRecord("Order", "o", links={"items": ["a", "b"]})]
        g = instances_to_rdf(records, NS)
        assert len(list(g.objects(None, NS["items"]))) == 2

    def test_list_values_expand(self):
        records = [InstanceRecord("Customer", "c", {"name": ["A", "B"]})]
        g = instances_to_rdf(records, NS)
        assert sorted(str(o) for o in g.objects(None, NS.name)) == ["A", "B"]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestShaclValidate:
    def test_conforming_records(self):
        result = shacl_validate(build_commerce(), _good_records())
        assert result.conforms
        assert result.violations == []
        assert "SHACL Validation: CONFORMS" in result.summary()
        assert "No violations found." in result.summary()

    def test_violations(self):
        result = shacl_validate(build_commerce(), _bad_records())
        assert not result.conforms
        assert [(v.node, v.property) for v in result.violations] == [
            ("li-2", "price"),
            ("order-2", "status"),
        ]
        assert result.violations_for("order-1") == []
        assert "DOES NOT CONFORM" in result.summary()

    def test_missing_required_link(self):
        records = [InstanceRecord(
            "Order", "o",
            {"totalPrice": Decimal("1"), "placedAt": datetime(2024, 1, 1), "status": "Paid"},
        )]
        result = shacl_validate(build_commerce(), records)
        assert [v.property for v in result.violations_for("o")] == ["placedBy"]

    def test_wrong_datatype(self):
        records = [InstanceRecord("LineItem", "li", {"price": Decimal("1"), "quantity": "two"})]
        result = shacl_validate(build_commerce(), records)
        assert [v.property for v in result.violations] == ["quantity"]

    def test_turtle_helpers(self):
        result = shacl_validate(build_commerce(), _good_records())
        assert "sh:NodeShape" in result.shapes_as_turtle()
        assert "li-1" in result.data_as_turtle()
        assert SHACLValidationResult(conforms=True).shapes_as_turtle() == ""

    def test_custom_namespace(self):
        options = TargetOptions(namespace="https://acme.org/shop/")
        _, ns = shapes_for(build_commerce(), options)
        assert str(ns) == "https://acme.org/shop/"
        result = shacl_validate(build_commerce(), _bad_records(), options)
        assert len(result.violations) == 2

    def test_invalid_context_refused(self):
        ctx = build_commerce()
        ctx.add_morphism("referredBy", "Customer", "Custommer")
        with pytest.raises(InvalidModelError):
            shacl_validate(ctx, _good_records())


class TestViolation:
    def test_local_names(self):
        v = SHACLViolation(
            focus_node="http://sketchddd.example.org/Domain/data/li-2",
            path="http://sketchddd.example.org/Domain/price",
            message="Less than 1 values",
            severity="http://www.w3.org/ns/shacl#Violation",
        )
        assert v.node == "li-2"
        assert v.property == "price"
        assert repr(v) == "SHACLViolation(li-2.price: Less than 1 values)"
