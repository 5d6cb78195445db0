"""Tests for the language backends and the code generation entry points.

Each backend is run over the commerce context. The checks look for the
constructs that distinguish the targets: TypeScript discriminated unions,
Rust enums with data, Kotlin sealed classes, and Java's fallback form for
tagged unions.
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from rdflib import Graph, Literal, Namespace, RDF, RDFS, XSD
from rdflib.collection import Collection
from rdflib.compare import isomorphic
from rdflib.namespace import SH

from sketchddd import codegen
from sketchddd.context import BoundedContext
from sketchddd.codegen import GenerationResult, generate, generate_all, get_backend
from sketchddd.codegen.rust import RustBackend
from sketchddd.codegen.shacl import namespace_iri
from sketchddd.config import ProjectConfig, Target, TargetOptions
from sketchddd.errors import InvalidModelError, UnsupportedConstructError, UnsupportedTargetError
from sketchddd.types import Cardinality

from case_studies.commerce.domain import build_commerce, build_shipping


def _files(target, source=None, **options) -> dict[str, str]:
    files = generate(source or build_commerce(), target, TargetOptions(**options))
    return {f.filename: f.content for f in files}


def _single(target, source=None, **options) -> str:
    [content] = _files(target, source, **options).values()
    return content


def _booking() -> BoundedContext:
    ctx = BoundedContext("Booking")
    ctx.add_entity("Guest", {"name": "String"})
    ctx.add_value_object("Money", {"amount": "Decimal", "currency": "String"})
    ctx.add_value_object("Period", {"start": "Date", "ends": "DateTime?"})
    ctx.add_morphism("price", "Period", "Money")
    ctx.add_morphism("fees", "Period", "Money", Cardinality.MANY)
    ctx.add_morphism("bookedBy", "Period", "Guest")
    return ctx


# ---------------------------------------------------------------------------
# TypeScript
# ---------------------------------------------------------------------------

class TestTypeScript:
    def test_one_file_per_context(self):
        assert list(_files("typescript")) == ["Commerce.ts"]

    def test_header(self):
        out = _single("typescript")
        assert out.startswith("// Generated by sketchddd from bounded context Commerce.\n")

    def test_interfaces_and_classes(self):
        out = _single("typescript")
        assert "export interface Customer {" in out
        assert "  readonly id: string;" in out
        assert "  email?: string;" in out
        assert "export class CustomerImpl implements Customer {" in out
        assert "    this.id = data.id ?? crypto.randomUUID();" in out

    def test_discriminated_union(self):
        out = _single("typescript")
        assert "export type PaymentMethod =\n  | { type: 'Cash' }\n  | { type: 'Card'; value: CardDetails };" in out
        assert "PaymentMethodKind" not in out

    def test_plain_enum(self):
        out = _single("typescript")
        assert "export enum OrderStatus {\n  Pending = 'Pending'," in out

    def test_aggregate_members_and_invariant(self):
        out = _single("typescript")
        assert "  lineItems: LineItem[];" in out
        assert "  addLineItem(item: LineItem): void {" in out
        assert (
            "if (!(this.root.totalPrice === "
            "this.root.items.reduce((acc, it) => acc + it.price, 0))) {"
        ) in out
        assert "export class InvariantViolation extends Error {" in out

    def test_repository_interface(self):
        out = _single("typescript")
        assert "  findById(id: string): Promise<OrderAggregate | undefined>;" in out
        assert "  save(aggregate: OrderAggregate): Promise<void>;" in out

    def test_options(self):
        out = _single("typescript", include_comments=False, emit_interfaces=False)
        assert "/**" not in out
        assert "export interface" not in out
        assert "export class Customer {" in out
        assert "Impl" not in out

    def test_value_object_equality_is_structural(self):
        out = _single("typescript", include_comments=False, source=_booking())
        assert (
            "  equals(other: Period): boolean {\n"
            "    return this.start.getTime() === other.start.getTime()\n"
            "      && (this.ends === undefined || other.ends === undefined"
            " ? this.ends === other.ends : this.ends.getTime() === other.ends.getTime())\n"
            "      && this.price.equals(other.price)\n"
            "      && this.fees.length === other.fees.length"
            " && this.fees.every((x, i) => x.equals(other.fees[i]))\n"
            "      && this.bookedBy.id === other.bookedBy.id;\n"
            "  }"
        ) in out
        assert "    return this.amount === other.amount\n      && this.currency === other.currency;" in out

    def test_value_object_interface_declares_equals(self):
        out = _single("typescript", source=_booking())
        assert "export interface Period {" in out
        assert "  equals(other: Period): boolean;" in out
        assert "  equals(other: Guest): boolean" not in out

    def test_no_equals_without_classes(self):
        out = _single("typescript", emit_classes=False, source=_booking())
        assert "equals(" not in out


# ---------------------------------------------------------------------------
# Rust
# ---------------------------------------------------------------------------

class TestRust:
    def test_file_and_uses(self):
        files = _files("rust")
        assert list(files) == ["commerce.rs"]
        out = files["commerce.rs"]
        assert "use chrono::{DateTime, NaiveDate, Utc};\nuse rust_decimal::Decimal;\nuse uuid::Uuid;" in out

    def test_entity_equality_by_identity(self):
        out = _single("rust")
        assert "#[derive(Debug, Clone)]\npub struct Order {" in out
        assert "impl PartialEq for Order {" in out
        assert "        self.id == other.id" in out
        assert "#[derive(Debug, Clone, PartialEq)]\npub struct Money {" in out

    def test_types(self):
        out = _single("rust")
        assert "    pub payment: Option<PaymentMethod>," in out
        assert "    pub items: Vec<LineItem>," in out
        assert "    pub placed_at: DateTime<Utc>," in out

    def test_enum_with_data(self):
        out = _single("rust")
        assert "pub enum PaymentMethod {\n    Cash,\n    Card(CardDetails),\n}" in out

    def test_aggregate_module(self):
        out = _single("rust")
        assert "pub mod order_aggregate {\n    use super::*;" in out
        assert "        pub line_items: Vec<LineItem>," in out
        assert "        fn find_by_id(&self, id: Uuid) -> Option<OrderAggregate>;" in out
        assert (
            "if !(self.root.total_price == "
            "self.root.items.iter().map(|it| it.price.clone()).sum::<Decimal>()) {"
        ) in out

    def test_context_equation(self):
        assert "if !(self.quantity > 0) {" in _single("rust")


# ---------------------------------------------------------------------------
# Kotlin
# ---------------------------------------------------------------------------

class TestKotlin:
    def test_package_and_imports(self):
        files = _files("kotlin", package_name="com.acme.shop")
        out = files["Commerce.kt"]
        assert "package com.acme.shop\n" in out
        assert "import java.math.BigDecimal\n" in out
        assert "import java.util.UUID" in out

    def test_sealed_class(self):
        out = _single("kotlin")
        assert "sealed class PaymentMethod {" in out
        assert "    object Cash : PaymentMethod()" in out
        assert "    data class Card(val value: CardDetails) : PaymentMethod()" in out

    def test_entities_and_values(self):
        out = _single("kotlin")
        assert "class Order(\n    val id: UUID = UUID.randomUUID()," in out
        assert "    var payment: PaymentMethod? = null," in out
        assert "override fun equals(other: Any?): Boolean = other is Order && other.id == id" in out
        assert "data class Money(" in out

    def test_aggregate(self):
        out = _single("kotlin")
        assert "    val lineItems: MutableList<LineItem> = mutableListOf()," in out
        assert "if (!(root.totalPrice.compareTo(root.items.sumOf { it.price }) == 0)) {" in out
        assert "    fun findById(id: UUID): OrderAggregate?" in out


# ---------------------------------------------------------------------------
# Java
# ---------------------------------------------------------------------------

class TestJava:
    def test_one_file_per_type(self):
        files = _files("java", package_name="com.acme.shop")
        assert list(files) == [
            "com/acme/shop/InvariantViolation.java",
            "com/acme/shop/Customer.java",
            "com/acme/shop/Money.java",
            "com/acme/shop/CardDetails.java",
            "com/acme/shop/Order.java",
            "com/acme/shop/LineItem.java",
            "com/acme/shop/OrderStatus.java",
            "com/acme/shop/PaymentMethodKind.java",
            "com/acme/shop/PaymentMethod.java",
            "com/acme/shop/OrderAggregate.java",
            "com/acme/shop/OrderAggregateRepository.java",
        ]

    def test_tagged_union_fallback(self):
        files = _files("java")
        kind = files["com/example/domain/PaymentMethodKind.java"]
        assert "public enum PaymentMethodKind {\n    Cash, Card\n}" in kind
        holder = files["com/example/domain/PaymentMethod.java"]
        assert "    private final PaymentMethodKind kind;" in holder
        assert "    private final CardDetails card;" in holder
        assert "sealed" not in holder

    def test_entity_class(self):
        out = _files("java")["com/example/domain/Order.java"]
        assert "package com.example.domain;" in out
        assert "import java.util.UUID;" in out
        assert "import java.util.Objects;" in out
        assert "        this.id = id != null ? id : UUID.randomUUID();" in out
        assert "    public void setTotalPrice(BigDecimal totalPrice) {" in out
        assert "        return Objects.equals(id, other.id);" in out

    def test_aggregate_class(self):
        out = _files("java")["com/example/domain/OrderAggregate.java"]
        assert "import java.util.ArrayList;" in out
        assert "    private final List<LineItem> lineItems = new ArrayList<>();" in out
        assert (
            "getRoot().getTotalPrice().compareTo(getRoot().getItems().stream()"
            ".map(it -> it.getPrice()).reduce(BigDecimal.ZERO, BigDecimal::add)) == 0"
        ) in out
        assert "equals(Object o)" not in out

    def test_repository(self):
        out = _files("java")["com/example/domain/OrderAggregateRepository.java"]
        assert "    Optional<OrderAggregate> findById(UUID id);" in out
        assert "import java.util.Optional;" in out

    def test_imports_only_what_is_used(self):
        out = _files("java")["com/example/domain/OrderStatus.java"]
        assert "import" not in out


# ---------------------------------------------------------------------------
# SHACL
# ---------------------------------------------------------------------------

class TestShacl:
    def _graph(self, **options):
        content = _single("shacl", **options)
        return Graph().parse(data=content, format="turtle")

    def test_namespace_iri(self):
        assert str(namespace_iri("Shop")) == "http://sketchddd.example.org/Shop/"
        assert str(namespace_iri("https://acme.org/shop#")) == "https://acme.org/shop#"
        assert str(namespace_iri("https://acme.org/shop")) == "https://acme.org/shop/"

    def test_file(self):
        files = _files("shacl")
        assert list(files) == ["Commerce.ttl"]
        assert files["Commerce.ttl"].startswith("# Generated by sketchddd")

    def test_node_shapes(self):
        g = self._graph()
        ns = namespace_iri("Domain")
        assert (ns.CustomerShape, RDF.type, SH.NodeShape) in g
        assert (ns.CustomerShape, SH.targetClass, ns.Customer) in g
        assert (ns.CustomerShape, SH.nodeKind, SH.IRI) in g
        assert (ns.MoneyShape, SH.nodeKind, SH.IRI) not in g
        assert (ns.OrderAggregateRepositoryShape, RDF.type, SH.NodeShape) not in g

    def test_identity_is_not_a_property(self):
        g = self._graph()
        ns = namespace_iri("Domain")
        paths = {g.value(p, SH.path) for p in g.objects(ns.CustomerShape, SH.property)}
        assert paths == {ns.name, ns.email}

    def test_cardinalities(self):
        g = self._graph()
        ns = namespace_iri("Domain")
        props = {g.value(p, SH.path): p for p in g.objects(ns.OrderShape, SH.property)}
        assert g.value(props[ns.totalPrice], SH.datatype) == XSD.decimal
        assert g.value(props[ns.totalPrice], SH.minCount).toPython() == 1
        assert g.value(props[ns.payment], SH.minCount) is None
        assert g.value(props[ns.payment], SH.maxCount).toPython() == 1
        assert g.value(props[ns.items], SH.maxCount) is None
        assert g.value(props[ns.placedBy], SH["class"]) == ns.Customer

    def test_enum_values(self):
        g = self._graph()
        ns = namespace_iri("Domain")
        props = {g.value(p, SH.path): p for p in g.objects(ns.OrderShape, SH.property)}
        values = list(Collection(g, g.value(props[ns.status], SH["in"])))
        assert values == [Literal(v, datatype=XSD.string) for v in ("Pending", "Paid", "Shipped", "Cancelled")]

    def test_invariants_as_comments(self):
        g = self._graph()
        ns = namespace_iri("Domain")
        comments = {str(c) for c in g.objects(ns.OrderAggregateShape, RDFS.comment)}
        assert "[invariant] totalMatchesItems: totalPrice = sum(items.price)" in comments
        assert "[invariant] an order cannot be modified once shipped" in comments

    def test_union_fallback_shapes(self):
        g = self._graph()
        ns = namespace_iri("Domain")
        assert (ns.PaymentMethodShape, RDF.type, SH.NodeShape) in g

    def test_namespace_option(self):
        g = self._graph(namespace="https://acme.org/shop/")
        assert (Namespace("https://acme.org/shop/").CustomerShape, RDF.type, SH.NodeShape) in g

    def test_deterministic_graph(self):
        assert isomorphic(self._graph(), self._graph())


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

class TestEntryPoints:
    @pytest.mark.parametrize("target", ["typescript", "rust", "kotlin", "java"])
    def test_deterministic_text(self, target):
        assert _files(target) == _files(target)

    def test_get_backend_aliases(self):
        assert isinstance(get_backend("rs"), RustBackend)
        assert get_backend(Target.SHACL).name == "shacl"
        with pytest.raises(UnsupportedTargetError):
            get_backend("cobol")

    def test_invalid_context_refused(self):
        ctx = build_commerce()
        ctx.add_morphism("referredBy", "Customer", "Custommer")
        with pytest.raises(InvalidModelError) as info:
            generate(ctx, "typescript")
        assert info.value.result.error_count == 1

    def test_warnings_do_not_block(self):
        files = generate(build_shipping(), "typescript")
        assert files[0].filename == "Shipping.ts"

    def test_generate_all(self):
        config = ProjectConfig(targets=["typescript", "rust"])
        result = generate_all(build_commerce(), config)
        assert result.ok
        assert list(result.files) == [Target.TYPESCRIPT, Target.RUST]
        assert [f.filename for f in result.all_files()] == ["Commerce.ts", "commerce.rs"]

    def test_generate_all_uses_per_target_options(self):
        config = ProjectConfig(targets=["java"], options={"java": {"package_name": "org.shop"}})
        result = generate_all(build_commerce(), config)
        assert result.all_files()[0].filename.startswith("org/shop/")

    def test_backend_failure_is_isolated(self, monkeypatch):
        class BrokenRust(RustBackend):
            def render(self, unit):
                raise UnsupportedConstructError("rust", "function", "orphan")

        monkeypatch.setitem(codegen.BACKENDS, Target.RUST, BrokenRust)
        result = generate_all(build_commerce(), targets=[Target.TYPESCRIPT, Target.RUST, Target.KOTLIN])
        assert not result.ok
        assert list(result.files) == [Target.TYPESCRIPT, Target.KOTLIN]
        assert result.failures == {Target.RUST: "rust backend cannot render function 'orphan'"}
        assert "rust: FAILED" in result.summary()

    def test_summary(self):
        result = GenerationResult()
        assert result.summary().startswith("Code generation\n" + "-" * 50)
