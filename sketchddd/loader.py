"""YAML model documents.

A model document lists bounded contexts and the context maps between them:

    contexts:
      - name: Commerce
        objects:
          - entity: Customer
            fields:
              name: String
              email: String?
          - value: Money
            fields: {amount: Decimal, currency: String}
          - enum: PaymentMethod
            variants: [Cash, {Card: CardDetails}]
          - aggregate: OrderAggregate
            root: Order
            members: [LineItem]
            invariants: ["totalPrice = sum(items.price)"]
        morphisms:
          - {name: placedBy, source: Order, target: Customer, cardinality: one}
        equations:
          - {name: positiveTotal, source: Order, equation: "totalPrice >= 0"}
    context_maps:
      - {name: OrderFulfilment, source: Commerce, target: Shipping,
         pattern: CustomerSupplier, mappings: [{Order: Shipment}]}

A trailing ``?`` marks a field optional. Flow mappings (``{...}``) end a
plain value at ``?``, so an optional field is written in block style as
above, quoted (``email: "String?"``) or spelled out as
``email: {type: String, optional: true}``.

The document is composed rather than loaded so that every scalar keeps its
position; those positions become the spans diagnostics point at.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from .context import BoundedContext
from .context_map import ContextMap, DomainModel, ObjectMapping, Pattern
from .equations import parse_equation
from .errors import EquationSyntaxError, ModelLoadError
from .types import (
    Aggregate,
    Cardinality,
    Entity,
    Enumeration,
    Field,
    Morphism,
    PathEquation,
    Span,
    ValueObject,
    Variant,
)

logger = logging.getLogger(__name__)

_NULL_TAG = "tag:yaml.org,2002:null"
_BOOL_TAG = "tag:yaml.org,2002:bool"

_OBJECT_KEYS = {
    "entity": "entity",
    "value": "value",
    "value_object": "value",
    "enum": "enum",
    "aggregate": "aggregate",
}


class _Reader:
    """Walks the composed node tree of one document."""

    def __init__(self, filename: str | None):
        self.filename = filename

    # -----------------------------------------------------------------------
    # Node helpers
    # -----------------------------------------------------------------------

    def fail(self, message: str, node: Node | None) -> ModelLoadError:
        if node is None:
            return ModelLoadError(message, file=self.filename)
        mark = node.start_mark
        return ModelLoadError(message, file=self.filename, line=mark.line + 1, column=mark.column + 1)

    def span(self, node: Node) -> Span:
        mark = node.start_mark
        if isinstance(node, ScalarNode) and mark.line == node.end_mark.line:
            length = max(node.end_mark.column - mark.column, 1)
        else:
            length = 1
        return Span(mark.line + 1, mark.column + 1, length, self.filename)

    def text_span(self, node: ScalarNode, text: str) -> Span:
        """Span of ``text`` at the start of a scalar, skipping an opening quote."""
        mark = node.start_mark
        shift = 1 if node.style in ("'", '"') else 0
        return Span(mark.line + 1, mark.column + 1 + shift, max(len(text), 1), self.filename)

    def mapping(self, node: Node, what: str) -> list[tuple[str, Node, Node]]:
        if not isinstance(node, MappingNode):
            raise self.fail(f"{what} must be a mapping", node)
        return [(self.scalar(k, f"key in {what}"), k, v) for k, v in node.value]

    def sequence(self, node: Node | None, what: str) -> list[Node]:
        if node is None:
            return []
        if isinstance(node, ScalarNode) and node.tag == _NULL_TAG:
            return []
        if not isinstance(node, SequenceNode):
            raise self.fail(f"{what} must be a list", node)
        return list(node.value)

    def scalar(self, node: Node, what: str) -> str:
        if not isinstance(node, ScalarNode):
            raise self.fail(f"{what} must be a single value", node)
        return node.value

    def is_null(self, node: Node) -> bool:
        return isinstance(node, ScalarNode) and node.tag == _NULL_TAG

    def flag(self, node: Node, what: str) -> bool:
        if not isinstance(node, ScalarNode) or node.tag != _BOOL_TAG:
            raise self.fail(f"{what} must be true or false", node)
        return node.value.lower() in ("true", "yes", "on")

    def keyed(self, node: Node, what: str, allowed: set[str]) -> dict[str, Node]:
        result: dict[str, Node] = {}
        for key, key_node, value in self.mapping(node, what):
            if key not in allowed:
                raise self.fail(
                    f"unknown key '{key}' in {what} (expected one of: {', '.join(sorted(allowed))})",
                    key_node,
                )
            result[key] = value
        return result

    def required(self, entries: dict[str, Node], key: str, what: str, node: Node) -> Node:
        if key not in entries:
            raise self.fail(f"{what} is missing '{key}'", node)
        return entries[key]

    # -----------------------------------------------------------------------
    # Document structure
    # -----------------------------------------------------------------------

    def model(self, root: Node | None) -> DomainModel:
        model = DomainModel()
        if root is None:
            return model
        entries = self.keyed(root, "model document", {"name", "version", "contexts", "context_maps"})
        for node in self.sequence(entries.get("contexts"), "contexts"):
            ctx = self.context(node)
            try:
                model.add_context(ctx)
            except ValueError as e:
                raise self.fail(str(e), node) from e
        for node in self.sequence(entries.get("context_maps"), "context_maps"):
            cm = self.context_map(node)
            if any(existing.name == cm.name for existing in model.context_maps):
                raise self.fail(f"context map '{cm.name}' is declared twice", node)
            model.context_maps.append(cm)
        return model

    def context(self, node: Node) -> BoundedContext:
        entries = self.keyed(node, "context", {"name", "description", "objects", "morphisms", "equations"})
        name_node = self.required(entries, "name", "context", node)
        ctx = BoundedContext(
            name=self.scalar(name_node, "context name"),
            description=self.scalar(entries["description"], "description") if "description" in entries else "",
            span=self.span(name_node),
        )
        for obj_node in self.sequence(entries.get("objects"), "objects"):
            ctx.add_object(self.object(obj_node))
        for m_node in self.sequence(entries.get("morphisms"), "morphisms"):
            ctx.morphisms.append(self.morphism(m_node))
        for position, eq_node in enumerate(self.sequence(entries.get("equations"), "equations"), start=1):
            ctx.add_equation(self.equation(eq_node, position))
        logger.debug("Loaded context %s: %d objects", ctx.name, len(ctx.objects))
        return ctx

    def object(self, node: Node):
        entries = self.mapping(node, "object")
        kinds = [(k, kn, v) for k, kn, v in entries if k in _OBJECT_KEYS]
        if len(kinds) != 1:
            raise self.fail(
                "object must have exactly one of 'entity', 'value', 'enum' or 'aggregate'", node
            )
        key, _, name_node = kinds[0]
        kind = _OBJECT_KEYS[key]
        name = self.scalar(name_node, f"{key} name")
        span = self.span(name_node)
        allowed = {
            "entity": {"fields", "id", "description"},
            "value": {"fields", "description"},
            "enum": {"variants", "description"},
            "aggregate": {"root", "members", "invariants", "description"},
        }[kind]
        rest: dict[str, Node] = {}
        for k, key_node, value in entries:
            if k == key:
                continue
            if k not in allowed:
                raise self.fail(f"unknown key '{k}' in {key} '{name}'", key_node)
            rest[k] = value
        description = self.scalar(rest["description"], "description") if "description" in rest else ""

        if kind == "entity":
            id_field = self.scalar(rest["id"], "id") if "id" in rest else "id"
            return Entity(name=name, fields=self.fields(rest.get("fields")), id_field=id_field,
                          description=description, span=span)
        if kind == "value":
            return ValueObject(name=name, fields=self.fields(rest.get("fields")),
                               description=description, span=span)
        if kind == "enum":
            variants = tuple(self.variant(v) for v in self.sequence(rest.get("variants"), "variants"))
            return Enumeration(name=name, variants=variants, description=description, span=span)
        return self.aggregate(name, span, rest, description, node)

    def fields(self, node: Node | None) -> tuple[Field, ...]:
        if node is None or self.is_null(node):
            return ()
        result = []
        for name, key_node, type_node in self.mapping(node, "fields"):
            if isinstance(type_node, MappingNode):
                entries = self.keyed(type_node, f"field '{name}'", {"type", "optional"})
                optional = "optional" in entries and self.flag(entries["optional"], "optional")
                type_node = self.required(entries, "type", f"field '{name}'", type_node)
                type_name = self.scalar(type_node, f"type of field '{name}'").strip()
            else:
                raw = self.scalar(type_node, f"type of field '{name}'").strip()
                optional = raw.endswith("?")
                type_name = raw.rstrip("?").strip()
            if not type_name:
                raise self.fail(f"field '{name}' has no type", type_node)
            result.append(Field(
                name=name,
                type_name=type_name,
                optional=optional,
                span=self.span(key_node),
                type_span=self.text_span(type_node, type_name),
            ))
        return tuple(result)

    def variant(self, node: Node) -> Variant:
        if isinstance(node, ScalarNode):
            return Variant(name=node.value, span=self.span(node))
        entries = self.mapping(node, "variant")
        if len(entries) != 1:
            raise self.fail("a variant with a payload is written as {Name: PayloadType}", node)
        name, key_node, payload_node = entries[0]
        if self.is_null(payload_node):
            return Variant(name=name, span=self.span(key_node))
        return Variant(
            name=name,
            payload=self.scalar(payload_node, f"payload of variant '{name}'"),
            span=self.span(key_node),
            payload_span=self.span(payload_node),
        )

    def aggregate(self, name: str, span: Span, rest: dict[str, Node],
                  description: str, node: Node) -> Aggregate:
        root_node = self.required(rest, "root", f"aggregate '{name}'", node)
        member_nodes = self.sequence(rest.get("members"), "members")
        invariants: list[PathEquation | str] = []
        for position, inv_node in enumerate(self.sequence(rest.get("invariants"), "invariants"), start=1):
            invariants.append(self.invariant(inv_node, f"invariant_{position}"))
        return Aggregate(
            name=name,
            root=self.scalar(root_node, "aggregate root"),
            members=tuple(self.scalar(m, "aggregate member") for m in member_nodes),
            invariants=tuple(invariants),
            description=description,
            span=span,
            root_span=self.span(root_node),
            member_spans=tuple(self.span(m) for m in member_nodes),
        )

    def invariant(self, node: Node, default_name: str) -> PathEquation | str:
        """An equation if the text parses as one, otherwise a free-text rule."""
        if isinstance(node, MappingNode):
            entries = self.keyed(node, "invariant", {"name", "equation"})
            text_node = self.required(entries, "equation", "invariant", node)
            name = self.scalar(entries["name"], "invariant name") if "name" in entries else default_name
            return self.parse(text_node, name, None)
        text = self.scalar(node, "invariant")
        try:
            return self.parse(node, default_name, None)
        except EquationSyntaxError:
            logger.debug("Keeping invariant %r as a free-text rule", text)
            return text

    def parse(self, node: Node, name: str, source: str | None) -> PathEquation:
        text = self.scalar(node, "equation")
        start = self.text_span(node, text)
        return parse_equation(text, name=name, source=source, line=start.line,
                              column=start.column, file=self.filename)

    def morphism(self, node: Node) -> Morphism:
        entries = self.keyed(node, "morphism", {"name", "source", "target", "cardinality", "description"})
        name_node = self.required(entries, "name", "morphism", node)
        source_node = self.required(entries, "source", "morphism", node)
        target_node = self.required(entries, "target", "morphism", node)
        cardinality = Cardinality.ONE
        if "cardinality" in entries:
            raw = self.scalar(entries["cardinality"], "cardinality")
            try:
                cardinality = Cardinality.parse(raw)
            except ValueError as e:
                raise self.fail(
                    f"unknown cardinality '{raw}' (expected one, optional or many)", entries["cardinality"]
                ) from e
        return Morphism(
            name=self.scalar(name_node, "morphism name"),
            source=self.scalar(source_node, "morphism source"),
            target=self.scalar(target_node, "morphism target"),
            cardinality=cardinality,
            description=self.scalar(entries["description"], "description") if "description" in entries else "",
            span=self.span(name_node),
            source_span=self.span(source_node),
            target_span=self.span(target_node),
        )

    def equation(self, node: Node, position: int) -> PathEquation:
        entries = self.keyed(node, "equation", {"name", "source", "equation"})
        source_node = self.required(entries, "source", "equation", node)
        text_node = self.required(entries, "equation", "equation", node)
        name = self.scalar(entries["name"], "equation name") if "name" in entries else f"equation_{position}"
        eq = self.parse(text_node, name, self.scalar(source_node, "equation source"))
        return PathEquation(
            name=eq.name, lhs=eq.lhs, rhs=eq.rhs, operator=eq.operator, source=eq.source,
            span=eq.span, source_span=self.span(source_node),
        )

    def context_map(self, node: Node) -> ContextMap:
        entries = self.keyed(node, "context map",
                             {"name", "source", "target", "pattern", "mappings", "description"})
        name_node = self.required(entries, "name", "context map", node)
        source_node = self.required(entries, "source", "context map", node)
        target_node = self.required(entries, "target", "context map", node)
        pattern_node = self.required(entries, "pattern", "context map", node)
        raw = self.scalar(pattern_node, "pattern")
        try:
            pattern = Pattern.parse(raw)
        except ValueError as e:
            raise self.fail(
                f"unknown pattern '{raw}' (expected one of: {', '.join(p.value for p in Pattern)})",
                pattern_node,
            ) from e
        return ContextMap(
            name=self.scalar(name_node, "context map name"),
            source_context=self.scalar(source_node, "context map source"),
            target_context=self.scalar(target_node, "context map target"),
            pattern=pattern,
            mappings=[self.object_mapping(m) for m in self.sequence(entries.get("mappings"), "mappings")],
            description=self.scalar(entries["description"], "description") if "description" in entries else "",
            span=self.span(name_node),
            source_span=self.span(source_node),
            target_span=self.span(target_node),
        )

    def object_mapping(self, node: Node) -> ObjectMapping:
        entries = self.mapping(node, "object mapping")
        keys = {k for k, _, _ in entries}
        if keys and keys <= {"source", "target", "description"}:
            named = {k: v for k, _, v in entries}
            s = self.required(named, "source", "object mapping", node)
            t = self.required(named, "target", "object mapping", node)
            return ObjectMapping(
                source_object=self.scalar(s, "mapping source"),
                target_object=self.scalar(t, "mapping target"),
                description=self.scalar(named["description"], "description") if "description" in named else "",
                source_span=self.span(s),
                target_span=self.span(t),
            )
        if len(entries) != 1:
            raise self.fail("an object mapping is written as {SourceObject: TargetObject}", node)
        source, key_node, target_node = entries[0]
        return ObjectMapping(
            source_object=source,
            target_object=self.scalar(target_node, "mapping target"),
            source_span=self.span(key_node),
            target_span=self.span(target_node),
        )


def load_model(text: str, filename: str | None = None) -> DomainModel:
    """Build a DomainModel from the text of a YAML model document.

    Raises ModelLoadError (or EquationSyntaxError) when the document is not
    well-formed. Semantic problems are left for the validator.
    """
    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark
        raise ModelLoadError(
            f"invalid YAML: {e.problem}",
            file=filename,
            line=mark.line + 1 if mark else None,
            column=mark.column + 1 if mark else None,
        ) from e
    except yaml.YAMLError as e:
        raise ModelLoadError(f"invalid YAML: {e}", file=filename) from e
    model = _Reader(filename).model(root)
    logger.debug("Loaded %r from %s", model, filename or "<input>")
    return model


def load_model_file(path: str | Path) -> tuple[DomainModel, str]:
    """Read and load a model document; returns the model and its source text."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ModelLoadError(f"cannot read model file: {e.strerror}", file=str(path)) from e
    return load_model(text, filename=str(path)), text
