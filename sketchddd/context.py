"""Bounded Context — one sketch of the domain.

A BoundedContext owns its objects, morphisms and path equations. Objects are
kept in declaration order in a single list (the context's arena); every
cross-reference between them is a name resolved through the NameIndex.

The builder API accepts anything a parser can produce, including duplicate
names and dangling references: reporting those is the validator's job, not
the builder's.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .types import (
    Aggregate,
    Cardinality,
    Entity,
    Enumeration,
    Field,
    Morphism,
    ObjectDef,
    ObjectKind,
    PathEquation,
    Span,
    ValueObject,
    Variant,
)


FieldSpec = Mapping[str, str] | Iterable[Field]
VariantSpec = Iterable[str | tuple[str, str | None] | Variant]


def _coerce_fields(fields: FieldSpec | None) -> tuple[Field, ...]:
    """Accept ``{"email": "String?"}`` style mappings or ready-made Fields."""
    if fields is None:
        return ()
    if isinstance(fields, Mapping):
        result = []
        for name, type_name in fields.items():
            optional = type_name.endswith("?")
            result.append(Field(name=name, type_name=type_name.rstrip("?"), optional=optional))
        return tuple(result)
    return tuple(fields)


def _coerce_variants(variants: VariantSpec | None) -> tuple[Variant, ...]:
    result = []
    for v in variants or ():
        if isinstance(v, Variant):
            result.append(v)
        elif isinstance(v, tuple):
            result.append(Variant(name=v[0], payload=v[1]))
        else:
            result.append(Variant(name=v))
    return tuple(result)


@dataclass
class BoundedContext:
    """A bounded context: graph + equations + limits + colimits.

    Validation and code generation only read a context; once it has been
    handed to ``validate()`` callers should treat it as frozen.
    """

    name: str
    objects: list[ObjectDef] = field(default_factory=list)
    morphisms: list[Morphism] = field(default_factory=list)
    equations: list[PathEquation] = field(default_factory=list)
    description: str = ""
    span: Span | None = None

    # -----------------------------------------------------------------------
    # Builder API
    # -----------------------------------------------------------------------

    def add_object(self, obj: ObjectDef) -> ObjectDef:
        self.objects.append(obj)
        return obj

    def add_entity(
        self,
        name: str,
        fields: FieldSpec | None = None,
        id_field: str = "id",
        description: str = "",
    ) -> Entity:
        """Declare an entity. Its identity field is implicit."""
        entity = Entity(name=name, fields=_coerce_fields(fields), id_field=id_field,
                        description=description)
        self.objects.append(entity)
        return entity

    def add_value_object(
        self, name: str, fields: FieldSpec | None = None, description: str = "",
    ) -> ValueObject:
        vo = ValueObject(name=name, fields=_coerce_fields(fields), description=description)
        self.objects.append(vo)
        return vo

    def add_enum(self, name: str, variants: VariantSpec | None = None, description: str = "") -> Enumeration:
        """Declare an enumeration.

        ``variants`` items are plain names, ``(name, payload)`` pairs, or
        Variant instances.
        """
        enum = Enumeration(name=name, variants=_coerce_variants(variants), description=description)
        self.objects.append(enum)
        return enum

    def add_aggregate(
        self,
        name: str,
        root: str,
        members: Iterable[str] = (),
        invariants: Iterable[PathEquation | str] = (),
        description: str = "",
    ) -> Aggregate:
        """Declare an aggregate rooted at ``root``."""
        agg = Aggregate(
            name=name,
            root=root,
            members=tuple(members),
            invariants=tuple(invariants),
            description=description,
        )
        self.objects.append(agg)
        return agg

    def add_morphism(
        self,
        name: str,
        source: str,
        target: str,
        cardinality: Cardinality | str = Cardinality.ONE,
        description: str = "",
    ) -> Morphism:
        """Declare a directed edge ``name: source -> target``."""
        if isinstance(cardinality, str):
            cardinality = Cardinality.parse(cardinality)
        m = Morphism(name=name, source=source, target=target,
                     cardinality=cardinality, description=description)
        self.morphisms.append(m)
        return m

    def add_equation(self, equation: PathEquation) -> PathEquation:
        """Attach a context-level path equation (its ``source`` is the anchor)."""
        self.equations.append(equation)
        return equation

    # -----------------------------------------------------------------------
    # Structural queries
    # -----------------------------------------------------------------------

    def get(self, name: str) -> ObjectDef | None:
        """Return the first object declared under ``name``."""
        for obj in self.objects:
            if obj.name == name:
                return obj
        return None

    def of_kind(self, kind: ObjectKind) -> list[ObjectDef]:
        return [o for o in self.objects if o.kind is kind]

    @property
    def entities(self) -> list[Entity]:
        return self.of_kind(ObjectKind.ENTITY)

    @property
    def value_objects(self) -> list[ValueObject]:
        return self.of_kind(ObjectKind.VALUE_OBJECT)

    @property
    def enums(self) -> list[Enumeration]:
        return self.of_kind(ObjectKind.ENUM)

    @property
    def aggregates(self) -> list[Aggregate]:
        return self.of_kind(ObjectKind.AGGREGATE)

    def outgoing(self, source: str) -> list[Morphism]:
        """Morphisms whose source is ``source``, in declaration order."""
        return [m for m in self.morphisms if m.source == source]

    def incoming(self, target: str) -> list[Morphism]:
        return [m for m in self.morphisms if m.target == target]

    def aggregate_of(self, name: str) -> Aggregate | None:
        """Return the first aggregate that roots or contains ``name``."""
        for agg in self.aggregates:
            if agg.root == name or name in agg.members:
                return agg
        return None

    def equations_for(self, source: str) -> list[PathEquation]:
        return [eq for eq in self.equations if eq.source == source]

    def summary(self) -> str:
        lines = [f"BoundedContext {self.name}", "-" * 50]
        for obj in self.objects:
            lines.append(f"  {obj.kind.value:<13} {obj.name}")
        for m in self.morphisms:
            lines.append(f"  morphism      {m.name}: {m.source} -> {m.target} [{m.cardinality.value}]")
        for eq in self.equations:
            lines.append(f"  equation      {eq.name}: {eq.text}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"BoundedContext({self.name}, "
            f"{len(self.objects)} objects, "
            f"{len(self.morphisms)} morphisms)"
        )
