"""Core types for SketchDDD: the categorical vocabulary of a bounded context.

A bounded context is modelled as a sketch:

  Objects   = vertices of the graph (Entity, ValueObject, Enum, Aggregate)
  Morphisms = named, directed edges between objects, with a cardinality
  Equations = assertions that two paths from the same object agree
  Limits    = aggregates (a root plus members reachable only through it)
  Colimits  = enumerations (mutually exclusive variants, optionally with payloads)

Every cross-reference is stored by name and resolved through the context's
name index, never as a direct pointer, so cyclic graphs need no special care.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union


# ---------------------------------------------------------------------------
# Span — a location in the source document
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Span:
    """A 1-based source location covering ``length`` characters on one line."""
    line: int
    column: int
    length: int = 1
    file: str | None = None

    def __repr__(self) -> str:
        where = f"{self.file}:" if self.file else ""
        return f"Span({where}{self.line}:{self.column}+{self.length})"


# ---------------------------------------------------------------------------
# Cardinality — how many targets a morphism reaches
# ---------------------------------------------------------------------------

class Cardinality(Enum):
    """Morphism multiplicity; drives aggregate rules and field shape in codegen."""
    ONE = "one"
    OPTIONAL = "optional"
    MANY = "many"

    @classmethod
    def parse(cls, text: str) -> Cardinality:
        aliases = {"1": "one", "?": "optional", "0..1": "optional", "*": "many", "0..*": "many"}
        value = text.strip().lower()
        return cls(aliases.get(value, value))


# ---------------------------------------------------------------------------
# Object kinds — the closed variant set
# ---------------------------------------------------------------------------

class ObjectKind(Enum):
    ENTITY = "entity"
    VALUE_OBJECT = "value_object"
    ENUM = "enum"
    AGGREGATE = "aggregate"


# ---------------------------------------------------------------------------
# Primitive types
# ---------------------------------------------------------------------------

# Canonical primitive names. Backends key their type tables on these.
PRIMITIVE_TYPES: tuple[str, ...] = (
    "String", "Int", "Float", "Decimal", "Bool", "Date", "DateTime", "UUID",
)

_PRIMITIVE_ALIASES: dict[str, str] = {
    "string": "String",
    "str": "String",
    "text": "String",
    "int": "Int",
    "integer": "Int",
    "long": "Int",
    "float": "Float",
    "double": "Float",
    "number": "Float",
    "decimal": "Decimal",
    "bool": "Bool",
    "boolean": "Bool",
    "date": "Date",
    "datetime": "DateTime",
    "timestamp": "DateTime",
    "uuid": "UUID",
}


def canonical_primitive(type_name: str) -> str | None:
    """Return the canonical primitive for ``type_name``, or None if it is not one."""
    return _PRIMITIVE_ALIASES.get(type_name.lower())


# ---------------------------------------------------------------------------
# Field — a typed attribute of an Entity or ValueObject
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Field:
    """A named attribute; ``type_name`` is a primitive or a declared object name."""
    name: str
    type_name: str
    optional: bool = False
    span: Span | None = field(default=None, compare=False)
    type_span: Span | None = field(default=None, compare=False)

    def __repr__(self) -> str:
        return f"Field({self.name}: {self.type_name}{'?' if self.optional else ''})"


# ---------------------------------------------------------------------------
# Object variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Entity:
    """An object with an implicit identity field.

    Categorical reading: an object equipped with an identity morphism
    ``id_<Name>``; two entities are equal iff their identities are.
    """
    kind: ClassVar[ObjectKind] = ObjectKind.ENTITY

    name: str
    fields: tuple[Field, ...] = ()
    id_field: str = "id"
    description: str = ""
    span: Span | None = field(default=None, compare=False)

    def __repr__(self) -> str:
        return f"Entity({self.name})"


@dataclass(frozen=True)
class ValueObject:
    """An object without identity; equality is structural over its fields.

    Categorical reading: the apex of a limit cone whose projections are the
    fields.
    """
    kind: ClassVar[ObjectKind] = ObjectKind.VALUE_OBJECT

    name: str
    fields: tuple[Field, ...] = ()
    description: str = ""
    span: Span | None = field(default=None, compare=False)

    def __repr__(self) -> str:
        return f"ValueObject({self.name})"


@dataclass(frozen=True)
class Variant:
    """One injection into an enumeration; ``payload`` names the carried type."""
    name: str
    payload: str | None = None
    span: Span | None = field(default=None, compare=False)
    payload_span: Span | None = field(default=None, compare=False)

    def __repr__(self) -> str:
        return f"{self.name}({self.payload})" if self.payload else self.name


@dataclass(frozen=True)
class Enumeration:
    """A colimit: mutually exclusive variants, some of which may carry payloads."""
    kind: ClassVar[ObjectKind] = ObjectKind.ENUM

    name: str
    variants: tuple[Variant, ...] = ()
    description: str = ""
    span: Span | None = field(default=None, compare=False)

    @property
    def has_payloads(self) -> bool:
        return any(v.payload is not None for v in self.variants)

    def __repr__(self) -> str:
        return f"Enum({self.name}: {' | '.join(repr(v) for v in self.variants)})"


@dataclass(frozen=True)
class Aggregate:
    """A limit cone with a designated root.

    ``root`` must name an Entity of the same context and must not appear in
    ``members``. ``invariants`` holds PathEquations or free-text rules.
    """
    kind: ClassVar[ObjectKind] = ObjectKind.AGGREGATE

    name: str
    root: str
    members: tuple[str, ...] = ()
    invariants: tuple[PathEquation | str, ...] = ()
    description: str = ""
    span: Span | None = field(default=None, compare=False)
    root_span: Span | None = field(default=None, compare=False)
    member_spans: tuple[Span | None, ...] = field(default=(), compare=False)

    def member_span(self, position: int) -> Span | None:
        if position < len(self.member_spans):
            return self.member_spans[position]
        return self.span

    @property
    def equations(self) -> tuple[PathEquation, ...]:
        return tuple(i for i in self.invariants if isinstance(i, PathEquation))

    @property
    def rules(self) -> tuple[str, ...]:
        return tuple(i for i in self.invariants if isinstance(i, str))

    def __repr__(self) -> str:
        return f"Aggregate({self.name}, root={self.root}, members={list(self.members)})"


# Closed tagged variant over the object kinds. Every pass and the IR builder
# dispatch on ``obj.kind`` and must handle all four.
ObjectDef = Union[Entity, ValueObject, Enumeration, Aggregate]


# ---------------------------------------------------------------------------
# Morphism — a directed edge between two objects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Morphism:
    """``name: source -> target`` with a cardinality."""
    name: str
    source: str
    target: str
    cardinality: Cardinality = Cardinality.ONE
    description: str = ""
    span: Span | None = field(default=None, compare=False)
    source_span: Span | None = field(default=None, compare=False)
    target_span: Span | None = field(default=None, compare=False)

    def __repr__(self) -> str:
        return f"Morphism({self.name}: {self.source} -> {self.target} [{self.cardinality.value}])"


# ---------------------------------------------------------------------------
# Equation expressions — an opaque tree, checked only for name resolution
# ---------------------------------------------------------------------------

AGGREGATE_OPERATORS: frozenset[str] = frozenset({"sum", "count", "min", "max", "avg"})

COMPARISON_OPERATORS: tuple[str, ...] = ("=", "!=", "<", "<=", ">", ">=")


@dataclass(frozen=True)
class Literal:
    value: int | float | str

    def __str__(self) -> str:
        return repr(self.value) if isinstance(self.value, str) else str(self.value)


@dataclass(frozen=True)
class Path:
    """A dotted navigation such as ``items.price`` from the equation's anchor."""
    segments: tuple[str, ...]
    spans: tuple[Span | None, ...] = field(default=(), compare=False)

    def span_of(self, position: int) -> Span | None:
        if position < len(self.spans):
            return self.spans[position]
        return None

    def __str__(self) -> str:
        return ".".join(self.segments)


@dataclass(frozen=True)
class Call:
    """An aggregate operator applied to arguments, e.g. ``sum(items.price)``."""
    function: str
    args: tuple[Expr, ...] = ()
    span: Span | None = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.function}({', '.join(str(a) for a in self.args)})"


@dataclass(frozen=True)
class BinaryOp:
    operator: str
    left: Expr
    right: Expr

    def __str__(self) -> str:
        return f"{self.left} {self.operator} {self.right}"


Expr = Union[Literal, Path, Call, BinaryOp]


def iter_paths(expr: Expr):
    """Yield every Path in ``expr`` in left-to-right order."""
    if isinstance(expr, Path):
        yield expr
    elif isinstance(expr, Call):
        for arg in expr.args:
            yield from iter_paths(arg)
    elif isinstance(expr, BinaryOp):
        yield from iter_paths(expr.left)
        yield from iter_paths(expr.right)


def iter_calls(expr: Expr):
    """Yield every Call in ``expr`` in left-to-right order."""
    if isinstance(expr, Call):
        yield expr
        for arg in expr.args:
            yield from iter_calls(arg)
    elif isinstance(expr, BinaryOp):
        yield from iter_calls(expr.left)
        yield from iter_calls(expr.right)


# ---------------------------------------------------------------------------
# PathEquation — a business invariant
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PathEquation:
    """An assertion ``lhs <operator> rhs`` over paths from one anchor object.

    ``source`` names the anchor. It is None for aggregate invariants, whose
    anchor is the aggregate root.
    """
    name: str
    lhs: Expr
    rhs: Expr
    operator: str = "="
    source: str | None = None
    span: Span | None = field(default=None, compare=False)
    source_span: Span | None = field(default=None, compare=False)

    @property
    def text(self) -> str:
        return f"{self.lhs} {self.operator} {self.rhs}"

    def __repr__(self) -> str:
        return f"PathEquation({self.name}: {self.text})"


def edit_threshold(name: str, max_distance: int = 3) -> int:
    """Largest edit distance at which a candidate still counts as a near match."""
    return min(max_distance, math.ceil(0.3 * len(name)))
