"""Language-neutral intermediate representation for code generation.

A CodeUnit is what the IR builder produces for one bounded context and what
every backend consumes. It names types and operations in the model's own
terms; case conventions, type spellings and syntax are the backends' job.

  CodeUnit   = (name, imports, items)
  CodeItem   = Struct | EnumType | TaggedUnion | Function | Trait | Module

All nodes are immutable, so a CodeUnit can be shared between backends.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class ItemKind(Enum):
    STRUCT = "struct"
    ENUM = "enum"
    TAGGED_UNION = "tagged_union"
    FUNCTION = "function"
    TRAIT = "trait"
    MODULE = "module"


class StructTag(Enum):
    """What a Struct was lowered from."""
    ENTITY = "entity"
    VALUE_OBJECT = "value_object"
    AGGREGATE = "aggregate"
    PLAIN = "plain"  # synthesized by a fallback transform


class FunctionOp(Enum):
    """The synthesized operation a Function stands for."""
    ADD_MEMBER = "add_member"
    REMOVE_MEMBER = "remove_member"
    CHECK_INVARIANT = "check_invariant"
    FIND_BY_ID = "find_by_id"
    SAVE = "save"


# ---------------------------------------------------------------------------
# Types, fields, parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TypeRef:
    """A reference to a canonical primitive or to another item in the unit."""
    name: str
    primitive: bool = False
    optional: bool = False
    many: bool = False

    def __str__(self) -> str:
        text = f"[{self.name}]" if self.many else self.name
        return text + ("?" if self.optional else "")


@dataclass(frozen=True)
class FieldDecl:
    name: str
    type: TypeRef
    identity: bool = False
    doc: str = ""


@dataclass(frozen=True)
class Param:
    name: str
    type: TypeRef


# ---------------------------------------------------------------------------
# Invariant expressions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PathStep:
    """One navigation step. ``type`` is where the step lands."""
    name: str
    type: TypeRef


@dataclass(frozen=True)
class PathRef:
    """Navigation from the instance the check runs on."""
    steps: tuple[PathStep, ...]

    def split(self) -> tuple[tuple[PathStep, ...], PathStep | None, tuple[PathStep, ...]]:
        """Split at the first collection step: (before, collection, after)."""
        for i, step in enumerate(self.steps):
            if step.type.many:
                return self.steps[:i], step, self.steps[i + 1:]
        return self.steps, None, ()

    @property
    def leaf(self) -> TypeRef | None:
        return self.steps[-1].type if self.steps else None

    def __str__(self) -> str:
        return ".".join(s.name for s in self.steps)


@dataclass(frozen=True)
class Const:
    value: int | float | str


@dataclass(frozen=True)
class Aggregation:
    """``sum``/``count``/``min``/``max``/``avg`` over a path."""
    op: str
    arg: IRExpr


@dataclass(frozen=True)
class Arith:
    op: str
    left: IRExpr
    right: IRExpr


IRExpr = Union[PathRef, Const, Aggregation, Arith]


def primitive_of(expr: IRExpr) -> str | None:
    """Canonical primitive an expression evaluates to, if known."""
    if isinstance(expr, Const):
        if isinstance(expr.value, str):
            return "String"
        return "Float" if isinstance(expr.value, float) else "Int"
    if isinstance(expr, PathRef):
        leaf = expr.leaf
        return leaf.name if leaf is not None and leaf.primitive else None
    if isinstance(expr, Aggregation):
        if expr.op == "count":
            return "Int"
        if expr.op == "avg":
            return "Float"
        return primitive_of(expr.arg)
    left, right = primitive_of(expr.left), primitive_of(expr.right)
    for wider in ("Decimal", "Float", "Int"):
        if wider in (left, right):
            return wider
    return left or right


@dataclass(frozen=True)
class InvariantCheck:
    name: str
    lhs: IRExpr
    operator: str
    rhs: IRExpr
    text: str


# ---------------------------------------------------------------------------
# Code items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Function:
    kind: ClassVar[ItemKind] = ItemKind.FUNCTION

    name: str
    op: FunctionOp
    params: tuple[Param, ...] = ()
    returns: TypeRef | None = None
    member: str | None = None  # collection field touched by add/remove
    invariant: InvariantCheck | None = None
    doc: str = ""


@dataclass(frozen=True)
class Struct:
    kind: ClassVar[ItemKind] = ItemKind.STRUCT

    name: str
    tag: StructTag
    fields: tuple[FieldDecl, ...] = ()
    functions: tuple[Function, ...] = ()
    id_field: str | None = None
    rules: tuple[str, ...] = ()  # free-text invariants, rendered as docs
    doc: str = ""

    @property
    def invariant_checks(self) -> tuple[Function, ...]:
        return tuple(f for f in self.functions if f.op is FunctionOp.CHECK_INVARIANT)


@dataclass(frozen=True)
class EnumType:
    kind: ClassVar[ItemKind] = ItemKind.ENUM

    name: str
    variants: tuple[str, ...]
    doc: str = ""


@dataclass(frozen=True)
class UnionCase:
    name: str
    payload: TypeRef | None = None


@dataclass(frozen=True)
class TaggedUnion:
    kind: ClassVar[ItemKind] = ItemKind.TAGGED_UNION

    name: str
    cases: tuple[UnionCase, ...]
    doc: str = ""


@dataclass(frozen=True)
class Trait:
    kind: ClassVar[ItemKind] = ItemKind.TRAIT

    name: str
    functions: tuple[Function, ...] = ()
    doc: str = ""


@dataclass(frozen=True)
class Module:
    kind: ClassVar[ItemKind] = ItemKind.MODULE

    name: str
    items: tuple[CodeItem, ...] = ()
    doc: str = ""


CodeItem = Union[Struct, EnumType, TaggedUnion, Function, Trait, Module]


@dataclass(frozen=True)
class CodeUnit:
    name: str
    imports: tuple[str, ...] = ()
    items: tuple[CodeItem, ...] = ()

    def walk(self):
        """Yield every item, descending into modules, in order."""
        def visit(items):
            for item in items:
                yield item
                if isinstance(item, Module):
                    yield from visit(item.items)
        yield from visit(self.items)

    def find(self, name: str) -> CodeItem | None:
        for item in self.walk():
            if item.name == name:
                return item
        return None

    @property
    def has_invariants(self) -> bool:
        return any(isinstance(i, Struct) and i.invariant_checks for i in self.walk())
