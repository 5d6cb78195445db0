"""Backend base: capability negotiation, fallback lowering, naming, types.

Each backend declares which IR constructs it can render. Before rendering,
``Backend.lower()`` rewrites every construct the backend does not support
into its documented degraded form:

  TAGGED_UNION  -> EnumType ``<Name>Kind`` + Struct ``<Name>`` with a
                   ``kind`` field and one optional field per payload case
  MODULE        -> its items, inlined in place
  TRAIT         -> dropped (the target has no interface construct)
  INVARIANTS    -> check functions removed; their equation text is kept as
                   documentation rules on the Struct

A construct with neither support nor a fallback (a top-level FUNCTION, for
instance) raises UnsupportedConstructError. The fallbacks are pure and
deterministic, so the same CodeUnit always lowers to the same result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, ClassVar

from ..config import TargetOptions
from ..errors import UnsupportedConstructError
from .ir import (
    CodeItem,
    CodeUnit,
    EnumType,
    FieldDecl,
    FunctionOp,
    ItemKind,
    Module,
    Struct,
    StructTag,
    TaggedUnion,
    TypeRef,
)
from .naming import camel_case, pascal_case, snake_case

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedFile:
    filename: str
    content: str
    language: str


class Capability(Enum):
    STRUCT = "struct"
    ENUM = "enum"
    TAGGED_UNION = "tagged_union"
    TRAIT = "trait"
    MODULE = "module"
    FUNCTION = "function"
    INVARIANTS = "invariants"


_CAPABILITY_OF: dict[ItemKind, Capability] = {
    ItemKind.STRUCT: Capability.STRUCT,
    ItemKind.ENUM: Capability.ENUM,
    ItemKind.TAGGED_UNION: Capability.TAGGED_UNION,
    ItemKind.TRAIT: Capability.TRAIT,
    ItemKind.MODULE: Capability.MODULE,
    ItemKind.FUNCTION: Capability.FUNCTION,
}


# ---------------------------------------------------------------------------
# Fallback transforms
# ---------------------------------------------------------------------------

def tagged_union_fallback(union: TaggedUnion) -> list[CodeItem]:
    """Plain enum of case names plus a struct carrying the payloads."""
    kind_enum = EnumType(name=f"{union.name}Kind", variants=tuple(c.name for c in union.cases),
                         doc=f"Case of {union.name}.")
    fields = [FieldDecl("kind", TypeRef(kind_enum.name))]
    for case in union.cases:
        if case.payload is not None:
            payload = TypeRef(case.payload.name, case.payload.primitive, optional=True,
                              many=case.payload.many)
            fields.append(FieldDecl(snake_case(case.name), payload,
                                    doc=f"Set when kind is {case.name}."))
    holder = Struct(name=union.name, tag=StructTag.PLAIN, fields=tuple(fields), doc=union.doc)
    return [kind_enum, holder]


def module_fallback(module: Module) -> list[CodeItem]:
    return list(module.items)


def trait_fallback(_item) -> list[CodeItem]:
    return []


def strip_invariants(struct: Struct) -> Struct:
    """Drop check functions, keeping each equation as a documented rule."""
    checks = struct.invariant_checks
    texts = tuple(f"{f.invariant.name}: {f.invariant.text}" for f in checks)
    return replace(
        struct,
        functions=tuple(f for f in struct.functions if f.op is not FunctionOp.CHECK_INVARIANT),
        rules=struct.rules + texts,
    )


FALLBACKS: dict[Capability, Callable[..., list[CodeItem]]] = {
    Capability.TAGGED_UNION: tagged_union_fallback,
    Capability.MODULE: module_fallback,
    Capability.TRAIT: trait_fallback,
}


# ---------------------------------------------------------------------------
# Backend base
# ---------------------------------------------------------------------------

class Backend:
    """Base class for language backends.

    Subclasses set ``name``, ``language``, ``capabilities`` and
    ``type_map`` (canonical primitive -> native type), and implement
    ``render()``. ``generate()`` is the public entry point.
    """

    name: ClassVar[str] = ""
    language: ClassVar[str] = ""
    capabilities: ClassVar[frozenset[Capability]] = frozenset()
    type_map: ClassVar[dict[str, str]] = {}

    def __init__(self, options: TargetOptions | None = None):
        self.options = options or TargetOptions()

    # -----------------------------------------------------------------------
    # Capability negotiation
    # -----------------------------------------------------------------------

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def lower(self, unit: CodeUnit) -> CodeUnit:
        """Rewrite constructs this backend cannot render into fallback forms."""
        return replace(unit, items=tuple(self._lower_items(unit.items)))

    def _lower_items(self, items) -> list[CodeItem]:
        out: list[CodeItem] = []
        for item in items:
            if isinstance(item, Struct) and item.invariant_checks and not self.supports(Capability.INVARIANTS):
                item = strip_invariants(item)
            capability = _CAPABILITY_OF[item.kind]
            if self.supports(capability):
                if isinstance(item, Module):
                    item = replace(item, items=tuple(self._lower_items(item.items)))
                out.append(item)
                continue
            fallback = FALLBACKS.get(capability)
            if fallback is None:
                raise UnsupportedConstructError(self.name, item.kind.value, item.name)
            logger.debug("%s: lowering %s %s to its fallback form", self.name, item.kind.value, item.name)
            out.extend(self._lower_items(fallback(item)))
        return out

    def generate(self, unit: CodeUnit) -> list[GeneratedFile]:
        lowered = self.lower(unit)
        files = self.render(lowered)
        logger.debug("%s: generated %d file(s) for %s", self.name, len(files), unit.name)
        return files

    def render(self, unit: CodeUnit) -> list[GeneratedFile]:
        raise NotImplementedError

    # -----------------------------------------------------------------------
    # Naming and types
    # -----------------------------------------------------------------------

    def type_name(self, name: str) -> str:
        return pascal_case(name) if not name[:1].isupper() else name

    def field_name(self, name: str) -> str:
        return camel_case(name)

    def function_name(self, name: str) -> str:
        return camel_case(name)

    def variant_name(self, name: str) -> str:
        return self.type_name(name)

    def native(self, ref: TypeRef) -> str:
        """Native spelling of the element type of ``ref``."""
        if ref.primitive:
            return self.type_map[ref.name]
        return self.type_name(ref.name)

    def render_type(self, ref: TypeRef) -> str:
        text = self.native(ref)
        if ref.many:
            text = self.list_type(text)
        if ref.optional:
            text = self.optional_type(text)
        return text

    def list_type(self, element: str) -> str:
        raise NotImplementedError

    def optional_type(self, inner: str) -> str:
        raise NotImplementedError

    def header(self, unit: CodeUnit, comment: str = "//") -> list[str]:
        return [
            f"{comment} Generated by sketchddd from bounded context {unit.name}.",
            f"{comment} Do not edit by hand.",
        ]
