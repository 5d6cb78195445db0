"""Validation — semantic checks over a domain model.

The validator is a fixed, ordered pipeline of passes. Every pass runs, and
each one reports what it finds as Diagnostics; no pass raises for invalid
input and no pass suppresses another. Passes that check one bounded context
at a time run once per context, in context declaration order; passes over
the whole model (context maps, model-level checks) run once.

  Pass                   Codes         Scope
  morphism-reference     E0001-E0009   context
  equation               E0010-E0019   context
  duplicate-names        E0020-E0029   context
  aggregate-structure    E0030-E0039   context
  entity                 E0040-E0049   context
  enum                   E0050-E0059   context
  context-map            E0060-E0069   model
  model                  E0070-E0079   model
  aggregate-warnings     W0001-W0009   context
  value-object-warnings  W0010-W0019   context
  naming                 H0001-H0009   context

Checks that depend on data another check already rejected are skipped
rather than reported twice (for example, the equations of an aggregate whose
root does not resolve are not path-checked: there is no anchor to start
from).

Unresolved names are reported with the closest declared name as a
suggestion, or with the list of available names when nothing is close. When
three or more references in one pass share the same unresolved name they
are folded into a single diagnostic carrying one label per reference.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable

from . import codes
from .codes import CodeInfo
from .context import BoundedContext
from .context_map import DomainModel
from .diagnostics import Diagnostic, Label, ValidationResult
from .index import NameIndex, nearest_name
from .types import (
    AGGREGATE_OPERATORS,
    PRIMITIVE_TYPES,
    Aggregate,
    Entity,
    Enumeration,
    ObjectKind,
    Path,
    PathEquation,
    Span,
    ValueObject,
    canonical_primitive,
    iter_calls,
    iter_paths,
)

logger = logging.getLogger(__name__)

# References sharing one unresolved name in a pass are folded together from
# this many occurrences on.
GROUP_THRESHOLD = 3

LARGE_AGGREGATE_MEMBERS = 5

_PASCAL_CASE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_LOWER_START = re.compile(r"^[a-z]")


# ---------------------------------------------------------------------------
# Shared pass state
# ---------------------------------------------------------------------------

@dataclass
class _Scope:
    """What a context-level pass gets to look at."""
    context: BoundedContext
    index: NameIndex
    model: DomainModel


@dataclass
class _Unresolved:
    """One reference to a name that did not resolve, awaiting grouping."""
    name: str
    info: CodeInfo
    message: str
    span: Span | None
    label: str
    candidates: list[str]
    context: str | None
    noun: str = "object"


class _UnresolvedCollector:
    """Buffers unresolved references of one pass, then emits them grouped."""

    def __init__(self) -> None:
        self.entries: list[_Unresolved] = []

    def add(self, entry: _Unresolved) -> None:
        self.entries.append(entry)

    def diagnostics(self) -> list[Diagnostic]:
        groups: dict[tuple[str | None, str], list[_Unresolved]] = defaultdict(list)
        for e in self.entries:
            groups[(e.context, e.name)].append(e)

        out: list[Diagnostic] = []
        emitted: set[tuple[str | None, str]] = set()
        for e in self.entries:
            key = (e.context, e.name)
            group = groups[key]
            if len(group) < GROUP_THRESHOLD:
                d = Diagnostic.from_code(e.info, e.message, e.span, e.label, e.context)
                _attach_help(d, e)
                out.append(d)
            elif key not in emitted:
                emitted.add(key)
                d = Diagnostic(
                    severity=e.info.severity,
                    code=e.info.code,
                    message=f"cannot find {e.noun} `{e.name}` ({len(group)} references)",
                    labels=[Label(g.span, g.label) for g in group],
                    context=e.context,
                )
                _attach_help(d, e)
                out.append(d)
        return out


def _attach_help(d: Diagnostic, entry: _Unresolved) -> None:
    closest = nearest_name(entry.name, entry.candidates)
    if closest is not None:
        d.suggest(f"did you mean '{closest}'?", closest)
    elif entry.candidates:
        d.note(f"available {entry.noun}s: {', '.join(entry.candidates)}")
    else:
        d.note(f"no {entry.noun}s are declared here")


def _object_candidates(scope: _Scope) -> list[str]:
    return scope.index.all_names()


def _type_candidates(scope: _Scope) -> list[str]:
    return scope.index.all_names() + list(PRIMITIVE_TYPES)


def _fields_of(obj) -> tuple:
    if isinstance(obj, (Entity, ValueObject)):
        return obj.fields
    return ()


# ---------------------------------------------------------------------------
# Pass: morphism references (E0001-E0009)
# ---------------------------------------------------------------------------

def _check_morphism_references(scope: _Scope) -> list[Diagnostic]:
    ctx = scope.context
    unresolved = _UnresolvedCollector()
    for m in ctx.morphisms:
        if m.source not in scope.index:
            unresolved.add(_Unresolved(
                name=m.source,
                info=codes.MORPHISM_SOURCE_NOT_FOUND,
                message=f"cannot find object `{m.source}` used as source of morphism `{m.name}`",
                span=m.source_span or m.span,
                label=f"not found in context `{ctx.name}`",
                candidates=_object_candidates(scope),
                context=ctx.name,
            ))
        if m.target not in scope.index:
            unresolved.add(_Unresolved(
                name=m.target,
                info=codes.MORPHISM_TARGET_NOT_FOUND,
                message=f"cannot find object `{m.target}` used as target of morphism `{m.name}`",
                span=m.target_span or m.span,
                label=f"not found in context `{ctx.name}`",
                candidates=_object_candidates(scope),
                context=ctx.name,
            ))
    return unresolved.diagnostics()


# ---------------------------------------------------------------------------
# Pass: equations (E0010-E0019)
# ---------------------------------------------------------------------------

def _members_of(scope: _Scope, type_name: str) -> list[str]:
    """Names a path may continue with from ``type_name``: fields, then morphisms."""
    obj = scope.context.get(type_name)
    names: list[str] = []
    if isinstance(obj, Entity):
        names.append(obj.id_field)
    names.extend(f.name for f in _fields_of(obj))
    names.extend(m.name for m in scope.context.outgoing(type_name))
    return names


def _step(scope: _Scope, current: str, segment: str) -> tuple[bool, str | None]:
    """Follow one path segment from ``current``.

    Returns (resolved, next_type). ``next_type`` is None when the segment
    lands on a primitive, after which no further segment can resolve.
    """
    obj = scope.context.get(current)
    if isinstance(obj, Entity) and segment == obj.id_field:
        return True, None
    for f in _fields_of(obj):
        if f.name == segment:
            return True, (f.type_name if f.type_name in scope.index else None)
    for m in scope.context.outgoing(current):
        if m.name == segment:
            return True, m.target
    return False, None


def _check_path(scope: _Scope, anchor: str, path: Path, eq: PathEquation,
                unresolved: _UnresolvedCollector) -> None:
    current: str | None = anchor
    for position, segment in enumerate(path.segments):
        if current is not None:
            ok, next_type = _step(scope, current, segment)
        else:
            ok, next_type = False, None
        if not ok:
            where = current if current is not None else path.segments[position - 1]
            unresolved.add(_Unresolved(
                name=segment,
                info=codes.EQUATION_PATH_UNRESOLVED,
                message=(
                    f"cannot resolve `{segment}` in path `{path}` of equation "
                    f"`{eq.name}`: `{where}` has no field or morphism `{segment}`"
                ),
                span=path.span_of(position) or eq.span,
                label=f"not a field or morphism of `{where}`",
                candidates=_members_of(scope, current) if current is not None else [],
                context=scope.context.name,
                noun="field or morphism",
            ))
            return
        current = next_type


def _check_equation(scope: _Scope, anchor: str, eq: PathEquation,
                    unresolved: _UnresolvedCollector, out: list[Diagnostic]) -> None:
    for side in (eq.lhs, eq.rhs):
        for call in iter_calls(side):
            if call.function.lower() not in AGGREGATE_OPERATORS:
                d = Diagnostic.from_code(
                    codes.EQUATION_UNKNOWN_OPERATOR,
                    f"unknown operator `{call.function}` in equation `{eq.name}`",
                    call.span or eq.span,
                    "not an aggregate operator",
                    scope.context.name,
                )
                closest = nearest_name(call.function, sorted(AGGREGATE_OPERATORS))
                if closest:
                    d.suggest(f"did you mean '{closest}'?", closest)
                else:
                    d.note(f"available operators: {', '.join(sorted(AGGREGATE_OPERATORS))}")
                out.append(d)
        for path in iter_paths(side):
            _check_path(scope, anchor, path, eq, unresolved)


def _root_is_usable(scope: _Scope, agg: Aggregate) -> bool:
    return (
        agg.root in scope.index
        and scope.index.duplicates_of(agg.root) == 1
        and scope.index.kind_of(agg.root) is ObjectKind.ENTITY
    )


def _check_equations(scope: _Scope) -> list[Diagnostic]:
    ctx = scope.context
    unresolved = _UnresolvedCollector()
    out: list[Diagnostic] = []

    for agg in ctx.aggregates:
        if not _root_is_usable(scope, agg):
            logger.debug("Skipping invariants of %s: root %s unusable", agg.name, agg.root)
            continue
        for eq in agg.equations:
            _check_equation(scope, eq.source or agg.root, eq, unresolved, out)

    for eq in ctx.equations:
        if eq.source is None or eq.source not in scope.index:
            name = eq.source or ""
            unresolved.add(_Unresolved(
                name=name,
                info=codes.EQUATION_SOURCE_NOT_FOUND,
                message=f"cannot find object `{name}` used as source of equation `{eq.name}`",
                span=eq.source_span or eq.span,
                label=f"not found in context `{ctx.name}`",
                candidates=_object_candidates(scope),
                context=ctx.name,
            ))
            continue
        _check_equation(scope, eq.source, eq, unresolved, out)

    return out + unresolved.diagnostics()


# ---------------------------------------------------------------------------
# Pass: duplicate names (E0020-E0029)
# ---------------------------------------------------------------------------

def _check_duplicates(scope: _Scope) -> list[Diagnostic]:
    ctx = scope.context
    out: list[Diagnostic] = []

    for name in scope.index.duplicated_names():
        decls = [o for o in ctx.objects if o.name == name]
        labels = [Label(decls[0].span, "first defined here")]
        labels.extend(Label(o.span, "redefined here") for o in decls[1:])
        out.append(Diagnostic(
            severity=codes.DUPLICATE_OBJECT.severity,
            code=codes.DUPLICATE_OBJECT.code,
            message=f"the name `{name}` is defined {len(decls)} times in context `{ctx.name}`",
            labels=labels,
            notes=[f"declared as: {', '.join(o.kind.value for o in decls)}"],
            context=ctx.name,
        ))

    for obj in ctx.objects:
        seen: dict[str, Span | None] = {}
        for f in _fields_of(obj):
            if f.name in seen:
                out.append(Diagnostic(
                    severity=codes.DUPLICATE_FIELD.severity,
                    code=codes.DUPLICATE_FIELD.code,
                    message=f"field `{f.name}` is declared more than once on `{obj.name}`",
                    labels=[Label(seen[f.name], "first declared here"),
                            Label(f.span, "declared again here")],
                    context=ctx.name,
                ))
            else:
                seen[f.name] = f.span

    seen_morphisms: dict[tuple[str, str], Span | None] = {}
    for m in ctx.morphisms:
        key = (m.source, m.name)
        if key in seen_morphisms:
            out.append(Diagnostic(
                severity=codes.DUPLICATE_MORPHISM.severity,
                code=codes.DUPLICATE_MORPHISM.code,
                message=f"morphism `{m.name}` is declared more than once on `{m.source}`",
                labels=[Label(seen_morphisms[key], "first declared here"),
                        Label(m.span, "declared again here")],
                context=ctx.name,
            ))
        else:
            seen_morphisms[key] = m.span

    return out


# ---------------------------------------------------------------------------
# Pass: aggregate structure (E0030-E0039)
# ---------------------------------------------------------------------------

def _check_aggregates(scope: _Scope) -> list[Diagnostic]:
    ctx = scope.context
    unresolved = _UnresolvedCollector()
    out: list[Diagnostic] = []
    membership: dict[str, list[tuple[Aggregate, int]]] = defaultdict(list)

    for agg in ctx.aggregates:
        if agg.root not in scope.index:
            unresolved.add(_Unresolved(
                name=agg.root,
                info=codes.AGGREGATE_ROOT_NOT_FOUND,
                message=f"cannot find object `{agg.root}` used as root of aggregate `{agg.name}`",
                span=agg.root_span or agg.span,
                label=f"not found in context `{ctx.name}`",
                candidates=[e.name for e in ctx.entities] or _object_candidates(scope),
                context=ctx.name,
            ))
        elif scope.index.duplicates_of(agg.root) == 1:
            kind = scope.index.kind_of(agg.root)
            if kind is not ObjectKind.ENTITY:
                d = Diagnostic.from_code(
                    codes.AGGREGATE_ROOT_NOT_ENTITY,
                    f"root `{agg.root}` of aggregate `{agg.name}` is a {kind.value}, not an entity",
                    agg.root_span or agg.span,
                    "expected an entity",
                    ctx.name,
                )
                entities = [e.name for e in ctx.entities]
                if entities:
                    d.note(f"entities in this context: {', '.join(entities)}")
                out.append(d)

        first_listed: dict[str, int] = {}
        for position, member in enumerate(agg.members):
            if member == agg.root:
                d = Diagnostic.from_code(
                    codes.AGGREGATE_ROOT_IN_MEMBERS,
                    f"aggregate `{agg.name}` lists its root `{agg.root}` as a member",
                    agg.member_span(position),
                    "the root cannot also be a member",
                    ctx.name,
                )
                d.note(f"remove `{member}` from the members of `{agg.name}`")
                out.append(d)
                continue
            if member not in scope.index:
                unresolved.add(_Unresolved(
                    name=member,
                    info=codes.AGGREGATE_MEMBER_NOT_FOUND,
                    message=f"cannot find object `{member}` listed as member of aggregate `{agg.name}`",
                    span=agg.member_span(position),
                    label=f"not found in context `{ctx.name}`",
                    candidates=_object_candidates(scope),
                    context=ctx.name,
                ))
                continue
            if member in first_listed:
                d = Diagnostic(
                    severity=codes.AGGREGATE_MEMBER_REPEATED.severity,
                    code=codes.AGGREGATE_MEMBER_REPEATED.code,
                    message=f"aggregate `{agg.name}` lists member `{member}` more than once",
                    labels=[
                        Label(agg.member_span(position), "listed again here"),
                        Label(agg.member_span(first_listed[member]), "first listed here"),
                    ],
                    context=ctx.name,
                )
                d.note(f"remove the repeated `{member}` from the members of `{agg.name}`")
                out.append(d)
                continue
            first_listed[member] = position
            membership[member].append((agg, position))

    for member, owners in membership.items():
        distinct = {agg.name for agg, _ in owners}
        if len(distinct) < 2:
            continue
        out.append(Diagnostic(
            severity=codes.AGGREGATE_MEMBER_SHARED.severity,
            code=codes.AGGREGATE_MEMBER_SHARED.code,
            message=f"`{member}` is a member of {len(distinct)} aggregates: "
                    f"{', '.join(sorted(distinct))}",
            labels=[Label(agg.member_span(pos), f"member of `{agg.name}`") for agg, pos in owners],
            context=ctx.name,
        ))

    return out + unresolved.diagnostics()


# ---------------------------------------------------------------------------
# Pass: entity and value object fields (E0040-E0049)
# ---------------------------------------------------------------------------

def _check_fields(scope: _Scope) -> list[Diagnostic]:
    ctx = scope.context
    unresolved = _UnresolvedCollector()
    out: list[Diagnostic] = []
    for obj in ctx.objects:
        for f in _fields_of(obj):
            if canonical_primitive(f.type_name) is not None:
                continue
            kind = scope.index.kind_of(f.type_name)
            if kind is None:
                unresolved.add(_Unresolved(
                    name=f.type_name,
                    info=codes.FIELD_TYPE_NOT_FOUND,
                    message=f"unknown type `{f.type_name}` for field `{obj.name}.{f.name}`",
                    span=f.type_span or f.span or obj.span,
                    label="not a primitive or a declared object",
                    candidates=_type_candidates(scope),
                    context=ctx.name,
                    noun="type",
                ))
            elif kind is ObjectKind.AGGREGATE:
                agg = ctx.get(f.type_name)
                d = Diagnostic.from_code(
                    codes.FIELD_TYPED_BY_AGGREGATE,
                    f"field `{obj.name}.{f.name}` holds aggregate `{f.type_name}`",
                    f.type_span or f.span or obj.span,
                    "aggregates cannot be field types",
                    ctx.name,
                )
                if isinstance(agg, Aggregate) and agg.root in scope.index:
                    d.suggest(f"reference the root entity '{agg.root}' instead", agg.root)
                out.append(d)
    return out + unresolved.diagnostics()


# ---------------------------------------------------------------------------
# Pass: enumerations (E0050-E0059)
# ---------------------------------------------------------------------------

def _check_enums(scope: _Scope) -> list[Diagnostic]:
    ctx = scope.context
    unresolved = _UnresolvedCollector()
    out: list[Diagnostic] = []
    for enum in ctx.enums:
        if not enum.variants:
            out.append(Diagnostic.from_code(
                codes.EMPTY_ENUM,
                f"enumeration `{enum.name}` declares no variants",
                enum.span, "", ctx.name,
            ))
            continue
        seen: dict[str, Span | None] = {}
        for v in enum.variants:
            if v.name in seen:
                out.append(Diagnostic(
                    severity=codes.DUPLICATE_VARIANT.severity,
                    code=codes.DUPLICATE_VARIANT.code,
                    message=f"variant `{v.name}` appears more than once in `{enum.name}`",
                    labels=[Label(seen[v.name], "first declared here"),
                            Label(v.span, "declared again here")],
                    context=ctx.name,
                ))
            else:
                seen[v.name] = v.span
            if v.payload is None or canonical_primitive(v.payload) is not None:
                continue
            if v.payload not in scope.index:
                unresolved.add(_Unresolved(
                    name=v.payload,
                    info=codes.VARIANT_PAYLOAD_NOT_FOUND,
                    message=f"unknown payload type `{v.payload}` for variant `{enum.name}.{v.name}`",
                    span=v.payload_span or v.span or enum.span,
                    label="not a primitive or a declared object",
                    candidates=_type_candidates(scope),
                    context=ctx.name,
                    noun="type",
                ))
    return out + unresolved.diagnostics()


# ---------------------------------------------------------------------------
# Pass: context maps (E0060-E0069)
# ---------------------------------------------------------------------------

def _check_context_maps(model: DomainModel) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    unresolved = _UnresolvedCollector()
    context_names = list(model.contexts)
    indexes = {name: NameIndex.from_context(ctx) for name, ctx in model.contexts.items()}

    for cm in model.context_maps:
        for ctx_name, span, info, role in (
            (cm.source_context, cm.source_span, codes.CONTEXT_MAP_SOURCE_NOT_FOUND, "source"),
            (cm.target_context, cm.target_span, codes.CONTEXT_MAP_TARGET_NOT_FOUND, "target"),
        ):
            if ctx_name in model.contexts:
                continue
            d = Diagnostic.from_code(
                info,
                f"cannot find bounded context `{ctx_name}` used as {role} of context map `{cm.name}`",
                span or cm.span,
                "no such bounded context",
            )
            closest = nearest_name(ctx_name, context_names)
            if closest:
                d.suggest(f"did you mean '{closest}'?", closest)
            elif context_names:
                d.note(f"available contexts: {', '.join(context_names)}")
            out.append(d)

        for mapping in cm.mappings:
            for ctx_name, obj_name, span, info, role in (
                (cm.source_context, mapping.source_object, mapping.source_span,
                 codes.MAPPING_SOURCE_NOT_FOUND, "source"),
                (cm.target_context, mapping.target_object, mapping.target_span,
                 codes.MAPPING_TARGET_NOT_FOUND, "target"),
            ):
                index = indexes.get(ctx_name)
                if index is None or obj_name in index:
                    continue
                unresolved.add(_Unresolved(
                    name=obj_name,
                    info=info,
                    message=(
                        f"cannot find object `{obj_name}` in {role} context `{ctx_name}` "
                        f"of context map `{cm.name}`"
                    ),
                    span=span or cm.span,
                    label=f"not found in context `{ctx_name}`",
                    candidates=index.all_names(),
                    context=ctx_name,
                ))

    return out + unresolved.diagnostics()


# ---------------------------------------------------------------------------
# Pass: model-level checks (E0070-E0079)
# ---------------------------------------------------------------------------

def _check_model(model: DomainModel) -> list[Diagnostic]:
    out: list[Diagnostic] = []

    if not model.contexts:
        out.append(Diagnostic.from_code(codes.EMPTY_MODEL, "the model declares no bounded contexts"))

    for cm in model.context_maps:
        if cm.source_context == cm.target_context:
            out.append(Diagnostic.from_code(
                codes.CONTEXT_MAP_SELF,
                f"context map `{cm.name}` relates `{cm.source_context}` to itself",
                cm.span, "source and target are the same context",
            ))

    for cycle in model.detect_cycles():
        labels = []
        for upstream, downstream in zip(cycle, cycle[1:]):
            for cm in model.context_maps:
                if (cm.pattern.source_is_upstream and cm.source_context == upstream
                        and cm.target_context == downstream):
                    labels.append(Label(cm.span, f"`{upstream}` is upstream of `{downstream}` here"))
                    break
        out.append(Diagnostic(
            severity=codes.CONTEXT_MAP_CYCLE.severity,
            code=codes.CONTEXT_MAP_CYCLE.code,
            message=f"context maps form a cycle: {' -> '.join(cycle)}",
            labels=labels,
            notes=["upstream/downstream relationships must not loop back"],
        ))

    return out


# ---------------------------------------------------------------------------
# Pass: aggregate warnings (W0001-W0009)
# ---------------------------------------------------------------------------

def _check_aggregate_warnings(scope: _Scope) -> list[Diagnostic]:
    ctx = scope.context
    out: list[Diagnostic] = []
    for agg in ctx.aggregates:
        if len(agg.members) > LARGE_AGGREGATE_MEMBERS:
            d = Diagnostic.from_code(
                codes.LARGE_AGGREGATE,
                f"aggregate `{agg.name}` has {len(agg.members)} members",
                agg.span, f"more than {LARGE_AGGREGATE_MEMBERS} members",
                ctx.name,
            )
            d.note("Consider splitting into smaller aggregates")
            out.append(d)
        if not agg.invariants:
            out.append(Diagnostic.from_code(
                codes.AGGREGATE_NO_INVARIANTS,
                f"aggregate `{agg.name}` declares no invariants",
                agg.span, "", ctx.name,
            ))
        if not agg.members and agg.root in scope.index:
            out.append(Diagnostic.from_code(
                codes.AGGREGATE_NO_MEMBERS,
                f"aggregate `{agg.name}` has no members besides its root `{agg.root}`",
                agg.span, "", ctx.name,
            ))
    return out


# ---------------------------------------------------------------------------
# Pass: value object warnings (W0010-W0019)
# ---------------------------------------------------------------------------

def _check_value_object_warnings(scope: _Scope) -> list[Diagnostic]:
    ctx = scope.context
    out: list[Diagnostic] = []
    for vo in ctx.value_objects:
        if not vo.fields:
            out.append(Diagnostic.from_code(
                codes.EMPTY_VALUE_OBJECT,
                f"value object `{vo.name}` has no fields",
                vo.span, "", ctx.name,
            ))
        for f in vo.fields:
            if scope.index.kind_of(f.type_name) is ObjectKind.ENTITY:
                target = ctx.get(f.type_name)
                d = Diagnostic.from_code(
                    codes.VALUE_OBJECT_HOLDS_ENTITY,
                    f"value object field `{vo.name}.{f.name}` holds entity `{f.type_name}`",
                    f.type_span or f.span or vo.span, "entity inside a value object",
                    ctx.name,
                )
                if isinstance(target, Entity):
                    d.note(f"store the entity's `{target.id_field}` instead")
                out.append(d)
    return out


# ---------------------------------------------------------------------------
# Pass: naming hints (H0001-H0009)
# ---------------------------------------------------------------------------

def _check_naming(scope: _Scope) -> list[Diagnostic]:
    ctx = scope.context
    out: list[Diagnostic] = []
    for obj in ctx.objects:
        if not _PASCAL_CASE.match(obj.name):
            fixed = _to_pascal(obj.name)
            d = Diagnostic.from_code(
                codes.TYPE_NAME_CASE,
                f"object name `{obj.name}` is not PascalCase",
                obj.span, "", ctx.name,
            )
            if fixed and fixed != obj.name:
                d.suggest(f"rename to '{fixed}'", fixed)
            out.append(d)
        for f in _fields_of(obj):
            if not _LOWER_START.match(f.name):
                out.append(Diagnostic.from_code(
                    codes.MEMBER_NAME_CASE,
                    f"field name `{obj.name}.{f.name}` should start with a lower-case letter",
                    f.span, "", ctx.name,
                ))
    for m in ctx.morphisms:
        if not _LOWER_START.match(m.name):
            out.append(Diagnostic.from_code(
                codes.MEMBER_NAME_CASE,
                f"morphism name `{m.name}` should start with a lower-case letter",
                m.span, "", ctx.name,
            ))
    return out


def _to_pascal(name: str) -> str:
    parts = re.split(r"[^A-Za-z0-9]+", name)
    return "".join(p[:1].upper() + p[1:] for p in parts if p)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

ContextPass = Callable[[_Scope], list[Diagnostic]]
ModelPass = Callable[[DomainModel], list[Diagnostic]]

# (name, check, runs once per context)
PASSES: list[tuple[str, ContextPass | ModelPass, bool]] = [
    ("morphism-reference", _check_morphism_references, True),
    ("equation", _check_equations, True),
    ("duplicate-names", _check_duplicates, True),
    ("aggregate-structure", _check_aggregates, True),
    ("entity", _check_fields, True),
    ("enum", _check_enums, True),
    ("context-map", _check_context_maps, False),
    ("model", _check_model, False),
    ("aggregate-warnings", _check_aggregate_warnings, True),
    ("value-object-warnings", _check_value_object_warnings, True),
    ("naming", _check_naming, True),
]


def validate(target: DomainModel | BoundedContext, hints: bool = True) -> ValidationResult:
    """Run every validator pass and collect the diagnostics in pass order.

    ``target`` may be a whole DomainModel or a single BoundedContext; a lone
    context is validated as a one-context model. ``hints=False`` drops the
    naming pass.
    """
    model = target if isinstance(target, DomainModel) else DomainModel(contexts={target.name: target})
    scopes = [
        _Scope(context=ctx, index=NameIndex.from_context(ctx), model=model)
        for ctx in model.contexts.values()
    ]

    result = ValidationResult()
    for name, check, per_context in PASSES:
        if name == "naming" and not hints:
            continue
        if per_context:
            found = []
            for scope in scopes:
                found.extend(check(scope))
        else:
            found = check(model)
        logger.debug("Pass %s produced %d diagnostic(s)", name, len(found))
        result.extend(found)

    logger.debug(
        "Validation finished: %d error(s), %d warning(s)",
        result.error_count, result.warning_count,
    )
    return result
