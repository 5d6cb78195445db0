"""Rust backend.

One ``<context>.rs`` file per bounded context. Entities derive everything
but PartialEq, which compares identities only; value objects derive
PartialEq structurally. Tagged unions are enums with data, aggregate modules
become ``pub mod`` blocks, repositories become traits, and invariant checks
return ``Result<(), InvariantViolation>``.
"""

from __future__ import annotations

import json

from .backend import Backend, Capability, GeneratedFile
from .ir import (
    Aggregation,
    Arith,
    CodeItem,
    CodeUnit,
    Const,
    EnumType,
    Function,
    FunctionOp,
    IRExpr,
    Module,
    PathRef,
    Struct,
    StructTag,
    TaggedUnion,
    Trait,
    primitive_of,
)
from .naming import snake_case

_USES = {
    "uuid": "use uuid::Uuid;",
    "datetime": "use chrono::{DateTime, NaiveDate, Utc};",
    "decimal": "use rust_decimal::Decimal;",
}

INDENT = "    "


class RustBackend(Backend):
    name = "rust"
    language = "rust"
    capabilities = frozenset({
        Capability.STRUCT,
        Capability.ENUM,
        Capability.TAGGED_UNION,
        Capability.TRAIT,
        Capability.MODULE,
        Capability.INVARIANTS,
    })
    type_map = {
        "String": "String",
        "Int": "i64",
        "Float": "f64",
        "Decimal": "Decimal",
        "Bool": "bool",
        "Date": "NaiveDate",
        "DateTime": "DateTime<Utc>",
        "UUID": "Uuid",
    }

    def field_name(self, name: str) -> str:
        return snake_case(name)

    def function_name(self, name: str) -> str:
        return snake_case(name)

    def list_type(self, element: str) -> str:
        return f"Vec<{element}>"

    def optional_type(self, inner: str) -> str:
        return f"Option<{inner}>"

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def render(self, unit: CodeUnit) -> list[GeneratedFile]:
        blocks: list[list[str]] = [self.header(unit)]
        uses = [_USES[i] for i in unit.imports if i in _USES]
        if uses:
            blocks.append(uses)
        if unit.has_invariants:
            blocks.append(self.invariant_violation())
        blocks.extend(self.items(unit.items))
        content = "\n\n".join("\n".join(b) for b in blocks if b) + "\n"
        return [GeneratedFile(f"{snake_case(unit.name)}.rs", content, self.language)]

    def items(self, items: tuple[CodeItem, ...]) -> list[list[str]]:
        blocks = []
        for item in items:
            if isinstance(item, Struct):
                if self.options.emit_classes:
                    blocks.append(self.struct(item))
            elif isinstance(item, EnumType):
                blocks.append(self.enum(item))
            elif isinstance(item, TaggedUnion):
                blocks.append(self.union(item))
            elif isinstance(item, Trait):
                if self.options.emit_interfaces:
                    blocks.append(self.trait(item))
            elif isinstance(item, Module):
                blocks.append(self.module(item))
        return blocks

    def doc(self, *lines: str) -> list[str]:
        if not self.options.include_comments:
            return []
        return [f"/// {line}" if line else "///" for line in lines]

    def invariant_violation(self) -> list[str]:
        return self.doc("Returned when an invariant check fails.") + [
            "#[derive(Debug, Clone, PartialEq, Eq)]",
            "pub struct InvariantViolation {",
            "    pub invariant: &'static str,",
            "    pub equation: &'static str,",
            "}",
            "",
            "impl std::fmt::Display for InvariantViolation {",
            "    fn fmt(&self, f: &mut std::fmt::Formatter<'_>) -> std::fmt::Result {",
            "        write!(f, \"invariant '{}' violated: {}\", self.invariant, self.equation)",
            "    }",
            "}",
            "",
            "impl std::error::Error for InvariantViolation {}",
        ]

    def module(self, m: Module) -> list[str]:
        lines = self.doc(f"Aggregate module: {m.name}", *([m.doc] if m.doc else []))
        lines.append(f"pub mod {snake_case(m.name)} {{")
        lines.append(f"{INDENT}use super::*;")
        for block in self.items(m.items):
            lines.append("")
            lines.extend(f"{INDENT}{line}" if line else "" for line in block)
        lines.append("}")
        return lines

    def struct(self, s: Struct) -> list[str]:
        name = self.type_name(s.name)
        title = {
            StructTag.ENTITY: f"Entity: {s.name}",
            StructTag.VALUE_OBJECT: f"Value object: {s.name}",
            StructTag.AGGREGATE: f"Aggregate: {s.name}",
            StructTag.PLAIN: s.name,
        }[s.tag]
        extra = [s.doc] if s.doc else []
        if s.rules:
            extra += ["", "Rules:"] + [f"- {r}" for r in s.rules]
        lines = self.doc(title, *extra)
        derives = "Debug, Clone" if s.tag is StructTag.ENTITY else "Debug, Clone, PartialEq"
        lines.append(f"#[derive({derives})]")
        lines.append(f"pub struct {name} {{")
        for f in s.fields:
            lines.append(f"{INDENT}pub {self.field_name(f.name)}: {self.render_type(f.type)},")
        lines.append("}")

        if s.tag is StructTag.ENTITY and s.id_field:
            ident = self.field_name(s.id_field)
            lines += [
                "",
                f"impl PartialEq for {name} {{",
                f"{INDENT}fn eq(&self, other: &Self) -> bool {{",
                f"{INDENT * 2}self.{ident} == other.{ident}",
                f"{INDENT}}}",
                "}",
                "",
                f"impl Eq for {name} {{}}",
            ]

        if s.functions:
            lines += ["", f"impl {name} {{"]
            for i, fn in enumerate(s.functions):
                if i:
                    lines.append("")
                lines.extend(f"{INDENT}{line}" for line in self.method(fn))
            lines.append("}")
        return lines

    def method(self, fn: Function) -> list[str]:
        name = self.function_name(fn.name)
        if fn.op is FunctionOp.CHECK_INVARIANT:
            inv = fn.invariant
            lines = self.doc(f"Invariant {inv.name}: {inv.text}")
            hint = primitive_of(inv.lhs) or primitive_of(inv.rhs)
            lhs = self.expr(inv.lhs, hint)
            rhs = self.expr(inv.rhs, hint)
            op = "==" if inv.operator == "=" else inv.operator
            return lines + [
                f"pub fn {name}(&self) -> Result<(), InvariantViolation> {{",
                f"{INDENT}if !({lhs} {op} {rhs}) {{",
                f"{INDENT * 2}return Err(InvariantViolation {{ invariant: {json.dumps(inv.name)}, "
                f"equation: {json.dumps(inv.text)} }});",
                f"{INDENT}}}",
                f"{INDENT}Ok(())",
                "}",
            ]
        member = self.field_name(fn.member)
        item_type = self.render_type(fn.params[0].type)
        if fn.op is FunctionOp.ADD_MEMBER:
            return [f"pub fn {name}(&mut self, item: {item_type}) {{",
                    f"{INDENT}self.{member}.push(item);",
                    "}"]
        return [f"pub fn {name}(&mut self, item: &{item_type}) {{",
                f"{INDENT}self.{member}.retain(|x| x != item);",
                "}"]

    def enum(self, e: EnumType) -> list[str]:
        lines = self.doc(f"Enum: {e.name}", *([e.doc] if e.doc else []))
        lines.append("#[derive(Debug, Clone, Copy, PartialEq, Eq, Hash)]")
        lines.append(f"pub enum {self.type_name(e.name)} {{")
        lines.extend(f"{INDENT}{self.variant_name(v)}," for v in e.variants)
        lines.append("}")
        return lines

    def union(self, u: TaggedUnion) -> list[str]:
        lines = self.doc(f"Enum: {u.name}", *([u.doc] if u.doc else []))
        lines.append("#[derive(Debug, Clone, PartialEq)]")
        lines.append(f"pub enum {self.type_name(u.name)} {{")
        for case in u.cases:
            if case.payload is not None:
                lines.append(f"{INDENT}{self.variant_name(case.name)}({self.render_type(case.payload)}),")
            else:
                lines.append(f"{INDENT}{self.variant_name(case.name)},")
        lines.append("}")
        return lines

    def trait(self, t: Trait) -> list[str]:
        lines = self.doc(t.doc) if t.doc else []
        lines.append(f"pub trait {self.type_name(t.name)} {{")
        for fn in t.functions:
            receiver = "&mut self" if fn.op is FunctionOp.SAVE else "&self"
            params = "".join(f", {p.name}: {self.render_type(p.type)}" for p in fn.params)
            returns = f" -> {self.render_type(fn.returns)}" if fn.returns else ""
            lines.append(f"{INDENT}fn {self.function_name(fn.name)}({receiver}{params}){returns};")
        lines.append("}")
        return lines

    # -----------------------------------------------------------------------
    # Invariant expressions
    # -----------------------------------------------------------------------

    def access(self, base: str, steps) -> str:
        return ".".join([base] + [self.field_name(s.name) for s in steps])

    def const(self, c: Const, hint: str | None) -> str:
        if isinstance(c.value, str):
            return json.dumps(c.value)
        if hint == "Decimal":
            return f"Decimal::from({c.value})" if isinstance(c.value, int) else f"Decimal::try_from({c.value}).unwrap()"
        if hint == "Float" and isinstance(c.value, int):
            return f"{c.value}.0"
        return str(c.value)

    def expr(self, e: IRExpr, hint: str | None) -> str:
        if isinstance(e, Const):
            return self.const(e, hint)
        if isinstance(e, PathRef):
            before, coll, after = e.split()
            if coll is None:
                return self.access("self", before)
            collection = self.access("self", before + (coll,))
            if after:
                return f"{collection}.iter().map(|it| {self.access('it', after)}.clone()).collect::<Vec<_>>()"
            return collection
        if isinstance(e, Aggregation):
            return self.aggregation(e, hint)
        if isinstance(e, Arith):
            inner = primitive_of(e) or hint
            return f"({self.expr(e.left, inner)} {e.op} {self.expr(e.right, inner)})"
        raise TypeError(f"Unknown expression: {e!r}")

    def aggregation(self, a: Aggregation, hint: str | None) -> str:
        arg = a.arg
        if not (isinstance(arg, PathRef) and arg.split()[1] is not None):
            return "1" if a.op == "count" else self.expr(arg, hint)
        before, coll, after = arg.split()
        collection = self.access("self", before + (coll,))
        element = f"{self.access('it', after)}.clone()" if after else "it.clone()"
        leaf = primitive_of(arg)
        native = self.type_map.get(leaf or "", "f64")
        values = f"{collection}.iter().map(|it| {element})"
        if a.op == "count":
            return f"({collection}.len() as i64)"
        if a.op == "sum":
            return f"{values}.sum::<{native}>()"
        if a.op in ("min", "max"):
            if leaf == "Float":
                start = "f64::INFINITY" if a.op == "min" else "f64::NEG_INFINITY"
                return f"{values}.fold({start}, f64::{a.op})"
            return f"{values}.{a.op}().unwrap_or_default()"
        if leaf == "Decimal":
            return f"({values}.sum::<Decimal>() / Decimal::from({collection}.len().max(1)))"
        return f"({values}.sum::<{native}>() as f64 / {collection}.len().max(1) as f64)"
