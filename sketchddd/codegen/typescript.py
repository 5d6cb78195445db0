"""TypeScript backend.

One ``<Context>.ts`` file per bounded context. Structs become an interface
plus an ``<Name>Impl`` class (either can be switched off); tagged unions
become discriminated unions ``{ type: 'Case'; value: T }``; repositories
become interfaces with Promise-returning methods. Aggregate modules are
inlined, since a TypeScript module is the file itself.
Value objects compare structurally: nested value objects through their own
``equals``, dates by timestamp and lists element by element.
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
    PathRef,
    Struct,
    StructTag,
    TaggedUnion,
    Trait,
    TypeRef,
)

_COMPARE = {"=": "===", "!=": "!=="}

_STEREOTYPE = {
    StructTag.ENTITY: ("Entity", "An entity with a unique identity"),
    StructTag.VALUE_OBJECT: ("Value Object", "An immutable value type identified by its attributes"),
    StructTag.AGGREGATE: ("Aggregate", "A consistency boundary addressed through its root"),
    StructTag.PLAIN: ("Type", ""),
}


class TypeScriptBackend(Backend):
    name = "typescript"
    language = "typescript"
    capabilities = frozenset({
        Capability.STRUCT,
        Capability.ENUM,
        Capability.TAGGED_UNION,
        Capability.TRAIT,
        Capability.INVARIANTS,
    })
    type_map = {
        "String": "string",
        "Int": "number",
        "Float": "number",
        "Decimal": "number",
        "Bool": "boolean",
        "Date": "Date",
        "DateTime": "Date",
        "UUID": "string",
    }

    def list_type(self, element: str) -> str:
        return f"{element}[]"

    def optional_type(self, inner: str) -> str:
        return f"{inner} | undefined"

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def render(self, unit: CodeUnit) -> list[GeneratedFile]:
        blocks: list[list[str]] = [self.header(unit)]
        items = {item.name: item for item in unit.items}
        if unit.has_invariants:
            blocks.append(self.invariant_violation())
        for item in unit.items:
            if isinstance(item, Struct):
                blocks.append(self.struct(item, items))
            elif isinstance(item, EnumType):
                blocks.append(self.enum(item))
            elif isinstance(item, TaggedUnion):
                blocks.append(self.union(item))
            elif isinstance(item, Trait):
                if self.options.emit_interfaces:
                    blocks.append(self.trait(item))
        content = "\n\n".join("\n".join(b) for b in blocks if b) + "\n"
        return [GeneratedFile(f"{unit.name}.ts", content, self.language)]

    def doc(self, title: str, *extra: str) -> list[str]:
        if not self.options.include_comments:
            return []
        lines = ["/**", f" * {title}"]
        lines.extend(f" * {line}" if line else " *" for line in extra)
        lines.append(" */")
        return lines

    def invariant_violation(self) -> list[str]:
        return self.doc("Raised when an invariant check fails.") + [
            "export class InvariantViolation extends Error {",
            "  constructor(readonly invariant: string, readonly equation: string) {",
            "    super(\"Invariant '\" + invariant + \"' violated: \" + equation);",
            "    this.name = 'InvariantViolation';",
            "  }",
            "}",
        ]

    def field_line(self, f, readonly: bool) -> str:
        prefix = "readonly " if readonly or f.identity else ""
        optional = "?" if f.type.optional else ""
        base = self.native(f.type)
        type_text = self.list_type(base) if f.type.many else base
        return f"{prefix}{self.field_name(f.name)}{optional}: {type_text};"

    def struct(self, s: Struct, items: dict[str, CodeItem]) -> list[str]:
        stereotype, blurb = _STEREOTYPE[s.tag]
        extra = [blurb] if blurb else []
        if s.doc:
            extra.append(s.doc)
        rules = list(s.rules) + [f.invariant.text for f in s.invariant_checks]
        if rules:
            extra += ["", "Invariants:"] + [f"- {r}" for r in rules]
        lines = self.doc(f"{stereotype}: {s.name}", *extra)
        readonly = s.tag is StructTag.VALUE_OBJECT

        if self.options.emit_interfaces:
            lines.append(f"export interface {self.type_name(s.name)} {{")
            lines.extend(f"  {self.field_line(f, readonly)}" for f in s.fields)
            if readonly and self.options.emit_classes:
                lines.append(f"  equals(other: {self.type_name(s.name)}): boolean;")
            lines.append("}")

        if self.options.emit_classes:
            if self.options.emit_interfaces:
                lines.append("")
                lines.append(f"export class {self.type_name(s.name)}Impl implements {self.type_name(s.name)} {{")
            else:
                lines.append(f"export class {self.type_name(s.name)} {{")
            lines.extend(f"  {self.field_line(f, readonly)}" for f in s.fields)
            lines.append("")
            lines.extend(self.constructor(s))
            for fn in s.functions:
                lines.append("")
                lines.extend(f"  {line}" for line in self.method(fn, "this"))
            if s.tag is StructTag.VALUE_OBJECT:
                lines.append("")
                lines.extend(f"  {line}" for line in self.equals(s, items))
            lines.append("}")
        else:
            for fn in s.invariant_checks:
                lines.append("")
                lines.extend(self.free_check(fn, self.type_name(s.name)))
        return lines

    def constructor(self, s: Struct) -> list[str]:
        params = []
        for f in s.fields:
            optional = "?" if f.type.optional or f.identity else ""
            params.append(f"{self.field_name(f.name)}{optional}: {self.render_type_plain(f)}")
        lines = [f"  constructor(data: {{ {'; '.join(params)} }}) {{"]
        for f in s.fields:
            name = self.field_name(f.name)
            if f.identity:
                lines.append(f"    this.{name} = data.{name} ?? crypto.randomUUID();")
            else:
                lines.append(f"    this.{name} = data.{name};")
        lines.append("  }")
        return lines

    def render_type_plain(self, f) -> str:
        base = self.native(f.type)
        return self.list_type(base) if f.type.many else base

    def equals(self, s: Struct, items: dict[str, CodeItem]) -> list[str]:
        checks = []
        for f in s.fields:
            name = self.field_name(f.name)
            checks.append(self.same(f"this.{name}", f"other.{name}", f.type, items))
        lines = [f"equals(other: {self.type_name(s.name)}): boolean {{"]
        if not checks:
            return lines + ["  return true;", "}"]
        lines.append(f"  return {checks[0]}")
        lines.extend(f"    && {check}" for check in checks[1:])
        lines[-1] += ";"
        lines.append("}")
        return lines

    def same(self, a: str, b: str, ref: TypeRef, items: dict[str, CodeItem]) -> str:
        """Structural comparison of two values of type ``ref``."""
        if ref.many:
            element = self.same_element("x", f"{b}[i]", ref, items)
            test = f"{a}.length === {b}.length && {a}.every((x, i) => {element})"
        else:
            test = self.same_element(a, b, ref, items)
        if ref.optional and test != f"{a} === {b}":
            return f"({a} === undefined || {b} === undefined ? {a} === {b} : {test})"
        return test

    def same_element(self, a: str, b: str, ref: TypeRef, items: dict[str, CodeItem]) -> str:
        if ref.primitive:
            if self.type_map[ref.name] == "Date":
                return f"{a}.getTime() === {b}.getTime()"
            return f"{a} === {b}"
        item = items.get(ref.name)
        if isinstance(item, EnumType):
            return f"{a} === {b}"
        if isinstance(item, Struct):
            if item.tag is StructTag.VALUE_OBJECT:
                return f"{a}.equals({b})"
            if item.id_field:
                ident = self.field_name(item.id_field)
                return f"{a}.{ident} === {b}.{ident}"
        # Discriminated unions and anything else are plain data.
        return f"JSON.stringify({a}) === JSON.stringify({b})"

    def method(self, fn: Function, self_ref: str) -> list[str]:
        name = self.function_name(fn.name)
        if fn.op is FunctionOp.CHECK_INVARIANT:
            return self.check_body(fn, name + "(): void", self_ref)
        param = fn.params[0]
        member = self.field_name(fn.member)
        item_type = self.render_type(param.type)
        if fn.op is FunctionOp.ADD_MEMBER:
            return [f"{name}(item: {item_type}): void {{",
                    f"  {self_ref}.{member}.push(item);",
                    "}"]
        return [f"{name}(item: {item_type}): void {{",
                f"  {self_ref}.{member} = {self_ref}.{member}.filter((x) => x !== item);",
                "}"]

    def check_body(self, fn: Function, signature: str, self_ref: str) -> list[str]:
        inv = fn.invariant
        lhs = self.expr(inv.lhs, self_ref)
        rhs = self.expr(inv.rhs, self_ref)
        op = _COMPARE.get(inv.operator, inv.operator)
        lines = []
        if self.options.include_comments:
            lines.append(f"/** Invariant {inv.name}: {inv.text} */")
        lines += [
            f"{signature} {{",
            f"  if (!({lhs} {op} {rhs})) {{",
            f"    throw new InvariantViolation({json.dumps(inv.name)}, {json.dumps(inv.text)});",
            "  }",
            "}",
        ]
        return lines

    def free_check(self, fn: Function, type_name: str) -> list[str]:
        signature = f"export function {self.function_name(fn.name)}(self: {type_name}): void"
        return self.check_body(fn, signature, "self")

    def enum(self, e: EnumType) -> list[str]:
        lines = self.doc(f"Enum: {e.name}", *([e.doc] if e.doc else []))
        lines.append(f"export enum {self.type_name(e.name)} {{")
        for i, v in enumerate(e.variants):
            comma = "," if i < len(e.variants) - 1 else ""
            lines.append(f"  {self.variant_name(v)} = '{v}'{comma}")
        lines.append("}")
        return lines

    def union(self, u: TaggedUnion) -> list[str]:
        lines = self.doc(f"Enum: {u.name}", *([u.doc] if u.doc else []))
        lines.append(f"export type {self.type_name(u.name)} =")
        for i, case in enumerate(u.cases):
            end = ";" if i == len(u.cases) - 1 else ""
            if case.payload is not None:
                lines.append(f"  | {{ type: '{case.name}'; value: {self.render_type(case.payload)} }}{end}")
            else:
                lines.append(f"  | {{ type: '{case.name}' }}{end}")
        return lines

    def trait(self, t: Trait) -> list[str]:
        lines = self.doc(t.doc) if t.doc else []
        lines.append(f"export interface {self.type_name(t.name)} {{")
        for fn in t.functions:
            params = ", ".join(f"{p.name}: {self.render_type(p.type)}" for p in fn.params)
            returns = self.render_type(fn.returns) if fn.returns else "void"
            lines.append(f"  {self.function_name(fn.name)}({params}): Promise<{returns}>;")
        lines.append("}")
        return lines

    # -----------------------------------------------------------------------
    # Invariant expressions
    # -----------------------------------------------------------------------

    def access(self, base: str, steps) -> str:
        return ".".join([base] + [self.field_name(s.name) for s in steps])

    def expr(self, e: IRExpr, self_ref: str) -> str:
        if isinstance(e, Const):
            return json.dumps(e.value)
        if isinstance(e, PathRef):
            before, coll, after = e.split()
            if coll is None:
                return self.access(self_ref, before)
            collection = self.access(self_ref, before + (coll,))
            if after:
                return f"{collection}.map((it) => {self.access('it', after)})"
            return collection
        if isinstance(e, Aggregation):
            return self.aggregation(e, self_ref)
        if isinstance(e, Arith):
            return f"({self.expr(e.left, self_ref)} {e.op} {self.expr(e.right, self_ref)})"
        raise TypeError(f"Unknown expression: {e!r}")

    def aggregation(self, a: Aggregation, self_ref: str) -> str:
        arg = a.arg
        if not (isinstance(arg, PathRef) and arg.split()[1] is not None):
            return "1" if a.op == "count" else self.expr(arg, self_ref)
        before, coll, after = arg.split()
        collection = self.access(self_ref, before + (coll,))
        element = self.access("it", after) if after else "it"
        total = f"{collection}.reduce((acc, it) => acc + {element}, 0)"
        if a.op == "sum":
            return total
        if a.op == "count":
            return f"{collection}.length"
        if a.op in ("min", "max"):
            return f"Math.{a.op}(...{collection}.map((it) => {element}))"
        return f"({collection}.length === 0 ? 0 : {total} / {collection}.length)"
