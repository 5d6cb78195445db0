"""Kotlin backend.

One ``<Context>.kt`` file per bounded context in the configured package.
Entities are classes whose equality is their identity, value objects are
data classes, tagged unions are sealed classes, repositories are
interfaces. Aggregate modules are inlined into the file.
"""

from __future__ import annotations

import json

from .backend import Backend, Capability, GeneratedFile
from .ir import (
    Aggregation,
    Arith,
    CodeUnit,
    Const,
    EnumType,
    FieldDecl,
    Function,
    FunctionOp,
    IRExpr,
    PathRef,
    Struct,
    StructTag,
    TaggedUnion,
    Trait,
    primitive_of,
)

_IMPORTS = {
    "uuid": ["import java.util.UUID"],
    "datetime": ["import java.time.Instant", "import java.time.LocalDate"],
    "decimal": ["import java.math.BigDecimal"],
}

INDENT = "    "


def kotlin_string(text: str) -> str:
    return json.dumps(text).replace("$", "\\$")


class KotlinBackend(Backend):
    name = "kotlin"
    language = "kotlin"
    capabilities = frozenset({
        Capability.STRUCT,
        Capability.ENUM,
        Capability.TAGGED_UNION,
        Capability.TRAIT,
        Capability.INVARIANTS,
    })
    type_map = {
        "String": "String",
        "Int": "Long",
        "Float": "Double",
        "Decimal": "BigDecimal",
        "Bool": "Boolean",
        "Date": "LocalDate",
        "DateTime": "Instant",
        "UUID": "UUID",
    }

    def list_type(self, element: str) -> str:
        return f"List<{element}>"

    def optional_type(self, inner: str) -> str:
        return f"{inner}?"

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def render(self, unit: CodeUnit) -> list[GeneratedFile]:
        blocks: list[list[str]] = [self.header(unit), [f"package {self.options.package_name}"]]
        imports = sorted({line for i in unit.imports for line in _IMPORTS.get(i, [])})
        if imports:
            blocks.append(imports)
        if unit.has_invariants:
            blocks.append(self.doc("Thrown when an invariant check fails.") + [
                "class InvariantViolation(val invariant: String, val equation: String) :",
                "    IllegalStateException(\"Invariant '$invariant' violated: $equation\")",
            ])
        for item in unit.items:
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
        content = "\n\n".join("\n".join(b) for b in blocks if b) + "\n"
        return [GeneratedFile(f"{unit.name}.kt", content, self.language)]

    def doc(self, title: str, *extra: str) -> list[str]:
        if not self.options.include_comments:
            return []
        if not extra:
            return [f"/** {title} */"]
        lines = ["/**", f" * {title}"]
        lines.extend(f" * {line}" if line else " *" for line in extra)
        lines.append(" */")
        return lines

    def parameter(self, f: FieldDecl, s: Struct) -> str:
        name = self.field_name(f.name)
        if f.identity:
            return f"val {name}: {self.render_type(f.type)} = UUID.randomUUID()"
        if s.tag is StructTag.AGGREGATE and f.type.many:
            return f"val {name}: MutableList<{self.native(f.type)}> = mutableListOf()"
        keyword = "var" if s.tag is StructTag.ENTITY else "val"
        default = " = null" if f.type.optional else ""
        return f"{keyword} {name}: {self.render_type(f.type)}{default}"

    def struct(self, s: Struct) -> list[str]:
        name = self.type_name(s.name)
        title = {
            StructTag.ENTITY: f"Entity: {s.name}",
            StructTag.VALUE_OBJECT: f"Value Object: {s.name}",
            StructTag.AGGREGATE: f"Aggregate: {s.name}",
            StructTag.PLAIN: s.name,
        }[s.tag]
        extra = [s.doc] if s.doc else []
        if s.rules:
            extra += ["", "Rules:"] + [f"- {r}" for r in s.rules]
        lines = self.doc(title, *extra)
        keyword = "data class" if s.tag in (StructTag.VALUE_OBJECT, StructTag.PLAIN) else "class"
        lines.append(f"{keyword} {name}(")
        params = [self.parameter(f, s) for f in s.fields]
        lines.extend(f"{INDENT}{p}," for p in params)
        body: list[list[str]] = []
        if s.tag is StructTag.ENTITY and s.id_field:
            ident = self.field_name(s.id_field)
            body.append([
                f"override fun equals(other: Any?): Boolean = other is {name} && other.{ident} == {ident}",
                "",
                f"override fun hashCode(): Int = {ident}.hashCode()",
            ])
        for fn in s.functions:
            body.append(self.method(fn))
        if not body:
            lines.append(")")
            return lines
        lines.append(") {")
        for i, block in enumerate(body):
            if i:
                lines.append("")
            lines.extend(f"{INDENT}{line}" if line else "" for line in block)
        lines.append("}")
        return lines

    def method(self, fn: Function) -> list[str]:
        name = self.function_name(fn.name)
        if fn.op is FunctionOp.CHECK_INVARIANT:
            inv = fn.invariant
            hint = primitive_of(inv.lhs) or primitive_of(inv.rhs)
            condition = self.compare(inv.lhs, inv.operator, inv.rhs, hint)
            return self.doc(f"Invariant {inv.name}: {inv.text}") + [
                f"fun {name}() {{",
                f"{INDENT}if (!({condition})) {{",
                f"{INDENT * 2}throw InvariantViolation({kotlin_string(inv.name)}, {kotlin_string(inv.text)})",
                f"{INDENT}}}",
                "}",
            ]
        member = self.field_name(fn.member)
        item_type = self.render_type(fn.params[0].type)
        verb = "add" if fn.op is FunctionOp.ADD_MEMBER else "remove"
        return [f"fun {name}(item: {item_type}) {{", f"{INDENT}{member}.{verb}(item)", "}"]

    def enum(self, e: EnumType) -> list[str]:
        lines = self.doc(f"Enum: {e.name}", *([e.doc] if e.doc else []))
        lines.append(f"enum class {self.type_name(e.name)} {{")
        variants = [self.variant_name(v) for v in e.variants]
        lines.append(f"{INDENT}{', '.join(variants)}")
        lines.append("}")
        return lines

    def union(self, u: TaggedUnion) -> list[str]:
        name = self.type_name(u.name)
        lines = self.doc(f"Enum: {u.name}", *([u.doc] if u.doc else []))
        lines.append(f"sealed class {name} {{")
        for case in u.cases:
            variant = self.variant_name(case.name)
            if case.payload is not None:
                lines.append(f"{INDENT}data class {variant}(val value: {self.render_type(case.payload)}) : {name}()")
            else:
                lines.append(f"{INDENT}object {variant} : {name}()")
        lines.append("}")
        return lines

    def trait(self, t: Trait) -> list[str]:
        lines = self.doc(t.doc) if t.doc else []
        lines.append(f"interface {self.type_name(t.name)} {{")
        for fn in t.functions:
            params = ", ".join(f"{p.name}: {self.render_type(p.type)}" for p in fn.params)
            returns = f": {self.render_type(fn.returns)}" if fn.returns else ""
            lines.append(f"{INDENT}fun {self.function_name(fn.name)}({params}){returns}")
        lines.append("}")
        return lines

    # -----------------------------------------------------------------------
    # Invariant expressions
    # -----------------------------------------------------------------------

    def compare(self, lhs: IRExpr, operator: str, rhs: IRExpr, hint: str | None) -> str:
        op = "==" if operator == "=" else operator
        left, right = self.expr(lhs, hint), self.expr(rhs, hint)
        if hint == "Decimal":
            return f"{left}.compareTo({right}) {op} 0"
        return f"{left} {op} {right}"

    def access(self, base: str | None, steps) -> str:
        parts = [base] if base else []
        return ".".join(parts + [self.field_name(s.name) for s in steps])

    def const(self, c: Const, hint: str | None) -> str:
        if isinstance(c.value, str):
            return kotlin_string(c.value)
        if hint == "Decimal":
            return f"BigDecimal(\"{c.value}\")"
        if isinstance(c.value, int):
            return f"{c.value}.0" if hint == "Float" else f"{c.value}L"
        return str(c.value)

    def expr(self, e: IRExpr, hint: str | None) -> str:
        if isinstance(e, Const):
            return self.const(e, hint)
        if isinstance(e, PathRef):
            before, coll, after = e.split()
            if coll is None:
                return self.access(None, before)
            collection = self.access(None, before + (coll,))
            if after:
                return f"{collection}.map {{ {self.access('it', after)} }}"
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
            return "1L" if a.op == "count" else self.expr(arg, hint)
        before, coll, after = arg.split()
        collection = self.access(None, before + (coll,))
        element = self.access("it", after) if after else "it"
        if a.op == "count":
            return f"{collection}.size.toLong()"
        if a.op == "sum":
            return f"{collection}.sumOf {{ {element} }}"
        if a.op in ("min", "max"):
            return f"{collection}.{a.op}Of {{ {element} }}"
        return f"{collection}.map {{ {element}.toDouble() }}.average()"
