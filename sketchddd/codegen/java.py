"""Java backend.

Java has no tagged unions and no nested modules here, so both go through
the fallback forms: a union becomes a ``<Name>Kind`` enum plus a holder
class, and aggregate modules are flattened. Every type gets its own file
under the package directory, as javac expects.
"""

from __future__ import annotations

import json
import re

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
    Trait,
    TypeRef,
    primitive_of,
)
from .naming import pascal_case

INDENT = "    "

# Imports are decided by what the rendered body actually mentions.
_IMPORT_TRIGGERS = [
    (re.compile(r"\bBigDecimal\b"), "java.math.BigDecimal"),
    (re.compile(r"\bInstant\b"), "java.time.Instant"),
    (re.compile(r"\bLocalDate\b"), "java.time.LocalDate"),
    (re.compile(r"\bArrayList\b"), "java.util.ArrayList"),
    (re.compile(r"\bComparator\b"), "java.util.Comparator"),
    (re.compile(r"\bList<"), "java.util.List"),
    (re.compile(r"\bObjects\."), "java.util.Objects"),
    (re.compile(r"\bOptional<"), "java.util.Optional"),
    (re.compile(r"\bUUID\b"), "java.util.UUID"),
]

_ARITH = {"+": "add", "-": "subtract", "*": "multiply", "/": "divide"}


class JavaBackend(Backend):
    name = "java"
    language = "java"
    capabilities = frozenset({
        Capability.STRUCT,
        Capability.ENUM,
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
        # Fields and parameters are nullable references already.
        return inner

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def render(self, unit: CodeUnit) -> list[GeneratedFile]:
        files: list[GeneratedFile] = []
        if unit.has_invariants:
            files.append(self.file("InvariantViolation", self.invariant_violation(), unit))
        for item in unit.items:
            if isinstance(item, Struct):
                if self.options.emit_classes:
                    files.append(self.file(item.name, self.struct(item), unit))
            elif isinstance(item, EnumType):
                files.append(self.file(item.name, self.enum(item), unit))
            elif isinstance(item, Trait):
                if self.options.emit_interfaces:
                    files.append(self.file(item.name, self.trait(item), unit))
        return files

    def file(self, type_name: str, body: list[str], unit: CodeUnit) -> GeneratedFile:
        text = "\n".join(body)
        imports = sorted({imp for pattern, imp in _IMPORT_TRIGGERS if pattern.search(text)})
        blocks = [self.header(unit), [f"package {self.options.package_name};"]]
        if imports:
            blocks.append([f"import {imp};" for imp in imports])
        blocks.append(body)
        content = "\n\n".join("\n".join(b) for b in blocks) + "\n"
        directory = self.options.package_name.replace(".", "/")
        filename = f"{directory}/{self.type_name(type_name)}.java"
        return GeneratedFile(filename, content, self.language)

    def doc(self, title: str, *extra: str) -> list[str]:
        if not self.options.include_comments:
            return []
        lines = ["/**", f" * {title}"]
        lines.extend(f" * {line}" if line else " *" for line in extra)
        lines.append(" */")
        return lines

    def invariant_violation(self) -> list[str]:
        return self.doc("Thrown when an invariant check fails.") + [
            "public class InvariantViolation extends IllegalStateException {",
            "",
            "    private final String invariant;",
            "    private final String equation;",
            "",
            "    public InvariantViolation(String invariant, String equation) {",
            "        super(\"Invariant '\" + invariant + \"' violated: \" + equation);",
            "        this.invariant = invariant;",
            "        this.equation = equation;",
            "    }",
            "",
            "    public String getInvariant() {",
            "        return invariant;",
            "    }",
            "",
            "    public String getEquation() {",
            "        return equation;",
            "    }",
            "}",
        ]

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
        lines.append(f"public class {name} {{")
        blocks = [self.declarations(s), self.constructor(s)]
        blocks.extend(self.accessors(s))
        blocks.extend(self.method(fn) for fn in s.functions)
        if s.tag is not StructTag.AGGREGATE:
            blocks.extend(self.equality(s))
        for block in blocks:
            lines.append("")
            lines.extend(f"{INDENT}{line}" if line else "" for line in block)
        lines.append("}")
        return lines

    def is_final(self, f: FieldDecl, s: Struct) -> bool:
        return f.identity or s.tag is not StructTag.ENTITY

    def declarations(self, s: Struct) -> list[str]:
        lines = []
        for f in s.fields:
            final = "final " if self.is_final(f, s) else ""
            if s.tag is StructTag.AGGREGATE and f.type.many:
                lines.append(f"private final {self.render_type(f.type)} {self.field_name(f.name)} = new ArrayList<>();")
            else:
                lines.append(f"private {final}{self.render_type(f.type)} {self.field_name(f.name)};")
        return lines

    def constructor_fields(self, s: Struct) -> list[FieldDecl]:
        if s.tag is StructTag.AGGREGATE:
            return [f for f in s.fields if not f.type.many]
        return list(s.fields)

    def constructor(self, s: Struct) -> list[str]:
        fields = self.constructor_fields(s)
        params = ", ".join(f"{self.render_type(f.type)} {self.field_name(f.name)}" for f in fields)
        lines = [f"public {self.type_name(s.name)}({params}) {{"]
        for f in fields:
            name = self.field_name(f.name)
            if f.identity:
                lines.append(f"{INDENT}this.{name} = {name} != null ? {name} : UUID.randomUUID();")
            else:
                lines.append(f"{INDENT}this.{name} = {name};")
        lines.append("}")
        return lines

    def accessors(self, s: Struct) -> list[list[str]]:
        blocks = []
        for f in s.fields:
            name = self.field_name(f.name)
            type_text = self.render_type(f.type)
            blocks.append([f"public {type_text} {self.getter(f.name)}() {{", f"{INDENT}return {name};", "}"])
            if not self.is_final(f, s):
                blocks.append([
                    f"public void set{pascal_case(f.name)}({type_text} {name}) {{",
                    f"{INDENT}this.{name} = {name};",
                    "}",
                ])
        return blocks

    def getter(self, name: str) -> str:
        return f"get{pascal_case(name)}"

    def equality(self, s: Struct) -> list[list[str]]:
        name = self.type_name(s.name)
        if s.tag is StructTag.ENTITY and s.id_field:
            compared = [self.field_name(s.id_field)]
        else:
            compared = [self.field_name(f.name) for f in s.fields]
        same = " && ".join(f"Objects.equals({n}, other.{n})" for n in compared) or "true"
        return [
            [
                "@Override",
                "public boolean equals(Object o) {",
                f"{INDENT}if (this == o) return true;",
                f"{INDENT}if (!(o instanceof {name})) return false;",
                f"{INDENT}{name} other = ({name}) o;",
                f"{INDENT}return {same};",
                "}",
            ],
            [
                "@Override",
                "public int hashCode() {",
                f"{INDENT}return Objects.hash({', '.join(compared)});",
                "}",
            ],
        ]

    def method(self, fn: Function) -> list[str]:
        name = self.function_name(fn.name)
        if fn.op is FunctionOp.CHECK_INVARIANT:
            inv = fn.invariant
            hint = primitive_of(inv.lhs) or primitive_of(inv.rhs)
            condition = self.compare(inv.lhs, inv.operator, inv.rhs, hint)
            return self.doc(f"Invariant {inv.name}: {inv.text}") + [
                f"public void {name}() {{",
                f"{INDENT}if (!({condition})) {{",
                f"{INDENT * 2}throw new InvariantViolation({json.dumps(inv.name)}, {json.dumps(inv.text)});",
                f"{INDENT}}}",
                "}",
            ]
        member = self.field_name(fn.member)
        item_type = self.render_type(fn.params[0].type)
        verb = "add" if fn.op is FunctionOp.ADD_MEMBER else "remove"
        return [f"public void {name}({item_type} item) {{", f"{INDENT}{member}.{verb}(item);", "}"]

    def enum(self, e: EnumType) -> list[str]:
        lines = self.doc(f"Enum: {e.name}", *([e.doc] if e.doc else []))
        lines.append(f"public enum {self.type_name(e.name)} {{")
        lines.append(f"{INDENT}{', '.join(self.variant_name(v) for v in e.variants)}")
        lines.append("}")
        return lines

    def trait(self, t: Trait) -> list[str]:
        lines = self.doc(t.doc) if t.doc else []
        lines.append(f"public interface {self.type_name(t.name)} {{")
        for fn in t.functions:
            params = ", ".join(f"{self.render_type(p.type)} {p.name}" for p in fn.params)
            lines.append("")
            lines.append(f"{INDENT}{self.return_type(fn.returns)} {self.function_name(fn.name)}({params});")
        lines.append("}")
        return lines

    def return_type(self, ref: TypeRef | None) -> str:
        if ref is None:
            return "void"
        if ref.optional:
            return f"Optional<{self.native(ref)}>"
        return self.render_type(ref)

    # -----------------------------------------------------------------------
    # Invariant expressions
    # -----------------------------------------------------------------------

    def compare(self, lhs: IRExpr, operator: str, rhs: IRExpr, hint: str | None) -> str:
        left, right = self.expr(lhs, hint), self.expr(rhs, hint)
        if hint == "Decimal":
            op = "==" if operator == "=" else operator
            return f"{left}.compareTo({right}) {op} 0"
        if operator == "=":
            return f"Objects.equals({left}, {right})"
        if operator == "!=":
            return f"!Objects.equals({left}, {right})"
        return f"{left} {operator} {right}"

    def access(self, base: str | None, steps) -> str:
        calls = [f"{self.getter(s.name)}()" for s in steps]
        return ".".join(([base] if base else []) + calls)

    def const(self, c: Const, hint: str | None) -> str:
        if isinstance(c.value, str):
            return json.dumps(c.value)
        if hint == "Decimal":
            return f"new BigDecimal(\"{c.value}\")"
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
                return f"{collection}.stream().map(it -> {self.access('it', after)}).toList()"
            return collection
        if isinstance(e, Aggregation):
            return self.aggregation(e, hint)
        if isinstance(e, Arith):
            inner = primitive_of(e) or hint
            left, right = self.expr(e.left, inner), self.expr(e.right, inner)
            if inner == "Decimal":
                return f"{left}.{_ARITH[e.op]}({right})"
            return f"({left} {e.op} {right})"
        raise TypeError(f"Unknown expression: {e!r}")

    def aggregation(self, a: Aggregation, hint: str | None) -> str:
        arg = a.arg
        if not (isinstance(arg, PathRef) and arg.split()[1] is not None):
            return "1L" if a.op == "count" else self.expr(arg, hint)
        before, coll, after = arg.split()
        collection = self.access(None, before + (coll,))
        element = self.access("it", after) if after else "it"
        stream = f"{collection}.stream()"
        leaf = primitive_of(arg)
        if a.op == "count":
            return f"(long) {collection}.size()"
        if a.op == "sum":
            if leaf == "Decimal":
                return f"{stream}.map(it -> {element}).reduce(BigDecimal.ZERO, BigDecimal::add)"
            if leaf == "Float":
                return f"{stream}.mapToDouble(it -> {element}).sum()"
            return f"{stream}.mapToLong(it -> {element}).sum()"
        if a.op in ("min", "max"):
            return f"{stream}.map(it -> {element}).{a.op}(Comparator.naturalOrder()).orElse(null)"
        if leaf == "Decimal":
            return f"{stream}.mapToDouble(it -> {element}.doubleValue()).average().orElse(0.0)"
        return f"{stream}.mapToDouble(it -> {element}).average().orElse(0.0)"
