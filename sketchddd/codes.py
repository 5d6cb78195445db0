"""Diagnostic code registry.

Every diagnostic the validator can emit is listed here exactly once. Codes
are append-only: an entry is never removed, renumbered, or reused for a
different meaning, so tooling can key on them across releases. Passes look
their codes up by constant instead of spelling the strings inline.
"""

from __future__ import annotations

from dataclasses import dataclass

from .diagnostics import Severity


@dataclass(frozen=True)
class CodeInfo:
    code: str
    severity: Severity
    pass_name: str
    title: str
    explanation: str
    since: str = "0.1.0"

    def describe(self) -> str:
        lines = [
            f"{self.code}: {self.title}",
            "",
            f"  severity: {self.severity.value}",
            f"  pass:     {self.pass_name}",
            f"  since:    {self.since}",
            "",
        ]
        lines.extend(f"  {line}" for line in self.explanation.splitlines())
        return "\n".join(lines)


# Code ranges owned by each validator pass, in pass order.
PASS_RANGES: dict[str, tuple[str, str]] = {
    "morphism-reference": ("E0001", "E0009"),
    "equation": ("E0010", "E0019"),
    "duplicate-names": ("E0020", "E0029"),
    "aggregate-structure": ("E0030", "E0039"),
    "entity": ("E0040", "E0049"),
    "enum": ("E0050", "E0059"),
    "context-map": ("E0060", "E0069"),
    "model": ("E0070", "E0079"),
    "aggregate-warnings": ("W0001", "W0009"),
    "value-object-warnings": ("W0010", "W0019"),
    "naming": ("H0001", "H0009"),
}

E = Severity.ERROR
W = Severity.WARNING
H = Severity.HINT

_ENTRIES = [
    CodeInfo("E0001", E, "morphism-reference", "morphism source not found",
             "A morphism's source names an object that is not declared in the\n"
             "bounded context. Declare the object or correct the name."),
    CodeInfo("E0002", E, "morphism-reference", "morphism target not found",
             "A morphism's target names an object that is not declared in the\n"
             "bounded context. Declare the object or correct the name."),
    CodeInfo("E0010", E, "equation", "equation path does not resolve",
             "A segment of a path in an equation is neither a field nor an\n"
             "outgoing morphism of the object reached so far. Paths start at the\n"
             "aggregate root (for invariants) or the equation's source object."),
    CodeInfo("E0011", E, "equation", "equation source object not found",
             "The object an equation is anchored on is not declared in the\n"
             "bounded context."),
    CodeInfo("E0012", E, "equation", "unknown operator in equation",
             "Equations may apply only the aggregate operators sum, count, min,\n"
             "max and avg."),
    CodeInfo("E0020", E, "duplicate-names", "duplicate object name",
             "Two or more objects in one bounded context share a name. Names\n"
             "must be unique within a context; rename or merge the objects."),
    CodeInfo("E0021", E, "duplicate-names", "duplicate field name",
             "An entity or value object declares the same field name twice."),
    CodeInfo("E0022", E, "duplicate-names", "duplicate morphism name",
             "Two morphisms leaving the same source object share a name, so a\n"
             "path through that name would be ambiguous."),
    CodeInfo("E0030", E, "aggregate-structure", "aggregate root not found",
             "The root of an aggregate names an object that is not declared in\n"
             "the bounded context."),
    CodeInfo("E0031", E, "aggregate-structure", "aggregate root is not an entity",
             "An aggregate root must be an entity: it is the identity through\n"
             "which the whole consistency boundary is addressed."),
    CodeInfo("E0032", E, "aggregate-structure", "aggregate root listed as member",
             "The root of an aggregate also appears in its member list. The\n"
             "root is the apex of the limit cone and cannot be one of its legs."),
    CodeInfo("E0033", E, "aggregate-structure", "aggregate member not found",
             "An aggregate member names an object that is not declared in the\n"
             "bounded context."),
    CodeInfo("E0034", E, "aggregate-structure", "object belongs to several aggregates",
             "An object may be a member of at most one aggregate: members are\n"
             "reachable only through their root."),
    CodeInfo("E0035", E, "aggregate-structure", "aggregate member listed twice",
             "The same object appears more than once in the member list of one\n"
             "aggregate. Each member becomes one collection on the aggregate, so\n"
             "a repeated member would declare that collection twice."),
    CodeInfo("E0040", E, "entity", "unknown field type",
             "A field's type is neither a primitive (String, Int, Float,\n"
             "Decimal, Bool, Date, DateTime, UUID) nor an object declared in the\n"
             "bounded context."),
    CodeInfo("E0041", E, "entity", "field typed by an aggregate",
             "Fields may not hold an aggregate. Reference the aggregate's root\n"
             "entity instead."),
    CodeInfo("E0050", E, "enum", "duplicate variant name",
             "An enumeration declares the same variant name twice."),
    CodeInfo("E0051", E, "enum", "unknown variant payload type",
             "A variant's payload type is neither a primitive nor an object\n"
             "declared in the bounded context."),
    CodeInfo("E0052", E, "enum", "enumeration has no variants",
             "A colimit over nothing is empty: an enumeration needs at least\n"
             "one variant."),
    CodeInfo("E0060", E, "context-map", "context map source context not found",
             "A context map's source names a bounded context that is not part\n"
             "of the model."),
    CodeInfo("E0061", E, "context-map", "context map target context not found",
             "A context map's target names a bounded context that is not part\n"
             "of the model."),
    CodeInfo("E0062", E, "context-map", "mapped source object not found",
             "An object mapping names an object that is not declared in the\n"
             "map's source context."),
    CodeInfo("E0063", E, "context-map", "mapped target object not found",
             "An object mapping names an object that is not declared in the\n"
             "map's target context."),
    CodeInfo("E0070", E, "model", "cyclic context map dependencies",
             "Following upstream -> downstream context maps (CustomerSupplier,\n"
             "Conformist, AntiCorruptionLayer, OpenHostService,\n"
             "PublishedLanguage) leads back to the starting context."),
    CodeInfo("E0071", E, "model", "model has no bounded contexts",
             "There is nothing to validate or generate."),
    CodeInfo("E0072", E, "model", "context map relates a context to itself",
             "A context map's source and target are the same bounded context."),
    CodeInfo("W0001", W, "aggregate-warnings", "large aggregate",
             "The aggregate has more than five members. Large consistency\n"
             "boundaries hurt concurrency; consider splitting into smaller\n"
             "aggregates."),
    CodeInfo("W0002", W, "aggregate-warnings", "aggregate without invariants",
             "An aggregate exists to protect invariants. One with none may not\n"
             "need to be an aggregate."),
    CodeInfo("W0003", W, "aggregate-warnings", "aggregate without members",
             "The aggregate consists of its root alone."),
    CodeInfo("W0010", W, "value-object-warnings", "value object without fields",
             "A value object's equality is structural over its fields; with\n"
             "none, all instances are equal."),
    CodeInfo("W0011", W, "value-object-warnings", "value object refers to an entity",
             "A value object field holds an entity. Value objects should be\n"
             "immutable and identity-free; reference the entity's id instead."),
    CodeInfo("H0001", H, "naming", "object name is not PascalCase",
             "Object names are rendered as type names in every target\n"
             "language, which expect PascalCase."),
    CodeInfo("H0002", H, "naming", "member name is not lowerCamelCase",
             "Field and morphism names should start with a lower-case letter."),
]

REGISTRY: dict[str, CodeInfo] = {entry.code: entry for entry in _ENTRIES}

# Named constants used by the validator passes.
MORPHISM_SOURCE_NOT_FOUND = REGISTRY["E0001"]
MORPHISM_TARGET_NOT_FOUND = REGISTRY["E0002"]
EQUATION_PATH_UNRESOLVED = REGISTRY["E0010"]
EQUATION_SOURCE_NOT_FOUND = REGISTRY["E0011"]
EQUATION_UNKNOWN_OPERATOR = REGISTRY["E0012"]
DUPLICATE_OBJECT = REGISTRY["E0020"]
DUPLICATE_FIELD = REGISTRY["E0021"]
DUPLICATE_MORPHISM = REGISTRY["E0022"]
AGGREGATE_ROOT_NOT_FOUND = REGISTRY["E0030"]
AGGREGATE_ROOT_NOT_ENTITY = REGISTRY["E0031"]
AGGREGATE_ROOT_IN_MEMBERS = REGISTRY["E0032"]
AGGREGATE_MEMBER_NOT_FOUND = REGISTRY["E0033"]
AGGREGATE_MEMBER_SHARED = REGISTRY["E0034"]
AGGREGATE_MEMBER_REPEATED = REGISTRY["E0035"]
FIELD_TYPE_NOT_FOUND = REGISTRY["E0040"]
FIELD_TYPED_BY_AGGREGATE = REGISTRY["E0041"]
DUPLICATE_VARIANT = REGISTRY["E0050"]
VARIANT_PAYLOAD_NOT_FOUND = REGISTRY["E0051"]
EMPTY_ENUM = REGISTRY["E0052"]
CONTEXT_MAP_SOURCE_NOT_FOUND = REGISTRY["E0060"]
CONTEXT_MAP_TARGET_NOT_FOUND = REGISTRY["E0061"]
MAPPING_SOURCE_NOT_FOUND = REGISTRY["E0062"]
MAPPING_TARGET_NOT_FOUND = REGISTRY["E0063"]
CONTEXT_MAP_CYCLE = REGISTRY["E0070"]
EMPTY_MODEL = REGISTRY["E0071"]
CONTEXT_MAP_SELF = REGISTRY["E0072"]
LARGE_AGGREGATE = REGISTRY["W0001"]
AGGREGATE_NO_INVARIANTS = REGISTRY["W0002"]
AGGREGATE_NO_MEMBERS = REGISTRY["W0003"]
EMPTY_VALUE_OBJECT = REGISTRY["W0010"]
VALUE_OBJECT_HOLDS_ENTITY = REGISTRY["W0011"]
TYPE_NAME_CASE = REGISTRY["H0001"]
MEMBER_NAME_CASE = REGISTRY["H0002"]


def lookup(code: str) -> CodeInfo | None:
    """Return the registry entry for ``code`` (case-insensitive)."""
    return REGISTRY.get(code.strip().upper())


def codes_for_pass(pass_name: str) -> list[CodeInfo]:
    return [entry for entry in _ENTRIES if entry.pass_name == pass_name]


def in_range(code: str, pass_name: str) -> bool:
    """True if ``code`` falls inside the range reserved for ``pass_name``."""
    low, high = PASS_RANGES[pass_name]
    return code[0] == low[0] and low <= code <= high
