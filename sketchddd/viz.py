"""Diagram text for a bounded context: Mermaid class diagrams and Graphviz DOT.

Objects appear in declaration order, then morphisms in declaration order,
so the same context always yields the same text. A morphism whose source
or target is not declared in the context is left out of the diagram;
reporting it is the validator's job.
"""

from __future__ import annotations

import json
import logging
from enum import Enum

from .context import BoundedContext
from .types import Aggregate, Cardinality, Entity, Enumeration, ObjectDef, ValueObject

logger = logging.getLogger(__name__)


class DiagramFormat(Enum):
    MERMAID = "mermaid"
    GRAPHVIZ = "graphviz"

    @classmethod
    def parse(cls, text: str) -> DiagramFormat:
        aliases = {"md": "mermaid", "dot": "graphviz", "gv": "graphviz"}
        value = text.strip().lower()
        try:
            return cls(aliases.get(value, value))
        except ValueError:
            raise ValueError(
                f"unknown diagram format '{text}' (expected mermaid or graphviz)"
            ) from None


_MULTIPLICITY = {
    Cardinality.ONE: "1",
    Cardinality.OPTIONAL: "0..1",
    Cardinality.MANY: "*",
}

_STEREOTYPE = {
    Entity: "Entity",
    ValueObject: "ValueObject",
    Enumeration: "Enum",
    Aggregate: "Aggregate",
}

_DOT_SHAPE = {
    Entity: "box",
    ValueObject: "ellipse",
    Enumeration: "diamond",
    Aggregate: "box3d",
}


def _members(obj: ObjectDef) -> list[str]:
    if isinstance(obj, Entity):
        return [f"+UUID {obj.id_field}"] + [
            f"+{f.type_name}{'?' if f.optional else ''} {f.name}" for f in obj.fields
        ]
    if isinstance(obj, ValueObject):
        return [f"+{f.type_name}{'?' if f.optional else ''} {f.name}" for f in obj.fields]
    if isinstance(obj, Enumeration):
        return [f"{v.name}({v.payload})" if v.payload else v.name for v in obj.variants]
    return []


# ---------------------------------------------------------------------------
# Mermaid
# ---------------------------------------------------------------------------

def mermaid(context: BoundedContext, fenced: bool = False) -> str:
    lines = ["classDiagram", f"    %% {context.name}"]
    declared = {obj.name for obj in context.objects}

    for obj in context.objects:
        lines.append(f"    class {obj.name} {{")
        lines.append(f"        <<{_STEREOTYPE[type(obj)]}>>")
        lines.extend(f"        {m}" for m in _members(obj))
        lines.append("    }")

    for agg in context.aggregates:
        for part in (agg.root, *agg.members):
            if part in declared:
                lines.append(f"    {agg.name} *-- {part}")

    for m in context.morphisms:
        if m.source not in declared or m.target not in declared:
            logger.debug("Skipping morphism %s with an undeclared endpoint", m.name)
            continue
        lines.append(
            f"    {m.source} --> \"{_MULTIPLICITY[m.cardinality]}\" {m.target} : {m.name}"
        )

    text = "\n".join(lines) + "\n"
    return f"```mermaid\n{text}```\n" if fenced else text


# ---------------------------------------------------------------------------
# Graphviz
# ---------------------------------------------------------------------------

def graphviz(context: BoundedContext) -> str:
    lines = [f"digraph {json.dumps(context.name)} {{", "  rankdir=LR;", "  node [shape=box];", ""]
    declared = {obj.name for obj in context.objects}

    for obj in context.objects:
        label = f"«{_STEREOTYPE[type(obj)]}»\\n{obj.name}"
        lines.append(f"  {json.dumps(obj.name)} [label=\"{label}\" shape={_DOT_SHAPE[type(obj)]}];")

    edges = []
    for agg in context.aggregates:
        for part in (agg.root, *agg.members):
            if part in declared:
                edges.append(f"  {json.dumps(agg.name)} -> {json.dumps(part)} [arrowhead=diamond style=dashed];")
    for m in context.morphisms:
        if m.source not in declared or m.target not in declared:
            logger.debug("Skipping morphism %s with an undeclared endpoint", m.name)
            continue
        label = f"{m.name} [{_MULTIPLICITY[m.cardinality]}]"
        edges.append(f"  {json.dumps(m.source)} -> {json.dumps(m.target)} [label={json.dumps(label)}];")
    if edges:
        lines.append("")
        lines.extend(edges)
    lines.append("}")
    return "\n".join(lines) + "\n"


def generate(context: BoundedContext, fmt: DiagramFormat | str = DiagramFormat.MERMAID) -> str:
    """Diagram text for ``context`` in the requested format."""
    if isinstance(fmt, str):
        fmt = DiagramFormat.parse(fmt)
    if fmt is DiagramFormat.MERMAID:
        return mermaid(context)
    return graphviz(context)
