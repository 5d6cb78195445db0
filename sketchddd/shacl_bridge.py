"""SHACL bridge: check instance data against a bounded context.

SketchDDD and SHACL cover different ground:
  - the validator checks that the *model* is coherent (names resolve,
    aggregates are well formed, equations are well typed)
  - SHACL checks that *instance data* conforms to the model's shapes

This module connects the two:
  1. the context is lowered to IR and rendered as a shapes graph by the
     SHACL backend (one NodeShape per struct)
  2. instance records become an RDF data graph, one resource per record
  3. pySHACL validates the data graph against the shapes graph

Record values are turned into typed literals; ``None`` values are left out
so that SHACL's sh:minCount reports the gap. Links become object triples
between instance IRIs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from rdflib import Graph, Literal, Namespace, RDF, XSD
from rdflib.namespace import SH

from .codegen.builder import build
from .codegen.shacl import ShaclBackend
from .config import TargetOptions
from .context import BoundedContext
from .errors import InvalidModelError
from .validation import validate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Instance data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InstanceRecord:
    """One instance of a context type, e.g. an Order with its values.

    ``values`` holds attribute values keyed by field name. ``links`` maps a
    field or morphism name to the identity (or identities) of the records
    it points to.
    """
    type_name: str
    identity: str
    values: dict[str, Any] = field(default_factory=dict)
    links: dict[str, str | list[str]] = field(default_factory=dict)


def _to_literal(value: Any) -> Literal:
    """Convert a Python value to an RDF literal with a matching datatype."""
    if isinstance(value, bool):
        return Literal(value, datatype=XSD.boolean)
    if isinstance(value, int):
        return Literal(value, datatype=XSD.integer)
    if isinstance(value, float):
        return Literal(value, datatype=XSD.double)
    if isinstance(value, Decimal):
        return Literal(value, datatype=XSD.decimal)
    if isinstance(value, datetime):
        return Literal(value, datatype=XSD.dateTime)
    if isinstance(value, date):
        return Literal(value, datatype=XSD.date)
    return Literal(str(value), datatype=XSD.string)


def instances_to_rdf(records: list[InstanceRecord], ns: Namespace) -> Graph:
    """Translate instance records into an RDF data graph under ``ns``.

    Instance IRIs live under ``<ns>data/``.
    """
    data_ns = Namespace(f"{ns}data/")
    dg = Graph()
    dg.bind("domain", ns)
    dg.bind("data", data_ns)

    for record in records:
        subject = data_ns[record.identity]
        dg.add((subject, RDF.type, ns[record.type_name]))
        for name, value in record.values.items():
            if value is None:
                continue
            values = value if isinstance(value, (list, tuple)) else [value]
            for v in values:
                dg.add((subject, ns[name], _to_literal(v)))
        for name, targets in record.links.items():
            if isinstance(targets, str):
                targets = [targets]
            for target in targets:
                dg.add((subject, ns[name], data_ns[target]))
    return dg


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def shapes_for(context: BoundedContext, options: TargetOptions | None = None) -> tuple[Graph, Namespace]:
    """Shapes graph for ``context`` and the namespace its classes live in.

    Refuses an invalid context with InvalidModelError, as code generation
    does.
    """
    result = validate(context, hints=False)
    if not result.is_ok():
        raise InvalidModelError(result)
    backend = ShaclBackend(options)
    return backend.shapes(backend.lower(build(context))), backend.ns


def shacl_validate(
    context: BoundedContext,
    records: list[InstanceRecord],
    options: TargetOptions | None = None,
) -> SHACLValidationResult:
    """Validate instance records against the shapes of ``context``."""
    from pyshacl import validate as pyshacl_validate

    shapes_graph, ns = shapes_for(context, options)
    data_graph = instances_to_rdf(records, ns)

    conforms, results_graph, results_text = pyshacl_validate(
        data_graph,
        shacl_graph=shapes_graph,
        inference="none",
        abort_on_first=False,
    )

    violations = []
    for result in results_graph.subjects(RDF.type, SH.ValidationResult):
        focus = results_graph.value(result, SH.focusNode)
        path = results_graph.value(result, SH.resultPath)
        message = results_graph.value(result, SH.resultMessage)
        severity = results_graph.value(result, SH.resultSeverity)
        violations.append(SHACLViolation(
            focus_node=str(focus) if focus else "",
            path=str(path) if path else "",
            message=str(message) if message else "",
            severity=str(severity) if severity else "",
        ))
    violations.sort(key=lambda v: (v.focus_node, v.path, v.message))
    logger.debug("SHACL validation of %d record(s): %d violation(s)", len(records), len(violations))

    return SHACLValidationResult(
        conforms=bool(conforms),
        violations=violations,
        results_text=results_text,
        shapes_graph=shapes_graph,
        data_graph=data_graph,
    )


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

def _local(iri: str) -> str:
    return iri.rstrip("/").rsplit("/", 1)[-1].rsplit("#", 1)[-1]


@dataclass
class SHACLViolation:
    """A single SHACL validation result."""
    focus_node: str
    path: str
    message: str
    severity: str

    @property
    def node(self) -> str:
        return _local(self.focus_node)

    @property
    def property(self) -> str:
        return _local(self.path)

    def __repr__(self) -> str:
        return f"SHACLViolation({self.node}.{self.property}: {self.message})"


@dataclass
class SHACLValidationResult:
    """Outcome of checking instance data against a context's shapes."""
    conforms: bool
    violations: list[SHACLViolation] = field(default_factory=list)
    results_text: str = ""
    shapes_graph: Graph | None = None
    data_graph: Graph | None = None

    def violations_for(self, identity: str) -> list[SHACLViolation]:
        return [v for v in self.violations if v.node == identity]

    def summary(self) -> str:
        status = "CONFORMS" if self.conforms else "DOES NOT CONFORM"
        lines = [f"SHACL Validation: {status}", "-" * 50]
        if self.violations:
            lines.append(f"  Violations ({len(self.violations)}):")
            lines.extend(f"    - {v.node}.{v.property}: {v.message}" for v in self.violations)
        else:
            lines.append("  No violations found.")
        return "\n".join(lines)

    def shapes_as_turtle(self) -> str:
        if self.shapes_graph is None:
            return ""
        return self.shapes_graph.serialize(format="turtle")

    def data_as_turtle(self) -> str:
        if self.data_graph is None:
            return ""
        return self.data_graph.serialize(format="turtle")
