"""SHACL shapes backend.

Renders a CodeUnit as a SHACL shapes graph in Turtle:

  Struct          -> sh:NodeShape targeting the class of the same name
  primitive field -> property shape with sh:datatype (XSD table below)
  object field    -> property shape with sh:class on the referenced type
  enum field      -> property shape with sh:in over the variant names
  optional / many -> sh:minCount / sh:maxCount
  invariants      -> rdfs:comment on the shape

The identity field is not a property: an instance's identity is its IRI.
SHACL has neither tagged unions nor interfaces, and cannot express the
invariant equations, so those go through the shared fallbacks.
"""

from __future__ import annotations

from rdflib import BNode, Graph, Literal, Namespace, RDF, RDFS, XSD
from rdflib.collection import Collection
from rdflib.namespace import SH

from .backend import Backend, Capability, GeneratedFile
from .ir import CodeUnit, EnumType, FieldDecl, Struct, StructTag

DEFAULT_BASE = "http://sketchddd.example.org/"

XSD_TYPES = {
    "String": XSD.string,
    "Int": XSD.integer,
    "Float": XSD.double,
    "Decimal": XSD.decimal,
    "Bool": XSD.boolean,
    "Date": XSD.date,
    "DateTime": XSD.dateTime,
    "UUID": XSD.string,
}


def namespace_iri(namespace: str) -> Namespace:
    """An IRI namespace for a configured namespace option.

    A value that already looks like an IRI is used as is (a trailing ``/``
    is added unless it ends in ``/`` or ``#``); a bare name is placed under
    the default base.
    """
    if "://" in namespace:
        iri = namespace if namespace.endswith(("/", "#")) else namespace + "/"
    else:
        iri = f"{DEFAULT_BASE}{namespace}/"
    return Namespace(iri)


class ShaclBackend(Backend):
    name = "shacl"
    language = "turtle"
    capabilities = frozenset({Capability.STRUCT, Capability.ENUM})
    type_map = {k: str(v) for k, v in XSD_TYPES.items()}

    def __init__(self, options=None):
        super().__init__(options)
        self.ns = namespace_iri(self.options.namespace)

    def list_type(self, element: str) -> str:
        return element

    def optional_type(self, inner: str) -> str:
        return inner

    # -----------------------------------------------------------------------
    # Shapes graph
    # -----------------------------------------------------------------------

    def shapes(self, unit: CodeUnit) -> Graph:
        """Build the shapes graph for an already lowered unit."""
        sg = Graph()
        sg.bind("sh", SH)
        sg.bind("xsd", XSD)
        sg.bind("domain", self.ns)

        enums = {item.name: item for item in unit.walk() if isinstance(item, EnumType)}
        for item in unit.walk():
            if isinstance(item, Struct):
                self.node_shape(sg, item, enums)
        return sg

    def node_shape(self, sg: Graph, s: Struct, enums: dict[str, EnumType]) -> None:
        shape = self.ns[f"{s.name}Shape"]
        sg.add((shape, RDF.type, SH.NodeShape))
        sg.add((shape, SH.targetClass, self.ns[s.name]))
        sg.add((shape, RDFS.label, Literal(f"Shape for {s.name}")))
        if self.options.include_comments:
            if s.doc:
                sg.add((shape, RDFS.comment, Literal(s.doc)))
            for rule in s.rules:
                sg.add((shape, RDFS.comment, Literal(f"[invariant] {rule}")))
        if s.tag is StructTag.ENTITY and s.id_field:
            sg.add((shape, SH.nodeKind, SH.IRI))

        for f in s.fields:
            if f.identity:
                continue
            sg.add((shape, SH.property, self.property_shape(sg, f, enums)))

    def property_shape(self, sg: Graph, f: FieldDecl, enums: dict[str, EnumType]) -> BNode:
        prop = BNode()
        sg.add((prop, SH.path, self.ns[f.name]))
        sg.add((prop, SH.name, Literal(f.name)))
        if f.doc and self.options.include_comments:
            sg.add((prop, SH.description, Literal(f.doc)))

        ref = f.type
        if ref.primitive:
            sg.add((prop, SH.datatype, XSD_TYPES[ref.name]))
        elif ref.name in enums:
            values = BNode()
            Collection(sg, values, [Literal(v, datatype=XSD.string) for v in enums[ref.name].variants])
            sg.add((prop, SH["in"], values))
        else:
            sg.add((prop, SH["class"], self.ns[ref.name]))

        if not ref.optional and not ref.many:
            sg.add((prop, SH.minCount, Literal(1)))
        if not ref.many:
            sg.add((prop, SH.maxCount, Literal(1)))
        return prop

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def render(self, unit: CodeUnit) -> list[GeneratedFile]:
        turtle = self.shapes(unit).serialize(format="turtle")
        content = "\n".join(self.header(unit, comment="#")) + "\n\n" + turtle
        return [GeneratedFile(f"{unit.name}.ttl", content, self.language)]
