"""SketchDDD: domain models as categorical sketches, validated and compiled.

A bounded context is a small category-like graph: objects (entities, value
objects, enums, aggregates), morphisms between them, and path equations
that must hold. This package implements the core around that model:

- Model: BoundedContext, ContextMap and DomainModel builders
- Validation: a fixed sequence of passes producing located Diagnostics,
  each identified by a stable code from a single registry
- Rendering: compiler-style text for people, JSON for tools
- Code generation: the model is lowered to a language-neutral IR and
  rendered by per-language backends (TypeScript, Rust, Kotlin, Java,
  SHACL), with fallback transforms for constructs a target lacks
- Diagrams: Mermaid and Graphviz text

Models can be built in Python or loaded from a YAML document
(sketchddd.loader), which gives every diagnostic a source location. The
SHACL bridge (sketchddd.shacl_bridge) checks instance data against a
context through rdflib and pySHACL.
"""

__version__ = "0.1.0"
