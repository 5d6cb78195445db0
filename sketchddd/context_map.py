"""Context maps and the whole-domain model.

A ContextMap is a sketch morphism between two bounded contexts: it says how
the vocabulary of one corresponds to the other and which integration pattern
governs the relationship. Maps are owned by the DomainModel, never by either
context, because they reference both.

Formally: Model = (V, E) where
  V = bounded contexts, indexed by name
  E = context maps, each labelled with a Pattern
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum

from .context import BoundedContext
from .types import Span


class Pattern(Enum):
    """Integration pattern between two bounded contexts."""
    SHARED_KERNEL = "SharedKernel"
    CUSTOMER_SUPPLIER = "CustomerSupplier"
    CONFORMIST = "Conformist"
    ANTI_CORRUPTION_LAYER = "AntiCorruptionLayer"
    OPEN_HOST_SERVICE = "OpenHostService"
    PUBLISHED_LANGUAGE = "PublishedLanguage"
    PARTNERSHIP = "Partnership"
    SEPARATE_WAYS = "SeparateWays"

    @classmethod
    def parse(cls, text: str) -> Pattern:
        """Accept ``CustomerSupplier``, ``customer_supplier``, ``ACL`` or ``OHS``."""
        abbreviations = {"acl": cls.ANTI_CORRUPTION_LAYER, "ohs": cls.OPEN_HOST_SERVICE,
                         "pl": cls.PUBLISHED_LANGUAGE}
        key = text.replace("_", "").replace("-", "").replace(" ", "").lower()
        if key in abbreviations:
            return abbreviations[key]
        for p in cls:
            if p.value.lower() == key:
                return p
        raise ValueError(f"Unknown context map pattern '{text}'")

    @property
    def source_is_upstream(self) -> bool:
        return self in _DIRECTED_PATTERNS

    @property
    def is_symmetric(self) -> bool:
        return self in (Pattern.PARTNERSHIP, Pattern.SHARED_KERNEL)


# Patterns where the source context is upstream of the target. Only these
# contribute edges to the dependency graph checked for cycles.
_DIRECTED_PATTERNS = frozenset({
    Pattern.CUSTOMER_SUPPLIER,
    Pattern.CONFORMIST,
    Pattern.ANTI_CORRUPTION_LAYER,
    Pattern.OPEN_HOST_SERVICE,
    Pattern.PUBLISHED_LANGUAGE,
})


@dataclass(frozen=True)
class ObjectMapping:
    """``source_object`` in the source context corresponds to ``target_object``."""
    source_object: str
    target_object: str
    description: str = ""
    source_span: Span | None = field(default=None, compare=False)
    target_span: Span | None = field(default=None, compare=False)

    def __repr__(self) -> str:
        return f"{self.source_object} -> {self.target_object}"


@dataclass
class ContextMap:
    """A sketch morphism ``source_context -> target_context``."""
    name: str
    source_context: str
    target_context: str
    pattern: Pattern
    mappings: list[ObjectMapping] = field(default_factory=list)
    description: str = ""
    span: Span | None = None
    source_span: Span | None = None
    target_span: Span | None = None

    def add_mapping(self, source_object: str, target_object: str, description: str = "") -> ObjectMapping:
        mapping = ObjectMapping(source_object, target_object, description)
        self.mappings.append(mapping)
        return mapping

    @property
    def upstream(self) -> str | None:
        """The upstream context, or None for patterns without a direction."""
        return self.source_context if self.pattern.source_is_upstream else None

    @property
    def downstream(self) -> str | None:
        return self.target_context if self.pattern.source_is_upstream else None

    def references(self, context_name: str) -> bool:
        return context_name in (self.source_context, self.target_context)

    def __repr__(self) -> str:
        return (
            f"ContextMap({self.name}: {self.source_context} -> "
            f"{self.target_context} [{self.pattern.value}])"
        )


@dataclass
class DomainModel:
    """All bounded contexts of a domain plus the context maps between them."""

    contexts: dict[str, BoundedContext] = field(default_factory=dict)
    context_maps: list[ContextMap] = field(default_factory=list)

    # -----------------------------------------------------------------------
    # Builder API
    # -----------------------------------------------------------------------

    def add_context(self, context: BoundedContext) -> BoundedContext:
        if context.name in self.contexts:
            raise ValueError(f"Bounded context '{context.name}' already exists in model")
        self.contexts[context.name] = context
        return context

    def new_context(self, name: str, description: str = "") -> BoundedContext:
        """Create, register and return an empty bounded context."""
        return self.add_context(BoundedContext(name=name, description=description))

    def add_context_map(
        self,
        name: str,
        source: str,
        target: str,
        pattern: Pattern | str,
        mappings: list[ObjectMapping] | None = None,
    ) -> ContextMap:
        """Relate two contexts.

        Dangling context names are accepted here and reported by the
        validator (E0060/E0061).
        """
        if any(cm.name == name for cm in self.context_maps):
            raise ValueError(f"Context map '{name}' already exists in model")
        if isinstance(pattern, str):
            pattern = Pattern.parse(pattern)
        cm = ContextMap(name=name, source_context=source, target_context=target,
                        pattern=pattern, mappings=list(mappings or []))
        self.context_maps.append(cm)
        return cm

    def remove_context(self, name: str) -> list[ContextMap]:
        """Delete a context and every context map referencing it.

        Returns the removed context maps.
        """
        if name not in self.contexts:
            raise ValueError(f"Bounded context '{name}' not in model")
        del self.contexts[name]
        removed = [cm for cm in self.context_maps if cm.references(name)]
        self.context_maps = [cm for cm in self.context_maps if not cm.references(name)]
        return removed

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def get_context(self, name: str) -> BoundedContext | None:
        return self.contexts.get(name)

    def maps_for(self, context_name: str) -> list[ContextMap]:
        return [cm for cm in self.context_maps if cm.references(context_name)]

    def detect_cycles(self) -> list[list[str]]:
        """Find cycles among upstream -> downstream edges.

        Only directed patterns contribute edges. Each cycle is returned as a
        path that starts and ends on the same context.
        """
        adj: dict[str, list[str]] = defaultdict(list)
        for cm in self.context_maps:
            if cm.pattern.source_is_upstream and cm.source_context != cm.target_context:
                adj[cm.source_context].append(cm.target_context)

        cycles: list[list[str]] = []
        WHITE, GRAY, BLACK = 0, 1, 2
        color: dict[str, int] = {name: WHITE for name in self.contexts}
        path: list[str] = []

        def dfs(node: str) -> None:
            color[node] = GRAY
            path.append(node)
            for neighbor in adj.get(node, []):
                if color.get(neighbor) == GRAY:
                    cycle_start = path.index(neighbor)
                    cycles.append(path[cycle_start:] + [neighbor])
                elif color.get(neighbor) == WHITE:
                    dfs(neighbor)
            path.pop()
            color[node] = BLACK

        for node in self.contexts:
            if color[node] == WHITE:
                dfs(node)

        return cycles

    def __repr__(self) -> str:
        return (
            f"DomainModel("
            f"{len(self.contexts)} contexts, "
            f"{len(self.context_maps)} context maps)"
        )
