"""Name/Reference Index — resolves object names within one bounded context.

Built once from a context by scanning its objects; never updated in place.
Besides resolution it answers the questions diagnostics need: how many
times a name was declared, and which declared name is closest to a typo.
"""

from __future__ import annotations

from dataclasses import dataclass

from .context import BoundedContext
from .types import ObjectDef, ObjectKind, edit_threshold


@dataclass(frozen=True)
class ObjectRef:
    """A resolved reference: the name, its kind, and its slot in the context arena."""
    name: str
    kind: ObjectKind
    index: int


def levenshtein(a: str, b: str) -> int:
    """Edit distance between ``a`` and ``b`` (insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def nearest_name(name: str, candidates: list[str], max_edit_distance: int = 3) -> str | None:
    """Closest candidate to ``name`` within the allowed edit distance.

    Comparison is case-insensitive. Ties go to the earliest candidate.
    """
    limit = edit_threshold(name, max_edit_distance)
    needle = name.lower()
    best: str | None = None
    best_distance = limit + 1
    for candidate in candidates:
        if candidate == name:
            continue
        d = levenshtein(needle, candidate.lower())
        if d < best_distance:
            best, best_distance = candidate, d
    return best


class NameIndex:
    """Maps object names to their first declaration in a context."""

    def __init__(self, objects: list[ObjectDef]):
        self._refs: dict[str, ObjectRef] = {}
        self._counts: dict[str, int] = {}
        self._order: list[str] = []
        for position, obj in enumerate(objects):
            if obj.name not in self._refs:
                self._refs[obj.name] = ObjectRef(obj.name, obj.kind, position)
                self._order.append(obj.name)
            self._counts[obj.name] = self._counts.get(obj.name, 0) + 1

    @classmethod
    def from_context(cls, context: BoundedContext) -> NameIndex:
        return cls(context.objects)

    def resolve(self, name: str) -> ObjectRef | None:
        return self._refs.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._refs

    def kind_of(self, name: str) -> ObjectKind | None:
        ref = self._refs.get(name)
        return ref.kind if ref else None

    def all_names(self) -> list[str]:
        """Distinct names in declaration order."""
        return list(self._order)

    def duplicates_of(self, name: str) -> int:
        """Number of declarations of ``name`` (0 if undeclared)."""
        return self._counts.get(name, 0)

    def duplicated_names(self) -> list[str]:
        return [n for n in self._order if self._counts[n] > 1]

    def nearest(self, name: str, max_edit_distance: int = 3) -> str | None:
        return nearest_name(name, self._order, max_edit_distance)

    def __len__(self) -> int:
        return len(self._order)

    def __repr__(self) -> str:
        return f"NameIndex({len(self._order)} names)"
