"""IR builder — lowers a validated bounded context into a CodeUnit.

Lowering rules, one per object kind:

  Entity       -> Struct[ENTITY], identity field first, then declared fields,
                  then one reference field per outgoing morphism
  ValueObject  -> Struct[VALUE_OBJECT], no identity field
  Enum         -> EnumType when no variant carries a payload,
                  TaggedUnion otherwise
  Aggregate    -> Module holding the aggregate Struct (root field, one
                  collection per member, add/remove per member, one check
                  per invariant equation) and a <Name>Repository Trait

Context equations anchored on an entity or value object become check
functions on that object's Struct.

Items come out in declaration order; building twice from an unchanged
context yields equal CodeUnits.
"""

from __future__ import annotations

import logging

from ..context import BoundedContext
from ..types import (
    Aggregate,
    BinaryOp,
    Call,
    Cardinality,
    Entity,
    Enumeration,
    Expr,
    Literal,
    Path,
    PathEquation,
    ValueObject,
    canonical_primitive,
)
from .ir import (
    Aggregation,
    Arith,
    CodeItem,
    CodeUnit,
    Const,
    FieldDecl,
    Function,
    FunctionOp,
    InvariantCheck,
    IRExpr,
    Module,
    Param,
    PathRef,
    PathStep,
    Struct,
    StructTag,
    TaggedUnion,
    Trait,
    TypeRef,
    EnumType,
    UnionCase,
)
from .naming import pluralize, snake_case

logger = logging.getLogger(__name__)

IDENTITY_TYPE = "UUID"

# Neutral import names; each backend decides what, if anything, they become.
_IMPORTS = {
    "UUID": "uuid",
    "Date": "datetime",
    "DateTime": "datetime",
    "Decimal": "decimal",
}


class IRBuilder:
    """Lowers one BoundedContext. Use ``build()`` for the one-shot form."""

    def __init__(self, context: BoundedContext):
        self.context = context
        self._primitives: set[str] = set()

    # -----------------------------------------------------------------------
    # Types
    # -----------------------------------------------------------------------

    def type_ref(self, type_name: str, optional: bool = False, many: bool = False) -> TypeRef:
        primitive = canonical_primitive(type_name)
        if primitive is not None:
            self._primitives.add(primitive)
            return TypeRef(primitive, primitive=True, optional=optional, many=many)
        return TypeRef(type_name, optional=optional, many=many)

    def morphism_type(self, target: str, cardinality: Cardinality) -> TypeRef:
        return self.type_ref(
            target,
            optional=cardinality is Cardinality.OPTIONAL,
            many=cardinality is Cardinality.MANY,
        )

    # -----------------------------------------------------------------------
    # Objects
    # -----------------------------------------------------------------------

    def build(self) -> CodeUnit:
        items: list[CodeItem] = []
        for obj in self.context.objects:
            if isinstance(obj, Entity):
                items.append(self.entity(obj))
            elif isinstance(obj, ValueObject):
                items.append(self.value_object(obj))
            elif isinstance(obj, Enumeration):
                items.append(self.enumeration(obj))
            elif isinstance(obj, Aggregate):
                items.append(self.aggregate(obj))
            else:
                raise TypeError(f"Unknown object kind: {obj!r}")
        imports = tuple(sorted({_IMPORTS[p] for p in self._primitives if p in _IMPORTS}))
        unit = CodeUnit(name=self.context.name, imports=imports, items=tuple(items))
        logger.debug("Built IR for %s: %d items", self.context.name, len(items))
        return unit

    def _fields(self, obj: Entity | ValueObject) -> list[FieldDecl]:
        fields = [FieldDecl(f.name, self.type_ref(f.type_name, optional=f.optional))
                  for f in obj.fields]
        taken = {f.name for f in obj.fields}
        for m in self.context.outgoing(obj.name):
            if m.name not in taken:
                fields.append(FieldDecl(m.name, self.morphism_type(m.target, m.cardinality),
                                        doc=m.description))
        return fields

    def _equation_checks(self, anchor: str) -> tuple[Function, ...]:
        return tuple(self.check(eq, anchor, through_root=False)
                     for eq in self.context.equations_for(anchor))

    def entity(self, entity: Entity) -> Struct:
        identity = FieldDecl(entity.id_field, self.type_ref(IDENTITY_TYPE), identity=True)
        fields = [f for f in self._fields(entity) if f.name != entity.id_field]
        return Struct(
            name=entity.name,
            tag=StructTag.ENTITY,
            fields=(identity, *fields),
            functions=self._equation_checks(entity.name),
            id_field=entity.id_field,
            doc=entity.description,
        )

    def value_object(self, vo: ValueObject) -> Struct:
        return Struct(
            name=vo.name,
            tag=StructTag.VALUE_OBJECT,
            fields=tuple(self._fields(vo)),
            functions=self._equation_checks(vo.name),
            doc=vo.description,
        )

    def enumeration(self, enum: Enumeration) -> EnumType | TaggedUnion:
        if not enum.has_payloads:
            return EnumType(name=enum.name, variants=tuple(v.name for v in enum.variants),
                            doc=enum.description)
        cases = tuple(
            UnionCase(v.name, self.type_ref(v.payload) if v.payload else None)
            for v in enum.variants
        )
        return TaggedUnion(name=enum.name, cases=cases, doc=enum.description)

    def aggregate(self, agg: Aggregate) -> Module:
        fields = [FieldDecl("root", self.type_ref(agg.root))]
        functions: list[Function] = []
        for member in agg.members:
            collection = pluralize(snake_case(member))
            fields.append(FieldDecl(collection, self.type_ref(member, many=True)))
        for member in agg.members:
            collection = pluralize(snake_case(member))
            item = Param("item", self.type_ref(member))
            functions.append(Function(
                name=f"add_{snake_case(member)}", op=FunctionOp.ADD_MEMBER,
                params=(item,), member=collection,
            ))
            functions.append(Function(
                name=f"remove_{snake_case(member)}", op=FunctionOp.REMOVE_MEMBER,
                params=(item,), member=collection,
            ))
        for eq in agg.equations:
            functions.append(self.check(eq, eq.source or agg.root, through_root=eq.source is None))

        struct = Struct(
            name=agg.name,
            tag=StructTag.AGGREGATE,
            fields=tuple(fields),
            functions=tuple(functions),
            id_field=None,
            rules=agg.rules,
            doc=agg.description,
        )
        repository = Trait(
            name=f"{agg.name}Repository",
            functions=(
                Function(
                    name="find_by_id", op=FunctionOp.FIND_BY_ID,
                    params=(Param("id", self.type_ref(IDENTITY_TYPE)),),
                    returns=TypeRef(agg.name, optional=True),
                ),
                Function(
                    name="save", op=FunctionOp.SAVE,
                    params=(Param("aggregate", TypeRef(agg.name)),),
                ),
            ),
            doc=f"Persistence for {agg.name}, addressed through its root {agg.root}.",
        )
        return Module(name=agg.name, items=(struct, repository), doc=agg.description)

    # -----------------------------------------------------------------------
    # Invariants
    # -----------------------------------------------------------------------

    def check(self, eq: PathEquation, anchor: str, through_root: bool) -> Function:
        prefix: tuple[PathStep, ...] = ()
        if through_root:
            prefix = (PathStep("root", self.type_ref(anchor)),)
        invariant = InvariantCheck(
            name=eq.name,
            lhs=self.expr(eq.lhs, anchor, prefix),
            operator=eq.operator,
            rhs=self.expr(eq.rhs, anchor, prefix),
            text=eq.text,
        )
        return Function(
            name=f"check_{snake_case(eq.name)}",
            op=FunctionOp.CHECK_INVARIANT,
            returns=None,
            invariant=invariant,
            doc=eq.text,
        )

    def expr(self, expr: Expr, anchor: str, prefix: tuple[PathStep, ...]) -> IRExpr:
        if isinstance(expr, Literal):
            return Const(expr.value)
        if isinstance(expr, Path):
            return PathRef(prefix + self.steps(anchor, expr))
        if isinstance(expr, Call):
            arg = self.expr(expr.args[0], anchor, prefix) if expr.args else Const(0)
            return Aggregation(expr.function.lower(), arg)
        if isinstance(expr, BinaryOp):
            return Arith(expr.operator, self.expr(expr.left, anchor, prefix),
                         self.expr(expr.right, anchor, prefix))
        raise TypeError(f"Unknown expression: {expr!r}")

    def steps(self, anchor: str, path: Path) -> tuple[PathStep, ...]:
        """Resolve each segment to the type it lands on.

        A collection step makes every later step collection-valued too.
        """
        result: list[PathStep] = []
        current: str | None = anchor
        many = False
        for segment in path.segments:
            ref = self._step_type(current, segment) if current else None
            if ref is None:
                ref = TypeRef("Unknown")
            ref = TypeRef(ref.name, ref.primitive, ref.optional, ref.many or many)
            many = ref.many
            result.append(PathStep(segment, ref))
            current = None if ref.primitive else ref.name
        return tuple(result)

    def _step_type(self, current: str, segment: str) -> TypeRef | None:
        obj = self.context.get(current)
        if isinstance(obj, Entity) and segment == obj.id_field:
            return self.type_ref(IDENTITY_TYPE)
        if isinstance(obj, (Entity, ValueObject)):
            for f in obj.fields:
                if f.name == segment:
                    return self.type_ref(f.type_name, optional=f.optional)
        for m in self.context.outgoing(current):
            if m.name == segment:
                return self.morphism_type(m.target, m.cardinality)
        return None


def build(context: BoundedContext) -> CodeUnit:
    """Lower ``context`` into a CodeUnit."""
    return IRBuilder(context).build()
