"""
typecomb Type-Expression Builder.

Translates static type nodes into runtime type-expressions:
- Primitive types through a fixed table of runtime primitives
- Optional, list, dict, tuple and callable types through their combinators
- Records into interfaces, keeping field order
- Unions, collapsing the None member into a maybe
- Two-operand intersections with a refinement marker into refinements
- Named references through the definition registry (generics erased)

The builder reads and never writes the registry; declaring and completing
names is the planner's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from typecomb.compiler.registry import DefinitionRegistry
from typecomb.compiler.runtime_expr import (
    Call,
    Combinator,
    Constant,
    Field,
    NameRef,
    PredicateRef,
    PrimitiveRef,
    ReifiedExpr,
    RuntimeExpr,
)
from typecomb.compiler.type_nodes import (
    ArrayType,
    DictType,
    FunctionType,
    GenericParam,
    IntersectionType,
    LiteralType,
    NullableType,
    PrimitiveType,
    RecordType,
    RefinementMarker,
    TupleType,
    TypeNode,
    TypeReference,
    TypeVisitor,
    UnionType,
    describe,
)
from typecomb.utils.errors import SourceLocation, UnsupportedConstructError


# Canonical primitive name to runtime library export
PRIMITIVE_TO_RUNTIME: dict[str, str] = {
    "int": "Int",
    "float": "Number",
    "complex": "Complex",
    "str": "Str",
    "bytes": "Bytes",
    "bool": "Bool",
    "none": "Nil",
    "any": "Any",
    "object": "Any",
    "function": "Function",
    "dict": "Dict",
}

ANY = PrimitiveRef("Any")


@dataclass(frozen=True, slots=True)
class RefinementRequest:
    """A refinement met while building: base type narrowed by a predicate."""

    base: RuntimeExpr
    predicate: str
    location: Optional[SourceLocation] = None


class TypeExpressionBuilder(TypeVisitor):
    """
    Builds runtime type-expressions from static type nodes.

    Example:
        builder = TypeExpressionBuilder(registry)
        expr = builder.build(NullableType(PrimitiveType("str")))
        # Call(MAYBE, (PrimitiveRef("Str"),))
    """

    def __init__(self, registry: DefinitionRegistry) -> None:
        self.registry = registry
        self.refinements: list[RefinementRequest] = []

    def build(self, node: TypeNode) -> RuntimeExpr:
        """Build the runtime expression for a static type."""
        return self.visit(node)

    def reify(self, node: TypeNode) -> ReifiedExpr:
        """
        Build a type for introspection.

        References to local definitions are resolved so the reported kind
        and components are those of the definition, not of the reference.
        """
        expr = self.build(node)
        shape = expr
        if isinstance(expr, NameRef) and expr.name in self.registry:
            shape = self.registry.resolve(expr)
        return ReifiedExpr(expr=expr, kind_name=shape.kind, parts=shape.components)

    # -------------------------------------------------------------------------
    # Leaf types
    # -------------------------------------------------------------------------

    def visit_primitive_type(self, node: PrimitiveType) -> RuntimeExpr:
        runtime_name = PRIMITIVE_TO_RUNTIME.get(node.name)
        if runtime_name is None:
            raise UnsupportedConstructError(f"primitive type '{node.name}'", node.location)
        return PrimitiveRef(runtime_name)

    def visit_literal_type(self, node: LiteralType) -> RuntimeExpr:
        return Call(Combinator.LITERAL, (Constant(node.value),))

    def visit_generic_param(self, node: GenericParam) -> RuntimeExpr:
        # Generic parameters are erased
        return ANY

    def visit_type_reference(self, node: TypeReference) -> RuntimeExpr:
        # Type arguments are erased: Tree[int] checks as Tree
        return self.registry.lookup(node.name, node.location)

    def visit_refinement_marker(self, node: RefinementMarker) -> RuntimeExpr:
        raise UnsupportedConstructError(
            f"{describe(node)} outside a two-operand intersection", node.location
        )

    # -------------------------------------------------------------------------
    # Composite types
    # -------------------------------------------------------------------------

    def visit_nullable_type(self, node: NullableType) -> RuntimeExpr:
        # Optional[T] is T | None, so nested Nones collapse the same way
        members = (node.inner, PrimitiveType("none", node.location))
        return self.visit_union_type(UnionType(members, node.location))

    def visit_array_type(self, node: ArrayType) -> RuntimeExpr:
        options = () if node.container == "list" else (("container", node.container),)
        return Call(Combinator.LIST, (self.build(node.element),), options=options)

    def visit_dict_type(self, node: DictType) -> RuntimeExpr:
        return Call(Combinator.DICT, (self.build(node.key), self.build(node.value)))

    def visit_record_type(self, node: RecordType) -> RuntimeExpr:
        fields = []
        for record_field in node.fields:
            expr = self.build(record_field.type)
            if record_field.optional and not _is_maybe(expr):
                expr = Call(Combinator.MAYBE, (expr,))
            fields.append(Field(record_field.name, expr))
        return Call(Combinator.INTERFACE, tuple(fields), name=node.name)

    def visit_union_type(self, node: UnionType) -> RuntimeExpr:
        members = _flatten_union(node)
        present = [m for m in members if not _is_none(m)]

        if len(present) == len(members):
            if len(members) == 1:
                return self.build(members[0])
            return Call(Combinator.UNION, tuple(self.build(m) for m in members))

        # T | None canonicalizes to Optional[T]
        if not present:
            return PrimitiveRef("Nil")
        if len(present) == 1:
            inner = self.build(present[0])
        else:
            inner = Call(Combinator.UNION, tuple(self.build(m) for m in present))
        return Call(Combinator.MAYBE, (inner,))

    def visit_intersection_type(self, node: IntersectionType) -> RuntimeExpr:
        markers = [m for m in node.members if isinstance(m, RefinementMarker)]
        if not markers:
            return Call(Combinator.INTERSECTION, tuple(self.build(m) for m in node.members))

        if len(node.members) != 2 or len(markers) != 1:
            raise UnsupportedConstructError(
                f"refinement in '{describe(node)}' (expected exactly one type and one predicate)",
                node.location,
            )

        marker = markers[0]
        other = node.members[1] if node.members[0] is marker else node.members[0]
        base = self.build(other)
        self.refinements.append(
            RefinementRequest(base=base, predicate=marker.predicate, location=marker.location)
        )
        return Call(Combinator.REFINEMENT, (base, PredicateRef(marker.predicate)))

    def visit_function_type(self, node: FunctionType) -> RuntimeExpr:
        ret = self.build(node.return_type)
        if node.params is None:
            return Call(Combinator.FUNC, (ret,), options=(("any_params", True),))
        params = tuple(self.build(p) for p in node.params)
        return Call(Combinator.FUNC, params + (ret,))

    def visit_tuple_type(self, node: TupleType) -> RuntimeExpr:
        options = (("variadic", True),) if node.variadic else ()
        return Call(
            Combinator.TUPLE,
            tuple(self.build(e) for e in node.elements),
            options=options,
        )


def _flatten_union(node: UnionType) -> list[TypeNode]:
    members: list[TypeNode] = []
    for member in node.members:
        if isinstance(member, UnionType):
            members.extend(_flatten_union(member))
        elif isinstance(member, NullableType):
            members.extend(_flatten_union(UnionType((member.inner,))))
            members.append(PrimitiveType("none", member.location))
        else:
            members.append(member)
    return members


def _is_none(node: TypeNode) -> bool:
    if isinstance(node, PrimitiveType):
        return node.name == "none"
    return isinstance(node, LiteralType) and node.value is None


def _is_maybe(expr: RuntimeExpr) -> bool:
    return isinstance(expr, Call) and expr.combinator is Combinator.MAYBE
