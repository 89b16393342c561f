"""
Unit tests for the typecomb Type-Expression Builder.

Tests the static type -> runtime type-expression translation rules.
"""

import pytest

from typecomb.compiler.builder import PRIMITIVE_TO_RUNTIME, TypeExpressionBuilder
from typecomb.compiler.registry import DefinitionRegistry
from typecomb.compiler.runtime_expr import (
    Call,
    Combinator,
    Constant,
    DeferredRef,
    Field,
    NameRef,
    PredicateRef,
    PrimitiveRef,
    count_deferred,
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
    RecordField,
    RecordType,
    RefinementMarker,
    TupleType,
    TypeReference,
    UnionType,
)
from typecomb.utils.errors import (
    UnresolvedRecursionError,
    UnresolvedTypeError,
    UnsupportedConstructError,
)

INT = PrimitiveType("int")
STR = PrimitiveType("str")
NONE = PrimitiveType("none")


def maybe(expr):
    return Call(Combinator.MAYBE, (expr,))


class TestPrimitives:
    """Tests for primitive mapping."""

    @pytest.mark.parametrize("name,runtime", sorted(PRIMITIVE_TO_RUNTIME.items()))
    def test_primitive_table(self, builder_factory, name, runtime):
        """Test every canonical primitive maps to its runtime export."""
        assert builder_factory().build(PrimitiveType(name)) == PrimitiveRef(runtime)

    def test_unknown_primitive(self, builder_factory):
        """Test an unknown primitive name is unsupported."""
        with pytest.raises(UnsupportedConstructError):
            builder_factory().build(PrimitiveType("decimal"))

    def test_literal(self, builder_factory):
        """Test literal types."""
        expr = builder_factory().build(LiteralType("red"))
        assert expr == Call(Combinator.LITERAL, (Constant("red"),))


class TestNullable:
    """Tests for optional types and None collapse."""

    def test_optional(self, builder_factory):
        """Test Optional[T] is maybe(T)."""
        assert builder_factory().build(NullableType(STR)) == maybe(PrimitiveRef("Str"))

    def test_union_with_none_equals_optional(self, builder_factory):
        """Test T | None builds exactly what Optional[T] builds."""
        builder = builder_factory()
        assert builder.build(UnionType((STR, NONE))) == builder.build(NullableType(STR))
        assert builder.build(UnionType((NONE, STR))) == builder.build(NullableType(STR))

    def test_wider_union_with_none(self, builder_factory):
        """Test None collapses out of a wider union."""
        expr = builder_factory().build(UnionType((INT, STR, NONE)))
        inner = Call(Combinator.UNION, (PrimitiveRef("Int"), PrimitiveRef("Str")))
        assert expr == maybe(inner)

    def test_nested_unions_flatten(self, builder_factory):
        """Test (int | str) | None matches int | str | None."""
        builder = builder_factory()
        nested = UnionType((UnionType((INT, STR)), NONE))
        flat = UnionType((INT, STR, NONE))
        assert builder.build(nested) == builder.build(flat)

    def test_nested_optional_collapses(self, builder_factory):
        """Test Optional inside a union with None stays a single maybe."""
        builder = builder_factory()
        expected = maybe(PrimitiveRef("Int"))
        assert builder.build(UnionType((NullableType(INT), NONE))) == expected
        assert builder.build(NullableType(UnionType((INT, NONE)))) == expected
        assert builder.build(NullableType(NullableType(INT))) == expected

    def test_literal_none_counts_as_none(self, builder_factory):
        """Test Literal[None] is treated as None."""
        expr = builder_factory().build(UnionType((STR, LiteralType(None))))
        assert expr == maybe(PrimitiveRef("Str"))

    def test_only_none(self, builder_factory):
        """Test a union of None alone is Nil."""
        assert builder_factory().build(UnionType((NONE,))) == PrimitiveRef("Nil")

    def test_plain_union(self, builder_factory):
        """Test a union without None."""
        expr = builder_factory().build(UnionType((INT, STR)))
        assert expr == Call(Combinator.UNION, (PrimitiveRef("Int"), PrimitiveRef("Str")))


class TestCollections:
    """Tests for list, dict and tuple types."""

    def test_list(self, builder_factory):
        """Test list[T]."""
        expr = builder_factory().build(ArrayType(INT))
        assert expr == Call(Combinator.LIST, (PrimitiveRef("Int"),))

    def test_set_container(self, builder_factory):
        """Test non-list containers are passed as an option."""
        expr = builder_factory().build(ArrayType(INT, "set"))
        assert expr.option("container") == "set"

    def test_dict(self, builder_factory):
        """Test dict[K, V]."""
        expr = builder_factory().build(DictType(STR, INT))
        assert expr == Call(Combinator.DICT, (PrimitiveRef("Str"), PrimitiveRef("Int")))

    def test_fixed_tuple(self, builder_factory):
        """Test fixed length tuples."""
        expr = builder_factory().build(TupleType((INT, STR)))
        assert expr.combinator is Combinator.TUPLE
        assert expr.args == (PrimitiveRef("Int"), PrimitiveRef("Str"))
        assert expr.option("variadic") is None

    def test_variadic_tuple(self, builder_factory):
        """Test homogeneous tuples."""
        expr = builder_factory().build(TupleType((INT,), variadic=True))
        assert expr.option("variadic") is True


class TestRecords:
    """Tests for record types."""

    def test_interface_keeps_field_order(self, builder_factory):
        """Test records become named interfaces with ordered fields."""
        record = RecordType(
            (RecordField("name", STR), RecordField("surname", NullableType(STR))),
            name="Person",
        )
        expr = builder_factory().build(record)
        assert expr == Call(
            Combinator.INTERFACE,
            (
                Field("name", PrimitiveRef("Str")),
                Field("surname", maybe(PrimitiveRef("Str"))),
            ),
            name="Person",
        )

    def test_optional_field_is_maybe(self, builder_factory):
        """Test optional fields are wrapped in maybe."""
        record = RecordType((RecordField("age", INT, optional=True),))
        (field,) = builder_factory().build(record).args
        assert field.expr == maybe(PrimitiveRef("Int"))

    def test_optional_field_not_wrapped_twice(self, builder_factory):
        """Test an optional field that is already nullable stays a single maybe."""
        record = RecordType((RecordField("age", NullableType(INT), optional=True),))
        (field,) = builder_factory().build(record).args
        assert field.expr == maybe(PrimitiveRef("Int"))


class TestFunctions:
    """Tests for callable types."""

    def test_function_with_params(self, builder_factory):
        """Test parameters come before the return type."""
        expr = builder_factory().build(FunctionType((INT, STR), PrimitiveType("bool")))
        assert expr == Call(
            Combinator.FUNC,
            (PrimitiveRef("Int"), PrimitiveRef("Str"), PrimitiveRef("Bool")),
        )

    def test_function_any_params(self, builder_factory):
        """Test an unspecified parameter list."""
        expr = builder_factory().build(FunctionType(None, INT))
        assert expr.args == (PrimitiveRef("Int"),)
        assert expr.option("any_params") is True


class TestIntersections:
    """Tests for intersections and refinements."""

    def test_plain_intersection(self, builder_factory, registry_factory):
        """Test an intersection without markers."""
        builder = builder_factory(registry_factory("A", "B"))
        expr = builder.build(IntersectionType((TypeReference("A"), TypeReference("B"))))
        assert expr.combinator is Combinator.INTERSECTION
        assert len(expr.args) == 2

    def test_refinement(self, builder_factory):
        """Test a type intersected with a predicate marker."""
        builder = builder_factory()
        expr = builder.build(IntersectionType((INT, RefinementMarker("is_positive"))))
        assert expr == Call(
            Combinator.REFINEMENT, (PrimitiveRef("Int"), PredicateRef("is_positive"))
        )
        assert len(builder.refinements) == 1
        assert builder.refinements[0].predicate == "is_positive"

    def test_refinement_marker_first(self, builder_factory):
        """Test operand order does not matter."""
        expr = builder_factory().build(IntersectionType((RefinementMarker("is_positive"), INT)))
        assert expr.args[0] == PrimitiveRef("Int")

    def test_two_markers_unsupported(self, builder_factory):
        """Test two markers cannot be combined."""
        node = IntersectionType((RefinementMarker("a"), RefinementMarker("b")))
        with pytest.raises(UnsupportedConstructError):
            builder_factory().build(node)

    def test_three_operands_unsupported(self, builder_factory):
        """Test a refinement needs exactly two operands."""
        node = IntersectionType((INT, STR, RefinementMarker("a")))
        with pytest.raises(UnsupportedConstructError):
            builder_factory().build(node)

    def test_bare_marker_unsupported(self, builder_factory):
        """Test a marker used on its own is rejected."""
        with pytest.raises(UnsupportedConstructError):
            builder_factory().build(RefinementMarker("is_positive"))


class TestReferences:
    """Tests for named references and generics."""

    def test_generic_is_erased(self, builder_factory):
        """Test generic parameters become Any."""
        assert builder_factory().build(GenericParam("T")) == PrimitiveRef("Any")

    def test_type_arguments_are_erased(self):
        """Test Tree[int] checks as Tree."""
        registry = DefinitionRegistry()
        registry.declare("Tree")
        registry.complete("Tree", Call(Combinator.LIST, (PrimitiveRef("Any"),)))
        builder = TypeExpressionBuilder(registry)
        assert builder.build(TypeReference("Tree", (INT,))) == NameRef("Tree")

    def test_recursive_reference(self):
        """Test a self reference inside a recursive declaration is deferred once."""
        registry = DefinitionRegistry()
        registry.declare("Tree", recursive=True)
        builder = TypeExpressionBuilder(registry)
        expr = builder.build(DictType(STR, TypeReference("Tree")))
        assert expr.args[1] == DeferredRef("Tree")
        assert count_deferred(expr) == 1

    def test_unmarked_recursion(self):
        """Test a self reference without the marker fails."""
        registry = DefinitionRegistry()
        registry.declare("Tree")
        with pytest.raises(UnresolvedRecursionError):
            TypeExpressionBuilder(registry).build(ArrayType(TypeReference("Tree")))

    def test_unresolved(self, builder_factory):
        """Test unknown names fail."""
        with pytest.raises(UnresolvedTypeError):
            builder_factory().build(TypeReference("Persn"))

    def test_build_is_deterministic(self, builder_factory):
        """Test building the same type twice gives equal expressions."""
        builder = builder_factory()
        node = UnionType((ArrayType(INT), DictType(STR, NullableType(INT)), NONE))
        assert builder.build(node) == builder.build(node)


class TestReify:
    """Tests for reification."""

    def test_reify_inline_type(self, builder_factory):
        """Test the kind and components of an inline type."""
        reified = builder_factory().reify(ArrayType(INT))
        assert reified.kind == "list"
        assert reified.components == (PrimitiveRef("Int"),)

    def test_reify_primitive(self, builder_factory):
        """Test reifying a primitive."""
        reified = builder_factory().reify(STR)
        assert reified.kind == "primitive"
        assert reified.components == ()

    def test_reify_declared_name(self):
        """Test a reference is reified as its definition."""
        registry = DefinitionRegistry()
        registry.declare("Person")
        person = Call(Combinator.INTERFACE, (Field("name", PrimitiveRef("Str")),), name="Person")
        registry.complete("Person", person)
        reified = TypeExpressionBuilder(registry).reify(TypeReference("Person"))
        assert reified.expr == NameRef("Person")
        assert reified.kind == "interface"
        assert reified.components == person.args
