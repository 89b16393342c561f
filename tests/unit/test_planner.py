"""
Unit tests for the typecomb Insertion-Point Planner.
"""

import pytest

from typecomb.compiler.declarations import (
    FunctionDeclaration,
    ModuleUnit,
    Parameter,
    ParameterKind,
    TypeDeclaration,
)
from typecomb.compiler.planner import AssertionMode, InsertionPlanner
from typecomb.compiler.registry import DefinitionRegistry
from typecomb.compiler.runtime_expr import (
    Call,
    Combinator,
    DeferredRef,
    LazyExpr,
    NameRef,
    PrimitiveRef,
)
from typecomb.compiler.type_nodes import PrimitiveType
from typecomb.utils.errors import (
    DuplicateDeclarationError,
    UnresolvedRecursionError,
    UnresolvedTypeError,
    UnsupportedConstructError,
)


class TestFunctionAssertions:
    """Tests for parameter assertions."""

    def test_one_assertion_per_typed_parameter(self, plan):
        """Test typed parameters are asserted in declared order."""
        result = plan("""
            def f(a: int, b, c: str):
                pass
        """)
        assert [e.label for e in result.assertions] == ["a", "c"]
        assert [e.expr for e in result.assertions] == [PrimitiveRef("Int"), PrimitiveRef("Str")]
        assert all(e.mode is AssertionMode.ASSERT for e in result.assertions)

    def test_untyped_function_has_no_entries(self, plan):
        """Test functions without annotations produce nothing."""
        result = plan("""
            def f(a, b):
                return a + b
        """)
        assert len(result) == 0

    def test_for_function(self, lower):
        """Test assertions are grouped by their function."""
        unit = lower("""
            def f(a: int):
                pass

            def g(b: str):
                pass
        """)
        result = InsertionPlanner(DefinitionRegistry.for_unit(unit)).plan(unit)
        f, g = unit.declarations
        assert [e.label for e in result.for_function(f)] == ["a"]
        assert [e.label for e in result.for_function(g)] == ["b"]

    def test_star_args(self, plan):
        """Test *args and **kwargs check the collected values."""
        result = plan("""
            def f(*args: int, **kwargs: str):
                pass
        """)
        args, kwargs = result.assertions
        assert args.expr.combinator is Combinator.TUPLE
        assert args.expr.option("variadic") is True
        assert kwargs.expr == Call(Combinator.DICT, (PrimitiveRef("Str"), PrimitiveRef("Str")))

    def test_class_parameter(self, plan):
        """Test a class annotation becomes an irreducible check."""
        result = plan("""
            class Widget:
                pass

            def f(w: Widget):
                pass
        """)
        (entry,) = result.assertions
        assert entry.expr == Call(Combinator.IRREDUCIBLE, (NameRef("Widget"),))


class TestDefinitions:
    """Tests for type definitions."""

    def test_alias_defined_and_named(self, plan):
        """Test a type alias becomes a named definition."""
        result = plan("""
            from typing import TypeAlias

            Names: TypeAlias = list[str]
        """)
        (entry,) = result.definitions
        assert entry.mode is AssertionMode.DEFINE
        assert entry.label == "Names"
        assert entry.expr.name == "Names"

    def test_reference_uses_definition(self, plan):
        """Test later references point at the binding instead of rebuilding it."""
        result = plan("""
            from typing import Optional, TypedDict

            class Person(TypedDict):
                name: str
                surname: Optional[str]

            def greet(person: Person):
                pass
        """)
        (entry,) = result.assertions
        assert entry.expr == NameRef("Person")

    def test_forward_reference_to_later_alias(self, plan):
        """Test an alias must be declared before it is referenced."""
        with pytest.raises(UnresolvedTypeError):
            plan("""
                from typing import TypeAlias

                A: TypeAlias = list["B"]
                B: TypeAlias = int
            """)

    def test_class_declared_after_definition(self, plan):
        """Test definitions above a class refer to it lazily."""
        result = plan("""
            from typing import TypeAlias

            Before: TypeAlias = list["Widget"]

            class Widget:
                pass

            After: TypeAlias = list[Widget]

            def f(w: Widget):
                pass
        """)
        widget = Call(Combinator.IRREDUCIBLE, (NameRef("Widget"),))
        before, after = result.definitions
        assert before.expr.args[0] == LazyExpr(widget)
        assert after.expr.args[0] == widget
        assert result.assertions[0].expr == widget

    def test_recursive_alias(self, plan):
        """Test a recursive alias defers its self reference."""
        result = plan("""
            from typing import TypeAlias

            # recursive
            Tree: TypeAlias = dict[str, "Tree"]
        """)
        (entry,) = result.definitions
        assert entry.expr.args[1] == DeferredRef("Tree")

    def test_unmarked_recursive_alias(self, plan):
        """Test recursion needs the marker."""
        with pytest.raises(UnresolvedRecursionError) as exc_info:
            plan("""
                from typing import TypeAlias

                Tree: TypeAlias = dict[str, "Tree"]
            """)
        assert exc_info.value.location.line == 4

    def test_duplicate_alias(self, plan):
        """Test declaring a type twice fails."""
        with pytest.raises(DuplicateDeclarationError):
            plan("""
                from typing import TypeAlias

                A: TypeAlias = int
                A: TypeAlias = str
            """)

    def test_nested_declaration_unsupported(self, plan):
        """Test type declarations inside functions are rejected."""
        with pytest.raises(UnsupportedConstructError):
            plan("""
                from typing import TypeAlias

                def f():
                    Inner: TypeAlias = int
            """)

    def test_hand_built_unit(self):
        """Test the planner works on a unit built without the front end."""
        alias = TypeDeclaration("Count", PrimitiveType("int"))
        function = FunctionDeclaration(
            "f",
            (Parameter("n", PrimitiveType("int")), Parameter("rest", None, ParameterKind.VAR_POSITIONAL)),
        )
        unit = ModuleUnit(declarations=[alias, function])
        result = InsertionPlanner(DefinitionRegistry.for_unit(unit)).plan(unit)
        # Primitive aliases are bound as is, there is no call to name
        assert result.definitions[0].expr == PrimitiveRef("Int")
        assert [e.label for e in result.assertions] == ["n"]


class TestCastsAndReify:
    """Tests for casts, reify requests and refinements."""

    def test_cast(self, plan):
        """Test a cast is an inline assertion labelled with its value."""
        result = plan("""
            from typing import cast

            value = cast(int, load())
        """)
        (entry,) = result.assertions
        assert entry.label == "load()"
        assert entry.owner is None

    def test_reify(self, plan):
        """Test reify requests."""
        result = plan("""
            from typing import TypedDict
            from typecomb.markers import reify

            class Person(TypedDict):
                name: str

            PersonModel = reify(Person)
        """)
        (entry,) = result.reifications
        assert entry.label == "PersonModel"
        assert entry.request.target == "PersonModel"
        assert entry.expr.kind == "interface"

    def test_refinements_collected(self, plan):
        """Test refinements met while building are reported."""
        result = plan("""
            from typing import Annotated
            from typecomb.markers import Refinement

            def is_positive(n):
                return n > 0

            def f(n: Annotated[int, Refinement[is_positive]]):
                pass
        """)
        assert [r.predicate for r in result.refinements] == ["is_positive"]
        (entry,) = result.assertions
        assert entry.expr.combinator is Combinator.REFINEMENT
