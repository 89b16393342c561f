"""
Runtime type-expression nodes.

A runtime type-expression is the compiler's model of a call tree into the
runtime combinator library. The emitter renders it into Python syntax;
everything before that works on these immutable values, so two builds of
the same static type compare equal.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional


class Combinator(Enum):
    """The fixed set of runtime combinators the compiler may call."""

    PRIMITIVE = "primitive"
    IRREDUCIBLE = "irreducible"
    MAYBE = "maybe"
    LIST = "list"
    DICT = "dict"
    INTERFACE = "interface"
    UNION = "union"
    INTERSECTION = "intersection"
    REFINEMENT = "refinement"
    TUPLE = "tuple"
    FUNC = "func"
    LITERAL = "literal"


class RuntimeExpr(ABC):
    """Base class for runtime type-expression nodes."""

    @abstractmethod
    def accept(self, visitor: "RuntimeExprVisitor") -> Any:
        pass

    @property
    def kind(self) -> str:
        return type(self).__name__.lower()

    @property
    def components(self) -> tuple["RuntimeExpr", ...]:
        return ()


class RuntimeExprVisitor(ABC):
    """Visitor base class for runtime type-expressions."""

    def visit(self, node: RuntimeExpr) -> Any:
        return node.accept(self)


@dataclass(frozen=True, slots=True)
class PrimitiveRef(RuntimeExpr):
    """A primitive exported by the runtime library, e.g. ``t.Int``."""

    name: str

    def accept(self, visitor: RuntimeExprVisitor) -> Any:
        return visitor.visit_primitive_ref(self)

    @property
    def kind(self) -> str:
        return Combinator.PRIMITIVE.value


@dataclass(frozen=True, slots=True)
class NameRef(RuntimeExpr):
    """A module-level binding, possibly dotted (``models.Person``)."""

    name: str

    def accept(self, visitor: RuntimeExprVisitor) -> Any:
        return visitor.visit_name_ref(self)


@dataclass(frozen=True, slots=True)
class DeferredRef(RuntimeExpr):
    """
    A lazy reference to a binding that is still being defined.

    Rendered as a zero-argument thunk, so recursive types never expand
    more than once.
    """

    name: str

    def accept(self, visitor: RuntimeExprVisitor) -> Any:
        return visitor.visit_deferred_ref(self)


@dataclass(frozen=True, slots=True)
class LazyExpr(RuntimeExpr):
    """
    An expression evaluated on first use instead of where it is written.

    Used for runtime names bound further down the module than the
    definition that mentions them.
    """

    expr: RuntimeExpr

    def accept(self, visitor: RuntimeExprVisitor) -> Any:
        return visitor.visit_lazy_expr(self)

    @property
    def kind(self) -> str:
        return self.expr.kind

    @property
    def components(self) -> tuple[RuntimeExpr, ...]:
        return self.expr.components


@dataclass(frozen=True, slots=True)
class PredicateRef(RuntimeExpr):
    """A reference to a refinement predicate function."""

    name: str

    def accept(self, visitor: RuntimeExprVisitor) -> Any:
        return visitor.visit_predicate_ref(self)


@dataclass(frozen=True, slots=True)
class Constant(RuntimeExpr):
    """A literal value passed to the runtime library."""

    value: Any

    def accept(self, visitor: RuntimeExprVisitor) -> Any:
        return visitor.visit_constant(self)


@dataclass(frozen=True, slots=True)
class Field(RuntimeExpr):
    """One named property of an interface."""

    name: str
    expr: RuntimeExpr

    def accept(self, visitor: RuntimeExprVisitor) -> Any:
        return visitor.visit_field(self)

    @property
    def components(self) -> tuple[RuntimeExpr, ...]:
        return (self.expr,)


@dataclass(frozen=True, slots=True)
class Call(RuntimeExpr):
    """
    A call to a runtime combinator.

    Attributes:
        combinator: Which combinator is called
        args: Positional arguments (component expressions)
        name: Display name given to the resulting type, if any
        options: Extra keyword arguments as (key, value) pairs
    """

    combinator: Combinator
    args: tuple[RuntimeExpr, ...]
    name: Optional[str] = None
    options: tuple[tuple[str, Any], ...] = ()

    def accept(self, visitor: RuntimeExprVisitor) -> Any:
        return visitor.visit_call(self)

    @property
    def kind(self) -> str:
        return self.combinator.value

    @property
    def components(self) -> tuple[RuntimeExpr, ...]:
        return self.args

    def named(self, name: str) -> "Call":
        return replace(self, name=name)

    def option(self, key: str, default: Any = None) -> Any:
        for option_key, value in self.options:
            if option_key == key:
                return value
        return default


@dataclass(frozen=True, slots=True)
class ReifiedExpr(RuntimeExpr):
    """
    A runtime expression requested for introspection rather than checking.

    kind and components describe the structure of ``expr`` so it can be
    inspected at compile time as well as at runtime.
    """

    expr: RuntimeExpr
    kind_name: str
    parts: tuple[RuntimeExpr, ...]

    def accept(self, visitor: RuntimeExprVisitor) -> Any:
        return visitor.visit_reified_expr(self)

    @property
    def kind(self) -> str:
        return self.kind_name

    @property
    def components(self) -> tuple[RuntimeExpr, ...]:
        return self.parts


def count_deferred(expr: RuntimeExpr) -> int:
    """Count deferred references anywhere inside an expression."""
    if isinstance(expr, (DeferredRef, LazyExpr)):
        return 1
    if isinstance(expr, ReifiedExpr):
        return count_deferred(expr.expr)
    return sum(count_deferred(part) for part in expr.components)
