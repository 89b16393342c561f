"""
Static type node definitions for typecomb.

This module defines the type grammar the compiler consumes: the shapes a
host front end produces from source annotations. Each node is immutable
and carries source location information for error reporting.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from typecomb.utils.errors import SourceLocation


class TypeNode(ABC):
    """Base class for all static type nodes."""

    location: Optional[SourceLocation]

    @abstractmethod
    def accept(self, visitor: "TypeVisitor") -> Any:
        """Accept a visitor for tree traversal."""
        pass


class TypeVisitor(ABC):
    """
    Visitor pattern base class for static type traversal.

    Implement this to create type processors (expression builders,
    printers, etc.).
    """

    def visit(self, node: TypeNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)


# -----------------------------------------------------------------------------
# Leaf Types
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PrimitiveType(TypeNode):
    """
    A built-in primitive type.

    The name is canonical, independent of the spelling in source:
        int, float, complex, str, bytes, bool, none, any, object,
        function, dict
    """

    name: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_primitive_type(self)


@dataclass(frozen=True, slots=True)
class LiteralType(TypeNode):
    """
    A single literal value type.

    Example:
        Literal["red"]
    """

    value: Any
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_literal_type(self)


@dataclass(frozen=True, slots=True)
class GenericParam(TypeNode):
    """A generic type parameter (erased at runtime)."""

    name: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_generic_param(self)


@dataclass(frozen=True, slots=True)
class TypeReference(TypeNode):
    """
    A reference to a named type, possibly with type arguments.

    Examples:
        Person, models.Person, Tree[int]
    """

    name: str
    type_args: tuple[TypeNode, ...] = ()
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_type_reference(self)


@dataclass(frozen=True, slots=True)
class RefinementMarker(TypeNode):
    """
    Marker naming a predicate function that refines another type.

    Only meaningful as one operand of a two-operand intersection.

    Example:
        Refinement[is_positive]
    """

    predicate: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_refinement_marker(self)


# -----------------------------------------------------------------------------
# Composite Types
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NullableType(TypeNode):
    """
    A type that also admits None.

    Example:
        Optional[str]
    """

    inner: TypeNode
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_nullable_type(self)


@dataclass(frozen=True, slots=True)
class ArrayType(TypeNode):
    """
    A homogeneous collection.

    The container is one of "list", "sequence" or "set".
    """

    element: TypeNode
    container: str = "list"
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_array_type(self)


@dataclass(frozen=True, slots=True)
class DictType(TypeNode):
    """A mapping from keys of one type to values of another."""

    key: TypeNode
    value: TypeNode
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_dict_type(self)


@dataclass(frozen=True, slots=True)
class RecordField:
    """
    A single named field of a record type.

    Attributes:
        name: Field name
        type: Field type
        optional: Whether the field may be absent
    """

    name: str
    type: TypeNode
    optional: bool = False
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class RecordType(TypeNode):
    """
    A record with named fields, in source order.

    Example:
        class Person(TypedDict):
            name: str
            surname: Optional[str]
    """

    fields: tuple[RecordField, ...]
    name: Optional[str] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_record_type(self)


@dataclass(frozen=True, slots=True)
class UnionType(TypeNode):
    """A value of any one of the member types."""

    members: tuple[TypeNode, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_union_type(self)


@dataclass(frozen=True, slots=True)
class IntersectionType(TypeNode):
    """A value of all the member types at once."""

    members: tuple[TypeNode, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_intersection_type(self)


@dataclass(frozen=True, slots=True)
class FunctionType(TypeNode):
    """
    A callable type.

    params is None when the parameter list is unspecified (Callable[..., R]).
    """

    params: Optional[tuple[TypeNode, ...]]
    return_type: TypeNode
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_function_type(self)


@dataclass(frozen=True, slots=True)
class TupleType(TypeNode):
    """
    A fixed-length tuple, or a homogeneous one when variadic.

    Examples:
        tuple[int, str]      - elements=(int, str)
        tuple[int, ...]      - elements=(int,), variadic=True
    """

    elements: tuple[TypeNode, ...]
    variadic: bool = False
    location: Optional[SourceLocation] = None

    def accept(self, visitor: TypeVisitor) -> Any:
        return visitor.visit_tuple_type(self)


def describe(node: TypeNode) -> str:
    """Render a short human readable description of a type node."""
    if isinstance(node, (PrimitiveType, GenericParam)):
        return node.name
    if isinstance(node, LiteralType):
        return f"Literal[{node.value!r}]"
    if isinstance(node, TypeReference):
        if node.type_args:
            return f"{node.name}[{', '.join(describe(a) for a in node.type_args)}]"
        return node.name
    if isinstance(node, RefinementMarker):
        return f"Refinement[{node.predicate}]"
    if isinstance(node, NullableType):
        return f"Optional[{describe(node.inner)}]"
    if isinstance(node, ArrayType):
        return f"{node.container}[{describe(node.element)}]"
    if isinstance(node, DictType):
        return f"dict[{describe(node.key)}, {describe(node.value)}]"
    if isinstance(node, RecordType):
        return node.name or "{" + ", ".join(f.name for f in node.fields) + "}"
    if isinstance(node, UnionType):
        return " | ".join(describe(m) for m in node.members)
    if isinstance(node, IntersectionType):
        return " & ".join(describe(m) for m in node.members)
    if isinstance(node, FunctionType):
        if node.params is None:
            args = "..."
        else:
            args = "[" + ", ".join(describe(p) for p in node.params) + "]"
        return f"Callable[{args}, {describe(node.return_type)}]"
    if isinstance(node, TupleType):
        inner = ", ".join(describe(e) for e in node.elements)
        return f"tuple[{inner}, ...]" if node.variadic else f"tuple[{inner}]"
    return type(node).__name__
