"""
Declaration model handed from a host front end to the compiler core.

A front end lowers one module into a ModuleUnit: the typed declarations
the planner cares about, in source order, plus the names the module binds.
Host syntax nodes travel along as opaque handles; the core never looks
inside them, it only passes them back to the host rewriter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from typecomb.compiler.type_nodes import TypeNode
from typecomb.utils.errors import SourceLocation


class ParameterKind(Enum):
    """How a parameter receives its argument."""

    POSITIONAL_ONLY = "positional_only"
    POSITIONAL = "positional"
    VAR_POSITIONAL = "var_positional"
    KEYWORD_ONLY = "keyword_only"
    VAR_KEYWORD = "var_keyword"


class BindingKind(Enum):
    """What a name visible to type references is bound to."""

    CLASS = "class"
    IMPORT = "import"
    MODULE = "module"


@dataclass(frozen=True, slots=True)
class Binding:
    """A runtime name usable as a type without a type declaration."""

    name: str
    kind: BindingKind
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class TypeDeclaration:
    """
    A named type: a type alias or a record (TypedDict) declaration.

    Attributes:
        name: Declared type name
        type: The declared static type
        recursive: Whether the declaration carries the recursive marker
        top_level: Whether the declaration sits at module level
    """

    name: str
    type: TypeNode
    recursive: bool = False
    top_level: bool = True
    location: Optional[SourceLocation] = None
    handle: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class Parameter:
    """A function parameter with its optional annotation."""

    name: str
    annotation: Optional[TypeNode] = None
    kind: ParameterKind = ParameterKind.POSITIONAL
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class FunctionDeclaration:
    """A function or method signature, parameters in declared order."""

    name: str
    params: tuple[Parameter, ...]
    location: Optional[SourceLocation] = None
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def typed_params(self) -> tuple[Parameter, ...]:
        return tuple(p for p in self.params if p.annotation is not None)


@dataclass(frozen=True, slots=True)
class CastExpression:
    """An expression treated as a given type (``cast(T, value)``)."""

    type: TypeNode
    label: str
    location: Optional[SourceLocation] = None
    handle: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class ReifyDeclaration:
    """A request for the runtime model of a type (``X = reify(T)``)."""

    target: str
    type: TypeNode
    location: Optional[SourceLocation] = None
    handle: Any = field(default=None, compare=False, repr=False)


Declaration = Union[TypeDeclaration, FunctionDeclaration, CastExpression, ReifyDeclaration]


@dataclass
class ModuleUnit:
    """
    One compilation unit as seen by the compiler core.

    Attributes:
        filename: Name used in error locations
        declarations: Typed declarations in source order
        bindings: Classes, imported names and imported modules
        reserved_names: Every identifier bound anywhere in the module
        source_lines: Source text split into lines, for diagnostics
        handle: Opaque host tree for the whole module
    """

    filename: str = "<string>"
    declarations: list[Declaration] = field(default_factory=list)
    bindings: list[Binding] = field(default_factory=list)
    reserved_names: set[str] = field(default_factory=set)
    source_lines: list[str] = field(default_factory=list)
    handle: Any = None
