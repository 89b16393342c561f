"""
typecomb Insertion-Point Planner.

Walks the declarations of one module in source order and decides what the
emitter must produce for each:

    type alias / TypedDict      -> DEFINE  (one binding per name)
    annotated parameter         -> ASSERT  (in declared parameter order)
    cast(T, value)              -> ASSERT  (inline, value passed through)
    X = reify(T)                -> REIFY   (binding to the runtime model)

A declaration may only reference types declared before it. The one
exception is a declaration marked recursive, which may reference itself.
Classes and imports may appear anywhere; definitions, casts and
reifications that run before such a name is bound refer to it lazily.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from typecomb.compiler.builder import RefinementRequest, TypeExpressionBuilder
from typecomb.compiler.declarations import (
    CastExpression,
    Declaration,
    FunctionDeclaration,
    ModuleUnit,
    Parameter,
    ParameterKind,
    ReifyDeclaration,
    TypeDeclaration,
)
from typecomb.compiler.registry import DefinitionRegistry
from typecomb.compiler.runtime_expr import Call, RuntimeExpr
from typecomb.compiler.type_nodes import (
    DictType,
    PrimitiveType,
    TupleType,
    TypeNode,
)
from typecomb.utils.errors import SourceLocation, UnsupportedConstructError

logger = logging.getLogger("typecomb.planner")


class AssertionMode(Enum):
    """What the emitter produces for a plan entry."""

    ASSERT = "assert"
    DEFINE = "define"
    REIFY = "reify"


@dataclass(frozen=True, slots=True)
class ReifyRequest:
    """A request to bind the runtime model of a type to a name."""

    target: str
    type: TypeNode
    location: Optional[SourceLocation] = None


Site = Union[TypeDeclaration, Parameter, CastExpression, ReifyDeclaration]


@dataclass(frozen=True, slots=True)
class PlanEntry:
    """
    One thing to emit.

    Attributes:
        site: Where it goes (a declaration, parameter or cast)
        expr: The runtime type-expression involved
        mode: ASSERT, DEFINE or REIFY
        label: Human readable name passed to the check
        owner: The function a parameter assertion belongs to
        request: The reify request behind a REIFY entry
    """

    site: Site
    expr: RuntimeExpr
    mode: AssertionMode
    label: Optional[str] = None
    owner: Optional[FunctionDeclaration] = None
    request: Optional[ReifyRequest] = None


@dataclass
class InsertionPlan:
    """All plan entries of one module, in emission order."""

    entries: list[PlanEntry] = field(default_factory=list)
    refinements: list[RefinementRequest] = field(default_factory=list)

    def by_mode(self, mode: AssertionMode) -> list[PlanEntry]:
        return [entry for entry in self.entries if entry.mode is mode]

    @property
    def assertions(self) -> list[PlanEntry]:
        return self.by_mode(AssertionMode.ASSERT)

    @property
    def definitions(self) -> list[PlanEntry]:
        return self.by_mode(AssertionMode.DEFINE)

    @property
    def reifications(self) -> list[PlanEntry]:
        return self.by_mode(AssertionMode.REIFY)

    def for_function(self, function: FunctionDeclaration) -> list[PlanEntry]:
        """Parameter assertions of one function, in parameter order."""
        return [entry for entry in self.entries if entry.owner is function]

    def __len__(self) -> int:
        return len(self.entries)


class InsertionPlanner:
    """
    Plans definitions and assertions for one module.

    Example:
        registry = DefinitionRegistry.for_unit(unit)
        plan = InsertionPlanner(registry).plan(unit)
        for entry in plan.assertions:
            print(entry.label, entry.expr)
    """

    def __init__(
        self,
        registry: DefinitionRegistry,
        builder: Optional[TypeExpressionBuilder] = None,
    ) -> None:
        self.registry = registry
        self.builder = builder or TypeExpressionBuilder(registry)

    def plan(self, unit: ModuleUnit) -> InsertionPlan:
        plan = InsertionPlan()
        for declaration in unit.declarations:
            plan.entries.extend(self.plan_declaration(declaration))
        plan.refinements.extend(self.builder.refinements)
        logger.debug(
            f"Planned {len(plan.definitions)} definitions, "
            f"{len(plan.assertions)} assertions, "
            f"{len(plan.reifications)} reifications for {unit.filename}"
        )
        return plan

    def plan_declaration(self, declaration: Declaration) -> list[PlanEntry]:
        if isinstance(declaration, TypeDeclaration):
            return [self._plan_type(declaration)]
        if isinstance(declaration, FunctionDeclaration):
            return self._plan_function(declaration)
        if isinstance(declaration, CastExpression):
            return [self._plan_cast(declaration)]
        if isinstance(declaration, ReifyDeclaration):
            return [self._plan_reify(declaration)]
        raise TypeError(f"Unknown declaration: {type(declaration).__name__}")

    def _plan_type(self, declaration: TypeDeclaration) -> PlanEntry:
        if not declaration.top_level:
            raise UnsupportedConstructError(
                f"type declaration '{declaration.name}' outside module level",
                declaration.location,
            )
        # Declared before the body is built so self-references see PENDING
        self.registry.declare(
            declaration.name,
            recursive=declaration.recursive,
            location=declaration.location,
        )
        with self.registry.evaluated_at(declaration.location):
            expr = self.builder.build(declaration.type)
        if isinstance(expr, Call) and expr.name is None:
            expr = expr.named(declaration.name)
        entry = self.registry.complete(declaration.name, expr)
        return PlanEntry(
            site=declaration,
            expr=expr,
            mode=AssertionMode.DEFINE,
            label=entry.binding,
        )

    def _plan_function(self, function: FunctionDeclaration) -> list[PlanEntry]:
        entries = []
        for param in function.typed_params:
            expr = self.builder.build(_parameter_type(param))
            entries.append(
                PlanEntry(
                    site=param,
                    expr=expr,
                    mode=AssertionMode.ASSERT,
                    label=param.name,
                    owner=function,
                )
            )
        return entries

    def _plan_cast(self, cast: CastExpression) -> PlanEntry:
        with self.registry.evaluated_at(cast.location):
            expr = self.builder.build(cast.type)
        return PlanEntry(
            site=cast,
            expr=expr,
            mode=AssertionMode.ASSERT,
            label=cast.label,
        )

    def _plan_reify(self, declaration: ReifyDeclaration) -> PlanEntry:
        with self.registry.evaluated_at(declaration.location):
            reified = self.builder.reify(declaration.type)
        return PlanEntry(
            site=declaration,
            expr=reified,
            mode=AssertionMode.REIFY,
            label=declaration.target,
            request=ReifyRequest(
                target=declaration.target,
                type=declaration.type,
                location=declaration.location,
            ),
        )


def _parameter_type(param: Parameter) -> TypeNode:
    """The type of the value a parameter actually binds."""
    if param.kind is ParameterKind.VAR_POSITIONAL:
        return TupleType((param.annotation,), variadic=True, location=param.location)
    if param.kind is ParameterKind.VAR_KEYWORD:
        return DictType(PrimitiveType("str"), param.annotation, location=param.location)
    return param.annotation
