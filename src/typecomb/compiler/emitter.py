"""
typecomb Assertion Emitter.

Turns plan entries into Python syntax fragments calling the runtime
library (imported under ``runtime_alias``, ``t`` by default):

    ASSERT (parameter)   t.check(a, t.Int, 'a')
    ASSERT (cast)        t.check(value, Person, 'value')
    DEFINE               Person = t.interface({'name': t.Str}, name='Person')
    REIFY                PersonModel = t.reify(Person)

A check returns the value it was given, so on success the program behaves
as if the check were not there. With skip_asserts, ASSERT entries produce
nothing (parameters) or the bare value (casts); definitions and
reifications are still emitted.
"""

from __future__ import annotations

import ast
from typing import Optional

from typecomb.compiler.declarations import CastExpression, Parameter
from typecomb.compiler.planner import AssertionMode, PlanEntry
from typecomb.compiler.runtime_expr import (
    Call,
    Combinator,
    Constant,
    DeferredRef,
    Field,
    LazyExpr,
    NameRef,
    PredicateRef,
    PrimitiveRef,
    ReifiedExpr,
    RuntimeExpr,
    RuntimeExprVisitor,
)
from typecomb.config import CompilerOptions


# Combinator to runtime library function
COMBINATOR_TO_RUNTIME: dict[Combinator, str] = {
    Combinator.IRREDUCIBLE: "irreducible",
    Combinator.MAYBE: "maybe",
    Combinator.LIST: "list_of",
    Combinator.DICT: "dict_of",
    Combinator.INTERFACE: "interface",
    Combinator.UNION: "union",
    Combinator.INTERSECTION: "intersection",
    Combinator.REFINEMENT: "refinement",
    Combinator.TUPLE: "tuple_of",
    Combinator.FUNC: "func",
    Combinator.LITERAL: "literal",
}

# Combinators whose components are passed as one list argument
_LIST_ARGUMENT = {Combinator.UNION, Combinator.INTERSECTION, Combinator.TUPLE}


def dotted_name(name: str) -> ast.expr:
    """Build a Name or Attribute chain for a dotted identifier."""
    parts = name.split(".")
    node: ast.expr = ast.Name(id=parts[0], ctx=ast.Load())
    for part in parts[1:]:
        node = ast.Attribute(value=node, attr=part, ctx=ast.Load())
    return node


class RuntimeExprRenderer(RuntimeExprVisitor):
    """Renders runtime type-expressions as Python expressions."""

    def __init__(self, runtime_alias: str = "t") -> None:
        self.runtime_alias = runtime_alias

    def render(self, expr: RuntimeExpr) -> ast.expr:
        return self.visit(expr)

    def runtime(self, attr: str) -> ast.expr:
        return ast.Attribute(
            value=ast.Name(id=self.runtime_alias, ctx=ast.Load()),
            attr=attr,
            ctx=ast.Load(),
        )

    def visit_primitive_ref(self, node: PrimitiveRef) -> ast.expr:
        return self.runtime(node.name)

    def visit_name_ref(self, node: NameRef) -> ast.expr:
        return dotted_name(node.name)

    def visit_predicate_ref(self, node: PredicateRef) -> ast.expr:
        return dotted_name(node.name)

    def visit_deferred_ref(self, node: DeferredRef) -> ast.expr:
        return self._lazy(dotted_name(node.name))

    def visit_lazy_expr(self, node: LazyExpr) -> ast.expr:
        return self._lazy(self.render(node.expr))

    def _lazy(self, body: ast.expr) -> ast.expr:
        thunk = ast.Lambda(
            args=ast.arguments(
                posonlyargs=[],
                args=[],
                vararg=None,
                kwonlyargs=[],
                kw_defaults=[],
                kwarg=None,
                defaults=[],
            ),
            body=body,
        )
        return ast.Call(func=self.runtime("lazy"), args=[thunk], keywords=[])

    def visit_constant(self, node: Constant) -> ast.expr:
        return ast.Constant(value=node.value)

    def visit_field(self, node: Field) -> ast.expr:
        return self.render(node.expr)

    def visit_reified_expr(self, node: ReifiedExpr) -> ast.expr:
        return self.render(node.expr)

    def visit_call(self, node: Call) -> ast.expr:
        combinator = node.combinator
        if combinator is Combinator.INTERFACE:
            props = ast.Dict(
                keys=[ast.Constant(value=f.name) for f in node.args],
                values=[self.render(f) for f in node.args],
            )
            args = [props]
        elif combinator in _LIST_ARGUMENT:
            args = [ast.List(elts=[self.render(a) for a in node.args], ctx=ast.Load())]
        elif combinator is Combinator.FUNC:
            ret = self.render(node.args[-1])
            if node.option("any_params"):
                args = [ast.Constant(value=None), ret]
            else:
                params = ast.List(elts=[self.render(a) for a in node.args[:-1]], ctx=ast.Load())
                args = [params, ret]
        else:
            args = [self.render(a) for a in node.args]

        keywords = [
            ast.keyword(arg=key, value=ast.Constant(value=value))
            for key, value in node.options
            if key != "any_params"
        ]
        if node.name is not None:
            keywords.append(ast.keyword(arg="name", value=ast.Constant(value=node.name)))

        return ast.Call(
            func=self.runtime(COMBINATOR_TO_RUNTIME[combinator]),
            args=args,
            keywords=keywords,
        )


class AssertionEmitter:
    """
    Synthesizes the code fragment for each plan entry.

    Example:
        emitter = AssertionEmitter(CompilerOptions(), runtime_alias="t")
        stmt = emitter.emit(entry)   # ast.Expr for t.check(a, t.Int, 'a')
    """

    def __init__(
        self,
        options: Optional[CompilerOptions] = None,
        runtime_alias: Optional[str] = None,
    ) -> None:
        self.options = options or CompilerOptions()
        self.runtime_alias = runtime_alias or self.options.runtime_alias
        self.renderer = RuntimeExprRenderer(self.runtime_alias)
        self.emitted = 0

    def emit(self, entry: PlanEntry, value: Optional[ast.expr] = None) -> Optional[ast.AST]:
        """
        Build the fragment for one plan entry.

        Args:
            entry: The plan entry
            value: The expression being checked, for cast assertions

        Returns:
            A statement for parameter checks, definitions and
            reifications, an expression for casts, or None for a
            suppressed parameter check.
        """
        if entry.mode is AssertionMode.ASSERT:
            if self.options.skip_asserts:
                return self._suppressed(entry, value)
            fragment = self._emit_assert(entry, value)
        elif entry.mode is AssertionMode.DEFINE:
            fragment = self._bind(entry.label, self.renderer.render(entry.expr))
        else:
            reified = ast.Call(
                func=self.renderer.runtime("reify"),
                args=[self.renderer.render(entry.expr)],
                keywords=[],
            )
            fragment = self._bind(entry.label, reified)

        if fragment is not None:
            self.emitted += 1
            ast.fix_missing_locations(fragment)
        return fragment

    def _emit_assert(self, entry: PlanEntry, value: Optional[ast.expr]) -> ast.AST:
        if isinstance(entry.site, Parameter):
            check = self._check(ast.Name(id=entry.site.name, ctx=ast.Load()), entry)
            return ast.Expr(value=check)

        if isinstance(entry.site, CastExpression):
            if value is None:
                raise ValueError("cast assertions need the value expression")
            return self._check(value, entry)

        raise TypeError(f"Cannot assert at {type(entry.site).__name__}")

    @staticmethod
    def _suppressed(entry: PlanEntry, value: Optional[ast.expr]) -> Optional[ast.AST]:
        if isinstance(entry.site, CastExpression):
            if value is None:
                raise ValueError("cast assertions need the value expression")
            return value
        return None

    def _check(self, value: ast.expr, entry: PlanEntry) -> ast.expr:
        return ast.Call(
            func=self.renderer.runtime("check"),
            args=[value, self.renderer.render(entry.expr), ast.Constant(value=entry.label)],
            keywords=[],
        )

    @staticmethod
    def _bind(name: str, value: ast.expr) -> ast.stmt:
        return ast.Assign(targets=[ast.Name(id=name, ctx=ast.Store())], value=value)
