"""
Splices emitted fragments back into a Python module tree.

- Type declarations are replaced in place by their definition binding
- Parameter checks go first in the function body, after any docstring
- ``cast(T, value)`` calls are replaced by the check (or the bare value)
- ``X = reify(T)`` assignments are replaced by the reify binding
- Function signatures lose their annotations
- The runtime module is imported once, after the module docstring and
  ``__future__`` imports, when anything was emitted
"""

from __future__ import annotations

import ast
from typing import Optional

from typecomb.compiler.declarations import (
    CastExpression,
    FunctionDeclaration,
    ModuleUnit,
    ReifyDeclaration,
    TypeDeclaration,
)
from typecomb.compiler.emitter import AssertionEmitter
from typecomb.compiler.planner import InsertionPlan, PlanEntry


def _docstring_offset(body: list[ast.stmt]) -> int:
    if (
        body
        and isinstance(body[0], ast.Expr)
        and isinstance(body[0].value, ast.Constant)
        and isinstance(body[0].value.value, str)
    ):
        return 1
    return 0


class ModuleRewriter(ast.NodeTransformer):
    """
    Applies an insertion plan to the host tree of a ModuleUnit.

    Example:
        tree = ModuleRewriter(unit, plan, emitter).rewrite()
        print(ast.unparse(tree))
    """

    def __init__(
        self,
        unit: ModuleUnit,
        plan: InsertionPlan,
        emitter: AssertionEmitter,
        runtime_module: str = "typecomb.runtime",
    ) -> None:
        self.unit = unit
        self.plan = plan
        self.emitter = emitter
        self.runtime_module = runtime_module

        self._replacements: dict[int, PlanEntry] = {}
        self._functions: dict[int, FunctionDeclaration] = {}
        for declaration in unit.declarations:
            if isinstance(declaration, FunctionDeclaration):
                self._functions[id(declaration.handle)] = declaration
        for entry in plan.entries:
            if isinstance(entry.site, (TypeDeclaration, CastExpression, ReifyDeclaration)):
                self._replacements[id(entry.site.handle)] = entry

    def rewrite(self) -> ast.Module:
        tree = self.visit(self.unit.handle)
        if self.emitter.emitted:
            self._insert_runtime_import(tree)
        return ast.fix_missing_locations(tree)

    def _insert_runtime_import(self, tree: ast.Module) -> None:
        alias = self.emitter.runtime_alias
        asname = None if alias == self.runtime_module else alias
        statement = ast.Import(names=[ast.alias(name=self.runtime_module, asname=asname)])

        index = _docstring_offset(tree.body)
        while (
            index < len(tree.body)
            and isinstance(tree.body[index], ast.ImportFrom)
            and tree.body[index].module == "__future__"
        ):
            index += 1
        tree.body.insert(index, statement)

    def _replace_statement(self, node: ast.stmt) -> Optional[ast.stmt]:
        entry = self._replacements.get(id(node))
        if entry is None:
            return None
        fragment = self.emitter.emit(entry)
        return ast.copy_location(fragment, node)

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.AST:
        replacement = self._replace_statement(node)
        if replacement is not None:
            return replacement
        return self.generic_visit(node)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> ast.AST:
        replacement = self._replace_statement(node)
        if replacement is not None:
            return replacement
        return self.generic_visit(node)

    def visit_TypeAlias(self, node: ast.AST) -> ast.AST:
        replacement = self._replace_statement(node)
        if replacement is not None:
            return replacement
        return node

    def visit_Assign(self, node: ast.Assign) -> ast.AST:
        replacement = self._replace_statement(node)
        if replacement is not None:
            return replacement
        return self.generic_visit(node)

    # -------------------------------------------------------------------------
    # Functions
    # -------------------------------------------------------------------------

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> ast.AST:
        self.generic_visit(node)
        function = self._functions.get(id(node))
        if function is None:
            return node

        checks = []
        for entry in self.plan.for_function(function):
            fragment = self.emitter.emit(entry)
            if fragment is not None:
                checks.append(ast.copy_location(fragment, node.body[0]))

        offset = _docstring_offset(node.body)
        node.body[offset:offset] = checks
        _strip_annotations(node)
        return node

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function

    # -------------------------------------------------------------------------
    # Casts
    # -------------------------------------------------------------------------

    def visit_Call(self, node: ast.Call) -> ast.AST:
        self.generic_visit(node)
        entry = self._replacements.get(id(node))
        if entry is None:
            return node
        value = node.args[1]
        fragment = self.emitter.emit(entry, value=value)
        if fragment is value:
            return value
        return ast.copy_location(fragment, node)


def _strip_annotations(node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
    args = node.args
    for arg in args.posonlyargs + args.args + args.kwonlyargs:
        arg.annotation = None
    if args.vararg is not None:
        args.vararg.annotation = None
    if args.kwarg is not None:
        args.kwarg.annotation = None
    node.returns = None
    if getattr(node, "type_params", None):
        node.type_params = []
