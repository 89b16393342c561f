"""
Pytest configuration and shared fixtures for typecomb tests.
"""

import ast
from textwrap import dedent

import pytest

from typecomb.compiler import (
    CompilationPipeline,
    CompilationResult,
    DefinitionRegistry,
    InsertionPlanner,
    PythonFrontend,
    TypeExpressionBuilder,
)
from typecomb.compiler.declarations import Binding, BindingKind, ModuleUnit
from typecomb.config import CompilerOptions


@pytest.fixture
def lower():
    """Factory fixture lowering dedented source into a ModuleUnit."""

    def _lower(source: str, filename: str = "test.py", **options) -> ModuleUnit:
        frontend = PythonFrontend(CompilerOptions(**options))
        return frontend.lower(dedent(source), filename)

    return _lower


@pytest.fixture
def registry_factory():
    """Factory fixture for creating registries with extra runtime bindings."""

    def _create_registry(*class_names: str, reserved=()) -> DefinitionRegistry:
        bindings = [Binding(name, BindingKind.CLASS) for name in class_names]
        return DefinitionRegistry(bindings=bindings, reserved_names=reserved)

    return _create_registry


@pytest.fixture
def builder_factory(registry_factory):
    """Factory fixture for creating expression builders."""

    def _create_builder(registry: DefinitionRegistry = None) -> TypeExpressionBuilder:
        return TypeExpressionBuilder(registry if registry is not None else registry_factory())

    return _create_builder


@pytest.fixture
def plan(lower):
    """Fixture returning the insertion plan of a module."""

    def _plan(source: str):
        unit = lower(source)
        registry = DefinitionRegistry.for_unit(unit)
        return InsertionPlanner(registry).plan(unit)

    return _plan


@pytest.fixture
def compile_module():
    """Fixture compiling dedented source into a CompilationResult."""

    def _compile(source: str, filename: str = "test.py", **options) -> CompilationResult:
        pipeline = CompilationPipeline(CompilerOptions(**options))
        return pipeline.compile(dedent(source), filename)

    return _compile


@pytest.fixture
def compile_code(compile_module):
    """Fixture returning only the generated Python source."""

    def _compile(source: str, **options) -> str:
        return compile_module(source, **options).python_code

    return _compile


@pytest.fixture
def run_compiled(compile_code):
    """
    Fixture that compiles source and executes it.

    Returns the namespace the compiled module ran in, so tests can call
    its functions and inspect its definitions.
    """

    def _run(source: str, **options) -> dict:
        code = compile_code(source, **options)
        namespace: dict = {"__name__": "compiled_under_test"}
        exec(compile(code, "<compiled>", "exec"), namespace)
        return namespace

    return _run


@pytest.fixture
def unparse_lines():
    """Fixture splitting generated code into stripped, non-empty lines."""

    def _lines(code: str) -> list[str]:
        return [line.strip() for line in code.splitlines() if line.strip()]

    return _lines


@pytest.fixture
def parse_expr():
    """Fixture parsing a single Python expression into an ast node."""

    def _parse(source: str) -> ast.expr:
        return ast.parse(source, mode="eval").body

    return _parse

