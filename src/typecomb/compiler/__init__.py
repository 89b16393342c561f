"""
typecomb Compiler Package.

This package contains the compiler components:
- TypeNodes: Static type grammar consumed by the compiler
- RuntimeExpr: Runtime type-expression model produced by the builder
- Frontend: Lowers annotated Python source into declarations
- Registry: Per-module table of type definitions
- Builder: Static type -> runtime type-expression translation
- Planner: Decides which assertions and definitions to emit, and where
- Emitter: Synthesizes runtime library calls
- Rewriter: Splices emitted code back into the module
- CompilationPipeline: Unified compilation interface
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from typecomb.compiler.builder import (
    PRIMITIVE_TO_RUNTIME,
    RefinementRequest,
    TypeExpressionBuilder,
)
from typecomb.compiler.declarations import (
    Binding,
    BindingKind,
    CastExpression,
    FunctionDeclaration,
    ModuleUnit,
    Parameter,
    ParameterKind,
    ReifyDeclaration,
    TypeDeclaration,
)
from typecomb.compiler.emitter import AssertionEmitter, RuntimeExprRenderer
from typecomb.compiler.frontend import PythonFrontend
from typecomb.compiler.planner import (
    AssertionMode,
    InsertionPlan,
    InsertionPlanner,
    PlanEntry,
    ReifyRequest,
)
from typecomb.compiler.registry import DefinitionRegistry, EntryState, RegistryEntry
from typecomb.compiler.rewriter import ModuleRewriter
from typecomb.config import CompilerOptions
from typecomb.utils.errors import TypecombError

logger = logging.getLogger("typecomb.compiler")


@dataclass
class CompilationResult:
    """
    Result of compiling one module.

    Attributes:
        python_code: The rewritten Python source
        plan: Every assertion, definition and reification planned
        definitions: Names of the type definitions emitted, in order
        runtime_alias: Local name the runtime module was imported as
        unit: The lowered module (useful for further processing)
    """

    python_code: str
    plan: InsertionPlan = field(default_factory=InsertionPlan)
    definitions: list[str] = field(default_factory=list)
    runtime_alias: Optional[str] = None
    unit: Optional[ModuleUnit] = None

    def __str__(self) -> str:
        lines = ["Compilation Result:"]
        lines.append(f"  Definitions: {len(self.plan.definitions)}")
        lines.append(f"  Assertions: {len(self.plan.assertions)}")
        lines.append(f"  Reifications: {len(self.plan.reifications)}")
        if self.plan.refinements:
            lines.append(f"  Refinements: {len(self.plan.refinements)}")
        lines.append(f"  Generated Code: {len(self.python_code)} characters")
        return "\n".join(lines)


class CompilationPipeline:
    """
    Compiles annotated Python into Python with runtime type checks.

    The pipeline performs the following stages:
    1. Lowering - Parse source and collect typed declarations
    2. Planning - Build runtime type-expressions, decide insertion points
    3. Emission - Synthesize runtime library calls
    4. Rewriting - Splice them into the module and print it

    Any error aborts the whole module: either every planned check is
    emitted or nothing is.

    Example:
        pipeline = CompilationPipeline(CompilerOptions(skip_asserts=True))
        result = pipeline.compile(source, "models.py")
        print(result.python_code)
    """

    def __init__(self, options: Optional[CompilerOptions] = None) -> None:
        self.options = options or CompilerOptions()
        self.frontend = PythonFrontend(self.options)

    def compile(self, source: str, filename: str = "<string>") -> CompilationResult:
        """
        Compile one module.

        Raises:
            TypecombError: On the first unresolved, recursive or
                unsupported type; the message carries the source location
        """
        source_lines = source.splitlines()
        try:
            unit = self.frontend.lower(source, filename)
            registry = DefinitionRegistry.for_unit(unit)
            runtime_alias = registry.allocate(self.options.runtime_alias)

            plan = InsertionPlanner(registry).plan(unit)

            emitter = AssertionEmitter(self.options, runtime_alias)
            tree = ModuleRewriter(unit, plan, emitter, self.options.runtime_module).rewrite()
        except TypecombError as e:
            e.with_source(source_lines)
            logger.debug(f"Compilation of {filename} failed: {e.message}")
            raise

        python_code = ast.unparse(tree) + "\n"
        definitions = [entry.name for entry in registry.definitions()]
        logger.info(
            f"Compiled {filename}: {len(definitions)} definitions, "
            f"{len(plan.assertions)} assertions"
            + (" (suppressed)" if self.options.skip_asserts else "")
        )
        return CompilationResult(
            python_code=python_code,
            plan=plan,
            definitions=definitions,
            runtime_alias=runtime_alias if emitter.emitted else None,
            unit=unit,
        )

    def compile_file(self, filepath: Union[str, Path]) -> CompilationResult:
        """Compile a Python file."""
        path = Path(filepath)
        source = path.read_text(encoding="utf-8")
        return self.compile(source, str(path))


def compile_source(source: str, skip_asserts: bool = False, filename: str = "<string>") -> str:
    """
    Compile annotated Python source to Python with runtime type checks.

    This is a simplified convenience function that uses the
    CompilationPipeline with default settings. For more control, use
    CompilationPipeline directly.

    Args:
        source: Python source code string
        skip_asserts: Emit type definitions only, no assertion calls
        filename: Name used in error locations

    Returns:
        Generated Python source code
    """
    pipeline = CompilationPipeline(CompilerOptions(skip_asserts=skip_asserts))
    return pipeline.compile(source, filename).python_code


def compile_file(filepath: Union[str, Path], options: Optional[CompilerOptions] = None) -> str:
    """
    Compile a Python file with runtime type checks.

    Args:
        filepath: Path to the .py file
        options: Compiler options (defaults when None)

    Returns:
        Generated Python source code
    """
    return CompilationPipeline(options).compile_file(filepath).python_code


__all__ = [
    # Pipeline
    "CompilationPipeline",
    "CompilationResult",
    "compile_source",
    "compile_file",
    # Declarations
    "ModuleUnit",
    "Binding",
    "BindingKind",
    "TypeDeclaration",
    "FunctionDeclaration",
    "Parameter",
    "ParameterKind",
    "CastExpression",
    "ReifyDeclaration",
    # Components
    "PythonFrontend",
    "DefinitionRegistry",
    "RegistryEntry",
    "EntryState",
    "TypeExpressionBuilder",
    "PRIMITIVE_TO_RUNTIME",
    "RefinementRequest",
    "InsertionPlanner",
    "InsertionPlan",
    "PlanEntry",
    "AssertionMode",
    "ReifyRequest",
    "AssertionEmitter",
    "RuntimeExprRenderer",
    "ModuleRewriter",
]
