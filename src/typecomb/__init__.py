"""
typecomb - Runtime type checks compiled from static type annotations.

typecomb reads Python source whose declarations carry type annotations and
rewrites it so that, at execution time, runtime type combinators enforce
those same types: function arguments are checked on entry, ``cast`` calls
become checked casts, and type aliases and TypedDicts become runtime type
models that can be inspected with ``reify``.
"""

from typecomb.compiler import CompilationPipeline, CompilationResult, compile_file, compile_source
from typecomb.config import CompilerOptions, load_options
from typecomb.utils.errors import (
    TypecombError,
    UnresolvedRecursionError,
    UnresolvedTypeError,
    UnsupportedConstructError,
)

__version__ = "0.1.0"
__all__ = [
    "compile_source",
    "compile_file",
    "CompilationPipeline",
    "CompilationResult",
    "CompilerOptions",
    "load_options",
    "TypecombError",
    "UnresolvedTypeError",
    "UnresolvedRecursionError",
    "UnsupportedConstructError",
]
