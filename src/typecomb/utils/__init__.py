"""
typecomb Utilities Package.

Common utilities for error handling, source locations, and diagnostics.
"""

from typecomb.utils.diagnostics import (
    ErrorCode,
    levenshtein_distance,
    suggest_similar,
)
from typecomb.utils.errors import (
    ConfigError,
    DuplicateDeclarationError,
    HostSyntaxError,
    RegistryStateError,
    SourceLocation,
    TypecombError,
    UnresolvedRecursionError,
    UnresolvedTypeError,
    UnsupportedConstructError,
)

__all__ = [
    # Errors
    "TypecombError",
    "UnresolvedTypeError",
    "UnresolvedRecursionError",
    "UnsupportedConstructError",
    "DuplicateDeclarationError",
    "HostSyntaxError",
    "RegistryStateError",
    "ConfigError",
    "SourceLocation",
    # Error codes
    "ErrorCode",
    # String similarity utilities
    "levenshtein_distance",
    "suggest_similar",
]
