"""
Error types and source location tracking for the typecomb compiler.
"""

from dataclasses import dataclass
from typing import Optional

from typecomb.utils.diagnostics import ErrorCode, suggest_similar


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Attributes:
        line: 1-indexed line number
        column: 1-indexed column number
        filename: Optional filename for error reporting
    """

    line: int
    column: int
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


class TypecombError(Exception):
    """Base exception for all typecomb compiler errors."""

    code: str = ""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []

        if self.location:
            parts.append(f"[{self.location}]")

        if self.code:
            parts.append(f"error[{self.code}]:")

        parts.append(self.message)

        if self.source_line and self.location:
            head = " ".join(parts)
            # Caret under the offending column
            padding = " " * (4 + self.location.column - 1)
            return f"{head}\n    {self.source_line}\n{padding}^"

        return " ".join(parts)

    def with_source(self, source_lines: list[str]) -> "TypecombError":
        """Attach the offending source line if the error has a location."""
        if self.location and self.source_line is None:
            index = self.location.line - 1
            if 0 <= index < len(source_lines):
                self.source_line = source_lines[index].rstrip()
                self.args = (self._format_message(),)
        return self


class UnresolvedTypeError(TypecombError):
    """
    Raised when a type reference has no matching declaration or import.

    The referenced name is neither declared in this compilation unit nor
    brought in by one of its imports.
    """

    code = ErrorCode.E0101

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        candidates: Optional[list[str]] = None,
    ) -> None:
        self.name = name
        self.suggestions = suggest_similar(name, candidates or [])
        message = f"unresolved type '{name}'"
        if self.suggestions:
            message += f" (did you mean '{self.suggestions[0]}'?)"
        super().__init__(message, location)


class UnresolvedRecursionError(TypecombError):
    """Raised when a type refers to itself without the recursive marker."""

    code = ErrorCode.E0102

    def __init__(self, name: str, location: Optional[SourceLocation] = None) -> None:
        self.name = name
        super().__init__(
            f"type '{name}' refers to itself; mark the declaration with "
            f"'# recursive' to allow it",
            location,
        )


class UnsupportedConstructError(TypecombError):
    """Raised when a static type construct has no runtime mapping."""

    code = ErrorCode.E0103

    def __init__(self, construct: str, location: Optional[SourceLocation] = None) -> None:
        self.construct = construct
        super().__init__(f"unsupported type construct: {construct}", location)


class DuplicateDeclarationError(TypecombError):
    """Raised when a type name is declared twice in one compilation unit."""

    code = ErrorCode.E0104

    def __init__(self, name: str, location: Optional[SourceLocation] = None) -> None:
        self.name = name
        super().__init__(f"type '{name}' is already declared", location)


class HostSyntaxError(TypecombError):
    """Raised when the input source cannot be parsed."""

    code = ErrorCode.E0201


class RegistryStateError(TypecombError):
    """Raised on an illegal definition registry transition."""

    code = ErrorCode.E0301


class ConfigError(TypecombError):
    """Raised when compiler options cannot be loaded."""

    code = ErrorCode.E0302
