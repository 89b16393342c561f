"""
Definition registry for one compilation unit.

The registry maps declared type names to the runtime expressions generated
for them. A name moves from PENDING to COMPLETE exactly once. While a name
is pending, references to it resolve to a DeferredRef when the declaration
is marked recursive and fail otherwise; once complete, references resolve
to a NameRef of the emitted binding so the expression is never rebuilt.

A registry is created per module and thrown away when the pass ends.
"""

from __future__ import annotations

import builtins
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional

from typecomb.compiler.declarations import Binding, BindingKind, ModuleUnit
from typecomb.compiler.runtime_expr import (
    Call,
    Combinator,
    DeferredRef,
    LazyExpr,
    NameRef,
    RuntimeExpr,
)
from typecomb.utils.errors import (
    DuplicateDeclarationError,
    RegistryStateError,
    SourceLocation,
    UnresolvedRecursionError,
    UnresolvedTypeError,
    UnsupportedConstructError,
)

logger = logging.getLogger("typecomb.registry")


class EntryState(Enum):
    """Completion state of a registry entry."""

    PENDING = "pending"
    COMPLETE = "complete"


@dataclass
class RegistryEntry:
    """
    A declared type name and what has been generated for it.

    Attributes:
        name: Declared type name
        binding: Identifier the definition is bound to in emitted code
        recursive: Whether self-references are allowed
        state: PENDING until complete() is called
        expr: The finished runtime expression (None while pending)
    """

    name: str
    binding: str
    recursive: bool = False
    state: EntryState = EntryState.PENDING
    expr: Optional[RuntimeExpr] = None
    location: Optional[SourceLocation] = None

    @property
    def is_complete(self) -> bool:
        return self.state is EntryState.COMPLETE


class DefinitionRegistry:
    """
    Per-compilation-unit table of type definitions.

    Besides declared types, the registry knows the runtime names a module
    binds (classes, imports, imported modules) so references to them
    collapse to an irreducible check instead of an error.
    """

    def __init__(
        self,
        bindings: Iterable[Binding] = (),
        reserved_names: Iterable[str] = (),
    ) -> None:
        self._entries: dict[str, RegistryEntry] = {}
        self._bindings: dict[str, Binding] = {b.name: b for b in bindings}
        self._reserved: set[str] = set(reserved_names)
        self._allocated: dict[str, str] = {}
        # Where the expression being built runs, if it runs on import
        self._eager_site: Optional[SourceLocation] = None

    @classmethod
    def for_unit(cls, unit: ModuleUnit) -> "DefinitionRegistry":
        """Create a fresh registry for a module."""
        return cls(bindings=unit.bindings, reserved_names=unit.reserved_names)

    # -------------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------------

    def declare(
        self,
        name: str,
        recursive: bool = False,
        location: Optional[SourceLocation] = None,
    ) -> RegistryEntry:
        """Register a type name as PENDING before its body is built."""
        if name in self._entries:
            raise DuplicateDeclarationError(name, location)
        entry = RegistryEntry(
            name=name,
            binding=name,
            recursive=recursive,
            location=location,
        )
        self._entries[name] = entry
        logger.debug(f"Declared {name} (recursive={recursive})")
        return entry

    def complete(self, name: str, expr: RuntimeExpr) -> RegistryEntry:
        """Store the finished expression for a pending name."""
        entry = self._entries.get(name)
        if entry is None:
            raise RegistryStateError(f"cannot complete undeclared type '{name}'")
        if entry.is_complete:
            raise RegistryStateError(f"type '{name}' is already complete", entry.location)
        entry.expr = expr
        entry.state = EntryState.COMPLETE
        logger.debug(f"Completed {name}")
        return entry

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def lookup(self, name: str, location: Optional[SourceLocation] = None) -> RuntimeExpr:
        """
        Resolve a type name to the expression a reference should use.

        Raises:
            UnresolvedRecursionError: the name is still being defined and
                its declaration is not marked recursive
            UnresolvedTypeError: nothing in this unit binds the name
        """
        entry = self._entries.get(name)
        if entry is not None:
            if entry.is_complete:
                return NameRef(entry.binding)
            if entry.recursive:
                return DeferredRef(entry.binding)
            raise UnresolvedRecursionError(name, location)

        root = name.split(".", 1)[0]
        binding = self._bindings.get(root)
        if binding is not None:
            if binding.kind is BindingKind.MODULE and root == name:
                raise UnsupportedConstructError(f"module '{name}' used as a type", location)
            expr = Call(Combinator.IRREDUCIBLE, (NameRef(name),))
            if self._bound_later(binding):
                logger.debug(f"Deferred {name}, bound after the definition using it")
                return LazyExpr(expr)
            return expr

        if "." not in name and isinstance(getattr(builtins, name, None), type):
            return Call(Combinator.IRREDUCIBLE, (NameRef(name),))

        raise UnresolvedTypeError(name, location, candidates=self.known_names())

    @contextmanager
    def evaluated_at(self, site: Optional[SourceLocation]) -> Iterator[None]:
        """
        Mark lookups made inside the block as evaluated on import at site.

        Runtime names bound below site are not defined yet when that code
        runs, so lookups of them come back wrapped in a LazyExpr.
        """
        previous = self._eager_site
        self._eager_site = site
        try:
            yield
        finally:
            self._eager_site = previous

    def _bound_later(self, binding: Binding) -> bool:
        site = self._eager_site
        if site is None or binding.location is None:
            return False
        return (binding.location.line, binding.location.column) > (site.line, site.column)

    def resolve(self, ref: RuntimeExpr) -> RuntimeExpr:
        """Follow a NameRef or DeferredRef to the completed definition."""
        if not isinstance(ref, (NameRef, DeferredRef)):
            return ref
        for entry in self._entries.values():
            if entry.binding == ref.name:
                if not entry.is_complete:
                    raise RegistryStateError(f"type '{entry.name}' is not complete yet")
                return entry.expr
        raise UnresolvedTypeError(ref.name, candidates=self.known_names())

    def get(self, name: str) -> Optional[RegistryEntry]:
        return self._entries.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def definitions(self) -> list[RegistryEntry]:
        """Completed entries in declaration order."""
        return [entry for entry in self._entries.values() if entry.is_complete]

    def known_names(self) -> list[str]:
        return list(self._entries) + list(self._bindings)

    # -------------------------------------------------------------------------
    # Identifier allocation
    # -------------------------------------------------------------------------

    def allocate(self, preferred: str) -> str:
        """
        Return an identifier for generated code that shadows nothing.

        The same preferred name always yields the same identifier within
        one unit.
        """
        if preferred in self._allocated:
            return self._allocated[preferred]
        candidate = preferred
        counter = 1
        while candidate in self._reserved or candidate in self._entries:
            candidate = f"{preferred}_{counter}"
            counter += 1
        self._reserved.add(candidate)
        self._allocated[preferred] = candidate
        if candidate != preferred:
            logger.debug(f"Renamed generated identifier {preferred} -> {candidate}")
        return candidate
