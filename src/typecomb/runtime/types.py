"""
typecomb Runtime Types.

Runtime type objects built by compiled modules. Every type can validate a
value, is callable (``Int(3)`` checks and returns 3) and exposes ``meta``,
a plain dict describing its structure:

    >>> Person = interface({"name": Str, "surname": maybe(Str)}, name="Person")
    >>> Person.meta["kind"]
    'interface'
    >>> [c.name for c in Person.meta["components"]]
    ['Str', '?Str']
"""

from __future__ import annotations

import typing
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Optional


class ValidationError(TypeError):
    """
    Raised when a value does not match its runtime type.

    Attributes:
        value: The offending value
        path: Where inside the checked value the mismatch was found
        expected: The type that rejected it
    """

    def __init__(self, value: Any, path: tuple[str, ...], expected: "Type") -> None:
        self.value = value
        self.path = path
        self.expected = expected
        where = "/".join(path) if path else "value"
        super().__init__(
            f"Invalid value {value!r} supplied to {where} (expected {expected.name})"
        )


class Type:
    """Base class for runtime types."""

    kind = "irreducible"

    def __init__(self, name: Optional[str] = None) -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name or self.default_name()

    def default_name(self) -> str:
        return type(self).__name__

    @property
    def components(self) -> list["Type"]:
        return []

    @property
    def meta(self) -> dict[str, Any]:
        return {"kind": self.kind, "name": self.name, "components": self.components}

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        """Every mismatch found in value; empty when it is valid."""
        raise NotImplementedError

    def is_(self, value: Any) -> bool:
        return not self.errors(value, ())

    def __call__(self, value: Any) -> Any:
        return check(value, self, self.name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class Irreducible(Type):
    """A type decided by a single predicate."""

    def __init__(self, name: str, predicate: Callable[[Any], bool]) -> None:
        super().__init__(name)
        self.predicate = predicate

    @property
    def meta(self) -> dict[str, Any]:
        return {**super().meta, "predicate": self.predicate}

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        if self.predicate(value):
            return []
        return [ValidationError(value, path, self)]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


Any_ = Irreducible("Any", lambda v: True)
Nil = Irreducible("Nil", lambda v: v is None)
Str = Irreducible("Str", lambda v: isinstance(v, str))
Int = Irreducible("Int", lambda v: isinstance(v, int))
Number = Irreducible("Number", _is_number)
Complex = Irreducible("Complex", lambda v: _is_number(v) or isinstance(v, complex))
Bool = Irreducible("Bool", lambda v: isinstance(v, bool))
Bytes = Irreducible("Bytes", lambda v: isinstance(v, bytes))
Function = Irreducible("Function", callable)
Dict = Irreducible("Dict", lambda v: isinstance(v, Mapping))


class Maybe(Type):
    kind = "maybe"

    def __init__(self, inner: Type, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.inner = inner

    def default_name(self) -> str:
        return f"?{self.inner.name}"

    @property
    def components(self) -> list[Type]:
        return [self.inner]

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        if value is None:
            return []
        return self.inner.errors(value, path)


_CONTAINERS: dict[str, tuple[type, ...]] = {
    "list": (list,),
    "set": (set, frozenset),
}


class ListOf(Type):
    kind = "list"

    def __init__(self, element: Type, container: str = "list", name: Optional[str] = None) -> None:
        super().__init__(name)
        self.element = element
        self.container = container

    def default_name(self) -> str:
        return f"{self.container}[{self.element.name}]"

    @property
    def components(self) -> list[Type]:
        return [self.element]

    def _accepts_container(self, value: Any) -> bool:
        if self.container == "sequence":
            return isinstance(value, Sequence) and not isinstance(value, (str, bytes))
        return isinstance(value, _CONTAINERS[self.container])

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        if not self._accepts_container(value):
            return [ValidationError(value, path, self)]
        found = []
        for index, item in enumerate(value):
            found.extend(self.element.errors(item, path + (str(index),)))
        return found


class DictOf(Type):
    kind = "dict"

    def __init__(self, key: Type, value: Type, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.key = key
        self.value = value

    def default_name(self) -> str:
        return f"dict[{self.key.name}, {self.value.name}]"

    @property
    def components(self) -> list[Type]:
        return [self.key, self.value]

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        if not isinstance(value, Mapping):
            return [ValidationError(value, path, self)]
        found = []
        for k, v in value.items():
            found.extend(self.key.errors(k, path + (repr(k),)))
            found.extend(self.value.errors(v, path + (str(k),)))
        return found


class Interface(Type):
    """
    A mapping with known keys.

    Missing keys are read as None, so only maybe-typed properties may be
    left out. Extra keys are allowed.
    """

    kind = "interface"

    def __init__(self, props: dict[str, Type], name: Optional[str] = None) -> None:
        super().__init__(name)
        self.props = dict(props)

    def default_name(self) -> str:
        inner = ", ".join(f"{k}: {v.name}" for k, v in self.props.items())
        return "{" + inner + "}"

    @property
    def components(self) -> list[Type]:
        return list(self.props.values())

    @property
    def meta(self) -> dict[str, Any]:
        return {**super().meta, "props": dict(self.props)}

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        if not isinstance(value, Mapping):
            return [ValidationError(value, path, self)]
        found = []
        for key, prop in self.props.items():
            found.extend(prop.errors(value.get(key), path + (key,)))
        return found

    def __call__(self, value: Any = None, **fields: Any) -> Any:
        # Person(name="x") builds and checks the dict, like a TypedDict call
        if value is None and fields:
            value = dict(fields)
        return check(value, self, self.name)


class UnionOf(Type):
    kind = "union"

    def __init__(self, types: list[Type], name: Optional[str] = None) -> None:
        super().__init__(name)
        self.types = list(types)

    def default_name(self) -> str:
        return " | ".join(t.name for t in self.types)

    @property
    def components(self) -> list[Type]:
        return list(self.types)

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        if any(not member.errors(value, path) for member in self.types):
            return []
        return [ValidationError(value, path, self)]


class IntersectionOf(Type):
    kind = "intersection"

    def __init__(self, types: list[Type], name: Optional[str] = None) -> None:
        super().__init__(name)
        self.types = list(types)

    def default_name(self) -> str:
        return " & ".join(t.name for t in self.types)

    @property
    def components(self) -> list[Type]:
        return list(self.types)

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        found = []
        for member in self.types:
            found.extend(member.errors(value, path))
        return found


class Refinement(Type):
    kind = "refinement"

    def __init__(self, base: Type, predicate: Callable[[Any], bool], name: Optional[str] = None) -> None:
        super().__init__(name)
        self.base = base
        self.predicate = predicate

    def default_name(self) -> str:
        predicate_name = getattr(self.predicate, "__name__", "<predicate>")
        return f"{{{self.base.name} | {predicate_name}}}"

    @property
    def components(self) -> list[Type]:
        return [self.base]

    @property
    def meta(self) -> dict[str, Any]:
        return {**super().meta, "predicate": self.predicate}

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        found = self.base.errors(value, path)
        if found:
            return found
        if not self.predicate(value):
            return [ValidationError(value, path, self)]
        return []


class TupleOf(Type):
    kind = "tuple"

    def __init__(self, types: list[Type], variadic: bool = False, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.types = list(types)
        self.variadic = variadic

    def default_name(self) -> str:
        inner = ", ".join(t.name for t in self.types)
        return f"tuple[{inner}, ...]" if self.variadic else f"tuple[{inner}]"

    @property
    def components(self) -> list[Type]:
        return list(self.types)

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        if not isinstance(value, tuple):
            return [ValidationError(value, path, self)]
        if self.variadic:
            element = self.types[0]
            items = [(element, item) for item in value]
        elif len(value) != len(self.types):
            return [ValidationError(value, path, self)]
        else:
            items = list(zip(self.types, value))
        found = []
        for index, (member, item) in enumerate(items):
            found.extend(member.errors(item, path + (str(index),)))
        return found


class Func(Type):
    """A callable. Only callability is checked; signatures are metadata."""

    kind = "func"

    def __init__(self, params: Optional[list[Type]], returns: Type, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.params = None if params is None else list(params)
        self.returns = returns

    def default_name(self) -> str:
        params = "..." if self.params is None else "[" + ", ".join(p.name for p in self.params) + "]"
        return f"Callable[{params}, {self.returns.name}]"

    @property
    def components(self) -> list[Type]:
        return (self.params or []) + [self.returns]

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        if callable(value):
            return []
        return [ValidationError(value, path, self)]


class LiteralOf(Type):
    kind = "literal"

    def __init__(self, value: Any, name: Optional[str] = None) -> None:
        super().__init__(name)
        self.value = value

    def default_name(self) -> str:
        return repr(self.value)

    @property
    def meta(self) -> dict[str, Any]:
        return {**super().meta, "value": self.value}

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        if type(value) is type(self.value) and value == self.value:
            return []
        return [ValidationError(value, path, self)]


class Lazy(Type):
    """
    A deferred reference to a type that may not exist yet.

    The thunk is called on first use and its result cached, so a recursive
    definition resolves to the very object it is bound to.
    """

    def __init__(self, thunk: Callable[[], Type]) -> None:
        super().__init__(None)
        self._thunk = thunk
        self._resolved: Optional[Type] = None

    def resolve(self) -> Type:
        if self._resolved is None:
            self._resolved = self._thunk()
        return self._resolved

    @property
    def kind(self) -> str:  # type: ignore[override]
        return self.resolve().kind

    @property
    def name(self) -> str:
        return self.resolve().name

    @property
    def components(self) -> list[Type]:
        return self.resolve().components

    @property
    def meta(self) -> dict[str, Any]:
        return self.resolve().meta

    def errors(self, value: Any, path: tuple[str, ...]) -> list[ValidationError]:
        return self.resolve().errors(value, path)

    def __repr__(self) -> str:
        if self._resolved is None:
            return "<Lazy (unresolved)>"
        return f"<Lazy {self._resolved.name}>"


# =============================================================================
# Combinators
# =============================================================================


def irreducible(target: Any) -> Type:
    """
    Turn a runtime name used as a type into a Type.

    Runtime types are returned unchanged, classes become isinstance checks.
    Protocols without @runtime_checkable accept anything, since isinstance
    refuses them.
    """
    if isinstance(target, Type):
        return target
    if isinstance(target, type):
        if typing.is_typeddict(target):
            return Irreducible(target.__name__, lambda v: isinstance(v, Mapping))
        if _is_static_protocol(target):
            return Irreducible(target.__name__, lambda v: True)
        return Irreducible(target.__name__, lambda v: isinstance(v, target))
    raise TypeError(f"{target!r} cannot be used as a type")


def _is_static_protocol(target: type) -> bool:
    return getattr(target, "_is_protocol", False) and not getattr(
        target, "_is_runtime_protocol", False
    )


def maybe(inner: Type, name: Optional[str] = None) -> Maybe:
    return Maybe(inner, name)


def list_of(element: Type, container: str = "list", name: Optional[str] = None) -> ListOf:
    return ListOf(element, container, name)


def dict_of(key: Type, value: Type, name: Optional[str] = None) -> DictOf:
    return DictOf(key, value, name)


def interface(props: dict[str, Type], name: Optional[str] = None) -> Interface:
    return Interface(props, name)


def union(types: list[Type], name: Optional[str] = None) -> UnionOf:
    return UnionOf(types, name)


def intersection(types: list[Type], name: Optional[str] = None) -> IntersectionOf:
    return IntersectionOf(types, name)


def refinement(base: Type, predicate: Callable[[Any], bool], name: Optional[str] = None) -> Refinement:
    return Refinement(base, predicate, name)


def tuple_of(types: list[Type], variadic: bool = False, name: Optional[str] = None) -> TupleOf:
    return TupleOf(types, variadic, name)


def func(params: Optional[list[Type]], returns: Type, name: Optional[str] = None) -> Func:
    return Func(params, returns, name)


def literal(value: Any, name: Optional[str] = None) -> LiteralOf:
    return LiteralOf(value, name)


def lazy(thunk: Callable[[], Type]) -> Lazy:
    return Lazy(thunk)


def check(value: Any, expected: Type, label: str) -> Any:
    """
    Validate value against expected and return it unchanged.

    Raises:
        ValidationError: For the first mismatch found
    """
    found = expected.errors(value, (label,))
    if found:
        raise found[0]
    return value


def reify(expected: Type) -> Type:
    """Return the runtime model of a type for introspection."""
    return expected
