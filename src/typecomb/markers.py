"""
Annotation markers understood by the typecomb compiler.

They let annotated source run (and type-check) without being compiled:

    from typing import Annotated
    from typecomb.markers import Intersection, Refinement, reify

    def is_positive(n):
        return n > 0

    Positive: TypeAlias = Annotated[int, Refinement[is_positive]]
    PositiveModel = reify(Positive)

Uncompiled, Refinement[...] and Intersection[...] evaluate to typing.Any
and reify() returns its argument. Compiled, they become runtime
refinements, intersections and type models.
"""

from typing import Any, TypeVar

T = TypeVar("T")


class _Marker:
    def __init__(self, name: str) -> None:
        self._name = name

    def __getitem__(self, params: Any) -> Any:
        return Any

    def __repr__(self) -> str:
        return f"typecomb.markers.{self._name}"


Refinement = _Marker("Refinement")
Intersection = _Marker("Intersection")


def reify(tp: T) -> T:
    """Return the runtime model of a type (identity when not compiled)."""
    return tp
