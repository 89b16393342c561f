"""
typecomb Runtime Support.

The combinator library compiled modules call into, conventionally
imported as ``t``:

    import typecomb.runtime as t

    Person = t.interface({"name": t.Str, "surname": t.maybe(t.Str)}, name="Person")

    def greet(person):
        t.check(person, Person, "person")
        ...
"""

from typecomb.runtime.types import (
    Any_ as Any,
    Bool,
    Bytes,
    Complex,
    Dict,
    DictOf,
    Func,
    Function,
    Int,
    Interface,
    IntersectionOf,
    Irreducible,
    Lazy,
    ListOf,
    LiteralOf,
    Maybe,
    Nil,
    Number,
    Refinement,
    Str,
    TupleOf,
    Type,
    UnionOf,
    ValidationError,
    check,
    dict_of,
    func,
    interface,
    intersection,
    irreducible,
    lazy,
    list_of,
    literal,
    maybe,
    refinement,
    reify,
    tuple_of,
    union,
)

__all__ = [
    # Errors
    "ValidationError",
    # Primitives
    "Any",
    "Nil",
    "Str",
    "Int",
    "Number",
    "Complex",
    "Bool",
    "Bytes",
    "Function",
    "Dict",
    # Combinators
    "irreducible",
    "maybe",
    "list_of",
    "dict_of",
    "interface",
    "union",
    "intersection",
    "refinement",
    "tuple_of",
    "func",
    "literal",
    "lazy",
    "check",
    "reify",
    # Type classes
    "Type",
    "Irreducible",
    "Maybe",
    "ListOf",
    "DictOf",
    "Interface",
    "UnionOf",
    "IntersectionOf",
    "Refinement",
    "TupleOf",
    "Func",
    "LiteralOf",
    "Lazy",
]
