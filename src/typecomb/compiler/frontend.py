"""
Python front end for typecomb.

Lowers a Python module into a ModuleUnit for the compiler core:
- Parses source with the ``ast`` module
- Collects the names the module binds (classes, imports, TypeVars)
- Translates annotations into static type nodes
- Records type aliases, TypedDicts, function signatures, ``cast`` calls
  and ``reify`` requests in source order

Recognized declaration forms:

    Person: TypeAlias = dict[str, int]
    type Tree = dict[str, Tree]            # recursive
    class Person(TypedDict): ...
    def f(a: int, b: Optional[str]): ...
    x = cast(Person, data)
    PersonModel = reify(Person)
"""

from __future__ import annotations

import ast
import io
import tokenize
from typing import Optional

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
from typecomb.compiler.type_nodes import (
    ArrayType,
    DictType,
    FunctionType,
    GenericParam,
    IntersectionType,
    LiteralType,
    NullableType,
    PrimitiveType,
    RecordField,
    RecordType,
    RefinementMarker,
    TupleType,
    TypeNode,
    TypeReference,
    UnionType,
)
from typecomb.config import CompilerOptions
from typecomb.utils.errors import (
    HostSyntaxError,
    SourceLocation,
    UnsupportedConstructError,
)


# Modules whose exports are interpreted by name rather than resolved
SPECIAL_MODULES = {
    "typing",
    "typing_extensions",
    "collections.abc",
    "builtins",
    "typecomb.markers",
}

# Builtin names usable as types without an import
BUILTIN_TYPE_NAMES = {
    "int",
    "float",
    "complex",
    "str",
    "bytes",
    "bool",
    "object",
    "list",
    "dict",
    "tuple",
    "set",
    "frozenset",
}

# Canonical name to primitive, when used without subscript
PRIMITIVE_NAMES: dict[str, str] = {
    "int": "int",
    "float": "float",
    "complex": "complex",
    "str": "str",
    "bytes": "bytes",
    "bool": "bool",
    "object": "object",
    "Any": "any",
    "NoneType": "none",
    "Callable": "function",
    "dict": "dict",
    "Dict": "dict",
    "Mapping": "dict",
    "MutableMapping": "dict",
}

# Canonical name to array container
ARRAY_CONTAINERS: dict[str, str] = {
    "list": "list",
    "List": "list",
    "Sequence": "sequence",
    "MutableSequence": "sequence",
    "set": "set",
    "Set": "set",
    "frozenset": "set",
    "FrozenSet": "set",
    "AbstractSet": "set",
    "MutableSet": "set",
}

DICT_NAMES = {"dict", "Dict", "Mapping", "MutableMapping"}
TUPLE_NAMES = {"tuple", "Tuple"}
TYPEVAR_FACTORIES = {"TypeVar", "ParamSpec", "TypeVarTuple"}


def parse_module(source: str, filename: str = "<string>") -> ast.Module:
    """Parse Python source, reporting syntax errors as HostSyntaxError."""
    try:
        return ast.parse(source, filename=filename)
    except SyntaxError as e:
        location = SourceLocation(e.lineno or 1, e.offset or 1, filename)
        raise HostSyntaxError(e.msg, location, source_line=(e.text or "").rstrip() or None) from e


def collect_comments(source: str) -> dict[int, str]:
    """Map line numbers to the comment text found on them."""
    comments: dict[int, str] = {}
    readline = io.StringIO(source).readline
    for token in tokenize.generate_tokens(readline):
        if token.type == tokenize.COMMENT:
            comments[token.start[0]] = token.string.lstrip("#").strip()
    return comments


def dotted(node: ast.expr) -> Optional[str]:
    """Return 'a.b.c' for a Name/Attribute chain, None otherwise."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = dotted(node.value)
        if base is not None:
            return f"{base}.{node.attr}"
    return None


class ModuleScope:
    """
    What a module binds, as needed to interpret annotations.

    Attributes:
        special_names: local name -> exported name from a special module
        special_modules: local (possibly dotted) names of special modules
        bindings: classes, imported names and imported modules
        generic_names: module level TypeVar names
        typeddict_names: classes found to be TypedDicts in the first pass
        type_only: names bound only under ``if TYPE_CHECKING:``
        records: TypedDict record types built so far
        reserved: every identifier bound anywhere
    """

    def __init__(self) -> None:
        self.special_names: dict[str, str] = {}
        self.special_modules: set[str] = set()
        self.bindings: dict[str, Binding] = {}
        self.generic_names: set[str] = set()
        self.typeddict_names: set[str] = set()
        self.type_only: set[str] = set()
        self.records: dict[str, RecordType] = {}
        self.shadowed: set[str] = set()
        self.reserved: set[str] = set()

    def canonical(self, node: ast.expr) -> Optional[str]:
        """Name of a special form or builtin type an expression refers to."""
        if isinstance(node, ast.Name):
            if node.id in self.special_names:
                return self.special_names[node.id]
            if node.id in BUILTIN_TYPE_NAMES and node.id not in self.shadowed:
                return node.id
            return None
        if isinstance(node, ast.Attribute):
            prefix = dotted(node.value)
            if prefix is not None and prefix in self.special_modules:
                return node.attr
        return None

    def is_type_checking_guard(self, node: ast.If) -> bool:
        """Whether an if statement only runs under a static type checker."""
        return self.canonical(node.test) == "TYPE_CHECKING"

    def is_type_only(self, name: str) -> bool:
        """Whether a (possibly dotted) name has no value when the module runs."""
        root = name.split(".", 1)[0]
        return root in self.type_only and root not in self.bindings


class ScopeCollector(ast.NodeVisitor):
    """First pass: imports, classes, TypeVars and reserved identifiers."""

    def __init__(self, scope: ModuleScope, filename: str) -> None:
        self.scope = scope
        self.filename = filename
        self.depth = 0
        self.type_checking = 0

    def _location(self, node: ast.AST) -> SourceLocation:
        return SourceLocation(node.lineno, node.col_offset + 1, self.filename)

    def _bind(self, name: str, kind: BindingKind, node: ast.AST) -> None:
        if self.type_checking:
            self.scope.type_only.add(name)
        else:
            self.scope.bindings[name] = Binding(name, kind, self._location(node))

    def visit_If(self, node: ast.If) -> None:
        if not self.scope.is_type_checking_guard(node):
            self.generic_visit(node)
            return
        self.visit(node.test)
        self.type_checking += 1
        for stmt in node.body:
            self.visit(stmt)
        self.type_checking -= 1
        for stmt in node.orelse:
            self.visit(stmt)

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            if alias.asname:
                local = alias.asname
                if alias.name in SPECIAL_MODULES:
                    self.scope.special_modules.add(local)
            else:
                local = alias.name.split(".", 1)[0]
                # import collections.abc binds collections, usable dotted
                for module in SPECIAL_MODULES:
                    if module == alias.name or module.startswith(alias.name + "."):
                        self.scope.special_modules.add(module)
            self.scope.reserved.add(local)
            if self.depth == 0 and alias.name not in SPECIAL_MODULES:
                self._bind(local, BindingKind.MODULE, node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        module = node.module or ""
        for alias in node.names:
            if alias.name == "*":
                continue
            local = alias.asname or alias.name
            self.scope.reserved.add(local)
            if module == "__future__":
                continue
            if module in SPECIAL_MODULES:
                self.scope.special_names[local] = alias.name
            elif f"{module}.{alias.name}" in SPECIAL_MODULES:
                self.scope.special_modules.add(local)
            elif self.depth == 0:
                self._bind(local, BindingKind.IMPORT, node)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self.scope.reserved.add(node.name)
        if self.depth == 0:
            self.scope.shadowed.add(node.name)
            if self.type_checking:
                self.scope.type_only.add(node.name)
            elif self._is_typeddict(node):
                self.scope.typeddict_names.add(node.name)
            else:
                self._bind(node.name, BindingKind.CLASS, node)
        self.depth += 1
        self.generic_visit(node)
        self.depth -= 1

    def _is_typeddict(self, node: ast.ClassDef) -> bool:
        for base in node.bases:
            if self.scope.canonical(base) == "TypedDict":
                return True
            name = dotted(base)
            if name is not None and name in self.scope.typeddict_names:
                return True
        return False

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        self.scope.reserved.add(node.name)
        if self.depth == 0:
            self.scope.shadowed.add(node.name)
        self.depth += 1
        self.generic_visit(node)
        self.depth -= 1

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function

    def visit_Assign(self, node: ast.Assign) -> None:
        if self.depth == 0 and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
            target = node.targets[0].id
            if isinstance(node.value, ast.Call) and self.scope.canonical(node.value.func) in TYPEVAR_FACTORIES:
                self.scope.generic_names.add(target)
            self.scope.shadowed.add(target)
            if self.type_checking:
                self.scope.type_only.add(target)
        self.generic_visit(node)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        if self.depth == 0 and self.type_checking and isinstance(node.target, ast.Name):
            self.scope.type_only.add(node.target.id)
        self.generic_visit(node)

    def visit_TypeAlias(self, node: ast.AST) -> None:
        if self.depth == 0 and self.type_checking:
            self.scope.type_only.add(node.name.id)
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        self.scope.reserved.add(node.id)

    def visit_arg(self, node: ast.arg) -> None:
        self.scope.reserved.add(node.arg)
        self.generic_visit(node)

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.name:
            self.scope.reserved.add(node.name)
        self.generic_visit(node)

    # Capture patterns bind names without an ast.Name node

    def visit_MatchAs(self, node: ast.MatchAs) -> None:
        if node.name:
            self.scope.reserved.add(node.name)
        self.generic_visit(node)

    def visit_MatchStar(self, node: ast.MatchStar) -> None:
        if node.name:
            self.scope.reserved.add(node.name)

    def visit_MatchMapping(self, node: ast.MatchMapping) -> None:
        if node.rest:
            self.scope.reserved.add(node.rest)
        self.generic_visit(node)


class AnnotationTranslator:
    """
    Translates annotation expressions into static type nodes.

    Example:
        translator = AnnotationTranslator(scope, "mod.py")
        translator.translate(ast.parse("Optional[int]", mode="eval").body)
        # NullableType(PrimitiveType("int"))
    """

    def __init__(self, scope: ModuleScope, filename: str = "<string>") -> None:
        self.scope = scope
        self.filename = filename

    def location(self, node: ast.AST) -> SourceLocation:
        return SourceLocation(node.lineno, node.col_offset + 1, self.filename)

    def unsupported(self, node: ast.AST, what: Optional[str] = None) -> UnsupportedConstructError:
        return UnsupportedConstructError(what or f"'{ast.unparse(node)}'", self.location(node))

    def translate(self, node: ast.expr, generics: frozenset[str] = frozenset()) -> TypeNode:
        loc = self.location(node)

        if isinstance(node, ast.Constant):
            if node.value is None:
                return PrimitiveType("none", loc)
            if isinstance(node.value, str):
                return self._forward_reference(node, generics)
            raise self.unsupported(node)

        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            return UnionType(
                (self.translate(node.left, generics), self.translate(node.right, generics)),
                loc,
            )

        if isinstance(node, ast.Subscript):
            return self._subscript(node, generics)

        if isinstance(node, (ast.Name, ast.Attribute)):
            return self._name(node, generics)

        raise self.unsupported(node)

    def _forward_reference(self, node: ast.Constant, generics: frozenset[str]) -> TypeNode:
        try:
            parsed = ast.parse(node.value.strip(), mode="eval")
        except SyntaxError as e:
            raise HostSyntaxError(
                f"invalid forward reference {node.value!r}: {e.msg}", self.location(node)
            ) from e
        # Point every node of the parsed string at the string literal
        for child in ast.walk(parsed.body):
            if hasattr(child, "lineno"):
                ast.copy_location(child, node)
        return self.translate(parsed.body, generics)

    def _name(self, node: ast.Name | ast.Attribute, generics: frozenset[str]) -> TypeNode:
        loc = self.location(node)
        canonical = self.scope.canonical(node)
        if canonical is not None:
            if canonical in PRIMITIVE_NAMES:
                return PrimitiveType(PRIMITIVE_NAMES[canonical], loc)
            if canonical in ARRAY_CONTAINERS:
                return ArrayType(PrimitiveType("any", loc), ARRAY_CONTAINERS[canonical], loc)
            if canonical in TUPLE_NAMES:
                return TupleType((PrimitiveType("any", loc),), variadic=True, location=loc)
            raise self.unsupported(node)

        name = dotted(node)
        if name is None:
            raise self.unsupported(node)
        if name in generics or name in self.scope.generic_names:
            return GenericParam(name, loc)
        if self.scope.is_type_only(name):
            # Nothing to check against at runtime
            return PrimitiveType("any", loc)
        return TypeReference(name, (), loc)

    def _subscript(self, node: ast.Subscript, generics: frozenset[str]) -> TypeNode:
        loc = self.location(node)
        canonical = self.scope.canonical(node.value)
        args = list(node.slice.elts) if isinstance(node.slice, ast.Tuple) else [node.slice]

        if canonical is None:
            name = dotted(node.value)
            if name is None:
                raise self.unsupported(node)
            if self.scope.is_type_only(name):
                return PrimitiveType("any", loc)
            # Arguments are kept for the record; generic types are erased
            type_args = tuple(self.translate(a, generics) for a in args)
            return TypeReference(name, type_args, loc)

        if canonical == "Optional":
            self._expect_args(node, args, 1)
            return NullableType(self.translate(args[0], generics), loc)

        if canonical == "Union":
            return UnionType(tuple(self.translate(a, generics) for a in args), loc)

        if canonical in ARRAY_CONTAINERS:
            self._expect_args(node, args, 1)
            return ArrayType(self.translate(args[0], generics), ARRAY_CONTAINERS[canonical], loc)

        if canonical in DICT_NAMES:
            self._expect_args(node, args, 2)
            return DictType(
                self.translate(args[0], generics), self.translate(args[1], generics), loc
            )

        if canonical in TUPLE_NAMES:
            return self._tuple(node, args, generics)

        if canonical == "Callable":
            return self._callable(node, args, generics)

        if canonical == "Literal":
            values = tuple(self._literal(a) for a in args)
            if len(values) == 1:
                return values[0]
            return UnionType(values, loc)

        if canonical == "Annotated":
            base = self.translate(args[0], generics)
            markers = [self._marker(a) for a in args[1:] if self._is_marker(a)]
            if markers:
                return IntersectionType((base, *markers), loc)
            return base

        if canonical == "Intersection":
            return IntersectionType(tuple(self.translate(a, generics) for a in args), loc)

        if canonical == "Refinement":
            return self._marker(node)

        raise self.unsupported(node)

    def _tuple(self, node: ast.Subscript, args: list[ast.expr], generics: frozenset[str]) -> TypeNode:
        loc = self.location(node)
        # tuple[()] is the empty tuple
        if len(args) == 1 and isinstance(args[0], ast.Tuple) and not args[0].elts:
            return TupleType((), location=loc)
        if len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis:
            return TupleType((self.translate(args[0], generics),), variadic=True, location=loc)
        return TupleType(tuple(self.translate(a, generics) for a in args), location=loc)

    def _callable(self, node: ast.Subscript, args: list[ast.expr], generics: frozenset[str]) -> TypeNode:
        self._expect_args(node, args, 2)
        params_node, ret_node = args
        ret = self.translate(ret_node, generics)
        if isinstance(params_node, ast.Constant) and params_node.value is Ellipsis:
            return FunctionType(None, ret, self.location(node))
        if isinstance(params_node, ast.List):
            params = tuple(self.translate(p, generics) for p in params_node.elts)
            return FunctionType(params, ret, self.location(node))
        # Callable[P, R] with a ParamSpec
        name = dotted(params_node)
        if name is not None and (name in generics or name in self.scope.generic_names):
            return FunctionType(None, ret, self.location(node))
        raise self.unsupported(node)

    def _literal(self, node: ast.expr) -> TypeNode:
        loc = self.location(node)
        if isinstance(node, ast.Constant) and isinstance(node.value, (str, bytes, int, bool, type(None))):
            if node.value is None:
                return PrimitiveType("none", loc)
            return LiteralType(node.value, loc)
        if (
            isinstance(node, ast.UnaryOp)
            and isinstance(node.op, ast.USub)
            and isinstance(node.operand, ast.Constant)
            and isinstance(node.operand.value, int)
        ):
            return LiteralType(-node.operand.value, loc)
        raise self.unsupported(node, f"literal value '{ast.unparse(node)}'")

    def _is_marker(self, node: ast.expr) -> bool:
        return isinstance(node, ast.Subscript) and self.scope.canonical(node.value) == "Refinement"

    def _marker(self, node: ast.expr) -> RefinementMarker:
        if not self._is_marker(node):
            raise self.unsupported(node)
        predicate = dotted(node.slice)
        if predicate is None:
            raise self.unsupported(node, f"refinement predicate '{ast.unparse(node.slice)}'")
        return RefinementMarker(predicate, self.location(node))

    def _expect_args(self, node: ast.Subscript, args: list[ast.expr], count: int) -> None:
        if len(args) != count:
            raise self.unsupported(
                node, f"'{ast.unparse(node)}' (expected {count} type argument(s))"
            )

    def record_field(self, node: ast.AnnAssign, total: bool, generics: frozenset[str]) -> RecordField:
        """Translate one TypedDict field, honouring Required/NotRequired."""
        annotation = node.annotation
        optional = not total
        if isinstance(annotation, ast.Subscript):
            qualifier = self.scope.canonical(annotation.value)
            if qualifier in ("Required", "NotRequired"):
                optional = qualifier == "NotRequired"
                annotation = annotation.slice
        return RecordField(
            name=node.target.id,
            type=self.translate(annotation, generics),
            optional=optional,
            location=self.location(node),
        )


class DeclarationCollector(ast.NodeVisitor):
    """Second pass: typed declarations in source order."""

    def __init__(
        self,
        scope: ModuleScope,
        translator: AnnotationTranslator,
        comments: dict[int, str],
        options: CompilerOptions,
    ) -> None:
        self.scope = scope
        self.translator = translator
        self.comments = comments
        self.options = options
        self.declarations: list = []
        self.depth = 0
        self.generic_stack: list[frozenset[str]] = [frozenset()]

    @property
    def generics(self) -> frozenset[str]:
        return self.generic_stack[-1]

    def _push_generics(self, node: ast.AST) -> None:
        params = getattr(node, "type_params", None) or []
        names = frozenset(p.name for p in params)
        self.generic_stack.append(self.generics | names)

    def _is_recursive(self, node: ast.AST) -> bool:
        marker = self.options.recursive_marker.lower()
        for line in (node.lineno - 1, node.lineno):
            if self.comments.get(line, "").lower() == marker:
                return True
        return False

    def visit_If(self, node: ast.If) -> None:
        if not self.scope.is_type_checking_guard(node):
            self.generic_visit(node)
            return
        # The guarded body never runs, so nothing in it is declared
        for stmt in node.orelse:
            self.visit(stmt)

    # -------------------------------------------------------------------------
    # Type declarations
    # -------------------------------------------------------------------------

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        record = self._record(node)
        if record is not None:
            self.declarations.append(
                TypeDeclaration(
                    name=node.name,
                    type=record,
                    recursive=self._is_recursive(node),
                    top_level=self.depth == 0,
                    location=self.translator.location(node),
                    handle=node,
                )
            )
            return
        self._push_generics(node)
        self.depth += 1
        self.generic_visit(node)
        self.depth -= 1
        self.generic_stack.pop()

    def _record(self, node: ast.ClassDef) -> Optional[RecordType]:
        inherited: list[RecordField] = []
        is_record = False
        for base in node.bases:
            if self.scope.canonical(base) == "TypedDict":
                is_record = True
                continue
            name = dotted(base)
            if name is not None and name in self.scope.records:
                is_record = True
                inherited.extend(self.scope.records[name].fields)
        if not is_record:
            return None

        total = True
        for keyword in node.keywords:
            if keyword.arg == "total" and isinstance(keyword.value, ast.Constant):
                total = bool(keyword.value.value)

        self._push_generics(node)
        fields = {f.name: f for f in inherited}
        for stmt in node.body:
            if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                record_field = self.translator.record_field(stmt, total, self.generics)
                fields[record_field.name] = record_field
        self.generic_stack.pop()

        record = RecordType(tuple(fields.values()), node.name, self.translator.location(node))
        self.scope.records[node.name] = record
        return record

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        if (
            isinstance(node.target, ast.Name)
            and node.value is not None
            and self.scope.canonical(node.annotation) == "TypeAlias"
        ):
            self.declarations.append(
                TypeDeclaration(
                    name=node.target.id,
                    type=self.translator.translate(node.value, self.generics),
                    recursive=self._is_recursive(node),
                    top_level=self.depth == 0,
                    location=self.translator.location(node),
                    handle=node,
                )
            )
            return
        self.generic_visit(node)

    def visit_TypeAlias(self, node: ast.AST) -> None:
        self._push_generics(node)
        self.declarations.append(
            TypeDeclaration(
                name=node.name.id,
                type=self.translator.translate(node.value, self.generics),
                recursive=self._is_recursive(node),
                top_level=self.depth == 0,
                location=self.translator.location(node),
                handle=node,
            )
        )
        self.generic_stack.pop()

    # -------------------------------------------------------------------------
    # Functions
    # -------------------------------------------------------------------------

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        for decorator in node.decorator_list:
            self.visit(decorator)
        for default in node.args.defaults + [d for d in node.args.kw_defaults if d is not None]:
            self.visit(default)

        self._push_generics(node)
        self.declarations.append(
            FunctionDeclaration(
                name=node.name,
                params=tuple(self._parameters(node.args)),
                location=self.translator.location(node),
                handle=node,
            )
        )
        self.depth += 1
        for stmt in node.body:
            self.visit(stmt)
        self.depth -= 1
        self.generic_stack.pop()

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function

    def _parameters(self, args: ast.arguments) -> list[Parameter]:
        ordered = [(a, ParameterKind.POSITIONAL_ONLY) for a in args.posonlyargs]
        ordered += [(a, ParameterKind.POSITIONAL) for a in args.args]
        if args.vararg is not None:
            ordered.append((args.vararg, ParameterKind.VAR_POSITIONAL))
        ordered += [(a, ParameterKind.KEYWORD_ONLY) for a in args.kwonlyargs]
        if args.kwarg is not None:
            ordered.append((args.kwarg, ParameterKind.VAR_KEYWORD))

        params = []
        for arg, kind in ordered:
            annotation = None
            if arg.annotation is not None:
                annotation = self.translator.translate(arg.annotation, self.generics)
            params.append(
                Parameter(
                    name=arg.arg,
                    annotation=annotation,
                    kind=kind,
                    location=self.translator.location(arg),
                )
            )
        return params

    # -------------------------------------------------------------------------
    # Casts and reification
    # -------------------------------------------------------------------------

    def visit_Assign(self, node: ast.Assign) -> None:
        value = node.value
        if (
            len(node.targets) == 1
            and isinstance(node.targets[0], ast.Name)
            and isinstance(value, ast.Call)
            and self.scope.canonical(value.func) == "reify"
        ):
            if len(value.args) != 1 or value.keywords:
                raise self.translator.unsupported(value, "reify() takes exactly one type")
            self.declarations.append(
                ReifyDeclaration(
                    target=node.targets[0].id,
                    type=self.translator.translate(value.args[0], self.generics),
                    location=self.translator.location(node),
                    handle=node,
                )
            )
            return
        self.generic_visit(node)

    def visit_Call(self, node: ast.Call) -> None:
        if self.scope.canonical(node.func) == "cast":
            if len(node.args) != 2 or node.keywords:
                raise self.translator.unsupported(node, "cast() takes a type and a value")
            type_node, value = node.args
            self.declarations.append(
                CastExpression(
                    type=self.translator.translate(type_node, self.generics),
                    label=ast.unparse(value),
                    location=self.translator.location(node),
                    handle=node,
                )
            )
            self.visit(value)
            return
        self.generic_visit(node)


class PythonFrontend:
    """
    Lowers Python source into a ModuleUnit.

    Example:
        unit = PythonFrontend().lower("def f(a: int): ...", "f.py")
        unit.declarations[0].params[0].annotation   # PrimitiveType("int")
    """

    def __init__(self, options: Optional[CompilerOptions] = None) -> None:
        self.options = options or CompilerOptions()

    def lower(self, source: str, filename: str = "<string>") -> ModuleUnit:
        tree = parse_module(source, filename)

        scope = ModuleScope()
        ScopeCollector(scope, filename).visit(tree)

        translator = AnnotationTranslator(scope, filename)
        collector = DeclarationCollector(scope, translator, collect_comments(source), self.options)
        collector.visit(tree)

        return ModuleUnit(
            filename=filename,
            declarations=collector.declarations,
            bindings=list(scope.bindings.values()),
            reserved_names=scope.reserved,
            source_lines=source.splitlines(),
            handle=tree,
        )
