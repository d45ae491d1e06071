"""
LibCST-based Provider Extractor

This module is the front end of wiregraph: it reads Python source and
produces the Provider descriptors and type identities the graph engine
works on.

Key Components:
    - DeclarationCollector: CST visitor that collects classes, imports and
      provider functions of one module
    - TypeResolver: maps annotation expressions to TypeKeys
    - extract_providers_from_source: Main entry point for string-based extraction
    - extract_providers_from_file: Entry point for file-based extraction

Design Decisions:
    - Providers are functions marked with a decorator (``@provider`` by
      default), so helpers in the same module stay out of the graph
    - Methods are reported with their class as receiver; the Container
      decides that they are invalid. ``@staticmethod`` providers are
      static factories and have no receiver
    - Declarations are collected for every module first and resolved
      afterwards, so a class is known (with its methods) no matter which
      module or line declares it
    - Annotations are resolved syntactically; nothing is imported or executed

Limitations:
    - Type aliases and generics defined in user code are not expanded
    - Star imports are ignored
"""

import builtins
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider

from wiregraph.models import ERROR_TYPE, MethodSignature, Position, Provider, TypeKey, TypeKind

DEFAULT_PROVIDER_MARKER = "provider"

ERROR_NAMES = {"Exception", "BaseException"}

ELEMENT_WRAPPERS = {
    "list": "list",
    "List": "list",
    "set": "set",
    "Set": "set",
    "frozenset": "frozenset",
    "FrozenSet": "frozenset",
    "Sequence": "sequence",
    "Collection": "collection",
    "Iterable": "iterable",
    "Iterator": "iterator",
    "deque": "deque",
    "Deque": "deque",
    "Optional": "optional",
    "type": "type",
    "Type": "type",
}

MAP_WRAPPERS = {"dict", "Dict", "Mapping", "MutableMapping", "defaultdict", "OrderedDict"}

TUPLE_NAMES = {"tuple", "Tuple"}


@dataclass
class ClassInfo:
    """
    A class declared in a scanned module.

    Attributes:
        name: Class name
        scope: Dotted module (and enclosing class) path
        methods: Signatures of the methods declared in the class body
        bases: Base class expressions, in declaration order
    """

    name: str
    scope: str
    methods: tuple[MethodSignature, ...] = ()
    bases: tuple[cst.BaseExpression, ...] = ()


@dataclass
class ProviderInfo:
    """
    Raw information about a marked provider function.

    This is an intermediate representation before annotations are
    resolved into a Provider.

    Attributes:
        name: Simple function name
        qualified_name: Module, class and function name joined by dots
        function: The CST node of the definition
        class_name: Name of the enclosing class, if any
        class_scope: Scope of the enclosing class, if any
        is_static: True for ``@staticmethod`` providers
        line: 1-indexed line of the definition
        column: 0-indexed column of the definition
    """

    name: str
    qualified_name: str
    function: cst.FunctionDef
    class_name: Optional[str] = None
    class_scope: Optional[str] = None
    is_static: bool = False
    line: int = 0
    column: int = 0


@dataclass
class ModuleDeclarations:
    """
    Everything the resolver needs to know about one module.

    Attributes:
        module_name: Dotted module name
        file_path: Path reported in provider positions
        classes: Classes declared in the module
        providers: Marked provider functions
        imported_names: Local alias -> (module, name) for ``from x import y``
        module_aliases: Local alias -> module for ``import x`` / ``import x as y``
    """

    module_name: str
    file_path: str
    classes: list[ClassInfo] = field(default_factory=list)
    providers: list[ProviderInfo] = field(default_factory=list)
    imported_names: dict[str, tuple[str, str]] = field(default_factory=dict)
    module_aliases: dict[str, str] = field(default_factory=dict)


class DeclarationCollector(cst.CSTVisitor):
    """
    CST Visitor that collects the declarations of a single module.

    Handles:
        - Module-level and nested classes (with their method signatures)
        - Marked provider functions at module level and in class bodies
        - ``import`` and ``from ... import`` statements, including relative ones

    Function bodies are not entered: providers and classes nested in
    functions are not part of the graph.

    Usage:
        wrapper = MetadataWrapper(module)
        collector = DeclarationCollector("pkg.mod", "pkg/mod.py")
        wrapper.visit(collector)
        declarations = collector.declarations
    """

    METADATA_DEPENDENCIES = (PositionProvider,)

    def __init__(
        self,
        module_name: str = "",
        file_path: str = "<source>",
        marker: str = DEFAULT_PROVIDER_MARKER,
    ) -> None:
        """
        Initialize the collector.

        Args:
            module_name: Dotted module name used as scope of declared classes
            file_path: Path reported in positions
            marker: Name of the decorator that marks providers
        """
        self.marker = marker
        self.declarations = ModuleDeclarations(module_name, file_path)
        self._class_stack: list[str] = []

    @property
    def _scope(self) -> str:
        return ".".join(p for p in [self.declarations.module_name, *self._class_stack] if p)

    def visit_ClassDef(self, node: cst.ClassDef) -> bool:
        """Record a class and its method signatures."""
        methods = tuple(
            _method_signature(stmt)
            for stmt in _body_statements(node.body)
            if isinstance(stmt, cst.FunctionDef) and not _has_decorator(stmt, "property")
        )
        self.declarations.classes.append(
            ClassInfo(
                node.name.value,
                self._scope,
                methods,
                tuple(arg.value for arg in node.bases),
            )
        )
        self._class_stack.append(node.name.value)
        return True

    def leave_ClassDef(self, original_node: cst.ClassDef) -> None:
        self._class_stack.pop()

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
        """Record the function if it is a marked provider; never enter its body."""
        if not _has_decorator(node, self.marker):
            return False

        try:
            pos = self.get_metadata(PositionProvider, node)
            line, column = pos.start.line, pos.start.column
        except KeyError:
            line, column = 0, 0

        in_class = len(self._class_stack) > 0
        self.declarations.providers.append(
            ProviderInfo(
                name=node.name.value,
                qualified_name=f"{self._scope}.{node.name.value}" if self._scope else node.name.value,
                function=node,
                class_name=self._class_stack[-1] if in_class else None,
                class_scope=".".join(
                    p for p in [self.declarations.module_name, *self._class_stack[:-1]] if p
                )
                if in_class
                else None,
                is_static=_has_decorator(node, "staticmethod"),
                line=line,
                column=column,
            )
        )
        return False

    def visit_Import(self, node: cst.Import) -> bool:
        for alias in node.names:
            dotted = _dotted_name(alias.name)
            if alias.asname is not None and isinstance(alias.asname.name, cst.Name):
                self.declarations.module_aliases[alias.asname.name.value] = dotted
            else:
                head = dotted.split(".")[0]
                self.declarations.module_aliases[head] = head
        return False

    def visit_ImportFrom(self, node: cst.ImportFrom) -> bool:
        if isinstance(node.names, cst.ImportStar):
            return False

        module = _dotted_name(node.module) if node.module is not None else ""
        if node.relative:
            module = _resolve_relative(self.declarations.module_name, len(node.relative), module)

        for alias in node.names:
            name = _dotted_name(alias.name)
            local = name
            if alias.asname is not None and isinstance(alias.asname.name, cst.Name):
                local = alias.asname.name.value
            self.declarations.imported_names[local] = (module, name)
        return False


class TypeResolver:
    """
    Maps annotation expressions of one module to TypeKeys.

    Attributes:
        declarations: The module whose annotations are resolved
        known_classes: Methods of every class seen in the scanned sources,
            keyed by (scope, name)
    """

    def __init__(
        self,
        declarations: ModuleDeclarations,
        known_classes: dict[tuple[str, str], tuple[MethodSignature, ...]],
    ) -> None:
        self.declarations = declarations
        self.known_classes = known_classes
        self._local_classes = {
            info.name: info.scope
            for info in declarations.classes
            if info.scope == declarations.module_name
        }

    def named(self, name: str, scope: str) -> TypeKey:
        return TypeKey.named(name, scope, self.known_classes.get((scope, name), ()))

    def resolve(self, expr: Optional[cst.BaseExpression]) -> TypeKey:
        """
        Resolve a single annotation.

        Args:
            expr: The annotation expression, None for a missing annotation

        Returns:
            The TypeKey denoted by the annotation
        """
        if expr is None:
            return TypeKey.basic("Any")

        if isinstance(expr, cst.Name):
            return self._resolve_name(expr.value)

        if isinstance(expr, cst.Attribute):
            dotted = _dotted_name(expr)
            head, _, rest = dotted.partition(".")
            if head in self.declarations.module_aliases:
                prefix = self.declarations.module_aliases[head]
            elif head in self.declarations.imported_names:
                module, name = self.declarations.imported_names[head]
                prefix = f"{module}.{name}" if module else name
            else:
                prefix = head
            scope = f"{prefix}.{rest}".rpartition(".")[0]
            return self.named(expr.attr.value, scope)

        if isinstance(expr, cst.SimpleString):
            value = expr.evaluated_value
            if isinstance(value, bytes):
                value = value.decode("utf-8")
            try:
                return self.resolve(cst.parse_expression(value))
            except cst.ParserSyntaxError:
                return TypeKey.basic(value)

        if isinstance(expr, cst.Subscript):
            return self._resolve_subscript(expr)

        if isinstance(expr, cst.BinaryOperation) and isinstance(expr.operator, cst.BitOr):
            return self._resolve_union(expr)

        return TypeKey.basic(_code(expr))

    def resolve_results(self, expr: Optional[cst.BaseExpression]) -> tuple[TypeKey, ...]:
        """
        Resolve a return annotation into the declared results.

        ``None`` (or no annotation) means no results and a fixed-length
        ``tuple[...]`` means one result per element.
        """
        if expr is None or (isinstance(expr, cst.Name) and expr.value == "None"):
            return ()

        if isinstance(expr, cst.Subscript) and _base_name(expr.value) in TUPLE_NAMES:
            elements = _subscript_elements(expr)
            if not any(_is_ellipsis(e) for e in elements):
                return tuple(self.resolve(e) for e in elements)

        return (self.resolve(expr),)

    def _resolve_name(self, name: str) -> TypeKey:
        if name in ERROR_NAMES:
            return ERROR_TYPE
        if name in self._local_classes:
            return self.named(name, self._local_classes[name])
        if name in self.declarations.imported_names:
            module, original = self.declarations.imported_names[name]
            return self.named(original, module)
        if name == "None" or name == "Any" or hasattr(builtins, name):
            return TypeKey.basic(name)
        return self.named(name, self.declarations.module_name)

    def _resolve_subscript(self, expr: cst.Subscript) -> TypeKey:
        base = _base_name(expr.value)
        elements = _subscript_elements(expr)

        if base in ELEMENT_WRAPPERS and len(elements) == 1:
            return TypeKey.element_of(ELEMENT_WRAPPERS[base], self.resolve(elements[0]))

        if base in MAP_WRAPPERS and len(elements) == 2:
            return TypeKey.map_of(self.resolve(elements[0]), self.resolve(elements[1]))

        if base == "Union":
            return self._resolve_optional(elements, expr)

        if base in TUPLE_NAMES:
            if len(elements) == 2 and _is_ellipsis(elements[1]):
                return TypeKey.element_of("tuple", self.resolve(elements[0]))
            return TypeKey.struct_of(*(self.resolve(e) for e in elements))

        return TypeKey.basic(_code(expr))

    def _resolve_union(self, expr: cst.BinaryOperation) -> TypeKey:
        return self._resolve_optional(_union_members(expr), expr)

    def _resolve_optional(
        self, members: list[cst.BaseExpression], expr: cst.BaseExpression
    ) -> TypeKey:
        # X | None and Union[X, None] mean Optional[X]; other unions stay opaque.
        non_none = [m for m in members if not (isinstance(m, cst.Name) and m.value == "None")]
        if len(non_none) == 1 and len(members) == 2:
            return TypeKey.element_of("optional", self.resolve(non_none[0]))
        return TypeKey.basic(_code(expr))

    def provider(self, info: ProviderInfo) -> Provider:
        """Build the Provider descriptor for a collected provider function."""
        params = _all_params(info.function.params)
        receiver = None
        if info.class_name is not None and not info.is_static:
            receiver = self.named(info.class_name, info.class_scope or "")
            params = params[1:]

        return Provider(
            name=info.qualified_name,
            position=Position(self.declarations.file_path, info.line, info.column),
            params=tuple(
                self.resolve(p.annotation.annotation if p.annotation else None) for p in params
            ),
            results=self.resolve_results(
                info.function.returns.annotation if info.function.returns else None
            ),
            receiver=receiver,
        )


def collect_declarations(
    source: str,
    module_name: str = "",
    file_path: str = "<source>",
    marker: str = DEFAULT_PROVIDER_MARKER,
) -> ModuleDeclarations:
    """
    Collect the declarations of one module.

    Raises:
        libcst.ParserSyntaxError: If the source code has syntax errors
    """
    module = cst.parse_module(source)

    wrapper = MetadataWrapper(module)
    collector = DeclarationCollector(module_name, file_path, marker)
    wrapper.visit(collector)

    return collector.declarations


def resolve_providers(modules: Iterable[ModuleDeclarations]) -> list[Provider]:
    """
    Resolve the providers of several modules against all of their classes.

    Args:
        modules: Declarations collected from every scanned module

    Returns:
        Provider descriptors, module by module in declaration order
    """
    modules = list(modules)
    known_classes = _method_sets(modules)

    providers = []
    for decl in modules:
        resolver = TypeResolver(decl, known_classes)
        providers.extend(resolver.provider(info) for info in decl.providers)
    return providers


def _method_sets(
    modules: list[ModuleDeclarations],
) -> dict[tuple[str, str], tuple[MethodSignature, ...]]:
    """
    Compute the method set of every scanned class, inherited methods included.

    A class keeps all methods of its own body; methods of scanned base
    classes are added depth-first, left to right, unless a method of the
    same name was already found. Bases outside the scanned sources
    contribute nothing.
    """
    own: dict[tuple[str, str], tuple[MethodSignature, ...]] = {}
    bases: dict[tuple[str, str], list[tuple[str, str]]] = {}
    for decl in modules:
        resolver = TypeResolver(decl, {})
        for info in decl.classes:
            key = (info.scope, info.name)
            own[key] = info.methods
            bases[key] = [
                (typ.scope, typ.name)
                for typ in (resolver.resolve(base) for base in info.bases)
                if typ.kind is TypeKind.NAMED
            ]

    merged: dict[tuple[str, str], tuple[MethodSignature, ...]] = {}

    def method_set(key: tuple[str, str], visiting: set) -> tuple[MethodSignature, ...]:
        if key in merged:
            return merged[key]
        if key not in own or key in visiting:
            return ()

        visiting.add(key)
        methods = list(own[key])
        seen = {method.name for method in methods}
        for base in bases[key]:
            for method in method_set(base, visiting):
                if method.name not in seen:
                    seen.add(method.name)
                    methods.append(method)
        visiting.discard(key)

        merged[key] = tuple(methods)
        return merged[key]

    for key in own:
        method_set(key, set())
    return merged


def extract_providers_from_source(
    source: str,
    module_name: str = "",
    file_path: str = "<source>",
    marker: str = DEFAULT_PROVIDER_MARKER,
) -> list[Provider]:
    """
    Extract all provider descriptors from Python source code.

    Args:
        source: Python source code as a string
        module_name: Optional module name used as scope of declared types
        file_path: Path reported in provider positions
        marker: Name of the decorator that marks providers

    Returns:
        List of Provider descriptors in declaration order

    Raises:
        libcst.ParserSyntaxError: If the source code has syntax errors

    Example:
        >>> source = '''
        ... class Config: ...
        ...
        ... @provider
        ... def new_config() -> Config:
        ...     return Config()
        ... '''
        >>> [str(t) for t in extract_providers_from_source(source)[0].provides]
        ['Config']
    """
    declarations = collect_declarations(source, module_name, file_path, marker)
    return resolve_providers([declarations])


def extract_providers_from_file(
    file_path: Union[Path, str],
    marker: str = DEFAULT_PROVIDER_MARKER,
) -> list[Provider]:
    """
    Extract all provider descriptors from a Python file.

    The module name is derived from the file name.

    Raises:
        FileNotFoundError: If the file doesn't exist
        libcst.ParserSyntaxError: If the file has syntax errors
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    source = file_path.read_text(encoding="utf-8")
    return extract_providers_from_source(
        source, module_name=file_path.stem, file_path=str(file_path), marker=marker
    )


def _body_statements(body: cst.BaseSuite) -> list[cst.CSTNode]:
    if isinstance(body, cst.IndentedBlock):
        return list(body.body)
    return []


def _decorator_name(decorator: cst.Decorator) -> Optional[str]:
    expr = decorator.decorator
    if isinstance(expr, cst.Call):
        expr = expr.func
    if isinstance(expr, cst.Name):
        return expr.value
    if isinstance(expr, cst.Attribute):
        return expr.attr.value
    return None


def _has_decorator(node: cst.FunctionDef, name: str) -> bool:
    return any(_decorator_name(d) == name for d in node.decorators)


def _all_params(params: cst.Parameters) -> list[cst.Param]:
    result = [*params.posonly_params, *params.params]
    if isinstance(params.star_arg, cst.Param):
        result.append(params.star_arg)
    result.extend(params.kwonly_params)
    if params.star_kwarg is not None:
        result.append(params.star_kwarg)
    return result


def _method_signature(node: cst.FunctionDef) -> MethodSignature:
    params = _all_params(node.params)
    if not _has_decorator(node, "staticmethod"):
        params = params[1:]

    returns = node.returns.annotation if node.returns else None
    no_result = returns is None or (isinstance(returns, cst.Name) and returns.value == "None")

    return MethodSignature(node.name.value, len(params), 0 if no_result else 1)


def _dotted_name(node: cst.BaseExpression) -> str:
    if isinstance(node, cst.Name):
        return node.value
    if isinstance(node, cst.Attribute):
        return f"{_dotted_name(node.value)}.{node.attr.value}"
    return _code(node)


def _base_name(node: cst.BaseExpression) -> str:
    if isinstance(node, cst.Attribute):
        return node.attr.value
    if isinstance(node, cst.Name):
        return node.value
    return ""


def _subscript_elements(node: cst.Subscript) -> list[cst.BaseExpression]:
    return [e.slice.value for e in node.slice if isinstance(e.slice, cst.Index)]


def _union_members(node: cst.BaseExpression) -> list[cst.BaseExpression]:
    if isinstance(node, cst.BinaryOperation) and isinstance(node.operator, cst.BitOr):
        return _union_members(node.left) + _union_members(node.right)
    return [node]


def _is_ellipsis(node: cst.BaseExpression) -> bool:
    return isinstance(node, cst.Ellipsis)


def _resolve_relative(module_name: str, level: int, module: str) -> str:
    # The package of a module is its name without the last component.
    parts = module_name.split(".")[:-level] if module_name else []
    if module:
        parts.append(module)
    return ".".join(parts)


def _code(node: cst.CSTNode) -> str:
    return cst.Module(body=[]).code_for_node(node)
