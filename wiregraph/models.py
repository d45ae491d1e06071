"""
Core Data Models for wiregraph

This module defines the canonical data structures shared by the graph
engine, the variable namer and the front end:
- TypeKey: Identity of a type in the target type system
- Provider: Descriptor of a constructor or static factory
- Position: Source location used for diagnostics

These models are designed to be:
- Immutable (frozen dataclasses), so they can key dictionaries
- Produced by the front end and read-only to the engine
- Free of any reflective type inspection: the front end resolves the
  kind of every type once and records it in the TypeKey
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TypeKind(Enum):
    """
    Capability tag of a TypeKey.

    States:
        NAMED: A declared (class or aliased) type with a name of its own.
        MAP: A mapping type with a key and a value type.
        ELEMENT: A wrapper around a single element type
                 (list, set, optional, pointer-like wrappers).
        STRUCT: An anonymous record of field types.
        OTHER: Anything else (builtin scalars, unions, callables).
    """

    NAMED = "named"
    MAP = "map"
    ELEMENT = "element"
    STRUCT = "struct"
    OTHER = "other"


@dataclass(frozen=True)
class MethodSignature:
    """
    Shape of a method declared on a named type.

    Attributes:
        name: Method name
        params: Number of parameters, excluding the receiver
        results: Number of results (0 for a method returning nothing)
    """

    name: str
    params: int = 0
    results: int = 0

    @property
    def is_nullary(self) -> bool:
        """Check if the method takes no parameters and returns nothing."""
        return self.params == 0 and self.results == 0


@dataclass(frozen=True)
class TypeKey:
    """
    Opaque, hashable identity of a type.

    Two keys are equal iff the underlying types are structurally identical:
    same kind, same declared name and declaring scope, same element types.
    Two classes that are both called ``Foo`` but live in different modules
    are different keys.

    Attributes:
        kind: Capability tag resolved by the front end
        name: Declared name for NAMED types, spelling for OTHER types
        scope: Declaring module of a NAMED type
        args: Component types (MAP: key and value, ELEMENT: the element,
            STRUCT: the fields in declaration order)
        wrapper: Kind of wrapper for ELEMENT types (e.g. "list", "optional")
        methods: Method set of a NAMED type. Not part of the identity.
    """

    kind: TypeKind
    name: str = ""
    scope: str = ""
    args: tuple["TypeKey", ...] = ()
    wrapper: str = ""
    methods: tuple[MethodSignature, ...] = field(default=(), compare=False, hash=False)

    @classmethod
    def named(
        cls, name: str, scope: str = "", methods: tuple[MethodSignature, ...] = ()
    ) -> "TypeKey":
        """Create a key for a declared type."""
        return cls(TypeKind.NAMED, name=name, scope=scope, methods=tuple(methods))

    @classmethod
    def basic(cls, name: str) -> "TypeKey":
        """Create a key for a builtin or otherwise unnamed scalar type."""
        return cls(TypeKind.OTHER, name=name)

    @classmethod
    def map_of(cls, key: "TypeKey", value: "TypeKey") -> "TypeKey":
        """Create a key for a mapping from ``key`` to ``value``."""
        return cls(TypeKind.MAP, args=(key, value))

    @classmethod
    def element_of(cls, wrapper: str, elem: "TypeKey") -> "TypeKey":
        """Create a key for a single-element wrapper such as ``list[elem]``."""
        return cls(TypeKind.ELEMENT, args=(elem,), wrapper=wrapper)

    @classmethod
    def struct_of(cls, *fields: "TypeKey") -> "TypeKey":
        """Create a key for an anonymous record of the given field types."""
        return cls(TypeKind.STRUCT, args=tuple(fields))

    @property
    def key(self) -> Optional["TypeKey"]:
        """Key type of a MAP, None otherwise."""
        return self.args[0] if self.kind == TypeKind.MAP else None

    @property
    def value(self) -> Optional["TypeKey"]:
        """Value type of a MAP, None otherwise."""
        return self.args[1] if self.kind == TypeKind.MAP else None

    @property
    def elem(self) -> Optional["TypeKey"]:
        """Element type of an ELEMENT wrapper, None otherwise."""
        return self.args[0] if self.kind == TypeKind.ELEMENT else None

    @property
    def fields(self) -> tuple["TypeKey", ...]:
        """Field types of a STRUCT, empty otherwise."""
        return self.args if self.kind == TypeKind.STRUCT else ()

    def __str__(self) -> str:
        if self.kind == TypeKind.NAMED:
            return f"{self.scope}.{self.name}" if self.scope else self.name
        if self.kind == TypeKind.MAP:
            return f"dict[{self.args[0]}, {self.args[1]}]"
        if self.kind == TypeKind.ELEMENT:
            return f"{self.wrapper}[{self.args[0]}]"
        if self.kind == TypeKind.STRUCT:
            return "tuple[" + ", ".join(str(f) for f in self.args) + "]"
        return self.name


# The error-capable output channel of a provider.
ERROR_TYPE = TypeKey.named("Exception", scope="builtins")


@dataclass(frozen=True)
class Position:
    """
    A source location.

    Attributes:
        file: Path of the source file
        line: 1-indexed line, 0 if unknown
        column: 0-indexed column
    """

    file: str = "<unknown>"
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


NO_POSITION = Position()


@dataclass(frozen=True)
class Provider:
    """
    Descriptor of a constructor or static factory.

    Produced by the front end, read-only to the engine. The declared results
    keep the error channel in place so that the engine can validate where
    it appears.

    Attributes:
        name: Qualified name of the function, for diagnostics
        position: Location of the declaration
        params: Parameter types in declaration order
        results: Declared result types in order, including ERROR_TYPE
        receiver: Type of the method receiver, None for plain functions

    Invariants (checked when the provider is added to a Container):
        - receiver is None
        - ERROR_TYPE, if present, is the last result
    """

    name: str
    position: Position = NO_POSITION
    params: tuple[TypeKey, ...] = ()
    results: tuple[TypeKey, ...] = ()
    receiver: Optional[TypeKey] = None

    @property
    def requires(self) -> tuple[TypeKey, ...]:
        """Types this provider needs as inputs."""
        return self.params

    @property
    def provides(self) -> tuple[TypeKey, ...]:
        """Non-error types this provider produces."""
        return tuple(t for t in self.results if t != ERROR_TYPE)

    @property
    def returns_error(self) -> bool:
        """Check if the last declared result is the error channel."""
        return bool(self.results) and self.results[-1] == ERROR_TYPE

    @property
    def has_early_error(self) -> bool:
        """Check if the error channel appears before the last result."""
        return ERROR_TYPE in self.results[:-1]

    @property
    def is_method(self) -> bool:
        """Check if this provider is backed by a method receiver."""
        return self.receiver is not None
