"""
Deterministic variable names for generated builder functions.

Every value produced by the generated code needs an identifier that is
human-legible, unique, and stable from one generation to the next. Names
are assigned in three steps:

    1. A basename is derived once per type from its declared name, e.g.
       ``Config`` -> ``config`` and ``dict[Host, Port]`` -> ``hostToPort``.
       Types without a usable name get ``var0``, ``var1``, ...
    2. Distinct types that derive the same basename are told apart by a
       letter suffix in order of first request: ``config``, ``config_A``,
       ``config_B``, ... A basename that is a Python keyword never appears
       bare.
    3. Further instances of the same type get a numeric suffix:
       ``config``, ``config_1``, ``config_2``, ...

Basenames never contain underscores, so the suffixes cannot collide with
another type's basename.
"""

import keyword
from string import ascii_uppercase
from typing import Optional

from wiregraph.models import TypeKey, TypeKind
from wiregraph.naming.table import NameTable


class VarNamer:
    """
    Allocates collision-free names per type and instance.

    Usage:
        namer = VarNamer()
        namer.name(config_type)     # "config"
        namer.name(config_type, 1)  # "config_1"
        namer.name(other_config)    # "config_A"
    """

    def __init__(self) -> None:
        self._basenames = BasenameGenerator()
        self._claimants: dict[str, list[TypeKey]] = {}
        self._names = NameTable()

    def name(self, typ: TypeKey, instance: int = 0) -> str:
        """
        Return the variable name for an instance of ``typ``.

        Args:
            typ: The type of the value
            instance: Index of the value among live values of the same type

        Returns:
            The variable name; identical for identical arguments

        Raises:
            ValueError: If instance is negative
        """
        if instance < 0:
            raise ValueError(f"instance must be non-negative, got {instance}")

        name = self._names.get(typ)
        if name is None:
            basename = self._basenames.basename(typ)
            claimants = self._claimants.setdefault(basename, [])
            if typ in claimants:
                index = claimants.index(typ)
            else:
                index = len(claimants)
                claimants.append(typ)

            name = build_type_name(basename, index)
            self._names.set(typ, name)

        return build_full_name(name, instance)


class BasenameGenerator:
    """Derives basenames from types, falling back to numbered names."""

    def __init__(self) -> None:
        self._next = 0

    def basename(self, typ: TypeKey) -> str:
        """
        Derive the basename of ``typ``.

        Each call that falls back to a generated name consumes a number,
        so callers should memoize the result per type.
        """
        varname = ""
        named: Optional[TypeKey] = None

        if typ.kind == TypeKind.MAP:
            varname = make_map_var_name(typ.key, typ.value)
        elif typ.kind == TypeKind.NAMED:
            named = typ
        elif typ.kind == TypeKind.ELEMENT:
            if typ.elem.kind == TypeKind.NAMED:
                named = typ.elem
        elif typ.kind == TypeKind.STRUCT:
            if typ.fields and typ.fields[0].kind == TypeKind.NAMED:
                named = typ.fields[0]

        if named is not None and not has_underscore(named.name):
            varname = to_lowercase_leading(named.name)

        if not varname:
            varname = generate_var_name(self._next)
            self._next += 1

        return varname


def make_map_var_name(key: TypeKey, value: TypeKey) -> str:
    """Return ``keyToValue`` if both types are usable named types, else ""."""
    if key.kind != TypeKind.NAMED or value.kind != TypeKind.NAMED:
        return ""

    keyname = to_lowercase_leading(key.name)
    valname = value.name
    if not keyname or not valname or has_underscore(keyname) or has_underscore(valname):
        return ""

    return f"{keyname}To{valname}"


def to_lowercase_leading(name: str) -> str:
    """Lower-case the first letter; "" if the name does not start with a letter."""
    if not name or not name[0].isalpha():
        return ""
    return name[0].lower() + name[1:]


def generate_var_name(number: int) -> str:
    return f"var{number}"


def has_underscore(name: str) -> bool:
    return "_" in name


def is_keyword(name: str) -> bool:
    """Check if ``name`` is reserved in the generated (Python) code."""
    return keyword.iskeyword(name)


def build_type_name(basename: str, index: int) -> str:
    """
    Return the name of the ``index``-th type claiming ``basename``.

    Index 0 keeps the bare basename; later indices get a letter suffix
    (1 -> A, ..., 26 -> Z, 27 -> BA). Keywords are shifted by one so that
    they are always suffixed.
    """
    if is_keyword(basename):
        index += 1

    if index == 0:
        return basename
    index -= 1

    suffix = []
    while index >= 26:
        suffix.append(ascii_uppercase[index % 26])
        index //= 26
    suffix.append(ascii_uppercase[index % 26])

    return f"{basename}_{''.join(reversed(suffix))}"


def build_full_name(name: str, instance: int) -> str:
    if instance == 0:
        return name
    return f"{name}_{instance}"
