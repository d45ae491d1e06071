"""
Naming module for wiregraph.

This module allocates deterministic, collision-free variable names for the
values produced by a generated builder function.
"""

from wiregraph.naming.namer import VarNamer, BasenameGenerator, build_type_name
from wiregraph.naming.table import NameTable

__all__ = [
    "VarNamer",
    "BasenameGenerator",
    "NameTable",
    "build_type_name",
]
