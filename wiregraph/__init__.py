"""
wiregraph

Build-time dependency graph engine. Turns provider declarations
(constructors and static factories) into a directed graph from which a
code generator can emit a builder function for a root value.
"""

from wiregraph.models import ERROR_TYPE, MethodSignature, Position, Provider, TypeKey, TypeKind
from wiregraph.graph import Container
from wiregraph.naming import VarNamer

__all__ = [
    "ERROR_TYPE",
    "MethodSignature",
    "Position",
    "Provider",
    "TypeKey",
    "TypeKind",
    "Container",
    "VarNamer",
]
__version__ = "0.1.0"
