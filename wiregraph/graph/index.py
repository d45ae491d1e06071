"""
Reverse indices from types to graph nodes.

A Container keeps two TypeIndex instances, one mapping each type to the
nodes that provide it and one mapping each type to the nodes that require
it. Edges are never stored; every graph query is answered from these two
indices.
"""

from typing import TYPE_CHECKING, Iterator

from wiregraph.models import TypeKey

if TYPE_CHECKING:
    from wiregraph.graph.nodes import Node


class TypeIndex:
    """
    Multimap from TypeKey to the nodes that reference it.

    Types are kept in first-seen order and nodes in insertion order, so
    every query over the index is deterministic.
    """

    def __init__(self) -> None:
        self._nodes: dict[TypeKey, list["Node"]] = {}

    def add_node(self, typ: TypeKey, node: "Node") -> None:
        """
        Record that ``node`` references ``typ``.

        Adding the same node twice for the same type is a no-op.

        Args:
            typ: The referenced type
            node: The referencing node
        """
        nodes = self._nodes.setdefault(typ, [])
        if not any(existing is node for existing in nodes):
            nodes.append(node)

    def nodes(self, typ: TypeKey) -> list["Node"]:
        """Return the nodes that reference ``typ`` (empty if none)."""
        return list(self._nodes.get(typ, ()))

    def types(self) -> list[TypeKey]:
        """Return every type referenced by at least one node."""
        return list(self._nodes)

    def __contains__(self, typ: object) -> bool:
        return typ in self._nodes

    def __iter__(self) -> Iterator[TypeKey]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)
