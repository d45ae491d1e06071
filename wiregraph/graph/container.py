"""
Dependency Container for wiregraph

This module exposes the dependencies implicit in a set of providers
(constructors and static factories) as a directed graph. An edge runs from
a node that provides a type to every node that requires that type.

Design Decisions:
    - Edges are never materialized or cached. Every query is answered from
      two reverse indices (provided-by and required-by) that are updated on
      each insertion, so adding a provider can never invalidate an edge
      list returned earlier.
    - Node identities come from a single monotonically increasing counter
      shared by providers, the root and the missing node.
    - The query surface mirrors a directed-graph interface (nodes,
      successors, predecessors, edges) and the graph can be exported to
      NetworkX for generic algorithms such as cycle detection and
      topological ordering.

Graph Properties:
    - Directed: edges point from provider to consumer
    - May have cycles; they are rejected when a build order is requested
    - The missing node stands in for every unmet requirement
    - At most one root node, which requires the root type and provides nothing
"""

from typing import Iterable, Optional

import networkx as nx

from wiregraph.errors import CyclicDependencyError, NoRootError, RootAlreadySetError
from wiregraph.graph.index import TypeIndex
from wiregraph.graph.nodes import (
    Edge,
    MissingNode,
    Node,
    ProviderNode,
    RootNode,
    validate_provider,
)
from wiregraph.graph.roots import DEFAULT_ROOT_METHOD, detect_root_type
from wiregraph.models import Provider, TypeKey


class Container:
    """
    A directed graph of providers, an optional root and the missing node.

    Providers are added one at a time and never removed. The root can be set
    explicitly with set_root() or detected automatically when a provider
    produces a runnable type; either way it can only be set once.

    Attributes:
        root_method: Name of the nullary method that makes a type runnable

    Usage:
        container = Container()
        container.add_provider(Provider("new_config", results=(config,)))
        container.add_provider(Provider("new_app", params=(config,), results=(app,)))
        for node in container.build_order():
            ...
    """

    def __init__(self, root_method: str = DEFAULT_ROOT_METHOD) -> None:
        """
        Initialize an empty container.

        Args:
            root_method: Name of the method used to detect the root type
        """
        self.root_method = root_method
        self._providers: list[ProviderNode] = []
        self._root: Optional[RootNode] = None
        self._missing: Optional[MissingNode] = None
        self._next_id = 0
        self._provided_by = TypeIndex()
        self._required_by = TypeIndex()

    def _allocate_id(self) -> int:
        node_id = self._next_id
        self._next_id += 1
        return node_id

    @property
    def missing_node(self) -> MissingNode:
        """The missing node, created on first access."""
        if self._missing is None:
            self._missing = MissingNode(self, self._allocate_id())
        return self._missing

    @property
    def has_root(self) -> bool:
        """Check if a root has been set."""
        return self._root is not None

    @property
    def node_count(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self.nodes())

    @property
    def edge_count(self) -> int:
        """Return the number of edges in the graph."""
        return sum(len(self.successors(node)) for node in self.nodes())

    def providers(self) -> list[ProviderNode]:
        """Return the provider nodes in insertion order."""
        return list(self._providers)

    def unsatisfied_types(self) -> list[TypeKey]:
        """
        Return the types required by some node but provided by none.

        This is the live view behind MissingNode.provides().
        """
        return [
            typ for typ in self._required_by.types() if not self._provided_by.nodes(typ)
        ]

    # Graph queries

    def has(self, node: object) -> bool:
        """
        Check if ``node`` belongs to this container.

        Nodes of other containers, and nodes whose identity is outside the
        range assigned so far, do not belong.
        """
        if not isinstance(node, Node) or node.container is not self:
            return False
        return node.id_in_range(self._next_id)

    def nodes(self) -> list[Node]:
        """
        Return every node of the graph, ordered by identity.

        The missing node is always included; the root node only once set.
        """
        result: list[Node] = [self.missing_node, *self._providers]
        if self._root is not None:
            result.append(self._root)
        return _by_id(result)

    def successors(self, node: Node) -> list[Node]:
        """
        Return the nodes reachable from ``node`` by a single edge.

        For the missing node these are the nodes with an unmet requirement;
        for any other node, the nodes requiring a type it provides.
        """
        if not self.has(node):
            return []

        provided = (
            self.unsatisfied_types() if isinstance(node, MissingNode) else node.provides()
        )
        return _by_id(
            consumer for typ in provided for consumer in self._required_by.nodes(typ)
        )

    def predecessors(self, node: Node) -> list[Node]:
        """
        Return the nodes with an edge to ``node``.

        For each type ``node`` requires these are the nodes providing it;
        the missing node is included once if any requirement is unmet.
        """
        if not self.has(node):
            return []

        result: list[Node] = []
        for typ in node.requires():
            producers = self._provided_by.nodes(typ)
            if producers:
                result.extend(producers)
            else:
                result.append(self.missing_node)
        return _by_id(result)

    def has_edge_from_to(self, u: Node, v: Node) -> bool:
        """Check if some type provided by ``u`` is required by ``v``."""
        return bool(self._connecting_types(u, v))

    def has_edge_between(self, x: Node, y: Node) -> bool:
        """Check for an edge between ``x`` and ``y`` in either direction."""
        return self.has_edge_from_to(x, y) or self.has_edge_from_to(y, x)

    def edge(self, u: Node, v: Node) -> Optional[Edge]:
        """
        Return the edge from ``u`` to ``v``.

        Returns:
            The Edge if ``u`` provides a type that ``v`` requires, None otherwise
        """
        types = self._connecting_types(u, v)
        if not types:
            return None
        return Edge(u, v, types)

    def _connecting_types(self, u: Node, v: Node) -> tuple[TypeKey, ...]:
        if not (self.has(u) and self.has(v)):
            return ()

        provided = self.unsatisfied_types() if isinstance(u, MissingNode) else u.provides()
        return tuple(
            typ
            for typ in dict.fromkeys(provided)
            if any(consumer is v for consumer in self._required_by.nodes(typ))
        )

    # Construction

    def add_provider(self, provider: Provider) -> ProviderNode:
        """
        Add a provider to the graph.

        After insertion the provided types are scanned for a runnable type,
        which becomes the root. A failure of that root detection is raised
        after the node has been inserted; the insertion is kept.

        Args:
            provider: The provider descriptor

        Returns:
            The new ProviderNode

        Raises:
            InvalidProviderError: If the provider is a method or its error
                result is not last. The container is left unchanged.
            AmbiguousRootError: If the provider yields more than one runnable type
            RootAlreadySetError: If it yields a runnable type and a root is already set
        """
        validate_provider(provider)

        node = ProviderNode(self, self._allocate_id(), provider)
        self._providers.append(node)
        for typ in node.provides():
            self._provided_by.add_node(typ, node)
        for typ in node.requires():
            self._required_by.add_node(typ, node)

        root_type = detect_root_type(node.provides(), self.root_method)
        if root_type is not None:
            self.set_root(root_type)

        return node

    def add_providers(self, providers: Iterable[Provider]) -> list[ProviderNode]:
        """Add several providers, stopping at the first error."""
        return [self.add_provider(provider) for provider in providers]

    def set_root(self, root: TypeKey) -> RootNode:
        """
        Set the root type of the graph.

        Args:
            root: The type the generated builder function returns

        Returns:
            The new RootNode

        Raises:
            RootAlreadySetError: If a root has already been set
        """
        if self._root is not None:
            raise RootAlreadySetError(self._root.root, root)

        self._root = RootNode(self, self._allocate_id(), root)
        self._required_by.add_node(root, self._root)
        return self._root

    def root(self) -> RootNode:
        """
        Return the root node.

        Raises:
            NoRootError: If no root has been set
        """
        if self._root is None:
            raise NoRootError()
        return self._root

    # Generic graph algorithms

    def to_networkx(self) -> nx.DiGraph:
        """
        Export the current graph as a NetworkX DiGraph.

        The export is built from the live queries on every call; nodes are
        the Node objects themselves and every edge carries its connecting
        types and weight.
        """
        graph = nx.DiGraph()
        for node in self.nodes():
            graph.add_node(node, id=node.id)
        for node in self.nodes():
            for successor in self.successors(node):
                edge = self.edge(node, successor)
                graph.add_edge(node, successor, types=edge.types, weight=edge.weight)
        return graph

    def find_cycle(self) -> list[Node]:
        """
        Return the nodes of one dependency cycle, or an empty list.
        """
        try:
            cycle = nx.find_cycle(self.to_networkx())
        except nx.NetworkXNoCycle:
            return []
        return [u for u, _ in cycle]

    def build_order(self) -> list[Node]:
        """
        Return the root and its transitive requirements in dependency order.

        Every node appears after the nodes providing its requirements; ties
        are broken by node identity. The missing node appears in the order
        when a requirement of the root is unmet.

        Raises:
            NoRootError: If no root has been set
            CyclicDependencyError: If the required nodes form a cycle
        """
        root = self.root()
        graph = self.to_networkx()
        required = graph.subgraph(nx.ancestors(graph, root) | {root})

        try:
            cycle = nx.find_cycle(required)
        except nx.NetworkXNoCycle:
            return list(
                nx.lexicographical_topological_sort(required, key=lambda node: node.id)
            )
        raise CyclicDependencyError([u for u, _ in cycle])


def _by_id(nodes: Iterable[Node]) -> list[Node]:
    unique = {id(node): node for node in nodes}
    return sorted(unique.values(), key=lambda node: node.id)
