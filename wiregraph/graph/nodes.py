"""
Node variants of the dependency graph.

Every node can, in the generated builder function, produce named instances
of the types it provides once named instances of the types it requires
exist. The variants are:

    - ProviderNode: calls a constructor or static factory
    - RootNode: returns the one root instance from the builder; at most one
      per Container
    - MissingNode: placeholder that "provides" every type some node requires
      but no node provides; exactly one per Container once materialized

A node belongs to exactly one Container and carries an identity assigned
by that Container.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from wiregraph.errors import InvalidProviderError, InvariantError
from wiregraph.models import Provider, TypeKey

if TYPE_CHECKING:
    from wiregraph.graph.container import Container


class Node(ABC):
    """Common behaviour of all nodes in a Container."""

    def __init__(self, container: "Container", node_id: int) -> None:
        self._container = container
        self._id = node_id

    @property
    def id(self) -> int:
        """Identity of the node, unique within its Container."""
        if self._id < 0:
            raise InvariantError(
                f"{type(self).__name__} cannot have a negative id ({self._id})"
            )
        return self._id

    def id_in_range(self, limit: int) -> bool:
        """Check if the identity lies in ``[0, limit)``, without asserting it."""
        return 0 <= self._id < limit

    @property
    def container(self) -> "Container":
        """The Container this node belongs to."""
        return self._container

    @abstractmethod
    def requires(self) -> tuple[TypeKey, ...]:
        """Types that must be produced before this node."""

    @abstractmethod
    def provides(self) -> tuple[TypeKey, ...]:
        """Types this node produces."""

    def generate(self) -> None:
        """Emit the code fragment for this node."""
        raise NotImplementedError("code emission is handled by the generator")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._id}>"


class ProviderNode(Node):
    """
    Produces its provided types by calling a provider.

    Its required types are the parameters of the provider and its provided
    types are the non-error results.
    """

    def __init__(self, container: "Container", node_id: int, provider: Provider) -> None:
        super().__init__(container, node_id)
        self.provider = provider

    @property
    def name(self) -> str:
        return self.provider.name

    def requires(self) -> tuple[TypeKey, ...]:
        return self.provider.requires

    def provides(self) -> tuple[TypeKey, ...]:
        return self.provider.provides

    def __str__(self) -> str:
        return self.provider.name


class RootNode(Node):
    """
    Returns the instance of its one required type from the builder function.

    The root anchors the Container: every useful node is part of the
    transitive closure of its requirement.
    """

    def __init__(self, container: "Container", node_id: int, root: TypeKey) -> None:
        super().__init__(container, node_id)
        self.root = root

    def requires(self) -> tuple[TypeKey, ...]:
        return (self.root,)

    def provides(self) -> tuple[TypeKey, ...]:
        return ()

    def __str__(self) -> str:
        return f"root({self.root})"


class MissingNode(Node):
    """
    Placeholder for providers that have not been added yet.

    It has no requirements and provides every type that is required by some
    node but provided by none. Generating it is an error that indicates an
    unmet requirement. A Container whose requirements are all met has no
    edges out of its MissingNode.
    """

    def requires(self) -> tuple[TypeKey, ...]:
        return ()

    def provides(self) -> tuple[TypeKey, ...]:
        # Live view: recomputed from the container on every call.
        return tuple(self._container.unsatisfied_types())

    def __str__(self) -> str:
        return "missing"


@dataclass(frozen=True)
class Edge:
    """
    Dependency from a node providing a type to a node requiring it.

    Attributes:
        from_node: The providing node
        to_node: The requiring node
        types: The types provided by from_node and required by to_node
    """

    from_node: Node
    to_node: Node
    types: tuple[TypeKey, ...] = ()

    @property
    def weight(self) -> float:
        """The graph is unweighted: every edge weighs 1.0."""
        return 1.0


def validate_provider(provider: Provider) -> None:
    """
    Check the structural preconditions of a provider.

    Raises:
        InvalidProviderError: If the provider is a method, or if its error
            result is not the last result.
    """
    if provider.is_method:
        raise InvalidProviderError(provider, "cannot add methods to a Container")

    if provider.has_early_error:
        raise InvalidProviderError(provider, "error return type must be last return type")
