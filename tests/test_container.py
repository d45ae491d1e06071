"""
Tests for the graph module.

Tests Container graph queries, root handling and provider validation.
"""

import networkx as nx
import pytest

from wiregraph.errors import (
    AmbiguousRootError,
    CyclicDependencyError,
    InvalidProviderError,
    NoRootError,
    RootAlreadySetError,
)
from wiregraph.graph import Container, MissingNode, ProviderNode, RootNode
from wiregraph.models import ERROR_TYPE
from tests.fixtures import BOOL, INT, make_provider, named


class TestEmptyContainer:
    """Tests for a freshly created container."""

    def test_has_only_missing_node(self):
        """Test that an empty container has exactly the missing node."""
        container = Container()

        nodes = container.nodes()

        assert len(nodes) == 1
        assert isinstance(nodes[0], MissingNode)

    def test_has_no_root(self):
        """Test that root() fails before a root is set."""
        container = Container()

        with pytest.raises(NoRootError):
            container.root()
        assert container.has_root is False

    def test_missing_node_has_no_edges(self):
        """Test that the missing node of an empty container is isolated."""
        container = Container()
        missing = container.nodes()[0]

        assert container.successors(missing) == []
        assert container.predecessors(missing) == []

    def test_missing_node_is_unique(self):
        """Test that the missing node is created once."""
        container = Container()

        assert container.missing_node is container.missing_node
        assert container.nodes()[0] is container.missing_node


class TestHas:
    """Tests for node membership."""

    def test_has_own_missing_node(self):
        """Test that a container has its own missing node."""
        container = Container()

        assert container.has(container.missing_node)

    def test_does_not_have_missing_node_of_other_container(self):
        """Test that nodes of another container are rejected."""
        other = Container()
        container = Container()

        assert not container.has(other.missing_node)

    def test_does_not_have_foreign_object(self):
        """Test that arbitrary objects are rejected."""
        container = Container()

        assert not container.has(object())
        assert not container.has(None)

    def test_does_not_have_out_of_range_node(self):
        """Test that a node with an identity not yet assigned is rejected."""
        container = Container()
        stale = MissingNode(container, 5)

        assert not container.has(stale)

    def test_does_not_have_negative_node(self):
        """Test that a node with a negative identity is rejected without raising."""
        container = Container()
        container.add_provider(make_provider("p", results=(INT,)))

        assert not container.has(MissingNode(container, -1))

    def test_has_provider_and_root_nodes(self):
        """Test that added providers and the root belong to the container."""
        container = Container()
        node = container.add_provider(make_provider("new_int", results=(INT,)))
        root = container.set_root(INT)

        assert container.has(node)
        assert container.has(root)


class TestProviders:
    """Tests for adding providers."""

    def test_round_trip(self):
        """Test a producer and a consumer of the same type."""
        container = Container()
        f1 = container.add_provider(make_provider("f1", results=(INT,)))
        f2 = container.add_provider(make_provider("f2", params=(INT,), results=(BOOL,)))

        nodes = container.nodes()

        assert len(nodes) == 3
        assert f2 in container.successors(f1)
        assert f1 in container.predecessors(f2)
        assert container.successors(container.missing_node) == []

    def test_identities_increase(self):
        """Test that nodes get increasing identities in insertion order."""
        container = Container()
        first = container.add_provider(make_provider("a", results=(INT,)))
        second = container.add_provider(make_provider("b", results=(BOOL,)))

        assert first.id == 0
        assert second.id == 1
        assert container.missing_node.id == 2
        assert [n.id for n in container.nodes()] == [0, 1, 2]

    def test_edge_between_producer_and_consumer(self):
        """Test the edge object and its direction."""
        container = Container()
        producer = container.add_provider(make_provider("p1", results=(INT,)))
        consumer = container.add_provider(make_provider("p2", params=(INT,)))

        edge = container.edge(producer, consumer)

        assert container.has_edge_from_to(producer, consumer)
        assert not container.has_edge_from_to(consumer, producer)
        assert edge is not None
        assert edge.from_node is producer
        assert edge.to_node is consumer
        assert edge.types == (INT,)
        assert edge.weight == 1.0
        assert container.edge(consumer, producer) is None

    def test_has_edge_between_is_undirected(self):
        """Test that has_edge_between ignores the direction."""
        container = Container()
        producer = container.add_provider(make_provider("p1", results=(INT,)))
        consumer = container.add_provider(make_provider("p2", params=(INT,)))

        assert container.has_edge_between(producer, consumer)
        assert container.has_edge_between(consumer, producer)

    def test_unmet_requirement_links_missing_node(self):
        """Test that an unmet requirement creates an edge from the missing node."""
        container = Container()
        consumer = container.add_provider(make_provider("p", params=(INT,)))
        missing = container.missing_node

        assert missing in container.predecessors(consumer)
        assert consumer in container.successors(missing)
        assert container.has_edge_from_to(missing, consumer)
        assert container.edge(missing, consumer).types == (INT,)

    def test_missing_node_counted_once(self):
        """Test that several unmet requirements yield the missing node once."""
        container = Container()
        consumer = container.add_provider(make_provider("p", params=(INT, BOOL)))

        predecessors = container.predecessors(consumer)

        assert predecessors == [container.missing_node]

    def test_missing_node_provides_live_view(self):
        """Test that the missing node follows later insertions."""
        container = Container()
        container.add_provider(make_provider("consumer", params=(INT, BOOL)))
        missing = container.missing_node

        assert set(missing.provides()) == {INT, BOOL}
        assert missing.requires() == ()

        container.add_provider(make_provider("producer", results=(INT,)))

        assert missing.provides() == (BOOL,)

    def test_successors_of_multi_consumer_type(self):
        """Test that every consumer of a provided type is a successor."""
        container = Container()
        producer = container.add_provider(make_provider("p", results=(INT,)))
        first = container.add_provider(make_provider("c1", params=(INT,)))
        second = container.add_provider(make_provider("c2", params=(INT, INT)))

        assert container.successors(producer) == [first, second]

    def test_error_result_is_not_provided(self):
        """Test that a trailing error result is not a provided type."""
        container = Container()
        node = container.add_provider(
            make_provider("load", results=(INT, ERROR_TYPE))
        )

        assert node.provides() == (INT,)
        assert container.unsatisfied_types() == []

    def test_queries_on_foreign_nodes_are_empty(self):
        """Test that nodes of other containers have no edges here."""
        other = Container()
        foreign = other.add_provider(make_provider("p", results=(INT,)))
        container = Container()
        consumer = container.add_provider(make_provider("c", params=(INT,)))

        assert container.successors(foreign) == []
        assert container.predecessors(foreign) == []
        assert not container.has_edge_from_to(foreign, consumer)
        assert container.edge(foreign, consumer) is None

    def test_node_and_edge_counts(self):
        """Test node and edge counting."""
        container = Container()
        container.add_provider(make_provider("p", results=(INT,)))
        container.add_provider(make_provider("c", params=(INT, BOOL)))

        assert container.node_count == 3
        # p -> c and missing -> c
        assert container.edge_count == 2


class TestInvalidProviders:
    """Tests for provider validation."""

    def test_method_is_rejected(self):
        """Test that providers with a receiver are rejected."""
        container = Container()
        method = make_provider("Factory.make", results=(INT,), receiver=named("Factory"))

        with pytest.raises(InvalidProviderError) as excinfo:
            container.add_provider(method)

        assert "Factory.make" in str(excinfo.value)
        assert "methods" in excinfo.value.reason
        assert container.node_count == 1

    def test_early_error_is_rejected(self):
        """Test that an error result before the last result is rejected."""
        container = Container()
        provider = make_provider("load", results=(ERROR_TYPE, INT), line=7)

        with pytest.raises(InvalidProviderError) as excinfo:
            container.add_provider(provider)

        assert excinfo.value.position.line == 7
        assert excinfo.value.error_with_position().startswith("wiring.py:7:0: ")
        assert container.node_count == 1
        assert container.providers() == []

    def test_rejected_provider_does_not_consume_identity(self):
        """Test that a rejected provider leaves identities untouched."""
        container = Container()
        with pytest.raises(InvalidProviderError):
            container.add_provider(make_provider("bad", results=(ERROR_TYPE, INT)))

        node = container.add_provider(make_provider("good", results=(INT,)))

        assert node.id == 0


class TestRoot:
    """Tests for explicit and detected roots."""

    def test_set_root(self):
        """Test that set_root creates a root requiring the type."""
        container = Container()
        typ = named("MyIntType")

        root = container.set_root(typ)

        assert container.root() is root
        assert isinstance(root, RootNode)
        assert root.requires() == (typ,)
        assert root.provides() == ()
        assert root in container.nodes()

    def test_second_set_root_fails(self):
        """Test that the root cannot be replaced."""
        container = Container()
        container.set_root(named("First"))

        with pytest.raises(RootAlreadySetError):
            container.set_root(named("Second"))
        with pytest.raises(RootAlreadySetError):
            container.set_root(named("First"))

    def test_root_requirement_is_missing_until_provided(self):
        """Test the edges around the root node."""
        container = Container()
        typ = named("App")
        root = container.set_root(typ)

        assert container.predecessors(root) == [container.missing_node]

        provider = container.add_provider(make_provider("new_app", results=(typ,)))

        assert container.predecessors(root) == [provider]
        assert container.successors(provider) == [root]
        assert container.successors(root) == []

    def test_root_detected_from_runnable_type(self):
        """Test that a runnable provided type becomes the root."""
        container = Container()
        app = named("App", runnable=True)

        container.add_provider(make_provider("new_app", results=(app,)))

        assert container.root().root == app

    def test_custom_root_method(self):
        """Test root detection with another method name."""
        container = Container(root_method="serve")
        app = named("App", runnable=True)

        container.add_provider(make_provider("new_app", results=(app,)))

        assert not container.has_root

    def test_ambiguous_root_keeps_node(self):
        """Test that an ambiguous root fails but the provider stays added."""
        container = Container()
        provider = make_provider(
            "new_pair",
            results=(named("Server", runnable=True), named("Worker", runnable=True)),
        )

        with pytest.raises(AmbiguousRootError):
            container.add_provider(provider)

        assert len(container.providers()) == 1
        assert not container.has_root

    def test_second_detected_root_keeps_node(self):
        """Test that a second detected root fails but the provider stays added."""
        container = Container()
        container.add_provider(make_provider("new_server", results=(named("Server", runnable=True),)))

        with pytest.raises(RootAlreadySetError):
            container.add_provider(
                make_provider("new_worker", results=(named("Worker", runnable=True),))
            )

        assert [n.name for n in container.providers()] == ["new_server", "new_worker"]
        assert container.root().root == named("Server")


class TestGraphAlgorithms:
    """Tests for the NetworkX export, cycles and build order."""

    def test_to_networkx(self):
        """Test that the export mirrors the live queries."""
        container = Container()
        producer = container.add_provider(make_provider("p", results=(INT,)))
        consumer = container.add_provider(make_provider("c", params=(INT,)))

        graph = container.to_networkx()

        assert isinstance(graph, nx.DiGraph)
        assert set(graph.nodes) == set(container.nodes())
        assert list(graph.edges) == [(producer, consumer)]
        assert graph.edges[producer, consumer]["types"] == (INT,)

    def test_build_order(self):
        """Test that providers come before their consumers and the root last."""
        container = Container()
        app = named("App", runnable=True)
        config = named("Config")
        new_app = container.add_provider(make_provider("new_app", params=(config,), results=(app,)))
        new_config = container.add_provider(make_provider("new_config", results=(config,)))
        unused = container.add_provider(make_provider("unused", results=(INT,)))

        order = container.build_order()

        assert order == [new_config, new_app, container.root()]
        assert unused not in order

    def test_build_order_without_root(self):
        """Test that a build order needs a root."""
        container = Container()

        with pytest.raises(NoRootError):
            container.build_order()

    def test_build_order_includes_missing_node(self):
        """Test that an unmet root requirement shows up as the missing node."""
        container = Container()
        container.set_root(named("App"))

        order = container.build_order()

        assert order == [container.missing_node, container.root()]

    def test_cycle_is_detected(self):
        """Test that cyclic providers are accepted but cannot be ordered."""
        container = Container()
        left, right = named("Left"), named("Right")
        new_left = container.add_provider(make_provider("new_left", params=(right,), results=(left,)))
        new_right = container.add_provider(make_provider("new_right", params=(left,), results=(right,)))
        container.set_root(left)

        assert set(container.find_cycle()) == {new_left, new_right}
        with pytest.raises(CyclicDependencyError) as excinfo:
            container.build_order()
        assert set(excinfo.value.cycle) == {new_left, new_right}

    def test_no_cycle(self):
        """Test that an acyclic graph reports no cycle."""
        container = Container()
        container.add_provider(make_provider("p", results=(INT,)))
        container.add_provider(make_provider("c", params=(INT,)))

        assert container.find_cycle() == []
