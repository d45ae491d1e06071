"""
Graph module for wiregraph.

This module provides the dependency Container, its node variants and the
root detection policy, plus the builder that fills a Container from
Python sources.
"""

from wiregraph.graph.container import Container
from wiregraph.graph.nodes import Edge, MissingNode, Node, ProviderNode, RootNode
from wiregraph.graph.roots import DEFAULT_ROOT_METHOD, detect_root_type, is_runnable_type
from wiregraph.graph.builder import (
    BuildResult,
    Diagnostic,
    build_container_from_source,
    build_container_from_directory,
)

__all__ = [
    "Container",
    "Edge",
    "MissingNode",
    "Node",
    "ProviderNode",
    "RootNode",
    "DEFAULT_ROOT_METHOD",
    "detect_root_type",
    "is_runnable_type",
    "BuildResult",
    "Diagnostic",
    "build_container_from_source",
    "build_container_from_directory",
]
