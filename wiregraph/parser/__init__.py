"""
Parser module for wiregraph.

This module provides LibCST-based extraction of provider functions and the
types they require and provide from Python source files.
"""

from wiregraph.parser.extractor import (
    DEFAULT_PROVIDER_MARKER,
    extract_providers_from_file,
    extract_providers_from_source,
    collect_declarations,
    resolve_providers,
    DeclarationCollector,
    TypeResolver,
)

__all__ = [
    "DEFAULT_PROVIDER_MARKER",
    "extract_providers_from_file",
    "extract_providers_from_source",
    "collect_declarations",
    "resolve_providers",
    "DeclarationCollector",
    "TypeResolver",
]
