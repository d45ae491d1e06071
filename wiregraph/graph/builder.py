"""
Container Builder for wiregraph

This module connects the front end to the graph engine: it extracts
providers from Python sources and adds them to a Container, turning every
error the engine reports into a diagnostic with a source position.

Design Decisions:
    - A provider rejected by the Container is reported and skipped; the
      rest of the sources are still processed
    - Root detection errors are reported but the provider stays in the graph,
      matching Container.add_provider
    - Files that fail to parse are reported separately and skipped
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

import libcst as cst

from wiregraph.errors import InvalidProviderError, WiregraphError
from wiregraph.graph.container import Container
from wiregraph.graph.roots import DEFAULT_ROOT_METHOD
from wiregraph.models import Position, Provider
from wiregraph.parser.extractor import (
    DEFAULT_PROVIDER_MARKER,
    ModuleDeclarations,
    collect_declarations,
    resolve_providers,
)


@dataclass(frozen=True)
class Diagnostic:
    """
    A build-time problem reported against a source position.

    Attributes:
        position: Where the problem was found
        message: Human-readable description
        error: The engine error behind the diagnostic
    """

    position: Position
    message: str
    error: WiregraphError

    def __str__(self) -> str:
        return f"{self.position}: {self.message}"


@dataclass
class BuildResult:
    """
    Result of building a Container from sources.

    Attributes:
        container: The populated Container
        providers: Every provider extracted from the sources
        diagnostics: Problems reported by the engine
        errors: Files that failed to parse with error messages
        files_scanned: Number of Python files processed
        build_time_seconds: Total time taken for the build
    """

    container: Container
    providers: list[Provider] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)
    files_scanned: int = 0
    build_time_seconds: float = 0.0

    @property
    def provider_count(self) -> int:
        """Number of providers that made it into the container."""
        return len(self.container.providers())

    @property
    def error_count(self) -> int:
        """Number of files that failed to parse."""
        return len(self.errors)

    @property
    def ok(self) -> bool:
        """Check if the build reported no diagnostics and no parse errors."""
        return not self.diagnostics and not self.errors


def populate_container(
    container: Container, providers: Iterable[Provider]
) -> list[Diagnostic]:
    """
    Add providers to a container, collecting errors as diagnostics.

    Args:
        container: The container to populate
        providers: Providers in the order they should be added

    Returns:
        One diagnostic per rejected provider or failed root detection
    """
    diagnostics = []

    for provider in providers:
        try:
            container.add_provider(provider)
        except InvalidProviderError as e:
            diagnostics.append(Diagnostic(e.position, str(e), e))
        except WiregraphError as e:
            diagnostics.append(
                Diagnostic(provider.position, f"{provider.name}: {e}", e)
            )

    return diagnostics


def build_container_from_source(
    source: str,
    file_path: str = "<source>",
    module_name: str = "",
    marker: str = DEFAULT_PROVIDER_MARKER,
    root_method: str = DEFAULT_ROOT_METHOD,
) -> BuildResult:
    """
    Build a Container from Python source code.

    Args:
        source: Python source code as a string
        file_path: Path to attribute to the source
        module_name: Module name used as scope of declared types
        marker: Name of the decorator that marks providers
        root_method: Name of the method that makes a type runnable

    Returns:
        A BuildResult holding the container and its diagnostics

    Raises:
        libcst.ParserSyntaxError: If the source code has syntax errors

    Example:
        >>> source = '''
        ... class App:
        ...     def run(self) -> None: ...
        ...
        ... @provider
        ... def new_app() -> App:
        ...     return App()
        ... '''
        >>> result = build_container_from_source(source)
        >>> str(result.container.root().root)
        'App'
    """
    start_time = time.time()

    declarations = collect_declarations(source, module_name, file_path, marker)
    providers = resolve_providers([declarations])

    container = Container(root_method=root_method)
    result = BuildResult(container, providers, files_scanned=1)
    result.diagnostics = populate_container(container, providers)
    result.build_time_seconds = time.time() - start_time

    return result


def build_container_from_directory(
    directory: Union[Path, str],
    exclude_patterns: Optional[list[str]] = None,
    marker: str = DEFAULT_PROVIDER_MARKER,
    root_method: str = DEFAULT_ROOT_METHOD,
) -> BuildResult:
    """
    Build a Container from all Python files in a directory.

    Files are processed in sorted path order so that node identities and
    generated names do not depend on the file system.

    Args:
        directory: Path to the directory to scan
        exclude_patterns: Glob patterns to exclude (e.g., ["**/test_*.py"])
        marker: Name of the decorator that marks providers
        root_method: Name of the method that makes a type runnable

    Returns:
        A BuildResult holding the container, diagnostics and parse errors

    Raises:
        FileNotFoundError: If the directory does not exist
        ValueError: If the path is not a directory
    """
    start_time = time.time()
    directory = Path(directory)

    if not directory.exists():
        raise FileNotFoundError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ValueError(f"Not a directory: {directory}")

    # Default exclusions
    if exclude_patterns is None:
        exclude_patterns = [
            "**/__pycache__/**",
            "**/.*",
        ]

    result = BuildResult(Container(root_method=root_method))
    modules: list[ModuleDeclarations] = []

    for file_path in sorted(directory.rglob("*.py")):
        relative_path = file_path.relative_to(directory)
        if any(relative_path.match(pattern) for pattern in exclude_patterns):
            continue

        try:
            source = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result.errors.append((str(file_path), str(e)))
            continue

        try:
            modules.append(
                collect_declarations(
                    source,
                    module_name=_path_to_module_name(file_path, directory),
                    file_path=str(file_path),
                    marker=marker,
                )
            )
        except cst.ParserSyntaxError as e:
            result.errors.append((str(file_path), str(e)))
            continue

        result.files_scanned += 1

    result.providers = resolve_providers(modules)
    result.diagnostics = populate_container(result.container, result.providers)
    result.build_time_seconds = time.time() - start_time

    return result


def _path_to_module_name(file_path: Path, base_dir: Path) -> str:
    """
    Convert a file path to a Python module name.

    Args:
        file_path: Path to the Python file
        base_dir: Base directory of the project

    Returns:
        Dotted module name (e.g., "app.services"); package ``__init__``
        files map to the package name
    """
    try:
        relative = file_path.relative_to(base_dir)
    except ValueError:
        return file_path.stem

    parts = list(relative.parts)
    # Remove .py extension from last part
    if parts and parts[-1].endswith(".py"):
        parts[-1] = parts[-1][:-3]
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)
