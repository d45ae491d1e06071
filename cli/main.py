"""
wiregraph CLI

Command-line interface for inspecting the dependency graph of a set of
provider declarations before any code is generated.

Commands:
    wiregraph graph <path>    Show the nodes and edges of the graph
    wiregraph check <path>    Report unmet requirements, root and cycles
    wiregraph names <path>    Show the variable names of the build order

Usage:
    $ wiregraph graph ./my_app
    $ wiregraph check ./my_app/wiring.py
    $ wiregraph names ./my_app --run-method serve
"""

from pathlib import Path

import typer
from libcst import ParserSyntaxError
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from wiregraph import __version__
from wiregraph.errors import CyclicDependencyError, NoRootError
from wiregraph.graph import (
    BuildResult,
    MissingNode,
    ProviderNode,
    RootNode,
    build_container_from_directory,
    build_container_from_source,
    DEFAULT_ROOT_METHOD,
)
from wiregraph.naming import VarNamer
from wiregraph.parser import DEFAULT_PROVIDER_MARKER

# Initialize Typer app and Rich console
app = typer.Typer(
    name="wiregraph",
    help="wiregraph: inspect the dependency graph of provider declarations",
    add_completion=False,
)
console = Console()


def _path_argument():
    return typer.Argument(
        ...,
        help="Python file or directory containing the providers",
        exists=True,
        file_okay=True,
        dir_okay=True,
        resolve_path=True,
    )


def _marker_option():
    return typer.Option(
        DEFAULT_PROVIDER_MARKER,
        "--marker",
        "-m",
        help="Name of the decorator that marks providers",
    )


def _run_method_option():
    return typer.Option(
        DEFAULT_ROOT_METHOD,
        "--run-method",
        "-r",
        help="Name of the nullary method that makes a type the root",
    )


@app.command()
def graph(
    path: Path = _path_argument(),
    marker: str = _marker_option(),
    run_method: str = _run_method_option(),
) -> None:
    """
    Show the nodes and edges of the dependency graph.
    """
    result = _build(path, marker, run_method)
    container = result.container

    table = Table(title="Nodes", box=box.ROUNDED)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Node", style="cyan")
    table.add_column("Requires")
    table.add_column("Provides")

    for node in container.nodes():
        table.add_row(
            str(node.id),
            _node_label(node),
            ", ".join(str(t) for t in node.requires()) or "-",
            ", ".join(str(t) for t in node.provides()) or "-",
        )
    console.print(table)

    edges = Table(title="Edges", box=box.ROUNDED)
    edges.add_column("From", style="cyan")
    edges.add_column("To", style="cyan")
    edges.add_column("Types")

    for node in container.nodes():
        for successor in container.successors(node):
            edge = container.edge(node, successor)
            edges.add_row(
                _node_label(node),
                _node_label(successor),
                ", ".join(str(t) for t in edge.types),
            )
    console.print(edges)

    _print_diagnostics(result)


@app.command()
def check(
    path: Path = _path_argument(),
    marker: str = _marker_option(),
    run_method: str = _run_method_option(),
) -> None:
    """
    Check that the graph can be turned into a builder function.

    Fails when a provider was rejected, a requirement is unmet, no root is
    set, or the providers needed by the root form a cycle.
    """
    result = _build(path, marker, run_method)
    container = result.container
    problems = 0

    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Label", style="dim")
    table.add_column("Value", style="bold")
    table.add_row("Files scanned", str(result.files_scanned))
    table.add_row("Providers", str(result.provider_count))
    table.add_row("Edges", str(container.edge_count))

    try:
        table.add_row("Root", str(container.root().root))
    except NoRootError as e:
        table.add_row("Root", f"[red]{e}[/red]")
        problems += 1

    unsatisfied = container.unsatisfied_types()
    table.add_row("Unmet requirements", str(len(unsatisfied)))
    problems += len(unsatisfied)

    cycle = container.find_cycle()
    table.add_row("Cycle", " -> ".join(_node_label(n) for n in cycle) if cycle else "-")
    problems += 1 if cycle else 0
    problems += len(result.diagnostics) + result.error_count

    if problems:
        console.print(Panel(table, title="[bold red]✗ Check Failed[/bold red]", border_style="red"))
    else:
        console.print(Panel(table, title="[bold green]✓ Check Passed[/bold green]", border_style="green"))

    for typ in unsatisfied:
        requirers = container.successors(container.missing_node)
        names = [_node_label(n) for n in requirers if typ in n.requires()]
        console.print(f"   • [yellow]{typ}[/yellow] required by {', '.join(names)}")

    _print_diagnostics(result)

    if problems:
        raise typer.Exit(1)


@app.command()
def names(
    path: Path = _path_argument(),
    marker: str = _marker_option(),
    run_method: str = _run_method_option(),
) -> None:
    """
    Show the variable name given to every value of the build order.
    """
    result = _build(path, marker, run_method)

    try:
        order = result.container.build_order()
    except (NoRootError, CyclicDependencyError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    namer = VarNamer()
    table = Table(title="Variables", box=box.ROUNDED)
    table.add_column("Node", style="cyan")
    table.add_column("Type")
    table.add_column("Variable", style="bold")

    # Instance indices count values of the same type produced so far.
    instances: dict = {}
    for node in order:
        for typ in node.provides():
            instance = instances.get(typ, 0)
            instances[typ] = instance + 1
            table.add_row(_node_label(node), str(typ), namer.name(typ, instance))

    console.print(table)
    _print_diagnostics(result)


def _build(path: Path, marker: str, run_method: str) -> BuildResult:
    """Build a container from a file or directory, exiting on fatal errors."""
    try:
        if path.is_dir():
            return build_container_from_directory(path, marker=marker, root_method=run_method)
        return build_container_from_source(
            path.read_text(encoding="utf-8"),
            file_path=str(path),
            module_name=path.stem,
            marker=marker,
            root_method=run_method,
        )
    except (OSError, ValueError, ParserSyntaxError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


# Helper functions for output formatting

def _node_label(node) -> str:
    if isinstance(node, ProviderNode):
        return node.name
    if isinstance(node, RootNode):
        return f"[bold]root[/bold] ({node.root})"
    if isinstance(node, MissingNode):
        return "[yellow]missing[/yellow]"
    return repr(node)


def _print_diagnostics(result: BuildResult) -> None:
    """Print engine diagnostics and parse errors, if any."""
    if result.diagnostics:
        console.print(f"\n[yellow]⚠️  {len(result.diagnostics)} diagnostic(s):[/yellow]")
        for diagnostic in result.diagnostics:
            console.print(f"   • {diagnostic}", markup=False)

    if result.errors:
        console.print(f"\n[yellow]⚠️  {result.error_count} file(s) had parse errors:[/yellow]")
        for file_path, error in result.errors[:5]:
            console.print(f"   • {file_path}: {error}", markup=False)
        if result.error_count > 5:
            console.print(f"   ... and {result.error_count - 5} more")


# Version command
def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]wiregraph[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """
    wiregraph: inspect the dependency graph of provider declarations.
    """


if __name__ == "__main__":
    app()
