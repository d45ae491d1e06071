"""
CLI module for wiregraph.

The command-line interface providing graph, check, and names commands.
"""

from cli.main import app

__all__ = ["app"]
