"""
Error taxonomy for wiregraph.

User input problems are reported with exceptions deriving from
WiregraphError. InvariantError is reserved for violated internal
invariants of the engine and deliberately derives from AssertionError
instead, so that callers handling WiregraphError never swallow it.
"""

from wiregraph.models import Provider

__all__ = [
    "WiregraphError",
    "InvalidProviderError",
    "NoRootError",
    "RootAlreadySetError",
    "AmbiguousRootError",
    "CyclicDependencyError",
    "InvariantError",
]


class WiregraphError(Exception):
    """Base class for errors reported by the graph engine."""

    pass


class InvalidProviderError(WiregraphError):
    """Raised when a provider descriptor violates a structural precondition."""

    def __init__(self, provider: Provider, reason: str):
        self.name = provider.name
        self.position = provider.position
        self.reason = reason
        super().__init__(f"invalid provider {provider.name}: {reason}")

    def error_with_position(self) -> str:
        """Render the error prefixed with the provider's source position."""
        return f"{self.position}: {self}"


class NoRootError(WiregraphError):
    """Raised when a root is required but none has been set."""

    def __init__(self, message: str = "no root set for container"):
        super().__init__(message)


class RootAlreadySetError(WiregraphError):
    """Raised when a root is set on a Container that already has one."""

    def __init__(self, existing: object, attempted: object):
        self.existing = existing
        self.attempted = attempted
        super().__init__(
            f"root already set to {existing}, cannot set it to {attempted}"
        )


class AmbiguousRootError(WiregraphError):
    """Raised when a single provider yields more than one root-capable type."""

    def __init__(self, candidates: list):
        self.candidates = candidates
        names = ", ".join(str(c) for c in candidates)
        super().__init__(f"ambiguous root detected among {names}")


class CyclicDependencyError(WiregraphError):
    """Raised when the providers needed by the root depend on each other in a cycle."""

    def __init__(self, cycle: list):
        self.cycle = cycle
        cycle_str = " -> ".join(str(node) for node in cycle + cycle[:1])
        super().__init__(f"Circular dependency detected: {cycle_str}")


class InvariantError(AssertionError):
    """Raised when an internal invariant of the engine is violated."""

    pass
