"""
Automatic root detection.

A type is root-capable (runnable) if its method set includes a method with
the recognized name that takes no parameters and returns nothing. When a
provider produces a runnable type, the Container uses it as its root.
"""

from typing import Iterable, Optional

from wiregraph.errors import AmbiguousRootError
from wiregraph.models import TypeKey

DEFAULT_ROOT_METHOD = "run"


def is_runnable_type(typ: TypeKey, method_name: str = DEFAULT_ROOT_METHOD) -> bool:
    """
    Check if ``typ`` has a nullary, no-result method named ``method_name``.

    Args:
        typ: The type to inspect
        method_name: The recognized method name

    Returns:
        True if the type is root-capable
    """
    return any(
        method.name == method_name and method.is_nullary for method in typ.methods
    )


def detect_root_type(
    types: Iterable[TypeKey], method_name: str = DEFAULT_ROOT_METHOD
) -> Optional[TypeKey]:
    """
    Return the one root-capable type among ``types``, if any.

    Args:
        types: The types provided by a single provider
        method_name: The recognized method name

    Returns:
        The root-capable type, or None if there is none

    Raises:
        AmbiguousRootError: If more than one type is root-capable
    """
    candidates: list[TypeKey] = []
    for typ in types:
        if is_runnable_type(typ, method_name) and typ not in candidates:
            candidates.append(typ)

    if len(candidates) > 1:
        raise AmbiguousRootError(candidates)

    return candidates[0] if candidates else None
