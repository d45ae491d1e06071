"""
Memo of names already handed out per type.
"""

from typing import Optional

from wiregraph.models import TypeKey


class NameTable:
    """Map from TypeKey to a previously assigned name."""

    def __init__(self) -> None:
        self._names: dict[TypeKey, str] = {}

    def set(self, key: TypeKey, value: str) -> None:
        self._names[key] = value

    def get(self, key: TypeKey) -> Optional[str]:
        """Return the name assigned to ``key``, or None if there is none."""
        return self._names.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._names

    def __len__(self) -> int:
        return len(self._names)
