"""nutpp Symbol Table

Tracks which macros are defined. Values are kept for callers that want
them, but the preprocessor itself only ever asks whether a name is defined.
"""

import logging
from typing import Dict, Iterator, Mapping, Optional

logger = logging.getLogger(__name__)


class MacroTable:
    """Mapping from macro name to an optional string value."""

    def __init__(self, initial: Optional[Mapping[str, Optional[str]]] = None):
        self._macros: Dict[str, Optional[str]] = dict(initial or {})

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Optional[str]]) -> 'MacroTable':
        return cls(mapping)

    def define(self, name: str, value: Optional[str] = None) -> None:
        """Define (or redefine) ``name``; ``None`` means a valueless macro."""
        logger.debug("define %s = %r", name, value)
        self._macros[name] = value

    def undef(self, name: str) -> None:
        # Removing a name that was never defined is not an error
        logger.debug("undef %s", name)
        self._macros.pop(name, None)

    def is_defined(self, name: str) -> bool:
        return name in self._macros

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._macros.get(name, default)

    def as_dict(self) -> Dict[str, Optional[str]]:
        return dict(self._macros)

    def __contains__(self, name: object) -> bool:
        return name in self._macros

    def __iter__(self) -> Iterator[str]:
        return iter(self._macros)

    def __len__(self) -> int:
        return len(self._macros)

    def __repr__(self) -> str:
        return f"MacroTable({len(self._macros)} macros)"
