"""nutpp Errors

Every failure the preprocessor can report is a PreprocessorError tagged with
one ErrorKind and the SourcePosition where it happened.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class SourcePosition:
    """A (file, 1-based line) coordinate used for diagnostics."""
    path: str
    line: int = 0

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


class ErrorKind(Enum):
    UNKNOWN_DIRECTIVE = "unknown directive"
    DUPLICATE_ELSE = "duplicate else"
    UNMATCHED_ELSE = "unmatched else"
    UNMATCHED_ENDIF = "unmatched endif"
    INCLUDE_NOT_FOUND = "include not found"
    INCLUDE_UNREADABLE = "include unreadable"
    OUTPUT_WRITE_FAILURE = "output write failure"


class PreprocessorError(Exception):
    """Raised for any preprocessor-level error.

    ``position`` is where the failure originated. While the error travels
    back out through nested includes, each including line is appended to
    ``trail`` so the message reads outermost file first.
    """

    def __init__(self, kind: ErrorKind, message: str,
                 position: Optional[SourcePosition] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.position = position
        self.trail: List[SourcePosition] = []

    def add_context(self, position: SourcePosition) -> 'PreprocessorError':
        """Record an enclosing include site and return self for re-raising."""
        self.trail.append(position)
        return self

    @property
    def location(self) -> Optional[SourcePosition]:
        """The outermost position this error has been annotated with."""
        if self.trail:
            return self.trail[-1]
        return self.position

    def __str__(self) -> str:
        positions = list(reversed(self.trail))
        if self.position is not None:
            positions.append(self.position)
        prefix = ''.join(f"error while processing {p}: " for p in positions)
        return f"{prefix}{self.message}"
