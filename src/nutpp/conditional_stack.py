"""nutpp Conditional Stack

One frame per open #ifdef / #ifndef block. Output is enabled only while
every open frame has its active branch taken, so an outer suppressed block
always suppresses everything nested inside it.
"""

from dataclasses import dataclass
from typing import List, Optional

from .errors import ErrorKind, PreprocessorError, SourcePosition


@dataclass
class ConditionalFrame:
    """State of a single #ifdef/#ifndef ... #endif block."""
    first_branch_result: bool
    else_seen: bool = False

    @property
    def taken(self) -> bool:
        """Whether the branch currently being read is the active one."""
        if self.else_seen:
            return not self.first_branch_result
        return self.first_branch_result


class ConditionalStack:
    """Stack of ConditionalFrame objects, innermost block last."""

    def __init__(self):
        self.frames: List[ConditionalFrame] = []

    @property
    def depth(self) -> int:
        return len(self.frames)

    @property
    def outputting(self) -> bool:
        return all(frame.taken for frame in self.frames)

    def push(self, first_branch_result: bool) -> ConditionalFrame:
        frame = ConditionalFrame(first_branch_result)
        self.frames.append(frame)
        return frame

    def toggle_else(self, position: Optional[SourcePosition] = None) -> None:
        if not self.frames:
            raise PreprocessorError(
                ErrorKind.UNMATCHED_ELSE,
                "'#else' without matching '#ifdef'/'#ifndef'",
                position,
            )
        frame = self.frames[-1]
        if frame.else_seen:
            raise PreprocessorError(
                ErrorKind.DUPLICATE_ELSE,
                "duplicate '#else' in the same '#ifdef'/'#ifndef' block",
                position,
            )
        frame.else_seen = True

    def pop(self, position: Optional[SourcePosition] = None) -> ConditionalFrame:
        if not self.frames:
            raise PreprocessorError(
                ErrorKind.UNMATCHED_ENDIF,
                "'#endif' without matching '#ifdef'/'#ifndef' (no if block open)",
                position,
            )
        return self.frames.pop()

    def __len__(self) -> int:
        return len(self.frames)
