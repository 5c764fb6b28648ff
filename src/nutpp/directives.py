"""nutpp Directive Parser

Recognizes directive lines:

    #include "path/to/file.nut"    -- splice another file in place
    #include 'path/to/file.nut'    -- (quotes must match)
    #define NAME                   -- define a valueless macro
    #define NAME value             -- define a macro with a value
    #undef  NAME                   -- remove a macro
    #ifdef  NAME / #ifdefined NAME  -- start a block kept if NAME is defined
    #ifndef NAME / #ifndefined NAME -- start a block kept if NAME is undefined
    #else                          -- switch to the other branch of the block
    #endif                         -- close the block

A line is a directive when it matches the prologue (by default optional
whitespace, '#', optional whitespace; whitespace is ASCII only). A prologue
match that fits none of the grammars above is an unknown directive. Grammars
are tried in the order listed and the first match wins.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern, Tuple

from .conditional_stack import ConditionalStack
from .errors import ErrorKind, PreprocessorError, SourcePosition
from .symbol_table import MacroTable

DEFAULT_PROLOGUE = r'^\s*#\s*'
NAME_PATTERN = r'[A-Za-z0-9_]+'

_LINE_TERMINATOR_RE = re.compile(r'\r?\n\Z')


class DirectiveKind(Enum):
    INCLUDE = "include"
    UNDEF = "undef"
    DEFINE = "define"
    IFDEF = "ifdef"
    IFNDEF = "ifndef"
    ELSE = "else"
    ENDIF = "endif"


@dataclass
class Directive:
    """A classified directive line."""
    kind: DirectiveKind
    text: str
    name: Optional[str] = None
    value: Optional[str] = None
    path: Optional[str] = None


def strip_line_terminator(line: str) -> str:
    """Remove one trailing LF or CRLF, leaving all other text alone."""
    return _LINE_TERMINATOR_RE.sub('', line, count=1)


def compile_grammars(prologue: str = DEFAULT_PROLOGUE) -> List[Tuple[DirectiveKind, Pattern]]:
    """Build the ordered directive grammars for the given prologue."""
    grammars = [
        (DirectiveKind.INCLUDE, r'include\s+([\'"])(?P<path>.*)\1$'),
        (DirectiveKind.UNDEF, rf'undef\s+(?P<name>{NAME_PATTERN})$'),
        (DirectiveKind.DEFINE, rf'define\s+(?P<name>{NAME_PATTERN})(?:\s+(?P<value>.*))?$'),
        (DirectiveKind.IFDEF, rf'ifdef(?:ined)?\s+(?P<name>{NAME_PATTERN})$'),
        (DirectiveKind.IFNDEF, rf'ifndef(?:ined)?\s+(?P<name>{NAME_PATTERN})$'),
        (DirectiveKind.ELSE, r'else$'),
        (DirectiveKind.ENDIF, r'endif$'),
    ]
    return [(kind, re.compile(prologue + body, re.ASCII)) for kind, body in grammars]


class DirectiveParser:
    """Classifies lines and applies directives to the shared state.

    The macro table and conditional stack are borrowed, not owned: the
    processor hands the same instances to every file of a run.
    """

    def __init__(self, macros: MacroTable, conditions: ConditionalStack,
                 prologue: str = DEFAULT_PROLOGUE):
        self.macros = macros
        self.conditions = conditions
        self._prologue_re = re.compile(prologue, re.ASCII)
        self._grammars = compile_grammars(prologue)

    def classify(self, line: str, position: Optional[SourcePosition] = None) -> Optional[Directive]:
        """Return the Directive on *line*, or None for an ordinary content line.

        Raises:
            PreprocessorError: UNKNOWN_DIRECTIVE when the line looks like a
                               directive but fits no grammar.
        """
        text = strip_line_terminator(line)
        if not self._prologue_re.match(text):
            return None

        for kind, pattern in self._grammars:
            m = pattern.match(text)
            if m is None:
                continue
            groups = m.groupdict()
            return Directive(
                kind=kind,
                text=text,
                name=groups.get('name'),
                value=groups.get('value'),
                path=groups.get('path'),
            )

        raise PreprocessorError(
            ErrorKind.UNKNOWN_DIRECTIVE,
            f"unknown directive: {text!r}",
            position,
        )

    def apply(self, directive: Directive, position: Optional[SourcePosition] = None) -> Optional[str]:
        """Apply *directive* to the macro table / conditional stack.

        Returns the included path for #include (the caller decides whether
        and where to read it), None for everything else.
        """
        kind = directive.kind

        if kind is DirectiveKind.INCLUDE:
            return directive.path
        if kind is DirectiveKind.UNDEF:
            self.macros.undef(directive.name)
        elif kind is DirectiveKind.DEFINE:
            self.macros.define(directive.name, directive.value)
        elif kind is DirectiveKind.IFDEF:
            self.conditions.push(self.macros.is_defined(directive.name))
        elif kind is DirectiveKind.IFNDEF:
            self.conditions.push(not self.macros.is_defined(directive.name))
        elif kind is DirectiveKind.ELSE:
            self.conditions.toggle_else(position)
        elif kind is DirectiveKind.ENDIF:
            self.conditions.pop(position)
        return None

    def process_line(self, line: str, position: Optional[SourcePosition] = None) -> Optional[Directive]:
        """Classify *line* and, if it is a directive, apply it."""
        directive = self.classify(line, position)
        if directive is not None:
            self.apply(directive, position)
        return directive
