"""nutpp Configuration

Everything a run needs to know up front, including the initial macro seed.
The preprocessor never reads the process environment itself; callers build
a PreprocessorConfig (usually via from_environment) and pass it in.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .directives import DEFAULT_PROLOGUE, NAME_PATTERN

_NAME_RE = re.compile(NAME_PATTERN)


def parse_define(text: str) -> Tuple[str, Optional[str]]:
    """Parse a command-line define: 'NAME' or 'NAME=VALUE'.

    Raises:
        ValueError: if NAME is not a valid macro name.
    """
    if '=' in text:
        name, value = text.split('=', 1)
    else:
        name, value = text, None
    name = name.strip()
    if not _NAME_RE.fullmatch(name):
        raise ValueError(f"invalid macro name: {name!r}")
    return name, value


@dataclass
class PreprocessorConfig:
    """Settings for a single preprocessing run."""
    initial_macros: Dict[str, Optional[str]] = field(default_factory=dict)
    prologue: str = DEFAULT_PROLOGUE
    comment_prefix: str = '//'
    encoding: str = 'utf-8'

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None,
                         defines: Iterable[str] = (), **kwargs) -> 'PreprocessorConfig':
        """Seed the macro table from environment variables, then overlay defines.

        Args:
            environ: Variables to seed from (defaults to os.environ)
            defines: 'NAME' / 'NAME=VALUE' strings applied after the environment
            **kwargs: Any other PreprocessorConfig field
        """
        if environ is None:
            environ = os.environ
        macros: Dict[str, Optional[str]] = dict(environ)
        for text in defines:
            name, value = parse_define(text)
            macros[name] = value
        return cls(initial_macros=macros, **kwargs)
