"""nutpp - a line-oriented C-style preprocessor for Squirrel (.nut) sources."""

__version__ = "0.1.0"

from .config import PreprocessorConfig, parse_define
from .conditional_stack import ConditionalFrame, ConditionalStack
from .directives import Directive, DirectiveKind, DirectiveParser
from .errors import ErrorKind, PreprocessorError, SourcePosition
from .atomic_writer import atomic_output
from .preprocessor import Preprocessor, preprocess
from .symbol_table import MacroTable

__all__ = [
    "__version__",
    "PreprocessorConfig",
    "parse_define",
    "ConditionalFrame",
    "ConditionalStack",
    "Directive",
    "DirectiveKind",
    "DirectiveParser",
    "ErrorKind",
    "PreprocessorError",
    "SourcePosition",
    "atomic_output",
    "Preprocessor",
    "preprocess",
    "MacroTable",
]
