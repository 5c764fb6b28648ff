"""nutpp Preprocessor

Streams a source file line by line, applying directives and copying the
surviving content lines to an output sink:

  - #include splices the named file in place, framed by banner comments so
    the output can be traced back to the file and line it came from. Paths
    resolve relative to the directory of the file doing the including.
  - Content lines and #include are dropped while any open #ifdef/#ifndef
    block is on its untaken branch. #define, #undef and the conditional
    directives themselves are always applied.
  - One macro table and one conditional stack serve the whole run, so a
    #define inside an included file is visible to the includer afterwards,
    and a block left open by an included file stays open in the includer.
  - The first error anywhere aborts the run. Errors coming out of an
    include are annotated with the including line on the way out.
"""

import dataclasses
import io
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, TextIO, Union

from .atomic_writer import atomic_output
from .conditional_stack import ConditionalStack
from .config import PreprocessorConfig
from .directives import DirectiveKind, DirectiveParser
from .errors import ErrorKind, PreprocessorError, SourcePosition
from .symbol_table import MacroTable

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

STDIN_NAME = '<stdin>'
BANNER_WIDTH = 75

# Lines end at \n only; a lone \r is ordinary line content
LINE_SEPARATOR = '\n'


class Preprocessor:
    """Runs one preprocessing pass over a tree of included files."""

    def __init__(self, config: Optional[PreprocessorConfig] = None):
        self.config = config or PreprocessorConfig()
        self._start_run()

    def _start_run(self) -> None:
        self.macros = MacroTable(self.config.initial_macros)
        self.conditions = ConditionalStack()
        self.parser = DirectiveParser(self.macros, self.conditions, self.config.prologue)
        self._at_line_start = True

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, source: Optional[PathLike] = None,
            destination: Optional[PathLike] = None) -> None:
        """Preprocess *source* into *destination*.

        Args:
            source:      Source file; None reads standard input
            destination: Output file, replaced atomically on success;
                         None writes to standard output

        Raises:
            PreprocessorError: On the first failure anywhere in the run.
        """
        self._start_run()
        logger.debug("run: %s -> %s (%d initial macros)",
                     source or STDIN_NAME, destination or '<stdout>', len(self.macros))

        if destination is None:
            with _std_stream(sys.stdout, self.config.encoding) as sink:
                self._process_source(sink, source)
        else:
            with atomic_output(destination, self.config.encoding) as sink:
                self._process_source(sink, source)

    def _process_source(self, sink: TextIO, source: Optional[PathLike]) -> None:
        if source is not None:
            self.process(sink, source)
            return
        with _std_stream(sys.stdin, self.config.encoding) as stdin:
            self.process_stream(sink, stdin, STDIN_NAME, Path.cwd())

    def process(self, sink: TextIO, path: PathLike) -> None:
        """Preprocess the file at *path* into *sink* using the current state."""
        path = Path(path)
        try:
            stream = open(path, 'r', encoding=self.config.encoding,
                          errors='surrogateescape', newline=LINE_SEPARATOR)
        except FileNotFoundError as e:
            raise PreprocessorError(ErrorKind.INCLUDE_NOT_FOUND,
                                    f"file not found: {path}") from e
        except OSError as e:
            raise PreprocessorError(ErrorKind.INCLUDE_UNREADABLE,
                                    f"cannot read {path}: {e.strerror or e}") from e

        with stream:
            self.process_stream(sink, stream, str(path), path.resolve().parent)

    def process_stream(self, sink: TextIO, lines: Iterable[str],
                       display_name: str, base_dir: PathLike) -> None:
        """Preprocess already-open *lines* (named *display_name* in messages)."""
        for lineno, line in enumerate(_read_lines(lines, display_name), start=1):
            position = SourcePosition(display_name, lineno)
            directive = self.parser.classify(line, position)

            if directive is None:
                if self.conditions.outputting:
                    self._emit(sink, line, position)
                continue

            if directive.kind is DirectiveKind.INCLUDE:
                if self.conditions.outputting:
                    self._include(sink, directive.path, base_dir, position)
                continue

            self.parser.apply(directive, position)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _include(self, sink: TextIO, name: str, base_dir: PathLike,
                 position: SourcePosition) -> None:
        target = (Path(base_dir) / name).resolve()
        prefix = self.config.comment_prefix
        logger.debug("%s: including %s", position, target)

        self._emit(sink, f"{prefix} {'=' * BANNER_WIDTH}\n", position)
        self._emit(sink, f"{prefix} start of: {name}\n", position)
        self._emit(sink, f"{prefix} {'-' * BANNER_WIDTH}\n", position)
        try:
            self.process(sink, target)
        except PreprocessorError as e:
            raise e.add_context(position)
        if not self._at_line_start:
            self._emit(sink, '\n', position)
        self._emit(sink, f"{prefix} {'-' * BANNER_WIDTH}\n", position)
        self._emit(sink, f"{prefix} end of: {name}, {position.path} continues "
                         f"with line {position.line + 1}\n", position)
        self._emit(sink, f"{prefix} {'=' * BANNER_WIDTH}\n", position)
        logger.debug("%s: finished %s (conditional depth %d)",
                     position, target, self.conditions.depth)

    def _emit(self, sink: TextIO, text: str, position: SourcePosition) -> None:
        try:
            sink.write(text)
        except OSError as e:
            raise PreprocessorError(ErrorKind.OUTPUT_WRITE_FAILURE,
                                    f"cannot write output: {e.strerror or e}",
                                    position) from e
        if text:
            self._at_line_start = text.endswith(LINE_SEPARATOR)


def _read_lines(lines: Iterable[str], name: str) -> Iterator[str]:
    """Iterate *lines*, turning read failures into INCLUDE_UNREADABLE."""
    iterator = iter(lines)
    lineno = 0
    while True:
        try:
            line = next(iterator)
        except StopIteration:
            return
        except (OSError, UnicodeDecodeError) as e:
            raise PreprocessorError(ErrorKind.INCLUDE_UNREADABLE,
                                    f"cannot read {name}: {e}",
                                    SourcePosition(name, lineno + 1)) from e
        lineno += 1
        yield line


@contextmanager
def _std_stream(stream: TextIO, encoding: str) -> Iterator[TextIO]:
    """Rewrap a standard stream so bytes pass through untouched (LF-split lines).

    The wrapper is detached afterwards, leaving the real stream open.
    """
    buffer = getattr(stream, 'buffer', None)
    if buffer is None:
        yield stream
        return
    stream.flush()
    wrapper = io.TextIOWrapper(buffer, encoding=encoding, errors='surrogateescape',
                               newline=LINE_SEPARATOR)
    try:
        yield wrapper
        wrapper.flush()
    finally:
        wrapper.detach()


def preprocess(source: str, base_dir: Optional[PathLike] = None,
               defines: Optional[Dict[str, Optional[str]]] = None,
               config: Optional[PreprocessorConfig] = None,
               name: str = '<string>') -> str:
    """Preprocess *source* text and return the output as a string.

    Args:
        source:   Raw source text.
        base_dir: Directory used to resolve #include paths (default: cwd).
        defines:  Macro dict seeded on top of the config's initial macros.
                  Updated in place with the macro table at the end of the
                  run, so #define/#undef effects are visible to the caller.
        config:   Run configuration.
        name:     Name used for *source* in banners and error messages.

    Raises:
        PreprocessorError: On the first failure anywhere in the run.
    """
    config = config or PreprocessorConfig()
    if defines is not None:
        seed = dict(config.initial_macros)
        seed.update(defines)
        config = dataclasses.replace(config, initial_macros=seed)

    pp = Preprocessor(config)
    out = io.StringIO(newline='')
    try:
        pp.process_stream(out, io.StringIO(source, newline=LINE_SEPARATOR), name,
                          base_dir if base_dir is not None else Path.cwd())
    finally:
        if defines is not None:
            defines.clear()
            defines.update(pp.macros.as_dict())
    return out.getvalue()
