"""nutpp Atomic Output Writer

Writes a new version of a file through a temporary file in the same
directory, renaming it over the destination only when writing finished
without an error. Either the whole new content lands or nothing changes.
"""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Iterator, TextIO, Union

from .errors import ErrorKind, PreprocessorError

logger = logging.getLogger(__name__)


@contextmanager
def atomic_output(destination: Union[str, Path], encoding: str = 'utf-8') -> Iterator[TextIO]:
    """Yield a text sink whose content replaces *destination* on success.

    The temporary file lives next to the destination so the final rename
    never crosses filesystems. On any exception the temporary file is
    removed, the destination is left as it was, and the exception
    propagates.
    """
    destination = Path(destination)
    directory = destination.parent

    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix='.tmp',
                                        dir=str(directory))
    except OSError as e:
        raise PreprocessorError(
            ErrorKind.OUTPUT_WRITE_FAILURE,
            f"cannot create temporary file for {destination}: {e}",
        ) from e

    tmp_path = Path(tmp_name)
    logger.debug("writing %s via %s", destination, tmp_path)
    sink = os.fdopen(fd, 'w', encoding=encoding, errors='surrogateescape', newline='')
    try:
        yield sink
        sink.flush()
        os.fsync(sink.fileno())
        sink.close()
        if destination.exists():
            shutil.copymode(str(destination), str(tmp_path))
        os.replace(str(tmp_path), str(destination))
    except BaseException as e:
        with suppress(OSError):
            sink.close()
        with suppress(FileNotFoundError):
            tmp_path.unlink()
        logger.debug("discarded %s", tmp_path)
        if isinstance(e, OSError):
            raise PreprocessorError(
                ErrorKind.OUTPUT_WRITE_FAILURE,
                f"cannot write {destination}: {e}",
            ) from e
        raise

    logger.debug("committed %s", destination)
