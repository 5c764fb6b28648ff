"""nutpp Main Entry Point

Command-line interface for the nutpp preprocessor.
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from . import __version__
from .config import PreprocessorConfig, parse_define
from .errors import PreprocessorError
from .preprocessor import Preprocessor

logger = logging.getLogger(__name__)


def _define_arg(text: str) -> str:
    try:
        parse_define(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))
    return text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nutpp",
        description="nutpp - C-style preprocessor for Squirrel (.nut) sources",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Every environment variable is a predefined macro, so
  DEBUG=1 nutpp device.nut out.nut
takes the '#ifdef DEBUG' branches.

Examples:
  nutpp < device.nut                       # stdin to stdout
  nutpp device.nut                         # file to stdout
  nutpp device.nut build/device.nut        # file to file (replaced atomically)
  nutpp -D RELEASE -D VERSION=2 agent.nut  # extra macros on top of the environment
"""
    )

    parser.add_argument(
        "source",
        nargs="?",
        type=Path,
        help="Source file to preprocess (default: standard input)"
    )

    parser.add_argument(
        "destination",
        nargs="?",
        type=Path,
        help="Output file, only replaced when preprocessing succeeds "
             "(default: standard output)"
    )

    parser.add_argument(
        "-D", "--define",
        action="append",
        default=[],
        type=_define_arg,
        metavar="NAME[=VALUE]",
        help="Predefine a macro (may be repeated; overrides the environment)"
    )

    parser.add_argument(
        "--comment-prefix",
        default="//",
        help="Comment marker used for include banners (default: //)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"nutpp v{__version__}"
    )

    return parser


def setup_logging(verbose: bool, console: Console) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _report(console: Console, message: str) -> None:
    console.print(Text(f"error: {message}", style="bold red"), soft_wrap=True)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the preprocessor."""
    args = build_parser().parse_args(argv)
    console = Console(stderr=True)
    setup_logging(args.verbose, console)

    config = PreprocessorConfig.from_environment(
        defines=args.define,
        comment_prefix=args.comment_prefix,
    )

    try:
        Preprocessor(config).run(args.source, args.destination)
        return 0

    except PreprocessorError as e:
        logger.debug("failed with %s", e.kind.name)
        _report(console, str(e))
        return 1

    except RecursionError:
        _report(console, "includes nested too deeply (is a file including itself?)")
        return 1

    except OSError as e:
        _report(console, f"I/O failure: {e}")
        return 1

    except KeyboardInterrupt:
        _report(console, "interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
