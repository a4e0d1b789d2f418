from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Optional, Sequence

from . import __version__
from .build import build, build_fresh
from .errors import MarieError, error_chain

DEFAULT_CONFIG = "site.toml"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="marie-ssg", description="Static site generator for markdown content.")
    parser.add_argument("-V", "--version", action="version", version=f"marie-ssg {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every file that is processed.")
    subparsers = parser.add_subparsers(dest="command")

    build_cmd = subparsers.add_parser("build", help="Build the static site.")
    build_cmd.add_argument(
        "-c",
        "--config",
        dest="config_file",
        default=DEFAULT_CONFIG,
        help="Path to the site config file (TOML/YAML/JSON).",
    )
    build_cmd.add_argument(
        "--fresh",
        action="store_true",
        help="Do not reuse compiled templates (used for repeated rebuilds).",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        print(f"marie-ssg {__version__}")
        print("Use --help for usage information")
        return 0

    configure_logging(args.verbose)
    start = time.perf_counter()
    try:
        if args.fresh:
            build_fresh(args.config_file)
        else:
            build(args.config_file)
    except MarieError as exc:
        messages = error_chain(exc)
        print(f"Error: {messages[0]}", file=sys.stderr)
        for message in messages[1:]:
            print(f"  caused by: {message}", file=sys.stderr)
        sys.exit(1)
    elapsed = time.perf_counter() - start
    print(f"Build completed in {elapsed:.2f}s.")
    return 0
