"""
Application entry point — command-line shell around the report pipeline.

Composition root: creates the concrete parser and hasher adapters and hands
them to render_all. The web form (certinfo.asgi) reuses the same wiring.

Responsibilities:
  1. Parse CLI arguments (argparse)
  2. Load settings and configure structlog (logs go to stderr)
  3. Read the certificate file into memory
  4. Print the report set to stdout

Usage:
  certinfo print bundle.pem
  certinfo --debug print server.der
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO, TypeAlias

import structlog
from pydantic import ValidationError
from railway import ErrorCode
from railway.result import Result

from certinfo import __version__
from certinfo.adapters.hashing import Sha256Hasher
from certinfo.adapters.x509_parser import CryptographyCertificateParser
from certinfo.config import AppSettings
from certinfo.pipeline import render_all


def configure_structlog(log_level: str = "INFO", stream: TextIO | None = None) -> None:
    """
    Configure structlog for structured console logging.

    Logs are written to `stream` (stderr by default) so that stdout carries
    nothing but the report.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


_Adapters: TypeAlias = tuple[CryptographyCertificateParser, Sha256Hasher]


def create_adapters() -> _Adapters:
    """Instantiate the concrete parser and hasher adapters."""
    return CryptographyCertificateParser(), Sha256Hasher()


def create_argparser() -> argparse.ArgumentParser:
    """Create the argument parser for the certinfo command."""
    parser = argparse.ArgumentParser(
        prog="certinfo",
        description="Print a human-readable report for every X.509 certificate in a file.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")

    commands = parser.add_subparsers(dest="command", required=True)
    print_cmd = commands.add_parser(
        "print",
        help="Print cert.",
        description="Print every certificate found in a PEM bundle or DER file.",
    )
    print_cmd.add_argument("cert_file", metavar="cert-file", type=Path, help="Cert file.")
    return parser


def read_input(path: Path) -> Result[bytes]:
    """Read the whole file into memory; an unreadable file is a NOT_FOUND failure."""
    return Result.from_computation(
        path.read_bytes,
        ErrorCode.NOT_FOUND,
        f"cannot read {path}",
    )


def run_print(path: Path) -> int:
    """Execute the print command; returns the process exit status."""
    log = structlog.get_logger()
    parser, hasher = create_adapters()

    result = read_input(path).map(lambda raw: render_all(raw, parser, hasher))
    if result.is_success():
        print(result.value())  # noqa: T201
        return 0

    failure = result.error()
    log.debug("cli.read_failed", path=str(path), error=failure.message)
    cause = f": {failure.exception}" if failure.exception is not None else ""
    print(f"error: {failure.message}{cause}", file=sys.stderr)  # noqa: T201
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, wire dependencies and run the selected command."""
    args = create_argparser().parse_args(argv)

    try:
        settings = AppSettings()
    except ValidationError as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        return 1

    configure_structlog("DEBUG" if args.debug else settings.log_level)

    match args.command:
        case "print":
            return run_print(args.cert_file)
    return 2  # pragma: no cover


if __name__ == "__main__":
    sys.exit(main())
