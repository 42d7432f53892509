# src/hl7_lab_parser/cli.py
"""
Command-line interface for hl7_lab_parser.

Subcommands
-----------
parse
    Parse an HL7 v2 message from a file (or stdin with "-") and either:
        - list modeled segment types (with --list), or
        - print the result as JSON to stdout (default), or
        - save the result as a JSON file (with --save DIR).

serve
    Run the MLLP listener; every inbound message is parsed, saved and echoed
    back to the sender.

Exit codes
----------
0  success
1  handled, expected error (HL7LabError or KeyboardInterrupt)
2  CLI usage error (argparse or validation failure)
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import yaml

from . import __version__
from .config import AppConfig, load_config
from .exceptions import HL7LabError
from .hl7_parser import parse
from .logging_utils import configure_logging
from .models import available_types
from .server import serve
from .storage import MessageStore, parsed_to_json, resolve_save_path

# ------------------------------------------------------------------------------
# globals
# ------------------------------------------------------------------------------

LOG = logging.getLogger("hl7_lab_parser")

EXIT_OK = 0
EXIT_ERR = 1
EXIT_CLI = 2

# ------------------------------------------------------------------------------
# Parser construction
# ------------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """
    Build and return the top-level argparse parser and subcommands.

    Returns
    -------
    argparse.ArgumentParser
        Configured parser with subcommands: parse, serve.
    """
    parser = argparse.ArgumentParser(
        prog="hl7-lab",
        description="Parse HL7 v2 lab messages into JSON records.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML config file (overrides defaults).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v, -vv).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"hl7-lab {__version__}",
    )

    sub = parser.add_subparsers(dest="cmd", required=True)

    # parse
    s1 = sub.add_parser("parse", help="Parse an HL7 v2 message file.")
    s1.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=Path("-"),
        help='Path to HL7 v2 message file. Use "-" (default) to read from stdin.',
    )
    s1.add_argument(
        "--list",
        action="store_true",
        help="List modeled segment types and exit.",
    )
    s1.add_argument(
        "--save",
        type=Path,
        default=None,
        metavar="DIR",
        help="Write the result to a JSON file in DIR instead of stdout.",
    )
    s1.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print JSON output.",
    )
    s1.add_argument(
        "--keep-repeats",
        action="store_true",
        help="Keep every occurrence of a repeated segment type as a list.",
    )
    s1.add_argument(
        "--allow-headerless",
        action="store_true",
        help='Parse messages without an MSH segment using the "|" separator.',
    )

    # serve
    s2 = sub.add_parser("serve", help="Run the MLLP listener.")
    s2.add_argument("--host", default=None, help="Interface to bind.")
    s2.add_argument("--port", type=int, default=None, help="TCP port to bind.")
    s2.add_argument(
        "--save-path",
        default=None,
        help="Subdirectory of the data directory where results are written.",
    )

    return parser


# ------------------------------------------------------------------------------
# Validation helpers
# ------------------------------------------------------------------------------


def _validate_existing_file(path: Path, allow_stdin: bool = False) -> None:
    """
    Validate that a path exists and is a file, or is "-" if allow_stdin is True.

    Raises
    ------
    HL7LabError
        If the path does not exist, is not a file, or is not readable.
    """
    if allow_stdin and str(path) == "-":
        return
    if not path.exists():
        raise HL7LabError(f"File not found: {path}")
    if not path.is_file():
        raise HL7LabError(f"Not a file: {path}")
    if not os.access(path, os.R_OK):
        raise HL7LabError(f"File is not readable: {path}")


def _read_text_input(path: Path) -> str:
    """
    Read text either from a file or from stdin when path is "-".

    Raises
    ------
    HL7LabError
        On missing files, permission errors, or OS read failures.
    """
    try:
        if str(path) == "-":
            return sys.stdin.read()
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise HL7LabError(f"File not found: {path}")
    except PermissionError:
        raise HL7LabError(f"Permission denied: {path}")
    except OSError as e:
        raise HL7LabError(f"Failed to read {path}: {e}") from e


# ------------------------------------------------------------------------------
# Command handlers
# ------------------------------------------------------------------------------


def _cmd_parse(
    path: Path,
    cfg: AppConfig,
    list_only: bool,
    save_dir: Optional[Path],
    pretty: bool,
    keep_repeats: bool,
    allow_headerless: bool,
) -> int:
    """
    Parse: convert one HL7 v2 message into JSON.

    Returns
    -------
    int
        EXIT_OK on success.

    Raises
    ------
    HL7LabError
        For unreadable input, malformed messages, or unwritable output.
    """
    if list_only:
        print("Modeled HL7 v2 segment types:")
        for code in available_types():
            print(f"    {code}")
        return EXIT_OK

    _validate_existing_file(path, allow_stdin=True)
    content = _read_text_input(path)

    parsed = parse(
        content,
        require_header=cfg.require_header and not allow_headerless,
        collapse_repeats=cfg.collapse_repeats and not keep_repeats,
    )

    if save_dir is None:
        print(parsed_to_json(parsed, pretty))
        return EXIT_OK

    store = MessageStore(resolve_save_path(save_dir, ""))
    out_path = store.save(parsed, pretty=pretty)
    print(out_path)
    return EXIT_OK


def _cmd_serve(
    cfg: AppConfig,
    host: Optional[str],
    port: Optional[int],
    save_path: Optional[str],
) -> int:
    """
    Serve: run the MLLP listener with command-line overrides applied.

    Raises
    ------
    HL7LabError
        If the save path is invalid or the address cannot be bound.
    """
    overrides = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if save_path is not None:
        overrides["save_path"] = save_path
    cfg = dataclasses.replace(cfg, **overrides)

    try:
        serve(cfg)
    except OSError as e:
        raise HL7LabError(f"Cannot listen on {cfg.host}:{cfg.port}: {e}") from e
    return EXIT_OK


# ------------------------------------------------------------------------------
# Entrypoint
# ------------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    """
    CLI entrypoint.

    Parameters
    ----------
    argv : list[str] or None, default None
        Argument list for testing; None uses sys.argv[1:].

    Returns
    -------
    int
        Process exit code (EXIT_OK, EXIT_ERR, or EXIT_CLI).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    try:
        cfg = load_config(args.config)
    except (OSError, TypeError, ValueError, yaml.YAMLError) as e:
        LOG.error("Invalid config %s: %s", args.config, e)
        return EXIT_CLI

    try:
        if args.cmd == "parse":
            return _cmd_parse(
                path=args.path,
                cfg=cfg,
                list_only=bool(args.list),
                save_dir=args.save,
                pretty=bool(args.pretty),
                keep_repeats=bool(args.keep_repeats),
                allow_headerless=bool(args.allow_headerless),
            )
        if args.cmd == "serve":
            return _cmd_serve(cfg, args.host, args.port, args.save_path)
        parser.error("Unknown command")  # defensive, should not happen
        return EXIT_CLI

    except HL7LabError as e:
        LOG.error("%s", e)
        return EXIT_ERR
    except KeyboardInterrupt:
        LOG.error("Interrupted")
        return EXIT_ERR


if __name__ == "__main__":
    raise SystemExit(main())
