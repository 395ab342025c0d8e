"""
p4_listing — List the files of a Perforce client with their head revision metadata.

Overview
--------
Runs `p4 fstat` against the configured client and prints each non-deleted
file with its path relative to the stream root, last action, changelist,
file type and digest. Output is read while p4 runs.

Connection settings come from the usual P4PORT, P4USER, P4CLIENT and
P4CHARSET variables (a `.env` file is honored) and can be overridden with
flags.

Usage
-----
Run `python -m p4_listing.cli --help` for full options. Common examples:
    - Every file of the client, as JSONL:
        p4-listing files --format jsonl

    - A sub-directory, without asking the server for the stream depth:
        p4-listing --client my_ws files --depth 2 "Engine/..."

    - Escape a literal path before using it in a file spec:
        p4-listing escape "Content/Maps/Level@2.umap"
"""

from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING

from p4_listing import __version__
from p4_listing.client import P4Client
from p4_listing.exceptions import P4ListingError
from p4_listing.executor import SubprocessExecutor
from p4_listing.logging import logger, setup_logging
from p4_listing.output_construction import render_records
from p4_listing.path_codec import escape_path, unescape_path
from p4_listing.settings import OutputFormat, Settings

if TYPE_CHECKING:
    from collections.abc import Sequence


def positive_int(value: str) -> int:
    """Parse a strictly positive integer argument."""
    number = int(value)
    if number < 1:
        msg = f"must be at least 1, got {number}"
        raise argparse.ArgumentTypeError(msg)
    return number


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="p4-listing",
        description="List Perforce client files and their metadata.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--port", type=str, default="", help="Server address (P4PORT).")
    p.add_argument("--user", type=str, default="", help="User (P4USER).")
    p.add_argument("--client", type=str, default="", help="Client workspace (P4CLIENT).")
    p.add_argument("--charset", type=str, default="", help="Server charset (P4CHARSET).")
    p.add_argument("--p4-bin", type=str, default="", help="p4 executable.")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")

    sub = p.add_subparsers(dest="command", required=True)

    files = sub.add_parser("files", help="List the client's files.")
    files.add_argument(
        "file_specs",
        nargs="*",
        default=[],
        help="File specs relative to the client root (default: ...).",
    )
    files.add_argument(
        "--depth",
        type=positive_int,
        default=None,
        help="Stream depth, skips asking the server for it.",
    )
    files.add_argument(
        "--escape",
        action="store_true",
        help="Treat file specs as literal paths and escape @#*%%.",
    )
    files.add_argument(
        "--format",
        dest="output_format",
        choices=[fmt.value for fmt in OutputFormat],
        default=OutputFormat.TEXT.value,
        help="Output format.",
    )

    sub.add_parser("depot", help="Print the depot of the client.")

    escape = sub.add_parser("escape", help="Escape @#*%% in paths.")
    escape.add_argument("paths", nargs="+")

    unescape = sub.add_parser("unescape", help="Decode %%XX sequences in paths.")
    unescape.add_argument("paths", nargs="+")

    return p


def parse_args(argv: Sequence[str] | None = None) -> tuple[argparse.Namespace, Settings]:
    """Parse the command line into its arguments and the resulting settings."""
    args = build_parser().parse_args(argv)
    settings = Settings.from_env(
        port=args.port,
        user=args.user,
        client=args.client,
        charset=args.charset,
        p4_bin=args.p4_bin,
        log_file=args.log_file,
        output_format=getattr(args, "output_format", None),
    )
    return args, settings


def run_files(args: argparse.Namespace, settings: Settings) -> int:
    client = P4Client(settings, SubprocessExecutor())
    recs = client.list_depot_files(args.file_specs, escape=args.escape, depth=args.depth)
    sys.stdout.write(render_records(recs, settings.output_format))
    return 0


def run_depot(_args: argparse.Namespace, settings: Settings) -> int:
    client = P4Client(settings, SubprocessExecutor())
    print(client.depot())
    return 0


def run_escape(args: argparse.Namespace, _settings: Settings) -> int:
    for path in args.paths:
        print(escape_path(path))
    return 0


def run_unescape(args: argparse.Namespace, _settings: Settings) -> int:
    for path in args.paths:
        print(unescape_path(path))
    return 0


COMMANDS = {
    "files": run_files,
    "depot": run_depot,
    "escape": run_escape,
    "unescape": run_unescape,
}


def main(argv: Sequence[str] | None = None) -> int:
    args, settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        return COMMANDS[args.command](args, settings)
    except P4ListingError as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
