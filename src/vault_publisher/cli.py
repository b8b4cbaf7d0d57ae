"""Command-line front end for the publisher.

Subcommands:

- ``publish PATH``   -- publish one note.
- ``publish-all``    -- publish every shareable note.
- ``status``         -- list notes recorded in the ledger.
- ``init``           -- write a starter config file.
- ``serve``          -- run the MCP server on stdio.

Exit status is 0 on success and 1 when configuration is invalid or any
note failed.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Callable, Sequence

from dotenv import load_dotenv

from . import __version__
from .config_loader import ensure_config
from .core.client import RemoteError
from .logger import setup_logging
from .mcp.server import add_connection_arguments, overrides_from_args, serve
from .publish.reporter import (
    format_ledger_status,
    format_publish_report,
    format_publish_result,
    ledger_to_json,
    report_to_json,
    result_to_json,
)
from .session import (
    PublisherSession,
    ledger_for,
    load_session,
    load_unified_config,
)

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    handler: Callable[[argparse.Namespace], int] | None = getattr(
        args, "handler", None
    )
    if handler is None:
        parser.print_help(sys.stderr)
        return 1

    if args.command != "serve":
        setup_logging(
            mode="cli",
            debug=args.debug,
            log_file=args.log_file,
            debug_format=args.log_format,
        )
    return handler(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vault-publisher",
        description="Publish selected vault notes to a GitHub repository",
    )
    add_connection_arguments(parser)
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        default="text",
        help="Log line format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"vault-publisher version {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    publish_parser = subparsers.add_parser("publish", help="Publish one note")
    publish_parser.add_argument(
        "path", help="Vault-relative path of the note (e.g. Notes/Idea.md)"
    )
    _add_output_flags(publish_parser)
    publish_parser.set_defaults(handler=_handle_publish)

    all_parser = subparsers.add_parser(
        "publish-all", help="Publish every shareable note"
    )
    _add_output_flags(all_parser)
    all_parser.set_defaults(handler=_handle_publish_all)

    status_parser = subparsers.add_parser(
        "status", help="List notes recorded in the ledger"
    )
    status_parser.add_argument(
        "--query", help="Only list notes whose path contains this text"
    )
    status_parser.add_argument(
        "--json", action="store_true", help="Print JSON instead of text"
    )
    status_parser.set_defaults(handler=_handle_status)

    init_parser = subparsers.add_parser(
        "init", help="Create a starter config file if none exists"
    )
    init_parser.add_argument(
        "--path", help="Where to write the config (default: ./.vault_publisher/config.yml)"
    )
    init_parser.set_defaults(handler=_handle_init)

    serve_parser = subparsers.add_parser(
        "serve", help="Run the MCP server on stdio"
    )
    serve_parser.add_argument(
        "--read-only",
        action="store_true",
        help="Only register tools that never write to the repository",
    )
    serve_parser.set_defaults(handler=_handle_serve)

    return parser


def _add_output_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve remote paths without publishing",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print JSON instead of text"
    )


def _print_json(data: dict) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _load(args: argparse.Namespace) -> PublisherSession | None:
    try:
        return load_session(overrides_from_args(args))
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        print(f"ERROR: {e}", file=sys.stderr)
        return None


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_publish(args: argparse.Namespace) -> int:
    session = _load(args)
    if session is None:
        return 1

    try:
        result = asyncio.run(
            session.engine.publish_document(args.path, dry_run=args.dry_run)
        )
    except (ValueError, RemoteError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.json:
        _print_json(result_to_json(result))
    else:
        print(format_publish_result(result))
    return 0 if result.success else 1


async def _publish_all(session: PublisherSession, dry_run: bool):
    """Run a batch; Ctrl-C stops it after the note in progress."""
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
    except NotImplementedError:
        # Windows event loops have no signal handlers
        pass
    try:
        return await session.engine.publish_all(dry_run=dry_run, cancel=cancel)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except NotImplementedError:
            pass


def _handle_publish_all(args: argparse.Namespace) -> int:
    session = _load(args)
    if session is None:
        return 1

    try:
        report = asyncio.run(_publish_all(session, args.dry_run))
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.json:
        _print_json(report_to_json(report))
    else:
        print(format_publish_report(report))
    return 1 if report.errors else 0


def _handle_status(args: argparse.Namespace) -> int:
    # Reads the ledger only, so no credentials are needed
    load_dotenv()
    try:
        unified, _ = load_unified_config()
        root = Path(args.vault or unified.publish.vault).expanduser()
        ledger = ledger_for(unified.publish, root)
        records = list(ledger.iter_records(ledger.load()))
    except (ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.query:
        query = args.query.lower()
        records = [r for r in records if query in r.local_path.lower()]

    if args.json:
        _print_json(ledger_to_json(records))
    else:
        print(format_ledger_status(records))
    return 0


def _handle_init(args: argparse.Namespace) -> int:
    path = ensure_config(Path(args.path) if args.path else None)
    print(f"Config file: {path}")
    return 0


def _handle_serve(args: argparse.Namespace) -> int:
    overrides = overrides_from_args(args)
    if args.log_file:
        overrides["log_file"] = args.log_file
    if args.read_only:
        overrides["read_only"] = True
    serve(overrides)
    return 0


if __name__ == "__main__":
    sys.exit(main())
