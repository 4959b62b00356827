"""Jtab CLI entry points.
This module exposes the import, describe, and show commands.
It maps argparse commands onto SDK calls and errors onto exit codes.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from core.config import JtabConfig
from core.constants import EXIT_MISSING_INPUT, EXIT_SUCCESS
from core.errors import JtabError
from core.types import ImportRequest
from ingest.pipeline import format_summary
from store.table_sdk import JtabClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="jtab", description="JSON document to table importer")
    parser.add_argument("--data-root", help="Override JTAB_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_import_command(subparsers)
    _add_describe_command(subparsers)
    _add_show_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Jtab CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root)
        if args.command == "import":
            return _run_import_command(client, args)
        if args.command == "describe":
            return _run_describe_command(client, args)
        if args.command == "show":
            return _run_show_command(client, args)
    except JtabError as error:
        _print_error(error)
        return error.exit_code
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None) -> JtabClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = JtabConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return JtabClient(config)


def _run_import_command(client: JtabClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    if not args.input:
        print("error_operation=parse-args error_code=MISSING_INPUT", file=sys.stderr)
        print("An input document path is required.", file=sys.stderr)
        return EXIT_MISSING_INPUT
    request = ImportRequest(
        input_path=args.input,
        store_location=args.dsn,
        table_name=args.table,
        target_encoding=args.encoding,
        replace=args.replace,
        force=args.force,
    )
    result = client.import_document(request)
    for line in format_summary(result):
        print(line)
    return EXIT_SUCCESS


def _run_describe_command(client: JtabClient, args: argparse.Namespace) -> int:
    """Handle describe command."""
    structure = client.table(args.dsn, args.table).describe()
    print(f"keys={structure.key_spec or '-'}")
    print(f"names={structure.value_spec}")
    print(f"rows={structure.row_count}")
    print(f"encoding={structure.encoding}")
    return EXIT_SUCCESS


def _run_show_command(client: JtabClient, args: argparse.Namespace) -> int:
    """Handle show command."""
    for row in client.table(args.dsn, args.table).read_rows():
        print(json.dumps(row, ensure_ascii=False))
    return EXIT_SUCCESS


def _print_error(error: JtabError) -> None:
    print(
        f"error_operation={error.operation or '-'} error_code={error.code or '-'} "
        f"exit_code={error.exit_code}",
        file=sys.stderr,
    )
    print(str(error), file=sys.stderr)


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser("import", help="Import a JSON document into a table")
    parser.add_argument("input", nargs="?", help="Input JSON document path")
    parser.add_argument("--dsn", help="Table library; defaults to the document's 'dsn' field")
    parser.add_argument("--table", help="Table name; defaults to the document's 'table' field")
    parser.add_argument(
        "--encoding",
        help="Store encoding codec; the legacy cp037 codepage when omitted",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Replace an existing table that has the same key and value fields",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Replace an existing table even if its fields differ (implies --replace)",
    )


def _add_describe_command(subparsers: Any) -> None:
    """Register describe subcommand."""
    parser = subparsers.add_parser("describe", help="Show a table's fields and row count")
    parser.add_argument("table", help="Table name")
    parser.add_argument("--dsn", required=True, help="Table library")


def _add_show_command(subparsers: Any) -> None:
    """Register show subcommand."""
    parser = subparsers.add_parser("show", help="Print a table's rows as JSON lines")
    parser.add_argument("table", help="Table name")
    parser.add_argument("--dsn", required=True, help="Table library")
