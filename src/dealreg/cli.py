"""Diagnostics CLI for the deal registration spreadsheet.

Checks that the configured service account can reach the spreadsheet and
dumps a tab's rows, using the same settings as the API service.

Usage::

    python -m dealreg.cli check
    python -m dealreg.cli dump Deals --format json
    python -m dealreg.cli dump Admins --range A1:D20
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from typing import Any

from gspread.exceptions import IncorrectCellLabel

from dealreg.app import configure_logging
from dealreg.auth.credentials import SheetsConfigurationError
from dealreg.config import get_settings
from dealreg.sheets.client import SheetsClient, create_sheets_client
from dealreg.sheets.records import range_start_row, rows_to_records


def _a1_range(value: str) -> str:
    try:
        range_start_row(value)
    except IncorrectCellLabel as exc:
        raise argparse.ArgumentTypeError(f"invalid A1 range: {value!r}") from exc
    return value


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the diagnostics commands.

    Returns:
        A configured :class:`argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(description="Inspect the deal registration spreadsheet")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("check", help="Fetch spreadsheet metadata and list its tabs")

    dump = commands.add_parser("dump", help="Print the rows of one tab")
    dump.add_argument("tab", type=str, help="Tab name, e.g. Deals")
    dump.add_argument(
        "--range",
        type=_a1_range,
        default=None,
        dest="cell_range",
        help="A1 range within the tab; its first row is read as the header (default: whole tab)",
    )
    dump.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        dest="output_format",
        help="Output format (default: table)",
    )

    return parser


def format_table(records: list[dict[str, Any]], columns: Sequence[str]) -> str:
    """Format records as a plain text table, one column per header name.

    Args:
        records: Row mappings including ``_rowIndex``.
        columns: Header names in display order.

    Returns:
        Formatted table string with header row.
    """
    if not records:
        return "No rows found."

    headers = ["row", *columns]
    table = [[str(record["_rowIndex"]), *(record.get(c, "") for c in columns)] for record in records]
    widths = [
        min(max(len(h), *(len(row[i]) for row in table)), 30) for i, h in enumerate(headers)
    ]

    def truncate(value: str, width: int) -> str:
        if len(value) > width:
            return value[: width - 3] + "..."
        return value

    lines = ["  ".join(h.ljust(w) for h, w in zip(headers, widths, strict=True))]
    lines.append("-" * len(lines[0]))
    for row in table:
        lines.append(
            "  ".join(truncate(c, w).ljust(w) for c, w in zip(row, widths, strict=True))
        )
    return "\n".join(lines)


def run_command(args: argparse.Namespace, client: SheetsClient) -> str:
    """Execute a parsed command against ``client`` and return its output."""
    if args.command == "check":
        info = client.test_connection()
        lines = [f"Connected to spreadsheet: {info['title']}", "Tabs:"]
        lines.extend(f"  - {title}" for title in info["sheets"])
        return "\n".join(lines)

    data = client.get_sheet_data(args.tab, args.cell_range)
    header_row = range_start_row(args.cell_range)
    records = [record.to_dict() for record in rows_to_records(data, header_row)]
    if args.output_format == "json":
        return json.dumps(records, indent=2)
    return format_table(records, data[0] if data else [])


def main(argv: Sequence[str] | None = None, client: SheetsClient | None = None) -> int:
    """Parse arguments, run the command, and print its output.

    Returns:
        Process exit code: 0 on success, 1 on configuration errors.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(log_file=sys.stderr, cache_loggers=False)

    if client is None:
        client = create_sheets_client(get_settings())

    try:
        print(run_command(args, client))
    except SheetsConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
