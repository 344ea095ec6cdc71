"""Tests for the spreadsheet diagnostics CLI."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest
import structlog

from dealreg.auth.credentials import SheetsConfigurationError
from dealreg.cli import build_parser, format_table, main
from dealreg.sheets.client import SheetsClient
from fakes import MakeClient

TALL_DEALS = {
    "Deals": [["id", "status"], ["D1", "pending"], ["D2", "approved"], ["D3", "rejected"]]
}


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


class TestBuildParser:
    """Tests for argument parser construction."""

    def test_dump_accepts_all_arguments(self) -> None:
        args = build_parser().parse_args(
            ["dump", "Deals", "--range", "A1:D20", "--format", "json"]
        )
        assert args.command == "dump"
        assert args.tab == "Deals"
        assert args.cell_range == "A1:D20"
        assert args.output_format == "json"

    def test_dump_defaults(self) -> None:
        args = build_parser().parse_args(["dump", "Admins"])
        assert args.cell_range is None
        assert args.output_format == "table"

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_rejects_unknown_format(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["dump", "Deals", "--format", "xml"])

    @pytest.mark.parametrize("cell_range", ["1A", "A1:1A", "Deals!"])
    def test_rejects_malformed_range(self, cell_range: str) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["dump", "Deals", "--range", cell_range])


class TestFormatTable:
    """Tests for plain text table output."""

    def test_empty(self) -> None:
        assert format_table([], ["id"]) == "No rows found."

    def test_header_and_rows(self) -> None:
        output = format_table(
            [{"id": "D1", "status": "pending", "_rowIndex": 2}], ["id", "status"]
        )
        lines = output.splitlines()
        assert lines[0].split() == ["row", "id", "status"]
        assert set(lines[1]) == {"-"}
        assert lines[2].split() == ["2", "D1", "pending"]

    def test_long_values_truncated(self) -> None:
        output = format_table([{"note": "x" * 50, "_rowIndex": 2}], ["note"])
        assert "x" * 27 + "..." in output
        assert "x" * 31 not in output


class TestMain:
    """Tests for the CLI entry point."""

    def test_check_lists_tabs(
        self, sheets_client: SheetsClient, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["check"], client=sheets_client) == 0

        out = capsys.readouterr().out
        assert "Connected to spreadsheet: Deal Registrations" in out
        assert "  - Deals" in out
        assert "  - Admins" in out

    def test_dump_table(
        self, sheets_client: SheetsClient, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["dump", "Admins"], client=sheets_client) == 0

        out = capsys.readouterr().out
        assert "root@example.com" in out
        assert "former@example.com" in out

    def test_dump_json_range(
        self, sheets_client: SheetsClient, capsys: pytest.CaptureFixture[str]
    ) -> None:
        argv = ["dump", "Deals", "--range", "A1:B2", "--format", "json"]
        assert main(argv, client=sheets_client) == 0

        records = json.loads(capsys.readouterr().out)
        assert records == [{"id": "D1", "status": "pending", "_rowIndex": 2}]

    def test_dump_empty_tab(
        self, sheets_client: SheetsClient, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["dump", "Empty"], client=sheets_client) == 0
        assert "No rows found." in capsys.readouterr().out

    def test_closes_client(self, sheets_client: SheetsClient) -> None:
        main(["check"], client=sheets_client)
        assert sheets_client.initialized is False

    def test_configuration_error_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        loader = MagicMock(side_effect=SheetsConfigurationError("key file not found"))

        assert main(["check"], client=SheetsClient(loader, "sheet-abc")) == 1
        assert "Configuration error: key file not found" in capsys.readouterr().err

    @patch("dealreg.cli.create_sheets_client")
    @patch("dealreg.cli.get_settings")
    def test_builds_client_from_settings(
        self,
        mock_settings: MagicMock,
        mock_create: MagicMock,
        sheets_client: SheetsClient,
    ) -> None:
        mock_create.return_value = sheets_client

        assert main(["check"]) == 0
        mock_create.assert_called_once_with(mock_settings.return_value)

    def test_range_below_row_one_keeps_physical_row_numbers(
        self, make_client: MakeClient, capsys: pytest.CaptureFixture[str]
    ) -> None:
        client, _ = make_client(TALL_DEALS)

        argv = ["dump", "Deals", "--range", "A2:B4", "--format", "json"]
        assert main(argv, client=client) == 0

        records = json.loads(capsys.readouterr().out)
        assert [record["_rowIndex"] for record in records] == [3, 4]
        assert records[0]["D1"] == "D2"

    def test_column_range_starts_at_header(
        self, make_client: MakeClient, capsys: pytest.CaptureFixture[str]
    ) -> None:
        client, _ = make_client(TALL_DEALS)

        assert main(["dump", "Deals", "--range", "A:B", "--format", "json"], client=client) == 0

        records = json.loads(capsys.readouterr().out)
        assert [(record["id"], record["_rowIndex"]) for record in records] == [
            ("D1", 2),
            ("D2", 3),
            ("D3", 4),
        ]


class TestLogging:
    """Tests that log lines stay off the command output."""

    def test_logs_go_to_stderr(self, sheets_client: SheetsClient) -> None:
        with patch("dealreg.cli.configure_logging") as mock_configure:
            main(["check"], client=sheets_client)

        mock_configure.assert_called_once_with(log_file=sys.stderr, cache_loggers=False)

    def test_json_output_is_parseable_alone(
        self, sheets_client: SheetsClient, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["dump", "Admins", "--format", "json"], client=sheets_client) == 0

        captured = capsys.readouterr()
        records = json.loads(captured.out)
        assert [record["email"] for record in records] == [
            "root@example.com",
            "former@example.com",
        ]
        assert "sheets_auth_succeeded" not in captured.out
