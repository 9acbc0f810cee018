"""Tests for the Google Sheets client."""

from unittest.mock import MagicMock, patch

import pytest

from gdcli.sheets import SheetsClient

EMAIL = "alice@example.com"


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def sheets(account_storage, service):
    client = SheetsClient(account_storage)
    with patch.object(client, "_get_service", return_value=service):
        yield client


SPREADSHEET = {
    "spreadsheetId": "sheet-1",
    "properties": {"title": "Budget", "locale": "en_US", "timeZone": "Europe/Berlin"},
    "sheets": [
        {
            "properties": {
                "sheetId": 0,
                "title": "Sheet1",
                "index": 0,
                "gridProperties": {"rowCount": 1000, "columnCount": 26},
            }
        },
        {"properties": {"sheetId": 42, "title": "Data", "index": 1}},
    ],
    "spreadsheetUrl": "https://docs.google.com/spreadsheets/d/sheet-1/edit",
}


class TestSpreadsheets:
    """Test spreadsheet metadata."""

    def test_get_spreadsheet(self, sheets, service):
        """Should parse properties and sheets."""
        service.spreadsheets().get().execute.return_value = SPREADSHEET
        spreadsheet = sheets.get_spreadsheet(EMAIL, "sheet-1")

        assert spreadsheet.title == "Budget"
        assert spreadsheet.time_zone == "Europe/Berlin"
        assert spreadsheet.default_sheet.row_count == 1000
        assert [s.id for s in spreadsheet.sheets] == [0, 42]

    def test_get_sheet_by_name(self, sheets, service):
        service.spreadsheets().get().execute.return_value = SPREADSHEET
        assert sheets.get_sheet_by_name(EMAIL, "sheet-1", "Data").id == 42
        assert sheets.get_sheet_by_name(EMAIL, "sheet-1", "Missing") is None

    def test_add_sheet(self, sheets, service):
        """Should return the new sheet's properties."""
        service.spreadsheets().batchUpdate().execute.return_value = {
            "replies": [{"addSheet": {"properties": {"sheetId": 7, "title": "New", "index": 2}}}]
        }
        sheet = sheets.add_sheet(EMAIL, "sheet-1", "New")

        assert sheet.id == 7
        assert sheet.index == 2
        body = service.spreadsheets().batchUpdate.call_args.kwargs["body"]
        assert body == {"requests": [{"addSheet": {"properties": {"title": "New"}}}]}

    def test_rename_sheet(self, sheets, service):
        sheets.rename_sheet(EMAIL, "sheet-1", 42, "Renamed")
        request = service.spreadsheets().batchUpdate.call_args.kwargs["body"]["requests"][0]
        assert request["updateSheetProperties"] == {
            "properties": {"sheetId": 42, "title": "Renamed"},
            "fields": "title",
        }


class TestValues:
    """Test reading and writing cell values."""

    def test_read_range(self, sheets, service):
        """Should return the values of the range."""
        service.spreadsheets().values().get().execute.return_value = {
            "range": "Sheet1!A1:B2",
            "majorDimension": "ROWS",
            "values": [["a", "1"], ["b", "2"]],
        }
        result = sheets.read_range(EMAIL, "sheet-1", "Sheet1!A1:B2")
        assert result.range == "Sheet1!A1:B2"
        assert result.values == [["a", "1"], ["b", "2"]]

    def test_read_blank_range(self, sheets, service):
        """Should return no rows for an empty range."""
        service.spreadsheets().values().get().execute.return_value = {"range": "Sheet1!A1:B2"}
        assert sheets.read_range(EMAIL, "sheet-1", "Sheet1!A1:B2").values == []

    def test_write_range(self, sheets, service):
        """Should send user-entered values and return the updated cell count."""
        service.spreadsheets().values().update().execute.return_value = {"updatedCells": 4}
        count = sheets.write_range(EMAIL, "sheet-1", "Sheet1!A1", [["a", 1], ["b", 2]])

        assert count == 4
        kwargs = service.spreadsheets().values().update.call_args.kwargs
        assert kwargs["valueInputOption"] == "USER_ENTERED"
        assert kwargs["body"]["values"] == [["a", 1], ["b", 2]]

    def test_append_rows(self, sheets, service):
        service.spreadsheets().values().append().execute.return_value = {
            "updates": {"updatedCells": 2}
        }
        assert sheets.append_rows(EMAIL, "sheet-1", "Sheet1", [["c", 3]]) == 2
        kwargs = service.spreadsheets().values().append.call_args.kwargs
        assert kwargs["insertDataOption"] == "INSERT_ROWS"

    def test_clear_range(self, sheets, service):
        service.spreadsheets().values().clear().execute.return_value = {
            "clearedRange": "Sheet1!A1:Z1000"
        }
        assert sheets.clear_range(EMAIL, "sheet-1", "Sheet1") == "Sheet1!A1:Z1000"


class TestCsv:
    """Test CSV conversion."""

    def test_parse_types(self):
        """Should convert numbers and booleans."""
        assert SheetsClient.parse_csv("name,age,active\nAlice,30,TRUE\nBob,2.5,false") == [
            ["name", "age", "active"],
            ["Alice", 30, True],
            ["Bob", 2.5, False],
        ]

    def test_parse_quotes(self):
        """Should handle quoted commas and escaped quotes."""
        assert SheetsClient.parse_csv('"a, b","say ""hi""",plain') == [
            ["a, b", 'say "hi"', "plain"]
        ]

    def test_parse_skips_blank_lines(self):
        assert SheetsClient.parse_csv("a,b\n\n   \nc,d\n") == [["a", "b"], ["c", "d"]]

    def test_parse_keeps_empty_cells(self):
        assert SheetsClient.parse_csv("a,,c") == [["a", "", "c"]]

    def test_parse_non_numeric_lookalikes(self):
        """Should keep strings that Python would otherwise coerce."""
        assert SheetsClient.parse_csv("1_000,nan,inf") == [["1_000", "nan", "inf"]]

    def test_export(self):
        """Should quote only where needed."""
        assert SheetsClient.export_to_csv([["a", "b,c"], [1, 'x"y']]) == 'a,"b,c"\n1,"x""y"'

    def test_export_empty(self):
        assert SheetsClient.export_to_csv([]) == ""


class TestUrls:
    def test_web_url(self):
        assert (
            SheetsClient.generate_web_url("sheet-1")
            == "https://docs.google.com/spreadsheets/d/sheet-1/edit"
        )

    def test_web_url_with_sheet(self):
        assert SheetsClient.generate_web_url("sheet-1", 0).endswith("/edit#gid=0")
