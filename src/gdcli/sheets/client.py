"""Google Sheets API client implementation."""

from __future__ import annotations

import csv
import io
import math
from dataclasses import dataclass, field
from typing import Any

from gdcli.google import GoogleService


@dataclass
class Sheet:
    """Represents a sheet within a spreadsheet."""

    id: int | None
    title: str
    index: int | None = None
    row_count: int | None = None
    column_count: int | None = None


@dataclass
class Spreadsheet:
    """Represents a Google Spreadsheet."""

    id: str
    title: str
    locale: str | None = None
    time_zone: str | None = None
    sheets: list[Sheet] = field(default_factory=list)
    url: str | None = None

    @property
    def default_sheet(self) -> Sheet | None:
        """Get the first sheet."""
        if self.sheets:
            return self.sheets[0]
        return None


@dataclass
class ValueRange:
    """Cell values read from a range."""

    range: str
    major_dimension: str = "ROWS"
    values: list[list[Any]] = field(default_factory=list)


class SheetsClient(GoogleService):
    """Google Sheets API client for stored accounts.

    Usage:
        client = SheetsClient(storage)

        # Create a spreadsheet
        sheet = client.create_spreadsheet("me@example.com", "My Spreadsheet")

        # Read values
        values = client.read_range("me@example.com", sheet.id, "Sheet1!A1:C10").values

        # Write values
        client.write_range("me@example.com", sheet.id, "Sheet1!A1", [["Name", "Age"], ["Alice", 30]])

        # Append rows
        client.append_rows("me@example.com", sheet.id, "Sheet1", [["Bob", 25]])
    """

    api_name = "sheets"
    api_version = "v4"

    # =========================================================================
    # Spreadsheets
    # =========================================================================

    def create_spreadsheet(self, email: str, title: str) -> Spreadsheet:
        """Create a blank spreadsheet."""
        service = self._get_service(email)
        result = service.spreadsheets().create(body={"properties": {"title": title}}).execute()
        return self._parse_spreadsheet(result)

    def get_spreadsheet(self, email: str, spreadsheet_id: str) -> Spreadsheet:
        service = self._get_service(email)
        result = service.spreadsheets().get(spreadsheetId=spreadsheet_id).execute()
        return self._parse_spreadsheet(result)

    # =========================================================================
    # Reading Data
    # =========================================================================

    def read_range(
        self,
        email: str,
        spreadsheet_id: str,
        range_notation: str,
        major_dimension: str = "ROWS",
        value_render_option: str = "FORMATTED_VALUE",
    ) -> ValueRange:
        """Read values from a range.

        Args:
            email: Account to act as.
            spreadsheet_id: Spreadsheet ID.
            range_notation: A1 notation (e.g., "Sheet1!A1:C10").
            major_dimension: "ROWS" or "COLUMNS".
            value_render_option: "FORMATTED_VALUE", "UNFORMATTED_VALUE" or "FORMULA".

        Returns:
            ValueRange with a 2D list of cell values (empty if the range is blank).
        """
        service = self._get_service(email)
        result = (
            service.spreadsheets()
            .values()
            .get(
                spreadsheetId=spreadsheet_id,
                range=range_notation,
                majorDimension=major_dimension,
                valueRenderOption=value_render_option,
            )
            .execute()
        )
        return ValueRange(
            range=result.get("range", range_notation),
            major_dimension=result.get("majorDimension", "ROWS"),
            values=result.get("values", []),
        )

    def read_ranges(self, email: str, spreadsheet_id: str, ranges: list[str]) -> list[ValueRange]:
        """Read several ranges in one request."""
        service = self._get_service(email)
        result = (
            service.spreadsheets()
            .values()
            .batchGet(spreadsheetId=spreadsheet_id, ranges=ranges)
            .execute()
        )
        return [
            ValueRange(
                range=vr.get("range", ""),
                major_dimension=vr.get("majorDimension", "ROWS"),
                values=vr.get("values", []),
            )
            for vr in result.get("valueRanges", [])
        ]

    # =========================================================================
    # Writing Data
    # =========================================================================

    def write_range(
        self,
        email: str,
        spreadsheet_id: str,
        range_notation: str,
        values: list[list[Any]],
        value_input_option: str = "USER_ENTERED",
        major_dimension: str = "ROWS",
    ) -> int:
        """Write values to a range.

        Args:
            email: Account to act as.
            spreadsheet_id: Spreadsheet ID.
            range_notation: A1 notation (e.g., "Sheet1!A1").
            values: 2D list of values to write.
            value_input_option: How to interpret input ("RAW" or "USER_ENTERED").
            major_dimension: "ROWS" or "COLUMNS".

        Returns:
            Number of cells updated.
        """
        service = self._get_service(email)
        result = (
            service.spreadsheets()
            .values()
            .update(
                spreadsheetId=spreadsheet_id,
                range=range_notation,
                valueInputOption=value_input_option,
                body={
                    "range": range_notation,
                    "majorDimension": major_dimension,
                    "values": values,
                },
            )
            .execute()
        )
        return result.get("updatedCells", 0)

    def append_rows(
        self,
        email: str,
        spreadsheet_id: str,
        range_notation: str,
        values: list[list[Any]],
        value_input_option: str = "USER_ENTERED",
        insert_data_option: str = "INSERT_ROWS",
    ) -> int:
        """Append rows after the table found in a range.

        Args:
            email: Account to act as.
            spreadsheet_id: Spreadsheet ID.
            range_notation: A1 notation or sheet name (e.g., "Sheet1").
            values: 2D list of rows to append.
            value_input_option: How to interpret input.
            insert_data_option: "INSERT_ROWS" or "OVERWRITE".

        Returns:
            Number of cells updated.
        """
        service = self._get_service(email)
        result = (
            service.spreadsheets()
            .values()
            .append(
                spreadsheetId=spreadsheet_id,
                range=range_notation,
                valueInputOption=value_input_option,
                insertDataOption=insert_data_option,
                body={"values": values},
            )
            .execute()
        )
        return result.get("updates", {}).get("updatedCells", 0)

    def clear_range(self, email: str, spreadsheet_id: str, range_notation: str) -> str:
        """Clear values from a range.

        Returns:
            The range that was cleared, as reported by the API.
        """
        service = self._get_service(email)
        result = (
            service.spreadsheets()
            .values()
            .clear(spreadsheetId=spreadsheet_id, range=range_notation, body={})
            .execute()
        )
        return result.get("clearedRange", range_notation)

    # =========================================================================
    # Sheet Management
    # =========================================================================

    def add_sheet(self, email: str, spreadsheet_id: str, title: str) -> Sheet:
        """Add a new sheet to a spreadsheet."""
        replies = self.batch_update(
            email,
            spreadsheet_id,
            [{"addSheet": {"properties": {"title": title}}}],
        ).get("replies", [])

        props = replies[0].get("addSheet", {}).get("properties", {}) if replies else {}
        return Sheet(
            id=props.get("sheetId"),
            title=props.get("title", title),
            index=props.get("index"),
        )

    def delete_sheet(self, email: str, spreadsheet_id: str, sheet_id: int) -> None:
        """Delete a sheet by its numeric ID (not its title)."""
        self.batch_update(email, spreadsheet_id, [{"deleteSheet": {"sheetId": sheet_id}}])

    def rename_sheet(self, email: str, spreadsheet_id: str, sheet_id: int, new_title: str) -> None:
        self.batch_update(
            email,
            spreadsheet_id,
            [
                {
                    "updateSheetProperties": {
                        "properties": {"sheetId": sheet_id, "title": new_title},
                        "fields": "title",
                    }
                }
            ],
        )

    def get_sheet_by_name(self, email: str, spreadsheet_id: str, sheet_name: str) -> Sheet | None:
        spreadsheet = self.get_spreadsheet(email, spreadsheet_id)
        for sheet in spreadsheet.sheets:
            if sheet.title == sheet_name:
                return sheet
        return None

    def batch_update(
        self, email: str, spreadsheet_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Send raw Sheets API requests."""
        service = self._get_service(email)
        return (
            service.spreadsheets()
            .batchUpdate(spreadsheetId=spreadsheet_id, body={"requests": requests})
            .execute()
        )

    # =========================================================================
    # CSV
    # =========================================================================

    @staticmethod
    def export_to_csv(values: list[list[Any]]) -> str:
        """Render rows as CSV, quoting only where needed."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerows(values)
        return buffer.getvalue().removesuffix("\n")

    @staticmethod
    def parse_csv(text: str) -> list[list[Any]]:
        """Parse CSV text into rows of typed values.

        Numbers become int/float and ``true``/``false`` (any case) become
        bools; blank lines are skipped.
        """
        reader = csv.reader(io.StringIO(text))
        return [
            [_parse_value(cell) for cell in row]
            for row in reader
            if len(row) > 1 or (row and row[0].strip())
        ]

    # =========================================================================
    # URLs
    # =========================================================================

    @staticmethod
    def generate_web_url(spreadsheet_id: str, sheet_id: int | None = None) -> str:
        url = f"https://docs.google.com/spreadsheets/d/{spreadsheet_id}/edit"
        if sheet_id is not None:
            url += f"#gid={sheet_id}"
        return url

    # =========================================================================
    # Parsing
    # =========================================================================

    def _parse_spreadsheet(self, data: dict) -> Spreadsheet:
        """Parse spreadsheet from API response."""
        sheets = []
        for sheet_data in data.get("sheets", []):
            props = sheet_data.get("properties", {})
            grid_props = props.get("gridProperties", {})
            sheets.append(
                Sheet(
                    id=props.get("sheetId"),
                    title=props.get("title", ""),
                    index=props.get("index"),
                    row_count=grid_props.get("rowCount"),
                    column_count=grid_props.get("columnCount"),
                )
            )

        properties = data.get("properties", {})
        return Spreadsheet(
            id=data.get("spreadsheetId", ""),
            title=properties.get("title", ""),
            locale=properties.get("locale"),
            time_zone=properties.get("timeZone"),
            sheets=sheets,
            url=data.get("spreadsheetUrl"),
        )


def _parse_value(value: str) -> Any:
    """Convert one CSV cell to bool, int, float, or stripped string."""
    trimmed = value.strip()
    if trimmed == "":
        return ""

    lowered = trimmed.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if "_" in trimmed:
        return trimmed
    try:
        return int(trimmed)
    except ValueError:
        pass
    try:
        number = float(trimmed)
    except ValueError:
        return trimmed
    if math.isnan(number) or math.isinf(number):
        return trimmed
    return number
