"""Google Sheets API client for stored gdcli accounts.

Usage:
    from gdcli.sheets import SheetsClient

    client = SheetsClient(storage)

    # Read values
    result = client.read_range("me@example.com", spreadsheet_id, "Sheet1!A1:C10")

    # Write values parsed from CSV
    client.write_range("me@example.com", spreadsheet_id, "Sheet1!A1", client.parse_csv("a,1\\nb,2"))
"""

from __future__ import annotations

from gdcli.sheets.client import Sheet, SheetsClient, Spreadsheet, ValueRange

__all__ = ["SheetsClient", "Spreadsheet", "Sheet", "ValueRange"]
