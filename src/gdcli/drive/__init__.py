"""Google Drive API client for stored gdcli accounts.

Usage:
    from gdcli.drive import DriveClient
    from gdcli.google import AccountStorage

    client = DriveClient(AccountStorage())

    # List files
    for f in client.list_files("me@example.com").files:
        print(f.name)

    # Upload a file
    file = client.upload_file("me@example.com", "/path/to/file.pdf")

    # Download a file
    client.download_file("me@example.com", file.id)
"""

from __future__ import annotations

from gdcli.drive.client import (
    FOLDER_MIME_TYPE,
    DriveClient,
    DriveFile,
    DriveListResult,
    DriveOwner,
    Permission,
)

__all__ = [
    "DriveClient",
    "DriveFile",
    "DriveListResult",
    "DriveOwner",
    "Permission",
    "FOLDER_MIME_TYPE",
]
