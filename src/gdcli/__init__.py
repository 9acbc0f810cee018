"""gdcli - multi-account command-line client for Google Drive, Docs, Sheets and Slides.

Usage:
    from gdcli.google import AccountStorage
    from gdcli.drive import DriveClient

    storage = AccountStorage()
    drive = DriveClient(storage)
    files = drive.list_files("me@example.com", max_results=10).files
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
