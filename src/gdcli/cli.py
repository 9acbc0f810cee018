"""CLI for gdcli - multi-account access to Drive, Docs, Sheets and Slides.

Usage:
    gdcli accounts credentials <file.json>     # Store the OAuth client registration
    gdcli accounts list                        # List authorized accounts
    gdcli accounts add <email> [--manual]      # Authorize a new account
    gdcli accounts remove <email>              # Forget an account
    gdcli accounts status                      # Show configuration status

    gdcli <email> drive list|search|get|download|upload|mkdir|delete|move|copy|rename|share|permissions|url
    gdcli <email> docs get|create|append|replace|url
    gdcli <email> sheets get|read|create|write|append|clear|add-sheet|url
    gdcli <email> slides get|create|add-slide|delete-slide|replace|thumbnail|url
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx
from googleapiclient.errors import HttpError

from gdcli import __version__
from gdcli.config import get_config_status
from gdcli.docs import DocsClient
from gdcli.drive import DriveClient
from gdcli.drive.client import (
    FOLDER_MIME_TYPE,
    GOOGLE_DOC_MIME_TYPE,
    GOOGLE_SHEET_MIME_TYPE,
    GOOGLE_SLIDES_MIME_TYPE,
)
from gdcli.google import (
    Account,
    AccountExistsError,
    AccountStorage,
    CredentialsNotConfiguredError,
    GdcliError,
    OAuth2Credentials,
    OAuthFlow,
)
from gdcli.sheets import SheetsClient
from gdcli.slides import SlidesClient

logger = logging.getLogger(__name__)

# --type shortcuts for drive list
FILE_TYPES = {
    "document": GOOGLE_DOC_MIME_TYPE,
    "spreadsheet": GOOGLE_SHEET_MIME_TYPE,
    "presentation": GOOGLE_SLIDES_MIME_TYPE,
    "folder": FOLDER_MIME_TYPE,
    "pdf": "application/pdf",
}


# =============================================================================
# Output helpers
# =============================================================================


def format_size(size: int | None) -> str:
    """Human-readable byte count ("-" when unknown)."""
    if size is None:
        return "-"
    if size < 1024:
        return f"{size} B"
    if size < 1024**2:
        return f"{size / 1024:.1f} KB"
    if size < 1024**3:
        return f"{size / 1024**2:.1f} MB"
    return f"{size / 1024**3:.1f} GB"


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def print_json(value: Any) -> None:
    """Print a dataclass (or list of them) as indented JSON."""
    if dataclasses.is_dataclass(value):
        value = dataclasses.asdict(value)
    elif isinstance(value, list):
        value = [dataclasses.asdict(v) if dataclasses.is_dataclass(v) else v for v in value]
    print(json.dumps(value, indent=2, default=_json_default))


def _print_tsv(rows: list[list[Any]]) -> None:
    for row in rows:
        print("\t".join("" if cell is None else str(cell) for cell in row))


# =============================================================================
# Accounts
# =============================================================================


def accounts_credentials(storage: AccountStorage, source_path: str) -> int:
    """Import the OAuth client registration from a Google Cloud client file."""
    source = Path(source_path).expanduser()

    try:
        with open(source) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise GdcliError(f"Invalid JSON in {source}: {e}") from e

    if not isinstance(data, dict) or ("installed" not in data and "web" not in data):
        raise GdcliError("Invalid OAuth client file: expected an 'installed' or 'web' key")

    key = "installed" if "installed" in data else "web"
    client_id = data[key].get("client_id")
    client_secret = data[key].get("client_secret")
    if not client_id or not client_secret:
        raise GdcliError("Invalid OAuth client file: missing client_id or client_secret")

    storage.set_credentials(client_id, client_secret)
    print("Credentials saved")
    print(f"  From: {source}")
    print(f"  To:   {storage.credentials_path}")
    print()
    print("Next: Run 'gdcli accounts add <email>' to authorize an account")
    return 0


def accounts_list(storage: AccountStorage) -> int:
    for account in storage.get_all_accounts():
        print(account.email)
    return 0


def accounts_add(
    storage: AccountStorage,
    email: str,
    manual: bool = False,
    timeout: float | None = None,
) -> int:
    """Authorize an account and persist it once the flow has succeeded."""
    if storage.has_account(email):
        raise AccountExistsError(email)

    credentials = storage.get_credentials()
    if credentials is None:
        raise CredentialsNotConfiguredError()

    flow = OAuthFlow(credentials.client_id, credentials.client_secret)
    result = flow.authorize(manual=manual, timeout=timeout)

    storage.add_account(
        Account(
            email=email,
            oauth2=OAuth2Credentials(
                client_id=credentials.client_id,
                client_secret=credentials.client_secret,
                refresh_token=result.refresh_token,
                access_token=result.access_token,
            ),
        )
    )
    print(f"Account '{email}' added")
    return 0


def accounts_remove(storage: AccountStorage, email: str) -> int:
    if storage.delete_account(email):
        print(f"Removed '{email}'")
        return 0
    print(f"Not found: {email}")
    return 1


def accounts_status(storage: AccountStorage) -> int:
    """Show configuration status."""
    status = get_config_status(storage.get_config_dir())

    print("=" * 60)
    print("GDCLI STATUS")
    print("=" * 60)
    print()
    print(f"Config dir : {status['config_dir']}")
    print(f"Redirect   : http://localhost:{status['redirect_port']}")
    print()
    print(f"  .env:             {'[x]' if status['env_file'] else '[ ]'}")
    print(f"  credentials.json: {'[x]' if status['credentials'] else '[ ]'}")
    print(f"  accounts.json:    {'[x]' if status['accounts'] else '[ ]'}")
    print(f"  downloads/:       {'[x]' if status['downloads'] else '[ ]'}")
    print()

    accounts = storage.get_all_accounts()
    print(f"Accounts ({len(accounts)}):")
    for account in accounts:
        print(f"  {account.email}")

    if not status["credentials"]:
        print()
        print("Download an OAuth client (Desktop app) from:")
        print("  https://console.cloud.google.com/apis/credentials")
        print("Then run: gdcli accounts credentials <credentials.json>")
    return 0


# =============================================================================
# Drive
# =============================================================================


def run_drive(client: DriveClient, email: str, args: argparse.Namespace) -> int:
    command = args.drive_command

    if command == "list":
        result = client.list_files(
            email,
            query=args.query,
            mime_type=FILE_TYPES.get(args.type) if args.type else None,
            max_results=args.max,
            page_token=args.page,
        )
        if args.format == "json":
            print_json(result)
            return 0
        _print_file_table(result.files)
        if result.next_page_token:
            print(f"\n# Next page: --page {result.next_page_token}")
        return 0

    if command == "search":
        files = client.search(email, " ".join(args.query), max_results=args.max)
        _print_file_table(files)
        return 0

    if command == "get":
        print_json(client.get_file(email, args.file_id))
        return 0

    if command == "download":
        path = client.download_file(email, args.file_id, args.out)
        print(f"Downloaded: {path}")
        return 0

    if command == "upload":
        file = client.upload_file(email, args.path, name=args.name, parent_id=args.parent)
        print(f"Uploaded: {file.name}")
        print(f"  ID:  {file.id}")
        print(f"  URL: {file.web_view_link or client.generate_web_url(file.id)}")
        return 0

    if command == "mkdir":
        folder = client.create_folder(email, args.name, parent_id=args.parent)
        print(f"Created folder: {folder.name}")
        print(f"  ID:  {folder.id}")
        print(f"  URL: {client.generate_folder_url(folder.id)}")
        return 0

    if command == "delete":
        client.delete_file(email, args.file_id)
        print(f"Deleted: {args.file_id}")
        return 0

    if command == "move":
        file = client.move_file(email, args.file_id, args.to)
        print(f"Moved: {file.name} -> {args.to}")
        return 0

    if command == "copy":
        file = client.copy_file(email, args.file_id, name=args.name, parent_id=args.parent)
        print(f"Copied: {file.name}")
        print(f"  ID: {file.id}")
        return 0

    if command == "rename":
        file = client.rename_file(email, args.file_id, args.name)
        print(f"Renamed: {file.name}")
        return 0

    if command == "share":
        if args.anyone:
            permission = client.share(email, args.file_id, args.role, type="anyone")
        elif args.email:
            permission = client.share(
                email,
                args.file_id,
                args.role,
                type="user",
                email_address=args.email,
                send_notification=args.notify,
            )
        else:
            raise GdcliError("share needs --email or --anyone")
        print(f"Shared: {permission.role} for {permission.email_address or permission.type}")
        return 0

    if command == "permissions":
        print("ID\tTYPE\tROLE\tEMAIL")
        _print_tsv(
            [[p.id, p.type, p.role, p.email_address or ""] for p in client.list_permissions(email, args.file_id)]
        )
        return 0

    if command == "url":
        print(client.generate_web_url(args.file_id))
        return 0

    return 0


def _print_file_table(files: list) -> None:
    print("ID\tNAME\tTYPE\tSIZE\tMODIFIED")
    _print_tsv(
        [
            [
                f.id,
                f.name,
                f.mime_type.rsplit(".", 1)[-1],
                format_size(f.size),
                f.modified_time.strftime("%Y-%m-%d %H:%M") if f.modified_time else "",
            ]
            for f in files
        ]
    )


# =============================================================================
# Docs
# =============================================================================


def run_docs(client: DocsClient, email: str, args: argparse.Namespace) -> int:
    command = args.docs_command

    if command == "get":
        document = client.get_document(email, args.document_id)
        if args.format == "json":
            print_json(document)
        elif args.format == "md":
            print(client.extract_markdown(document), end="")
        else:
            print(client.extract_text(document), end="")
        return 0

    if command == "create":
        document = client.create_document(email, " ".join(args.title))
        print(f"Created: {document.title}")
        print(f"  ID:  {document.id}")
        print(f"  URL: {client.generate_web_url(document.id)}")
        return 0

    if command == "append":
        client.append_text(email, args.document_id, args.text)
        print("Appended")
        return 0

    if command == "replace":
        client.replace_text(
            email, args.document_id, args.find, args.replace, match_case=not args.ignore_case
        )
        print("Replaced")
        return 0

    if command == "url":
        print(client.generate_web_url(args.document_id))
        return 0

    return 0


# =============================================================================
# Sheets
# =============================================================================


def run_sheets(client: SheetsClient, email: str, args: argparse.Namespace) -> int:
    command = args.sheets_command

    if command == "get":
        print_json(client.get_spreadsheet(email, args.spreadsheet_id))
        return 0

    if command == "read":
        result = client.read_range(email, args.spreadsheet_id, args.range)
        if args.format == "csv":
            if result.values:
                print(client.export_to_csv(result.values))
        else:
            _print_tsv(result.values)
        return 0

    if command == "create":
        spreadsheet = client.create_spreadsheet(email, " ".join(args.title))
        print(f"Created: {spreadsheet.title}")
        print(f"  ID:  {spreadsheet.id}")
        print(f"  URL: {spreadsheet.url or client.generate_web_url(spreadsheet.id)}")
        return 0

    if command == "write":
        cells = client.write_range(
            email, args.spreadsheet_id, args.range, client.parse_csv(args.values)
        )
        print(f"Updated {cells} cells")
        return 0

    if command == "append":
        cells = client.append_rows(
            email, args.spreadsheet_id, args.range, client.parse_csv(args.values)
        )
        print(f"Appended {cells} cells")
        return 0

    if command == "clear":
        cleared = client.clear_range(email, args.spreadsheet_id, args.range)
        print(f"Cleared: {cleared}")
        return 0

    if command == "add-sheet":
        sheet = client.add_sheet(email, args.spreadsheet_id, args.title)
        print(f"Added sheet: {sheet.title} (ID: {sheet.id})")
        return 0

    if command == "url":
        print(client.generate_web_url(args.spreadsheet_id, args.sheet_id))
        return 0

    return 0


# =============================================================================
# Slides
# =============================================================================


def run_slides(client: SlidesClient, email: str, args: argparse.Namespace) -> int:
    command = args.slides_command

    if command == "get":
        presentation = client.get_presentation(email, args.presentation_id)
        if args.format == "text":
            print(client.extract_text(presentation), end="")
        elif args.format == "ids":
            for slide_id in client.get_slide_ids(presentation):
                print(slide_id)
        else:
            print_json(presentation)
        return 0

    if command == "create":
        presentation = client.create_presentation(email, " ".join(args.title))
        print(f"Created: {presentation.title}")
        print(f"  ID:  {presentation.id}")
        print(f"  URL: {client.generate_web_url(presentation.id)}")
        return 0

    if command == "add-slide":
        slide_id = client.add_slide(
            email, args.presentation_id, layout=args.layout, insertion_index=args.index
        )
        print(f"Added slide: {slide_id}")
        return 0

    if command == "delete-slide":
        client.delete_slide(email, args.presentation_id, args.slide_id)
        print(f"Deleted slide: {args.slide_id}")
        return 0

    if command == "replace":
        count = client.replace_all_text(email, args.presentation_id, args.find, args.replace)
        print(f"Replaced {count} occurrences")
        return 0

    if command == "thumbnail":
        thumbnail = client.get_thumbnail(
            email, args.presentation_id, args.slide_id, mime_type=args.format
        )
        if args.out:
            path = client.download_thumbnail(thumbnail, args.out)
            print(f"Saved: {path}")
        else:
            print(thumbnail.content_url)
        return 0

    if command == "url":
        print(client.generate_web_url(args.presentation_id, args.slide))
        return 0

    return 0


# =============================================================================
# Parsers
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Top-level parser: ``gdcli [-v] accounts ...`` or ``gdcli [-v] <email> <service> ...``."""
    parser = argparse.ArgumentParser(
        prog="gdcli",
        description="Multi-account command-line client for Google Drive, Docs, Sheets and Slides",
        epilog="Run 'gdcli accounts -h' or 'gdcli <email> -h' for command help.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("target", nargs="?", help="'accounts' or an account email")
    parser.add_argument("rest", nargs=argparse.REMAINDER, help=argparse.SUPPRESS)
    return parser


def build_accounts_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gdcli accounts", description="Account management")
    subparsers = parser.add_subparsers(dest="accounts_command", help="Command")

    credentials_parser = subparsers.add_parser(
        "credentials", help="Store OAuth client credentials"
    )
    credentials_parser.add_argument("path", help="Path to the Google Cloud client JSON file")

    subparsers.add_parser("list", help="List authorized accounts")

    add_parser = subparsers.add_parser("add", help="Authorize a new account")
    add_parser.add_argument("email", help="Account email")
    add_parser.add_argument(
        "--manual",
        action="store_true",
        help="Paste the redirect URL instead of running a local listener",
    )
    add_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the browser redirect (default: no limit)",
    )

    remove_parser = subparsers.add_parser("remove", help="Forget an account")
    remove_parser.add_argument("email", help="Account email")

    subparsers.add_parser("status", help="Show configuration status")
    return parser


def build_service_parser(email: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=f"gdcli {email}", description="Google API commands")
    services = parser.add_subparsers(dest="service", help="Service")

    # drive
    drive_parser = services.add_parser("drive", help="Google Drive")
    drive = drive_parser.add_subparsers(dest="drive_command", help="Command")

    p = drive.add_parser("list", help="List files")
    p.add_argument("--query", help="Drive query (e.g. \"name contains 'report'\")")
    p.add_argument("--max", type=int, default=20, help="Maximum results (default: 20)")
    p.add_argument("--type", choices=sorted(FILE_TYPES), help="Filter by file type")
    p.add_argument("--page", help="Page token from a previous listing")
    p.add_argument("--format", choices=["tsv", "json"], default="tsv")

    p = drive.add_parser("search", help="Full-text search")
    p.add_argument("query", nargs="+")
    p.add_argument("--max", type=int, default=20)

    p = drive.add_parser("get", help="Show file metadata as JSON")
    p.add_argument("file_id")

    p = drive.add_parser("download", help="Download (or export) a file")
    p.add_argument("file_id")
    p.add_argument("--out", help="Output path (default: downloads/<name>)")

    p = drive.add_parser("upload", help="Upload a local file")
    p.add_argument("path")
    p.add_argument("--parent", help="Destination folder ID")
    p.add_argument("--name", help="Name in Drive")

    p = drive.add_parser("mkdir", help="Create a folder")
    p.add_argument("name")
    p.add_argument("--parent", help="Parent folder ID")

    p = drive.add_parser("delete", help="Permanently delete a file")
    p.add_argument("file_id")

    p = drive.add_parser("move", help="Move a file to a folder")
    p.add_argument("file_id")
    p.add_argument("--to", required=True, help="Destination folder ID")

    p = drive.add_parser("copy", help="Copy a file")
    p.add_argument("file_id")
    p.add_argument("--name", help="Name of the copy")
    p.add_argument("--parent", help="Destination folder ID")

    p = drive.add_parser("rename", help="Rename a file")
    p.add_argument("file_id")
    p.add_argument("name")

    p = drive.add_parser("share", help="Share a file")
    p.add_argument("file_id")
    p.add_argument("--email", help="Grantee email")
    p.add_argument("--anyone", action="store_true", help="Anyone with the link")
    p.add_argument(
        "--role", choices=["reader", "commenter", "writer"], default="reader"
    )
    p.add_argument("--notify", action="store_true", help="Send a notification email")

    p = drive.add_parser("permissions", help="List sharing permissions")
    p.add_argument("file_id")

    p = drive.add_parser("url", help="Print the web URL")
    p.add_argument("file_id")

    # docs
    docs_parser = services.add_parser("docs", help="Google Docs")
    docs = docs_parser.add_subparsers(dest="docs_command", help="Command")

    p = docs.add_parser("get", help="Print a document")
    p.add_argument("document_id")
    p.add_argument("--format", choices=["text", "md", "json"], default="text")

    p = docs.add_parser("create", help="Create a document")
    p.add_argument("title", nargs="+")

    p = docs.add_parser("append", help="Append text")
    p.add_argument("document_id")
    p.add_argument("--text", required=True)

    p = docs.add_parser("replace", help="Replace all occurrences of text")
    p.add_argument("document_id")
    p.add_argument("--find", required=True)
    p.add_argument("--replace", required=True)
    p.add_argument("--ignore-case", action="store_true")

    p = docs.add_parser("url", help="Print the web URL")
    p.add_argument("document_id")

    # sheets
    sheets_parser = services.add_parser("sheets", help="Google Sheets")
    sheets = sheets_parser.add_subparsers(dest="sheets_command", help="Command")

    p = sheets.add_parser("get", help="Show spreadsheet metadata as JSON")
    p.add_argument("spreadsheet_id")

    p = sheets.add_parser("read", help="Print a range")
    p.add_argument("spreadsheet_id")
    p.add_argument("range", help="A1 notation, e.g. Sheet1!A1:C10")
    p.add_argument("--format", choices=["tsv", "csv"], default="tsv")

    p = sheets.add_parser("create", help="Create a spreadsheet")
    p.add_argument("title", nargs="+")

    for name, help_text in (("write", "Write CSV values to a range"), ("append", "Append CSV rows")):
        p = sheets.add_parser(name, help=help_text)
        p.add_argument("spreadsheet_id")
        p.add_argument("range")
        p.add_argument("--values", required=True, help="CSV text, one row per line")

    p = sheets.add_parser("clear", help="Clear a range")
    p.add_argument("spreadsheet_id")
    p.add_argument("range")

    p = sheets.add_parser("add-sheet", help="Add a sheet")
    p.add_argument("spreadsheet_id")
    p.add_argument("title")

    p = sheets.add_parser("url", help="Print the web URL")
    p.add_argument("spreadsheet_id")
    p.add_argument("--sheet-id", type=int, help="Numeric sheet ID (gid)")

    # slides
    slides_parser = services.add_parser("slides", help="Google Slides")
    slides = slides_parser.add_subparsers(dest="slides_command", help="Command")

    p = slides.add_parser("get", help="Print a presentation")
    p.add_argument("presentation_id")
    p.add_argument("--format", choices=["json", "text", "ids"], default="json")

    p = slides.add_parser("create", help="Create a presentation")
    p.add_argument("title", nargs="+")

    p = slides.add_parser("add-slide", help="Add a slide")
    p.add_argument("presentation_id")
    p.add_argument("--layout", help="Predefined layout, e.g. TITLE_AND_BODY")
    p.add_argument("--index", type=int, help="Insertion index (default: end)")

    p = slides.add_parser("delete-slide", help="Delete a slide")
    p.add_argument("presentation_id")
    p.add_argument("slide_id")

    p = slides.add_parser("replace", help="Replace text on every slide")
    p.add_argument("presentation_id")
    p.add_argument("--find", required=True)
    p.add_argument("--replace", required=True)

    p = slides.add_parser("thumbnail", help="Render a slide thumbnail")
    p.add_argument("presentation_id")
    p.add_argument("slide_id")
    p.add_argument("--out", help="Save the image here instead of printing its URL")
    p.add_argument("--format", choices=["PNG", "JPEG"], default="PNG")

    p = slides.add_parser("url", help="Print the web URL")
    p.add_argument("presentation_id")
    p.add_argument("--slide", type=int, help="Zero-based slide index")

    return parser


# =============================================================================
# Entry point
# =============================================================================


def _run_accounts(storage: AccountStorage, argv: list[str]) -> int:
    parser = build_accounts_parser()
    args = parser.parse_args(argv)

    if args.accounts_command == "credentials":
        return accounts_credentials(storage, args.path)
    if args.accounts_command == "list":
        return accounts_list(storage)
    if args.accounts_command == "add":
        return accounts_add(storage, args.email, manual=args.manual, timeout=args.timeout)
    if args.accounts_command == "remove":
        return accounts_remove(storage, args.email)
    if args.accounts_command == "status":
        return accounts_status(storage)

    parser.print_help()
    return 0


def _run_service(storage: AccountStorage, email: str, argv: list[str]) -> int:
    parser = build_service_parser(email)
    args = parser.parse_args(argv)

    if args.service == "drive" and args.drive_command:
        return run_drive(DriveClient(storage), email, args)
    if args.service == "docs" and args.docs_command:
        return run_docs(DocsClient(storage), email, args)
    if args.service == "sheets" and args.sheets_command:
        return run_sheets(SheetsClient(storage), email, args)
    if args.service == "slides" and args.slides_command:
        return run_slides(SlidesClient(storage), email, args)

    parser.print_help()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if args.target is None:
        parser.print_help()
        return 0

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        storage = AccountStorage()
        if args.target == "accounts":
            return _run_accounts(storage, args.rest)
        return _run_service(storage, args.target, args.rest)
    except KeyboardInterrupt:
        print("\nCancelled", file=sys.stderr)
        return 130
    except (GdcliError, HttpError, httpx.HTTPError, OSError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main_entry() -> None:
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
