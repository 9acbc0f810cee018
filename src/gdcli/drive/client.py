"""Google Drive API client implementation."""

from __future__ import annotations

import contextlib
import logging
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from googleapiclient.http import MediaFileUpload, MediaIoBaseDownload

from gdcli.google import GoogleService
from gdcli.google.exceptions import UnsupportedExportError

logger = logging.getLogger(__name__)


@dataclass
class DriveOwner:
    """Owner of a Drive file."""

    email_address: str
    display_name: str | None = None


@dataclass
class DriveFile:
    """Represents a Google Drive file."""

    id: str
    name: str
    mime_type: str
    size: int | None = None
    created_time: datetime | None = None
    modified_time: datetime | None = None
    parents: list[str] | None = None
    web_view_link: str | None = None
    description: str | None = None
    owners: list[DriveOwner] = field(default_factory=list)

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    @property
    def is_google_file(self) -> bool:
        """True for Docs/Sheets/Slides and other Google-native types."""
        return self.mime_type.startswith(GOOGLE_APPS_PREFIX)


@dataclass
class DriveListResult:
    """One page of a file listing."""

    files: list[DriveFile]
    next_page_token: str | None = None


@dataclass
class Permission:
    """A sharing permission on a Drive file."""

    id: str
    type: str
    role: str
    email_address: str | None = None
    display_name: str | None = None


# Common MIME types
GOOGLE_APPS_PREFIX = "application/vnd.google-apps."
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
GOOGLE_DOC_MIME_TYPE = "application/vnd.google-apps.document"
GOOGLE_SHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
GOOGLE_SLIDES_MIME_TYPE = "application/vnd.google-apps.presentation"
GOOGLE_DRAWING_MIME_TYPE = "application/vnd.google-apps.drawing"

# Google-native type -> (export MIME type, file extension)
EXPORT_FORMATS = {
    GOOGLE_DOC_MIME_TYPE: ("application/pdf", ".pdf"),
    GOOGLE_SHEET_MIME_TYPE: (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        ".xlsx",
    ),
    GOOGLE_SLIDES_MIME_TYPE: ("application/pdf", ".pdf"),
    GOOGLE_DRAWING_MIME_TYPE: ("image/png", ".png"),
}

FILE_FIELDS = "id, name, mimeType, size, modifiedTime, createdTime, parents, webViewLink, owners"
LIST_FIELDS = f"nextPageToken, files({FILE_FIELDS})"
PERMISSION_FIELDS = "id, type, role, emailAddress, displayName"


class DriveClient(GoogleService):
    """Google Drive API client for stored accounts.

    Usage:
        client = DriveClient(storage)

        # List files
        result = client.list_files("me@example.com", max_results=20)

        # Upload a file
        file = client.upload_file("me@example.com", "/path/to/document.pdf")

        # Download a file (Google Docs are exported to PDF)
        path = client.download_file("me@example.com", file.id)

        # Create a folder
        folder = client.create_folder("me@example.com", "My Folder")
    """

    api_name = "drive"
    api_version = "v3"

    # =========================================================================
    # Files
    # =========================================================================

    def list_files(
        self,
        email: str,
        query: str | None = None,
        mime_type: str | None = None,
        max_results: int = 100,
        page_token: str | None = None,
        order_by: str = "modifiedTime desc",
        fields: str | None = None,
    ) -> DriveListResult:
        """List files in Drive.

        Args:
            email: Account to act as.
            query: Search query (Drive query syntax).
            mime_type: Only return files of this MIME type.
            max_results: Page size.
            page_token: Token from a previous page.
            order_by: Sort order (e.g., "name", "modifiedTime desc").
            fields: Override the response field mask.

        Returns:
            DriveListResult with the files and the next page token, if any.
        """
        service = self._get_service(email)

        query_parts = []
        if query:
            query_parts.append(query)
        if mime_type:
            query_parts.append(f"mimeType = '{mime_type}'")

        kwargs: dict[str, Any] = {
            "pageSize": max_results,
            "fields": fields or LIST_FIELDS,
            "orderBy": order_by,
        }
        if query_parts:
            kwargs["q"] = " and ".join(query_parts)
        if page_token:
            kwargs["pageToken"] = page_token

        results = service.files().list(**kwargs).execute()
        return DriveListResult(
            files=[self._parse_file(item) for item in results.get("files", [])],
            next_page_token=results.get("nextPageToken"),
        )

    def search(self, email: str, query: str, max_results: int = 100) -> list[DriveFile]:
        """Search files using Drive query syntax."""
        return self.list_files(email, query=query, max_results=max_results).files

    def get_file(self, email: str, file_id: str) -> DriveFile:
        """Get file metadata by ID."""
        service = self._get_service(email)
        result = (
            service.files()
            .get(fileId=file_id, fields=f"{FILE_FIELDS}, description")
            .execute()
        )
        return self._parse_file(result)

    def download_file(
        self,
        email: str,
        file_id: str,
        output_path: str | Path | None = None,
    ) -> Path:
        """Download a file from Drive.

        Google-native files are exported: Docs and Slides to PDF, Sheets to
        XLSX, Drawings to PNG. The matching extension is appended when the
        target path has none.

        Args:
            email: Account to act as.
            file_id: Drive file ID.
            output_path: Local path. Defaults to ``downloads/<file name>``.

        Returns:
            Path of the written file.

        Raises:
            UnsupportedExportError: Google-native type with no export format.
        """
        service = self._get_service(email)
        file_info = self.get_file(email, file_id)

        if output_path is None:
            output_path = self.account_storage.get_downloads_dir() / _safe_file_name(
                file_info.name, file_id
            )
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if file_info.is_google_file:
            if file_info.mime_type not in EXPORT_FORMATS:
                raise UnsupportedExportError(file_info.mime_type)
            export_mime, extension = EXPORT_FORMATS[file_info.mime_type]
            if not output_path.suffix:
                output_path = output_path.with_name(output_path.name + extension)
            request = service.files().export_media(fileId=file_id, mimeType=export_mime)
        else:
            request = service.files().get_media(fileId=file_id)

        with open(output_path, "wb") as fh:
            downloader = MediaIoBaseDownload(fh, request)
            done = False
            while not done:
                _, done = downloader.next_chunk()

        logger.info(f"Downloaded {file_id} to {output_path}")
        return output_path

    def upload_file(
        self,
        email: str,
        file_path: str | Path,
        name: str | None = None,
        parent_id: str | None = None,
        mime_type: str | None = None,
        description: str | None = None,
    ) -> DriveFile:
        """Upload a file to Drive.

        Args:
            email: Account to act as.
            file_path: Local path to the file to upload.
            name: Name in Drive. Defaults to the local file name.
            parent_id: Parent folder ID (optional).
            mime_type: MIME type (guessed from the extension if not provided).
            description: File description (optional).

        Returns:
            Created DriveFile.
        """
        service = self._get_service(email)
        file_path = Path(file_path)

        if mime_type is None:
            mime_type, _ = mimetypes.guess_type(str(file_path))
            if mime_type is None:
                mime_type = "application/octet-stream"

        metadata: dict[str, Any] = {"name": name or file_path.name}
        if description:
            metadata["description"] = description
        if parent_id:
            metadata["parents"] = [parent_id]

        media = MediaFileUpload(str(file_path), mimetype=mime_type, resumable=True)

        result = (
            service.files()
            .create(body=metadata, media_body=media, fields=FILE_FIELDS)
            .execute()
        )
        return self._parse_file(result)

    def delete_file(self, email: str, file_id: str) -> None:
        """Permanently delete a file."""
        service = self._get_service(email)
        service.files().delete(fileId=file_id).execute()

    def move_file(self, email: str, file_id: str, new_folder_id: str) -> DriveFile:
        """Move a file to a different folder, detaching it from all current parents."""
        service = self._get_service(email)

        file = service.files().get(fileId=file_id, fields="parents").execute()
        previous_parents = ",".join(file.get("parents", []))

        result = (
            service.files()
            .update(
                fileId=file_id,
                addParents=new_folder_id,
                removeParents=previous_parents,
                fields=FILE_FIELDS,
            )
            .execute()
        )
        return self._parse_file(result)

    def copy_file(
        self,
        email: str,
        file_id: str,
        name: str | None = None,
        parent_id: str | None = None,
    ) -> DriveFile:
        """Copy a file, optionally renaming it or placing it in another folder."""
        service = self._get_service(email)

        body: dict[str, Any] = {}
        if name:
            body["name"] = name
        if parent_id:
            body["parents"] = [parent_id]

        result = service.files().copy(fileId=file_id, body=body, fields=FILE_FIELDS).execute()
        return self._parse_file(result)

    def rename_file(self, email: str, file_id: str, new_name: str) -> DriveFile:
        service = self._get_service(email)
        result = (
            service.files()
            .update(fileId=file_id, body={"name": new_name}, fields=FILE_FIELDS)
            .execute()
        )
        return self._parse_file(result)

    # =========================================================================
    # Folders
    # =========================================================================

    def create_folder(self, email: str, name: str, parent_id: str | None = None) -> DriveFile:
        """Create a new folder.

        Args:
            email: Account to act as.
            name: Folder name.
            parent_id: Parent folder ID (optional).

        Returns:
            Created folder as DriveFile.
        """
        service = self._get_service(email)

        metadata: dict[str, Any] = {
            "name": name,
            "mimeType": FOLDER_MIME_TYPE,
        }
        if parent_id:
            metadata["parents"] = [parent_id]

        result = service.files().create(body=metadata, fields=FILE_FIELDS).execute()
        return self._parse_file(result)

    # =========================================================================
    # Sharing
    # =========================================================================

    def share(
        self,
        email: str,
        file_id: str,
        role: str,
        type: str = "user",
        email_address: str | None = None,
        domain: str | None = None,
        send_notification: bool = False,
    ) -> Permission:
        """Grant a permission on a file.

        Args:
            email: Account to act as.
            file_id: Drive file ID.
            role: "reader", "commenter", "writer" or "owner".
            type: "user", "group", "domain" or "anyone".
            email_address: Grantee for user/group permissions.
            domain: Grantee for domain permissions.
            send_notification: Email the grantee.

        Returns:
            The created Permission.
        """
        service = self._get_service(email)

        body: dict[str, Any] = {"role": role, "type": type}
        if email_address:
            body["emailAddress"] = email_address
        if domain:
            body["domain"] = domain

        result = (
            service.permissions()
            .create(
                fileId=file_id,
                body=body,
                sendNotificationEmail=send_notification,
                fields=PERMISSION_FIELDS,
            )
            .execute()
        )
        return self._parse_permission(result)

    def unshare(self, email: str, file_id: str, permission_id: str) -> None:
        service = self._get_service(email)
        service.permissions().delete(fileId=file_id, permissionId=permission_id).execute()

    def list_permissions(self, email: str, file_id: str) -> list[Permission]:
        service = self._get_service(email)
        result = (
            service.permissions()
            .list(fileId=file_id, fields=f"permissions({PERMISSION_FIELDS})")
            .execute()
        )
        return [self._parse_permission(p) for p in result.get("permissions", [])]

    def get_permission(self, email: str, file_id: str, email_to_find: str) -> Permission | None:
        """Find the permission granted to ``email_to_find``, if any."""
        for permission in self.list_permissions(email, file_id):
            if permission.email_address == email_to_find:
                return permission
        return None

    # =========================================================================
    # URLs
    # =========================================================================

    @staticmethod
    def generate_web_url(file_id: str) -> str:
        return f"https://drive.google.com/file/d/{file_id}/view"

    @staticmethod
    def generate_folder_url(folder_id: str) -> str:
        return f"https://drive.google.com/drive/folders/{folder_id}"

    # =========================================================================
    # Parsing
    # =========================================================================

    def _parse_file(self, data: dict) -> DriveFile:
        """Parse file from API response."""
        created_time = None
        if data.get("createdTime"):
            with contextlib.suppress(ValueError):
                created_time = datetime.fromisoformat(data["createdTime"].replace("Z", "+00:00"))

        modified_time = None
        if data.get("modifiedTime"):
            with contextlib.suppress(ValueError):
                modified_time = datetime.fromisoformat(data["modifiedTime"].replace("Z", "+00:00"))

        size = None
        if data.get("size"):
            with contextlib.suppress(ValueError):
                size = int(data["size"])

        owners = [
            DriveOwner(
                email_address=owner.get("emailAddress", ""),
                display_name=owner.get("displayName"),
            )
            for owner in data.get("owners", [])
        ]

        return DriveFile(
            id=data.get("id", ""),
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            size=size,
            created_time=created_time,
            modified_time=modified_time,
            parents=data.get("parents"),
            web_view_link=data.get("webViewLink"),
            description=data.get("description"),
            owners=owners,
        )

    @staticmethod
    def _parse_permission(data: dict) -> Permission:
        return Permission(
            id=data.get("id", ""),
            type=data.get("type", ""),
            role=data.get("role", ""),
            email_address=data.get("emailAddress"),
            display_name=data.get("displayName"),
        )


def _safe_file_name(name: str, fallback: str) -> str:
    """Last path component of a Drive file name, so downloads stay in downloads/."""
    base = Path(name.replace("\\", "/")).name
    if base in ("", ".", ".."):
        return fallback
    return base
