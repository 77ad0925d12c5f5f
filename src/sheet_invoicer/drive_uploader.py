"""
Google Drive Invoice Uploader
=============================

Uploads rendered invoices into a Drive folder. A file with the same name in
that folder is overwritten in place (same file id, new content) so a re-run
never leaves duplicate invoices behind.

Uses the same service account credentials as Google Sheets.
"""
from __future__ import annotations

import io
from typing import Optional

from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload
from oauth2client.service_account import ServiceAccountCredentials

from . import config
from .logger import get_logger

SCOPE = [
    "https://spreadsheets.google.com/feeds",
    "https://www.googleapis.com/auth/drive",
]


def _get_drive_service():
    """Create a Google Drive API service using service account credentials."""
    creds_path = config.get_credentials_path()
    if creds_path:
        creds = ServiceAccountCredentials.from_json_keyfile_name(creds_path, SCOPE)
    else:
        import google.auth
        creds, _ = google.auth.default(scopes=SCOPE)

    return build("drive", "v3", credentials=creds, cache_discovery=False)


def _escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveUploader:
    """Create-or-update uploads into one Drive folder."""

    def __init__(self, service=None, folder_id: Optional[str] = None):
        self.service = service or _get_drive_service()
        self.folder_id = folder_id if folder_id is not None else config.DRIVE_FOLDER_ID
        self.logger = get_logger()

    def find_file(self, file_name: str) -> Optional[str]:
        """Id of the first non-trashed file named `file_name` in the folder."""
        query = f"name = '{_escape_query(file_name)}' and trashed = false"
        if self.folder_id:
            query += f" and '{_escape_query(self.folder_id)}' in parents"

        response = self.service.files().list(
            q=query,
            spaces="drive",
            fields="files(id, name)",
        ).execute()
        files = response.get("files", [])
        return files[0]["id"] if files else None

    def upload(self, file_name: str, content: bytes, mime_type: str = "application/pdf") -> str:
        """
        Upload `content` as `file_name`, overwriting a same-named file.

        Returns:
            Human-readable outcome message

        Raises:
            googleapiclient.errors.HttpError: on any Drive API failure
        """
        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type, resumable=False)
        file_id = self.find_file(file_name)

        if file_id:
            message = f"Google Drive: Found previous file, updating: {file_name}"
            self.service.files().update(
                fileId=file_id,
                media_body=media,
                fields="id",
            ).execute()
        else:
            message = f"Google Drive: No previous file found, creating: {file_name}"
            file_metadata = {"name": file_name, "mimeType": mime_type}
            if self.folder_id:
                file_metadata["parents"] = [self.folder_id]
            self.service.files().create(
                body=file_metadata,
                media_body=media,
                fields="id",
            ).execute()

        self.logger.info(message, component="Drive")
        return message
