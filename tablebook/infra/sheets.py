"""
Booking sheet - append confirmed bookings to a Google Sheet.

The Sheets client is synchronous; calls run in a worker thread so the
event loop is never blocked. Failures are logged and never raised: the
booking has already been confirmed to the caller by the time a row is
written.
"""

import asyncio
import logging
from typing import Any, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from tablebook.config import get_settings
from tablebook.core.scheduling.records import BookingRecord

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def get_sheets_service() -> Optional[Any]:
    """Build an authenticated Sheets v4 service, or None if not configured."""
    settings = get_settings()
    if not settings.sheets_configured:
        return None

    credentials = service_account.Credentials.from_service_account_info(
        {
            "type": "service_account",
            "client_email": settings.google_service_account_email,
            "private_key": settings.google_private_key_pem,
            "token_uri": "https://oauth2.googleapis.com/token",
        },
        scopes=SCOPES,
    )
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


class BookingSheet:
    """Appends one row per confirmed booking."""

    def __init__(
        self,
        service: Optional[Any] = None,
        spreadsheet_id: Optional[str] = None,
        sheet_range: Optional[str] = None,
    ):
        settings = get_settings()
        self._service = service
        self.spreadsheet_id = spreadsheet_id or settings.spreadsheet_id
        self.sheet_range = sheet_range or settings.sheet_range

    def _get_service(self) -> Optional[Any]:
        if self._service is None:
            self._service = get_sheets_service()
        return self._service

    def _append_row(self, row: list) -> None:
        service = self._get_service()
        if service is None:
            logger.warning("Google Sheets not configured - booking row skipped")
            return

        service.spreadsheets().values().append(
            spreadsheetId=self.spreadsheet_id,
            range=self.sheet_range,
            valueInputOption="USER_ENTERED",
            body={"values": [row]},
        ).execute()

    async def append(self, record: BookingRecord) -> None:
        """Write the booking row. Errors are logged, not raised."""
        try:
            await asyncio.to_thread(self._append_row, record.to_row())
            logger.info(f"Booking {record.confirmation_id} written to sheet")

        except HttpError as e:
            logger.error(
                f"Sheets API error for {record.confirmation_id}: "
                f"status={e.resp.status} {e}"
            )
        except Exception as e:
            logger.error(f"Failed to write booking {record.confirmation_id}: {e}")
