"""Tests for the Google Sheets booking sink."""

from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError

from tablebook.core.scheduling.records import BookingRecord
from tablebook.infra import sheets
from tablebook.infra.sheets import BookingSheet


@pytest.fixture
def record():
    return BookingRecord(
        name="Ana",
        phone="Unknown",
        date="friday",
        time="8:00 pm",
        party_size=2,
        status="CONFIRMED",
        timestamp="2026-10-19T18:00:00+00:00",
        confirmation_id="R-20261019-AB12",
        call_duration_minutes=2.5,
    )


@pytest.fixture
def service():
    return MagicMock()


class TestBookingSheet:
    """Test BookingSheet."""

    @pytest.mark.asyncio
    async def test_append_row(self, service, record):
        sheet = BookingSheet(service=service, spreadsheet_id="sheet-123", sheet_range="Sheet1!A:I")

        await sheet.append(record)

        service.spreadsheets.return_value.values.return_value.append.assert_called_once_with(
            spreadsheetId="sheet-123",
            range="Sheet1!A:I",
            valueInputOption="USER_ENTERED",
            body={"values": [record.to_row()]},
        )
        append = service.spreadsheets.return_value.values.return_value.append
        append.return_value.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_api_error_is_logged(self, service, record, caplog):
        append = service.spreadsheets.return_value.values.return_value.append
        append.return_value.execute.side_effect = HttpError(
            resp=MagicMock(status=403), content=b"forbidden"
        )
        sheet = BookingSheet(service=service, spreadsheet_id="sheet-123")

        await sheet.append(record)

        assert "Sheets API error for R-20261019-AB12" in caplog.text

    @pytest.mark.asyncio
    async def test_not_configured(self, record, caplog):
        with patch.object(sheets, "get_sheets_service", return_value=None):
            sheet = BookingSheet()
            await sheet.append(record)

        assert "booking row skipped" in caplog.text

    def test_service_requires_credentials(self, monkeypatch):
        settings = sheets.get_settings()
        monkeypatch.setattr(settings, "spreadsheet_id", "")

        assert sheets.get_sheets_service() is None
