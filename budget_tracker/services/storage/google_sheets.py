"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as an optional "cloud sync"
backend because:
1. The user can view and back up their data directly in Sheets
2. No database setup required
3. The same data is reachable from any machine with the credentials

TRADEOFFS:
- A cell holds at most 50,000 characters, so long values (the
  classifier weights) are split across several rows
- No transactions: a value is rewritten by deleting its rows and
  appending new ones

The implementation follows the abstract interface, so business logic
does not know which backend it is talking to.
"""

from datetime import datetime
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from budget_tracker.config import GoogleSheetsSettings, get_settings
from budget_tracker.services.storage.interface import (
    ConnectionError,
    KeyValueStore,
    StorageError,
)


# Column layout of the store worksheet
STORE_COLUMNS = [
    "key",
    "chunk",
    "value",
    "updated_at",
]

# Stay well below the 50,000 character cell limit
CHUNK_SIZE = 40000


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_store_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.store_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.store_sheet_name,
                rows=200,
                cols=len(STORE_COLUMNS),
            )
            sheet.append_row(STORE_COLUMNS)
        return sheet


class GoogleSheetsStore(KeyValueStore):
    """
    Google Sheets implementation of the key-value store.

    Each value is stored as one or more rows: (key, chunk index, text, timestamp).
    """

    name = "google_sheets"

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _rows_for(self, all_rows: list[list[str]], key: str) -> list[tuple[int, list[str]]]:
        """(sheet row number, row) pairs for a key; row 1 is the header."""
        return [
            (idx, row)
            for idx, row in enumerate(all_rows[1:], start=2)
            if row and row[0] == key
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def get_item(self, key: str) -> Optional[str]:
        try:
            sheet = self._client.get_store_sheet()
            matches = self._rows_for(sheet.get_all_values(), key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read '{key}': {e}")

        if not matches:
            return None

        chunks = sorted(
            (int(row[1]) if len(row) > 1 and row[1] else 0, row[2] if len(row) > 2 else "")
            for _, row in matches
        )
        return "".join(text for _, text in chunks)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def set_item(self, key: str, value: str) -> None:
        try:
            sheet = self._client.get_store_sheet()
            self._delete_rows(sheet, key)

            timestamp = datetime.utcnow().isoformat()
            chunks = [value[i:i + CHUNK_SIZE] for i in range(0, len(value), CHUNK_SIZE)] or [""]
            rows = [[key, str(idx), chunk, timestamp] for idx, chunk in enumerate(chunks)]
            sheet.append_rows(rows, value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write '{key}': {e}")

    def remove_item(self, key: str) -> None:
        try:
            sheet = self._client.get_store_sheet()
            self._delete_rows(sheet, key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to remove '{key}': {e}")

    def keys(self) -> list[str]:
        try:
            sheet = self._client.get_store_sheet()
            all_rows = sheet.get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list keys: {e}")
        return sorted({row[0] for row in all_rows if row and row[0]})

    def _delete_rows(self, sheet: gspread.Worksheet, key: str) -> None:
        # Bottom-up so earlier row numbers stay valid
        matches = self._rows_for(sheet.get_all_values(), key)
        for idx, _ in reversed(matches):
            sheet.delete_rows(idx)
