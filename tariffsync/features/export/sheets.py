"""Google Sheets v4 REST client.

Talks to the Sheets API over httpx and authenticates with a service-account
key via google-auth. Only the handful of calls the export needs are wrapped:
spreadsheet metadata (access check, sheet lookup), values.get, values.clear,
values.update and batchUpdate.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from tariffsync.core.config import Settings, get_settings
from tariffsync.core.logging import get_logger

logger = get_logger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"

SHEET_NAME = "stocks_coefs"
SHEET_HEADERS = [
    "Склад",
    "Коэффициент",
    "Доставка базовая",
    "Доставка за литр",
    "Хранение базовая",
    "Хранение за литр",
    "Дата обновления",
]

HEADER_BACKGROUND = {"red": 0.8, "green": 0.8, "blue": 0.8}


class SheetsError(Exception):
    """Sheets API call failed or the client is unusable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _a1(range_: str) -> str:
    return quote(range_, safe="!:")


class GoogleSheetsClient:
    """Async Google Sheets client bound to one service account."""

    def __init__(
        self,
        credentials_file: str,
        scopes: list[str],
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client. No I/O happens until initialize().

        Args:
            credentials_file: Path to the service-account JSON key.
            scopes: OAuth scopes to request.
            http_client: Pre-built client (tests inject a MockTransport here).
        """
        self.credentials_file = credentials_file
        self.scopes = scopes
        self._credentials: service_account.Credentials | None = None
        self._client = http_client

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> GoogleSheetsClient:
        """Build a client from application settings."""
        settings = settings or get_settings()
        return cls(
            credentials_file=settings.google_sheets_credentials_file,
            scopes=settings.google_sheets_scopes,
        )

    async def initialize(self) -> None:
        """Load the service-account credentials.

        Raises:
            SheetsError: If the key file is missing or malformed.
        """
        path = Path(self.credentials_file)
        if not path.is_file():
            raise SheetsError(f"Credentials file not found: {path}")

        try:
            self._credentials = await asyncio.to_thread(
                service_account.Credentials.from_service_account_file,
                str(path),
                scopes=self.scopes,
            )
        except (ValueError, OSError) as e:
            raise SheetsError(f"Invalid service-account credentials in {path}: {e}") from e

        logger.info(
            "sheets.initialized",
            service_account=self._credentials.service_account_email,
            scopes=self.scopes,
        )

    def is_initialized(self) -> bool:
        """Whether credentials are loaded and the client can be used."""
        return self._credentials is not None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=SHEETS_API_URL,
                timeout=httpx.Timeout(60.0, connect=10.0),
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _auth_headers(self) -> dict[str, str]:
        """Return a bearer header, refreshing the access token when expired."""
        if self._credentials is None:
            raise SheetsError("Google Sheets client is not initialized")

        if not self._credentials.valid:
            # google-auth refresh is blocking; keep it off the event loop
            try:
                await asyncio.to_thread(self._credentials.refresh, GoogleAuthRequest())
            except GoogleAuthError as e:
                raise SheetsError(f"Failed to obtain Google access token: {e}") from e

        return {"Authorization": f"Bearer {self._credentials.token}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = await self._auth_headers()
        try:
            response = await self._get_client().request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.RequestError as e:
            raise SheetsError(f"Sheets API request failed: {e}") from e

        if response.is_error:
            raise SheetsError(
                f"Sheets API error ({response.status_code}): {_error_message(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        body: dict[str, Any] = response.json()
        return body

    async def check_access(self, spreadsheet_id: str) -> bool:
        """Check the service account can read the spreadsheet.

        Returns:
            True if the spreadsheet metadata could be fetched.
        """
        try:
            await self._request(
                "GET", f"/{spreadsheet_id}", params={"fields": "spreadsheetId"}
            )
        except SheetsError as e:
            logger.warning(
                "sheets.access_denied",
                spreadsheet_id=spreadsheet_id,
                error=e.message,
                status_code=e.status_code,
            )
            return False

        logger.debug("sheets.access_confirmed", spreadsheet_id=spreadsheet_id)
        return True

    async def ensure_sheet(self, spreadsheet_id: str) -> bool:
        """Make sure the export tab exists, creating it on first export.

        Returns:
            True if the tab was created, False if it already existed.

        Raises:
            SheetsError: If probing or creating the tab fails.
        """
        try:
            await self._request("GET", f"/{spreadsheet_id}/values/{_a1(f'{SHEET_NAME}!A1')}")
            return False
        except SheetsError as e:
            # Sheets answers 400 "Unable to parse range" for a missing tab
            if e.status_code != 400:
                raise

        logger.info("sheets.creating_sheet", spreadsheet_id=spreadsheet_id, sheet=SHEET_NAME)
        await self._batch_update(
            spreadsheet_id,
            [{"addSheet": {"properties": {"title": SHEET_NAME}}}],
        )
        return True

    async def clear(self, spreadsheet_id: str) -> None:
        """Clear every value on the export tab."""
        await self._request(
            "POST", f"/{spreadsheet_id}/values/{_a1(f'{SHEET_NAME}!A:Z')}:clear", json={}
        )

    async def write(self, spreadsheet_id: str, values: list[list[Any]]) -> int:
        """Write rows starting at A1 of the export tab in one call.

        Args:
            spreadsheet_id: Target spreadsheet.
            values: Rows of cell values, header included.

        Returns:
            Number of rows the API reports as updated.
        """
        range_ = f"{SHEET_NAME}!A1"
        body = await self._request(
            "PUT",
            f"/{spreadsheet_id}/values/{_a1(range_)}",
            params={"valueInputOption": "RAW"},
            json={"range": range_, "majorDimension": "ROWS", "values": values},
        )
        return int(body.get("updatedRows", len(values)))

    async def get_sheet_id(self, spreadsheet_id: str) -> int:
        """Resolve the numeric sheet id of the export tab.

        Raises:
            SheetsError: If the tab does not exist.
        """
        body = await self._request(
            "GET",
            f"/{spreadsheet_id}",
            params={"fields": "sheets.properties(sheetId,title)"},
        )
        for sheet in body.get("sheets", []):
            properties = sheet.get("properties", {})
            if properties.get("title") == SHEET_NAME:
                return int(properties.get("sheetId", 0))
        raise SheetsError(f"Sheet '{SHEET_NAME}' not found in {spreadsheet_id}")

    async def format_header(self, spreadsheet_id: str) -> None:
        """Make the header row bold on a grey background."""
        sheet_id = await self.get_sheet_id(spreadsheet_id)
        await self._batch_update(
            spreadsheet_id,
            [
                {
                    "repeatCell": {
                        "range": {"sheetId": sheet_id, "startRowIndex": 0, "endRowIndex": 1},
                        "cell": {
                            "userEnteredFormat": {
                                "backgroundColor": HEADER_BACKGROUND,
                                "textFormat": {"bold": True},
                            }
                        },
                        "fields": "userEnteredFormat(backgroundColor,textFormat)",
                    }
                }
            ],
        )

    async def _batch_update(self, spreadsheet_id: str, requests: list[dict[str, Any]]) -> None:
        await self._request(
            "POST", f"/{spreadsheet_id}:batchUpdate", json={"requests": requests}
        )


def _error_message(response: httpx.Response) -> str:
    """Extract the message from a Google API error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()[:200] or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.reason_phrase
