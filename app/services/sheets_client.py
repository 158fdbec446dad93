from __future__ import annotations

import logging
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from app.services.errors import UpstreamUnavailableError
from app.services.row_decoder import parse_csv

logger = logging.getLogger(__name__)

SHEETS_API_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
CSV_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv"


class SheetsClientError(UpstreamUnavailableError):
    """
    Raised when the spreadsheet cannot be read.
    """


_CSV_STATUS_HINTS = {
    400: (
        "Spreadsheet access denied (400). Share it with 'Anyone with the link "
        "can view', check GOOGLE_SHEETS_ID and make sure the Meeting_Requests tab exists."
    ),
    403: (
        "Spreadsheet is not publicly accessible. Share it publicly or configure "
        "GOOGLE_API_KEY."
    ),
    404: "Spreadsheet not found. Check GOOGLE_SHEETS_ID.",
}


class SheetsClient:
    """
    Reads the meeting table from a spreadsheet.

    Two transports are supported:
    - the values API, when an API key is configured;
    - the public CSV export otherwise.

    Both return the table as a list of rows, headers first.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        api_key: Optional[str] = None,
        value_range: str = "Meeting_Requests!A:X",
        timeout_seconds: float = 10.0,
    ) -> None:
        if not spreadsheet_id:
            raise ValueError("spreadsheet_id is required")

        self._spreadsheet_id = spreadsheet_id
        self._api_key = api_key
        self._value_range = value_range
        self._timeout_seconds = timeout_seconds

    @property
    def values_url(self) -> str:
        return f"{SHEETS_API_BASE_URL}/{self._spreadsheet_id}/values/{quote(self._value_range)}"

    @property
    def csv_url(self) -> str:
        return CSV_EXPORT_URL.format(sheet_id=self._spreadsheet_id)

    async def fetch_values(self) -> List[List[Any]]:
        if self._api_key:
            return await self._fetch_via_api()
        return await self._fetch_via_csv()

    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                return await client.get(url, **kwargs)
        except httpx.TimeoutException as exc:
            raise SheetsClientError(
                f"Spreadsheet request timed out after {self._timeout_seconds}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise SheetsClientError(f"Spreadsheet request failed: {exc}") from exc

    async def _fetch_via_api(self) -> List[List[Any]]:
        logger.info("Reading spreadsheet %s via values API", self._spreadsheet_id)
        resp = await self._get(self.values_url, params={"key": self._api_key})
        if resp.status_code != 200:
            raise SheetsClientError(
                f"Sheets API failed (status={resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise SheetsClientError("Sheets API returned a non-JSON body") from exc

        values = payload.get("values") if isinstance(payload, dict) else None
        return values if isinstance(values, list) else []

    async def _fetch_via_csv(self) -> List[List[Any]]:
        logger.info("Reading spreadsheet %s via CSV export", self._spreadsheet_id)
        resp = await self._get(
            self.csv_url,
            headers={"User-Agent": "MeetingIntake/1.0"},
            follow_redirects=True,
        )
        if resp.status_code != 200:
            hint = _CSV_STATUS_HINTS.get(
                resp.status_code,
                f"Failed to read spreadsheet CSV export (status={resp.status_code}).",
            )
            raise SheetsClientError(hint, status_code=resp.status_code)

        content = resp.text
        if not content or not content.strip():
            raise SheetsClientError("Empty CSV response from spreadsheet export")

        rows = parse_csv(content)
        if not rows:
            raise SheetsClientError("No valid data found in CSV export")
        return rows
