"""
Google Sheets Client
====================
Read-only client for the Sheets v4 REST API, used by the fetch adapter.

Authenticates with a service account through google-auth's
AuthorizedSession (a requests.Session that attaches and refreshes the
bearer token) and retries rate limits and server errors.
"""

import logging
import time
from typing import Any, Optional
from urllib.parse import quote

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from sheetsync.config import ConfigurationError, get_settings

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class SheetsError(Exception):
    """A call to the spreadsheet source failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def _error_message(response: requests.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200]


class GoogleSheetsSource:
    """
    SpreadsheetSource backed by one Google spreadsheet.

    Args:
        spreadsheet_id: Spreadsheet to read
        session: Authorized requests session
        base_url: Sheets API root (defaults to settings)
        max_retries: Retries per call (defaults to settings)
        timeout: Per-request timeout in seconds (defaults to settings)
    """

    def __init__(
        self,
        spreadsheet_id: str,
        session: requests.Session,
        base_url: Optional[str] = None,
        max_retries: Optional[int] = None,
        timeout: Optional[int] = None,
    ):
        settings = get_settings()
        self.spreadsheet_id = spreadsheet_id
        self.session = session
        self.base_url = (base_url or settings.google_sheets_api_url).rstrip("/")
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.timeout = timeout or settings.request_timeout

    @classmethod
    def from_settings(cls, spreadsheet_id: str) -> "GoogleSheetsSource":
        """
        Build a client from the service account in settings.

        Raises:
            ConfigurationError: if the service account is missing or unusable
        """
        settings = get_settings()
        if not settings.google_service_account_email:
            raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_EMAIL environment variable is not set")
        if not settings.google_service_account_private_key:
            raise ConfigurationError(
                "GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY environment variable is not set"
            )

        try:
            credentials = service_account.Credentials.from_service_account_info(
                {
                    "client_email": settings.google_service_account_email,
                    "private_key": settings.google_service_account_private_key,
                    "token_uri": TOKEN_URI,
                },
                scopes=SCOPES,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid service account credentials: {e}") from e

        return cls(spreadsheet_id, AuthorizedSession(credentials))

    def _get(self, path: str, params: Optional[dict] = None) -> dict:
        url = f"{self.base_url}/{self.spreadsheet_id}{path}"
        error = SheetsError("no attempt made")

        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except GoogleAuthError as e:
                raise SheetsError(f"Google Sheets credentials rejected: {e}") from e
            except requests.RequestException as e:
                error = SheetsError(f"Request failed: {e}")
            else:
                if response.status_code == 200:
                    return response.json()
                error = SheetsError(
                    f"HTTP {response.status_code}: {_error_message(response)}",
                    status=response.status_code,
                )
                if response.status_code not in RETRYABLE_STATUS:
                    raise error

            if attempt < self.max_retries:
                wait_time = 2**attempt
                logger.warning(
                    "Sheets API %s (%s); retrying in %ss (%d/%d)",
                    path or "/",
                    error,
                    wait_time,
                    attempt + 1,
                    self.max_retries,
                )
                time.sleep(wait_time)

        raise error

    def list_ranges(self) -> list[str]:
        """Titles of all tabs in the spreadsheet."""
        data = self._get("", params={"fields": "sheets.properties.title"})
        return [s.get("properties", {}).get("title", "") for s in data.get("sheets", [])]

    def fetch_values(self, ranges: list[str]) -> dict[str, list[list[Any]]]:
        """
        Fetch several ranges with one values:batchGet call.

        The API normalises the returned range names, so results are matched
        back to the request by position.
        """
        if not ranges:
            return {}
        data = self._get(
            "/values:batchGet",
            params={"ranges": list(ranges), "majorDimension": "ROWS"},
        )
        value_ranges = data.get("valueRanges", [])
        if len(value_ranges) != len(ranges):
            raise SheetsError(
                f"batchGet returned {len(value_ranges)} ranges for {len(ranges)} requested"
            )
        return {name: vr.get("values", []) for name, vr in zip(ranges, value_ranges)}

    def fetch_range(self, range_name: str) -> list[list[Any]]:
        """Fetch a single range."""
        data = self._get(f"/values/{quote(range_name, safe='')}", params={"majorDimension": "ROWS"})
        return data.get("values", [])
