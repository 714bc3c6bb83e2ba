from __future__ import annotations

import logging
import re

import httpx

from ..errors import FetchError
from ..models.raw_row import SourceTable
from .reader import read_csv_text

"""Google Sheets source.

Downloads the CSV export of a publicly shared spreadsheet and hands the text to
the CSV reader, so both sources yield the same SourceTable shape. Any failure is
reported as one FetchError; rows are never returned partially.
"""

__all__ = [
    "FetchError",
    "GoogleSheetsFetcher",
    "build_export_url",
]

logger = logging.getLogger(__name__)

_SHEET_ID = re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)")
_GID = re.compile(r"[#&?]gid=(\d+)")
EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"
SIGN_IN_HOSTS = {"accounts.google.com"}


def build_export_url(url: str) -> str:
    """Turn a spreadsheet share/edit URL into its CSV export URL.

    Raises:
        FetchError: kind="invalid_url" when no spreadsheet id can be found.
    """
    url = url.strip()
    if not url:
        raise FetchError("Please enter a Google Sheets URL", kind="invalid_url")
    if "docs.google.com" not in url:
        raise FetchError(f"not a Google Sheets URL: {url}", kind="invalid_url")
    match = _SHEET_ID.search(url)
    if match is None:
        raise FetchError(f"could not find a spreadsheet id in: {url}", kind="invalid_url")
    gid_match = _GID.search(url)
    gid = gid_match.group(1) if gid_match else "0"
    return EXPORT_URL.format(sheet_id=match.group(1), gid=gid)


class GoogleSheetsFetcher:
    """Fetch the first (or gid-selected) tab of a public Google Sheet as rows.

    ``client`` may be injected (tests pass one built on httpx.MockTransport);
    otherwise a short-lived client is created per fetch. No retries: a failed
    fetch ends the attempt.
    """

    def __init__(self, client: httpx.Client | None = None, *, timeout_seconds: float = 15.0) -> None:
        self._client = client
        self.timeout_seconds = timeout_seconds

    def fetch(self, url: str) -> SourceTable:
        export_url = build_export_url(url)
        logger.debug("fetching google sheet export_url=%s", export_url)
        try:
            if self._client is not None:
                response = self._client.get(export_url, follow_redirects=True)
            else:
                with httpx.Client(timeout=self.timeout_seconds) as client:
                    response = client.get(export_url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise FetchError(f"network error fetching sheet: {e}", kind="network") from e

        self._raise_for_response(response)
        return read_csv_text(response.text, source_name=url.strip())

    @staticmethod
    def _raise_for_response(response: httpx.Response) -> None:
        permission_msg = "Make sure the sheet is shared as 'Anyone with the link can view'"
        if response.url.host in SIGN_IN_HOSTS:
            raise FetchError(permission_msg, kind="permission")
        if response.status_code in (401, 403):
            raise FetchError(permission_msg, kind="permission")
        if response.status_code == 404:
            raise FetchError("Google Sheet not found - check the URL", kind="not_found")
        if response.is_error:
            raise FetchError(
                f"Google Sheets returned HTTP {response.status_code}", kind="network"
            )
        # a private sheet can answer 200 with the sign-in page
        content_type = response.headers.get("content-type", "")
        if "text/html" in content_type:
            raise FetchError(permission_msg, kind="permission")
