"""
Wayback CDX Server API client for single-URL snapshot lookups.

Example usage:
    from webarchive.cdx import CDXClient

    with CDXClient(timeout=10) as client:
        archived = client.lookup("http://example.com/a", from_date="20200101")
        # 'https://web.archive.org/20200101000000/http://example.com/a'
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from ..errors import ConnectivityError, MalformedResponseError, NotFoundError

DEFAULT_BASE_URL = "https://web.archive.org/cdx/search/cdx"
ARCHIVE_ROOT = "https://web.archive.org"
DEFAULT_TIMEOUT = 10.0

URL_ENCODING = "utf-8"
URL_ERRORS = "surrogateescape"

HEADERS = {
    "User-Agent": "webarchive/1.0 (+https://web.archive.org)",
    "Accept": "application/json",
}


def build_archive_url(timestamp: str, target_url: str) -> str:
    """
    Build a Wayback Machine URL for one capture.

    Args:
        timestamp: Capture timestamp, e.g. "20200101000000"
        target_url: The original URL, appended verbatim

    Returns:
        "https://web.archive.org/<timestamp>/<target_url>"
    """
    return f"{ARCHIVE_ROOT}/{timestamp}/{target_url}"


@dataclass
class CDXRecord:
    """One capture row, keyed by the header row's column names."""
    urlkey: str = ""
    timestamp: str = ""
    original: str = ""
    mimetype: str = ""
    statuscode: str = ""
    digest: str = ""
    length: str = ""

    # Columns not modelled above
    extra: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_list(cls, fields: List[str], field_names: List[str]) -> "CDXRecord":
        """Create a CDXRecord from a data row and the header row."""
        record = cls()
        seen = set()
        for name, value in zip(field_names, fields):
            # A repeated column keeps its first value
            if name in seen:
                continue
            seen.add(name)
            if name != "extra" and hasattr(record, name):
                setattr(record, name, value)
            else:
                record.extra[name] = value
        return record


class CDXClient:
    """
    Client for the Wayback CDX Server API.

    Only the read path is covered: one query per URL, capped to one row.
    The client is safe to call repeatedly for the same URL, which is what
    the retry policy relies on.

    Example:
        client = CDXClient(timeout=5)
        record = client.snapshot("http://example.com/")
        print(record.timestamp)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize CDX client.

        Args:
            base_url: CDX server endpoint URL
            timeout: Request timeout in seconds, applied to every request
            session: Optional requests Session for connection pooling
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(HEADERS)

    def snapshot(self, url: str, from_date: Optional[str] = None) -> CDXRecord:
        """
        Fetch the capture the index returns first for url.

        Args:
            url: The original URL to look up
            from_date: Optional lower bound, YYYYMMDD

        Returns:
            CDXRecord built from rows[0] (header) and rows[1] (data)

        Raises:
            NotFoundError: The server answered 404
            MalformedResponseError: The rows are not header + matching data row,
                or the header has no "timestamp" column
            ConnectivityError: Any other transport or HTTP failure
        """
        # Undecodable input bytes (surrogate escapes) go out as the original bytes
        params: Dict[str, Any] = {
            "output": "json",
            "limit": 1,
            "url": url.encode(URL_ENCODING, URL_ERRORS),
        }
        if from_date:
            params["from"] = from_date

        response = self._make_request(url, params)
        rows = self._parse_rows(url, response)

        if len(rows) < 2 or len(rows[0]) != len(rows[1]):
            raise MalformedResponseError(url, rows)
        if "timestamp" not in rows[0]:
            raise MalformedResponseError(url, rows)

        return CDXRecord.from_list(rows[1], rows[0])

    def lookup(self, url: str, from_date: Optional[str] = None) -> str:
        """Return the archive URL of the capture found for url."""
        record = self.snapshot(url, from_date=from_date)
        return build_archive_url(record.timestamp, url)

    def _make_request(self, url: str, params: Dict[str, Any]) -> requests.Response:
        """Make HTTP request to CDX server, mapping failures onto lookup errors."""
        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ConnectivityError(url, e) from e

        if response.status_code == 404:
            raise NotFoundError(url)
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise ConnectivityError(url, e) from e
        return response

    @staticmethod
    def _parse_rows(url: str, response: requests.Response) -> List[List[str]]:
        """Decode the JSON table; anything but a list of lists of strings is malformed."""
        text = response.text
        try:
            data = json.loads(text)
        except ValueError:
            raise MalformedResponseError(url, text) from None

        if not isinstance(data, list) or not all(isinstance(row, list) for row in data):
            raise MalformedResponseError(url, data)
        if not all(isinstance(value, str) for row in data for value in row):
            raise MalformedResponseError(url, data)
        return data

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self) -> "CDXClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
