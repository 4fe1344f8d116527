"""
CDX API Python Client

Snapshot lookups against the Wayback Machine CDX Server API.
"""

from .cdx_api import (
    ARCHIVE_ROOT,
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    CDXClient,
    CDXRecord,
    build_archive_url,
)

__all__ = [
    "ARCHIVE_ROOT",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "CDXClient",
    "CDXRecord",
    "build_archive_url",
]
