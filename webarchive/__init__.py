"""
webarchive - Point the links in a text at the Wayback Machine.

Finds http(s) URLs in arbitrary text, looks up their most recent capture in
the Wayback Machine's CDX index and rewrites them to archive URLs, leaving
everything else untouched.
"""

from .errors import (
    AggregateFailureError,
    CancelledError,
    ConnectivityError,
    MalformedResponseError,
    NotFoundError,
    SourceError,
    WaybackError,
)
from .wayback import archive_text, archive_urls

__version__ = "1.0.0"
__all__ = [
    "archive_text",
    "archive_urls",
    "AggregateFailureError",
    "CancelledError",
    "ConnectivityError",
    "MalformedResponseError",
    "NotFoundError",
    "SourceError",
    "WaybackError",
]
