"""
Exceptions raised while looking up and rewriting URLs.

Per-URL lookup failures derive from WaybackError and are retried; the
resolver gathers the ones that exhaust their retries into a single
AggregateFailureError.
"""

from typing import Any, Iterable, List, Optional


class WaybackError(Exception):
    """Base class for failures looking up a single URL."""

    def __init__(self, message: str, url: str):
        super().__init__(message)
        self.url = url


class NotFoundError(WaybackError):
    """The Wayback Machine has no snapshot for the URL."""

    def __init__(self, url: str):
        super().__init__(f"could not find {url!r} in Wayback Machine", url)


class MalformedResponseError(WaybackError):
    """The CDX response does not have the expected header + data row shape."""

    def __init__(self, url: str, rows: Any):
        super().__init__(f"bad response from Wayback Machine: {rows!r}", url)
        self.rows = rows


class ConnectivityError(WaybackError):
    """Transport level failure talking to the Wayback Machine."""

    def __init__(self, url: str, cause: BaseException):
        super().__init__(f"problem connecting to Wayback Machine: {cause}", url)
        self.cause = cause


class CancelledError(Exception):
    """The run was cancelled before every URL could be looked up."""

    def __init__(self, message: str = "lookup cancelled"):
        super().__init__(message)


class SourceError(Exception):
    """The input text could not be read."""


class AggregateFailureError(Exception):
    """
    All failures of one batch, combined.

    str() lists one member message per line so every failing URL shows up
    in the report.
    """

    def __init__(self, errors: Iterable[BaseException]):
        self.errors: List[BaseException] = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)

    @classmethod
    def join(cls, errors: Iterable[BaseException]) -> Optional["AggregateFailureError"]:
        """Combine errors into one, or return None when there are none."""
        errors = list(errors)
        if not errors:
            return None
        return cls(errors)
