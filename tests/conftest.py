"""Shared fakes: no test talks to the real Wayback Machine or really sleeps."""

from typing import Dict, List, Union

import pytest

from webarchive.cdx import build_archive_url
from webarchive.errors import NotFoundError

Outcome = Union[str, BaseException]


class FakeClient:
    """
    Stands in for CDXClient.

    results maps a URL to a timestamp, an exception, or a list of those
    consumed one per attempt (the last entry repeats). Unknown URLs are 404s.
    """

    def __init__(self, results: Dict[str, Union[Outcome, List[Outcome]]] = None):
        self.results = dict(results or {})
        self.calls: List[tuple] = []

    def lookup(self, url, from_date=None):
        self.calls.append((url, from_date))
        outcome = self.results.get(url, NotFoundError(url))
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return build_archive_url(outcome, url)

    def urls_called(self):
        return [url for url, _ in self.calls]


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep():
    return FakeSleep()
