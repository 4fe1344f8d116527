"""
Rewrite text so its links point at the Wayback Machine.

This module provides the high level interface: find the URLs, resolve them
against the CDX index and substitute the archive URLs back in.
"""

from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from .cdx import CDXClient
from .config import Settings
from .errors import AggregateFailureError
from .extractor import get_urls
from .resolver import Resolution, Resolver
from .retry import CancelToken
from .substitute import substitute_replacements


def _normalize_url(url: str) -> str:
    """Normalize URL by adding https:// if protocol is missing."""
    normalized = url.strip()
    if not normalized.startswith(('http://', 'https://')):
        normalized = f"https://{normalized}"
    return normalized


@contextmanager
def _client_for(settings: Settings, client=None) -> Iterator:
    """Yield the given client, or a CDXClient owned by this call."""
    if client is not None:
        yield client
        return
    with CDXClient(timeout=settings.timeout) as owned:
        yield owned


def resolve(
    urls: Sequence[str],
    client=None,
    settings: Optional[Settings] = None,
    token: Optional[CancelToken] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Resolution:
    """Resolve urls with a Resolver; see Resolver for the arguments."""
    settings = settings or Settings()
    with _client_for(settings, client) as lookup_client:
        return Resolver(lookup_client, settings, token=token, sleep=sleep).resolve(urls)


def archive_text(
    text: str,
    client=None,
    settings: Optional[Settings] = None,
    token: Optional[CancelToken] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Tuple[str, Optional[AggregateFailureError]]:
    """
    Replace every URL in text with its most recent Wayback Machine capture.

    The rewritten text is always returned, even when some lookups failed or
    the run was cancelled; the failures come back as the second element.

    Args:
        text: Arbitrary text containing http(s) URLs
        client: Lookup client, defaults to a CDXClient using settings.timeout
        settings: Retry, skip and date configuration (defaults apply if None)
        token: CancelToken to stop the run early
        sleep: Sleep function used between retries

    Returns:
        (rewritten text, AggregateFailureError or None)

    Example:
        >>> output, error = archive_text("see http://example.com/a")
        >>> output
        'see https://web.archive.org/20200101000000/http://example.com/a'
    """
    resolution = resolve(get_urls(text), client=client, settings=settings,
                         token=token, sleep=sleep)
    return substitute_replacements(text, resolution.replacements), resolution.error()


def archive_urls(
    urls: Sequence[str],
    client=None,
    settings: Optional[Settings] = None,
    token: Optional[CancelToken] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Tuple[List[str], Optional[AggregateFailureError]]:
    """
    Look up archive URLs for URLs given directly.

    Arguments without a scheme get https:// prepended. Unresolved URLs are
    left out of the returned list, which otherwise follows argument order.

    Returns:
        (archive URLs, AggregateFailureError or None)
    """
    normalized = [_normalize_url(u) for u in urls]
    resolution = resolve(normalized, client=client, settings=settings,
                         token=token, sleep=sleep)
    archived = [resolution.replacements[u] for u in normalized
                if u in resolution.replacements]
    return archived, resolution.error()
