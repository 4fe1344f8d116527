"""
Resolve candidate URLs to archive URLs.

Each distinct URL moves through PENDING -> ATTEMPTING -> one of RESOLVED,
SKIPPED, FAILED or CANCELLED. The first occurrence of a URL decides its
fate; later occurrences are never looked up again. A URL that exhausts its
retries is recorded as a failure and the batch carries on.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

from joblib import Parallel, delayed
from tqdm.auto import tqdm

from .config import Settings
from .errors import AggregateFailureError, CancelledError, WaybackError
from .retry import CancelToken, call_with_retry

logger = logging.getLogger(__name__)

# Archive URLs are never looked up again, whatever the configured skip list.
ARCHIVE_HOST = "web.archive.org"

_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class Outcome(Enum):
    """Where a URL is in its lookup lifecycle."""
    PENDING = "pending"
    ATTEMPTING = "attempting"
    RESOLVED = "resolved"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class Resolution:
    """Result of one resolver pass."""
    replacements: Dict[str, str] = field(default_factory=dict)
    failures: List[WaybackError] = field(default_factory=list)
    outcomes: Dict[str, Outcome] = field(default_factory=dict)
    cancelled: bool = False

    def error(self) -> Optional[AggregateFailureError]:
        """All failures combined, plus a CancelledError if the run was cut short."""
        errors: List[BaseException] = list(self.failures)
        if self.cancelled:
            errors.append(CancelledError())
        return AggregateFailureError.join(errors)


class Resolver:
    """
    Look up archive URLs for a batch of candidates.

    Args:
        client: Object with a lookup(url, from_date=...) method, e.g. CDXClient
        settings: Retry, skip and parallelism configuration
        token: CancelToken shared with the caller; a fresh one by default
        sleep: Sleep function used between retries (tests inject a fake)
    """

    def __init__(
        self,
        client,
        settings: Optional[Settings] = None,
        token: Optional[CancelToken] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.client = client
        self.settings = settings or Settings()
        self.token = token or CancelToken()
        self.sleep = sleep
        self.skip_hosts = {ARCHIVE_HOST} | {h.lower() for h in self.settings.skip_hosts}

    def skip_reason(self, url: str) -> Optional[str]:
        """Return why url must not be looked up, or None if it should be."""
        if url.endswith(".js"):
            return "script"
        try:
            parts = urlsplit(url)
            # Accessing port validates it
            parts.port
        except ValueError:
            return "unparseable"
        if not parts.hostname or _BAD_ESCAPE_RE.search(url):
            return "unparseable"
        if parts.hostname in self.skip_hosts:
            return "skipped host"
        return None

    def resolve(self, urls: Iterable[str]) -> Resolution:
        """
        Resolve every distinct, non-skipped URL in urls.

        Returns:
            Resolution with the replacement map and the failures. Never raises
            for per-URL lookup problems.
        """
        resolution = Resolution()
        outcomes = resolution.outcomes

        for url in urls:
            if url in outcomes:
                continue
            reason = self.skip_reason(url)
            if reason:
                logger.info("skip %s (%s)", url, reason)
                outcomes[url] = Outcome.SKIPPED
                continue
            outcomes[url] = Outcome.PENDING

        pending = [u for u, o in outcomes.items() if o is Outcome.PENDING]
        show_progress = self.settings.progress and not self.settings.silent
        with tqdm(total=len(pending), desc="Looking up", unit="URL",
                  disable=not show_progress) as pbar:
            if self.settings.jobs > 1 and len(pending) > 1:
                self._resolve_parallel(pending, resolution, pbar)
            else:
                self._resolve_sequential(pending, resolution, pbar)

        for url, outcome in outcomes.items():
            if outcome in (Outcome.PENDING, Outcome.ATTEMPTING):
                outcomes[url] = Outcome.CANCELLED
                resolution.cancelled = True

        if resolution.cancelled:
            logger.info("cancelled")
        return resolution

    def _resolve_sequential(self, pending: List[str], resolution: Resolution, pbar) -> None:
        for url in pending:
            if self.token.cancelled:
                return
            resolution.outcomes[url] = Outcome.ATTEMPTING
            try:
                archived = self._lookup(url)
            except CancelledError:
                return
            except KeyboardInterrupt:
                self.token.cancel()
                return
            except WaybackError as e:
                self._record(resolution, url, None, e)
            else:
                self._record(resolution, url, archived, None)
            pbar.update(1)

    def _resolve_parallel(self, pending: List[str], resolution: Resolution, pbar) -> None:
        """Fan lookups out to a thread pool, consuming results in input order."""
        results = Parallel(n_jobs=self.settings.jobs, backend="threading",
                           return_as="generator")(
            delayed(self._attempt_one)(url) for url in pending
        )
        try:
            for url, archived, error in results:
                if isinstance(error, CancelledError):
                    continue
                self._record(resolution, url, archived, error)
                pbar.update(1)
        except KeyboardInterrupt:
            self.token.cancel()
        finally:
            results.close()

    def _attempt_one(self, url: str) -> Tuple[str, Optional[str], Optional[Exception]]:
        try:
            return url, self._lookup(url), None
        except (WaybackError, CancelledError) as e:
            return url, None, e

    def _lookup(self, url: str) -> str:
        logger.info("lookup %s", url)

        def attempt() -> str:
            try:
                return self.client.lookup(url, from_date=self.settings.from_date)
            except WaybackError as e:
                logger.info("error %s", e)
                raise

        return call_with_retry(
            attempt,
            attempts=self.settings.retries,
            delay=self.settings.retry_time,
            token=self.token,
            sleep=self.sleep,
        )

    @staticmethod
    def _record(resolution: Resolution, url: str, archived: Optional[str],
                error: Optional[WaybackError]) -> None:
        if error is None:
            logger.info("found %s", archived)
            resolution.replacements[url] = archived
            resolution.outcomes[url] = Outcome.RESOLVED
        else:
            logger.info("failed %s", url)
            resolution.failures.append(error)
            resolution.outcomes[url] = Outcome.FAILED
