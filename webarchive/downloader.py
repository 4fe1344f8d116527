import sys
from typing import IO, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .cdx import DEFAULT_TIMEOUT
from .errors import SourceError

# Global variables
HEADERS = {
    "User-Agent": "webarchive/1.0",
    "Accept-Encoding": "gzip, deflate",
}

# Retry configuration for fetching a remote source document
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_MULTIPLIER = 1
DEFAULT_RETRY_MIN_WAIT = 1
DEFAULT_RETRY_MAX_WAIT = 10

# Undecodable bytes survive the round trip to stdout unchanged
ENCODING = "utf-8"
ERRORS = "surrogateescape"

STDIN_NAMES = ("", "-")


def download_url(url, session=None, headers=None, timeout=DEFAULT_TIMEOUT):
    """
    Download a URL with requests.

    Args:
        url: URL to download
        session: Optional requests Session, a one-off request otherwise
        headers: Request headers, defaults to global HEADERS
        timeout: Timeout in seconds, default DEFAULT_TIMEOUT

    Returns:
        requests.Response with a 2xx status

    Raises:
        requests.exceptions.RequestException: Transport failure or HTTP error status
    """
    http = session or requests
    response = http.get(url, headers=headers or HEADERS, timeout=timeout)
    response.raise_for_status()
    return response


@retry(
    stop=stop_after_attempt(DEFAULT_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=DEFAULT_RETRY_MULTIPLIER, min=DEFAULT_RETRY_MIN_WAIT, max=DEFAULT_RETRY_MAX_WAIT),
    retry=retry_if_exception_type((
        requests.exceptions.ConnectionError,
        requests.exceptions.Timeout,
    )),
    reraise=True,
)
def download_url_with_retry(url, session=None, headers=None, timeout=DEFAULT_TIMEOUT):
    """
    Download URL with exponential backoff retry on connection problems.
    This is a wrapper around download_url; HTTP error statuses are not retried.
    """
    return download_url(url, session=session, headers=headers, timeout=timeout)


def is_remote(src: str) -> bool:
    return src.startswith(("http://", "https://"))


def read_source(
    src: str,
    stdin: Optional[IO] = None,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> str:
    """
    Read the text to rewrite from stdin, a local file or a remote URL.

    Args:
        src: "-" (or "") for stdin, an http(s) URL, or a file path
        stdin: Stream used for "-", defaults to sys.stdin
        timeout: Timeout in seconds when src is a URL
        session: Optional requests Session when src is a URL

    Returns:
        The source text. Line endings are preserved as-is.

    Raises:
        SourceError: The source could not be read
    """
    if src in STDIN_NAMES:
        stream = stdin if stdin is not None else sys.stdin
        buffer = getattr(stream, "buffer", None)
        if buffer is not None:
            return buffer.read().decode(ENCODING, ERRORS)
        return stream.read()

    if is_remote(src):
        try:
            response = download_url_with_retry(src, session=session, timeout=timeout)
        except requests.exceptions.RequestException as e:
            raise SourceError(f"could not fetch {src}: {e}") from e
        return response.content.decode(ENCODING, ERRORS)

    try:
        with open(src, "rb") as f:
            return f.read().decode(ENCODING, ERRORS)
    except OSError as e:
        raise SourceError(f"could not read {src}: {e}") from e
