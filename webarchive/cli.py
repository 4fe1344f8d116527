"""
webarchive - Look up Wayback Machine addresses for URLs.

Usage:

    webarchive [options]               rewrite the URLs in --src (stdin by default)
    webarchive [options] URL [URL...]  print the archive URL of each argument

Every option can also be set through a WEBARCHIVE_* environment variable,
e.g. WEBARCHIVE_RETRIES=5 or WEBARCHIVE_SKIP_HOSTS=example.com,example.org.
Command-line flags win over the environment.
"""

import argparse
import sys
from dataclasses import replace
from typing import IO, Callable, List, Mapping, Optional, Sequence, Tuple

from .config import Settings, parse_duration
from .downloader import ENCODING, ERRORS, read_source
from .errors import SourceError
from .log import configure_logging
from .retry import CancelToken
from .wayback import archive_text, archive_urls


APP_NAME = "webarchive"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def duration(value: str) -> float:
    return parse_duration(value)


def build_parser(defaults: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Look up Wayback Machine address for URL.",
    )
    parser.add_argument(
        "urls", nargs="*", metavar="URL",
        help="URLs to look up directly; when given, --src is ignored",
    )
    parser.add_argument(
        "--src", default=defaults.src, metavar="FILE_OR_URL",
        help="source file or URL for things to replace, '-' for stdin (default: %(default)s)",
    )
    parser.add_argument(
        "--timeout", type=duration, default=defaults.timeout, metavar="DURATION",
        help="connection time out, e.g. 10, 10s or 1m30s (default: %(default)ss)",
    )
    parser.add_argument(
        "--retry-time", type=duration, default=defaults.retry_time, metavar="DURATION",
        help="duration to wait before retrying (default: %(default)ss)",
    )
    parser.add_argument(
        "--retries", type=int, default=defaults.retries, metavar="N",
        help="number of times to try each URL (default: %(default)s)",
    )
    parser.add_argument(
        "--from", dest="from_date", default=defaults.from_date, metavar="YYYYMMDD",
        help="date to search from",
    )
    parser.add_argument(
        "--skip-host", dest="skip_hosts", action="append", default=None, metavar="HOST",
        help="host never to look up; may be repeated",
    )
    parser.add_argument(
        "--jobs", type=int, default=defaults.jobs, metavar="N",
        help="number of lookups to run at once (default: %(default)s)",
    )
    parser.add_argument(
        "--progress", action="store_true", default=defaults.progress,
        help="show a progress bar",
    )
    parser.add_argument(
        "--silent", action="store_true", default=defaults.silent,
        help="don't log lookups",
    )
    return parser


def parse_args(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[Settings, List[str]]:
    """
    Combine defaults, WEBARCHIVE_* variables and argv into Settings.

    Returns:
        (validated Settings, positional URLs)

    Raises:
        SystemExit: Usage error (status 2) or --help (status 0)
    """
    try:
        defaults = Settings.from_env(environ)
    except ValueError as e:
        argparse.ArgumentParser(prog=APP_NAME).error(f"environment: {e}")

    parser = build_parser(defaults)
    args = parser.parse_args(argv)

    settings = replace(
        defaults,
        src=args.src,
        timeout=args.timeout,
        retry_time=args.retry_time,
        retries=args.retries,
        from_date=args.from_date or None,
        skip_hosts=(tuple(h.lower() for h in args.skip_hosts)
                    if args.skip_hosts is not None else defaults.skip_hosts),
        jobs=args.jobs,
        progress=args.progress,
        silent=args.silent,
    )
    try:
        settings.validate()
    except ValueError as e:
        parser.error(str(e))
    return settings, args.urls


def _write(stream: IO, text: str) -> None:
    buffer = getattr(stream, "buffer", None)
    if buffer is not None:
        buffer.write(text.encode(ENCODING, ERRORS))
        buffer.flush()
    else:
        stream.write(text)
        stream.flush()


def _isatty(stream: IO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def main(
    argv: Optional[Sequence[str]] = None,
    stdin: Optional[IO] = None,
    stdout: Optional[IO] = None,
    stderr: Optional[IO] = None,
    environ: Optional[Mapping[str, str]] = None,
    client=None,
    sleep: Optional[Callable[[float], None]] = None,
) -> int:
    """
    Run the command line and return its exit status.

    Output is printed for whatever could be resolved, then any failure is
    reported on stderr and turned into a non-zero status.
    """
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr

    try:
        settings, urls = parse_args(argv, environ)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else EXIT_USAGE

    configure_logging(silent=settings.silent, stream=stderr)
    token = CancelToken()

    try:
        if urls:
            archived, error = archive_urls(urls, client=client, settings=settings,
                                           token=token, sleep=sleep)
            output = "".join(f"{u}\n" for u in archived)
        else:
            text = read_source(settings.src, stdin=stdin, timeout=settings.timeout)
            output, error = archive_text(text, client=client, settings=settings,
                                         token=token, sleep=sleep)
            if _isatty(stdout):
                output += "\n"
    except SourceError as e:
        stderr.write(f"\n\nError: {e}\n")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        stderr.write("\n\nError: interrupted\n")
        return EXIT_INTERRUPTED

    _write(stdout, output)

    if error is None:
        return EXIT_OK
    stderr.write(f"\n\nError: {error}\n")
    if token.cancelled:
        return EXIT_INTERRUPTED
    return EXIT_FAILURE


def run() -> None:
    """Console script entry point."""
    sys.exit(main())
