"""
Example usage of the webarchive library.

This file demonstrates how to use the webarchive library to:
1. Rewrite the links in a piece of text to Wayback Machine URLs
2. Look up the archive URL of individual pages
"""

from webarchive import archive_text, archive_urls
from webarchive.cdx import CDXClient
from webarchive.config import Settings
from webarchive.log import configure_logging

SAMPLE_TEXT = """\
Read the announcement (https://example.com/) and the follow-up at
"https://www.iana.org/domains/reserved"; the site script at
https://example.com/app.js is left alone.
"""


def example_archive_text():
    """Example: rewrite every link in a short note"""
    print("=" * 70)
    print("webarchive - Example: rewriting links in text")
    print("=" * 70)

    settings = Settings(retries=2, retry_time=1.0)
    output, error = archive_text(SAMPLE_TEXT, settings=settings)

    print(output)
    if error is not None:
        print("-" * 70)
        print(f"Some links were left as they were:\n{error}")


def example_archive_urls():
    """Example: look up single pages, from a date onward"""
    print("=" * 70)
    print("webarchive - Example: looking up URLs")
    print("=" * 70)

    settings = Settings(from_date="20200101")
    with CDXClient(timeout=15) as client:
        archived, error = archive_urls(["example.com", "https://www.iana.org/"],
                                       client=client, settings=settings)

    for url in archived:
        print(f"  {url}")
    if error is not None:
        print(f"\nError: {error}")


def main():
    """Run all examples"""
    configure_logging()
    example_archive_text()
    print()
    example_archive_urls()


if __name__ == "__main__":
    main()
