"""Find candidate URLs in free text."""

import re
from typing import List

# Shared with substitute.py so replacement spans line up with extraction spans.
URL_PATTERN = re.compile(r"""https?://[^\s()\[\]'"]+""")


def get_urls(text: str) -> List[str]:
    """
    Return every URL-looking substring of text, left to right.

    Repeats are kept; nothing beyond the pattern is validated.

    Example:
        >>> get_urls('see (http://a.example/x) and "https://b.example"')
        ['http://a.example/x', 'https://b.example']
    """
    return URL_PATTERN.findall(text)
