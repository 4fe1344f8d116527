"""Rewrite text using a map of resolved URLs."""

from typing import Mapping

from .extractor import URL_PATTERN


def substitute_replacements(text: str, replacements: Mapping[str, str]) -> str:
    """
    Replace each URL match in text with its mapped archive URL.

    Matches missing from replacements, and everything between matches, are
    left exactly as they were.
    """
    if not replacements:
        return text
    return URL_PATTERN.sub(lambda m: replacements.get(m.group(0), m.group(0)), text)
