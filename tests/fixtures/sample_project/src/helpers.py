"""Small text helpers."""

import re


def slug(text: str) -> str:
    """Turn text into a URL slug.

    Args:
        text (str): Any text.

    Returns:
        str: Lowercase words joined by hyphens.
    """
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
