"""
Slug generation utility
"""
import re
import unicodedata
from typing import Optional

_SEPARATOR_RUN = re.compile(r'[^a-z0-9]+')

SLUG_PATTERN = r'^[a-z0-9]+(?:-[a-z0-9]+)*$'


def generate_slug(text: Optional[str]) -> str:
    """
    Generate a URL-friendly slug from text

    Every run of whitespace, punctuation or hyphens becomes a single hyphen and
    hyphens are stripped from both ends, so ``generate_slug`` is idempotent.
    Accented letters are folded to ASCII first.

    Args:
        text: Text to convert to slug

    Returns:
        URL-friendly slug, possibly empty (e.g. for an all-symbol input)
    """
    if not text:
        return ""

    # Convert to lowercase
    text = str(text).lower().strip()

    # Remove accents/diacritics
    text = unicodedata.normalize('NFKD', text)
    text = text.encode('ascii', 'ignore').decode('ascii')

    # Collapse separators into hyphens
    text = _SEPARATOR_RUN.sub('-', text)

    # Remove leading/trailing hyphens
    return text.strip('-')
