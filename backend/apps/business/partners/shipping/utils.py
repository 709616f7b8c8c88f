"""
Shipping Utilities for Papelería Santiago
=========================================
Helpers for matching destination names against stored configuration.
"""

import re
import unicodedata

PROVINCE_PREFIX_RE = re.compile(r'^provincia\s+(?:del?\s+)?')
REGION_SUFFIX_RE = re.compile(r'\s+(?:province|state|region)$')


def normalize_location(name: str) -> str:
    """
    Canonicalize a province/city name for comparison.

    "Provincia de Loja", "loja" and "LOJA " all normalize to "loja".
    Values are normalized at comparison time only, never persisted.

    Args:
        name: Raw location name (may be None)

    Returns:
        str: Lowercase name without diacritics, prefixes or suffixes
    """
    if not name:
        return ''

    text = unicodedata.normalize('NFD', str(name).lower())
    text = ''.join(char for char in text if not unicodedata.combining(char))
    text = text.strip()

    text = PROVINCE_PREFIX_RE.sub('', text)
    text = REGION_SUFFIX_RE.sub('', text)

    return text.strip()


def parse_province_list(raw) -> list:
    """Split a comma-separated province cell into a clean list."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items = raw
    else:
        items = str(raw).split(',')
    return [str(item).strip() for item in items if str(item).strip()]
