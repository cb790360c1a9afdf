"""
Text helpers shared by the matching services.

- sanitize_string: clean user-supplied text before it is stored
- normalize_company_name: canonical form used for sponsor lookups
- levenshtein_distance / calculate_similarity: fuzzy name comparison
"""

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_HTML_TAGS = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")

_COMPANY_SUFFIX = re.compile(
    r"\s+(ltd|limited|plc|llc|inc|corp|corporation|group|uk|international)\.?$",
    re.IGNORECASE,
)
_PRIVATE_SUFFIX = re.compile(r"\s+(private|pvt)\.?\s*(ltd|limited)?\.?$", re.IGNORECASE)
_NON_WORD = re.compile(r"[^\w\s]")


def sanitize_string(value, max_length: int = 1000) -> str:
    """Strip tags and control characters, collapse whitespace, truncate."""
    if not isinstance(value, str):
        return ""
    cleaned = _HTML_TAGS.sub("", value)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned[:max_length]


def sanitize_multiline(value, max_length: int = 20000) -> str:
    """Like sanitize_string but keeps line breaks (descriptions, notes)."""
    if not isinstance(value, str):
        return ""
    cleaned = _HTML_TAGS.sub("", value)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    lines = [_WHITESPACE.sub(" ", line).strip() for line in cleaned.splitlines()]
    return "\n".join(lines).strip()[:max_length]


def normalize_company_name(name: str) -> str:
    """
    Canonical company name for sponsor matching.

    >>> normalize_company_name("  Acme Widgets Ltd. ")
    'acme widgets'
    >>> normalize_company_name("Tata Consultancy Pvt Ltd")
    'tata consultancy'
    """
    if not name:
        return ""
    normalized = name.lower().strip()
    normalized = _COMPANY_SUFFIX.sub("", normalized)
    normalized = _PRIVATE_SUFFIX.sub("", normalized)
    normalized = _NON_WORD.sub("", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


def levenshtein_distance(s1: str, s2: str) -> int:
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def calculate_similarity(str1: str, str2: str) -> float:
    """0..1 similarity: 1 for equal, 0.9 for containment, else edit-distance based."""
    s1 = (str1 or "").lower()
    s2 = (str2 or "").lower()

    if s1 == s2:
        return 1.0
    if s1 in s2 or s2 in s1:
        return 0.9

    max_len = max(len(s1), len(s2))
    return 1 - levenshtein_distance(s1, s2) / max_len
