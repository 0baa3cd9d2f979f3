"""Payee name normalization.

Usage example:
    from payee_classifier.domain.normalization import normalize_payee_name

    assert normalize_payee_name("  José & Sons, Inc. ") == "JOSE AND SONS INC"
"""

from __future__ import annotations

import re
import unicodedata

_PUNCTUATION_RE = re.compile(r"[^\w\s&']")
_AMPERSAND_RE = re.compile(r"\s*&\s*")
_WHITESPACE_RE = re.compile(r"\s+")
_MATCH_KEY_RE = re.compile(r"[^A-Z0-9]")


def _strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_payee_name(raw: str) -> str:
    """Canonicalize a raw payee name for feature matching.

    Transformations:
    1. Unicode NFC, then upper-case
    2. Strip diacritics
    3. Replace punctuation other than `&` and `'` with whitespace
    4. Expand `&` to `AND`
    5. Collapse and trim whitespace

    Args:
        raw: Raw payee name (may be empty or whitespace-only).

    Returns:
        Normalized name; empty string for empty input.
    """
    if not raw or not raw.strip():
        return ""

    s = unicodedata.normalize("NFC", raw).upper()
    s = _strip_diacritics(s)
    s = _PUNCTUATION_RE.sub(" ", s)
    s = _AMPERSAND_RE.sub(" AND ", s)
    s = _WHITESPACE_RE.sub(" ", s).strip()
    return s


def name_match_key(raw: str) -> str:
    """Return a comparison key that ignores case, punctuation and spacing.

    Used when reconciling results to rows by name: "Pepsi. Cola" and "PEPSI COLA"
    share a key.
    """
    return _MATCH_KEY_RE.sub("", normalize_payee_name(raw))
