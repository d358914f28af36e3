from __future__ import annotations

import html as _html
import re
import unicodedata
from typing import Iterable


def normalize_text(text: str) -> str:
    if not text:
        return ""
    # HTML entities and unicode normalization
    text = _html.unescape(str(text))
    text = unicodedata.normalize("NFKC", text)
    # Strip control chars
    text = text.replace("\x00", "").replace("\r", " ").replace("\n", " ")
    # Collapse whitespace deterministically
    return " ".join(text.split())


def strip_accents(text: str) -> str:
    """Remove combining marks so "Fiscalía" and "Fiscalia" compare equal."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def fold_text(text: str) -> str:
    """Lowercase, accent-free, whitespace-collapsed form used for keyword tests."""
    return " ".join(strip_accents(normalize_text(text)).lower().split())


def name_key(full_name: str) -> str:
    """Grouping key for sibling records: upper-case, no accents, single spaces."""
    return " ".join(strip_accents(normalize_text(full_name).upper()).split())


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    folded = fold_text(text)
    return any(keyword in folded for keyword in keywords)


def contains_word(text: str, terms: Iterable[str]) -> bool:
    """True when any term appears in ``text`` bounded by non-word characters."""
    folded = fold_text(text)
    if not folded:
        return False
    for term in terms:
        if re.search(rf"(?<!\w){re.escape(term)}(?!\w)", folded):
            return True
    return False
