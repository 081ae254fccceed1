#!/usr/bin/env python3
"""
Text helpers shared by the PDF and HTML collectors.
"""

import re
import unicodedata
from typing import Any

# Any run of whitespace, including the non-breaking spaces found in scraped pages
_WHITESPACE_RE = re.compile(r'\s+')
_EDIT_LINK_RE = re.compile(r'\[\s*edit\s*\]', re.IGNORECASE)
_FOOTNOTE_RE = re.compile(r'\[[^\]]*\]')


def normalize_whitespace(value: str) -> str:
    """Collapse runs of whitespace into a single space and strip the ends."""
    return _WHITESPACE_RE.sub(' ', value).strip()


def clean_cell(value: Any) -> Any:
    """Normalize a raw table cell; non-string cells (``None``, numbers) pass through."""
    if isinstance(value, str):
        return normalize_whitespace(value)
    return value


def clean_heading(text: str) -> str:
    """Strip the ``[edit]`` link text and footnote markers from a page heading."""
    text = _EDIT_LINK_RE.sub('', text)
    text = _FOOTNOTE_RE.sub('', text)
    return normalize_whitespace(text)


def fold_name(text: str) -> str:
    """
    Fold a player name for tolerant comparison.

    Removes accents via NFD decomposition, replaces punctuation with spaces
    and lowercases, so ``"M. SALAH"`` and ``"Mohamed Salah"`` share tokens.
    """
    decomposed = unicodedata.normalize('NFD', text)
    stripped = ''.join(ch for ch in decomposed if unicodedata.category(ch) != 'Mn')
    stripped = re.sub(r'[^\w\s]', ' ', stripped)
    return normalize_whitespace(stripped).lower()
