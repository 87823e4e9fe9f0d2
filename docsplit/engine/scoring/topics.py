"""Topic keyword helpers shared by the extractor, scorer and planner.

This module provides:
- Keyword extraction with stop-word filtering
- A light suffix stemmer so "configuring" and "configuration" meet
- Title mention detection for cross-reference counting
- Slugs for anchors and filenames
"""

import re
from collections import Counter

from .constants import SLUG_MAX_LENGTH, STOP_WORDS

# (suffix, minimum word length) pairs; longest suffixes first
_SUFFIXES = (
    ("ations", 9),
    ("ation", 8),
    ("ments", 8),
    ("ment", 7),
    ("ness", 7),
    ("ing", 6),
    ("ies", 5),
    ("ed", 5),
    ("es", 5),
    ("er", 5),
    ("s", 4),
)


def stem_keyword(word: str) -> str:
    """Strip one common English suffix to get an approximate stem.

    Minimum-length guards keep short words ("uses", "bed") intact enough
    to stay meaningful.
    """
    word = word.lower()
    for suffix, min_len in _SUFFIXES:
        if len(word) >= min_len and word.endswith(suffix):
            if suffix == "s" and word.endswith("ss"):
                return word
            return word[: -len(suffix)]
    return word


def extract_keywords(text: str) -> list[str]:
    """Lowercase words of three or more letters, stop words removed."""
    words = re.findall(r"[a-z][a-z0-9+#-]*", text.lower())
    return [w for w in words if len(w) >= 3 and w not in STOP_WORDS]


def top_keywords(text: str, count: int) -> list[str]:
    """Most frequent keywords, ties broken by first occurrence."""
    keywords = extract_keywords(text)
    if not keywords:
        return []
    first_seen: dict[str, int] = {}
    for position, kw in enumerate(keywords):
        first_seen.setdefault(kw, position)
    counts = Counter(keywords)
    ranked = sorted(counts, key=lambda kw: (-counts[kw], first_seen[kw]))
    return ranked[:count]


def mentions_title(title: str, text: str) -> bool:
    """Whether ``text`` mentions ``title`` as a whole phrase.

    Titles made only of stop words (or shorter than four characters) never
    count; they would match almost any text.
    """
    phrase = title.strip().lower()
    if len(phrase) < 4 or not extract_keywords(phrase):
        return False
    return re.search(rf"(?<![\w-]){re.escape(phrase)}(?![\w-])", text.lower()) is not None


def anchor_slug(title: str) -> str:
    """GitHub-style heading anchor ("Getting Started!" -> "getting-started")."""
    slug = re.sub(r"[^\w\- ]", "", title.strip().lower())
    return re.sub(r"\s", "-", slug)


def slugify(text: str) -> str:
    """Filesystem-safe slug for directory and file names."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.strip().lower()).strip("-")
    if len(slug) > SLUG_MAX_LENGTH:
        slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug
