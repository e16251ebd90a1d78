"""
Content Engine - Title Similarity & Deduplication
=================================================
Two independent duplicate guards:

* edit-distance similarity (intake / idea batches), threshold > 0.70
* normalized substring containment (scheduler + pre-persist checks)
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TypeVar

from rapidfuzz.distance import Levenshtein

DEFAULT_SIMILARITY_THRESHOLD = 0.70

T = TypeVar("T")


def similarity(a: str, b: str) -> float:
    """1 - levenshtein(a, b) / max(len) over case-normalized strings."""
    left = (a or "").strip().lower()
    right = (b or "").strip().lower()
    longer = max(len(left), len(right))
    if longer == 0:
        return 1.0
    return (longer - Levenshtein.distance(left, right)) / longer


def is_near_duplicate(
    title: str,
    existing_titles: Iterable[str],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> str | None:
    """Return the first existing title whose similarity exceeds the threshold."""
    for existing in existing_titles:
        if similarity(title, existing) > threshold:
            return existing
    return None


def filter_duplicates(
    candidates: Iterable[T],
    existing_titles: Iterable[str],
    *,
    title_of=lambda item: item.title,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> tuple[list[T], list[tuple[T, str]]]:
    """
    Split a batch into (unique, duplicates). Candidates are also checked
    against earlier accepted members of the same batch.
    """
    seen = [t for t in existing_titles if t]
    unique: list[T] = []
    duplicates: list[tuple[T, str]] = []
    for item in candidates:
        title = title_of(item)
        match = is_near_duplicate(title, seen, threshold)
        if match is not None:
            duplicates.append((item, match))
            continue
        unique.append(item)
        seen.append(title)
    return unique, duplicates


def normalize_title(title: str) -> str:
    """Lowercase, trim and drop punctuation for exact/substring comparisons."""
    text = (title or "").lower().strip()
    text = re.sub(r"[^\w\s]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def titles_overlap(a: str, b: str) -> bool:
    """True when one normalized title equals or contains the other."""
    left = normalize_title(a)
    right = normalize_title(b)
    if not left or not right:
        return False
    return left == right or left in right or right in left


def find_overlapping_title(title: str, existing_titles: Iterable[str]) -> str | None:
    for existing in existing_titles:
        if titles_overlap(title, existing):
            return existing
    return None


def find_exact_title(title: str, existing_titles: Iterable[str]) -> str | None:
    normalized = normalize_title(title)
    if not normalized:
        return None
    for existing in existing_titles:
        if normalize_title(existing) == normalized:
            return existing
    return None
