"""
Centralized normalization and fuzzy-matching utilities for the receipt pipeline.
"""

import re

from rapidfuzz.distance import Levenshtein


def normalize_store_name(name: str) -> str:
    """
    Standardizes store names for fuzzy comparison and grouping.

    Transformation pipeline:
    1. Force lowercase
    2. Remove everything except letters, digits and whitespace
    3. Collapse runs of whitespace
    """
    if not name:
        return ""

    norm = name.lower()
    norm = re.sub(r'[^a-z0-9\s]', '', norm)
    norm = re.sub(r'\s+', ' ', norm)
    return norm.strip()


def normalize_dedup_key(name: str) -> str:
    """Case and whitespace folding only; punctuation is significant for duplicates."""
    if not name:
        return ""
    return re.sub(r'\s+', ' ', name.lower()).strip()


def levenshtein_distance(first: str, second: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    return Levenshtein.distance(first or "", second or "")


def string_similarity(first: str, second: str) -> float:
    """
    Normalized Levenshtein ratio: (max_len - distance) / max_len.

    Two empty strings are identical (1.0). The result is always within [0, 1].
    """
    first = first or ""
    second = second or ""
    longer = max(len(first), len(second))
    if longer == 0:
        return 1.0

    distance = levenshtein_distance(first, second)
    return (longer - distance) / longer
