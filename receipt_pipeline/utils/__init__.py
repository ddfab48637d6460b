"""
Shared helpers: logging, configuration and string normalization.
"""

from .config import PipelineSettings, get_reference_date, get_settings
from .logging_config import logger, setup_logging
from .normalization import (
    levenshtein_distance,
    normalize_dedup_key,
    normalize_store_name,
    string_similarity,
)

__all__ = [
    "PipelineSettings",
    "get_reference_date",
    "get_settings",
    "logger",
    "setup_logging",
    "levenshtein_distance",
    "normalize_dedup_key",
    "normalize_store_name",
    "string_similarity",
]
