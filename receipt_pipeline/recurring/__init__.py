"""
Recurring-expense pattern analysis.
"""

from .analyzer import RecurringPatternAnalyzer, calculate_next_expected_date, detect_frequency
from .curated import KNOWN_RECURRING_MERCHANTS, RECURRING_CATEGORIES

__all__ = [
    "RecurringPatternAnalyzer",
    "calculate_next_expected_date",
    "detect_frequency",
    "KNOWN_RECURRING_MERCHANTS",
    "RECURRING_CATEGORIES",
]
