"""
Data models for receipt ingestion, analysis and search.
"""

from .receipt import (
    ExpenseCategory,
    ExtractedReceipt,
    Frequency,
    Receipt,
    ReceiptItem,
    ValidationReport,
    coerce_datetime,
    parse_amount,
)
from .ingestion import INGESTION_STATUSES, IngestionResult
from .recurring import RecurringExpenseMatch, RecurringPattern, UpcomingRecurringExpense
from .search import (
    FacetCount,
    SearchFacets,
    SearchFilters,
    SearchResult,
    SpendingInsights,
    StoreSpend,
)
from .vendor import VendorDetectionResult, VendorExtractionRule, VendorPattern

__all__ = [
    "ExpenseCategory",
    "ExtractedReceipt",
    "Frequency",
    "Receipt",
    "ReceiptItem",
    "ValidationReport",
    "coerce_datetime",
    "parse_amount",
    "INGESTION_STATUSES",
    "IngestionResult",
    "RecurringExpenseMatch",
    "RecurringPattern",
    "UpcomingRecurringExpense",
    "FacetCount",
    "SearchFacets",
    "SearchFilters",
    "SearchResult",
    "SpendingInsights",
    "StoreSpend",
    "VendorDetectionResult",
    "VendorExtractionRule",
    "VendorPattern",
]
