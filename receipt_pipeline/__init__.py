"""
Receipt Intelligence Pipeline.

Turns receipt emails and manual entries into structured, deduplicated,
pattern-aware expense records.
"""

from .models import ExtractedReceipt, IngestionResult, Receipt, SearchFilters
from .pipeline import ReceiptPipeline
from .storage import InMemoryReceiptStore, ReceiptStore

__version__ = "1.0.0"

__all__ = [
    "ExtractedReceipt",
    "IngestionResult",
    "Receipt",
    "SearchFilters",
    "ReceiptPipeline",
    "InMemoryReceiptStore",
    "ReceiptStore",
]
