"""
Field extraction: deterministic vendor rules, the LLM fallback oracle and
data-quality validation.
"""

from .extraction_rules import VENDOR_EXTRACTION_RULES, get_supported_vendors, is_vendor_supported
from .field_extractor import DeterministicFieldExtractor, extract_fields
from .html import html_to_text
from .llm_extractor import LLMFieldExtractor
from .validation import ReceiptValidator

__all__ = [
    "VENDOR_EXTRACTION_RULES",
    "get_supported_vendors",
    "is_vendor_supported",
    "DeterministicFieldExtractor",
    "extract_fields",
    "html_to_text",
    "LLMFieldExtractor",
    "ReceiptValidator",
]
