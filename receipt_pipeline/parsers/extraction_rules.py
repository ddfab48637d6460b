"""
Per-vendor extraction rules, keyed by the exact vendor name produced by the
vendor identifier. Pattern order inside each rule is significant.
"""

from receipt_pipeline.models import ExpenseCategory, VendorExtractionRule
from receipt_pipeline.parsers.field_parsers import DEFAULT_ITEM_PATTERNS

ORDER_ID_GENERIC = r'order\s*(?:#|id|number|no\.?)[:\s]*([A-Z0-9-]{3,})'

VENDOR_EXTRACTION_RULES = {
    "Uber Eats": VendorExtractionRule(
        vendor="Uber Eats",
        display_name="Uber Eats",
        total_labels=("Total", "Amount charged"),
        order_id_patterns=[
            r'order\s*(?:#|id|number)[:\s]*([A-Z0-9-]+)',
            r'#([A-F0-9]{4,})',
        ],
        store_name_patterns=[
            r'your order (?:from|at|with)\s+([^\n|]+)',
            r'order (?:from|at)\s+([^\n|]+)',
            r'restaurant[:\s]+([^\n|]+)',
        ],
        subject_store_patterns=[
            r'(?:your\s+)?order\s+(?:from|at|with)\s+(.+?)(?:\s+is\b|\s+has\b|\s*$)',
            r'uber\s*eats.*?from\s+(.+?)$',
        ],
        item_patterns=DEFAULT_ITEM_PATTERNS,
        default_category=ExpenseCategory.DINING_TAKEAWAYS.value,
        confidence=0.9,
    ),
    "Takealot": VendorExtractionRule(
        vendor="Takealot",
        display_name="Takealot",
        total_labels=("Total", "Order Total", "Amount"),
        order_id_patterns=[r'order\s*(?:#|number|id)[:\s]*(\d+)'],
        item_patterns=DEFAULT_ITEM_PATTERNS,
        confidence=0.9,
    ),
    "Pick n Pay": VendorExtractionRule(
        vendor="Pick n Pay",
        display_name="Pick n Pay",
        total_labels=("Total", "Amount Due"),
        order_id_patterns=[r'(?:receipt|slip)\s*(?:#|no\.?|number)[:\s]*([A-Z0-9-]{3,})'],
        store_name_patterns=[r'(?:store|branch)[:\s]+([^\n|]+)'],
        subject_store_patterns=[
            r'pick\s*n\s*pay.*?digital\s*receipt\s*-?\s*(.+?)(?:\s*-\s*\d{2}\.\d{2}\.\d{4}.*)?$',
        ],
        store_name_prefix="Pick n Pay ",
        item_patterns=DEFAULT_ITEM_PATTERNS,
        default_category=ExpenseCategory.GROCERIES.value,
        confidence=0.85,
    ),
    "Checkers": VendorExtractionRule(
        vendor="Checkers",
        display_name="Checkers",
        total_labels=("Total", "Amount"),
        order_id_patterns=[ORDER_ID_GENERIC],
        item_patterns=DEFAULT_ITEM_PATTERNS,
        default_category=ExpenseCategory.GROCERIES.value,
        confidence=0.85,
    ),
    "Amazon": VendorExtractionRule(
        vendor="Amazon",
        display_name="Amazon",
        total_labels=("Grand Total", "Order Total", "Total"),
        order_id_patterns=[
            r'order\s*(?:#|number|id)[:\s]*(\d{3}-\d{7}-\d{7})',
            r'order\s*(?:#|number|id)[:\s]*([A-Z0-9-]+)',
        ],
        item_patterns=DEFAULT_ITEM_PATTERNS,
        confidence=0.85,
    ),
}


def get_supported_vendors():
    """Vendor names that have a deterministic rule set."""
    return list(VENDOR_EXTRACTION_RULES.keys())


def is_vendor_supported(vendor: str) -> bool:
    return vendor in VENDOR_EXTRACTION_RULES
