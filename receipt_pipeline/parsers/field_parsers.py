"""
Best-effort field parsers used by the deterministic extractor.

Each parser is a pure function ``text -> Optional[value]``. Chains of parsers
are evaluated in order and short-circuit on the first non-None result, which
makes the "first match wins" contract explicit and testable per pattern.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from receipt_pipeline.models import ReceiptItem

T = TypeVar("T")

MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

ISO_DATE_RE = re.compile(r'(\d{4})-(\d{2})-(\d{2})')
NAMED_MONTH_DATE_RE = re.compile(
    r'(\d{1,2})\s+(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+(\d{4})',
    re.IGNORECASE,
)
DAY_FIRST_DATE_RE = re.compile(r'(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})')
DOTTED_DATE_RE = re.compile(r'(\d{2})\.(\d{2})\.(\d{4})')

AMOUNT_CAPTURE = r'([\d,]+\.\d{2})'

DEFAULT_ITEM_PATTERNS = (
    r'^[ \t]*(\d+)[ \t]*x[ \t]+(.+?)[ \t]+(?:R|ZAR|\$)?[ \t]*([\d,]+\.\d{2})[ \t]*$',
    r'^[ \t]*(.+?)[ \t]+(?:R|ZAR|\$)?[ \t]*([\d,]+\.\d{2})[ \t]*$',
)

NON_ITEM_RE = re.compile(
    r'\b(?:sub\s*total|total|vat|tax|discount|promotion|savings|delivery|service\s+fee|'
    r'amount|balance|tip|change|you\s+paid|card|cash|payment)\b',
    re.IGNORECASE,
)


def first_match(parsers: Sequence[Callable[[str], Optional[T]]], text: str) -> Optional[T]:
    """Runs parsers in order and returns the first non-None result."""
    for parser in parsers:
        value = parser(text)
        if value is not None:
            return value
    return None


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


# --- Date parsers ---

def parse_iso_date(text: str) -> Optional[date]:
    """YYYY-MM-DD."""
    for match in ISO_DATE_RE.finditer(text or ""):
        parsed = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if parsed:
            return parsed
    return None


def parse_named_month_date(text: str) -> Optional[date]:
    """D Mon YYYY, using the three-letter month table."""
    for match in NAMED_MONTH_DATE_RE.finditer(text or ""):
        month = MONTHS.get(match.group(2).lower()[:3])
        parsed = _safe_date(int(match.group(3)), month, int(match.group(1)))
        if parsed:
            return parsed
    return None


def parse_day_first_date(text: str) -> Optional[date]:
    """D/M/YYYY or D-M-YYYY (day first)."""
    for match in DAY_FIRST_DATE_RE.finditer(text or ""):
        parsed = _safe_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
        if parsed:
            return parsed
    return None


def parse_dotted_date(text: str) -> Optional[date]:
    """DD.MM.YYYY, as used in till-slip email subjects."""
    for match in DOTTED_DATE_RE.finditer(text or ""):
        parsed = _safe_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
        if parsed:
            return parsed
    return None


DATE_PARSERS = (parse_iso_date, parse_named_month_date, parse_day_first_date)
SUBJECT_DATE_PARSERS = DATE_PARSERS + (parse_dotted_date,)


# --- Amount parsers ---

def normalize_amount(raw: str) -> Optional[Decimal]:
    """Strips thousands separators and returns a two-place Decimal."""
    if not raw:
        return None
    try:
        return Decimal(raw.replace(',', '')).quantize(Decimal('0.01'))
    except InvalidOperation:
        return None


def _label_regex(label: str) -> str:
    words = [re.escape(word) for word in label.split()]
    # Lookbehind keeps "Total" from matching inside "Subtotal"
    return r'(?<![A-Za-z])' + r'\s+'.join(words) + r'[:\s]*'


def build_amount_patterns(label: str) -> List[re.Pattern]:
    """Currency-symbol variants for one label: optional R/$, ZAR, R, $."""
    prefix = _label_regex(label)
    return [
        re.compile(prefix + r'(?:R|\$)?\s*' + AMOUNT_CAPTURE, re.IGNORECASE),
        re.compile(prefix + r'ZAR\s*' + AMOUNT_CAPTURE, re.IGNORECASE),
        re.compile(prefix + r'R\s*' + AMOUNT_CAPTURE, re.IGNORECASE),
        re.compile(prefix + r'\$\s*' + AMOUNT_CAPTURE, re.IGNORECASE),
    ]


def find_currency_amount(text: str, label: str) -> Optional[str]:
    """Raw amount text of the first variant that matches after the label."""
    for pattern in build_amount_patterns(label):
        match = pattern.search(text or "")
        if match:
            return match.group(1)
    return None


def find_total(text: str, labels: Iterable[str]) -> Optional[Decimal]:
    """
    First match across labels in priority order.

    The first match decides: a zero or unparseable value rejects the total
    instead of falling through to later labels.
    """
    for label in labels:
        raw = find_currency_amount(text, label)
        if raw is None:
            continue
        amount = normalize_amount(raw)
        if amount is None or amount <= 0:
            return None
        return amount
    return None


# --- Pattern-chain parsers for short text fields ---

def first_group(patterns: Sequence[re.Pattern], text: str, min_len: int = 1, max_len: int = 100) -> Optional[str]:
    """First capture group of the first pattern that yields a usable value."""
    for pattern in patterns:
        match = pattern.search(text or "")
        if not match:
            continue
        value = re.sub(r'\s+', ' ', match.group(1)).strip()
        if min_len <= len(value) < max_len:
            return value
    return None


def extract_items(text: str, patterns: Sequence[re.Pattern], max_items: int = 20) -> List[ReceiptItem]:
    """
    Collects line items with the first pattern that yields any match.

    Lines that look like totals, VAT, discounts or payment rows are skipped.
    Collection stops once max_items is reached. An empty list is a valid result.
    """
    if max_items <= 0:
        return []

    for pattern in patterns:
        items = []
        for match in pattern.finditer(text or ""):
            groups = match.groups()
            if len(groups) == 3:
                _, name, price = groups
            else:
                name, price = groups

            name = re.sub(r'\s+', ' ', name).strip(' .-:\t')
            if len(name) <= 2 or len(name) >= 100 or NON_ITEM_RE.search(name):
                continue

            amount = normalize_amount(price)
            if amount is None:
                continue

            items.append(ReceiptItem(name=name, price=str(amount)))
            if len(items) >= max_items:
                break

        if items:
            return items

    return []
