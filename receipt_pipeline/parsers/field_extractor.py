"""
Deterministic field extraction for receipts from known vendors.

This module provides the DeterministicFieldExtractor, which turns raw receipt
or order-confirmation text into an ExtractedReceipt using the vendor's rule
set, without calling a paid OCR or LLM service.
"""

from typing import Dict, Optional

from receipt_pipeline.models import ExtractedReceipt, VendorExtractionRule
from receipt_pipeline.parsers.extraction_rules import VENDOR_EXTRACTION_RULES
from receipt_pipeline.parsers.field_parsers import (
    DATE_PARSERS,
    SUBJECT_DATE_PARSERS,
    extract_items,
    find_total,
    first_group,
    first_match,
)
from receipt_pipeline.utils.config import PipelineSettings, get_reference_date, get_settings
from receipt_pipeline.utils.logging_config import logger


class DeterministicFieldExtractor:
    """
    Generic rule-driven extractor.

    Design:
    - Precision over recall for the total: no positive total means no record.
    - Soft defaults for everything else: date falls back to today, store name
      to the vendor display name, order id to None, items to an empty list.
    - Fixed per-vendor confidence reflecting how proven the rule set is.
    """

    def __init__(
        self,
        rules: Optional[Dict[str, VendorExtractionRule]] = None,
        settings: Optional[PipelineSettings] = None,
    ):
        self.rules = rules if rules is not None else VENDOR_EXTRACTION_RULES
        self.settings = settings or get_settings()

    def extract_fields(self, vendor: str, text: str, subject: str = "") -> Optional[ExtractedReceipt]:
        """
        Main entry point.

        Returns None when the vendor has no rule set or a required field
        (always including the total) could not be found. The caller is
        expected to fall back to the external oracle in that case.
        """
        rule = self.rules.get(vendor)
        if rule is None:
            logger.warning(f"[DETERMINISTIC_EXTRACTION_FAILED] No extractor for vendor=\"{vendor}\"")
            return None

        text = text or ""
        subject = subject or ""
        fields_matched = []

        # 1. Total (hard requirement)
        total = find_total(text, rule.total_labels)
        if total is None:
            logger.warning(
                f"[DETERMINISTIC_EXTRACTION_FAILED] {rule.vendor}: could not find total. "
                f"Labels tried: [{', '.join(rule.total_labels)}]"
            )
            return None
        fields_matched.append("total")

        # 2. Date: body first, then subject, then today
        receipt_date = first_match(DATE_PARSERS, text)
        if receipt_date is None and subject:
            receipt_date = first_match(SUBJECT_DATE_PARSERS, subject)
        if receipt_date is not None:
            fields_matched.append("date")
        else:
            receipt_date = get_reference_date().date()

        # 3. Store name
        store_name = self._extract_store_name(rule, text, subject)
        if store_name:
            fields_matched.append("store_name")
        else:
            store_name = rule.display_name

        # 4. Order id
        order_id = first_group(rule.order_id_patterns, text, max_len=50)
        if order_id:
            fields_matched.append("order_id")

        # 5. Items (best effort)
        items = extract_items(text, rule.item_patterns, self.settings.max_items)
        if items:
            fields_matched.append("items")

        missing = [f for f in rule.required_fields if f not in fields_matched]
        if missing:
            logger.warning(f"[DETERMINISTIC_EXTRACTION_FAILED] {rule.vendor}: missing required fields {missing}")
            return None

        logger.info(
            f"[DETERMINISTIC_EXTRACTION_SUCCESS] {rule.vendor}: store=\"{store_name}\" total={total} "
            f"date={receipt_date} items={len(items)} fields=[{','.join(fields_matched)}]"
        )

        return ExtractedReceipt(
            store_name=store_name,
            total=total,
            date=receipt_date,
            currency=rule.currency,
            items=items,
            order_id=order_id,
            confidence=rule.confidence,
            vendor=rule.vendor,
            category=rule.default_category,
            fields_matched=fields_matched,
        )

    def _extract_store_name(self, rule: VendorExtractionRule, text: str, subject: str) -> Optional[str]:
        """Subject patterns take priority over body patterns."""
        name = None
        if subject:
            name = first_group(rule.subject_store_patterns, subject, min_len=3)
        if not name:
            name = first_group(rule.store_name_patterns, text, min_len=3)
        if not name:
            return None
        prefix = rule.store_name_prefix
        if not prefix or name.lower().startswith(prefix.strip().lower()):
            return name
        return f"{prefix}{name}"


def extract_fields(vendor: str, text: str, subject: str = "") -> Optional[ExtractedReceipt]:
    """Convenience function using the built-in rule table."""
    return DeterministicFieldExtractor().extract_fields(vendor, text, subject)
