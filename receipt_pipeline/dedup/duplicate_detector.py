"""
Duplicate receipt detection.

A candidate duplicates an existing receipt only when all three signals agree:
same calendar day, same store name after case/whitespace folding, and totals
within one cent. There is no partial match; the caller decides whether to
block, merge or flag what is reported here.
"""

from decimal import Decimal
from typing import List, Union

from receipt_pipeline.models import Receipt, coerce_datetime, parse_amount
from receipt_pipeline.storage import ReceiptStore
from receipt_pipeline.utils.logging_config import logger
from receipt_pipeline.utils.normalization import normalize_dedup_key

AMOUNT_TOLERANCE = Decimal("0.01")


class DuplicateDetector:
    """Reports existing receipts that represent the same purchase as a candidate."""

    def __init__(self, store: ReceiptStore):
        self.store = store

    def find_duplicates(self, user_id, store_name: str, date, total: Union[Decimal, float, str]) -> List[Receipt]:
        """
        Returns matching receipts in store order (possibly empty).

        Storage failures are logged and reported as "no duplicates".
        """
        try:
            target_store = normalize_dedup_key(store_name)
            target_day = coerce_datetime(date).date()
            target_total = self._safe_amount(total)

            duplicates = [
                r for r in self.store.get_receipts_for_user(user_id)
                if self.is_duplicate(r, target_store, target_day, target_total)
            ]

            logger.info(
                f"[DUPLICATE_CHECK] Found {len(duplicates)} potential duplicate receipts for "
                f"store: {store_name}, date: {target_day}, total: {total}"
            )
            return duplicates
        except Exception as e:
            logger.error(f"[DUPLICATE_CHECK] Error in find_duplicates: {e}")
            return []

    @staticmethod
    def is_duplicate(receipt: Receipt, store_key: str, day, total: Decimal) -> bool:
        store_match = normalize_dedup_key(receipt.store_name) == store_key
        date_match = receipt.date.date() == day
        total_match = abs(receipt.total - total) < AMOUNT_TOLERANCE
        return store_match and date_match and total_match

    @staticmethod
    def _safe_amount(value) -> Decimal:
        try:
            return parse_amount(value)
        except ValueError:
            return Decimal("0")
