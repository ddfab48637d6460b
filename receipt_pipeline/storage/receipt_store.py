"""
Receipt storage collaborator contract.

The pipeline never owns persistence; it reads a user's receipts through this
interface and hands finished receipts back to it. InMemoryReceiptStore is a
reference implementation used by tests and the console launcher.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Union

from receipt_pipeline.models import Receipt, coerce_datetime
from receipt_pipeline.utils.logging_config import logger

UserId = Union[int, str]


class ReceiptStore(Protocol):
    """What the pipeline needs from the surrounding application's storage."""

    def get_receipts_for_user(
        self, user_id: UserId, limit: Optional[int] = None, since: Optional[datetime] = None
    ) -> List[Receipt]:
        """All receipts for the user, most recent first, optionally bounded."""
        ...

    def get_receipt(self, receipt_id: str) -> Optional[Receipt]:
        ...

    def save_receipt(self, receipt: Receipt) -> Receipt:
        ...

    def update_receipt(self, receipt_id: str, **updates: Any) -> Optional[Receipt]:
        ...


class InMemoryReceiptStore:
    """Dictionary-backed store keyed by receipt_id."""

    def __init__(self, receipts: Optional[List[Receipt]] = None):
        self._receipts: Dict[str, Receipt] = {}
        for receipt in receipts or []:
            self.save_receipt(receipt)

    def get_receipts_for_user(
        self, user_id: UserId, limit: Optional[int] = None, since: Optional[datetime] = None
    ) -> List[Receipt]:
        since_dt = coerce_datetime(since) if since is not None else None
        receipts = [
            r for r in self._receipts.values()
            if r.user_id == user_id and (since_dt is None or r.date >= since_dt)
        ]
        receipts.sort(key=lambda r: r.date, reverse=True)
        return receipts[:limit] if limit is not None else receipts

    def get_receipt(self, receipt_id: str) -> Optional[Receipt]:
        return self._receipts.get(receipt_id)

    def save_receipt(self, receipt: Receipt) -> Receipt:
        self._receipts[receipt.receipt_id] = receipt
        logger.debug(f"Stored receipt {receipt.receipt_id} for user {receipt.user_id}")
        return receipt

    def update_receipt(self, receipt_id: str, **updates: Any) -> Optional[Receipt]:
        existing = self._receipts.get(receipt_id)
        if existing is None:
            return None
        if "receipt_id" in updates:
            raise ValueError("receipt_id is immutable")
        updated = existing.model_copy(update=updates)
        # model_copy skips validation; round-trip to re-check the new values
        updated = Receipt.model_validate(updated.model_dump())
        self._receipts[receipt_id] = updated
        return updated

    def __len__(self) -> int:
        return len(self._receipts)
