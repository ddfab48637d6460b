import sys
import os
from datetime import datetime, timezone

import pytest

# Ensure the project root is in the python path for all tests
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from receipt_pipeline.models import Receipt, ReceiptItem
from receipt_pipeline.storage import InMemoryReceiptStore
from receipt_pipeline.utils.config import PipelineSettings

REFERENCE_DATE = "2024-04-15"


@pytest.fixture(autouse=True)
def fixed_reference_date(monkeypatch):
    """Pins "today" so date defaults and history windows are deterministic."""
    monkeypatch.setenv("RECEIPT_REFERENCE_DATE", REFERENCE_DATE)
    monkeypatch.delenv("RECEIPT_DUPLICATE_POLICY", raising=False)
    monkeypatch.delenv("RECEIPT_MAX_ITEMS", raising=False)
    return datetime(2024, 4, 15, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    return PipelineSettings()


@pytest.fixture
def store():
    return InMemoryReceiptStore()


@pytest.fixture
def make_receipt():
    """Factory for stored receipts with sensible defaults."""
    def _make(store_name="Pick n Pay", date="2024-04-01", total="100.00", user_id=1, **kwargs):
        return Receipt(user_id=user_id, store_name=store_name, date=date, total=total, **kwargs)
    return _make


@pytest.fixture
def grocery_receipts(make_receipt):
    """A small mixed history for search tests."""
    return [
        make_receipt(
            "Pick n Pay", "2024-01-05", "245.50", category="groceries", payment_method="card",
            items=[ReceiptItem(name="Fresh Milk 2L", price="32.99"), ReceiptItem(name="Brown Bread", price="18.99")],
        ),
        make_receipt(
            "Checkers", "2024-02-10", "89.90", category="groceries", payment_method="cash",
            items=[ReceiptItem(name="Bananas", price="24.99")], tags={"weekly-shop"},
        ),
        make_receipt(
            "Uber Eats", "2024-03-02", "180.00", category="dining_takeaways", payment_method="card",
            notes="Friday pizza", items=[ReceiptItem(name="Large Margherita", price="150.00")],
        ),
        make_receipt("Netflix", "2024-03-20", "199.00", category="subscriptions", is_tax_deductible=False),
        make_receipt(
            "Takealot", "2024-04-01", "1499.00", category="clothing_shopping",
            payment_method="card", is_tax_deductible=True,
        ),
    ]
