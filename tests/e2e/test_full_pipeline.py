"""
End-to-end tests for the ingestion pipeline.
Tests the complete flow: identify -> extract -> dedup -> recurrence -> store -> search.
"""
from datetime import date
from unittest.mock import MagicMock

import pytest

from receipt_pipeline import ExtractedReceipt, ReceiptPipeline
from receipt_pipeline.models import Frequency
from receipt_pipeline.utils.config import PipelineSettings


UBER_SUBJECT = "Your Uber Eats order from Nando's Rosebank"
UBER_SENDER = "Uber Receipts <noreply@uber.com>"
UBER_BODY = """
Thanks for ordering, Thabo
Order #A1B2C3D4
12 Mar 2024

2 x Quarter Chicken R 139.80
1 x Peri Chips R 39.90

Subtotal R179.70
Delivery Fee R 15.00
Total: R194.70
"""

TAKEALOT_HTML = """
<html><head><title>Takealot</title><style>td { padding: 2px; }</style></head>
<body>
  <table>
    <tr><td>Order number:</td><td>123456789</td></tr>
    <tr><td>Order Date</td><td>2024-04-02</td></tr>
    <tr><td>Order Total:</td><td>R 1,299.00</td></tr>
  </table>
</body></html>
"""


class TestReceiptPipeline:
    """End-to-end ingestion against the in-memory store."""

    @pytest.fixture
    def pipeline(self, store, settings):
        return ReceiptPipeline(store, settings=settings, use_oracle=False)

    def test_known_vendor_email_is_extracted_and_stored(self, pipeline, store):
        result = pipeline.ingest_email(1, UBER_SUBJECT, UBER_SENDER, body_text=UBER_BODY)

        assert result.status == "created"
        assert result.vendor == "Uber Eats"
        assert result.extraction_method == "deterministic"
        assert result.duplicates == []
        assert result.validation.score == 100

        receipt = result.receipt
        assert receipt.store_name == "Nando's Rosebank"
        assert str(receipt.total) == "194.70"
        assert receipt.date.date() == date(2024, 3, 12)
        assert receipt.category == "dining_takeaways"
        assert receipt.confidence_score == 0.9
        assert receipt.order_id == "A1B2C3D4"
        assert receipt.source == "email"
        assert store.get_receipt(receipt.receipt_id) == receipt

    def test_html_only_email(self, pipeline):
        result = pipeline.ingest_email(
            1, "Takealot order confirmation", "Takealot <orders@takealot.com>", body_html=TAKEALOT_HTML
        )

        assert result.status == "created"
        assert result.vendor == "Takealot"
        assert str(result.receipt.total) == "1299.00"
        assert result.receipt.order_id == "123456789"
        assert result.receipt.date.date() == date(2024, 4, 2)

    def test_repeat_email_is_flagged_as_duplicate(self, pipeline, store):
        first = pipeline.ingest_email(1, UBER_SUBJECT, UBER_SENDER, body_text=UBER_BODY)
        second = pipeline.ingest_email(1, UBER_SUBJECT, UBER_SENDER, body_text=UBER_BODY)

        assert second.status == "created"
        assert second.receipt.is_potential_duplicate is True
        assert [r.receipt_id for r in second.duplicates] == [first.receipt.receipt_id]
        assert len(store) == 2

    def test_reject_policy_drops_duplicates(self, store):
        pipeline = ReceiptPipeline(store, settings=PipelineSettings(duplicate_policy="reject"), use_oracle=False)
        pipeline.ingest_email(1, UBER_SUBJECT, UBER_SENDER, body_text=UBER_BODY)
        second = pipeline.ingest_email(1, UBER_SUBJECT, UBER_SENDER, body_text=UBER_BODY)

        assert second.status == "duplicate"
        assert len(second.duplicates) == 1
        assert len(store) == 1

    def test_unknown_vendor_falls_back_to_oracle(self, store, settings):
        oracle = MagicMock()
        oracle.extract_fields.return_value = ExtractedReceipt(
            store_name="Woolworths Food", total="356.20", date=date(2024, 4, 3), confidence=0.75
        )
        pipeline = ReceiptPipeline(store, settings=settings, oracle=oracle)

        result = pipeline.ingest_email(1, "Your till slip", "slips@woolworths.co.za", body_text="Total R356.20")

        assert result.status == "created"
        assert result.vendor is None
        assert result.extraction_method == "llm"
        assert result.receipt.confidence_score == 0.75
        oracle.extract_fields.assert_called_once_with("Total R356.20", "Your till slip")

    def test_rule_miss_falls_back_to_oracle(self, store, settings):
        oracle = MagicMock()
        oracle.extract_fields.return_value = None
        pipeline = ReceiptPipeline(store, settings=settings, oracle=oracle)

        result = pipeline.ingest_email(1, "Takealot order", "orders@takealot.com", body_text="No amounts here")

        assert result.status == "failed"
        assert result.vendor == "Takealot"
        oracle.extract_fields.assert_called_once()
        assert len(store) == 0

    def test_unrecognised_email_without_oracle_fails(self, pipeline):
        result = pipeline.ingest_email(1, "Hello", "friend@example.com", body_text="Lunch was R80.00")
        assert result.status == "failed"
        assert result.error

    def test_storage_error_is_reported_not_raised(self, pipeline, store):
        store.save_receipt = MagicMock(side_effect=IOError("disk full"))
        result = pipeline.ingest_email(1, UBER_SUBJECT, UBER_SENDER, body_text=UBER_BODY)
        assert result.status == "failed"
        assert "disk full" in result.error

    def test_monthly_subscription_is_marked_recurring(self, pipeline, store):
        results = [
            pipeline.ingest_extracted(1, ExtractedReceipt(
                store_name="Netflix", total="199.00", date=date(2024, month, 1),
                confidence=1.0, category="subscriptions",
            ))
            for month in (1, 2, 3)
        ]

        assert [r.status for r in results] == ["created"] * 3
        assert results[0].receipt.is_recurring is False
        latest = results[-1]
        assert latest.recurring.is_recurring is True
        assert latest.receipt.is_recurring is True
        assert latest.receipt.frequency == Frequency.MONTHLY
        assert latest.receipt.source == "manual"

        patterns = pipeline.recurring_analyzer.discover_recurring_patterns(1)
        assert [p.store_name for p in patterns] == ["Netflix"]

    def test_ingested_receipts_are_searchable(self, pipeline):
        pipeline.ingest_email(1, UBER_SUBJECT, UBER_SENDER, body_text=UBER_BODY)
        pipeline.ingest_email(
            1, "Takealot order confirmation", "orders@takealot.com", body_html=TAKEALOT_HTML
        )

        result = pipeline.search_engine.search(1, query="chips")
        assert [r.store_name for r in result.receipts] == ["Nando's Rosebank"]
        assert pipeline.search_engine.search(1).total_count == 2
