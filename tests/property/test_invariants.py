"""
Property-based tests using hypothesis for edge case discovery.
Tests pipeline invariants that should always hold true.
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from hypothesis import HealthCheck, given, settings, strategies as st

from receipt_pipeline.dedup import DuplicateDetector
from receipt_pipeline.models import Frequency, Receipt
from receipt_pipeline.parsers import DeterministicFieldExtractor, get_supported_vendors
from receipt_pipeline.recurring import RecurringPatternAnalyzer, detect_frequency
from receipt_pipeline.search import ReceiptSearchEngine
from receipt_pipeline.storage import InMemoryReceiptStore
from receipt_pipeline.utils.config import PipelineSettings
from receipt_pipeline.utils.normalization import string_similarity
from receipt_pipeline.vendors import VendorIdentifier

FIXTURE_HEALTH = [HealthCheck.function_scoped_fixture]


class TestExtractorProperties:
    """The extractor never emits a non-positive total."""

    @given(
        vendor=st.sampled_from(get_supported_vendors()),
        body=st.text(max_size=300),
    )
    @settings(max_examples=100, deadline=None, suppress_health_check=FIXTURE_HEALTH)
    def test_total_always_positive_or_none(self, vendor, body):
        extracted = DeterministicFieldExtractor(settings=PipelineSettings()).extract_fields(vendor, body)
        assert extracted is None or extracted.total_amount > 0

    @given(amount=st.decimals(min_value=Decimal("0.01"), max_value=Decimal("999999.99"), places=2))
    @settings(max_examples=100, deadline=None, suppress_health_check=FIXTURE_HEALTH)
    def test_formatted_totals_parse_back(self, amount):
        text = f"Total: R{amount:,.2f}"
        extracted = DeterministicFieldExtractor(settings=PipelineSettings()).extract_fields("Checkers", text)
        assert extracted.total_amount == amount

    @given(body=st.text(alphabet="abcdefghij ,.:\n", max_size=200))
    @settings(max_examples=50, deadline=None, suppress_health_check=FIXTURE_HEALTH)
    def test_date_always_present(self, body):
        extracted = DeterministicFieldExtractor(settings=PipelineSettings()).extract_fields(
            "Takealot", body + "\nTotal: R10.00"
        )
        assert extracted.date == date(2024, 4, 15)


class TestVendorProperties:

    @given(subject=st.text(max_size=80), sender=st.text(max_size=60), body=st.text(max_size=200))
    @settings(max_examples=100, deadline=None, suppress_health_check=FIXTURE_HEALTH)
    def test_identification_is_deterministic_and_bounded(self, subject, sender, body):
        identifier = VendorIdentifier(settings=PipelineSettings())
        first = identifier.identify_vendor(subject, sender, body)
        assert first == identifier.identify_vendor(subject, sender, body)
        assert 0.0 <= first.confidence <= 1.0
        assert (first.vendor is None) == (first.confidence == 0.0)


class TestSimilarityProperties:

    @given(s=st.text(max_size=40))
    @settings(suppress_health_check=FIXTURE_HEALTH)
    def test_similarity_is_reflexive(self, s):
        assert string_similarity(s, s) == 1.0

    @given(a=st.text(max_size=40), b=st.text(max_size=40))
    @settings(suppress_health_check=FIXTURE_HEALTH)
    def test_similarity_is_bounded(self, a, b):
        assert 0.0 <= string_similarity(a, b) <= 1.0


class TestDuplicateProperties:

    @given(
        name=st.sampled_from(["Pick n Pay", "PICK N PAY", "pick   n pay", "Pick N Pay "]),
        other=st.sampled_from(["Pick n Pay", "PICK N PAY", "pick   n pay", "Pick N Pay "]),
    )
    @settings(deadline=None, suppress_health_check=FIXTURE_HEALTH)
    def test_store_folding_is_symmetric(self, name, other):
        store = InMemoryReceiptStore([
            Receipt(user_id=1, store_name=name, date="2024-03-01", total="99.99")
        ])
        assert len(DuplicateDetector(store).find_duplicates(1, other, "2024-03-01", "99.99")) == 1


class TestRecurringProperties:

    @given(
        counts=st.lists(st.integers(min_value=0, max_value=12), min_size=2, max_size=2),
        frequency=st.sampled_from(list(Frequency)),
        variance=st.floats(min_value=0.0, max_value=3.0),
    )
    @settings(max_examples=100, deadline=None, suppress_health_check=FIXTURE_HEALTH)
    def test_confidence_is_monotonic_and_clamped(self, counts, frequency, variance):
        analyzer = RecurringPatternAnalyzer(InMemoryReceiptStore(), settings=PipelineSettings())
        receipt = Receipt(user_id=1, store_name="Netflix", date="2024-01-01", total="199", category="subscriptions")
        low, high = sorted(counts)
        low_score = analyzer.calculate_confidence(receipt, low, frequency, variance)
        high_score = analyzer.calculate_confidence(receipt, high, frequency, variance)
        assert 0.0 <= low_score <= high_score <= 1.0

    @given(gaps=st.lists(st.integers(min_value=0, max_value=400), min_size=1, max_size=8))
    @settings(suppress_health_check=FIXTURE_HEALTH)
    def test_frequency_matches_average_gap(self, gaps):
        start = datetime(2020, 1, 1, tzinfo=timezone.utc)
        dates = [start]
        for gap in gaps:
            dates.append(dates[-1] + timedelta(days=gap))

        average = sum(gaps) / len(gaps)
        expected = (
            Frequency.WEEKLY if average <= 10 else
            Frequency.MONTHLY if average <= 45 else
            Frequency.QUARTERLY if average <= 120 else
            Frequency.YEARLY
        )
        assert detect_frequency(dates) == expected


class TestSearchProperties:

    @given(totals=st.lists(st.integers(min_value=0, max_value=5000), max_size=15))
    @settings(max_examples=50, deadline=None, suppress_health_check=FIXTURE_HEALTH)
    def test_empty_query_returns_everything_and_facets_add_up(self, totals):
        store = InMemoryReceiptStore([
            Receipt(user_id=1, store_name=f"Store {i % 3}", date="2024-01-01", total=total)
            for i, total in enumerate(totals)
        ])
        result = ReceiptSearchEngine(store, settings=PipelineSettings()).search(1, limit=5)

        assert result.total_count == len(totals)
        assert len(result.receipts) == min(5, len(totals))
        assert sum(f.count for f in result.facets.price_ranges) == len(totals)
        assert sum(f.count for f in result.facets.stores) == len(totals)
