"""
Recurring Expense Analyzer - cadence and confidence inference over receipt history.

Two entry points share one core algorithm:
- analyze_recurring_pattern: one new receipt against the last 12 months
- discover_recurring_patterns: batch discovery over a user's whole history

Neither entry point raises. Any failure is logged and degrades to
"no pattern found".
"""

import math
import statistics
from collections import defaultdict
from datetime import datetime
from typing import AbstractSet, Dict, List, Optional, Sequence, Union

from dateutil.relativedelta import relativedelta

from receipt_pipeline.models import (
    Frequency,
    Receipt,
    RecurringExpenseMatch,
    RecurringPattern,
    UpcomingRecurringExpense,
)
from receipt_pipeline.recurring.curated import KNOWN_RECURRING_MERCHANTS, RECURRING_CATEGORIES
from receipt_pipeline.storage import ReceiptStore
from receipt_pipeline.utils.config import PipelineSettings, get_reference_date, get_settings
from receipt_pipeline.utils.logging_config import logger
from receipt_pipeline.utils.normalization import normalize_store_name, string_similarity

SECONDS_PER_DAY = 86400

FREQUENCY_STEPS = {
    Frequency.WEEKLY: relativedelta(days=7),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.QUARTERLY: relativedelta(months=3),
    Frequency.YEARLY: relativedelta(years=1),
}


def detect_frequency(dates: Sequence[datetime]) -> Frequency:
    """
    Buckets the average gap between consecutive dates.

    <=10 days weekly, <=45 monthly, <=120 quarterly, otherwise yearly.
    Fewer than two dates defaults to monthly.
    """
    if len(dates) < 2:
        return Frequency.MONTHLY

    ordered = sorted(dates)
    intervals = [
        abs((later - earlier).total_seconds()) / SECONDS_PER_DAY
        for earlier, later in zip(ordered, ordered[1:])
    ]
    average_interval = statistics.fmean(intervals)

    if average_interval <= 10:
        return Frequency.WEEKLY
    if average_interval <= 45:
        return Frequency.MONTHLY
    if average_interval <= 120:
        return Frequency.QUARTERLY
    return Frequency.YEARLY


def calculate_next_expected_date(last_date: datetime, frequency: Union[Frequency, str]) -> datetime:
    """Advances the last occurrence by one unit of the cadence."""
    return last_date + FREQUENCY_STEPS[Frequency(frequency)]


def coefficient_of_variation(amounts: Sequence[float]) -> float:
    """Population standard deviation divided by the mean (0 for a zero mean)."""
    mean = statistics.fmean(amounts)
    if mean == 0:
        return 0.0
    return statistics.pstdev(amounts) / mean


class RecurringPatternAnalyzer:
    """
    Infers whether an expense repeats, and at what cadence.

    The scoring weights are tunable policy, not derived constants:
    - +0.15 per similar receipt, capped at 0.4
    - +0.3 for a known recurring merchant
    - +0.2 for a recurring category
    - +0.2 if amount variance < 0.1, else +0.1 if < 0.2
    - +0.1 for a monthly cadence backed by at least 3 similar receipts
    """

    STORE_SIMILARITY_THRESHOLD = 0.8
    AMOUNT_TOLERANCE = 0.2
    MIN_SIMILAR_RECEIPTS = 2
    MIN_GROUP_SIZE = 3
    RECURRING_THRESHOLD = 0.7
    DISCOVERY_THRESHOLD = 0.6
    MAX_SIMILAR_RETURNED = 5

    def __init__(
        self,
        store: ReceiptStore,
        known_merchants: AbstractSet[str] = KNOWN_RECURRING_MERCHANTS,
        recurring_categories: AbstractSet[str] = RECURRING_CATEGORIES,
        settings: Optional[PipelineSettings] = None,
    ):
        self.store = store
        self.known_merchants = frozenset(known_merchants)
        self.recurring_categories = frozenset(recurring_categories)
        self.settings = settings or get_settings()

    # --- Public entry points ---

    def analyze_recurring_pattern(self, user_id, receipt: Receipt) -> RecurringExpenseMatch:
        """
        Checks one receipt against the user's recent history.

        Needs at least two similar receipts (three data points with the new
        one) before a pattern is computed.
        """
        try:
            since = get_reference_date() - relativedelta(months=self.settings.history_months)
            history = [
                r for r in self._load_history(user_id, since=since)
                if r.receipt_id != receipt.receipt_id
            ]

            similar_receipts = self.find_similar_receipts(receipt, history)
            if len(similar_receipts) < self.MIN_SIMILAR_RECEIPTS:
                return RecurringExpenseMatch()

            pattern = self.analyze_pattern(receipt, similar_receipts)
            logger.info(
                f"[RECURRING_ANALYSIS] store=\"{receipt.store_name}\" similar={len(similar_receipts)} "
                f"frequency={pattern.frequency.value} confidence={pattern.confidence:.2f}"
            )

            return RecurringExpenseMatch(
                is_recurring=pattern.confidence > self.RECURRING_THRESHOLD,
                pattern=pattern,
                confidence=pattern.confidence,
                suggested_frequency=pattern.frequency,
                similar_receipts=similar_receipts[:self.MAX_SIMILAR_RETURNED],
            )
        except Exception as e:
            logger.error(f"Error analyzing recurring pattern: {e}")
            return RecurringExpenseMatch()

    def discover_recurring_patterns(self, user_id) -> List[RecurringPattern]:
        """
        Batch discovery over every receipt the user has.

        Groups by normalized store name, analyses groups with at least three
        receipts and keeps patterns scoring above 0.6, best first.
        """
        try:
            receipts = sorted(self._load_history(user_id), key=lambda r: r.date, reverse=True)

            store_groups: Dict[str, List[Receipt]] = defaultdict(list)
            for receipt in receipts:
                store_groups[normalize_store_name(receipt.store_name)].append(receipt)

            patterns = []
            for group in store_groups.values():
                if len(group) < self.MIN_GROUP_SIZE:
                    continue
                pattern = self.analyze_pattern(group[0], group[1:])
                if pattern.confidence > self.DISCOVERY_THRESHOLD:
                    patterns.append(pattern)

            patterns.sort(key=lambda p: p.confidence, reverse=True)
            logger.info(f"[RECURRING_DISCOVERY] user={user_id} groups={len(store_groups)} patterns={len(patterns)}")
            return patterns
        except Exception as e:
            logger.error(f"Error getting user recurring patterns: {e}")
            return []

    def mark_as_recurring(self, receipt_id: str, frequency: Union[Frequency, str]) -> bool:
        """Flags a stored receipt as recurring. Returns False if it could not be updated."""
        try:
            updated = self.store.update_receipt(receipt_id, is_recurring=True, frequency=Frequency(frequency))
            return updated is not None
        except Exception as e:
            logger.error(f"Error marking receipt {receipt_id} as recurring: {e}")
            return False

    def get_upcoming_recurring_expenses(self, user_id) -> List[UpcomingRecurringExpense]:
        """Discovered patterns with days until their next expected charge, soonest first."""
        try:
            now = get_reference_date()
            upcoming = []
            for pattern in self.discover_recurring_patterns(user_id):
                if not pattern.next_expected_date:
                    continue
                days_until_due = math.ceil((pattern.next_expected_date - now).total_seconds() / SECONDS_PER_DAY)
                upcoming.append(UpcomingRecurringExpense(
                    pattern=pattern,
                    days_until_due=days_until_due,
                    is_overdue=days_until_due < 0,
                ))
            upcoming.sort(key=lambda u: u.days_until_due)
            return upcoming
        except Exception as e:
            logger.error(f"Error getting upcoming recurring expenses: {e}")
            return []

    # --- Core algorithm ---

    def find_similar_receipts(self, receipt: Receipt, history: Sequence[Receipt]) -> List[Receipt]:
        """Receipts with a similar store name and an amount within 20%, most recent first."""
        current_store = normalize_store_name(receipt.store_name)
        current_amount = float(receipt.total)

        similar = []
        for candidate in history:
            store_match = string_similarity(
                current_store, normalize_store_name(candidate.store_name)
            ) >= self.STORE_SIMILARITY_THRESHOLD
            if store_match and self._amount_matches(current_amount, float(candidate.total)):
                similar.append(candidate)

        similar.sort(key=lambda r: r.date, reverse=True)
        return similar

    def analyze_pattern(self, current: Receipt, similar_receipts: Sequence[Receipt]) -> RecurringPattern:
        all_receipts = [current, *similar_receipts]
        amounts = [float(r.total) for r in all_receipts]
        dates = [r.date for r in all_receipts]

        variance = coefficient_of_variation(amounts)
        frequency = detect_frequency(dates)
        confidence = self.calculate_confidence(current, len(similar_receipts), frequency, variance)
        last_seen = max(dates)

        return RecurringPattern(
            store_name=current.store_name,
            category=current.category,
            frequency=frequency,
            average_amount=statistics.fmean(amounts),
            confidence=confidence,
            occurrences=len(all_receipts),
            variance_ratio=variance,
            last_seen=last_seen,
            next_expected_date=calculate_next_expected_date(last_seen, frequency),
        )

    def calculate_confidence(
        self, receipt: Receipt, similar_count: int, frequency: Frequency, variance: float
    ) -> float:
        """Additive heuristic score, clamped to [0, 1]."""
        confidence = min(similar_count * 0.15, 0.4)

        if normalize_store_name(receipt.store_name) in self.known_merchants:
            confidence += 0.3

        if receipt.category in self.recurring_categories:
            confidence += 0.2

        if variance < 0.1:
            confidence += 0.2
        elif variance < 0.2:
            confidence += 0.1

        if frequency == Frequency.MONTHLY and similar_count >= 3:
            confidence += 0.1

        return max(0.0, min(confidence, 1.0))

    # --- Helpers ---

    def _amount_matches(self, current: float, other: float) -> bool:
        if current == 0:
            return other == 0
        return abs(other - current) / current < self.AMOUNT_TOLERANCE

    def _load_history(self, user_id, since: Optional[datetime] = None) -> List[Receipt]:
        """Fetch failures count as an empty history."""
        try:
            return self.store.get_receipts_for_user(user_id, since=since)
        except Exception as e:
            logger.error(f"Failed to load receipt history for user {user_id}: {e}")
            return []
