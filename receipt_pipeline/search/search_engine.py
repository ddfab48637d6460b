"""
Receipt Search Engine - filtered, free-text and similarity-based retrieval.

Operates on a user's receipts loaded through the storage collaborator:
1. Hard filters (AND of every provided constraint)
2. Token match (OR of whitespace tokens, case-folded)
3. Facets over the filtered, unpaginated set
4. Pagination
"""

import statistics
from collections import Counter, defaultdict
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from receipt_pipeline.models import (
    FacetCount,
    Receipt,
    SearchFacets,
    SearchFilters,
    SearchResult,
    SpendingInsights,
    StoreSpend,
)
from receipt_pipeline.storage import ReceiptStore
from receipt_pipeline.utils.config import PipelineSettings, get_settings
from receipt_pipeline.utils.logging_config import logger
from receipt_pipeline.utils.normalization import normalize_dedup_key

# Upper bounds are exclusive; anything at or above the last bound lands in "Over".
PRICE_BUCKET_BOUNDS = (50, 100, 250, 500, 1000)


class ReceiptSearchEngine:
    """
    Search, facets and related-receipt ranking for one user's receipts.

    The similarity score is a ranking key only:
    - +0.4 same store
    - +0.3 same category
    - +0.2 amounts within 20% of the larger
    - up to +0.1 for shared item names
    """

    SUGGESTION_LIMIT = 10
    TOP_STORES_LIMIT = 5
    TREND_BAND = 0.1
    MIN_TREND_RECEIPTS = 4
    AMOUNT_TOLERANCE = 0.2

    def __init__(self, store: ReceiptStore, settings: Optional[PipelineSettings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def search(
        self,
        user_id,
        query: str = "",
        filters: Optional[SearchFilters] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> SearchResult:
        """
        Main search entry point.

        An empty query returns the full filtered set. Storage failures return
        an empty result rather than raising.
        """
        try:
            receipts = self.store.get_receipts_for_user(user_id, limit=self.settings.search_fetch_limit)
            filtered = self.apply_filters(receipts, filters or SearchFilters())

            if query and query.strip():
                filtered = self.text_search(filtered, query)
                logger.info(f"[SEARCH] query=\"{query}\" matched={len(filtered)} of {len(receipts)}")

            facets = self.generate_facets(filtered)
            start = max(offset, 0)
            page = filtered[start:start + max(limit, 0)]

            return SearchResult(receipts=page, total_count=len(filtered), facets=facets)
        except Exception as e:
            logger.error(f"Search failed for user {user_id}: {e}")
            return SearchResult()

    # --- Filtering ---

    def apply_filters(self, receipts: Sequence[Receipt], filters: SearchFilters) -> List[Receipt]:
        return [r for r in receipts if self._passes_filters(r, filters)]

    @staticmethod
    def _passes_filters(receipt: Receipt, filters: SearchFilters) -> bool:
        if filters.start_date is not None and receipt.date < filters.start_date:
            return False
        if filters.end_date is not None and receipt.date > filters.end_date:
            return False
        if filters.min_amount is not None and receipt.total < filters.min_amount:
            return False
        if filters.max_amount is not None and receipt.total > filters.max_amount:
            return False
        if filters.categories is not None and receipt.category not in filters.categories:
            return False
        if filters.stores is not None and receipt.store_name not in filters.stores:
            return False
        if (
            filters.payment_methods is not None
            and receipt.payment_method
            and receipt.payment_method not in filters.payment_methods
        ):
            return False
        if filters.tags is not None and not receipt.tags.intersection(filters.tags):
            return False
        if filters.is_tax_deductible is not None and receipt.is_tax_deductible != filters.is_tax_deductible:
            return False
        return True

    # --- Text search ---

    @staticmethod
    def searchable_text(receipt: Receipt) -> str:
        parts = [
            receipt.store_name,
            receipt.category,
            receipt.notes or "",
            receipt.subcategory or "",
            receipt.payment_method or "",
            *receipt.item_names,
        ]
        return " ".join(parts).lower()

    def text_search(self, receipts: Sequence[Receipt], query: str) -> List[Receipt]:
        """Keeps receipts containing any query token."""
        tokens = query.lower().split()
        if not tokens:
            return list(receipts)
        return [
            r for r in receipts
            if any(token in self.searchable_text(r) for token in tokens)
        ]

    # --- Facets ---

    def price_range_label(self, amount: Decimal) -> str:
        symbol = self.settings.currency_symbol
        bounds = PRICE_BUCKET_BOUNDS
        if amount < bounds[0]:
            return f"Under {symbol}{bounds[0]}"
        for lower, upper in zip(bounds, bounds[1:]):
            if amount < upper:
                return f"{symbol}{lower} - {symbol}{upper}"
        return f"Over {symbol}{bounds[-1]}"

    def price_range_labels(self) -> List[str]:
        """All bucket labels in ascending order."""
        symbol = self.settings.currency_symbol
        bounds = PRICE_BUCKET_BOUNDS
        labels = [f"Under {symbol}{bounds[0]}"]
        labels.extend(f"{symbol}{lower} - {symbol}{upper}" for lower, upper in zip(bounds, bounds[1:]))
        labels.append(f"Over {symbol}{bounds[-1]}")
        return labels

    def generate_facets(self, receipts: Sequence[Receipt]) -> SearchFacets:
        """
        Count-by-field breakdowns.

        Category, store and payment method facets are sorted by count
        (ties keep first-seen order). Price ranges keep bucket order and
        omit empty buckets.
        """
        categories = Counter(r.category for r in receipts)
        stores = Counter(r.store_name for r in receipts)
        payment_methods = Counter(r.payment_method for r in receipts if r.payment_method)
        price_ranges = Counter(self.price_range_label(r.total) for r in receipts)

        return SearchFacets(
            categories=_sorted_counts(categories),
            stores=_sorted_counts(stores),
            payment_methods=_sorted_counts(payment_methods),
            price_ranges=[
                FacetCount(name=label, count=price_ranges[label])
                for label in self.price_range_labels()
                if price_ranges[label]
            ],
        )

    # --- Similarity ---

    def calculate_similarity(self, first: Receipt, second: Receipt) -> float:
        score = 0.0

        if normalize_dedup_key(first.store_name) == normalize_dedup_key(second.store_name):
            score += 0.4

        if first.category == second.category:
            score += 0.3

        larger = max(first.total, second.total)
        if larger > 0 and abs(first.total - second.total) / larger < Decimal(str(self.AMOUNT_TOLERANCE)):
            score += 0.2

        first_items = [name.lower() for name in first.item_names]
        second_items = {name.lower() for name in second.item_names}
        longest = max(len(first_items), len(second_items))
        if longest:
            common = sum(1 for name in first_items if name in second_items)
            score += (common / longest) * 0.1

        return score

    def find_similar_receipts(self, user_id, receipt_id: str, limit: int = 5) -> List[Receipt]:
        """Other receipts of the user ranked by similarity to the given one."""
        try:
            target = self.store.get_receipt(receipt_id)
            if target is None:
                return []

            candidates = [
                r for r in self.store.get_receipts_for_user(user_id, limit=self.settings.search_fetch_limit)
                if r.receipt_id != receipt_id
            ]
            scored = [(self.calculate_similarity(target, r), r) for r in candidates]
            scored.sort(key=lambda pair: pair[0], reverse=True)
            return [r for _, r in scored[:limit]]
        except Exception as e:
            logger.error(f"Failed to find similar receipts for {receipt_id}: {e}")
            return []

    # --- Suggestions & insights ---

    def get_search_suggestions(self, user_id, partial_query: str) -> List[str]:
        """Store, item and category names containing the query or any of its words."""
        try:
            query = (partial_query or "").lower().strip()
            if not query:
                return []
            terms = query.split()

            def matches(value: str) -> bool:
                lowered = value.lower()
                return query in lowered or any(term in lowered for term in terms)

            suggestions: Dict[str, None] = {}
            for receipt in self.store.get_receipts_for_user(user_id, limit=self.settings.search_fetch_limit):
                candidates = [receipt.store_name, *receipt.item_names, receipt.category]
                for candidate in candidates:
                    if matches(candidate):
                        suggestions.setdefault(candidate, None)
                if len(suggestions) >= self.SUGGESTION_LIMIT:
                    break

            return list(suggestions)[:self.SUGGESTION_LIMIT]
        except Exception as e:
            logger.error(f"Failed to get search suggestions: {e}")
            return []

    def get_spending_insights(self, user_id, category: Optional[str] = None) -> SpendingInsights:
        try:
            receipts = self.store.get_receipts_for_user(user_id, limit=self.settings.search_fetch_limit)
            if category:
                receipts = [r for r in receipts if r.category == category]
            if not receipts:
                return SpendingInsights()

            amounts = [float(r.total) for r in receipts]
            top_stores = self._top_stores(receipts)

            return SpendingInsights(
                average_spending=statistics.fmean(amounts),
                top_stores=top_stores,
                spending_trend=self.analyze_spending_trend(receipts),
                recommendations=self._recommendations(receipts, top_stores),
            )
        except Exception as e:
            logger.error(f"Failed to get spending insights: {e}")
            return SpendingInsights()

    def analyze_spending_trend(self, receipts: Sequence[Receipt]) -> str:
        """Compares the average of the older half with the newer half."""
        if len(receipts) < self.MIN_TREND_RECEIPTS:
            return "stable"

        ordered = sorted(receipts, key=lambda r: r.date)
        midpoint = len(ordered) // 2
        first_avg = statistics.fmean(float(r.total) for r in ordered[:midpoint])
        second_avg = statistics.fmean(float(r.total) for r in ordered[midpoint:])
        if first_avg == 0:
            return "increasing" if second_avg > 0 else "stable"

        change = (second_avg - first_avg) / first_avg
        if change > self.TREND_BAND:
            return "increasing"
        if change < -self.TREND_BAND:
            return "decreasing"
        return "stable"

    def _top_stores(self, receipts: Sequence[Receipt]) -> List[StoreSpend]:
        totals: Dict[str, float] = defaultdict(float)
        counts: Dict[str, int] = defaultdict(int)
        for receipt in receipts:
            totals[receipt.store_name] += float(receipt.total)
            counts[receipt.store_name] += 1

        ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:self.TOP_STORES_LIMIT]
        return [StoreSpend(name=name, amount=amount, frequency=counts[name]) for name, amount in ranked]

    def _recommendations(self, receipts: Sequence[Receipt], top_stores: List[StoreSpend]) -> List[str]:
        recommendations = []
        if top_stores:
            recommendations.append(
                f"You spend most at {top_stores[0].name}. Consider looking for alternatives or special offers."
            )

        category_totals: Dict[str, float] = defaultdict(float)
        for receipt in receipts:
            category_totals[receipt.category] += float(receipt.total)
        if category_totals:
            top_category, amount = max(category_totals.items(), key=lambda kv: kv[1])
            recommendations.append(
                f"{top_category} is your highest spending category at {self.settings.currency_symbol}{amount:.2f}."
            )
        return recommendations


def _sorted_counts(counter: Counter) -> List[FacetCount]:
    # Counter preserves insertion order and sorted() is stable
    ordered: List[Tuple[str, int]] = sorted(counter.items(), key=lambda kv: kv[1], reverse=True)
    return [FacetCount(name=name, count=count) for name, count in ordered]
