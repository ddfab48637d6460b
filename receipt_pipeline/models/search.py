"""
Transient query-shaped value objects for receipt search.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .receipt import Receipt, coerce_datetime


class SearchFilters(BaseModel):
    """Hard constraints; every provided field must hold (logical AND)."""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    categories: Optional[List[str]] = None
    stores: Optional[List[str]] = None
    payment_methods: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    is_tax_deductible: Optional[bool] = None

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def normalize_dates(cls, v):
        if v is None:
            return v
        return coerce_datetime(v)


class FacetCount(BaseModel):
    name: str
    count: int


class SearchFacets(BaseModel):
    """Count-by-field breakdowns computed over the filtered, unpaginated set."""
    categories: List[FacetCount] = Field(default_factory=list)
    stores: List[FacetCount] = Field(default_factory=list)
    payment_methods: List[FacetCount] = Field(default_factory=list)
    price_ranges: List[FacetCount] = Field(default_factory=list)


class SearchResult(BaseModel):
    receipts: List[Receipt] = Field(default_factory=list)
    total_count: int = 0
    facets: SearchFacets = Field(default_factory=SearchFacets)


class StoreSpend(BaseModel):
    name: str
    amount: float
    frequency: int


class SpendingInsights(BaseModel):
    """Aggregate spending view used by the insights panel."""
    average_spending: float = 0.0
    top_stores: List[StoreSpend] = Field(default_factory=list)
    spending_trend: str = "stable"
    recommendations: List[str] = Field(default_factory=list)
