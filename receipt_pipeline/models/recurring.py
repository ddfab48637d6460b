"""
Derived recurring-expense structures. Computed fresh from receipt history on
every query and never persisted by the pipeline itself.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .receipt import Frequency, Receipt


class RecurringPattern(BaseModel):
    """An inferred repeating expense: store, cadence and typical amount."""
    store_name: str
    category: str
    frequency: Frequency
    average_amount: float
    confidence: float = Field(ge=0.0, le=1.0)
    occurrences: int = Field(ge=1)
    variance_ratio: float = Field(ge=0.0)
    last_seen: datetime
    next_expected_date: Optional[datetime] = None


class RecurringExpenseMatch(BaseModel):
    """Verdict for a single receipt checked against the user's history."""
    is_recurring: bool = False
    pattern: Optional[RecurringPattern] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    suggested_frequency: Optional[Frequency] = None
    similar_receipts: List[Receipt] = Field(default_factory=list)


class UpcomingRecurringExpense(BaseModel):
    """A discovered pattern with its distance to the next expected charge."""
    pattern: RecurringPattern
    days_until_due: int
    is_overdue: bool
