"""
Outcome of pushing one purchase record through the pipeline.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from .receipt import Receipt, ValidationReport
from .recurring import RecurringExpenseMatch

INGESTION_STATUSES = ("created", "duplicate", "failed")


class IngestionResult(BaseModel):
    """
    The final response of an ingestion run.

    status is "created" when the receipt was persisted, "duplicate" when the
    reject policy dropped it, and "failed" when no usable record came out.
    """
    status: str
    receipt: Optional[Receipt] = None
    vendor: Optional[str] = None
    extraction_method: Optional[str] = None
    duplicates: List[Receipt] = Field(default_factory=list)
    recurring: Optional[RecurringExpenseMatch] = None
    validation: Optional[ValidationReport] = None
    error: Optional[str] = None
    processing_time: float = Field(default=0.0, ge=0.0)
