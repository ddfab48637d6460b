"""
Data-quality checks for extracted or stored receipts.
"""

from decimal import Decimal
from typing import Union

from dateutil.relativedelta import relativedelta

from receipt_pipeline.models import ExtractedReceipt, Receipt, ValidationReport
from receipt_pipeline.utils.config import get_reference_date

UNKNOWN_STORE_NAMES = {"", "unknown", "unknown store", "unknown merchant"}
LOW_CONFIDENCE = 0.7
HIGH_TOTAL = Decimal("10000")


class ReceiptValidator:
    """
    Scores a receipt out of 100 and explains the deductions.

    Missing store or total are errors; everything else is a warning.
    """

    def validate_receipt_data(self, data: Union[Receipt, ExtractedReceipt]) -> ValidationReport:
        errors, warnings, recommendations = [], [], []
        score = 100

        if isinstance(data, Receipt):
            total = data.total
            receipt_date = data.date.date()
            confidence = data.confidence_score
        else:
            total = data.total_amount
            receipt_date = data.date
            confidence = data.confidence

        if (data.store_name or "").strip().lower() in UNKNOWN_STORE_NAMES:
            errors.append("Store name is missing or could not be detected")
            score -= 20
            recommendations.append("Ensure store name is clearly visible at top of receipt")

        if not total or total <= 0:
            errors.append("Total amount is missing or zero")
            score -= 25
            recommendations.append("Ensure total amount is clearly visible and not blurred")

        if not data.items:
            warnings.append("No itemized purchases detected")
            score -= 10
            recommendations.append("Some receipts don't have detailed items - this may be normal")

        if confidence is not None and confidence < LOW_CONFIDENCE:
            warnings.append(f"Low extraction confidence: {confidence:.2f}")
            score -= 15
            recommendations.append("Review the extracted fields before saving")

        if total and total > HIGH_TOTAL:
            warnings.append("Unusually high total amount detected")
            score -= 5
            recommendations.append("Verify the total amount is correct")

        today = get_reference_date().date()
        if receipt_date > today:
            warnings.append("Receipt date is in the future")
            score -= 10
        elif receipt_date < today - relativedelta(years=1):
            warnings.append("Receipt is more than 1 year old")
            score -= 5

        return ValidationReport(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            recommendations=recommendations,
            score=max(0, score),
        )
