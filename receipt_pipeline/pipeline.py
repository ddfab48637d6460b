"""
Orchestrator for the Receipt Intelligence Pipeline.
"""

import time
from typing import Optional, Union

from receipt_pipeline.dedup import DuplicateDetector
from receipt_pipeline.models import ExtractedReceipt, IngestionResult, Receipt
from receipt_pipeline.parsers import (
    DeterministicFieldExtractor,
    LLMFieldExtractor,
    ReceiptValidator,
    html_to_text,
)
from receipt_pipeline.recurring import RecurringPatternAnalyzer
from receipt_pipeline.search import ReceiptSearchEngine
from receipt_pipeline.storage import ReceiptStore
from receipt_pipeline.utils.config import PipelineSettings, get_settings
from receipt_pipeline.utils.logging_config import logger
from receipt_pipeline.vendors import VendorIdentifier


class ReceiptPipeline:
    """
    Turns inbound purchase records into stored, annotated receipts.

    Responsibilities:
    1. Vendor Identification: cheap pre-filter over sender, subject and body.
    2. Field Extraction: vendor rules first, the LLM oracle as fallback.
    3. Deduplication: flag or reject receipts that already exist.
    4. Recurrence: annotate receipts that repeat at a regular cadence.
    5. Persistence: hand the finished receipt to the storage collaborator.
    """

    def __init__(
        self,
        store: ReceiptStore,
        settings: Optional[PipelineSettings] = None,
        identifier: Optional[VendorIdentifier] = None,
        extractor: Optional[DeterministicFieldExtractor] = None,
        oracle: Optional[LLMFieldExtractor] = None,
        use_oracle: bool = True,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.identifier = identifier or VendorIdentifier(settings=self.settings)
        self.extractor = extractor or DeterministicFieldExtractor(settings=self.settings)
        self.oracle = oracle or (LLMFieldExtractor(settings=self.settings) if use_oracle else None)
        self.duplicate_detector = DuplicateDetector(store)
        self.recurring_analyzer = RecurringPatternAnalyzer(store, settings=self.settings)
        self.search_engine = ReceiptSearchEngine(store, settings=self.settings)
        self.validator = ReceiptValidator()
        logger.info(f"ReceiptPipeline initialized (duplicate_policy={self.settings.duplicate_policy}).")

    def ingest_email(
        self,
        user_id: Union[int, str],
        subject: str,
        sender: str,
        body_text: str = "",
        body_html: Optional[str] = None,
    ) -> IngestionResult:
        """
        Executes a full ingestion cycle for one receipt email.

        Never raises; failures come back as status "failed" with an error.
        """
        start_time = time.perf_counter()
        logger.info(f"Processing email for user {user_id}: '{subject}'")

        try:
            text = body_text or ""
            if not text.strip() and body_html:
                text = html_to_text(body_html)

            # 1. Identify the vendor
            detection = self.identifier.identify_vendor(subject=subject, sender=sender, body_text=text)

            # 2. Deterministic extraction, then the oracle
            extracted = None
            method = None
            if detection.vendor:
                extracted = self.extractor.extract_fields(detection.vendor, text, subject)
                method = "deterministic"

            if extracted is None and self.oracle is not None:
                logger.info(f"Falling back to LLM extraction (vendor={detection.vendor})")
                extracted = self.oracle.extract_fields(text, subject)
                method = "llm"

            if extracted is None:
                logger.warning(f"No receipt fields extracted for '{subject}'")
                return IngestionResult(
                    status="failed",
                    vendor=detection.vendor,
                    error="Could not extract a receipt with a positive total",
                    processing_time=time.perf_counter() - start_time,
                )

            return self._ingest(user_id, extracted, source="email", method=method, start_time=start_time)

        except Exception as e:
            logger.error(f"Ingestion failed for '{subject}': {e}")
            return IngestionResult(
                status="failed",
                error=str(e),
                processing_time=time.perf_counter() - start_time,
            )

    def ingest_extracted(
        self, user_id: Union[int, str], extracted: ExtractedReceipt, source: str = "manual"
    ) -> IngestionResult:
        """Ingests fields already extracted elsewhere (manual entry or OCR)."""
        start_time = time.perf_counter()
        try:
            return self._ingest(user_id, extracted, source=source, method=source, start_time=start_time)
        except Exception as e:
            logger.error(f"Ingestion failed for {extracted.store_name}: {e}")
            return IngestionResult(
                status="failed",
                vendor=extracted.vendor,
                error=str(e),
                processing_time=time.perf_counter() - start_time,
            )

    def _ingest(
        self,
        user_id: Union[int, str],
        extracted: ExtractedReceipt,
        source: str,
        method: Optional[str],
        start_time: float,
    ) -> IngestionResult:
        receipt = self._build_receipt(user_id, extracted, source)
        validation = self.validator.validate_receipt_data(receipt)

        # 3. Duplicate policy
        duplicates = self.duplicate_detector.find_duplicates(
            user_id, receipt.store_name, receipt.date, receipt.total
        )
        if duplicates:
            if self.settings.duplicate_policy == "reject":
                logger.warning(f"Rejected duplicate receipt from {receipt.store_name} on {receipt.date.date()}")
                return IngestionResult(
                    status="duplicate",
                    receipt=receipt,
                    vendor=extracted.vendor,
                    extraction_method=method,
                    duplicates=duplicates,
                    validation=validation,
                    processing_time=time.perf_counter() - start_time,
                )
            receipt = receipt.model_copy(update={"is_potential_duplicate": True})

        # 4. Recurrence annotation
        recurring = self.recurring_analyzer.analyze_recurring_pattern(user_id, receipt)
        if recurring.is_recurring:
            receipt = receipt.model_copy(
                update={"is_recurring": True, "frequency": recurring.suggested_frequency}
            )

        # 5. Persist
        saved = self.store.save_receipt(receipt)
        logger.info(
            f"Stored receipt {saved.receipt_id}: {saved.store_name} {saved.currency} {saved.total} "
            f"(method={method}, duplicate={saved.is_potential_duplicate}, recurring={saved.is_recurring})"
        )

        return IngestionResult(
            status="created",
            receipt=saved,
            vendor=extracted.vendor,
            extraction_method=method,
            duplicates=duplicates,
            recurring=recurring,
            validation=validation,
            processing_time=time.perf_counter() - start_time,
        )

    def _build_receipt(self, user_id: Union[int, str], extracted: ExtractedReceipt, source: str) -> Receipt:
        fields = dict(
            user_id=user_id,
            store_name=extracted.store_name,
            date=extracted.date,
            total=extracted.total_amount,
            currency=extracted.currency or self.settings.default_currency,
            items=extracted.items,
            confidence_score=extracted.confidence,
            source=source,
            order_id=extracted.order_id,
        )
        if extracted.category:
            fields["category"] = extracted.category
        return Receipt(**fields)
