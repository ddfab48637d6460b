"""
Adapter for the external LLM field-extraction oracle.

Used only when deterministic extraction returns None. The oracle's own
confidence is capped below every vendor rule constant, so a fallback
extraction is never trusted more than a rule-based one.
"""

import json
from typing import Any, Dict, List, Optional

from receipt_pipeline.models import ExtractedReceipt, ReceiptItem
from receipt_pipeline.utils.config import PipelineSettings, get_reference_date, get_settings
from receipt_pipeline.utils.logging_config import logger


class LLMFieldExtractor:
    """Asks an OpenAI chat model for the ExtractedReceipt fields as JSON."""

    MAX_TEXT_CHARS = 12000

    def __init__(self, openai_client=None, settings: Optional[PipelineSettings] = None):
        """
        Args:
            openai_client: OpenAI client. If None, will initialize lazily.
            settings: Pipeline settings; read from the environment when omitted.
        """
        self._openai_client = openai_client
        self.settings = settings or get_settings()

    def extract_fields(self, text: str, subject: str = "") -> Optional[ExtractedReceipt]:
        """Returns the oracle's reading of the receipt, or None on any failure."""
        if not text and not subject:
            return None

        try:
            if not self._openai_client:
                from openai import OpenAI
                self._openai_client = OpenAI()

            response = self._openai_client.chat.completions.create(
                model=self.settings.openai_model,
                messages=[
                    {
                        "role": "system",
                        "content": "You extract purchase details from receipts and order emails. Reply with JSON only."
                    },
                    {
                        "role": "user",
                        "content": self._build_prompt(text, subject)
                    }
                ],
                response_format={"type": "json_object"},
                temperature=0
            )

            result = json.loads(response.choices[0].message.content)
            return self._to_extracted(result)

        except Exception as e:
            logger.error(f"[LLM_EXTRACTION_FAILED] {e}")
            return None

    def _build_prompt(self, text: str, subject: str) -> str:
        return f"""Extract the purchase from this message.

        Subject: {subject}

        Body:
        {(text or '')[:self.MAX_TEXT_CHARS]}

        Return JSON format:
        {{"storeName": "...", "total": "123.45", "date": "YYYY-MM-DD", "currency": "ZAR",
          "items": [{{"name": "...", "price": "12.00"}}], "orderId": null, "confidence": 0.0}}

        Rules:
        1. total is the final amount paid, digits and a decimal point only
        2. If the date is missing, use null
        3. confidence is a number from 0 to 1
        """

    def _to_extracted(self, result: Dict[str, Any]) -> Optional[ExtractedReceipt]:
        store_name = (result.get("storeName") or "").strip()
        total = result.get("total")
        if not store_name or total in (None, ""):
            logger.warning(f"[LLM_EXTRACTION_FAILED] incomplete oracle response: {result}")
            return None

        items: List[ReceiptItem] = []
        for raw in result.get("items") or []:
            try:
                if isinstance(raw, str):
                    items.append(ReceiptItem(name=raw))
                else:
                    items.append(ReceiptItem(name=raw.get("name", ""), price=raw.get("price") or "0.00"))
            except ValueError as e:
                logger.debug(f"Skipping oracle item {raw!r}: {e}")
            if len(items) >= self.settings.max_items:
                break

        try:
            confidence = float(result.get("confidence", 0.5))
        except (TypeError, ValueError):
            confidence = 0.5
        confidence = max(0.0, min(confidence, self.settings.fallback_confidence_cap))

        try:
            return ExtractedReceipt(
                store_name=store_name,
                total=str(total),
                date=result.get("date") or get_reference_date().date(),
                currency=result.get("currency") or self.settings.default_currency,
                items=items,
                order_id=result.get("orderId"),
                confidence=confidence,
                vendor=None,
                category=result.get("category"),
                fields_matched=[k for k in ("storeName", "total", "date", "items") if result.get(k)],
            )
        except ValueError as e:
            logger.warning(f"[LLM_EXTRACTION_FAILED] rejected oracle response: {e}")
            return None
