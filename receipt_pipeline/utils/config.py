"""
Environment-driven configuration for the receipt pipeline.

Values are read from the process environment (optionally seeded from a
``.env`` file) so that tests and deployments can tune thresholds without
code changes.
"""

import os
import re
from datetime import datetime, timezone

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from receipt_pipeline.utils.logging_config import logger


DUPLICATE_POLICIES = ("flag", "reject")


def get_reference_date() -> datetime:
    """
    Returns "now" for every date default in the pipeline.

    Supports RECEIPT_REFERENCE_DATE for deterministic tests:
    - YYYYMMDD format (e.g., "20240207")
    - ISO format (e.g., "2024-02-07T00:00:00Z")

    Defaults to current UTC time.
    """
    ref_str = os.getenv("RECEIPT_REFERENCE_DATE")

    if ref_str:
        try:
            if re.match(r"^\d{8}$", ref_str):
                return datetime.strptime(ref_str, "%Y%m%d").replace(tzinfo=timezone.utc)
            parsed = datetime.fromisoformat(ref_str.replace('Z', '+00:00'))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
        except Exception as e:
            logger.warning(f"Invalid RECEIPT_REFERENCE_DATE '{ref_str}': {e}")

    return datetime.now(timezone.utc)


class PipelineSettings(BaseModel):
    """Tunable knobs shared by every pipeline stage."""

    default_currency: str = "ZAR"
    currency_symbol: str = "R"
    max_items: int = Field(default=20, ge=0)
    body_scan_chars: int = Field(default=5000, gt=0)
    history_months: int = Field(default=12, gt=0)
    search_fetch_limit: int = Field(default=10000, gt=0)
    fallback_confidence_cap: float = Field(default=0.75, ge=0.0, le=1.0)
    duplicate_policy: str = "flag"
    openai_model: str = "gpt-4o-mini"

    @field_validator('duplicate_policy')
    @classmethod
    def validate_duplicate_policy(cls, v):
        """Only flag-for-review and reject are supported."""
        v = v.strip().lower()
        if v not in DUPLICATE_POLICIES:
            raise ValueError(f"duplicate_policy must be one of {DUPLICATE_POLICIES}, got '{v}'")
        return v

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """Builds settings from RECEIPT_* environment variables."""
        load_dotenv()

        values = {
            'default_currency': os.getenv('RECEIPT_DEFAULT_CURRENCY'),
            'currency_symbol': os.getenv('RECEIPT_CURRENCY_SYMBOL'),
            'max_items': os.getenv('RECEIPT_MAX_ITEMS'),
            'body_scan_chars': os.getenv('RECEIPT_BODY_SCAN_CHARS'),
            'history_months': os.getenv('RECEIPT_HISTORY_MONTHS'),
            'search_fetch_limit': os.getenv('RECEIPT_SEARCH_FETCH_LIMIT'),
            'fallback_confidence_cap': os.getenv('RECEIPT_FALLBACK_CONFIDENCE_CAP'),
            'duplicate_policy': os.getenv('RECEIPT_DUPLICATE_POLICY'),
            'openai_model': os.getenv('OPENAI_MODEL'),
        }
        return cls(**{k: v for k, v in values.items() if v is not None})


def get_settings() -> PipelineSettings:
    """Convenience accessor used when a component is built without explicit settings."""
    return PipelineSettings.from_env()
