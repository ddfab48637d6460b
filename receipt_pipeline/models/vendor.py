"""
Static vendor configuration: classification patterns and extraction rules.

Both structures are read-only at runtime and owned by configuration.
"""

import re
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _compile_all(patterns) -> Tuple[re.Pattern, ...]:
    compiled = []
    for p in patterns:
        compiled.append(p if isinstance(p, re.Pattern) else re.compile(p, re.IGNORECASE))
    return tuple(compiled)


class VendorPattern(BaseModel):
    """A merchant name plus the weighted matchers used to recognise its emails."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    sender_domains: Tuple[re.Pattern, ...] = ()
    subject_patterns: Tuple[re.Pattern, ...] = ()
    body_phrases: Tuple[str, ...] = ()

    @field_validator('sender_domains', 'subject_patterns', mode='before')
    @classmethod
    def compile_patterns(cls, v):
        return _compile_all(v or ())

    @field_validator('body_phrases', mode='before')
    @classmethod
    def fold_phrases(cls, v):
        return tuple(p.lower() for p in (v or ()))


class VendorExtractionRule(BaseModel):
    """
    Ordered field patterns for one vendor, consumed by the generic extractor.

    Every pattern list is tried top to bottom and the first hit wins.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    vendor: str
    display_name: str
    total_labels: Tuple[str, ...]
    order_id_patterns: Tuple[re.Pattern, ...] = ()
    store_name_patterns: Tuple[re.Pattern, ...] = ()
    subject_store_patterns: Tuple[re.Pattern, ...] = ()
    store_name_prefix: str = ""
    item_patterns: Tuple[re.Pattern, ...] = ()
    currency: str = "ZAR"
    default_category: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)
    required_fields: Tuple[str, ...] = ("total",)

    @field_validator(
        'order_id_patterns', 'store_name_patterns', 'subject_store_patterns', mode='before'
    )
    @classmethod
    def compile_patterns(cls, v):
        return _compile_all(v or ())

    @field_validator('item_patterns', mode='before')
    @classmethod
    def compile_item_patterns(cls, v):
        compiled = []
        for p in v or ():
            compiled.append(p if isinstance(p, re.Pattern) else re.compile(p, re.IGNORECASE | re.MULTILINE))
        return tuple(compiled)


class VendorDetectionResult(BaseModel):
    """Outcome of vendor classification. vendor is None when nothing cleared the bar."""
    vendor: Optional[str] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    matched_signals: List[str] = Field(default_factory=list)
