"""
Vendor identification for inbound receipt emails.

A cheap, explainable pre-filter that runs before field extraction: each known
vendor accumulates a weighted score from the sender domain, the subject line
and the opening of the body.
"""

import re
from typing import Optional, Sequence

from receipt_pipeline.models import VendorDetectionResult, VendorPattern
from receipt_pipeline.utils.config import PipelineSettings, get_settings
from receipt_pipeline.utils.logging_config import logger
from receipt_pipeline.vendors.patterns import (
    ACCEPTANCE_THRESHOLD,
    BODY_WEIGHT,
    DOMAIN_WEIGHT,
    SUBJECT_WEIGHT,
    VENDOR_PATTERNS,
)


def extract_sender_domain(sender: str) -> str:
    """
    Pulls the lower-cased domain out of a From header.

    Handles both "Name <user@host>" and bare "user@host" forms. Returns an
    empty string when no address can be found.
    """
    if not sender:
        return ""

    match = re.search(r'<([^>]+)>', sender) or re.search(r'[\w.+-]+@[\w.-]+', sender)
    if match:
        email = match.group(1) if match.groups() else match.group(0)
    else:
        email = sender

    parts = email.split("@")
    return parts[1].strip().lower() if len(parts) > 1 else ""


class VendorIdentifier:
    """
    Classifies an email as belonging to a known vendor.

    Scoring per vendor (no compounding inside a category):
    - +0.5 if the sender domain matches any domain pattern
    - +0.3 if the subject matches any subject pattern
    - +0.2 if the first N body characters contain any listed phrase

    The first vendor, in configured order, reaching 0.5 wins. There is no
    best-of-all ranking.
    """

    def __init__(
        self,
        patterns: Sequence[VendorPattern] = VENDOR_PATTERNS,
        settings: Optional[PipelineSettings] = None,
    ):
        self.patterns = tuple(patterns)
        self.settings = settings or get_settings()

    def identify_vendor(self, subject: str = "", sender: str = "", body_text: str = "") -> VendorDetectionResult:
        """Returns the winning vendor and its capped score, or an empty result."""
        subject = subject or ""
        sender_domain = extract_sender_domain(sender or "")
        subject_lower = subject.lower()
        body_lower = (body_text or "").lower()[:self.settings.body_scan_chars]

        for vendor in self.patterns:
            score = 0.0
            signals = []

            if any(p.search(sender_domain) for p in vendor.sender_domains):
                score += DOMAIN_WEIGHT
                signals.append("domain")

            if any(p.search(subject_lower) for p in vendor.subject_patterns):
                score += SUBJECT_WEIGHT
                signals.append("subject")

            if any(phrase in body_lower for phrase in vendor.body_phrases):
                score += BODY_WEIGHT
                signals.append("body")

            if score >= ACCEPTANCE_THRESHOLD:
                confidence = min(score, 1.0)
                logger.info(
                    f"[VENDOR_DETECTED] vendor=\"{vendor.name}\" confidence={confidence:.2f} "
                    f"domain=\"{sender_domain}\" subject=\"{subject[:60]}\""
                )
                return VendorDetectionResult(vendor=vendor.name, confidence=confidence, matched_signals=signals)

        logger.info(f"[VENDOR_DETECTED] vendor=null domain=\"{sender_domain}\" subject=\"{subject[:60]}\"")
        return VendorDetectionResult(vendor=None, confidence=0.0)


def identify_vendor(subject: str = "", sender: str = "", body_text: str = "") -> VendorDetectionResult:
    """Convenience function using the built-in vendor table."""
    return VendorIdentifier().identify_vendor(subject=subject, sender=sender, body_text=body_text)
