"""
Centralized vendor classification patterns.

Order matters: the identifier walks this list top to bottom and the first
vendor to clear the acceptance threshold wins.
"""

from receipt_pipeline.models import VendorPattern

VENDOR_PATTERNS = (
    VendorPattern(
        name="Uber Eats",
        sender_domains=[r'uber\.com$', r'ubereats\.com$'],
        subject_patterns=[r'uber\s*eats', r'your.*order.*uber'],
        body_phrases=["uber eats", "uber technologies", "ubereats"],
    ),
    VendorPattern(
        name="Amazon",
        sender_domains=[r'amazon\.(com|co\.za|co\.uk|de|fr)$'],
        subject_patterns=[r'amazon.*order', r'your amazon', r'amazon.*delivery'],
        body_phrases=["amazon.com", "amazon.co.za", "amazon order"],
    ),
    VendorPattern(
        name="Pick n Pay",
        sender_domains=[r'pnp\.co\.za$', r'picknpay\.co\.za$'],
        subject_patterns=[r'pick\s*n\s*pay', r'pnp'],
        body_phrases=["pick n pay", "picknpay", "pnp"],
    ),
    VendorPattern(
        name="Takealot",
        sender_domains=[r'takealot\.com$'],
        subject_patterns=[r'takealot', r'takealot.*order'],
        body_phrases=["takealot.com", "takealot"],
    ),
    VendorPattern(
        name="Checkers",
        sender_domains=[r'checkers\.co\.za$', r'shoprite\.co\.za$'],
        subject_patterns=[r'checkers', r'checkers sixty60'],
        body_phrases=["checkers", "checkers sixty60", "shoprite checkers"],
    ),
)

# Scoring weights per signal category
DOMAIN_WEIGHT = 0.5
SUBJECT_WEIGHT = 0.3
BODY_WEIGHT = 0.2

ACCEPTANCE_THRESHOLD = 0.5
