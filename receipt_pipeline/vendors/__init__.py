"""
Vendor classification for inbound receipt messages.
"""

from .identifier import VendorIdentifier, extract_sender_domain, identify_vendor
from .patterns import VENDOR_PATTERNS

__all__ = ["VendorIdentifier", "extract_sender_domain", "identify_vendor", "VENDOR_PATTERNS"]
