"""
Duplicate receipt detection.
"""

from .duplicate_detector import DuplicateDetector

__all__ = ["DuplicateDetector"]
