"""
Storage collaborator interface and the in-memory reference store.
"""

from .receipt_store import InMemoryReceiptStore, ReceiptStore

__all__ = ["InMemoryReceiptStore", "ReceiptStore"]
