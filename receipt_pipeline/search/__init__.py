from .search_engine import PRICE_BUCKET_BOUNDS, ReceiptSearchEngine

__all__ = ["PRICE_BUCKET_BOUNDS", "ReceiptSearchEngine"]
