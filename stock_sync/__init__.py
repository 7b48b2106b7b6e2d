"""
Supplier Stock Sync for Shopify

A batch tool that downloads a supplier's semicolon-separated stock feed and
sets the matching Shopify inventory levels:
- Products are matched by barcode (EAN)
- Calls are paced in small batches to stay under the Admin API rate limit
- Connection resets are retried a fixed number of times

Stock levels are only updated; no products are created.
"""

__version__ = "1.0.0"
__author__ = "Stock Sync Tool"

from .config import Config, FeedRecord, SyncOutcome, SyncResult

__all__ = ["Config", "FeedRecord", "SyncOutcome", "SyncResult"]
