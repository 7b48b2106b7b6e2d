"""
Shared fixtures for stock sync tests.

Provides a fake Shopify client, a recording sleep and a quiet console so no
test touches the network or actually waits.
"""
import io
from typing import Dict, List, Optional

import pytest
from rich.console import Console

from stock_sync.config import FeedRecord, ShopifyProduct, ShopifyVariant
from stock_sync.pacing import Pacer


class FakeShopifyClient:
    """In-memory stand-in for ShopifyClient that logs every call."""

    def __init__(self, events: List[tuple]):
        self.events = events
        self.products: Dict[str, List[ShopifyProduct]] = {}
        self.lookup_failures: Dict[str, List[Exception]] = {}
        self.set_failures: Dict[int, List[Exception]] = {}
        self.levels: Dict[int, int] = {}

    def add_product(self, barcode: str, inventory_item_id: Optional[int]) -> None:
        variants = [ShopifyVariant(id=1, barcode=barcode, inventory_item_id=inventory_item_id)]
        self.products[barcode] = [ShopifyProduct(id=10, variants=variants)]

    async def find_products_by_barcode(self, barcode: str) -> List[ShopifyProduct]:
        self.events.append(("lookup", barcode))
        failures = self.lookup_failures.get(barcode)
        if failures:
            raise failures.pop(0)
        return self.products.get(barcode, [])

    async def set_inventory_level(self, location_id: str, inventory_item_id: int, available: int) -> dict:
        self.events.append(("set", location_id, inventory_item_id, available))
        failures = self.set_failures.get(inventory_item_id)
        if failures:
            raise failures.pop(0)
        self.levels[inventory_item_id] = available
        return {"inventory_item_id": inventory_item_id, "available": available}


class FakeFeed:
    """Feed fetcher yielding canned byte chunks, optionally failing."""

    def __init__(self, chunks: List[bytes], error: Optional[Exception] = None):
        self.chunks = chunks
        self.error = error

    async def stream(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


async def iter_chunks(*chunks: bytes):
    for chunk in chunks:
        yield chunk


def make_records(*pairs) -> List[FeedRecord]:
    return [FeedRecord(barcode=barcode, stock=stock) for barcode, stock in pairs]


@pytest.fixture
def events():
    """Shared, ordered log of remote calls and sleeps."""
    return []


@pytest.fixture
def shopify(events):
    return FakeShopifyClient(events)


@pytest.fixture
def pacer(events):
    """Pacer without jitter whose sleeps are only recorded."""
    async def record_sleep(seconds: float) -> None:
        events.append(("sleep", seconds))

    return Pacer(jitter=0, sleep=record_sleep)


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200)
