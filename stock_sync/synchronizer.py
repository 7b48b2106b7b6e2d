"""Paced, retrying stock synchronization against the Shopify inventory API."""

from typing import List, Optional, Protocol, Sequence
from rich.console import Console
from rich.markup import escape
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt
)

from .config import MAX_ATTEMPTS, FeedRecord, ShopifyProduct, SyncOutcome, SyncResult
from .clients import APIError, ConnectionResetAPIError
from .pacing import Pacer


class InventoryClient(Protocol):
    """The two Shopify calls the synchronizer needs."""

    async def find_products_by_barcode(self, barcode: str) -> List[ShopifyProduct]:
        ...

    async def set_inventory_level(self, location_id: str, inventory_item_id: int, available: int) -> object:
        ...


class BatchSynchronizer:
    """Applies feed records to Shopify in small paced batches.

    Records are processed one at a time in feed order. After each batch the
    synchronizer waits `delay_seconds` (plus jitter), and it waits the same
    amount after every successful inventory update. A connection reset
    restarts the record from the lookup, at most `max_attempts` times in total.
    """

    def __init__(
        self,
        client: InventoryClient,
        location_id: str,
        batch_size: int = 2,
        delay_seconds: float = 1.0,
        retry_delay_seconds: float = 3.0,
        max_attempts: int = MAX_ATTEMPTS,
        pacer: Optional[Pacer] = None,
        console: Optional[Console] = None
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.client = client
        self.location_id = location_id
        self.batch_size = batch_size
        self.delay_seconds = delay_seconds
        self.retry_delay_seconds = retry_delay_seconds
        self.max_attempts = max_attempts
        self.pacer = pacer or Pacer()
        self.console = console or Console()

    def _retry_wait(self, retry_state: RetryCallState) -> float:
        return self.pacer.duration(self.retry_delay_seconds)

    async def _apply(self, barcode: str, stock: int) -> SyncResult:
        """One attempt: look up the product, then set its inventory level."""
        products = await self.client.find_products_by_barcode(barcode)
        ean = escape(barcode)

        if not products:
            self.console.print(f"[yellow]No product found with barcode: {ean}[/yellow]")
            return SyncResult(barcode=barcode, stock=stock, outcome=SyncOutcome.SKIPPED_NOT_FOUND)

        variants = products[0].variants
        inventory_item_id = variants[0].inventory_item_id if variants else None

        if not inventory_item_id:
            self.console.print(
                f"[yellow]No valid inventory_item_id found for product with barcode: {ean}[/yellow]"
            )
            return SyncResult(barcode=barcode, stock=stock, outcome=SyncOutcome.SKIPPED_NO_INVENTORY_TARGET)

        await self.client.set_inventory_level(self.location_id, inventory_item_id, stock)

        self.console.print(f"[green]✓ Stock updated for EAN {ean} -> {stock}[/green]")
        return SyncResult(
            barcode=barcode,
            stock=stock,
            outcome=SyncOutcome.APPLIED,
            inventory_item_id=inventory_item_id
        )

    async def sync_record(self, record: FeedRecord) -> SyncResult:
        """Sync one record to a terminal outcome. Never raises APIError."""
        ean = escape(record.barcode)
        self.console.print(f"Syncing stock for EAN: {ean}, Stock: {record.stock}")

        def log_retry(retry_state: RetryCallState) -> None:
            self.console.print(
                f"[yellow]Connection reset on EAN {ean}, retrying in "
                f"{self.retry_delay_seconds:g}s (attempt {retry_state.attempt_number})[/yellow]"
            )

        retrying = AsyncRetrying(
            sleep=self.pacer.sleep,
            stop=stop_after_attempt(self.max_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(ConnectionResetAPIError),
            before_sleep=log_retry,
            reraise=True
        )

        attempts = 0
        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    result = await self._apply(record.barcode, record.stock)
        except APIError as e:
            self.console.print(f"[red]✗ Error updating stock for EAN {ean}: {escape(e.detail)}[/red]")
            return SyncResult(
                barcode=record.barcode,
                stock=record.stock,
                outcome=SyncOutcome.FAILED,
                attempts=attempts,
                error=e.detail
            )

        result.attempts = attempts

        if result.outcome == SyncOutcome.APPLIED:
            await self.pacer.wait(self.delay_seconds)

        return result

    async def run(self, records: Sequence[FeedRecord]) -> List[SyncResult]:
        """Process every record, batch by batch, in order."""
        results: List[SyncResult] = []

        for start in range(0, len(records), self.batch_size):
            batch = records[start:start + self.batch_size]

            for record in batch:
                results.append(await self.sync_record(record))

            self.console.print("[dim]Waiting for the next batch...[/dim]")
            await self.pacer.wait(self.delay_seconds)

        return results
