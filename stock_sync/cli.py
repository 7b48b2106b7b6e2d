"""Command-line entry point for the supplier stock sync."""

import asyncio
import logging
from typing import Optional
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import Config, ConfigError, load_config_from_env
from .clients import FeedClient, ShopifyClient
from .feed import FeedError, FeedIngestor
from .pacing import Pacer
from .reporting import Reporter
from .synchronizer import BatchSynchronizer, InventoryClient

app = typer.Typer(
    name="stock-sync",
    help="Sync supplier feed stock levels into Shopify inventory",
    rich_markup_mode="rich"
)

console = Console()


@app.command()
def sync():
    """Download the supplier feed and update Shopify stock levels by barcode."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)]
    )

    try:
        asyncio.run(_sync_main())
    except KeyboardInterrupt:
        console.print("\n[yellow]Sync cancelled by user[/yellow]")
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        console.print("\nYou can also create a .env file with these variables.")
        raise typer.Exit(1)
    except FeedError as e:
        console.print(f"[red]Sync failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)


async def run_sync(
    config: Config,
    feed_client: FeedClient,
    shopify_client: InventoryClient,
    console: Console,
    pacer: Optional[Pacer] = None
) -> Reporter:
    """Ingest the feed, then push every valid record to Shopify.

    Feed errors propagate before any Shopify call is made.
    """
    reporter = Reporter(console)
    pacer = pacer or Pacer(jitter=config.jitter_seconds)

    console.print("[bold cyan]Supplier Stock Sync[/bold cyan]\n")

    console.print("[bold]Step 1: Downloading and parsing feed[/bold]")
    ingestor = FeedIngestor(config.feed.encoding, config.feed.delimiter, console)
    records = await ingestor.collect(feed_client.stream())
    reporter.record_ingestion(ingestor.total_rows, len(records), ingestor.skipped_rows)

    if not records:
        console.print("[yellow]No valid records found in feed[/yellow]")
        reporter.print_summary()
        return reporter

    console.print(f"\n[bold]Step 2: Updating stock for {len(records)} records[/bold]")
    synchronizer = BatchSynchronizer(
        shopify_client,
        config.shopify.location_id,
        batch_size=config.batch_size,
        delay_seconds=config.delay_seconds,
        retry_delay_seconds=config.retry_delay_seconds,
        max_attempts=config.max_attempts,
        pacer=pacer,
        console=console
    )
    results = await synchronizer.run(records)
    reporter.add_results(results)

    console.print(f"\n{'='*60}")
    reporter.print_summary()
    console.print(f"{'='*60}")

    return reporter


async def _sync_main() -> None:
    """Main sync logic."""
    config = load_config_from_env()

    async with FeedClient(config.feed) as feed_client, ShopifyClient(config.shopify) as shopify_client:
        await run_sync(config, feed_client, shopify_client, console)


if __name__ == "__main__":
    app()
