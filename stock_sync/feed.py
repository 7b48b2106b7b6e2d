"""Supplier feed parsing: streamed CSV bytes to stock records."""

import codecs
import csv
import re
from typing import AsyncIterable, AsyncIterator, Dict, List, Optional
from rich.console import Console
from rich.markup import escape

from .config import FeedRecord


REQUIRED_COLUMNS = ["ean", "stock"]

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


class FeedError(Exception):
    """The feed could not be used for this run."""
    pass


class FeedFetchError(FeedError):
    """The feed could not be downloaded."""
    pass


class FeedFormatError(FeedError):
    """The feed header is missing required columns."""
    pass


class FeedParseError(FeedError):
    """The feed stream broke off or could not be decoded."""
    pass


def parse_stock(value: Optional[str]) -> Optional[int]:
    """Parse the leading integer of a stock value.

    "42" -> 42, "42.9" -> 42, "12abc" -> 12, "abc" and "" -> None.
    """
    if value is None:
        return None
    match = _INT_PREFIX.match(value)
    if not match:
        return None
    return int(match.group(1))


async def iter_lines(chunks: AsyncIterable[bytes], encoding: str = "utf-8") -> AsyncIterator[str]:
    """Decode byte chunks and yield physical lines, line endings stripped."""
    decoder = codecs.getincrementaldecoder(encoding)(errors="strict")
    pending = ""
    first = True

    async for chunk in chunks:
        text = decoder.decode(chunk)
        if first and text:
            text = text.lstrip("\ufeff")
            first = False
        pending += text
        *lines, pending = pending.split("\n")
        for line in lines:
            yield line.rstrip("\r")

    pending += decoder.decode(b"", final=True)
    if pending:
        yield pending.rstrip("\r")


async def iter_rows(lines: AsyncIterable[str], delimiter: str = ";") -> AsyncIterator[List[str]]:
    """Group physical lines into logical rows and split them into fields.

    A quoted field may span lines, so lines are joined while the row holds an
    odd number of quote characters.
    """
    buffer: List[str] = []
    quotes = 0

    async for line in lines:
        buffer.append(line)
        quotes += line.count('"')
        if quotes % 2:
            continue

        text = "\n".join(buffer)
        buffer = []
        quotes = 0
        if not text.strip():
            continue
        yield next(csv.reader([text], delimiter=delimiter))

    if buffer:
        raise csv.Error("unexpected end of data inside a quoted field")


class FeedIngestor:
    """Turns the supplier feed into stock records, skipping malformed rows."""

    def __init__(self, encoding: str = "utf-8", delimiter: str = ";", console: Optional[Console] = None):
        self.encoding = encoding
        self.delimiter = delimiter
        self.console = console or Console()
        self.total_rows = 0
        self.skipped_rows = 0

    def _header(self, row: List[str]) -> List[str]:
        header = [name.strip() for name in row]
        missing = [col for col in REQUIRED_COLUMNS if col not in header]
        if missing:
            raise FeedFormatError(
                f"Missing required columns: {missing}. "
                f"Available columns: {header}"
            )
        return header

    def build_record(self, row: Dict[str, Optional[str]]) -> Optional[FeedRecord]:
        """Validate one data row; None means the row is skipped."""
        ean = row.get('ean')
        raw_stock = row.get('stock')
        stock = parse_stock(raw_stock)

        if not ean or stock is None or stock < 0:
            return None

        return FeedRecord(barcode=ean, stock=stock)

    async def iter_records(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[FeedRecord]:
        """Lazily yield a record for every valid data row of the feed."""
        self.total_rows = 0
        self.skipped_rows = 0
        header: Optional[List[str]] = None

        try:
            async for fields in iter_rows(iter_lines(chunks, self.encoding), self.delimiter):
                if header is None:
                    header = self._header(fields)
                    continue

                self.total_rows += 1
                row: Dict[str, Optional[str]] = dict(zip(header, fields))
                record = self.build_record(row)

                if record is None:
                    self.skipped_rows += 1
                    self.console.print(
                        f"[yellow]Row {self.total_rows + 1}: invalid EAN or stock - "
                        f"EAN: {escape(repr(row.get('ean')))}, Stock: {escape(repr(row.get('stock')))} - skipped[/yellow]"
                    )
                    continue

                yield record

        except (UnicodeDecodeError, csv.Error) as e:
            raise FeedParseError(f"Error processing feed stream: {e}") from e

        if header is None:
            self.console.print("[yellow]Feed is empty: no header row found[/yellow]")

    async def collect(self, chunks: AsyncIterable[bytes]) -> List[FeedRecord]:
        """Read the whole feed into a list.

        Any mid-stream failure discards the records parsed so far.
        """
        records = [record async for record in self.iter_records(chunks)]

        if self.skipped_rows > 0:
            self.console.print(f"[yellow]Skipped {self.skipped_rows} rows with invalid EAN or stock[/yellow]")

        self.console.print(f"[green]Feed processed with {len(records)} valid records[/green]")

        return records
