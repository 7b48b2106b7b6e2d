"""Configuration models and settings for the supplier stock sync."""

from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
import codecs
import os


MAX_ATTEMPTS = 3


class ConfigError(Exception):
    """Required configuration is missing or invalid."""
    pass


class ShopifyConfig(BaseModel):
    """Shopify Admin API configuration."""

    shop_name: str
    access_token: str
    location_id: str
    api_version: str = "2024-01"

    @property
    def store_domain(self) -> str:
        """Shop domain with the .myshopify.com suffix."""
        domain = self.shop_name.replace("https://", "").replace("http://", "").rstrip("/")
        if not domain.endswith(".myshopify.com"):
            domain = f"{domain}.myshopify.com"
        return domain

    @property
    def base_url(self) -> str:
        return f"https://{self.store_domain}/admin/api/{self.api_version}"


class FeedConfig(BaseModel):
    """Supplier feed configuration."""

    url: str
    encoding: str = "utf-8"
    delimiter: str = ";"

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as e:
            raise ValueError(f"Unknown feed encoding: {value}") from e
        return value


class Config(BaseModel):
    """Main application configuration."""

    shopify: ShopifyConfig
    feed: FeedConfig

    # Pacing options
    batch_size: int = Field(default=2, ge=1, le=50)
    delay_seconds: float = Field(default=1.0, ge=0.0, le=10.0)
    jitter_seconds: float = Field(default=0.2, ge=0.0, le=5.0)
    retry_delay_seconds: float = Field(default=3.0, ge=0.0, le=60.0)
    max_attempts: int = MAX_ATTEMPTS


class FeedRecord(BaseModel):
    """One valid feed row: a barcode and its stock quantity."""

    model_config = ConfigDict(frozen=True)

    barcode: str = Field(min_length=1)
    stock: int = Field(ge=0)


class ShopifyVariant(BaseModel):
    """The variant fields the sync reads."""

    id: Optional[int] = None
    barcode: Optional[str] = None
    inventory_item_id: Optional[int] = None


class ShopifyProduct(BaseModel):
    """The product fields the sync reads."""

    id: Optional[int] = None
    title: Optional[str] = None
    variants: List[ShopifyVariant] = Field(default_factory=list)


class SyncOutcome(str, Enum):
    """Terminal state of syncing one record."""

    APPLIED = "applied"
    SKIPPED_NOT_FOUND = "skipped_not_found"
    SKIPPED_NO_INVENTORY_TARGET = "skipped_no_inventory_target"
    FAILED = "failed"


class SyncResult(BaseModel):
    """Result of syncing one feed record."""

    barcode: str
    stock: int
    outcome: SyncOutcome
    attempts: int = 1
    error: Optional[str] = None
    inventory_item_id: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.outcome == SyncOutcome.APPLIED


class ProcessingStats(BaseModel):
    """Statistics for a sync run."""

    total_rows: int = 0
    valid_records: int = 0
    skipped_rows: int = 0
    applied: int = 0
    skipped_not_found: int = 0
    skipped_no_inventory_target: int = 0
    failed: int = 0
    retries: int = 0

    def add_result(self, result: SyncResult) -> None:
        """Add a sync result to the statistics."""
        if result.outcome == SyncOutcome.APPLIED:
            self.applied += 1
        elif result.outcome == SyncOutcome.SKIPPED_NOT_FOUND:
            self.skipped_not_found += 1
        elif result.outcome == SyncOutcome.SKIPPED_NO_INVENTORY_TARGET:
            self.skipped_no_inventory_target += 1
        else:
            self.failed += 1
        self.retries += result.attempts - 1


REQUIRED_ENV_VARS: Dict[str, str] = {
    "SHOPIFY_SHOP_NAME": "Shopify shop name",
    "SHOPIFY_ACCESS_TOKEN": "Shopify Admin API access token",
    "SHOPIFY_LOCATION_ID": "Shopify location receiving the stock levels",
    "STOCK_FEED_URL": "Supplier CSV feed URL",
}


def load_config_from_env() -> Config:
    """Load configuration from environment variables."""
    from dotenv import load_dotenv
    load_dotenv()

    missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
    if missing:
        details = ", ".join(f"{name} ({REQUIRED_ENV_VARS[name]})" for name in missing)
        raise ConfigError(f"Missing required environment variables: {details}")

    try:
        shopify_config = ShopifyConfig(
            shop_name=os.getenv("SHOPIFY_SHOP_NAME", ""),
            access_token=os.getenv("SHOPIFY_ACCESS_TOKEN", ""),
            location_id=os.getenv("SHOPIFY_LOCATION_ID", ""),
            api_version=os.getenv("SHOPIFY_API_VERSION", "2024-01"),
        )

        feed_config = FeedConfig(
            url=os.getenv("STOCK_FEED_URL", ""),
            encoding=os.getenv("STOCK_FEED_ENCODING", "utf-8"),
        )

        return Config(
            shopify=shopify_config,
            feed=feed_config,
            batch_size=int(os.getenv("STOCK_SYNC_BATCH_SIZE", "2")),
            delay_seconds=float(os.getenv("STOCK_SYNC_DELAY", "1.0")),
            jitter_seconds=float(os.getenv("STOCK_SYNC_JITTER", "0.2")),
            retry_delay_seconds=float(os.getenv("STOCK_SYNC_RETRY_DELAY", "3.0")),
        )
    except ValueError as e:
        raise ConfigError(f"Invalid sync settings: {e}") from e
