"""Shopify Admin REST API client."""

from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..config import ShopifyConfig, ShopifyProduct
from .base import APIError, BaseClient


class ShopifyClient(BaseClient):
    """HTTP client for the Shopify Admin REST API."""

    def __init__(self, config: ShopifyConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(transport=transport)
        self.config = config

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def _get_headers(self) -> Dict[str, str]:
        headers = super()._get_headers()
        headers["X-Shopify-Access-Token"] = self.config.access_token
        return headers

    async def find_products_by_barcode(self, barcode: str) -> List[ShopifyProduct]:
        """Find products whose variants carry the given barcode."""
        response = await self.get("products.json", params={"barcode": barcode})

        products = response.get("products") or []
        if isinstance(products, dict):
            products = [products]
        if not isinstance(products, list):
            raise APIError("Unexpected products payload", payload=response)

        try:
            return [ShopifyProduct.model_validate(product) for product in products]
        except ValidationError as e:
            raise APIError(f"Invalid product data: {e.error_count()} errors", payload=response) from e

    async def set_inventory_level(
        self,
        location_id: str,
        inventory_item_id: int,
        available: int
    ) -> Dict[str, object]:
        """Set the available quantity of an inventory item at a location."""
        response = await self.post(
            "inventory_levels/set.json",
            json_data={
                "location_id": location_id,
                "inventory_item_id": str(inventory_item_id),
                "available": available,
            }
        )

        if "inventory_level" in response:
            return response["inventory_level"]

        return response
