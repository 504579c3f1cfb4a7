"""Property persistence and market-data enrichment over the Axori API.

Implements both gateways the wizard controller consumes.  The first
successful save creates a draft property and remembers its id; every
later save updates that same property.
"""

import asyncio
import logging
from typing import Any

from axori.clients.base import ApiClient, ApiError
from axori.schemas.property import PropertyFormData

logger = logging.getLogger(__name__)

# Pause between a just-in-time create and the completion call
COMPLETE_AFTER_CREATE_DELAY = 0.1


class PropertyApiGateway:
    def __init__(
        self,
        api: ApiClient,
        user_id: str | None,
        portfolio_id: str | None,
        property_id: str | None = None,
    ):
        self.api = api
        self.user_id = user_id
        self.portfolio_id = portfolio_id
        self.property_id = property_id

    async def save_step(self, form_data: PropertyFormData, is_address_confirmed: bool) -> str | None:
        """Create or update the draft property; None if not saved."""
        if not self.user_id or not self.portfolio_id or not is_address_confirmed:
            return None

        payload = form_data.to_payload(self.portfolio_id)
        try:
            if self.property_id:
                await self.api.put(f"/api/properties/{self.property_id}", json=payload)
                return self.property_id

            body = await self.api.post("/api/properties", json={**payload, "status": "draft"})
            self.property_id = body["property"]["id"]
            logger.info("Created draft property %s", self.property_id)
            return self.property_id
        except ApiError as e:
            logger.warning("Saving property failed: %s", e.message)
            return None
        except (KeyError, TypeError):
            logger.error("Unexpected create-property response", exc_info=True)
            return None

    async def complete_wizard(self, form_data: PropertyFormData, is_address_confirmed: bool) -> bool:
        """Mark the draft property active; creates it first if needed."""
        if not self.user_id or not self.portfolio_id:
            logger.error("Cannot complete property: missing user or portfolio")
            return False

        property_id = self.property_id
        if not property_id and is_address_confirmed:
            property_id = await self.save_step(form_data, is_address_confirmed)
            await asyncio.sleep(COMPLETE_AFTER_CREATE_DELAY)

        if not property_id:
            logger.error("No property to complete")
            return False

        try:
            await self.api.post(f"/api/properties/{property_id}/complete")
        except ApiError as e:
            logger.error("Completing property %s failed: %s", property_id, e.message)
            return False
        return True

    async def fetch_enrichment(self, property_id: str) -> Any:
        """Fetch (and server-side cache) market data. Raises ApiError."""
        body = await self.api.get(f"/api/properties/{property_id}/market-data")
        return body.get("data") if isinstance(body, dict) else body
