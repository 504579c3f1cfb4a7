"""Market-data enrichment for saved properties.

Provider responses are cached on the property row and reused while
younger than `market_data_cache_days`.  The provider is called with one
GET keyed by the full address; whatever JSON record it returns is
stored as-is.
"""

import logging
from datetime import datetime, timedelta, timezone

import httpx
from fastapi import status

from axori.config import settings
from axori.database import utcnow
from axori.middleware.exceptions import AxoriException
from axori.models.property import Property

logger = logging.getLogger(__name__)


def is_cache_fresh(prop: Property, now: datetime | None = None) -> bool:
    fetched_at = prop.market_data_fetched_at
    if not prop.market_data or not fetched_at:
        return False
    # Backends without timezone support hand back naive UTC values
    if fetched_at.tzinfo is None:
        fetched_at = fetched_at.replace(tzinfo=timezone.utc)
    now = now or utcnow()
    return fetched_at > now - timedelta(days=settings.market_data_cache_days)


def _full_address(prop: Property) -> str:
    return f"{prop.address}, {prop.city}, {prop.state} {prop.zip_code}".strip()


async def fetch_market_data(
    prop: Property,
    client: httpx.AsyncClient | None = None,
) -> dict:
    """Fetch the provider's record for `prop`.  Raises AxoriException."""
    if not settings.market_data_api_key:
        raise AxoriException(
            "Market data API key not configured",
            error_code="MARKET_DATA_NOT_CONFIGURED",
        )

    own_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.api_timeout_seconds)
    try:
        response = await client.get(
            settings.market_data_api_url,
            params={"address": _full_address(prop)},
            headers={"X-Api-Key": settings.market_data_api_key, "Accept": "application/json"},
        )
        response.raise_for_status()
        body = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Market data fetch failed for property %s: %s", prop.id, e)
        raise AxoriException(
            "Failed to fetch property data from market data provider",
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_code="MARKET_DATA_UNAVAILABLE",
        ) from e
    finally:
        if own_client:
            await client.aclose()

    # The provider answers address lookups with a list of matches
    if isinstance(body, list):
        body = body[0] if body else {}
    return body
