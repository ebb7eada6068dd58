"""Price service client feeding the process-wide price cache."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal, InvalidOperation

import backoff
import requests

from ..cache import PriceCache
from ..constants import RETRYABLE_STATUS_CODES
from ..domain import Asset
from ..settings import BundlerSettings

logger = logging.getLogger(__name__)


class PriceClient:
    """Fetches USD prices for display and keeps them in a PriceCache.

    Any failure degrades to "no price"; prices never decide whether a
    bundle can be built.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        cache: PriceCache,
        timeout: float = 10.0,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.cache = cache
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: BundlerSettings, cache: PriceCache) -> PriceClient:
        return cls(
            api_url=settings.price_api_url,
            api_key=settings.api_key_value,
            cache=cache,
            timeout=settings.quote_timeout,
        )

    @backoff.on_exception(
        backoff.expo,
        (requests.exceptions.RequestException, requests.exceptions.HTTPError),
        max_tries=3,
        giveup=lambda e: (
            isinstance(e, requests.exceptions.HTTPError)
            and e.response is not None
            and e.response.status_code not in RETRYABLE_STATUS_CODES
        ),
        jitter=backoff.full_jitter,
    )
    async def _get_price_list(self) -> object:
        response = await asyncio.to_thread(
            requests.get,
            self.api_url,
            params={"currency": "USD"},
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def refresh(self) -> dict[str, Decimal]:
        """Fetch the full price list and store every entry in the cache.

        Returns:
            Mapping of lowercase asset address to USD price. Empty when the
            credential is missing or the price service is unavailable.
        """
        if not self.api_key:
            logger.warning("No API key configured; skipping price fetch")
            return {}

        try:
            data = await self._get_price_list()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("Failed to fetch prices: %s", e)
            return {}

        if not isinstance(data, list):
            logger.warning("Unexpected price response structure: %r", data)
            return {}

        prices: dict[str, Decimal] = {}
        for item in data:
            if not isinstance(item, dict):
                continue
            address = item.get("address")
            try:
                price = Decimal(str(item.get("price")))
            except InvalidOperation:
                logger.debug("Skipping invalid price entry: %r", item)
                continue
            if not isinstance(address, str) or not price.is_finite() or price < 0:
                continue
            prices[address.lower()] = price
            self.cache.put(address, price)

        logger.debug("Fetched %d prices", len(prices))
        return prices

    async def apply_prices(self, assets: list[Asset]) -> list[Asset]:
        """Return copies of ``assets`` carrying their cached (or freshly fetched) price.

        The price list is fetched at most once per call, and only when some
        asset has no fresh cache entry. Assets without a price keep
        ``price_usd=None``.
        """
        if any(self.cache.get(asset.address) is None for asset in assets):
            await self.refresh()
        return [asset.with_price(self.cache.get(asset.address)) for asset in assets]
