"""Client for the swap routing service."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

import requests
from web3 import Web3

from ..constants import ROUTING_NATIVE_SENTINEL
from ..domain import Asset, Quote
from ..settings import BundlerSettings
from ..units import to_smallest_unit

logger = logging.getLogger(__name__)


class QuoteErrorReason(str, Enum):
    UPSTREAM = "upstream"
    MALFORMED = "malformed"
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_INPUT = "invalid_input"


class QuoteError(Exception):
    """Raised when a single asset could not be quoted.

    Scoped to one asset; the bundle assembler records it and moves on.
    """

    def __init__(
        self,
        reason: QuoteErrorReason,
        message: str,
        status: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.status = status
        self.body = body


def _parse_amount_field(data: dict[str, Any], key: str) -> int:
    raw = data.get(key)
    if raw is None:
        return 0
    try:
        value = int(str(raw))
    except ValueError as e:
        raise QuoteError(
            QuoteErrorReason.MALFORMED, f"Invalid {key} in quote: {raw!r}"
        ) from e
    if value < 0:
        raise QuoteError(QuoteErrorReason.MALFORMED, f"Negative {key} in quote: {raw}")
    return value


def _is_hex_payload(value: Any) -> bool:
    if not isinstance(value, str) or not value.startswith("0x") or len(value) <= 2:
        return False
    try:
        bytes.fromhex(value[2:])
    except ValueError:
        return False
    return True


def parse_quote(data: Any, source: Asset, amount_in: int) -> Quote:
    """Normalize a routing service response body into a Quote.

    Raises:
        QuoteError: With reason ``malformed`` if the router address or the
            call payload is missing or invalid, or an amount is not an integer.
    """
    if not isinstance(data, dict):
        raise QuoteError(
            QuoteErrorReason.MALFORMED, f"Invalid response structure: {data!r}"
        )

    router = data.get("routerAddress")
    if not isinstance(router, str) or not Web3.is_address(router):
        raise QuoteError(
            QuoteErrorReason.MALFORMED, f"Missing or invalid routerAddress: {router!r}"
        )

    calldata = data.get("calldata")
    if not _is_hex_payload(calldata):
        raise QuoteError(
            QuoteErrorReason.MALFORMED, "Missing or invalid calldata in quote"
        )

    raw_impact = data.get("priceImpact") or 0
    try:
        price_impact = Decimal(str(raw_impact))
    except InvalidOperation as e:
        raise QuoteError(
            QuoteErrorReason.MALFORMED, f"Invalid priceImpact: {raw_impact!r}"
        ) from e

    return Quote(
        router_address=Web3.to_checksum_address(router),
        calldata=calldata,
        native_value=amount_in if source.is_native else 0,
        amount_in=amount_in,
        expected_output=_parse_amount_field(data, "outputAmount"),
        min_output=_parse_amount_field(data, "minOutputAmount"),
        price_impact=price_impact,
    )


class RoutingClient:
    """Issues one quote request per (source, amount, target) triple.

    Does not retry; re-running the assembly is the recovery path for
    transient failures.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        chain_id: int,
        timeout: float = 10.0,
        recipient: str | None = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.chain_id = chain_id
        self.timeout = timeout
        self.recipient = recipient

    @classmethod
    def from_settings(cls, settings: BundlerSettings) -> RoutingClient:
        return cls(
            api_url=settings.routing_api_url,
            api_key=settings.api_key_value,
            chain_id=settings.chain_id,
            timeout=settings.quote_timeout,
            recipient=settings.safe_address,
        )

    def build_request(
        self, source: Asset, amount_in: int, target: Asset, slippage_tolerance: float
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "chainId": self.chain_id,
            "tokenIn": ROUTING_NATIVE_SENTINEL if source.is_native else source.address,
            "tokenOut": target.address,
            "amount": str(amount_in),
            "slippage": slippage_tolerance,
        }
        if self.recipient:
            payload["to"] = self.recipient
        return payload

    async def fetch_quote(
        self,
        source: Asset,
        amount: str,
        target: Asset,
        slippage_tolerance: float,
    ) -> Quote:
        """Fetch a swap quote converting ``amount`` of ``source`` into ``target``.

        Args:
            source: Asset being sold
            amount: Amount in human units, e.g. ``"1.5"``
            target: Asset being bought
            slippage_tolerance: Percentage in (0, 100]

        Returns:
            The normalized Quote

        Raises:
            QuoteError: If the request cannot be made, the service answers with
                a non-success status, or the response is malformed
        """
        if not self.api_key:
            raise QuoteError(
                QuoteErrorReason.MISSING_CREDENTIAL, "Routing API key not set"
            )
        if not 0 < slippage_tolerance <= 100:
            raise QuoteError(
                QuoteErrorReason.INVALID_INPUT,
                f"Slippage tolerance must be in (0, 100], got {slippage_tolerance}",
            )

        try:
            amount_in = to_smallest_unit(amount, source.decimals)
        except ValueError as e:
            raise QuoteError(QuoteErrorReason.INVALID_INPUT, str(e)) from e
        if amount_in <= 0:
            raise QuoteError(
                QuoteErrorReason.INVALID_INPUT, f"Amount must be positive: {amount}"
            )

        payload = self.build_request(source, amount_in, target, slippage_tolerance)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        logger.debug(
            "Requesting quote %s -> %s (amount=%d, slippage=%s%%)",
            source.symbol,
            target.symbol,
            amount_in,
            slippage_tolerance,
        )

        try:
            response = await asyncio.to_thread(
                requests.post,
                self.api_url,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise QuoteError(
                QuoteErrorReason.UPSTREAM, f"Routing request failed: {e}"
            ) from e

        if not response.ok:
            raise QuoteError(
                QuoteErrorReason.UPSTREAM,
                f"API request failed: {response.status_code} {response.text}",
                status=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise QuoteError(
                QuoteErrorReason.MALFORMED, "Invalid JSON from routing API"
            ) from e

        quote = parse_quote(data, source, amount_in)
        logger.debug(
            "Quote %s -> %s: expected=%d min=%d impact=%s%%",
            source.symbol,
            target.symbol,
            quote.expected_output,
            quote.min_output,
            quote.price_impact,
        )
        return quote
