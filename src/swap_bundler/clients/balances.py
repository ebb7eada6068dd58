"""Held balance lookup for "max" selections."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

import backoff
from web3 import Web3
from web3.exceptions import ProviderConnectionError

from ..abi import load_erc20_abi
from ..domain import Asset
from ..units import from_smallest_unit

logger = logging.getLogger(__name__)


@backoff.on_exception(
    backoff.expo, ProviderConnectionError, max_time=30, jitter=backoff.full_jitter
)
async def fetch_balance(w3: Web3, asset: Asset, owner: str) -> int:
    """Return ``owner``'s balance of ``asset`` in smallest units."""
    owner_checksum = Web3.to_checksum_address(owner)
    if asset.is_native:
        return int(await asyncio.to_thread(w3.eth.get_balance, owner_checksum))

    token_contract = w3.eth.contract(
        address=Web3.to_checksum_address(asset.address), abi=load_erc20_abi()
    )
    return int(
        await asyncio.to_thread(token_contract.functions.balanceOf(owner_checksum).call)
    )


async def fetch_human_balance(w3: Web3, asset: Asset, owner: str) -> Decimal:
    raw = await fetch_balance(w3, asset, owner)
    balance = from_smallest_unit(raw, asset.decimals)
    logger.debug("Balance of %s for %s: %s", asset.symbol, owner, balance)
    return balance
