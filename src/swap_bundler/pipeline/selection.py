"""Resolve requested swaps against the configured token catalog."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from decimal import Decimal

from web3 import Web3

from ..clients.balances import fetch_human_balance
from ..clients.prices import PriceClient
from ..domain import Asset, SelectionEntry
from ..settings import BundlerSettings
from .context import PipelineContext

MAX_AMOUNT = "max"


def build_catalog(settings: BundlerSettings) -> dict[str, Asset]:
    """Index configured assets by lowercase symbol and lowercase address."""
    catalog: dict[str, Asset] = {}
    for cfg in settings.assets:
        asset = Asset(
            address=cfg.address,
            symbol=cfg.symbol,
            decimals=cfg.decimals,
            is_native=cfg.is_native,
        )
        catalog[cfg.symbol.lower()] = asset
        catalog[cfg.address.lower()] = asset
    return catalog


def lookup_asset(catalog: dict[str, Asset], key: str) -> Asset:
    asset = catalog.get(key.strip().lower())
    if asset is None:
        known = sorted({a.symbol for a in catalog.values()})
        raise ValueError(
            f"Unknown asset '{key}'. Configured assets: {', '.join(known)}"
        )
    return asset


async def resolve_selections(ctx: PipelineContext) -> None:
    """Turn (symbol, amount) pairs into SelectionEntry objects.

    An amount of ``max`` is replaced by the Safe's current balance of the
    asset and flagged with ``is_max``.
    """
    s = ctx.state.settings
    log = ctx.state.logger
    catalog = build_catalog(s)

    ctx.target = lookup_asset(catalog, ctx.target_symbol)

    pairs = [
        (lookup_asset(catalog, key), amount.strip()) for key, amount in ctx.requested
    ]

    max_assets = [asset for asset, amount in pairs if amount.lower() == MAX_AMOUNT]
    balances: dict[str, Decimal] = {}
    if max_assets:
        if not s.safe_address:
            raise ValueError("safe_address is required to resolve 'max' amounts")
        w3 = Web3(Web3.HTTPProvider(s.rpc_url_required))
        results = await asyncio.gather(
            *[fetch_human_balance(w3, asset, s.safe_address) for asset in max_assets]
        )
        balances = {
            asset.address.lower(): balance
            for asset, balance in zip(max_assets, results)
        }

    selections: list[SelectionEntry] = []
    for asset, amount in pairs:
        if amount.lower() == MAX_AMOUNT:
            balance = balances[asset.address.lower()]
            log.info("Using full balance of %s: %s", asset.symbol, balance)
            selections.append(
                SelectionEntry(asset=asset, amount=str(balance), is_max=True)
            )
        else:
            selections.append(SelectionEntry(asset=asset, amount=amount))

    ctx.selections = selections


async def price_selections(ctx: PipelineContext) -> None:
    """Attach cached or freshly fetched USD prices to the selected assets."""
    log = ctx.state.logger
    client = PriceClient.from_settings(ctx.state.settings, ctx.state.price_cache)

    assets = [entry.asset for entry in ctx.selections]
    priced = await client.apply_prices([*assets, ctx.target_required])
    ctx.target = priced[-1]
    ctx.selections = [
        replace(entry, asset=asset)
        for entry, asset in zip(ctx.selections, priced)
    ]

    missing = [
        entry.asset.symbol for entry in ctx.selections if entry.asset.price_usd is None
    ]
    if missing:
        log.warning(
            "No USD price for %s; counted as $0 in the input value", ", ".join(missing)
        )
