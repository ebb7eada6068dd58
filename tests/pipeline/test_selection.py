import logging
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from swap_bundler.cache import PriceCache
from swap_bundler.clients.balances import fetch_balance, fetch_human_balance
from swap_bundler.domain import Asset, SelectionEntry
from swap_bundler.pipeline.context import PipelineContext
from swap_bundler.pipeline.selection import (
    build_catalog,
    lookup_asset,
    price_selections,
    resolve_selections,
)
from swap_bundler.settings import AssetConfig, BundlerSettings
from swap_bundler.state import AppState
from swap_bundler.units import to_smallest_unit

HONEY_ADDRESS = "0x7EeCA4205fF31f947EdBd49195a7A88E6A91161B"
SAFE_ADDRESS = "0x2222222222222222222222222222222222222222"


def _ctx(requested, target="HONEY", **overrides) -> PipelineContext:
    settings = BundlerSettings(api_key="route-key", **overrides)
    state = AppState(settings=settings, logger=logging.getLogger("test"))
    return PipelineContext(state=state, requested=requested, target_symbol=target)


def test_build_catalog_indexes_symbol_and_address():
    catalog = build_catalog(BundlerSettings())

    assert catalog["bera"].is_native is True
    assert catalog["honey"] is catalog[HONEY_ADDRESS.lower()]
    assert catalog["honey"].decimals == 18


def test_lookup_asset_is_case_insensitive():
    catalog = build_catalog(BundlerSettings())

    assert lookup_asset(catalog, " Honey ").address == HONEY_ADDRESS
    assert lookup_asset(catalog, HONEY_ADDRESS.lower()).symbol == "HONEY"


def test_lookup_asset_rejects_unknown_symbol():
    with pytest.raises(ValueError, match="Unknown asset 'DOGE'.*BERA, HONEY"):
        lookup_asset(build_catalog(BundlerSettings()), "DOGE")


@pytest.mark.asyncio
async def test_resolve_selections_keeps_order_and_amounts():
    ctx = _ctx([("BERA", " 1.5 "), ("honey", "0")], target="HONEY")

    await resolve_selections(ctx)

    assert ctx.target_required.symbol == "HONEY"
    assert [(e.asset.symbol, e.amount, e.is_max) for e in ctx.selections] == [
        ("BERA", "1.5", False),
        ("HONEY", "0", False),
    ]


@pytest.mark.asyncio
async def test_resolve_selections_uses_configured_catalog():
    usdc = AssetConfig(symbol="USDC", address="0x" + "11" * 20, decimals=6)
    ctx = _ctx([("USDC", "10")], target="USDC", assets=[usdc])

    await resolve_selections(ctx)

    assert ctx.selections[0].asset.decimals == 6


@pytest.mark.asyncio
@patch("swap_bundler.pipeline.selection.fetch_human_balance", new_callable=AsyncMock)
async def test_resolve_selections_expands_max_to_safe_balance(mock_balance):
    mock_balance.return_value = Decimal("12.5")
    ctx = _ctx([("HONEY", "MAX"), ("BERA", "1")], target="BERA", safe_address=SAFE_ADDRESS)

    await resolve_selections(ctx)

    honey, bera = ctx.selections
    assert honey.amount == "12.5"
    assert honey.is_max is True
    assert bera.is_max is False
    mock_balance.assert_awaited_once()
    _, asset, owner = mock_balance.await_args.args
    assert asset.symbol == "HONEY"
    assert owner == SAFE_ADDRESS


@pytest.mark.asyncio
async def test_resolve_selections_max_requires_safe_address():
    ctx = _ctx([("HONEY", "max")])

    with pytest.raises(ValueError, match="safe_address is required"):
        await resolve_selections(ctx)


@pytest.mark.asyncio
async def test_price_selections_attaches_prices_and_warns(caplog):
    ctx = _ctx([("BERA", "2"), ("HONEY", "1")], target="HONEY")
    await resolve_selections(ctx)
    ctx.state.price_cache.put(HONEY_ADDRESS, Decimal("1.00"))

    with patch(
        "swap_bundler.clients.prices.PriceClient.refresh", new_callable=AsyncMock
    ) as mock_refresh:
        mock_refresh.return_value = {}
        with caplog.at_level(logging.WARNING, logger="test"):
            await price_selections(ctx)

    bera, honey = ctx.selections
    assert bera.asset.price_usd is None
    assert honey.asset.price_usd == Decimal("1.00")
    assert ctx.target_required.price_usd == Decimal("1.00")
    assert "No USD price for BERA" in caplog.text
    mock_refresh.assert_awaited_once()


@pytest.mark.asyncio
async def test_fetch_balance_reads_native_and_token_balances():
    w3 = MagicMock()
    w3.eth.get_balance.return_value = 7
    w3.eth.contract.return_value.functions.balanceOf.return_value.call.return_value = 9
    native = Asset(address="0x" + "00" * 20, symbol="BERA", decimals=18, is_native=True)
    token = Asset(address=HONEY_ADDRESS, symbol="HONEY", decimals=18)

    assert await fetch_balance(w3, native, SAFE_ADDRESS) == 7
    assert await fetch_balance(w3, token, SAFE_ADDRESS) == 9
    w3.eth.get_balance.assert_called_once_with(SAFE_ADDRESS)
    w3.eth.contract.return_value.functions.balanceOf.assert_called_once_with(
        SAFE_ADDRESS
    )


def test_price_cache_is_shared_through_state():
    state = AppState(settings=BundlerSettings(), logger=logging.getLogger("test"))

    assert isinstance(state.price_cache, PriceCache)
    assert len(state.price_cache) == 0


@pytest.mark.asyncio
async def test_human_balance_of_wide_amount_is_exact():
    raw = 123456789012345678901234567891
    w3 = MagicMock()
    w3.eth.contract.return_value.functions.balanceOf.return_value.call.return_value = raw
    token = Asset(address=HONEY_ADDRESS, symbol="HONEY", decimals=18)

    balance = await fetch_human_balance(w3, token, SAFE_ADDRESS)

    assert to_smallest_unit(str(balance), 18) == raw


@pytest.mark.asyncio
@patch("swap_bundler.clients.prices.PriceClient.refresh", new_callable=AsyncMock)
async def test_price_selections_keeps_amount_and_max_flag(mock_refresh):
    honey = Asset(address=HONEY_ADDRESS, symbol="HONEY", decimals=18)
    ctx = _ctx([], target="HONEY")
    ctx.target = honey
    ctx.selections = [SelectionEntry(asset=honey, amount="12.5", is_max=True)]
    ctx.state.price_cache.put(HONEY_ADDRESS, Decimal("0.99"))

    await price_selections(ctx)

    (entry,) = ctx.selections
    assert entry.amount == "12.5"
    assert entry.is_max is True
    assert entry.asset.price_usd == Decimal("0.99")
    mock_refresh.assert_not_awaited()
