"""Chain, service and contract constants."""

from typing import TypedDict


class CatalogAsset(TypedDict):
    symbol: str
    address: str
    decimals: int
    is_native: bool


NATIVE_ASSET_ADDRESS = "0x0000000000000000000000000000000000000000"

# Identifier the routing service expects for the chain's native unit
ROUTING_NATIVE_SENTINEL = "native"

BERACHAIN_CHAIN_ID = 80094
ARTIO_CHAIN_ID = 80085

DEFAULT_BERACHAIN_RPC_URL = "https://rpc.berachain.com"
DEFAULT_ARTIO_RPC_URL = "https://artio.rpc.berachain.com"

DEFAULT_ROUTING_API_URL = "https://api.oogabooga.com/v1/swap"
DEFAULT_PRICE_API_URL = "https://mainnet.api.oogabooga.io/v1/prices"

HONEY_ADDRESS = "0x7EeCA4205fF31f947EdBd49195a7A88E6A91161B"

DEFAULT_CATALOG: list[CatalogAsset] = [
    {
        "symbol": "BERA",
        "address": NATIVE_ASSET_ADDRESS,
        "decimals": 18,
        "is_native": True,
    },
    {
        "symbol": "HONEY",
        "address": HONEY_ADDRESS,
        "decimals": 18,
        "is_native": False,
    },
]

# Safe MultiSendCallOnly v1.3.0 (same address on every chain with the canonical deployment)
MULTISEND_CALL_ONLY_ADDRESS = "0x40A2aCCbd92BCA938b02010E17A5b8929b49130D"

PRICE_CACHE_TTL_SECONDS = 5 * 60

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
