from __future__ import annotations

import asyncio
import json
import logging

import backoff
import requests
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import URI
from safe_eth.eth import EthereumClient, EthereumNetwork
from safe_eth.safe.api import TransactionServiceApi
from safe_eth.safe.multi_send import MultiSend, MultiSendOperation, MultiSendTx
from safe_eth.safe.safe_tx import SafeTx
from web3 import Web3

from ..bundle.encoder import encode_operations
from ..constants import NATIVE_ASSET_ADDRESS, RETRYABLE_STATUS_CODES
from ..domain import Bundle, SafeTransaction
from ..settings import BundlerSettings, DryRunFormat
from .formatter import format_bundle_table

logger = logging.getLogger(__name__)

OPERATION_CALL = 0
OPERATION_DELEGATE_CALL = 1

NETWORK_PREFIXES = {
    80094: "berachain",
    80085: "artio",
}


def _is_retryable(e: Exception) -> bool:
    return not (
        isinstance(e, requests.exceptions.HTTPError)
        and e.response is not None
        and e.response.status_code not in RETRYABLE_STATUS_CODES
    )


@backoff.on_exception(
    backoff.expo,
    (requests.exceptions.RequestException, requests.exceptions.HTTPError),
    max_tries=5,
    giveup=lambda e: not _is_retryable(e),
    jitter=backoff.full_jitter,
)
async def _get_with_retry(url: str):
    response = await asyncio.to_thread(requests.get, url, timeout=10.0)
    response.raise_for_status()
    return response


@backoff.on_exception(
    backoff.expo,
    (requests.exceptions.RequestException, requests.exceptions.HTTPError),
    max_tries=5,
    giveup=lambda e: not _is_retryable(e),
    jitter=backoff.full_jitter,
)
async def _post_tx_with_retry(tx_service: TransactionServiceApi, safe_tx: SafeTx):
    return await asyncio.to_thread(tx_service.post_transaction, safe_tx)


async def publish_to_stdout(
    bundle: Bundle,
    transactions: list[SafeTransaction],
    network: str,
    dry_run_format: DryRunFormat = DryRunFormat.TABLE,
) -> None:
    """Print the bundle (dry run mode).

    Args:
        bundle: The assembled bundle
        transactions: The bundle's operations encoded as calls
        network: Network name shown in the table output
        dry_run_format: TABLE for the rich dashboard, JSON for raw JSON
    """
    if dry_run_format == DryRunFormat.JSON:
        data = {
            "bundle": bundle.to_dict(),
            "transactions": [tx.to_dict() for tx in transactions],
        }
        print(json.dumps(data, indent=2))
    else:
        format_bundle_table(bundle, transactions, network)


def build_safe_transaction(
    config: BundlerSettings,
    transactions: list[SafeTransaction],
    ethereum_client: EthereumClient,
) -> dict[str, str | bytes | int]:
    """Wrap the bundle's calls in a single Safe transaction.

    One call is proposed as-is. Several calls are packed into a
    DELEGATECALL to MultiSendCallOnly so they execute all-or-nothing.
    """
    if not transactions:
        raise ValueError("Cannot build a Safe transaction from an empty bundle")

    if len(transactions) == 1:
        (tx,) = transactions
        return {
            "to": tx.to,
            "data": tx.data,
            "value": tx.value,
            "operation": OPERATION_CALL,
        }

    multisend_address = Web3.to_checksum_address(config.multisend_address)
    multi_send = MultiSend(
        ethereum_client=ethereum_client, address=multisend_address, call_only=True
    )
    data = multi_send.build_tx_data(
        [
            MultiSendTx(MultiSendOperation.CALL, tx.to, tx.value, tx.data)
            for tx in transactions
        ]
    )
    logger.debug(
        "Packed %d call(s) into MultiSend at %s", len(transactions), multisend_address
    )
    return {
        "to": multisend_address,
        "data": bytes(data),
        "value": 0,
        "operation": OPERATION_DELEGATE_CALL,
    }


async def send_to_safe(
    config: BundlerSettings,
    transactions: list[SafeTransaction],
) -> str:
    """Propose the bundle to the Safe Transaction Service for signing.

    Args:
        config: Settings with Safe details
        transactions: The bundle's calls, in execution order

    Returns:
        Safe UI URL for transaction approval

    Raises:
        ValueError: If safe_address or private_key is not configured
    """
    if not config.safe_address:
        raise ValueError("safe_address required for Broadcast mode")

    if not config.private_key:
        raise ValueError("private_key required for Broadcast mode")

    private_key_str = config.private_key.get_secret_value()

    account: LocalAccount = Account.from_key(private_key_str)
    logger.info("Proposing transaction as: %s", account.address)

    network = EthereumNetwork(config.chain_id)
    ethereum_client = EthereumClient(URI(config.rpc_url_required))

    api_key = (
        config.safe_txn_srvc_api_key.get_secret_value()
        if config.safe_txn_srvc_api_key
        else None
    )
    tx_service = TransactionServiceApi(
        network,
        ethereum_client,
        base_url=config.safe_txn_srvc_url,
        api_key=api_key,
        request_timeout=10,
    )

    safe_checksum = Web3.to_checksum_address(config.safe_address)

    safe_api_url = f"{tx_service.base_url}/api/v1/safes/{safe_checksum}/"
    logger.debug("Fetching Safe info from: %s", safe_api_url)
    safe_info_response = await _get_with_retry(safe_api_url)
    nonce = int(safe_info_response.json().get("nonce", 0))

    logger.info("Building transaction for Safe: %s (nonce: %d)", safe_checksum, nonce)

    transaction = build_safe_transaction(config, transactions, ethereum_client)

    if config.safe_txn_srvc_api_key is None:
        logger.debug(
            "No Transaction Service API key configured; waiting for 2s to avoid rate limits"
        )
        await asyncio.sleep(2)

    zero_address = Web3.to_checksum_address(NATIVE_ASSET_ADDRESS)
    safe_tx = SafeTx(
        ethereum_client=ethereum_client,
        safe_address=safe_checksum,
        to=Web3.to_checksum_address(transaction["to"]),
        value=transaction["value"],
        data=transaction["data"],
        operation=transaction["operation"],
        safe_tx_gas=0,
        base_gas=0,
        gas_price=0,
        gas_token=zero_address,
        refund_receiver=zero_address,
        safe_nonce=nonce,
        safe_version=config.safe_version,
        chain_id=config.chain_id,
    )

    safe_tx.sign(private_key_str)

    await _post_tx_with_retry(tx_service, safe_tx)

    safe_tx_hash = safe_tx.safe_tx_hash.hex()
    logger.info("Transaction proposed: %s", safe_tx_hash)

    network_prefix = NETWORK_PREFIXES.get(config.chain_id, "eth")
    return (
        f"https://app.safe.global/transactions/queue"
        f"?safe={network_prefix}:{safe_checksum}"
        f"#{safe_tx_hash}"
    )


async def publish_bundle(config: BundlerSettings, bundle: Bundle) -> str | None:
    """Publish the bundle based on configuration.

    - dry_run: print to stdout
    - not dry_run and Broadcast mode: propose to the Safe

    Returns:
        Safe UI URL when the bundle was proposed, otherwise None
    """
    transactions = encode_operations(bundle.operations)

    if config.dry_run:
        await publish_to_stdout(
            bundle, transactions, config.network.value, config.dry_run_format
        )
        return None

    if config.is_broadcast:
        safe_url = await send_to_safe(config, transactions)
        logger.info("Transaction proposed to Safe")
        logger.info("Approve here: %s", safe_url)
        return safe_url

    raise ValueError(
        "Either dry_run must be True or safe_address must be set for Broadcast mode"
    )
