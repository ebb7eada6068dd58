"""Encode bundle operations into plain {to, value, data} calls."""

from __future__ import annotations

import logging

from web3 import Web3

from ..abi import load_erc20_abi
from ..domain import Operation, PermissionGrant, SafeTransaction, Swap

logger = logging.getLogger(__name__)


def encode_approve(token_address: str, spender: str, amount: int) -> bytes:
    """Encode ERC-20 ``approve(spender, amount)`` calldata.

    Args:
        token_address: Token contract being approved
        spender: Address allowed to pull the tokens (the router)
        amount: Allowance in the token's smallest unit

    Returns:
        Raw calldata bytes
    """
    w3 = Web3()
    contract = w3.eth.contract(
        address=w3.to_checksum_address(token_address), abi=load_erc20_abi()
    )
    calldata_hex = contract.encode_abi(
        abi_element_identifier="approve",
        args=[w3.to_checksum_address(spender), amount],
    )
    return bytes.fromhex(calldata_hex.removeprefix("0x"))


def encode_operation(operation: Operation) -> SafeTransaction:
    if isinstance(operation, PermissionGrant):
        return SafeTransaction(
            to=Web3.to_checksum_address(operation.asset.address),
            value=0,
            data=encode_approve(
                operation.asset.address, operation.spender, operation.amount
            ),
        )
    if isinstance(operation, Swap):
        return SafeTransaction(
            to=Web3.to_checksum_address(operation.target),
            value=operation.value,
            data=bytes.fromhex(operation.data.removeprefix("0x")),
        )
    raise TypeError(f"Unsupported operation: {operation!r}")


def encode_operations(operations: list[Operation]) -> list[SafeTransaction]:
    """Encode operations in order. The result must be submitted as one unit."""
    transactions = [encode_operation(op) for op in operations]
    logger.debug("Encoded %d operation(s)", len(transactions))
    return transactions
