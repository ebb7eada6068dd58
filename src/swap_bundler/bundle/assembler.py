"""Swap bundle assembly: quote every selection concurrently and build one bundle."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from enum import Enum
from typing import Protocol

from ..clients.routing import QuoteError
from ..domain import (
    Asset,
    Bundle,
    Operation,
    Quote,
    QuoteFailure,
    SelectionEntry,
)
from ..units import from_smallest_unit, parse_amount
from .operations import build_operations

logger = logging.getLogger(__name__)


class QuoteSource(Protocol):
    async def fetch_quote(
        self,
        source: Asset,
        amount: str,
        target: Asset,
        slippage_tolerance: float,
    ) -> Quote: ...


class BundleErrorReason(str, Enum):
    EMPTY = "empty"
    NO_VALID_SWAPS = "no_valid_swaps"


class BundleError(Exception):
    """Raised when no bundle can be assembled at all."""

    def __init__(
        self,
        reason: BundleErrorReason,
        message: str,
        failures: list[QuoteFailure] | None = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.failures = failures or []


def _has_positive_amount(entry: SelectionEntry) -> bool:
    value = parse_amount(entry.amount)
    return value is not None and value > 0


def input_value(entry: SelectionEntry) -> Decimal:
    """USD value of a selection; an asset without a known price contributes 0."""
    if entry.asset.price_usd is None:
        return Decimal(0)
    amount = parse_amount(entry.amount) or Decimal(0)
    return amount * entry.asset.price_usd


class BundleAssembler:
    """Builds a swap bundle from a list of selections.

    Quotes are fetched concurrently so they describe the same moment in the
    market; every request runs to completion and a failed quote only drops
    its own selection.
    """

    def __init__(self, quote_client: QuoteSource):
        self.quote_client = quote_client

    async def assemble(
        self,
        selections: list[SelectionEntry],
        target: Asset,
        slippage_tolerance: float,
    ) -> Bundle:
        """Quote all selections and assemble the ordered operation list.

        Args:
            selections: Assets and amounts to sell, in display order
            target: Asset to receive
            slippage_tolerance: Percentage passed to every quote request

        Returns:
            Bundle with operations for every successfully quoted selection
            and the failures that were skipped

        Raises:
            BundleError: ``empty`` when no selection has a positive amount,
                ``no_valid_swaps`` when every quote failed
        """
        entries = [entry for entry in selections if _has_positive_amount(entry)]
        if not entries:
            raise BundleError(BundleErrorReason.EMPTY, "No valid swaps to execute")

        logger.info(
            "Requesting %d quote(s) into %s (slippage %s%%)",
            len(entries),
            target.symbol,
            slippage_tolerance,
        )
        results = await asyncio.gather(
            *[
                self.quote_client.fetch_quote(
                    entry.asset, entry.amount, target, slippage_tolerance
                )
                for entry in entries
            ],
            return_exceptions=True,
        )

        quoted: list[tuple[SelectionEntry, Quote]] = []
        failures: list[QuoteFailure] = []
        for entry, result in zip(entries, results):
            if isinstance(result, QuoteError):
                logger.warning(
                    "Skipping %s: quote failed (%s): %s",
                    entry.asset.symbol,
                    result.reason.value,
                    result,
                )
                failures.append(
                    QuoteFailure(
                        asset=entry.asset,
                        amount=entry.amount,
                        reason=result.reason.value,
                        detail=str(result),
                    )
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                quoted.append((entry, result))

        if not quoted:
            raise BundleError(
                BundleErrorReason.NO_VALID_SWAPS,
                f"None of the {len(entries)} swap(s) could be quoted",
                failures=failures,
            )

        operations: list[Operation] = []
        for entry, quote in quoted:
            operations.extend(build_operations(entry, quote))

        total_input_value = sum(
            (input_value(entry) for entry, _ in quoted), Decimal(0)
        )
        total_estimated_output = from_smallest_unit(
            sum(quote.expected_output for _, quote in quoted), target.decimals
        )
        total_min_output = from_smallest_unit(
            sum(quote.min_output for _, quote in quoted), target.decimals
        )

        if failures:
            logger.warning(
                "%d of %d swap(s) could not be quoted and were skipped",
                len(failures),
                len(entries),
            )
        logger.info(
            "Assembled %d operation(s): ~%s %s (min %s) for ~$%s",
            len(operations),
            total_estimated_output,
            target.symbol,
            total_min_output,
            total_input_value,
        )

        return Bundle(
            target=target,
            operations=operations,
            total_input_value=total_input_value,
            total_estimated_output=total_estimated_output,
            total_min_output=total_min_output,
            quoted=quoted,
            failures=failures,
        )
