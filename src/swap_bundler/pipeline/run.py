"""High-level pipeline orchestration."""

from __future__ import annotations

import asyncio

from ..bundle import BundleAssembler
from ..clients.routing import RoutingClient
from ..safe import publish_bundle
from ..state import AppState
from .context import PipelineContext
from .selection import price_selections, resolve_selections


async def assemble_bundle(ctx: PipelineContext) -> None:
    """Quote every selection and assemble the bundle.

    Raises:
        BundleError: If nothing could be assembled
    """
    s = ctx.state.settings
    assembler = BundleAssembler(RoutingClient.from_settings(s))
    ctx.bundle = await assembler.assemble(
        ctx.selections, ctx.target_required, s.slippage_tolerance
    )


async def publish(ctx: PipelineContext) -> None:
    s = ctx.state.settings
    ctx.state.logger.info("Publishing bundle (dry_run=%s)...", s.dry_run)
    ctx.safe_url = await publish_bundle(s, ctx.bundle_required)


async def run_bundle(
    state: AppState,
    requested: list[tuple[str, str]],
    target_symbol: str,
) -> PipelineContext:
    """Execute the complete swap bundle pipeline.

    1. Resolve selections against the catalog
    2. Attach USD prices (display only)
    3. Quote and assemble the bundle
    4. Print it (dry run) or propose it to the Safe

    Args:
        state: Application state containing settings, logger and price cache
        requested: (asset symbol or address, amount) pairs
        target_symbol: Asset to receive

    Returns:
        The finished pipeline context
    """
    s = state.settings
    log = state.logger

    log.info(
        "Starting bundle",
        extra={"target": target_symbol, "swaps": len(requested), "dry_run": s.dry_run},
    )

    timeout_s = s.global_timeout_seconds
    ctx = PipelineContext(state=state, requested=requested, target_symbol=target_symbol)

    async def _run_pipeline() -> None:
        await resolve_selections(ctx)
        await price_selections(ctx)
        await assemble_bundle(ctx)
        await publish(ctx)

    try:
        if timeout_s is None or timeout_s <= 0:
            await _run_pipeline()
        else:
            async with asyncio.timeout(timeout_s):
                await _run_pipeline()
    except asyncio.TimeoutError as exc:
        log.error("Bundle pipeline timed out", extra={"timeout_seconds": timeout_s})
        raise asyncio.TimeoutError(
            f"Bundle exceeded global timeout {timeout_s}s\n N.B. This can be changed "
            "via `global_timeout_seconds` or CLI flag `--global-timeout-seconds`."
        ) from exc

    log.info("Bundle completed")
    return ctx
